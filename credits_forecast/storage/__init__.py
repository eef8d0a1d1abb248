"""
Data-access boundary.

Validated input records and a read-only ledger loader.
"""
