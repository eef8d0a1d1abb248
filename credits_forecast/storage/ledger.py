"""
Read-only ledger loading.

Turns a YAML export of customers, partners and time entries into
validated records. This module never writes.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .models import CustomerAccount, PartnerAccount, TimeEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ledger:
    """A reporting period's customers, partners and time entries."""
    period_start: date
    period_end: date
    customers: Tuple[CustomerAccount, ...]
    partners: Tuple[PartnerAccount, ...] = ()
    time_entries: Tuple[TimeEntry, ...] = ()
    as_of: Optional[date] = None

    def __post_init__(self):
        """Validate period bounds and id uniqueness."""
        if self.period_end < self.period_start:
            raise ValueError("period end must not be before period start")
        customer_ids = [c.customer_id for c in self.customers]
        if len(customer_ids) != len(set(customer_ids)):
            raise ValueError("customer ids must be unique")
        partner_ids = [p.partner_id for p in self.partners]
        if len(partner_ids) != len(set(partner_ids)):
            raise ValueError("partner ids must be unique")

    def _in_period(self, entry: TimeEntry) -> bool:
        if entry.entry_date is None:
            return True
        return self.period_start <= entry.entry_date <= self.period_end

    def get_customer(self, customer_id: str) -> Optional[CustomerAccount]:
        for customer in self.customers:
            if customer.customer_id == customer_id:
                return customer
        return None

    def entries_for_customer(self, customer_id: str) -> List[TimeEntry]:
        """Time entries for a customer within the period, in ledger order."""
        return [
            e for e in self.time_entries
            if e.customer_id == customer_id and self._in_period(e)
        ]

    def entries_for_partner(self, partner_id: str) -> List[TimeEntry]:
        """Time entries for a partner within the period, in ledger order."""
        return [
            e for e in self.time_entries
            if e.partner_id == partner_id and self._in_period(e)
        ]

    def entries_by_customer(self) -> Dict[str, List[TimeEntry]]:
        return {c.customer_id: self.entries_for_customer(c.customer_id) for c in self.customers}


def load_ledger(path: str) -> Ledger:
    """Load and validate a ledger from a YAML file.

    Args:
        path: Path to YAML ledger file

    Returns:
        Validated Ledger

    Raises:
        FileNotFoundError: If the ledger file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the ledger is invalid
    """
    ledger_path = Path(path)
    if not ledger_path.exists():
        raise FileNotFoundError(f"Ledger file not found: {path}")

    with open(ledger_path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in ledger file {path}: {e}")

    if not raw:
        raise ValueError("Ledger file is empty")
    if not isinstance(raw, dict):
        raise ValueError("Ledger must be a dictionary")

    allowed_top_keys = {'period', 'customers', 'partners', 'time_entries'}
    unknown_keys = set(raw.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown ledger keys: {unknown_keys}")

    if 'period' not in raw:
        raise ValueError("Missing required 'period' section")
    period = raw['period']
    if not isinstance(period, dict):
        raise ValueError("'period' must be a dictionary")
    unknown_period_keys = set(period.keys()) - {'start', 'end', 'as_of'}
    if unknown_period_keys:
        raise ValueError(f"Unknown period keys: {unknown_period_keys}")
    for required in ('start', 'end'):
        if required not in period:
            raise ValueError(f"Missing required '{required}' in period")

    customers = tuple(
        _parse_customer(item, i) for i, item in enumerate(_require_list(raw, 'customers'))
    )
    partners = tuple(
        _parse_partner(item, i) for i, item in enumerate(_require_list(raw, 'partners'))
    )
    entries = tuple(
        _parse_entry(item, i) for i, item in enumerate(_require_list(raw, 'time_entries'))
    )

    ledger = Ledger(
        period_start=_parse_date(period['start'], "period.start"),
        period_end=_parse_date(period['end'], "period.end"),
        customers=customers,
        partners=partners,
        time_entries=entries,
        as_of=_parse_date(period['as_of'], "period.as_of") if 'as_of' in period else None,
    )
    logger.debug(
        "Loaded ledger %s: %d customers, %d partners, %d entries",
        path, len(customers), len(partners), len(entries),
    )
    return ledger


def _require_list(raw: Dict, key: str) -> List:
    value = raw.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list")
    return value


def _parse_date(value: Any, path: str) -> date:
    # safe_load already turns ISO dates into date objects
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ValueError(f"'{path}' must be an ISO date, got {value!r}")
    raise ValueError(f"'{path}' must be an ISO date")


def _number(data: Dict, key: str, path: str, default: Optional[float] = None) -> float:
    if key not in data:
        if default is None:
            raise ValueError(f"Missing required '{key}' in {path}")
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{path}.{key}' must be a number")
    return float(value)


def _parse_customer(data: Any, index: int) -> CustomerAccount:
    path = f"customers[{index}]"
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")
    allowed = {'id', 'name', 'plan', 'credits_balance', 'monthly_allocation',
               'price_per_credit', 'currency'}
    unknown = set(data.keys()) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in {path}: {unknown}")
    if 'id' not in data:
        raise ValueError(f"Missing required 'id' in {path}")

    customer_id = str(data['id'])
    price = data.get('price_per_credit')
    return CustomerAccount(
        customer_id=customer_id,
        name=str(data.get('name', customer_id)),
        plan=str(data.get('plan', 'starter')),
        credits_balance=_number(data, 'credits_balance', path),
        monthly_allocation=_number(data, 'monthly_allocation', path),
        price_per_credit=_number(data, 'price_per_credit', path) if price is not None else None,
        currency=str(data.get('currency', 'EUR')).upper(),
    )


def _parse_partner(data: Any, index: int) -> PartnerAccount:
    path = f"partners[{index}]"
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")
    unknown = set(data.keys()) - {'id', 'name', 'capacity_hours_per_month'}
    if unknown:
        raise ValueError(f"Unknown keys in {path}: {unknown}")
    if 'id' not in data:
        raise ValueError(f"Missing required 'id' in {path}")

    partner_id = str(data['id'])
    return PartnerAccount(
        partner_id=partner_id,
        name=str(data.get('name', partner_id)),
        capacity_hours_per_month=_number(data, 'capacity_hours_per_month', path, default=160.0),
    )


def _parse_entry(data: Any, index: int) -> TimeEntry:
    path = f"time_entries[{index}]"
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")
    allowed = {'customer', 'partner', 'date', 'hours', 'credits_consumed',
               'internal_cost', 'billable'}
    unknown = set(data.keys()) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in {path}: {unknown}")

    billable = data.get('billable', True)
    if not isinstance(billable, bool):
        raise ValueError(f"'{path}.billable' must be a boolean")

    return TimeEntry(
        hours=_number(data, 'hours', path),
        credits_consumed=_number(data, 'credits_consumed', path, default=0.0),
        internal_cost=_number(data, 'internal_cost', path, default=0.0),
        billable=billable,
        entry_date=_parse_date(data['date'], f"{path}.date") if 'date' in data else None,
        customer_id=str(data['customer']) if 'customer' in data else None,
        partner_id=str(data['partner']) if 'partner' in data else None,
    )
