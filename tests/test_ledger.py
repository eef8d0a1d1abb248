"""
Unit tests for ledger loading and input record validation.
"""

import os
import tempfile
from datetime import date

import pytest
import yaml

from credits_forecast.core.errors import InvalidPeriod
from credits_forecast.storage.ledger import Ledger, load_ledger
from credits_forecast.storage.models import CustomerAccount, TimeEntry


def ledger_data():
    return {
        "period": {"start": date(2024, 6, 1), "end": date(2024, 6, 30), "as_of": date(2024, 6, 10)},
        "customers": [
            {"id": "acme", "name": "Acme AB", "plan": "growth", "credits_balance": 30,
             "monthly_allocation": 50, "currency": "sek"},
            {"id": "globex", "plan": "scale", "credits_balance": 15,
             "monthly_allocation": 100, "price_per_credit": 110},
        ],
        "partners": [
            {"id": "p1", "name": "Partner One", "capacity_hours_per_month": 120},
            {"id": "p2"},
        ],
        "time_entries": [
            {"customer": "acme", "partner": "p1", "date": date(2024, 6, 3),
             "hours": 8, "credits_consumed": 4, "internal_cost": 400},
            {"customer": "acme", "partner": "p2", "date": "2024-06-04",
             "hours": 2, "internal_cost": 100, "billable": False},
            {"customer": "globex", "partner": "p1", "date": date(2024, 5, 28),
             "hours": 5, "credits_consumed": 2},
            {"customer": "globex", "partner": "p1", "hours": 6, "credits_consumed": 3},
        ],
    }


class TestLoadLedger:
    """Test YAML ledger loading."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_ledger(self, data, filename: str = "ledger.yaml") -> str:
        path = os.path.join(self.temp_dir, filename)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f)
        return path

    def test_loads_valid_ledger(self):
        ledger = load_ledger(self._write_ledger(ledger_data()))

        assert ledger.period_start == date(2024, 6, 1)
        assert ledger.period_end == date(2024, 6, 30)
        assert ledger.as_of == date(2024, 6, 10)
        assert [c.customer_id for c in ledger.customers] == ["acme", "globex"]
        assert len(ledger.time_entries) == 4

    def test_customer_fields(self):
        ledger = load_ledger(self._write_ledger(ledger_data()))
        acme = ledger.get_customer("acme")
        globex = ledger.get_customer("globex")

        assert acme.name == "Acme AB"
        assert acme.currency == "SEK"
        assert acme.price_per_credit is None
        assert globex.name == "globex"
        assert globex.currency == "EUR"
        assert globex.price_per_credit == 110.0
        assert ledger.get_customer("missing") is None

    def test_partner_defaults(self):
        ledger = load_ledger(self._write_ledger(ledger_data()))
        assert ledger.partners[0].capacity_hours_per_month == 120.0
        assert ledger.partners[1].capacity_hours_per_month == 160.0

    def test_entry_parsing(self):
        ledger = load_ledger(self._write_ledger(ledger_data()))
        second = ledger.time_entries[1]
        assert second.entry_date == date(2024, 6, 4)
        assert second.billable is False
        assert second.credits_consumed == 0.0

    def test_entries_filtered_to_period(self):
        """Verify dated entries outside the period are excluded; undated ones kept."""
        ledger = load_ledger(self._write_ledger(ledger_data()))
        globex_entries = ledger.entries_for_customer("globex")
        assert len(globex_entries) == 1
        assert globex_entries[0].hours == 6
        assert [e.hours for e in ledger.entries_for_partner("p1")] == [8, 6]

    def test_entries_by_customer(self):
        ledger = load_ledger(self._write_ledger(ledger_data()))
        grouped = ledger.entries_by_customer()
        assert list(grouped.keys()) == ["acme", "globex"]
        assert len(grouped["acme"]) == 2

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError, match="Ledger file not found"):
            load_ledger(os.path.join(self.temp_dir, "nope.yaml"))

    def test_missing_period_rejected(self):
        data = ledger_data()
        del data["period"]
        with pytest.raises(ValueError, match="Missing required 'period'"):
            load_ledger(self._write_ledger(data))

    def test_unknown_entry_key_rejected(self):
        data = ledger_data()
        data["time_entries"][0]["minutes"] = 30
        with pytest.raises(ValueError, match=r"Unknown keys in time_entries\[0\]"):
            load_ledger(self._write_ledger(data))

    def test_missing_balance_rejected(self):
        data = ledger_data()
        del data["customers"][0]["credits_balance"]
        with pytest.raises(ValueError, match="credits_balance"):
            load_ledger(self._write_ledger(data))

    def test_bad_date_rejected(self):
        data = ledger_data()
        data["time_entries"][0]["date"] = "June 3rd"
        with pytest.raises(ValueError, match="ISO date"):
            load_ledger(self._write_ledger(data))

    def test_negative_hours_rejected(self):
        data = ledger_data()
        data["time_entries"][0]["hours"] = -1
        with pytest.raises(InvalidPeriod):
            load_ledger(self._write_ledger(data))

    def test_duplicate_customer_ids_rejected(self):
        data = ledger_data()
        data["customers"][1]["id"] = "acme"
        with pytest.raises(ValueError, match="customer ids must be unique"):
            load_ledger(self._write_ledger(data))


class TestInputRecords:
    """Test input record validation."""

    def test_time_entry_defaults(self):
        entry = TimeEntry(hours=1.5)
        assert entry.credits_consumed == 0.0
        assert entry.internal_cost == 0.0
        assert entry.billable is True

    def test_negative_credits_rejected(self):
        with pytest.raises(InvalidPeriod, match="credits_consumed"):
            TimeEntry(hours=1, credits_consumed=-0.1)

    def test_negative_balance_rejected(self):
        with pytest.raises(InvalidPeriod, match="credits_balance"):
            CustomerAccount("c", "C", "starter", credits_balance=-1, monthly_allocation=10)

    def test_reversed_ledger_period_rejected(self):
        with pytest.raises(ValueError, match="period end"):
            Ledger(period_start=date(2024, 6, 30), period_end=date(2024, 6, 1), customers=())
