# tests/conftest.py
"""
Shared fixtures: a small chart of accounts for one business and a
factory for double entries against it.
"""

import pytest

from katalis.core.accounts.chart import Account
from katalis.core.ledger.journal_entry import LegacyEntry, make_entry_pair

BIZ = "biz-1"


def _account(code, name, account_type, parent=None, **kwargs):
    return Account(
        id=f"acc-{code}",
        business_id=BIZ,
        account_code=code,
        account_name=name,
        account_type=account_type,
        parent_account_id=f"acc-{parent}" if parent else None,
        sort_order=int(code),
        **kwargs,
    )


# =============================================================================
# Chart of accounts
# =============================================================================

@pytest.fixture
def chart():
    """Top-level nodes plus one or more postable leaves per type."""
    return [
        _account("1000", "Aset", "ASSET"),
        _account("1100", "Kas", "ASSET", "1000"),
        _account("1200", "Bank BCA", "ASSET", "1000"),
        _account("1300", "Persediaan Barang", "ASSET", "1000", default_category="VAR"),
        _account("1400", "Piutang Usaha", "ASSET", "1000"),
        _account("1500", "Peralatan", "ASSET", "1000", default_category="CAPEX"),
        _account("2000", "Liabilitas", "LIABILITY"),
        _account("2100", "Pinjaman Bank", "LIABILITY", "2000"),
        _account("3000", "Ekuitas", "EQUITY"),
        _account("3100", "Modal Pemilik", "EQUITY", "3000"),
        _account("3300", "Prive", "EQUITY", "3000"),
        _account("4000", "Pendapatan", "REVENUE"),
        _account("4100", "Pendapatan Sewa", "REVENUE", "4000"),
        _account("5000", "Beban", "EXPENSE"),
        _account("5100", "Beban Operasional", "EXPENSE", "5000"),
        _account("5200", "HPP", "EXPENSE", "5000"),
        _account("5400", "Beban Bunga", "EXPENSE", "5000"),
    ]


@pytest.fixture
def acc(chart):
    """account lookup by code: acc["1100"]"""
    return {a.account_code: a for a in chart}


@pytest.fixture
def entry():
    """Double entry factory: entry(date, debit, credit, amount, category, **extra)."""
    counter = {"n": 0}

    def _make(date, debit, credit, amount, category, **extra):
        counter["n"] += 1
        extra.setdefault("id", f"tx-{counter['n']:03d}")
        extra.setdefault("name", f"entry {counter['n']}")
        return make_entry_pair(date, debit, credit, amount, category, **extra)

    return _make


@pytest.fixture
def legacy():
    """Legacy single-account row factory."""
    counter = {"n": 0}

    def _make(date, amount, category, **extra):
        counter["n"] += 1
        extra.setdefault("id", f"legacy-{counter['n']:03d}")
        extra.setdefault("name", f"legacy {counter['n']}")
        extra.setdefault("account", "Kas")
        return LegacyEntry(date=date, amount=amount, category=category, **extra)

    return _make
