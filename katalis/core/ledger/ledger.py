# ===============================
# katalis/core/ledger/ledger.py
# ===============================

import logging
from typing import Iterable, List, Optional

import pandas as pd

from katalis.core.accounts.chart import Account, TransactionCategory
from katalis.core.ledger.journal_entry import (
    DoubleEntry,
    JournalEntry,
    Transaction,
    parse_date,
    entries_from_records,
)

logger = logging.getLogger(__name__)

LEG_COLUMNS = [
    "id",
    "date",
    "category",
    "name",
    "is_double_entry",
    "account_id",
    "account_code",
    "account_type",
    "dr_cr",
    "amount",
]


class Journal:
    """
    Journal
    --------------
    - receives the business's transactions once
    - drops soft-deleted rows (the only place this filter lives)
    - keeps entries in replay order (date, created_at, id)
    - cuts date windows and splits double-entry / legacy
    - explodes into a per-leg DataFrame for the statement builders

    The source collection is never mutated; every window is a new Journal.
    """

    def __init__(self, transactions: Iterable[Transaction] = (), accounts: Iterable[Account] = ()):
        self.accounts_by_id = {a.id: a for a in accounts}

        entries = []
        dropped = 0
        for t in transactions:
            if not isinstance(t, JournalEntry):
                raise TypeError(f"Journal expects JournalEntry, got {type(t)}")
            if t.is_deleted:
                dropped += 1
                continue
            entries.append(t)

        self.entries: List[Transaction] = sorted(entries, key=lambda t: t.sort_key)
        if dropped:
            logger.debug("journal: dropped %d soft-deleted entries", dropped)

    @classmethod
    def from_records(cls, records: Iterable[dict], accounts: Iterable[Account] = ()) -> "Journal":
        accounts = list(accounts)
        return cls(entries_from_records(records, accounts), accounts)

    @classmethod
    def coerce(cls, transactions, accounts: Iterable[Account] = ()) -> "Journal":
        """Accept a ready Journal or any iterable of entries."""
        accounts = list(accounts)
        if isinstance(transactions, Journal):
            if accounts:
                merged = dict(transactions.accounts_by_id)
                merged.update({a.id: a for a in accounts})
                return transactions._derive(transactions.entries, merged.values())
            return transactions
        return cls(transactions, accounts)

    def _derive(self, entries, accounts=None) -> "Journal":
        j = Journal.__new__(Journal)
        j.accounts_by_id = (
            dict(self.accounts_by_id) if accounts is None else {a.id: a for a in accounts}
        )
        j.entries = list(entries)
        return j

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    def __bool__(self):
        return bool(self.entries)

    # -------------------------------------------------
    # windows
    # -------------------------------------------------
    def between(self, start, end) -> "Journal":
        """inclusive [start, end]; a None bound is open"""
        start = parse_date(start) if start is not None else None
        end = parse_date(end) if end is not None else None
        return self._derive(
            t for t in self.entries
            if (start is None or t.date >= start) and (end is None or t.date <= end)
        )

    def up_to(self, as_of) -> "Journal":
        """cumulative to date, inclusive of as_of"""
        return self.between(None, as_of)

    def before(self, day) -> "Journal":
        """strictly before `day`"""
        day = parse_date(day)
        return self._derive(t for t in self.entries if t.date < day)

    def by_category(self, category) -> "Journal":
        category = TransactionCategory(category)
        return self._derive(t for t in self.entries if t.category == category)

    def double_entries(self) -> List[DoubleEntry]:
        return [t for t in self.entries if t.is_double_entry]

    def legacy_entries(self) -> List[Transaction]:
        return [t for t in self.entries if not t.is_double_entry]

    # -------------------------------------------------
    # account resolution
    # -------------------------------------------------
    def resolve_account(self, account_id, hint: Optional[Account] = None) -> Optional[Account]:
        if account_id in self.accounts_by_id:
            return self.accounts_by_id[account_id]
        return hint

    def debit_account_of(self, t: DoubleEntry) -> Optional[Account]:
        return self.resolve_account(t.debit_account_id, t.debit_account)

    def credit_account_of(self, t: DoubleEntry) -> Optional[Account]:
        return self.resolve_account(t.credit_account_id, t.credit_account)

    # -------------------------------------------------
    # balance of one account (debit + / credit -)
    # -------------------------------------------------
    def get_account_balance(self, account_id) -> float:
        balance = 0.0
        for t in self.double_entries():
            if t.debit_account_id == account_id:
                balance += t.amount
            if t.credit_account_id == account_id:
                balance -= t.amount
        return balance

    # -------------------------------------------------
    # Journal -> DataFrame (one row per leg)
    # -------------------------------------------------
    def get_df(self) -> pd.DataFrame:
        """
        Double entries become a debit row and a credit row.
        Legacy entries become a single row with dr_cr == "legacy"
        and no account_id.
        """
        if not self.entries:
            return pd.DataFrame(columns=LEG_COLUMNS).astype({"amount": "float64"})

        rows = []
        for t in self.entries:
            base = {
                "id": t.id,
                "date": t.date,
                "category": t.category.value,
                "name": t.name,
                "is_double_entry": t.is_double_entry,
            }
            if not t.is_double_entry:
                rows.append({
                    **base,
                    "account_id": None,
                    "account_code": None,
                    "account_type": None,
                    "dr_cr": "legacy",
                    "amount": t.amount,
                })
                continue

            for side, account_id, acc in (
                ("debit", t.debit_account_id, self.debit_account_of(t)),
                ("credit", t.credit_account_id, self.credit_account_of(t)),
            ):
                rows.append({
                    **base,
                    "account_id": account_id,
                    "account_code": acc.account_code if acc else None,
                    "account_type": acc.account_type.value if acc else None,
                    "dr_cr": side,
                    "amount": t.amount,
                })

        df = pd.DataFrame(rows, columns=LEG_COLUMNS)
        df["amount"] = df["amount"].astype("float64")
        return df

# ===============================
# end ledger.py
# ===============================
