# ================================
# katalis/core/ledger/journal_entry.py
# ================================

import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd

from katalis.core.accounts.chart import Account, TransactionCategory
from katalis.core.errors import InvalidJournalEntry


def parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or value == "":
        raise InvalidJournalEntry("Journal entry date is required")
    try:
        return pd.Timestamp(value).date()
    except ValueError:
        raise InvalidJournalEntry(f"Unparseable journal entry date {value!r}") from None


def parse_datetime(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return pd.Timestamp(value).to_pydatetime()
    except ValueError:
        raise InvalidJournalEntry(f"Unparseable timestamp {value!r}") from None


_EPOCH_MIN = datetime.min.replace(tzinfo=timezone.utc)


def _utc_instant(value: Optional[datetime]) -> datetime:
    # naive timestamps are taken as UTC
    if value is None:
        return _EPOCH_MIN
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# -------------------------------------------------
# meta (structured extras)
# -------------------------------------------------
@dataclass(frozen=True)
class UnitBreakdown:
    """price x quantity provenance of an amount (informational only)"""

    price_per_unit: float
    quantity: float
    unit: str = "pcs"

    @property
    def total(self) -> float:
        return float(self.price_per_unit) * float(self.quantity)


@dataclass(frozen=True)
class TransactionMeta:
    sold_stock_ids: Tuple[str, ...] = ()
    unit_breakdown: Optional[UnitBreakdown] = None

    @classmethod
    def from_record(cls, meta) -> "TransactionMeta":
        if not meta:
            return cls()
        if isinstance(meta, cls):
            return meta

        breakdown = meta.get("unit_breakdown")
        if breakdown:
            breakdown = UnitBreakdown(
                price_per_unit=float(breakdown.get("price_per_unit", 0)),
                quantity=float(breakdown.get("quantity", 0)),
                unit=breakdown.get("unit") or "pcs",
            )
        else:
            breakdown = None

        return cls(
            sold_stock_ids=tuple(str(i) for i in meta.get("sold_stock_ids") or ()),
            unit_breakdown=breakdown,
        )


# -------------------------------------------------
# journal entries (tagged union)
# -------------------------------------------------
@dataclass(frozen=True)
class JournalEntry:
    """
    JournalEntry
    ------------
    Fields shared by both transaction shapes.

    - amount carries no sign; the direction comes from the account role
    - deleted_at set -> soft-deleted, excluded by Journal
    - created_at is the tie-break for entries on the same date

    Use LegacyEntry or DoubleEntry, never this base directly.
    """

    id: str
    date: date
    category: TransactionCategory
    name: str
    amount: float
    description: str = ""
    business_id: str = ""
    account: str = ""
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    meta: TransactionMeta = field(default_factory=TransactionMeta)

    is_double_entry = False

    def __post_init__(self):
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "date", parse_date(self.date))
        object.__setattr__(self, "created_at", parse_datetime(self.created_at))
        object.__setattr__(self, "deleted_at", parse_datetime(self.deleted_at))
        object.__setattr__(self, "meta", TransactionMeta.from_record(self.meta))

        try:
            object.__setattr__(self, "category", TransactionCategory(self.category))
        except ValueError:
            raise InvalidJournalEntry(
                f"Unknown transaction category {self.category!r} on {self.id}"
            ) from None

        try:
            amount = float(self.amount)
        except (TypeError, ValueError):
            raise InvalidJournalEntry(f"Amount of {self.id} is not a number") from None
        if not math.isfinite(amount):
            raise InvalidJournalEntry(f"Amount of {self.id} is not finite")
        object.__setattr__(self, "amount", amount)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def sort_key(self):
        """(date, created_at, id): fully deterministic replay order"""
        created = self.created_at
        return (self.date, created is not None, _utc_instant(created), self.id)

    def involves(self, account_id) -> bool:
        return False


@dataclass(frozen=True)
class LegacyEntry(JournalEntry):
    """
    Single-account record posted against the free-text `account` label.
    Counted in category totals, never projected onto an account ledger.
    """

    is_double_entry = False


@dataclass(frozen=True)
class DoubleEntry(JournalEntry):
    """
    Debit one account, credit another, by the same amount.

    debit_account / credit_account are optional resolved Account objects
    (denormalised for convenience); the ids are authoritative.
    """

    debit_account_id: Optional[str] = None
    credit_account_id: Optional[str] = None
    debit_account: Optional[Account] = None
    credit_account: Optional[Account] = None

    is_double_entry = True

    def __post_init__(self):
        super().__post_init__()

        debit_id = self.debit_account_id
        credit_id = self.credit_account_id
        if debit_id is None and self.debit_account is not None:
            debit_id = self.debit_account.id
        if credit_id is None and self.credit_account is not None:
            credit_id = self.credit_account.id

        if debit_id is None:
            raise InvalidJournalEntry(f"Double entry {self.id} has no debit account")
        if credit_id is None:
            raise InvalidJournalEntry(f"Double entry {self.id} has no credit account")

        debit_id, credit_id = str(debit_id), str(credit_id)
        object.__setattr__(self, "debit_account_id", debit_id)
        object.__setattr__(self, "credit_account_id", credit_id)

        if debit_id == credit_id:
            raise InvalidJournalEntry(
                f"Double entry {self.id} debits and credits the same account {debit_id}"
            )
        if self.amount <= 0:
            raise InvalidJournalEntry(
                f"Double entry {self.id} must have a positive amount, got {self.amount}"
            )

        if self.debit_account is not None and self.debit_account.id != debit_id:
            raise InvalidJournalEntry(
                f"Double entry {self.id}: debit_account does not match debit_account_id"
            )
        if self.credit_account is not None and self.credit_account.id != credit_id:
            raise InvalidJournalEntry(
                f"Double entry {self.id}: credit_account does not match credit_account_id"
            )

    def involves(self, account_id) -> bool:
        return account_id in (self.debit_account_id, self.credit_account_id)

    def counter_account(self, account_id) -> Optional[Account]:
        """the resolved account on the other side of `account_id`"""
        if self.debit_account_id == account_id:
            return self.credit_account
        return self.debit_account


Transaction = Union[LegacyEntry, DoubleEntry]


# =======================================
# construction helpers
# =======================================

def make_entry_pair(
    date,
    debit_account,
    credit_account,
    amount,
    category,
    name="",
    description="",
    **extra,
) -> DoubleEntry:
    """
    Build a DoubleEntry from a debit and a credit side.

    debit_account / credit_account may be Account objects or bare ids.

        make_entry_pair("2025-01-05", cash, sales, 1000, "EARN", name="Sewa Januari")
    """
    debit_obj = debit_account if isinstance(debit_account, Account) else None
    credit_obj = credit_account if isinstance(credit_account, Account) else None

    return DoubleEntry(
        id=extra.pop("id", None) or str(uuid.uuid4()),
        date=date,
        category=category,
        name=name,
        description=description,
        amount=amount,
        account=extra.pop("account", "Double-entry transaction"),
        debit_account_id=debit_obj.id if debit_obj else debit_account,
        credit_account_id=credit_obj.id if credit_obj else credit_account,
        debit_account=debit_obj,
        credit_account=credit_obj,
        **extra,
    )


def _resolve_account(nested, account_id, accounts_by_id) -> Optional[Account]:
    if isinstance(nested, Account):
        return nested
    if nested:
        return Account.from_record(nested)
    if accounts_by_id and account_id is not None:
        return accounts_by_id.get(str(account_id))
    return None


def entry_from_record(record: dict, accounts_by_id: Optional[dict] = None) -> Transaction:
    """
    Raw row (as fetched by the persistence collaborator) -> LegacyEntry | DoubleEntry.

    Nested `debit_account` / `credit_account` dicts are used when present,
    otherwise the ids are resolved against `accounts_by_id`.
    """
    common = dict(
        id=record.get("id") or str(uuid.uuid4()),
        date=record.get("date"),
        category=record.get("category"),
        name=record.get("name") or "",
        amount=record.get("amount"),
        description=record.get("description") or "",
        business_id=str(record.get("business_id") or ""),
        account=record.get("account") or "",
        created_at=record.get("created_at"),
        deleted_at=record.get("deleted_at"),
        meta=TransactionMeta.from_record(record.get("meta")),
    )

    if not record.get("is_double_entry"):
        return LegacyEntry(**common)

    debit_id = record.get("debit_account_id")
    credit_id = record.get("credit_account_id")
    debit = _resolve_account(record.get("debit_account"), debit_id, accounts_by_id)
    credit = _resolve_account(record.get("credit_account"), credit_id, accounts_by_id)

    return DoubleEntry(
        **common,
        debit_account_id=debit_id if debit_id is not None else (debit.id if debit else None),
        credit_account_id=credit_id if credit_id is not None else (credit.id if credit else None),
        debit_account=debit,
        credit_account=credit,
    )


def entries_from_records(
    records: Iterable[dict], accounts: Optional[Iterable[Account]] = None
) -> List[Transaction]:
    accounts_by_id = {a.id: a for a in accounts} if accounts is not None else None
    return [entry_from_record(r, accounts_by_id) for r in records]

# ================================
# END journal_entry.py
# ================================
