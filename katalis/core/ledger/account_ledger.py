# ======================================
# katalis/core/ledger/account_ledger.py
# ======================================

import logging
from dataclasses import dataclass
from datetime import date
from typing import Tuple

import pandas as pd

from katalis.core.accounts.chart import Account, NormalBalance
from katalis.core.ledger.ledger import Journal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerEntry:
    transaction_id: str
    date: date
    description: str
    counter_account_code: str
    counter_account_name: str
    debit_amount: float
    credit_amount: float
    balance: float


@dataclass(frozen=True)
class AccountLedger:
    """
    AccountLedger
    -------------
    General ledger of one account over a transaction set.

    - entries are in replay order, balance is the post-entry snapshot
    - total_debits / total_credits are raw legs, never netted
    - legacy_count: single-account rows set aside (never in the balance)
    """

    account: Account
    entries: Tuple[LedgerEntry, ...] = ()
    total_debits: float = 0.0
    total_credits: float = 0.0
    closing_balance: float = 0.0
    legacy_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def to_frame(self) -> pd.DataFrame:
        columns = [
            "transaction_id",
            "date",
            "description",
            "counter_account_code",
            "counter_account_name",
            "debit_amount",
            "credit_amount",
            "balance",
        ]
        return pd.DataFrame([e.__dict__ for e in self.entries], columns=columns)


def _signed_movement(normal_balance: NormalBalance, debit: float, credit: float) -> float:
    if normal_balance == NormalBalance.DEBIT:
        return debit - credit
    return credit - debit


def build_ledger(account: Account, transactions) -> AccountLedger:
    """
    Project the transaction stream onto `account`.

        ledger = build_ledger(cash, transactions)
        ledger.closing_balance

    `transactions` may be a Journal or any iterable of journal entries;
    soft-deleted rows are dropped by the Journal.
    """
    journal = Journal.coerce(transactions)

    legacy_count = len(journal.legacy_entries())
    touching = [t for t in journal.double_entries() if t.involves(account.id)]

    balance = 0.0
    total_debits = 0.0
    total_credits = 0.0
    entries = []

    for t in touching:
        is_debit = t.debit_account_id == account.id
        debit_amount = t.amount if is_debit else 0.0
        credit_amount = 0.0 if is_debit else t.amount

        balance += _signed_movement(account.normal_balance, debit_amount, credit_amount)
        total_debits += debit_amount
        total_credits += credit_amount

        if is_debit:
            counter = journal.credit_account_of(t)
        else:
            counter = journal.debit_account_of(t)

        entries.append(
            LedgerEntry(
                transaction_id=t.id,
                date=t.date,
                description=t.name,
                counter_account_code=counter.account_code if counter else "-",
                counter_account_name=counter.account_name if counter else "-",
                debit_amount=debit_amount,
                credit_amount=credit_amount,
                balance=balance,
            )
        )

    if legacy_count:
        logger.warning(
            "ledger %s: %d legacy rows skipped", account.account_code, legacy_count
        )
    logger.debug(
        "ledger %s: %d entries, closing %.2f",
        account.account_code, len(entries), balance,
    )

    return AccountLedger(
        account=account,
        entries=tuple(entries),
        total_debits=total_debits,
        total_credits=total_credits,
        closing_balance=balance,
        legacy_count=legacy_count,
    )

# ============= end account_ledger.py
