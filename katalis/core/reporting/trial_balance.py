#============== katalis/core/reporting/trial_balance.py

import logging
from dataclasses import dataclass
from typing import Tuple

import pandas as pd

from katalis.config.params import DEFAULT_SETTINGS
from katalis.core.accounts.chart import AccountType, NormalBalance
from katalis.core.ledger.account_ledger import build_ledger
from katalis.core.ledger.ledger import Journal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrialBalanceRow:
    account_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    debit_balance: float
    credit_balance: float


@dataclass(frozen=True)
class TrialBalance:
    rows: Tuple[TrialBalanceRow, ...]
    total_debits: float
    total_credits: float
    is_balanced: bool
    difference: float

    def to_frame(self) -> pd.DataFrame:
        columns = [
            "account_code",
            "account_name",
            "account_type",
            "debit_balance",
            "credit_balance",
        ]
        df = pd.DataFrame(
            [
                {
                    "account_code": r.account_code,
                    "account_name": r.account_name,
                    "account_type": r.account_type.value,
                    "debit_balance": r.debit_balance,
                    "credit_balance": r.credit_balance,
                }
                for r in self.rows
            ],
            columns=columns,
        )
        return df


def _place(normal_balance: NormalBalance, balance: float):
    """
    closing balance -> (debit column, credit column)
    a negative balance flips to the opposite column as a positive figure
    """
    if normal_balance == NormalBalance.DEBIT:
        if balance >= 0:
            return balance, 0.0
        return 0.0, abs(balance)

    if balance >= 0:
        return 0.0, balance
    return abs(balance), 0.0


def build_trial_balance(accounts, transactions, settings=DEFAULT_SETTINGS) -> TrialBalance:
    """
    Ledger -> trial balance over every active account that has activity.
    """
    accounts = list(accounts)
    journal = Journal.coerce(transactions, accounts)

    rows = []
    for account in accounts:
        if not account.is_active:
            continue

        ledger = build_ledger(account, journal)
        if ledger.is_empty:
            continue

        debit, credit = _place(account.normal_balance, ledger.closing_balance)
        rows.append(
            TrialBalanceRow(
                account_id=account.id,
                account_code=account.account_code,
                account_name=account.account_name,
                account_type=account.account_type,
                debit_balance=debit,
                credit_balance=credit,
            )
        )

    rows.sort(key=lambda r: (int(r.account_code), r.account_code))

    total_debits = sum(r.debit_balance for r in rows)
    total_credits = sum(r.credit_balance for r in rows)
    difference = abs(total_debits - total_credits)
    is_balanced = abs(difference) < settings.balance_tolerance

    if not is_balanced:
        logger.warning(
            "trial balance out of balance: debits %.2f, credits %.2f (diff %.2f)",
            total_debits, total_credits, difference,
        )
    else:
        logger.debug("trial balance: %d rows, total %.2f", len(rows), total_debits)

    return TrialBalance(
        rows=tuple(rows),
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=is_balanced,
        difference=difference,
    )

# ============== end katalis/core/reporting/trial_balance.py
