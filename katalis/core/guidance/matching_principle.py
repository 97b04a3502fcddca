# ======================================
# katalis/core/guidance/matching_principle.py
# ======================================

import logging
import re
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from katalis.core.accounts.chart import Account, AccountType, TransactionCategory
from katalis.core.ledger.journal_entry import DoubleEntry
from katalis.core.ledger.ledger import Journal

logger = logging.getLogger(__name__)

INVENTORY_NAME_RE = re.compile(r"persediaan|inventory|stok|barang|bahan", re.IGNORECASE)
COGS_NAME_RE = re.compile(r"cogs|hpp|harga pokok|cost of|biaya pokok", re.IGNORECASE)


# -------------------------------------------------
# inventory helpers
# -------------------------------------------------
def is_inventory_account(account: Optional[Account]) -> bool:
    if account is None or account.account_type != AccountType.ASSET:
        return False
    if account.default_category == TransactionCategory.VAR:
        return True
    return bool(INVENTORY_NAME_RE.search(account.account_name or ""))


def get_inventory_accounts(accounts: Iterable[Account]) -> List[Account]:
    return [a for a in accounts if a.is_active and is_inventory_account(a)]


def find_cogs_account(accounts: Iterable[Account]) -> Optional[Account]:
    """HPP/COGS-named expense sub-account, else the first expense sub-account"""
    expense_subs = [
        a for a in accounts
        if a.is_active and a.account_type == AccountType.EXPENSE and a.is_postable
    ]
    for a in expense_subs:
        if COGS_NAME_RE.search(a.account_name or ""):
            return a
    return expense_subs[0] if expense_subs else None


def is_stock_transaction(transaction, accounts: Iterable[Account] = ()) -> bool:
    """VAR double entry whose debit side is an inventory account (stock bought, not yet sold)"""
    if transaction.category != TransactionCategory.VAR or not transaction.is_double_entry:
        return False
    debit = Journal.coerce([transaction], accounts).debit_account_of(transaction)
    return is_inventory_account(debit)


def get_stock_transactions(transactions, accounts: Iterable[Account] = ()) -> List[DoubleEntry]:
    journal = Journal.coerce(transactions, accounts)
    return [
        t for t in journal.double_entries()
        if t.category == TransactionCategory.VAR
        and is_inventory_account(journal.debit_account_of(t))
    ]


def build_stock_to_cogs_update(stock_transaction: DoubleEntry, cogs_account: Account) -> DoubleEntry:
    """
    The sold stock entry re-pointed from the inventory account to COGS.
    Category and credit side stay as they are.
    """
    return replace(
        stock_transaction,
        debit_account_id=cogs_account.id,
        debit_account=cogs_account,
    )


# -------------------------------------------------
# matching principle warning
# -------------------------------------------------
@dataclass(frozen=True)
class MatchingPrincipleWarning:
    inventory_account: Account
    cogs_account: Optional[Account]
    title: str
    body: str
    journal_hint: str


def detect_matching_principle_warning(
    transaction, accounts: Iterable[Account]
) -> Optional[MatchingPrincipleWarning]:
    """
    A sale credited to revenue while the business keeps stock: suggest the
    follow-up Dr COGS / Cr inventory entry. Advisory only.
    """
    accounts = list(accounts)

    if transaction.category != TransactionCategory.EARN:
        return None
    if not transaction.is_double_entry:
        return None

    credit = Journal.coerce([transaction], accounts).credit_account_of(transaction)
    if credit is None or credit.account_type != AccountType.REVENUE:
        return None
    if is_inventory_account(credit):
        return None

    if transaction.meta.sold_stock_ids:
        return None

    inventory = get_inventory_accounts(accounts)
    if not inventory:
        # service business
        return None

    inventory_account = inventory[0]
    cogs_account = find_cogs_account(accounts)

    debit_hint = cogs_account.label() if cogs_account else "COGS / expense account"
    logger.debug("matching principle: sale %s has no stock reduction", transaction.id)

    return MatchingPrincipleWarning(
        inventory_account=inventory_account,
        cogs_account=cogs_account,
        title="Follow-up entry needed?",
        body=(
            "This sale records revenue but inventory has not been reduced. "
            "Record the cost of goods sold in the same period as the revenue."
        ),
        journal_hint=f"Debit: {debit_hint} | Credit: {inventory_account.label()}",
    )

# ============= end matching_principle.py
