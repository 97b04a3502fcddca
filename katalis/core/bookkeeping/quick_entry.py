# ==============================================
# katalis/core/bookkeeping/quick_entry.py
# one-account quick entry -> double entry
# ==============================================

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from katalis.core.accounts.chart import Account, AccountType, TransactionCategory
from katalis.core.errors import InvalidJournalEntry
from katalis.core.ledger.journal_entry import DoubleEntry, make_entry_pair

logger = logging.getLogger(__name__)

# ----------------------------
# code ranges used by category detection
# ----------------------------
CASH_AND_BANK = (1110, 1132)
FIXED_ASSETS = (1200, 1299)
LIABILITIES = (2000, 2999)
OWNER_DRAWINGS = 3300
REVENUE = (4000, 4999)

EXPENSE_PREFIX_CATEGORIES = {
    51: TransactionCategory.OPEX,
    52: TransactionCategory.VAR,
    53: TransactionCategory.TAX,
    54: TransactionCategory.FIN,
}

# counter-account codes the quick form posts against
COUNTER_CODES = ("1200", "1100")

DRAWING_WORDS = ("prive", "drawing")


def _in(code: int, bounds) -> bool:
    return bounds[0] <= code <= bounds[1]


def _is_cash_code(code: int) -> bool:
    # the quick form's counter accounts count as cash/bank too
    return _in(code, CASH_AND_BANK) or str(code) in COUNTER_CODES


def detect_category(
    debit_code,
    credit_code,
    debit_account: Optional[Account] = None,
    credit_account: Optional[Account] = None,
) -> TransactionCategory:
    """
    Category from the two account codes.
    An explicit default_category on either account wins.
    """
    for acc in (debit_account, credit_account):
        if acc is not None and acc.default_category is not None:
            return acc.default_category

    debit = int(str(debit_code))
    credit = int(str(credit_code))

    # money in
    if _is_cash_code(debit):
        if _in(credit, REVENUE):
            return TransactionCategory.EARN
        if _in(credit, LIABILITIES):
            return TransactionCategory.FIN

    # money out
    if _is_cash_code(credit):
        prefix = debit // 100
        if prefix in EXPENSE_PREFIX_CATEGORIES:
            return EXPENSE_PREFIX_CATEGORIES[prefix]
        if _in(debit, FIXED_ASSETS):
            return TransactionCategory.CAPEX
        if debit == OWNER_DRAWINGS:
            return TransactionCategory.FIN
        if _in(debit, LIABILITIES):
            return TransactionCategory.FIN

    return TransactionCategory.OPEX


def find_default_cash_account(accounts: Iterable[Account]) -> Optional[Account]:
    """active ASSET sub-account: 1200, else 1100, else the first by sort_order"""
    candidates = sorted(
        (
            a for a in accounts
            if a.is_active and a.account_type == AccountType.ASSET and a.is_postable
        ),
        key=lambda a: a.sort_order,
    )
    for code in COUNTER_CODES:
        for a in candidates:
            if a.account_code == code:
                return a
    return candidates[0] if candidates else None


def _is_drawing(account: Account) -> bool:
    name = account.account_name.lower()
    return account.account_type == AccountType.EQUITY and any(w in name for w in DRAWING_WORDS)


def flow_direction(account: Account) -> str:
    """'out' when the selected account is paid from cash, otherwise 'in'"""
    if (
        account.account_type == AccountType.EXPENSE
        or _is_drawing(account)
        or (account.account_type == AccountType.ASSET and account.account_code not in COUNTER_CODES)
    ):
        return "out"
    return "in"


def flow_label(account: Account) -> str:
    t = account.account_type
    if t == AccountType.REVENUE:
        return "Money in"
    if t == AccountType.EXPENSE:
        return "Money out"
    if t == AccountType.LIABILITY:
        return "Receive loan"
    if _is_drawing(account):
        return "Owner withdrawal"
    if t == AccountType.EQUITY:
        return "Capital injection"
    if t == AccountType.ASSET and account.account_code not in COUNTER_CODES:
        return "Buy asset"
    return "Transaction"


def resolve_debit_credit(selected: Account, cash: Account) -> Tuple[Account, Account]:
    """(debit, credit) for a selected account against the cash account"""
    if flow_direction(selected) == "out":
        return selected, cash
    return cash, selected


@dataclass(frozen=True)
class QuickTransactionInput:
    amount: float
    selected_account_id: str
    name: str
    date: object
    notes: str = ""


def resolve_quick_transaction(candidate: QuickTransactionInput, accounts: Iterable[Account]) -> DoubleEntry:
    """
    Quick form -> DoubleEntry against the default cash/bank account.

    Raises InvalidJournalEntry when the selected account is unknown, there is
    no cash account, or the cash account itself was selected.
    """
    accounts = list(accounts)

    selected = next((a for a in accounts if a.id == str(candidate.selected_account_id)), None)
    if selected is None:
        raise InvalidJournalEntry(f"Selected account {candidate.selected_account_id} not found")

    cash = find_default_cash_account(accounts)
    if cash is None:
        raise InvalidJournalEntry("No active cash/bank account; create one first")

    if selected.id == cash.id:
        raise InvalidJournalEntry(
            "The cash/bank account cannot be the category; use a full journal entry for transfers"
        )

    debit, credit = resolve_debit_credit(selected, cash)
    category = detect_category(debit.account_code, credit.account_code, debit, credit)

    logger.debug(
        "quick entry %r: Dr %s / Cr %s as %s",
        candidate.name, debit.account_code, credit.account_code, category.value,
    )

    return make_entry_pair(
        candidate.date,
        debit,
        credit,
        candidate.amount,
        category,
        name=candidate.name,
        description=candidate.notes or selected.account_name,
        business_id=selected.business_id,
    )


def get_quick_add_accounts(accounts: Iterable[Account]) -> List[Account]:
    """sub-accounts the quick form offers (counter accounts excluded)"""
    accounts = list(accounts)
    default_cash = find_default_cash_account(accounts)
    return [
        a for a in accounts
        if a.is_active
        and a.is_postable
        and not (default_cash is not None and a.id == default_cash.id)
        and a.account_code not in COUNTER_CODES
    ]

# ==============================================
# END quick_entry.py
# ==============================================
