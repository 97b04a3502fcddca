# ===============================
# katalis/core/accounts/chart.py
# ===============================

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from katalis.core.errors import AccountingError, InvalidAccountCode


class AccountType(str, Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class NormalBalance(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class TransactionCategory(str, Enum):
    """
    Business category a journal entry is tagged with.
    Statement calculators aggregate on this tag, not on accounts.
    """
    EARN = "EARN"
    OPEX = "OPEX"
    VAR = "VAR"
    CAPEX = "CAPEX"
    TAX = "TAX"
    FIN = "FIN"


# -------------------------------------------------
# Normal balance rules per account type
# -------------------------------------------------
@dataclass(frozen=True)
class AccountRule:
    account_type: AccountType
    normal_balance: NormalBalance
    increases_on: NormalBalance
    decreases_on: NormalBalance


ACCOUNT_RULES = {
    AccountType.ASSET: AccountRule(
        AccountType.ASSET, NormalBalance.DEBIT, NormalBalance.DEBIT, NormalBalance.CREDIT
    ),
    AccountType.LIABILITY: AccountRule(
        AccountType.LIABILITY, NormalBalance.CREDIT, NormalBalance.CREDIT, NormalBalance.DEBIT
    ),
    AccountType.EQUITY: AccountRule(
        AccountType.EQUITY, NormalBalance.CREDIT, NormalBalance.CREDIT, NormalBalance.DEBIT
    ),
    AccountType.REVENUE: AccountRule(
        AccountType.REVENUE, NormalBalance.CREDIT, NormalBalance.CREDIT, NormalBalance.DEBIT
    ),
    AccountType.EXPENSE: AccountRule(
        AccountType.EXPENSE, NormalBalance.DEBIT, NormalBalance.DEBIT, NormalBalance.CREDIT
    ),
}

# every account type needs a rule
if set(ACCOUNT_RULES) != set(AccountType):
    raise RuntimeError("ACCOUNT_RULES must cover every AccountType")


def get_account_rule(account_type) -> AccountRule:
    return ACCOUNT_RULES[AccountType(account_type)]


def normal_balance_for(account_type) -> NormalBalance:
    """ASSET/EXPENSE -> DEBIT, LIABILITY/EQUITY/REVENUE -> CREDIT."""
    return get_account_rule(account_type).normal_balance


# -------------------------------------------------
# Valid (debit type, credit type) combinations
# -------------------------------------------------
@dataclass(frozen=True)
class AccountCombination:
    debit: AccountType
    credit: AccountType
    description: str


VALID_COMBINATIONS: Tuple[AccountCombination, ...] = (
    # money in
    AccountCombination(AccountType.ASSET, AccountType.REVENUE, "Revenue received into cash/bank"),
    AccountCombination(AccountType.ASSET, AccountType.EQUITY, "Capital injection into cash/bank"),
    AccountCombination(AccountType.ASSET, AccountType.LIABILITY, "Loan proceeds received into cash/bank"),
    # money out
    AccountCombination(AccountType.EXPENSE, AccountType.ASSET, "Expense paid from cash/bank"),
    AccountCombination(AccountType.ASSET, AccountType.ASSET, "Transfer between assets (purchase, account move)"),
    AccountCombination(AccountType.LIABILITY, AccountType.ASSET, "Debt repaid from cash/bank"),
    AccountCombination(AccountType.EQUITY, AccountType.ASSET, "Owner drawing from cash/bank"),
    # adjustments
    AccountCombination(AccountType.REVENUE, AccountType.ASSET, "Sales return / revenue correction"),
    AccountCombination(AccountType.ASSET, AccountType.EXPENSE, "Expense reimbursement / expense correction"),
    AccountCombination(AccountType.LIABILITY, AccountType.EQUITY, "Debt converted to equity"),
)


def _find_combination(debit_type, credit_type) -> Optional[AccountCombination]:
    debit_type = AccountType(debit_type)
    credit_type = AccountType(credit_type)
    for combo in VALID_COMBINATIONS:
        if combo.debit == debit_type and combo.credit == credit_type:
            return combo
    return None


def is_valid_combination(debit_type, credit_type) -> bool:
    return _find_combination(debit_type, credit_type) is not None


def get_combination_description(debit_type, credit_type) -> Optional[str]:
    combo = _find_combination(debit_type, credit_type)
    return combo.description if combo else None


# -------------------------------------------------
# Account
# -------------------------------------------------
@dataclass(frozen=True)
class Account:
    """
    Account
    -------
    One node of a business's chart of accounts.

    - account_type and account_code are fixed at creation
    - normal_balance is stored explicitly so contra accounts can
      run opposite to their type's default
    - parent_account_id None -> top-level category node,
      otherwise a postable leaf
    """

    id: str
    business_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    normal_balance: Optional[NormalBalance] = None
    parent_account_id: Optional[str] = None
    is_active: bool = True
    is_system: bool = False
    default_category: Optional[TransactionCategory] = None
    sort_order: int = 0
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "id", str(self.id))
        if self.parent_account_id is not None:
            object.__setattr__(self, "parent_account_id", str(self.parent_account_id))
        object.__setattr__(self, "account_code", str(self.account_code))
        parse_code(self.account_code)

        object.__setattr__(self, "account_type", AccountType(self.account_type))

        if self.normal_balance is None:
            object.__setattr__(self, "normal_balance", normal_balance_for(self.account_type))
        else:
            object.__setattr__(self, "normal_balance", NormalBalance(self.normal_balance))

        if self.default_category is not None:
            object.__setattr__(
                self, "default_category", TransactionCategory(self.default_category)
            )

    @classmethod
    def from_record(cls, record: dict) -> "Account":
        """Build an Account from a raw row (extra keys such as timestamps are ignored)."""
        return cls(
            id=str(record["id"]),
            business_id=str(record.get("business_id", "")),
            account_code=str(record["account_code"]),
            account_name=record.get("account_name", ""),
            account_type=record["account_type"],
            normal_balance=record.get("normal_balance"),
            parent_account_id=record.get("parent_account_id") or None,
            is_active=bool(record.get("is_active", True)),
            is_system=bool(record.get("is_system", False)),
            default_category=record.get("default_category") or None,
            sort_order=int(record.get("sort_order") or 0),
            description=record.get("description") or "",
        )

    @property
    def code_number(self) -> int:
        return int(self.account_code)

    @property
    def is_top_level(self) -> bool:
        return self.parent_account_id is None

    @property
    def is_postable(self) -> bool:
        return self.parent_account_id is not None

    @property
    def is_contra(self) -> bool:
        return self.normal_balance != normal_balance_for(self.account_type)

    def label(self) -> str:
        return f"{self.account_code} - {self.account_name}"


# -------------------------------------------------
# Hierarchical code helpers
# -------------------------------------------------
TOP_LEVEL_CODES = {
    AccountType.ASSET: 1000,
    AccountType.LIABILITY: 2000,
    AccountType.EQUITY: 3000,
    AccountType.REVENUE: 4000,
    AccountType.EXPENSE: 5000,
}

BLOCK_SIZE = 999


def parse_code(code) -> int:
    text = str(code).strip()
    if not text.isdigit():
        raise InvalidAccountCode(f"Account code must be numeric, got {code!r}")
    return int(text)


def top_level_code_for(account_type) -> str:
    return str(TOP_LEVEL_CODES[AccountType(account_type)])


def code_block(parent_code) -> Tuple[int, int]:
    """Open block of a parent: children live in (parent, parent + 999]."""
    parent = parse_code(parent_code)
    return parent + 1, parent + BLOCK_SIZE


def is_in_block(parent_code, code) -> bool:
    low, high = code_block(parent_code)
    return low <= parse_code(code) <= high


def validate_child_code(parent_code, child_code):
    if not is_in_block(parent_code, child_code):
        low, high = code_block(parent_code)
        raise InvalidAccountCode(
            f"Account code {child_code} is outside the block of parent {parent_code} "
            f"({low}..{high})"
        )


def suggest_sort_order(code) -> int:
    text = str(code).strip()
    return int(text) if text.isdigit() else 0


def validate_chart(accounts: Iterable[Account]):
    """
    Check the chart-level invariants:
    - account_code is unique per business
    - a child's code lies strictly inside its parent's block
    """
    accounts = list(accounts)
    by_id = {a.id: a for a in accounts}

    seen = {}
    for acc in accounts:
        key = (acc.business_id, acc.account_code)
        if key in seen:
            raise InvalidAccountCode(
                f"Duplicate account code {acc.account_code} "
                f"({seen[key].account_name} / {acc.account_name})"
            )
        seen[key] = acc

    for acc in accounts:
        if acc.parent_account_id is None:
            continue
        parent = by_id.get(acc.parent_account_id)
        if parent is None:
            continue
        validate_child_code(parent.account_code, acc.account_code)


def postable_accounts(accounts: Iterable[Account], active_only: bool = True) -> List[Account]:
    return [
        a for a in accounts
        if a.is_postable and (a.is_active or not active_only)
    ]


def filter_by_type(accounts: Iterable[Account], account_type) -> List[Account]:
    if account_type is None or account_type == "ALL":
        return list(accounts)
    account_type = AccountType(account_type)
    return [a for a in accounts if a.account_type == account_type]


def deactivate(account: Account) -> Account:
    """Inactive copy of an account. System accounts stay active."""
    if account.is_system:
        raise AccountingError(
            f"System account {account.label()} cannot be deactivated"
        )
    return replace(account, is_active=False)

# ============= end chart.py
