# ======================================
# katalis/core/guidance/validator.py
# ======================================

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from katalis.core.accounts.chart import Account, AccountType, is_valid_combination

logger = logging.getLogger(__name__)

ERROR_MESSAGES = {
    "INVALID_AMOUNT": "Amount must be a finite number greater than 0",
    "SAME_ACCOUNT": "Debit and credit accounts must be different accounts",
    "INVALID_COMBINATION": "This account combination does not follow double-entry rules",
    "ACCOUNT_NOT_FOUND": "Account not found; make sure the selected account is still active",
    "MISSING_DEBIT_ACCOUNT": "A debit account is required",
    "MISSING_CREDIT_ACCOUNT": "A credit account is required",
}

WARNING_MESSAGES = {
    "UNUSUAL_REVENUE_DEBIT": (
        "Debiting a revenue account reduces revenue. This is normally a sales "
        "return or a correction."
    ),
    "UNUSUAL_EXPENSE_CREDIT": (
        "Crediting an expense account reduces the expense. This is normally a "
        "reimbursement or a correction."
    ),
}

ACCOUNT_TYPE_LABELS = {
    AccountType.ASSET: "Asset",
    AccountType.LIABILITY: "Liability",
    AccountType.EQUITY: "Equity",
    AccountType.REVENUE: "Revenue",
    AccountType.EXPENSE: "Expense",
}


@dataclass(frozen=True)
class TransactionInput:
    """candidate double entry, before it is committed"""

    amount: float
    debit_account_id: Optional[str] = None
    credit_account_id: Optional[str] = None
    debit_account: Optional[Account] = None
    credit_account: Optional[Account] = None
    name: str = ""


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    code: str
    message: str
    severity: str  # "error" | "warning"


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[ValidationIssue, ...] = ()

    @property
    def error_codes(self) -> Tuple[str, ...]:
        return tuple(e.code for e in self.errors)

    @property
    def warning_codes(self) -> Tuple[str, ...]:
        return tuple(w.code for w in self.warnings)


def _error(field, code, message=None) -> ValidationIssue:
    return ValidationIssue(field, code, message or ERROR_MESSAGES[code], "error")


def _warning(field, code) -> ValidationIssue:
    return ValidationIssue(field, code, WARNING_MESSAGES[code], "warning")


class TransactionValidator:
    """
    TransactionValidator
    --------------------
    Checks a candidate against the double-entry rules.

    Never raises for a bad candidate: structural problems come back as
    errors, unusual-but-valid pairs as warnings.
    """

    def __init__(self, accounts: Iterable[Account] = ()):
        self.accounts_by_id = {a.id: a for a in accounts}

    def _lookup(self, account_id, account) -> Optional[Account]:
        if account is not None:
            return account
        if account_id is None:
            return None
        return self.accounts_by_id.get(str(account_id))

    def validate(self, candidate: TransactionInput) -> ValidationResult:
        errors = []
        warnings = []

        debit_id = candidate.debit_account_id
        credit_id = candidate.credit_account_id
        if debit_id is None and candidate.debit_account is not None:
            debit_id = candidate.debit_account.id
        if credit_id is None and candidate.credit_account is not None:
            credit_id = candidate.credit_account.id

        # 1. amount
        try:
            amount = float(candidate.amount)
        except (TypeError, ValueError):
            amount = 0.0
        if not amount > 0 or not math.isfinite(amount):
            errors.append(_error("amount", "INVALID_AMOUNT"))

        # 2. ids present and distinct
        ids = self.validate_account_ids(debit_id, credit_id)
        errors.extend(ids.errors)
        if ids.errors:
            return ValidationResult(False, tuple(errors), ())

        # 3. accounts known
        debit = self._lookup(debit_id, candidate.debit_account)
        credit = self._lookup(credit_id, candidate.credit_account)
        if debit is None:
            errors.append(_error("debit_account_id", "ACCOUNT_NOT_FOUND"))
        if credit is None:
            errors.append(_error("credit_account_id", "ACCOUNT_NOT_FOUND"))
        if debit is None or credit is None:
            return ValidationResult(False, tuple(errors), ())

        # 4. combination
        if not is_valid_combination(debit.account_type, credit.account_type):
            errors.append(
                _error(
                    "debit_account_id",
                    "INVALID_COMBINATION",
                    f'Invalid account combination: debit "{debit.account_name}" '
                    f"({ACCOUNT_TYPE_LABELS[debit.account_type]}) with credit "
                    f'"{credit.account_name}" ({ACCOUNT_TYPE_LABELS[credit.account_type]}). '
                    "Check the kind of transaction you want to record.",
                )
            )

        # 5. unusual but valid
        if debit.account_type == AccountType.REVENUE:
            warnings.append(_warning("debit_account_id", "UNUSUAL_REVENUE_DEBIT"))
        if credit.account_type == AccountType.EXPENSE:
            warnings.append(_warning("credit_account_id", "UNUSUAL_EXPENSE_CREDIT"))

        if errors:
            logger.debug("candidate rejected: %s", [e.code for e in errors])

        return ValidationResult(not errors, tuple(errors), tuple(warnings))

    def validate_account_ids(self, debit_account_id, credit_account_id) -> ValidationResult:
        """quick form-level check without account data"""
        errors = []
        if not debit_account_id:
            errors.append(_error("debit_account_id", "MISSING_DEBIT_ACCOUNT"))
        if not credit_account_id:
            errors.append(_error("credit_account_id", "MISSING_CREDIT_ACCOUNT"))
        if (
            debit_account_id
            and credit_account_id
            and str(debit_account_id) == str(credit_account_id)
        ):
            errors.append(_error("debit_account_id", "SAME_ACCOUNT"))
        return ValidationResult(not errors, tuple(errors), ())

# ============= end validator.py
