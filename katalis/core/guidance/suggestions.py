# ======================================
# katalis/core/guidance/suggestions.py
# ======================================

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from katalis.core.accounts.chart import (
    Account,
    AccountType,
    NormalBalance,
    get_account_rule,
    get_combination_description,
)
from katalis.core.guidance.patterns import (
    TransactionPattern,
    detect_pattern_from_name,
    find_matching_patterns,
)
from katalis.core.guidance.validator import ACCOUNT_TYPE_LABELS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountSuggestion:
    account: Account
    reason: str
    confidence: str  # "high" | "medium" | "low"


@dataclass(frozen=True)
class TransactionGuidance:
    pattern: Optional[TransactionPattern]
    suggested_debit_accounts: Tuple[AccountSuggestion, ...] = ()
    suggested_credit_accounts: Tuple[AccountSuggestion, ...] = ()
    explanation: str = ""
    warnings: Tuple[str, ...] = ()


# (debit type, credit type) -> balance sheet impact line
BALANCE_SHEET_IMPACT = {
    (AccountType.ASSET, AccountType.EQUITY): "Balance sheet: assets up, equity up. Still balanced.",
    (AccountType.ASSET, AccountType.LIABILITY): "Balance sheet: assets up, liabilities up. Still balanced.",
    (AccountType.ASSET, AccountType.REVENUE): "Income statement: revenue up -> net profit up -> equity up.",
    (AccountType.EXPENSE, AccountType.ASSET): "Income statement: expense up -> net profit down -> equity down.",
    (AccountType.LIABILITY, AccountType.ASSET): "Balance sheet: assets down, liabilities down. Still balanced.",
    (AccountType.EQUITY, AccountType.ASSET): "Balance sheet: assets down, equity down. Still balanced.",
}


class TransactionGuidanceService:
    """
    TransactionGuidanceService
    --------------------------
    Given the business's accounts and a partial entry (debit id, credit id,
    name), suggests a pattern, candidate accounts, a plain explanation and
    warnings. Works before anything is committed.
    """

    def __init__(self, accounts: Iterable[Account]):
        self.accounts = list(accounts)
        self.accounts_by_id = {a.id: a for a in self.accounts}

    def _find(self, account_id) -> Optional[Account]:
        if not account_id:
            return None
        return self.accounts_by_id.get(str(account_id))

    # -------------------------------------------------
    # pattern
    # -------------------------------------------------
    def detect_pattern(
        self, debit_account_id=None, credit_account_id=None, transaction_name=None
    ) -> Optional[TransactionPattern]:
        if transaction_name and len(transaction_name) > 2:
            pattern = detect_pattern_from_name(transaction_name)
            if pattern is not None:
                return pattern

        debit = self._find(debit_account_id)
        credit = self._find(credit_account_id)
        if debit is not None and credit is not None:
            matches = find_matching_patterns(debit.account_type, credit.account_type)
            if matches:
                return matches[0]

        return None

    def get_suggested_accounts(self, pattern: TransactionPattern, role: str) -> List[AccountSuggestion]:
        """exact suggested codes first ("high"), then up to three same-type accounts ("medium")"""
        if role == "debit":
            codes, target_type = pattern.suggested_debit_codes, pattern.debit_account_type
        elif role == "credit":
            codes, target_type = pattern.suggested_credit_codes, pattern.credit_account_type
        else:
            raise ValueError(f"role must be 'debit' or 'credit', got {role!r}")

        suggestions = []
        for code in codes:
            for a in self.accounts:
                if a.account_code == code and a.is_active:
                    suggestions.append(
                        AccountSuggestion(a, f'Fits a "{pattern.name}" transaction', "high")
                    )
                    break

        taken = {s.account.id for s in suggestions}
        extra = [
            a for a in self.accounts
            if a.account_type == target_type and a.is_active and a.id not in taken
        ]
        for a in extra[:3]:
            suggestions.append(
                AccountSuggestion(
                    a, f"Available {ACCOUNT_TYPE_LABELS[target_type]} account", "medium"
                )
            )

        return suggestions

    # -------------------------------------------------
    # guidance
    # -------------------------------------------------
    def get_guidance(
        self, debit_account_id=None, credit_account_id=None, transaction_name=None
    ) -> TransactionGuidance:
        pattern = self.detect_pattern(debit_account_id, credit_account_id, transaction_name)

        if pattern is None:
            if debit_account_id or credit_account_id:
                return self._basic_guidance(debit_account_id, credit_account_id)
            return TransactionGuidance(
                pattern=None,
                explanation="Choose a debit and a credit account to see what this transaction does.",
            )

        return TransactionGuidance(
            pattern=pattern,
            suggested_debit_accounts=tuple(self.get_suggested_accounts(pattern, "debit")),
            suggested_credit_accounts=tuple(self.get_suggested_accounts(pattern, "credit")),
            explanation=self._explanation(pattern, debit_account_id, credit_account_id),
            warnings=tuple(self._warnings(pattern, debit_account_id, credit_account_id)),
        )

    def _basic_guidance(self, debit_account_id, credit_account_id) -> TransactionGuidance:
        debit = self._find(debit_account_id)
        credit = self._find(credit_account_id)

        explanation = ""
        if debit is not None and credit is not None:
            description = get_combination_description(debit.account_type, credit.account_type)
            if description:
                explanation = f"Transaction type: {description}\n\n"
            explanation += "This transaction will:\n"
            explanation += f"- {self.impact_description(debit, 'debit')}\n"
            explanation += f"- {self.impact_description(credit, 'credit')}"
        elif debit is not None:
            explanation = (
                f"Debit account: {debit.account_name} "
                f"({ACCOUNT_TYPE_LABELS[debit.account_type]}).\n"
                "Choose a credit account to complete the entry."
            )
        elif credit is not None:
            explanation = (
                f"Credit account: {credit.account_name} "
                f"({ACCOUNT_TYPE_LABELS[credit.account_type]}).\n"
                "Choose a debit account to complete the entry."
            )

        return TransactionGuidance(pattern=None, explanation=explanation)

    def _explanation(self, pattern, debit_account_id, credit_account_id) -> str:
        debit = self._find(debit_account_id)
        credit = self._find(credit_account_id)

        text = f"{pattern.name}\n{pattern.description}\n\n"
        if debit is not None and credit is not None:
            text += "Impact:\n"
            text += f"- {self.impact_description(debit, 'debit')}\n"
            text += f"- {self.impact_description(credit, 'credit')}\n\n"
            text += self.balance_sheet_impact(pattern)
        else:
            text += "Examples:\n"
            text += "\n".join(f"- {e}" for e in pattern.examples[:3])
        return text

    @staticmethod
    def impact_description(account: Account, side: str) -> str:
        rule = get_account_rule(account.account_type)
        posted_on = NormalBalance.DEBIT if side == "debit" else NormalBalance.CREDIT
        if rule.increases_on == posted_on:
            return f"{account.account_name} increases"
        return f"{account.account_name} decreases"

    @staticmethod
    def balance_sheet_impact(pattern: TransactionPattern) -> str:
        debit_type = pattern.debit_account_type
        credit_type = pattern.credit_account_type

        if debit_type == credit_type:
            if debit_type == AccountType.ASSET:
                return "Balance sheet: asset mix changes, total assets unchanged."
            return "Balance sheet: no change in totals."

        return BALANCE_SHEET_IMPACT.get((debit_type, credit_type), "")

    def _warnings(self, pattern, debit_account_id, credit_account_id) -> List[str]:
        warnings = []
        debit = self._find(debit_account_id)
        credit = self._find(credit_account_id)

        if (
            pattern.id == "receive_revenue"
            and credit is not None
            and credit.account_type == AccountType.EQUITY
        ):
            warnings.append(
                "An equity account is chosen as the credit. If this is an owner's "
                "capital contribution, make sure that is intended (not business revenue)."
            )
            if "modal" in credit.account_name.lower():
                warnings.append(
                    "The owner's capital account is chosen as the credit. If this is a "
                    "customer payment, use a revenue account (4xxx) instead."
                )

        if (
            pattern.id == "pay_opex"
            and debit is not None
            and debit.account_type == AccountType.EQUITY
            and any(w in debit.account_name.lower() for w in ("prive", "drawing"))
        ):
            warnings.append(
                "An owner drawing account is chosen as the debit. This is a withdrawal "
                "by the owner, not an operating expense."
            )

        if warnings:
            logger.debug("guidance warnings for %s: %d", pattern.id, len(warnings))
        return warnings

# ============= end suggestions.py
