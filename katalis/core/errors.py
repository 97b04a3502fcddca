# ===============================
# katalis/core/errors.py
# ===============================


class AccountingError(ValueError):
    """Base class for structural errors raised by the engine."""
    pass


class InvalidAccountCode(AccountingError):
    """Raised when an account code is not numeric or falls outside its parent's block."""
    pass


class RangeExhausted(AccountingError):
    """Raised when every slot in a parent account's code block is taken."""

    def __init__(self, parent_code):
        self.parent_code = parent_code
        super().__init__(
            f"No free account code left under {parent_code} "
            f"(block {parent_code}+1 .. {parent_code}+999 is full)"
        )


class InvalidJournalEntry(AccountingError):
    """Raised when a journal entry cannot be constructed (same account, amount <= 0, ...)."""
    pass

# ============= end errors.py
