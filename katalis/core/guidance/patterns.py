# ======================================
# katalis/core/guidance/patterns.py
# ======================================

from dataclasses import dataclass
from typing import List, Optional, Tuple

from katalis.core.accounts.chart import AccountType

CASH_CODES = ("1100", "1200")


@dataclass(frozen=True)
class TransactionPattern:
    """
    TransactionPattern
    ------------------
    A common business transaction and the account pair it posts to.

    - suggested_*_codes: exact codes tried first; empty -> any account
      of the right type
    - examples: typical transaction names (Indonesian, as users type them)
    """

    id: str
    name: str
    description: str
    debit_account_type: AccountType
    credit_account_type: AccountType
    suggested_debit_codes: Tuple[str, ...] = ()
    suggested_credit_codes: Tuple[str, ...] = ()
    examples: Tuple[str, ...] = ()


TRANSACTION_PATTERNS: Tuple[TransactionPattern, ...] = (
    # ---------- money in ----------
    TransactionPattern(
        id="capital_injection",
        name="Capital injection",
        description="The owner puts money into the business",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.EQUITY,
        suggested_debit_codes=CASH_CODES,
        examples=(
            "Setoran modal awal pemilik",
            "Tambahan modal untuk ekspansi",
            "Investasi pemilik ke bisnis",
            "Transfer dana dari rekening pribadi",
        ),
    ),
    TransactionPattern(
        id="receive_revenue",
        name="Receive revenue",
        description="A customer pays the business",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.REVENUE,
        suggested_debit_codes=CASH_CODES,
        suggested_credit_codes=("4100",),
        examples=(
            "Pembayaran sewa bulanan",
            "Pendapatan jasa konsultasi",
            "Penjualan produk",
            "Fee management",
        ),
    ),
    TransactionPattern(
        id="receive_loan",
        name="Receive loan",
        description="Loan proceeds from a bank or another lender",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.LIABILITY,
        suggested_debit_codes=CASH_CODES,
        examples=(
            "Pencairan KPR",
            "Pinjaman modal usaha",
            "Kredit investasi",
            "Pinjaman dari investor",
        ),
    ),
    # ---------- money out ----------
    TransactionPattern(
        id="pay_opex",
        name="Pay operating expense",
        description="Routine operating cost paid in cash",
        debit_account_type=AccountType.EXPENSE,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("5100",),
        suggested_credit_codes=CASH_CODES,
        examples=(
            "Bayar listrik bulanan",
            "Bayar gaji karyawan",
            "Bayar asuransi",
            "Bayar internet",
            "Bayar maintenance",
        ),
    ),
    TransactionPattern(
        id="pay_variable_cost",
        name="Pay variable cost",
        description="Cost that moves with activity",
        debit_account_type=AccountType.EXPENSE,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("5100",),
        suggested_credit_codes=CASH_CODES,
        examples=(
            "Biaya cleaning per unit",
            "Supplies habis pakai",
            "Komisi penjualan",
        ),
    ),
    TransactionPattern(
        id="buy_asset",
        name="Buy fixed asset",
        description="Property, equipment or another asset bought with cash",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.ASSET,
        suggested_credit_codes=CASH_CODES,
        examples=(
            "Beli furniture untuk property",
            "Beli komputer untuk kantor",
            "Renovasi properti",
            "Beli kendaraan operasional",
            "Beli AC atau peralatan",
        ),
    ),
    TransactionPattern(
        id="pay_loan",
        name="Repay loan",
        description="Loan instalment or settlement",
        debit_account_type=AccountType.LIABILITY,
        credit_account_type=AccountType.ASSET,
        suggested_credit_codes=CASH_CODES,
        examples=(
            "Bayar cicilan KPR",
            "Pelunasan hutang usaha",
            "Bayar kartu kredit",
            "Bayar hutang ke supplier",
        ),
    ),
    TransactionPattern(
        id="pay_tax",
        name="Pay tax",
        description="Tax paid to the government",
        debit_account_type=AccountType.EXPENSE,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("5100",),
        suggested_credit_codes=CASH_CODES,
        examples=(
            "Bayar PPh Final",
            "Bayar PBB",
            "Bayar pajak sewa",
        ),
    ),
    TransactionPattern(
        id="owner_withdrawal",
        name="Owner withdrawal",
        description="The owner takes money out for personal use",
        debit_account_type=AccountType.EQUITY,
        credit_account_type=AccountType.ASSET,
        suggested_credit_codes=CASH_CODES,
        examples=(
            "Ambil uang untuk kebutuhan pribadi",
            "Transfer ke rekening pribadi",
            "Penarikan profit pemilik",
        ),
    ),
    # ---------- adjustments ----------
    TransactionPattern(
        id="revenue_return",
        name="Revenue return / correction",
        description="Revenue reduced by a return or a correction",
        debit_account_type=AccountType.REVENUE,
        credit_account_type=AccountType.ASSET,
        suggested_debit_codes=("4100",),
        suggested_credit_codes=CASH_CODES,
        examples=(
            "Pengembalian uang sewa",
            "Koreksi invoice lebih catat",
            "Diskon setelah pembayaran",
        ),
    ),
    TransactionPattern(
        id="expense_reimbursement",
        name="Expense reimbursement",
        description="An expense already paid is reimbursed",
        debit_account_type=AccountType.ASSET,
        credit_account_type=AccountType.EXPENSE,
        suggested_debit_codes=CASH_CODES,
        suggested_credit_codes=("5100",),
        examples=(
            "Klaim asuransi diterima",
            "Penggantian dari penyewa",
            "Refund dari supplier",
        ),
    ),
)


def get_pattern_by_id(pattern_id: str) -> Optional[TransactionPattern]:
    for p in TRANSACTION_PATTERNS:
        if p.id == pattern_id:
            return p
    return None


def find_matching_patterns(debit_type, credit_type) -> List[TransactionPattern]:
    debit_type = AccountType(debit_type)
    credit_type = AccountType(credit_type)
    return [
        p for p in TRANSACTION_PATTERNS
        if p.debit_account_type == debit_type and p.credit_account_type == credit_type
    ]


# -------------------------------------------------
# name keywords (first match wins, order matters)
# -------------------------------------------------
NAME_KEYWORDS = (
    ("capital_injection", ("modal", "setoran", "investasi pemilik")),
    ("receive_revenue", ("sewa", "rental", "pendapatan", "pembayaran dari")),
    ("receive_loan", ("pinjaman", "kredit", "kpr")),
    ("pay_opex", ("listrik", "air", "internet", "gaji", "asuransi", "maintenance")),
    ("pay_variable_cost", ("cleaning", "supplies", "komisi")),
)

ASSET_PURCHASE_WORDS = (
    "furniture", "komputer", "ac", "peralatan", "kendaraan", "motor", "mobil",
)

LATE_NAME_KEYWORDS = (
    ("pay_loan", ("cicilan", "pelunasan", "bayar hutang")),
    ("pay_tax", ("pajak", "pph", "pbb")),
    ("owner_withdrawal", ("prive", "pribadi", "penarikan")),
)


def detect_pattern_from_name(name: str) -> Optional[TransactionPattern]:
    """
    Best-effort keyword match on a transaction name.
    Plain substring matching, so short words like "air" or "ac" can hit
    inside longer words.
    """
    text = (name or "").lower()

    for pattern_id, words in NAME_KEYWORDS:
        if any(w in text for w in words):
            return get_pattern_by_id(pattern_id)

    if "beli" in text and any(w in text for w in ASSET_PURCHASE_WORDS):
        return get_pattern_by_id("buy_asset")

    for pattern_id, words in LATE_NAME_KEYWORDS:
        if any(w in text for w in words):
            return get_pattern_by_id(pattern_id)

    return None

# ============= end patterns.py
