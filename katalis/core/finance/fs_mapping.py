# ============================================
# katalis/core/finance/fs_mapping.py
# statement line classification master
# ============================================

from katalis.config.params import DEFAULT_SETTINGS
from katalis.core.accounts.chart import AccountType, TransactionCategory

# ----------------------------
# category labels / badge colors (presentation constants)
# ----------------------------
CATEGORY_LABELS = {
    TransactionCategory.EARN: "Revenue",
    TransactionCategory.OPEX: "Operating Expenses",
    TransactionCategory.VAR: "Variable Costs",
    TransactionCategory.CAPEX: "Capital Expenditure",
    TransactionCategory.TAX: "Taxes",
    TransactionCategory.FIN: "Financing",
}

CATEGORY_COLORS = {
    TransactionCategory.EARN: "#10b981",
    TransactionCategory.OPEX: "#ef4444",
    TransactionCategory.VAR: "#f59e0b",
    TransactionCategory.CAPEX: "#6366f1",
    TransactionCategory.TAX: "#8b5cf6",
    TransactionCategory.FIN: "#ec4899",
}

# ----------------------------
# balance sheet: asset buckets
# ----------------------------
CASH = "cash"
INVENTORY = "inventory"
RECEIVABLES = "receivables"
FIXED = "fixed"
OTHER_CURRENT = "other_current"

# name keywords, checked in this order
ASSET_NAME_KEYWORDS = (
    (CASH, ("kas", "cash", "bank", "rekening")),
    (INVENTORY, ("persediaan", "inventory", "stok", "barang", "bahan")),
    (RECEIVABLES, ("piutang", "receivable")),
    (FIXED, (
        "aset tetap", "fixed asset", "tanah", "bangunan", "gedung", "properti",
        "property", "kendaraan", "peralatan", "mesin", "equipment", "building",
        "land", "vehicle", "akumulasi", "penyusutan", "depreciation",
    )),
)

DEFAULT_CATEGORY_BUCKETS = {
    TransactionCategory.VAR: INVENTORY,
    TransactionCategory.CAPEX: FIXED,
}

# ----------------------------
# cash flow
# ----------------------------
# operating: EARN - OPEX - VAR - TAX / investing: -CAPEX / financing: FIN (signed)
OPERATING_CATEGORIES = {
    TransactionCategory.EARN: 1,
    TransactionCategory.OPEX: -1,
    TransactionCategory.VAR: -1,
    TransactionCategory.TAX: -1,
}


def classify_asset(account, settings=DEFAULT_SETTINGS) -> str:
    """
    ASSET account -> balance sheet bucket.
    name keyword > default_category > code range > other current asset
    """
    name = (account.account_name or "").lower()
    for bucket, keywords in ASSET_NAME_KEYWORDS:
        if any(k in name for k in keywords):
            return bucket

    if account.default_category in DEFAULT_CATEGORY_BUCKETS:
        return DEFAULT_CATEGORY_BUCKETS[account.default_category]

    code = account.code_number
    low, high = settings.cash_code_range
    if low <= code <= high:
        return CASH
    low, high = settings.fixed_asset_code_range
    if low <= code <= high:
        return FIXED

    return OTHER_CURRENT


def is_cash_account(account, settings=DEFAULT_SETTINGS) -> bool:
    return (
        account is not None
        and account.account_type == AccountType.ASSET
        and classify_asset(account, settings) == CASH
    )

# ============================================
# END fs_mapping.py
# ============================================
