# ===========================================
# katalis/core/finance/statements.py
# statement value records (plain, immutable)
# ===========================================

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional

import pandas as pd


@dataclass(frozen=True)
class FinancialSummary:
    """
    FinancialSummary
    ----------------
    - category totals (unsigned sums of amounts)
    - total_interest: FIN rows whose debit side is an EXPENSE account
    - gross_profit = earn - var
    - net_profit   = earn - var - opex - capex - fin - tax
    """

    total_earn: float = 0.0
    total_opex: float = 0.0
    total_var: float = 0.0
    total_capex: float = 0.0
    total_tax: float = 0.0
    total_fin: float = 0.0
    total_interest: float = 0.0
    gross_profit: float = 0.0
    net_profit: float = 0.0
    category_counts: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class IncomeStatementMetrics:
    operating_income: float
    ebit: float
    ebt: float
    gross_margin: float
    operating_margin: float
    net_margin: float
    # False when there is no revenue: margins are 0.0 but mean "n/a"
    margins_meaningful: bool


@dataclass(frozen=True)
class AssetSection:
    cash: float = 0.0
    inventory: float = 0.0
    receivables: float = 0.0
    other_current_assets: float = 0.0
    total_current_assets: float = 0.0
    property_value: float = 0.0
    total_fixed_assets: float = 0.0
    total_assets: float = 0.0


@dataclass(frozen=True)
class LiabilitySection:
    loans: float = 0.0
    total_liabilities: float = 0.0


@dataclass(frozen=True)
class EquitySection:
    capital: float = 0.0
    drawings: float = 0.0
    retained_earnings: float = 0.0
    total_equity: float = 0.0


@dataclass(frozen=True)
class BalanceSheet:
    as_of: Optional[date]
    assets: AssetSection
    liabilities: LiabilitySection
    equity: EquitySection
    is_balanced: bool

    @property
    def difference(self) -> float:
        return self.assets.total_assets - (
            self.liabilities.total_liabilities + self.equity.total_equity
        )

    def to_frame(self) -> pd.DataFrame:
        rows = [
            ("Assets", "Cash", self.assets.cash),
            ("Assets", "Inventory", self.assets.inventory),
            ("Assets", "Receivables", self.assets.receivables),
            ("Assets", "Other current assets", self.assets.other_current_assets),
            ("Assets", "Total current assets", self.assets.total_current_assets),
            ("Assets", "Property value", self.assets.property_value),
            ("Assets", "Total fixed assets", self.assets.total_fixed_assets),
            ("Assets", "Total assets", self.assets.total_assets),
            ("Liabilities", "Loans", self.liabilities.loans),
            ("Liabilities", "Total liabilities", self.liabilities.total_liabilities),
            ("Equity", "Capital", self.equity.capital),
            ("Equity", "Drawings", self.equity.drawings),
            ("Equity", "Retained earnings", self.equity.retained_earnings),
            ("Equity", "Total equity", self.equity.total_equity),
        ]
        return pd.DataFrame(rows, columns=["section", "line", "amount"])


@dataclass(frozen=True)
class CashFlow:
    operating: float
    investing: float
    financing: float
    net_cash_flow: float
    opening_balance: float
    closing_balance: float


@dataclass(frozen=True)
class MonthlyData:
    month: str  # YYYY-MM
    earn: float = 0.0
    opex: float = 0.0
    var: float = 0.0
    capex: float = 0.0
    tax: float = 0.0
    fin: float = 0.0
    net_profit: float = 0.0

# ===========================================
# END statements.py
# ===========================================
