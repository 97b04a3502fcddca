# ===============================
# katalis/core/simulation/scenario.py
# ===============================

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from katalis.config.params import (
    DEFAULT_ASSUMPTIONS,
    DEFAULT_SETTINGS,
    OPTIMISTIC_ASSUMPTIONS,
    PESSIMISTIC_ASSUMPTIONS,
    ReportPeriod,
    ScenarioAssumptions,
)
from katalis.core.finance.fs_builder import (
    calculate_financial_summary,
    calculate_income_statement_metrics,
    group_by_month,
)
from katalis.core.finance.statements import FinancialSummary, MonthlyData
from katalis.core.ledger.ledger import Journal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScenarioResult:
    """
    ScenarioResult
    --------------
    Income statement shape under one assumption set.

    - capex has no assumption and is carried forward as is
    - ebit = operating_income - capex, ebt = ebit - interest
    """

    label: str
    revenue: float
    cogs: float
    gross_profit: float
    opex: float
    operating_income: float
    capex: float
    ebit: float
    interest: float
    ebt: float
    tax: float
    net_income: float
    gross_margin: float
    operating_margin: float
    net_margin: float


@dataclass(frozen=True)
class ProjectionMonth:
    month: str  # YYYY-MM
    revenue: float
    net_income: float
    cumulative_net_income: float


def _margin(value: float, revenue: float) -> float:
    return value / revenue * 100 if revenue > 0 else 0.0


def _grow(value: float, pct: float) -> float:
    return value * (1 + pct / 100)


def baseline_from_summary(summary: FinancialSummary, label: str = "Baseline") -> ScenarioResult:
    metrics = calculate_income_statement_metrics(summary)
    return ScenarioResult(
        label=label,
        revenue=summary.total_earn,
        cogs=summary.total_var,
        gross_profit=summary.gross_profit,
        opex=summary.total_opex,
        operating_income=metrics.operating_income,
        capex=summary.total_capex,
        ebit=metrics.ebit,
        interest=summary.total_fin,
        ebt=metrics.ebt,
        tax=summary.total_tax,
        net_income=summary.net_profit,
        gross_margin=metrics.gross_margin,
        operating_margin=metrics.operating_margin,
        net_margin=metrics.net_margin,
    )


def apply_scenario(
    baseline: ScenarioResult, assumptions: ScenarioAssumptions, label: Optional[str] = None
) -> ScenarioResult:
    """
    Percentage assumptions on top of a baseline.
    Tax is recomputed only for a non-zero rate, otherwise the baseline
    figure is carried forward.
    """
    revenue = _grow(baseline.revenue, assumptions.revenue_growth)
    cogs = _grow(baseline.cogs, assumptions.cogs_growth)
    gross_profit = revenue - cogs
    opex = _grow(baseline.opex, assumptions.opex_growth)
    operating_income = gross_profit - opex
    capex = baseline.capex
    ebit = operating_income - capex
    interest = _grow(baseline.interest, assumptions.interest_growth)
    ebt = ebit - interest

    if assumptions.tax_rate > 0:
        tax = max(0.0, ebt * assumptions.tax_rate / 100)
    else:
        tax = baseline.tax
    net_income = ebt - tax

    return ScenarioResult(
        label=label or assumptions.name or baseline.label,
        revenue=revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        opex=opex,
        operating_income=operating_income,
        capex=capex,
        ebit=ebit,
        interest=interest,
        ebt=ebt,
        tax=tax,
        net_income=net_income,
        gross_margin=_margin(gross_profit, revenue),
        operating_margin=_margin(operating_income, revenue),
        net_margin=_margin(net_income, revenue),
    )


def project_months(
    monthly: List[MonthlyData],
    assumptions: ScenarioAssumptions = DEFAULT_ASSUMPTIONS,
    months: int = DEFAULT_SETTINGS.projection_months,
    start=None,
) -> List[ProjectionMonth]:
    """
    Average historical month, compounded monthly by the revenue growth.
    Net income follows the revenue growth factor as well.

    Labels start the month after `start` (default: the last historical month).
    """
    if not monthly or months <= 0:
        return []

    avg_revenue = float(np.mean([m.earn for m in monthly]))
    avg_net = float(np.mean([m.net_profit for m in monthly]))

    i = np.arange(1, months + 1)
    factors = np.power(1 + assumptions.revenue_growth / 100 / 12, i)
    revenue = avg_revenue * factors
    net = avg_net * factors
    cumulative = np.cumsum(net)

    if start is None:
        start = pd.Period(monthly[-1].month, freq="M")
    else:
        start = pd.Timestamp(start).to_period("M")
    labels = [str(start + int(k)) for k in i]

    return [
        ProjectionMonth(
            month=label,
            revenue=float(r),
            net_income=float(n),
            cumulative_net_income=float(c),
        )
        for label, r, n, c in zip(labels, revenue, net, cumulative)
    ]


def projection_frame(projection: List[ProjectionMonth]) -> pd.DataFrame:
    return pd.DataFrame(
        [p.__dict__ for p in projection],
        columns=["month", "revenue", "net_income", "cumulative_net_income"],
    )


class ScenarioEngine:
    """
    Baseline + optimistic / pessimistic / custom scenarios + projection
    over one business's transactions.

        engine = ScenarioEngine(transactions, accounts, period=ReportPeriod.year("2025-06-30"))
        result = engine.run()
        result["custom"].net_income

    The baseline uses the period's transactions; the projection averages
    every month of the whole history.
    """

    def __init__(
        self,
        transactions,
        accounts=(),
        period: Optional[ReportPeriod] = None,
        optimistic: ScenarioAssumptions = OPTIMISTIC_ASSUMPTIONS,
        pessimistic: ScenarioAssumptions = PESSIMISTIC_ASSUMPTIONS,
        custom: ScenarioAssumptions = DEFAULT_ASSUMPTIONS,
        projection_months: Optional[int] = None,
        settings=DEFAULT_SETTINGS,
    ):
        self.journal = Journal.coerce(transactions, accounts)
        self.period = period
        self.optimistic = optimistic
        self.pessimistic = pessimistic
        self.custom = custom
        self.settings = settings
        self.projection_months = (
            settings.projection_months if projection_months is None else projection_months
        )

    def baseline(self) -> ScenarioResult:
        start = self.period.start if self.period else None
        end = self.period.end if self.period else None
        summary = calculate_financial_summary(self.journal, start=start, end=end, settings=self.settings)
        return baseline_from_summary(summary)

    # ============================================================
    # run()
    # ============================================================
    def run(self, start=None) -> dict:
        baseline = self.baseline()
        monthly = group_by_month(self.journal)

        result = {
            "baseline": baseline,
            "optimistic": apply_scenario(baseline, self.optimistic, "Optimistic"),
            "pessimistic": apply_scenario(baseline, self.pessimistic, "Pessimistic"),
            "custom": apply_scenario(baseline, self.custom, "Custom"),
            "monthly": monthly,
            "projection": project_months(monthly, self.custom, self.projection_months, start),
        }

        logger.info(
            "scenarios: baseline net %.2f / optimistic %.2f / pessimistic %.2f",
            baseline.net_income,
            result["optimistic"].net_income,
            result["pessimistic"].net_income,
        )
        return result

# ===============================
# end scenario.py
# ===============================
