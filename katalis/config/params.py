#=========== katalis/config/params.py

from dataclasses import dataclass
from typing import Optional, Tuple
import datetime

import pandas as pd


@dataclass(frozen=True)
class EngineSettings:
    # 勘定残高の許容誤差（通貨単位）
    balance_tolerance: float = 0.01

    # ASSET code ranges used when the account name says nothing
    cash_code_range: Tuple[int, int] = (1100, 1199)
    fixed_asset_code_range: Tuple[int, int] = (1200, 1299)

    # forward projection horizon (months)
    projection_months: int = 6

    # recorded capital investment when the caller passes none
    default_capital: float = 0.0


DEFAULT_SETTINGS = EngineSettings()


def _as_date(value) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return pd.Timestamp(value).date()


@dataclass(frozen=True)
class ReportPeriod:
    """
    Inclusive [start, end] window for period statements.
    The reference date is always an explicit argument.
    """

    start: datetime.date
    end: datetime.date

    def __post_init__(self):
        object.__setattr__(self, "start", _as_date(self.start))
        object.__setattr__(self, "end", _as_date(self.end))
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} is after end {self.end}")

    def contains(self, day) -> bool:
        return self.start <= _as_date(day) <= self.end

    @classmethod
    def month(cls, reference) -> "ReportPeriod":
        ts = pd.Timestamp(_as_date(reference))
        start = ts.replace(day=1)
        end = start + pd.offsets.MonthEnd(0)
        return cls(start.date(), end.date())

    @classmethod
    def quarter(cls, reference) -> "ReportPeriod":
        ts = pd.Timestamp(_as_date(reference))
        first_month = 3 * ((ts.month - 1) // 3) + 1
        start = pd.Timestamp(year=ts.year, month=first_month, day=1)
        end = start + pd.offsets.QuarterEnd(0)
        return cls(start.date(), end.date())

    @classmethod
    def year(cls, reference) -> "ReportPeriod":
        day = _as_date(reference)
        return cls(datetime.date(day.year, 1, 1), datetime.date(day.year, 12, 31))


@dataclass(frozen=True)
class ScenarioAssumptions:
    # 全て % 表示
    revenue_growth: float = 0.0
    cogs_growth: float = 0.0
    opex_growth: float = 0.0
    tax_rate: float = 0.0
    interest_growth: float = 0.0
    name: Optional[str] = None


DEFAULT_ASSUMPTIONS = ScenarioAssumptions(name="baseline")

OPTIMISTIC_ASSUMPTIONS = ScenarioAssumptions(
    revenue_growth=20.0,
    cogs_growth=10.0,
    opex_growth=5.0,
    tax_rate=0.0,
    interest_growth=0.0,
    name="optimistic",
)

PESSIMISTIC_ASSUMPTIONS = ScenarioAssumptions(
    revenue_growth=-10.0,
    cogs_growth=15.0,
    opex_growth=10.0,
    tax_rate=0.0,
    interest_growth=5.0,
    name="pessimistic",
)

#=========== end params.py
