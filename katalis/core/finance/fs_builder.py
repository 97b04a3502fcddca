# ===========================================
# katalis/core/finance/fs_builder.py
# journal -> income statement / balance sheet / cash flow
# ===========================================

import logging
from typing import Dict, List, Optional, Tuple

import pandas as pd

from katalis.config.params import DEFAULT_SETTINGS
from katalis.core.accounts.chart import AccountType, TransactionCategory
from katalis.core.finance.fs_mapping import (
    CASH,
    FIXED,
    INVENTORY,
    OPERATING_CATEGORIES,
    OTHER_CURRENT,
    RECEIVABLES,
    classify_asset,
    is_cash_account,
)
from katalis.core.finance.statements import (
    AssetSection,
    BalanceSheet,
    CashFlow,
    EquitySection,
    FinancialSummary,
    IncomeStatementMetrics,
    LiabilitySection,
    MonthlyData,
)
from katalis.core.ledger.ledger import Journal

logger = logging.getLogger(__name__)


class FinancialStatementBuilder:
    """
    Journal の leg DataFrame から
    - FinancialSummary / IncomeStatementMetrics（category 集計）
    - BalanceSheet（勘定ベース + legacy 行の category 集計）
    - CashFlow（期間 + 期首現金）
    を構築する。

    The builder works on the journal it is given; windows are cut by the
    module-level calculate_* functions.
    """

    def __init__(self, journal: Journal, settings=DEFAULT_SETTINGS):
        self.journal = journal
        self.settings = settings

    # -----------------------------------------
    # 1. Journal -> DataFrame
    # -----------------------------------------
    def _load_ledger(self) -> pd.DataFrame:
        return self.journal.get_df().copy()

    # -----------------------------------------
    # 2. 集計ヘルパー
    # -----------------------------------------
    @staticmethod
    def _entry_rows(df):
        """one row per transaction (debit leg or legacy row)"""
        return df[df["dr_cr"] != "credit"]

    @staticmethod
    def _sum_dr(df, account_type: AccountType) -> float:
        mask = (df["dr_cr"] == "debit") & (df["account_type"] == account_type.value)
        return float(df.loc[mask, "amount"].sum())

    @staticmethod
    def _sum_cr(df, account_type: AccountType) -> float:
        mask = (df["dr_cr"] == "credit") & (df["account_type"] == account_type.value)
        return float(df.loc[mask, "amount"].sum())

    def _category_totals(self, df) -> Dict[TransactionCategory, float]:
        totals = self._entry_rows(df).groupby("category")["amount"].sum()
        return {c: float(totals.get(c.value, 0.0)) for c in TransactionCategory}

    def _category_counts(self, df) -> Dict[str, int]:
        counts = self._entry_rows(df).groupby("category").size()
        return {c.value: int(counts.get(c.value, 0)) for c in TransactionCategory}

    def _known_accounts(self) -> Dict[str, object]:
        known = dict(self.journal.accounts_by_id)
        for t in self.journal.double_entries():
            for acc in (self.journal.debit_account_of(t), self.journal.credit_account_of(t)):
                if acc is not None:
                    known.setdefault(acc.id, acc)
        return known

    def _asset_buckets(self) -> Dict[str, str]:
        return {
            acc_id: classify_asset(acc, self.settings)
            for acc_id, acc in self._known_accounts().items()
            if acc.account_type == AccountType.ASSET
        }

    @staticmethod
    def _operating(totals) -> float:
        return sum(sign * totals[cat] for cat, sign in OPERATING_CATEGORIES.items())

    # -----------------------------------------
    # 3. Summary (income statement totals)
    # -----------------------------------------
    def build_summary(self) -> FinancialSummary:
        df = self._load_ledger()
        totals = self._category_totals(df)

        fin_interest = df[
            (df["dr_cr"] == "debit")
            & (df["category"] == TransactionCategory.FIN.value)
            & (df["account_type"] == AccountType.EXPENSE.value)
        ]["amount"].sum()

        earn = totals[TransactionCategory.EARN]
        var = totals[TransactionCategory.VAR]
        gross_profit = earn - var
        net_profit = (
            gross_profit
            - totals[TransactionCategory.OPEX]
            - totals[TransactionCategory.CAPEX]
            - totals[TransactionCategory.FIN]
            - totals[TransactionCategory.TAX]
        )

        return FinancialSummary(
            total_earn=earn,
            total_opex=totals[TransactionCategory.OPEX],
            total_var=var,
            total_capex=totals[TransactionCategory.CAPEX],
            total_tax=totals[TransactionCategory.TAX],
            total_fin=totals[TransactionCategory.FIN],
            total_interest=float(fin_interest),
            gross_profit=gross_profit,
            net_profit=net_profit,
            category_counts=self._category_counts(df),
        )

    # -----------------------------------------
    # 4. BS（as_of までの累計）
    # -----------------------------------------
    def build_balance_sheet(self, opening_capital: float = 0.0, as_of=None) -> BalanceSheet:
        """
        Double-entry rows go through their accounts; legacy rows through
        their category totals. Opening capital is Dr cash / Cr capital.
        """
        df = self._load_ledger()
        legs = df[df["dr_cr"] != "legacy"].copy()
        legs["signed"] = legs["amount"].where(legs["dr_cr"] == "debit", -legs["amount"])

        unresolved = legs["account_type"].isna()
        if unresolved.any():
            logger.warning(
                "balance sheet: %d legs reference unknown accounts and are skipped",
                int(unresolved.sum()),
            )

        # 資産
        asset_legs = legs[legs["account_type"] == AccountType.ASSET.value]
        buckets = asset_legs["account_id"].map(self._asset_buckets()).fillna(OTHER_CURRENT)
        by_bucket = asset_legs.groupby(buckets)["signed"].sum()

        def bucket(name):
            return float(by_bucket.get(name, 0.0))

        cash = bucket(CASH) + opening_capital
        inventory = bucket(INVENTORY)
        receivables = bucket(RECEIVABLES)
        other_current = bucket(OTHER_CURRENT)
        property_value = bucket(FIXED)

        # 負債・純資産
        loans = self._sum_cr(legs, AccountType.LIABILITY) - self._sum_dr(legs, AccountType.LIABILITY)
        capital = opening_capital + self._sum_cr(legs, AccountType.EQUITY)
        drawings = self._sum_dr(legs, AccountType.EQUITY)
        revenue = self._sum_cr(legs, AccountType.REVENUE) - self._sum_dr(legs, AccountType.REVENUE)
        expenses = self._sum_dr(legs, AccountType.EXPENSE) - self._sum_cr(legs, AccountType.EXPENSE)
        retained = revenue - expenses

        # legacy 行（category ベース）
        legacy = df[df["dr_cr"] == "legacy"]
        if not legacy.empty:
            totals = self._category_totals(legacy)
            operating = self._operating(totals)
            capex = totals[TransactionCategory.CAPEX]
            fin = totals[TransactionCategory.FIN]

            cash += operating - capex + fin
            property_value += capex
            loans += fin
            retained += operating

        total_current = cash + inventory + receivables + other_current
        total_assets = total_current + property_value
        total_equity = capital - drawings + retained

        assets = AssetSection(
            cash=cash,
            inventory=inventory,
            receivables=receivables,
            other_current_assets=other_current,
            total_current_assets=total_current,
            property_value=property_value,
            total_fixed_assets=property_value,
            total_assets=total_assets,
        )
        liabilities = LiabilitySection(loans=loans, total_liabilities=loans)
        equity = EquitySection(
            capital=capital,
            drawings=drawings,
            retained_earnings=retained,
            total_equity=total_equity,
        )

        diff = total_assets - (loans + total_equity)
        is_balanced = abs(diff) < self.settings.balance_tolerance
        if not is_balanced:
            logger.warning("balance sheet does not balance (diff %.2f)", diff)

        as_of_date = None
        if as_of is not None:
            as_of_date = pd.Timestamp(as_of).date()

        return BalanceSheet(
            as_of=as_of_date,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            is_balanced=is_balanced,
        )

    # -----------------------------------------
    # 5. CF
    # -----------------------------------------
    def signed_financing(self, journal: Optional[Journal] = None) -> float:
        """
        FIN rows, signed by the cash side:
        Dr ASSET / Cr non-asset -> inflow, Cr ASSET / Dr non-asset -> outflow,
        asset to asset -> 0, legacy -> inflow
        """
        journal = journal if journal is not None else self.journal
        total = 0.0
        for t in journal.by_category(TransactionCategory.FIN):
            if not t.is_double_entry:
                total += t.amount
                continue

            debit = journal.debit_account_of(t)
            credit = journal.credit_account_of(t)
            debit_asset = debit is not None and debit.account_type == AccountType.ASSET
            credit_asset = credit is not None and credit.account_type == AccountType.ASSET

            if debit_asset and not credit_asset:
                total += t.amount
            elif credit_asset and not debit_asset:
                total -= t.amount
        return total

    def cash_position(self, journal: Optional[Journal] = None) -> float:
        """net cash movement of a journal (cash-like accounts + legacy category flow)"""
        journal = journal if journal is not None else self.journal
        position = 0.0
        for t in journal.double_entries():
            if is_cash_account(journal.debit_account_of(t), self.settings):
                position += t.amount
            if is_cash_account(journal.credit_account_of(t), self.settings):
                position -= t.amount

        legacy = journal.legacy_entries()
        if legacy:
            totals = {c: 0.0 for c in TransactionCategory}
            for t in legacy:
                totals[t.category] += t.amount
            position += (
                self._operating(totals)
                - totals[TransactionCategory.CAPEX]
                + totals[TransactionCategory.FIN]
            )
        return position

    def build_cash_flow(self, start=None, end=None, opening_capital: float = 0.0) -> CashFlow:
        period = self.journal.between(start, end)
        summary = FinancialStatementBuilder(period, self.settings).build_summary()

        operating = (
            summary.total_earn - summary.total_opex - summary.total_var - summary.total_tax
        )
        investing = -summary.total_capex
        financing = self.signed_financing(period)
        net_cash_flow = operating + investing + financing

        opening_balance = opening_capital
        if start is not None:
            opening_balance += self.cash_position(self.journal.before(start))

        return CashFlow(
            operating=operating,
            investing=investing,
            financing=financing,
            net_cash_flow=net_cash_flow,
            opening_balance=opening_balance,
            closing_balance=opening_balance + net_cash_flow,
        )

    # -----------------------------------------
    # 6. 全体を組み立てる
    # -----------------------------------------
    def build(self, opening_capital: float = 0.0):
        summary = self.build_summary()
        metrics = calculate_income_statement_metrics(summary)
        bs = self.build_balance_sheet(opening_capital)
        cf = self.build_cash_flow(opening_capital=opening_capital)

        # 簿記検証（借方＝貸方）
        df = self._load_ledger()
        debit_total = float(df[df["dr_cr"] == "debit"]["amount"].sum())
        credit_total = float(df[df["dr_cr"] == "credit"]["amount"].sum())
        is_balanced = abs(debit_total - credit_total) < self.settings.balance_tolerance

        return {
            "summary": summary,
            "metrics": metrics,
            "bs": bs,
            "cf": cf,
            "is_balanced": is_balanced and bs.is_balanced,
            "debit_total": debit_total,
            "credit_total": credit_total,
            "balance_diff": debit_total - credit_total,
        }


# =======================================
# module-level calculators
# =======================================

def _opening_capital(opening_capital, settings) -> float:
    return float(settings.default_capital if opening_capital is None else opening_capital)


def calculate_financial_summary(
    transactions, start=None, end=None, accounts=(), settings=DEFAULT_SETTINGS
) -> FinancialSummary:
    """category totals over [start, end] (inclusive, None = open)"""
    journal = Journal.coerce(transactions, accounts).between(start, end)
    summary = FinancialStatementBuilder(journal, settings).build_summary()
    logger.debug(
        "summary %s..%s: earn %.2f, net %.2f", start, end, summary.total_earn, summary.net_profit
    )
    return summary


def calculate_income_statement_metrics(summary: FinancialSummary) -> IncomeStatementMetrics:
    operating_income = summary.gross_profit - summary.total_opex
    ebit = operating_income - summary.total_capex
    ebt = ebit - summary.total_fin

    earn = summary.total_earn
    meaningful = earn > 0

    return IncomeStatementMetrics(
        operating_income=operating_income,
        ebit=ebit,
        ebt=ebt,
        gross_margin=summary.gross_profit / earn * 100 if meaningful else 0.0,
        operating_margin=operating_income / earn * 100 if meaningful else 0.0,
        net_margin=summary.net_profit / earn * 100 if meaningful else 0.0,
        margins_meaningful=meaningful,
    )


def calculate_income_statement(
    transactions, start=None, end=None, accounts=(), settings=DEFAULT_SETTINGS
) -> Tuple[FinancialSummary, IncomeStatementMetrics]:
    summary = calculate_financial_summary(transactions, start, end, accounts, settings)
    return summary, calculate_income_statement_metrics(summary)


def calculate_category_counts(transactions) -> Dict[str, int]:
    return calculate_financial_summary(transactions).category_counts


def calculate_balance_sheet(
    transactions, as_of=None, accounts=(), opening_capital=None, settings=DEFAULT_SETTINGS
) -> BalanceSheet:
    """
    Point-in-time balance sheet: every transaction dated <= as_of,
    regardless of any period start.
    """
    journal = Journal.coerce(transactions, accounts)
    if as_of is not None:
        journal = journal.up_to(as_of)
    builder = FinancialStatementBuilder(journal, settings)
    return builder.build_balance_sheet(_opening_capital(opening_capital, settings), as_of)


def calculate_cash_flow(
    transactions, start=None, end=None, accounts=(), opening_capital=None,
    settings=DEFAULT_SETTINGS,
) -> CashFlow:
    journal = Journal.coerce(transactions, accounts)
    builder = FinancialStatementBuilder(journal, settings)
    return builder.build_cash_flow(start, end, _opening_capital(opening_capital, settings))


def group_by_month(transactions) -> List[MonthlyData]:
    """per-month category totals, oldest month first"""
    journal = Journal.coerce(transactions)
    df = journal.get_df()
    rows = df[df["dr_cr"] != "credit"].copy()
    if rows.empty:
        return []

    rows["month"] = pd.to_datetime(rows["date"]).dt.strftime("%Y-%m")
    pivot = rows.pivot_table(
        index="month", columns="category", values="amount", aggfunc="sum", fill_value=0.0
    )
    pivot = pivot.reindex(columns=[c.value for c in TransactionCategory], fill_value=0.0)
    pivot = pivot.sort_index()

    months = []
    for month, r in pivot.iterrows():
        earn, opex, var = float(r["EARN"]), float(r["OPEX"]), float(r["VAR"])
        capex, tax, fin = float(r["CAPEX"]), float(r["TAX"]), float(r["FIN"])
        months.append(
            MonthlyData(
                month=month,
                earn=earn,
                opex=opex,
                var=var,
                capex=capex,
                tax=tax,
                fin=fin,
                net_profit=earn - var - opex - capex - fin - tax,
            )
        )
    return months


# -----------------------------------------
# ratios / capital
# -----------------------------------------
def calculate_roi(net_profit: float, capital: float) -> float:
    if capital == 0:
        return 0.0
    return net_profit / capital * 100


def calculate_monthly_roi(net_profit: float, capital: float, months: int = 1) -> float:
    if months <= 0:
        return 0.0
    return calculate_roi(net_profit, capital) / months


def calculate_profit_margin(net_profit: float, revenue: float) -> float:
    if revenue == 0:
        return 0.0
    return net_profit / revenue * 100


def _capex_entries(journal: Journal, settings):
    low, high = settings.fixed_asset_code_range
    found = []
    for t in journal:
        if t.category == TransactionCategory.CAPEX:
            found.append(t)
            continue
        if t.is_double_entry:
            debit = journal.debit_account_of(t)
            if debit is not None and low <= debit.code_number <= high:
                found.append(t)
    return found


def calculate_total_capex(transactions, accounts=(), settings=DEFAULT_SETTINGS) -> float:
    """CAPEX rows plus double entries debiting a fixed-asset code"""
    journal = Journal.coerce(transactions, accounts)
    return float(sum(t.amount for t in _capex_entries(journal, settings)))


def calculate_initial_capital(transactions, accounts=(), settings=DEFAULT_SETTINGS) -> float:
    """capital spending in the month of the first CAPEX row"""
    journal = Journal.coerce(transactions, accounts)
    capex = _capex_entries(journal, settings)
    if not capex:
        return 0.0

    first = min(t.date for t in capex)
    return float(sum(
        t.amount for t in capex
        if (t.date.year, t.date.month) == (first.year, first.month)
    ))

# ===========================================
# END fs_builder.py
# ===========================================
