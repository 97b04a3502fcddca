# tests/test_statements.py
"""
Income statement, balance sheet, cash flow and the supplementary metrics.
"""

import math
import random

import pytest

from katalis.config.params import EngineSettings, ReportPeriod
from katalis.core.accounts.chart import VALID_COMBINATIONS, Account
from katalis.core.finance.fs_builder import (
    FinancialStatementBuilder,
    calculate_balance_sheet,
    calculate_cash_flow,
    calculate_category_counts,
    calculate_financial_summary,
    calculate_income_statement,
    calculate_income_statement_metrics,
    calculate_initial_capital,
    calculate_monthly_roi,
    calculate_profit_margin,
    calculate_roi,
    calculate_total_capex,
    group_by_month,
)
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
from katalis.core.finance.statements import FinancialSummary
from katalis.core.ledger.ledger import Journal


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def february(acc, entry):
    """one opening entry in January, a full month of activity in February"""
    return [
        entry("2025-01-02", acc["1100"], acc["3100"], 10000, "FIN", name="Setoran modal"),
        entry("2025-02-01", acc["1100"], acc["4100"], 3000, "EARN", name="Sewa"),
        entry("2025-02-03", acc["5100"], acc["1100"], 500, "OPEX", name="Listrik"),
        entry("2025-02-04", acc["5200"], acc["1100"], 400, "VAR", name="Bahan"),
        entry("2025-02-05", acc["5100"], acc["1100"], 100, "TAX", name="PBB"),
        entry("2025-02-06", acc["1500"], acc["1100"], 1200, "CAPEX", name="Beli mesin"),
        entry("2025-02-07", acc["1100"], acc["2100"], 2000, "FIN", name="Pinjaman"),
        entry("2025-02-08", acc["2100"], acc["1100"], 600, "FIN", name="Cicilan"),
        entry("2025-02-09", acc["1200"], acc["1100"], 800, "FIN", name="Transfer ke bank"),
        entry("2025-02-10", acc["5400"], acc["1100"], 50, "FIN", name="Bunga"),
    ]


@pytest.fixture
def book(acc, entry):
    """one of everything the balance sheet distinguishes"""
    return [
        entry("2025-01-01", acc["1100"], acc["3100"], 10000, "FIN"),
        entry("2025-01-02", acc["1100"], acc["2100"], 5000, "FIN"),
        entry("2025-01-03", acc["1500"], acc["1100"], 3000, "CAPEX"),
        entry("2025-01-04", acc["1300"], acc["1100"], 2000, "VAR"),
        entry("2025-01-05", acc["1400"], acc["4100"], 1500, "EARN"),
        entry("2025-01-06", acc["1200"], acc["4100"], 2500, "EARN"),
        entry("2025-01-07", acc["5100"], acc["1100"], 700, "OPEX"),
        entry("2025-01-08", acc["3300"], acc["1200"], 300, "FIN"),
        entry("2025-01-09", acc["2100"], acc["1100"], 1000, "FIN"),
    ]


# =============================================================================
# Income statement
# =============================================================================

class TestIncomeStatement:

    def test_single_revenue_entry(self, acc, entry):
        t1 = entry("2025-01-05", acc["1100"], acc["4100"], 1000, "EARN")
        summary, metrics = calculate_income_statement([t1], "2025-01-01", "2025-01-31")
        assert summary.total_earn == 1000
        assert summary.gross_profit == 1000
        assert summary.net_profit == 1000
        assert metrics.gross_margin == 100
        assert metrics.net_margin == 100
        assert metrics.margins_meaningful

    def test_profit_chain(self, february):
        period = ReportPeriod.month("2025-02-15")
        summary, metrics = calculate_income_statement(february, period.start, period.end)

        assert summary.total_earn == 3000
        assert summary.total_var == 400
        assert summary.total_opex == 500
        assert summary.total_tax == 100
        assert summary.total_capex == 1200
        assert summary.total_fin == 2000 + 600 + 800 + 50
        assert summary.gross_profit == 2600

        assert metrics.operating_income == 2100
        assert metrics.ebit == 900
        assert metrics.ebt == 900 - 3450
        assert summary.net_profit == metrics.ebt - summary.total_tax
        assert metrics.gross_margin == pytest.approx(2600 / 3000 * 100)
        assert metrics.operating_margin == pytest.approx(70.0)

    def test_period_is_inclusive(self, february):
        summary = calculate_financial_summary(february, start="2025-01-02", end="2025-01-02")
        assert summary.total_fin == 10000
        assert summary.category_counts["FIN"] == 1

    def test_calculators_share_positional_period(self, february):
        summary = calculate_financial_summary(february, "2025-01-02", "2025-01-02")
        same, _ = calculate_income_statement(february, "2025-01-02", "2025-01-02")
        assert summary == same
        assert summary.total_fin == 10000

    def test_interest_is_fin_into_expense(self, february):
        summary = calculate_financial_summary(february)
        assert summary.total_interest == 50

    def test_category_counts(self, february):
        counts = calculate_category_counts(february)
        assert counts == {"EARN": 1, "OPEX": 1, "VAR": 1, "CAPEX": 1, "TAX": 1, "FIN": 5}

    def test_legacy_rows_count_in_category_totals(self, acc, entry, legacy):
        rows = [
            entry("2025-01-05", acc["1100"], acc["4100"], 1000, "EARN"),
            legacy("2025-01-06", 250, "EARN"),
            legacy("2025-01-07", 100, "OPEX"),
        ]
        summary = calculate_financial_summary(rows)
        assert summary.total_earn == 1250
        assert summary.total_opex == 100
        assert summary.category_counts["EARN"] == 2

    def test_soft_deleted_rows_are_ignored(self, acc, entry):
        rows = [
            entry("2025-01-05", acc["1100"], acc["4100"], 1000, "EARN"),
            entry("2025-01-06", acc["1100"], acc["4100"], 5000, "EARN", deleted_at="2025-01-07"),
        ]
        assert calculate_financial_summary(rows).total_earn == 1000

    def test_empty_period(self):
        summary, metrics = calculate_income_statement([], "2025-01-01", "2025-01-31")
        assert summary == FinancialSummary(category_counts=summary.category_counts)
        assert set(summary.category_counts.values()) == {0}
        assert metrics.ebt == 0


class TestMarginGuard:

    @pytest.mark.parametrize("opex", [0, 250])
    def test_no_revenue_gives_zero_margins(self, acc, entry, opex):
        rows = []
        if opex:
            rows.append(entry("2025-01-05", acc["5100"], acc["1100"], opex, "OPEX"))
        _, metrics = calculate_income_statement(rows)

        for margin in (metrics.gross_margin, metrics.operating_margin, metrics.net_margin):
            assert margin == 0.0
            assert math.isfinite(margin)
        assert metrics.margins_meaningful is False

    def test_metrics_from_summary_record(self):
        summary = FinancialSummary(total_earn=0.0, total_opex=100.0, gross_profit=0.0, net_profit=-100.0)
        metrics = calculate_income_statement_metrics(summary)
        assert metrics.operating_income == -100
        assert metrics.net_margin == 0.0


# =============================================================================
# Balance sheet
# =============================================================================

class TestBalanceSheet:

    def test_lines(self, book):
        bs = calculate_balance_sheet(book)

        assert bs.assets.cash == 10500
        assert bs.assets.inventory == 2000
        assert bs.assets.receivables == 1500
        assert bs.assets.other_current_assets == 0
        assert bs.assets.total_current_assets == 14000
        assert bs.assets.property_value == 3000
        assert bs.assets.total_fixed_assets == 3000
        assert bs.assets.total_assets == 17000

        assert bs.liabilities.loans == 4000
        assert bs.liabilities.total_liabilities == 4000

        assert bs.equity.capital == 10000
        assert bs.equity.drawings == 300
        assert bs.equity.retained_earnings == 3300
        assert bs.equity.total_equity == 13000

        assert bs.is_balanced
        assert bs.difference == pytest.approx(0)

    def test_opening_capital_lands_on_both_sides(self, book):
        bs = calculate_balance_sheet(book, opening_capital=2000)
        assert bs.assets.cash == 12500
        assert bs.equity.capital == 12000
        assert bs.is_balanced

    def test_default_capital_from_settings(self, book):
        bs = calculate_balance_sheet(book, settings=EngineSettings(default_capital=750))
        assert bs.equity.capital == 10750
        assert bs.is_balanced

    def test_as_of_is_cumulative_and_inclusive(self, book):
        bs = calculate_balance_sheet(book, as_of="2025-01-02")
        assert bs.assets.cash == 15000
        assert bs.liabilities.loans == 5000
        assert bs.as_of.isoformat() == "2025-01-02"
        assert bs.is_balanced

    def test_legacy_rows_through_category_totals(self, book, legacy):
        rows = book + [
            legacy("2025-01-10", 400, "EARN"),
            legacy("2025-01-11", 100, "OPEX"),
            legacy("2025-01-12", 50, "CAPEX"),
            legacy("2025-01-13", 30, "FIN"),
        ]
        bs = calculate_balance_sheet(rows)
        assert bs.assets.cash == 10500 + 300 - 50 + 30
        assert bs.assets.property_value == 3050
        assert bs.liabilities.loans == 4030
        assert bs.equity.retained_earnings == 3600
        assert bs.is_balanced

    def test_contra_asset_reduces_fixed_assets(self, chart, acc, entry):
        accumulated = Account("acc-1590", "biz-1", "1590", "Akumulasi Penyusutan", "ASSET",
                              parent_account_id="acc-1000", normal_balance="CREDIT")
        rows = [
            entry("2025-01-01", acc["1500"], acc["1100"], 1200, "CAPEX"),
            entry("2025-01-31", acc["5100"], accumulated, 100, "OPEX"),
        ]
        bs = calculate_balance_sheet(rows, accounts=chart + [accumulated])
        assert bs.assets.property_value == 1100
        assert bs.is_balanced

    def test_empty_book(self):
        bs = calculate_balance_sheet([])
        assert bs.assets.total_assets == 0
        assert bs.equity.total_equity == 0
        assert bs.is_balanced

    def test_to_frame(self, book):
        df = calculate_balance_sheet(book).to_frame()
        assert list(df.columns) == ["section", "line", "amount"]
        total = df[(df["section"] == "Assets") & (df["line"] == "Total assets")]["amount"]
        assert total.iloc[0] == 17000


@pytest.mark.parametrize("seed", [11, 12, 13, 14])
def test_accounting_equation_over_valid_combinations(chart, entry, legacy, seed):
    rng = random.Random(seed)
    leaves = [a for a in chart if a.is_postable]
    by_type = {}
    for a in leaves:
        by_type.setdefault(a.account_type, []).append(a)

    rows = []
    for i in range(60):
        combo = rng.choice(VALID_COMBINATIONS)
        debit = rng.choice(by_type[combo.debit])
        credits = [a for a in by_type[combo.credit] if a.id != debit.id]
        credit = rng.choice(credits)
        rows.append(entry(
            f"2025-{rng.randint(1, 6):02d}-{rng.randint(1, 28):02d}",
            debit, credit,
            round(rng.uniform(10, 5000), 2),
            rng.choice(["EARN", "OPEX", "VAR", "CAPEX", "TAX", "FIN"]),
        ))
    for i in range(5):
        rows.append(legacy(
            f"2025-{rng.randint(1, 6):02d}-15",
            round(rng.uniform(10, 500), 2),
            rng.choice(["EARN", "OPEX", "VAR", "CAPEX", "TAX", "FIN"]),
        ))

    for as_of in (None, "2025-03-31"):
        bs = calculate_balance_sheet(rows, as_of=as_of, opening_capital=rng.uniform(0, 10000))
        lhs = bs.assets.total_assets
        rhs = bs.liabilities.total_liabilities + bs.equity.total_equity
        assert abs(lhs - rhs) < 0.01
        assert bs.is_balanced


# =============================================================================
# Asset classification
# =============================================================================

class TestClassifyAsset:

    @pytest.mark.parametrize("code, name, default_category, expected", [
        ("1100", "Kas Kecil", None, CASH),
        ("1150", "Rekening Giro", None, CASH),
        ("1300", "Persediaan Barang Dagang", None, INVENTORY),
        ("1400", "Piutang Usaha", None, RECEIVABLES),
        ("1600", "Kendaraan", None, FIXED),
        ("1700", "Stok Gudang", None, INVENTORY),
        ("1800", "Titipan", "VAR", INVENTORY),
        ("1810", "Mesin Jahit", "VAR", FIXED),
        ("1820", "Lain-lain", "CAPEX", FIXED),
        ("1120", "Dompet Digital", None, CASH),
        ("1250", "Instalasi", None, FIXED),
        ("1900", "Uang Muka", None, OTHER_CURRENT),
    ])
    def test_buckets(self, code, name, default_category, expected):
        account = Account("x", "b", code, name, "ASSET", default_category=default_category)
        assert classify_asset(account) == expected

    def test_custom_code_ranges(self):
        account = Account("x", "b", "1950", "Dompet Digital", "ASSET")
        settings = EngineSettings(cash_code_range=(1900, 1999))
        assert classify_asset(account, settings) == CASH
        assert is_cash_account(account, settings)

    def test_non_asset_is_never_cash(self, acc):
        assert not is_cash_account(acc["4100"])
        assert not is_cash_account(None)


# =============================================================================
# Cash flow
# =============================================================================

class TestCashFlow:

    def test_sections(self, february):
        cf = calculate_cash_flow(february, "2025-02-01", "2025-02-28")
        assert cf.operating == 3000 - 500 - 400 - 100
        assert cf.investing == -1200
        # loan in, repayment out, asset transfer neutral, interest out
        assert cf.financing == 2000 - 600 - 50
        assert cf.net_cash_flow == 2000 - 1200 + 1350
        assert cf.opening_balance == 10000
        assert cf.closing_balance == 10000 + 2150

    def test_operating_line_follows_category_signs(self, february):
        summary = calculate_financial_summary(february, "2025-02-01", "2025-02-28")
        totals = {
            "EARN": summary.total_earn, "OPEX": summary.total_opex,
            "VAR": summary.total_var, "TAX": summary.total_tax,
        }
        expected = sum(sign * totals[cat.value] for cat, sign in OPERATING_CATEGORIES.items())
        cf = calculate_cash_flow(february, "2025-02-01", "2025-02-28")
        assert cf.operating == expected == 2000

    def test_opening_capital_shifts_opening_balance(self, february):
        cf = calculate_cash_flow(february, "2025-02-01", "2025-02-28", opening_capital=500)
        assert cf.opening_balance == 10500
        assert cf.closing_balance == 10500 + cf.net_cash_flow

    def test_opening_balance_includes_legacy_rows(self, february, legacy):
        rows = february + [
            legacy("2025-01-10", 100, "EARN"),
            legacy("2025-01-11", 40, "CAPEX"),
            legacy("2025-02-11", 70, "FIN"),
        ]
        cf = calculate_cash_flow(rows, "2025-02-01", "2025-02-28")
        assert cf.opening_balance == 10000 + 100 - 40
        assert cf.financing == 1350 + 70

    def test_no_start_means_no_prior_cash(self, february):
        cf = calculate_cash_flow(february)
        assert cf.opening_balance == 0
        assert cf.financing == 10000 + 1350

    def test_opening_plus_flow_matches_balance_sheet_cash(self, acc, entry):
        # all activity through cash-like accounts with plain categories
        rows = [
            entry("2025-01-01", acc["1100"], acc["3100"], 1000, "FIN"),
            entry("2025-01-05", acc["1100"], acc["4100"], 400, "EARN"),
            entry("2025-02-03", acc["5100"], acc["1100"], 150, "OPEX"),
            entry("2025-02-04", acc["1100"], acc["4100"], 90, "EARN"),
        ]
        cf = calculate_cash_flow(rows, "2025-02-01", "2025-02-28")
        bs = calculate_balance_sheet(rows, as_of="2025-02-28")
        assert cf.closing_balance == bs.assets.cash

    def test_builder_signed_financing(self, february):
        builder = FinancialStatementBuilder(Journal(february))
        assert builder.signed_financing() == 10000 + 2000 - 600 - 50
        assert builder.cash_position() == pytest.approx(
            10000 + 3000 - 500 - 400 - 100 - 1200 + 2000 - 600 - 50
        )


# =============================================================================
# Whole build
# =============================================================================

def test_builder_build(book):
    result = FinancialStatementBuilder(Journal(book)).build(opening_capital=1000)
    assert result["is_balanced"]
    assert result["debit_total"] == result["credit_total"]
    assert result["balance_diff"] == 0
    assert result["bs"].assets.cash == 11500
    assert result["cf"].opening_balance == 1000
    assert result["summary"].total_earn == 4000


# =============================================================================
# Monthly breakdown
# =============================================================================

def test_group_by_month(february):
    months = group_by_month(february)
    assert [m.month for m in months] == ["2025-01", "2025-02"]

    jan, feb = months
    assert jan.fin == 10000
    assert jan.earn == 0
    assert jan.net_profit == -10000

    assert feb.earn == 3000
    assert feb.var == 400
    assert feb.capex == 1200
    assert feb.fin == 3450
    assert feb.net_profit == 3000 - 400 - 500 - 1200 - 3450 - 100


def test_group_by_month_is_chronological(acc, entry):
    rows = [
        entry("2025-03-01", acc["1100"], acc["4100"], 3, "EARN"),
        entry("2024-12-01", acc["1100"], acc["4100"], 1, "EARN"),
        entry("2025-01-15", acc["1100"], acc["4100"], 2, "EARN"),
    ]
    assert [m.month for m in group_by_month(rows)] == ["2024-12", "2025-01", "2025-03"]


def test_group_by_month_empty():
    assert group_by_month([]) == []


# =============================================================================
# Ratios and capital
# =============================================================================

class TestRatios:

    def test_roi(self):
        assert calculate_roi(250, 1000) == 25
        assert calculate_roi(250, 0) == 0.0

    def test_monthly_roi(self):
        assert calculate_monthly_roi(300, 1000, 3) == pytest.approx(10)
        assert calculate_monthly_roi(300, 1000, 0) == 0.0
        assert calculate_monthly_roi(300, 0, 3) == 0.0

    def test_profit_margin(self):
        assert calculate_profit_margin(50, 200) == 25
        assert calculate_profit_margin(50, 0) == 0.0


class TestCapex:

    @pytest.fixture
    def vehicle(self):
        return Account("acc-1250", "biz-1", "1250", "Kendaraan", "ASSET", parent_account_id="acc-1000")

    def test_total_capex_counts_category_and_fixed_range(self, acc, entry, vehicle):
        rows = [
            entry("2025-01-10", acc["1500"], acc["1100"], 800, "CAPEX"),
            entry("2025-02-10", vehicle, acc["1100"], 5000, "FIN"),
            entry("2025-02-11", acc["5100"], acc["1100"], 70, "OPEX"),
        ]
        assert calculate_total_capex(rows) == 5800

    def test_initial_capital_is_first_capex_month(self, acc, entry, vehicle, legacy):
        rows = [
            entry("2025-02-20", vehicle, acc["1100"], 5000, "CAPEX"),
            entry("2025-02-03", acc["1500"], acc["1100"], 800, "CAPEX"),
            entry("2025-03-01", acc["1500"], acc["1100"], 999, "CAPEX"),
            legacy("2025-01-31", 10, "OPEX"),
        ]
        assert calculate_initial_capital(rows) == 5800

    def test_no_capex(self, acc, entry):
        rows = [entry("2025-01-10", acc["1100"], acc["4100"], 10, "EARN")]
        assert calculate_total_capex(rows) == 0.0
        assert calculate_initial_capital(rows) == 0.0
