# tests/test_trial_balance.py
"""
Trial balance: column placement, closure and contra flip.
"""

import random

import pytest

from katalis.core.accounts.chart import Account, TransactionCategory
from katalis.core.reporting.trial_balance import build_trial_balance


def _row(tb, code):
    return next(r for r in tb.rows if r.account_code == code)


def test_single_entry_example(acc, entry):
    t1 = entry("2025-01-05", acc["1100"], acc["4100"], 1000, "EARN")
    tb = build_trial_balance([acc["1100"], acc["4100"]], [t1])

    assert _row(tb, "1100").debit_balance == 1000
    assert _row(tb, "1100").credit_balance == 0
    assert _row(tb, "4100").credit_balance == 1000
    assert _row(tb, "4100").debit_balance == 0
    assert tb.total_debits == tb.total_credits == 1000
    assert tb.is_balanced
    assert tb.difference == 0


def test_only_accounts_with_activity_appear(chart, acc, entry):
    t1 = entry("2025-01-05", acc["1100"], acc["4100"], 1000, "EARN")
    tb = build_trial_balance(chart, [t1])
    assert [r.account_code for r in tb.rows] == ["1100", "4100"]


def test_rows_are_sorted_by_code(chart, acc, entry):
    rows = [
        entry("2025-01-01", acc["5100"], acc["1200"], 10, "OPEX"),
        entry("2025-01-01", acc["1100"], acc["3100"], 100, "FIN"),
        entry("2025-01-02", acc["1200"], acc["1100"], 50, "FIN"),
    ]
    tb = build_trial_balance(chart, rows)
    assert [r.account_code for r in tb.rows] == ["1100", "1200", "3100", "5100"]


def test_inactive_accounts_are_skipped(chart, acc, entry):
    retired = Account("acc-5900", "biz-1", "5900", "Beban Lama", "EXPENSE",
                      parent_account_id="acc-5000", is_active=False)
    rows = [entry("2025-01-01", retired, acc["1100"], 10, "OPEX")]
    tb = build_trial_balance(chart + [retired], rows)
    assert "5900" not in [r.account_code for r in tb.rows]
    assert not tb.is_balanced
    assert tb.difference == pytest.approx(10)


# =============================================================================
# Contra flip
# =============================================================================

class TestContraFlip:

    def test_negative_cash_moves_to_credit_column(self, chart, acc, entry):
        rows = [entry("2025-01-01", acc["5100"], acc["1100"], 400, "OPEX")]
        tb = build_trial_balance(chart, rows)
        cash = _row(tb, "1100")
        assert cash.debit_balance == 0
        assert cash.credit_balance == 400
        assert tb.is_balanced

    def test_negative_liability_moves_to_debit_column(self, chart, acc, entry):
        rows = [entry("2025-01-01", acc["2100"], acc["1200"], 75, "FIN")]
        loan = _row(build_trial_balance(chart, rows), "2100")
        assert loan.debit_balance == 75
        assert loan.credit_balance == 0

    def test_no_negative_figures(self, chart, acc, entry):
        rows = [
            entry("2025-01-01", acc["5100"], acc["1100"], 400, "OPEX"),
            entry("2025-01-02", acc["4100"], acc["1200"], 60, "EARN"),
        ]
        tb = build_trial_balance(chart, rows)
        for r in tb.rows:
            assert r.debit_balance >= 0
            assert r.credit_balance >= 0


# =============================================================================
# Closure
# =============================================================================

@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_random_balanced_entries_always_close(chart, entry, seed):
    rng = random.Random(seed)
    leaves = [a for a in chart if a.is_postable]
    categories = list(TransactionCategory)

    rows = []
    for i in range(40):
        debit, credit = rng.sample(leaves, 2)
        rows.append(entry(
            f"2025-{rng.randint(1, 12):02d}-{rng.randint(1, 28):02d}",
            debit, credit,
            round(rng.uniform(1, 10_000), 2),
            rng.choice(categories),
        ))

    tb = build_trial_balance(chart, rows)
    assert tb.is_balanced
    assert tb.total_debits == pytest.approx(tb.total_credits)


def test_legacy_rows_do_not_affect_trial_balance(chart, acc, entry, legacy):
    rows = [
        entry("2025-01-05", acc["1100"], acc["4100"], 1000, "EARN"),
        legacy("2025-01-06", 999, "OPEX"),
    ]
    tb = build_trial_balance(chart, rows)
    assert tb.total_debits == 1000
    assert tb.is_balanced


def test_empty_transactions(chart):
    tb = build_trial_balance(chart, [])
    assert tb.rows == ()
    assert tb.total_debits == 0
    assert tb.is_balanced
    assert tb.to_frame().empty


def test_to_frame(acc, entry):
    t1 = entry("2025-01-05", acc["1100"], acc["4100"], 1000, "EARN")
    df = build_trial_balance([acc["1100"], acc["4100"]], [t1]).to_frame()
    assert list(df["account_code"]) == ["1100", "4100"]
    assert list(df["account_type"]) == ["ASSET", "REVENUE"]
    assert df["debit_balance"].sum() == df["credit_balance"].sum()
