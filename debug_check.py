import logging

import pandas as pd

from katalis.config.logging_config import configure_logging
from katalis.config.params import ReportPeriod
from katalis.core.accounts.chart import Account
from katalis.core.accounts.code_allocator import next_child_code_for
from katalis.core.finance.fs_builder import (
    calculate_balance_sheet,
    calculate_cash_flow,
    calculate_income_statement,
)
from katalis.core.ledger.account_ledger import build_ledger
from katalis.core.ledger.journal_entry import make_entry_pair
from katalis.core.ledger.ledger import Journal
from katalis.core.reporting.trial_balance import build_trial_balance
from katalis.core.simulation.scenario import ScenarioEngine, projection_frame

configure_logging(debug=True)
logger = logging.getLogger("debug_check")

pd.set_option("display.width", 160)

# 1. sample chart of accounts
BIZ = "demo"
accounts = [
    Account("a1000", BIZ, "1000", "Aset", "ASSET"),
    Account("a1100", BIZ, "1100", "Kas", "ASSET", parent_account_id="a1000"),
    Account("a1300", BIZ, "1300", "Persediaan Barang", "ASSET", parent_account_id="a1000", default_category="VAR"),
    Account("a1500", BIZ, "1500", "Peralatan", "ASSET", parent_account_id="a1000", default_category="CAPEX"),
    Account("a2000", BIZ, "2000", "Liabilitas", "LIABILITY"),
    Account("a2100", BIZ, "2100", "Pinjaman Bank", "LIABILITY", parent_account_id="a2000"),
    Account("a3000", BIZ, "3000", "Ekuitas", "EQUITY"),
    Account("a3100", BIZ, "3100", "Modal Pemilik", "EQUITY", parent_account_id="a3000"),
    Account("a4000", BIZ, "4000", "Pendapatan", "REVENUE"),
    Account("a4100", BIZ, "4100", "Pendapatan Sewa", "REVENUE", parent_account_id="a4000"),
    Account("a5000", BIZ, "5000", "Beban", "EXPENSE"),
    Account("a5100", BIZ, "5100", "Beban Listrik", "EXPENSE", parent_account_id="a5000"),
    Account("a5200", BIZ, "5200", "HPP", "EXPENSE", parent_account_id="a5000"),
]
by_code = {a.account_code: a for a in accounts}

print("=== next code under 5000:", next_child_code_for(by_code["5000"], accounts))

# 2. sample book
entries = [
    make_entry_pair("2025-01-02", by_code["1100"], by_code["3100"], 50_000_000, "FIN", name="Setoran modal"),
    make_entry_pair("2025-01-03", by_code["1100"], by_code["2100"], 20_000_000, "FIN", name="Pinjaman bank"),
    make_entry_pair("2025-01-05", by_code["1500"], by_code["1100"], 15_000_000, "CAPEX", name="Beli peralatan"),
    make_entry_pair("2025-01-10", by_code["1300"], by_code["1100"], 4_000_000, "VAR", name="Beli stok"),
    make_entry_pair("2025-01-20", by_code["1100"], by_code["4100"], 12_000_000, "EARN", name="Sewa Januari"),
    make_entry_pair("2025-01-25", by_code["5100"], by_code["1100"], 1_500_000, "OPEX", name="Bayar listrik"),
    make_entry_pair("2025-02-20", by_code["1100"], by_code["4100"], 13_000_000, "EARN", name="Sewa Februari"),
    make_entry_pair("2025-02-25", by_code["5100"], by_code["1100"], 1_600_000, "OPEX", name="Bayar listrik"),
    make_entry_pair("2025-02-28", by_code["2100"], by_code["1100"], 2_000_000, "FIN", name="Cicilan pinjaman"),
]
journal = Journal(entries, accounts)

# 3. ledger / trial balance
print("\n=== ledger 1100 Kas")
print(build_ledger(by_code["1100"], journal).to_frame())

tb = build_trial_balance(accounts, journal)
print("\n=== trial balance (balanced: %s, diff %.2f)" % (tb.is_balanced, tb.difference))
print(tb.to_frame())

# 4. statements
period = ReportPeriod.month("2025-02-15")
summary, metrics = calculate_income_statement(journal, period.start, period.end)
print("\n=== income statement", period.start, "..", period.end)
print(summary)
print(metrics)

bs = calculate_balance_sheet(journal, as_of=period.end)
print("\n=== balance sheet as of", period.end, "(balanced: %s)" % bs.is_balanced)
print(bs.to_frame())

print("\n=== cash flow")
print(calculate_cash_flow(journal, period.start, period.end))

# 5. scenarios
result = ScenarioEngine(journal, period=period).run()
for key in ("baseline", "optimistic", "pessimistic"):
    print(f"{key:12s} net income {result[key].net_income:>16,.0f}")
print(projection_frame(result["projection"]))

logger.info("debug check finished")
