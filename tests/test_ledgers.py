from __future__ import annotations

import pytest

import ledgers
import station_manager as sm


def _with_client(name: str = "SonaTrans") -> tuple[dict, dict]:
    data = {}
    client = ledgers.add_client(data, name, "Companies")
    return data, client


def test_add_client_rejects_empty_and_duplicate_names() -> None:
    data, client = _with_client()
    assert client["group"] == "Companies"
    assert ledgers.add_client(data, "  ") is None
    assert ledgers.add_client(data, "sonatrans") is None
    assert ledgers.add_client(data, "Ferme", "Unknown")["group"] == "Other"


def test_sanitize_client_ids_fills_missing_ids() -> None:
    data = {sm.K_CREDIT_CLIENTS: [{"name": "Old client", "group": "Other"}]}
    assert ledgers.sanitize_client_ids(data)
    assert data[sm.K_CREDIT_CLIENTS][0]["id"]
    assert not ledgers.sanitize_client_ids(data)


def test_credit_sale_and_payment_update_today_and_balances() -> None:
    data, client = _with_client()
    assert ledgers.add_credit_sale(data, client["id"], "0") is None
    assert ledgers.add_credit_sale(data, "missing", 10) is None

    ledgers.add_credit_sale(data, client["id"], "1500", "Fuel", day="2025-05-01")
    ledgers.add_credit_payment(data, client["id"], 400, note="cash", day="2025-05-02")

    assert data[sm.K_CREDITS_TODAY] == 1500
    assert data[sm.K_PAID_TODAY] == 400
    assert ledgers.client_balances(data) == {"SonaTrans": 1100}
    assert [tx["kind"] for tx in ledgers.credit_history(data)] == ["payment", "sale"]


def test_first_credit_sale_freezes_overall_snapshot() -> None:
    data, client = _with_client()
    ledgers.add_credit_sale(data, client["id"], 100, snapshot={"tProf": 1000.456, "nProf": 50})
    ledgers.add_credit_sale(data, client["id"], 100, snapshot={"tProf": 5, "nProf": 5})
    assert data[sm.K_FIXED_TP] == 1000.46
    assert data[sm.K_FIXED_NP] == 50


def test_credit_sale_without_snapshot_does_not_freeze() -> None:
    data, client = _with_client()
    ledgers.add_credit_sale(data, client["id"], 100)
    assert data.get(sm.K_FIXED_TP) is None


def test_removing_client_keeps_ledger_rows() -> None:
    data, client = _with_client()
    ledgers.add_credit_sale(data, client["id"], 100)
    assert ledgers.remove_client(data, client["id"])
    assert len(data[sm.K_CREDIT_LEDGER]) == 1


def test_worker_payment_defaults_to_salary() -> None:
    data = {}
    w = ledgers.add_worker(data, "")
    assert w["name"] == "Worker 3"
    ledgers.update_worker(data, w["id"], salary="30000")

    expense = ledgers.record_worker_payment(data, w["id"], "", day="2025-05-01")

    assert expense["amount"] == 30000
    assert expense["type"] == "Worker payment"
    assert expense["deductFrom"] == "NP"
    assert data[sm.K_EXPENSES][0] is expense
    assert w["lastPayment"] == {"date": "2025-05-01", "amount": -30000}
    assert ledgers.payments_history(data)[0]["workerName"] == "Worker 3"


def test_worker_payment_without_amount_or_salary_is_rejected() -> None:
    data = {}
    assert ledgers.record_worker_payment(data, "w1") is None
    with pytest.raises(KeyError):
        ledgers.record_worker_payment(data, "nobody", 10)


def test_adjust_balance_and_salaries() -> None:
    data = {}
    ledgers.update_worker(data, "w1", salary=20000)
    ledgers.update_worker(data, "w2", salary=15000)
    ledgers.adjust_worker_balance(data, "w1", "500", "add")
    w = ledgers.adjust_worker_balance(data, "w1", "-200", "deduct")
    assert w["balance"] == 300
    assert ledgers.total_monthly_salaries(data) == 35000
    assert ledgers.remove_worker(data, "w2")
    assert [x["id"] for x in sm.get_workers(data)] == ["w1"]


def test_payments_history_is_limited() -> None:
    data = {}
    ledgers.update_worker(data, "w1", salary=10)
    for i in range(5):
        ledgers.record_worker_payment(data, "w1", day=f"2025-05-0{i + 1}")
    rows = ledgers.payments_history(data, limit=3)
    assert [r["date"] for r in rows] == ["2025-05-05", "2025-05-04", "2025-05-03"]


def test_cheques_add_filter_and_totals() -> None:
    data = {}
    assert ledgers.add_cheque(data, number="", issuer="", amount="") is None
    a = ledgers.add_cheque(data, number="0045", issuer="Naftal", amount="150000", kind="naftal", status="paid")
    b = ledgers.add_cheque(data, number="0099", issuer="Ferme Benali", amount="2000", kind="received")
    ledgers.add_cheque(data, number="0100", issuer="Garage", amount="500", kind="sent", status="money_received")

    assert b["status"] == "pending"
    assert [c["id"] for c in ledgers.filter_cheques(data, "received", "benali")] == [b["id"]]
    assert ledgers.filter_cheques(data, "naftal", "0045") == [a]
    assert ledgers.cheque_totals(data) == {"pending": 2000, "cleared": 150500}


def test_cheque_status_changes() -> None:
    data = {}
    c = ledgers.add_cheque(data, number="1", amount=10)
    ledgers.set_cheque_status(data, c["id"], "paid", day="2025-05-03")
    assert c["status"] == "paid"
    assert c["updatedAt"] == "2025-05-03"
    with pytest.raises(ValueError):
        ledgers.set_cheque_status(data, c["id"], "cleared")
    with pytest.raises(KeyError):
        ledgers.set_cheque_status(data, "missing", "paid")
    ledgers.update_cheque(data, c["id"], issuer="Naftal", amount="12,5")
    assert c["amount"] == 12.5
    assert ledgers.remove_cheque(data, c["id"])


def test_sales_payable_counts_paid_naftal_cheques() -> None:
    data = {
        sm.K_HISTORY_DAILY: [{"date": "2025-05-01", "totals": {"tProf": 10000, "nProf": 700}}],
        sm.K_HISTORY_STORE: [{"date": "2025-05-01", "totals": {"tProf": 500, "nProf": 100}}],
    }
    ledgers.add_cheque(data, number="1", amount=6000, kind="naftal", status="paid")
    ledgers.add_cheque(data, number="2", amount=1000, kind="naftal", status="pending_payment")
    payable = ledgers.sales_payable(data)
    assert payable["payable"] == 9700
    assert payable["paid_via_cheques"] == 6000
    assert payable["remaining"] == 3700


def test_taxes_on_net_profit_in_range() -> None:
    data = {
        sm.K_HISTORY_DAILY: [
            {"date": "2025-04-30", "totals": {"tProf": 9999, "nProf": 9999}},
            {"date": "2025-05-01", "totals": {"tProf": 10000, "nProf": 800}},
        ],
        sm.K_HISTORY_STORE: [{"date": "2025-05-02", "totals": {"tProf": 300, "nProf": 200}}],
    }
    ledgers.save_tax_config(data, tax_rate="10", zakat_rate="2,5", base="NP", zakat_from="TP")
    taxes = ledgers.compute_taxes(data, "2025-05-01", "2025-05-31")
    assert taxes["base_amount"] == 1000
    assert taxes["tax_due"] == 100
    assert taxes["zakat_due"] == 25
    assert taxes["zakat_from"] == "TP"

    expense = ledgers.record_tax_expense(data, "Zakat", taxes["zakat_due"])
    assert expense["name"] == "Zakat"
    assert expense["deductFrom"] == "TP"
    with pytest.raises(ValueError):
        ledgers.record_tax_expense(data, "Fees", 10)
