from __future__ import annotations

import io
import json

import pytest
from openpyxl import load_workbook

import station_manager as sm
from server import create_app
from station_store import load_store, save_store

from conftest import ACTIVATION_KEY

TAB_PATHS = ["/", "/tanks", "/store", "/credits", "/workers", "/taxes", "/cheques", "/reports", "/totals", "/settings"]


def test_gates_redirect_to_activation_then_login(client) -> None:
    resp = client.get("/")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/activate")

    resp = client.post("/activate", data={"key": "WRONG"})
    assert b"Invalid activation key" in resp.data

    resp = client.post("/activate", data={"key": ACTIVATION_KEY})
    assert resp.headers["Location"].endswith("/login")

    resp = client.get("/")
    assert resp.headers["Location"].endswith("/login")

    resp = client.post("/login", data={"username": "admin", "password": "nope"})
    assert b"Invalid credentials" in resp.data

    resp = client.post("/login", data={"username": "admin", "password": "admin123"})
    assert resp.headers["Location"].endswith("/")


def test_api_gates_answer_with_json(client) -> None:
    resp = client.get("/api/reports")
    assert resp.status_code == 403
    assert resp.get_json()["ok"] is False

    client.post("/activate", data={"key": ACTIVATION_KEY})
    assert client.get("/api/reports").status_code == 401


def test_pwa_files_are_public(client) -> None:
    sw = client.get("/sw.js")
    assert sw.status_code == 200
    assert sw.mimetype == "application/javascript"
    assert b"waali-gs-v1.0.0" in sw.data
    assert client.get("/manifest.json").get_json()["short_name"] == "Waali Gas"


@pytest.mark.parametrize("path", TAB_PATHS)
def test_every_tab_renders(logged_in, path) -> None:
    resp = logged_in.get(path)
    assert resp.status_code == 200
    assert b"Waali Gas Station" in resp.data
    assert b'id="main-form"' in resp.data


def test_first_page_load_seeds_store_catalogue(logged_in, data_path) -> None:
    logged_in.get("/")
    assert len(load_store(data_path)[sm.K_STORE_ITEMS]) == len(sm.DEFAULT_STORE_CATALOGUE)


def test_live_summary_then_save_day(logged_in, data_path, workbook_path) -> None:
    logged_in.post("/save/pumps", data={"prev_es1": "100"})

    resp = logged_in.post("/api/main-summary", data={"tn_es1": "150"})
    payload = resp.get_json()
    assert payload["ok"] is True
    assert payload["cells"]["liters-es1"] == "50.00"
    assert payload["cells"]["tp-es1"] == f"{50 * 45.62:.2f}"
    assert load_store(data_path)[sm.K_PUMPS_TODAY]["es1"] == "150"

    resp = logged_in.post("/save/day", data={})
    assert resp.status_code == 302
    data = load_store(data_path)
    assert len(data[sm.K_HISTORY_DAILY]) == 1
    assert data[sm.K_READINGS]["es1"] == {"prev": 150.0}

    rows = logged_in.get("/api/reports").get_json()["rows"]
    assert len(rows) == 1
    assert rows[0]["liters"] == 50

    csv_resp = logged_in.get("/export/reports.csv")
    assert csv_resp.mimetype == "text/csv"
    assert "reports_all_all.csv" in csv_resp.headers["Content-Disposition"]
    assert len(csv_resp.get_data(as_text=True).splitlines()) == 2

    wb = load_workbook(workbook_path)
    assert "History" in wb.sheetnames
    assert wb["DailyHistory"].max_row == 2


def test_main_summary_ignores_non_object_json(logged_in) -> None:
    resp = logged_in.post("/api/main-summary", json=[1, 2])
    assert resp.status_code == 200
    assert resp.get_json()["ok"] is True


def test_closing_without_actual_keeps_saved_draft(logged_in, data_path) -> None:
    logged_in.post("/api/main-summary", data={"closing_actual": "1000"})
    logged_in.post("/save/closing", data={"cashier_id": ""})
    assert load_store(data_path)[sm.K_CLOSING_ACTUAL] == "1000"


def test_xlsx_export(logged_in) -> None:
    resp = logged_in.get("/export/reports.xlsx?from=2025-01-01")
    assert resp.status_code == 200
    wb = load_workbook(io.BytesIO(resp.data))
    assert wb["Reports"].cell(1, 1).value == "Date"


def test_credit_sale_from_main_freezes_overall(logged_in, data_path) -> None:
    logged_in.post("/save/client", data={"name": "ACME", "group": "Companies"})
    client_id = logged_in.get("/api/credits").get_json()["clients"][0]["id"]

    resp = logged_in.post("/save/credit-sale", data={"client_id": client_id, "amount": "500", "tab": "main"})
    assert "tab=main" in resp.headers["Location"]
    logged_in.post("/save/credit-payment", data={"client_id": client_id, "amount": "200"})

    credits = logged_in.get("/api/credits").get_json()
    assert credits["today"] == 500
    assert credits["paid_today"] == 200
    assert credits["balances"] == {"ACME": 300}
    assert load_store(data_path)[sm.K_FIXED_TP] is not None


def test_credit_sale_after_a_closed_day_survives_later_requests(logged_in, data_path) -> None:
    data = load_store(data_path)
    data[sm.K_DAY_CLOSED] = "2000-01-01"
    data[sm.K_CREDITS_TODAY] = 900
    save_store(data_path, data)

    logged_in.post("/save/client", data={"name": "ACME"})
    client_id = logged_in.get("/api/credits").get_json()["clients"][0]["id"]
    assert logged_in.get("/api/credits").get_json()["today"] == 0

    logged_in.post("/save/credit-sale", data={"client_id": client_id, "amount": "500", "tab": "main"})
    logged_in.get("/")
    assert logged_in.get("/api/credits").get_json()["today"] == 500


def test_rejected_credit_sale_redirects_with_message(logged_in) -> None:
    resp = logged_in.post("/save/credit-sale", data={"client_id": "", "amount": "10"})
    assert "Select%20a%20client" in resp.headers["Location"]


def test_unknown_ids(logged_in) -> None:
    resp = logged_in.post("/api/tanks/nope/refill", json={"liters": 10})
    assert resp.status_code == 404
    assert resp.get_json()["ok"] is False

    resp = logged_in.post("/save/tank/nope/refill", data={"liters": "10"})
    assert resp.status_code == 302


def test_tank_refill_api(logged_in) -> None:
    resp = logged_in.post("/api/tanks/oil/refill", json={"liters": 250, "factureNo": "F-7"})
    tank = resp.get_json()["tank"]
    assert tank["history"][-1]["factureNo"] == "F-7"
    history = logged_in.get("/api/tanks").get_json()["history"]
    assert history[0]["tankName"] == "Oil Tank"


def test_expenses_api(logged_in) -> None:
    resp = logged_in.post("/api/expenses", json={"name": "Bulbs", "type": "Maintenance", "amount": 900, "deductFrom": "TP"})
    expense = resp.get_json()["expense"]
    assert logged_in.post("/api/expenses", json={"name": "", "amount": 5}).status_code == 400
    assert len(logged_in.get("/api/expenses").get_json()) == 1
    assert logged_in.delete(f"/api/expenses/{expense['id']}").get_json()["ok"] is True
    assert logged_in.delete(f"/api/expenses/{expense['id']}").status_code == 404


def test_cheques_and_sales_payable(logged_in) -> None:
    logged_in.post("/save/cheque/add", data={
        "number": "0045", "issuer": "Naftal", "amount": "1000", "kind": "naftal", "status": "paid",
        "transactionType": "Check", "date": "2025-05-01",
    })
    body = logged_in.get("/api/cheques?q=004").get_json()
    assert len(body["naftal"]) == 1
    assert body["sales_payable"]["paid_via_cheques"] == 1000

    cheque_id = body["naftal"][0]["id"]
    resp = logged_in.post(f"/api/cheques/{cheque_id}/status", json={"status": "bogus"})
    assert resp.status_code == 400


def test_workers_and_taxes_forms(logged_in, data_path) -> None:
    logged_in.post("/save/worker/w1", data={"name": "Karim", "salary": "30000"})
    logged_in.post("/save/worker/w1/pay", data={"amount": "", "note": "May"})
    data = load_store(data_path)
    assert data[sm.K_EXPENSES][0]["amount"] == 30000
    assert data[sm.K_EXPENSES][0]["type"] == "Worker payment"

    logged_in.post("/save/taxes", data={"tax_rate": "10", "zakat_rate": "2.5", "base": "TP",
                                        "tax_from": "NP", "zakat_from": "NP"})
    assert logged_in.get("/api/taxes").get_json()["config"]["taxRate"] == 10


def test_account_change_and_relogin(logged_in) -> None:
    resp = logged_in.post("/save/account", data={
        "display_name": "Karim", "username": "karim",
        "current_password": "wrong", "new_password": "secret1", "confirm_password": "secret1",
    })
    assert "Current%20password%20is%20incorrect" in resp.headers["Location"]

    logged_in.post("/save/account", data={
        "display_name": "Karim", "username": "karim",
        "current_password": "admin123", "new_password": "secret1", "confirm_password": "secret1",
    })
    logged_in.get("/logout")
    assert b"Invalid credentials" in logged_in.post("/login", data={"username": "admin", "password": "admin123"}).data
    resp = logged_in.post("/login", data={"username": "karim", "password": "secret1"})
    assert resp.headers["Location"].endswith("/")


def test_backup_export_import_and_reset(logged_in, data_path) -> None:
    resp = logged_in.get("/api/export")
    assert "waali-gas-backup-" in resp.headers["Content-Disposition"]
    exported = json.loads(resp.data)
    assert exported["app.activation.valid"] == "true"

    exported["gs.lang"] = json.dumps("fr")
    upload = {"backup_file": (io.BytesIO(json.dumps(exported).encode("utf-8")), "backup.json")}
    resp = logged_in.post("/import/backup", data=upload, content_type="multipart/form-data")
    assert "Backup%20imported" in resp.headers["Location"]
    assert "Paramètres".encode("utf-8") in logged_in.get("/settings").data

    bad = {"backup_file": (io.BytesIO(b"[1, 2]"), "broken.json")}
    resp = logged_in.post("/import/backup", data=bad, content_type="multipart/form-data")
    assert "Invalid%20backup%20file" in resp.headers["Location"]

    assert logged_in.post("/api/reset").get_json()["ok"] is True
    assert not data_path.exists()
    assert logged_in.get("/").headers["Location"].endswith("/activate")


def test_preferences_switch_theme(logged_in) -> None:
    body = logged_in.post("/api/preferences", json={"theme": "dark", "lang": "xx"}).get_json()
    assert body == {"ok": True, "theme": "dark", "lang": "en"}
    assert b'class="dark"' in logged_in.get("/").data


def test_demo_mode_blocks_writes(tmp_path) -> None:
    app = create_app(data_path=tmp_path / "demo.json", workbook_path=tmp_path / "demo.xlsx",
                     demo_mode=True, secret_key="test")
    client = app.test_client()
    client.post("/login", data={"username": "admin", "password": "admin123"})

    assert client.get("/").status_code == 200
    resp = client.post("/save/expense", data={"name": "x", "amount": "5"})
    assert "Demo" in resp.headers["Location"]
    assert client.post("/api/reset").status_code == 403
