from __future__ import annotations

import pytest

import station_manager as sm


def _day_with_es1_sale() -> dict:
    """ES 1 moved from 100 to 150: 50 L at the ES Tank A price."""
    return {
        sm.K_READINGS: {"es1": {"prev": 100}},
        sm.K_PUMPS_TODAY: {"es1": "150"},
    }


def test_parse_amount_accepts_comma_and_falls_back_to_zero() -> None:
    assert sm.parse_amount("12,5") == 12.5
    assert sm.parse_amount(" 1 000 ") == 1000.0
    assert sm.parse_amount("abc") == 0.0
    assert sm.parse_amount(None) == 0.0
    assert sm.parse_amount("inf") == 0.0
    assert sm.parse_amount(True) == 0.0


def test_parse_count_keeps_digits_only() -> None:
    assert sm.parse_count("1 2") == 12
    assert sm.parse_count("-3") == 3
    assert sm.parse_count("") == 0
    assert sm.parse_count(50.0) == 50


def test_pump_liters_never_negative() -> None:
    data = {sm.K_READINGS: {"es1": {"prev": 500}}, sm.K_PUMPS_TODAY: {"es1": "400"}}
    rows = sm.compute_pump_rows(data)["rows"]
    es1 = next(r for r in rows if r["pump"]["id"] == "es1")
    assert es1["liters"] == 0


def test_pump_profit_uses_assigned_tank_prices() -> None:
    data = _day_with_es1_sale()
    data[sm.K_TANKS] = [dict(t, price=50, profitPerL=4) if t["id"] == "esA" else t for t in sm.DEFAULT_TANKS]
    pumps = sm.compute_pump_rows(data)
    es1 = next(r for r in pumps["rows"] if r["pump"]["id"] == "es1")
    assert es1["liters"] == 50
    assert es1["tProf"] == 2500
    assert es1["nProf"] == 200
    assert pumps["by_type"]["ES"] == 50
    assert pumps["totals"]["liters"] == 50


def test_unassigned_pump_falls_back_to_pump_prices() -> None:
    data = _day_with_es1_sale()
    data[sm.K_ASSIGNMENTS] = {**sm.DEFAULT_ASSIGNMENTS, "es1": None}
    es1 = next(r for r in sm.compute_pump_rows(data)["rows"] if r["pump"]["id"] == "es1")
    assert es1["tank"] is None
    assert es1["tProf"] == pytest.approx(50 * 45.62)


def test_oil_and_gas_bottles() -> None:
    data = {
        sm.K_OIL: {"prev": 10, "today": "25", "directLiters": "5", "bottles": "3", "bottlePrice": 650, "bottleProfit": 90},
        sm.K_GAZB: {"bottles": "4", "price": 200, "profit": 23.5, "stock": 10},
    }
    oil = sm.compute_oil(data)
    assert oil["liters"] == 20
    assert oil["bottles_tProf"] == 1950
    assert oil["bottles_nProf"] == 270
    gazb = sm.compute_gazb(data)
    assert gazb["tProf"] == 800
    assert gazb["nProf"] == 94
    assert gazb["left_now"] == 6


def test_store_rows_skip_items_without_stock() -> None:
    data = {
        sm.K_STORE_ITEMS: [
            {"id": "i1", "name": "Water 1.5L", "price": 80, "profit": 15, "stock": 10},
            {"id": "i2", "name": "Wipers", "price": 700, "profit": 120, "stock": 0},
        ],
        sm.K_STORE_LEFT: {"i1": "7"},
    }
    store = sm.compute_store_rows(data)
    assert [r["item"]["id"] for r in store["rows"]] == ["i1"]
    assert store["rows"][0]["sold"] == 3
    assert store["totals"]["tProf"] == 240
    assert store["totals"]["nProf"] == 45


def test_store_row_without_left_input_sells_nothing() -> None:
    data = {sm.K_STORE_ITEMS: [{"id": "i1", "name": "Snacks", "price": 120, "profit": 30, "stock": 4}]}
    row = sm.compute_store_rows(data)["rows"][0]
    assert row["sold"] == 0
    assert row["today_left"] == 4


def test_daily_summary_and_cashier_closing() -> None:
    data = _day_with_es1_sale()
    data[sm.K_TANKS] = [dict(t, price=50, profitPerL=4) if t["id"] == "esA" else t for t in sm.DEFAULT_TANKS]
    data[sm.K_STARTING_MONEY] = 1000
    data[sm.K_CREDITS_TODAY] = 300
    data[sm.K_PAID_TODAY] = 20
    data[sm.K_CLOSING_ACTUAL] = "3210"
    sm.add_expense(data, "Electricity bill", "Electricity", 80, "TP")
    sm.add_expense(data, "Fine", "Fine", 10, "NP")

    s = sm.compute_daily_summary(data, "2025-05-01")
    assert s["overall"] == {"tProf": 2500, "nProf": 200}
    assert s["combined"]["tProf"] == 3520
    assert s["final"] == {"tProf": 3140, "nProf": 190}
    assert s["display_tp"] == 3440
    assert s["adjusted_tp"] == 3140
    assert not s["is_fixed"]

    c = s["closing"]
    assert c["expected_sales_cash"] == 2200
    assert c["expected"] == 3220
    assert c["diff"] == -10
    assert c["status"] == "short"


def test_cashier_closing_overrides() -> None:
    data = {sm.K_STARTING_MONEY: 500, sm.K_CLOSING_ACTUAL: "1600"}
    c = sm.compute_cashier_closing(data, 1000, paid_override="100", new_credits_override="0")
    assert c["expected"] == 1600
    assert c["status"] == "ok"


def test_frozen_snapshot_replaces_display_totals() -> None:
    data = _day_with_es1_sale()
    data[sm.K_FIXED_TP] = 999.5
    data[sm.K_FIXED_NP] = 12
    data[sm.K_CREDITS_TODAY] = 100
    s = sm.compute_daily_summary(data)
    assert s["is_fixed"]
    assert s["display_tp"] == 999.5
    assert s["adjusted_tp"] == 899.5


def test_validate_closing_books_difference_on_cashier() -> None:
    data = {sm.K_STARTING_MONEY: 100}
    closing, msg = sm.validate_closing(data, cashier_id="w1", actual="90", day="2025-05-01")
    assert closing["diff"] == -10
    assert sm.get_workers(data)[0]["balance"] == -10
    assert data[sm.K_DAY_CLOSED] == "2025-05-01"
    assert "cashier" in msg


def test_validate_closing_without_difference_carries_over() -> None:
    data = {sm.K_STARTING_MONEY: 100}
    _, msg = sm.validate_closing(data, actual="100", day="2025-05-01")
    assert msg.startswith("Validated")
    assert data[sm.K_STARTING_MONEY] == 100


def test_save_day_moves_readings_and_appends_history() -> None:
    data = _day_with_es1_sale()
    data[sm.K_STORE_ITEMS] = [{"id": "i1", "name": "Water 1.5L", "price": 80, "profit": 15, "stock": 10}]
    data[sm.K_STORE_LEFT] = {"i1": "7"}
    data[sm.K_GAZB] = {"bottles": "4", "price": 200, "profit": 23.5, "stock": 10, "deduct": True}
    data[sm.K_FIXED_TP] = 1.0

    entry = sm.save_day(data, "2025-05-01")

    assert entry["date"] == "2025-05-01"
    assert entry["totals"]["liters"] == 50
    assert data[sm.K_HISTORY_DAILY] == [entry]
    assert data[sm.K_READINGS]["es1"] == {"prev": 150}
    assert data[sm.K_PUMPS_TODAY] == {}
    es_a = next(t for t in data[sm.K_TANKS] if t["id"] == "esA")
    assert es_a["current"] == 19950
    assert es_a["history"][-1]["type"] == "deduct"
    assert data[sm.K_STORE_ITEMS][0]["stock"] == 7
    assert data[sm.K_GAZB]["stock"] == 6
    assert data[sm.K_GAZB]["bottles"] == ""
    assert data[sm.K_DAY_CLOSED] == "2025-05-01"
    assert data[sm.K_FIXED_TP] is None


def test_save_day_twice_appends_two_entries() -> None:
    data = _day_with_es1_sale()
    sm.save_day(data, "2025-05-01")
    sm.save_day(data, "2025-05-01")
    assert len(data[sm.K_HISTORY_DAILY]) == 2


def test_roll_over_day_clears_credit_totals() -> None:
    data = {sm.K_DAY_CLOSED: "2025-05-01", sm.K_CREDITS_TODAY: 100, sm.K_PAID_TODAY: 40, sm.K_FIXED_TP: 10}
    assert not sm.roll_over_day(data, "2025-05-01")
    assert sm.roll_over_day(data, "2025-05-02")
    assert data[sm.K_CREDITS_TODAY] == 0
    assert data[sm.K_PAID_TODAY] == 0
    assert data[sm.K_FIXED_TP] is None


def test_roll_over_day_needs_a_closed_day() -> None:
    assert not sm.roll_over_day({sm.K_CREDITS_TODAY: 100}, "2025-05-02")


def test_roll_over_day_runs_once_per_day() -> None:
    data = {sm.K_DAY_CLOSED: "2025-05-01", sm.K_CREDITS_TODAY: 100}
    assert sm.roll_over_day(data, "2025-05-02")
    data[sm.K_CREDITS_TODAY] = 500
    assert not sm.roll_over_day(data, "2025-05-02")
    assert data[sm.K_CREDITS_TODAY] == 500
    assert sm.roll_over_day(data, "2025-05-03")
    assert data[sm.K_CREDITS_TODAY] == 0


def test_apply_drafts_only_touches_present_fields() -> None:
    data = {sm.K_STARTING_MONEY: 250}
    sm.apply_drafts(data, {"tn_es1": "12,5", "gazb_bottles": "3 bottles"})
    assert data[sm.K_PUMPS_TODAY] == {"es1": "12.5"}
    assert data[sm.K_GAZB]["bottles"] == "3"
    assert data[sm.K_STARTING_MONEY] == 250


def test_refill_tank_logs_fill_then_refill_and_clamps() -> None:
    data = {}
    tank = sm.add_tank(data)
    sm.refill_tank(data, tank["id"], "500", facture_no="F-12", day="2025-05-01")
    sm.refill_tank(data, tank["id"], 20000, day="2025-05-02")
    assert [h["type"] for h in tank["history"]] == ["fill", "refill"]
    assert tank["history"][0]["factureNo"] == "F-12"
    assert tank["current"] == tank["capacity"]
    assert [h["date"] for h in sm.tank_history(data, "2025-05-02")] == ["2025-05-02"]


def test_refill_unknown_tank_raises_key_error() -> None:
    with pytest.raises(KeyError):
        sm.refill_tank({}, "missing", 10)


def test_assign_pump_requires_matching_fuel_type() -> None:
    data = {}
    assert not sm.assign_pump(data, "es1", "gzA")
    assert sm.assign_pump(data, "es1", "esB")
    assert sm.get_assignments(data)["es1"] == "esB"
    assert sm.assign_pump(data, "es1", None)
    assert sm.get_assignments(data)["es1"] is None
    with pytest.raises(KeyError):
        sm.assign_pump(data, "es9", "esA")


def test_rename_pump_and_previous_reading() -> None:
    data = {}
    sm.rename_pump(data, "gaz1", "Front GaZ")
    sm.set_previous_reading(data, "gaz1", "1200,5")
    pump = next(p for p in sm.get_pumps(data) if p["id"] == "gaz1")
    assert pump["name"] == "Front GaZ"
    assert data[sm.K_READINGS]["gaz1"] == {"prev": 1200.5}


def test_seed_store_items_merges_by_name() -> None:
    data = {sm.K_STORE_ITEMS: [{"id": "x", "name": "water 1.5l", "price": 90, "profit": 20, "stock": 3}]}
    items = sm.seed_store_items(data)
    assert len(items) == len(sm.DEFAULT_STORE_CATALOGUE)
    assert items[0]["price"] == 90


def test_store_sales_and_save_store_day() -> None:
    data = {sm.K_STORE_ITEMS: [{"id": "i1", "name": "Snacks", "price": 120, "profit": 30, "stock": 5}]}
    entry = sm.save_store_day(data, {"i1": "2"}, day="2025-05-01")
    assert entry == {"date": "2025-05-01", "totals": {"tProf": 240, "nProf": 60}}
    assert data[sm.K_HISTORY_STORE] == [entry]


def test_bottle_setup_and_refill() -> None:
    data = {}
    sm.update_bottle_setup(data, "oil", stock="5", price="650", profit="90", deduct=False)
    assert sm.refill_bottles(data, "oil", "3") == 8
    assert data[sm.K_OIL]["deductBottles"] is False
    with pytest.raises(KeyError):
        sm.update_bottle_setup(data, "water", stock=1)


def test_apply_settings_defaults_copies_bottle_prices() -> None:
    data = {sm.K_SETTINGS: {"gazbDefaults": {"price": 250, "profit": 30, "deduct": False}}}
    sm.apply_settings_defaults(data)
    assert data[sm.K_GAZB]["price"] == 250
    assert data[sm.K_GAZB]["deduct"] is False


def test_add_expense_rules() -> None:
    data = {}
    assert sm.add_expense(data, "", "Other", 10) is None
    assert sm.add_expense(data, "Repair", "Maintenance", "0") is None
    worker = sm.add_expense(data, "Pay", "Worker payment", "100.456", "TP", worker_id="w1")
    assert worker["deductFrom"] == "NP"
    assert worker["amount"] == 100.46
    assert worker["workerId"] == "w1"
    odd = sm.add_expense(data, "Misc", "Unknown type", 5, "XX")
    assert odd["type"] == "Other"
    assert odd["deductFrom"] == "NP"
    assert sm.remove_expense(data, odd["id"])
    assert not sm.remove_expense(data, odd["id"])
