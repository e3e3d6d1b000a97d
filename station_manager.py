"""
Station Manager - daily bookkeeping for the fuel station.

Pump meter readings (P.N = previous number, T.N = today's number), tank stock,
oil and gas bottle sales, store products, other expenses, the cashier closing
check and Save Day. Every function takes the store namespace dict (see
station_store.py), reads the keys it needs and mutates them in place; callers
persist with save_store().
"""

import math
import re
import uuid
from datetime import date
from typing import Optional

from station_store import get_value, set_value

# Store keys
K_PUMP_NAMES = "gs.pumps.names"
K_READINGS = "gs.pumps.readings"
K_PUMPS_TODAY = "gs.pumps.today"
K_TANKS = "gs.tanks"
K_ASSIGNMENTS = "gs.assignments"
K_OIL = "gs.oil"
K_GAZB = "gs.gazb"
K_STORE_ITEMS = "gs.store.items"
K_STORE_LEFT = "gs.store.left.today"
K_STORE_SOLD = "gs.store.sold.today"
K_EXPENSES = "gs.other.itemsToday"
K_WORKERS = "gs.workers.list"
K_CASHIER_ID = "gs.cashier.workerId"
K_STARTING_MONEY = "gs.cashier.change.today"
K_CLOSING_ACTUAL = "gs.cashier.close.actual"
K_CREDIT_CLIENTS = "gs.credits.clients"
K_CREDIT_LEDGER = "gs.credits.ledger"
K_CREDITS_TODAY = "gs.credits.today"
K_PAID_TODAY = "gs.credits.paid.today"
K_FIXED_TP = "gs.overall.fixed.tp"
K_FIXED_NP = "gs.overall.fixed.np"
K_DAY_CLOSED = "gs.day.closed"
K_DAY_ROLLED = "gs.day.rolled"
K_HISTORY_DAILY = "gs.history.daily"
K_HISTORY_STORE = "gs.history.store"
K_SETTINGS = "gs.settings"

FUEL_TYPES = ("ES", "GAZ", "GPL", "OIL")
EXPENSE_TYPES = ("Electricity", "Fine", "Maintenance", "Worker payment", "Other")
DEDUCT_TARGETS = ("TP", "NP")

DEFAULT_PUMPS = [
    {"id": "es1", "name": "ES 1", "type": "ES", "price": 45.62, "profitPerL": 3.18},
    {"id": "es2", "name": "ES 2", "type": "ES", "price": 45.62, "profitPerL": 3.18},
    {"id": "gaz1", "name": "GaZ 1", "type": "GAZ", "price": 45.62, "profitPerL": 3.18},
    {"id": "gaz2", "name": "GaZ 2", "type": "GAZ", "price": 45.62, "profitPerL": 3.18},
    {"id": "gaz3", "name": "GaZ 3", "type": "GAZ", "price": 45.62, "profitPerL": 3.18},
    {"id": "gaz4", "name": "GaZ 4", "type": "GAZ", "price": 45.62, "profitPerL": 3.18},
    {"id": "gaz5", "name": "GaZ 5", "type": "GAZ", "price": 45.62, "profitPerL": 3.18},
    {"id": "gpl1", "name": "GPL 1", "type": "GPL", "price": 45.62, "profitPerL": 3.18},
]


def _tank(tank_id, name, fuel_type, capacity, price=45.62, profit=3.18):
    return {"id": tank_id, "name": name, "fuelType": fuel_type, "capacity": capacity,
            "current": capacity, "price": price, "profitPerL": profit, "history": []}


DEFAULT_TANKS = [
    _tank("esA", "ES Tank A", "ES", 20000),
    _tank("esB", "ES Tank B", "ES", 20000),
    _tank("gzA", "GAZ Tank A", "GAZ", 30000),
    _tank("gzB", "GAZ Tank B", "GAZ", 30000),
    _tank("gpl", "GPL Tank", "GPL", 15000),
    _tank("oil", "Oil Tank", "OIL", 10000, price=0, profit=0),
]

# pumpId -> tankId. 3 GAZ pumps share tank A, 2 share tank B.
DEFAULT_ASSIGNMENTS = {
    "gaz1": "gzA",
    "gaz2": "gzA",
    "gaz3": "gzA",
    "gaz4": "gzB",
    "gaz5": "gzB",
    "es1": "esA",
    "es2": "esB",
    "gpl1": "gpl",
}

DEFAULT_OIL = {
    "prev": 0,
    "today": "",
    "directLiters": "",
    "bottles": "",
    "bottlePrice": 0,
    "bottleProfit": 0,
    "deductLiters": True,
    "deductBottles": True,
    "bottlesStock": 0,
}

DEFAULT_GAZB = {"bottles": "", "price": 200, "profit": 23.5, "deduct": True, "stock": 0}

DEFAULT_WORKERS = [
    {"id": "w1", "name": "Worker A", "balance": 0, "salary": 0},
    {"id": "w2", "name": "Worker B", "balance": 0, "salary": 0},
]

DEFAULT_SETTINGS = {
    "businessName": "",
    "currency": "DZD",
    "gazbDefaults": {"price": 200, "profit": 23.5, "deduct": True},
    "oilBottleDefaults": {"price": 0, "profit": 0, "deduct": True},
}

# (name, selling price per unit, net profit per unit)
DEFAULT_STORE_CATALOGUE = [
    ("Water 1.5L", 80, 15), ("Wipers", 700, 120), ("Snacks", 120, 30),
    ("H Gaz 1L V", 500, 0), ("H 10 V L", 500, 0), ("H 140 V", 0, 0), ("H 10 V", 0, 0),
    ("HTD V", 550, 0), ("H 10 W40 1L", 1100, 0), ("HTD 5L", 3000, 0), ("H10W40 4L", 4400, 0),
    ("H5W 40 5L", 4500, 0), ("GALSIOL 5L", 850, 0), ("GLASIOL 2L", 480, 0),
    ("Lave Glass 2L", 300, 0), ("Tondeuer Naftal", 950, 0), ("Grass 1KG", 500, 0),
    ("Acide", 220, 0), ("Eau Disstile", 100, 0), ("H 1L 75W80", 1200, 0), ("Fut", 1200, 0),
]


def today_key() -> str:
    return date.today().isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def parse_amount(value) -> float:
    """Numeric coercion for form fields: accepts ',' as decimal separator, falls back to 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        n = float(value)
    else:
        s = str(value).strip().replace(" ", "").replace(",", ".")
        if not s:
            return 0.0
        try:
            n = float(s)
        except ValueError:
            return 0.0
    return n if math.isfinite(n) else 0.0


def parse_count(value) -> int:
    """Whole-unit counts (bottles, items): keep digits only."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value)) if math.isfinite(value) else 0
    digits = re.sub(r"[^0-9]", "", str(value if value is not None else ""))
    return int(digits) if digits else 0


def has_count_input(value) -> bool:
    return bool(re.sub(r"[^0-9]", "", str(value if value is not None else "")))


def _r2(x: float) -> float:
    return round(x + 0.0, 2)


# ── Lookups ──

def get_pumps(data: dict) -> list[dict]:
    """Default pumps with the custom names saved from the Tanks page."""
    names = get_value(data, K_PUMP_NAMES, {})
    return [{**p, "name": names.get(p["id"]) or p["name"]} for p in DEFAULT_PUMPS]


def get_tanks(data: dict) -> list[dict]:
    tanks = get_value(data, K_TANKS, DEFAULT_TANKS)
    data[K_TANKS] = tanks
    return tanks


def get_assignments(data: dict) -> dict:
    assignments = get_value(data, K_ASSIGNMENTS, DEFAULT_ASSIGNMENTS)
    data[K_ASSIGNMENTS] = assignments
    return assignments


def get_oil(data: dict) -> dict:
    oil = {**DEFAULT_OIL, **get_value(data, K_OIL, {})}
    data[K_OIL] = oil
    return oil


def get_gazb(data: dict) -> dict:
    gazb = {**DEFAULT_GAZB, **get_value(data, K_GAZB, {})}
    data[K_GAZB] = gazb
    return gazb


def get_workers(data: dict) -> list[dict]:
    workers = get_value(data, K_WORKERS, DEFAULT_WORKERS)
    data[K_WORKERS] = workers
    return workers


def get_store_items(data: dict) -> list[dict]:
    return get_value(data, K_STORE_ITEMS, [])


def get_settings(data: dict) -> dict:
    saved = get_value(data, K_SETTINGS, {})
    settings = {**DEFAULT_SETTINGS, **saved}
    for k in ("gazbDefaults", "oilBottleDefaults"):
        settings[k] = {**DEFAULT_SETTINGS[k], **(saved.get(k) or {})}
    return settings


def _oil_tank(tanks: list[dict]) -> Optional[dict]:
    return next((t for t in tanks if t.get("fuelType") == "OIL"), None)


# ── Pumps / oil / gas bottles / store ──

def compute_pump_rows(data: dict, today_inputs: Optional[dict] = None) -> dict:
    """
    Liters sold per pump = max(0, T.N - P.N), priced with the assigned tank's
    selling price and net profit per liter (pump defaults when unassigned).
    """
    readings = get_value(data, K_READINGS, {})
    today = today_inputs if today_inputs is not None else get_value(data, K_PUMPS_TODAY, {})
    tank_by_id = {t["id"]: t for t in get_tanks(data)}
    assignments = get_assignments(data)

    rows = []
    totals = {"liters": 0.0, "tProf": 0.0, "nProf": 0.0}
    by_type = {}
    for p in get_pumps(data):
        prev = parse_amount((readings.get(p["id"]) or {}).get("prev", 0))
        raw = today.get(p["id"], "")
        tn = parse_amount(raw)
        liters = max(0.0, tn - prev)
        tank = tank_by_id.get(assignments.get(p["id"]) or "")
        price = parse_amount(tank.get("price")) if tank else p["price"]
        profit_per_l = parse_amount(tank.get("profitPerL")) if tank else p["profitPerL"]
        row = {
            "pump": p,
            "prev": prev,
            "today": raw or "",
            "tn": tn,
            "liters": liters,
            "tProf": liters * price,
            "nProf": liters * profit_per_l,
            "tank": tank,
        }
        rows.append(row)
        totals["liters"] += liters
        totals["tProf"] += row["tProf"]
        totals["nProf"] += row["nProf"]
        by_type[p["type"]] = by_type.get(p["type"], 0.0) + liters
    return {"rows": rows, "totals": totals, "by_type": by_type}


def compute_oil(data: dict) -> dict:
    """Oil sold by meter reading plus direct liters, and oil bottles sold."""
    oil = get_oil(data)
    oil_tank = _oil_tank(get_tanks(data))
    by_readings = max(0.0, parse_amount(oil.get("today")) - parse_amount(oil.get("prev")))
    direct = max(0.0, parse_amount(oil.get("directLiters")))
    liters = by_readings + direct
    price = parse_amount(oil_tank.get("price")) if oil_tank else 0.0
    profit_per_l = parse_amount(oil_tank.get("profitPerL")) if oil_tank else 0.0
    bottles = parse_count(oil.get("bottles"))
    return {
        "liters_by_readings": by_readings,
        "liters_direct": direct,
        "liters": liters,
        "tProf": liters * price,
        "nProf": liters * profit_per_l,
        "bottles_sold": bottles,
        "bottles_tProf": bottles * parse_amount(oil.get("bottlePrice")),
        "bottles_nProf": bottles * parse_amount(oil.get("bottleProfit")),
        "tank": oil_tank,
    }


def compute_gazb(data: dict) -> dict:
    gazb = get_gazb(data)
    sold = parse_count(gazb.get("bottles"))
    stock = parse_count(gazb.get("stock"))
    return {
        "sold": sold,
        "tProf": sold * parse_amount(gazb.get("price")),
        "nProf": sold * parse_amount(gazb.get("profit")),
        "stock": stock,
        "left_now": max(0, stock - sold),
    }


def compute_store_rows(data: dict, left_inputs: Optional[dict] = None) -> dict:
    """
    Products sold like fuel: Prev is the stock on hand, the cashier enters what
    is left today and Sold = Prev - Left. Items with no stock are hidden.
    """
    left = left_inputs if left_inputs is not None else get_value(data, K_STORE_LEFT, {})
    rows = []
    totals = {"tProf": 0.0, "nProf": 0.0}
    for it in get_store_items(data):
        prev = parse_count(it.get("stock"))
        if prev <= 0:
            continue
        raw = left.get(it["id"], "")
        has_input = has_count_input(raw)
        today_left = max(0, parse_count(raw)) if has_input else prev
        sold = max(0, prev - today_left) if has_input else 0
        row = {
            "item": it,
            "prev": prev,
            "left_raw": raw or "",
            "today_left": today_left,
            "sold": sold,
            "tProf": sold * parse_amount(it.get("price")),
            "nProf": sold * parse_amount(it.get("profit")),
        }
        rows.append(row)
        totals["tProf"] += row["tProf"]
        totals["nProf"] += row["nProf"]
    return {"rows": rows, "totals": totals}


# ── Daily summary ──

def _today_credit_lines(data: dict, day: str, kind: str) -> list[dict]:
    ledger = get_value(data, K_CREDIT_LEDGER, [])
    return [tx for tx in ledger if tx.get("date") == day and tx.get("kind") == kind]


def compute_cashier_closing(data: dict, today_sales: float, paid_override="",
                            new_credits_override="") -> dict:
    """
    Expected cash = starting money + (today's sales - new credit sales) + credits paid.
    Difference = actual cash counted - expected; status ok / short / extra.
    """
    starting = parse_amount(get_value(data, K_STARTING_MONEY, 0))
    paid_today = parse_amount(get_value(data, K_PAID_TODAY, 0))
    credits_today = parse_amount(get_value(data, K_CREDITS_TODAY, 0))
    credits_paid = parse_amount(paid_override) if str(paid_override or "").strip() else paid_today
    new_credits = parse_amount(new_credits_override) if str(new_credits_override or "").strip() else credits_today
    expected_sales_cash = max(0.0, today_sales - new_credits)
    expected = starting + expected_sales_cash + credits_paid
    actual = parse_amount(get_value(data, K_CLOSING_ACTUAL, ""))
    diff = round(actual - expected, 2) + 0.0
    status = "ok" if diff == 0 else ("short" if diff < 0 else "extra")
    return {
        "starting_money": starting,
        "today_sales": today_sales,
        "new_credits": new_credits,
        "credits_paid": credits_paid,
        "expected_sales_cash": expected_sales_cash,
        "expected": expected,
        "actual": actual,
        "diff": diff,
        "status": status,
        "cashier_id": get_value(data, K_CASHIER_ID, ""),
    }


def compute_daily_summary(data: dict, day: Optional[str] = None, paid_override="",
                          new_credits_override="") -> dict:
    """
    Everything the Main page shows, recomputed from the stored drafts.

    overall   = pumps + oil liters + oil bottles + gas bottles + store products
    combined  = overall TP + paid credits + starting money (NP untouched)
    final     = combined - expenses - credit sales (saved to history on Save Day)
    display   = combined - expenses (Overall card; frozen on the first credit sale)
    """
    day = day or today_key()
    pumps = compute_pump_rows(data)
    oil = compute_oil(data)
    gazb = compute_gazb(data)
    store = compute_store_rows(data)

    overall = {
        "tProf": pumps["totals"]["tProf"] + oil["tProf"] + oil["bottles_tProf"] + gazb["tProf"] + store["totals"]["tProf"],
        "nProf": pumps["totals"]["nProf"] + oil["nProf"] + oil["bottles_nProf"] + gazb["nProf"] + store["totals"]["nProf"],
    }

    expenses = get_value(data, K_EXPENSES, [])
    tp_adj = sum(parse_amount(e.get("amount")) for e in expenses if e.get("deductFrom") == "TP")
    np_adj = sum(parse_amount(e.get("amount")) for e in expenses if e.get("deductFrom") == "NP")

    paid_credits = parse_amount(get_value(data, K_PAID_TODAY, 0))
    credit_sales = parse_amount(get_value(data, K_CREDITS_TODAY, 0))
    starting = parse_amount(get_value(data, K_STARTING_MONEY, 0))

    combined = {"tProf": overall["tProf"] + paid_credits + starting, "nProf": overall["nProf"]}
    final = {
        "tProf": max(0.0, combined["tProf"] - tp_adj - credit_sales),
        "nProf": max(0.0, combined["nProf"] - np_adj),
    }
    display = {
        "tProf": max(0.0, combined["tProf"] - tp_adj),
        "nProf": max(0.0, combined["nProf"] - np_adj),
    }
    fixed_tp = get_value(data, K_FIXED_TP, None)
    fixed_np = get_value(data, K_FIXED_NP, None)
    display_tp = parse_amount(fixed_tp) if fixed_tp is not None else display["tProf"]
    display_np = parse_amount(fixed_np) if fixed_np is not None else display["nProf"]

    day_closed = get_value(data, K_DAY_CLOSED, "") == day
    summary_tp = []
    if not day_closed:
        for tx in _today_credit_lines(data, day, "payment"):
            summary_tp.append(("+", f"Payment from {tx.get('customer') or 'Unknown'}", parse_amount(tx.get("amount"))))
        for tx in _today_credit_lines(data, day, "sale"):
            summary_tp.append(("-", f"Credit sale to {tx.get('customer') or 'Unknown'}", parse_amount(tx.get("amount"))))
    if starting > 0:
        summary_tp.append(("+", "Starting money", starting))
    for e in expenses:
        line = ("-", f"{e.get('name', '')} ({e.get('type', 'Other')})", parse_amount(e.get("amount")))
        if e.get("deductFrom") == "TP":
            summary_tp.append(line)
    summary_np = [("-", f"{e.get('name', '')} ({e.get('type', 'Other')})", parse_amount(e.get("amount")))
                  for e in expenses if e.get("deductFrom") == "NP"]

    return {
        "date": day,
        "pumps": pumps,
        "oil": oil,
        "gazb": gazb,
        "store": store,
        "overall": overall,
        "expenses": expenses,
        "tp_adj": tp_adj,
        "np_adj": np_adj,
        "paid_credits": paid_credits,
        "credit_sales": credit_sales,
        "starting_money": starting,
        "combined": combined,
        "final": final,
        "display": display,
        "display_tp": display_tp,
        "display_np": display_np,
        "is_fixed": fixed_tp is not None,
        "adjusted_tp": max(0.0, display_tp - credit_sales),
        "summary_tp": summary_tp,
        "summary_np": summary_np,
        "day_closed": day_closed,
        "closing": compute_cashier_closing(data, overall["tProf"], paid_override, new_credits_override),
    }


def apply_drafts(data: dict, form) -> None:
    """
    Store the Main page's in-progress inputs. Only fields present in the form
    are touched: tn_<pumpId>, left_<itemId>, oil_today, oil_direct, oil_bottles,
    gazb_bottles, starting_money, closing_actual, cashier_id.
    """
    today = get_value(data, K_PUMPS_TODAY, {})
    for p in DEFAULT_PUMPS:
        key = f"tn_{p['id']}"
        if key in form:
            today[p["id"]] = str(form.get(key) or "").replace(",", ".").strip()
    data[K_PUMPS_TODAY] = today

    left = get_value(data, K_STORE_LEFT, {})
    for it in get_store_items(data):
        key = f"left_{it['id']}"
        if key in form:
            left[it["id"]] = str(form.get(key) or "").strip()
    data[K_STORE_LEFT] = left

    oil = get_oil(data)
    for field, key in (("today", "oil_today"), ("directLiters", "oil_direct")):
        if key in form:
            oil[field] = str(form.get(key) or "").replace(",", ".").strip()
    if "oil_bottles" in form:
        oil["bottles"] = re.sub(r"[^0-9]", "", str(form.get("oil_bottles") or ""))

    gazb = get_gazb(data)
    if "gazb_bottles" in form:
        gazb["bottles"] = re.sub(r"[^0-9]", "", str(form.get("gazb_bottles") or ""))

    if "starting_money" in form:
        set_value(data, K_STARTING_MONEY, parse_amount(form.get("starting_money")))
    if "closing_actual" in form:
        set_value(data, K_CLOSING_ACTUAL, str(form.get("closing_actual") or "").strip())
    if "cashier_id" in form:
        set_value(data, K_CASHIER_ID, str(form.get("cashier_id") or ""))


# ── Save Day / rollover / closing ──

def _deduct_from_tank(tanks: list[dict], tank_id: Optional[str], liters: float, day: str, note: str) -> None:
    if not tank_id or liters <= 0:
        return
    tank = next((t for t in tanks if t.get("id") == tank_id), None)
    if tank is None:
        return
    tank["current"] = max(0.0, parse_amount(tank.get("current")) - liters)
    tank.setdefault("history", []).append(
        {"date": day, "type": "deduct", "liters": _r2(liters), "note": note}
    )


def save_day(data: dict, day: Optional[str] = None) -> dict:
    """
    Close the day: deduct sold liters from the tanks, roll stock forward,
    move today's readings to P.N and append one entry to the daily history.
    Starting money carries over to the next day.
    """
    day = day or today_key()
    summary = compute_daily_summary(data, day)
    pumps, oil_calc, gazb_calc = summary["pumps"], summary["oil"], summary["gazb"]

    # 1) Tanks
    tanks = get_tanks(data)
    for r in pumps["rows"]:
        if r["tank"] and r["liters"] > 0:
            _deduct_from_tank(tanks, r["tank"]["id"], r["liters"], day, r["pump"]["name"])
    oil = get_oil(data)
    if oil_calc["tank"] and oil.get("deductLiters"):
        _deduct_from_tank(tanks, oil_calc["tank"]["id"], oil_calc["liters"], day, "Oil liters")

    # 2) Store stock from Today Left
    apply_store_sales(data)

    # 3) Oil and gas bottle stock, oil P.N
    if oil.get("deductBottles"):
        oil["bottlesStock"] = max(0, parse_count(oil.get("bottlesStock")) - oil_calc["bottles_sold"])
    oil_today = parse_amount(oil.get("today"))
    if oil_today:
        oil["prev"] = oil_today
    oil.update({"today": "", "bottles": "", "directLiters": ""})
    gazb = get_gazb(data)
    if gazb.get("deduct"):
        gazb["stock"] = max(0, parse_count(gazb.get("stock")) - gazb_calc["sold"])
    gazb["bottles"] = ""

    # 4) Pump readings: T.N becomes tomorrow's P.N
    readings = get_value(data, K_READINGS, {})
    for r in pumps["rows"]:
        if r["tn"] > 0:
            readings[r["pump"]["id"]] = {"prev": r["tn"]}
    data[K_READINGS] = readings
    data[K_PUMPS_TODAY] = {}

    # 5) History
    entry = {
        "date": day,
        "totals": {
            "liters": _r2(pumps["totals"]["liters"] + oil_calc["liters"]),
            "tProf": _r2(summary["final"]["tProf"]),
            "nProf": _r2(summary["final"]["nProf"]),
        },
    }
    history = get_value(data, K_HISTORY_DAILY, [])
    history.append(entry)
    data[K_HISTORY_DAILY] = history

    set_value(data, K_DAY_CLOSED, day)
    set_value(data, K_FIXED_TP, None)
    set_value(data, K_FIXED_NP, None)
    print(f"[Save Day] {day}: {entry['totals']['liters']:.2f} L, TP {entry['totals']['tProf']:.2f}, NP {entry['totals']['nProf']:.2f}")
    return entry


def roll_over_day(data: dict, day: Optional[str] = None) -> bool:
    """Clear yesterday's credit aggregates once the calendar day has moved past a closed day."""
    day = day or today_key()
    closed = get_value(data, K_DAY_CLOSED, "")
    if not closed or closed == day or get_value(data, K_DAY_ROLLED, "") == day:
        return False
    set_value(data, K_CREDITS_TODAY, 0)
    set_value(data, K_PAID_TODAY, 0)
    set_value(data, K_FIXED_TP, None)
    set_value(data, K_FIXED_NP, None)
    set_value(data, K_DAY_ROLLED, day)
    return True


def validate_closing(data: dict, cashier_id: str = "", actual="", paid_override="",
                     new_credits_override="", day: Optional[str] = None) -> tuple[dict, str]:
    """
    Validate & carry over. A non-zero difference is booked on the selected
    cashier's balance; a zero difference keeps starting money for tomorrow.
    """
    day = day or today_key()
    set_value(data, K_CASHIER_ID, cashier_id or "")
    if actual is not None:
        set_value(data, K_CLOSING_ACTUAL, str(actual).strip())
    summary = compute_daily_summary(data, day, paid_override, new_credits_override)
    closing = summary["closing"]
    diff = closing["diff"]
    if cashier_id and abs(diff) > 0.009:
        for w in get_workers(data):
            if w.get("id") == cashier_id:
                w["balance"] = _r2(parse_amount(w.get("balance")) + diff)
    set_value(data, K_DAY_CLOSED, day)
    if abs(diff) < 0.01:
        return closing, "Validated. Starting Money carried over for tomorrow."
    if cashier_id:
        return closing, "Applied difference to cashier's balance."
    return closing, "Difference exists. Select a cashier to apply difference, or resolve to 0 to carry over."


# ── Tanks ──

def _find(items: list[dict], item_id: str) -> dict:
    for it in items:
        if it.get("id") == item_id:
            return it
    raise KeyError(item_id)


def add_tank(data: dict) -> dict:
    tanks = get_tanks(data)
    tank = {
        "id": new_id(),
        "name": f"Tank {len(tanks) + 1}",
        "fuelType": "ES",
        "capacity": 10000,
        "current": 0,
        "price": 0,
        "profitPerL": 0,
        "history": [],
    }
    tanks.append(tank)
    return tank


def update_tank(data: dict, tank_id: str, **patch) -> dict:
    tank = _find(get_tanks(data), tank_id)
    if "name" in patch:
        tank["name"] = str(patch["name"] or "").strip() or tank["name"]
    if patch.get("fuelType") in FUEL_TYPES:
        tank["fuelType"] = patch["fuelType"]
    for field in ("capacity", "current", "price", "profitPerL"):
        if field in patch:
            tank[field] = parse_amount(patch[field])
    return tank


def refill_tank(data: dict, tank_id: str, liters, facture_no: str = "", note: str = "",
                day: Optional[str] = None) -> dict:
    """Add liters (clamped at capacity). First fill of an empty tank is logged as 'fill'."""
    tank = _find(get_tanks(data), tank_id)
    liters = max(0.0, parse_amount(liters))
    current = parse_amount(tank.get("current"))
    row = {"date": day or today_key(), "type": "fill" if current == 0 else "refill", "liters": liters}
    if note:
        row["note"] = note
    if facture_no:
        row["factureNo"] = facture_no
    tank["current"] = min(parse_amount(tank.get("capacity")), round(current + liters, 2))
    tank.setdefault("history", []).append(row)
    return tank


def rename_pump(data: dict, pump_id: str, name: str) -> None:
    if pump_id not in {p["id"] for p in DEFAULT_PUMPS}:
        raise KeyError(pump_id)
    names = get_value(data, K_PUMP_NAMES, {p["id"]: p["name"] for p in DEFAULT_PUMPS})
    names[pump_id] = name
    data[K_PUMP_NAMES] = names


def assign_pump(data: dict, pump_id: str, tank_id: Optional[str]) -> bool:
    """Point a pump at a tank of the same fuel type, or at none."""
    pump = next((p for p in DEFAULT_PUMPS if p["id"] == pump_id), None)
    if pump is None:
        raise KeyError(pump_id)
    assignments = get_assignments(data)
    if not tank_id:
        assignments[pump_id] = None
        return True
    tank = next((t for t in get_tanks(data) if t.get("id") == tank_id), None)
    if tank is None or tank.get("fuelType") != pump["type"]:
        return False
    assignments[pump_id] = tank_id
    return True


def set_previous_reading(data: dict, pump_id: str, value) -> float:
    if pump_id not in {p["id"] for p in DEFAULT_PUMPS}:
        raise KeyError(pump_id)
    readings = get_value(data, K_READINGS, {})
    readings[pump_id] = {"prev": parse_amount(value)}
    data[K_READINGS] = readings
    return readings[pump_id]["prev"]


def set_oil_previous(data: dict, value) -> float:
    oil = get_oil(data)
    oil["prev"] = parse_amount(value)
    return oil["prev"]


def tank_history(data: dict, date_from: str = "", date_to: str = "") -> list[dict]:
    """All tank movements in range, newest first."""
    rows = [
        {**h, "tankId": t["id"], "tankName": t.get("name", "")}
        for t in get_tanks(data)
        for h in t.get("history", [])
        if (not date_from or h.get("date", "") >= date_from) and (not date_to or h.get("date", "") <= date_to)
    ]
    return sorted(rows, key=lambda h: h.get("date", ""), reverse=True)


# ── Store ──

def seed_store_items(data: dict) -> list[dict]:
    """Merge the default catalogue into the saved items so new products show up."""
    items = get_store_items(data)
    names = {str(i.get("name", "")).strip().lower() for i in items}
    for name, price, profit in DEFAULT_STORE_CATALOGUE:
        if name.strip().lower() not in names:
            items.append({"id": new_id(), "name": name, "price": price, "profit": profit, "stock": 0})
    data[K_STORE_ITEMS] = items
    return items


def add_store_item(data: dict, name: str) -> Optional[dict]:
    name = (name or "").strip()
    if not name:
        return None
    items = get_store_items(data)
    item = {"id": new_id(), "name": name, "price": 0, "profit": 0, "stock": 0}
    items.append(item)
    data[K_STORE_ITEMS] = items
    return item


def update_store_item(data: dict, item_id: str, **patch) -> dict:
    items = get_store_items(data)
    item = _find(items, item_id)
    if "name" in patch:
        item["name"] = str(patch["name"] or "").strip() or item["name"]
    for field in ("price", "profit"):
        if field in patch:
            item[field] = parse_amount(patch[field])
    if "stock" in patch:
        item["stock"] = max(0, parse_count(patch["stock"]))
    data[K_STORE_ITEMS] = items
    return item


def remove_store_item(data: dict, item_id: str) -> bool:
    items = get_store_items(data)
    kept = [i for i in items if i.get("id") != item_id]
    data[K_STORE_ITEMS] = kept
    return len(kept) != len(items)


def store_sales(data: dict, sold: Optional[dict] = None) -> dict:
    """Store page: quantity sold per item priced at TP/NP per unit."""
    sold = sold if sold is not None else get_value(data, K_STORE_SOLD, {})
    rows = []
    totals = {"tProf": 0.0, "nProf": 0.0}
    for it in get_store_items(data):
        q = max(0, parse_count(sold.get(it["id"], "")))
        row = {"item": it, "qty": q, "sold_raw": sold.get(it["id"], ""),
               "tProf": q * parse_amount(it.get("price")), "nProf": q * parse_amount(it.get("profit"))}
        rows.append(row)
        totals["tProf"] += row["tProf"]
        totals["nProf"] += row["nProf"]
    return {"rows": rows, "totals": totals}


def save_store_day(data: dict, sold: Optional[dict] = None, day: Optional[str] = None) -> dict:
    totals = store_sales(data, sold)["totals"]
    entry = {"date": day or today_key(), "totals": {"tProf": _r2(totals["tProf"]), "nProf": _r2(totals["nProf"])}}
    history = get_value(data, K_HISTORY_STORE, [])
    history.append(entry)
    data[K_HISTORY_STORE] = history
    data[K_STORE_SOLD] = {}
    return entry


def apply_store_sales(data: dict, left_inputs: Optional[dict] = None) -> list[dict]:
    """Set each item's stock to what was left today (unchanged when no input)."""
    left = left_inputs if left_inputs is not None else get_value(data, K_STORE_LEFT, {})
    items = get_store_items(data)
    for it in items:
        raw = left.get(it.get("id"), "")
        if has_count_input(raw):
            it["stock"] = max(0, parse_count(raw))
    data[K_STORE_ITEMS] = items
    data[K_STORE_LEFT] = {}
    return items


def update_bottle_setup(data: dict, kind: str, stock=None, price=None, profit=None, deduct=None) -> dict:
    """Stock and per-bottle prices for oil bottles ('oil') or gas bottles ('gazb')."""
    if kind == "oil":
        setup = get_oil(data)
        fields = {"bottlesStock": stock, "bottlePrice": price, "bottleProfit": profit, "deductBottles": deduct}
    elif kind == "gazb":
        setup = get_gazb(data)
        fields = {"stock": stock, "price": price, "profit": profit, "deduct": deduct}
    else:
        raise KeyError(kind)
    for field, value in fields.items():
        if value is None:
            continue
        if field in ("bottlesStock", "stock"):
            setup[field] = max(0, parse_count(value))
        elif field in ("deductBottles", "deduct"):
            setup[field] = bool(value)
        else:
            setup[field] = parse_amount(value)
    return setup


def refill_bottles(data: dict, kind: str, count) -> int:
    n = max(0, parse_count(count))
    if kind == "oil":
        oil = get_oil(data)
        oil["bottlesStock"] = parse_count(oil.get("bottlesStock")) + n
        return oil["bottlesStock"]
    if kind == "gazb":
        gazb = get_gazb(data)
        gazb["stock"] = parse_count(gazb.get("stock")) + n
        return gazb["stock"]
    raise KeyError(kind)


def apply_settings_defaults(data: dict) -> None:
    """Copy the bottle price defaults from Settings onto today's sections."""
    settings = get_settings(data)
    g, o = settings["gazbDefaults"], settings["oilBottleDefaults"]
    update_bottle_setup(data, "gazb", price=g["price"], profit=g["profit"], deduct=g["deduct"])
    update_bottle_setup(data, "oil", price=o["price"], profit=o["profit"], deduct=o["deduct"])


# ── Other expenses ──

def add_expense(data: dict, name: str, expense_type: str = "Other", amount=0, deduct_from: str = "NP",
                note: str = "", worker_id: Optional[str] = None, day: Optional[str] = None,
                front: bool = False) -> Optional[dict]:
    """
    Add an expense for today. Worker payments always come out of Net Profit.
    Returns None when the name is empty or the amount is not positive.
    """
    amt = parse_amount(amount)
    name = (name or "").strip()
    if not name or amt <= 0:
        return None
    if expense_type not in EXPENSE_TYPES:
        expense_type = "Other"
    is_worker = expense_type == "Worker payment"
    item = {
        "id": new_id(),
        "date": day or today_key(),
        "name": name,
        "type": expense_type,
        "amount": _r2(amt),
        "deductFrom": "NP" if is_worker else (deduct_from if deduct_from in DEDUCT_TARGETS else "NP"),
        "note": note or "",
    }
    if is_worker and worker_id:
        item["workerId"] = worker_id
    expenses = get_value(data, K_EXPENSES, [])
    if front:
        expenses.insert(0, item)
    else:
        expenses.append(item)
    data[K_EXPENSES] = expenses
    return item


def remove_expense(data: dict, expense_id: str) -> bool:
    expenses = get_value(data, K_EXPENSES, [])
    kept = [e for e in expenses if e.get("id") != expense_id]
    data[K_EXPENSES] = kept
    return len(kept) != len(expenses)
