"""Flask route handlers for the Waali Gas Station dashboard (Blueprint)."""

import json
from urllib.parse import quote

from flask import Blueprint, request, redirect
from werkzeug.security import check_password_hash, generate_password_hash

import ledgers
import reports
import station_manager as sm
from i18n import K_LANG, LANGUAGES
from station_store import (
    InvalidBackupError, backup_filename, export_namespace, get_value, import_namespace,
    reset_store, set_value,
)

bp = Blueprint("main", __name__)

# Filled in by init_routes()
DATA_PATH = None
ACTIVATION_KEYS = ()
DEMO_MODE = False
_deps = {}  # all other dependencies

K_ACTIVATED = "app.activation.valid"
K_AUTH_USER = "app.auth.user"
K_AUTH_PASSWORD = "app.auth.password"
K_THEME = "app.theme"
K_DISPLAY_NAME = "waali_user_name"

DEFAULT_ACTIVATION_KEYS = ("TEMPO-GAS-1234", "GAS-2025-OK", "GS-KEY-9999")
DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin123"

TABS = ("main", "tanks", "store", "credits", "workers", "taxes", "cheques", "reports", "totals", "settings")
OPEN_PATHS = ("/activate", "/login", "/logout", "/manifest.json", "/sw.js")


def init_routes(config):
    """Wire the store, renderers and audit log in. Must run before register_blueprint."""
    global DATA_PATH, ACTIVATION_KEYS, DEMO_MODE, _deps
    DATA_PATH = config["DATA_PATH"]
    ACTIVATION_KEYS = tuple(config.get("ACTIVATION_KEYS") or DEFAULT_ACTIVATION_KEYS)
    DEMO_MODE = config.get("DEMO_MODE", False)
    _deps.update(config)


# ── Accessor helpers for injected dependencies ──
def load_store(path=None):
    return _deps["load_store"](path or DATA_PATH)

def save_store(path, data):
    return _deps["save_store"](path, data)

def render_dashboard(data, saved="", active_tab="main", filters=None, user=""):
    return _deps["render_dashboard"](data, saved=saved, active_tab=active_tab, filters=filters or {},
                                     user=user, demo_mode=DEMO_MODE)

def render_activation_page(error=""):
    return _deps["render_activation_page"](error)

def render_login_page(error=""):
    return _deps["render_login_page"](error)

def append_history_log(action, details=""):
    return _deps["append_history_log"](action, details)

def sync_history(data):
    fn = _deps.get("sync_history")
    if fn:
        fn(data)


def _load() -> dict:
    """Read the namespace and clear yesterday's credit totals if the day has changed."""
    data = load_store(DATA_PATH)
    if sm.roll_over_day(data):
        save_store(DATA_PATH, data)
        print(f"[Rollover] New day {sm.today_key()}: credit totals cleared")
    return data


def _commit(data, action="", details=""):
    save_store(DATA_PATH, data)
    if action:
        append_history_log(action, details)


def _back(tab, msg):
    return redirect(f"/?saved={quote(msg)}&tab={tab}")


def _json_error(msg, status=400):
    from flask import jsonify
    return jsonify({"ok": False, "error": msg}), status


# Demo mode: block all write operations
@bp.before_request
def check_demo_mode():
    if not DEMO_MODE:
        return
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return
    if request.path in OPEN_PATHS:
        return
    if request.is_json or request.path.startswith("/api/"):
        return _json_error("Demo mode: changes are disabled.", 403)
    return redirect("/?saved=Demo+mode%3A+changes+are+disabled")


# Activation key first, then login
@bp.before_request
def check_gates():
    from flask import session
    if request.path in OPEN_PATHS:
        return
    data = load_store(DATA_PATH)
    is_api = request.path.startswith("/api/")
    if not get_value(data, K_ACTIVATED, False):
        return _json_error("Not activated", 403) if is_api else redirect("/activate")
    if not session.get("user"):
        return _json_error("Login required", 401) if is_api else redirect("/login")


@bp.errorhandler(KeyError)
def handle_unknown_id(e):
    missing = e.args[0] if e.args else ""
    if request.path.startswith("/api/"):
        return _json_error(f"Not found: {missing}", 404)
    return _back(request.form.get("tab") or "main", "Not found")


# ── Gates ──

def valid_activation_key(key: str) -> bool:
    return (key or "").strip() in ACTIVATION_KEYS


def verify_login(data: dict, username: str, password: str) -> bool:
    account = get_value(data, K_AUTH_USER, {"username": DEFAULT_USERNAME})
    if (username or "").strip() != account.get("username", DEFAULT_USERNAME):
        return False
    return _password_matches(data, password)


def _password_matches(data: dict, password: str) -> bool:
    stored = get_value(data, K_AUTH_PASSWORD, None)
    if stored:
        return check_password_hash(stored, password or "")
    return password == DEFAULT_PASSWORD


def update_account(data: dict, form) -> str:
    """Apply the Account card. Returns an error message, or "" when saved."""
    current = form.get("current_password", "")
    new = form.get("new_password", "")
    confirm = form.get("confirm_password", "")
    if current or new or confirm:
        if not _password_matches(data, current):
            return "Current password is incorrect"
        if len(new) < 6:
            return "New password must be at least 6 characters"
        if new != confirm:
            return "New password and confirmation do not match"
        set_value(data, K_AUTH_PASSWORD, generate_password_hash(new))
    set_value(data, K_DISPLAY_NAME, (form.get("display_name") or "").strip())
    account = get_value(data, K_AUTH_USER, {})
    account["username"] = (form.get("username") or DEFAULT_USERNAME).strip()
    set_value(data, K_AUTH_USER, account)
    return ""


@bp.route("/activate", methods=["GET", "POST"])
def activate():
    data = load_store(DATA_PATH)
    if get_value(data, K_ACTIVATED, False):
        return redirect("/login")
    if request.method == "POST":
        if valid_activation_key(request.form.get("key", "")):
            set_value(data, K_ACTIVATED, True)
            _commit(data, "Activated", "Activation key accepted")
            return redirect("/login")
        return render_activation_page(error="Invalid activation key")
    return render_activation_page()


@bp.route("/login", methods=["GET", "POST"])
def login():
    from flask import session
    data = load_store(DATA_PATH)
    if not get_value(data, K_ACTIVATED, False):
        return redirect("/activate")
    if request.method == "POST":
        username = request.form.get("username", "")
        if verify_login(data, username, request.form.get("password", "")):
            session["user"] = username.strip()
            return redirect("/")
        return render_login_page(error="Invalid credentials")
    return render_login_page()


@bp.route("/logout", methods=["GET", "POST"])
def logout():
    from flask import session
    session.pop("user", None)
    return redirect("/login")


# ── Pages: each tab gets its own URL ──
@bp.route("/")
@bp.route("/tanks")
@bp.route("/store")
@bp.route("/credits")
@bp.route("/workers")
@bp.route("/taxes")
@bp.route("/cheques")
@bp.route("/reports")
@bp.route("/totals")
@bp.route("/settings")
def index():
    from flask import session
    data = _load()
    changed = ledgers.sanitize_client_ids(data)
    if sm.K_STORE_ITEMS not in data:
        sm.seed_store_items(data)
        changed = True
    if changed:
        save_store(DATA_PATH, data)
    path_tab = request.path.strip("/")
    active = path_tab if path_tab in TABS else request.args.get("tab", "main")
    if active not in TABS:
        active = "main"
    filters = {
        "from": request.args.get("from", ""),
        "to": request.args.get("to", ""),
        "q": request.args.get("q", ""),
    }
    user = get_value(data, K_DISPLAY_NAME, "") or session.get("user", "")
    return render_dashboard(data, saved=request.args.get("saved", ""), active_tab=active,
                            filters=filters, user=user)


# ── Main: readings, live summary, Save Day, closing ──

def _fmt(x) -> str:
    return f"{x:.2f}"


def summary_payload(summary: dict) -> dict:
    """Numbers for the Main page, keyed by the DOM id of the cell that shows them."""
    cells = {}
    for r in summary["pumps"]["rows"]:
        pid = r["pump"]["id"]
        cells[f"liters-{pid}"] = _fmt(r["liters"])
        cells[f"tp-{pid}"] = _fmt(r["tProf"])
        cells[f"np-{pid}"] = _fmt(r["nProf"])
    t = summary["pumps"]["totals"]
    cells.update({"pumps-liters": _fmt(t["liters"]), "pumps-tp": _fmt(t["tProf"]), "pumps-np": _fmt(t["nProf"])})
    for fuel, liters in summary["pumps"]["by_type"].items():
        cells[f"type-{fuel}"] = _fmt(liters)
    oil = summary["oil"]
    cells.update({
        "oil-liters": _fmt(oil["liters"]), "oil-tp": _fmt(oil["tProf"]), "oil-np": _fmt(oil["nProf"]),
        "oil-bottles-tp": _fmt(oil["bottles_tProf"]), "oil-bottles-np": _fmt(oil["bottles_nProf"]),
    })
    g = summary["gazb"]
    cells.update({"gazb-tp": _fmt(g["tProf"]), "gazb-np": _fmt(g["nProf"]), "gazb-left": str(g["left_now"])})
    for r in summary["store"]["rows"]:
        iid = r["item"]["id"]
        cells[f"sold-{iid}"] = str(r["sold"])
        cells[f"stp-{iid}"] = _fmt(r["tProf"])
        cells[f"snp-{iid}"] = _fmt(r["nProf"])
    c = summary["closing"]
    cells.update({
        "overall-tp": _fmt(summary["overall"]["tProf"]),
        "overall-np": _fmt(summary["overall"]["nProf"]),
        "display-tp": _fmt(summary["display_tp"]),
        "display-np": _fmt(summary["display_np"]),
        "adjusted-tp": _fmt(summary["adjusted_tp"]),
        "final-tp": _fmt(summary["final"]["tProf"]),
        "final-np": _fmt(summary["final"]["nProf"]),
        "closing-expected": _fmt(c["expected"]),
        "closing-sales-cash": _fmt(c["expected_sales_cash"]),
        "closing-diff": _fmt(c["diff"]),
        "closing-status": c["status"],
    })
    return {
        "ok": True,
        "date": summary["date"],
        "cells": cells,
        "final": summary["final"],
        "display": {"tProf": summary["display_tp"], "nProf": summary["display_np"]},
        "adjusted_tp": summary["adjusted_tp"],
        "closing": c,
    }


@bp.route("/api/main-summary", methods=["GET", "POST"])
def api_main_summary():
    """Recompute the Main page. POST also stores the in-progress inputs."""
    from flask import jsonify
    data = _load()
    paid_override = new_credits_override = ""
    if request.method == "POST":
        body = request.get_json(silent=True)
        form = request.form if request.form else (body if isinstance(body, dict) else {})
        sm.apply_drafts(data, form)
        save_store(DATA_PATH, data)
        paid_override = form.get("paid_override", "")
        new_credits_override = form.get("new_credits_override", "")
    summary = sm.compute_daily_summary(data, paid_override=paid_override,
                                       new_credits_override=new_credits_override)
    return jsonify(summary_payload(summary))


@bp.route("/save/readings", methods=["POST"])
def save_readings():
    data = _load()
    sm.apply_drafts(data, request.form)
    _commit(data, "Readings saved", f"Main page inputs for {sm.today_key()}")
    return _back("main", "Readings saved")


@bp.route("/save/day", methods=["POST"])
def save_day_route():
    data = _load()
    sm.apply_drafts(data, request.form)
    entry = sm.save_day(data)
    t = entry["totals"]
    _commit(data, "Day saved", f"{entry['date']}: {t['liters']:.2f} L, TP {t['tProf']:.2f}, NP {t['nProf']:.2f}")
    sync_history(data)
    return _back("main", f"Day {entry['date']} saved")


@bp.route("/save/closing", methods=["POST"])
def save_closing():
    f = request.form
    data = _load()
    sm.apply_drafts(data, f)
    closing, msg = sm.validate_closing(
        data,
        cashier_id=f.get("cashier_id", ""),
        actual=f.get("closing_actual"),
        paid_override=f.get("paid_override", ""),
        new_credits_override=f.get("new_credits_override", ""),
    )
    _commit(data, "Cashier closing", f"Expected {closing['expected']:.2f}, actual {closing['actual']:.2f}, diff {closing['diff']:.2f}")
    return _back("main", msg)


# ── Other expenses ──

@bp.route("/save/expense", methods=["POST"])
def save_expense():
    f = request.form
    data = _load()
    item = sm.add_expense(data, f.get("name", ""), f.get("type", "Other"), f.get("amount", ""),
                          f.get("deduct_from", "NP"), f.get("note", ""), f.get("worker_id") or None)
    if item is None:
        return _back("main", "Expense needs a name and an amount")
    _commit(data, "Expense added", f"{item['name']} ({item['type']}): {item['amount']:.2f} from {item['deductFrom']}")
    return _back("main", "Expense added")


@bp.route("/save/expense/<expense_id>/delete", methods=["POST"])
def delete_expense(expense_id):
    data = _load()
    if sm.remove_expense(data, expense_id):
        _commit(data, "Expense removed", expense_id)
    return _back("main", "Expense removed")


@bp.route("/api/expenses", methods=["GET", "POST"])
def api_expenses():
    from flask import jsonify
    data = _load()
    if request.method == "POST":
        body = request.get_json(force=True)
        item = sm.add_expense(data, body.get("name", ""), body.get("type", "Other"), body.get("amount", 0),
                              body.get("deductFrom", "NP"), body.get("note", ""), body.get("workerId"))
        if item is None:
            return _json_error("Expense needs a name and a positive amount")
        _commit(data, "Expense added", f"{item['name']}: {item['amount']:.2f}")
        return jsonify({"ok": True, "expense": item})
    return jsonify(get_value(data, sm.K_EXPENSES, []))


@bp.route("/api/expenses/<expense_id>", methods=["DELETE"])
def api_delete_expense(expense_id):
    from flask import jsonify
    data = _load()
    if not sm.remove_expense(data, expense_id):
        raise KeyError(expense_id)
    _commit(data, "Expense removed", expense_id)
    return jsonify({"ok": True})


# ── Credits ──

@bp.route("/save/client", methods=["POST"])
def save_client():
    data = _load()
    client = ledgers.add_client(data, request.form.get("name", ""), request.form.get("group", "Companies"))
    if client is None:
        return _back("credits", "Client name is empty or already exists")
    _commit(data, "Client added", f"{client['name']} ({client['group']})")
    return _back("credits", "Client added")


@bp.route("/save/client/<client_id>/delete", methods=["POST"])
def delete_client(client_id):
    data = _load()
    if ledgers.remove_client(data, client_id):
        _commit(data, "Client removed", client_id)
    return _back("credits", "Client removed")


@bp.route("/save/credit-sale", methods=["POST"])
def save_credit_sale():
    f = request.form
    tab = f.get("tab", "credits")
    data = _load()
    snapshot = None
    if tab == "main":
        sm.apply_drafts(data, f)
        summary = sm.compute_daily_summary(data)
        snapshot = summary["display"]
    tx = ledgers.add_credit_sale(data, f.get("client_id", ""), f.get("amount", ""), f.get("category", "Fuel"),
                                 f.get("note", ""), snapshot=snapshot)
    if tx is None:
        return _back(tab, "Select a client and enter an amount")
    _commit(data, "Credit sale", f"{tx['customer']}: {tx['amount']:.2f} ({tx['category']})")
    return _back(tab, "Credit added")


@bp.route("/save/credit-payment", methods=["POST"])
def save_credit_payment():
    f = request.form
    tab = f.get("tab", "credits")
    data = _load()
    tx = ledgers.add_credit_payment(data, f.get("client_id", ""), f.get("amount", ""), f.get("note", ""))
    if tx is None:
        return _back(tab, "Select a client and enter an amount")
    _commit(data, "Credit payment", f"{tx['customer']}: {tx['amount']:.2f}")
    return _back(tab, "Payment recorded")


@bp.route("/api/credits")
def api_credits():
    from flask import jsonify
    data = _load()
    return jsonify({
        "clients": ledgers.get_clients(data),
        "balances": ledgers.client_balances(data),
        "history": ledgers.credit_history(data),
        "today": get_value(data, sm.K_CREDITS_TODAY, 0),
        "paid_today": get_value(data, sm.K_PAID_TODAY, 0),
    })


# ── Tanks & pumps ──

@bp.route("/save/pumps", methods=["POST"])
def save_pumps():
    f = request.form
    data = _load()
    rejected = []
    for p in sm.get_pumps(data):
        pid = p["id"]
        if f.get(f"name_{pid}", "").strip():
            sm.rename_pump(data, pid, f.get(f"name_{pid}").strip())
        if f"tank_{pid}" in f and not sm.assign_pump(data, pid, f.get(f"tank_{pid}") or None):
            rejected.append(p["name"])
        if f"prev_{pid}" in f:
            sm.set_previous_reading(data, pid, f.get(f"prev_{pid}"))
    if "oil_prev" in f:
        sm.set_oil_previous(data, f.get("oil_prev"))
    _commit(data, "Pumps updated", "Names, tank assignments and previous readings")
    if rejected:
        return _back("tanks", "Fuel type mismatch for " + ", ".join(rejected))
    return _back("tanks", "Pumps saved")


@bp.route("/save/tank/add", methods=["POST"])
def save_tank_add():
    data = _load()
    tank = sm.add_tank(data)
    _commit(data, "Tank added", tank["name"])
    return _back("tanks", "Tank added")


@bp.route("/save/tank/<tank_id>", methods=["POST"])
def save_tank(tank_id):
    f = request.form
    data = _load()
    patch = {k: f.get(k) for k in ("name", "fuelType", "capacity", "current", "price", "profitPerL") if k in f}
    tank = sm.update_tank(data, tank_id, **patch)
    _commit(data, "Tank updated", f"{tank['name']}: {tank['current']:.2f}/{tank['capacity']:.2f} L")
    return _back("tanks", "Tank saved")


@bp.route("/save/tank/<tank_id>/refill", methods=["POST"])
def save_tank_refill(tank_id):
    f = request.form
    data = _load()
    tank = sm.refill_tank(data, tank_id, f.get("liters", ""), f.get("facture_no", "").strip(), f.get("note", "").strip())
    row = tank["history"][-1]
    _commit(data, "Tank refill", f"{tank['name']}: +{row['liters']:.2f} L ({row['type']})")
    return _back("tanks", "Tank refilled")


@bp.route("/api/tanks")
def api_tanks():
    from flask import jsonify
    data = _load()
    return jsonify({
        "tanks": sm.get_tanks(data),
        "assignments": sm.get_assignments(data),
        "history": sm.tank_history(data, request.args.get("from", ""), request.args.get("to", "")),
    })


@bp.route("/api/tanks/<tank_id>/refill", methods=["POST"])
def api_tank_refill(tank_id):
    from flask import jsonify
    body = request.get_json(force=True)
    data = _load()
    tank = sm.refill_tank(data, tank_id, body.get("liters", 0), body.get("factureNo", ""), body.get("note", ""))
    _commit(data, "Tank refill", f"{tank['name']}: +{tank['history'][-1]['liters']:.2f} L")
    return jsonify({"ok": True, "tank": tank})


# ── Store ──

@bp.route("/save/store-item/add", methods=["POST"])
def save_store_item_add():
    data = _load()
    item = sm.add_store_item(data, request.form.get("name", ""))
    if item is None:
        return _back("store", "Item name is required")
    _commit(data, "Store item added", item["name"])
    return _back("store", "Item added")


@bp.route("/save/store-items", methods=["POST"])
def save_store_items():
    f = request.form
    data = _load()
    for it in sm.get_store_items(data):
        iid = it["id"]
        patch = {field: f.get(f"{field}_{iid}") for field in ("name", "price", "profit", "stock") if f"{field}_{iid}" in f}
        if patch:
            sm.update_store_item(data, iid, **patch)
    _commit(data, "Store items updated", f"{len(sm.get_store_items(data))} items")
    return _back("store", "Store items saved")


@bp.route("/save/store-item/<item_id>/delete", methods=["POST"])
def delete_store_item(item_id):
    data = _load()
    if sm.remove_store_item(data, item_id):
        _commit(data, "Store item removed", item_id)
    return _back("store", "Item removed")


@bp.route("/save/store-day", methods=["POST"])
def save_store_day():
    f = request.form
    data = _load()
    sold = {it["id"]: f.get(f"sold_{it['id']}", "") for it in sm.get_store_items(data)}
    entry = sm.save_store_day(data, sold)
    _commit(data, "Store day saved", f"{entry['date']}: TP {entry['totals']['tProf']:.2f}, NP {entry['totals']['nProf']:.2f}")
    sync_history(data)
    return _back("store", "Store day saved")


@bp.route("/save/store-apply", methods=["POST"])
def save_store_apply():
    data = _load()
    sm.apply_drafts(data, request.form)
    sm.apply_store_sales(data)
    _commit(data, "Store stock updated", "Stock set from today's left quantities")
    return _back("store", "Stock updated from today's sales")


@bp.route("/save/bottles/<kind>", methods=["POST"])
def save_bottles(kind):
    f = request.form
    data = _load()
    sm.update_bottle_setup(data, kind, stock=f.get("stock"), price=f.get("price"), profit=f.get("profit"),
                           deduct=f.get("deduct") == "on")
    _commit(data, "Bottles updated", kind)
    return _back(f.get("tab", "store"), "Bottles saved")


@bp.route("/save/bottles/<kind>/refill", methods=["POST"])
def save_bottles_refill(kind):
    data = _load()
    stock = sm.refill_bottles(data, kind, request.form.get("count", ""))
    _commit(data, "Bottles refilled", f"{kind}: stock {stock}")
    return _back(request.form.get("tab", "store"), "Bottle stock refilled")


# ── Workers ──

@bp.route("/save/worker/add", methods=["POST"])
def save_worker_add():
    data = _load()
    w = ledgers.add_worker(data, request.form.get("name", ""))
    _commit(data, "Worker added", w["name"])
    return _back("workers", "Worker added")


@bp.route("/save/worker/<worker_id>", methods=["POST"])
def save_worker(worker_id):
    f = request.form
    data = _load()
    w = ledgers.update_worker(data, worker_id, name=f.get("name"), salary=f.get("salary"))
    _commit(data, "Worker updated", f"{w['name']}: salary {sm.parse_amount(w.get('salary')):.2f}")
    return _back("workers", "Worker saved")


@bp.route("/save/worker/<worker_id>/pay", methods=["POST"])
def save_worker_pay(worker_id):
    f = request.form
    data = _load()
    expense = ledgers.record_worker_payment(data, worker_id, f.get("amount", ""), f.get("note", ""))
    if expense is None:
        return _back("workers", "Enter an amount or set a salary first")
    _commit(data, "Worker payment", f"{expense['name']}: {expense['amount']:.2f}")
    return _back("workers", "Payment recorded")


@bp.route("/save/worker/<worker_id>/adjust", methods=["POST"])
def save_worker_adjust(worker_id):
    f = request.form
    data = _load()
    w = ledgers.adjust_worker_balance(data, worker_id, f.get("amount", ""), f.get("mode", "add"))
    _commit(data, "Worker balance", f"{w['name']}: {w['balance']:.2f}")
    return _back("workers", "Balance updated")


@bp.route("/save/worker/<worker_id>/delete", methods=["POST"])
def delete_worker(worker_id):
    data = _load()
    if ledgers.remove_worker(data, worker_id):
        _commit(data, "Worker removed", worker_id)
    return _back("workers", "Worker removed")


# ── Taxes & zakat ──

@bp.route("/save/taxes", methods=["POST"])
def save_taxes():
    f = request.form
    data = _load()
    cfg = ledgers.save_tax_config(data, f.get("tax_rate"), f.get("zakat_rate"), f.get("base"),
                                  f.get("tax_from"), f.get("zakat_from"))
    _commit(data, "Taxes config", f"tax {cfg['taxRate']}%, zakat {cfg['zakatRate']}% on {cfg['base']}")
    return _back("taxes", "Tax settings saved")


@bp.route("/save/taxes/record", methods=["POST"])
def save_taxes_record():
    f = request.form
    name = f.get("name", "Taxes")
    data = _load()
    taxes = ledgers.compute_taxes(data, f.get("from", ""), f.get("to", ""))
    amount = taxes["tax_due"] if name == "Taxes" else taxes["zakat_due"]
    expense = ledgers.record_tax_expense(data, name, amount, f.get("deduct_from"))
    if expense is None:
        return _back("taxes", f"Nothing to record: {name} due is 0")
    _commit(data, f"{name} recorded", f"{expense['amount']:.2f} from {expense['deductFrom']}")
    return _back("taxes", f"{name} recorded for today. Check Other Expenses in Main page.")


@bp.route("/api/taxes")
def api_taxes():
    from flask import jsonify
    data = _load()
    return jsonify(ledgers.compute_taxes(data, request.args.get("from", ""), request.args.get("to", "")))


# ── Cheques ──

_CHEQUE_FIELDS = ("date", "depositedDate", "number", "issuer", "amount", "transactionType", "kind", "status", "note")


@bp.route("/save/cheque/add", methods=["POST"])
def save_cheque_add():
    f = request.form
    data = _load()
    cheque = ledgers.add_cheque(data, **{k: f.get(k) for k in _CHEQUE_FIELDS if k in f})
    if cheque is None:
        return _back("cheques", "Enter a number, issuer or amount")
    _commit(data, "Cheque added", f"{cheque['kind']} #{cheque['number']} {cheque['issuer']}: {cheque['amount']:.2f}")
    return _back("cheques", "Cheque added")


@bp.route("/save/cheque/<cheque_id>", methods=["POST"])
def save_cheque(cheque_id):
    f = request.form
    data = _load()
    cheque = ledgers.update_cheque(data, cheque_id, **{k: f.get(k) for k in _CHEQUE_FIELDS if k in f})
    _commit(data, "Cheque updated", f"#{cheque['number']} {cheque['issuer']}")
    return _back("cheques", "Cheque saved")


@bp.route("/save/cheque/<cheque_id>/status", methods=["POST"])
def save_cheque_status(cheque_id):
    data = _load()
    try:
        cheque = ledgers.set_cheque_status(data, cheque_id, request.form.get("status", ""))
    except ValueError as e:
        return _back("cheques", str(e))
    _commit(data, "Cheque status", f"#{cheque['number']}: {cheque['status']}")
    return _back("cheques", "Status updated")


@bp.route("/save/cheque/<cheque_id>/delete", methods=["POST"])
def delete_cheque(cheque_id):
    data = _load()
    if ledgers.remove_cheque(data, cheque_id):
        _commit(data, "Cheque removed", cheque_id)
    return _back("cheques", "Cheque removed")


@bp.route("/api/cheques")
def api_cheques():
    from flask import jsonify
    data = _load()
    q = request.args.get("q", "")
    return jsonify({
        "received": ledgers.filter_cheques(data, "received", q),
        "sent": ledgers.filter_cheques(data, "sent", q),
        "naftal": ledgers.filter_cheques(data, "naftal", q),
        "totals": ledgers.cheque_totals(data),
        "sales_payable": ledgers.sales_payable(data),
    })


@bp.route("/api/cheques/<cheque_id>/status", methods=["POST"])
def api_cheque_status(cheque_id):
    from flask import jsonify
    data = _load()
    try:
        cheque = ledgers.set_cheque_status(data, cheque_id, request.get_json(force=True).get("status", ""))
    except ValueError as e:
        return _json_error(str(e))
    _commit(data, "Cheque status", f"#{cheque['number']}: {cheque['status']}")
    return jsonify({"ok": True, "cheque": cheque})


# ── Reports & totals ──

def _report_args(data):
    date_from = request.args.get("from", "")
    date_to = request.args.get("to", "")
    inc = request.args.get("include_store")
    include_store = reports.include_store_default(data) if inc is None else inc in ("1", "true", "on")
    return date_from, date_to, include_store


@bp.route("/save/report-prefs", methods=["POST"])
def save_report_prefs():
    data = _load()
    set_value(data, reports.K_INCLUDE_STORE, request.form.get("include_store") == "on")
    _commit(data)
    return _back("reports", "Report preferences saved")


@bp.route("/api/reports")
def api_reports():
    from flask import jsonify
    data = _load()
    date_from, date_to, include_store = _report_args(data)
    rows = reports.report_rows(data, date_from, date_to, include_store)
    return jsonify({"rows": rows, "summary": reports.report_summary(rows)})


@bp.route("/export/reports.csv")
def export_reports_csv():
    from flask import Response
    data = _load()
    date_from, date_to, include_store = _report_args(data)
    rows = reports.report_rows(data, date_from, date_to, include_store)
    return Response(
        reports.rows_to_csv(rows),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={reports.report_filename(date_from, date_to, 'csv')}"},
    )


@bp.route("/export/reports.xlsx")
def export_reports_xlsx():
    from flask import Response
    data = _load()
    date_from, date_to, include_store = _report_args(data)
    rows = reports.report_rows(data, date_from, date_to, include_store)
    return Response(
        reports.rows_to_xlsx(rows),
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={reports.report_filename(date_from, date_to, 'xlsx')}"},
    )


@bp.route("/api/overall-totals")
def api_overall_totals():
    from flask import jsonify
    data = _load()
    return jsonify(reports.overall_totals(data, request.args.get("from", ""), request.args.get("to", "")))


# ── Settings, account, backup ──

@bp.route("/save/settings", methods=["POST"])
def save_settings():
    f = request.form
    data = _load()
    settings = sm.get_settings(data)
    settings["businessName"] = f.get("business_name", "").strip()
    settings["currency"] = f.get("currency", "").strip() or "DZD"
    settings["gazbDefaults"] = {
        "price": sm.parse_amount(f.get("gazb_price")),
        "profit": sm.parse_amount(f.get("gazb_profit")),
        "deduct": f.get("gazb_deduct") == "on",
    }
    settings["oilBottleDefaults"] = {
        "price": sm.parse_amount(f.get("oil_price")),
        "profit": sm.parse_amount(f.get("oil_profit")),
        "deduct": f.get("oil_deduct") == "on",
    }
    set_value(data, sm.K_SETTINGS, settings)
    _commit(data, "Settings saved", f"{settings['businessName'] or 'Station'} ({settings['currency']})")
    return _back("settings", "Settings saved")


@bp.route("/save/settings/apply", methods=["POST"])
def save_settings_apply():
    data = _load()
    sm.apply_settings_defaults(data)
    _commit(data, "Defaults applied", "Bottle prices copied to today's entries")
    return _back("settings", "Applied current defaults to today's entries")


@bp.route("/save/account", methods=["POST"])
def save_account():
    from flask import session
    data = _load()
    error = update_account(data, request.form)
    if error:
        return _back("settings", error)
    _commit(data, "Account updated", get_value(data, K_AUTH_USER, {}).get("username", ""))
    session["user"] = get_value(data, K_AUTH_USER, {}).get("username", "")
    return _back("settings", "Account updated")


@bp.route("/api/export")
def api_export():
    """Download every key as a JSON backup."""
    from flask import Response
    data = load_store(DATA_PATH)
    return Response(
        json.dumps(export_namespace(data), indent=2, ensure_ascii=False),
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename={backup_filename(sm.today_key())}"},
    )


@bp.route("/import/backup", methods=["POST"])
def import_backup():
    file = request.files.get("backup_file")
    if not file or not file.filename:
        return _back("settings", "Please select a backup file")
    try:
        data = import_namespace(file.read())
    except InvalidBackupError as e:
        return _back("settings", str(e))
    _commit(data, "Backup imported", f"{file.filename}: {len(data)} keys")
    return _back("settings", "Backup imported")


@bp.route("/api/reset", methods=["POST"])
def api_reset():
    """Delete ALL local data. The app goes back to the activation screen."""
    from flask import jsonify, session
    reset_store(DATA_PATH)
    session.clear()
    append_history_log("Reset", "All local data deleted")
    return jsonify({"ok": True})


@bp.route("/api/preferences", methods=["POST"])
def api_preferences():
    from flask import jsonify
    body = request.get_json(force=True)
    data = _load()
    if body.get("theme") in ("light", "dark"):
        set_value(data, K_THEME, body["theme"])
    if body.get("lang") in LANGUAGES:
        set_value(data, K_LANG, body["lang"])
    save_store(DATA_PATH, data)
    return jsonify({"ok": True, "theme": get_value(data, K_THEME, "light"), "lang": get_value(data, K_LANG, "en")})


# ── PWA ──
@bp.route("/manifest.json")
def manifest():
    from flask import jsonify
    return jsonify({
        "name": "Waali Gas Station",
        "short_name": "Waali Gas",
        "description": "Daily bookkeeping for the fuel station",
        "start_url": "/",
        "display": "standalone",
        "background_color": "#ffffff",
        "theme_color": "#f97316",
        "icons": [],
    })


SERVICE_WORKER_JS = """
const CACHE_NAME = 'waali-gs-v1.0.0';
const STATIC_CACHE = 'waali-gs-static-v1';
const DYNAMIC_CACHE = 'waali-gs-dynamic-v1';
const APP_SHELL = ['/', '/manifest.json'];

self.addEventListener('install', function(e) {
  self.skipWaiting();
  e.waitUntil(caches.open(CACHE_NAME).then(function(c) { return c.addAll(APP_SHELL); }).catch(function() {}));
});

self.addEventListener('activate', function(e) {
  e.waitUntil(caches.keys().then(function(names) {
    return Promise.all(names.map(function(n) {
      if (n !== CACHE_NAME && n !== STATIC_CACHE && n !== DYNAMIC_CACHE) return caches.delete(n);
    }));
  }).then(function() { return self.clients.claim(); }));
});

self.addEventListener('fetch', function(e) {
  var req = e.request;
  var url = new URL(req.url);
  if (req.method !== 'GET' || url.origin !== self.location.origin) return;
  if (url.pathname.startsWith('/api/')) {
    e.respondWith(fetch(req).catch(function() {
      return new Response(JSON.stringify({ok: false, error: 'Network unavailable'}),
        {status: 503, headers: {'Content-Type': 'application/json'}});
    }));
    return;
  }
  var accept = req.headers.get('accept') || '';
  if (accept.indexOf('text/html') !== -1) {
    e.respondWith(fetch(req).then(function(resp) {
      if (resp.status === 200) {
        var copy = resp.clone();
        caches.open(DYNAMIC_CACHE).then(function(c) { c.put(req, copy); });
      }
      return resp;
    }).catch(function() {
      return caches.match(req).then(function(hit) { return hit || caches.match('/'); });
    }));
    return;
  }
  e.respondWith(caches.match(req).then(function(hit) {
    if (hit) return hit;
    return fetch(req).then(function(resp) {
      if (resp.status === 200) {
        var copy = resp.clone();
        caches.open(STATIC_CACHE).then(function(c) { c.put(req, copy); });
      }
      return resp;
    });
  }));
});
"""


@bp.route("/sw.js")
def service_worker():
    """Offline worker: cache-first for assets, network-first for pages and /api/."""
    from flask import Response
    return Response(SERVICE_WORKER_JS, mimetype="application/javascript")
