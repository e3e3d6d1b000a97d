"""
Ledgers - credit clients, workers, cheques and taxes & zakat.

Same conventions as station_manager: functions take the store namespace dict
and mutate it in place. Rejected input (empty name, non-positive amount)
returns None and leaves the data untouched.
"""

from typing import Optional

from station_manager import (
    K_CREDIT_CLIENTS, K_CREDIT_LEDGER, K_CREDITS_TODAY, K_PAID_TODAY,
    K_FIXED_TP, K_FIXED_NP, K_HISTORY_DAILY, K_HISTORY_STORE, K_WORKERS,
    DEDUCT_TARGETS, get_workers, add_expense, new_id, parse_amount, today_key,
)
from station_store import get_value, set_value

K_CHECKS = "gs.checks.list"
K_TAX_CONFIG = "gs.taxes.config"
K_TAX_FROM = "gs.taxes.taxFrom"
K_ZAKAT_FROM = "gs.taxes.zakatFrom"

CLIENT_GROUPS = ("Companies", "Entrepreneurs", "Agricultures", "Normal People", "Other")
CREDIT_CATEGORIES = ("Fuel", "Store", "Other")

CHEQUE_KINDS = ("received", "sent", "naftal")
CHEQUE_STATUSES = ("pending", "paid", "pending_payment", "money_received")
CHEQUE_TRANSACTION_TYPES = ("Cash", "Check")
CHEQUE_STATUS_LABELS = {
    "pending": "Pending Payment",
    "pending_payment": "Pending Payment",
    "paid": "Paid",
    "money_received": "Money Received",
}

DEFAULT_TAX_CONFIG = {"taxRate": 0, "zakatRate": 0, "base": "NP"}

PAYMENTS_HISTORY_LIMIT = 100


def _r2(x: float) -> float:
    return round(x + 0.0, 2)


# ── Credits ──

def get_clients(data: dict) -> list[dict]:
    return get_value(data, K_CREDIT_CLIENTS, [])


def sanitize_client_ids(data: dict) -> bool:
    """Give clients saved without an id a fresh one. True when anything changed."""
    clients = get_clients(data)
    changed = False
    for c in clients:
        if not str(c.get("id") or "").strip():
            c["id"] = new_id()
            changed = True
    if changed:
        data[K_CREDIT_CLIENTS] = clients
    return changed


def add_client(data: dict, name: str, group: str = "Companies") -> Optional[dict]:
    name = (name or "").strip()
    if not name:
        return None
    clients = get_clients(data)
    if any(str(c.get("name", "")).lower() == name.lower() for c in clients):
        return None
    client = {"id": new_id(), "name": name, "group": group if group in CLIENT_GROUPS else "Other"}
    clients.append(client)
    data[K_CREDIT_CLIENTS] = clients
    return client


def remove_client(data: dict, client_id: str) -> bool:
    """Ledger rows of the client are kept."""
    clients = get_clients(data)
    kept = [c for c in clients if c.get("id") != client_id]
    data[K_CREDIT_CLIENTS] = kept
    return len(kept) != len(clients)


def _client_name(data: dict, client_id: str) -> Optional[str]:
    for c in get_clients(data):
        if c.get("id") == client_id:
            return c.get("name", "")
    return None


def _append_tx(data: dict, tx: dict) -> None:
    ledger = get_value(data, K_CREDIT_LEDGER, [])
    ledger.append(tx)
    data[K_CREDIT_LEDGER] = ledger


def add_credit_sale(data: dict, client_id: str, amount, category: str = "Fuel", note: str = "",
                    snapshot: Optional[dict] = None, day: Optional[str] = None) -> Optional[dict]:
    """
    Record goods taken on credit. Adds to today's credit sales. When a snapshot
    of the Overall totals is passed (Main page) and this is the first credit
    sale of the day, the Overall card is frozen at that snapshot.
    """
    amt = parse_amount(amount)
    customer = _client_name(data, client_id) if client_id else None
    if customer is None or amt <= 0:
        return None

    prev_credits = parse_amount(get_value(data, K_CREDITS_TODAY, 0))
    if snapshot is not None and prev_credits == 0 and get_value(data, K_FIXED_TP, None) is None:
        set_value(data, K_FIXED_TP, _r2(parse_amount(snapshot.get("tProf"))))
        set_value(data, K_FIXED_NP, _r2(parse_amount(snapshot.get("nProf"))))

    tx = {
        "id": new_id(),
        "date": day or today_key(),
        "customer": customer,
        "amount": _r2(amt),
        "kind": "sale",
        "category": category if category in CREDIT_CATEGORIES else "Other",
    }
    if note:
        tx["note"] = note
    _append_tx(data, tx)
    set_value(data, K_CREDITS_TODAY, prev_credits + tx["amount"])
    return tx


def add_credit_payment(data: dict, client_id: str, amount, note: str = "",
                       day: Optional[str] = None) -> Optional[dict]:
    amt = parse_amount(amount)
    customer = _client_name(data, client_id) if client_id else None
    if customer is None or amt <= 0:
        return None
    tx = {"id": new_id(), "date": day or today_key(), "customer": customer, "amount": _r2(amt), "kind": "payment"}
    if note:
        tx["note"] = note
    _append_tx(data, tx)
    set_value(data, K_PAID_TODAY, parse_amount(get_value(data, K_PAID_TODAY, 0)) + tx["amount"])
    return tx


def client_balances(data: dict) -> dict:
    """Outstanding per customer name: credit sales minus payments."""
    balances = {}
    for tx in get_value(data, K_CREDIT_LEDGER, []):
        amt = parse_amount(tx.get("amount"))
        name = tx.get("customer", "")
        balances[name] = balances.get(name, 0.0) + (amt if tx.get("kind") == "sale" else -amt)
    return balances


def credit_history(data: dict) -> list[dict]:
    return sorted(get_value(data, K_CREDIT_LEDGER, []), key=lambda tx: tx.get("date", ""), reverse=True)


# ── Workers ──

def add_worker(data: dict, name: str = "") -> dict:
    workers = get_workers(data)
    worker = {"id": new_id(), "name": (name or "").strip() or f"Worker {len(workers) + 1}",
              "salary": 0, "balance": 0}
    workers.append(worker)
    return worker


def _find_worker(data: dict, worker_id: str) -> dict:
    for w in get_workers(data):
        if w.get("id") == worker_id:
            return w
    raise KeyError(worker_id)


def update_worker(data: dict, worker_id: str, name=None, salary=None) -> dict:
    w = _find_worker(data, worker_id)
    if name is not None and str(name).strip():
        w["name"] = str(name).strip()
    if salary is not None:
        w["salary"] = parse_amount(salary)
    return w


def remove_worker(data: dict, worker_id: str) -> bool:
    """Expenses already booked for the worker stay in the list."""
    workers = get_workers(data)
    kept = [w for w in workers if w.get("id") != worker_id]
    data[K_WORKERS] = kept
    return len(kept) != len(workers)


def record_worker_payment(data: dict, worker_id: str, amount=None, note: str = "",
                          day: Optional[str] = None) -> Optional[dict]:
    """
    Pay a worker. Empty amount means the full salary. Books a "Worker payment"
    expense against Net Profit and logs the payment on the worker.
    """
    w = _find_worker(data, worker_id)
    text = str(amount if amount is not None else "").strip()
    amt = parse_amount(text) if text else parse_amount(w.get("salary"))
    if amt <= 0:
        return None
    expense = add_expense(
        data,
        name=f"Worker payment: {w.get('name', '')}",
        expense_type="Worker payment",
        amount=amt,
        deduct_from="NP",
        note=note,
        worker_id=w["id"],
        day=day,
        front=True,
    )
    if expense is None:
        return None
    row = {"date": expense["date"], "amount": -expense["amount"], "note": expense["name"]}
    w["payments"] = [*(w.get("payments") or []), row]
    w["lastPayment"] = {"date": row["date"], "amount": row["amount"]}
    return expense


def adjust_worker_balance(data: dict, worker_id: str, amount, mode: str = "add") -> dict:
    """Add to (advance, shortage) or deduct from a worker's running balance."""
    w = _find_worker(data, worker_id)
    amt = abs(parse_amount(amount))
    delta = -amt if mode == "deduct" else amt
    w["balance"] = _r2(parse_amount(w.get("balance")) + delta)
    return w


def total_monthly_salaries(data: dict) -> float:
    return sum(parse_amount(w.get("salary")) for w in get_workers(data))


def payments_history(data: dict, limit: int = PAYMENTS_HISTORY_LIMIT) -> list[dict]:
    rows = [
        {**p, "workerId": w.get("id"), "workerName": w.get("name", "")}
        for w in get_workers(data)
        for p in (w.get("payments") or [])
    ]
    rows.sort(key=lambda r: r.get("date", ""), reverse=True)
    return rows[:limit]


# ── Cheques ──

def get_cheques(data: dict) -> list[dict]:
    return get_value(data, K_CHECKS, [])


def _clean_cheque_fields(fields: dict) -> dict:
    out = {}
    for k in ("date", "depositedDate", "number", "issuer", "note"):
        if k in fields and fields[k] is not None:
            out[k] = str(fields[k]).strip()
    if "amount" in fields:
        out["amount"] = parse_amount(fields["amount"])
    if fields.get("transactionType") in CHEQUE_TRANSACTION_TYPES:
        out["transactionType"] = fields["transactionType"]
    if fields.get("kind") in CHEQUE_KINDS:
        out["kind"] = fields["kind"]
    if fields.get("status") in CHEQUE_STATUSES:
        out["status"] = fields["status"]
    return out


def add_cheque(data: dict, **fields) -> Optional[dict]:
    clean = _clean_cheque_fields(fields)
    if not clean.get("number") and not clean.get("issuer") and not clean.get("amount"):
        return None
    cheque = {
        "id": new_id(),
        "date": today_key(),
        "depositedDate": "",
        "number": "",
        "issuer": "",
        "amount": 0,
        "transactionType": "Check",
        "kind": "received",
        "status": "pending",
        "note": "",
    }
    cheque.update({k: v for k, v in clean.items() if v != "" or k in ("depositedDate", "note")})
    cheques = get_cheques(data)
    cheques.append(cheque)
    data[K_CHECKS] = cheques
    return cheque


def _find_cheque(data: dict, cheque_id: str) -> dict:
    for c in get_cheques(data):
        if c.get("id") == cheque_id:
            return c
    raise KeyError(cheque_id)


def update_cheque(data: dict, cheque_id: str, **fields) -> dict:
    cheques = get_cheques(data)
    data[K_CHECKS] = cheques
    cheque = _find_cheque(data, cheque_id)
    cheque.update(_clean_cheque_fields(fields))
    return cheque


def set_cheque_status(data: dict, cheque_id: str, status: str, day: Optional[str] = None) -> dict:
    if status not in CHEQUE_STATUSES:
        raise ValueError(f"Unknown cheque status: {status}")
    cheques = get_cheques(data)
    data[K_CHECKS] = cheques
    cheque = _find_cheque(data, cheque_id)
    cheque["status"] = status
    cheque["updatedAt"] = day or today_key()
    return cheque


def remove_cheque(data: dict, cheque_id: str) -> bool:
    cheques = get_cheques(data)
    kept = [c for c in cheques if c.get("id") != cheque_id]
    data[K_CHECKS] = kept
    return len(kept) != len(cheques)


def filter_cheques(data: dict, kind: str, query: str = "") -> list[dict]:
    q = (query or "").strip().lower()
    return [
        c for c in get_cheques(data)
        if c.get("kind") == kind
        and (not q or q in str(c.get("number", "")).lower() or q in str(c.get("issuer", "")).lower())
    ]


def cheque_totals(data: dict) -> dict:
    totals = {"pending": 0.0, "cleared": 0.0}
    for c in get_cheques(data):
        status = "pending_payment" if c.get("status") == "pending" else c.get("status")
        if status == "pending_payment":
            totals["pending"] += parse_amount(c.get("amount"))
        elif status in ("paid", "money_received"):
            totals["cleared"] += parse_amount(c.get("amount"))
    return totals


def _history_sums(data: dict, date_from: str = "", date_to: str = "") -> dict:
    sums = {"tProf": 0.0, "nProf": 0.0}
    for key in (K_HISTORY_DAILY, K_HISTORY_STORE):
        for entry in get_value(data, key, []):
            d = entry.get("date", "")
            if (date_from and d < date_from) or (date_to and d > date_to):
                continue
            totals = entry.get("totals") or {}
            sums["tProf"] += parse_amount(totals.get("tProf"))
            sums["nProf"] += parse_amount(totals.get("nProf"))
    return sums


def sales_payable(data: dict) -> dict:
    """
    What is owed to the fuel supplier: accumulated TP minus NP over all saved
    history, less the Naftal cheques already marked Paid.
    """
    sums = _history_sums(data)
    base = max(0.0, sums["tProf"] - sums["nProf"])
    paid = sum(parse_amount(c.get("amount")) for c in get_cheques(data)
               if c.get("kind") == "naftal" and c.get("status") == "paid")
    return {
        "total_tp": sums["tProf"],
        "total_np": sums["nProf"],
        "payable": base,
        "paid_via_cheques": paid,
        "remaining": max(0.0, base - paid),
    }


# ── Taxes & zakat ──

def get_tax_config(data: dict) -> dict:
    return {**DEFAULT_TAX_CONFIG, **get_value(data, K_TAX_CONFIG, {})}


def save_tax_config(data: dict, tax_rate=None, zakat_rate=None, base=None,
                    tax_from=None, zakat_from=None) -> dict:
    cfg = get_tax_config(data)
    if tax_rate is not None:
        cfg["taxRate"] = parse_amount(tax_rate)
    if zakat_rate is not None:
        cfg["zakatRate"] = parse_amount(zakat_rate)
    if base in DEDUCT_TARGETS:
        cfg["base"] = base
    set_value(data, K_TAX_CONFIG, cfg)
    if tax_from in DEDUCT_TARGETS:
        set_value(data, K_TAX_FROM, tax_from)
    if zakat_from in DEDUCT_TARGETS:
        set_value(data, K_ZAKAT_FROM, zakat_from)
    return cfg


def compute_taxes(data: dict, date_from: str = "", date_to: str = "") -> dict:
    """Tax and zakat due on Σ TP or Σ NP (daily + store history) within the range."""
    cfg = get_tax_config(data)
    sums = _history_sums(data, date_from, date_to)
    base_amount = sums["tProf"] if cfg["base"] == "TP" else sums["nProf"]
    return {
        "config": cfg,
        "base_amount": base_amount,
        "tax_due": base_amount * parse_amount(cfg["taxRate"]) / 100,
        "zakat_due": base_amount * parse_amount(cfg["zakatRate"]) / 100,
        "tax_from": get_value(data, K_TAX_FROM, "NP"),
        "zakat_from": get_value(data, K_ZAKAT_FROM, "NP"),
    }


def record_tax_expense(data: dict, name: str, amount, deduct_from: Optional[str] = None,
                       day: Optional[str] = None) -> Optional[dict]:
    """Book the computed tax ("Taxes") or zakat ("Zakat") as an Other expense for today."""
    if name not in ("Taxes", "Zakat"):
        raise ValueError(f"Unknown tax entry: {name}")
    if deduct_from not in DEDUCT_TARGETS:
        deduct_from = get_value(data, K_TAX_FROM if name == "Taxes" else K_ZAKAT_FROM, "NP")
    return add_expense(data, name=name, expense_type="Other", amount=amount,
                       deduct_from=deduct_from, day=day, front=True)
