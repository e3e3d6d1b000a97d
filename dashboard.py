"""Dashboard rendering: gate pages + full HTML template for the Waali Gas Station dashboard."""

import json
from html import escape

import ledgers
import reports
import station_manager as sm
from i18n import K_LANG, LANGUAGES, translator
from station_store import get_value

BRAND = "Waali Gas Station"

TAB_ICONS = {
    "main": '<path d="M3 22V4a2 2 0 012-2h8a2 2 0 012 2v18"/><path d="M3 22h12"/><path d="M15 9h2a2 2 0 012 2v6a2 2 0 004 0V8l-3-3"/><rect x="6" y="5" width="6" height="5"/>',
    "tanks": '<ellipse cx="12" cy="5" rx="8" ry="3"/><path d="M4 5v14c0 1.7 3.6 3 8 3s8-1.3 8-3V5"/><path d="M4 12c0 1.7 3.6 3 8 3s8-1.3 8-3"/>',
    "store": '<path d="M6 2L3 6v14a2 2 0 002 2h14a2 2 0 002-2V6l-3-4z"/><line x1="3" y1="6" x2="21" y2="6"/><path d="M16 10a4 4 0 01-8 0"/>',
    "credits": '<rect x="2" y="5" width="20" height="14" rx="2"/><line x1="2" y1="10" x2="22" y2="10"/>',
    "workers": '<path d="M17 21v-2a4 4 0 00-4-4H5a4 4 0 00-4 4v2"/><circle cx="9" cy="7" r="4"/><path d="M23 21v-2a4 4 0 00-3-3.87"/>',
    "taxes": '<line x1="19" y1="5" x2="5" y2="19"/><circle cx="6.5" cy="6.5" r="2.5"/><circle cx="17.5" cy="17.5" r="2.5"/>',
    "cheques": '<path d="M14 2H6a2 2 0 00-2 2v16a2 2 0 002 2h12a2 2 0 002-2V8z"/><polyline points="14 2 14 8 20 8"/>',
    "reports": '<path d="M3 3v18h18"/><path d="M18 17V9"/><path d="M13 17V5"/><path d="M8 17v-3"/>',
    "totals": '<polyline points="22 12 18 12 15 21 9 3 6 12 2 12"/>',
    "settings": '<circle cx="12" cy="12" r="3"/><path d="M19.4 15a1.65 1.65 0 00.33 1.82l.06.06a2 2 0 11-2.83 2.83l-.06-.06a1.65 1.65 0 00-2.82 1.18V21a2 2 0 11-4 0v-.09a1.65 1.65 0 00-2.82-1.18l-.06.06a2 2 0 11-2.83-2.83l.06-.06A1.65 1.65 0 004.6 15H4.5a2 2 0 110-4h.09a1.65 1.65 0 001.18-2.82l-.06-.06a2 2 0 112.83-2.83l.06.06A1.65 1.65 0 0011 4.6V4.5a2 2 0 114 0v.09a1.65 1.65 0 002.82 1.18l.06-.06a2 2 0 112.83 2.83l-.06.06A1.65 1.65 0 0019.5 11h.09a2 2 0 110 4z"/>',
}

TAB_LABEL_KEYS = {
    "main": "home", "tanks": "tanks", "store": "store", "credits": "credits", "workers": "workers_nav",
    "taxes": "taxes_zakat", "cheques": "cheques", "reports": "reports", "totals": "totals", "settings": "settings",
}

BASE_CSS = """
:root {
  --bg-primary: #f8fafc;
  --bg-secondary: #ffffff;
  --bg-card: #ffffff;
  --bg-input: #f1f5f9;
  --border-subtle: rgba(15,23,42,0.10);
  --text-primary: #0f172a;
  --text-secondary: #475569;
  --text-muted: #64748b;
  --accent-primary: #f97316;
  --accent-glow: rgba(249,115,22,0.12);
  --success: #16a34a;
  --danger: #dc2626;
  --warning: #ca8a04;
  --info: #2563eb;
  --sidebar-w: 72px;
  --radius: 12px;
  --mono: 'JetBrains Mono', monospace;
}
html.dark {
  --bg-primary: #09090b;
  --bg-secondary: #111114;
  --bg-card: #161619;
  --bg-input: #1a1a1f;
  --border-subtle: rgba(255,255,255,0.08);
  --text-primary: #f1f5f9;
  --text-secondary: #94a3b8;
  --text-muted: #64748b;
}
* { box-sizing:border-box; margin:0; padding:0; }
body { font-family:'Inter',-apple-system,BlinkMacSystemFont,sans-serif; background:var(--bg-primary); color:var(--text-primary); min-height:100vh; line-height:1.5; }
.auth-screen { display:flex; align-items:center; justify-content:center; min-height:100vh; padding:16px; }
.auth-box { background:var(--bg-card); border:1px solid var(--border-subtle); border-radius:16px; padding:36px; max-width:380px; width:100%; }
.auth-box h1 { font-size:1.3rem; color:var(--accent-primary); margin-bottom:6px; }
.auth-box p { color:var(--text-muted); font-size:0.85rem; margin-bottom:16px; }
.auth-box label { display:block; font-size:0.75rem; color:var(--text-secondary); margin-top:10px; }
.auth-box input { width:100%; margin-top:4px; }
.auth-box button { width:100%; margin-top:18px; }
.auth-error { color:var(--danger); font-size:0.85rem; margin-top:10px; }
input, select { background:var(--bg-input); border:1px solid var(--border-subtle); color:var(--text-primary); border-radius:8px; padding:7px 10px; font-size:0.85rem; font-family:inherit; }
input:focus, select:focus { outline:none; border-color:var(--accent-primary); box-shadow:0 0 0 3px var(--accent-glow); }
input.num { width:110px; text-align:right; font-family:var(--mono); }
button, .btn { background:var(--accent-primary); color:#fff; border:none; border-radius:8px; padding:8px 14px; font-weight:600; font-size:0.85rem; cursor:pointer; text-decoration:none; display:inline-block; }
button.secondary, .btn.secondary { background:transparent; color:var(--text-primary); border:1px solid var(--border-subtle); }
button.danger { background:transparent; color:var(--danger); border:1px solid var(--border-subtle); padding:4px 10px; }
.sidebar { position:fixed; left:0; top:0; bottom:0; width:var(--sidebar-w); background:var(--bg-secondary); border-right:1px solid var(--border-subtle); display:flex; flex-direction:column; align-items:center; padding:16px 0; gap:4px; z-index:100; }
.nav-item { display:flex; align-items:center; justify-content:center; width:48px; height:44px; border-radius:12px; color:var(--text-muted); position:relative; text-decoration:none; }
.nav-item svg { width:22px; height:22px; stroke:currentColor; fill:none; stroke-width:1.8; stroke-linecap:round; stroke-linejoin:round; }
.nav-item:hover { background:var(--accent-glow); color:var(--text-secondary); }
.nav-item.active { color:var(--accent-primary); background:var(--accent-glow); }
.nav-item .tooltip { position:absolute; left:calc(100% + 10px); background:var(--bg-card); border:1px solid var(--border-subtle); padding:4px 10px; border-radius:8px; font-size:0.78rem; white-space:nowrap; opacity:0; pointer-events:none; color:var(--text-primary); }
.nav-item:hover .tooltip { opacity:1; }
.main-content { margin-left:var(--sidebar-w); padding:20px 28px 60px; }
.topbar { display:flex; flex-wrap:wrap; align-items:center; gap:12px; margin-bottom:18px; }
.topbar .brand { font-weight:700; font-size:1.15rem; color:var(--accent-primary); }
.topbar .spacer { flex:1; }
.topbar .hint { margin:0; }
.tab { display:none; }
.tab.active { display:block; }
.card { background:var(--bg-card); border:1px solid var(--border-subtle); border-radius:var(--radius); padding:18px; margin-bottom:16px; }
.card-title { font-weight:700; font-size:1rem; margin-bottom:4px; }
.hint { color:var(--text-muted); font-size:0.8rem; margin-bottom:10px; }
.grid { display:grid; grid-template-columns:repeat(auto-fit, minmax(220px, 1fr)); gap:12px; }
.row { display:flex; flex-wrap:wrap; gap:10px; align-items:flex-end; margin:8px 0; }
.row label { display:flex; flex-direction:column; font-size:0.72rem; color:var(--text-secondary); gap:3px; }
table { width:100%; border-collapse:collapse; font-size:0.85rem; }
th { text-align:left; font-size:0.72rem; text-transform:uppercase; letter-spacing:0.04em; color:var(--text-muted); padding:6px 8px; border-bottom:1px solid var(--border-subtle); }
td { padding:6px 8px; border-bottom:1px solid var(--border-subtle); }
td.mono, .mono { font-family:var(--mono); text-align:right; }
tfoot td { font-weight:700; }
.stat { border:1px solid var(--border-subtle); border-radius:10px; padding:12px; }
.stat .label { font-size:0.75rem; color:var(--text-muted); }
.stat .value { font-family:var(--mono); font-weight:700; font-size:1.1rem; }
.pos { color:var(--success); }
.neg { color:var(--danger); }
.badge { display:inline-block; padding:1px 8px; border-radius:6px; font-size:0.72rem; background:var(--accent-glow); color:var(--accent-primary); }
.badge.paid { background:rgba(22,163,74,0.12); color:var(--success); }
.badge.money_received { background:rgba(37,99,235,0.12); color:var(--info); }
.badge.pending, .badge.pending_payment { background:rgba(202,138,4,0.12); color:var(--warning); }
.status-ok { color:var(--success); font-weight:700; }
.status-short { color:var(--danger); font-weight:700; }
.status-extra { color:var(--info); font-weight:700; }
.level { height:8px; border-radius:4px; background:var(--bg-input); overflow:hidden; margin:6px 0; }
.level > div { height:100%; background:var(--accent-primary); }
.toast { position:fixed; right:20px; bottom:20px; background:var(--bg-card); border:1px solid var(--accent-primary); border-radius:10px; padding:10px 16px; font-size:0.85rem; box-shadow:0 6px 20px rgba(0,0,0,0.15); z-index:1000; }
.demo-banner { background:linear-gradient(90deg,#f97316,#fb923c); color:#fff; text-align:center; padding:6px; font-size:0.85rem; font-weight:600; border-radius:8px; margin-bottom:12px; }
details summary { cursor:pointer; color:var(--text-secondary); font-size:0.8rem; }
@media (max-width: 760px) {
  .sidebar { top:auto; width:100%; height:56px; flex-direction:row; justify-content:space-around; padding:0; border-right:none; border-top:1px solid var(--border-subtle); }
  .nav-item .tooltip { display:none; }
  .main-content { margin-left:0; padding:14px 12px 80px; }
}
"""

DASHBOARD_JS = """
function switchTab(tab, push) {
  document.querySelectorAll(".tab").forEach(function(el) { el.classList.toggle("active", el.id === "tab-" + tab); });
  document.querySelectorAll(".nav-item").forEach(function(el) { el.classList.toggle("active", el.getAttribute("data-tab") === tab); });
  if (push) history.pushState({tab: tab}, "", tab === "main" ? "/" : "/" + tab);
}
document.querySelectorAll(".nav-item").forEach(function(el) {
  el.addEventListener("click", function(e) { e.preventDefault(); switchTab(el.getAttribute("data-tab"), true); });
});
window.addEventListener("popstate", function(e) { if (e.state && e.state.tab) switchTab(e.state.tab, false); });

function savePreferences(body) {
  return fetch("/api/preferences", {method: "POST", headers: {"Content-Type": "application/json"}, body: JSON.stringify(body)})
    .then(function(r) { return r.json(); });
}
function toggleTheme() {
  var dark = !document.documentElement.classList.contains("dark");
  document.documentElement.classList.toggle("dark", dark);
  savePreferences({theme: dark ? "dark" : "light"});
}
function setLang(lang) { savePreferences({lang: lang}).then(function() { location.reload(); }); }

/* Main page: recompute totals on every keystroke, inputs are stored as drafts */
var _recalcTimer = null;
function recalcMain() {
  clearTimeout(_recalcTimer);
  _recalcTimer = setTimeout(function() {
    var fd = new FormData();
    ["main-form", "closing-form"].forEach(function(id) {
      var f = document.getElementById(id);
      if (!f) return;
      new FormData(f).forEach(function(v, k) { fd.append(k, v); });
    });
    fetch("/api/main-summary", {method: "POST", body: fd}).then(function(r) { return r.json(); }).then(function(d) {
      if (!d.ok) return;
      Object.keys(d.cells).forEach(function(id) {
        var el = document.getElementById(id);
        if (el) el.textContent = d.cells[id];
      });
      var st = document.getElementById("closing-status");
      if (st) st.className = "status-" + d.closing.status;
    }).catch(function() {});
  }, 250);
}
document.querySelectorAll("#main-form input, #closing-form input, #closing-form select").forEach(function(el) {
  el.addEventListener("input", recalcMain);
  el.addEventListener("change", recalcMain);
});

function resetAllData() {
  if (!confirm("This will delete ALL local data. Are you sure?")) return;
  fetch("/api/reset", {method: "POST"}).then(function() { location.href = "/"; });
}
var toast = document.getElementById("toast-msg");
if (toast) setTimeout(function() { toast.style.display = "none"; }, 4000);
if ("serviceWorker" in navigator) { navigator.serviceWorker.register("/sw.js").catch(function() {}); }
"""


def _m(x) -> str:
    return f"{sm.parse_amount(x):.2f}"


def _money(x, cur) -> str:
    return f"{_m(x)} {escape(cur)}"


def _e(s) -> str:
    return escape(str(s if s is not None else ""))


def _options(values, selected, labels=None) -> str:
    labels = labels or {}
    return "".join(
        f'<option value="{_e(v)}"{" selected" if v == selected else ""}>{_e(labels.get(v, v))}</option>'
        for v in values
    )


def _head(title: str, theme: str = "light") -> str:
    cls = ' class="dark"' if theme == "dark" else ""
    return f"""<!DOCTYPE html>
<html lang="en"{cls}>
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{_e(title)}</title>
<link rel="manifest" href="/manifest.json">
<meta name="theme-color" content="#f97316">
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&family=JetBrains+Mono:wght@400;600&display=swap" rel="stylesheet">
<style>{BASE_CSS}</style>
</head>"""


def render_activation_page(error: str = "") -> str:
    error_html = f'<p class="auth-error">{_e(error)}</p>' if error else ""
    return _head(BRAND) + f"""<body><div class="auth-screen"><div class="auth-box">
<h1>Activation</h1><p>Enter your one-time activation key to unlock the app.</p>
<form method="post" action="/activate">
<label for="activation-key">Activation Key</label>
<input id="activation-key" name="key" placeholder="TEMPO-GAS-1234" autofocus>
{error_html}
<button type="submit">Activate</button>
</form></div></div></body></html>"""


def render_login_page(error: str = "") -> str:
    error_html = f'<p class="auth-error">{_e(error)}</p>' if error else ""
    return _head(BRAND) + f"""<body><div class="auth-screen"><div class="auth-box">
<h1>Login</h1><p>Local only. Default admin/admin123</p>
<form method="post" action="/login">
<label for="username">Username</label><input id="username" name="username" placeholder="admin" autofocus>
<label for="password">Password</label><input id="password" name="password" type="password" placeholder="••••••••">
{error_html}
<button type="submit">Sign in</button>
</form></div></div></body></html>"""


# ── Tabs ──

def _main_tab(data: dict, ctx: dict) -> str:
    cur = ctx["cur"]
    s = sm.compute_daily_summary(data, ctx["today"])
    today_inputs = get_value(data, sm.K_PUMPS_TODAY, {})

    pump_rows = ""
    for r in s["pumps"]["rows"]:
        p, pid = r["pump"], r["pump"]["id"]
        tank_name = r["tank"]["name"] if r["tank"] else "—"
        pump_rows += (
            f'<tr><td>{_e(p["name"])}</td><td>{p["type"]}</td><td class="hint">{_e(tank_name)}</td>'
            f'<td class="mono">{_m(r["prev"])}</td>'
            f'<td><input class="num" name="tn_{pid}" value="{_e(today_inputs.get(pid, ""))}" inputmode="decimal" placeholder="T.N"></td>'
            f'<td class="mono" id="liters-{pid}">{_m(r["liters"])}</td>'
            f'<td class="mono" id="tp-{pid}">{_m(r["tProf"])}</td>'
            f'<td class="mono" id="np-{pid}">{_m(r["nProf"])}</td></tr>'
        )
    pt = s["pumps"]["totals"]
    by_type = " · ".join(
        f'{fuel}: <span class="mono" id="type-{fuel}">{_m(s["pumps"]["by_type"].get(fuel, 0))}</span> L'
        for fuel in ("ES", "GAZ", "GPL")
    )

    oil = sm.get_oil(data)
    oc = s["oil"]
    gazb = sm.get_gazb(data)
    gc = s["gazb"]

    store_rows = ""
    for r in s["store"]["rows"]:
        it, iid = r["item"], r["item"]["id"]
        store_rows += (
            f'<tr><td>{_e(it["name"])}</td><td class="mono">{r["prev"]}</td>'
            f'<td><input class="num" name="left_{iid}" value="{_e(r["left_raw"])}" inputmode="numeric" placeholder="Left"></td>'
            f'<td class="mono" id="sold-{iid}">{r["sold"]}</td>'
            f'<td class="mono" id="stp-{iid}">{_m(r["tProf"])}</td>'
            f'<td class="mono" id="snp-{iid}">{_m(r["nProf"])}</td></tr>'
        )
    if not store_rows:
        store_rows = '<tr><td colspan="6" class="hint">No products in stock. Add stock in the Store tab.</td></tr>'

    clients = ledgers.get_clients(data)
    client_opts = "".join(f'<option value="{_e(c["id"])}">{_e(c["name"])}</option>' for c in clients)
    workers = sm.get_workers(data)
    worker_opts = "".join(f'<option value="{_e(w["id"])}">{_e(w["name"])}</option>' for w in workers)

    expense_rows = "".join(
        f'<tr><td>{_e(e.get("name"))}</td><td>{_e(e.get("type"))}</td><td>{_e(e.get("deductFrom"))}</td>'
        f'<td class="mono">{_m(e.get("amount"))}</td><td class="hint">{_e(e.get("note", ""))}</td>'
        f'<td><form method="post" action="/save/expense/{_e(e.get("id"))}/delete" style="margin:0">'
        f'<button class="danger" type="submit">x</button></form></td></tr>'
        for e in s["expenses"]
    ) or '<tr><td colspan="6" class="hint">No expenses today.</td></tr>'

    def _lines(lines):
        return "".join(
            f'<tr><td>{sign} {_e(text)}</td><td class="mono">{_m(amount)}</td></tr>' for sign, text, amount in lines
        )

    c = s["closing"]
    cashier_opts = '<option value="">No cashier</option>' + "".join(
        f'<option value="{_e(w["id"])}"{" selected" if w["id"] == c["cashier_id"] else ""}>{_e(w["name"])}</option>'
        for w in workers
    )
    fixed_badge = ' <span class="badge">fixed</span>' if s["is_fixed"] else ""
    closed_note = '<p class="hint">Day already closed. Save Day again to overwrite.</p>' if s["day_closed"] else ""
    actual = get_value(data, sm.K_CLOSING_ACTUAL, "")

    return f"""
  <div class="card">
    <div class="card-title">#Main · {ctx["today"]}</div>
    <p class="hint">Enter today's meter numbers (T.N). Liters sold = T.N − P.N, priced with the assigned tank.</p>
    {closed_note}
    <form id="main-form" method="post" action="/save/readings">
    <table>
      <thead><tr><th>Pump</th><th>Type</th><th>Tank</th><th>P.N</th><th>T.N</th><th>Liters</th><th>TP</th><th>NP</th></tr></thead>
      <tbody>{pump_rows}</tbody>
      <tfoot><tr><td colspan="5">Pumps total</td><td class="mono" id="pumps-liters">{_m(pt["liters"])}</td>
        <td class="mono" id="pumps-tp">{_m(pt["tProf"])}</td><td class="mono" id="pumps-np">{_m(pt["nProf"])}</td></tr></tfoot>
    </table>
    <p class="hint" style="margin-top:8px;">{by_type}</p>

    <div class="card-title" style="margin-top:18px;">Oils</div>
    <div class="row">
      <label>P.N<input class="num" value="{_m(oil["prev"])}" disabled></label>
      <label>T.N<input class="num" name="oil_today" value="{_e(oil["today"])}" inputmode="decimal"></label>
      <label>Direct liters<input class="num" name="oil_direct" value="{_e(oil["directLiters"])}" inputmode="decimal"></label>
      <label>Liters<span class="mono" id="oil-liters">{_m(oc["liters"])}</span></label>
      <label>TP<span class="mono" id="oil-tp">{_m(oc["tProf"])}</span></label>
      <label>NP<span class="mono" id="oil-np">{_m(oc["nProf"])}</span></label>
    </div>
    <div class="row">
      <label>Oil bottles sold<input class="num" name="oil_bottles" value="{_e(oil["bottles"])}" inputmode="numeric"></label>
      <label>Price / profit<span class="mono">{_m(oil["bottlePrice"])} / {_m(oil["bottleProfit"])}</span></label>
      <label>TP<span class="mono" id="oil-bottles-tp">{_m(oc["bottles_tProf"])}</span></label>
      <label>NP<span class="mono" id="oil-bottles-np">{_m(oc["bottles_nProf"])}</span></label>
      <label>Stock<span class="mono">{sm.parse_count(oil["bottlesStock"])}</span></label>
    </div>
    <table style="margin-top:10px;">
      <thead><tr><th>Product</th><th>Prev</th><th>Today left</th><th>Sold</th><th>TP</th><th>NP</th></tr></thead>
      <tbody>{store_rows}</tbody>
    </table>

    <div class="card-title" style="margin-top:18px;">Gas bottles</div>
    <div class="row">
      <label>Sold<input class="num" name="gazb_bottles" value="{_e(gazb["bottles"])}" inputmode="numeric"></label>
      <label>Price / profit<span class="mono">{_m(gazb["price"])} / {_m(gazb["profit"])}</span></label>
      <label>TP<span class="mono" id="gazb-tp">{_m(gc["tProf"])}</span></label>
      <label>NP<span class="mono" id="gazb-np">{_m(gc["nProf"])}</span></label>
      <label>Left now<span class="mono" id="gazb-left">{gc["left_now"]}</span></label>
    </div>

    <div class="row" style="margin-top:14px;">
      <label>Starting money<input class="num" name="starting_money" value="{_m(s["starting_money"])}" inputmode="decimal"></label>
      <button type="submit" class="secondary">Save readings</button>
      <button type="submit" formaction="/save/day" onclick="return confirm('Save today and move T.N to P.N?')">Save Day</button>
    </div>
    </form>
  </div>

  <div class="grid">
    <div class="card">
      <div class="card-title">Overall Total{fixed_badge}</div>
      <p class="hint">Pumps + oils + bottles + products + paid credits + starting money − expenses.</p>
      <div class="stat"><div class="label">Total Profit</div><div class="value"><span id="display-tp">{_m(s["display_tp"])}</span> {_e(cur)}</div></div>
      <div class="stat" style="margin-top:8px;"><div class="label">Net Profit</div><div class="value"><span id="display-np">{_m(s["display_np"])}</span> {_e(cur)}</div></div>
    </div>
    <div class="card">
      <div class="card-title">After credits</div>
      <p class="hint">Overall Total (fixed) minus Sales with Credits.</p>
      <div class="stat"><div class="label">Sales with credits today</div><div class="value">{_money(s["credit_sales"], cur)}</div></div>
      <div class="stat" style="margin-top:8px;"><div class="label">Adjusted Total Profit</div><div class="value"><span id="adjusted-tp">{_m(s["adjusted_tp"])}</span> {_e(cur)}</div></div>
    </div>
  </div>

  <div class="card">
    <div class="card-title">Sales with credits</div>
    <form method="post" action="/save/credit-sale" class="row">
      <input type="hidden" name="tab" value="main">
      <label>Client<select name="client_id"><option value="">Select client</option>{client_opts}</select></label>
      <label>Type<select name="category">{_options(ledgers.CREDIT_CATEGORIES, "Fuel")}</select></label>
      <label>Amount<input class="num" name="amount" inputmode="decimal" placeholder="0"></label>
      <label>Note<input name="note" placeholder="Optional note"></label>
      <button type="submit">Add Credit</button>
    </form>
  </div>

  <div class="card">
    <div class="card-title">Other expenses</div>
    <table><thead><tr><th>Name</th><th>Type</th><th>From</th><th>Amount</th><th>Note</th><th></th></tr></thead>
    <tbody>{expense_rows}</tbody></table>
    <form method="post" action="/save/expense" class="row">
      <label>Name<input name="name" placeholder="Expense"></label>
      <label>Type<select name="type">{_options(sm.EXPENSE_TYPES, "Other")}</select></label>
      <label>Amount<input class="num" name="amount" inputmode="decimal" placeholder="0"></label>
      <label>Deduct from<select name="deduct_from">{_options(sm.DEDUCT_TARGETS, "NP")}</select></label>
      <label>Worker<select name="worker_id"><option value="">—</option>{worker_opts}</select></label>
      <label>Note<input name="note"></label>
      <button type="submit">Add</button>
    </form>
  </div>

  <div class="grid">
    <div class="card">
      <div class="card-title">Total Profit summary</div>
      <table><tbody>
        <tr><td>Overall TP</td><td class="mono" id="overall-tp">{_m(s["overall"]["tProf"])}</td></tr>
        {_lines(s["summary_tp"])}
      </tbody><tfoot><tr><td>Final TP</td><td class="mono" id="final-tp">{_m(s["final"]["tProf"])}</td></tr></tfoot></table>
    </div>
    <div class="card">
      <div class="card-title">Net Profit summary</div>
      <table><tbody>
        <tr><td>Overall NP</td><td class="mono" id="overall-np">{_m(s["overall"]["nProf"])}</td></tr>
        {_lines(s["summary_np"])}
      </tbody><tfoot><tr><td>Final NP</td><td class="mono" id="final-np">{_m(s["final"]["nProf"])}</td></tr></tfoot></table>
    </div>
  </div>

  <div class="card">
    <div class="card-title">Cashier closing</div>
    <p class="hint">Expected = starting money + (today's sales − new credits) + credits paid.</p>
    <form id="closing-form" method="post" action="/save/closing">
      <div class="row">
        <label>Cashier<select name="cashier_id">{cashier_opts}</select></label>
        <label>Credits paid today<input class="num" name="paid_override" placeholder="{_m(s["paid_credits"])}" inputmode="decimal"></label>
        <label>New credits<input class="num" name="new_credits_override" placeholder="{_m(s["credit_sales"])}" inputmode="decimal"></label>
        <label>Actual cash<input class="num" name="closing_actual" value="{_e(actual)}" inputmode="decimal"></label>
      </div>
      <table><tbody>
        <tr><td>Starting money</td><td class="mono">{_m(c["starting_money"])}</td></tr>
        <tr><td>Today's sales</td><td class="mono">{_m(c["today_sales"])}</td></tr>
        <tr><td>Expected sales cash</td><td class="mono" id="closing-sales-cash">{_m(c["expected_sales_cash"])}</td></tr>
        <tr><td>Expected in drawer</td><td class="mono" id="closing-expected">{_m(c["expected"])}</td></tr>
        <tr><td>Difference</td><td class="mono" id="closing-diff">{_m(c["diff"])}</td></tr>
        <tr><td>Status</td><td class="mono"><span id="closing-status" class="status-{c["status"]}">{c["status"]}</span></td></tr>
      </tbody></table>
      <div class="row"><button type="submit">Validate &amp; carry over</button></div>
    </form>
  </div>
"""


def _tanks_tab(data: dict, ctx: dict) -> str:
    tanks = sm.get_tanks(data)
    assignments = sm.get_assignments(data)
    readings = get_value(data, sm.K_READINGS, {})
    oil = sm.get_oil(data)

    pump_rows = ""
    for p in sm.get_pumps(data):
        pid = p["id"]
        same_type = [t for t in tanks if t.get("fuelType") == p["type"]]
        assigned = assignments.get(pid) or ""
        opts = '<option value="">No tank</option>' + "".join(
            f'<option value="{_e(t["id"])}"{" selected" if t["id"] == assigned else ""}>{_e(t["name"])}</option>'
            for t in same_type
        )
        prev = (readings.get(pid) or {}).get("prev", 0)
        pump_rows += (
            f'<tr><td>{p["type"]}</td><td><input name="name_{pid}" value="{_e(p["name"])}"></td>'
            f'<td><select name="tank_{pid}">{opts}</select></td>'
            f'<td><input class="num" name="prev_{pid}" value="{_m(prev)}" inputmode="decimal"></td></tr>'
        )

    cards = ""
    for t in tanks:
        tid = t["id"]
        cap = sm.parse_amount(t.get("capacity"))
        current = sm.parse_amount(t.get("current"))
        pct = min(100.0, 100 * current / cap) if cap > 0 else 0
        cards += f"""
    <div class="card">
      <div class="card-title">{_e(t["name"])} <span class="badge">{_e(t.get("fuelType"))}</span></div>
      <div class="level"><div style="width:{pct:.0f}%"></div></div>
      <p class="hint">{_m(current)} / {_m(cap)} L ({pct:.0f}%)</p>
      <form method="post" action="/save/tank/{_e(tid)}">
        <div class="row">
          <label>Name<input name="name" value="{_e(t["name"])}"></label>
          <label>Fuel<select name="fuelType">{_options(sm.FUEL_TYPES, t.get("fuelType"))}</select></label>
          <label>Capacity<input class="num" name="capacity" value="{_m(cap)}"></label>
          <label>Current<input class="num" name="current" value="{_m(current)}"></label>
          <label>Price/L<input class="num" name="price" value="{_m(t.get("price"))}"></label>
          <label>Profit/L<input class="num" name="profitPerL" value="{_m(t.get("profitPerL"))}"></label>
          <button type="submit" class="secondary">Save</button>
        </div>
      </form>
      <form method="post" action="/save/tank/{_e(tid)}/refill" class="row">
        <label>Refill liters<input class="num" name="liters" inputmode="decimal"></label>
        <label>Facture No<input name="facture_no"></label>
        <label>Note<input name="note"></label>
        <button type="submit">Refill</button>
      </form>
    </div>"""

    f = ctx["filters"]
    history_rows = "".join(
        f'<tr><td>{_e(h.get("date"))}</td><td>{_e(h.get("tankName"))}</td><td>{_e(h.get("type"))}</td>'
        f'<td class="mono">{_m(h.get("liters"))}</td><td>{_e(h.get("factureNo", ""))}</td><td class="hint">{_e(h.get("note", ""))}</td></tr>'
        for h in sm.tank_history(data, f.get("from", ""), f.get("to", ""))
    ) or '<tr><td colspan="6" class="hint">No tank movements yet.</td></tr>'

    return f"""
  <div class="card">
    <div class="card-title">#Tanks</div>
    <p class="hint">Pumps draw from the tank they are assigned to. Only tanks of the same fuel type can be assigned.</p>
    <form method="post" action="/save/pumps">
      <table><thead><tr><th>Type</th><th>Pump</th><th>Tank</th><th>P.N</th></tr></thead>
      <tbody>{pump_rows}
        <tr><td>OIL</td><td>Oil meter</td><td></td><td><input class="num" name="oil_prev" value="{_m(oil["prev"])}"></td></tr>
      </tbody></table>
      <div class="row"><button type="submit">Save pumps</button></div>
    </form>
  </div>
  <div class="grid">{cards}</div>
  <form method="post" action="/save/tank/add" class="row"><button type="submit" class="secondary">+ Add tank</button></form>
  <div class="card">
    <div class="card-title">Tank history</div>
    <form method="get" action="/tanks" class="row">
      <label>From<input type="date" name="from" value="{_e(f.get("from", ""))}"></label>
      <label>To<input type="date" name="to" value="{_e(f.get("to", ""))}"></label>
      <button type="submit" class="secondary">Filter</button>
    </form>
    <table><thead><tr><th>Date</th><th>Tank</th><th>Type</th><th>Liters</th><th>Facture</th><th>Note</th></tr></thead>
    <tbody>{history_rows}</tbody></table>
  </div>
"""


def _bottle_card(title: str, kind: str, stock, price, profit, deduct: bool) -> str:
    checked = " checked" if deduct else ""
    return f"""
    <div class="card">
      <div class="card-title">{title}</div>
      <form method="post" action="/save/bottles/{kind}" class="row">
        <label>Stock<input class="num" name="stock" value="{sm.parse_count(stock)}" inputmode="numeric"></label>
        <label>Price<input class="num" name="price" value="{_m(price)}"></label>
        <label>Profit<input class="num" name="profit" value="{_m(profit)}"></label>
        <label>Deduct on Save Day<input type="checkbox" name="deduct"{checked}></label>
        <button type="submit" class="secondary">Save</button>
      </form>
      <form method="post" action="/save/bottles/{kind}/refill" class="row">
        <label>Add bottles<input class="num" name="count" inputmode="numeric"></label>
        <button type="submit">Refill</button>
      </form>
    </div>"""


def _store_tab(data: dict, ctx: dict) -> str:
    cur = ctx["cur"]
    items = sm.get_store_items(data)
    item_rows = "".join(
        f'<tr><td><input name="name_{_e(it["id"])}" value="{_e(it.get("name"))}"></td>'
        f'<td><input class="num" name="price_{_e(it["id"])}" value="{_m(it.get("price"))}"></td>'
        f'<td><input class="num" name="profit_{_e(it["id"])}" value="{_m(it.get("profit"))}"></td>'
        f'<td><input class="num" name="stock_{_e(it["id"])}" value="{sm.parse_count(it.get("stock"))}" inputmode="numeric"></td>'
        f'<td><button class="danger" type="submit" formaction="/save/store-item/{_e(it["id"])}/delete">x</button></td></tr>'
        for it in items
    ) or '<tr><td colspan="5" class="hint">No items.</td></tr>'

    sales = sm.store_sales(data)
    sale_rows = "".join(
        f'<tr><td>{_e(r["item"].get("name"))}</td>'
        f'<td><input class="num" name="sold_{_e(r["item"]["id"])}" value="{_e(r["sold_raw"])}" inputmode="numeric"></td>'
        f'<td class="mono">{_m(r["tProf"])}</td><td class="mono">{_m(r["nProf"])}</td></tr>'
        for r in sales["rows"]
    )
    oil = sm.get_oil(data)
    gazb = sm.get_gazb(data)
    return f"""
  <div class="card">
    <div class="card-title">#Store</div>
    <p class="hint">Products, prices (TP per unit) and net profit per unit. Stock is what the Main page counts from.</p>
    <form method="post" action="/save/store-items">
      <table><thead><tr><th>Item</th><th>Price</th><th>Profit</th><th>Stock</th><th></th></tr></thead>
      <tbody>{item_rows}</tbody></table>
      <div class="row"><button type="submit">Save items</button></div>
    </form>
    <form method="post" action="/save/store-item/add" class="row">
      <label>New item<input name="name" placeholder="Item name"></label>
      <button type="submit" class="secondary">Add</button>
    </form>
  </div>
  <div class="card">
    <div class="card-title">Today's store sales</div>
    <form method="post" action="/save/store-day">
      <table><thead><tr><th>Item</th><th>Sold</th><th>TP</th><th>NP</th></tr></thead>
      <tbody>{sale_rows}</tbody>
      <tfoot><tr><td colspan="2">Total</td><td class="mono">{_money(sales["totals"]["tProf"], cur)}</td><td class="mono">{_money(sales["totals"]["nProf"], cur)}</td></tr></tfoot></table>
      <div class="row"><button type="submit">Save Store Day</button></div>
    </form>
    <form method="post" action="/save/store-apply" class="row">
      <button type="submit" class="secondary">Apply today's left quantities to stock</button>
    </form>
  </div>
  <div class="grid">
    {_bottle_card("Oil bottles", "oil", oil["bottlesStock"], oil["bottlePrice"], oil["bottleProfit"], oil["deductBottles"])}
    {_bottle_card("Gas bottles", "gazb", gazb["stock"], gazb["price"], gazb["profit"], gazb["deduct"])}
  </div>
"""


def _credits_tab(data: dict, ctx: dict) -> str:
    cur = ctx["cur"]
    clients = ledgers.get_clients(data)
    balances = ledgers.client_balances(data)
    client_opts = "".join(f'<option value="{_e(c["id"])}">{_e(c["name"])}</option>' for c in clients)
    balance_rows = ""
    for c in clients:
        bal = balances.get(c.get("name", ""), 0.0)
        cls = "neg" if bal > 0 else "pos"
        balance_rows += (
            f'<tr><td>{_e(c.get("name"))} <span class="hint">· {_e(c.get("group"))}</span></td>'
            f'<td class="mono {cls}">{_money(bal, cur)}</td>'
            f'<td><form method="post" action="/save/client/{_e(c["id"])}/delete" style="margin:0">'
            f'<button class="danger" type="submit" onclick="return confirm(\'Delete client?\')">x</button></form></td></tr>'
        )
    balance_rows = balance_rows or '<tr><td colspan="3" class="hint">No clients yet.</td></tr>'
    history_rows = "".join(
        f'<tr><td>{_e(tx.get("date"))}</td><td>{_e(tx.get("customer"))}</td>'
        f'<td>{_e(tx.get("category") or "Sale") if tx.get("kind") == "sale" else "Payment"}</td>'
        f'<td class="mono {"pos" if tx.get("kind") == "sale" else "neg"}">{"+" if tx.get("kind") == "sale" else "-"} {_money(tx.get("amount"), cur)}</td>'
        f'<td class="hint">{_e(tx.get("note", ""))}</td></tr>'
        for tx in ledgers.credit_history(data)
    ) or '<tr><td colspan="5" class="hint">No history yet.</td></tr>'
    return f"""
  <div class="card">
    <div class="card-title">#Credits</div>
    <p class="hint">Manage clients, credit sales and payments. Credit affects Total Profit; payments reduce it. Client balances update accordingly.</p>
    <form method="post" action="/save/client" class="row">
      <label>Name<input name="name" placeholder="Client name"></label>
      <label>Group<select name="group">{_options(ledgers.CLIENT_GROUPS, "Companies")}</select></label>
      <button type="submit">Add</button>
    </form>
    <form method="post" action="/save/credit-sale" class="row">
      <label>Client<select name="client_id"><option value="">Select client</option>{client_opts}</select></label>
      <label>Type<select name="category">{_options(ledgers.CREDIT_CATEGORIES, "Fuel")}</select></label>
      <label>Amount<input class="num" name="amount" inputmode="decimal" placeholder="0"></label>
      <label>Note<input name="note" placeholder="Optional note"></label>
      <button type="submit">Add Credit</button>
    </form>
    <form method="post" action="/save/credit-payment" class="row">
      <label>Client<select name="client_id"><option value="">Select client</option>{client_opts}</select></label>
      <label>Amount<input class="num" name="amount" inputmode="decimal" placeholder="0"></label>
      <label>Note<input name="note" placeholder="Optional note"></label>
      <button type="submit">Pay</button>
    </form>
  </div>
  <div class="card">
    <div class="card-title">Balances</div>
    <table><tbody>{balance_rows}</tbody></table>
  </div>
  <div class="card">
    <div class="card-title">History</div>
    <table><thead><tr><th>Date</th><th>Client</th><th>Kind</th><th>Amount</th><th>Note</th></tr></thead>
    <tbody>{history_rows}</tbody></table>
  </div>
"""


def _workers_tab(data: dict, ctx: dict) -> str:
    t, cur = ctx["t"], ctx["cur"]
    workers = sm.get_workers(data)
    cards = ""
    for w in workers:
        wid = _e(w["id"])
        last = w.get("lastPayment")
        last_s = f'{_e(last["date"])} · {_money(abs(sm.parse_amount(last["amount"])), cur)}' if last else "—"
        bal = sm.parse_amount(w.get("balance"))
        cards += f"""
    <div class="card">
      <form method="post" action="/save/worker/{wid}" class="row">
        <label>Name<input name="name" value="{_e(w.get("name"))}"></label>
        <label>{t("salary")}<input class="num" name="salary" value="{_m(w.get("salary"))}"></label>
        <button type="submit" class="secondary">Save</button>
      </form>
      <p class="hint">Balance: <span class="mono {"neg" if bal < 0 else "pos"}">{_money(bal, cur)}</span> · {t("last_payment")}: {last_s}</p>
      <form method="post" action="/save/worker/{wid}/pay" class="row">
        <label>{t("pay_amount")}<input class="num" name="amount" placeholder="{_m(w.get("salary"))}"></label>
        <label>Note<input name="note"></label>
        <button type="submit">Pay</button>
      </form>
      <form method="post" action="/save/worker/{wid}/adjust" class="row">
        <label>{t("adjust_balance")}<input class="num" name="amount"></label>
        <button type="submit" name="mode" value="add" class="secondary">{t("add")}</button>
        <button type="submit" name="mode" value="deduct" class="secondary">{t("deduct")}</button>
      </form>
      <form method="post" action="/save/worker/{wid}/delete" class="row">
        <button type="submit" class="danger" onclick="return confirm('Delete worker?')">{t("delete_worker")}</button>
      </form>
    </div>"""
    if not cards:
        cards = f'<p class="hint">{t("no_workers")}</p>'
    pay_rows = "".join(
        f'<tr><td>{_e(p.get("date"))}</td><td>{_e(p.get("workerName"))}</td>'
        f'<td class="mono">{_money(abs(sm.parse_amount(p.get("amount"))), cur)}</td><td class="hint">{_e(p.get("note", ""))}</td></tr>'
        for p in ledgers.payments_history(data)
    ) or f'<tr><td colspan="4" class="hint">{t("no_payments")}</td></tr>'
    return f"""
  <div class="card">
    <div class="card-title">#{t("workers")}</div>
    <p class="hint">{t("workers_desc")}</p>
    <div class="stat"><div class="label">{t("total_monthly_salaries")}</div><div class="value">{_money(ledgers.total_monthly_salaries(data), cur)}</div></div>
    <form method="post" action="/save/worker/add" class="row">
      <label>Name<input name="name" placeholder="Worker name"></label>
      <button type="submit">{t("add_worker")}</button>
    </form>
  </div>
  <div class="grid">{cards}</div>
  <div class="card">
    <div class="card-title">{t("payments_history")}</div>
    <p class="hint">{t("recent_worker_payments")}</p>
    <table><tbody>{pay_rows}</tbody></table>
  </div>
"""


def _taxes_tab(data: dict, ctx: dict) -> str:
    cur, f = ctx["cur"], ctx["filters"]
    tx = ledgers.compute_taxes(data, f.get("from", ""), f.get("to", ""))
    cfg = tx["config"]

    def _record_form(name, amount, deduct_from):
        return f"""
      <form method="post" action="/save/taxes/record" class="row">
        <input type="hidden" name="name" value="{name}">
        <input type="hidden" name="from" value="{_e(f.get("from", ""))}">
        <input type="hidden" name="to" value="{_e(f.get("to", ""))}">
        <label>Deduct from<select name="deduct_from">{_options(sm.DEDUCT_TARGETS, deduct_from)}</select></label>
        <button type="submit">Record {name} ({_money(amount, cur)})</button>
      </form>"""

    return f"""
  <div class="card">
    <div class="card-title">#Taxes &amp; Zakat</div>
    <form method="post" action="/save/taxes" class="row">
      <label>Tax rate %<input class="num" name="tax_rate" value="{_e(cfg["taxRate"])}"></label>
      <label>Zakat rate %<input class="num" name="zakat_rate" value="{_e(cfg["zakatRate"])}"></label>
      <label>Base<select name="base">{_options(sm.DEDUCT_TARGETS, cfg["base"])}</select></label>
      <label>Tax from<select name="tax_from">{_options(sm.DEDUCT_TARGETS, tx["tax_from"])}</select></label>
      <label>Zakat from<select name="zakat_from">{_options(sm.DEDUCT_TARGETS, tx["zakat_from"])}</select></label>
      <button type="submit" class="secondary">Save</button>
    </form>
    <form method="get" action="/taxes" class="row">
      <label>From<input type="date" name="from" value="{_e(f.get("from", ""))}"></label>
      <label>To<input type="date" name="to" value="{_e(f.get("to", ""))}"></label>
      <button type="submit" class="secondary">Apply range</button>
    </form>
    <div class="grid">
      <div class="stat"><div class="label">Base ({cfg["base"]})</div><div class="value">{_money(tx["base_amount"], cur)}</div></div>
      <div class="stat"><div class="label">Tax due</div><div class="value">{_money(tx["tax_due"], cur)}</div></div>
      <div class="stat"><div class="label">Zakat due</div><div class="value">{_money(tx["zakat_due"], cur)}</div></div>
    </div>
    {_record_form("Taxes", tx["tax_due"], tx["tax_from"])}
    {_record_form("Zakat", tx["zakat_due"], tx["zakat_from"])}
  </div>
"""


def _cheque_section(title: str, cheques: list, cur: str) -> str:
    rows = ""
    for c in cheques:
        cid = _e(c["id"])
        st = c.get("status", "pending")
        rows += f"""
        <tr><td>{_e(c.get("date"))}</td><td>{_e(c.get("depositedDate", ""))}</td><td>{_e(c.get("number"))}</td>
          <td>{_e(c.get("issuer"))}</td><td class="mono">{_money(c.get("amount"), cur)}</td><td>{_e(c.get("transactionType"))}</td>
          <td><span class="badge {st}">{_e(ledgers.CHEQUE_STATUS_LABELS.get(st, st))}</span></td>
          <td><form method="post" action="/save/cheque/{cid}/status" style="margin:0;display:flex;gap:4px;">
            <select name="status">{_options(ledgers.CHEQUE_STATUSES[1:], st, ledgers.CHEQUE_STATUS_LABELS)}</select>
            <button type="submit" class="secondary">Set</button></form></td>
          <td><form method="post" action="/save/cheque/{cid}/delete" style="margin:0">
            <button type="submit" class="danger" onclick="return confirm('Delete cheque?')">x</button></form></td></tr>
        <tr><td colspan="9"><details><summary>Edit</summary>
          <form method="post" action="/save/cheque/{cid}" class="row">
            <label>Date<input type="date" name="date" value="{_e(c.get("date"))}"></label>
            <label>Deposited<input type="date" name="depositedDate" value="{_e(c.get("depositedDate", ""))}"></label>
            <label>Number<input name="number" value="{_e(c.get("number"))}"></label>
            <label>Issuer<input name="issuer" value="{_e(c.get("issuer"))}"></label>
            <label>Amount<input class="num" name="amount" value="{_m(c.get("amount"))}"></label>
            <label>Note<input name="note" value="{_e(c.get("note", ""))}"></label>
            <button type="submit" class="secondary">Save</button>
          </form></details></td></tr>"""
    rows = rows or '<tr><td colspan="9" class="hint">No cheques.</td></tr>'
    return f"""
  <div class="card">
    <div class="card-title">{title}</div>
    <table><thead><tr><th>Added</th><th>Deposited</th><th>Number</th><th>Issuer</th><th>Amount</th><th>Type</th><th>Status</th><th></th><th></th></tr></thead>
    <tbody>{rows}</tbody></table>
  </div>"""


def _cheques_tab(data: dict, ctx: dict) -> str:
    cur, q = ctx["cur"], ctx["filters"].get("q", "")
    totals = ledgers.cheque_totals(data)
    payable = ledgers.sales_payable(data)
    return f"""
  <div class="card">
    <div class="card-title">#Cheques</div>
    <form method="post" action="/save/cheque/add" class="row">
      <label>Date<input type="date" name="date" value="{ctx["today"]}"></label>
      <label>Deposited<input type="date" name="depositedDate"></label>
      <label>Number<input name="number"></label>
      <label>Issuer<input name="issuer" placeholder="Party / company"></label>
      <label>Amount<input class="num" name="amount" inputmode="decimal"></label>
      <label>Type<select name="transactionType">{_options(ledgers.CHEQUE_TRANSACTION_TYPES, "Check")}</select></label>
      <label>Section<select name="kind">{_options(ledgers.CHEQUE_KINDS, "received", {"received": "Received", "sent": "Sent", "naftal": "Naftal"})}</select></label>
      <label>Status<select name="status">{_options(ledgers.CHEQUE_STATUSES[1:], "pending_payment", ledgers.CHEQUE_STATUS_LABELS)}</select></label>
      <label>Note<input name="note"></label>
      <button type="submit">Add</button>
    </form>
    <form method="get" action="/cheques" class="row">
      <label>Search<input name="q" value="{_e(q)}" placeholder="Number or issuer"></label>
      <button type="submit" class="secondary">Search</button>
    </form>
    <div class="grid">
      <div class="stat"><div class="label">Pending</div><div class="value">{_money(totals["pending"], cur)}</div></div>
      <div class="stat"><div class="label">Cleared</div><div class="value">{_money(totals["cleared"], cur)}</div></div>
    </div>
  </div>
  <div class="card">
    <div class="card-title">Sales payable (Naftal)</div>
    <p class="hint">Accumulated Total Profit minus Net Profit over saved history, less Naftal cheques marked Paid.</p>
    <div class="grid">
      <div class="stat"><div class="label">Payable</div><div class="value">{_money(payable["payable"], cur)}</div></div>
      <div class="stat"><div class="label">Paid via cheques</div><div class="value">{_money(payable["paid_via_cheques"], cur)}</div></div>
      <div class="stat"><div class="label">Remaining</div><div class="value">{_money(payable["remaining"], cur)}</div></div>
    </div>
  </div>
  {_cheque_section("Received", ledgers.filter_cheques(data, "received", q), cur)}
  {_cheque_section("Sent", ledgers.filter_cheques(data, "sent", q), cur)}
  {_cheque_section("Naftal", ledgers.filter_cheques(data, "naftal", q), cur)}
"""


def _range_form(action: str, f: dict, extra: str = "") -> str:
    return f"""
    <form method="get" action="{action}" class="row">
      <label>From<input type="date" name="from" value="{_e(f.get("from", ""))}"></label>
      <label>To<input type="date" name="to" value="{_e(f.get("to", ""))}"></label>
      {extra}
      <button type="submit" class="secondary">Filter</button>
    </form>"""


def _reports_tab(data: dict, ctx: dict) -> str:
    cur, f = ctx["cur"], ctx["filters"]
    include_store = reports.include_store_default(data)
    rows = reports.report_rows(data, f.get("from", ""), f.get("to", ""), include_store)
    summary = reports.report_summary(rows)
    qs = f'from={_e(f.get("from", ""))}&amp;to={_e(f.get("to", ""))}'
    table_rows = "".join(
        f'<tr><td>{_e(r["date"])}</td><td class="mono">{_m(r["liters"])} L</td>'
        f'<td class="mono">{_money(r["tProf"], cur)}</td><td class="mono">{_money(r["nProf"], cur)}</td></tr>'
        for r in rows
    ) or '<tr><td colspan="4" class="hint">No saved days in range.</td></tr>'
    checked = " checked" if include_store else ""
    return f"""
  <div class="card">
    <div class="card-title">#Reports</div>
    <p class="hint">Filter by date range. Totals combine Main history{" and Store history" if include_store else ""}.</p>
    {_range_form("/reports", f)}
    <form method="post" action="/save/report-prefs" class="row">
      <label>Include Store<input type="checkbox" name="include_store"{checked} onchange="this.form.submit()"></label>
      <a class="btn secondary" href="/export/reports.csv?{qs}">Export CSV</a>
      <a class="btn secondary" href="/export/reports.xlsx?{qs}">Export Excel</a>
    </form>
    <div class="grid">
      <div class="stat"><div class="label">Days</div><div class="value">{summary["days"]}</div></div>
      <div class="stat"><div class="label">Liters</div><div class="value">{_m(summary["liters"])} L</div></div>
      <div class="stat"><div class="label">Total Profit</div><div class="value">{_money(summary["tProf"], cur)}</div></div>
      <div class="stat"><div class="label">Net Profit</div><div class="value">{_money(summary["nProf"], cur)}</div></div>
    </div>
  </div>
  <div class="card">
    <div class="card-title">Daily breakdown</div>
    <table><thead><tr><th>Date</th><th>Liters</th><th>Total Profit</th><th>Net Profit</th></tr></thead>
    <tbody>{table_rows}</tbody></table>
  </div>
"""


def _totals_tab(data: dict, ctx: dict) -> str:
    cur, f = ctx["cur"], ctx["filters"]
    totals = reports.overall_totals(data, f.get("from", ""), f.get("to", ""))
    rows = "".join(
        f'<tr><td>{_e(r["date"])}</td><td>{_e(r["source"])}</td>'
        f'<td class="mono">{_money(r["tProf"], cur)}</td><td class="mono">{_money(r["nProf"], cur)}</td></tr>'
        for r in totals["rows"]
    ) or '<tr><td colspan="4" class="hint">Nothing saved yet.</td></tr>'
    return f"""
  <div class="card">
    <div class="card-title">#Total So Far</div>
    {_range_form("/totals", f)}
    <div class="grid">
      <div class="stat"><div class="label">Total Profit</div><div class="value">{_money(totals["sums"]["tProf"], cur)}</div></div>
      <div class="stat"><div class="label">Net Profit</div><div class="value">{_money(totals["sums"]["nProf"], cur)}</div></div>
    </div>
  </div>
  <div class="card">
    <table><thead><tr><th>Date</th><th>Source</th><th>Total Profit</th><th>Net Profit</th></tr></thead>
    <tbody>{rows}</tbody></table>
  </div>
"""


def _settings_tab(data: dict, ctx: dict) -> str:
    settings = sm.get_settings(data)
    g, o = settings["gazbDefaults"], settings["oilBottleDefaults"]
    account = get_value(data, "app.auth.user", {"username": "admin"})
    display_name = get_value(data, "waali_user_name", "")
    return f"""
  <div class="card">
    <div class="card-title">#Settings</div>
    <form method="post" action="/save/settings">
      <div class="row">
        <label>Business name<input name="business_name" value="{_e(settings["businessName"])}"></label>
        <label>Currency<input name="currency" value="{_e(settings["currency"])}"></label>
      </div>
      <div class="row">
        <label>Gas bottle price<input class="num" name="gazb_price" value="{_m(g["price"])}"></label>
        <label>Gas bottle profit<input class="num" name="gazb_profit" value="{_m(g["profit"])}"></label>
        <label>Deduct gas bottles<input type="checkbox" name="gazb_deduct"{" checked" if g["deduct"] else ""}></label>
      </div>
      <div class="row">
        <label>Oil bottle price<input class="num" name="oil_price" value="{_m(o["price"])}"></label>
        <label>Oil bottle profit<input class="num" name="oil_profit" value="{_m(o["profit"])}"></label>
        <label>Deduct oil bottles<input type="checkbox" name="oil_deduct"{" checked" if o["deduct"] else ""}></label>
      </div>
      <div class="row"><button type="submit">Save settings</button></div>
    </form>
    <form method="post" action="/save/settings/apply" class="row">
      <button type="submit" class="secondary">Apply defaults to current day</button>
    </form>
  </div>
  <div class="card">
    <div class="card-title">Account</div>
    <p class="hint">Change your display name, username, and password.</p>
    <form method="post" action="/save/account" onsubmit="return confirm('Are you sure you want to save account changes?')">
      <div class="row">
        <label>Display name<input name="display_name" value="{_e(display_name)}"></label>
        <label>Username<input name="username" value="{_e(account.get("username", "admin"))}"></label>
      </div>
      <div class="row">
        <label>Current password<input type="password" name="current_password"></label>
        <label>New password<input type="password" name="new_password"></label>
        <label>Confirm new password<input type="password" name="confirm_password"></label>
      </div>
      <div class="row"><button type="submit">Save account</button></div>
    </form>
  </div>
  <div class="card">
    <div class="card-title">Backup</div>
    <div class="row">
      <a class="btn secondary" href="/api/export">Export backup</a>
      <button type="button" class="danger" onclick="resetAllData()">Reset all data</button>
    </div>
    <form method="post" action="/import/backup" enctype="multipart/form-data" class="row"
          onsubmit="return confirm('This will overwrite all current data. Continue?')">
      <label>Backup file<input type="file" name="backup_file" accept=".json,application/json"></label>
      <button type="submit" class="secondary">Import backup</button>
    </form>
  </div>
"""


TAB_RENDERERS = {
    "main": _main_tab,
    "tanks": _tanks_tab,
    "store": _store_tab,
    "credits": _credits_tab,
    "workers": _workers_tab,
    "taxes": _taxes_tab,
    "cheques": _cheques_tab,
    "reports": _reports_tab,
    "totals": _totals_tab,
    "settings": _settings_tab,
}


def render_dashboard(data: dict, saved: str = "", active_tab: str = "main", filters: dict = None,
                     user: str = "", demo_mode: bool = False) -> str:
    """Build the single-page dashboard: sidebar, header and all ten tabs."""
    settings = sm.get_settings(data)
    lang = get_value(data, K_LANG, "en")
    t = translator(lang)
    ctx = {
        "cur": settings["currency"] or "DZD",
        "t": t,
        "filters": filters or {},
        "today": sm.today_key(),
    }
    theme = get_value(data, "app.theme", "light")
    title = settings["businessName"] or BRAND

    nav = "".join(
        f'<a class="nav-item{" active" if tab == active_tab else ""}" data-tab="{tab}" href="{"/" if tab == "main" else "/" + tab}">'
        f'<svg viewBox="0 0 24 24">{TAB_ICONS[tab]}</svg><span class="tooltip">{_e(t(TAB_LABEL_KEYS[tab]))}</span></a>'
        for tab in TAB_RENDERERS
    )
    tabs = "".join(
        f'<div id="tab-{tab}" class="tab{" active" if tab == active_tab else ""}">\n<!-- TAB:{tab} -->'
        f'{render(data, ctx)}<!-- /TAB:{tab} -->\n</div>'
        for tab, render in TAB_RENDERERS.items()
    )
    lang_opts = _options(LANGUAGES, lang, {"en": "English", "fr": "Français"})
    saved_msg = f'<div class="toast" id="toast-msg">{_e(saved)}</div>' if saved else ""
    demo_banner = '<div class="demo-banner">Demo mode: sample data, changes are disabled.</div>' if demo_mode else ""
    page_state = json.dumps({"tab": active_tab}).replace("</", "<\\/")

    return _head(title, theme) + f"""
<body>
<nav class="sidebar">{nav}</nav>
<div class="main-content">
  {demo_banner}
  <div class="topbar">
    <span class="brand">{_e(title)}</span>
    <span class="hint">{ctx["today"]}</span>
    <span class="spacer"></span>
    <button type="button" class="secondary" onclick="toggleTheme()">{_e(t("dark_mode"))}</button>
    <label class="hint">{_e(t("language"))} <select onchange="setLang(this.value)">{lang_opts}</select></label>
    <span class="hint">{_e(user)}</span>
    <a class="btn secondary" href="/logout">{_e(t("logout"))}</a>
  </div>
  {tabs}
</div>
{saved_msg}
<script>
history.replaceState({page_state}, "");
{DASHBOARD_JS}
</script>
</body></html>"""
