"""
Reports - history aggregation, CSV/XLSX export and the Excel audit workbook.

Daily history (Save Day on Main) and store history (Save Store Day) are
combined per date for the Reports tab; Total So Far lists them side by side.
"""

import csv
import io
from datetime import datetime
from pathlib import Path
from zipfile import BadZipFile

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from station_manager import K_HISTORY_DAILY, K_HISTORY_STORE, parse_amount
from station_store import get_value

K_INCLUDE_STORE = "gs.reports.includeStore"

CSV_HEADER = ["Date", "Liters", "Total Profit", "Net Profit"]
SOURCE_DAILY = "Pumps + Oils + GazB"
SOURCE_STORE = "Store"

_COLS = ["date", "liters", "tProf", "nProf"]
_HEADER_FILL = PatternFill("solid", fgColor="DDEBF7")


def _history_frame(entries: list, date_from: str = "", date_to: str = "") -> pd.DataFrame:
    records = []
    for e in entries or []:
        totals = e.get("totals") or {}
        records.append({
            "date": str(e.get("date", "")),
            "liters": parse_amount(totals.get("liters")),
            "tProf": parse_amount(totals.get("tProf")),
            "nProf": parse_amount(totals.get("nProf")),
        })
    df = pd.DataFrame(records, columns=_COLS)
    if date_from:
        df = df[df["date"] >= date_from]
    if date_to:
        df = df[df["date"] <= date_to]
    return df


def include_store_default(data: dict) -> bool:
    return bool(get_value(data, K_INCLUDE_STORE, True))


def report_rows(data: dict, date_from: str = "", date_to: str = "", include_store=None) -> list[dict]:
    """
    One row per date in range, newest first. A date saved twice on Main keeps
    its last entry; store totals for the date are added on top when included.
    """
    if include_store is None:
        include_store = include_store_default(data)
    daily = _history_frame(get_value(data, K_HISTORY_DAILY, []), date_from, date_to)
    combined = daily.drop_duplicates("date", keep="last").set_index("date")[["liters", "tProf", "nProf"]]

    if include_store:
        store = _history_frame(get_value(data, K_HISTORY_STORE, []), date_from, date_to)
        store_sums = store.groupby("date")[["tProf", "nProf"]].sum()
        store_sums["liters"] = 0.0
        combined = combined.add(store_sums[["liters", "tProf", "nProf"]], fill_value=0)

    combined = combined.fillna(0).sort_index(ascending=False)
    return [
        {"date": str(d), "liters": float(r["liters"]), "tProf": float(r["tProf"]), "nProf": float(r["nProf"])}
        for d, r in combined.iterrows()
    ]


def report_summary(rows: list[dict]) -> dict:
    return {
        "days": len(rows),
        "liters": sum(r["liters"] for r in rows),
        "tProf": sum(r["tProf"] for r in rows),
        "nProf": sum(r["nProf"] for r in rows),
    }


def _liters_text(x: float) -> str:
    x = float(x)
    return str(int(x)) if x.is_integer() else repr(x)


def rows_to_csv(rows: list[dict]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for r in rows:
        writer.writerow([r["date"], _liters_text(r["liters"]), f"{r['tProf']:.2f}", f"{r['nProf']:.2f}"])
    return buf.getvalue()


def rows_to_xlsx(rows: list[dict]) -> bytes:
    """Same rows as the CSV export, as a single 'Reports' sheet."""
    df = pd.DataFrame(rows, columns=_COLS).rename(columns=dict(zip(_COLS, CSV_HEADER)))
    df[["Total Profit", "Net Profit"]] = df[["Total Profit", "Net Profit"]].round(2)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Reports", index=False)
        ws = writer.sheets["Reports"]
        for idx, name in enumerate(CSV_HEADER, start=1):
            ws.cell(1, idx).font = Font(bold=True)
            ws.cell(1, idx).fill = _HEADER_FILL
            ws.column_dimensions[get_column_letter(idx)].width = max(12, len(name) + 4)
    return buf.getvalue()


def report_filename(date_from: str = "", date_to: str = "", ext: str = "csv") -> str:
    return f"reports_{date_from or 'all'}_{date_to or 'all'}.{ext}"


def overall_totals(data: dict, date_from: str = "", date_to: str = "") -> dict:
    """Every saved day (Main) and store day, newest first, with TP/NP sums."""
    daily = _history_frame(get_value(data, K_HISTORY_DAILY, []), date_from, date_to)
    store = _history_frame(get_value(data, K_HISTORY_STORE, []), date_from, date_to)
    combined = pd.concat(
        [daily.assign(source=SOURCE_DAILY), store.assign(source=SOURCE_STORE)], ignore_index=True
    )
    combined = combined.sort_values("date", ascending=False, kind="stable")
    rows = [
        {"date": r["date"], "source": r["source"], "tProf": float(r["tProf"]), "nProf": float(r["nProf"])}
        for _, r in combined.iterrows()
    ]
    return {
        "rows": rows,
        "sums": {"tProf": sum(r["tProf"] for r in rows), "nProf": sum(r["nProf"] for r in rows)},
    }


# ── Excel audit workbook ──

def _open_workbook(wb_path: Path) -> Workbook:
    if wb_path.exists():
        return load_workbook(wb_path)
    wb = Workbook()
    wb.remove(wb.active)
    return wb


def append_history_log(wb_path: Path, action: str, details: str = "") -> None:
    """Append a row to the History sheet in the Excel workbook for audit trail."""
    wb_path = Path(wb_path)
    try:
        wb = _open_workbook(wb_path)
        if "History" in wb.sheetnames:
            ws = wb["History"]
        else:
            ws = wb.create_sheet("History", 0)
            ws.append(["Date", "Action", "Details"])
        ws.append([datetime.now().strftime("%Y-%m-%d %H:%M"), action, details])
        wb.save(wb_path)
    except (OSError, ValueError, KeyError, BadZipFile, InvalidFileException) as e:
        print(f"[Excel] History log failed: {e}")


def sync_history_to_excel(wb_path: Path, data: dict) -> None:
    """Write the full daily and store history to DailyHistory / StoreHistory sheets."""
    wb_path = Path(wb_path)
    try:
        wb = _open_workbook(wb_path)
        # Rebuilt from scratch on every sync
        for name in ("DailyHistory", "StoreHistory"):
            if name in wb.sheetnames:
                del wb[name]
            wb.create_sheet(name)

        ws = wb["DailyHistory"]
        ws.append(CSV_HEADER)
        for e in get_value(data, K_HISTORY_DAILY, []):
            t = e.get("totals") or {}
            ws.append([e.get("date", ""), t.get("liters", 0), t.get("tProf", 0), t.get("nProf", 0)])

        ws = wb["StoreHistory"]
        ws.append(["Date", "Total Profit", "Net Profit"])
        for e in get_value(data, K_HISTORY_STORE, []):
            t = e.get("totals") or {}
            ws.append([e.get("date", ""), t.get("tProf", 0), t.get("nProf", 0)])

        for ws in (wb["DailyHistory"], wb["StoreHistory"]):
            for c in range(1, ws.max_column + 1):
                ws.cell(1, c).font = Font(bold=True)
        wb.save(wb_path)
    except (OSError, ValueError, KeyError, BadZipFile, InvalidFileException) as e:
        print(f"[Excel] History sync failed: {e}")
