from __future__ import annotations

import io

from openpyxl import load_workbook

import reports
import station_manager as sm


def _history() -> dict:
    return {
        sm.K_HISTORY_DAILY: [
            {"date": "2025-05-01", "totals": {"liters": 10, "tProf": 100, "nProf": 10}},
            {"date": "2025-05-01", "totals": {"liters": 20, "tProf": 200, "nProf": 20}},
            {"date": "2025-05-02", "totals": {"liters": 5.5, "tProf": 50, "nProf": 5}},
        ],
        sm.K_HISTORY_STORE: [
            {"date": "2025-05-02", "totals": {"tProf": 30, "nProf": 3}},
            {"date": "2025-05-02", "totals": {"tProf": 10, "nProf": 1}},
            {"date": "2025-05-03", "totals": {"tProf": 7, "nProf": 2}},
        ],
    }


def test_report_rows_last_main_entry_wins_and_store_is_added() -> None:
    rows = reports.report_rows(_history(), include_store=True)
    assert [r["date"] for r in rows] == ["2025-05-03", "2025-05-02", "2025-05-01"]
    assert rows[1] == {"date": "2025-05-02", "liters": 5.5, "tProf": 90.0, "nProf": 9.0}
    assert rows[2]["tProf"] == 200
    assert rows[0]["liters"] == 0


def test_report_rows_without_store() -> None:
    rows = reports.report_rows(_history(), include_store=False)
    assert [r["date"] for r in rows] == ["2025-05-02", "2025-05-01"]
    assert rows[0]["tProf"] == 50


def test_report_rows_respect_saved_preference_and_range() -> None:
    data = _history()
    data[reports.K_INCLUDE_STORE] = False
    rows = reports.report_rows(data, "2025-05-02", "2025-05-02")
    assert rows == [{"date": "2025-05-02", "liters": 5.5, "tProf": 50.0, "nProf": 5.0}]


def test_report_rows_empty_history() -> None:
    assert reports.report_rows({}) == []
    assert reports.report_summary([]) == {"days": 0, "liters": 0, "tProf": 0, "nProf": 0}


def test_csv_has_one_line_per_row() -> None:
    rows = reports.report_rows(_history(), "2025-05-01", "2025-05-02", include_store=True)
    lines = reports.rows_to_csv(rows).splitlines()
    assert lines[0] == "Date,Liters,Total Profit,Net Profit"
    assert len(lines) == len(rows) + 1
    assert lines[1] == "2025-05-02,5.5,90.00,9.00"
    assert lines[2] == "2025-05-01,20,200.00,20.00"


def test_report_filename() -> None:
    assert reports.report_filename("", "", "csv") == "reports_all_all.csv"
    assert reports.report_filename("2025-05-01", "2025-05-31", "xlsx") == "reports_2025-05-01_2025-05-31.xlsx"


def test_xlsx_export_matches_rows() -> None:
    rows = reports.report_rows(_history(), include_store=True)
    wb = load_workbook(io.BytesIO(reports.rows_to_xlsx(rows)))
    ws = wb["Reports"]
    assert [c.value for c in ws[1]] == reports.CSV_HEADER
    assert ws.max_row == len(rows) + 1
    assert ws.cell(2, 1).value == "2025-05-03"


def test_overall_totals_lists_both_sources() -> None:
    totals = reports.overall_totals(_history())
    assert len(totals["rows"]) == 6
    assert totals["rows"][0] == {"date": "2025-05-03", "source": reports.SOURCE_STORE, "tProf": 7.0, "nProf": 2.0}
    assert totals["sums"] == {"tProf": 397.0, "nProf": 41.0}
    in_range = reports.overall_totals(_history(), "2025-05-01", "2025-05-01")
    assert {r["source"] for r in in_range["rows"]} == {reports.SOURCE_DAILY}


def test_history_log_creates_workbook(tmp_path) -> None:
    path = tmp_path / "Station_Ledger.xlsx"
    reports.append_history_log(path, "Day saved", "2025-05-01")
    reports.append_history_log(path, "Tank refill", "ES Tank A")
    ws = load_workbook(path)["History"]
    assert [c.value for c in ws[1]] == ["Date", "Action", "Details"]
    assert ws.cell(2, 2).value == "Day saved"
    assert ws.max_row == 3
    assert ws.cell(3, 2).value == "Tank refill"


def test_history_log_failure_is_reported(tmp_path, capsys) -> None:
    bad = tmp_path / "not_a_workbook.xlsx"
    bad.write_text("plain text", encoding="utf-8")
    reports.append_history_log(bad, "Day saved")
    assert "[Excel] History log failed" in capsys.readouterr().out


def test_sync_history_rewrites_sheets(tmp_path) -> None:
    path = tmp_path / "Station_Ledger.xlsx"
    reports.append_history_log(path, "Start")
    reports.sync_history_to_excel(path, _history())
    reports.sync_history_to_excel(path, _history())
    wb = load_workbook(path)
    assert wb["DailyHistory"].max_row == 4
    assert wb["StoreHistory"].max_row == 4
    assert wb["DailyHistory"].cell(2, 1).value == "2025-05-01"
    assert wb["History"].cell(2, 2).value == "Start"
