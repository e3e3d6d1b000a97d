from __future__ import annotations

import json

import pytest

from station_store import (
    InvalidBackupError,
    backup_filename,
    export_namespace,
    get_value,
    import_namespace,
    load_store,
    reset_store,
    save_store,
)


def test_load_missing_file_returns_empty_namespace(tmp_path) -> None:
    assert load_store(tmp_path / "nothing.json") == {}


def test_save_then_load_keeps_every_key(tmp_path) -> None:
    path = tmp_path / "data.json"
    save_store(path, {"gs.tanks": [{"id": "esA"}], "gs.lang": "fr"})
    assert load_store(path) == {"gs.tanks": [{"id": "esA"}], "gs.lang": "fr"}


def test_corrupt_file_falls_back_to_backup_copy(tmp_path) -> None:
    path = tmp_path / "data.json"
    save_store(path, {"a": 1})
    save_store(path, {"a": 2})
    path.write_text("{not json", encoding="utf-8")
    assert load_store(path) == {"a": 1}


def test_reset_removes_file_and_backup(tmp_path) -> None:
    path = tmp_path / "data.json"
    save_store(path, {"a": 1})
    save_store(path, {"a": 2})
    reset_store(path)
    assert not path.exists()
    assert not (tmp_path / "data.json.bak").exists()
    assert load_store(path) == {}


def test_get_value_returns_a_copy_of_the_fallback() -> None:
    fallback = [{"id": "w1"}]
    value = get_value({}, "gs.workers.list", fallback)
    value.append({"id": "w2"})
    assert fallback == [{"id": "w1"}]


def test_get_value_treats_null_as_missing() -> None:
    assert get_value({"gs.overall.fixed.tp": None}, "gs.overall.fixed.tp", 5) == 5


def test_export_serializes_each_value_as_json_text() -> None:
    exported = export_namespace({"gs.credits.today": 120.5, "gs.lang": "en"})
    assert exported == {"gs.credits.today": "120.5", "gs.lang": '"en"'}


def test_import_accepts_browser_and_plain_backups() -> None:
    browser = json.dumps({"gs.history.daily": "[{\"date\": \"2025-05-01\"}]", "gs.lang": "\"fr\""})
    assert import_namespace(browser) == {"gs.history.daily": [{"date": "2025-05-01"}], "gs.lang": "fr"}
    assert import_namespace({"gs.credits.today": 10}) == {"gs.credits.today": 10}


def test_import_keeps_non_json_text_as_string() -> None:
    assert import_namespace({"waali_user_name": "Karim"}) == {"waali_user_name": "Karim"}


@pytest.mark.parametrize("raw", [b"[1, 2, 3]", b"not json", "42"])
def test_import_rejects_anything_but_an_object(raw) -> None:
    with pytest.raises(InvalidBackupError):
        import_namespace(raw)


def test_backup_filename() -> None:
    assert backup_filename("2025-05-01") == "waali-gas-backup-2025-05-01.json"
