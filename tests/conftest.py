from __future__ import annotations

import pytest

from server import create_app

ACTIVATION_KEY = "TEST-KEY-0001"


@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "station_data.json"


@pytest.fixture
def workbook_path(tmp_path):
    return tmp_path / "Station_Ledger.xlsx"


@pytest.fixture
def app(data_path, workbook_path):
    app = create_app(
        data_path=data_path,
        workbook_path=workbook_path,
        demo_mode=False,
        activation_keys=(ACTIVATION_KEY,),
        secret_key="test-secret",
    )
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in(client):
    client.post("/activate", data={"key": ACTIVATION_KEY})
    client.post("/login", data={"username": "admin", "password": "admin123"})
    return client
