"""
Local server for the Waali Gas Station dashboard.
Run: python server.py
Then open http://localhost:5000 for Main, Tanks, Store, Credits, Workers, Taxes, Cheques, Reports, Totals, Settings.
Saves go to station_data.json and are logged to the Excel History sheet.
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

# Run from the project directory
BASE = Path(__file__).resolve().parent
sys.path.insert(0, str(BASE))

load_dotenv(BASE / ".env")

DEMO_MODE = os.environ.get("DEMO_MODE", "").lower() in ("1", "true", "yes")
DATA_PATH = Path(os.environ.get("STATION_DATA") or BASE / "station_data.json")
WORKBOOK_PATH = Path(os.environ.get("STATION_WORKBOOK") or BASE / "Station_Ledger.xlsx")
CERT_DAYS = 365

if DEMO_MODE:
    import shutil
    import tempfile
    DEMO_DIR = Path(tempfile.mkdtemp(prefix="waali_demo_"))
    sample = BASE / "sample_station_data.json"
    if sample.exists():
        shutil.copy(sample, DEMO_DIR / "station_data.json")
    DATA_PATH = DEMO_DIR / "station_data.json"
    WORKBOOK_PATH = DEMO_DIR / "Station_Ledger.xlsx"
    print("[DEMO MODE] Sample data loaded into temp dir, real files untouched")


def activation_keys_from_env() -> tuple:
    """STATION_ACTIVATION_KEYS=KEY1,KEY2 overrides the built-in keys."""
    raw = os.environ.get("STATION_ACTIVATION_KEYS", "")
    return tuple(k.strip() for k in raw.split(",") if k.strip())


def create_app(data_path=None, workbook_path=None, demo_mode=None, activation_keys=None, secret_key=None) -> Flask:
    """Build the Flask app and wire the blueprint to the JSON store and the Excel workbook."""
    from dashboard import render_dashboard, render_activation_page, render_login_page
    from reports import append_history_log as _log, sync_history_to_excel
    from routes import bp, init_routes
    from station_store import load_store, save_store, set_value

    data_path = Path(data_path or DATA_PATH)
    workbook_path = Path(workbook_path or WORKBOOK_PATH)
    demo_mode = DEMO_MODE if demo_mode is None else demo_mode

    if demo_mode:
        # Demo visitors skip the activation screen
        data = load_store(data_path)
        set_value(data, "app.activation.valid", True)
        save_store(data_path, data)

    def append_history_log(action: str, details: str = "") -> None:
        _log(workbook_path, action, details)

    def sync_history(data: dict) -> None:
        sync_history_to_excel(workbook_path, data)

    app = Flask(__name__)
    app.secret_key = secret_key or os.environ.get("FLASK_SECRET", "waali-gas-default-key-change-me")

    init_routes({
        "DATA_PATH": data_path,
        "ACTIVATION_KEYS": activation_keys or activation_keys_from_env(),
        "DEMO_MODE": demo_mode,
        "load_store": load_store,
        "save_store": save_store,
        "render_dashboard": render_dashboard,
        "render_activation_page": render_activation_page,
        "render_login_page": render_login_page,
        "append_history_log": append_history_log,
        "sync_history": sync_history,
    })
    app.register_blueprint(bp)
    return app


def start_scheduler():
    """Midnight job: clear yesterday's credit totals and refresh the Excel history sheets."""
    from apscheduler.schedulers.background import BackgroundScheduler
    from reports import sync_history_to_excel
    from station_manager import roll_over_day, today_key
    from station_store import load_store, save_store

    scheduler = BackgroundScheduler(daemon=True)

    def scheduled_rollover():
        try:
            data = load_store(DATA_PATH)
            if roll_over_day(data):
                save_store(DATA_PATH, data)
                print(f"[Rollover] New day {today_key()}: credit totals cleared")
            sync_history_to_excel(WORKBOOK_PATH, data)
        except (OSError, ValueError) as e:
            print(f"[Rollover] Error: {e}")

    scheduler.add_job(scheduled_rollover, "cron", hour=0, minute=1, id="day_rollover")
    scheduler.start()
    print("Day rollover: every night at 00:01")
    return scheduler


def _cert_with_cryptography(cert_file: Path, key_file: Path) -> None:
    import datetime as dt
    from cryptography import x509
    from cryptography.hazmat.primitives import hashes, serialization
    from cryptography.hazmat.primitives.asymmetric import rsa
    from cryptography.x509.oid import NameOID

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "DZ"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Waali Gas Station"),
        x509.NameAttribute(NameOID.COMMON_NAME, "localhost"),
    ])
    start = dt.datetime.now(dt.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(start)
        .not_valid_after(start + dt.timedelta(days=CERT_DAYS))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName("localhost")]), critical=False)
    )
    certificate = builder.sign(private_key, hashes.SHA256())
    key_file.write_bytes(private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    ))
    cert_file.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))


def _ssl_context():
    """Self-signed cert for LAN use on phones (STATION_HTTPS=1)."""
    import ssl
    import subprocess

    cert_file, key_file = BASE / "station_cert.pem", BASE / "station_key.pem"
    if not (cert_file.exists() and key_file.exists()):
        print("[HTTPS] Creating a self-signed certificate for localhost")
        cmd = ["openssl", "req", "-x509", "-nodes", "-newkey", "rsa:2048",
               "-days", str(CERT_DAYS), "-subj", "/C=DZ/O=WaaliGasStation/CN=localhost",
               "-keyout", str(key_file), "-out", str(cert_file)]
        try:
            subprocess.run(cmd, check=True, capture_output=True)
        except (FileNotFoundError, subprocess.CalledProcessError):
            _cert_with_cryptography(cert_file, key_file)
        print(f"[HTTPS] Certificate written to {cert_file}")

    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    ctx.load_cert_chain(str(cert_file), str(key_file))
    return ctx


def main():
    app = create_app()

    # Reloader parent skips the scheduler so the job runs once
    if DEMO_MODE or os.environ.get("WERKZEUG_RUN_MAIN") == "true":
        start_scheduler()

    use_https = os.environ.get("STATION_HTTPS", "").lower() in ("1", "true", "yes")
    ssl_ctx = _ssl_context() if use_https else None

    host = os.environ.get("HOST") or "0.0.0.0"
    port = int(os.environ.get("PORT") or 5000)
    scheme = "https" if use_https else "http"
    print(f"Waali Gas Station on {scheme}://{host}:{port}")
    print(f"Data file: {DATA_PATH}")
    print(f"Audit workbook: {WORKBOOK_PATH}")
    if DEMO_MODE:
        print("[DEMO MODE] Saving is off, sample station loaded")
    if use_https:
        print("[HTTPS] Phones will warn about the self-signed certificate; accept it once")
    print("Ctrl+C to stop.")
    app.run(host=host, port=port, debug=False, use_reloader=not DEMO_MODE, ssl_context=ssl_ctx)


if __name__ == "__main__":
    main()
