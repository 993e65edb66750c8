import re

from fastapi.testclient import TestClient

from safedrop.config import ServerConfig
from safedrop.main import create_app
from safedrop.vault import Vault


def lock(client, **overrides):
    body = {"nonce": "bm9uY2U=", "secrets": "c2VjcmV0", "open_duration": 3600}
    body.update(overrides)
    return client.post("/safes", json=body)


def safe_id_of(response):
    match = re.fullmatch(r"/safes/([0-9a-f]{32})", response.json()["href"])
    assert match, response.json()
    return match.group(1)


def test_lock_returns_href(client, vault):
    r = lock(client)
    assert r.status_code == 200
    assert r.json().keys() == {"href"}
    assert vault.safe_exists(safe_id_of(r))


def test_unlock_returns_contents_only(client):
    safe_id = safe_id_of(lock(client))

    r = client.post(f"/safes/{safe_id}")
    assert r.status_code == 200
    assert r.json() == {"nonce": "bm9uY2U=", "secrets": "c2VjcmV0"}


def test_unlock_twice_is_not_found(client):
    safe_id = safe_id_of(lock(client))
    client.post(f"/safes/{safe_id}")

    r = client.post(f"/safes/{safe_id}")
    assert r.status_code == 404
    assert r.json() == {"message": f"Safe '{safe_id}' not found"}


def test_unlocks_left_is_honoured(client):
    safe_id = safe_id_of(lock(client, unlocks_left=2))

    assert client.post(f"/safes/{safe_id}").status_code == 200
    assert client.post(f"/safes/{safe_id}").status_code == 200
    assert client.post(f"/safes/{safe_id}").status_code == 404


def test_expired_safe_is_not_found(client, clock):
    safe_id = safe_id_of(lock(client, open_duration=60, unlocks_left=3))
    clock.advance(60)

    assert client.post(f"/safes/{safe_id}").status_code == 404


def test_zero_duration_is_accepted_but_never_opens(client):
    r = lock(client, open_duration=0, unlocks_left=5)
    assert r.status_code == 200

    assert client.post(f"/safes/{safe_id_of(r)}").status_code == 404


def test_unknown_safe_is_not_found(client):
    r = client.post("/safes/unknown")
    assert r.status_code == 404
    assert r.json() == {"message": "Safe 'unknown' not found"}


def test_invalid_bodies_are_rejected(client, vault):
    assert lock(client, unlocks_left=0).status_code == 422
    assert lock(client, open_duration=-1).status_code == 422
    assert client.post("/safes", json={"open_duration": 10}).status_code == 422
    assert len(vault) == 0


def test_oversized_body_is_rejected(client, vault):
    r = lock(client, secrets="x" * 2048)
    assert r.status_code == 413
    assert len(vault) == 0


def test_safe_page_serves_client(client):
    r = client.get("/safes/0123456789abcdef0123456789abcdef")
    assert r.status_code == 200
    assert "safedrop" in r.text


def test_viewing_page_does_not_spend_an_unlock(client, vault):
    safe_id = safe_id_of(lock(client))
    client.get(f"/safes/{safe_id}")
    assert vault.safe_exists(safe_id)


def test_index_and_static_files(client):
    assert client.get("/").status_code == 200
    r = client.get("/static/js/app.js")
    assert r.status_code == 200
    assert "use strict" in r.text


def test_missing_static_dir_serves_api_only(tmp_path):
    config = ServerConfig(static_dir=str(tmp_path / "missing"))
    client = TestClient(create_app(config, Vault()))

    assert client.get("/").status_code == 404
    assert client.get("/safes/abc").status_code == 404
    r = lock(client)
    assert r.status_code == 200
    assert client.post(r.json()["href"]).status_code == 200


def test_health_reports_live_safes(client):
    lock(client)
    lock(client)

    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
    assert r.json()["safes"] == 2


def test_lifespan_with_sweep_starts_and_stops(static_dir):
    config = ServerConfig(static_dir=str(static_dir), sweep_interval=3600)
    app = create_app(config, Vault())
    with TestClient(app) as client:
        assert client.get("/health").status_code == 200
        assert not app.state.sweep_task.done()

    assert app.state.sweep_task.cancelled()


def test_create_app_keeps_injected_empty_vault(config):
    vault = Vault()
    app = create_app(config, vault)

    assert len(vault) == 0
    assert app.state.vault is vault
    assert app.state.config is config


def test_oversized_malformed_body_is_refused_before_parsing(client, vault):
    r = client.post(
        "/safes",
        content=b"{" + b"x" * 4096,
        headers={"content-type": "application/json"},
    )
    assert r.status_code == 413
    assert len(vault) == 0


def test_malformed_body_within_limit_is_a_validation_error(client):
    r = client.post(
        "/safes",
        content=b"{" + b"x" * 100,
        headers={"content-type": "application/json"},
    )
    assert r.status_code == 422


def test_unlock_ignores_body_limit(client, vault):
    safe_id = vault.lock_safe(60, {"nonce": "n", "secrets": "s"})
    r = client.post(f"/safes/{safe_id}", content=b"x" * 4096)
    assert r.status_code == 200


class RecordingLogger:
    def __init__(self):
        self.warnings = []

    def warning(self, message, *args, **kwargs):
        self.warnings.append(message)

    def info(self, message, *args, **kwargs):
        pass


def test_missing_client_page_is_reported(tmp_path, monkeypatch):
    recorder = RecordingLogger()
    monkeypatch.setattr("safedrop.main.logger", recorder)

    create_app(ServerConfig(static_dir=str(tmp_path)), Vault())

    assert any("No client page" in message for message in recorder.warnings)


def test_present_client_page_is_not_reported(config, monkeypatch):
    recorder = RecordingLogger()
    monkeypatch.setattr("safedrop.main.logger", recorder)

    create_app(config, Vault())

    assert recorder.warnings == []
