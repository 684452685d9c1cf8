import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

import onetime.lifecycle as lifecycle_module
from adapters.web.landing_page import FAVICON_ICO, describe_validity
from infrastructure.store import JsonTokenStore
from onetime.config import Settings
from onetime.lifecycle import ShareService
from onetime.tokens import MAX_TOKEN_LENGTH
from server import create_app

BASE_ADDR: str = "http://localhost:2500"
START: datetime = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


# Helpers


class FakeClock:
    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def make_sparse_file(path: str, size: int) -> str:
    with open(path, "wb") as f:
        f.truncate(size)
    return path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        token_db=str(tmp_path / "token.db"),
        log_file=str(tmp_path / "onetime.log"),
        base_addr=BASE_ADDR,
    )


@pytest.fixture
def service(settings: Settings, clock: FakeClock) -> ShareService:
    return ShareService.from_settings(settings, JsonTokenStore(settings.token_db), clock=clock)


@pytest.fixture
def client(settings: Settings, service: ShareService):
    app = create_app(settings, service)
    app.config["TESTING"] = True
    return app.test_client()


class TestScenario:
    """Register a 10 MB report, view it, download it, come back five hours later."""

    def test_report_lifecycle(self, client, service: ShareService, clock: FakeClock, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(lifecycle_module, "new_token_id", lambda existing, length: "ab12cd34")
        path = make_sparse_file(os.path.join(str(tmp_path), "report.pdf"), 10_000_000)

        receipt = service.add(path)
        assert receipt.token == "ab12cd34"
        assert receipt.url == f"{BASE_ADDR}/ab12cd34"

        page = client.get("/ab12cd34")
        assert page.status_code == 200
        body = page.get_data(as_text=True)
        assert "report.pdf" in body
        assert "10,000,000" in body
        assert 'href="/d/ab12cd34"' in body
        assert "Valid until" not in body

        download = client.get("/d/ab12cd34")
        assert download.status_code == 200
        assert len(download.data) == 10_000_000
        disposition = download.headers["Content-Disposition"]
        assert disposition.startswith("attachment")
        assert "report.pdf" in disposition
        assert service.snapshot()["ab12cd34"].activated_at == START

        clock.advance(timedelta(hours=5))
        again = client.get("/d/ab12cd34")
        assert again.status_code == 404


class TestLandingRoute:
    """Tests for GET /<token>."""

    def test_does_not_activate(self, client, service: ShareService, tmp_path) -> None:
        token = service.add(make_sparse_file(os.path.join(str(tmp_path), "a.bin"), 10)).token
        assert client.get(f"/{token}").status_code == 200
        assert service.snapshot()[token].activated_at is None

    def test_shows_deadline_after_activation(self, client, service: ShareService, tmp_path) -> None:
        token = service.add(make_sparse_file(os.path.join(str(tmp_path), "a.bin"), 10)).token
        client.get(f"/d/{token}")
        body = client.get(f"/{token}").get_data(as_text=True)
        assert "Valid until" in body

    def test_mentions_validity_window(self, client, service: ShareService, tmp_path) -> None:
        token = service.add(make_sparse_file(os.path.join(str(tmp_path), "a.bin"), 10)).token
        assert "4 hours" in client.get(f"/{token}").get_data(as_text=True)

    def test_escapes_file_name(self, client, service: ShareService, tmp_path) -> None:
        token = service.add(make_sparse_file(os.path.join(str(tmp_path), "<b>x.txt"), 1)).token
        body = client.get(f"/{token}").get_data(as_text=True)
        assert "<b>x.txt" not in body
        assert "&lt;b&gt;x.txt" in body

    def test_unknown_token(self, client) -> None:
        assert client.get("/nosuch00").status_code == 404

    def test_missing_file(self, client, service: ShareService, tmp_path) -> None:
        path = make_sparse_file(os.path.join(str(tmp_path), "a.bin"), 10)
        token = service.add(path).token
        os.unlink(path)
        assert client.get(f"/{token}").status_code == 404


class TestDownloadRoute:
    """Tests for GET /d/<token>."""

    def test_redownload_within_window(self, client, service: ShareService, clock: FakeClock, tmp_path) -> None:
        path = os.path.join(str(tmp_path), "data.txt")
        with open(path, "wb") as f:
            f.write(b"payload")
        token = service.add(path).token
        assert client.get(f"/d/{token}").data == b"payload"
        clock.advance(timedelta(hours=3, minutes=59))
        assert client.get(f"/d/{token}").data == b"payload"
        assert service.snapshot()[token].activated_at == START

    def test_not_found_responses_are_identical(self, client, service: ShareService, clock: FakeClock, tmp_path) -> None:
        gone = make_sparse_file(os.path.join(str(tmp_path), "gone.bin"), 5)
        gone_token = service.add(gone).token
        os.unlink(gone)
        old_token = service.add(make_sparse_file(os.path.join(str(tmp_path), "old.bin"), 5)).token
        client.get(f"/d/{old_token}")
        clock.advance(timedelta(hours=5))

        responses = [client.get(f"/d/{t}") for t in ("nosuch00", gone_token, old_token)]
        assert {r.status_code for r in responses} == {404}
        assert len({r.data for r in responses}) == 1
        assert responses[0].get_json() == {"error": "Not found."}

    def test_malformed_token_is_not_found(self, client) -> None:
        assert client.get("/d/NOT-A-TOKEN").status_code == 404

    def test_missing_file_keeps_token_fresh(self, client, service: ShareService, tmp_path) -> None:
        path = make_sparse_file(os.path.join(str(tmp_path), "a.bin"), 10)
        token = service.add(path).token
        os.unlink(path)
        assert client.get(f"/d/{token}").status_code == 404
        assert service.snapshot()[token].activated_at is None

    def test_head_does_not_activate(self, client, service: ShareService, tmp_path) -> None:
        token = service.add(make_sparse_file(os.path.join(str(tmp_path), "a.bin"), 10)).token
        response = client.head(f"/d/{token}")
        assert response.status_code == 200
        assert response.headers["Content-Disposition"].startswith("attachment")
        assert response.data == b""
        assert service.snapshot()[token].activated_at is None

    def test_head_on_expired_token(self, client, service: ShareService, clock: FakeClock, tmp_path) -> None:
        token = service.add(make_sparse_file(os.path.join(str(tmp_path), "a.bin"), 10)).token
        client.get(f"/d/{token}")
        clock.advance(timedelta(hours=5))
        assert client.head(f"/d/{token}").status_code == 404

    def test_longest_token_is_routable(self, settings: Settings, clock: FakeClock, tmp_path) -> None:
        long_settings = replace(settings, token_length=MAX_TOKEN_LENGTH)
        service = ShareService.from_settings(long_settings, JsonTokenStore(long_settings.token_db), clock=clock)
        client = create_app(long_settings, service).test_client()
        token = service.add(make_sparse_file(os.path.join(str(tmp_path), "a.bin"), 10)).token
        assert len(token) == MAX_TOKEN_LENGTH
        assert client.get(f"/{token}").status_code == 200
        assert client.get(f"/d/{token}").status_code == 200

    def test_post_not_allowed(self, client) -> None:
        assert client.post("/d/abc").status_code == 405


class TestAppBehaviour:
    """Tests for favicon, headers and error handling."""

    def test_favicon(self, client) -> None:
        response = client.get("/favicon.ico")
        assert response.status_code == 200
        assert response.mimetype == "image/x-icon"
        assert response.data == FAVICON_ICO
        assert FAVICON_ICO[:4] == b"\x00\x00\x01\x00"

    def test_root_is_not_found(self, client) -> None:
        assert client.get("/").status_code == 404

    def test_security_headers(self, client) -> None:
        response = client.get("/favicon.ico")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "default-src 'none'" in response.headers["Content-Security-Policy"]

    def test_internal_error_is_hidden(self, client, service: ShareService, monkeypatch) -> None:
        def explode(token, activate=True):
            raise RuntimeError("secret detail")

        monkeypatch.setattr(service, "download", explode)
        response = client.get("/d/abc12345")
        assert response.status_code == 500
        assert response.get_json() == {"error": "An internal error occurred."}
        assert b"secret detail" not in response.data

    def test_default_service_uses_json_store(self, settings: Settings) -> None:
        app = create_app(settings)
        service = app.extensions["share_service"]
        assert isinstance(service.store, JsonTokenStore)
        assert service.store.path == settings.token_db


class TestDescribeValidity:
    def test_hours(self) -> None:
        assert describe_validity(14400) == "4 hours"
        assert describe_validity(3600) == "1 hour"

    def test_minutes(self) -> None:
        assert describe_validity(5400) == "90 minutes"

    def test_seconds(self) -> None:
        assert describe_validity(61) == "61 seconds"
