import pytest

from main_app import create_app
from visitor_module import helpers
from visitor_module.models import PageVisit


def test_track_visit_uses_forwarded_ip(app, client):
    response = client.post("/api/track-visit", json={"pageVisited": "gallery"},
                           headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "User-Agent": "pytest"})
    assert response.get_json() == {"success": True}
    with app.app_context():
        visit = PageVisit.query.one()
        assert visit.ip_address == "203.0.113.9"
        assert visit.page_visited == "gallery"
        assert visit.user_agent == "pytest"
        assert visit.country is None


def test_track_visit_defaults_to_home(app, client):
    client.post("/api/track-visit", json={})
    with app.app_context():
        assert PageVisit.query.one().page_visited == "home"


def test_visit_stats(client):
    for ip, page in [("198.51.100.1", "home"), ("198.51.100.1", "home"), ("198.51.100.2", "admin")]:
        client.post("/api/track-visit", json={"pageVisited": page}, headers={"X-Forwarded-For": ip})

    stats = client.get("/api/visit-stats").get_json()

    assert stats["total_visits"] == 3
    assert stats["unique_visitors"] == 2
    assert stats["visits_today"] == 3
    assert stats["top_pages"][0] == {"page": "home", "visits": 2}
    assert len(stats["recent_visits"]) == 3
    assert stats["timezone"] == "America/Denver"


def test_visitors_page(client):
    client.post("/api/track-visit", json={"pageVisited": "home"})
    page = client.get("/visitors")
    assert page.status_code == 200
    assert "Total visits: 1" in page.get_data(as_text=True)


def test_page_views_are_logged_when_enabled(tmp_path, dogs_dir):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'pv.db'}",
        "SQLALCHEMY_BINDS": {"visitors": f"sqlite:///{tmp_path / 'pv_visitors.db'}"},
        "DOGS_DIR": str(dogs_dir),
        "TRACK_PAGE_VISITS": True,
        "VISITOR_GEOLOOKUP": False,
    })
    client = app.test_client()
    client.get("/")
    client.get("/admin")
    client.get("/api/puppies")
    with app.app_context():
        assert sorted(v.page_visited for v in PageVisit.query.all()) == ["admin", "home"]


def test_geolookup_is_reused_for_returning_visitors(app, monkeypatch):
    calls = []

    def fake_location(ip):
        calls.append(ip)
        return {"city": "Denver", "country": "United States"}

    monkeypatch.setattr(helpers, "get_location", fake_location)
    with app.app_context():
        first = helpers.record_visit("198.51.100.7", "ua", "home", geolookup=True)
        second = helpers.record_visit("198.51.100.7", "ua", "admin", geolookup=True)
        assert first.country == second.country == "United States"
    assert calls == ["198.51.100.7"]


@pytest.mark.parametrize("ip", ["127.0.0.1", "192.168.1.20", "10.1.2.3", "", "localhost", "::1"])
def test_private_addresses_are_not_looked_up(ip):
    assert helpers._is_private(ip)
    assert helpers.get_location(ip) is None


@pytest.mark.parametrize("ip", ["172.16.4.2", "172.31.255.1", "100.64.0.1", "fd00::1", "not-an-ip"])
def test_non_routable_addresses_are_private(ip):
    assert helpers._is_private(ip)


@pytest.mark.parametrize("ip", ["8.8.8.8", "172.217.3.110", "172.32.0.1", "2001:4860:4860::8888"])
def test_public_addresses_are_not_private(ip):
    assert not helpers._is_private(ip)


class _FakeResponse:
    ok = True
    status_code = 200

    def __init__(self, payload=None, error=None):
        self._payload = payload
        self._error = error

    def json(self):
        if self._error:
            raise self._error
        return self._payload


@pytest.fixture
def fresh_location_cache():
    helpers.get_location.cache_clear()
    yield
    helpers.get_location.cache_clear()


def test_geolocation_ignores_a_non_json_reply(monkeypatch, fresh_location_cache):
    monkeypatch.setattr(helpers.HTTP_SESSION, "get",
                        lambda url, timeout: _FakeResponse(error=ValueError("Expecting value")))
    assert helpers.get_location("8.8.8.8") is None


def test_geolocation_reads_city_and_country(monkeypatch, fresh_location_cache):
    payload = {"city": " Mountain View ", "country_name": "United States"}
    monkeypatch.setattr(helpers.HTTP_SESSION, "get", lambda url, timeout: _FakeResponse(payload))
    assert helpers.get_location("8.8.8.8") == {"city": "Mountain View", "country": "United States"}


def test_geolocation_error_reply(monkeypatch, fresh_location_cache):
    payload = {"error": True, "reason": "RateLimited"}
    monkeypatch.setattr(helpers.HTTP_SESSION, "get", lambda url, timeout: _FakeResponse(payload))
    assert helpers.get_location("8.8.8.8") is None
