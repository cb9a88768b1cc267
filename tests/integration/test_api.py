"""Integration tests: HTTP layer (routing, error envelope, headers) with services stubbed out."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.core import security
from app.core.errors import copro_not_found
from app.core.rate_limit import rate_limiter
from app.core.settings import settings
from app.db.session import get_db
from app.main import app
from app.schemas.carte import MapPoint, MapPointsOut
from app.schemas.search import SearchResult
from app.services import alertes_service, carte_service, coproprietes_service, search_service
from app.services.alertes_service import SubscribeResult


async def fake_db():
    yield SimpleNamespace()


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = fake_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    rate_limiter.reset()


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.headers["content-type"].startswith("application/json")

    def test_request_id_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-Id": "test-rid-1"})
        assert resp.headers["X-Request-Id"] == "test-rid-1"

    def test_request_id_generated(self, client):
        assert client.get("/health").headers["X-Request-Id"]


class TestErrorEnvelope:
    def test_unknown_route(self, client):
        resp = client.get("/api/does-not-exist", headers={"X-Request-Id": "rid-404"})
        assert resp.status_code == 404
        error = resp.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert error["status"] == 404
        assert error["request_id"] == "rid-404"

    def test_validation_error(self, client):
        resp = client.delete("/api/alertes/not-a-number", params={"email": "a@b.fr"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_copro_not_found(self, client, monkeypatch):
        async def get_by_slug(db, slug):
            raise copro_not_found(slug)

        monkeypatch.setattr(coproprietes_service, "get_by_slug", get_by_slug)
        resp = client.get("/api/coproprietes/inconnue")
        assert resp.status_code == 404
        error = resp.json()["error"]
        assert error["code"] == "COPRO_NOT_FOUND"
        assert error["details"] == {"slug": "inconnue"}


class TestSearch:
    def test_results_are_camel_case(self, client, monkeypatch):
        async def search(db, q, lat=None, lon=None):
            return [SearchResult(id=1, slug="s", code_postal="75002", score_global=72, nb_lots=8, distance=40)]

        monkeypatch.setattr(search_service, "search", search)
        resp = client.get("/api/search", params={"q": "12 rue de la paix"})
        assert resp.status_code == 200
        (result,) = resp.json()["results"]
        assert result["codePostal"] == "75002"
        assert result["scoreGlobal"] == 72
        assert result["nbLots"] == 8

    def test_latitude_out_of_range(self, client):
        assert client.get("/api/search", params={"lat": 123, "lon": 2}).status_code == 422

    def test_rate_limited(self, client, monkeypatch):
        async def search(db, q, lat=None, lon=None):
            return []

        monkeypatch.setattr(search_service, "search", search)
        monkeypatch.setattr(rate_limiter, "_enabled", True)
        monkeypatch.setattr(rate_limiter, "_limit_rpm", 1)

        assert client.get("/api/search", params={"q": "paris"}).status_code == 200
        resp = client.get("/api/search", params={"q": "paris"})
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "RATE_LIMITED"
        assert int(resp.headers["Retry-After"]) >= 1
        assert resp.headers["X-Request-Id"]


class TestCarte:
    @pytest.mark.parametrize("bounds", [None, "48.8,2.3,48.9", "a,b,c,d"])
    def test_invalid_bounds(self, client, bounds):
        params = {"bounds": bounds} if bounds else {}
        resp = client.get("/api/carte/points", params=params)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_BOUNDS"

    def test_points(self, client, monkeypatch):
        captured = {}

        async def map_points(db, bounds, filters):
            captured["bounds"] = bounds
            captured["filters"] = filters
            point = MapPoint(lat=48.86, lng=2.33, score=64, lots=10, slug="s", nom="Copro", code_postal="75002")
            return MapPointsOut(points=[point], total=1, returned=1, sampled=False)

        monkeypatch.setattr(carte_service, "map_points", map_points)
        resp = client.get(
            "/api/carte/points",
            params={"bounds": "48.8,2.3,48.9,2.4", "scoreMin": 40, "syndic": "bénévole,professionnel"},
        )
        assert resp.status_code == 200
        assert resp.headers["Cache-Control"] == "public, s-maxage=300, stale-while-revalidate=600"
        body = resp.json()
        assert body["points"][0]["codePostal"] == "75002"
        assert captured["bounds"].north == 48.9
        assert captured["filters"].score_min == 40
        assert captured["filters"].syndic == ["bénévole", "professionnel"]


class TestComparateur:
    def test_missing_slugs(self, client):
        resp = client.get("/api/comparateur")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "MISSING_SLUGS"

    def test_slugs_capped(self, client, monkeypatch):
        seen = {}

        async def compare(db, slugs):
            seen["slugs"] = slugs
            return []

        monkeypatch.setattr(coproprietes_service, "compare", compare)
        resp = client.get("/api/comparateur", params={"slugs": "a,b,c,d,e,f"})
        assert resp.status_code == 200
        assert resp.json() == {"copros": []}
        assert seen["slugs"] == ["a", "b", "c", "d", "e"]


class TestAlertes:
    @pytest.mark.parametrize("created, status", [(True, 201), (False, 200)])
    def test_create_status(self, client, monkeypatch, created, status):
        async def subscribe(db, email, slug):
            return SubscribeResult(alert_id=1, created=created, message="ok")

        monkeypatch.setattr(alertes_service, "subscribe", subscribe)
        resp = client.post("/api/alertes", json={"email": "a@b.fr", "slug": "s"})
        assert resp.status_code == status
        assert resp.json() == {"message": "ok"}

    def test_create_ignores_unknown_fields(self, client, monkeypatch):
        seen = {}

        async def subscribe(db, email, slug):
            seen.update(email=email, slug=slug)
            return SubscribeResult(alert_id=1, created=True, message="ok")

        monkeypatch.setattr(alertes_service, "subscribe", subscribe)
        resp = client.post("/api/alertes", json={"email": "a@b.fr", "slug": "s", "plan": "pro"})
        assert resp.status_code == 201
        assert seen == {"email": "a@b.fr", "slug": "s"}

    def test_confirm_redirects_to_front(self, client, monkeypatch):
        async def confirm(db, token):
            assert token == "tok123"
            return "ok"

        monkeypatch.setattr(alertes_service, "confirm", confirm)
        monkeypatch.setattr(settings, "FRONTEND_URL", "https://coproscore.example/")
        resp = client.get("/api/alertes/confirm/tok123", follow_redirects=False)
        assert resp.status_code == 307
        assert resp.headers["location"] == "https://coproscore.example/alertes?confirmed=ok"


class TestProAccess:
    def test_dvf_requires_key(self, client, monkeypatch):
        monkeypatch.setattr(security.settings, "API_KEY", "s3cret")
        resp = client.get("/api/coproprietes/une-copro/dvf")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    def test_dvf_without_coordinates(self, client, monkeypatch):
        async def get_by_slug(db, slug):
            return SimpleNamespace(latitude=None, longitude=None)

        monkeypatch.setattr(security.settings, "API_KEY", "s3cret")
        monkeypatch.setattr(coproprietes_service, "get_by_slug", get_by_slug)
        resp = client.get("/api/coproprietes/une-copro/dvf", headers={"X-API-Key": "s3cret"})
        assert resp.status_code == 200
        assert resp.json() == {"transactions": [], "count": 0}
