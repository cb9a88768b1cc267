"""Unit tests for the SQL-building services, run against a recording AsyncSession.

Each statement is compiled with the PostgreSQL dialect so the WHERE / GROUP BY / ORDER BY /
LIMIT clauses can be checked, and canned rows are fed back to exercise the row mapping.
"""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql

from app.core.errors import AppHTTPException
from app.core.request_id import set_request_id
from app.models.alert_confirmation import AlertConfirmation
from app.models.score_alert_event import EVENT_CONFIRMED, EVENT_CREATED, ScoreAlertEvent
from app.services import (
    alertes_service,
    carte_service,
    coproprietes_service,
    dvf_service,
    search_service,
    stats_service,
    villes_service,
)
from app.services.carte_service import MapFilters
from app.services.geo import LAT_PER_METER, BoundingBox

PARIS_BOX = BoundingBox(south=48.8, west=2.3, north=48.9, east=2.4)


class FakeResult:
    def __init__(self, rows):
        self._rows = list(rows)

    def all(self):
        return list(self._rows)

    def first(self):
        return self._rows[0] if self._rows else None

    def one(self):
        assert len(self._rows) == 1
        return self._rows[0]

    def scalar_one(self):
        return self.one()[0]

    def scalar_one_or_none(self):
        return self._rows[0][0] if self._rows else None

    def scalars(self):
        return FakeResult(r[0] for r in self._rows)


class FakeAsyncSession:
    """Records executed statements; answers each one with the next canned result."""

    def __init__(self, *results):
        self._results = list(results)
        self.statements = []
        self.added = []
        self.commits = 0

    async def execute(self, stmt):
        self.statements.append(stmt)
        return FakeResult(self._results.pop(0) if self._results else [])

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        self.commits += 1

    def sql(self, index):
        compiled = self.statements[index].compile(dialect=postgresql.dialect())
        return " ".join(str(compiled).split())

    def params(self, index):
        return list(self.statements[index].compile(dialect=postgresql.dialect()).params.values())


def run(coro):
    return asyncio.run(coro)


def has_float(values, expected):
    return any(isinstance(v, float) and v == pytest.approx(expected) for v in values)


def copro_row(**overrides):
    data = {
        "id": 1,
        "slug": "a",
        "adresse_reference": "12 rue de la Paix",
        "commune_adresse": "Paris",
        "code_postal": "75002",
        "nom_usage": None,
        "score_global": 72,
        "nb_lots_habitation": 10,
        "distance_m": None,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class TestCartePoints:
    def map_row(self, **overrides):
        data = {
            "latitude": 48.86,
            "longitude": 2.33,
            "score_global": 72,
            "nb_lots_habitation": None,
            "slug": "a",
            "nom_usage": None,
            "adresse_reference": None,
            "commune": "Paris",
            "code_postal": "75002",
            "type_syndic": "professionnel",
            "periode_construction": "AVANT_1949",
            "dpe_classe_mediane": "D",
        }
        data.update(overrides)
        return SimpleNamespace(**data)

    def test_filters_in_where_clause(self):
        db = FakeAsyncSession([(120,)], [self.map_row()])
        filters = MapFilters(score_min=40, score_max=80, syndic=["bénévole"], periode=["AVANT_1949"])
        out = run(carte_service.map_points(db, PARIS_BOX, filters))

        sql = db.sql(1)
        assert "FROM coproprietes WHERE coproprietes.latitude BETWEEN" in sql
        assert "coproprietes.score_global IS NOT NULL" in sql
        assert "coproprietes.score_global >=" in sql
        assert "coproprietes.score_global <=" in sql
        assert "coproprietes.type_syndic IN" in sql
        assert "coproprietes.periode_construction IN" in sql
        assert "random()" not in sql
        assert "LIMIT" not in sql
        assert ["bénévole"] in db.params(1)

        assert (out.total, out.returned, out.sampled) == (120, 1, False)
        point = out.points[0]
        assert (point.lots, point.nom, point.dpe_classe) == (0, "Copropriété", "D")

    @pytest.mark.parametrize("total, sampled", [(10_000, False), (10_001, True)])
    def test_random_sample_above_max_points(self, total, sampled):
        db = FakeAsyncSession([(total,)], [])
        out = run(carte_service.map_points(db, PARIS_BOX, MapFilters()))

        assert out.sampled is sampled
        assert out.total == total
        assert ("ORDER BY random() LIMIT" in db.sql(1)) is sampled
        if sampled:
            assert carte_service.MAX_POINTS in db.params(1)


class TestHeatmap:
    def test_raw_points_up_to_threshold(self):
        db = FakeAsyncSession([(5_000,)], [SimpleNamespace(latitude=48.85, longitude=2.35, score_global=64)])
        out = run(carte_service.heatmap(db, PARIS_BOX))

        sql = db.sql(1)
        assert "GROUP BY" not in sql
        assert "LIMIT" in sql
        assert out.clustered is False
        assert out.points[0].weight == 1

    def test_grid_above_threshold(self):
        cell = SimpleNamespace(lat_cell=24430.0, lng_cell=1170.0, score=Decimal("63.6"), cnt=12)
        db = FakeAsyncSession([(5_001,)], [cell])
        out = run(carte_service.heatmap(db, PARIS_BOX))

        sql = db.sql(1)
        assert "round(coproprietes.latitude /" in sql
        assert "GROUP BY round(coproprietes.latitude /" in sql
        assert "avg(coproprietes.score_global)" in sql
        assert has_float(db.params(1), 0.1 / 50)

        assert out.clustered is True
        assert out.total == 5_001
        point = out.points[0]
        assert point.lat == pytest.approx(24430 * 0.1 / 50)
        assert point.lng == pytest.approx(1170 * 0.1 / 50)
        assert (point.score, point.weight) == (64, 12)

    @pytest.mark.parametrize(
        "bounds",
        [
            BoundingBox(south=48.85, west=2.3, north=48.85, east=2.4),
            BoundingBox(south=48.8, west=2.35, north=48.9, east=2.35),
        ],
    )
    def test_flat_view_falls_back_to_raw_points(self, bounds):
        db = FakeAsyncSession([(8_000,)], [])
        out = run(carte_service.heatmap(db, bounds))

        sql = db.sql(1)
        assert "GROUP BY" not in sql
        assert "round(" not in sql
        assert (out.total, out.clustered) == (8_000, False)


class TestScoreStats:
    def test_aggregates_and_histogram(self):
        agg = SimpleNamespace(total=3, avg=Decimal("55.333"), min=20, max=100, bon=1, moyen=1, attention=1)
        db = FakeAsyncSession([agg], [(2.0, 1), (5.0, 1), (10.0, 1)])
        out = run(stats_service.score_stats(db))

        assert "count(*) FILTER (WHERE coproprietes.score_global >=" in db.sql(0)
        assert "coproprietes.score_global IS NOT NULL" in db.sql(0)
        assert "floor(coproprietes.score_global /" in db.sql(1)
        assert "GROUP BY" in db.sql(1)

        assert (out.total, out.avg, out.min, out.max) == (3, 55.3, 20, 100)
        assert [b.count for b in out.histogram] == [0, 0, 1, 0, 0, 1, 0, 0, 0, 1]

    def test_no_scores(self):
        agg = SimpleNamespace(total=0, avg=None, min=None, max=None, bon=0, moyen=0, attention=0)
        out = run(stats_service.score_stats(FakeAsyncSession([agg], [])))
        assert out.avg is None
        assert sum(b.count for b in out.histogram) == 0


class TestSearchQueries:
    def test_radius_search(self):
        db = FakeAsyncSession([copro_row(distance_m=12.4)])
        rows = run(search_service.search_by_radius(db, 48.8686, 2.3314))

        sql = db.sql(0)
        assert "acos(least(" in sql
        assert "coproprietes.latitude BETWEEN" in sql
        assert "ASC LIMIT" in sql
        params = db.params(0)
        assert has_float(params, 48.8686 - search_service.RADIUS_M * LAT_PER_METER)
        assert search_service.MAX_GEO_RESULTS in params
        assert rows[0].distance_m == 12.4

    def test_text_search(self):
        db = FakeAsyncSession([])
        run(search_service.search_by_text(db, "12 rue de la Paix 75002"))

        sql = db.sql(0)
        assert "lower(coproprietes.adresse_reference) LIKE" in sql
        assert "lower(coproprietes.commune_adresse) LIKE" in sql
        assert "coproprietes.code_postal =" in sql
        assert "ORDER BY coproprietes.score_global DESC NULLS LAST LIMIT" in sql
        params = db.params(0)
        assert "%paix%" in params
        assert "75002" in params
        assert "%75002%" not in params
        assert search_service.MAX_TEXT_RESULTS in params

    def test_text_search_without_terms(self):
        db = FakeAsyncSession()
        assert run(search_service.search_by_text(db, "!!!")) == []
        assert db.statements == []

    def test_search_puts_geo_results_first(self):
        geo = [copro_row(id=1, distance_m=12.4)]
        text = [copro_row(id=2), copro_row(id=1)]
        db = FakeAsyncSession(geo, text)
        results = run(search_service.search(db, "rue de la paix", lat=48.8686, lon=2.3314))

        assert [r.id for r in results] == [1, 2]
        assert [r.distance for r in results] == [12, None]


class TestVilles:
    def test_invalid_slug(self):
        db = FakeAsyncSession()
        with pytest.raises(AppHTTPException) as exc_info:
            run(villes_service.ville(db, "paris"))
        assert exc_info.value.code == "INVALID_SLUG"
        assert db.statements == []

    def test_unknown_commune(self):
        stats = SimpleNamespace(total=0, avg_score=None, bon=0, moyen=0, attention=0)
        db = FakeAsyncSession([stats], [])
        with pytest.raises(AppHTTPException) as exc_info:
            run(villes_service.ville(db, "nulle-part-99999"))
        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "VILLE_NOT_FOUND"

    def test_commune_with_postal_code(self):
        stats = SimpleNamespace(total=2, avg_score=Decimal("61.5"), bon=1, moyen=1, attention=0)
        copro = SimpleNamespace(
            id=1,
            slug="a",
            adresse_reference="12 rue de la Paix",
            nom_usage=None,
            code_postal="75002",
            score_global=72,
            nb_lots_habitation=10,
            type_syndic="professionnel",
            periode_construction="AVANT_1949",
        )
        db = FakeAsyncSession([stats], [("Paris 2e Arrondissement",)], [copro])
        out = run(villes_service.ville(db, "paris-2e-arrondissement-75102", code_postal="75002"))

        assert "count(*) FILTER (WHERE" in db.sql(0)
        assert {"75102", "75002"} <= set(db.params(0))
        sql = db.sql(2)
        assert "coproprietes.code_officiel_commune =" in sql
        assert "coproprietes.code_postal =" in sql
        assert "ORDER BY coproprietes.score_global DESC NULLS LAST, coproprietes.id ASC LIMIT" in sql
        assert villes_service.MAX_VILLE_COPROS in db.params(2)

        assert (out.code_commune, out.nom_commune, out.code_postal) == ("75102", "Paris 2e Arrondissement", "75002")
        assert (out.stats.total, out.stats.score_moyen, out.stats.nb_bon) == (2, 62, 1)
        assert out.copros[0].slug == "a"

    def test_departements(self):
        row = SimpleNamespace(code="75", nom="Paris", total=10, avg_score=Decimal("58.4"))
        db = FakeAsyncSession([row])
        (item,) = run(villes_service.departements(db))

        sql = db.sql(0)
        assert "mode() WITHIN GROUP (ORDER BY coproprietes.nom_officiel_departement)" in sql
        assert "GROUP BY coproprietes.code_officiel_departement ORDER BY" in sql
        assert (item.slug, item.count, item.score_moyen) == ("paris-75", 10, 58)

    def test_departement_with_communes(self):
        info = SimpleNamespace(nom="Corse-du-Sud", total=5, avg_score=None)
        commune = SimpleNamespace(code="2A004", nom="Ajaccio", total=5, avg_score=Decimal("60"))
        db = FakeAsyncSession([info], [commune])
        out = run(villes_service.departement(db, "corse-du-sud-2a"))

        assert "2A" in db.params(0)
        sql = db.sql(1)
        assert "initcap(mode() WITHIN GROUP (ORDER BY coproprietes.nom_officiel_commune))" in sql
        assert "GROUP BY coproprietes.code_officiel_commune" in sql
        assert (out.code, out.count, out.score_moyen) == ("2A", 5, None)
        assert out.communes[0].slug == "ajaccio-2A004"
        assert out.communes[0].score_moyen == 60

    def test_unknown_departement(self):
        db = FakeAsyncSession([SimpleNamespace(nom=None, total=0, avg_score=None)])
        with pytest.raises(AppHTTPException) as exc_info:
            run(villes_service.departement(db, "nulle-part-99"))
        assert exc_info.value.code == "DEPARTEMENT_NOT_FOUND"


class TestCoproprietes:
    def test_numeric_slug_resolves_by_id(self, make_copro):
        copro = make_copro(id=42)
        db = FakeAsyncSession([(copro,)])
        assert run(coproprietes_service.get_by_slug(db, "42")) is copro
        assert "coproprietes.id =" in db.sql(0)
        assert 42 in db.params(0)

    def test_unknown_slug(self):
        with pytest.raises(AppHTTPException) as exc_info:
            run(coproprietes_service.get_by_slug(FakeAsyncSession([]), "inconnue"))
        assert exc_info.value.code == "COPRO_NOT_FOUND"

    def test_nearby_without_coordinates(self, make_copro):
        db = FakeAsyncSession()
        assert run(coproprietes_service.fetch_nearby(db, make_copro(latitude=None))) == []
        assert db.statements == []

    def test_nearby(self, make_copro):
        row = copro_row(id=8, slug="b", score_global=55, latitude=48.8688, longitude=2.3316, distance_m=27.6)
        db = FakeAsyncSession([row])
        (nearby,) = run(coproprietes_service.fetch_nearby(db, make_copro(id=7)))

        sql = db.sql(0)
        assert "coproprietes.id !=" in sql
        assert "acos(least(" in sql
        params = db.params(0)
        assert 7 in params
        assert coproprietes_service.NEARBY_LIMIT in params
        assert has_float(params, 48.8686 + coproprietes_service.NEARBY_RADIUS_M * LAT_PER_METER)
        assert (nearby.slug, nearby.distance_m) == ("b", 28)

    def test_score_quartier(self):
        row = SimpleNamespace(
            nb_copros=4, score_moyen=Decimal("61.3"), score_median=62.5, nb_bon=1, nb_moyen=2, nb_attention=1
        )
        db = FakeAsyncSession([row])
        out = run(coproprietes_service.score_quartier(db, 48.8686, 2.3314, rayon=300))

        sql = db.sql(0)
        assert "percentile_cont(" in sql
        assert "WITHIN GROUP (ORDER BY coproprietes.score_global)" in sql
        assert "round(CAST(avg(coproprietes.score_global) AS NUMERIC)" in sql
        assert "acos(least(" in sql
        assert 300 in db.params(0)
        assert (out.score_moyen, out.score_median, out.nb_copros) == (61.3, 63, 4)
        assert (out.pct_bon, out.pct_moyen, out.pct_attention, out.rayon) == (25, 50, 25, 300)

    def test_score_quartier_empty(self):
        row = SimpleNamespace(
            nb_copros=0, score_moyen=None, score_median=None, nb_bon=0, nb_moyen=0, nb_attention=0
        )
        assert run(coproprietes_service.score_quartier(FakeAsyncSession([row]), 48.8, 2.3)) is None

    def test_timeline_queries(self, make_copro):
        sale = SimpleNamespace(
            id=1,
            date_mutation=date(2024, 3, 1),
            prix=455_000.0,
            surface=45.5,
            nb_pieces=2,
            adresse="12 rue de la Paix",
            prix_m2=10_000,
        )
        dpe = SimpleNamespace(date_dpe=date(2023, 5, 2), classe_dpe="D")
        db = FakeAsyncSession([sale], [dpe])
        events = run(coproprietes_service.fetch_timeline(db, make_copro()))

        assert "FROM dvf_transactions" in db.sql(0)
        assert "ORDER BY dvf_transactions.date_mutation DESC LIMIT" in db.sql(0)
        assert 10 in db.params(0)
        assert "dpe_logements.numero_immatriculation_copropriete =" in db.sql(1)
        assert "ORDER BY dpe_logements.date_dpe DESC LIMIT" in db.sql(1)
        assert {"AA1234567", coproprietes_service.MAX_TIMELINE_DPE} <= set(db.params(1))

        assert [e.date for e in events] == ["2024-03-01", "2023-05-02"]
        assert events[1].titre == "DPE réalisé"

    def test_compare_keeps_requested_order(self, make_copro):
        a, b = make_copro(id=1, slug="a"), make_copro(id=2, slug="b")
        db = FakeAsyncSession([(a,), (b,)])
        out = run(coproprietes_service.compare(db, ["b", "inconnue", "a"]))

        assert "coproprietes.slug IN" in db.sql(0)
        assert [c.slug for c in out] == ["b", "a"]

    def test_compare_without_slugs(self):
        db = FakeAsyncSession()
        assert run(coproprietes_service.compare(db, [])) == []
        assert db.statements == []


class TestDvfQueries:
    def test_transactions(self):
        row = SimpleNamespace(
            id=3,
            date_mutation=date(2024, 3, 1),
            prix=455_000.0,
            surface=45.5,
            nb_pieces=2,
            adresse=None,
            prix_m2=10_000,
        )
        db = FakeAsyncSession([row])
        (tx,) = run(dvf_service.fetch_transactions(db, 48.8686, 2.3314, today=date(2025, 6, 15)))

        sql = db.sql(0)
        assert "dvf_transactions.surface >=" in sql
        assert "dvf_transactions.date_mutation >=" in sql
        assert "round(CAST(dvf_transactions.prix / dvf_transactions.surface AS NUMERIC)" in sql
        assert "ORDER BY dvf_transactions.date_mutation DESC LIMIT" in sql
        params = db.params(0)
        assert date(2022, 6, 15) in params
        assert dvf_service.MIN_SURFACE_M2 in params
        assert dvf_service.DEFAULT_LIMIT in params
        assert has_float(params, 48.8686 - dvf_service.DVF_RADIUS_M * LAT_PER_METER)
        assert (tx.id, tx.prix_m2) == (3, 10_000)

    def test_quarterly_averages_from_leap_day(self):
        db = FakeAsyncSession([SimpleNamespace(year=2024, quarter=1, avg_prix_m2=10_100)])
        (quarter,) = run(dvf_service.fetch_quarterly_averages(db, 48.8686, 2.3314, today=date(2024, 2, 29)))

        sql = db.sql(0)
        assert "EXTRACT(year FROM dvf_transactions.date_mutation)" in sql
        assert "EXTRACT(quarter FROM dvf_transactions.date_mutation)" in sql
        assert "GROUP BY" in sql
        assert date(2021, 2, 28) in db.params(0)
        assert (quarter.year, quarter.quarter, quarter.avg_prix_m2) == (2024, 1, 10_100)


class TestAlertesQueries:
    @pytest.mark.parametrize("email, slug, code", [("nope", "a", "INVALID_EMAIL"), ("a@b.fr", None, "MISSING_SLUG")])
    def test_invalid_input(self, email, slug, code):
        db = FakeAsyncSession()
        with pytest.raises(AppHTTPException) as exc_info:
            run(alertes_service.subscribe(db, email, slug))
        assert exc_info.value.code == code
        assert db.statements == []

    def test_unknown_copro(self):
        with pytest.raises(AppHTTPException) as exc_info:
            run(alertes_service.subscribe(FakeAsyncSession([]), "a@b.fr", "inconnue"))
        assert exc_info.value.code == "COPRO_NOT_FOUND"

    def test_limit_checked_before_insert(self):
        db = FakeAsyncSession([(5,)], [(3,)])
        with pytest.raises(AppHTTPException) as exc_info:
            run(alertes_service.subscribe(db, "a@b.fr", "a"))
        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "ALERT_LIMIT_REACHED"
        assert len(db.statements) == 2
        assert db.commits == 0

    def test_new_subscription(self):
        alert = SimpleNamespace(id=11, active=False)
        db = FakeAsyncSession([(5,)], [(1,)], [], [(alert,)])
        set_request_id("rid-alert")
        try:
            result = run(alertes_service.subscribe(db, "Jean@Exemple.fr", "a"))
        finally:
            set_request_id(None)

        insert_sql = db.sql(2)
        assert "INSERT INTO score_alerts" in insert_sql
        assert "ON CONFLICT ON CONSTRAINT uq_score_alerts_email_copro DO NOTHING" in insert_sql
        assert "jean@exemple.fr" in db.params(2)

        assert (result.alert_id, result.created, result.status_code) == (11, True, 201)
        confirmation, event = db.added
        assert isinstance(confirmation, AlertConfirmation)
        assert confirmation.alert_id == 11
        assert isinstance(event, ScoreAlertEvent)
        assert (event.event_type, event.request_id) == (EVENT_CREATED, "rid-alert")
        assert db.commits == 1

    def test_already_active(self):
        alert = SimpleNamespace(id=11, active=True)
        db = FakeAsyncSession([(5,)], [(1,)], [], [(alert,)])
        result = run(alertes_service.subscribe(db, "a@b.fr", "a"))

        assert (result.created, result.status_code) == (False, 200)
        assert result.message == alertes_service.MSG_ALREADY
        assert db.added == []
        assert db.commits == 1

    def test_confirm_unknown_token(self):
        assert run(alertes_service.confirm(FakeAsyncSession([]), "tok")) == alertes_service.CONFIRM_INVALID

    def test_confirm_twice(self):
        confirmation = SimpleNamespace(confirmed_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
        db = FakeAsyncSession([(confirmation,)])
        assert run(alertes_service.confirm(db, "tok")) == alertes_service.CONFIRM_ALREADY
        assert db.commits == 0

    def test_confirm_activates_alert(self):
        confirmation = SimpleNamespace(confirmed_at=None, alert_id=11, alert=SimpleNamespace(active=False))
        db = FakeAsyncSession([(confirmation,)])
        assert run(alertes_service.confirm(db, "tok")) == alertes_service.CONFIRM_OK

        assert "alert_confirmations.token =" in db.sql(0)
        assert confirmation.alert.active is True
        assert confirmation.confirmed_at is not None
        (event,) = db.added
        assert event.event_type == EVENT_CONFIRMED
        assert db.commits == 1
