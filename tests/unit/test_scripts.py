"""Unit tests for the batch scripts (pure parts: row mapping, retries, events)."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest
import requests

from scripts import download_dpe
from scripts.batch_utils import clean_str, parse_date, parse_float, parse_int
from scripts.calculate_scores import score_change_events, score_row
from scripts.import_dpe import map_dpe_row
from scripts.import_dvf import is_outlier, map_dvf_row
from scripts.import_rnic import map_rnic_row


class TestCellParsers:
    @pytest.mark.parametrize("value", [None, "", "   ", "non connu"])
    def test_clean_str_unknown(self, value):
        assert clean_str(value) is None

    def test_clean_str_strips(self):
        assert clean_str("  Paris ") == "Paris"

    @pytest.mark.parametrize(
        "value, expected",
        [("12", 12), ("12.0", 12), ("12 lots", 12), ("-3", -3), ("abc", None), ("non connu", None)],
    )
    def test_parse_int(self, value, expected):
        assert parse_int(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [("2.35", 2.35), ("2,35", 2.35), ("x", None), ("", None)],
    )
    def test_parse_float(self, value, expected):
        assert parse_float(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-06-01", date(2024, 6, 1)),
            ("2024-06-01T12:30:00", date(2024, 6, 1)),
            ("01/06/2024", date(2024, 6, 1)),
            ("2024/06/01", date(2024, 6, 1)),
            ("juin 2024", None),
        ],
    )
    def test_parse_date(self, value, expected):
        assert parse_date(value) == expected


class TestRnicMapping:
    def test_maps_known_columns(self, sample_rnic_row):
        record = map_rnic_row(sample_rnic_row)
        assert record["numero_immatriculation"] == "AA1234567"
        assert record["date_immatriculation"] == date(2017, 3, 14)
        assert record["type_syndic"] == "professionnel"
        assert record["nb_total_lots"] == 24
        assert record["nb_lots_habitation"] == 16
        assert record["latitude"] == pytest.approx(48.8686)
        assert record["longitude"] == pytest.approx(2.3314)
        assert record["copro_dans_pdp"] == 0
        assert record["nom_officiel_region"] == "Île-de-France"

    def test_unknown_values_become_null(self, sample_rnic_row):
        record = map_rnic_row(sample_rnic_row)
        assert record["date_fin_dernier_mandat"] is None
        assert record["nb_lots_stationnement"] is None
        assert record["adresse_complementaire_1"] is None

    def test_derived_columns_untouched(self, sample_rnic_row):
        record = map_rnic_row(sample_rnic_row)
        assert "slug" not in record
        assert "score_global" not in record

    def test_missing_numero(self, sample_rnic_row):
        sample_rnic_row["numero_d_immatriculation"] = ""
        with pytest.raises(ValueError):
            map_rnic_row(sample_rnic_row)


DVF_ROW = {
    "id_mutation": "2024-123456",
    "date_mutation": "2024-03-18",
    "nature_mutation": "Vente",
    "valeur_fonciere": "320000",
    "adresse_numero": "8",
    "adresse_nom_voie": "RUE DES LILAS",
    "code_postal": "69003",
    "code_commune": "69383",
    "type_local": "Appartement",
    "surface_reelle_bati": "64",
    "nombre_pieces_principales": "3",
    "longitude": "4.8521",
    "latitude": "45.7598",
}


class TestDvfMapping:
    def test_apartment_sale(self):
        record = map_dvf_row(DVF_ROW)
        assert record["id_mutation"] == "2024-123456"
        assert record["date_mutation"] == date(2024, 3, 18)
        assert record["prix"] == 320000
        assert record["surface"] == 64
        assert record["nb_pieces"] == 3
        assert record["adresse"] == "8 RUE DES LILAS"

    def test_address_without_number(self):
        record = map_dvf_row({**DVF_ROW, "adresse_numero": ""})
        assert record["adresse"] == "RUE DES LILAS"

    @pytest.mark.parametrize(
        "override",
        [
            {"nature_mutation": "Echange"},
            {"type_local": "Maison"},
            {"valeur_fonciere": ""},
            {"surface_reelle_bati": "0"},
            {"date_mutation": "18 mars"},
            {"id_mutation": ""},
        ],
    )
    def test_rejected_rows(self, override):
        assert map_dvf_row({**DVF_ROW, **override}) is None

    @pytest.mark.parametrize(
        "prix, surface, outlier",
        [(320000, 64, False), (10000, 50, True), (2_000_000, 50, True), (25_000, 50, False)],
    )
    def test_outliers(self, prix, surface, outlier):
        assert is_outlier({"prix": prix, "surface": surface}) is outlier


class TestDpeMapping:
    def test_valid_row(self):
        row = {
            "numero_dpe": "2375E0123456Z",
            "date_etablissement_dpe": "2023-05-02",
            "etiquette_dpe": "E",
            "etiquette_ges": "C",
            "code_postal_ban": "75011",
            "code_insee_ban": "75111",
            "adresse_ban": "3 Rue Oberkampf 75011 Paris",
            "coordonnee_cartographique_x_ban": "2.3667",
            "coordonnee_cartographique_y_ban": "48.8645",
            "numero_immatriculation_copropriete": "AB9876543",
        }
        record = map_dpe_row(row)
        assert record["classe_dpe"] == "E"
        assert record["date_dpe"] == date(2023, 5, 2)
        assert record["latitude"] == pytest.approx(48.8645)
        assert record["numero_immatriculation_copropriete"] == "AB9876543"

    def test_zero_coordinates_are_null(self):
        record = map_dpe_row(
            {"etiquette_dpe": "B", "coordonnee_cartographique_x_ban": "0", "coordonnee_cartographique_y_ban": ""},
            fallback_index=7,
        )
        assert record["longitude"] is None
        assert record["latitude"] is None
        assert record["numero_dpe"] == "unknown_7"

    @pytest.mark.parametrize("classe", ["", "H", "N"])
    def test_invalid_class(self, classe):
        assert map_dpe_row({"etiquette_dpe": classe}) is None


class TestScoreChangeEvents:
    def test_score_row(self, old_paris_copro):
        old_paris_copro.score_global = 70
        columns, old, new = score_row(old_paris_copro)
        assert columns["id"] == old_paris_copro.id
        assert columns["score_global"] == new == 59
        assert old == 70

    def test_one_event_per_active_alert(self):
        events = score_change_events({1: (70, 59)}, [(10, 1), (11, 1), (12, 2)])
        assert [e.alert_id for e in events] == [10, 11]
        assert all(e.event_type == "SCORE_CHANGED" for e in events)
        assert events[0].old_score == 70
        assert events[0].new_score == 59
        assert events[0].message == "Score passé de 70 à 59"

    def test_no_changes(self):
        assert score_change_events({}, [(10, 1)]) == []


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, responses=()):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        return self.responses.pop(0)

    def close(self):
        self.closed = True


class TestDownloadDpe:
    def test_first_page_params(self):
        params = download_dpe.first_page_params("2A")
        assert params["size"] == 10_000
        assert params["qs"] == 'code_departement_ban:"2A"'
        assert params["select"].split(",") == download_dpe.FIELDS

    def test_departments(self):
        assert len(download_dpe.DEPARTMENTS) == len(set(download_dpe.DEPARTMENTS))
        assert {"2A", "2B", "974"} <= set(download_dpe.DEPARTMENTS)
        assert "20" not in download_dpe.DEPARTMENTS

    def test_fetch_page(self):
        http = FakeSession([FakeResponse({"results": [{"numero_dpe": "1"}], "next": "http://next"})])
        results, next_url = download_dpe.fetch_page(http, "http://api", params={"size": 1})
        assert results == [{"numero_dpe": "1"}]
        assert next_url == "http://next"

    def test_retries_with_growing_wait(self):
        waits = []
        http = FakeSession([
            FakeResponse(status_code=502),
            FakeResponse(status_code=503),
            FakeResponse({"results": [], "next": None}),
        ])
        results, next_url = download_dpe.fetch_page(http, "http://api", sleep=waits.append)
        assert (results, next_url) == ([], None)
        assert waits == [3.0, 6.0]

    def test_gives_up_after_max_retries(self):
        waits = []
        http = FakeSession([FakeResponse(status_code=500)] * 3)
        with pytest.raises(requests.HTTPError):
            download_dpe.fetch_page(http, "http://api", retries=3, sleep=waits.append)
        assert waits == [3.0, 6.0]

    def test_download_department_follows_next(self):
        http = FakeSession([
            FakeResponse({"results": [{"numero_dpe": "1"}], "next": "http://api?after=1"}),
            FakeResponse({"results": [{"numero_dpe": "2"}], "next": None}),
        ])
        rows = download_dpe.download_department(http, "http://api", "75")
        assert [r["numero_dpe"] for r in rows] == ["1", "2"]
        assert http.calls[1] == ("http://api?after=1", None)

    def test_worker_sessions_one_per_thread(self):
        created = []

        def factory():
            created.append(FakeSession())
            return created[-1]

        barrier = threading.Barrier(2, timeout=5)

        def task(sessions):
            first = sessions.get()
            barrier.wait()
            assert sessions.get() is first
            return first

        with download_dpe.WorkerSessions(factory) as sessions:
            with ThreadPoolExecutor(max_workers=2) as pool:
                used = list(pool.map(lambda _: task(sessions), range(2)))

        assert used[0] is not used[1]
        assert len(created) == 2
        assert all(http.closed for http in created)
