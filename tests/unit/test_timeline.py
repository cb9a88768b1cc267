"""Unit tests for app.services.timeline."""

from datetime import date, datetime, timezone

from app.services.timeline import MAX_TIMELINE_SALES, build_timeline

NOW = datetime(2025, 6, 15, tzinfo=timezone.utc)


class TestBuildTimeline:
    def test_empty_copro(self, make_copro):
        assert build_timeline(make_copro(), now=NOW) == []

    def test_events_sorted_most_recent_first(self, old_paris_copro):
        events = build_timeline(old_paris_copro, now=NOW)
        assert [e.titre for e in events] == [
            "Mise à jour des données RNIC",
            "Syndic Bénévole en place",
            "Immatriculation au registre national",
            "Construction de l'immeuble",
        ]

    def test_construction_event(self, old_paris_copro):
        construction = build_timeline(old_paris_copro, now=NOW)[-1]
        assert construction.date == "1940-01-01"
        assert construction.date_label == "Avant 1949"
        assert construction.as_dict()["dateLabel"] == "Avant 1949"
        assert construction.description == "Période : avant 1949"

    def test_peril_sorted_between_syndic_and_update(self, make_copro):
        copro = make_copro(
            copro_dans_pdp=1,
            type_syndic="professionnel",
            date_derniere_maj=date(2024, 6, 1),
        )
        types = [e.type for e in build_timeline(copro, now=NOW)]
        assert types == ["administratif", "gouvernance", "risque"]

    def test_peril_without_update_date_uses_now(self, make_copro):
        events = build_timeline(make_copro(copro_dans_pdp=2), now=NOW)
        assert len(events) == 1
        assert events[0].date == "2025-06-15"

    def test_sales_and_dpe(self, make_copro):
        sales = [
            {"date_mutation": date(2024, 2, 1), "surface": 45.5, "prix": 455_000, "prix_m2": 10_000},
        ]
        dpe_rows = [
            {"date_dpe": date(2023, 5, 2), "classe_dpe": "E"},
            {"date_dpe": None, "classe_dpe": "A"},
        ]
        events = build_timeline(make_copro(), sales, dpe_rows, now=NOW)
        assert [e.type for e in events] == ["transaction", "energie"]
        assert events[0].description == "45.5 m² à 10\u202f000 €/m² (455\u202f000 €)"
        assert events[1].description == "Diagnostic énergétique : Classe E"

    def test_sales_are_capped(self, make_copro):
        sales = [
            {"date_mutation": date(2024, 1, d), "surface": 30, "prix": 300_000, "prix_m2": 10_000}
            for d in range(1, 20)
        ]
        events = build_timeline(make_copro(), sales, now=NOW)
        assert len(events) == MAX_TIMELINE_SALES

    def test_as_dict_without_label(self, make_copro):
        copro = make_copro(date_immatriculation=date(2017, 3, 14))
        (event,) = build_timeline(copro, now=NOW)
        assert event.as_dict() == {
            "date": "2017-03-14",
            "type": "administratif",
            "titre": "Immatriculation au registre national",
            "description": "Immatriculée le 14/03/2017",
        }
