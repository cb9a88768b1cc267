"""Unit tests for app.services.score_explanations."""

from app.services.score_explanations import (
    explain_all,
    explain_energie,
    explain_gouvernance,
    explain_marche,
    explain_risques,
    explain_technique,
)


class TestExplanations:
    def test_all_dimensions_present(self, old_paris_copro):
        texts = explain_all(old_paris_copro)
        assert set(texts) == {"technique", "risques", "gouvernance", "energie", "marche"}
        assert all(isinstance(t, str) and t for t in texts.values())

    def test_technique_unknown_period(self, make_copro):
        assert explain_technique(make_copro()).startswith("La période de construction n'est pas renseignée")

    def test_technique_old_building(self, old_paris_copro):
        assert explain_technique(old_paris_copro).startswith("Immeuble construit avant 1949.")

    def test_risques_nothing_to_report(self, make_copro):
        assert explain_risques(make_copro()).startswith("Aucun risque particulier")

    def test_risques_peril_and_aid(self, make_copro):
        text = explain_risques(make_copro(copro_dans_pdp=1, copro_aidee="oui"))
        assert "plan de prévention des risques" in text
        assert "copropriétés aidées" in text

    def test_risques_priority_district(self, make_copro):
        text = explain_risques(make_copro(nom_qp_2024="Les Tarterêts"))
        assert "« Les Tarterêts »" in text

    def test_gouvernance_small_volunteer(self, make_copro):
        text = explain_gouvernance(make_copro(type_syndic="bénévole", nb_total_lots=6))
        assert "syndic bénévole" in text
        assert "Avec seulement 6 lots" in text

    def test_gouvernance_missing_syndic(self, make_copro):
        assert explain_gouvernance(make_copro()).startswith("Le type de syndic n'est pas renseigné")

    def test_energie_from_dpe(self, old_paris_copro):
        text = explain_energie(old_paris_copro)
        assert text.startswith("La classe DPE médiane est F (basée sur 6 diagnostics à proximité)")

    def test_energie_single_diagnostic(self, make_copro):
        text = explain_energie(make_copro(dpe_classe_mediane="B", dpe_nb_logements=1))
        assert "basée sur un diagnostic à proximité" in text

    def test_energie_without_data(self, make_copro):
        assert explain_energie(make_copro()).startswith("Aucun DPE collectif n'est disponible et la période")

    def test_marche_without_data(self, make_copro):
        assert explain_marche(make_copro()).startswith("Aucune transaction immobilière")

    def test_marche_price(self, old_paris_copro):
        assert "10\u202f250 €" in explain_marche(old_paris_copro)
