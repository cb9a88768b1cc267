"""Pytest fixtures for CoproScore tests."""

import os
import sys
from datetime import date
from types import SimpleNamespace

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

COPRO_DEFAULTS = {
    "id": 1,
    "numero_immatriculation": "AA1234567",
    "slug": "score-copropriete-12-rue-de-la-paix-75002-paris",
    "nom_usage": "SDC 12 R DE LA PAIX",
    "adresse_reference": "12 rue de la Paix 75002 Paris",
    "commune_adresse": "Paris",
    "code_postal": "75002",
    "latitude": 48.8686,
    "longitude": 2.3314,
    "date_immatriculation": None,
    "date_derniere_maj": None,
    "date_reglement_copropriete": None,
    "periode_construction": None,
    "nb_total_lots": None,
    "nb_lots_habitation": None,
    "type_syndic": None,
    "syndicat_cooperatif": None,
    "residence_service": None,
    "copro_dans_pdp": None,
    "copro_dans_acv": None,
    "copro_dans_pvd": None,
    "copro_aidee": None,
    "nom_qp_2024": None,
    "code_officiel_commune": "75102",
    "score_global": None,
    "score_technique": None,
    "score_risques": None,
    "score_gouvernance": None,
    "score_energie": None,
    "score_marche": None,
    "indice_confiance": None,
    "dpe_classe_mediane": None,
    "dpe_nb_logements": None,
    "dpe_distribution": None,
    "marche_prix_m2": None,
    "marche_evolution": None,
    "marche_nb_transactions": None,
}


@pytest.fixture
def make_copro():
    """Factory: copropriété-like object (attribute access, like an ORM row)."""

    def _make(**overrides):
        data = dict(COPRO_DEFAULTS)
        data.update(overrides)
        return SimpleNamespace(**data)

    return _make


@pytest.fixture
def old_paris_copro(make_copro):
    """Pre-1949 building, volunteer syndic, poor DPE, active market."""
    return make_copro(
        periode_construction="AVANT_1949",
        nb_total_lots=14,
        nb_lots_habitation=10,
        type_syndic="bénévole",
        syndicat_cooperatif="non",
        copro_dans_pdp=0,
        dpe_classe_mediane="F",
        dpe_nb_logements=6,
        marche_prix_m2=10250,
        marche_evolution=-3.2,
        marche_nb_transactions=42,
        date_immatriculation=date(2017, 3, 14),
        date_derniere_maj=date(2024, 6, 1),
    )


@pytest.fixture
def sample_rnic_row():
    """One RNIC CSV row (as read by pandas with dtype=str, keep_default_na=False)."""
    return {
        "epci": "Métropole du Grand Paris",
        "commune": "Paris 2e Arrondissement",
        "numero_d_immatriculation": "AA1234567",
        "date_d_immatriculation": "2017-03-14",
        "date_de_la_derniere_maj": "2024-06-01",
        "type_de_syndic_benevole_professionnel_non_connu": "professionnel",
        "identification_du_representant_legal_raison_sociale_et_le_numer": "FONCIA PARIS (123456789)",
        "raison_sociale_du_representant_legal": "FONCIA PARIS",
        "siret_du_representant_legal": "12345678900012",
        "code_ape": "6832A",
        "commune_du_representant_legal": "PARIS",
        "mandat_en_cours_dans_la_copropriete": "Mandat en cours",
        "date_de_fin_du_dernier_mandat": "non connu",
        "nom_d_usage_de_la_copropriete": "SDC 12 RUE DE LA PAIX",
        "adresse_de_reference": "12 rue de la Paix 75002 Paris",
        "numero_et_voie_adresse_de_reference": "12 rue de la Paix",
        "code_postal_adresse_de_reference": "75002",
        "commune_adresse_de_reference": "Paris",
        "adresse_complementaire_1": "",
        "adresse_complementaire_2": "",
        "adresse_complementaire_3": "",
        "nombre_d_adresses_complementaires": "0",
        "long": "2.3314",
        "lat": "48.8686",
        "date_du_reglement_de_copropriete": "1956-11-02",
        "residence_service": "non",
        "syndicat_cooperatif": "non",
        "syndicat_principal_ou_syndicat_secondaire": "principal",
        "si_secondaire_n_d_immatriculation_du_principal": "",
        "nombre_d_asl_auxquelles_est_rattache_le_syndicat_de_coproprieta": "0",
        "nombre_d_aful_auxquelles_est_rattache_le_syndicat_de_copropriet": "0",
        "nombre_d_unions_de_syndicats_auxquelles_est_rattache_le_syndica": "0",
        "nombre_total_de_lots": "24",
        "nombre_total_de_lots_a_usage_d_habitation_de_bureaux_ou_de_comm": "18",
        "nombre_de_lots_a_usage_d_habitation": "16",
        "nombre_de_lots_de_stationnement": "non connu",
        "periode_de_construction": "AVANT_1949",
        "reference_cadastrale_1": "75102000AB0012",
        "code_insee_commune_1": "75102",
        "prefixe_1": "000",
        "section_1": "AB",
        "numero_parcelle_1": "0012",
        "reference_cadastrale_2": "",
        "code_insee_commune_2": "",
        "prefixe_2": "",
        "section_2": "",
        "numero_parcelle_2": "",
        "reference_cadastrale_3": "",
        "code_insee_commune_3": "",
        "prefixe_3": "",
        "section_3": "",
        "numero_parcelle_3": "",
        "nombre_de_parcelles_cadastrales": "1",
        "nom_qp_2015": "",
        "code_qp_2015": "",
        "nom_qp_2024": "",
        "code_qp_2024": "",
        "copro_dans_acv": "non",
        "copro_dans_pvd": "non",
        "code_de_pdp": "",
        "copro_dans_pdp": "0",
        "copro_aidee": "non",
        "code_officiel_commune": "75102",
        "nom_officiel_commune": "Paris 2e Arrondissement",
        "code_officiel_arrondissement": "751",
        "code_officiel_arrondissement_commune": "751",
        "nom_officiel_arrondissement_commune": "Paris",
        "code_officiel_epci": "200054781",
        "nom_officiel_epci": "Métropole du Grand Paris",
        "code_officiel_departement": "75",
        "nom_officiel_departement": "Paris",
        "code_officiel_region": "11",
        "nom_officiel_region": "Île-de-France",
    }
