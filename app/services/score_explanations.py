from __future__ import annotations

from typing import Any, Dict, List

from app.services.formatting import PERIOD_LABELS, format_evolution, format_period, format_prix, is_known_period

"""
Score explanations.

Rôle (fonctionnel) :
- Produit un texte explicatif (2 à 4 phrases, en français) par dimension du score :
  technique, risques, gouvernance, énergie, marché.
- Entrée : objet copropriété (ORM ou équivalent exposant les mêmes attributs).
"""

BEFORE_1975 = ("AVANT_1949", "DE_1949_A_1960", "DE_1961_A_1974")
AFTER_2001 = ("DE_2001_A_2010", "A_COMPTER_DE_2011")


def _get(copro: Any, name: str) -> Any:
    return getattr(copro, name, None)


def explain_technique(copro: Any) -> str:
    period = _get(copro, "periode_construction")
    if not is_known_period(period):
        return (
            "La période de construction n'est pas renseignée pour cette copropriété, ce qui limite "
            "l'évaluation de l'état du bâti. Sans cette information, le score technique repose sur les "
            "autres indicateurs disponibles."
        )

    label = format_period(period) or period
    if period == "AVANT_1949":
        return (
            f"Immeuble construit {label}. Les bâtiments de cette époque présentent souvent des besoins de "
            "rénovation importants : toiture, façade, canalisations. La structure peut nécessiter des travaux "
            "de mise aux normes, notamment sur l'isolation et les parties communes."
        )
    if period in BEFORE_1975:
        return (
            f"Immeuble construit {label}, avant les premières réglementations thermiques. L'isolation est "
            "généralement insuffisante et les équipements collectifs peuvent être vieillissants. Des travaux "
            "de rénovation énergétique et de mise aux normes sont probablement à prévoir."
        )
    if period in AFTER_2001:
        return (
            f"Immeuble construit {label}, conforme aux normes thermiques modernes (RT 2000/2005 ou RT 2012). "
            "Le bâti est récent avec une bonne isolation et des équipements aux normes. Les charges de "
            "maintenance sont généralement maîtrisées."
        )
    return (
        f"Immeuble construit {label}. Cette période bénéficie des premières réglementations thermiques, mais "
        "l'isolation reste souvent perfectible. Les équipements collectifs peuvent nécessiter un "
        "renouvellement après plusieurs décennies d'usage."
    )


def explain_risques(copro: Any) -> str:
    parts: List[str] = []

    pdp = _get(copro, "copro_dans_pdp")
    if pdp is not None and pdp > 0:
        parts.append(
            "Cette copropriété est inscrite dans un plan de prévention des risques (péril), ce qui indique "
            "des problèmes structurels ou de sécurité identifiés par les autorités."
        )

    acv = _get(copro, "copro_dans_acv") == "oui"
    pvd = _get(copro, "copro_dans_pvd") == "oui"
    if acv and pvd:
        parts.append(
            "Elle est située dans un périmètre Action Cœur de Ville et Petites Villes de Demain, bénéficiant "
            "potentiellement d'aides à la rénovation."
        )
    elif acv:
        parts.append("Elle est située dans un périmètre Action Cœur de Ville, un dispositif de revitalisation urbaine.")
    elif pvd:
        parts.append(
            "Elle est située dans un périmètre Petites Villes de Demain, un programme de soutien aux villes moyennes."
        )

    qp = _get(copro, "nom_qp_2024")
    if qp:
        parts.append(
            f"Elle se trouve dans le quartier prioritaire « {qp} », ce qui peut impliquer des enjeux "
            "socio-économiques spécifiques mais aussi l'accès à des dispositifs d'aide."
        )

    if _get(copro, "copro_aidee") == "oui":
        parts.append(
            "Cette copropriété bénéficie d'un accompagnement dans le cadre du dispositif copropriétés aidées."
        )

    if not parts:
        return (
            "Aucun risque particulier n'a été identifié pour cette copropriété. Elle ne fait l'objet d'aucune "
            "procédure de péril, n'est pas en quartier prioritaire, et ne relève d'aucun dispositif de "
            "vigilance. C'est un signal positif pour la stabilité de l'investissement."
        )
    return " ".join(parts)


def explain_gouvernance(copro: Any) -> str:
    parts: List[str] = []

    type_syndic = _get(copro, "type_syndic")
    if type_syndic:
        t = type_syndic.lower()
        if t == "professionnel":
            parts.append(
                "La copropriété est gérée par un syndic professionnel, ce qui assure généralement un suivi "
                "administratif et comptable rigoureux."
            )
        elif t == "bénévole":
            parts.append(
                "La copropriété est gérée par un syndic bénévole. Ce mode de gestion peut réduire les charges "
                "mais repose fortement sur l'implication des copropriétaires."
            )
        else:
            parts.append(f"Le syndic est de type « {type_syndic} ».")
    else:
        parts.append(
            "Le type de syndic n'est pas renseigné, ce qui peut indiquer un défaut de mise à jour du registre."
        )

    if _get(copro, "syndicat_cooperatif") == "oui":
        parts.append(
            "Il s'agit d'un syndicat coopératif où les copropriétaires assurent directement la gestion, "
            "favorisant la transparence des décisions."
        )

    lots = _get(copro, "nb_total_lots")
    if lots is not None:
        if lots <= 10:
            parts.append(
                f"Avec seulement {lots} lots, la prise de décision en assemblée générale est facilitée par la "
                "petite taille de la copropriété."
            )
        elif lots <= 50:
            parts.append(
                f"La copropriété compte {lots} lots, une taille moyenne qui permet un bon équilibre entre "
                "mutualisation des charges et réactivité."
            )
        else:
            parts.append(
                f"Avec {lots} lots, il s'agit d'une grande copropriété où la gouvernance nécessite une "
                "organisation structurée et un conseil syndical actif."
            )

    return " ".join(parts)


def explain_energie(copro: Any) -> str:
    classe = _get(copro, "dpe_classe_mediane")
    if classe:
        nb = _get(copro, "dpe_nb_logements") or 0
        source = f"basée sur {nb} diagnostics à proximité" if nb > 1 else "basée sur un diagnostic à proximité"

        if classe in ("A", "B"):
            return (
                f"La classe DPE médiane est {classe} ({source}), ce qui correspond à une performance "
                "énergétique excellente. Les charges de chauffage sont faibles et le bien est valorisé sur le "
                "marché. Aucun travaux de rénovation énergétique n'est à prévoir à court terme."
            )
        if classe in ("C", "D"):
            return (
                f"La classe DPE médiane est {classe} ({source}), indiquant une performance énergétique "
                "correcte. Des améliorations comme l'isolation des combles ou le remplacement des menuiseries "
                "pourraient encore optimiser la consommation."
            )
        return (
            f"La classe DPE médiane est {classe} ({source}), ce qui classe le bâtiment comme énergivore. Des "
            "travaux de rénovation énergétique significatifs sont recommandés : isolation thermique, "
            "remplacement du système de chauffage, menuiseries. Les nouvelles réglementations pourraient "
            "impacter la location des logements les moins performants."
        )

    # Pas de DPE : estimation depuis la période
    period = _get(copro, "periode_construction")
    if period in PERIOD_LABELS:
        label = format_period(period)
        if period in AFTER_2001:
            return (
                "Aucun DPE collectif n'est disponible pour cette copropriété. Cependant, l'immeuble a été "
                f"construit {label}, période conforme aux réglementations thermiques récentes, ce qui suggère "
                "une performance énergétique correcte."
            )
        return (
            f"Aucun DPE collectif n'est disponible pour cette copropriété. L'immeuble a été construit {label} : "
            "la performance énergétique est estimée à partir de cette période, les bâtiments de cette époque "
            "présentant généralement une isolation limitée."
        )

    return (
        "Aucun DPE collectif n'est disponible et la période de construction n'est pas renseignée. Le score "
        "énergie est estimé par défaut, ce qui limite la fiabilité de l'évaluation sur cette dimension."
    )


def explain_marche(copro: Any) -> str:
    prix_m2 = _get(copro, "marche_prix_m2")
    if prix_m2 is None:
        return (
            "Aucune transaction immobilière n'a été trouvée dans un rayon de 500 mètres sur les 3 dernières "
            "années. Sans données de marché, cette dimension ne peut pas être évaluée précisément."
        )

    parts = [
        f"Le prix moyen au m² dans le secteur est de {format_prix(prix_m2)}, calculé à partir des "
        "transactions DVF dans un rayon de 500 mètres."
    ]

    evo = _get(copro, "marche_evolution")
    if evo is not None:
        label = format_evolution(evo)
        if evo >= 3:
            parts.append(
                f"Le marché est en forte hausse avec une évolution de {label} par an, signe d'un secteur "
                "attractif et dynamique."
            )
        elif evo >= 0:
            parts.append(
                f"L'évolution des prix est stable à légèrement positive ({label}/an), indiquant un marché équilibré."
            )
        elif evo >= -3:
            parts.append(
                f"Les prix sont en légère baisse ({label}/an), ce qui peut constituer une opportunité d'achat "
                "dans un marché en correction."
            )
        else:
            parts.append(
                f"Le marché connaît une baisse significative ({label}/an), ce qui peut refléter un désintérêt "
                "pour le secteur ou une correction post-hausse."
            )

    nb = _get(copro, "marche_nb_transactions")
    if nb is not None:
        if nb >= 20:
            parts.append(
                f"Avec {nb} transactions récentes, le volume de ventes est élevé, offrant une bonne fiabilité "
                "statistique."
            )
        elif nb >= 5:
            parts.append(f"{nb} transactions ont été enregistrées, un volume suffisant pour une estimation fiable.")
        else:
            s = "s" if nb > 1 else ""
            parts.append(f"Seulement {nb} transaction{s} enregistrée{s}, la fiabilité de l'estimation est limitée.")

    return " ".join(parts)


def explain_all(copro: Any) -> Dict[str, str]:
    return {
        "technique": explain_technique(copro),
        "risques": explain_risques(copro),
        "gouvernance": explain_gouvernance(copro),
        "energie": explain_energie(copro),
        "marche": explain_marche(copro),
    }
