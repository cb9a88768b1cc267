from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Optional

"""
Formatting helpers.

Rôle (fonctionnel) :
- Libellés lisibles des périodes de construction RNIC.
- Mise en forme des noms de copropriété (le registre les fournit en MAJUSCULES abrégées).
- Arrondis et formats numériques / dates à la française, partagés par l’API, les explications
  de score, la timeline et les scripts.
"""

PERIOD_LABELS: dict[str, str] = {
    "AVANT_1949": "avant 1949",
    "DE_1949_A_1960": "entre 1949 et 1960",
    "DE_1961_A_1974": "entre 1961 et 1974",
    "DE_1975_A_1993": "entre 1975 et 1993",
    "DE_1994_A_2000": "entre 1994 et 2000",
    "DE_2001_A_2010": "entre 2001 et 2010",
    "A_COMPTER_DE_2011": "après 2011",
}

# Valeurs RNIC qui signifient “période inconnue”
UNKNOWN_PERIODS = ("NON_CONNUE", "non renseigné")

ACRONYMS = {"SDC", "SCI", "ASL", "AFUL"}

ABBREVIATIONS: dict[str, str] = {
    "AV": "Avenue",
    "R": "Rue",
    "BD": "Boulevard",
    "BVD": "Boulevard",
    "PL": "Place",
    "ALL": "Allée",
    "IMP": "Impasse",
    "CHEM": "Chemin",
}

LIAISON_WORDS = {"de", "du", "des", "le", "la", "les", "au", "aux", "en", "sur", "et"}

_LETTER_DIGIT_RE = re.compile(r"([a-zA-Z])(\d)")
_DIGIT_LETTER_RE = re.compile(r"(\d)([a-zA-Z])")
_CONTRACTION_RE = re.compile(r"^([LD]')(.+)$")


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Arrondi “au plus proche, .5 vers le haut” (et non l’arrondi bancaire de round())."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(round_half_up(value))


def is_known_period(period: Optional[str]) -> bool:
    return bool(period) and period not in UNKNOWN_PERIODS


def format_period(period: Optional[str]) -> Optional[str]:
    if not is_known_period(period):
        return None
    return PERIOD_LABELS.get(period)


def score_band(score: Optional[float]) -> Optional[str]:
    """Bucket d’affichage : bon (>= 70), moyen (>= 40), attention (< 40)."""
    if score is None:
        return None
    if score >= 70:
        return "bon"
    if score >= 40:
        return "moyen"
    return "attention"


def _title(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def format_copro_name(name: Optional[str]) -> Optional[str]:
    """
    Convertit un nom RNIC en casse lisible.

    "SDC 42 AV CLAUDE VELLEFAUX" -> "SDC 42 Avenue Claude Vellefaux"
    """
    if not name:
        return name

    # Sépare lettres et chiffres collés : "SDC7HALLES" -> "SDC 7 HALLES"
    spaced = _DIGIT_LETTER_RE.sub(r"\1 \2", _LETTER_DIGIT_RE.sub(r"\1 \2", name))

    words: list[str] = []
    for index, word in enumerate(w for w in re.split(r"\s+", spaced) if w):
        upper = word.upper()

        if upper in ACRONYMS:
            words.append(upper)
            continue

        if upper in ABBREVIATIONS:
            words.append(ABBREVIATIONS[upper])
            continue

        if word.isdigit():
            words.append(word)
            continue

        # "L'HOMME" -> "l'Homme"
        m = _CONTRACTION_RE.match(upper)
        if m:
            words.append(m.group(1).lower() + _title(m.group(2)))
            continue

        titled = _title(word)
        if index > 0 and titled.lower() in LIAISON_WORDS:
            words.append(titled.lower())
        else:
            words.append(titled)

    return " ".join(words)


def display_name(nom_usage: Optional[str], adresse: Optional[str], default: str = "Copropriété") -> str:
    return format_copro_name(nom_usage or adresse or default) or default


def format_date_fr(value: date | datetime) -> str:
    """Date au format JJ/MM/AAAA."""
    return value.strftime("%d/%m/%Y")


def format_number_fr(value: float) -> str:
    """Entier arrondi avec séparateur de milliers français (espace insécable)."""
    return f"{round_int(value):,}".replace(",", "\u202f")


def format_prix(value: float) -> str:
    return f"{format_number_fr(value)} €"


def format_evolution(value: float) -> str:
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.1f} %"
