from __future__ import annotations

import re
import unicodedata
from typing import Iterable, Iterator, Optional, Tuple

"""
Slugs.

Rôle (fonctionnel) :
- Construit les identifiants d’URL des copropriétés, communes et départements.
- Parse les slugs de commune / département pour retrouver le code officiel.
- Dédoublonne les slugs de copropriété (suffixes -2, -3, … dans l’ordre des ids).
"""

COPRO_SLUG_PREFIX = "score-copropriete"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_VILLE_CODE_RE = re.compile(r"-((?:2[AB])?\d{2,5})$")
_DEPT_CODE_RE = re.compile(r"-(\d{2,3})$")


def slugify(text: str) -> str:
    """Minuscules sans accents, tout caractère non alphanumérique devient un tiret unique."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM_RE.sub("-", stripped.lower()).strip("-")


def make_copro_slug(adresse: Optional[str], code_postal: Optional[str]) -> str:
    parts = [COPRO_SLUG_PREFIX]
    if adresse:
        # adresse_reference contient déjà code postal + ville
        parts.append(slugify(adresse))
    elif code_postal:
        parts.append(code_postal)
    return "-".join(parts)


def make_ville_slug(nom_commune: str, code_commune: str) -> str:
    return f"{slugify(nom_commune)}-{code_commune}"


def parse_ville_slug(slug: str) -> Optional[str]:
    m = _VILLE_CODE_RE.search(slug)
    return m.group(1) if m else None


def make_dept_slug(nom_dept: str, code_dept: str) -> str:
    return f"{slugify(nom_dept)}-{code_dept.lower()}"


def parse_dept_slug(slug: str) -> Optional[str]:
    m = _DEPT_CODE_RE.search(slug)
    if m:
        return m.group(1)
    # Corse : 2A / 2B
    m = re.search(r"-(2[ab])$", slug, flags=re.IGNORECASE)
    return m.group(1).upper() if m else None


def unique_copro_slugs(
    rows: Iterable[Tuple[int, Optional[str], Optional[str]]],
    used: Optional[set[str]] = None,
) -> Iterator[Tuple[int, str, bool]]:
    """
    Génère (id, slug, collision) pour des lignes (id, adresse_reference, code_postal).

    Les lignes doivent arriver triées par id : la première occurrence garde le slug “nu”,
    les suivantes reçoivent le premier suffixe -N libre (N >= 2).
    """
    used = set() if used is None else used
    for copro_id, adresse, code_postal in rows:
        slug = make_copro_slug(adresse, code_postal)
        collision = slug in used
        if collision:
            counter = 2
            while f"{slug}-{counter}" in used:
                counter += 1
            slug = f"{slug}-{counter}"
        used.add(slug)
        yield copro_id, slug, collision
