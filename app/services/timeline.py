from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.services.formatting import format_date_fr, format_number_fr, format_period, is_known_period

"""
Timeline.

Rôle (fonctionnel) :
- Reconstitue l’historique daté d’une copropriété à partir des sources publiques :
  construction (année approximative), règlement, immatriculation RNIC, DPE, ventes DVF,
  plan de péril, syndic en place, dernière mise à jour RNIC.
- Les événements sont triés du plus récent au plus ancien.
"""

PERIOD_YEAR: Dict[str, int] = {
    "AVANT_1949": 1940,
    "DE_1949_A_1960": 1955,
    "DE_1961_A_1974": 1968,
    "DE_1975_A_1993": 1984,
    "DE_1994_A_2000": 1997,
    "DE_2001_A_2010": 2006,
    "A_COMPTER_DE_2011": 2015,
}
DEFAULT_YEAR = 1960
MAX_TIMELINE_SALES = 10


@dataclass(frozen=True)
class TimelineEvent:
    date: str
    sort_key: datetime
    type: str
    titre: str
    description: str
    date_label: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "date": self.date,
            "type": self.type,
            "titre": self.titre,
            "description": self.description,
        }
        if self.date_label:
            out["dateLabel"] = self.date_label
        return out


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def _iso_day(value: date | datetime) -> str:
    return _as_datetime(value).date().isoformat()


def _field(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _format_surface(surface: float) -> str:
    return f"{float(surface):g}"


def build_timeline(
    copro: Any,
    dvf_transactions: Iterable[Any] = (),
    dpe_rows: Iterable[Any] = (),
    now: Optional[datetime] = None,
) -> List[TimelineEvent]:
    events: List[TimelineEvent] = []
    now = now or datetime.now(timezone.utc)

    period = _field(copro, "periode_construction")
    if is_known_period(period):
        label = format_period(period)
        if label:
            year = PERIOD_YEAR.get(period, DEFAULT_YEAR)
            events.append(TimelineEvent(
                date=f"{year}-01-01",
                date_label=label[:1].upper() + label[1:],
                sort_key=datetime(year, 1, 1, tzinfo=timezone.utc),
                type="construction",
                titre="Construction de l'immeuble",
                description=f"Période : {label}",
            ))

    reglement = _field(copro, "date_reglement_copropriete")
    if reglement:
        events.append(TimelineEvent(
            date=_iso_day(reglement),
            sort_key=_as_datetime(reglement),
            type="administratif",
            titre="Règlement de copropriété",
            description=f"Établi le {format_date_fr(reglement)}",
        ))

    immat = _field(copro, "date_immatriculation")
    if immat:
        events.append(TimelineEvent(
            date=_iso_day(immat),
            sort_key=_as_datetime(immat),
            type="administratif",
            titre="Immatriculation au registre national",
            description=f"Immatriculée le {format_date_fr(immat)}",
        ))

    for dpe in dpe_rows:
        date_dpe = _field(dpe, "date_dpe")
        if not date_dpe:
            continue
        classe = _field(dpe, "classe_dpe")
        classe_text = f"Classe {classe}" if classe else "Classe inconnue"
        events.append(TimelineEvent(
            date=_iso_day(date_dpe),
            sort_key=_as_datetime(date_dpe),
            type="energie",
            titre="DPE réalisé",
            description=f"Diagnostic énergétique : {classe_text}",
        ))

    for tx in list(dvf_transactions)[:MAX_TIMELINE_SALES]:
        date_mutation = _field(tx, "date_mutation")
        surface = _field(tx, "surface")
        prix = _field(tx, "prix")
        prix_m2 = _field(tx, "prix_m2")
        events.append(TimelineEvent(
            date=_iso_day(date_mutation),
            sort_key=_as_datetime(date_mutation),
            type="transaction",
            titre="Vente immobilière",
            description=(
                f"{_format_surface(surface)} m² à {format_number_fr(prix_m2)} €/m² ({format_number_fr(prix)} €)"
            ),
        ))

    derniere_maj = _field(copro, "date_derniere_maj")
    maj_dt = _as_datetime(derniere_maj) if derniere_maj else None

    pdp = _field(copro, "copro_dans_pdp")
    if pdp is not None and pdp > 0:
        # Juste avant le syndic et la MAJ datés du même jour
        events.append(TimelineEvent(
            date=_iso_day(maj_dt or now),
            sort_key=(maj_dt - timedelta(milliseconds=1)) if maj_dt else now,
            type="risque",
            titre="Copropriété en plan de péril",
            description="Inscrite dans un plan de prévention des risques",
        ))

    type_syndic = _field(copro, "type_syndic")
    if type_syndic and maj_dt:
        syndic_label = type_syndic[:1].upper() + type_syndic[1:].lower()
        events.append(TimelineEvent(
            date=_iso_day(maj_dt),
            sort_key=maj_dt,
            type="gouvernance",
            titre=f"Syndic {syndic_label} en place",
            description=f"Type de gestion constaté au {format_date_fr(maj_dt)}",
        ))

    if maj_dt:
        events.append(TimelineEvent(
            date=_iso_day(maj_dt),
            sort_key=maj_dt + timedelta(milliseconds=1),
            type="administratif",
            titre="Mise à jour des données RNIC",
            description=f"Dernière mise à jour le {format_date_fr(maj_dt)}",
        ))

    events.sort(key=lambda e: e.sort_key, reverse=True)
    return events
