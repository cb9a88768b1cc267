# scripts/download_dpe.py
from __future__ import annotations

import argparse
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests

# Permet de lancer le script depuis la racine du dépôt sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.core.settings import settings
from scripts.batch_utils import Timer

"""
Script CLI: download_dpe

Rôle (fonctionnel) :
- Télécharge les DPE des logements existants depuis l’API data-fair de l’ADEME (jeu dpe03existant),
  département par département, vers un CSV consommé par import_dpe.
- Pagination par le lien `next` renvoyé par l’API (pages de 10 000 lignes).
- Erreurs réseau / HTTP : nouvelles tentatives avec attente croissante (3 s, 6 s, 9 s).
- 4 départements téléchargés en parallèle (une session HTTP par thread).
- Reprise possible : --skip N saute les N premiers départements et complète le fichier existant.
"""

PAGE_SIZE = 10_000
CONCURRENCY = 4
MAX_RETRIES = 4
RETRY_BASE_WAIT_S = 3.0

FIELDS = [
    "numero_dpe",
    "date_etablissement_dpe",
    "etiquette_dpe",
    "etiquette_ges",
    "code_postal_ban",
    "code_insee_ban",
    "adresse_ban",
    "coordonnee_cartographique_x_ban",
    "coordonnee_cartographique_y_ban",
    "numero_immatriculation_copropriete",
]

DEPARTMENTS = [
    "01", "02", "03", "04", "05", "06", "07", "08", "09", "10", "11", "12", "13", "14", "15", "16", "17", "18", "19",
    "2A", "2B", "21", "22", "23", "24", "25", "26", "27", "28", "29", "30", "31", "32", "33", "34", "35", "36", "37",
    "38", "39", "40", "41", "42", "43", "44", "45", "46", "47", "48", "49", "50", "51", "52", "53", "54", "55", "56",
    "57", "58", "59", "60", "61", "62", "63", "64", "65", "66", "67", "68", "69", "70", "71", "72", "73", "74", "75",
    "76", "77", "78", "79", "80", "81", "82", "83", "84", "85", "86", "87", "88", "89", "90", "91", "92", "93", "94",
    "95", "971", "972", "973", "974", "976",
]


class WorkerSessions:
    """Une requests.Session par thread du pool, toutes fermées à la sortie."""

    def __init__(self, factory=requests.Session):
        self._factory = factory
        self._local = threading.local()
        self._lock = threading.Lock()
        self._sessions: List[Any] = []

    def get(self) -> requests.Session:
        http = getattr(self._local, "http", None)
        if http is None:
            http = self._factory()
            self._local.http = http
            with self._lock:
                self._sessions.append(http)
        return http

    def close(self) -> None:
        with self._lock:
            for http in self._sessions:
                http.close()
            self._sessions.clear()

    def __enter__(self) -> "WorkerSessions":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def first_page_params(dept: str) -> Dict[str, Any]:
    return {
        "size": PAGE_SIZE,
        "select": ",".join(FIELDS),
        "qs": f'code_departement_ban:"{dept}"',
    }


def fetch_page(
    http: requests.Session,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    retries: int = MAX_RETRIES,
    sleep=time.sleep,
) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Une page de résultats + l’URL de la suivante (None en fin de pagination)."""
    for attempt in range(retries):
        try:
            resp = http.get(url, params=params, timeout=60)
            resp.raise_for_status()
            data = resp.json()
            return data.get("results") or [], data.get("next")
        except (requests.RequestException, ValueError) as e:
            if attempt == retries - 1:
                raise
            wait = RETRY_BASE_WAIT_S * (attempt + 1)
            print(f"⚠️  Retry {attempt + 1} dans {wait:.0f}s : {e}")
            sleep(wait)
    return [], None


def download_department(http: requests.Session, base_url: str, dept: str) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    url: Optional[str] = base_url
    params: Optional[Dict[str, Any]] = first_page_params(dept)

    while url:
        results, next_url = fetch_page(http, url, params=params)
        if not results:
            break
        rows.extend(results)
        # Le lien `next` porte déjà tous les paramètres
        url, params = next_url, None

    return rows


def append_rows(output: Path, rows: List[Dict[str, Any]]) -> None:
    if not rows:
        return
    frame = pd.DataFrame(rows).reindex(columns=FIELDS)
    frame.to_csv(output, mode="a", header=False, index=False)


def run(output: str, skip: int = 0, concurrency: int = CONCURRENCY, base_url: Optional[str] = None) -> int:
    base_url = base_url or settings.ADEME_DPE_URL
    out = Path(output)
    remaining = DEPARTMENTS[skip:]
    print(
        f"Téléchargement DPE (départements {skip + 1}-{len(DEPARTMENTS)}, "
        f"{len(remaining)} restants, {concurrency} en parallèle)…"
    )
    timer = Timer()

    # Départ à zéro : on (ré)écrit l’en-tête ; reprise : on complète le fichier
    if skip == 0 or not out.exists():
        out.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(columns=FIELDS).to_csv(out, index=False)
    else:
        print("   Reprise : ajout au fichier existant")

    total_rows = 0
    done = 0
    # requests.Session n’est pas thread-safe
    with WorkerSessions() as sessions, ThreadPoolExecutor(max_workers=concurrency) as pool:
        for i in range(0, len(remaining), concurrency):
            chunk = remaining[i : i + concurrency]
            results = list(pool.map(lambda d: download_department(sessions.get(), base_url, d), chunk))

            for rows in results:
                append_rows(out, rows)
                total_rows += len(rows)

            done += len(chunk)
            print(
                f"… {skip + done}/{len(DEPARTMENTS)} départements [{','.join(chunk)}] : "
                f"{total_rows:,} nouvelles lignes ({timer.elapsed})"
            )

    print(f"✅ Téléchargement terminé : {total_rows:,} lignes en {timer.elapsed}")
    print(f"   - Fichier : {out}")
    return total_rows


def main():
    parser = argparse.ArgumentParser(description="Téléchargement des DPE logements existants (API ADEME)")
    parser.add_argument("--output", default=settings.DPE_CSV_PATH, help="CSV de sortie")
    parser.add_argument("--skip", type=int, default=0, help="Nombre de départements déjà téléchargés (reprise)")
    parser.add_argument("--concurrency", type=int, default=CONCURRENCY, help="Départements en parallèle")
    args = parser.parse_args()

    run(args.output, skip=args.skip, concurrency=args.concurrency)


if __name__ == "__main__":
    main()
