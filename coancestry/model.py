"""
Отчёт по инбридингу: загрузка родословной → движок → таблица F по всем животным.
"""
from __future__ import annotations
import logging
from typing import Iterable

import numpy as np
import pandas as pd
from tqdm import tqdm

from .kinship import MAX_DEPTH, CoefficientEngine, is_failed
from .pedigree import (
    DEFAULT_DAM_COL,
    DEFAULT_ID_COL,
    DEFAULT_SIRE_COL,
    load_id_mapping,
    load_pedigree,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
LOGGER = logging.getLogger(__name__)

REPORT_COLUMNS = ["id", "sire_id", "dam_id", "inbreeding"]


def inbreeding_report(
    engine: CoefficientEngine,
    ids: Iterable[str] | None = None,
) -> pd.DataFrame:
    """
    F для каждого животного. Сорвавшиеся расчёты остаются NaN –
    решать, как их показывать, должен потребитель отчёта. Колонки номеров
    имеют dtype object: неизвестный родитель – None (в CSV пустое поле).
    """
    ids = engine.ids() if ids is None else [str(a) for a in ids]
    if not ids:
        LOGGER.info("🤷  Nothing to compute: pedigree is empty")
        return pd.DataFrame(columns=REPORT_COLUMNS)

    LOGGER.info("🧬  Computing inbreeding for %d animals …", len(ids))
    rows = []
    n_failed = 0
    for animal_id in tqdm(ids, desc="inbreeding"):
        f = engine.inbreeding_of(animal_id)
        if is_failed(f):
            n_failed += 1
        sire, dam = engine.parents(animal_id)
        rows.append((animal_id, sire, dam, f))

    info = engine.cache_info()
    LOGGER.info("✅  Done: %d computed, %d failed (cache: %d F, %d f)",
                len(ids) - n_failed, n_failed, info.inbreeding, info.coancestry)
    df = pd.DataFrame(rows, columns=REPORT_COLUMNS, dtype=object)
    return df.astype({"inbreeding": np.float64})


def compute_inbreeding(
    pedigree_path: str,
    id_mapping_path: str | None = None,
    max_depth: int = MAX_DEPTH,
    id_col: str = DEFAULT_ID_COL,
    sire_col: str = DEFAULT_SIRE_COL,
    dam_col: str = DEFAULT_DAM_COL,
) -> pd.DataFrame:
    LOGGER.info("📦  Loading pedigree …")
    id_mapping = load_id_mapping(id_mapping_path) if id_mapping_path else None
    pedigree = load_pedigree(pedigree_path, id_col, sire_col, dam_col, id_mapping)

    engine = CoefficientEngine(pedigree, max_depth=max_depth)
    return inbreeding_report(engine)
