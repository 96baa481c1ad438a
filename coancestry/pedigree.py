"""
Загрузка родословной: CSV / любой DataFrame → {id: Animal}.

Движку коэффициентов нужен только готовый словарь, поэтому вся
«грязная» работа с исходными данными собрана здесь:
    * комментарии ``#`` внутри полей отрезаются;
    * внутренние номера отца/матери переводятся в стандартные по таблице
      соответствия (``id_mapping``);
    * пустое значение, пробелы или ``"0"`` означают «родитель неизвестен».
"""
from __future__ import annotations
import logging
from typing import Dict, NamedTuple

import pandas as pd

LOGGER = logging.getLogger(__name__)

MISSING_SENTINELS = frozenset({"0"})

DEFAULT_ID_COL = "id"
DEFAULT_SIRE_COL = "sire_id"
DEFAULT_DAM_COL = "dam_id"


def clean_field(raw) -> str:
    """Обрезает всё после первого ``#`` и пробелы по краям."""
    if raw is None or (not isinstance(raw, str) and pd.isna(raw)):
        return ""
    return str(raw).split("#", 1)[0].strip()


def normalize_id(raw) -> str | None:
    """Номер как есть (без пробелов по краям); пусто или ``"0"`` → None."""
    if raw is None or (not isinstance(raw, str) and pd.isna(raw)):
        return None
    value = str(raw).strip()
    if not value or value in MISSING_SENTINELS:
        return None
    return value


class Animal(NamedTuple):
    id: str
    sire_id: str | None
    dam_id: str | None

    @classmethod
    def create(cls, animal_id: str, sire_id=None, dam_id=None) -> "Animal":
        return cls(str(animal_id).strip(), normalize_id(sire_id), normalize_id(dam_id))


PedigreeType = Dict[str, Animal]  # id → Animal(id, sire, dam)


def _require_columns(df: pd.DataFrame, *cols: str) -> None:
    for col in cols:
        if col not in df.columns:
            raise ValueError(f"Missing column {col!r}, got {list(df.columns)}")


def load_id_mapping(
    path: str,
    internal_col: str = "internal_id",
    standard_col: str = "standard_id",
) -> Dict[str, str]:
    """Таблица соответствия: внутренний номер → стандартный номер."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    _require_columns(df, internal_col, standard_col)

    mapping: Dict[str, str] = {}
    for row_no, (internal, standard) in enumerate(
        df[[internal_col, standard_col]].itertuples(index=False, name=None), start=1
    ):
        internal, standard = clean_field(internal), clean_field(standard)
        if not internal or not standard:
            if internal or standard:
                LOGGER.warning("Row %d: empty internal or standard id, skipped", row_no)
            continue
        if internal in mapping and mapping[internal] != standard:
            LOGGER.warning(
                "Row %d: duplicate internal id %r, %r replaced by %r",
                row_no, internal, mapping[internal], standard,
            )
        mapping[internal] = standard

    LOGGER.info("🔗  Loaded %d id mappings from %s", len(mapping), path)
    return mapping


def pedigree_from_frame(
    df: pd.DataFrame,
    id_col: str = DEFAULT_ID_COL,
    sire_col: str = DEFAULT_SIRE_COL,
    dam_col: str = DEFAULT_DAM_COL,
    id_mapping: Dict[str, str] | None = None,
) -> PedigreeType:
    """
    Строит родословную из таблицы с колонками id / sire / dam.

    Номера родителей сначала переводятся через ``id_mapping`` (если номер
    там есть), затем нормализуются. Дубликаты id перезаписывают прежнюю
    запись с предупреждением.
    """
    _require_columns(df, id_col, sire_col, dam_col)
    id_mapping = id_mapping or {}

    pedigree: PedigreeType = {}
    for row_no, (raw_id, raw_sire, raw_dam) in enumerate(
        df[[id_col, sire_col, dam_col]].itertuples(index=False, name=None), start=1
    ):
        if isinstance(raw_id, str) and raw_id.lstrip().startswith("#"):
            continue  # строка-комментарий
        animal_id = clean_field(raw_id)
        if not animal_id:
            LOGGER.warning("Row %d: empty animal id, skipped", row_no)
            continue

        sire = clean_field(raw_sire)
        dam = clean_field(raw_dam)
        animal = Animal.create(
            animal_id, id_mapping.get(sire, sire), id_mapping.get(dam, dam)
        )
        if animal_id in pedigree:
            LOGGER.warning("Row %d: duplicate animal id %r, previous entry replaced",
                           row_no, animal_id)
        pedigree[animal_id] = animal

    return pedigree


def load_pedigree(
    path: str,
    id_col: str = DEFAULT_ID_COL,
    sire_col: str = DEFAULT_SIRE_COL,
    dam_col: str = DEFAULT_DAM_COL,
    id_mapping: Dict[str, str] | None = None,
) -> PedigreeType:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    pedigree = pedigree_from_frame(df, id_col, sire_col, dam_col, id_mapping)
    LOGGER.info("📦  Loaded %d animals from %s", len(pedigree), path)
    return pedigree
