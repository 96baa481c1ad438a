"""
Инбридинг (F) и коэффициент коанцестри (f) по Райту, 1922 – табличная рекурсия.

    F(x)    = f(sire(x), dam(x))                  (оба родителя известны, иначе 0)
    f(a, a) = 0.5 · (1 + F(a))
    f(a, b) = 0.5 · (f(a, sire(b)) + f(a, dam(b)))  (b – «более позднее» животное)
    f(a, b) = 0, если a или b нет в родословной

``CoefficientEngine`` держит два кэша (F по животному, f по неупорядоченной
паре) и ограничивает глубину рекурсии, чтобы циклы в «грязных» данных не
уводили расчёт в бесконечность. Аддитивное родство R(a,b) = 2 · f(a,b).
"""
from __future__ import annotations
import logging
import sys
from typing import Dict, Iterable, Mapping, NamedTuple, Tuple

import numpy as np
import pandas as pd
from numba import njit

from .pedigree import Animal, normalize_id

LOGGER = logging.getLogger(__name__)

MAX_DEPTH = 50
FAILED = float("nan")  # расчёт сорвался (переполнение стека интерпретатора)


def is_failed(value: float) -> bool:
    return bool(np.isnan(value))


class CacheInfo(NamedTuple):
    inbreeding: int
    coancestry: int


def _parents_of(record) -> Tuple[str | None, str | None]:
    # Animal, {"sire_id": ..., "dam_id": ...} или просто (sire, dam)
    if isinstance(record, Animal):
        return record.sire_id, record.dam_id
    if isinstance(record, dict):
        return normalize_id(record.get("sire_id")), normalize_id(record.get("dam_id"))
    sire, dam = record
    return normalize_id(sire), normalize_id(dam)


class CoefficientEngine:
    """
    Коэффициенты инбридинга и коанцестри для одного «снимка» родословной.

    Родители копируются при создании, так что дальнейшие изменения исходного
    словаря на движок не влияют – для новой родословной создаётся новый движок.
    ``logger`` принимает предупреждения (срабатывание ограничителя глубины) и
    ошибки (``RecursionError``); по умолчанию пишет в логгер модуля.
    """

    def __init__(
        self,
        pedigree: Mapping[str, object],
        logger: logging.Logger | None = None,
        max_depth: int = MAX_DEPTH,
    ):
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.max_depth = max_depth
        self._logger = logger if logger is not None else LOGGER
        self._parents: Dict[str, Tuple[str | None, str | None]] = {
            str(animal_id): _parents_of(record) for animal_id, record in pedigree.items()
        }
        self._generation = self._build_generations()
        self._inbreeding_cache: Dict[str, float] = {}
        self._coancestry_cache: Dict[Tuple[str, str], float] = {}

    def __len__(self) -> int:
        return len(self._parents)

    def __contains__(self, animal_id) -> bool:
        return animal_id in self._parents

    def ids(self) -> list:
        return list(self._parents)

    def parents(self, animal_id: str) -> Tuple[str | None, str | None]:
        return self._parents.get(animal_id, (None, None))

    def cache_info(self) -> CacheInfo:
        return CacheInfo(len(self._inbreeding_cache), len(self._coancestry_cache))

    # ------------------------------------------------------------------ #
    # Публичные запросы
    # ------------------------------------------------------------------ #
    def inbreeding_of(self, animal_id: str) -> float:
        """F(animal_id); ``FAILED``, если интерпретатору не хватило стека."""
        try:
            return self._inbreeding(animal_id, 0)
        except RecursionError:
            self._report_failure("inbreeding", animal_id)
            return FAILED

    def coancestry(self, a: str, b: str) -> float:
        try:
            return self._coancestry(a, b, 0)
        except RecursionError:
            self._report_failure("coancestry", a, b)
            return FAILED

    def relationship(self, a: str, b: str) -> float:
        return 2.0 * self.coancestry(a, b)

    # ------------------------------------------------------------------ #
    # Рекурсия
    # ------------------------------------------------------------------ #
    def _inbreeding(self, animal_id: str, depth: int) -> float:
        if depth > self.max_depth:
            self._logger.warning(
                "Max recursion depth (%d) exceeded computing inbreeding of %s, assuming 0",
                self.max_depth, animal_id,
            )
            return 0.0

        cached = self._inbreeding_cache.get(animal_id)
        if cached is not None:
            return cached

        sire, dam = self.parents(animal_id)
        if sire is None or dam is None:
            value = 0.0
        else:
            value = self._coancestry(sire, dam, depth + 1)

        self._inbreeding_cache[animal_id] = value
        return value

    def _coancestry(self, a: str | None, b: str | None, depth: int) -> float:
        # неизвестное животное: 0 без кэша и без проверки глубины
        if a is None or b is None or a not in self._parents or b not in self._parents:
            return 0.0

        if depth > self.max_depth:
            self._logger.warning(
                "Max recursion depth (%d) exceeded computing coancestry of %s and %s, assuming 0",
                self.max_depth, a, b,
            )
            return 0.0

        key = self._pair_key(a, b)
        cached = self._coancestry_cache.get(key)
        if cached is not None:
            return cached

        if a == b:
            value = 0.5 * (1.0 + self._inbreeding(a, depth + 1))
        else:
            other, traced = key
            sire, dam = self._parents[traced]
            if sire is None and dam is None:
                value = 0.0
            else:
                via_sire = 0.0 if sire is None else self._coancestry(other, sire, depth + 1)
                via_dam = 0.0 if dam is None else self._coancestry(other, dam, depth + 1)
                value = 0.5 * (via_sire + via_dam)

        self._coancestry_cache[key] = value
        return value

    # ------------------------------------------------------------------ #
    # Порядок животных и ключ кэша
    # ------------------------------------------------------------------ #
    def _rank(self, animal_id: str) -> Tuple[int, str]:
        return self._generation.get(animal_id, 0), animal_id

    def _pair_key(self, a: str, b: str) -> Tuple[str, str]:
        """(раньше, позже): второй элемент пары раскладывается на родителей."""
        return (a, b) if self._rank(a) <= self._rank(b) else (b, a)

    def _build_generations(self) -> Dict[str, int]:
        """
        Поколение = длина самой длинной известной цепочки предков (основатели – 0).

        Потомок всегда «позже» любого своего предка, поэтому раскладывая
        более позднее животное, рекурсия не проходит через предка второго.
        Обход итеративный; обратные рёбра цикла просто игнорируются.
        """
        generation: Dict[str, int] = {}
        in_progress = set()
        for root in sorted(self._parents):
            if root in generation:
                continue
            stack = [(root, False)]
            while stack:
                node, expanded = stack.pop()
                known = [p for p in self._parents[node] if p is not None and p in self._parents]
                if expanded:
                    in_progress.discard(node)
                    generation[node] = 1 + max((generation.get(p, -1) for p in known), default=-1)
                    continue
                if node in generation or node in in_progress:
                    continue
                in_progress.add(node)
                stack.append((node, True))
                stack.extend((p, False) for p in known if p not in generation and p not in in_progress)
        return generation

    def _report_failure(self, what: str, *ids: str) -> None:
        self._logger.error(
            "Computing %s of %s failed: interpreter recursion limit (%d) exhausted "
            "despite max_depth=%d (%d animals in pedigree)",
            what, ", ".join(map(str, ids)), sys.getrecursionlimit(),
            self.max_depth, len(self._parents),
            exc_info=True,
        )


# --------------------------------------------------------------------------- #
# Матрица родства и отбор подборов
# --------------------------------------------------------------------------- #
def relationship_matrix(engine: CoefficientEngine, ids: Iterable[str]) -> pd.DataFrame:
    """
    Аддитивная матрица родства A для заданных животных: A[i,j] = 2·f(i,j),
    на диагонали 1 + F(i). Считается через кэши движка, без обращения матриц.
    """
    ids = [str(a) for a in ids]
    n = len(ids)
    A = np.zeros((n, n), dtype=np.float64)
    for i, a in enumerate(ids):
        A[i, i] = 1.0 + engine.inbreeding_of(a)
        for j in range(i):
            A[i, j] = engine.relationship(a, ids[j])
            A[j, i] = A[i, j]
    return pd.DataFrame(A, index=ids, columns=ids)


@njit(cache=True)
def _filter_matings_numba(coancestry_mat: np.ndarray, max_inbreeding: float):
    nsires, ndams = coancestry_mat.shape
    # NaN (сорвавшийся расчёт) сравнение не проходит
    keep = coancestry_mat <= max_inbreeding
    n = 0
    for j in range(nsires):
        for i in range(ndams):
            if keep[j, i]:
                n += 1

    sire_idx = np.empty(n, dtype=np.int64)
    dam_idx = np.empty(n, dtype=np.int64)
    progeny_f = np.empty(n, dtype=np.float64)
    k = 0
    for j in range(nsires):
        for i in range(ndams):
            if keep[j, i]:
                sire_idx[k] = j
                dam_idx[k] = i
                progeny_f[k] = coancestry_mat[j, i]
                k += 1
    return sire_idx, dam_idx, progeny_f


def screen_matings(
    engine: CoefficientEngine,
    sires: Iterable[str],
    dams: Iterable[str],
    max_inbreeding: float = 0.0625,
) -> pd.DataFrame:
    """
    Допустимые подборы (sire_id, dam_id, progeny_inbreeding).

    Ожидаемый инбридинг потомка равен f(sire, dam); оставляем пары, где он
    не превышает ``max_inbreeding``.
    """
    sire_ids = np.asarray([str(s) for s in sires], dtype=object)
    dam_ids = np.asarray([str(d) for d in dams], dtype=object)

    coancestry_mat = np.zeros((sire_ids.shape[0], dam_ids.shape[0]), dtype=np.float64)
    for j, sid in enumerate(sire_ids):
        for i, did in enumerate(dam_ids):
            coancestry_mat[j, i] = engine.coancestry(sid, did)

    sire_idx, dam_idx, progeny_f = _filter_matings_numba(
        coancestry_mat, float(max_inbreeding)
    )

    return pd.DataFrame(
        {
            "sire_id": sire_ids[sire_idx],
            "dam_id": dam_ids[dam_idx],
            "progeny_inbreeding": progeny_f,
        }
    )
