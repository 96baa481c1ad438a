#!/usr/bin/env python3
"""
CLI‑обёртка: коэффициенты инбридинга по CSV-родословной → inbreeding.csv.

Примеры:
    python -m coancestry.main --pedigree pedigree.csv
    python -m coancestry.main --pedigree pedigree.csv --id_mapping ids.csv --out f.csv
"""
from __future__ import annotations
import argparse
import logging

import pandas as pd

from .kinship import MAX_DEPTH
from .model import compute_inbreeding


def _parse(argv=None):
    p = argparse.ArgumentParser("pedigree inbreeding")
    p.add_argument("--pedigree", required=True,
                   help="CSV с колонками id, sire_id, dam_id")
    p.add_argument("--id_mapping", default=None,
                   help="CSV internal_id → standard_id для номеров родителей")
    p.add_argument("--out", default="inbreeding.csv")
    p.add_argument("--max_depth", type=int, default=MAX_DEPTH,
                   help="ограничитель глубины рекурсии")
    p.add_argument("--log_file", default=None,
                   help="дополнительно писать лог в файл (перезаписывается)")
    p.add_argument("--id_col", default="id")
    p.add_argument("--sire_col", default="sire_id")
    p.add_argument("--dam_col", default="dam_id")

    return p.parse_args(argv)


def _add_file_log(path: str) -> logging.Handler:
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s (%(name)s): %(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(min(root.level or logging.INFO, logging.INFO))
    return handler


def main(argv=None):
    args = _parse(argv)
    handler = _add_file_log(args.log_file) if args.log_file else None
    try:
        df: pd.DataFrame = compute_inbreeding(
            args.pedigree,
            id_mapping_path=args.id_mapping,
            max_depth=args.max_depth,
            id_col=args.id_col,
            sire_col=args.sire_col,
            dam_col=args.dam_col,
        )
    finally:
        if handler is not None:
            logging.getLogger().removeHandler(handler)
            handler.close()

    df.to_csv(args.out, index=False)
    n_failed = int(df["inbreeding"].isna().sum())
    print(f"✅  Saved {len(df)} rows ({n_failed} failed) → {args.out}")


if __name__ == "__main__":
    main()
