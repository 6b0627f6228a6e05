"""
bootstrap.py – CSV seed files
=============================

pairs CSV       header `from,to`     one row per currency pair to seed
currencies CSV  header `code,name`   one row per known currency

Headers are matched case-insensitively; cells are trimmed.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pandas as pd

from shared.models import Currency


def _read(path: str | Path, required: Tuple[str, ...]) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = df.columns.str.strip().str.lower()
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{Path(path).name}: missing column(s) {', '.join(missing)}")
    for col in df.columns:
        df[col] = df[col].str.strip()
    return df


def read_pairs_csv(path: str | Path) -> List[Tuple[str, str]]:
    df = _read(path, ("from", "to"))
    return [(r["from"], r["to"]) for _, r in df.iterrows() if r["from"] and r["to"]]


def read_currencies_csv(path: str | Path) -> List[Currency]:
    df = _read(path, ("code",))
    has_name = "name" in df.columns
    return [
        Currency(code=r["code"], name=r["name"] if has_name else "")
        for _, r in df.iterrows() if r["code"]
    ]
