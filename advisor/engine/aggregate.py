from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Dict, Iterable, List, Mapping, Sequence

import pandas as pd

from .capital_assets import CapitalAssetsProjection
from .fixed_income import FixedIncomeProjection

FIXED_INCOME_COLUMNS = ["cpp", "oas", "bridge", "pension", "other"]


def rows_to_frame(rows: Iterable) -> pd.DataFrame:
    """One record per projection year, ordered by age (or year when there is no age)."""
    records = [asdict(row) if is_dataclass(row) else dict(row) for row in rows]
    if not records:
        return pd.DataFrame()
    df = pd.DataFrame.from_records(records)
    sort_key = "age" if "age" in df.columns else "year"
    return df.sort_values(sort_key, kind="stable").reset_index(drop=True)


def combine_fixed_income(projections: Sequence[FixedIncomeProjection]) -> pd.DataFrame:
    """Sum income sources by calendar year across linked fixed income projections."""
    frames = [rows_to_frame(p.rows) for p in projections if p.rows]
    if not frames:
        return pd.DataFrame(columns=["year"] + FIXED_INCOME_COLUMNS)
    df = pd.concat(frames, ignore_index=True)
    df["other"] = df["other1"] + df["other2"]
    return df.groupby("year", as_index=False)[FIXED_INCOME_COLUMNS].sum().sort_values("year")


def combine_capital_assets(projections: Sequence[CapitalAssetsProjection]) -> Dict[str, pd.DataFrame]:
    """Ending balances and periodic redemptions pivoted by year and account type."""
    frames = []
    for projection in projections:
        df = rows_to_frame(projection.rows)
        if df.empty:
            continue
        df["account_type"] = projection.account_type
        frames.append(df[["year", "account_type", "ending_balance", "periodic_redemption"]])
    if not frames:
        return {"balances": pd.DataFrame(), "redemptions": pd.DataFrame()}

    df = pd.concat(frames, ignore_index=True)
    balances = df.pivot_table(
        index="year", columns="account_type", values="ending_balance", aggfunc="sum", fill_value=0.0
    )
    redemptions = df.pivot_table(
        index="year", columns="account_type", values="periodic_redemption", aggfunc="sum", fill_value=0.0
    )
    return {"balances": balances, "redemptions": redemptions}


def linked_totals(frame: pd.DataFrame) -> Dict[int, Dict[str, float]]:
    """Year -> {column: amount} lookup built from a year-indexed or year-column frame."""
    if frame.empty:
        return {}
    if "year" in frame.columns:
        frame = frame.set_index("year")
    return {int(year): {str(k): float(v) for k, v in row.items()} for year, row in frame.iterrows()}


def compare_fixed_income(named_projections: Mapping[str, FixedIncomeProjection]) -> pd.DataFrame:
    records: List[dict] = []
    for name, projection in named_projections.items():
        summary = asdict(projection.summary) if projection.summary else {}
        records.append({"scenario": name, **summary})
    return pd.DataFrame.from_records(records)


def combine_income_streams(streams: Sequence[Mapping[int, float]]) -> pd.DataFrame:
    """Total income by calendar year across every stream; the combined main view."""
    series = [pd.Series(stream, dtype="float64") for stream in streams if stream]
    if not series:
        return pd.DataFrame(columns=["year", "total_income"])
    total = pd.concat(series, axis=1).fillna(0.0).sum(axis=1).sort_index()
    return pd.DataFrame({"year": total.index.astype(int), "total_income": total.values})
