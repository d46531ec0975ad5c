# Dashboard/export.py ────────────────────────────────────────
from datetime import datetime
from io import StringIO
from typing import Iterable, Optional

import pandas as pd
from fastapi.encoders import jsonable_encoder

from Dashboard.models import DataPoint

COLUMNS = ["id", "label", "value", "date"]
SORT_FIELDS = ("date", "value", "label")


def to_frame(points: Iterable[DataPoint]) -> pd.DataFrame:
    rows = [p.model_dump() for p in points]
    df = pd.DataFrame(rows, columns=COLUMNS)
    # SQLite hands dates back without an offset; every stored date is UTC
    df["date"] = pd.to_datetime(df["date"], utc=True)
    return df


def filter_sort(
    df: pd.DataFrame,
    label: Optional[str] = None,
    sort: Optional[str] = None,
    descending: bool = False,
) -> pd.DataFrame:
    """Same filter/sort the dashboard applies before drawing a chart."""
    if label:
        df = df[df["label"] == label]
    if sort:
        if sort not in SORT_FIELDS:
            raise ValueError(f"Cannot sort on '{sort}'")
        # stable so equal keys keep store order
        df = df.sort_values(sort, ascending=not descending, kind="mergesort")
    return df.reset_index(drop=True)


def to_csv(df: pd.DataFrame) -> str:
    buf = StringIO()
    out = df.copy()
    out["date"] = out["date"].map(lambda d: d.isoformat() if pd.notna(d) else "")
    out.to_csv(buf, index=False, columns=COLUMNS)
    return buf.getvalue()


def summary(df: pd.DataFrame) -> dict:
    """Per-label series stats, one entry per chart line."""
    labels = {}
    if not df.empty:
        grouped = df.groupby("label")
        stats = grouped["value"].agg(["count", "min", "max", "mean"])
        latest = grouped["date"].max()
        for label, row in stats.iterrows():
            labels[label] = {
                "count": int(row["count"]),
                "min": float(row["min"]),
                "max": float(row["max"]),
                "mean": round(float(row["mean"]), 4),
                "latest": latest[label].to_pydatetime(),
            }

    return jsonable_encoder({
        "generated_at": datetime.utcnow().isoformat(),
        "total": int(len(df)),
        "labels": labels,
    })
