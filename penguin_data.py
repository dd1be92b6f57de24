"""
Palmer penguins loader.

Reads the penguin table (bundled with the palmerpenguins distribution, or a
CSV with the same schema) and reduces it to the three columns the analysis
uses: group label, x measurement and y measurement.
"""

from pathlib import Path

import pandas as pd
from palmerpenguins import load_penguins


class LoadError(Exception):
    """The source table is missing or malformed."""


def _read_table(csv_path):
    if csv_path is None:
        return load_penguins()

    path = Path(csv_path)
    if not path.exists():
        raise LoadError(f"dataset not found: {path}")
    try:
        return pd.read_csv(path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise LoadError(f"could not parse {path}: {e}") from e


def load_penguin_data(csv_path=None, group_col='species',
                      x_col='bill_length_mm', y_col='bill_depth_mm'):
    """Load the penguin table as a frame with columns group, x, y."""
    df = _read_table(csv_path)
    source = csv_path if csv_path is not None else 'palmerpenguins'

    missing_cols = [c for c in (group_col, x_col, y_col) if c not in df.columns]
    if missing_cols:
        raise LoadError(f"{source}: missing column(s) {', '.join(missing_cols)}")

    df_clean = df[[group_col, x_col, y_col]].copy()
    df_clean.columns = ['group', 'x', 'y']

    for col, name in (('x', x_col), ('y', y_col)):
        raw = df_clean[col]
        numeric = pd.to_numeric(raw, errors='coerce')
        bad = numeric.isna() & raw.notna()
        if bad.any():
            first = raw[bad].iloc[0]
            raise LoadError(f"{source}: non-numeric value {first!r} in column '{name}'")
        df_clean[col] = numeric.astype(float)

    n_total = len(df_clean)
    df_clean = df_clean.dropna(subset=['x', 'y'])

    unlabeled = df_clean['group'].isna()
    if unlabeled.any():
        raise LoadError(f"{source}: {int(unlabeled.sum())} measured row(s) without a '{group_col}' label")

    if df_clean.empty:
        raise LoadError(f"{source}: no rows with both '{x_col}' and '{y_col}'")

    df_clean['group'] = df_clean['group'].astype(str)
    df_clean = df_clean.reset_index(drop=True)

    n_dropped = n_total - len(df_clean)
    print(f"  ✓ Loaded {len(df_clean)} observations from {source}")
    if n_dropped:
        print(f"  ⚠ Dropped {n_dropped} row(s) missing '{x_col}' or '{y_col}'")

    return df_clean


def dataset_summary(df):
    """Per-group count and mean measurements."""
    summary = df.groupby('group', sort=True).agg(
        n=('x', 'size'),
        mean_x=('x', 'mean'),
        mean_y=('y', 'mean'),
    )
    return summary.reset_index()
