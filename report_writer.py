"""
Markdown report assembly and trend table export.
"""

import os
from dataclasses import dataclass
from pathlib import Path

import pandas as pd


@dataclass(frozen=True)
class FigureBlock:
    path: Path
    alt_text: str = ''


def write_report(blocks, path):
    """Write markdown text blocks and figures, in order, to one report file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    parts = []
    for block in blocks:
        if isinstance(block, FigureBlock):
            # Links are relative so the report can move with its figures.
            rel = os.path.relpath(Path(block.path).resolve(), path.parent.resolve())
            parts.append(f"![{block.alt_text}]({Path(rel).as_posix()})")
        elif isinstance(block, str):
            parts.append(block.strip('\n'))
        else:
            raise TypeError(f"unsupported report block: {type(block).__name__}")

    with open(path, 'w', encoding='utf-8') as f:
        f.write('\n\n'.join(parts) + '\n')

    print(f"✓ Saved: {path}")
    return path


def export_trend_table(trend_lines, path):
    """Save fitted trend lines as CSV and return them as a frame."""
    table = pd.DataFrame([
        {
            'domain': line.domain,
            'slope': line.slope,
            'intercept': line.intercept,
            'n': line.n,
            'r2': line.r2,
            'r': line.r,
        }
        for line in trend_lines
    ], columns=['domain', 'slope', 'intercept', 'n', 'r2', 'r'])

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(path, index=False)
    print(f"✓ Saved: {path}")
    return table
