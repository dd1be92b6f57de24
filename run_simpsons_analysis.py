#!/usr/bin/env python
"""
Simpson's Paradox in the Palmer Penguins

Bill depth against bill length: fitted over all penguins the trend points
one way, fitted within each species it points the other. This script fits
both, draws the pooled chart, the per-species chart and a stacked
comparison, and writes a short markdown report narrating the result.
"""

import sys
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import pandas as pd

from chart_composer import (AxisRange, ChartLabels, ChartTheme, compose_layout,
                            render_scatter, save_figure)
from penguin_data import LoadError, dataset_summary, load_penguin_data
from report_writer import FigureBlock, export_trend_table, write_report
from trend_fitting import FitError, fit_by_group, fit_trend

# ============================================================================
# CONFIGURATION
# ============================================================================

OUTPUT_DIR = 'output'

# Shared by every chart so the pooled and per-species views are comparable.
AXIS_RANGE = AxisRange(x_min=30, x_max=60, y_min=13, y_max=22)

# Top chart : bottom chart
RELATIVE_SIZES = (1, 1.2)

THEME = ChartTheme(
    style='seaborn-v0_8-darkgrid',
    palette='husl',
    pooled_label='All penguins (pooled)',
)

X_LABEL = 'Bill length (mm)'
Y_LABEL = 'Bill depth (mm)'
CAPTION = 'Data: Palmer Station LTER penguins (Gorman, Williams & Fraser, 2014)'


def direction_phrase(slope):
    if slope > 0:
        return 'a **deeper** bill'
    if slope < 0:
        return 'a **shallower** bill'
    return '**no change** in bill depth'


def main(output_dir=OUTPUT_DIR, csv_path=None):
    print("=" * 70)
    print("SIMPSON'S PARADOX: PENGUIN BILL LENGTH VS BILL DEPTH")
    print("=" * 70)
    print()

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    # ========================================================================
    # STEP 1: LOAD DATA
    # ========================================================================

    print("STEP 1: Loading penguin data...")
    try:
        penguins = load_penguin_data(csv_path)
    except LoadError as e:
        print(f"ERROR: {e}")
        return 1

    summary = dataset_summary(penguins)
    for _, row in summary.iterrows():
        print(f"  {row['group']}: n = {row['n']}, mean length = {row['mean_x']:.1f}, "
              f"mean depth = {row['mean_y']:.1f}")
    print()

    # ========================================================================
    # STEP 2: POOLED FIT
    # ========================================================================

    print("STEP 2: Fitting pooled trend line...")
    try:
        pooled = fit_trend(penguins)
    except FitError as e:
        print(f"ERROR: pooled fit failed: {e}")
        return 1
    print(f"  ALL: {pooled.describe()}, R² = {pooled.r2:.4f}\n")

    # ========================================================================
    # STEP 3: PER-SPECIES FITS
    # ========================================================================

    print("STEP 3: Fitting one trend line per species...")
    by_species = fit_by_group(penguins)
    for species, line in by_species.fits.items():
        print(f"  {species}: {line.describe()}, R² = {line.r2:.4f}")

    reversed_groups = by_species.reverses(pooled)
    full_reversal = bool(reversed_groups) and len(reversed_groups) == len(by_species.fits)
    if full_reversal:
        print("\n  ✓ Every species trend reverses the pooled trend (Simpson's Paradox)")
    elif reversed_groups:
        print(f"\n  ! Reversal in {len(reversed_groups)} of {len(by_species.fits)} species")
    else:
        print("\n  ✗ No species trend reverses the pooled trend")
    print()

    # ========================================================================
    # STEP 4: CHARTS
    # ========================================================================

    print("STEP 4: Creating charts...\n")

    pooled_chart = render_scatter(
        penguins,
        axis_range=AXIS_RANGE,
        labels=ChartLabels(
            title='Longer bills, shallower bills?',
            subtitle=f"Pooled over all penguins, slope = {pooled.slope:.3f}",
            caption=CAPTION,
            x_label=X_LABEL,
            y_label=Y_LABEL,
        ),
        trend_lines=[pooled],
        theme=THEME,
    )
    pooled_path = save_figure(pooled_chart, output_dir / 'pooled_trend.png', THEME)

    species_chart = render_scatter(
        penguins,
        axis_range=AXIS_RANGE,
        labels=ChartLabels(
            title='Within each species, longer bills are deeper',
            subtitle='Dashed: pooled fit. Solid: one fit per species',
            caption=CAPTION,
            x_label=X_LABEL,
            y_label=Y_LABEL,
        ),
        trend_lines=[pooled] + by_species.lines(),
        color_by='group',
        theme=THEME,
    )
    species_path = save_figure(species_chart, output_dir / 'species_trends.png', THEME)

    composite = compose_layout(
        [pooled_chart, species_chart],
        direction='vertical',
        relative_sizes=RELATIVE_SIZES,
        shared_legend=True,
        labels=ChartLabels(
            title="Simpson's Paradox in the Palmer Penguins",
            subtitle='Ignoring species reverses the relationship between bill length and depth',
            caption=CAPTION,
        ),
    )
    composite_path = save_figure(composite, output_dir / 'simpsons_paradox.png', THEME)
    print()

    # ========================================================================
    # STEP 5: EXPORT RESULTS
    # ========================================================================

    print("STEP 5: Exporting results...\n")

    export_trend_table([pooled] + by_species.lines(), output_dir / 'trend_lines.csv')

    excluded_note = ''
    if by_species.excluded:
        names = ', '.join(str(g) for g in by_species.excluded)
        excluded_note = f"\n*Excluded from the per-species fits for lack of data: {names}.*\n"

    if full_reversal:
        verdict = "✓ **Simpson's Paradox**: every species reverses the pooled trend"
    else:
        verdict = "✗ **No full reversal**"

    species_rows = '\n'.join(
        f"| {species} | {line.n} | {line.slope:.4f} | {line.intercept:.2f} | {line.r2:.3f} |"
        for species, line in by_species.fits.items()
    )

    blocks = [
        f"""# Simpson's Paradox in the Palmer Penguins

## Dataset Overview
- **Observations with both bill measurements**: {len(penguins)}
- **Species**: {', '.join(summary['group'])}
- **Bill length range**: [{penguins['x'].min():.1f}, {penguins['x'].max():.1f}] mm
- **Bill depth range**: [{penguins['y'].min():.1f}, {penguins['y'].max():.1f}] mm

## The pooled view

Fitting one line through every penguin suggests that a longer bill goes with
{direction_phrase(pooled.slope)}: each extra millimetre of length changes depth by
{pooled.slope:.3f} mm (R² = {pooled.r2:.3f}).""",
        FigureBlock(pooled_path, 'Pooled trend'),
        f"""## Splitting by species

Species is a confounder: it drives both bill length and bill depth. Gentoo
penguins have long but shallow bills, Adelie penguins short but deep ones, so
the pooled line mostly connects the species clusters rather than describing
any one of them.

| Species | n | Slope | Intercept | R² |
|---------|---|-------|-----------|----|
{species_rows}
{excluded_note}
Within {len(reversed_groups)} of {len(by_species.fits)} species the slope has the opposite
sign of the pooled slope.""",
        FigureBlock(species_path, 'Per-species trends'),
        """## Side by side

Both charts share the same axis ranges, so the lines can be compared directly.""",
        FigureBlock(composite_path, "Simpson's Paradox composite"),
        f"""## Interpretation

**Result**: {verdict}

Ignoring the grouping variable does not just blur the relationship, it can flip
its sign. Before reading a trend off aggregated data, check whether a grouping
variable sits behind both measurements.

---

*Analysis completed: {pd.Timestamp.now().strftime('%Y-%m-%d %H:%M:%S')}*""",
    ]
    write_report(blocks, output_dir / 'SIMPSONS_REPORT.md')
    print()

    print("=" * 70)
    print("ANALYSIS COMPLETE!")
    print("=" * 70)
    print()
    print(f"All results have been saved to the {output_dir}/ directory.")
    print("Check SIMPSONS_REPORT.md for the narrated summary.")
    print()
    return 0


if __name__ == '__main__':
    sys.exit(main())
