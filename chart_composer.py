"""
Scatter charts with overlaid trend lines, and stacked/side-by-side layouts.

Charts are plain values: render_scatter() validates the inputs and decides
which points are visible and which color each group gets; compose_layout()
checks that a set of charts can be compared on the same scales. Drawing
with matplotlib/seaborn happens only in draw_chart(), draw_composite() and
save_figure(), under the explicit ChartTheme passed in.
"""

from dataclasses import dataclass, field
from pathlib import Path

import matplotlib.gridspec as gridspec
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns
from matplotlib.colors import to_hex
from matplotlib.lines import Line2D

VERTICAL = 'vertical'
HORIZONTAL = 'horizontal'


class RenderError(Exception):
    """A chart or layout cannot be rendered as requested."""


@dataclass(frozen=True)
class AxisRange:
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def __post_init__(self):
        if not (self.x_min < self.x_max and self.y_min < self.y_max):
            raise RenderError(
                f"empty axis range: x [{self.x_min}, {self.x_max}], y [{self.y_min}, {self.y_max}]")

    def contains(self, x, y):
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        return (x >= self.x_min) & (x <= self.x_max) & (y >= self.y_min) & (y <= self.y_max)


@dataclass(frozen=True)
class ChartLabels:
    title: str = ''
    subtitle: str = ''
    caption: str = ''
    x_label: str = ''
    y_label: str = ''

    def heading(self):
        if self.subtitle:
            return f"{self.title}\n{self.subtitle}"
        return self.title


@dataclass(frozen=True)
class ChartTheme:
    style: str = 'seaborn-v0_8-darkgrid'
    palette: str = 'husl'
    point_color: str = 'steelblue'
    point_size: float = 35
    point_alpha: float = 0.6
    line_width: float = 2.0
    pooled_line_color: str = 'black'
    pooled_label: str = 'Pooled fit'
    figure_size: tuple = (10, 6)
    dpi: int = 300


@dataclass(frozen=True, eq=False)
class Chart:
    points: object
    axis_range: AxisRange
    labels: ChartLabels
    trend_lines: tuple = ()
    color_by: str = None
    color_map: dict = field(default_factory=dict)
    n_dropped: int = 0

    @property
    def has_pooled_line(self):
        return any(line.is_pooled for line in self.trend_lines)


@dataclass(frozen=True, eq=False)
class CompositeChart:
    charts: tuple
    direction: str = VERTICAL
    relative_sizes: tuple = ()
    shared_legend: bool = True
    labels: ChartLabels = field(default_factory=ChartLabels)

    @property
    def weights(self):
        total = float(sum(self.relative_sizes))
        return tuple(size / total for size in self.relative_sizes)

    @property
    def legend_entries(self):
        entries = {}
        for chart in self.charts:
            entries.update(chart.color_map)
        return dict(sorted(entries.items()))

    @property
    def has_pooled_line(self):
        return any(chart.has_pooled_line for chart in self.charts)


def group_colors(groups, palette='husl'):
    """Map sorted unique group labels to palette colors."""
    labels = sorted({str(g) for g in groups})
    colors = sns.color_palette(palette, len(labels))
    return {label: to_hex(color) for label, color in zip(labels, colors)}


def render_scatter(data, axis_range, labels, trend_lines=(), color_by=None, theme=None):
    """Build a scatter chart of data['x'] vs data['y'] with trend lines overlaid.

    Points outside axis_range are dropped from view and counted in
    n_dropped; they are never clamped onto the frame.
    """
    theme = theme or ChartTheme()

    required = ['x', 'y'] + ([color_by] if color_by else [])
    missing = [c for c in required if c not in data.columns]
    if missing:
        raise RenderError(f"data is missing column(s) {', '.join(missing)}")

    points = data[required].dropna(subset=['x', 'y']).copy()
    color_map = {}
    if color_by:
        points[color_by] = points[color_by].astype(str)
        color_map = group_colors(points[color_by].unique(), theme.palette)

    trend_lines = tuple(trend_lines)
    for line in trend_lines:
        if color_by and not line.is_pooled and str(line.domain) not in color_map:
            raise RenderError(f"no color for trend line of group '{line.domain}'")

    visible = axis_range.contains(points['x'], points['y'])
    n_dropped = int((~visible).sum())
    if n_dropped:
        print(f"  ⚠ {n_dropped} point(s) outside the axis range dropped from '{labels.title}'")

    return Chart(
        points=points[visible].reset_index(drop=True),
        axis_range=axis_range,
        labels=labels,
        trend_lines=trend_lines,
        color_by=color_by,
        color_map=color_map,
        n_dropped=n_dropped,
    )


def compose_layout(charts, direction=VERTICAL, relative_sizes=None, shared_legend=True, labels=None):
    """Arrange charts in a stack or a row that share one set of scales."""
    charts = tuple(charts)
    if not charts:
        raise ValueError("a layout needs at least one chart")
    if direction not in (VERTICAL, HORIZONTAL):
        raise ValueError(f"direction must be '{VERTICAL}' or '{HORIZONTAL}', got {direction!r}")

    if relative_sizes is None:
        relative_sizes = (1,) * len(charts)
    relative_sizes = tuple(float(s) for s in relative_sizes)
    if len(relative_sizes) != len(charts):
        raise ValueError(f"{len(relative_sizes)} relative sizes for {len(charts)} charts")
    if not all(np.isfinite(s) and s > 0 for s in relative_sizes):
        raise ValueError(f"relative sizes must be positive and finite: {relative_sizes}")

    reference = charts[0].axis_range
    for chart in charts[1:]:
        if chart.axis_range != reference:
            raise RenderError(
                f"'{chart.labels.title}' uses {chart.axis_range}, expected {reference}")

    seen = {}
    for chart in charts:
        for group, color in chart.color_map.items():
            if seen.setdefault(group, color) != color:
                raise RenderError(f"group '{group}' drawn as both {seen[group]} and {color}")

    return CompositeChart(
        charts=charts,
        direction=direction,
        relative_sizes=relative_sizes,
        shared_legend=shared_legend,
        labels=labels or ChartLabels(),
    )


def legend_handles(color_map, with_pooled, theme):
    handles = [
        Line2D([0], [0], marker='o', linestyle='', markersize=8,
               markerfacecolor=color, markeredgecolor='black', label=group)
        for group, color in color_map.items()
    ]
    if with_pooled:
        handles.append(Line2D([0], [0], color=theme.pooled_line_color, linestyle='--',
                              linewidth=theme.line_width, label=theme.pooled_label))
    return handles


def draw_chart(chart, ax, theme=None, show_legend=True, show_caption=True, hide_x_label=False):
    """Draw a chart into an existing axes."""
    theme = theme or ChartTheme()
    rng = chart.axis_range

    if len(chart.points):
        if chart.color_by:
            sns.scatterplot(data=chart.points, x='x', y='y', hue=chart.color_by,
                            hue_order=list(chart.color_map), palette=chart.color_map,
                            s=theme.point_size, alpha=theme.point_alpha,
                            edgecolor='black', linewidth=0.4, legend=False, ax=ax)
        else:
            sns.scatterplot(data=chart.points, x='x', y='y', color=theme.point_color,
                            s=theme.point_size, alpha=theme.point_alpha,
                            edgecolor='black', linewidth=0.4, legend=False, ax=ax)

    # Lines span the full axis, not just the group's data.
    xs = np.array([rng.x_min, rng.x_max])
    for line in chart.trend_lines:
        if line.is_pooled:
            ax.plot(xs, line.predict(xs), color=theme.pooled_line_color, linestyle='--',
                    linewidth=theme.line_width, alpha=0.9)
        else:
            color = chart.color_map.get(str(line.domain), theme.point_color)
            ax.plot(xs, line.predict(xs), color=color, linestyle='-',
                    linewidth=theme.line_width, alpha=0.9)

    ax.set_xlim(rng.x_min, rng.x_max)
    ax.set_ylim(rng.y_min, rng.y_max)
    ax.set_xlabel('' if hide_x_label else chart.labels.x_label, fontsize=12, fontweight='bold')
    ax.set_ylabel(chart.labels.y_label, fontsize=12, fontweight='bold')
    ax.set_title(chart.labels.heading(), fontsize=13, fontweight='bold')

    if show_legend:
        handles = legend_handles(chart.color_map, chart.has_pooled_line, theme)
        if handles:
            ax.legend(handles=handles, fontsize=10, loc='best')

    if show_caption and chart.labels.caption:
        ax.annotate(chart.labels.caption, xy=(1, 0), xycoords='axes fraction',
                    xytext=(0, -40), textcoords='offset points',
                    ha='right', va='top', fontsize=9, style='italic')
    return ax


def draw_composite(composite, theme=None):
    """Draw a composite chart into a new figure and return it."""
    theme = theme or ChartTheme()
    n = len(composite.charts)
    width, height = theme.figure_size

    if composite.direction == VERTICAL:
        fig = plt.figure(figsize=(width, height * n * 0.8))
        gs = gridspec.GridSpec(n, 1, figure=fig, height_ratios=composite.relative_sizes, hspace=0.3)
        cells = [gs[i, 0] for i in range(n)]
    else:
        fig = plt.figure(figsize=(width * n * 0.8, height))
        gs = gridspec.GridSpec(1, n, figure=fig, width_ratios=composite.relative_sizes, wspace=0.25)
        cells = [gs[0, i] for i in range(n)]

    for i, (chart, cell) in enumerate(zip(composite.charts, cells)):
        ax = fig.add_subplot(cell)
        # Only the bottom chart of a stack keeps its x-axis label.
        hide_x = composite.direction == VERTICAL and i < n - 1
        draw_chart(chart, ax, theme, show_legend=not composite.shared_legend,
                   show_caption=False, hide_x_label=hide_x)

    if composite.shared_legend:
        handles = legend_handles(composite.legend_entries, composite.has_pooled_line, theme)
        if handles:
            fig.legend(handles=handles, loc='center left', bbox_to_anchor=(0.92, 0.5), fontsize=10)

    if composite.labels.heading():
        fig.suptitle(composite.labels.heading(), fontsize=14, fontweight='bold')
    if composite.labels.caption:
        fig.text(0.9, 0.0, composite.labels.caption, ha='right', va='top',
                 fontsize=9, style='italic')
    return fig


def draw_figure(chart_or_composite, theme=None):
    """Draw a Chart or CompositeChart into a new figure under the theme's style."""
    theme = theme or ChartTheme()
    with plt.style.context(theme.style):
        if isinstance(chart_or_composite, CompositeChart):
            return draw_composite(chart_or_composite, theme)
        fig, ax = plt.subplots(figsize=theme.figure_size)
        draw_chart(chart_or_composite, ax, theme)
        return fig


def save_figure(chart_or_composite, path, theme=None):
    """Draw and save as an image, closing the figure afterwards."""
    theme = theme or ChartTheme()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig = draw_figure(chart_or_composite, theme)
    try:
        fig.savefig(path, dpi=theme.dpi, bbox_inches='tight')
    finally:
        plt.close(fig)
    print(f"✓ Saved: {path}")
    return path
