"""
Ordinary least squares trend lines, pooled and per group.

A pooled fit ignores group membership; a grouped fit runs the same
regression inside each partition. Comparing the two is how aggregation
bias shows up: the pooled slope can have the opposite sign of every
per-group slope.
"""

from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.linear_model import LinearRegression
from sklearn.metrics import r2_score

ALL_DOMAIN = 'ALL'


class FitError(Exception):
    """A trend line could not be fitted."""


class InsufficientDataError(FitError):
    """Fewer than two valid observations."""


class DegenerateFitError(FitError):
    """All x values are equal, so the slope is undefined."""


@dataclass(frozen=True)
class TrendLine:
    slope: float
    intercept: float
    domain: str = ALL_DOMAIN
    n: int = 0
    r2: float = float('nan')
    r: float = float('nan')

    @property
    def is_pooled(self):
        return self.domain == ALL_DOMAIN

    def predict(self, x):
        return self.intercept + self.slope * np.asarray(x, dtype=float)

    def describe(self):
        return f"slope = {self.slope:.4f}, intercept = {self.intercept:.4f}, n = {self.n}"


def _as_xy(points):
    if isinstance(points, pd.DataFrame):
        xy = points[['x', 'y']].to_numpy(dtype=float)
    else:
        xy = np.asarray(points, dtype=float)
        if xy.size == 0:
            xy = xy.reshape(0, 2)
        elif xy.ndim != 2 or xy.shape[1] != 2:
            raise ValueError(f"expected (x, y) pairs, got an array of shape {xy.shape}")
    return xy[:, 0], xy[:, 1]


def fit_trend(points, domain=ALL_DOMAIN):
    """Fit y = intercept + slope * x by OLS.

    points can be a sequence of (x, y) pairs, an (n, 2) array or a frame
    with x and y columns. Pairs with a missing coordinate are ignored.
    """
    x, y = _as_xy(points)
    valid = ~(np.isnan(x) | np.isnan(y))
    x, y = x[valid], y[valid]

    if len(x) < 2:
        raise InsufficientDataError(
            f"{domain}: need at least 2 observations, got {len(x)}")
    if np.ptp(x) == 0:
        raise DegenerateFitError(
            f"{domain}: all {len(x)} x values equal {x[0]:g}, variance is zero")

    X = x.reshape(-1, 1)
    model = LinearRegression()
    model.fit(X, y)
    y_pred = model.predict(X)

    if np.ptp(y) == 0:
        r = float('nan')
    else:
        r = float(stats.pearsonr(x, y)[0])

    return TrendLine(
        slope=float(model.coef_[0]),
        intercept=float(model.intercept_),
        domain=domain,
        n=len(x),
        r2=float(r2_score(y, y_pred)),
        r=r,
    )


@dataclass
class GroupFits:
    """Per-group trend lines plus the groups that could not be fitted."""
    fits: dict = field(default_factory=dict)
    excluded: dict = field(default_factory=dict)

    def lines(self):
        return list(self.fits.values())

    def reverses(self, pooled):
        """Groups whose slope sign is opposite to the pooled slope."""
        return [
            group for group, line in self.fits.items()
            if np.sign(line.slope) != 0 and np.sign(line.slope) == -np.sign(pooled.slope)
        ]


def fit_by_group(data, group_col='group', x_col='x', y_col='y'):
    """Fit one trend line per group; groups that fail are excluded, not fatal."""
    result = GroupFits()

    for group, group_df in data.groupby(group_col, sort=True):
        points = group_df[[x_col, y_col]].to_numpy(dtype=float)
        try:
            result.fits[group] = fit_trend(points, domain=group)
        except FitError as e:
            result.excluded[group] = e
            print(f"  ⚠ Excluding {group}: {e}")

    return result
