import matplotlib
matplotlib.use('Agg')

import pandas as pd
import pytest


@pytest.fixture
def staggered_groups():
    """Three groups with slope -1 inside each, staggered so the pooled slope is +1."""
    rows = []
    for group, center_x, center_y in (('A', 0.0, 0.0), ('B', 5.0, 5.4), ('C', 10.0, 10.8)):
        for offset in (-1.0, 0.0, 1.0):
            rows.append({'group': group, 'x': center_x + offset, 'y': center_y - offset})
    return pd.DataFrame(rows)


@pytest.fixture
def penguin_like():
    """A small frame in the canonical group/x/y shape with penguin-sized values."""
    return pd.DataFrame({
        'group': ['Adelie', 'Adelie', 'Adelie', 'Gentoo', 'Gentoo', 'Gentoo',
                  'Chinstrap', 'Chinstrap', 'Chinstrap'],
        'x': [36.0, 38.0, 40.0, 45.0, 47.0, 49.0, 46.0, 49.0, 52.0],
        'y': [17.5, 18.2, 19.0, 14.0, 14.8, 15.6, 17.6, 18.4, 19.4],
    })


@pytest.fixture
def write_csv(tmp_path):
    """Write text to a CSV file under tmp_path and return the path."""
    def _write(text, name='penguins.csv'):
        path = tmp_path / name
        path.write_text(text, encoding='utf-8')
        return path
    return _write
