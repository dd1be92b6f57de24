import pytest

from penguin_data import LoadError, dataset_summary, load_penguin_data

HEADER = 'species,island,bill_length_mm,bill_depth_mm,flipper_length_mm\n'


def test_bundled_table_drops_missing_measurements():
    df = load_penguin_data()

    assert list(df.columns) == ['group', 'x', 'y']
    assert len(df) == 342
    assert set(df['group']) == {'Adelie', 'Chinstrap', 'Gentoo'}
    assert df[['x', 'y']].notna().all().all()


def test_csv_rows_missing_a_measurement_are_excluded(write_csv):
    path = write_csv(HEADER
                     + 'Adelie,Torgersen,39.1,18.7,181\n'
                     + 'Adelie,Torgersen,,,\n'
                     + 'Gentoo,Biscoe,46.1,,211\n'
                     + 'Gentoo,Biscoe,50.0,16.3,230\n')

    df = load_penguin_data(path)

    assert df['group'].tolist() == ['Adelie', 'Gentoo']
    assert df['x'].tolist() == [39.1, 50.0]
    assert df.index.tolist() == [0, 1]


def test_custom_columns(write_csv):
    path = write_csv('kind,a,b\np,1,2\nq,3,4\n')

    df = load_penguin_data(path, group_col='kind', x_col='a', y_col='b')

    assert df.to_dict('list') == {'group': ['p', 'q'], 'x': [1.0, 3.0], 'y': [2.0, 4.0]}


def test_missing_file(tmp_path):
    with pytest.raises(LoadError, match='not found'):
        load_penguin_data(tmp_path / 'nope.csv')


def test_empty_file(write_csv):
    with pytest.raises(LoadError, match='could not parse'):
        load_penguin_data(write_csv(''))


def test_missing_column(write_csv):
    path = write_csv('species,bill_length_mm\nAdelie,39.1\n')

    with pytest.raises(LoadError, match='bill_depth_mm'):
        load_penguin_data(path)


def test_non_numeric_measurement(write_csv):
    path = write_csv(HEADER + 'Adelie,Torgersen,39.1,deep,181\n')

    with pytest.raises(LoadError, match="non-numeric value 'deep'"):
        load_penguin_data(path)


def test_measured_row_without_label(write_csv):
    path = write_csv(HEADER + ',Torgersen,39.1,18.7,181\n')

    with pytest.raises(LoadError, match='without'):
        load_penguin_data(path)


def test_no_complete_rows(write_csv):
    path = write_csv(HEADER + 'Adelie,Torgersen,39.1,,181\n')

    with pytest.raises(LoadError, match='no rows'):
        load_penguin_data(path)


def test_dataset_summary(penguin_like):
    summary = dataset_summary(penguin_like)

    assert summary['group'].tolist() == ['Adelie', 'Chinstrap', 'Gentoo']
    assert summary['n'].tolist() == [3, 3, 3]
    assert summary.loc[0, 'mean_x'] == pytest.approx(38.0)
    assert summary.loc[2, 'mean_y'] == pytest.approx(14.8)
