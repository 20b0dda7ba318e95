"""
Tests for DataSource construction and column access.
"""

import numpy as np
import pandas as pd
import pytest

from pypredfit.core.datasource import DataSource
from pypredfit.core.exceptions import DimensionError, ValidationError


class TestFactories:

    def test_from_arrays(self):
        ds = DataSource.from_arrays(x=[1, 2, 3], y=[2.0, 4.0, 6.0])
        assert ds.n_observations == 3
        assert ds.columns == ('x', 'y')
        assert ds['x'].dtype == np.float64

    def test_from_arrays_row_mismatch(self):
        with pytest.raises(DimensionError, match="'y'"):
            DataSource.from_arrays(x=[1, 2, 3], y=[1, 2])

    def test_from_dataframe_keeps_labels(self):
        df = pd.DataFrame({'x': [1.0, 2.0], 'g': ['a', 'b']})
        ds = DataSource.from_dataframe(df)
        assert ds['x'].dtype == np.float64
        assert list(ds['g']) == ['a', 'b']

    def test_from_file_csv(self, tmp_path):
        path = tmp_path / "data.csv"
        pd.DataFrame({'x': [1, 2, 3], 'y': [3, 5, 7]}).to_csv(path, index=False)
        ds = DataSource.from_file(path)
        assert ds.n_observations == 3
        assert ds.metadata['source_path'] == str(path)

    def test_from_file_unknown_suffix(self, tmp_path):
        with pytest.raises(ValidationError, match="Unknown file format"):
            DataSource.from_file(tmp_path / "data.parquet")


class TestBuild:

    def test_datasource_returned_unchanged(self):
        ds = DataSource.from_arrays(x=[1.0])
        assert DataSource.build(ds) is ds

    def test_mapping(self):
        ds = DataSource.build({'x': np.arange(4)})
        assert ds.n_observations == 4

    def test_dataframe(self):
        ds = DataSource.build(pd.DataFrame({'x': [1.0, 2.0]}))
        assert 'x' in ds

    def test_rejects_other_types(self):
        with pytest.raises(ValidationError, match="list"):
            DataSource.build([1, 2, 3])


class TestAccess:

    def test_missing_column_lists_available(self):
        ds = DataSource.from_arrays(x=[1.0], y=[2.0])
        with pytest.raises(KeyError, match="Available"):
            ds['z']

    def test_matrix_stacks_in_order(self):
        ds = DataSource.from_arrays(a=[1, 2], b=[3, 4])
        np.testing.assert_array_equal(ds.matrix(['b', 'a']), [[3, 1], [4, 2]])

    def test_matrix_rejects_text_column(self):
        ds = DataSource.from_arrays(a=[1.0, 2.0], g=np.array(['u', 'v']))
        with pytest.raises(ValidationError, match="g"):
            ds.matrix(['a', 'g'])

    def test_to_frame_roundtrip_columns(self):
        ds = DataSource.from_arrays(a=[1, 2], b=[3, 4])
        assert list(ds.to_frame().columns) == ['a', 'b']
