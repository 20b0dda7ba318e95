"""
Universal DataSource for pypredfit.

DataSource is the "I have data" abstraction. It holds named columns and
doesn't know or care whether they will be used to fit a model or to
predict from one.

Usage:
    from pypredfit.core.datasource import DataSource

    ds = DataSource.from_arrays(x=x, y=y)
    ds = DataSource.from_file("data.csv")
    ds = DataSource.from_dataframe(df)
    ds = DataSource.build(df)       # any of the above, or a DataSource

    # Access columns
    ds.keys()  # frozenset({'x', 'y'})
    x = ds['x']
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TYPE_CHECKING
import numpy as np

from pypredfit.core.exceptions import ValidationError, DimensionError
from pypredfit.core.validation import check_array

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class DataSource:
    """
    Universal column container. Domain-agnostic.

    Construct via factory classmethods, not directly. Numeric columns are
    stored as float64 arrays; anything else (group labels, strings) is
    kept as given so it can serve as a factor.
    """
    _data: dict[str, np.ndarray]
    _columns: tuple[str, ...]
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Column Access ===

    def keys(self) -> frozenset[str]:
        """
        Return the names of all available columns.

        Example:
            >>> ds = DataSource.from_arrays(x=x, y=y)
            >>> ds.keys()
            frozenset({'x', 'y'})
        """
        return frozenset(self._columns)

    @property
    def columns(self) -> tuple[str, ...]:
        """Column names in insertion order."""
        return self._columns

    def __getitem__(self, key: str) -> np.ndarray:
        """
        Access a named column.

        Raises:
            KeyError: If key not found, with helpful message listing available keys

        Example:
            >>> ds = DataSource.from_arrays(x=x, y=y)
            >>> ds['z']  # KeyError: "DataSource has no column 'z'. Available: ['x', 'y']"
        """
        if key not in self._data:
            raise KeyError(
                f"DataSource has no column '{key}'. Available: {list(self._columns)}"
            )
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    # === Properties ===

    @property
    def n_observations(self) -> int:
        """Number of statistical units (rows)."""
        return self._metadata.get('n_observations', 0)

    @property
    def metadata(self) -> dict[str, Any]:
        """Domain-agnostic metadata."""
        return self._metadata.copy()

    def as_dict(self) -> dict[str, np.ndarray]:
        """Shallow copy of the column mapping (suitable for formula evaluation)."""
        return dict(self._data)

    def matrix(self, names: tuple[str, ...] | list[str]) -> np.ndarray:
        """Stack numeric columns into an (n x len(names)) float matrix.

        Raises:
            ValidationError: If a named column is not numeric
        """
        arrays = [check_array(self[name], name).astype(np.float64) for name in names]
        if not arrays:
            return np.empty((self.n_observations, 0), dtype=np.float64)
        return np.column_stack(arrays)

    def to_frame(self) -> 'pd.DataFrame':
        """Materialize as a pandas DataFrame."""
        import pandas as pd
        return pd.DataFrame({name: self._data[name] for name in self._columns})

    # === Factory Methods ===

    @classmethod
    def from_arrays(cls, **columns: Any) -> DataSource:
        """Construct from named 1D arrays."""
        storage: dict[str, np.ndarray] = {}
        n_obs: int | None = None

        for name, values in columns.items():
            arr = _as_column(values, name)
            if n_obs is not None and arr.shape[0] != n_obs:
                raise DimensionError(
                    f"Column '{name}' has {arr.shape[0]} rows, expected {n_obs}"
                )
            n_obs = arr.shape[0]
            storage[name] = arr

        return cls(
            _data=storage,
            _columns=tuple(storage),
            _metadata={'n_observations': n_obs or 0, 'source': 'arrays'},
        )

    @classmethod
    def from_file(cls, path: str | Path, *, columns: list[str] | None = None) -> DataSource:
        """Construct from a delimited text file (CSV, TSV)."""
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix in ('.csv', '.tsv'):
            import pandas as pd
            sep = '\t' if suffix == '.tsv' else ','
            df = pd.read_csv(path, usecols=columns, sep=sep)
            return cls.from_dataframe(df, source_path=str(path))
        else:
            raise ValidationError(f"Unknown file format: {suffix}")

    @classmethod
    def from_dataframe(cls, df: 'pd.DataFrame', *, source_path: str | None = None) -> DataSource:
        """Construct from pandas DataFrame."""
        storage: dict[str, np.ndarray] = {}

        for col in df.columns:
            storage[str(col)] = _as_column(df[col].to_numpy(), str(col))

        metadata = {
            'n_observations': len(df),
            'source': 'dataframe',
            'columns': [str(c) for c in df.columns],
        }
        if source_path:
            metadata['source_path'] = source_path

        return cls(
            _data=storage,
            _columns=tuple(storage),
            _metadata=metadata,
        )

    @classmethod
    def build(cls, data: Any) -> DataSource:
        """
        Coerce any supported tabular input into a DataSource.

        Examples:
            DataSource.build(df)               # from_dataframe
            DataSource.build({'x': x})         # from_arrays
            DataSource.build("data.csv")       # from_file
            DataSource.build(ds)               # returned unchanged
        """
        if isinstance(data, DataSource):
            return data
        if isinstance(data, (str, Path)):
            return cls.from_file(data)
        if hasattr(data, 'columns') and hasattr(data, 'to_numpy'):
            return cls.from_dataframe(data)
        if isinstance(data, Mapping):
            return cls.from_arrays(**{str(k): v for k, v in data.items()})
        raise ValidationError(
            f"data: expected a DataFrame, mapping of columns, file path or "
            f"DataSource, got {type(data).__name__}"
        )


def _as_column(values: Any, name: str) -> np.ndarray:
    """Convert one column to a 1D array, float64 when numeric."""
    arr = np.asarray(values)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise DimensionError(
            f"Column '{name}': expected 1D values, got shape {arr.shape}"
        )
    if np.issubdtype(arr.dtype, np.number) or arr.dtype == np.bool_:
        arr = arr.astype(np.float64)
    return arr
