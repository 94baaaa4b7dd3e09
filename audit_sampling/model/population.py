"""Read-only population of candidate records."""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from audit_sampling.errors import InvalidConfiguration
from audit_sampling.scripts.parameter import csv_extensions, excel_extensions

logger = logging.getLogger("audit_sampling.population")


def _to_python(value: Any) -> Any:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    if value is pd.NaT:
        return None
    return value


class Population:
    """Finite ordered sequence of read-only rows plus their column names.

    Columns are the union of row keys in order of first appearance. Rows are
    exposed as ``MappingProxyType`` views, so the engine cannot mutate the
    source data.
    """

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]],
        file_name: Optional[str] = None,
        sheet_name: Optional[str] = None,
    ):
        rows: List[Mapping[str, Any]] = []
        columns: Dict[str, None] = {}
        for record in records:
            row = {str(k): _to_python(v) for k, v in record.items()}
            for key in row:
                columns.setdefault(key, None)
            rows.append(MappingProxyType(row))

        self._rows: Tuple[Mapping[str, Any], ...] = tuple(rows)
        self._columns: Tuple[str, ...] = tuple(columns)
        self.file_name = file_name
        self.sheet_name = sheet_name

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]], **kwargs) -> "Population":
        return cls(records, **kwargs)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, **kwargs) -> "Population":
        """Build a population from a DataFrame; NaN cells become None."""
        clean = df.astype(object).where(pd.notna(df), None)
        return cls(clean.to_dict(orient="records"), **kwargs)

    @classmethod
    def from_file(cls, file_path: str, sheet_name: Optional[str] = None) -> "Population":
        """Load a population from a CSV or Excel file.

        Args:
            file_path: Path to a .csv/.txt or .xlsx/.xls file
            sheet_name: Worksheet to read (Excel only, defaults to the first)

        Returns:
            Population with file provenance set
        """
        path = Path(file_path)
        suffix = path.suffix.lower()

        if suffix in csv_extensions:
            df = pd.read_csv(path)
            sheet_name = None
        elif suffix in excel_extensions:
            with pd.ExcelFile(path) as book:
                if sheet_name is None:
                    sheet_name = book.sheet_names[0]
                df = pd.read_excel(book, sheet_name=sheet_name)
        else:
            raise InvalidConfiguration(f"Unsupported population file type: {suffix}")

        logger.info(f"Loaded {len(df)} population rows from {path.name}")
        return cls.from_dataframe(df, file_name=path.name, sheet_name=sheet_name)

    @property
    def rows(self) -> Tuple[Mapping[str, Any], ...]:
        return self._rows

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self):
        return iter(self._rows)

    def __getitem__(self, index: int) -> Mapping[str, Any]:
        return self._rows[index]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([dict(row) for row in self._rows], columns=list(self._columns))
