"""
Pivot table partitions.

A pivot table splits result columns into three buckets: `rows` and
`columns` take dimensions, `values` takes everything else (measures).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from ..exceptions import InvalidRequestError

DESCRIPTION_TYPE = "type/Description"
AGGREGATION_SOURCE = "aggregation"


class DatasetColumn(BaseModel):
    name: str
    display_name: Optional[str] = None
    base_type: Optional[str] = None
    semantic_type: Optional[str] = None
    source: Optional[str] = None


def is_description(col: Optional[DatasetColumn]) -> bool:
    return col is not None and col.semantic_type == DESCRIPTION_TYPE


def is_dimension(col: Optional[DatasetColumn]) -> bool:
    """Breakout-able columns: anything that is not an aggregation or free text."""
    return col is not None and col.source != AGGREGATION_SOURCE and not is_description(col)


@dataclass(frozen=True)
class Partition:
    name: str
    title: str
    column_filter: Callable[[Optional[DatasetColumn]], bool]

    def accepts(self, col: Optional[DatasetColumn]) -> bool:
        return self.column_filter(col)


PARTITIONS: List[Partition] = [
    Partition(name="rows", title="Rows", column_filter=is_dimension),
    Partition(name="columns", title="Columns", column_filter=is_dimension),
    Partition(name="values", title="Measures", column_filter=lambda col: not is_dimension(col)),
]

PARTITIONS_BY_NAME: Dict[str, Partition] = {p.name: p for p in PARTITIONS}


def partition_columns(columns: Sequence[DatasetColumn]) -> Dict[str, List[DatasetColumn]]:
    """Columns each partition would accept, in result order."""
    return {p.name: [c for c in columns if p.accepts(c)] for p in PARTITIONS}


def validate_pivot_split(columns: Sequence[DatasetColumn], split: Mapping[str, Sequence[str]]) -> None:
    """
    Check a `{partition: [column name, ...]}` split against the columns.

    Raises InvalidRequestError for unknown partitions, unknown columns, a
    column placed twice, or a column its partition does not accept.
    """
    by_name = {c.name: c for c in columns}
    seen: Dict[str, str] = {}

    for partition_name, names in split.items():
        partition = PARTITIONS_BY_NAME.get(partition_name)
        if partition is None:
            raise InvalidRequestError(f"Unknown pivot partition {partition_name!r}")
        for name in names:
            col = by_name.get(name)
            if col is None:
                raise InvalidRequestError(f"Unknown column {name!r} in pivot {partition_name}")
            if name in seen:
                raise InvalidRequestError(
                    f"Column {name!r} is in both {seen[name]} and {partition_name}"
                )
            if not partition.accepts(col):
                raise InvalidRequestError(
                    f"Column {name!r} cannot be used in {partition.title}",
                    {"column": name, "partition": partition_name},
                )
            seen[name] = partition_name
