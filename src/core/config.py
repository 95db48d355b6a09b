"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BigQuerySettings:
    """Location of the warehouse table that records delivered books."""

    project_id: str
    dataset_name: str
    table_name: str

    @property
    def table_id(self) -> str:
        return f"{self.project_id}.{self.dataset_name}.{self.table_name}"


@dataclass(frozen=True)
class ArchiveSettings:
    """Where raw feed snapshots are archived."""

    bucket_name: str
    prefix: str = ""
