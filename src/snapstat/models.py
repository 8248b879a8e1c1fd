"""
Response shapes for the Elasticsearch snapshot API.

These mirror what the cluster returns from GET /_snapshot (the repository
catalog) and GET /_snapshot/<repo>/_all (every snapshot in one repository).
Only the fields the collector reads are declared; anything else in the
payload is ignored so newer cluster versions keep decoding.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class SnapshotState:
    """Known snapshot lifecycle states. The API may add more."""

    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PARTIAL = "PARTIAL"
    INCOMPATIBLE = "INCOMPATIBLE"


# States that count as a usable backup for the "latest snapshot" metric
QUALIFYING_STATES = frozenset({SnapshotState.SUCCESS, SnapshotState.PARTIAL})


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        # The API sends null for fields it has no value for yet
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class ShardStats(_Payload):
    # successful + failed <= total and non-negative counts are expected but not checked here
    total: int = 0
    failed: int = 0
    successful: int = 0


class SnapshotRecord(_Payload):
    """One snapshot as reported inside a repository listing."""

    snapshot: str = ""
    uuid: str = ""
    version: str = ""
    version_id: int = 0
    indices: List[str] = Field(default_factory=list)
    state: str = ""
    start_time_in_millis: int = 0
    end_time_in_millis: int = 0
    duration_in_millis: int = 0
    failures: List[Any] = Field(default_factory=list)
    shards: ShardStats = Field(default_factory=ShardStats)

    @property
    def start_time_seconds(self) -> int:
        return int(self.start_time_in_millis / 1000)

    @property
    def end_time_seconds(self) -> int:
        return int(self.end_time_in_millis / 1000)


class RepositoryStats(_Payload):
    """Every snapshot in one repository, oldest first (as the API returns them)."""

    snapshots: List[SnapshotRecord] = Field(default_factory=list)


class RepositoryMetadata(_Payload):
    type: str = ""
    settings: Dict[str, Any] = Field(default_factory=dict)


# GET /_snapshot returns {"<repository name>": {"type": ..., "settings": ...}}
RepositoryCatalog = Dict[str, RepositoryMetadata]
