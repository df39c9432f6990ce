"""Cluster-side snapshots returned by the transport: metadata, log dirs, configs."""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --------------------------------------------------------------------------- #
# Metadata                                                                    #
# --------------------------------------------------------------------------- #
class PartitionMetadata(_Frozen):
    """One partition and the brokers assigned to it."""

    partition_id: int = Field(..., ge=0)
    replicas: List[int] = Field(default_factory=list)


class TopicMetadata(_Frozen):
    """Metadata entry for a single topic as reported by the cluster."""

    name: str
    is_internal: bool = False
    error_code: int = 0
    partitions: List[PartitionMetadata] = Field(default_factory=list)

    def replica_brokers(self) -> set[int]:
        """Return every broker id holding a replica of this topic."""
        return {b for p in self.partitions for b in p.replicas}


class MetadataSnapshot(_Frozen):
    """Point-in-time metadata for the requested topics."""

    topics: List[TopicMetadata] = Field(default_factory=list)

    def topic_names(self) -> list[str]:
        return [t.name for t in self.topics]


# --------------------------------------------------------------------------- #
# Log directories                                                             #
# --------------------------------------------------------------------------- #
class LogDirPartition(_Frozen):
    topic: str
    partition_id: int
    size_bytes: int = Field(..., ge=0)
    is_future: bool = False


class LogDirEntry(_Frozen):
    """One log directory on one broker."""

    path: str
    error_code: int = 0
    partitions: List[LogDirPartition] = Field(default_factory=list)


class BrokerLogDirs(_Frozen):
    """A broker's log-dir report. ``error`` is set when the broker did not answer."""

    broker_id: int
    error: str | None = None
    log_dirs: List[LogDirEntry] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.error is None and all(d.error_code == 0 for d in self.log_dirs)


class LogDirReport(_Frozen):
    brokers: List[BrokerLogDirs] = Field(default_factory=list)


# --------------------------------------------------------------------------- #
# Configs                                                                     #
# --------------------------------------------------------------------------- #
class ConfigEntry(_Frozen):
    name: str
    # None when the cluster withholds the value (sensitive entries)
    value: str | None = None
    is_sensitive: bool = False
    is_default: bool = False
    read_only: bool = False


class LookupState(str, Enum):
    PRESENT = "present"
    WITHHELD = "withheld"
    MISSING = "missing"


class ConfigLookup(NamedTuple):
    """Outcome of looking up one config key."""

    state: LookupState
    value: str | None = None

    @property
    def present(self) -> bool:
        return self.state is LookupState.PRESENT

    def value_or(self, default: str) -> str:
        return self.value if self.state is LookupState.PRESENT and self.value is not None else default


class ConfigEntrySet(_Frozen):
    """Config entries of one topic, keyed by entry name."""

    topic: str
    entries: Dict[str, ConfigEntry] = Field(default_factory=dict)

    def lookup(self, name: str) -> ConfigLookup:
        entry = self.entries.get(name)
        if entry is None:
            return ConfigLookup(LookupState.MISSING)
        if entry.value is None:
            return ConfigLookup(LookupState.WITHHELD)
        return ConfigLookup(LookupState.PRESENT, entry.value)
