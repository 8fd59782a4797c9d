"""
Data models shared by the reconciler and the remote client.

Remote records are read-only snapshots fetched during a single operation.
``PersistedState`` is what the reconciler hands back to the surrounding
framework for storage.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar, Union

T = TypeVar("T")

CURRENT_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class Found(Generic[T]):
    """A remote lookup that returned a value."""

    value: T


@dataclass(frozen=True)
class NotFound:
    """A remote lookup for something that does not exist."""

    resource: str = ""


Lookup = Union[Found[T], NotFound]


@dataclass(frozen=True)
class AutoscaleSettings:
    """Autoscale capacity: the database scales between 10% and 100% of the maximum."""

    max_throughput: int

    def to_dict(self) -> Dict[str, int]:
        return {"max_throughput": self.max_throughput}


@dataclass(frozen=True)
class RemoteDatabaseRecord:
    """Snapshot of a MongoDB database as reported by the control plane."""

    id: Optional[str]
    name: Optional[str] = None


@dataclass(frozen=True)
class ThroughputRecord:
    """Snapshot of the throughput settings of a database."""

    throughput: Optional[int] = None
    autoscale_settings: Optional[AutoscaleSettings] = None


@dataclass(frozen=True)
class AccountRecord:
    """Snapshot of the Cosmos DB account that owns the database."""

    id: Optional[str]
    capabilities: Tuple[str, ...] = ()
    capacity_mode: Optional[str] = None


@dataclass(frozen=True)
class CreateUpdateParameters:
    """Request body of a create/update call: the database name plus capacity options."""

    name: str
    throughput: Optional[int] = None
    autoscale_settings: Optional[AutoscaleSettings] = None


@dataclass
class PersistedState:
    """
    Durable record of a reconciled database.

    Attributes:
        id: Serialized resource identifier, the primary key of the record
        name: Database name
        resource_group_name: Resource group that holds the account
        account_name: Cosmos DB account name
        throughput: Fixed throughput, None when unset or serverless
        autoscale_settings: Autoscale settings, None when unset or serverless
        schema_version: Layout version of this record
    """

    id: str
    name: str
    resource_group_name: str
    account_name: str
    throughput: Optional[int] = None
    autoscale_settings: Optional[AutoscaleSettings] = None
    schema_version: int = field(default=CURRENT_SCHEMA_VERSION)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the attribute layout surfaced to the framework."""
        return {
            "id": self.id,
            "name": self.name,
            "resource_group_name": self.resource_group_name,
            "account_name": self.account_name,
            "throughput": self.throughput,
            "autoscale_settings": (
                self.autoscale_settings.to_dict() if self.autoscale_settings else None
            ),
            "schema_version": self.schema_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistedState":
        """Build from a dictionary produced by ``to_dict``."""
        autoscale = data.get("autoscale_settings")
        return cls(
            id=data["id"],
            name=data["name"],
            resource_group_name=data["resource_group_name"],
            account_name=data["account_name"],
            throughput=data.get("throughput"),
            autoscale_settings=(
                AutoscaleSettings(max_throughput=int(autoscale["max_throughput"]))
                if autoscale
                else None
            ),
            schema_version=data.get("schema_version", CURRENT_SCHEMA_VERSION),
        )
