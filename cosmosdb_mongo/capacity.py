"""
Capacity policy for MongoDB databases.

A database is provisioned either with a fixed throughput or with autoscale
settings, never both. This module maps desired capacity onto create options
and throughput-update payloads, maps remote throughput responses back onto
persisted attributes, and rejects transitions the control plane cannot
perform in a single update.

Everything here is side-effect free.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .desired_config import DesiredConfig
from .exceptions import ConflictingCapacityModeError
from .models import AccountRecord, AutoscaleSettings, PersistedState, ThroughputRecord

SERVERLESS_CAPABILITY = "EnableServerless"
SERVERLESS_CAPACITY_MODE = "Serverless"


@dataclass(frozen=True)
class FixedThroughput:
    throughput: int


@dataclass(frozen=True)
class Autoscale:
    settings: AutoscaleSettings


@dataclass(frozen=True)
class Unset:
    pass


Capacity = Union[FixedThroughput, Autoscale, Unset]


@dataclass(frozen=True)
class CapacityUpdate:
    """Capacity portion of a remote request. At most one field may be set."""

    throughput: Optional[int] = None
    autoscale_settings: Optional[AutoscaleSettings] = None

    def __post_init__(self) -> None:
        if self.throughput is not None and self.autoscale_settings is not None:
            raise ConflictingCapacityModeError(
                "A capacity update cannot set both throughput and autoscale settings"
            )

    @property
    def is_empty(self) -> bool:
        return self.throughput is None and self.autoscale_settings is None


@dataclass(frozen=True)
class ObservedCapacity:
    """Capacity as mirrored into persisted state after a read."""

    throughput: Optional[int] = None
    autoscale_settings: Optional[AutoscaleSettings] = None


def has_fixed_throughput(desired: DesiredConfig) -> bool:
    return desired.throughput is not None


def has_autoscale(desired: DesiredConfig) -> bool:
    return desired.autoscale_settings is not None


def desired_capacity(desired: DesiredConfig) -> Capacity:
    """Classify the capacity requested by ``desired``."""
    if has_fixed_throughput(desired) and has_autoscale(desired):
        raise ConflictingCapacityModeError(
            "Desired configuration sets both throughput and autoscale settings",
            name=desired.name,
            account_name=desired.account_name,
        )
    if has_fixed_throughput(desired):
        return FixedThroughput(throughput=desired.throughput)
    if has_autoscale(desired):
        return Autoscale(settings=desired.autoscale_settings)
    return Unset()


def to_update_payload(desired: DesiredConfig) -> Optional[CapacityUpdate]:
    """Build the throughput-update payload, or None when no capacity is requested."""
    capacity = desired_capacity(desired)
    if isinstance(capacity, FixedThroughput):
        return CapacityUpdate(throughput=capacity.throughput)
    if isinstance(capacity, Autoscale):
        return CapacityUpdate(autoscale_settings=capacity.settings)
    return None


def to_create_options(desired: DesiredConfig) -> CapacityUpdate:
    """Capacity options attached to a create/update request.

    Throughput is omitted when unset or zero; zero is not "no throughput" to the
    control plane but an invalid request.
    """
    capacity = desired_capacity(desired)
    if isinstance(capacity, FixedThroughput) and capacity.throughput != 0:
        return CapacityUpdate(throughput=capacity.throughput)
    if isinstance(capacity, Autoscale):
        return CapacityUpdate(autoscale_settings=capacity.settings)
    return CapacityUpdate()


def _observed_mode(state: PersistedState) -> Capacity:
    if state.throughput is not None and state.autoscale_settings is not None:
        raise ConflictingCapacityModeError(
            "Persisted state records both throughput and autoscale settings; "
            "the database was likely modified outside of this tool",
            name=state.name,
            account_name=state.account_name,
        )
    if state.throughput is not None:
        return FixedThroughput(throughput=state.throughput)
    if state.autoscale_settings is not None:
        return Autoscale(settings=state.autoscale_settings)
    return Unset()


def check_capacity_transition(previous: PersistedState, desired: DesiredConfig) -> None:
    """Reject updates that switch between fixed throughput and autoscale.

    Raises:
        ConflictingCapacityModeError: If the update crosses capacity modes or the
            previous state is itself inconsistent
    """
    before = _observed_mode(previous)
    after = desired_capacity(desired)

    crossover = (
        isinstance(before, FixedThroughput) and isinstance(after, Autoscale)
    ) or (isinstance(before, Autoscale) and isinstance(after, FixedThroughput))
    if crossover:
        raise ConflictingCapacityModeError(
            "Switching between autoscale and manually provisioned throughput "
            "is not supported in a single update",
            name=desired.name,
            account_name=desired.account_name,
        )


def has_capacity_change(previous: PersistedState, desired: DesiredConfig) -> bool:
    """True when the desired capacity is set and differs from the previous state."""
    capacity = desired_capacity(desired)
    if isinstance(capacity, FixedThroughput):
        return capacity.throughput != previous.throughput
    if isinstance(capacity, Autoscale):
        return capacity.settings != previous.autoscale_settings
    return False


def is_serverless(account: AccountRecord) -> bool:
    """Serverless accounts have no per-database throughput to query."""
    if SERVERLESS_CAPABILITY in account.capabilities:
        return True
    return (account.capacity_mode or "").lower() == SERVERLESS_CAPACITY_MODE.lower()


def from_remote_response(record: ThroughputRecord) -> ObservedCapacity:
    """Map a remote throughput snapshot onto persisted attributes."""
    if record.autoscale_settings is not None:
        return ObservedCapacity(autoscale_settings=record.autoscale_settings)
    return ObservedCapacity(throughput=record.throughput)


def cleared() -> ObservedCapacity:
    return ObservedCapacity()
