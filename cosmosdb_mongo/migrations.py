"""
Persisted-state schema migrations.

Version 0 stored identifiers in the legacy layout

    /subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.DocumentDB/databaseAccounts/{account}/apis/mongodb/databases/{name}

Version 1 uses the layout understood by ``MongoDatabaseId.parse``. Steps are
applied in order from the stored version to ``CURRENT_SCHEMA_VERSION``; each
step is a pure transform of the raw state dictionary.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import structlog

from .exceptions import MigrationError
from .models import CURRENT_SCHEMA_VERSION, PersistedState
from .resource_id import MongoDatabaseId

logger = structlog.get_logger(__name__)

_LEGACY_ID_PATTERN = re.compile(
    r"^/subscriptions/(?P<subscription_id>[^/]+)"
    r"/resourceGroups/(?P<resource_group>[^/]+)"
    r"/providers/Microsoft\.DocumentDB"
    r"/databaseAccounts/(?P<account_name>[^/]+)"
    r"/apis/mongodb/databases/(?P<name>[^/]+)$"
)


@dataclass(frozen=True)
class MigrationStep:
    from_version: int
    to_version: int
    upgrade: Callable[[Dict[str, Any]], Dict[str, Any]]


def upgrade_v0_to_v1(raw_state: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrite a legacy-layout identifier into the current layout."""
    old_id = raw_state.get("id")
    match = _LEGACY_ID_PATTERN.match(old_id) if isinstance(old_id, str) else None
    if match is None:
        raise MigrationError(
            "Legacy resource ID cannot be decomposed into subscription, "
            "resource group, account and database name",
            from_version=0,
            identifier=old_id,
        )

    new_id = MongoDatabaseId(**match.groupdict())
    upgraded = dict(raw_state)
    upgraded["id"] = new_id.serialize()
    logger.info(
        "Upgraded MongoDB database state to schema version 1",
        old_id=old_id,
        new_id=upgraded["id"],
    )
    return upgraded


MIGRATIONS: List[MigrationStep] = [
    MigrationStep(from_version=0, to_version=1, upgrade=upgrade_v0_to_v1),
]


def upgrade_state(raw_state: Dict[str, Any], version: int) -> Dict[str, Any]:
    """Apply every migration step from ``version`` up to the current version.

    Raises:
        MigrationError: If the version is unknown or a step fails
    """
    if version > CURRENT_SCHEMA_VERSION or version < 0:
        raise MigrationError(
            f"Unsupported schema version {version} "
            f"(current version is {CURRENT_SCHEMA_VERSION})",
            from_version=version,
        )

    state = dict(raw_state)
    for step in MIGRATIONS:
        if step.from_version < version:
            continue
        if step.from_version != version:
            raise MigrationError(
                f"No migration step from schema version {version}",
                from_version=version,
            )
        state = step.upgrade(state)
        version = step.to_version

    state["schema_version"] = version
    return state


def load_persisted_state(raw_state: Dict[str, Any], version: int) -> PersistedState:
    """Upgrade ``raw_state`` and build a ``PersistedState`` whose ID parses."""
    upgraded = upgrade_state(raw_state, version)
    try:
        MongoDatabaseId.parse(upgraded["id"])
    except KeyError:
        raise MigrationError(
            "Persisted state has no resource ID", from_version=version
        ) from None
    try:
        return PersistedState.from_dict(upgraded)
    except KeyError as e:
        raise MigrationError(
            f"Persisted state is missing {e.args[0]!r}", from_version=version
        ) from None
