"""Resource ID codec for Cosmos DB MongoDB databases.

Format: /subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.DocumentDB/databaseAccounts/{account}/mongodbDatabases/{name}

Only this layout is accepted by ``parse``. Identifiers written by schema
version 0 (``.../apis/mongodb/databases/{name}``) are upgraded by
``cosmosdb_mongo.migrations`` and never parsed here.
"""

from dataclasses import dataclass
from typing import List, Tuple

from .exceptions import MalformedIdentifierError

PROVIDER_NAMESPACE = "Microsoft.DocumentDB"

# (segment literal, field name) pairs in path order
_SEGMENTS: List[Tuple[str, str]] = [
    ("subscriptions", "subscription_id"),
    ("resourceGroups", "resource_group"),
    ("providers", "provider"),
    ("databaseAccounts", "account_name"),
    ("mongodbDatabases", "name"),
]


@dataclass(frozen=True)
class MongoDatabaseId:
    """Identity of a MongoDB database within a Cosmos DB account."""

    subscription_id: str
    resource_group: str
    account_name: str
    name: str

    @classmethod
    def build(
        cls,
        resource_group: str,
        account_name: str,
        name: str,
        subscription_id: str,
    ) -> "MongoDatabaseId":
        """Construct an identifier, rejecting empty components.

        Name syntax is checked by the desired configuration, not here.
        """
        components = {
            "subscription_id": subscription_id,
            "resource_group": resource_group,
            "account_name": account_name,
            "name": name,
        }
        empty = [key for key, value in components.items() if not value]
        if empty:
            raise MalformedIdentifierError(
                f"Resource ID components must not be empty: {', '.join(empty)}"
            )
        return cls(**components)

    @classmethod
    def parse(cls, value: str) -> "MongoDatabaseId":
        """Parse a serialized resource ID.

        Raises:
            MalformedIdentifierError: If ``value`` is not exactly the current layout
        """
        if not isinstance(value, str) or not value.startswith("/"):
            raise MalformedIdentifierError(
                "Resource ID must be an absolute path", identifier=value
            )

        parts = value[1:].split("/")
        expected_length = len(_SEGMENTS) * 2
        if len(parts) != expected_length:
            raise MalformedIdentifierError(
                f"Expected {expected_length} path segments, got {len(parts)}",
                identifier=value,
            )

        values = {}
        for index, (literal, field_name) in enumerate(_SEGMENTS):
            key, segment_value = parts[index * 2], parts[index * 2 + 1]
            if key != literal:
                raise MalformedIdentifierError(
                    f"Expected segment {literal!r} but found {key!r}",
                    identifier=value,
                )
            if not segment_value:
                raise MalformedIdentifierError(
                    f"Segment {literal!r} has an empty value", identifier=value
                )
            values[field_name] = segment_value

        # ARM compares provider namespaces case-insensitively.
        if values.pop("provider").lower() != PROVIDER_NAMESPACE.lower():
            raise MalformedIdentifierError(
                f"Expected provider namespace {PROVIDER_NAMESPACE!r}",
                identifier=value,
            )
        return cls(**values)

    def serialize(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/{PROVIDER_NAMESPACE}"
            f"/databaseAccounts/{self.account_name}"
            f"/mongodbDatabases/{self.name}"
        )

    def __str__(self) -> str:
        return self.serialize()
