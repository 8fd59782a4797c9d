"""
Type protocols for the Cosmos DB control-plane client.

Philosophy:
- The reconciler depends on these protocols, never on a concrete SDK client
- Lookups that can legitimately miss return ``Found``/``NotFound`` values
- Any other failure is raised by the implementation (Azure SDK exceptions)

``AzureMongoDatabaseClient`` in ``cosmosdb_mongo.remote.azure_client`` is the
production implementation; tests use an in-memory fake.
"""

from typing import Any, Protocol, TypeVar

from ..capacity import CapacityUpdate
from ..models import (
    AccountRecord,
    CreateUpdateParameters,
    Lookup,
    RemoteDatabaseRecord,
    ThroughputRecord,
)

T_co = TypeVar("T_co", covariant=True)


class LongRunningOperation(Protocol[T_co]):
    """Handle on a control-plane operation that completes asynchronously."""

    async def result(self) -> T_co:
        """
        Wait for the operation to finish.

        Returns:
            The final result of the operation

        Raises:
            Exception: If the operation failed remotely
        """
        ...


class MongoDatabaseClient(Protocol):
    """Protocol for the MongoDB database and account operations the reconciler uses."""

    async def get_database(
        self, resource_group: str, account_name: str, name: str
    ) -> Lookup[RemoteDatabaseRecord]:
        """Fetch a database by its identity triple."""
        ...

    async def begin_create_update_database(
        self,
        resource_group: str,
        account_name: str,
        name: str,
        parameters: CreateUpdateParameters,
    ) -> LongRunningOperation[Any]:
        """Start an idempotent create-or-update of a database."""
        ...

    async def get_throughput(
        self, resource_group: str, account_name: str, name: str
    ) -> Lookup[ThroughputRecord]:
        """Fetch the throughput settings of a database."""
        ...

    async def begin_update_throughput(
        self,
        resource_group: str,
        account_name: str,
        name: str,
        update: CapacityUpdate,
    ) -> Lookup[LongRunningOperation[Any]]:
        """Start a throughput update; NotFound when the database has no throughput."""
        ...

    async def begin_delete_database(
        self, resource_group: str, account_name: str, name: str
    ) -> Lookup[LongRunningOperation[Any]]:
        """Start deleting a database; NotFound when it is already gone."""
        ...

    async def get_account(
        self, resource_group: str, account_name: str
    ) -> AccountRecord:
        """Fetch the account that owns the database."""
        ...
