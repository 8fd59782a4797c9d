"""
Reconciler for Cosmos DB MongoDB databases.

This module drives the Create/Read/Update/Delete lifecycle of a single
database against the Cosmos DB control plane:

    Absent -> Creating -> Present -> Updating -> Present -> Deleting -> Absent

A read that finds the database gone moves it straight from Present to Absent
(``read`` returns None) without raising. Every operation runs under its own
deadline; cancelling the calling task aborts the in-flight wait, after which
only a new ``read`` tells the true remote state.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Optional, TypeVar, Union

import structlog
from azure.core.exceptions import AzureError

from . import capacity
from .desired_config import DesiredConfig
from .exceptions import (
    AlreadyExistsError,
    InvalidConfigurationError,
    InvariantViolationError,
    OperationTimeoutError,
    ThroughputRetrofitError,
    wrap_azure_exception,
)
from .models import (
    CreateUpdateParameters,
    NotFound,
    PersistedState,
    RemoteDatabaseRecord,
)
from .remote.protocols import MongoDatabaseClient
from .resource_id import MongoDatabaseId
from .timeout_config import Timeouts, log_timeout_event

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class MongoDatabaseReconciler:
    """Reconciles desired MongoDB database configuration with the control plane."""

    def __init__(self, client: MongoDatabaseClient) -> None:
        """
        Initialize the reconciler.

        Args:
            client: Control-plane client used for every remote call
        """
        self.client = client

    async def create(
        self, desired: DesiredConfig, timeout: Optional[float] = None
    ) -> PersistedState:
        """
        Create the database described by ``desired``.

        Args:
            desired: Desired configuration
            timeout: Deadline in seconds, defaults to ``Timeouts.CREATE``

        Returns:
            State read back from the control plane after creation

        Raises:
            AlreadyExistsError: If the database already exists
            RemoteOperationError: If a remote call or wait fails
            InvariantViolationError: If the control plane returns no identifier
            OperationTimeoutError: If the deadline is exceeded
        """
        async with self._deadline("create", timeout, desired.name):
            return await self._create(desired)

    async def read(
        self, resource_id: str, timeout: Optional[float] = None
    ) -> Optional[PersistedState]:
        """
        Refresh state from the control plane.

        Returns:
            Current state, or None when the database no longer exists
        """
        async with self._deadline("read", timeout, resource_id):
            return await self._read(resource_id)

    async def update(
        self,
        previous: PersistedState,
        desired: DesiredConfig,
        timeout: Optional[float] = None,
    ) -> PersistedState:
        """
        Apply ``desired`` to the database recorded in ``previous``.

        Raises:
            MalformedIdentifierError: If ``previous.id`` does not parse
            ConflictingCapacityModeError: If the update crosses capacity modes
            ThroughputRetrofitError: If throughput is added to a database
                created without it
        """
        async with self._deadline("update", timeout, previous.id):
            return await self._update(previous, desired)

    async def delete(self, resource_id: str, timeout: Optional[float] = None) -> None:
        """Delete the database; a database that is already gone is not an error."""
        async with self._deadline("delete", timeout, resource_id):
            await self._delete(resource_id)

    @asynccontextmanager
    async def _deadline(
        self, operation: str, timeout: Optional[float], resource: str
    ) -> AsyncIterator[None]:
        seconds = timeout if timeout is not None else Timeouts.for_operation(operation)
        try:
            async with asyncio.timeout(seconds):
                yield
        except TimeoutError as e:
            log_timeout_event(operation, seconds, resource)
            raise OperationTimeoutError(
                f"Cosmos Mongo Database {operation} did not finish within {seconds}s",
                operation=operation,
                timeout_value=seconds,
                context={"resource": resource},
            ) from e

    async def _call(
        self,
        awaitable: Awaitable[T],
        message: str,
        db_id: Union[MongoDatabaseId, "_Target"],
        operation: str,
        read: bool = False,
    ) -> T:
        """Await a remote call, wrapping SDK failures with the database identity."""
        try:
            return await awaitable
        except AzureError as e:
            raise wrap_azure_exception(
                e,
                message,
                name=db_id.name,
                account_name=db_id.account_name,
                operation=operation,
                resource_group=db_id.resource_group,
                read=read,
            ) from e

    async def _create(self, desired: DesiredConfig) -> PersistedState:
        target = _Target(
            desired.resource_group_name, desired.account_name, desired.name
        )
        log = logger.bind(
            name=target.name,
            account_name=target.account_name,
            resource_group=target.resource_group,
        )

        existing = await self._call(
            self.client.get_database(*target.triple),
            "Error checking for presence of creating Cosmos Mongo Database",
            target,
            "get_database",
        )
        if not isinstance(existing, NotFound):
            if not existing.value.id:
                raise InvariantViolationError(
                    "Error generating import ID for existing Cosmos Mongo Database",
                    name=target.name,
                    account_name=target.account_name,
                )
            raise AlreadyExistsError(
                f"Cosmos Mongo Database {target.name!r} (Account: "
                f"{target.account_name!r}) already exists",
                resource_id=existing.value.id,
                context={
                    "name": target.name,
                    "account_name": target.account_name,
                },
            )

        log.info("Creating Cosmos Mongo Database")
        await self._upsert(target, capacity.to_create_options(desired))

        record = await self._confirm(target)
        if not record.id:
            raise InvariantViolationError(
                "Error getting ID from created Cosmos Mongo Database",
                name=target.name,
                account_name=target.account_name,
            )

        state = await self._read(record.id)
        if state is None:
            raise InvariantViolationError(
                "Cosmos Mongo Database disappeared immediately after creation",
                name=target.name,
                account_name=target.account_name,
                context={"resource_id": record.id},
            )
        log.info("Created Cosmos Mongo Database", resource_id=state.id)
        return state

    async def _update(
        self, previous: PersistedState, desired: DesiredConfig
    ) -> PersistedState:
        db_id = MongoDatabaseId.parse(previous.id)
        requested = (
            desired.resource_group_name,
            desired.account_name,
            desired.name,
        )
        if requested != (db_id.resource_group, db_id.account_name, db_id.name):
            raise InvalidConfigurationError(
                "name, account_name and resource_group_name cannot change; "
                "the database must be replaced instead",
                context={"resource_id": previous.id},
            )

        capacity.check_capacity_transition(previous, desired)

        target = _Target(db_id.resource_group, db_id.account_name, db_id.name)
        log = logger.bind(
            name=target.name,
            account_name=target.account_name,
            resource_group=target.resource_group,
        )
        log.info("Updating Cosmos Mongo Database")
        # Capacity of an existing database only changes through the throughput call.
        await self._upsert(target, capacity.CapacityUpdate())

        if capacity.has_capacity_change(previous, desired):
            payload = capacity.to_update_payload(desired)
            log.info(
                "Updating throughput of Cosmos Mongo Database",
                throughput=payload.throughput,
                autoscale_max_throughput=(
                    payload.autoscale_settings.max_throughput
                    if payload.autoscale_settings
                    else None
                ),
            )
            operation = await self._call(
                self.client.begin_update_throughput(*target.triple, payload),
                "Error setting Throughput for Cosmos Mongo Database",
                target,
                "begin_update_throughput",
            )
            if isinstance(operation, NotFound):
                raise ThroughputRetrofitError(
                    f"Error setting Throughput for Cosmos Mongo Database "
                    f"{target.name!r} (Account: {target.account_name!r}): "
                    f"the database has no throughput settings",
                    name=target.name,
                    account_name=target.account_name,
                )
            await self._call(
                operation.value.result(),
                "Error waiting on ThroughputUpdate future for Cosmos Mongo Database",
                target,
                "update_throughput",
            )

        await self._confirm(target)

        state = await self._read(previous.id)
        if state is None:
            raise InvariantViolationError(
                "Cosmos Mongo Database disappeared during update",
                name=target.name,
                account_name=target.account_name,
                context={"resource_id": previous.id},
            )
        return state

    async def _read(self, resource_id: str) -> Optional[PersistedState]:
        db_id = MongoDatabaseId.parse(resource_id)
        log = logger.bind(
            name=db_id.name,
            account_name=db_id.account_name,
            resource_group=db_id.resource_group,
        )

        lookup = await self._call(
            self.client.get_database(
                db_id.resource_group, db_id.account_name, db_id.name
            ),
            "Error reading Cosmos Mongo Database",
            db_id,
            "get_database",
            read=True,
        )
        if isinstance(lookup, NotFound):
            log.info("Cosmos Mongo Database not found - removing from state")
            return None

        state = PersistedState(
            id=resource_id,
            name=lookup.value.name or db_id.name,
            resource_group_name=db_id.resource_group,
            account_name=db_id.account_name,
        )

        account = await self._call(
            self.client.get_account(db_id.resource_group, db_id.account_name),
            "Error reading CosmosDB Account for Cosmos Mongo Database",
            db_id,
            "get_account",
            read=True,
        )
        if not account.id:
            raise InvariantViolationError(
                f"CosmosDB Account {db_id.account_name!r} (Resource Group "
                f"{db_id.resource_group!r}) ID is empty",
                name=db_id.name,
                account_name=db_id.account_name,
            )

        # Serverless accounts reject throughput queries outright.
        if capacity.is_serverless(account):
            log.debug("Account is serverless, skipping throughput lookup")
            observed = capacity.cleared()
        else:
            throughput = await self._call(
                self.client.get_throughput(
                    db_id.resource_group, db_id.account_name, db_id.name
                ),
                "Error reading Throughput on Cosmos Mongo Database",
                db_id,
                "get_throughput",
                read=True,
            )
            if isinstance(throughput, NotFound):
                observed = capacity.cleared()
            else:
                observed = capacity.from_remote_response(throughput.value)

        state.throughput = observed.throughput
        state.autoscale_settings = observed.autoscale_settings
        return state

    async def _delete(self, resource_id: str) -> None:
        db_id = MongoDatabaseId.parse(resource_id)
        log = logger.bind(
            name=db_id.name,
            account_name=db_id.account_name,
            resource_group=db_id.resource_group,
        )

        operation = await self._call(
            self.client.begin_delete_database(
                db_id.resource_group, db_id.account_name, db_id.name
            ),
            "Error deleting Cosmos Mongo Database",
            db_id,
            "begin_delete_database",
        )
        if isinstance(operation, NotFound):
            log.info("Cosmos Mongo Database already deleted")
            return

        await self._call(
            operation.value.result(),
            "Error waiting on delete future for Cosmos Mongo Database",
            db_id,
            "delete_database",
        )
        log.info("Deleted Cosmos Mongo Database")

    async def _upsert(
        self, target: "_Target", options: capacity.CapacityUpdate
    ) -> None:
        parameters = CreateUpdateParameters(
            name=target.name,
            throughput=options.throughput,
            autoscale_settings=options.autoscale_settings,
        )
        operation = await self._call(
            self.client.begin_create_update_database(*target.triple, parameters),
            "Error issuing create/update request for Cosmos Mongo Database",
            target,
            "begin_create_update_database",
        )
        await self._call(
            operation.result(),
            "Error waiting on create/update future for Cosmos Mongo Database",
            target,
            "create_update_database",
        )

    async def _confirm(self, target: "_Target") -> RemoteDatabaseRecord:
        lookup = await self._call(
            self.client.get_database(*target.triple),
            "Error making get request for Cosmos Mongo Database",
            target,
            "get_database",
        )
        if isinstance(lookup, NotFound):
            raise InvariantViolationError(
                "Cosmos Mongo Database not found after a completed create/update",
                name=target.name,
                account_name=target.account_name,
            )
        return lookup.value


@dataclass(frozen=True)
class _Target:
    """Identity triple of a database before its canonical ID is known."""

    resource_group: str
    account_name: str
    name: str

    @property
    def triple(self) -> tuple[str, str, str]:
        return (self.resource_group, self.account_name, self.name)
