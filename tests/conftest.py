import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from azure.core.exceptions import ResourceNotFoundError

from cosmosdb_mongo.capacity import CapacityUpdate
from cosmosdb_mongo.desired_config import DesiredConfig
from cosmosdb_mongo.models import (
    AccountRecord,
    AutoscaleSettings,
    CreateUpdateParameters,
    Found,
    NotFound,
    RemoteDatabaseRecord,
    ThroughputRecord,
)
from cosmosdb_mongo.reconciler import MongoDatabaseReconciler
from cosmosdb_mongo.resource_id import MongoDatabaseId

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"

Key = Tuple[str, str, str]


class FakeOperation:
    """Long-running operation that applies its change when awaited."""

    def __init__(
        self,
        on_complete: Optional[Callable[[], Any]] = None,
        error: Optional[Exception] = None,
        hang: bool = False,
    ) -> None:
        self.on_complete = on_complete
        self.error = error
        self.hang = hang
        self.awaited = False

    async def result(self) -> Any:
        self.awaited = True
        if self.hang:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        if self.on_complete is not None:
            return self.on_complete()
        return None


class FakeMongoDatabaseClient:
    """
    In-memory Cosmos DB control plane.

    Databases exist once their create/update operation has been awaited.
    Errors can be injected per call with ``fail`` (raised when the call is
    made) or ``fail_operation`` (raised when the returned operation is awaited).
    """

    def __init__(self, subscription_id: str = SUBSCRIPTION_ID) -> None:
        self.subscription_id = subscription_id
        self.databases: Dict[Key, str] = {}
        self.throughput: Dict[Key, ThroughputRecord] = {}
        self.accounts: Dict[Tuple[str, str], AccountRecord] = {}
        self.calls: List[str] = []
        self.submitted: List[CreateUpdateParameters] = []
        self.throughput_updates: List[CapacityUpdate] = []
        self._errors: Dict[str, Exception] = {}
        self._operation_errors: Dict[str, Exception] = {}
        self._hanging: set = set()

    # Test helpers

    def add_account(
        self, resource_group: str, account_name: str, serverless: bool = False
    ) -> AccountRecord:
        account = AccountRecord(
            id=(
                f"/subscriptions/{self.subscription_id}/resourceGroups/{resource_group}"
                f"/providers/Microsoft.DocumentDB/databaseAccounts/{account_name}"
            ),
            capabilities=("EnableServerless",) if serverless else ("EnableMongo",),
        )
        self.accounts[(resource_group, account_name)] = account
        return account

    def add_database(
        self,
        resource_group: str,
        account_name: str,
        name: str,
        throughput: Optional[int] = None,
        autoscale_max_throughput: Optional[int] = None,
    ) -> str:
        key = (resource_group, account_name, name)
        resource_id = MongoDatabaseId(
            self.subscription_id, resource_group, account_name, name
        ).serialize()
        self.databases[key] = resource_id
        if throughput is not None:
            self.throughput[key] = ThroughputRecord(throughput=throughput)
        elif autoscale_max_throughput is not None:
            self.throughput[key] = ThroughputRecord(
                throughput=autoscale_max_throughput // 10,
                autoscale_settings=AutoscaleSettings(autoscale_max_throughput),
            )
        return resource_id

    def remove_database(self, resource_group: str, account_name: str, name: str) -> None:
        key = (resource_group, account_name, name)
        self.databases.pop(key, None)
        self.throughput.pop(key, None)

    def fail(self, call: str, error: Exception) -> None:
        self._errors[call] = error

    def fail_operation(self, call: str, error: Exception) -> None:
        self._operation_errors[call] = error

    def hang_operation(self, call: str) -> None:
        self._hanging.add(call)

    def _record(self, call: str) -> None:
        self.calls.append(call)
        if call in self._errors:
            raise self._errors[call]

    def _operation(self, call: str, on_complete: Callable[[], Any]) -> FakeOperation:
        return FakeOperation(
            on_complete=on_complete,
            error=self._operation_errors.get(call),
            hang=call in self._hanging,
        )

    # MongoDatabaseClient protocol

    async def get_database(self, resource_group, account_name, name):
        self._record("get_database")
        key = (resource_group, account_name, name)
        if key not in self.databases:
            return NotFound(resource=name)
        return Found(RemoteDatabaseRecord(id=self.databases[key], name=name))

    async def begin_create_update_database(
        self, resource_group, account_name, name, parameters
    ):
        self._record("begin_create_update_database")
        self.submitted.append(parameters)
        key = (resource_group, account_name, name)

        def complete() -> None:
            created = key not in self.databases
            self.databases[key] = MongoDatabaseId(
                self.subscription_id, resource_group, account_name, name
            ).serialize()
            # Capacity options only take effect when the database is created.
            if created and parameters.throughput:
                self.throughput[key] = ThroughputRecord(throughput=parameters.throughput)
            elif created and parameters.autoscale_settings is not None:
                self.throughput[key] = ThroughputRecord(
                    throughput=parameters.autoscale_settings.max_throughput // 10,
                    autoscale_settings=parameters.autoscale_settings,
                )

        return self._operation("create_update_database", complete)

    async def get_throughput(self, resource_group, account_name, name):
        self._record("get_throughput")
        key = (resource_group, account_name, name)
        if key not in self.throughput:
            return NotFound(resource=name)
        return Found(self.throughput[key])

    async def begin_update_throughput(self, resource_group, account_name, name, update):
        self._record("begin_update_throughput")
        self.throughput_updates.append(update)
        key = (resource_group, account_name, name)
        if key not in self.throughput:
            return NotFound(resource=name)

        def complete() -> None:
            if update.autoscale_settings is not None:
                self.throughput[key] = ThroughputRecord(
                    throughput=update.autoscale_settings.max_throughput // 10,
                    autoscale_settings=update.autoscale_settings,
                )
            else:
                self.throughput[key] = ThroughputRecord(throughput=update.throughput)

        return Found(self._operation("update_throughput", complete))

    async def begin_delete_database(self, resource_group, account_name, name):
        self._record("begin_delete_database")
        key = (resource_group, account_name, name)
        if key not in self.databases:
            return NotFound(resource=name)
        return Found(
            self._operation(
                "delete_database",
                lambda: self.remove_database(resource_group, account_name, name),
            )
        )

    async def get_account(self, resource_group, account_name):
        self._record("get_account")
        try:
            return self.accounts[(resource_group, account_name)]
        except KeyError:
            raise ResourceNotFoundError(
                f"Account {account_name} not found in {resource_group}"
            ) from None


@pytest.fixture
def fake_client() -> FakeMongoDatabaseClient:
    """Provide a fake control plane with one provisioned account."""
    client = FakeMongoDatabaseClient()
    client.add_account("rg1", "acct1")
    return client


@pytest.fixture
def reconciler(fake_client) -> MongoDatabaseReconciler:
    return MongoDatabaseReconciler(fake_client)


@pytest.fixture
def desired_orders() -> DesiredConfig:
    return DesiredConfig(
        name="orders",
        resource_group_name="rg1",
        account_name="acct1",
        throughput=400,
    )


@pytest.fixture
def orders_id() -> str:
    return MongoDatabaseId(SUBSCRIPTION_ID, "rg1", "acct1", "orders").serialize()
