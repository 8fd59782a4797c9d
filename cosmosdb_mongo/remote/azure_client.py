"""
Azure SDK implementation of the MongoDB database client protocol.

Wraps ``azure.mgmt.cosmosdb.aio.CosmosDBManagementClient``. ``ResourceNotFoundError``
on lookups is turned into ``NotFound``; every other SDK exception propagates
so the reconciler can wrap it with the database identity. Retries of transient
failures are left to the SDK pipeline.
"""

import logging
from typing import Any, Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.mgmt.cosmosdb.aio import CosmosDBManagementClient
from azure.mgmt.cosmosdb.models import AutoscaleSettings as SdkAutoscaleSettings
from azure.mgmt.cosmosdb.models import (
    AutoscaleSettingsResource,
    CreateUpdateOptions,
    MongoDBDatabaseCreateUpdateParameters,
    MongoDBDatabaseResource,
    ThroughputSettingsResource,
    ThroughputSettingsUpdateParameters,
)

from ..capacity import CapacityUpdate
from ..models import (
    AccountRecord,
    AutoscaleSettings,
    CreateUpdateParameters,
    Found,
    Lookup,
    NotFound,
    RemoteDatabaseRecord,
    ThroughputRecord,
)
from .protocols import LongRunningOperation

logger = logging.getLogger(__name__)


def build_create_update_parameters(
    parameters: CreateUpdateParameters,
) -> MongoDBDatabaseCreateUpdateParameters:
    """Translate a create/update request into the SDK model."""
    options = CreateUpdateOptions()
    if parameters.throughput:
        options.throughput = parameters.throughput
    if parameters.autoscale_settings is not None:
        options.autoscale_settings = SdkAutoscaleSettings(
            max_throughput=parameters.autoscale_settings.max_throughput
        )
    return MongoDBDatabaseCreateUpdateParameters(
        resource=MongoDBDatabaseResource(id=parameters.name),
        options=options,
    )


def build_throughput_update_parameters(
    update: CapacityUpdate,
) -> ThroughputSettingsUpdateParameters:
    """Translate a capacity update into the SDK model."""
    resource = ThroughputSettingsResource()
    if update.throughput is not None:
        resource.throughput = update.throughput
    if update.autoscale_settings is not None:
        resource.autoscale_settings = AutoscaleSettingsResource(
            max_throughput=update.autoscale_settings.max_throughput
        )
    return ThroughputSettingsUpdateParameters(resource=resource)


def throughput_record_from_sdk(result: Any) -> ThroughputRecord:
    """Map ``ThroughputSettingsGetResults`` onto a ``ThroughputRecord``."""
    resource = getattr(result, "resource", None)
    if resource is None:
        return ThroughputRecord()
    autoscale: Optional[AutoscaleSettings] = None
    sdk_autoscale = getattr(resource, "autoscale_settings", None)
    if sdk_autoscale is not None and sdk_autoscale.max_throughput:
        autoscale = AutoscaleSettings(max_throughput=sdk_autoscale.max_throughput)
    return ThroughputRecord(throughput=resource.throughput, autoscale_settings=autoscale)


def account_record_from_sdk(result: Any) -> AccountRecord:
    """Map ``DatabaseAccountGetResults`` onto an ``AccountRecord``."""
    capabilities = tuple(
        capability.name for capability in (result.capabilities or []) if capability.name
    )
    return AccountRecord(
        id=result.id,
        capabilities=capabilities,
        capacity_mode=getattr(result, "capacity_mode", None),
    )


class AzureMongoDatabaseClient:
    """
    MongoDB database operations backed by the Cosmos DB management SDK.

    Example:
        async with CosmosDBManagementClient(credential, subscription_id) as mgmt:
            client = AzureMongoDatabaseClient(mgmt)
            lookup = await client.get_database("rg1", "acct1", "orders")
    """

    def __init__(self, management_client: CosmosDBManagementClient) -> None:
        self.management_client = management_client

    async def get_database(
        self, resource_group: str, account_name: str, name: str
    ) -> Lookup[RemoteDatabaseRecord]:
        try:
            result = await self.management_client.mongo_db_resources.get_mongo_db_database(
                resource_group_name=resource_group,
                account_name=account_name,
                database_name=name,
            )
        except ResourceNotFoundError:
            return NotFound(resource=name)
        resource = getattr(result, "resource", None)
        return Found(
            RemoteDatabaseRecord(
                id=result.id, name=resource.id if resource is not None else None
            )
        )

    async def begin_create_update_database(
        self,
        resource_group: str,
        account_name: str,
        name: str,
        parameters: CreateUpdateParameters,
    ) -> LongRunningOperation[Any]:
        logger.debug(f"Submitting create/update for MongoDB database {name}")
        return await self.management_client.mongo_db_resources.begin_create_update_mongo_db_database(
            resource_group_name=resource_group,
            account_name=account_name,
            database_name=name,
            create_update_mongo_db_database_parameters=build_create_update_parameters(
                parameters
            ),
        )

    async def get_throughput(
        self, resource_group: str, account_name: str, name: str
    ) -> Lookup[ThroughputRecord]:
        try:
            result = await self.management_client.mongo_db_resources.get_mongo_db_database_throughput(
                resource_group_name=resource_group,
                account_name=account_name,
                database_name=name,
            )
        except ResourceNotFoundError:
            return NotFound(resource=name)
        return Found(throughput_record_from_sdk(result))

    async def begin_update_throughput(
        self,
        resource_group: str,
        account_name: str,
        name: str,
        update: CapacityUpdate,
    ) -> Lookup[LongRunningOperation[Any]]:
        try:
            poller = await self.management_client.mongo_db_resources.begin_update_mongo_db_database_throughput(
                resource_group_name=resource_group,
                account_name=account_name,
                database_name=name,
                update_throughput_parameters=build_throughput_update_parameters(update),
            )
        except ResourceNotFoundError:
            return NotFound(resource=name)
        return Found(poller)

    async def begin_delete_database(
        self, resource_group: str, account_name: str, name: str
    ) -> Lookup[LongRunningOperation[Any]]:
        try:
            poller = await self.management_client.mongo_db_resources.begin_delete_mongo_db_database(
                resource_group_name=resource_group,
                account_name=account_name,
                database_name=name,
            )
        except ResourceNotFoundError:
            return NotFound(resource=name)
        return Found(poller)

    async def get_account(
        self, resource_group: str, account_name: str
    ) -> AccountRecord:
        result = await self.management_client.database_accounts.get(
            resource_group_name=resource_group,
            account_name=account_name,
        )
        return account_record_from_sdk(result)
