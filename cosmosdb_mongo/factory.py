"""Wiring of credential, management client and reconciler from configuration."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Union

from azure.identity.aio import ClientSecretCredential, DefaultAzureCredential
from azure.mgmt.cosmosdb.aio import CosmosDBManagementClient

from .config_manager import AzureConfig, ReconcilerConfig
from .logging_config import configure_logging
from .reconciler import MongoDatabaseReconciler
from .remote.azure_client import AzureMongoDatabaseClient


def create_credential(
    config: AzureConfig,
) -> Union[ClientSecretCredential, DefaultAzureCredential]:
    """Use explicit service principal credentials when configured, else the default chain."""
    if config.uses_service_principal:
        return ClientSecretCredential(
            tenant_id=config.tenant_id,
            client_id=config.client_id,
            client_secret=config.client_secret,
        )
    return DefaultAzureCredential()


@asynccontextmanager
async def create_reconciler(
    config: Optional[ReconcilerConfig] = None,
) -> AsyncIterator[MongoDatabaseReconciler]:
    """
    Build a reconciler connected to the Cosmos DB control plane.

    Usage:
        async with create_reconciler() as reconciler:
            state = await reconciler.read(resource_id)
    """
    config = config or ReconcilerConfig.from_env()
    configure_logging(config.logging.level)
    credential = create_credential(config.azure)
    async with credential:
        async with CosmosDBManagementClient(
            credential, config.azure.subscription_id
        ) as management_client:
            yield MongoDatabaseReconciler(AzureMongoDatabaseClient(management_client))
