"""Unit tests for the Cosmos DB management SDK adapter."""

from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from cosmosdb_mongo.capacity import CapacityUpdate
from cosmosdb_mongo.models import (
    AutoscaleSettings,
    CreateUpdateParameters,
    Found,
    NotFound,
)
from cosmosdb_mongo.remote.azure_client import (
    AzureMongoDatabaseClient,
    account_record_from_sdk,
    build_create_update_parameters,
    build_throughput_update_parameters,
    throughput_record_from_sdk,
)

DATABASE_ID = (
    "/subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/rg1"
    "/providers/Microsoft.DocumentDB/databaseAccounts/acct1/mongodbDatabases/orders"
)


@pytest.fixture
def mock_management_client():
    """Mock CosmosDBManagementClient with async operation groups."""
    client = MagicMock()
    client.mongo_db_resources = AsyncMock()
    client.database_accounts = AsyncMock()
    return client


@pytest.fixture
def azure_client(mock_management_client):
    return AzureMongoDatabaseClient(mock_management_client)


def capability(name):
    item = Mock()
    item.name = name
    return item


class TestParameterBuilders:
    def test_create_update_with_throughput(self):
        sdk = build_create_update_parameters(
            CreateUpdateParameters(name="orders", throughput=400)
        )
        assert sdk.resource.id == "orders"
        assert sdk.options.throughput == 400
        assert sdk.options.autoscale_settings is None

    def test_create_update_with_autoscale(self):
        sdk = build_create_update_parameters(
            CreateUpdateParameters(
                name="orders", autoscale_settings=AutoscaleSettings(4000)
            )
        )
        assert sdk.options.throughput is None
        assert sdk.options.autoscale_settings.max_throughput == 4000

    def test_create_update_without_capacity(self):
        sdk = build_create_update_parameters(CreateUpdateParameters(name="orders"))
        assert sdk.options.throughput is None
        assert sdk.options.autoscale_settings is None

    def test_throughput_update_fixed(self):
        sdk = build_throughput_update_parameters(CapacityUpdate(throughput=800))
        assert sdk.resource.throughput == 800
        assert sdk.resource.autoscale_settings is None

    def test_throughput_update_autoscale(self):
        sdk = build_throughput_update_parameters(
            CapacityUpdate(autoscale_settings=AutoscaleSettings(6000))
        )
        assert sdk.resource.throughput is None
        assert sdk.resource.autoscale_settings.max_throughput == 6000


class TestResultMapping:
    def test_throughput_record_fixed(self):
        result = Mock()
        result.resource.throughput = 400
        result.resource.autoscale_settings = None
        record = throughput_record_from_sdk(result)
        assert record.throughput == 400
        assert record.autoscale_settings is None

    def test_throughput_record_autoscale(self):
        result = Mock()
        result.resource.throughput = 400
        result.resource.autoscale_settings.max_throughput = 4000
        record = throughput_record_from_sdk(result)
        assert record.autoscale_settings == AutoscaleSettings(4000)

    def test_throughput_record_without_resource(self):
        result = Mock()
        result.resource = None
        record = throughput_record_from_sdk(result)
        assert record.throughput is None
        assert record.autoscale_settings is None

    def test_account_record(self):
        result = Mock()
        result.id = "/subscriptions/s/resourceGroups/rg1/providers/x/acct1"
        result.capabilities = [capability("EnableMongo"), capability("EnableServerless")]
        result.capacity_mode = "Serverless"
        record = account_record_from_sdk(result)
        assert record.id == result.id
        assert record.capabilities == ("EnableMongo", "EnableServerless")
        assert record.capacity_mode == "Serverless"

    def test_account_record_without_capabilities(self):
        result = Mock(spec=["id", "capabilities"])
        result.id = "account-id"
        result.capabilities = None
        record = account_record_from_sdk(result)
        assert record.capabilities == ()
        assert record.capacity_mode is None


class TestAzureMongoDatabaseClient:
    @pytest.mark.asyncio
    async def test_get_database_found(self, azure_client, mock_management_client):
        result = Mock()
        result.id = DATABASE_ID
        result.resource.id = "orders"
        mock_management_client.mongo_db_resources.get_mongo_db_database.return_value = (
            result
        )

        lookup = await azure_client.get_database("rg1", "acct1", "orders")

        assert isinstance(lookup, Found)
        assert lookup.value.id == DATABASE_ID
        assert lookup.value.name == "orders"
        mock_management_client.mongo_db_resources.get_mongo_db_database.assert_awaited_once_with(
            resource_group_name="rg1", account_name="acct1", database_name="orders"
        )

    @pytest.mark.asyncio
    async def test_get_database_not_found(self, azure_client, mock_management_client):
        mock_management_client.mongo_db_resources.get_mongo_db_database.side_effect = (
            ResourceNotFoundError("missing")
        )

        lookup = await azure_client.get_database("rg1", "acct1", "orders")

        assert lookup == NotFound(resource="orders")

    @pytest.mark.asyncio
    async def test_get_database_other_errors_propagate(
        self, azure_client, mock_management_client
    ):
        mock_management_client.mongo_db_resources.get_mongo_db_database.side_effect = (
            HttpResponseError(message="throttled")
        )

        with pytest.raises(HttpResponseError):
            await azure_client.get_database("rg1", "acct1", "orders")

    @pytest.mark.asyncio
    async def test_begin_create_update_returns_poller(
        self, azure_client, mock_management_client
    ):
        poller = Mock()
        resources = mock_management_client.mongo_db_resources
        resources.begin_create_update_mongo_db_database.return_value = poller

        result = await azure_client.begin_create_update_database(
            "rg1", "acct1", "orders", CreateUpdateParameters("orders", throughput=400)
        )

        assert result is poller
        kwargs = resources.begin_create_update_mongo_db_database.await_args.kwargs
        assert kwargs["database_name"] == "orders"
        sdk_parameters = kwargs["create_update_mongo_db_database_parameters"]
        assert sdk_parameters.options.throughput == 400

    @pytest.mark.asyncio
    async def test_get_throughput_not_found(self, azure_client, mock_management_client):
        resources = mock_management_client.mongo_db_resources
        resources.get_mongo_db_database_throughput.side_effect = ResourceNotFoundError(
            "no throughput"
        )

        lookup = await azure_client.get_throughput("rg1", "acct1", "orders")

        assert isinstance(lookup, NotFound)

    @pytest.mark.asyncio
    async def test_begin_update_throughput(self, azure_client, mock_management_client):
        poller = Mock()
        resources = mock_management_client.mongo_db_resources
        resources.begin_update_mongo_db_database_throughput.return_value = poller

        lookup = await azure_client.begin_update_throughput(
            "rg1", "acct1", "orders", CapacityUpdate(throughput=800)
        )

        assert lookup == Found(poller)
        kwargs = resources.begin_update_mongo_db_database_throughput.await_args.kwargs
        assert kwargs["update_throughput_parameters"].resource.throughput == 800

    @pytest.mark.asyncio
    async def test_begin_update_throughput_not_found(
        self, azure_client, mock_management_client
    ):
        resources = mock_management_client.mongo_db_resources
        resources.begin_update_mongo_db_database_throughput.side_effect = (
            ResourceNotFoundError("no throughput")
        )

        lookup = await azure_client.begin_update_throughput(
            "rg1", "acct1", "orders", CapacityUpdate(throughput=800)
        )

        assert isinstance(lookup, NotFound)

    @pytest.mark.asyncio
    async def test_begin_delete_not_found(self, azure_client, mock_management_client):
        resources = mock_management_client.mongo_db_resources
        resources.begin_delete_mongo_db_database.side_effect = ResourceNotFoundError(
            "gone"
        )

        lookup = await azure_client.begin_delete_database("rg1", "acct1", "orders")

        assert isinstance(lookup, NotFound)

    @pytest.mark.asyncio
    async def test_get_account_errors_propagate(
        self, azure_client, mock_management_client
    ):
        mock_management_client.database_accounts.get.side_effect = (
            ResourceNotFoundError("no account")
        )

        with pytest.raises(ResourceNotFoundError):
            await azure_client.get_account("rg1", "acct1")

    @pytest.mark.asyncio
    async def test_get_account(self, azure_client, mock_management_client):
        result = Mock()
        result.id = "account-id"
        result.capabilities = [capability("EnableMongo")]
        result.capacity_mode = "Provisioned"
        mock_management_client.database_accounts.get.return_value = result

        account = await azure_client.get_account("rg1", "acct1")

        assert account.id == "account-id"
        assert account.capabilities == ("EnableMongo",)
