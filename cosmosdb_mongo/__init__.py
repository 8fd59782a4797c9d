"""
Cosmos DB MongoDB Database Reconciler

Reconciles the declared configuration of a MongoDB API database inside an
Azure Cosmos DB account against the Azure Resource Manager control plane.
"""

from .desired_config import DesiredConfig
from .exceptions import CosmosMongoError, ErrorKind
from .models import AutoscaleSettings, PersistedState
from .reconciler import MongoDatabaseReconciler
from .resource_id import MongoDatabaseId

__all__ = [
    "AutoscaleSettings",
    "CosmosMongoError",
    "DesiredConfig",
    "ErrorKind",
    "MongoDatabaseId",
    "MongoDatabaseReconciler",
    "PersistedState",
]
