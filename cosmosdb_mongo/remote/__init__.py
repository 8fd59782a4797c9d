"""
Control-plane clients for the reconciler.

``protocols`` defines what the reconciler calls; ``azure_client`` implements it
on top of the Azure SDK.
"""

from .protocols import LongRunningOperation, MongoDatabaseClient

__all__ = [
    "LongRunningOperation",
    "MongoDatabaseClient",
]
