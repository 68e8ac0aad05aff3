"""External interface adapters."""

from .graphql_client import GraphQLClient
from .object_store import ObjectId, ObjectStore
from .storage_client import StorageClient

__all__ = [
    'GraphQLClient',
    'ObjectId',
    'ObjectStore',
    'StorageClient',
]
