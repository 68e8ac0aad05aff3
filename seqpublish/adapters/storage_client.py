"""Google Cloud Storage client adapter."""

import logging
from functools import wraps

from cpg_utils import to_path
from google.api_core.exceptions import GoogleAPIError
from google.cloud import storage

from seqpublish.exceptions import StoreError
from seqpublish.models import MetadataRecord

from .object_store import ObjectId, ObjectStore

logger = logging.getLogger(__name__)

COLLECTION_PLACEHOLDER_CONTENT_TYPE = 'application/x-directory'


def wrap_store_errors(func):
    """Re-raise Google API errors as StoreError"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except GoogleAPIError as e:
            raise StoreError(f'{func.__name__} failed: {e}') from e

    return wrapper


def split_gcs_path(path: str) -> tuple[str, str]:
    """
    Split a gs:// path into bucket and blob name.

    Args:
        path: Path such as gs://bucket/some/blob

    Returns:
        (bucket name, blob name)
    """
    gcs_path = to_path(path)
    if not str(gcs_path).startswith('gs://'):
        raise StoreError(f'Not a GCS path: {path}')
    return gcs_path.bucket, gcs_path.blob


class StorageClient(ObjectStore):
    """ObjectStore backed by Google Cloud Storage."""

    def __init__(self, project: str | None = None):
        """
        Initialize the storage client.

        Args:
            project: GCP project ID
        """
        self.client = storage.Client(project=project)
        self.project = project

    def get_blob(self, path: str) -> storage.Blob:
        """
        Get the blob at a gs:// path, refreshed if it exists.

        Args:
            path: The gs:// path of the blob.

        Returns:
            The Blob object.
        """
        bucket_name, blob_name = split_gcs_path(path)
        blob = self.client.bucket(bucket_name).blob(blob_name)
        if blob.exists():
            blob.reload()
        return blob

    @wrap_store_errors
    def put_object(self, local_path: str, remote_path: str) -> ObjectId:
        """Upload a local file to a gs:// path."""
        blob = self.get_blob(remote_path)
        blob.upload_from_filename(local_path)
        logger.debug(f'Uploaded {local_path} to {remote_path}')
        return remote_path

    @wrap_store_errors
    def attach_metadata(self, object_id: ObjectId, record: MetadataRecord):
        """Store the record as custom metadata on the blob."""
        blob = self.get_blob(object_id)
        if not blob.exists():
            raise StoreError(f'Cannot attach metadata, {object_id} does not exist')

        metadata = dict(blob.metadata or {})
        metadata.update(record.to_object_metadata())
        blob.metadata = metadata
        blob.patch()

    @wrap_store_errors
    def get_metadata(self, object_id: ObjectId) -> dict[str, str]:
        """Get the custom metadata of a blob."""
        blob = self.get_blob(object_id)
        if not blob.exists():
            raise StoreError(f'{object_id} does not exist')
        return dict(blob.metadata or {})

    @wrap_store_errors
    def create_collection(self, path: str):
        """
        GCS has no directories, a collection is marked with an empty
        placeholder blob named <prefix>/.
        """
        bucket_name, blob_name = split_gcs_path(path)
        placeholder = self.client.bucket(bucket_name).blob(
            blob_name.rstrip('/') + '/'
        )
        if not placeholder.exists():
            placeholder.upload_from_string(
                b'', content_type=COLLECTION_PLACEHOLDER_CONTENT_TYPE
            )

    @wrap_store_errors
    def remove_collection(self, path: str):
        """Delete every blob under the collection prefix."""
        bucket_name, blob_name = split_gcs_path(path)
        bucket = self.client.bucket(bucket_name)
        blobs = list(
            self.client.list_blobs(bucket, prefix=blob_name.rstrip('/') + '/')
        )
        if blobs:
            bucket.delete_blobs(blobs)
