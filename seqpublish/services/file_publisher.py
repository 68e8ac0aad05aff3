"""Publishing of local files to the object store."""

import logging
import os

from seqpublish.adapters import ObjectId, ObjectStore
from seqpublish.models import MetadataRecord, PublishResult

logger = logging.getLogger(__name__)


class FilePublisher:
    """Uploads files with metadata, counting successes and errors."""

    def __init__(self, store: ObjectStore):
        """
        Args:
            store: Object store to publish to
        """
        self.store = store

    def publish_file(
        self, local_path: str, dest_collection: str, metadata: MetadataRecord
    ) -> ObjectId:
        """Upload one file into dest_collection and attach its metadata."""
        remote_path = f'{dest_collection}/{os.path.basename(local_path)}'
        object_id = self.store.put_object(local_path, remote_path)
        if metadata:
            self.store.attach_metadata(object_id, metadata)
        return object_id

    def publish_files(
        self,
        files: list[str],
        dest_collection: str,
        metadata: MetadataRecord | None = None,
    ) -> PublishResult:
        """
        Publish files into a collection. A failure to publish one file is
        logged and counted, the remaining files are still published.

        Args:
            files: Local files to publish
            dest_collection: Destination collection path
            metadata: Metadata attached to every file

        Returns:
            PublishResult for these files
        """
        if not files:
            return PublishResult()

        metadata = metadata or MetadataRecord()
        num_processed = 0
        num_errors = 0
        try:
            self.store.create_collection(dest_collection)
        except Exception:  # pylint: disable=broad-except
            logger.exception(f'Failed to create collection {dest_collection}')
            return PublishResult(len(files), 0, len(files))

        for local_path in files:
            try:
                object_id = self.publish_file(local_path, dest_collection, metadata)
                logger.info(f'Published {local_path} to {object_id}')
                num_processed += 1
            except Exception:  # pylint: disable=broad-except
                logger.exception(f'Failed to publish {local_path}')
                num_errors += 1

        return PublishResult(len(files), num_processed, num_errors)
