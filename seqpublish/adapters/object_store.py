"""Abstract object store used by the publishers."""

from abc import ABC, abstractmethod

from seqpublish.models import MetadataRecord

ObjectId = str


class ObjectStore(ABC):
    """
    The operations the publishers need from remote managed storage.

    Implementations raise StoreError for connectivity or permission failures.
    """

    @abstractmethod
    def put_object(self, local_path: str, remote_path: str) -> ObjectId:
        """
        Upload a local file.

        Args:
            local_path: File to upload
            remote_path: Destination path of the object

        Returns:
            The id of the stored object
        """

    @abstractmethod
    def attach_metadata(self, object_id: ObjectId, record: MetadataRecord):
        """Attach a metadata record to a stored object."""

    @abstractmethod
    def get_metadata(self, object_id: ObjectId) -> dict[str, str]:
        """Get the metadata attached to a stored object."""

    @abstractmethod
    def create_collection(self, path: str):
        """Create a collection (if it doesn't already exist)."""

    @abstractmethod
    def remove_collection(self, path: str):
        """Remove a collection and everything in it."""
