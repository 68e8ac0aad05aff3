"""Error taxonomy for the publishing pipeline."""


class PublishError(Exception):
    """Base class for publishing errors"""


class ConfigurationError(PublishError):
    """
    The run cannot proceed with the metadata it was given, eg. a missing
    adapter barcode or an ambiguous registry match. Always fatal to the run.
    """


class StagingError(PublishError):
    """The external copy / compress pipeline failed for a batch of files"""


class StoreError(PublishError):
    """An object store operation failed (connectivity, permissions, ...)"""


class NotFoundWarning(UserWarning):
    """
    No registry record was found for a file. Raised so the caller can skip
    that file, it is not counted as an error.
    """
