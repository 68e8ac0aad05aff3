"""
seqpublish

Publishes sequencing instrument output from a local filesystem into
object storage, with the metadata downstream consumers use to find it:
- PacBio IsoSeq analysis outputs, one object per file, with sample and
  study metadata from the run registry
- Run folder logs, bundled into one compressed archive object

Architecture:
- models/: Data models and value objects
- adapters/: External interface adapters (GraphQL, GCS)
- data_access/: Data access layer
- services/: Business logic
- cli/: Command-line interfaces

Usage:
    from seqpublish import PublishConfig, PublishOrchestrator, StorageClient
    from seqpublish import RegistryDataAccess

    config = PublishConfig(
        runfolder_path='/data/r84047_20240101/1_A01/isoseq',
        analysis_id='0000021054',
        dest_collection='gs://cpg-pacbio-main/isoseq',
    )
    orchestrator = PublishOrchestrator(
        config, store=StorageClient(), registry=RegistryDataAccess()
    )
    num_files, num_processed, num_errors = orchestrator.publish_files().as_tuple()
"""

from .exceptions import (
    PublishError,
    ConfigurationError,
    StagingError,
    StoreError,
    NotFoundWarning,
)

from .models import (
    # Core entities
    MetadataAttribute,
    MetadataRecord,
    RegistryRecord,
    # Value objects
    FileKind,
    SourceFile,
    AnalysisContext,
    LogPublishContext,
    PublishResult,
    PublishConfig,
    LogPublishConfig,
)

from .adapters import ObjectStore, StorageClient
from .data_access import RunRegistry, RegistryDataAccess

from .services import (
    FileClassifier,
    MetadataResolver,
    StagingTransformer,
    FilePublisher,
    PublishOrchestrator,
    LogArchiver,
)

__version__ = '1.0.0'

__all__ = [
    # Errors
    'PublishError',
    'ConfigurationError',
    'StagingError',
    'StoreError',
    'NotFoundWarning',
    # Configuration
    'PublishConfig',
    'LogPublishConfig',
    # Enums
    'FileKind',
    'MetadataAttribute',
    # Entities and value objects
    'MetadataRecord',
    'RegistryRecord',
    'SourceFile',
    'AnalysisContext',
    'LogPublishContext',
    'PublishResult',
    # Collaborators
    'ObjectStore',
    'StorageClient',
    'RunRegistry',
    'RegistryDataAccess',
    # Services
    'FileClassifier',
    'MetadataResolver',
    'StagingTransformer',
    'FilePublisher',
    'PublishOrchestrator',
    'LogArchiver',
]
