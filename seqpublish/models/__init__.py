"""Data models for the publishing pipeline."""

from .entities import (
    MetadataAttribute,
    MetadataRecord,
    Sample,
    Study,
    Library,
    RegistryRecord,
)
from .value_objects import (
    FileKind,
    SourceFile,
    AnalysisContext,
    LogPublishContext,
    PublishResult,
    PublishConfig,
    LogPublishConfig,
    normalize_well_label,
)

__all__ = [
    # Entities
    'MetadataAttribute',
    'MetadataRecord',
    'Sample',
    'Study',
    'Library',
    'RegistryRecord',
    # Value Objects
    'FileKind',
    'SourceFile',
    'AnalysisContext',
    'LogPublishContext',
    'PublishResult',
    'PublishConfig',
    'LogPublishConfig',
    'normalize_well_label',
]
