"""Business logic services."""

from .file_classifier import ClassificationRule, FileClassifier, classify
from .descriptors import (
    determine_barcode,
    find_metadata_file,
    parse_metadata_xml,
    parse_primers_report,
    read_analysis_context,
    read_primers,
)
from .metadata_resolver import MetadataResolver, primer_for_file, product_id
from .staging import CompressStep, CopyStep, StagingStep, StagingTransformer
from .file_publisher import FilePublisher
from .publish_logging import PublishLogger
from .publish_orchestrator import PublishOrchestrator
from .log_archiver import LogArchiver, infer_id_run, log_context

__all__ = [
    # Classification
    'ClassificationRule',
    'FileClassifier',
    'classify',
    # Descriptors
    'determine_barcode',
    'find_metadata_file',
    'parse_metadata_xml',
    'parse_primers_report',
    'read_analysis_context',
    'read_primers',
    # Metadata
    'MetadataResolver',
    'primer_for_file',
    'product_id',
    # Staging
    'StagingStep',
    'CopyStep',
    'CompressStep',
    'StagingTransformer',
    # Core services
    'FilePublisher',
    'PublishLogger',
    'PublishOrchestrator',
    'LogArchiver',
    'infer_id_run',
    'log_context',
]
