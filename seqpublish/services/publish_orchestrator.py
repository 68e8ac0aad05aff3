"""Publishing of PacBio IsoSeq analysis outputs."""

import os
import tempfile
from datetime import datetime, timezone
from functools import cached_property

from seqpublish.adapters import ObjectStore
from seqpublish.data_access import RunRegistry
from seqpublish.exceptions import ConfigurationError, NotFoundWarning, StagingError
from seqpublish.models import (
    AnalysisContext,
    MetadataAttribute,
    PublishConfig,
    PublishResult,
    SourceFile,
)

from .descriptors import read_analysis_context, read_primers
from .file_classifier import FileClassifier
from .file_publisher import FilePublisher
from .metadata_resolver import MetadataResolver, primer_for_file, product_id
from .publish_logging import PublishLogger
from .staging import StagingTransformer

# Data processing level
DATA_LEVEL = 'secondary'
LOADED = 'loaded.txt'


class PublishOrchestrator:
    """
    Publishes all files of one analysis to a separate collection,
    <dest_collection>/<smrt name>/<analysis id>/, after copying them to a
    scratch directory renamed as <analysis id>.<movie name>.<file name>.

    A marker file is left in the run folder once every file has been
    published so that later runs skip the analysis.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        config: PublishConfig,
        store: ObjectStore,
        registry: RunRegistry,
        stager: StagingTransformer | None = None,
        classifier: FileClassifier | None = None,
        publish_logger: PublishLogger | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Publishing configuration
            store: Object store to publish to
            registry: Run registry for sample / study lookups
            stager: Staging service, configured from config by default
            classifier: File classifier, IsoSeq patterns by default
            publish_logger: PublishLogger instance
        """
        self.config = config
        self.store = store
        self.resolver = MetadataResolver(registry)
        self.publisher = FilePublisher(store)
        self.stager = stager or StagingTransformer.from_config(
            config.nice_level, config.bwlimit, config.staging_timeout
        )
        self.classifier = classifier or FileClassifier()
        self.publish_logger = publish_logger or PublishLogger(
            config.analysis_id,
            'seqpublish.analysis',
            log_file=config.log_file,
            level=config.log_level,
        )

    @cached_property
    def context(self) -> AnalysisContext:
        """The analysis context, read from the run folder's metadata file."""
        return read_analysis_context(
            self.config.runfolder_path,
            self.config.analysis_id,
            single_cell=self.config.single_cell,
        )

    @property
    def marker_path(self) -> str:
        """Path of the file marking the analysis as loaded."""
        return os.path.join(
            self.config.runfolder_path, f'{self.context.file_prefix}.{LOADED}'
        )

    @property
    def dest_path(self) -> str:
        """Collection the analysis' files are published to."""
        return '/'.join(
            (
                self.config.dest_collection,
                self.context.smrt_name,
                self.config.analysis_id,
            )
        )

    def publish_files(self) -> PublishResult:
        """
        Publish all files for the analysis.

        Returns:
            PublishResult, the number of files, the number published and
            the number of errors
        """
        self.publish_logger.log_initialization(self.config)
        context = self.context

        barcode = context.barcode
        if not context.single_cell and not barcode:
            raise ConfigurationError(
                'Not currently supporting processing without adapter barcode'
            )

        # check if directory previously loaded and if so skip
        if os.path.isfile(self.marker_path):
            self.publish_logger.warning(
                f'Skipping publishing {self.config.analysis_id} as previously loaded'
            )
            return PublishResult()

        seq_files, nonseq_files, excluded_files = self.classifier.classify(
            self.config.runfolder_path
        )
        self.publish_logger.info(
            f'Found {len(seq_files)} sequence, {len(nonseq_files)} non sequence '
            f'and {len(excluded_files)} excluded files'
        )
        self.publish_logger.info_nl(
            f'Publishing {self.config.analysis_id} to {self.dest_path}'
        )

        result = PublishResult()
        with tempfile.TemporaryDirectory() as tmpdir:
            copied_seq_files, staging_result = self._stage_batch(
                tmpdir, seq_files, 'sequence'
            )
            result += staging_result
            copied_nonseq_files, staging_result = self._stage_batch(
                tmpdir, nonseq_files, 'non sequence'
            )
            result += staging_result

            result += self.publish_sequence_files(copied_seq_files, barcode)
            result += self.publish_non_sequence_files(copied_nonseq_files)

        # if no error mark directory so don't try to load again
        if result.is_complete:
            self.write_marker()

        self.publish_logger.log_result_summary(result)
        return result

    def _stage_batch(
        self, scratch_dir: str, files: list[SourceFile], description: str
    ) -> tuple[list[str], PublishResult]:
        """
        Stage one batch of files. A failed batch counts an error for each of
        its files, so that the analysis is not marked as loaded.
        """
        try:
            return self.stager.stage(scratch_dir, files, self.context), PublishResult()
        except StagingError as e:
            self.publish_logger.error(
                f'Failed to stage {len(files)} {description} files: {e}'
            )
            return [], PublishResult(len(files), 0, len(files))

    def publish_sequence_files(
        self, files: list[str], tag_id: str | None = None
    ) -> PublishResult:
        """
        Publish sequence files with metadata from the run registry. Files
        without a registry record are skipped (not an error), an ambiguous
        registry record aborts the run.

        Args:
            files: Staged sequence files
            tag_id: Adapter barcode of the analysis, required unless single cell

        Returns:
            PublishResult for the sequence files
        """
        context = self.context
        if not context.single_cell and tag_id is None:
            raise ConfigurationError('A defined tag_id argument is required')

        sample_to_primer = read_primers(self.config.runfolder_path)

        result = PublishResult()
        for file in files:
            try:
                records = self.resolver.lookup_registry(
                    context.run_name,
                    context.well_name,
                    tag_id,
                    context.plate_number,
                )
            except NotFoundWarning as w:
                self.publish_logger.warning(f'Skipping publishing {file}: {w}')
                result += PublishResult(files_seen=1)
                continue
            except ConfigurationError:
                raise
            except Exception:  # pylint: disable=broad-except
                self.publish_logger.exception(f'Registry lookup failed for {file}')
                result += PublishResult(files_seen=1, errors=1)
                continue

            id_product = product_id(
                context.run_name,
                context.well_label,
                tags=records[0].get_tags(),
                plate_number=context.plate_number,
            )
            primary = self.resolver.resolve_primary(
                context,
                data_level=DATA_LEVEL,
                id_product=id_product,
                extra_tags={
                    MetadataAttribute.ISOSEQ_PRIMERS: primer_for_file(
                        file, sample_to_primer
                    )
                },
                is_target=False,
            )
            secondary = self.resolver.resolve_secondary(records)

            result += self.publisher.publish_files(
                [file], self.dest_path, primary.merge(secondary)
            )

        self.publish_logger.info(
            f'Published {result.files_processed} / {result.files_seen} sequence '
            f'files for SMRT cell {context.well_name} run {context.run_name}'
        )
        return result

    def publish_non_sequence_files(self, files: list[str]) -> PublishResult:
        """Publish non sequence files with the analysis' identity metadata."""
        context = self.context
        result = self.publisher.publish_files(
            files, self.dest_path, self.resolver.resolve_context(context)
        )
        self.publish_logger.info(
            f'Published {result.files_processed} / {result.files_seen} non sequence '
            f'files for SMRT cell {context.well_name} run {context.run_name}'
        )
        return result

    def write_marker(self):
        """
        Write the loaded marker. The content goes to a temporary file which
        is renamed into place, so the marker is never partially written.
        Failures are raised, a missing marker would republish the analysis.
        """
        fd, tmp_path = tempfile.mkstemp(
            dir=self.config.runfolder_path, prefix='.', suffix=f'.{LOADED}'
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(f'Loaded on {datetime.now(timezone.utc).isoformat()}\n')
            os.replace(tmp_path, self.marker_path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        self.publish_logger.info(f'Marked {self.config.analysis_id} as loaded')
