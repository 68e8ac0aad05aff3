"""Archiving and publishing of run folder logs."""

import os
import re
import tarfile
import tempfile

from seqpublish.adapters import ObjectId, ObjectStore
from seqpublish.exceptions import ConfigurationError, StagingError
from seqpublish.models import (
    LogPublishContext,
    MetadataAttribute,
    MetadataRecord,
    SourceFile,
)

from .file_classifier import FileClassifier
from .publish_logging import PublishLogger

# Everything is a log unless it is bulk sequence or intensity data
LOG_INCLUDED_PATTERN = r'.'
LOG_EXCLUDED_PATTERN = (
    r'(\.(bam|bai|cram|crai|fastq|fq|bcl|cbcl|locs|filter|bci|pbi)(\.gz)?$'
    r'|_logs\.tar\.xz$)'
)

# eg. 150910_HS40_17550_A_C75BCANXX
RUNFOLDER_PATTERN = re.compile(r'^\d{6}_[A-Za-z0-9-]+_(\d+)(_|$)')


def infer_id_run(runfolder_name: str) -> int | None:
    """Get the run id embedded in a run folder name, if there is one."""
    match = RUNFOLDER_PATTERN.match(runfolder_name)
    return int(match.group(1)) if match else None


def log_context(runfolder_path: str, id_run: int | None = None) -> LogPublishContext:
    """
    Build the context for archiving a run folder's logs. The run id is
    inferred from the run folder name when not given.
    """
    runfolder_name = os.path.basename(os.path.normpath(runfolder_path))
    if id_run is None:
        id_run = infer_id_run(runfolder_name)
    if id_run is None:
        raise ConfigurationError(
            f'No id_run given and none could be inferred from {runfolder_name}'
        )
    return LogPublishContext(id_run=int(id_run), runfolder_name=runfolder_name)


class LogArchiver:
    """
    Bundles the logs of a run folder, including pipeline definitions and
    product release manifests, into one compressed archive and publishes it
    as a single object.
    """

    def __init__(
        self,
        store: ObjectStore,
        classifier: FileClassifier | None = None,
        publish_logger: PublishLogger | None = None,
    ):
        """
        Args:
            store: Object store to publish to
            classifier: File classifier, everything but bulk data by default
            publish_logger: PublishLogger instance
        """
        self.store = store
        self.classifier = classifier or FileClassifier(
            LOG_INCLUDED_PATTERN, LOG_EXCLUDED_PATTERN
        )
        self.publish_logger = publish_logger or PublishLogger(
            'logs', 'seqpublish.logs'
        )

    def find_logs(self, source_directory: str) -> list[SourceFile]:
        """Find all log files under a directory."""
        logs, _others, excluded = self.classifier.classify(
            source_directory, recursive=True
        )
        self.publish_logger.info(
            f'Found {len(logs)} log files under {source_directory}, '
            f'skipping {len(excluded)} data files'
        )
        return logs

    def create_archive(self, archive_path: str, logs: list[SourceFile]) -> str:
        """
        Write logs to an xz compressed tar archive, named by their path
        relative to the source directory. The archive is read back and
        must hold exactly the given files, with symlinks replaced by the
        content they point to.
        """
        with tarfile.open(archive_path, 'w:xz', dereference=True) as tar:
            for log in logs:
                tar.add(log.path, arcname=log.name, recursive=False)

        with tarfile.open(archive_path, 'r:xz') as tar:
            members = tar.getnames()
            not_files = [m.name for m in tar.getmembers() if not m.isfile()]

        if not_files:
            raise StagingError(
                f'Archive {archive_path} has members which are not regular '
                f'files: {", ".join(sorted(not_files))}'
            )
        expected = {log.name for log in logs}
        if len(members) != len(logs) or set(members) != expected:
            missing = sorted(expected - set(members))
            raise StagingError(
                f'Archive {archive_path} has {len(members)} members, expected '
                f'{len(logs)}; missing {", ".join(missing) or "none"}'
            )
        return archive_path

    def archive_and_publish(
        self,
        source_directory: str,
        context: LogPublishContext,
        destination: str,
    ) -> ObjectId:
        """
        Archive the logs under source_directory and publish the archive.

        Args:
            source_directory: Run folder to collect logs from
            context: Run id and name of the run folder
            destination: Collection the archive is published into

        Returns:
            Id of the published archive
        """
        logs = self.find_logs(source_directory)
        if not logs:
            raise StagingError(f'No log files found under {source_directory}')

        with tempfile.TemporaryDirectory() as tmpdir:
            archive_path = self.create_archive(
                os.path.join(tmpdir, context.archive_name), logs
            )
            self.publish_logger.info(
                f'Created {context.archive_name} with {len(logs)} files'
            )

            destination = destination.rstrip('/')
            self.store.create_collection(destination)
            object_id = self.store.put_object(
                archive_path, f'{destination}/{context.archive_name}'
            )
            self.store.attach_metadata(
                object_id,
                MetadataRecord.build(
                    {
                        MetadataAttribute.ID_RUN: context.id_run,
                        MetadataAttribute.RUNFOLDER: context.runfolder_name,
                    }
                ),
            )

        self.publish_logger.info(f'Published log archive {object_id}')
        return object_id

    def publish_logs(
        self, runfolder_path: str, destination: str, id_run: int | None = None
    ) -> ObjectId:
        """Archive and publish the logs of a run folder."""
        return self.archive_and_publish(
            runfolder_path, log_context(runfolder_path, id_run), destination
        )
