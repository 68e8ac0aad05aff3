"""Value objects for the publishing pipeline - immutable data structures."""

import os
import re
from dataclasses import dataclass
from enum import Enum

from cpg_utils.config import config_retrieve

CONFIG_SECTION = 'seqpublish'

# Rate limits applied to the external staging pipeline
DEFAULT_NICE_LEVEL = 19
DEFAULT_BWLIMIT = 48_000
DEFAULT_STAGING_TIMEOUT = 3600
DEFAULT_LOG_LEVEL = 'INFO'

WELL_PADDING = re.compile(r'^([A-Za-z]+)0*(\d+)$')


class FileKind(Enum):
    """How a candidate file is handled by the publisher."""

    SEQUENCE = 'sequence'
    NON_SEQUENCE = 'non-sequence'
    EXCLUDED = 'excluded'


@dataclass(frozen=True)
class SourceFile:
    """A classified file on the local filesystem."""

    path: str
    kind: FileKind
    name: str

    @property
    def is_sequence(self) -> bool:
        """Check if the file holds sequence data."""
        return self.kind == FileKind.SEQUENCE

    def __str__(self) -> str:
        return self.path


def normalize_well_label(well_name: str) -> str:
    """
    Remove zero padding from a well name, eg. A01 -> A1.
    Names which don't look like a plate well are returned unchanged.
    """
    match = WELL_PADDING.match(well_name)
    if not match:
        return well_name
    return f'{match.group(1)}{int(match.group(2))}'


@dataclass(frozen=True)
class AnalysisContext:  # pylint: disable=too-many-instance-attributes
    """Identifiers for one analysis, read from its sidecar descriptor."""

    run_name: str
    well_name: str
    movie_name: str
    analysis_id: str
    plate_number: int | None = None
    barcode: str | None = None
    single_cell: bool = False

    @property
    def well_label(self) -> str:
        """Get the well name without zero padding."""
        return normalize_well_label(self.well_name)

    @property
    def smrt_name(self) -> str:
        """Get the name of the SMRT cell collection, eg. 1_A01."""
        if self.plate_number is not None:
            return f'{self.plate_number}_{self.well_name}'
        return self.well_name

    @property
    def file_prefix(self) -> str:
        """Get the prefix given to every staged file."""
        return f'{self.analysis_id}.{self.movie_name}'


@dataclass(frozen=True)
class LogPublishContext:
    """Identifiers for a run folder whose logs are archived."""

    id_run: int
    runfolder_name: str

    @property
    def archive_name(self) -> str:
        """Get the file name of the log archive."""
        return f'{self.id_run}_logs.tar.xz'


@dataclass(frozen=True)
class PublishResult:
    """Counts accumulated over one publish invocation."""

    files_seen: int = 0
    files_processed: int = 0
    errors: int = 0

    def __post_init__(self):
        if self.files_processed > self.files_seen:
            raise ValueError(
                f'Processed more files ({self.files_processed}) '
                f'than were seen ({self.files_seen})'
            )

    def __add__(self, other: 'PublishResult') -> 'PublishResult':
        return PublishResult(
            self.files_seen + other.files_seen,
            self.files_processed + other.files_processed,
            self.errors + other.errors,
        )

    def as_tuple(self) -> tuple[int, int, int]:
        """Get (files_seen, files_processed, errors)."""
        return self.files_seen, self.files_processed, self.errors

    @property
    def is_complete(self) -> bool:
        """Check if the run published everything and may be marked as loaded."""
        return (
            self.files_processed > 1
            and self.files_processed == self.files_seen
            and self.errors == 0
        )


def _config_value(key: str, value, default):
    """Prefer an explicit value, then the config file, then the default."""
    if value is not None:
        return value
    return config_retrieve([CONFIG_SECTION, key], default=default)


@dataclass(frozen=True)
class PublishConfig:  # pylint: disable=too-many-instance-attributes
    """Immutable configuration for analysis publishing runs."""

    runfolder_path: str
    analysis_id: str
    dest_collection: str
    single_cell: bool = False
    nice_level: int = DEFAULT_NICE_LEVEL
    bwlimit: int = DEFAULT_BWLIMIT
    staging_timeout: int = DEFAULT_STAGING_TIMEOUT
    log_file: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_cli_args(cls, args) -> 'PublishConfig':
        """Factory method from CLI arguments."""
        dest_collection = _config_value('dest_collection', args.dest_collection, None)
        if not dest_collection:
            raise ValueError('A destination collection is required')

        return cls(
            runfolder_path=os.path.abspath(args.runfolder_path),
            analysis_id=args.analysis_id,
            dest_collection=dest_collection.rstrip('/'),
            single_cell=bool(args.single_cell),
            nice_level=int(_config_value('nice_level', None, DEFAULT_NICE_LEVEL)),
            bwlimit=int(_config_value('bwlimit', None, DEFAULT_BWLIMIT)),
            staging_timeout=int(
                _config_value('staging_timeout', None, DEFAULT_STAGING_TIMEOUT)
            ),
            log_file=getattr(args, 'log_file', None),
            log_level=_config_value('log_level', None, DEFAULT_LOG_LEVEL),
        )


@dataclass(frozen=True)
class LogPublishConfig:
    """Immutable configuration for log archiving runs."""

    runfolder_path: str
    dest_collection: str
    id_run: int | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_cli_args(cls, args) -> 'LogPublishConfig':
        """Factory method from CLI arguments."""
        dest_collection = _config_value(
            'log_dest_collection', args.dest_collection, None
        )
        if not dest_collection:
            raise ValueError('A destination collection is required')

        return cls(
            runfolder_path=os.path.abspath(args.runfolder_path),
            dest_collection=dest_collection.rstrip('/'),
            id_run=args.id_run,
            log_level=_config_value('log_level', None, DEFAULT_LOG_LEVEL),
        )
