"""File classification service for partitioning candidate files."""

import os
import re
from dataclasses import dataclass
from typing import Callable

from seqpublish.models import FileKind, SourceFile

# IsoSeq analysis outputs
SEQUENCE_FILE_FORMAT = 'bam'
SEQUENCE_FASTA_FORMAT = 'fasta'
SINGLE_CELL_PREFIX = 'scisoseq'

SEQUENCE_PATTERN = (
    rf'(flnc.*{SEQUENCE_FILE_FORMAT}|mapped.*{SEQUENCE_FILE_FORMAT}'
    rf'|{SINGLE_CELL_PREFIX}.*{SEQUENCE_FILE_FORMAT}|{SEQUENCE_FASTA_FORMAT})$'
)
EXCLUDED_PATTERN = r'segmented'


@dataclass(frozen=True)
class ClassificationRule:
    """A predicate over a file name and the kind it assigns."""

    predicate: Callable[[str], bool]
    kind: FileKind

    @classmethod
    def from_pattern(
        cls, pattern: str | None, kind: FileKind
    ) -> 'ClassificationRule':
        """Rule matching names the pattern is found in. No pattern never matches."""
        if not pattern:
            return cls(lambda name: False, kind)
        regex = re.compile(pattern)
        return cls(lambda name: regex.search(name) is not None, kind)


class FileClassifier:
    """
    Partition the files in a directory into sequence, non-sequence and
    excluded files.

    Rules are evaluated in order and the first match wins, so exclusion
    takes precedence over the sequence pattern. Anything unmatched is
    a non-sequence file.
    """

    def __init__(
        self,
        include_pattern: str = SEQUENCE_PATTERN,
        exclude_pattern: str | None = EXCLUDED_PATTERN,
    ):
        """
        Args:
            include_pattern: Regex over names identifying sequence files
            exclude_pattern: Regex over names identifying excluded files
        """
        self.rules = [
            ClassificationRule.from_pattern(exclude_pattern, FileKind.EXCLUDED),
            ClassificationRule.from_pattern(include_pattern, FileKind.SEQUENCE),
        ]

    def classify_name(self, name: str) -> FileKind:
        """Classify a single file name, without touching the filesystem."""
        for rule in self.rules:
            if rule.predicate(name):
                return rule.kind
        return FileKind.NON_SEQUENCE

    def list_files(self, directory: str, recursive: bool = False) -> list[str]:
        """
        List the regular files in a directory, following symlinks.

        Args:
            directory: Directory to list
            recursive: Descend into sub-directories

        Returns:
            Sorted names, relative to directory
        """
        if not recursive:
            with os.scandir(directory) as entries:
                return sorted(
                    entry.name
                    for entry in entries
                    if entry.is_file(follow_symlinks=True)
                )

        # os.walk swallows errors by default
        def _raise(error: OSError):
            raise error

        names = []
        walk = os.walk(directory, onerror=_raise, followlinks=True)
        for root, _dirs, files in walk:
            for filename in files:
                path = os.path.join(root, filename)
                if os.path.isfile(path):
                    names.append(os.path.relpath(path, directory))
        return sorted(names)

    def classify(
        self, directory: str, recursive: bool = False
    ) -> tuple[list[SourceFile], list[SourceFile], list[SourceFile]]:
        """
        Classify every file in a directory.

        Args:
            directory: Directory to scan
            recursive: Descend into sub-directories. Names are then paths
                relative to directory and patterns are matched against them.

        Returns:
            (sequence files, non-sequence files, excluded files)
        """
        partitions: dict[FileKind, list[SourceFile]] = {
            kind: [] for kind in FileKind
        }
        for name in self.list_files(directory, recursive=recursive):
            kind = self.classify_name(name)
            partitions[kind].append(
                SourceFile(path=os.path.join(directory, name), kind=kind, name=name)
            )

        return (
            partitions[FileKind.SEQUENCE],
            partitions[FileKind.NON_SEQUENCE],
            partitions[FileKind.EXCLUDED],
        )


def classify(
    directory: str, include_pattern: str, exclude_pattern: str | None = None
) -> tuple[list[SourceFile], list[SourceFile], list[SourceFile]]:
    """Classify the files in a directory with the given patterns."""
    return FileClassifier(include_pattern, exclude_pattern).classify(directory)
