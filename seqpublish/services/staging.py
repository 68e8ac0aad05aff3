"""
Staging of files before publishing: copy into a scratch directory, rename
with the analysis prefix and compress text formats.
"""

import logging
import os
import shlex
import signal
import subprocess
from abc import ABC, abstractmethod

from seqpublish.exceptions import StagingError
from seqpublish.models import AnalysisContext, SourceFile
from seqpublish.models.value_objects import (
    DEFAULT_BWLIMIT,
    DEFAULT_NICE_LEVEL,
    DEFAULT_STAGING_TIMEOUT,
)

logger = logging.getLogger(__name__)

FASTA_FORMAT = 'fasta'
GFF_FORMAT = 'gff'
GZIP_SUFFIX = 'gz'


class StagingStep(ABC):
    """One step applied to a staged file."""

    @abstractmethod
    def commands(self, source: str, staged: str) -> tuple[list[str], str]:
        """
        Build the shell commands for this step.

        Args:
            source: The original file
            staged: Current path of the staged file

        Returns:
            (commands, path of the staged file after the step)
        """


class CopyStep(StagingStep):
    """Copy a file, following symlinks, with reduced priority and bandwidth."""

    def __init__(
        self, nice_level: int = DEFAULT_NICE_LEVEL, bwlimit: int = DEFAULT_BWLIMIT
    ):
        self.nice_level = nice_level
        self.bwlimit = bwlimit

    def commands(self, source: str, staged: str) -> tuple[list[str], str]:
        return [
            f'nice -n {self.nice_level} rsync -av -L {shlex.quote(source)} '
            f'{shlex.quote(staged)} --bwlimit={self.bwlimit}'
        ], staged


class CompressStep(StagingStep):
    """gzip a staged file if it has a given format."""

    def __init__(self, file_format: str, nice_level: int = DEFAULT_NICE_LEVEL):
        self.file_format = file_format
        self.nice_level = nice_level

    def applies_to(self, staged: str) -> bool:
        """Check if the staged file has this step's format"""
        return staged.endswith(f'.{self.file_format}')

    def commands(self, source: str, staged: str) -> tuple[list[str], str]:
        if not self.applies_to(staged):
            return [], staged
        return (
            [f'nice -n {self.nice_level} gzip {shlex.quote(staged)}'],
            f'{staged}.{GZIP_SUFFIX}',
        )


def last_line(text: str | None) -> str:
    """Get the last non-empty line of some output."""
    lines = [line for line in (text or '').splitlines() if line.strip()]
    return lines[-1].strip() if lines else ''


class StagingTransformer:
    """
    Copies, renames and compresses a batch of files in a single external
    pipeline. Any failing step fails the whole batch.
    """

    def __init__(
        self,
        steps: list[StagingStep] | None = None,
        timeout: int | None = DEFAULT_STAGING_TIMEOUT,
        shell: str = '/bin/bash',
    ):
        """
        Args:
            steps: Steps applied in order to each file, by default copy then
                compress fasta and gff files
            timeout: Seconds to wait for the pipeline, None for no limit
            shell: Shell the pipeline runs in, needs pipefail support
        """
        self.steps = steps or [
            CopyStep(),
            CompressStep(FASTA_FORMAT),
            CompressStep(GFF_FORMAT),
        ]
        self.timeout = timeout
        self.shell = shell

    @classmethod
    def from_config(cls, nice_level: int, bwlimit: int, timeout: int):
        """Create a transformer with the default steps and given limits."""
        return cls(
            steps=[
                CopyStep(nice_level, bwlimit),
                CompressStep(FASTA_FORMAT, nice_level),
                CompressStep(GFF_FORMAT, nice_level),
            ],
            timeout=timeout,
        )

    def staged_name(self, source: str, context: AnalysisContext) -> str:
        """Get the name a file is copied to, <analysisId>.<movieName>.<name>."""
        return f'{context.file_prefix}.{os.path.basename(source)}'

    def build_commands(
        self, scratch_dir: str, files: list[str], context: AnalysisContext
    ) -> tuple[list[str], list[str]]:
        """
        Build the commands staging each file.

        Returns:
            (commands, staged paths in input order)
        """
        commands = []
        staged_paths = []
        for source in files:
            staged = os.path.join(scratch_dir, self.staged_name(source, context))
            for step in self.steps:
                step_commands, staged = step.commands(source, staged)
                commands.extend(step_commands)
            staged_paths.append(staged)
        return commands, staged_paths

    def run_pipeline(self, scratch_dir: str, commands: list[str]):
        """
        Run all commands as one pipeline, raising StagingError on failure.
        The pipeline runs in its own process group, which is killed as a
        whole when the timeout expires.
        """
        script = (
            f'set -o pipefail && mkdir -p {shlex.quote(scratch_dir)} '
            f'&& ({" && ".join(commands)})'
        )
        try:
            process = subprocess.Popen(  # pylint: disable=consider-using-with
                [self.shell, '-c', script],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                start_new_session=True,
            )
        except OSError as e:
            raise StagingError(last_line(str(e))) from e

        try:
            stdout, stderr = process.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            os.killpg(process.pid, signal.SIGKILL)
            process.communicate()
            raise StagingError(
                f'Staging did not finish within {self.timeout} seconds'
            ) from e

        if process.returncode != 0:
            # only keep the last line, rsync and gzip output is verbose
            raise StagingError(
                last_line(stderr)
                or last_line(stdout)
                or f'Staging pipeline exited with status {process.returncode}'
            )

    def stage(
        self,
        scratch_dir: str,
        files: list[str | SourceFile],
        context: AnalysisContext,
    ) -> list[str]:
        """
        Stage a batch of files into scratch_dir.

        Args:
            scratch_dir: Directory to copy into, created if missing
            files: Files to stage
            context: The analysis the files belong to

        Returns:
            Staged paths, same length and order as files
        """
        if not files:
            return []

        sources = [str(f) for f in files]
        commands, staged_paths = self.build_commands(scratch_dir, sources, context)
        logger.debug(f'Staging {len(sources)} files to {scratch_dir}')
        self.run_pipeline(scratch_dir, commands)
        return staged_paths
