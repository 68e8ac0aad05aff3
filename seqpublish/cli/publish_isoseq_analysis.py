"""CLI entry point for publishing an analysis."""

from types import SimpleNamespace

import click
from cpg_utils.config import config_retrieve

from seqpublish.adapters import StorageClient
from seqpublish.data_access import RegistryDataAccess
from seqpublish.models import PublishConfig, PublishResult
from seqpublish.services import PublishOrchestrator


def publish_analysis(config_args: SimpleNamespace) -> PublishResult:
    """
    Entry point for publishing one analysis.

    Args:
        config_args: Publish arguments for configuration
    """
    config = PublishConfig.from_cli_args(config_args)
    orchestrator = PublishOrchestrator(
        config=config,
        store=StorageClient(
            project=config_retrieve(['seqpublish', 'gcp_project'], default=None)
        ),
        registry=RegistryDataAccess(),
    )
    return orchestrator.publish_files()


@click.command()
@click.option(
    '--runfolder-path',
    '-r',
    required=True,
    type=click.Path(exists=True, file_okay=False),
    help='Directory holding the analysis outputs and metadata',
)
@click.option(
    '--analysis-id',
    '-a',
    required=True,
    help='Id of the analysis being published',
)
@click.option(
    '--dest-collection',
    '-d',
    help='Collection to publish into, defaults to seqpublish.dest_collection',
)
@click.option(
    '--single-cell',
    is_flag=True,
    default=False,
    help='Set if the analysis is single cell',
)
@click.option(
    '--log-file',
    help='Also write the run log to this file',
)
def main(
    runfolder_path: str,
    analysis_id: str,
    dest_collection: str | None = None,
    single_cell: bool = False,
    log_file: str | None = None,
):
    """Publish the files of an analysis with metadata."""
    config_args = SimpleNamespace(
        runfolder_path=runfolder_path,
        analysis_id=analysis_id,
        dest_collection=dest_collection,
        single_cell=single_cell,
        log_file=log_file,
    )

    result = publish_analysis(config_args)
    num_files, num_processed, num_errors = result.as_tuple()
    click.echo(
        f'Processed {num_processed} / {num_files} files with {num_errors} errors'
    )
    if num_errors:
        raise SystemExit(1)


if __name__ == '__main__':
    main()  # pylint: disable=no-value-for-parameter
