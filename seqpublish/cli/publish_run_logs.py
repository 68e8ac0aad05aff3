"""CLI entry point for archiving run folder logs."""

from types import SimpleNamespace

import click
from cpg_utils.config import config_retrieve

from seqpublish.adapters import ObjectId, StorageClient
from seqpublish.models import LogPublishConfig
from seqpublish.services import LogArchiver, PublishLogger


def publish_logs(config_args: SimpleNamespace) -> ObjectId:
    """
    Entry point for archiving the logs of a run folder.

    Args:
        config_args: Publish arguments for configuration
    """
    config = LogPublishConfig.from_cli_args(config_args)
    archiver = LogArchiver(
        StorageClient(
            project=config_retrieve(['seqpublish', 'gcp_project'], default=None)
        ),
        publish_logger=PublishLogger(
            'logs', 'seqpublish.logs', level=config.log_level
        ),
    )
    return archiver.publish_logs(
        config.runfolder_path, config.dest_collection, id_run=config.id_run
    )


@click.command()
@click.option(
    '--runfolder-path',
    '-r',
    required=True,
    type=click.Path(exists=True, file_okay=False),
    help='Run folder to collect logs from',
)
@click.option(
    '--id-run',
    '-i',
    type=int,
    help='Run id, inferred from the run folder name if not given',
)
@click.option(
    '--dest-collection',
    '-d',
    help='Collection to publish into, defaults to seqpublish.log_dest_collection',
)
def main(
    runfolder_path: str,
    id_run: int | None = None,
    dest_collection: str | None = None,
):
    """Archive the logs of a run folder and publish the archive."""
    config_args = SimpleNamespace(
        runfolder_path=runfolder_path,
        id_run=id_run,
        dest_collection=dest_collection,
    )

    object_id = publish_logs(config_args)
    click.echo(f'Published {object_id}')


if __name__ == '__main__':
    main()  # pylint: disable=no-value-for-parameter
