import logging
import os

from seqpublish.models import PublishConfig, PublishResult


def setup_logger(
    label: str, name: str, level: str = 'INFO', log_file: str | None = None
) -> logging.LoggerAdapter:
    """
    Set up logger for publishing runs. A logger set up before keeps its
    console handler, and gains a file handler for each new log file.
    """
    logger = logging.getLogger(name)

    formatter = logging.Formatter(
        fmt='%(asctime)s %(levelname)s %(module)s:%(lineno)d - %(label)s :: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    # Console handler, only once per logger
    if not any(
        isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    ):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # Optional file handler, kept alongside the run's other outputs
    if log_file and not any(
        isinstance(h, logging.FileHandler)
        and h.baseFilename == os.path.abspath(log_file)
        for h in logger.handlers
    ):
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    return logging.LoggerAdapter(logger, {'label': label})


class PublishLogger:
    """Logging wrapper for publishing operations."""

    def __init__(
        self,
        label: str,
        name: str,
        log_file: str | None = None,
        level: str = 'INFO',
    ):
        """Initialize the publish logger."""
        self.log_file = log_file
        self.logger = setup_logger(label, name, level=level, log_file=log_file)

    def info(self, message: str):
        """Log an info message."""
        self.logger.info(message)

    def info_nl(self, message: str):
        """Log an info message and a newline."""
        self.logger.info(message)
        self.logger.info('')

    def warning(self, message: str):
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str):
        """Log an error message."""
        self.logger.error(message)

    def exception(self, message: str):
        """Log an error message with the current exception's traceback."""
        self.logger.exception(message)

    def log_initialization(self, config: PublishConfig):
        """Log publishing run details."""
        self.info('Initializing analysis publish'.center(50, '~'))
        self.info('')
        self.info(f'Run folder:          {config.runfolder_path}')
        self.info(f'Analysis:            {config.analysis_id}')
        self.info(f'Destination:         {config.dest_collection}')
        self.info(f'Single cell:         {config.single_cell}')
        self.info('')

    def log_result_summary(self, result: PublishResult) -> dict[str, int]:
        """Log publish result summary."""
        stats = {
            'files_seen': result.files_seen,
            'files_processed': result.files_processed,
            'errors': result.errors,
        }

        self.info_nl('Publish Summary'.center(50, '~'))
        self.info(f'Files seen:          {stats["files_seen"]}')
        self.info(f'Files published:     {stats["files_processed"]}')
        self.info_nl(f'Errors:              {stats["errors"]}')
        return stats
