"""CLI entry points for the publishers."""

from .publish_isoseq_analysis import main as analysis_main, publish_analysis
from .publish_run_logs import main as logs_main, publish_logs

__all__ = [
    'analysis_main',
    'publish_analysis',
    'logs_main',
    'publish_logs',
]
