"""
Logging configuration for PDB Reaper
"""

import logging
import sys
from typing import Any, Dict, Iterable
import structlog
from colorama import init as colorama_init

from pdb_reaper import __version__


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Setup structured logging for the application"""

    if fmt != "json":
        # Initialize colorama for cross-platform colored output
        colorama_init()

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if fmt == "json"
            else structlog.dev.ConsoleRenderer(colors=True)
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    # Suppress verbose kubernetes client logs
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance"""
    return structlog.get_logger(name)


class ReaperLogger:
    """Specialized logger for PDB Reaper operations.

    One instance is created per run and handed to the pipeline.
    """

    def __init__(self, logger=None):
        self.logger = logger or get_logger("pdb-reaper")

    def log_startup(self, config_dict: Dict[str, Any]) -> None:
        """Log application startup"""
        self.logger.info(
            "PDB Reaper starting up",
            version=__version__,
            config=config_dict
        )

    def log_run_start(self, run_id: str, dry_run: bool) -> None:
        self.logger.info(
            "Starting pdb-reaper run",
            run_id=run_id,
            dry_run=dry_run
        )

    def log_run_end(self, run_id: str, reapable: Iterable[str], reaped: Iterable[str],
                    dry_run: bool) -> None:
        """Log the end of a run with everything marked and deleted"""
        reapable = list(reapable)
        reaped = list(reaped)
        self.logger.info(
            "pdb-reaper run completed",
            run_id=run_id,
            dry_run=dry_run,
            reapable_count=len(reapable),
            reaped_count=len(reaped),
            reapable=reapable,
            reaped=reaped
        )

    def log_namespace_excluded(self, namespace: str) -> None:
        self.logger.warning(
            "Ignoring namespace since it's excluded",
            namespace=namespace
        )

    def log_pdb_ignored(self, pdb: str, reason: str, **kwargs) -> None:
        """Log when a PDB is skipped as non-blocking"""
        self.logger.info(
            "Ignoring PDB",
            pdb=pdb,
            reason=reason,
            **kwargs
        )

    def log_pdb_evaluated(self, pdb: str, check: str) -> None:
        self.logger.info(
            "Evaluating PDB",
            pdb=pdb,
            check=check
        )

    def log_pdb_reapable(self, pdbs: Iterable[str], reason: str, pods: Iterable[str] = ()) -> None:
        """Log when PDBs are marked for deletion"""
        self.logger.info(
            "PDB marked reapable",
            pdbs=list(pdbs),
            reason=reason,
            pods=list(pods)
        )

    def log_pdb_dump(self, pdb: str, dump: str) -> None:
        self.logger.info(
            "PDB dump",
            pdb=pdb,
            dump=dump
        )

    def log_dry_run_skip(self, pdb: str) -> None:
        self.logger.warning(
            "DryRun is on, PDB will not be deleted",
            pdb=pdb
        )

    def log_pdb_deleted(self, pdb: str) -> None:
        self.logger.info(
            "Deleted offending PDB",
            pdb=pdb
        )

    def log_pdb_already_gone(self, pdb: str) -> None:
        self.logger.info(
            "PDB already deleted",
            pdb=pdb
        )

    def log_metric_pushed(self, metric: str, value: float, tags: Dict[str, str]) -> None:
        self.logger.info(
            "Pushed new metric value",
            metric=metric,
            value=value,
            **tags
        )

    def log_error(self, error: Exception, context: str = None) -> None:
        """Log errors with context"""
        self.logger.error(
            "Error occurred",
            error=str(error),
            error_type=type(error).__name__,
            context=context,
            exc_info=True
        )

    def log_warning(self, message: str, **kwargs) -> None:
        """Log warnings"""
        self.logger.warning(message, **kwargs)

    def log_info(self, message: str, **kwargs) -> None:
        self.logger.info(message, **kwargs)

    def log_debug(self, message: str, **kwargs) -> None:
        """Log debug information"""
        self.logger.debug(message, **kwargs)
