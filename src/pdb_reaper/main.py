#!/usr/bin/env python3
"""
Kubernetes PDB Reaper - Main Application

Runs a single scan-and-reap pass and exits; scheduling is left to the
CronJob that invokes it.
"""

import sys

from pdb_reaper.config import Config
from pdb_reaper.exceptions import ConfigError, ExecutionError, PdbReaperError
from pdb_reaper.kubernetes_client import KubernetesClient
from pdb_reaper.logger import ReaperLogger, setup_logging
from pdb_reaper.metrics import PrometheusMetricsSink
from pdb_reaper.reaper import PdbReaper


def run(cfg, k8s_client, metrics, reaper_logger):
    """Execute one run and always attempt to deliver metrics afterwards"""
    reaper = PdbReaper(cfg, k8s_client, metrics=metrics, logger=reaper_logger)
    try:
        return reaper.execute()
    finally:
        metrics.push()


def main():
    """Main application entry point"""
    try:
        cfg = Config.from_env()
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(cfg.log_level, cfg.log_format)
    reaper_logger = ReaperLogger()
    reaper_logger.log_startup(cfg.to_dict())

    if cfg.dry_run:
        reaper_logger.log_info("Running in DRY RUN mode - no PDBs will be deleted")

    try:
        k8s_client = KubernetesClient.from_config(cfg.kube_config_path, cfg.in_cluster)
        metrics = PrometheusMetricsSink(cfg.pushgateway_url, cfg.metrics_job_name)
        run(cfg, k8s_client, metrics, reaper_logger)
    except ExecutionError as e:
        reaper_logger.log_error(e, context=f"execution failed during {e.stage}")
        return 1
    except PdbReaperError as e:
        reaper_logger.log_error(e, context="startup")
        return 1
    except Exception as e:
        reaper_logger.log_error(e, context="unexpected failure")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
