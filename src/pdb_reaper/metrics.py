"""
Metrics sink for reaper results - Prometheus only
"""

from typing import Dict, Optional

import requests
from prometheus_client import CollectorRegistry, Gauge, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from pdb_reaper.exceptions import MetricsError
from pdb_reaper.logger import get_logger

logger = get_logger(__name__)

PDB_REAPER_RESULT_METRIC = "governor_pdb_reaper_result"

METRIC_LABELS = ("namespace", "pdb", "reason")

_DESCRIPTIONS = {
    PDB_REAPER_RESULT_METRIC: "Result of pdb-reaper evaluation per PodDisruptionBudget and reason",
}


class PrometheusMetricsSink:
    """Holds gauges in a private registry and pushes them once per run"""

    def __init__(self, pushgateway_url: Optional[str] = None, job_name: str = "pdb_reaper",
                 registry: Optional[CollectorRegistry] = None, timeout: int = 10):
        self.pushgateway_url = pushgateway_url.rstrip("/") if pushgateway_url else None
        self.job_name = job_name
        self.registry = registry or CollectorRegistry()
        self.timeout = timeout
        self._gauges: Dict[str, Gauge] = {}

    def set_gauge(self, name: str, tags: Dict[str, str], value: float) -> None:
        """Set a labelled gauge value.

        Raises:
            MetricsError: if the tags do not match the gauge's labels.
        """
        try:
            gauge = self._gauge(name)
            gauge.labels(**{label: tags[label] for label in METRIC_LABELS}).set(value)
        except (KeyError, ValueError) as e:
            raise MetricsError(f"failed to set metric {name} with tags {tags}: {e}") from e

    def _gauge(self, name: str) -> Gauge:
        if name not in self._gauges:
            self._gauges[name] = Gauge(
                name,
                _DESCRIPTIONS.get(name, name),
                list(METRIC_LABELS),
                registry=self.registry,
            )
        return self._gauges[name]

    def exposition(self) -> bytes:
        return generate_latest(self.registry)

    def push(self) -> bool:
        """Push every gauge to the Pushgateway.

        Returns False without raising when no gateway is configured or the
        push fails; metric delivery never decides the outcome of a run.
        """
        if not self.pushgateway_url:
            logger.debug("No Pushgateway configured, metrics kept in-process")
            return False

        url = f"{self.pushgateway_url}/metrics/job/{self.job_name}"
        try:
            response = requests.put(
                url,
                data=self.exposition(),
                headers={"Content-Type": CONTENT_TYPE_LATEST},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Failed to push to Pushgateway", url=url, error=str(e))
            return False

        logger.debug("Successfully pushed metrics to Pushgateway", url=url)
        return True
