"""
Scan the cluster for PodDisruptionBudgets that block voluntary disruption
and reap the offending ones.

A run is one pass of :class:`PdbReaper`: ``scan`` groups PDBs by namespace,
then three reap phases run in order. The first two only mark PDBs as
reapable; the last one deletes what was marked.
"""

import json
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from kubernetes import client

from pdb_reaper.config import Config
from pdb_reaper.events import ReapReason, build_event, namespaced_name
from pdb_reaper.exceptions import (
    ClusterError,
    ExecutionError,
    IntOrPercentError,
    MetricsError,
    PdbReaperError,
    SelectorError,
)
from pdb_reaper.logger import ReaperLogger
from pdb_reaper.metrics import PDB_REAPER_RESULT_METRIC
from pdb_reaper.predicates import (
    contains_duplicate_pods,
    is_blocking,
    is_misconfigured,
    is_pods_in_crashloop,
    is_pods_in_not_ready_state,
)
from pdb_reaper.selectors import selector_to_string


def pdb_key(pdb) -> Tuple[str, str]:
    return pdb.metadata.namespace, pdb.metadata.name


@dataclass
class ReaperContext:
    """Configuration and accumulators for a single run"""

    config: Config
    logger: ReaperLogger
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # namespace -> PDBs, for namespaces holding more than one budget
    namespaces_with_multiple_pdbs: Dict[str, List] = field(default_factory=dict)
    # namespace -> PDBs that allow no disruption but expect pods
    cluster_blocking_pdbs: Dict[str, List] = field(default_factory=dict)

    # (namespace, name) -> PDB; a PDB flagged by several checks is held once
    reapable_pdbs: Dict[Tuple[str, str], object] = field(default_factory=dict)
    reaped_pdbs: List[str] = field(default_factory=list)

    @property
    def reapable_count(self) -> int:
        return len(self.reapable_pdbs)

    @property
    def reaped_count(self) -> int:
        return len(self.reaped_pdbs)

    def add_reapable(self, *pdbs) -> None:
        for pdb in pdbs:
            self.reapable_pdbs.setdefault(pdb_key(pdb), pdb)


class PdbReaper:
    """Runs scan and reap against a cluster accessor and a metrics sink.

    ``kubernetes_client`` must provide ``list_pod_disruption_budgets``,
    ``list_pods``, ``delete_pod_disruption_budget`` and ``create_event``.
    ``metrics`` must provide ``set_gauge`` and may be None.
    """

    def __init__(self, config: Config, kubernetes_client, metrics=None,
                 logger: Optional[ReaperLogger] = None):
        self.k8s_client = kubernetes_client
        self.metrics = metrics
        self.context = ReaperContext(config=config, logger=logger or ReaperLogger())
        self._serializer = None

    @property
    def config(self) -> Config:
        return self.context.config

    @property
    def logger(self) -> ReaperLogger:
        return self.context.logger

    def execute(self) -> ReaperContext:
        """Run scan and all reap phases once.

        Raises:
            ExecutionError: naming the stage that aborted the run.
        """
        ctx = self.context
        self.logger.log_run_start(ctx.run_id, self.config.dry_run)

        try:
            self.scan()
        except PdbReaperError as e:
            raise ExecutionError("failed to scan cluster", stage="scan", cause=e) from e

        self.reap()

        self.logger.log_run_end(
            ctx.run_id,
            reapable=[f"{ns}/{name}" for ns, name in ctx.reapable_pdbs],
            reaped=ctx.reaped_pdbs,
            dry_run=self.config.dry_run,
        )
        return ctx

    def scan(self) -> None:
        """Group every non-excluded PDB by namespace and pick out blocking ones"""
        ctx = self.context
        pdbs = self.k8s_client.list_pod_disruption_budgets("")

        namespaced_pdbs: Dict[str, List] = {}
        excluded = set()
        for pdb in pdbs:
            namespace = pdb.metadata.namespace
            if self.config.is_excluded(namespace):
                if namespace not in excluded:
                    excluded.add(namespace)
                    self.logger.log_namespace_excluded(namespace)
                continue
            namespaced_pdbs.setdefault(namespace, []).append(pdb)

        for namespace, namespace_pdbs in namespaced_pdbs.items():
            if len(namespace_pdbs) > 1:
                ctx.namespaces_with_multiple_pdbs[namespace] = list(namespace_pdbs)

        for namespace, namespace_pdbs in namespaced_pdbs.items():
            for pdb in namespace_pdbs:
                name = namespaced_name(pdb)
                if not is_blocking(pdb):
                    self.logger.log_pdb_ignored(
                        name,
                        "non-blocking",
                        disruptions_allowed=pdb.status.disruptions_allowed if pdb.status else None,
                        expected_pods=pdb.status.expected_pods if pdb.status else None,
                    )
                    continue

                ctx.cluster_blocking_pdbs.setdefault(namespace, []).append(pdb)
                self.expose_metric(pdb, ReapReason.DELETED, 0)

    def reap(self) -> None:
        phases = (
            ("failed to handle multiple PDBs", self.handle_multiple_pdbs),
            ("failed to handle blocking PDBs", self.handle_blocking_pdbs),
            ("failed to handle reapable PDBs", self.handle_reapable_pdbs),
        )
        for message, phase in phases:
            try:
                phase()
            except PdbReaperError as e:
                raise ExecutionError(f"failed to reap PDBs: {message}", stage="reap", cause=e) from e

    def handle_multiple_pdbs(self) -> None:
        """Mark every PDB in a namespace whose budgets select the same pod"""
        if not self.config.reap_multiple:
            return

        for namespace, pdbs in self.context.namespaces_with_multiple_pdbs.items():
            namespace_pods = []
            for pdb in pdbs:
                name = namespaced_name(pdb)
                self.logger.log_pdb_evaluated(name, "multiple")
                namespace_pods.extend(self._list_pdb_pods(namespace, pdb, name))

            if contains_duplicate_pods(namespace_pods):
                self.logger.log_pdb_reapable(
                    [namespaced_name(pdb) for pdb in pdbs],
                    ReapReason.MULTIPLE.value,
                    sorted({namespaced_name(pod) for pod in namespace_pods}),
                )
                self.context.add_reapable(*pdbs)
                for pdb in pdbs:
                    self.publish_event(pdb, ReapReason.MULTIPLE)
                    self.expose_metric(pdb, ReapReason.MULTIPLE, 1)
            else:
                for pdb in pdbs:
                    self.expose_metric(pdb, ReapReason.MULTIPLE, 0)

    def handle_blocking_pdbs(self) -> None:
        """Run the enabled checks against every blocking PDB"""
        cfg = self.config

        for namespace, pdbs in self.context.cluster_blocking_pdbs.items():
            for pdb in pdbs:
                name = namespaced_name(pdb)
                self.logger.log_pdb_evaluated(name, "blocking")
                pods = self._list_pdb_pods(namespace, pdb, name)

                misconfigured = False
                if cfg.reap_misconfigured:
                    try:
                        misconfigured = is_misconfigured(pdb, pods)
                    except IntOrPercentError as e:
                        raise IntOrPercentError(f"failed to determine if PDB {name} is misconfigured: {e}") from e
                self._record(pdb, ReapReason.BLOCKING, misconfigured)

                crash_loop = cfg.reap_crashloop and is_pods_in_crashloop(
                    pods, cfg.crashloop_restart_threshold, cfg.all_crashloop
                )
                self._record(pdb, ReapReason.CRASH_LOOP, crash_loop, pods)

                not_ready = cfg.reap_not_ready and is_pods_in_not_ready_state(
                    pods, cfg.not_ready_threshold_seconds, cfg.all_not_ready
                )
                self._record(pdb, ReapReason.NOT_READY, not_ready, pods)

    def handle_reapable_pdbs(self) -> None:
        """Dump and delete every PDB marked reapable, unless dry-run is on"""
        ctx = self.context

        for (namespace, name), pdb in list(ctx.reapable_pdbs.items()):
            full_name = f"{namespace}/{name}"
            self.logger.log_info("Deleting offending PDB", pdb=full_name)
            self.logger.log_pdb_dump(full_name, self.dump(pdb))

            if self.config.dry_run:
                self.logger.log_dry_run_skip(full_name)
                continue

            if not self.k8s_client.delete_pod_disruption_budget(namespace, name):
                self.logger.log_pdb_already_gone(full_name)
                continue

            self.logger.log_pdb_deleted(full_name)
            self.publish_event(pdb, ReapReason.DELETED)
            ctx.reaped_pdbs.append(full_name)
            self.expose_metric(pdb, ReapReason.DELETED, 1)

    def _record(self, pdb, reason: ReapReason, triggered: bool, pods=()) -> None:
        if not triggered:
            self.expose_metric(pdb, reason, 0)
            return

        self.logger.log_pdb_reapable(
            [namespaced_name(pdb)], reason.value, [namespaced_name(pod) for pod in pods]
        )
        self.context.add_reapable(pdb)
        self.publish_event(pdb, reason)
        self.expose_metric(pdb, reason, 1)

    def _list_pdb_pods(self, namespace: str, pdb, name: str) -> List:
        try:
            label_selector = selector_to_string(pdb.spec.selector)
        except SelectorError as e:
            raise SelectorError(
                f"failed to get label selector for PDB {name} from structured selector {pdb.spec.selector}: {e}"
            ) from e
        pods = self.k8s_client.list_pods(namespace, label_selector)
        self.logger.log_debug("Listed PDB pods", pdb=name, selector=label_selector, pod_count=len(pods))
        return pods

    def publish_event(self, pdb, reason: ReapReason) -> bool:
        """Create an Event for ``pdb``; failures are logged, not raised"""
        event = build_event(pdb, reason)
        try:
            self.k8s_client.create_event(pdb.metadata.namespace, event)
        except ClusterError as e:
            self.logger.log_warning(
                "Failed to publish event",
                pdb=namespaced_name(pdb),
                reason=reason.value,
                error=str(e),
            )
            return False
        return True

    def expose_metric(self, pdb, reason: ReapReason, value: float) -> bool:
        """Set the result gauge for ``pdb``; failures are logged, not raised"""
        if self.metrics is None:
            return False

        tags = {
            "namespace": pdb.metadata.namespace,
            "pdb": pdb.metadata.name,
            "reason": reason.value,
        }
        try:
            self.metrics.set_gauge(PDB_REAPER_RESULT_METRIC, tags, value)
        except MetricsError as e:
            self.logger.log_warning("Pushing metric error", error=str(e), **tags)
            return False

        self.logger.log_metric_pushed(PDB_REAPER_RESULT_METRIC, value, tags)
        return True

    def dump(self, pdb) -> str:
        if self._serializer is None:
            self._serializer = client.ApiClient()
        return json.dumps(self._serializer.sanitize_for_serialization(pdb), sort_keys=True)
