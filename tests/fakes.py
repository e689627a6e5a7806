"""
In-memory stand-ins for the cluster accessor and metrics sink
"""

from kubernetes.client.rest import ApiException

from pdb_reaper.exceptions import ClusterError, MetricsError


def _matches(labels, label_selector):
    if not label_selector:
        return True
    for requirement in label_selector.split(","):
        key, _, value = requirement.partition("=")
        if labels.get(key) != value:
            return False
    return True


class FakeKubernetesClient:
    """Serves PDBs and pods from lists and records every mutation"""

    def __init__(self, pdbs=(), pods=()):
        self.pdbs = list(pdbs)
        self.pods = list(pods)
        self.events = []
        self.deleted = []
        self.pod_queries = []
        self.fail_list_pdbs = False
        self.fail_list_pods = False
        self.fail_events = False
        self.fail_delete = False
        self.already_gone = set()

    def list_pod_disruption_budgets(self, namespace=""):
        if self.fail_list_pdbs:
            raise ClusterError("failed to list PDBs: boom", operation="list-pdbs")
        return [p for p in self.pdbs if not namespace or p.metadata.namespace == namespace]

    def list_pods(self, namespace, label_selector):
        self.pod_queries.append((namespace, label_selector))
        if self.fail_list_pods:
            raise ClusterError(f"failed to list pods with selector '{label_selector}'",
                               operation="list-pods", obj=namespace)
        return [
            pod for pod in self.pods
            if pod.metadata.namespace == namespace and _matches(pod.metadata.labels or {}, label_selector)
        ]

    def delete_pod_disruption_budget(self, namespace, name):
        if self.fail_delete:
            raise ClusterError(f"failed to delete offending PDB {namespace}/{name}",
                               operation="delete-pdb", obj=f"{namespace}/{name}")
        if (namespace, name) in self.already_gone:
            return False
        self.deleted.append((namespace, name))
        return True

    def create_event(self, namespace, event):
        if self.fail_events:
            raise ClusterError("failed to publish event", operation="create-event") from ApiException(status=500)
        self.events.append(event)
        return event

    def event_reasons(self, name=None):
        return [e.reason for e in self.events if name is None or e.involved_object.name == name]


class FakeMetrics:
    """Keeps the last value per (name, namespace, pdb, reason)"""

    def __init__(self, fail=False):
        self.values = {}
        self.calls = []
        self.fail = fail

    def set_gauge(self, name, tags, value):
        self.calls.append((name, dict(tags), value))
        if self.fail:
            raise MetricsError("sink unavailable")
        self.values[(name, tags["namespace"], tags["pdb"], tags["reason"])] = value

    def value(self, namespace, pdb, reason):
        return self.values.get(("governor_pdb_reaper_result", namespace, pdb, reason))

    def for_pdb(self, namespace, pdb):
        return {
            reason: value for (_, ns, name, reason), value in self.values.items()
            if ns == namespace and name == pdb
        }
