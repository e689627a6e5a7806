"""
Reap reasons and the Kubernetes Events published for them
"""

from datetime import datetime, timezone
from enum import Enum

from kubernetes import client

EVENT_TYPE_NORMAL = "Normal"
EVENT_SOURCE_COMPONENT = "pdb-reaper"
PDB_KIND = "PodDisruptionBudget"
# list responses leave apiVersion unset on items
PDB_API_VERSION = "policy/v1"


class ReapReason(Enum):
    """Every reason a PDB can be reported for.

    The value is the Event reason string and the metric ``reason`` tag.
    """

    DELETED = "PodDisruptionBudgetDeleted"
    BLOCKING = "BlockingPodDisruptionBudget"
    MULTIPLE = "MultiplePodDisruptionBudgets"
    CRASH_LOOP = "BlockingPodDisruptionBudgetWithCrashLoop"
    NOT_READY = "BlockingPodDisruptionBudgetWithNotReadyState"

    @property
    def message_template(self) -> str:
        return _MESSAGE_TEMPLATES[self]

    def message(self, namespaced_name: str) -> str:
        return self.message_template.format(namespaced_name)


_MESSAGE_TEMPLATES = {
    ReapReason.DELETED: "The PodDisruptionBudget {} has been deleted by pdb-reaper due to violation",
    ReapReason.BLOCKING: "The PodDisruptionBudget {} has been marked for deletion due to misconfiguration/not allowing disruptions",
    ReapReason.MULTIPLE: "The PodDisruptionBudget {} has been marked for deletion due to multiple budgets targeting same pods",
    ReapReason.CRASH_LOOP: "The PodDisruptionBudget {} has been marked for deletion due to pods in CrashLoopBackOff blocking disruptions",
    ReapReason.NOT_READY: "The PodDisruptionBudget {} has been marked for deletion due to pods in not-ready blocking disruptions",
}


def namespaced_name(obj) -> str:
    """'<namespace>/<name>' for any object carrying metadata"""
    return f"{obj.metadata.namespace}/{obj.metadata.name}"


def build_event(pdb, reason: ReapReason, now: datetime = None) -> client.CoreV1Event:
    """Build a Normal Event whose involved object is ``pdb``"""
    now = now or datetime.now(timezone.utc)
    metadata = pdb.metadata

    return client.CoreV1Event(
        metadata=client.V1ObjectMeta(
            generate_name=f"pdb-reaper-{metadata.name}",
            namespace=metadata.namespace,
        ),
        involved_object=client.V1ObjectReference(
            kind=PDB_KIND,
            namespace=metadata.namespace,
            name=metadata.name,
            api_version=pdb.api_version or PDB_API_VERSION,
            uid=metadata.uid,
            resource_version=metadata.resource_version,
        ),
        reason=reason.value,
        message=reason.message(namespaced_name(pdb)),
        type=EVENT_TYPE_NORMAL,
        source=client.V1EventSource(component=EVENT_SOURCE_COMPONENT),
        first_timestamp=now,
        last_timestamp=now,
    )
