"""
Pure classification of PodDisruptionBudgets and the pods they select.

Nothing in this module talks to the cluster; every function takes the
objects it judges and returns a verdict.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from pdb_reaper.intstr import IntOrPercent

REASON_CRASH_LOOP_BACK_OFF = "CrashLoopBackOff"
CONDITION_CONTAINERS_READY = "ContainersReady"
CONDITION_FALSE = "False"


def is_blocking(pdb) -> bool:
    """A PDB blocks when it allows no disruption but expects pods"""
    status = pdb.status
    if status is None:
        return False
    return (status.disruptions_allowed or 0) == 0 and (status.expected_pods or 0) > 0


def is_misconfigured(pdb, pods: List) -> bool:
    """True when the PDB's bounds permit zero disruption by construction.

    ``maxUnavailable`` and ``minAvailable`` are mutually exclusive; only
    the one that is set is evaluated. Percentages are resolved against the
    number of pods currently matched by the selector, rounding up.

    Raises:
        IntOrPercentError: if the configured bound cannot be resolved.
    """
    spec = pdb.spec
    pod_count = len(pods)

    max_unavailable = IntOrPercent.parse(spec.max_unavailable)
    if max_unavailable is not None:
        return max_unavailable.resolve(pod_count, round_up=True) == 0

    min_available = IntOrPercent.parse(spec.min_available)
    if min_available is not None:
        expected_pods = pdb.status.expected_pods if pdb.status else 0
        return min_available.resolve(pod_count, round_up=True) == expected_pods

    return False


def is_pod_in_crashloop(pod, threshold: int) -> bool:
    """Any init or regular container waiting on CrashLoopBackOff at or past ``threshold`` restarts"""
    status = pod.status
    if status is None:
        return False

    statuses = list(status.init_container_statuses or []) + list(status.container_statuses or [])
    for container_status in statuses:
        state = container_status.state
        if state is None or state.waiting is None:
            continue
        if (container_status.restart_count or 0) < threshold:
            continue
        if state.waiting.reason == REASON_CRASH_LOOP_BACK_OFF:
            return True
    return False


def is_pods_in_crashloop(pods: List, threshold: int, all_pods: bool) -> bool:
    crashing = sum(1 for pod in pods if is_pod_in_crashloop(pod, threshold))
    return _aggregate(crashing, len(pods), all_pods)


def is_pod_not_ready(pod, threshold_seconds: int, now: Optional[datetime] = None) -> bool:
    """ContainersReady has been False for at least ``threshold_seconds``"""
    status = pod.status
    if status is None:
        return False

    for condition in status.conditions or []:
        if condition.type != CONDITION_CONTAINERS_READY or condition.status != CONDITION_FALSE:
            continue
        if is_readiness_threshold_past(condition.last_transition_time, threshold_seconds, now):
            return True
    return False


def is_pods_in_not_ready_state(pods: List, threshold_seconds: int, all_pods: bool,
                               now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(timezone.utc)
    not_ready = sum(1 for pod in pods if is_pod_not_ready(pod, threshold_seconds, now))
    return _aggregate(not_ready, len(pods), all_pods)


def is_readiness_threshold_past(transition_time: Optional[datetime], threshold_seconds: int,
                                now: Optional[datetime] = None) -> bool:
    # an unknown transition time is treated as infinitely old
    if transition_time is None:
        return True
    now = now or datetime.now(timezone.utc)
    if transition_time.tzinfo is None:
        transition_time = transition_time.replace(tzinfo=timezone.utc)
    return (now - transition_time).total_seconds() >= threshold_seconds


def contains_duplicate_pods(pods: Iterable) -> bool:
    """True if any pod name appears more than once"""
    counts = Counter(pod.metadata.name for pod in pods)
    return any(count > 1 for count in counts.values())


def _aggregate(matching: int, total: int, all_pods: bool) -> bool:
    if all_pods:
        return matching == total
    return matching > 0
