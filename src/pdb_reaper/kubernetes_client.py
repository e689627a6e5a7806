import os
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from pdb_reaper.exceptions import ClusterError
from pdb_reaper.logger import get_logger

logger = get_logger(__name__)

HTTP_NOT_FOUND = 404

DEFAULT_KUBECONFIG_PATHS = [
    os.path.expanduser("~/.kube/config"),
    "/etc/kubernetes/admin.conf",
    "/etc/rancher/k3s/k3s.yaml",
]


def load_kubernetes_config(kube_config_path=None, in_cluster=True):
    """Load credentials, trying an explicit path, then in-cluster, then kubeconfig files"""
    kubeconfig_path = kube_config_path or os.getenv('KUBECONFIG')
    if kubeconfig_path and os.path.exists(kubeconfig_path):
        logger.info("Loading kubeconfig", path=kubeconfig_path)
        config.load_kube_config(config_file=kubeconfig_path)
        return

    if in_cluster:
        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
            return
        except ConfigException:
            logger.info("In-cluster configuration unavailable, trying kubeconfig")

    try:
        config.load_kube_config()
        logger.info("Loaded kubeconfig from default location")
        return
    except (ConfigException, OSError):
        pass

    for kube_path in DEFAULT_KUBECONFIG_PATHS:
        if os.path.exists(kube_path):
            logger.info("Loading kubeconfig", path=kube_path)
            config.load_kube_config(config_file=kube_path)
            return

    raise ClusterError(
        "Could not load Kubernetes configuration. "
        "Run in-cluster with a service account, or set KUBECONFIG / KUBE_CONFIG_PATH",
        operation="load-config",
    )


def is_not_found(error):
    return isinstance(error, ApiException) and error.status == HTTP_NOT_FOUND


def describe(error):
    """Short cause text for API rejections and transport failures alike"""
    if isinstance(error, ApiException):
        return error.reason
    return f"{type(error).__name__}: {error}"


class KubernetesClient:
    """The cluster operations the reaper needs, with API and transport failures raised as ClusterError"""

    def __init__(self, core_v1=None, policy_v1=None):
        self.core_v1 = core_v1 or client.CoreV1Api()
        self.policy_v1 = policy_v1 or client.PolicyV1Api()

    @classmethod
    def from_config(cls, kube_config_path=None, in_cluster=True):
        load_kubernetes_config(kube_config_path, in_cluster)
        return cls()

    def list_pod_disruption_budgets(self, namespace=""):
        """List PDBs in one namespace, or cluster-wide when namespace is empty"""
        try:
            if namespace:
                pdbs = self.policy_v1.list_namespaced_pod_disruption_budget(namespace)
            else:
                pdbs = self.policy_v1.list_pod_disruption_budget_for_all_namespaces(watch=False)
        except (ApiException, HTTPError) as e:
            raise ClusterError(
                f"failed to list PDBs: {describe(e)}", operation="list-pdbs", obj=namespace or None
            ) from e
        return list(pdbs.items)

    def list_pods(self, namespace, label_selector):
        """List pods in a namespace matching a label selector string"""
        try:
            pods = self.core_v1.list_namespaced_pod(namespace, label_selector=label_selector)
        except (ApiException, HTTPError) as e:
            raise ClusterError(
                f"failed to list pods with selector '{label_selector}': {describe(e)}",
                operation="list-pods",
                obj=namespace,
            ) from e
        return list(pods.items)

    def delete_pod_disruption_budget(self, namespace, name):
        """Delete a PDB.

        Returns False if it was already gone, True if this call deleted it.
        """
        try:
            self.policy_v1.delete_namespaced_pod_disruption_budget(name, namespace)
        except (ApiException, HTTPError) as e:
            if is_not_found(e):
                return False
            raise ClusterError(
                f"failed to delete offending PDB {namespace}/{name}: {describe(e)}",
                operation="delete-pdb",
                obj=f"{namespace}/{name}",
            ) from e
        return True

    def create_event(self, namespace, event):
        try:
            return self.core_v1.create_namespaced_event(namespace, event)
        except (ApiException, HTTPError) as e:
            raise ClusterError(
                f"failed to publish event: {describe(e)}",
                operation="create-event",
                obj=namespace,
            ) from e
