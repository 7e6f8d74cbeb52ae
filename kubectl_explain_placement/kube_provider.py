import os
from typing import Any

import urllib3
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config import ConfigException

from kubectl_explain_placement.errors import (
    ConfigurationError,
    ObjectNotFound,
    TransientError,
)
from kubectl_explain_placement.log import get_logger
from kubectl_explain_placement.model import Node, Workload

logger = get_logger(__name__)

# Pods in these phases hold no node resources
ACTIVE_POD_SELECTOR = "status.phase!=Succeeded,status.phase!=Failed"


def load_client(kubeconfig: str | None = None, context: str | None = None) -> client.CoreV1Api:
    """
    Build a CoreV1Api from a kubeconfig file, falling back to the in-cluster
    service account when no kubeconfig exists.
    """
    try:
        if kubeconfig and os.path.exists(kubeconfig):
            config.load_kube_config(config_file=kubeconfig, context=context)
        else:
            config.load_incluster_config()
    except ConfigException as exc:
        raise ConfigurationError(f"Cannot load Kubernetes config: {exc}") from exc
    return client.CoreV1Api()


class KubernetesProvider:
    """
    Reads Pods and Nodes from a live cluster. Read-only: list/get calls only.
    """

    def __init__(self, api: client.CoreV1Api):
        self.api = api

    @classmethod
    def from_kubeconfig(
        cls, kubeconfig: str | None = None, context: str | None = None
    ) -> "KubernetesProvider":
        return cls(load_client(kubeconfig, context))

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        return self.api.api_client.sanitize_for_serialization(obj)

    def _call(self, what: str, fn, *args, **kwargs):
        logger.debug("API call: %s", what)
        try:
            return fn(*args, **kwargs)
        except ApiException as exc:
            if exc.status == 404:
                raise
            raise TransientError(f"{what} failed: {exc.status} {exc.reason}") from exc
        except (urllib3.exceptions.HTTPError, OSError) as exc:
            raise TransientError(f"{what} failed: {exc}") from exc

    def get_workload(self, name: str, namespace: str | None = None) -> Workload:
        if namespace:
            try:
                pod = self._call(
                    f"get pod {namespace}/{name}",
                    self.api.read_namespaced_pod,
                    name,
                    namespace,
                )
            except ApiException as exc:
                raise ObjectNotFound("Pod", name, namespace) from exc
            return Workload.from_dict(self._to_dict(pod))

        try:
            pods = self._call(
                f"list pods named {name}",
                self.api.list_pod_for_all_namespaces,
                field_selector=f"metadata.name={name}",
            )
        except ApiException as exc:
            raise ObjectNotFound("Pod", name) from exc
        if not pods.items:
            raise ObjectNotFound("Pod", name)
        # Ambiguous names resolve to the first match
        return Workload.from_dict(self._to_dict(pods.items[0]))

    def get_node(self, name: str) -> Node:
        try:
            node = self._call(f"get node {name}", self.api.read_node, name)
        except ApiException as exc:
            raise ObjectNotFound("Node", name) from exc
        return Node.from_dict(self._to_dict(node))

    def list_workloads_on_node(self, node_name: str) -> list[Workload]:
        try:
            pods = self._call(
                f"list pods on node {node_name}",
                self.api.list_pod_for_all_namespaces,
                field_selector=f"spec.nodeName={node_name},{ACTIVE_POD_SELECTOR}",
            )
        except ApiException:
            return []
        return [Workload.from_dict(self._to_dict(p)) for p in pods.items]
