from collections.abc import Iterable
from typing import Any, Protocol

from kubectl_explain_placement.errors import ObjectNotFound
from kubectl_explain_placement.loader import load_objects
from kubectl_explain_placement.log import get_logger
from kubectl_explain_placement.model import (
    TERMINAL_POD_PHASES,
    Node,
    Workload,
    get_pod_namespace,
)

logger = get_logger(__name__)


class DataProvider(Protocol):
    """
    Source of the objects a diagnosis needs.

    Implementations raise ObjectNotFound for missing objects and
    TransientError for any failure to reach the data. They never retry.
    """

    def get_workload(self, name: str, namespace: str | None = None) -> Workload: ...

    def get_node(self, name: str) -> Node: ...

    def list_workloads_on_node(self, node_name: str) -> list[Workload]: ...


def _object_kind(obj: dict[str, Any]) -> str | None:
    kind = obj.get("kind")
    if kind:
        return kind
    # kind-less dumps: guess from the shape
    if "containers" in (obj.get("spec") or {}):
        return "Pod"
    if "allocatable" in (obj.get("status") or {}):
        return "Node"
    return None


class ManifestProvider:
    """
    Serves Pods and Nodes from manifests exported with ``kubectl get -o``.

    Pods are attached to nodes through ``spec.nodeName``; Succeeded and
    Failed pods are not listed because they hold no resources.
    """

    def __init__(
        self,
        pods: Iterable[dict[str, Any]] = (),
        nodes: Iterable[dict[str, Any]] = (),
    ):
        self._pods = list(pods)
        self._nodes = list(nodes)

    @classmethod
    def from_objects(cls, objects: Iterable[dict[str, Any]]) -> "ManifestProvider":
        pods: list[dict[str, Any]] = []
        nodes: list[dict[str, Any]] = []
        for obj in objects:
            kind = _object_kind(obj)
            if kind == "Pod":
                pods.append(obj)
            elif kind == "Node":
                nodes.append(obj)
            else:
                logger.debug("Ignoring manifest object of kind %s", kind)
        return cls(pods=pods, nodes=nodes)

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> "ManifestProvider":
        objects: list[dict[str, Any]] = []
        for path in paths:
            loaded = load_objects(path)
            logger.debug("Loaded %d object(s) from %s", len(loaded), path)
            objects.extend(loaded)
        return cls.from_objects(objects)

    def get_workload(self, name: str, namespace: str | None = None) -> Workload:
        for pod in self._pods:
            if pod.get("metadata", {}).get("name") != name:
                continue
            if namespace and get_pod_namespace(pod) != namespace:
                continue
            # Without a namespace the first match wins
            return Workload.from_dict(pod)
        raise ObjectNotFound("Pod", name, namespace)

    def get_node(self, name: str) -> Node:
        for node in self._nodes:
            if node.get("metadata", {}).get("name") == name:
                return Node.from_dict(node)
        raise ObjectNotFound("Node", name)

    def list_workloads_on_node(self, node_name: str) -> list[Workload]:
        workloads = []
        for pod in self._pods:
            if (pod.get("spec") or {}).get("nodeName") != node_name:
                continue
            workload = Workload.from_dict(pod)
            if workload.phase in TERMINAL_POD_PHASES:
                continue
            workloads.append(workload)
        return workloads
