from dataclasses import dataclass, field
from typing import Any

from kubectl_explain_placement.errors import DataError

# ----------------------------
# Well-known Kubernetes values
# ----------------------------

NO_SCHEDULE = "NoSchedule"
NO_EXECUTE = "NoExecute"

TOLERATION_OP_EXISTS = "Exists"
TOLERATION_OP_EQUAL = "Equal"

TAINT_NODE_UNSCHEDULABLE = "node.kubernetes.io/unschedulable"

DEFAULT_NAMESPACE = "default"

# Phases of pods that no longer hold node resources
TERMINAL_POD_PHASES = frozenset({"Succeeded", "Failed"})

# ----------------------------
# Parsing utilities
# ----------------------------


def _section(obj: dict[str, Any], key: str, where: str) -> dict[str, Any]:
    value = obj.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DataError(f"{where}.{key} must be a mapping, got {type(value).__name__}")
    return value


def _items(obj: dict[str, Any], key: str, where: str) -> list[Any]:
    value = obj.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DataError(f"{where}.{key} must be a list, got {type(value).__name__}")
    return value


def _flag(obj: dict[str, Any], key: str, where: str) -> bool:
    value = obj.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DataError(f"{where}.{key} must be a boolean, got {type(value).__name__}")
    return value


def _require_object(obj: Any, kind: str) -> dict[str, Any]:
    if obj is None:
        raise DataError(f"{kind} object is missing")
    if not isinstance(obj, dict):
        raise DataError(f"{kind} object must be a mapping, got {type(obj).__name__}")
    return obj


def get_pod_namespace(pod: dict[str, Any]) -> str:
    return pod.get("metadata", {}).get("namespace") or DEFAULT_NAMESPACE


# ----------------------------
# Taints and tolerations
# ----------------------------


@dataclass(frozen=True)
class Taint:
    key: str
    value: str = ""
    effect: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Taint":
        raw = _require_object(raw, "Taint")
        return cls(
            key=raw.get("key") or "",
            value=raw.get("value") or "",
            effect=raw.get("effect") or "",
        )

    def __str__(self) -> str:
        if not self.value:
            return f"{self.key}:{self.effect}"
        return f"{self.key}={self.value}:{self.effect}"


@dataclass(frozen=True)
class Toleration:
    key: str = ""
    operator: str = ""
    value: str = ""
    effect: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Toleration":
        raw = _require_object(raw, "Toleration")
        return cls(
            key=raw.get("key") or "",
            operator=raw.get("operator") or "",
            value=raw.get("value") or "",
            effect=raw.get("effect") or "",
        )

    def tolerates(self, taint: Taint) -> bool:
        """
        Kubernetes toleration matching:
        - empty effect matches every effect
        - empty key with operator Exists matches every taint
        - Exists ignores the value, Equal (the default) compares it
        """
        if self.effect and self.effect != taint.effect:
            return False

        if self.key and self.key != taint.key:
            return False

        if self.operator == TOLERATION_OP_EXISTS:
            return True
        if self.operator in ("", TOLERATION_OP_EQUAL):
            return self.value == taint.value
        return False


def tolerations_tolerate_taint(tolerations: tuple[Toleration, ...], taint: Taint) -> bool:
    return any(t.tolerates(taint) for t in tolerations)


# ----------------------------
# Node selector requirements
# ----------------------------


@dataclass(frozen=True)
class SelectorRequirement:
    key: str
    operator: str
    values: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SelectorRequirement":
        raw = _require_object(raw, "NodeSelectorRequirement")
        return cls(
            key=raw.get("key") or "",
            operator=raw.get("operator") or "",
            values=tuple(str(v) for v in _items(raw, "values", "requirement")),
        )


@dataclass(frozen=True)
class NodeSelectorTerm:
    match_expressions: tuple[SelectorRequirement, ...] = ()
    match_fields: tuple[SelectorRequirement, ...] = ()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "NodeSelectorTerm":
        raw = _require_object(raw, "NodeSelectorTerm")
        return cls(
            match_expressions=tuple(
                SelectorRequirement.from_dict(r)
                for r in _items(raw, "matchExpressions", "nodeSelectorTerm")
            ),
            match_fields=tuple(
                SelectorRequirement.from_dict(r)
                for r in _items(raw, "matchFields", "nodeSelectorTerm")
            ),
        )

    def is_empty(self) -> bool:
        return not self.match_expressions and not self.match_fields


@dataclass(frozen=True)
class NodeAffinity:
    """
    Required node affinity.

    ``required_terms`` is None when the pod has a nodeAffinity block without
    ``requiredDuringSchedulingIgnoredDuringExecution``.
    """

    required_terms: tuple[NodeSelectorTerm, ...] | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "NodeAffinity":
        raw = _require_object(raw, "NodeAffinity")
        required = raw.get("requiredDuringSchedulingIgnoredDuringExecution")
        if required is None:
            return cls(required_terms=None)
        required = _require_object(required, "NodeSelector")
        return cls(
            required_terms=tuple(
                NodeSelectorTerm.from_dict(t)
                for t in _items(required, "nodeSelectorTerms", "nodeSelector")
            )
        )


# ----------------------------
# Workloads and nodes
# ----------------------------


@dataclass(frozen=True)
class Container:
    name: str
    requests: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Container":
        raw = _require_object(raw, "Container")
        resources = _section(raw, "resources", "container")
        return cls(
            name=raw.get("name") or "",
            requests=dict(_section(resources, "requests", "container.resources")),
        )


@dataclass(frozen=True)
class Workload:
    """
    A Pod, either the candidate being diagnosed or one already on the node.
    """

    name: str
    namespace: str = DEFAULT_NAMESPACE
    node_name: str = ""
    phase: str = ""
    containers: tuple[Container, ...] = ()
    tolerations: tuple[Toleration, ...] = ()
    node_selector: dict[str, str] = field(default_factory=dict)
    node_affinity: NodeAffinity | None = None

    @classmethod
    def from_dict(cls, pod: dict[str, Any]) -> "Workload":
        pod = _require_object(pod, "Pod")
        metadata = _section(pod, "metadata", "pod")
        spec = _section(pod, "spec", "pod")
        status = _section(pod, "status", "pod")

        name = metadata.get("name")
        if not name:
            raise DataError("pod.metadata.name is required")

        affinity = _section(spec, "affinity", "pod.spec")
        node_affinity = affinity.get("nodeAffinity")

        return cls(
            name=name,
            namespace=metadata.get("namespace") or DEFAULT_NAMESPACE,
            node_name=spec.get("nodeName") or "",
            phase=status.get("phase") or "",
            containers=tuple(
                Container.from_dict(c) for c in _items(spec, "containers", "pod.spec")
            ),
            tolerations=tuple(
                Toleration.from_dict(t) for t in _items(spec, "tolerations", "pod.spec")
            ),
            node_selector={
                str(k): str(v)
                for k, v in _section(spec, "nodeSelector", "pod.spec").items()
            },
            node_affinity=(
                NodeAffinity.from_dict(node_affinity)
                if node_affinity is not None
                else None
            ),
        )

    @property
    def identity(self) -> tuple[str, str]:
        return (self.namespace, self.name)

    def is_same(self, other: "Workload") -> bool:
        return self.identity == other.identity

    @property
    def requests(self) -> list[dict[str, Any]]:
        return [c.requests for c in self.containers]

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class Node:
    name: str
    labels: dict[str, str] = field(default_factory=dict)
    allocatable: dict[str, Any] = field(default_factory=dict)
    taints: tuple[Taint, ...] = ()
    unschedulable: bool = False

    @classmethod
    def from_dict(cls, node: dict[str, Any]) -> "Node":
        node = _require_object(node, "Node")
        metadata = _section(node, "metadata", "node")
        spec = _section(node, "spec", "node")
        status = _section(node, "status", "node")

        name = metadata.get("name")
        if not name:
            raise DataError("node.metadata.name is required")

        return cls(
            name=name,
            labels={
                str(k): str(v)
                for k, v in _section(metadata, "labels", "node.metadata").items()
            },
            allocatable=dict(_section(status, "allocatable", "node.status")),
            taints=tuple(Taint.from_dict(t) for t in _items(spec, "taints", "node.spec")),
            unschedulable=_flag(spec, "unschedulable", "node.spec"),
        )

    @property
    def fields(self) -> dict[str, str]:
        """Field set visible to matchFields selectors."""
        return {"metadata.name": self.name}
