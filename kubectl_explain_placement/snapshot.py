from collections.abc import Iterable
from functools import cached_property

from kubectl_explain_placement.errors import DataError
from kubectl_explain_placement.model import Node, Workload
from kubectl_explain_placement.quantity import Quantity, sum_resources


class NodeSnapshot:
    """
    Immutable view of one Node and the Pods already assigned to it.

    Pods identity-equal to the candidate are kept aside in ``excluded`` so
    they never count towards the node's requested resources.
    """

    def __init__(
        self,
        node: Node,
        pods: Iterable[Workload] = (),
        candidate: Workload | None = None,
    ):
        if node is None:
            raise DataError("cannot build a node snapshot without a node")

        self._node = node

        counted: list[Workload] = []
        excluded: list[Workload] = []
        for pod in pods:
            if candidate is not None and pod.is_same(candidate):
                excluded.append(pod)
            else:
                counted.append(pod)

        self._pods = tuple(counted)
        self._excluded = tuple(excluded)

    @property
    def node(self) -> Node:
        return self._node

    @property
    def node_name(self) -> str:
        return self._node.name

    @property
    def pods(self) -> tuple[Workload, ...]:
        return self._pods

    @property
    def excluded(self) -> tuple[Workload, ...]:
        return self._excluded

    @property
    def all_pods(self) -> tuple[Workload, ...]:
        return self._pods + self._excluded

    @cached_property
    def requested(self) -> dict[str, Quantity]:
        """
        Sum of container requests across the counted pods.

        Computed on first use and never updated afterwards; a snapshot is
        rebuilt rather than modified.
        """
        return sum_resources([r for pod in self._pods for r in pod.requests])

    def __repr__(self) -> str:
        return f"NodeSnapshot(node={self.node_name!r}, pods={len(self._pods)})"


def build_snapshot(
    node: Node | None,
    pods: Iterable[Workload] = (),
    candidate: Workload | None = None,
) -> NodeSnapshot:
    if node is None:
        raise DataError("cannot build a node snapshot without a node")
    return NodeSnapshot(node, pods, candidate=candidate)
