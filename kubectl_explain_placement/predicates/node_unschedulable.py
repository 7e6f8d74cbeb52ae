from kubectl_explain_placement.model import (
    NO_SCHEDULE,
    TAINT_NODE_UNSCHEDULABLE,
    Taint,
    tolerations_tolerate_taint,
)
from kubectl_explain_placement.predicates.base_predicate import FilterPredicate

UNSCHEDULABLE_TAINT = Taint(key=TAINT_NODE_UNSCHEDULABLE, effect=NO_SCHEDULE)


class NodeUnschedulablePredicate(FilterPredicate):
    """
    Detects cordoned nodes (spec.unschedulable = true).

    A cordon is bypassed only by a toleration of the synthetic
    ``node.kubernetes.io/unschedulable:NoSchedule`` taint.
    """

    name = "NodeUnschedulable"
    success_message = "Node is schedulable."

    def check(self, pod, snapshot, state):
        if not snapshot.node.unschedulable:
            return self.passed()
        if tolerations_tolerate_taint(pod.tolerations, UNSCHEDULABLE_TAINT):
            return self.passed()
        return self.failed("Node is unschedulable now.")
