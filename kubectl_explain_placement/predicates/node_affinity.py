from kubectl_explain_placement.log import get_logger
from kubectl_explain_placement.predicates.base_predicate import FilterPredicate
from kubectl_explain_placement.predicates.selectors import (
    CompiledAffinity,
    compile_affinity,
    format_labels,
    mismatched_node_selector,
)

logger = get_logger(__name__)

AFFINITY_STATE_KEY = "PreCheckNodeAffinity"


class NodeAffinityPredicate(FilterPredicate):
    """
    Detects nodeSelector and required node affinity mismatches.

    Signals:
    - Pod.spec.nodeSelector: every key must exist in the node labels with
      the same value
    - Pod.spec.affinity.nodeAffinity.requiredDuringScheduling...: at least
      one term must match the node labels and fields

    Interpretation:
    Terms are OR-ed, requirements inside a term are AND-ed. Terms that are
    empty or carry a malformed requirement cannot match and are skipped;
    they never fail the predicate on their own.

    The pre-check phase compiles the affinity terms once into the cycle
    state; check() only evaluates them.
    """

    name = "NodeAffinity"
    success_message = "NodeSelectorAndAffinity of pod match labels of node."

    def pre_check(self, pod, state):
        affinity = pod.node_affinity
        terms = affinity.required_terms if affinity is not None else None

        compiled = compile_affinity(terms) if terms else None
        if compiled is not None:
            for index, reason in compiled.skipped:
                logger.debug("%s: skipping node affinity term %d: %s", pod, index, reason)

        state.set(AFFINITY_STATE_KEY, compiled)
        return None

    def check(self, pod, snapshot, state):
        node = snapshot.node

        if pod.node_selector:
            mismatch = mismatched_node_selector(pod.node_selector, node.labels)
            if mismatch:
                return self.failed(
                    "The nodeSelector of pod contains value(s) that node labels "
                    f"do not have: {format_labels(mismatch)}"
                )

        compiled: CompiledAffinity | None = state.get(AFFINITY_STATE_KEY)
        if compiled is not None and not compiled.matches(node.labels, node.fields):
            return self.failed("Pod has node affinity that node labels do not have.")

        return self.passed()
