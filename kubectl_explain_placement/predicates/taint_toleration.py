from collections.abc import Callable

from kubectl_explain_placement.model import (
    NO_EXECUTE,
    NO_SCHEDULE,
    Taint,
    Toleration,
    tolerations_tolerate_taint,
)
from kubectl_explain_placement.predicates.base_predicate import FilterPredicate


def do_not_schedule_taints(taint: Taint) -> bool:
    return taint.effect in (NO_SCHEDULE, NO_EXECUTE)


def find_untolerated_taints(
    taints: tuple[Taint, ...],
    tolerations: tuple[Toleration, ...],
    include: Callable[[Taint], bool] | None = None,
) -> list[Taint]:
    """
    Return every taint passing ``include`` that no toleration tolerates,
    in node order.
    """
    return [
        taint
        for taint in taints
        if (include is None or include(taint))
        and not tolerations_tolerate_taint(tolerations, taint)
    ]


class TaintTolerationPredicate(FilterPredicate):
    """
    Detects node taints the Pod does not tolerate.

    Only NoSchedule and NoExecute taints block admission; PreferNoSchedule
    is a scoring hint and is ignored here.
    """

    name = "TaintToleration"
    success_message = "Found no taints that are not tolerated."

    def check(self, pod, snapshot, state):
        untolerated = find_untolerated_taints(
            snapshot.node.taints, pod.tolerations, do_not_schedule_taints
        )
        if not untolerated:
            return self.passed()
        return self.failed(
            *(f"node(s) had untolerated taint {{{taint}}}" for taint in untolerated)
        )
