from kubectl_explain_placement.predicates.base_predicate import FilterPredicate
from kubectl_explain_placement.quantity import Quantity, parse_quantity


class NodeResourcesFitPredicate(FilterPredicate):
    """
    Reports whether the node is already over-subscribed.

    Signals:
    - Sum of container requests of every Pod counted on the node
    - Node status.allocatable

    Interpretation:
    Any resource whose summed requests exceed the allocatable amount is
    reported together with its shortfall. Resources missing from
    allocatable count as zero.

    Scope:
    - The candidate's own requests are not added to the sum, so the check
      answers "is this node over-committed" rather than "does this pod fit".
    - Resource names are opaque; cpu and memory get no special handling.
    """

    name = "NodeResourcesFit"
    success_message = "Allocatable resource of node is sufficient."

    def check(self, pod, snapshot, state):
        allocatable = {
            name: parse_quantity(raw) for name, raw in snapshot.node.allocatable.items()
        }

        insufficient: dict[str, Quantity] = {}
        for resource, demand in snapshot.requested.items():
            available = allocatable.get(resource, Quantity(0, demand.format))
            if demand > available:
                insufficient[resource] = demand - available

        if not insufficient:
            return self.passed()

        return self.failed(
            *(
                f"{resource}: {insufficient[resource]}"
                for resource in sorted(insufficient)
            )
        )
