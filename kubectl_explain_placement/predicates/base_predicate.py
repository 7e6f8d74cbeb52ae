from kubectl_explain_placement.cycle_state import CycleState
from kubectl_explain_placement.model import Workload
from kubectl_explain_placement.snapshot import NodeSnapshot
from kubectl_explain_placement.verdict import Verdict


class FilterPredicate:
    """
    Base class for all admission predicates.
    """

    # ---- Metadata (mandatory) ----
    name: str = "BasePredicate"

    # Message of the Pass verdict
    success_message: str = ""

    def pre_check(self, pod: Workload, state: CycleState) -> Verdict | None:
        """
        Optional first phase, run once before any check().

        Returns None when the predicate has nothing to say at this stage.
        """
        return None

    def check(self, pod: Workload, snapshot: NodeSnapshot, state: CycleState) -> Verdict:
        """
        Must return a Verdict:
        - Verdict.passed(message)
        - Verdict.failed(*reasons, predicate=self.name)
        Raise PredicateError for specs that cannot be evaluated.
        """
        raise NotImplementedError

    def passed(self) -> Verdict:
        return Verdict.passed(self.success_message)

    def failed(self, *reasons: str) -> Verdict:
        return Verdict.failed(*reasons, predicate=self.name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
