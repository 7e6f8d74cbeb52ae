from collections.abc import Iterable
from typing import Any

from kubectl_explain_placement.cycle_state import CycleState
from kubectl_explain_placement.errors import ConfigurationError, PredicateError
from kubectl_explain_placement.loader import default_predicates, validate_predicates
from kubectl_explain_placement.log import get_logger
from kubectl_explain_placement.model import Node, Workload
from kubectl_explain_placement.predicates.base_predicate import FilterPredicate
from kubectl_explain_placement.provider import DataProvider
from kubectl_explain_placement.snapshot import NodeSnapshot, build_snapshot
from kubectl_explain_placement.verdict import (
    ALREADY_SCHEDULED,
    SCHEDULED_ELSEWHERE,
    FilterReport,
    Verdict,
)

logger = get_logger(__name__)


class Framework:
    """
    Runs the admission predicates against one node snapshot.

    - Pre-check phase: every predicate's pre_check() once, in order
    - Check phase: check() of every predicate whose pre-check passed, in order
    - run_all_filters=False stops at the first non-passing verdict,
      run_all_filters=True collects every blocking reason
    - An Error verdict aborts the run with PredicateError
    """

    def __init__(
        self,
        predicates: Iterable[FilterPredicate] | None = None,
        run_all_filters: bool = True,
    ):
        self.predicates = (
            list(predicates) if predicates is not None else default_predicates()
        )
        validate_predicates(self.predicates)
        self.run_all_filters = run_all_filters

    @property
    def predicate_names(self) -> list[str]:
        return [p.name for p in self.predicates]

    def run(self, pod: Workload, snapshot: NodeSnapshot) -> FilterReport:
        report = FilterReport(
            pod=pod.name,
            namespace=pod.namespace,
            node=snapshot.node_name,
        )

        # ----------------------------
        # Admitted-elsewhere check
        # ----------------------------
        if pod.node_name == snapshot.node_name or any(
            other.is_same(pod) for other in snapshot.all_pods
        ):
            report.terminal = ALREADY_SCHEDULED
            report.message = (
                f"Pod {pod.name} in namespace {pod.namespace} has already been "
                f"scheduled to Node {snapshot.node_name}"
            )
            logger.debug("%s: %s", pod, report.message)
            return report

        if pod.node_name:
            report.terminal = SCHEDULED_ELSEWHERE
            report.message = (
                f"Pod {pod.name} in namespace {pod.namespace} has been "
                f"scheduled to other Node {pod.node_name}"
            )
            logger.debug("%s: %s", pod, report.message)
            return report

        state = CycleState()
        rejected: set[str] = set()

        # ----------------------------
        # Pre-check phase
        # ----------------------------
        for predicate in self.predicates:
            pre_check = getattr(predicate, "pre_check", None)
            if pre_check is None:
                continue

            try:
                verdict = pre_check(pod, state)
            except PredicateError as exc:
                verdict = Verdict.errored(exc.message, predicate=predicate.name)

            if verdict is None:
                continue
            self._enforce_contract(predicate, verdict, "pre_check")

            if verdict.is_pass:
                logger.debug("PreCheck %s passed", predicate.name)
                continue

            verdict = verdict.with_predicate(predicate.name)
            report.record(predicate.name, verdict)
            rejected.add(predicate.name)
            logger.debug("PreCheck %s: %s %s", predicate.name, verdict.code, verdict.describe())

            if verdict.is_error:
                raise PredicateError(
                    verdict.cause or "", predicate=predicate.name, report=report
                )
            if not self.run_all_filters:
                return report

        # ----------------------------
        # Check phase
        # ----------------------------
        for predicate in self.predicates:
            # Already recorded by the pre-check phase
            if predicate.name in rejected:
                continue

            try:
                verdict = predicate.check(pod, snapshot, state)
            except PredicateError as exc:
                verdict = Verdict.errored(exc.message, predicate=predicate.name)

            self._enforce_contract(predicate, verdict, "check")
            if not verdict.is_pass:
                verdict = verdict.with_predicate(predicate.name)

            report.record(predicate.name, verdict)
            logger.debug("Check %s: %s %s", predicate.name, verdict.code, verdict.describe())

            if verdict.is_error:
                raise PredicateError(
                    verdict.cause or "", predicate=predicate.name, report=report
                )
            if verdict.is_fail and not self.run_all_filters:
                return report

        logger.debug("%s on %s: %s", pod, snapshot.node_name, report.outcome)
        return report

    @staticmethod
    def _enforce_contract(predicate: FilterPredicate, verdict: Any, phase: str) -> None:
        if not isinstance(verdict, Verdict):
            raise TypeError(
                f"{predicate.name}.{phase}() must return a Verdict, "
                f"got {type(verdict).__name__}"
            )


# ----------------------------
# Convenience entry point
# ----------------------------


def _as_workload(pod: Workload | dict[str, Any]) -> Workload:
    return pod if isinstance(pod, Workload) else Workload.from_dict(pod)


def explain_placement(
    pod: Workload | dict[str, Any],
    node: Node | dict[str, Any] | None,
    pods: Iterable[Workload | dict[str, Any]] = (),
    *,
    run_all_filters: bool = True,
    predicates: Iterable[FilterPredicate] | None = None,
) -> FilterReport:
    """
    Explain whether ``pod`` would be admitted onto ``node``.

    Accepts model objects or Kubernetes-shaped dicts. ``pods`` are the Pods
    already assigned to the node.
    """
    candidate = _as_workload(pod)
    node_obj = node if node is None or isinstance(node, Node) else Node.from_dict(node)
    snapshot = build_snapshot(
        node_obj,
        [_as_workload(p) for p in pods],
        candidate=candidate,
    )
    framework = Framework(predicates, run_all_filters=run_all_filters)
    return framework.run(candidate, snapshot)


def diagnose(
    provider: DataProvider,
    pod_name: str,
    node_name: str,
    namespace: str | None = None,
    *,
    run_all_filters: bool = True,
) -> FilterReport:
    """
    Fetch the Pod, the Node and the Pods on that Node, then run the framework.

    ObjectNotFound and TransientError from the provider propagate unchanged.
    """
    if not pod_name:
        raise ConfigurationError("pod name should not be empty")
    if not node_name:
        raise ConfigurationError("node name should not be empty")

    candidate = provider.get_workload(pod_name, namespace)
    node = provider.get_node(node_name)
    pods = provider.list_workloads_on_node(node.name)
    logger.debug("Node %s has %d pod(s)", node.name, len(pods))

    return explain_placement(candidate, node, pods, run_all_filters=run_all_filters)
