from typing import Any


class PlacementError(Exception):
    """
    Base class for every error raised by kubectl-explain-placement.
    """


class ObjectNotFound(PlacementError):
    """
    The requested Pod or Node does not exist.

    Not an engine failure: the CLI renders it as an informational sentence.
    """

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        super().__init__(self.describe())

    def describe(self) -> str:
        if self.kind == "Pod":
            if self.namespace:
                return f"Pod {self.name} in namespace {self.namespace} not found"
            return f"Pod {self.name} in all namespaces not found"
        return f"{self.kind} {self.name} not found"


class TransientError(PlacementError):
    """
    Data provider failure (connectivity, API server errors). Never retried here.
    """


class DataError(PlacementError, ValueError):
    """
    Malformed input handed to the model or snapshot builders.
    """


class ConfigurationError(PlacementError, ValueError):
    """
    Invalid predicate set or configuration file.
    """


class PredicateError(PlacementError):
    """
    A predicate could not evaluate the workload/node pair.

    Raised inside predicates for malformed specs, and re-raised by the
    framework (with ``predicate`` and ``report`` filled in) to abort a run.
    """

    def __init__(
        self,
        message: str,
        *,
        predicate: str | None = None,
        report: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.predicate = predicate
        self.report = report

    def __str__(self) -> str:
        if self.predicate:
            return f"running {self.predicate!r} predicate: {self.message}"
        return self.message


class CycleStateError(PlacementError, KeyError):
    """
    Contract violation on the per-run cycle state. Always a defect.
    """

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class DuplicateKeyError(CycleStateError):
    pass


class NotFoundError(CycleStateError):
    pass
