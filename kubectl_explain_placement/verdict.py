from dataclasses import dataclass, field
from typing import Any

# Verdict codes
PASS = "Pass"
FAIL = "Fail"
ERROR = "Error"

# Report outcomes
ADMITTED = "admitted"
BLOCKED = "blocked"
ALREADY_SCHEDULED = "already-scheduled"
SCHEDULED_ELSEWHERE = "scheduled-elsewhere"

TERMINAL_OUTCOMES = {ALREADY_SCHEDULED, SCHEDULED_ELSEWHERE}


@dataclass(frozen=True)
class Verdict:
    """
    Result of one predicate phase.

    Exactly one of:
    - Pass: ``message`` set
    - Fail: ``reasons`` and ``predicate`` set
    - Error: ``cause`` set
    """

    code: str
    message: str = ""
    reasons: tuple[str, ...] = ()
    predicate: str | None = None
    cause: str | None = None

    @classmethod
    def passed(cls, message: str = "") -> "Verdict":
        return cls(code=PASS, message=message)

    @classmethod
    def failed(cls, *reasons: str, predicate: str | None = None) -> "Verdict":
        if not reasons:
            raise ValueError("a failed verdict needs at least one reason")
        return cls(code=FAIL, reasons=tuple(reasons), predicate=predicate)

    @classmethod
    def errored(cls, cause: Any, predicate: str | None = None) -> "Verdict":
        return cls(code=ERROR, cause=str(cause), predicate=predicate)

    def with_predicate(self, predicate: str) -> "Verdict":
        if self.predicate == predicate:
            return self
        return Verdict(
            code=self.code,
            message=self.message,
            reasons=self.reasons,
            predicate=predicate,
            cause=self.cause,
        )

    @property
    def is_pass(self) -> bool:
        return self.code == PASS

    @property
    def is_fail(self) -> bool:
        return self.code == FAIL

    @property
    def is_error(self) -> bool:
        return self.code == ERROR

    def describe(self) -> str:
        if self.is_pass:
            return self.message
        if self.is_error:
            return self.cause or ""
        return ", ".join(self.reasons)


@dataclass
class FilterReport:
    """
    Ordered (predicate name, verdict) entries of one run plus its outcome.
    """

    pod: str
    namespace: str
    node: str
    entries: list[tuple[str, Verdict]] = field(default_factory=list)
    terminal: str | None = None
    message: str = ""

    def record(self, name: str, verdict: Verdict) -> None:
        self.entries.append((name, verdict))

    @property
    def verdicts(self) -> list[Verdict]:
        return [v for _, v in self.entries]

    @property
    def predicates(self) -> list[str]:
        return [name for name, _ in self.entries]

    @property
    def admitted(self) -> bool:
        if self.terminal is not None:
            return False
        return all(v.is_pass for v in self.verdicts)

    @property
    def outcome(self) -> str:
        if self.terminal is not None:
            return self.terminal
        return ADMITTED if self.admitted else BLOCKED

    @property
    def failures(self) -> list[tuple[str, Verdict]]:
        return [(name, v) for name, v in self.entries if not v.is_pass]

    def get(self, name: str) -> Verdict | None:
        for entry_name, verdict in self.entries:
            if entry_name == name:
                return verdict
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pod": self.pod,
            "namespace": self.namespace,
            "node": self.node,
            "outcome": self.outcome,
            "admitted": self.admitted,
            "message": self.message,
            "verdicts": [
                {
                    "predicate": name,
                    "outcome": verdict.code,
                    "reasons": (
                        [verdict.message]
                        if verdict.is_pass
                        else list(verdict.reasons) or [verdict.cause or ""]
                    ),
                }
                for name, verdict in self.entries
            ],
        }
