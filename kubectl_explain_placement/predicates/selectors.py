import re
from dataclasses import dataclass

from kubectl_explain_placement.errors import PredicateError
from kubectl_explain_placement.model import NodeSelectorTerm, SelectorRequirement

# ----------------------------
# Node selector operators
# ----------------------------

OP_IN = "In"
OP_NOT_IN = "NotIn"
OP_EXISTS = "Exists"
OP_DOES_NOT_EXIST = "DoesNotExist"
OP_GT = "Gt"
OP_LT = "Lt"

LABEL_OPERATORS = (OP_IN, OP_NOT_IN, OP_EXISTS, OP_DOES_NOT_EXIST, OP_GT, OP_LT)
FIELD_OPERATORS = (OP_IN, OP_NOT_IN)

# ----------------------------
# Label syntax
# ----------------------------

_QUALIFIED_NAME_MAX_LENGTH = 63
_LABEL_VALUE_MAX_LENGTH = 63
_DNS1123_SUBDOMAIN_MAX_LENGTH = 253

_QUALIFIED_NAME_RE = re.compile(r"([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]")
_DNS1123_SUBDOMAIN_RE = re.compile(
    r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*"
)
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _parse_int(value: str) -> int | None:
    """Strict base-10 int64: no whitespace, underscores or overflow."""
    if not isinstance(value, str) or not _INTEGER_RE.fullmatch(value):
        return None
    number = int(value)
    if not _INT64_MIN <= number <= _INT64_MAX:
        return None
    return number


def validate_label_key(key: str) -> None:
    """
    Raise PredicateError unless ``key`` is a qualified name: an optional
    DNS-1123 subdomain prefix and "/", then a name of at most 63 characters.
    """
    prefix, sep, name = key.rpartition("/")
    if sep:
        if not prefix or "/" in prefix:
            raise PredicateError(f"invalid label key {key!r}: bad prefix")
        too_long = len(prefix) > _DNS1123_SUBDOMAIN_MAX_LENGTH
        if too_long or not _DNS1123_SUBDOMAIN_RE.fullmatch(prefix):
            raise PredicateError(
                f"invalid label key {key!r}: prefix must be a DNS-1123 subdomain"
            )
    if not name:
        raise PredicateError(f"invalid label key {key!r}: name part must be non-empty")
    if len(name) > _QUALIFIED_NAME_MAX_LENGTH:
        raise PredicateError(
            f"invalid label key {key!r}: name part must be no more than "
            f"{_QUALIFIED_NAME_MAX_LENGTH} characters"
        )
    if not _QUALIFIED_NAME_RE.fullmatch(name):
        raise PredicateError(
            f"invalid label key {key!r}: name part must consist of alphanumeric "
            "characters, '-', '_' or '.', and must start and end with an "
            "alphanumeric character"
        )


def validate_label_value(key: str, value: str) -> None:
    if len(value) > _LABEL_VALUE_MAX_LENGTH:
        raise PredicateError(
            f"invalid label value {value!r} for key {key!r}: must be no more than "
            f"{_LABEL_VALUE_MAX_LENGTH} characters"
        )
    if value and not _QUALIFIED_NAME_RE.fullmatch(value):
        raise PredicateError(
            f"invalid label value {value!r} for key {key!r}: must be empty or "
            "start and end with an alphanumeric character"
        )


@dataclass(frozen=True)
class LabelRequirement:
    key: str
    operator: str
    values: frozenset[str] = frozenset()

    def matches(self, labels: dict[str, str]) -> bool:
        present = self.key in labels

        if self.operator == OP_IN:
            return present and labels[self.key] in self.values
        if self.operator == OP_NOT_IN:
            return not present or labels[self.key] not in self.values
        if self.operator == OP_EXISTS:
            return present
        if self.operator == OP_DOES_NOT_EXIST:
            return not present

        # Gt / Lt: both sides must be integers
        if not present:
            return False
        actual = _parse_int(labels[self.key])
        if actual is None:
            return False
        (raw,) = self.values
        expected = int(raw)
        if self.operator == OP_GT:
            return actual > expected
        return actual < expected


@dataclass(frozen=True)
class FieldRequirement:
    key: str
    value: str
    negated: bool = False

    def matches(self, fields: dict[str, str]) -> bool:
        equal = fields.get(self.key, "") == self.value
        return not equal if self.negated else equal


@dataclass(frozen=True)
class CompiledTerm:
    labels: tuple[LabelRequirement, ...] = ()
    fields: tuple[FieldRequirement, ...] = ()

    def matches(self, labels: dict[str, str], fields: dict[str, str]) -> bool:
        return all(r.matches(labels) for r in self.labels) and all(
            r.matches(fields) for r in self.fields
        )


def compile_label_requirement(req: SelectorRequirement) -> LabelRequirement:
    op = req.operator
    validate_label_key(req.key)
    if op not in LABEL_OPERATORS:
        raise PredicateError(f"{op!r} is not a valid node selector operator")

    if op in (OP_IN, OP_NOT_IN) and not req.values:
        raise PredicateError(
            f"values for operator {op!r} on key {req.key!r} must be non-empty"
        )
    if op in (OP_EXISTS, OP_DOES_NOT_EXIST) and req.values:
        raise PredicateError(
            f"values for operator {op!r} on key {req.key!r} must be empty"
        )
    if op in (OP_GT, OP_LT):
        if len(req.values) != 1:
            raise PredicateError(
                f"operator {op!r} on key {req.key!r} needs exactly one value"
            )
        if _parse_int(req.values[0]) is None:
            raise PredicateError(
                f"value {req.values[0]!r} for operator {op!r} must be an integer"
            )
    for value in req.values:
        validate_label_value(req.key, value)

    return LabelRequirement(key=req.key, operator=op, values=frozenset(req.values))


def compile_field_requirement(req: SelectorRequirement) -> FieldRequirement:
    op = req.operator
    if op not in FIELD_OPERATORS:
        raise PredicateError(f"{op!r} is not a valid node field selector operator")
    if len(req.values) != 1:
        raise PredicateError(
            f"unexpected number of value ({len(req.values)}) "
            f"for node field selector operator {op!r}"
        )
    return FieldRequirement(key=req.key, value=req.values[0], negated=op == OP_NOT_IN)


def compile_term(term: NodeSelectorTerm) -> CompiledTerm:
    """
    Compile one node selector term. Raises PredicateError when any of its
    requirements is malformed.
    """
    return CompiledTerm(
        labels=tuple(compile_label_requirement(r) for r in term.match_expressions),
        fields=tuple(compile_field_requirement(r) for r in term.match_fields),
    )


@dataclass(frozen=True)
class CompiledAffinity:
    """
    Required node affinity with each term compiled once.

    ``terms`` holds None for terms that are empty or failed to compile;
    ``skipped`` maps their index to the reason.
    """

    terms: tuple[CompiledTerm | None, ...] = ()
    skipped: tuple[tuple[int, str], ...] = ()

    def matches(self, labels: dict[str, str], fields: dict[str, str]) -> bool:
        # No terms at all means no constraint
        if not self.terms:
            return True
        return any(
            term is not None and term.matches(labels, fields) for term in self.terms
        )


def compile_affinity(terms: tuple[NodeSelectorTerm, ...]) -> CompiledAffinity:
    compiled: list[CompiledTerm | None] = []
    skipped: list[tuple[int, str]] = []
    for index, term in enumerate(terms):
        if term.is_empty():
            compiled.append(None)
            skipped.append((index, "empty term selects no nodes"))
            continue
        try:
            compiled.append(compile_term(term))
        except PredicateError as exc:
            compiled.append(None)
            skipped.append((index, exc.message))
    return CompiledAffinity(terms=tuple(compiled), skipped=tuple(skipped))


def mismatched_node_selector(
    node_selector: dict[str, str] | None,
    labels: dict[str, str] | None,
) -> dict[str, str]:
    """
    Return the nodeSelector entries the node labels do not satisfy, either
    because the key is absent or because the value differs.
    """
    labels = labels or {}
    mismatch: dict[str, str] = {}
    for key, value in (node_selector or {}).items():
        if labels.get(key) != value:
            mismatch[key] = value
    return mismatch


def format_labels(labels: dict[str, str]) -> str:
    """Render labels as ``key=value`` pairs in key order."""
    return ", ".join(f"{key}={labels[key]}" for key in sorted(labels))
