import functools
import re
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Any

from kubectl_explain_placement.errors import PredicateError

# ----------------------------
# Kubernetes resource quantities
# ----------------------------

BINARY_SI = "BinarySI"
DECIMAL_SI = "DecimalSI"
DECIMAL_EXPONENT = "DecimalExponent"

_BINARY_SUFFIXES = {
    "Ki": 1,
    "Mi": 2,
    "Gi": 3,
    "Ti": 4,
    "Pi": 5,
    "Ei": 6,
}

_DECIMAL_SUFFIXES = {
    "n": -3,
    "u": -2,
    "m": -1,
    "": 0,
    "k": 1,
    "M": 2,
    "G": 3,
    "T": 4,
    "P": 5,
    "E": 6,
}

_DECIMAL_BY_POWER = {power: suffix for suffix, power in _DECIMAL_SUFFIXES.items()}
_BINARY_BY_POWER = {power: suffix for suffix, power in _BINARY_SUFFIXES.items()}

_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+))(?P<suffix>[eE][+-]?\d+|[a-zA-Z]*)$"
)

_EXPONENT_RE = re.compile(r"^[eE][+-]?\d+$")

_NANO = Decimal(1).scaleb(-9)


class InvalidQuantity(PredicateError, ValueError):
    pass


@functools.total_ordering
class Quantity:
    """
    Fixed-point resource amount, e.g. ``500m`` CPU or ``2Gi`` memory.

    Quantities add, subtract and compare on their numeric value. The suffix
    family they were parsed with (binary, decimal or exponent) is kept for
    rendering, the same way ``kubectl`` prints them back.
    """

    __slots__ = ("value", "format")

    def __init__(self, value: Decimal | int = 0, fmt: str = DECIMAL_SI):
        self.value = Decimal(value)
        self.format = fmt

    @classmethod
    def parse(cls, raw: Any) -> "Quantity":
        if isinstance(raw, Quantity):
            return raw
        if isinstance(raw, bool) or raw is None:
            raise InvalidQuantity(f"quantity {raw!r} is not a number")
        if isinstance(raw, (int, float)):
            return cls(Decimal(str(raw)), DECIMAL_SI)

        text = str(raw).strip()
        match = _QUANTITY_RE.match(text)
        if not match:
            raise InvalidQuantity(f"unable to parse quantity {raw!r}")

        try:
            number = Decimal(match.group("number"))
        except InvalidOperation as exc:
            raise InvalidQuantity(f"unable to parse quantity {raw!r}") from exc

        suffix = match.group("suffix")
        if suffix in _BINARY_SUFFIXES:
            return cls(number * (1024 ** _BINARY_SUFFIXES[suffix]), BINARY_SI)
        if suffix in _DECIMAL_SUFFIXES:
            return cls(number.scaleb(3 * _DECIMAL_SUFFIXES[suffix]), DECIMAL_SI)
        if _EXPONENT_RE.match(suffix):
            return cls(number.scaleb(int(suffix[1:])), DECIMAL_EXPONENT)

        raise InvalidQuantity(f"unable to parse quantity {raw!r}: unknown suffix {suffix!r}")

    # ---- arithmetic ----

    def __add__(self, other: "Quantity") -> "Quantity":
        if not isinstance(other, Quantity):
            return NotImplemented
        return Quantity(self.value + other.value, self.format)

    def __sub__(self, other: "Quantity") -> "Quantity":
        if not isinstance(other, Quantity):
            return NotImplemented
        return Quantity(self.value - other.value, self.format)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: "Quantity") -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        return self.value < other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def is_zero(self) -> bool:
        return self.value == 0

    # ---- rendering ----

    def __str__(self) -> str:
        value = self.value
        if value == 0:
            return "0"

        sign = "-" if value < 0 else ""
        magnitude = abs(value)

        if self.format == BINARY_SI and magnitude == magnitude.to_integral_value():
            for power in range(6, 0, -1):
                mantissa = magnitude / (1024**power)
                if mantissa >= 1 and mantissa == mantissa.to_integral_value():
                    return f"{sign}{int(mantissa)}{_BINARY_BY_POWER[power]}"
            if magnitude < 1024:
                return f"{sign}{int(magnitude)}"

        # Sub-nano precision is rounded up, as Kubernetes does.
        if magnitude % _NANO:
            magnitude = (magnitude / _NANO).to_integral_value(rounding=ROUND_CEILING) * _NANO

        for power in range(6, -4, -1):
            mantissa = magnitude.scaleb(-3 * power)
            if mantissa == mantissa.to_integral_value():
                if self.format == DECIMAL_EXPONENT:
                    suffix = f"e{3 * power}" if power else ""
                else:
                    suffix = _DECIMAL_BY_POWER[power]
                return f"{sign}{int(mantissa)}{suffix}"

        return f"{sign}{magnitude.normalize()}"

    def __repr__(self) -> str:
        return f"Quantity({str(self)!r})"


def parse_quantity(raw: Any) -> Quantity:
    return Quantity.parse(raw)


def sum_resources(
    resource_lists: list[dict[str, Any]],
) -> dict[str, Quantity]:
    """
    Add up resource lists (resource-name -> quantity) key by key.
    """
    total: dict[str, Quantity] = {}
    for resources in resource_lists:
        for name, raw in resources.items():
            quantity = parse_quantity(raw)
            if name in total:
                total[name] = total[name] + quantity
            else:
                total[name] = quantity
    return total
