from typing import Any

from kubectl_explain_placement.errors import DuplicateKeyError, NotFoundError


class CycleState:
    """
    Scratch space shared by the pre-check and check phases of one run.

    Each key may be written once. Reading a key nobody wrote is a defect in
    the predicate, not a property of the inputs.
    """

    def __init__(self) -> None:
        self._storage: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        if key in self._storage:
            raise DuplicateKeyError(f"cycle state key {key!r} already written in this run")
        self._storage[key] = value

    def get(self, key: str) -> Any:
        try:
            return self._storage[key]
        except KeyError:
            raise NotFoundError(f"cycle state key {key!r} not found") from None

    def __contains__(self, key: object) -> bool:
        return key in self._storage

    def keys(self) -> list[str]:
        return list(self._storage)
