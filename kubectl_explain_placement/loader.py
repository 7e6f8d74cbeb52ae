import glob
import json
import os
from typing import Any

import yaml

from kubectl_explain_placement.errors import ConfigurationError, DataError
from kubectl_explain_placement.predicates.base_predicate import FilterPredicate
from kubectl_explain_placement.predicates.node_affinity import NodeAffinityPredicate
from kubectl_explain_placement.predicates.node_unschedulable import (
    NodeUnschedulablePredicate,
)
from kubectl_explain_placement.predicates.resource_fit import NodeResourcesFitPredicate
from kubectl_explain_placement.predicates.taint_toleration import (
    TaintTolerationPredicate,
)

# ----------------------------
# Predicate set
# ----------------------------


def default_predicates() -> list[FilterPredicate]:
    """
    The admission predicates in evaluation order.
    """
    return [
        NodeResourcesFitPredicate(),
        TaintTolerationPredicate(),
        NodeAffinityPredicate(),
        NodeUnschedulablePredicate(),
    ]


def validate_predicate(predicate: Any) -> None:
    name = getattr(predicate, "name", None)
    if not isinstance(name, str) or not name:
        raise ConfigurationError(f"Predicate {predicate!r}.name must be a non-empty string")

    if not callable(getattr(predicate, "check", None)):
        raise ConfigurationError(f"Predicate {name}.check must be callable")

    pre_check = getattr(predicate, "pre_check", None)
    if pre_check is not None and not callable(pre_check):
        raise ConfigurationError(f"Predicate {name}.pre_check must be callable")


def validate_predicates(predicates: list[Any]) -> None:
    if not predicates:
        raise ConfigurationError("At least one predicate is required")

    seen: set[str] = set()
    for predicate in predicates:
        validate_predicate(predicate)
        if predicate.name in seen:
            raise ConfigurationError(f"Duplicate predicate name {predicate.name!r}")
        seen.add(predicate.name)


# ----------------------------
# Manifest loading
# ----------------------------

MANIFEST_EXTENSIONS = (".json", ".yaml", ".yml")


def load_manifest(path: str) -> Any:
    """
    Load a JSON or YAML manifest (``kubectl get -o json|yaml`` output).
    """
    try:
        with open(path, encoding="utf-8") as f:
            if path.endswith(".json"):
                return json.load(f)
            documents = [d for d in yaml.safe_load_all(f) if d is not None]
    except OSError as exc:
        raise DataError(f"Cannot read manifest {path}: {exc}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DataError(f"Cannot parse manifest {path}: {exc}") from exc

    if len(documents) == 1:
        return documents[0]
    return documents


def normalize_objects(raw: Any) -> list[dict[str, Any]]:
    """
    Flatten a manifest into a list of objects.

    Accepts a single object, a ``kind: List`` / ``PodList`` wrapper, or a
    plain list of either.
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        objects: list[dict[str, Any]] = []
        for item in raw:
            objects.extend(normalize_objects(item))
        return objects
    if not isinstance(raw, dict):
        raise DataError(f"Manifest must contain objects, got {type(raw).__name__}")
    if "items" in raw and str(raw.get("kind", "List")).endswith("List"):
        return normalize_objects(raw.get("items") or [])
    return [raw]


def load_objects(path: str) -> list[dict[str, Any]]:
    """
    Load every object from a manifest file or from all manifests in a
    directory (sorted by file name).
    """
    if os.path.isdir(path):
        objects: list[dict[str, Any]] = []
        for file in sorted(glob.glob(os.path.join(path, "*"))):
            if file.endswith(MANIFEST_EXTENSIONS):
                objects.extend(normalize_objects(load_manifest(file)))
        return objects
    return normalize_objects(load_manifest(path))
