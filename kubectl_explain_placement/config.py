"""Configuration for kubectl-explain-placement.

An optional YAML file provides defaults; command-line flags override them.
"""

import os
from dataclasses import dataclass, fields
from typing import Any

import yaml

from kubectl_explain_placement.errors import ConfigurationError
from kubectl_explain_placement.output import OUTPUT_FORMATS

DEFAULT_KUBECONFIG = os.path.join(os.path.expanduser("~"), ".kube", "config")


@dataclass
class TroubleshootConfig:
    """Settings shared by the CLI and the data providers."""
    kubeconfig: str = DEFAULT_KUBECONFIG
    context: str | None = None  # kubeconfig context, None = current
    run_all_filters: bool = True
    output_format: str = "text"  # "text", "json" or "yaml"
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigurationError(
                f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}"
            )
        if not isinstance(self.run_all_filters, bool):
            raise ConfigurationError("run_all_filters must be a boolean")

    def merged(self, **overrides: Any) -> "TroubleshootConfig":
        """Return a copy with every non-None override applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return TroubleshootConfig(**values)


def load_config(path: str | None = None) -> TroubleshootConfig:
    """Load configuration from a YAML file, or defaults when path is None.

    Raises:
        ConfigurationError: unreadable file, non-mapping document or unknown keys.
    """
    if path is None:
        return TroubleshootConfig()

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Cannot parse config file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(TroubleshootConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigurationError(
            f"Config file {path} has unknown keys: {sorted(unknown)}"
        )

    if raw.get("kubeconfig"):
        raw["kubeconfig"] = os.path.expanduser(raw["kubeconfig"])

    return TroubleshootConfig(**raw)
