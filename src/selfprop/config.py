from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .interpolate import DOMAIN_POLICIES


@dataclass
class RpmSettings:
    sample_rate_hz: float = 800.0
    warm_up_samples: int = 8000  # 10 s acceleration transient at 800 Hz
    threshold: float = 0.5
    boundary_correction: int = 2

    def validate(self) -> None:
        if self.sample_rate_hz <= 0:
            raise ValueError("rpm.sample_rate_hz must be positive")
        if self.warm_up_samples < 0:
            raise ValueError("rpm.warm_up_samples may not be negative")
        if self.threshold <= 0:
            raise ValueError("rpm.threshold must be positive")
        if self.boundary_correction < 0:
            raise ValueError("rpm.boundary_correction may not be negative")


@dataclass
class CurveSettings:
    fit_degree: int = 4
    refit_degree: Optional[int] = None  # bank degree - 1 when unset
    band_step: float = 0.05
    domain_policy: str = "union"

    def validate(self) -> None:
        if self.fit_degree < 1:
            raise ValueError("curves.fit_degree must be at least 1")
        if self.refit_degree is not None and self.refit_degree < 1:
            raise ValueError("curves.refit_degree must be at least 1")
        if not 0 < self.band_step <= 1:
            raise ValueError("curves.band_step must be in (0, 1]")
        if self.domain_policy not in DOMAIN_POLICIES:
            raise ValueError(
                f"Unsupported curves.domain_policy '{self.domain_policy}' (expected one of {DOMAIN_POLICIES})"
            )


@dataclass
class AnalysisConfig:
    rpm: RpmSettings = field(default_factory=RpmSettings)
    curves: CurveSettings = field(default_factory=CurveSettings)


def _load_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {**base}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge(base[key], value)  # type: ignore[index]
        else:
            merged[key] = value
    return merged


def load_config(path: Path | str | None = None, overrides: Sequence[str] | None = None) -> AnalysisConfig:
    """
    Load analysis settings from JSON and apply CLI-style overrides.

    Missing keys keep their defaults; unknown sections or keys are rejected.
    Overrides are ``section.key=value`` pairs:
        ["rpm.warm_up_samples=4000", "curves.domain_policy=reference"]
    """
    data: Dict[str, Any] = _load_json(Path(path)) if path is not None else {}
    override_data: Dict[str, Any] = {}
    for override in overrides or []:
        section, key, value = _parse_override(override)
        override_data.setdefault(section, {})[key] = value
    merged = _merge(data, override_data)

    unknown = set(merged) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown config sections: {sorted(unknown)}")
    config = AnalysisConfig(
        **{name: _build_section(name, merged.get(name) or {}) for name in _SECTIONS}
    )
    config.rpm.validate()
    config.curves.validate()
    return config


_SECTIONS = {"rpm": RpmSettings, "curves": CurveSettings}
# annotations are strings under postponed evaluation
_CASTS = {"float": float, "int": int, "str": str, "Optional[int]": int}


def _build_section(name: str, values: Any) -> Any:
    cls = _SECTIONS[name]
    if not isinstance(values, dict):
        raise ValueError(f"Config section '{name}' must be an object")
    known = {f.name: f for f in fields(cls)}
    unknown = set(values) - set(known)
    if unknown:
        raise ValueError(f"Unknown {name} settings: {sorted(unknown)}")
    return cls(**{key: _cast(f"{name}.{key}", value, known[key].type) for key, value in values.items()})


def _cast(key: str, value: Any, annotation: str) -> Any:
    if value is None and annotation.startswith("Optional"):
        return None
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid value {value!r} for {key}")
    cast = _CASTS[annotation]
    if cast is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{key} must be an integer, got {value!r}")
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value {value!r} for {key}") from exc


def _parse_override(item: str) -> tuple[str, str, Any]:
    if "=" not in item:
        raise ValueError(f"Override '{item}' must use key=value syntax")
    dotted, raw_value = item.split("=", 1)
    section, _, key = dotted.strip().partition(".")
    if not section or not key or "." in key:
        raise ValueError(f"Override key '{dotted.strip()}' must look like section.key")
    return section, key, _coerce_value(raw_value.strip())


def _coerce_value(raw: str) -> Any:
    lowered = raw.lower()
    if lowered in {"null", "none"}:
        return None
    if lowered in {"true", "false"}:
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw
