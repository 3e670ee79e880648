from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class LayoutConfig:
    # Share of the date span added before the first start and after the last due date.
    padding_ratio: float = 0.10
    # Minimum free space between two milestones sharing a row, as a share of the window.
    gap_ratio: float = 0.02
    # Window width used when all dates collapse to a single instant.
    min_window_days: float = 1.0


DEFAULT_LAYOUT_CONFIG = LayoutConfig()

_LIMITS: dict[str, tuple[float, float]] = {
    "padding_ratio": (0.0, 1.0),
    "gap_ratio": (0.0, 0.5),
    "min_window_days": (1e-6, 3650.0),
}


class LayoutConfigError(ValueError):
    pass


def load_layout_file(path: str | Path) -> dict[str, float]:
    """Load layout overrides from a YAML file.

    Format:
      padding_ratio: 0.1
      gap_ratio: 0.02
      min_window_days: 1

    Returns only the keys present in the file.
    """
    p = Path(path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise LayoutConfigError("layout config must be a mapping of setting -> number")

    out: dict[str, float] = {}
    for k, v in raw.items():
        if k not in _LIMITS:
            raise LayoutConfigError(
                f"unknown layout setting '{k}' (choose from: {', '.join(sorted(_LIMITS))})"
            )
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise LayoutConfigError(f"layout setting '{k}' must be a number")
        lo, hi = _LIMITS[k]
        if not lo <= v <= hi:
            raise LayoutConfigError(f"layout setting '{k}' must be between {lo} and {hi}")
        out[k] = float(v)
    return out


def merged_config(overrides: dict[str, Any] | None = None) -> LayoutConfig:
    """Return DEFAULT_LAYOUT_CONFIG with optional overrides applied."""
    if not overrides:
        return DEFAULT_LAYOUT_CONFIG
    return replace(DEFAULT_LAYOUT_CONFIG, **overrides)


def load_and_merge(config_file: str | None) -> LayoutConfig:
    if not config_file:
        return merged_config()
    return merged_config(load_layout_file(config_file))


def config_as_dict(config: LayoutConfig) -> dict[str, float]:
    return asdict(config)
