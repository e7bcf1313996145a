from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

_KEY_ALIASES = {
    "featherAmount": "feather_amount",
    "structureWeight": "structure_weight",
    "colorWeight": "color_weight",
}


def _unit_interval(name: str, value: Any) -> float:
    number = float(value)
    if not 0.0 <= number <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1, got {number}")
    return number


@dataclass(frozen=True)
class AnalysisOptions:
    """Tuning knobs for :func:`sketchmask.analyze_sketch`.

    ``feather_amount`` is the fraction of the smaller canvas side used as the
    feather radius. The two weights scale the structural confidence and the
    color guidance weights.
    """

    feather_amount: float = 0.03
    structure_weight: float = 0.7
    color_weight: float = 0.3

    def __post_init__(self) -> None:
        for name in ("feather_amount", "structure_weight", "color_weight"):
            object.__setattr__(self, name, _unit_interval(name, getattr(self, name)))

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def merged(self, **overrides: Optional[float]) -> "AnalysisOptions":
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisOptions":
        if not isinstance(data, dict):
            raise ValueError("Analysis options must be a JSON object.")
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name in {"feather_amount", "structure_weight", "color_weight"} and value is not None:
                values[name] = value
        return cls(**values)

    @classmethod
    def load(cls, path: Path) -> "AnalysisOptions":
        if not path.exists():
            return cls()
        raw = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(raw)
