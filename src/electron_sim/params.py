# MIT License (see LICENSE)
"""
Simulation parameters and their valid ranges.

Parameters are changed at runtime through World.set_parameter. Out-of-range
values are clamped into the documented range rather than rejected; unknown
names and non-finite values are validation errors.

Ranges:
    theta           [0, 2]       Barnes-Hut opening threshold. 0 = exact.
    softening       [0, 1e3]     Minimum effective separation ε.
    dt              [1e-6, 10]   Default timestep.
    damping         [0, 1]       Velocity multiplier per step. 1 = none.
    restitution     [0, 1]       Normal velocity kept on a boundary bounce.
    max_tree_depth  [1, 64]      Quadtree depth cap (integer).
    coulomb_k       [0, 1e12]    Coulomb constant (1 = simulation units).
"""
from __future__ import annotations
import math
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from .constants import DEFAULT_K, DEFAULT_SOFTENING
from .errors import UnknownParameterError, ValidationError


@dataclass(frozen=True)
class ParamRange:
    """Inclusive range of a parameter; integer parameters are rounded."""
    lo: float
    hi: float
    integer: bool = False

    def clamp(self, value: float) -> float | int:
        v = min(self.hi, max(self.lo, value))
        if self.integer:
            return int(round(v))
        return float(v)


PARAMETER_RANGES: dict[str, ParamRange] = {
    "theta": ParamRange(0.0, 2.0),
    "softening": ParamRange(0.0, 1e3),
    "dt": ParamRange(1e-6, 10.0),
    "damping": ParamRange(0.0, 1.0),
    "restitution": ParamRange(0.0, 1.0),
    "max_tree_depth": ParamRange(1, 64, integer=True),
    "coulomb_k": ParamRange(0.0, 1e12),
}

# Names used by the UI layer
ALIASES: dict[str, str] = {
    "maxTreeDepth": "max_tree_depth",
    "k": "coulomb_k",
}


def canonical_name(name: str) -> str:
    """Resolve aliases; raise UnknownParameterError for unknown names."""
    name = ALIASES.get(name, name)
    if name not in PARAMETER_RANGES:
        known = ", ".join(sorted(PARAMETER_RANGES))
        raise UnknownParameterError(f"Unknown parameter '{name}' (known: {known})")
    return name


def clamp_parameter(name: str, value: Any) -> float | int:
    """
    Validate and clamp a parameter value.

    Args:
        name: Parameter name or alias.
        value: New value; anything float() accepts.

    Returns:
        The value clamped into the parameter's range.

    Raises:
        UnknownParameterError: If name is not a parameter.
        ValidationError: If value is not a finite number.
    """
    name = canonical_name(name)
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Parameter '{name}' needs a number, got {value!r}") from None
    if not math.isfinite(v):
        raise ValidationError(f"Parameter '{name}' must be finite, got {v}")
    return PARAMETER_RANGES[name].clamp(v)


@dataclass(frozen=True)
class SimParams:
    """
    Scalar parameters of a World.

    Attributes:
        theta: Barnes-Hut threshold (node size / distance).
        softening: Softening length ε; forces use max(d², ε²).
        dt: Timestep used when World.step() is called without one.
        damping: Velocity multiplier applied after each step.
        restitution: Fraction of normal velocity kept when bouncing off bounds.
        max_tree_depth: Depth at which the quadtree stops subdividing.
        coulomb_k: Coulomb constant.
    """
    theta: float = 0.75
    softening: float = DEFAULT_SOFTENING
    dt: float = 0.01
    damping: float = 1.0
    restitution: float = 1.0
    max_tree_depth: int = 32
    coulomb_k: float = DEFAULT_K

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, clamp_parameter(f.name, getattr(self, f.name)))

    def with_value(self, name: str, value: Any) -> "SimParams":
        """Return a copy with one parameter changed (clamped)."""
        name = canonical_name(name)
        return replace(self, **{name: clamp_parameter(name, value)})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SimParams":
        """
        Build parameters from a configuration mapping.

        Missing keys keep their defaults; aliases are accepted.

        Raises:
            UnknownParameterError: For keys that are not parameters.
        """
        kwargs = {canonical_name(k): v for k, v in data.items()}
        return cls(**kwargs)

    def to_dict(self) -> dict[str, float | int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
