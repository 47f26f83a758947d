"""
Restart state.

A SimulationState is the tuple (DOF map, y, ydot, time). It is enough to
resume stepping a model built from the same description; the sparsity
pattern is rebuilt from the blocks, never stored.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np

from .core.errors import ConfigurationError


@dataclass
class SimulationState:
    """Serializable solver state for restart and state transfer."""
    dof_map: List[str]
    y: np.ndarray
    ydot: np.ndarray
    time: float

    def __post_init__(self):
        self.y = np.array(self.y, dtype=float)
        self.ydot = np.array(self.ydot, dtype=float)
        if self.y.shape != (len(self.dof_map),) or self.ydot.shape != (len(self.dof_map),):
            raise ConfigurationError(
                f"State vectors of length {self.y.size}/{self.ydot.size} "
                f"do not match a DOF map of {len(self.dof_map)} variables"
            )
        self.time = float(self.time)

    def check_compatible(self, dof_map: List[str]) -> None:
        """Raise ConfigurationError unless ``dof_map`` matches this state."""
        if list(dof_map) != list(self.dof_map):
            missing = set(self.dof_map) ^ set(dof_map)
            detail = f"differing variables {sorted(missing)[:5]}" if missing else "different ordering"
            raise ConfigurationError(f"Restart state does not match the model DOF map ({detail})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dof_map": list(self.dof_map),
            "y": self.y.tolist(),
            "ydot": self.ydot.tolist(),
            "time": self.time,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SimulationState":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


__all__ = ["SimulationState"]
