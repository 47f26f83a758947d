"""
Model Topology and Parameter Checks

Validates a model before simulation: graph connectivity of the blocks and
physical signs of lumped parameters.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, TYPE_CHECKING

import networkx as nx
import numpy as np

from ..adapters.networkx_adapter import to_networkx

if TYPE_CHECKING:
    from ..model import Model

NONNEGATIVE_PREFIXES = ("R", "C", "L")
NONNEGATIVE_NAMES = {"stenosis_coefficient"}


@dataclass
class CheckResult:
    """Result of a single validation check."""
    name: str
    passed: bool
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "message": self.message,
            "details": self.details,
            "warnings": self.warnings,
            "errors": self.errors,
        }


def check_connectivity(model: "Model") -> CheckResult:
    """
    Check that all blocks form one weakly connected network.

    Disconnected sub-networks are solvable but usually indicate a missing
    connection, so they are reported as warnings.

    Parameters
    ----------
    model : Model
        Model to check

    Returns
    -------
    CheckResult
        Result with the component count and the blocks of each component
    """
    graph = to_networkx(model)
    if graph.number_of_nodes() == 0:
        return CheckResult(
            name="connectivity",
            passed=True,
            message="Model has no blocks",
            details={"num_components": 0},
        )
    components = [sorted(c) for c in nx.weakly_connected_components(graph)]
    passed = len(components) == 1
    warnings = []
    if not passed:
        warnings.append(f"Model has {len(components)} disconnected sub-networks")
    return CheckResult(
        name="connectivity",
        passed=passed,
        message="Model is connected" if passed else f"{len(components)} connected components",
        details={"num_components": len(components), "components": components},
        warnings=warnings,
    )


def _must_be_nonnegative(name: str) -> bool:
    return name in NONNEGATIVE_NAMES or name.startswith(NONNEGATIVE_PREFIXES)


def check_parameter_signs(model: "Model") -> CheckResult:
    """Check that resistances, capacitances, inductances and stenosis coefficients are >= 0."""
    violations = []
    for block in model.blocks:
        for name, param in block.params.items():
            if not _must_be_nonnegative(name) or param.num_samples == 0:
                continue
            if np.any(param.values < 0.0):
                violations.append({"block": block.name, "parameter": name})

    errors = [f"Negative parameter '{v['parameter']}' in block '{v['block']}'" for v in violations]
    return CheckResult(
        name="parameter_signs",
        passed=not violations,
        message="All lumped parameters are non-negative" if not violations
        else f"{len(violations)} negative parameters",
        details={"violations": violations},
        errors=errors,
    )


__all__ = ["CheckResult", "check_connectivity", "check_parameter_signs"]
