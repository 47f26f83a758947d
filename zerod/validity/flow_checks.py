"""
Solution Flow Checks

Validates hemodynamic properties of a computed state: mass conservation
at junctions and finiteness of all unknowns.
"""

from typing import TYPE_CHECKING

import numpy as np

from .model_checks import CheckResult

if TYPE_CHECKING:
    from ..model import Model


def check_junction_flow_balance(
    model: "Model",
    y: np.ndarray,
    atol: float = 1e-8,
    rtol: float = 0.0,
) -> CheckResult:
    """
    Check mass conservation at every junction.

    The signed flow sum (inlets minus outlets) of each junction must stay
    within ``atol + rtol * inflow``.

    Parameters
    ----------
    model : Model
        Finalized model
    y : np.ndarray
        Solution vector
    atol : float
        Absolute tolerance on the signed flow sum
    rtol : float
        Tolerance relative to the junction inflow

    Returns
    -------
    CheckResult
        Result with the worst imbalance and the violating junctions
    """
    imbalances = []
    violations = []
    for junction in model.junction_blocks():
        inflow = sum(y[node.flow_dof] for node in junction.inlet_nodes)
        outflow = sum(y[node.flow_dof] for node in junction.outlet_nodes)
        imbalance = abs(inflow - outflow)
        imbalances.append(imbalance)
        if imbalance > atol + rtol * abs(inflow):
            violations.append({
                "junction": junction.name,
                "inflow": float(inflow),
                "outflow": float(outflow),
                "imbalance": float(imbalance),
            })

    max_imbalance = float(max(imbalances)) if imbalances else 0.0
    errors = [
        f"Junction '{v['junction']}' loses {v['imbalance']:.3e} of flow"
        for v in violations
    ]
    return CheckResult(
        name="junction_flow_balance",
        passed=not violations,
        message=f"Flow balance: max imbalance {max_imbalance:.3e}" if imbalances else "No junctions found",
        details={
            "junctions_checked": len(imbalances),
            "max_imbalance": max_imbalance,
            "violations": violations,
            "atol": atol,
            "rtol": rtol,
        },
        errors=errors,
    )


def check_finite_solution(model: "Model", y: np.ndarray) -> CheckResult:
    """Check that no unknown is NaN or infinite."""
    bad = [name for name, value in zip(model.variable_names, y) if not np.isfinite(value)]
    return CheckResult(
        name="finite_solution",
        passed=not bad,
        message="All unknowns are finite" if not bad else f"{len(bad)} non-finite unknowns",
        details={"non_finite": bad},
        errors=[f"Unknown '{name}' is not finite" for name in bad],
    )


__all__ = ["check_junction_flow_balance", "check_finite_solution"]
