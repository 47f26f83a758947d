"""
Model Validity Runner

Single entry point for the topology, parameter and solution checks. The
results are aggregated into one JSON-serializable report.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, TYPE_CHECKING
import json
import logging
from pathlib import Path

import numpy as np

from .flow_checks import check_finite_solution, check_junction_flow_balance
from .model_checks import CheckResult, check_connectivity, check_parameter_signs

if TYPE_CHECKING:
    from ..model import Model

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """Aggregated result of all model checks."""
    success: bool
    checks: List[CheckResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    status: Literal["ok", "warnings", "fail"] = "ok"

    def get_check(self, name: str) -> Optional[CheckResult]:
        for check in self.checks:
            if check.name == name:
                return check
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "status": self.status,
            "checks": [c.to_dict() for c in self.checks],
            "warnings": self.warnings,
            "errors": self.errors,
            "metadata": self.metadata,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: Path) -> None:
        with open(path, "w") as f:
            f.write(self.to_json())


def run_model_checks(
    model: "Model",
    y: Optional[np.ndarray] = None,
    flow_atol: float = 1e-8,
) -> ValidationReport:
    """
    Run all model checks, and the solution checks when ``y`` is given.

    Connectivity problems are warnings; negative parameters, non-finite
    unknowns and junction imbalances are errors.

    Parameters
    ----------
    model : Model
        Finalized model
    y : np.ndarray, optional
        Solution vector to check
    flow_atol : float
        Absolute tolerance of the junction flow balance

    Returns
    -------
    ValidationReport
    """
    checks = [check_connectivity(model), check_parameter_signs(model)]
    if y is not None:
        checks.append(check_finite_solution(model, y))
        checks.append(check_junction_flow_balance(model, y, atol=flow_atol))

    all_warnings: List[str] = []
    all_errors: List[str] = []
    for result in checks:
        all_warnings.extend(result.warnings)
        all_errors.extend(result.errors)

    if all_errors:
        status: Literal["ok", "warnings", "fail"] = "fail"
    elif all_warnings:
        status = "warnings"
    else:
        status = "ok"

    report = ValidationReport(
        success=not all_errors,
        checks=checks,
        warnings=all_warnings,
        errors=all_errors,
        status=status,
        metadata={
            "total_checks": len(checks),
            "passed_checks": sum(1 for c in checks if c.passed),
            "failed_checks": sum(1 for c in checks if not c.passed),
        },
    )
    for warning in all_warnings:
        logger.warning(warning)
    for error in all_errors:
        logger.error(error)
    return report


__all__ = ["ValidationReport", "run_model_checks"]
