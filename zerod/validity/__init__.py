"""
Validity checks for models and computed states.

Example
-------
>>> from zerod.validity import run_model_checks
>>> report = run_model_checks(solver.model, solver.y)
>>> report.status
'ok'
"""

from .model_checks import CheckResult, check_connectivity, check_parameter_signs
from .flow_checks import check_junction_flow_balance, check_finite_solution
from .runner import ValidationReport, run_model_checks

__all__ = [
    "CheckResult",
    "check_connectivity",
    "check_parameter_signs",
    "check_junction_flow_balance",
    "check_finite_solution",
    "ValidationReport",
    "run_model_checks",
]
