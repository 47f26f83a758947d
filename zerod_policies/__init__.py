"""
zerod Policies - Centralized configuration for zerod simulations.

This package provides the policy dataclasses consumed by the solver and the
embedding interface. All policies are JSON-serializable.

Usage:
    from zerod_policies import SimulationParameters, RetryPolicy, OperationReport
"""

from .base import (
    OperationReport,
)

from .simulation import (
    SimulationParameters,
    IntegratorPolicy,
    RetryPolicy,
)

__all__ = [
    "OperationReport",
    "SimulationParameters",
    "IntegratorPolicy",
    "RetryPolicy",
]
