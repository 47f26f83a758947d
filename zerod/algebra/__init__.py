"""Sparse assembly, linear solve and time integration."""

from .sparse_system import SparseSystem, AssemblyPhase, MATRICES
from .integrator import Integrator, IntegratorStatus, StepResult

__all__ = [
    "SparseSystem",
    "AssemblyPhase",
    "MATRICES",
    "Integrator",
    "IntegratorStatus",
    "StepResult",
]
