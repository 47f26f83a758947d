"""
zerod - Lumped-parameter (0D) blood flow solver

This package simulates pressure and flow in networks of lumped vessels,
junctions, boundary conditions, heart chambers and closed-loop circulation
models. Each block contributes its equations to a sparse
differential-algebraic system

    E(y) * ydot + F(y) * y + C(y, t) = 0

that is advanced in time with the generalized-alpha method.

Main Entry Points:
    - build_model(): Build a finalized Model from a description dict
    - Solver: One model instance with steady initialization and stepping
    - SolverInterface: Multiple independent instances for external coupling
    - calibrate(): Fit block parameters to observed states
    - run_model_checks(): Topology, parameter and solution checks

Example:
    >>> from zerod import Solver
    >>> solver = Solver(description)
    >>> result = solver.run()
    >>> result.variable("pressure:INFLOW:V0")
"""

from .core import (
    ZeroDError,
    ConfigurationError,
    NumericalError,
    ConvergenceFailure,
    Parameter,
    DOFHandler,
    Node,
)
from .model import Model
from .builder import build_model, initial_state
from .algebra import SparseSystem, AssemblyPhase, Integrator, IntegratorStatus, StepResult
from .state import SimulationState
from .solver import Solver, SimulationResult
from .interface import SolverInterface, get_interface
from .calibration import calibrate, CalibrationResult
from .validity import run_model_checks, ValidationReport
from .adapters import to_networkx

__version__ = "1.0.0"

__all__ = [
    "ZeroDError",
    "ConfigurationError",
    "NumericalError",
    "ConvergenceFailure",
    "Parameter",
    "DOFHandler",
    "Node",
    "Model",
    "build_model",
    "initial_state",
    "SparseSystem",
    "AssemblyPhase",
    "Integrator",
    "IntegratorStatus",
    "StepResult",
    "SimulationState",
    "Solver",
    "SimulationResult",
    "SolverInterface",
    "get_interface",
    "calibrate",
    "CalibrationResult",
    "run_model_checks",
    "ValidationReport",
    "to_networkx",
    "__version__",
]
