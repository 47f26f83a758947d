"""
Simulation and time-integration policies.

This module contains the configuration surface of a zerod simulation:
time discretization, nonlinear solver tolerances, steady initialization,
generalized-alpha damping and the caller-side retry policy for failed steps.

All policies are JSON-serializable.

UNIT CONVENTIONS
----------------
zerod does not convert units. Times are in the same unit as the time
samples of the model's Parameters (seconds in cgs models), and tolerances
apply to residuals in the model's own pressure/flow units.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class SimulationParameters:
    """
    Policy for a full zerod simulation run.

    JSON Schema:
    {
        "number_of_cardiac_cycles": int,
        "number_of_time_pts_per_cardiac_cycle": int,
        "cardiac_period": float | null,
        "absolute_tolerance": float,
        "maximum_nonlinear_iterations": int,
        "steady_initial": bool,
        "output_all_cycles": bool,
        "output_interval": int,
        "rho_infty": float,
        "line_search": bool,
        "line_search_min_step": float,
        "coupled_time_step_size": float | null
    }

    The time step size is derived as
        cardiac_period / (number_of_time_pts_per_cardiac_cycle - 1)
    unless coupled_time_step_size is set, in which case an embedding
    driver prescribes the step directly.
    """
    number_of_cardiac_cycles: int = 1
    number_of_time_pts_per_cardiac_cycle: int = 101
    cardiac_period: Optional[float] = None
    absolute_tolerance: float = 1e-8
    maximum_nonlinear_iterations: int = 30
    steady_initial: bool = True
    output_all_cycles: bool = False
    output_interval: int = 1
    rho_infty: float = 0.1
    line_search: bool = False
    line_search_min_step: float = 0.0625
    coupled_time_step_size: Optional[float] = None

    def validate(self) -> List[str]:
        """Return a list of validation errors (empty if valid)."""
        errors = []
        if self.number_of_cardiac_cycles < 1:
            errors.append("number_of_cardiac_cycles must be >= 1")
        if self.number_of_time_pts_per_cardiac_cycle < 2:
            errors.append("number_of_time_pts_per_cardiac_cycle must be >= 2")
        if self.cardiac_period is not None and self.cardiac_period <= 0.0:
            errors.append("cardiac_period must be positive")
        if self.absolute_tolerance <= 0.0:
            errors.append("absolute_tolerance must be positive")
        if self.maximum_nonlinear_iterations < 1:
            errors.append("maximum_nonlinear_iterations must be >= 1")
        if self.output_interval < 1:
            errors.append("output_interval must be >= 1")
        if not 0.0 <= self.rho_infty <= 1.0:
            errors.append("rho_infty must lie in [0, 1]")
        if not 0.0 < self.line_search_min_step <= 1.0:
            errors.append("line_search_min_step must lie in (0, 1]")
        if self.coupled_time_step_size is not None and self.coupled_time_step_size <= 0.0:
            errors.append("coupled_time_step_size must be positive")
        return errors

    def time_step_size(self, cardiac_period: float) -> float:
        """Time step size for the given cardiac period."""
        if self.coupled_time_step_size is not None:
            return self.coupled_time_step_size
        return cardiac_period / (self.number_of_time_pts_per_cardiac_cycle - 1)

    def integrator_policy(self) -> "IntegratorPolicy":
        """Extract the integrator's subset of this policy."""
        return IntegratorPolicy(
            rho=self.rho_infty,
            atol=self.absolute_tolerance,
            max_iter=self.maximum_nonlinear_iterations,
            line_search=self.line_search,
            line_search_min_step=self.line_search_min_step,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number_of_cardiac_cycles": self.number_of_cardiac_cycles,
            "number_of_time_pts_per_cardiac_cycle": self.number_of_time_pts_per_cardiac_cycle,
            "cardiac_period": self.cardiac_period,
            "absolute_tolerance": self.absolute_tolerance,
            "maximum_nonlinear_iterations": self.maximum_nonlinear_iterations,
            "steady_initial": self.steady_initial,
            "output_all_cycles": self.output_all_cycles,
            "output_interval": self.output_interval,
            "rho_infty": self.rho_infty,
            "line_search": self.line_search,
            "line_search_min_step": self.line_search_min_step,
            "coupled_time_step_size": self.coupled_time_step_size,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SimulationParameters":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class IntegratorPolicy:
    """
    Policy for the generalized-alpha integrator and its Newton loop.

    JSON Schema:
    {
        "rho": float,
        "atol": float,
        "max_iter": int,
        "line_search": bool,
        "line_search_min_step": float
    }

    rho is the spectral radius at infinite frequency: 1.0 gives no
    numerical damping, 0.0 annihilates the highest frequencies in one step.
    """
    rho: float = 0.1
    atol: float = 1e-8
    max_iter: int = 30
    line_search: bool = False
    line_search_min_step: float = 0.0625

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rho": self.rho,
            "atol": self.atol,
            "max_iter": self.max_iter,
            "line_search": self.line_search,
            "line_search_min_step": self.line_search_min_step,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "IntegratorPolicy":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class RetryPolicy:
    """
    Policy for retrying failed time steps.

    The integrator never retries on its own. An embedding driver may pass
    this policy to SolverInterface.step_to to halve the step size after a
    convergence failure.

    JSON Schema:
    {
        "max_halvings": int,
        "min_time_step_size": float
    }
    """
    max_halvings: int = 0
    min_time_step_size: float = 1e-8

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_halvings": self.max_halvings,
            "min_time_step_size": self.min_time_step_size,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RetryPolicy":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


__all__ = [
    "SimulationParameters",
    "IntegratorPolicy",
    "RetryPolicy",
]
