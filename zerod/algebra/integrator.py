"""
Generalized-alpha time integration.

One call to ``Integrator.step`` advances the state (y, ydot) from t to
t + dt. The nonlinear system is solved at the intermediate levels

    y_af    = y_n    + alpha_f * (y_n+1    - y_n)      at t + alpha_f * dt
    ydot_am = ydot_n + alpha_m * (ydot_n+1 - ydot_n)

with Newton-Raphson iterations on the residual of the sparse system. The
spectral radius rho in [0, 1] controls high-frequency damping.

Reference: Jansen, K. E., Whiting, C. H., Hulbert, G. M. A generalized-alpha
method for integrating the filtered Navier-Stokes equations with a
stabilized finite element method. CMAME 190, 305-319 (2000).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TYPE_CHECKING
import logging

import numpy as np

from zerod_policies import IntegratorPolicy

from ..core.errors import ConfigurationError, NumericalError
from .sparse_system import AssemblyPhase, SparseSystem

if TYPE_CHECKING:
    from ..model import Model

logger = logging.getLogger(__name__)


class IntegratorStatus(Enum):
    INITIALIZED = "initialized"
    STEPPING = "stepping"
    CONVERGED = "converged"
    FAILED = "failed"


@dataclass
class StepResult:
    """
    Outcome of one time step.

    On failure ``y`` and ``ydot`` hold the unchanged previous state and
    ``time`` the previous time.
    """
    status: IntegratorStatus
    time: float
    y: np.ndarray
    ydot: np.ndarray
    iterations: int = 0
    residual_norm: float = 0.0
    time_step_size: float = 0.0
    metadata: dict = field(default_factory=dict)

    @property
    def converged(self) -> bool:
        return self.status is IntegratorStatus.CONVERGED


class Integrator:
    """
    Generalized-alpha integrator for a model and its sparse system.

    Parameters
    ----------
    model : Model
        Finalized model
    system : SparseSystem
        Reserved sparse system of the model
    time_step_size : float
        Default step size
    policy : IntegratorPolicy, optional
        Damping, tolerance and iteration limits
    """

    def __init__(
        self,
        model: "Model",
        system: SparseSystem,
        time_step_size: float,
        policy: Optional[IntegratorPolicy] = None,
    ):
        self.model = model
        self.system = system
        self.policy = policy or IntegratorPolicy()
        if not 0.0 <= self.policy.rho <= 1.0:
            raise ConfigurationError(f"rho must lie in [0, 1], got {self.policy.rho}")
        rho = self.policy.rho
        self.alpha_m = 0.5 * (3.0 - rho) / (1.0 + rho)
        self.alpha_f = 1.0 / (1.0 + rho)
        self.gamma = 0.5 + self.alpha_m - self.alpha_f
        self.ydot_init_coeff = 1.0 - 1.0 / self.gamma
        self.time_step_size = 0.0
        self.e_coeff = 0.0
        self.update_time_step_size(time_step_size)
        self.status = IntegratorStatus.INITIALIZED
        self.n_nonlin_iter = 0
        self.n_steps = 0
        self._factorized_modes = set()

    def update_time_step_size(self, time_step_size: float) -> None:
        if time_step_size <= 0.0:
            raise ConfigurationError(f"time step size must be positive, got {time_step_size}")
        self.time_step_size = time_step_size
        self.e_coeff = self.alpha_m / (self.alpha_f * self.gamma * time_step_size)

    def _evaluate(self, y_af: np.ndarray, ydot_am: np.ndarray) -> np.ndarray:
        self.system.assemble(self.model, AssemblyPhase.SOLUTION, y=y_af, ydot=ydot_am)
        residual = self.system.residual(y_af, ydot_am)
        if not np.all(np.isfinite(residual)):
            raise NumericalError("Residual contains non-finite values")
        return residual

    def step(
        self,
        time: float,
        y: np.ndarray,
        ydot: np.ndarray,
        time_step_size: Optional[float] = None,
    ) -> StepResult:
        """
        Advance one time step.

        Parameters
        ----------
        time : float
            Current time
        y, ydot : np.ndarray
            Committed state at ``time``; never modified
        time_step_size : float, optional
            Step size for this step (defaults to the configured one)

        Returns
        -------
        StepResult
            CONVERGED with the new state, or FAILED with the old state
            after ``max_iter`` Newton updates

        Raises
        ------
        NumericalError
            On a singular Jacobian or non-finite residual/update
        """
        if time_step_size is not None and time_step_size != self.time_step_size:
            self.update_time_step_size(time_step_size)
        dt = self.time_step_size
        policy = self.policy
        self.status = IntegratorStatus.STEPPING

        try:
            # predictor
            y_af = y.copy()
            ydot_am = ydot + self.alpha_m * (ydot * self.ydot_init_coeff - ydot)

            if self.model.needs_constant_update:
                self.system.assemble(self.model, AssemblyPhase.CONSTANT)
            self.system.assemble(self.model, AssemblyPhase.TIME, time=time + self.alpha_f * dt)

            iterations = 0
            residual = self._evaluate(y_af, ydot_am)
            norm = float(np.max(np.abs(residual))) if residual.size else 0.0
            # first step in steady or transient mode: reject a singular structure
            # even when the initial state already satisfies the residual
            if self.system.steady not in self._factorized_modes:
                self.system.factorize(self.e_coeff)
                self._factorized_modes.add(self.system.steady)
            while norm >= policy.atol and iterations < policy.max_iter:
                dy = self.system.solve(residual, self.e_coeff)
                y_af, ydot_am, residual, norm = self._apply_update(y_af, ydot_am, dy, norm)
                iterations += 1
                logger.debug(f"t={time + dt:.6g} iteration {iterations}: residual {norm:.3e}")
        except NumericalError:
            self.status = IntegratorStatus.FAILED
            raise

        self.n_nonlin_iter += iterations
        if norm >= policy.atol:
            self.status = IntegratorStatus.FAILED
            logger.warning(
                f"Newton did not converge at t={time + dt:.6g} after {iterations} iterations "
                f"(residual {norm:.3e}, atol {policy.atol:.1e})"
            )
            return StepResult(
                IntegratorStatus.FAILED, time, y, ydot,
                iterations=iterations, residual_norm=norm, time_step_size=dt,
            )

        # corrector
        y_new = y + (y_af - y) / self.alpha_f
        ydot_new = ydot + (ydot_am - ydot) / self.alpha_m
        self.status = IntegratorStatus.CONVERGED
        self.n_steps += 1
        return StepResult(
            IntegratorStatus.CONVERGED, time + dt, y_new, ydot_new,
            iterations=iterations, residual_norm=norm, time_step_size=dt,
        )

    def _apply_update(self, y_af, ydot_am, dy, norm):
        """Full Newton update, or a backtracking damped update with line search."""
        scale = 1.0
        while True:
            y_trial = y_af + scale * dy
            ydot_trial = ydot_am + scale * self.e_coeff * dy
            residual = self._evaluate(y_trial, ydot_trial)
            trial_norm = float(np.max(np.abs(residual)))
            if not self.policy.line_search or trial_norm < norm or scale <= self.policy.line_search_min_step:
                return y_trial, ydot_trial, residual, trial_norm
            scale *= 0.5

    @property
    def average_nonlinear_iterations(self) -> float:
        return self.n_nonlin_iter / self.n_steps if self.n_steps else 0.0


__all__ = ["Integrator", "IntegratorStatus", "StepResult"]
