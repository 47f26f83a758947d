"""
Solver: one model with its sparse system and integrator.

The Solver builds the model from a description, reserves the sparse
system, runs the first (checked) assembly, optionally computes a steady
initial state, and then advances in time either over whole cardiac cycles
(``run``) or up to caller-chosen times (``step_to``).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

import numpy as np

from zerod_policies import OperationReport, RetryPolicy

from .algebra.integrator import Integrator, StepResult
from .algebra.sparse_system import SparseSystem
from .builder import build_model, initial_state
from .core.errors import ConvergenceFailure
from .state import SimulationState
from .validity import ValidationReport, check_connectivity, run_model_checks

logger = logging.getLogger(__name__)

STEADY_INITIAL_STEPS = 31
STEADY_INITIAL_STEPS_PER_CYCLE = 10
TIME_EPS = 1e-12


@dataclass
class SimulationResult:
    """Time histories of all unknowns."""
    times: np.ndarray
    y: np.ndarray
    ydot: np.ndarray
    variable_names: List[str]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def variable(self, name: str, derivative: bool = False) -> np.ndarray:
        """Time history of one named unknown."""
        index = self.variable_names.index(name)
        return (self.ydot if derivative else self.y)[:, index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "times": self.times.tolist(),
            "variables": {name: self.y[:, i].tolist() for i, name in enumerate(self.variable_names)},
            "metadata": dict(self.metadata),
        }


class Solver:
    """
    Time-domain solver for one model instance.

    Parameters
    ----------
    description : dict
        Parsed model description (see ``zerod.builder``)

    Raises
    ------
    ConfigurationError
        If the description or any block is malformed
    ConvergenceFailure
        If the steady initial state cannot be computed
    """

    def __init__(self, description: Dict[str, Any]):
        self.model, self.sim_params = build_model(description)
        self.system = SparseSystem()
        self.system.reserve(self.model)
        self.time_step_size = self.sim_params.time_step_size(self.model.cardiac_cycle_period)
        self.integrator = Integrator(
            self.model, self.system, self.time_step_size, self.sim_params.integrator_policy()
        )
        for warning in check_connectivity(self.model).warnings:
            logger.warning(f"Model '{self.model.name}': {warning}")

        self.time = 0.0
        self.y, self.ydot = initial_state(self.model, description)
        self.system.first_assembly(self.model, self.time, self.y, self.ydot)

        if self.sim_params.steady_initial:
            self._steady_initial()

    @property
    def size(self) -> int:
        return self.model.dofhandler.size

    def _steady_initial(self) -> None:
        """Replace the initial state by the steady solution of the mean parameters."""
        if self.model.has_closed_loop:
            logger.warning("Steady initial state is not available for closed-loop models; skipping")
            return
        self.model.to_steady()
        self.system.steady = True
        dt = self.model.cardiac_cycle_period / STEADY_INITIAL_STEPS_PER_CYCLE
        y, ydot, time = self.y, self.ydot, self.time
        try:
            for _ in range(STEADY_INITIAL_STEPS):
                result = self.integrator.step(time, y, ydot, time_step_size=dt)
                if not result.converged:
                    raise ConvergenceFailure(
                        f"Steady initialization did not converge (residual {result.residual_norm:.3e})",
                        time=time,
                        residual_norm=result.residual_norm,
                    )
                y, ydot, time = result.y, result.ydot, result.time
        finally:
            self.model.to_unsteady()
            self.system.steady = False
            self.integrator.update_time_step_size(self.time_step_size)
        self.y = y
        self.ydot = np.zeros_like(y)
        logger.info(f"Steady initial state computed in {STEADY_INITIAL_STEPS} pseudo-steps")

    def _commit(self, result: StepResult) -> None:
        self.time = result.time
        self.y = result.y
        self.ydot = result.ydot

    def step(self, time_step_size: Optional[float] = None) -> StepResult:
        """Take one step from the committed state, committing on convergence."""
        result = self.integrator.step(self.time, self.y, self.ydot, time_step_size=time_step_size)
        if result.converged:
            self._commit(result)
        return result

    def step_to(self, target_time: float, retry_policy: Optional[RetryPolicy] = None) -> OperationReport:
        """
        Advance the committed state to ``target_time``.

        The last step is shortened to land on ``target_time``. A step that
        fails to converge stops stepping; with a retry policy the step is
        first retried with halved step sizes.

        Returns
        -------
        OperationReport
            success flag, reached time and iteration statistics
        """
        retry_policy = retry_policy or RetryPolicy()
        report = OperationReport(operation="step_to")
        steps = 0
        iterations = 0
        eps = TIME_EPS * max(1.0, abs(target_time))

        while self.time < target_time - eps:
            dt = min(self.time_step_size, target_time - self.time)
            result = self.step(dt)
            halvings = 0
            while not result.converged and halvings < retry_policy.max_halvings:
                dt *= 0.5
                if dt < retry_policy.min_time_step_size:
                    break
                halvings += 1
                report.add_warning(f"Retrying step at t={self.time:.6g} with dt={dt:.3e}")
                result = self.step(dt)
            iterations += result.iterations
            if not result.converged:
                report.add_error(
                    f"Newton did not converge at t={self.time + dt:.6g} "
                    f"(residual {result.residual_norm:.3e})"
                )
                break
            steps += 1

        report.metadata.update({
            "time": self.time,
            "target_time": target_time,
            "steps": steps,
            "nonlinear_iterations": iterations,
            "status": self.integrator.status.value,
        })
        return report

    def run(self) -> SimulationResult:
        """
        Simulate ``number_of_cardiac_cycles`` cycles from the committed state.

        Raises
        ------
        ConvergenceFailure
            If any step fails to converge
        """
        params = self.sim_params
        period = self.model.cardiac_cycle_period
        steps_per_cycle = int(round(period / self.time_step_size))
        n_steps = steps_per_cycle * params.number_of_cardiac_cycles

        times, ys, ydots = [self.time], [self.y], [self.ydot]
        for i in range(1, n_steps + 1):
            result = self.step()
            if not result.converged:
                raise ConvergenceFailure(
                    f"Simulation stopped at t={self.time:.6g}: Newton did not converge "
                    f"(residual {result.residual_norm:.3e})",
                    time=self.time,
                    residual_norm=result.residual_norm,
                )
            if i % params.output_interval == 0:
                times.append(self.time)
                ys.append(self.y)
                ydots.append(self.ydot)

        times = np.array(times)
        keep = np.ones(times.shape, dtype=bool)
        if not params.output_all_cycles and params.number_of_cardiac_cycles > 1:
            keep = times >= times[-1] - period - TIME_EPS * max(1.0, times[-1])

        logger.info(
            f"Simulated {n_steps} steps of {self.time_step_size:.4g}; average "
            f"{self.integrator.average_nonlinear_iterations:.2f} Newton iterations per step"
        )
        return SimulationResult(
            times=times[keep],
            y=np.array(ys)[keep],
            ydot=np.array(ydots)[keep],
            variable_names=self.model.variable_names,
            metadata={"time_step_size": self.time_step_size, "cardiac_period": period},
        )

    def get_solution(self) -> Dict[str, float]:
        """Committed state as named quantities (read-only)."""
        solution = {"time": self.time}
        solution.update(self.model.solution_dict(self.y))
        return solution

    def update_block_params(self, block_name: str, params: Dict[str, Any]) -> None:
        """Replace block parameters; effective from the next step."""
        self.model.update_block_params(block_name, params)

    def update_state(self, y: np.ndarray, ydot: np.ndarray, time: Optional[float] = None) -> None:
        """Overwrite the committed state."""
        SimulationState(self.model.variable_names, y, ydot, self.time if time is None else time)
        self.y = np.array(y, dtype=float)
        self.ydot = np.array(ydot, dtype=float)
        if time is not None:
            self.time = float(time)

    def validate(self) -> ValidationReport:
        """Run the model checks against the committed state."""
        return run_model_checks(self.model, self.y)

    def get_state(self) -> SimulationState:
        return SimulationState(self.model.variable_names, self.y.copy(), self.ydot.copy(), self.time)

    def restore_state(self, state: SimulationState) -> None:
        """Resume from a restart state of a model with the same DOF map."""
        state.check_compatible(self.model.variable_names)
        self.update_state(state.y, state.ydot, state.time)


__all__ = ["Solver", "SimulationResult"]
