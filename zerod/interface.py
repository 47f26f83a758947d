"""
Multi-instance solver interface for external coupling.

A SolverInterface owns any number of independent Solver instances keyed
by an instance id. Calls on different instances may run concurrently;
calls on the same instance are serialized by a per-instance lock.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import itertools
import logging
import threading

import numpy as np

from zerod_policies import OperationReport, RetryPolicy

from .core.errors import ConfigurationError
from .solver import Solver
from .state import SimulationState

logger = logging.getLogger(__name__)


@dataclass
class _Instance:
    solver: Solver
    lock: threading.Lock = field(default_factory=threading.Lock)


class SolverInterface:
    """
    Registry of solver instances.

    Example
    -------
    >>> interface = SolverInterface()
    >>> iid = interface.init(description)
    >>> report = interface.step_to(iid, 0.5)
    >>> interface.get_solution(iid)["pressure:inlet:V0"]
    """

    def __init__(self):
        self._instances: Dict[str, _Instance] = {}
        self._lock = threading.Lock()
        self._counter = itertools.count()

    def init(self, description: Dict[str, Any], instance_id: Optional[str] = None) -> str:
        """Build a solver from ``description`` and register it."""
        solver = Solver(description)
        with self._lock:
            if instance_id is None:
                instance_id = f"instance_{next(self._counter)}"
                while instance_id in self._instances:
                    instance_id = f"instance_{next(self._counter)}"
            elif instance_id in self._instances:
                raise ConfigurationError(f"Instance '{instance_id}' already exists")
            self._instances[instance_id] = _Instance(solver)
        logger.info(f"Initialized solver instance '{instance_id}' with {solver.size} unknowns")
        return instance_id

    def _get(self, instance_id: str) -> _Instance:
        with self._lock:
            try:
                return self._instances[instance_id]
            except KeyError:
                raise ConfigurationError(f"Unknown solver instance '{instance_id}'") from None

    @property
    def instance_ids(self) -> List[str]:
        with self._lock:
            return list(self._instances)

    def solver(self, instance_id: str) -> Solver:
        return self._get(instance_id).solver

    def step_to(
        self,
        instance_id: str,
        target_time: float,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> OperationReport:
        instance = self._get(instance_id)
        with instance.lock:
            report = instance.solver.step_to(target_time, retry_policy=retry_policy)
        report.metadata["instance_id"] = instance_id
        return report

    def step_all(
        self,
        target_time: float,
        max_workers: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> Dict[str, OperationReport]:
        """Advance every instance to ``target_time`` in parallel."""
        ids = self.instance_ids
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {
                iid: pool.submit(self.step_to, iid, target_time, retry_policy)
                for iid in ids
            }
            return {iid: future.result() for iid, future in futures.items()}

    def get_solution(self, instance_id: str) -> Dict[str, float]:
        instance = self._get(instance_id)
        with instance.lock:
            return instance.solver.get_solution()

    def update_block_params(self, instance_id: str, block_name: str, params: Dict[str, Any]) -> None:
        instance = self._get(instance_id)
        with instance.lock:
            instance.solver.update_block_params(block_name, params)

    def update_state(
        self,
        instance_id: str,
        y: np.ndarray,
        ydot: np.ndarray,
        time: Optional[float] = None,
    ) -> None:
        instance = self._get(instance_id)
        with instance.lock:
            instance.solver.update_state(y, ydot, time)

    def get_state(self, instance_id: str) -> SimulationState:
        instance = self._get(instance_id)
        with instance.lock:
            return instance.solver.get_state()

    def restore_state(self, instance_id: str, state: SimulationState) -> None:
        instance = self._get(instance_id)
        with instance.lock:
            instance.solver.restore_state(state)

    def shutdown(self, instance_id: str) -> None:
        instance = self._get(instance_id)
        with instance.lock, self._lock:
            if self._instances.get(instance_id) is not instance:
                raise ConfigurationError(f"Unknown solver instance '{instance_id}'")
            del self._instances[instance_id]
        logger.info(f"Shut down solver instance '{instance_id}'")

    def shutdown_all(self) -> None:
        for instance_id in self.instance_ids:
            self.shutdown(instance_id)


_interface: Optional[SolverInterface] = None
_interface_lock = threading.Lock()


def get_interface() -> SolverInterface:
    """Process-wide shared interface."""
    global _interface
    with _interface_lock:
        if _interface is None:
            _interface = SolverInterface()
        return _interface


__all__ = ["SolverInterface", "get_interface"]
