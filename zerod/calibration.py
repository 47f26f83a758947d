"""
Parameter calibration from observed states.

Given observed solution vectors y and their time derivatives ydot, the
parameters of each calibratable block are fitted so that the block's own
equations are satisfied in a least-squares sense. Blocks are independent,
so each is fitted separately with ``scipy.optimize.least_squares`` using
the block's analytic Jacobian.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

import numpy as np
from scipy.optimize import least_squares

from .core.errors import ConfigurationError
from .model import Model

logger = logging.getLogger(__name__)


@dataclass
class CalibrationResult:
    """Fitted parameters per block."""
    parameters: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    cost: float = 0.0
    success: bool = True
    message: str = ""
    block_costs: Dict[str, float] = field(default_factory=dict)

    def apply(self, model: Model) -> None:
        """Write the fitted values into ``model``."""
        for block_name, values in self.parameters.items():
            model.update_block_params(block_name, values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parameters": {
                name: {k: (np.asarray(v).tolist()) for k, v in values.items()}
                for name, values in self.parameters.items()
            },
            "cost": self.cost,
            "success": self.success,
            "message": self.message,
            "block_costs": dict(self.block_costs),
        }


def _unflatten(block, values: np.ndarray) -> Dict[str, Any]:
    out = {}
    offset = 0
    for name in block.calibration_params:
        param = block.params[name]
        size = np.atleast_1d(block.value(name)).size
        chunk = values[offset:offset + size]
        out[name] = chunk.copy() if param.is_array else float(chunk[0])
        offset += size
    return out


def calibrate(
    model: Model,
    y_obs: np.ndarray,
    ydot_obs: np.ndarray,
    block_names: Optional[Sequence[str]] = None,
    bounds: Tuple[float, float] = (0.0, np.inf),
    apply: bool = False,
) -> CalibrationResult:
    """
    Fit block parameters to observations.

    Parameters
    ----------
    model : Model
        Finalized model whose DOF layout matches the observations
    y_obs, ydot_obs : np.ndarray
        Observed states, shape (n_observations, n_dofs)
    block_names : sequence of str, optional
        Blocks to calibrate (default: every block that supports it)
    bounds : tuple
        Lower and upper bound applied to every parameter
    apply : bool
        Write the fitted values back into the model

    Returns
    -------
    CalibrationResult
    """
    y_obs = np.atleast_2d(np.asarray(y_obs, dtype=float))
    ydot_obs = np.atleast_2d(np.asarray(ydot_obs, dtype=float))
    size = model.dofhandler.size
    if y_obs.shape != ydot_obs.shape or y_obs.shape[1] != size:
        raise ConfigurationError(
            f"Observations of shape {y_obs.shape}/{ydot_obs.shape} do not match {size} unknowns"
        )

    if block_names is None:
        blocks = [block for block in model.blocks if block.calibration_params]
    else:
        blocks = [model.get_block(name) for name in block_names]
        unsupported = [block.name for block in blocks if not block.calibration_params]
        if unsupported:
            raise ConfigurationError(f"Blocks do not support calibration: {unsupported}")

    result = CalibrationResult()
    messages: List[str] = []
    lower, upper = bounds
    for block in blocks:
        x0 = np.clip(block.calibration_values(), lower, upper)

        def fun(x, block=block):
            return block.calibration_residual(y_obs, ydot_obs, x)[0]

        def jac(x, block=block):
            return block.calibration_residual(y_obs, ydot_obs, x)[1]

        fit = least_squares(fun, x0, jac=jac, bounds=(lower, upper), method="trf")
        result.parameters[block.name] = _unflatten(block, fit.x)
        result.block_costs[block.name] = float(fit.cost)
        result.cost += float(fit.cost)
        result.success = result.success and bool(fit.success)
        messages.append(f"{block.name}: {fit.message}")
        logger.debug(f"Calibrated '{block.name}': cost {fit.cost:.3e} after {fit.nfev} evaluations")

    result.message = "; ".join(messages)
    logger.info(f"Calibrated {len(blocks)} blocks, total cost {result.cost:.3e}")
    if apply:
        result.apply(model)
    return result


__all__ = ["calibrate", "CalibrationResult"]
