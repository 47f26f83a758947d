"""
Cardiac activation functions.

An activation function maps simulation time to a normalized contraction
level phi(t) in [0, 1], periodic with the cardiac period. Chamber blocks
combine it with their elastances, E(t) = Epass + Emax * phi(t).
"""

from typing import Any, Dict, List, Optional
import math

import numpy as np

from ..core.errors import ConfigurationError


class ActivationFunction:
    """
    Base class of activation functions.

    Parameters
    ----------
    cardiac_period : float, optional
        Cardiac cycle period; set by the model when omitted
    params : dict, optional
        Function parameters
    """

    activation_type = "base"
    param_names: List[str] = []

    def __init__(self, cardiac_period: Optional[float] = None, params: Optional[Dict[str, Any]] = None):
        self.cardiac_period = cardiac_period
        self.params: Dict[str, float] = {name: 0.0 for name in self.param_names}
        for name, value in (params or {}).items():
            self.set_param(name, value)

    def set_param(self, name: str, value: float) -> None:
        if name not in self.params:
            raise ConfigurationError(
                f"Activation function '{self.activation_type}' has no parameter '{name}'"
            )
        self.params[name] = float(value)

    def finalize(self) -> None:
        """Validate parameters once the cardiac period is known."""
        if self.cardiac_period is None or self.cardiac_period <= 0.0:
            raise ConfigurationError(
                f"Activation function '{self.activation_type}' needs a positive cardiac period"
            )

    def compute(self, time: float) -> float:
        raise NotImplementedError


class HalfCosineActivation(ActivationFunction):
    """
    Single raised-cosine twitch of duration ``t_twitch`` starting at
    ``t_active`` in every cycle.
    """

    activation_type = "half_cosine"
    param_names = ["t_active", "t_twitch"]

    def compute(self, time: float) -> float:
        t_in_cycle = time % self.cardiac_period
        t_active = self.params["t_active"]
        t_twitch = self.params["t_twitch"]
        t_contract = t_in_cycle - t_active if t_in_cycle >= t_active else 0.0
        if t_contract > t_twitch:
            return 0.0
        return -0.5 * math.cos(2.0 * math.pi * t_contract / t_twitch) + 0.5


class PiecewiseCosineActivation(ActivationFunction):
    """
    Cosine contraction ramp followed by a cosine relaxation ramp.

    Times are wrapped into one cardiac period with a floored modulo, so a
    time before ``contract_start`` in the first cycle falls into the ramp
    of the previous cycle rather than returning 0.
    """

    activation_type = "piecewise_cosine"
    param_names = ["contract_start", "relax_start", "contract_duration", "relax_duration"]

    def compute(self, time: float) -> float:
        period = self.cardiac_period
        since_contract = (time - self.params["contract_start"]) % period
        contract_duration = self.params["contract_duration"]
        if since_contract < contract_duration:
            return 0.5 * (1.0 - math.cos(math.pi * since_contract / contract_duration))
        since_relax = (time - self.params["relax_start"]) % period
        relax_duration = self.params["relax_duration"]
        if since_relax < relax_duration:
            return 0.5 * (1.0 + math.cos(math.pi * since_relax / relax_duration))
        return 0.0


class TwoHillActivation(ActivationFunction):
    """
    Product of a rising and a falling Hill function, normalized to a peak
    of 1 over one cycle.

    ``finalize`` must be called after the parameters are set.
    """

    activation_type = "two_hill"
    param_names = ["t_shift", "tau_1", "tau_2", "m1", "m2"]
    normalization_dt = 1e-5

    def __init__(self, cardiac_period=None, params=None):
        super().__init__(cardiac_period, params)
        self.normalization_factor: Optional[float] = None

    def _shape(self, t: Any) -> Any:
        g1 = (t / self.params["tau_1"]) ** self.params["m1"]
        g2 = (t / self.params["tau_2"]) ** self.params["m2"]
        return (g1 / (1.0 + g1)) * (1.0 / (1.0 + g2))

    def finalize(self) -> None:
        super().finalize()
        if self.params["tau_1"] <= 0.0 or self.params["tau_2"] <= 0.0:
            raise ConfigurationError("two_hill activation needs positive tau_1 and tau_2")
        samples = np.arange(0.0, self.cardiac_period, self.normalization_dt)
        max_value = float(np.max(self._shape(samples)))
        if not (max_value > 0.0 and np.isfinite(max_value)):
            raise ConfigurationError(
                f"two_hill activation has non-positive peak {max_value}; check tau_1, tau_2, m1, m2"
            )
        self.normalization_factor = 1.0 / max_value

    def compute(self, time: float) -> float:
        if self.normalization_factor is None:
            raise ConfigurationError("two_hill activation used before finalize()")
        t_shifted = (time % self.cardiac_period - self.params["t_shift"]) % self.cardiac_period
        return self.normalization_factor * float(self._shape(t_shifted))


ACTIVATION_FUNCTIONS = {
    cls.activation_type: cls
    for cls in (HalfCosineActivation, PiecewiseCosineActivation, TwoHillActivation)
}


def create_activation_function(
    activation_type: str,
    params: Optional[Dict[str, Any]] = None,
    cardiac_period: Optional[float] = None,
) -> ActivationFunction:
    """
    Create an activation function by type name.

    Parameters
    ----------
    activation_type : str
        One of ``half_cosine``, ``piecewise_cosine``, ``two_hill``
    params : dict, optional
        Function parameters
    cardiac_period : float, optional
        Cardiac cycle period

    Returns
    -------
    ActivationFunction
        The new activation function
    """
    try:
        cls = ACTIVATION_FUNCTIONS[activation_type]
    except KeyError:
        raise ConfigurationError(
            f"Unknown activation_function type '{activation_type}'. "
            f"Must be one of: {', '.join(ACTIVATION_FUNCTIONS)}"
        ) from None
    return cls(cardiac_period, params)


__all__ = [
    "ActivationFunction",
    "HalfCosineActivation",
    "PiecewiseCosineActivation",
    "TwoHillActivation",
    "create_activation_function",
    "ACTIVATION_FUNCTIONS",
]
