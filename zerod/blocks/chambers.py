"""Heart chamber blocks."""

from typing import Any, Dict, Optional

from ..core.errors import ConfigurationError
from .activation import ActivationFunction
from .base import Block, BlockClass, InputParameter, Sparsity

P_IN, Q_IN, P_OUT, Q_OUT, VOLUME = 0, 1, 2, 3, 4


class LinearElastanceChamber(Block):
    """
    Chamber with a time-varying linear elastance.

    Internal unknown Vc is the chamber volume:

        P_in - E(t) (Vc - Vrest) = 0
        P_in - P_out = 0
        Q_in - Q_out - dVc/dt = 0

    with E(t) = Epass + Emax * phi(t) and phi the activation function.
    """

    block_type = "LinearElastanceChamber"
    block_class = BlockClass.CHAMBER
    internal_variables = ["Vc"]
    input_params = [
        InputParameter("Emax"),
        InputParameter("Epass"),
        InputParameter("Vrest"),
    ]

    def __init__(self, name: str, params: Optional[Dict[str, Any]] = None, activation: Optional[ActivationFunction] = None):
        super().__init__(name, params)
        self.activation = activation

    def setup_model_dependent_params(self) -> None:
        if self.activation is None:
            raise ConfigurationError(f"Chamber '{self.name}' has no activation function")
        if self.activation.cardiac_period is None:
            self.activation.cardiac_period = self.model.cardiac_cycle_period
        self.activation.finalize()

    def elastance(self, time: float) -> float:
        return self.value("Epass") + self.value("Emax") * self.activation.compute(time)

    def sparsity(self) -> Sparsity:
        return {
            "E": [(2, VOLUME)],
            "F": [(0, P_IN), (0, VOLUME), (1, P_IN), (1, P_OUT), (2, Q_IN), (2, Q_OUT)],
        }

    def update_constant(self, system) -> None:
        self.add_F(system, 0, P_IN, 1.0)
        self.add_F(system, 1, P_IN, 1.0)
        self.add_F(system, 1, P_OUT, -1.0)
        self.add_F(system, 2, Q_IN, 1.0)
        self.add_F(system, 2, Q_OUT, -1.0)
        self.add_E(system, 2, VOLUME, -1.0)

    def update_time(self, system, time) -> None:
        elastance = self.elastance(time)
        self.add_F(system, 0, VOLUME, -elastance)
        self.add_C(system, 0, elastance * self.value("Vrest"))


__all__ = ["LinearElastanceChamber"]
