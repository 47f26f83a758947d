"""
Coronary boundary conditions.

Both variants model the coronary bed as an arterial resistance Ra, an
arterial compliance Ca, a microvascular resistance Ram, an intramyocardial
compliance Cim loaded by the intramyocardial pressure Pim, and a venous
resistance Rv. The internal unknown V_im is the volume stored in Cim.

Reference: Kim, H. J. et al. Patient-specific modeling of blood flow and
pressure in human coronary arteries. Annals of Biomedical Engineering 38,
3195-3209 (2010).
"""

from enum import Enum

from ..core.errors import ConfigurationError
from .base import Block, BlockClass, InputParameter, Sparsity


class OpenLoopCoronaryBC(Block):
    """
    Coronary outlet draining to a prescribed venous pressure Pv(t), with a
    prescribed intramyocardial pressure Pim(t).

    Local unknowns are (P, Q, V_im).
    """

    block_type = "CORONARY"
    block_class = BlockClass.BOUNDARY_CONDITION
    num_nodes = 1
    internal_variables = ["volume_im"]
    input_params = [
        InputParameter("Ra"),
        InputParameter("Ram"),
        InputParameter("Rv"),
        InputParameter("Ca"),
        InputParameter("Cim"),
        InputParameter("Pim", time_dependent=True),
        InputParameter("Pv", is_optional=True, time_dependent=True),
    ]

    def sparsity(self) -> Sparsity:
        return {
            "E": [(0, 0), (0, 1), (0, 2), (1, 2)],
            "F": [(0, 1), (0, 2), (1, 0), (1, 1), (1, 2)],
        }

    def update_constant(self, system) -> None:
        ra, ram, rv = self.value("Ra"), self.value("Ram"), self.value("Rv")
        ca, cim = self.value("Ca"), self.value("Cim")

        self.add_E(system, 0, 0, -ca * cim * rv)
        self.add_E(system, 0, 1, ra * ca * cim * rv)
        self.add_E(system, 0, 2, -cim * rv)
        self.add_E(system, 1, 2, -cim * rv * ram)

        self.add_F(system, 0, 1, cim * rv)
        self.add_F(system, 0, 2, -1.0)
        self.add_F(system, 1, 0, cim * rv)
        self.add_F(system, 1, 1, -cim * rv * ra)
        self.add_F(system, 1, 2, -(rv + ram))

    def update_time(self, system, time) -> None:
        ram, rv, cim = self.value("Ram"), self.value("Rv"), self.value("Cim")
        p_im = self.value("Pim", time)
        p_v = self.value("Pv", time)
        self.add_C(system, 0, -cim * p_im + cim * p_v)
        self.add_C(system, 1, -cim * (rv + ram) * p_im + ram * cim * p_v)


class CoronarySide(Enum):
    """Ventricle that loads the intramyocardial compliance."""
    LEFT = "left"
    RIGHT = "right"


class ClosedLoopCoronaryBC(Block):
    """
    Coronary bed inside a closed loop.

    The outlet drains into the venous return of the heart. The
    intramyocardial pressure is the pressure of the left (or right)
    ventricle of the heart block scaled by ``iml`` (or ``imr``). Local
    unknowns are (P_in, Q_in, P_out, Q_out, V_im, P_ventricle):

        Q_in - Q_out - dV_im/dt - Ca (dP_in/dt - Ra dQ_in/dt) = 0
        V_im / Cim + Pim - P_out - Rv Q_out = 0
        P_in - Ra Q_in - Ram (Q_out + dV_im/dt) - V_im / Cim - Pim = 0
    """

    block_type = "ClosedLoopCoronary"
    block_class = BlockClass.CLOSED_LOOP
    internal_variables = ["volume_im"]
    input_params = [
        InputParameter("Ra"),
        InputParameter("Ram"),
        InputParameter("Rv"),
        InputParameter("Ca"),
        InputParameter("Cim"),
    ]

    def __init__(self, name, params=None, side: CoronarySide = CoronarySide.LEFT):
        super().__init__(name, params)
        self.side = CoronarySide(side)
        self.heart = None

    def setup_model_dependent_params(self) -> None:
        hearts = [b for b in self.model.blocks if b.block_type == "ClosedLoopHeartAndPulmonary"]
        if len(hearts) != 1:
            raise ConfigurationError(
                f"Closed-loop coronary '{self.name}' needs exactly one heart block, found {len(hearts)}"
            )
        self.heart = hearts[0]
        self.global_var_ids = self.global_var_ids[:5] + [self.heart.ventricle_pressure_dof(self.side)]

    def _pressure_scale(self) -> float:
        return self.heart.value("iml" if self.side is CoronarySide.LEFT else "imr")

    def sparsity(self) -> Sparsity:
        return {
            "E": [(0, 0), (0, 1), (0, 4), (2, 4)],
            "F": [(0, 1), (0, 3), (1, 2), (1, 3), (1, 4), (1, 5),
                  (2, 0), (2, 1), (2, 3), (2, 4), (2, 5)],
        }

    def update_constant(self, system) -> None:
        ra, ram, rv = self.value("Ra"), self.value("Ram"), self.value("Rv")
        ca, cim = self.value("Ca"), self.value("Cim")
        scale = self._pressure_scale()

        self.add_F(system, 0, 1, 1.0)
        self.add_F(system, 0, 3, -1.0)
        self.add_E(system, 0, 4, -1.0)
        self.add_E(system, 0, 0, -ca)
        self.add_E(system, 0, 1, ca * ra)

        self.add_F(system, 1, 4, 1.0 / cim)
        self.add_F(system, 1, 5, scale)
        self.add_F(system, 1, 2, -1.0)
        self.add_F(system, 1, 3, -rv)

        self.add_F(system, 2, 0, 1.0)
        self.add_F(system, 2, 1, -ra)
        self.add_F(system, 2, 3, -ram)
        self.add_E(system, 2, 4, -ram)
        self.add_F(system, 2, 4, -1.0 / cim)
        self.add_F(system, 2, 5, -scale)


__all__ = ["OpenLoopCoronaryBC", "ClosedLoopCoronaryBC", "CoronarySide"]
