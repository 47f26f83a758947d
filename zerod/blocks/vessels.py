"""
Vessel blocks.

Each vessel connects one inlet node to one outlet node and contributes two
equations, a momentum balance (pressure drop) and a mass balance.

UNIT CONVENTIONS
----------------
Parameters are in the model's own unit system, typically cgs:
resistance dyn*s/cm^5, capacitance cm^5/dyn, inductance dyn*s^2/cm^5 and
stenosis coefficient dyn*s^2/cm^8.
"""

from typing import Tuple

import numpy as np

from .base import Block, BlockClass, InputParameter, Sparsity

P_IN, Q_IN, P_OUT, Q_OUT = 0, 1, 2, 3


class ResistiveVessel(Block):
    """
    Purely resistive vessel.

        P_in - P_out - R * Q_in = 0
        Q_in - Q_out = 0
    """

    block_type = "ResistiveVessel"
    block_class = BlockClass.VESSEL
    input_params = [InputParameter("R")]

    def sparsity(self) -> Sparsity:
        return {"F": [(0, P_IN), (0, Q_IN), (0, P_OUT), (1, Q_IN), (1, Q_OUT)]}

    def update_constant(self, system) -> None:
        self.add_F(system, 0, P_IN, 1.0)
        self.add_F(system, 0, Q_IN, -self.value("R"))
        self.add_F(system, 0, P_OUT, -1.0)
        self.add_F(system, 1, Q_IN, 1.0)
        self.add_F(system, 1, Q_OUT, -1.0)


class BloodVessel(Block):
    """
    Resistor-capacitor-inductor vessel with optional stenosis.

    The capacitor sits between the resistor and the inductor, the stenosis
    adds a quadratic pressure loss S * |Q_in| * Q_in:

        P_in - P_out - (R + S|Q_in|) Q_in - L dQ_out/dt = 0
        Q_in - Q_out - C dP_in/dt + C (R + 2 S |Q_in|) dQ_in/dt = 0
    """

    block_type = "BloodVessel"
    block_class = BlockClass.VESSEL
    input_params = [
        InputParameter("R_poiseuille"),
        InputParameter("C", is_optional=True),
        InputParameter("L", is_optional=True),
        InputParameter("stenosis_coefficient", is_optional=True),
    ]
    calibration_params = ["R_poiseuille", "C", "L", "stenosis_coefficient"]

    def sparsity(self) -> Sparsity:
        return {
            "E": [(0, Q_OUT), (1, P_IN), (1, Q_IN)],
            "F": [(0, P_IN), (0, Q_IN), (0, P_OUT), (1, Q_IN), (1, Q_OUT)],
            "dC_dy": [(0, Q_IN), (1, Q_IN)],
        }

    def update_constant(self, system) -> None:
        resistance = self.value("R_poiseuille")
        capacitance = self.value("C")
        self.add_E(system, 0, Q_OUT, -self.value("L"))
        self.add_E(system, 1, P_IN, -capacitance)
        self.add_E(system, 1, Q_IN, capacitance * resistance)
        self.add_F(system, 0, P_IN, 1.0)
        self.add_F(system, 0, Q_IN, -resistance)
        self.add_F(system, 0, P_OUT, -1.0)
        self.add_F(system, 1, Q_IN, 1.0)
        self.add_F(system, 1, Q_OUT, -1.0)

    def update_solution(self, system, y) -> None:
        stenosis = self.value("stenosis_coefficient")
        if stenosis == 0.0:
            return
        q_in = abs(y[self.global_var_ids[Q_IN]])
        self.add_F(system, 0, Q_IN, -stenosis * q_in)
        self.add_E(system, 1, Q_IN, 2.0 * self.value("C") * stenosis * q_in)

    def update_gradient(self, system, y, ydot) -> None:
        stenosis = self.value("stenosis_coefficient")
        if stenosis == 0.0:
            return
        q_in = y[self.global_var_ids[Q_IN]]
        dq_in = ydot[self.global_var_ids[Q_IN]]
        self.add_dC_dy(system, 0, Q_IN, -stenosis * abs(q_in))
        self.add_dC_dy(system, 1, Q_IN, 2.0 * self.value("C") * stenosis * np.sign(q_in) * dq_in)

    def calibration_residual(self, y, ydot, values) -> Tuple[np.ndarray, np.ndarray]:
        resistance, capacitance, inductance, stenosis = values
        ids = self.global_var_ids
        p_in, q_in, p_out, q_out = (y[:, ids[i]] for i in range(4))
        dp_in, dq_in, dq_out = ydot[:, ids[P_IN]], ydot[:, ids[Q_IN]], ydot[:, ids[Q_OUT]]
        abs_q = np.abs(q_in)

        r0 = p_in - p_out - (resistance + stenosis * abs_q) * q_in - inductance * dq_out
        r1 = q_in - q_out - capacitance * dp_in + capacitance * (resistance + 2.0 * stenosis * abs_q) * dq_in

        zeros = np.zeros_like(q_in)
        j0 = np.column_stack([-q_in, zeros, -dq_out, -abs_q * q_in])
        j1 = np.column_stack([
            capacitance * dq_in,
            -dp_in + (resistance + 2.0 * stenosis * abs_q) * dq_in,
            zeros,
            2.0 * capacitance * abs_q * dq_in,
        ])
        return np.concatenate([r0, r1]), np.vstack([j0, j1])


class BloodVesselCRL(Block):
    """
    Capacitor-resistor-inductor vessel with optional stenosis.

    The capacitor sits at the inlet, the stenosis loss uses the outlet flow:

        P_in - P_out - (R + S|Q_out|) Q_out - L dQ_out/dt = 0
        Q_in - Q_out - C dP_in/dt = 0
    """

    block_type = "BloodVesselCRL"
    block_class = BlockClass.VESSEL
    input_params = [
        InputParameter("R_poiseuille"),
        InputParameter("C", is_optional=True),
        InputParameter("L", is_optional=True),
        InputParameter("stenosis_coefficient", is_optional=True),
    ]
    calibration_params = ["R_poiseuille", "C", "L", "stenosis_coefficient"]

    def sparsity(self) -> Sparsity:
        return {
            "E": [(0, Q_OUT), (1, P_IN)],
            "F": [(0, P_IN), (0, P_OUT), (0, Q_OUT), (1, Q_IN), (1, Q_OUT)],
            "dC_dy": [(0, Q_OUT)],
        }

    def update_constant(self, system) -> None:
        self.add_E(system, 0, Q_OUT, -self.value("L"))
        self.add_E(system, 1, P_IN, -self.value("C"))
        self.add_F(system, 0, P_IN, 1.0)
        self.add_F(system, 0, P_OUT, -1.0)
        self.add_F(system, 0, Q_OUT, -self.value("R_poiseuille"))
        self.add_F(system, 1, Q_IN, 1.0)
        self.add_F(system, 1, Q_OUT, -1.0)

    def update_solution(self, system, y) -> None:
        stenosis = self.value("stenosis_coefficient")
        if stenosis == 0.0:
            return
        self.add_F(system, 0, Q_OUT, -stenosis * abs(y[self.global_var_ids[Q_OUT]]))

    def update_gradient(self, system, y, ydot) -> None:
        stenosis = self.value("stenosis_coefficient")
        if stenosis == 0.0:
            return
        self.add_dC_dy(system, 0, Q_OUT, -stenosis * abs(y[self.global_var_ids[Q_OUT]]))

    def calibration_residual(self, y, ydot, values) -> Tuple[np.ndarray, np.ndarray]:
        resistance, capacitance, inductance, stenosis = values
        ids = self.global_var_ids
        p_in, q_in, p_out, q_out = (y[:, ids[i]] for i in range(4))
        dp_in, dq_out = ydot[:, ids[P_IN]], ydot[:, ids[Q_OUT]]
        abs_q = np.abs(q_out)

        r0 = p_in - p_out - (resistance + stenosis * abs_q) * q_out - inductance * dq_out
        r1 = q_in - q_out - capacitance * dp_in

        zeros = np.zeros_like(q_out)
        j0 = np.column_stack([-q_out, zeros, -dq_out, -abs_q * q_out])
        j1 = np.column_stack([zeros, -dp_in, zeros, zeros])
        return np.concatenate([r0, r1]), np.vstack([j0, j1])


__all__ = ["ResistiveVessel", "BloodVessel", "BloodVesselCRL"]
