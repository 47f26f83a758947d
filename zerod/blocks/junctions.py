"""
Junction blocks.

A junction joins an arbitrary number of inlet and outlet nodes. Node k of
the junction (inlets first, then outlets) has local pressure index 2k and
local flow index 2k + 1. The signed flows at every junction sum to zero.
"""

from typing import List, Tuple

import numpy as np

from .base import Block, BlockClass, InputParameter, Sparsity


class Junction(Block):
    """
    Ideal junction: equal pressure at all nodes and mass conservation.

        P_0 - P_k = 0                     for k = 1 .. N-1
        sum(Q_inlets) - sum(Q_outlets) = 0
    """

    block_type = "NORMAL_JUNCTION"
    block_class = BlockClass.JUNCTION
    num_inlets = None
    num_outlets = None

    def _flow_signs(self) -> List[float]:
        return [1.0] * len(self.inlet_nodes) + [-1.0] * len(self.outlet_nodes)

    def sparsity(self) -> Sparsity:
        n = len(self.nodes)
        entries = []
        for k in range(1, n):
            entries += [(k - 1, 0), (k - 1, 2 * k)]
        entries += [(n - 1, 2 * k + 1) for k in range(n)]
        return {"F": entries}

    def update_constant(self, system) -> None:
        n = len(self.nodes)
        for k in range(1, n):
            self.add_F(system, k - 1, 0, 1.0)
            self.add_F(system, k - 1, 2 * k, -1.0)
        for k, sign in enumerate(self._flow_signs()):
            self.add_F(system, n - 1, 2 * k + 1, sign)


class ResistiveJunction(Junction):
    """
    Junction with one resistance per connection towards a common internal
    pressure P_c.

        P_in,k - R_k Q_in,k - P_c = 0     for each inlet
        P_c - R_k Q_out,k - P_out,k = 0   for each outlet
        sum(Q_inlets) - sum(Q_outlets) = 0
    """

    block_type = "resistive_junction"
    input_params = [InputParameter("R", is_array=True)]
    internal_variables = ["pressure_c"]

    def array_length(self) -> int:
        return len(self.nodes)

    def sparsity(self) -> Sparsity:
        n = len(self.nodes)
        p_c = 2 * n
        entries = []
        for k in range(n):
            entries += [(k, 2 * k), (k, 2 * k + 1), (k, p_c)]
        entries += [(n, 2 * k + 1) for k in range(n)]
        return {"F": entries}

    def update_constant(self, system) -> None:
        n = len(self.nodes)
        p_c = 2 * n
        resistances = np.atleast_1d(self.value("R"))
        for k, sign in enumerate(self._flow_signs()):
            # inlet rows carry +P_k, outlet rows -P_k
            self.add_F(system, k, 2 * k, sign)
            self.add_F(system, k, 2 * k + 1, -resistances[k])
            self.add_F(system, k, p_c, -sign)
            self.add_F(system, n, 2 * k + 1, sign)


class BloodVesselJunction(Junction):
    """
    Junction with one inlet whose outlet branches are resistor-inductor
    vessels with optional stenosis.

        Q_in - sum(Q_out,i) = 0
        P_in - P_out,i - (R_i + S_i |Q_out,i|) Q_out,i - L_i dQ_out,i/dt = 0
    """

    block_type = "BloodVesselJunction"
    num_inlets = 1
    input_params = [
        InputParameter("R_poiseuille", is_array=True),
        InputParameter("L", is_array=True, is_optional=True),
        InputParameter("stenosis_coefficient", is_array=True, is_optional=True),
    ]
    calibration_params = ["R_poiseuille", "L", "stenosis_coefficient"]

    def validate_params(self) -> None:
        # omitted optional arrays default to zero on every branch
        n_out = len(self.outlet_nodes)
        for name in ("L", "stenosis_coefficient"):
            param = self.params[name]
            if param.is_constant and not param.is_array and n_out > 1:
                param.update(np.full(n_out, param.value(0.0)))
        super().validate_params()

    def _branch_values(self, name: str) -> np.ndarray:
        return np.broadcast_to(np.atleast_1d(self.value(name)), (len(self.outlet_nodes),))

    def sparsity(self) -> Sparsity:
        n_out = len(self.outlet_nodes)
        entries = {"E": [], "F": [(0, 1)], "dC_dy": []}
        for i in range(1, n_out + 1):
            entries["F"] += [(0, 2 * i + 1), (i, 0), (i, 2 * i), (i, 2 * i + 1)]
            entries["E"].append((i, 2 * i + 1))
            entries["dC_dy"].append((i, 2 * i + 1))
        return entries

    def update_constant(self, system) -> None:
        resistances = self._branch_values("R_poiseuille")
        inductances = self._branch_values("L")
        self.add_F(system, 0, 1, 1.0)
        for i in range(1, len(self.outlet_nodes) + 1):
            self.add_F(system, 0, 2 * i + 1, -1.0)
            self.add_F(system, i, 0, 1.0)
            self.add_F(system, i, 2 * i, -1.0)
            self.add_F(system, i, 2 * i + 1, -resistances[i - 1])
            self.add_E(system, i, 2 * i + 1, -inductances[i - 1])

    def update_solution(self, system, y) -> None:
        stenosis = self._branch_values("stenosis_coefficient")
        for i in range(1, len(self.outlet_nodes) + 1):
            if stenosis[i - 1] != 0.0:
                q = abs(y[self.global_var_ids[2 * i + 1]])
                self.add_F(system, i, 2 * i + 1, -stenosis[i - 1] * q)

    def update_gradient(self, system, y, ydot) -> None:
        stenosis = self._branch_values("stenosis_coefficient")
        for i in range(1, len(self.outlet_nodes) + 1):
            if stenosis[i - 1] != 0.0:
                q = abs(y[self.global_var_ids[2 * i + 1]])
                self.add_dC_dy(system, i, 2 * i + 1, -stenosis[i - 1] * q)

    def calibration_residual(self, y, ydot, values) -> Tuple[np.ndarray, np.ndarray]:
        n_out = len(self.outlet_nodes)
        resistances = values[:n_out]
        inductances = values[n_out:2 * n_out]
        stenosis = values[2 * n_out:]
        ids = self.global_var_ids
        p_in = y[:, ids[0]]

        residuals = []
        jacobian = np.zeros((n_out * y.shape[0], values.size))
        for i in range(n_out):
            p_out = y[:, ids[2 * i + 2]]
            q_out = y[:, ids[2 * i + 3]]
            dq_out = ydot[:, ids[2 * i + 3]]
            abs_q = np.abs(q_out)
            residuals.append(
                p_in - p_out - (resistances[i] + stenosis[i] * abs_q) * q_out - inductances[i] * dq_out
            )
            rows = slice(i * y.shape[0], (i + 1) * y.shape[0])
            jacobian[rows, i] = -q_out
            jacobian[rows, n_out + i] = -dq_out
            jacobian[rows, 2 * n_out + i] = -abs_q * q_out
        return np.concatenate(residuals), jacobian


__all__ = ["Junction", "ResistiveJunction", "BloodVesselJunction"]
