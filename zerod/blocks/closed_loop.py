"""
Closed-loop blocks.

These blocks close the systemic circulation through a lumped heart and
pulmonary model. Discrete state (valve positions, cardiac phase) lives in
explicit enum fields updated during assembly; switching a valve changes
coefficient values but never the declared sparsity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List
import math

from .base import Block, BlockClass, InputParameter, Sparsity


class ClosedLoopRCRBC(Block):
    """
    RCR element between two nodes of a closed loop.

    Internal unknown P_c is the capacitor pressure:

        P_in - Rp Q_in - P_c = 0
        Q_in - Q_out - C dP_c/dt = 0
        P_c - Rd Q_out - P_out = 0
    """

    block_type = "ClosedLoopRCR"
    block_class = BlockClass.CLOSED_LOOP
    internal_variables = ["pressure_c"]
    input_params = [InputParameter("Rp"), InputParameter("C"), InputParameter("Rd")]

    def sparsity(self) -> Sparsity:
        return {
            "E": [(1, 4)],
            "F": [(0, 0), (0, 1), (0, 4), (1, 1), (1, 3), (2, 2), (2, 3), (2, 4)],
        }

    def update_constant(self, system) -> None:
        self.add_F(system, 0, 0, 1.0)
        self.add_F(system, 0, 1, -self.value("Rp"))
        self.add_F(system, 0, 4, -1.0)
        self.add_F(system, 1, 1, 1.0)
        self.add_F(system, 1, 3, -1.0)
        self.add_E(system, 1, 4, -self.value("C"))
        self.add_F(system, 2, 4, 1.0)
        self.add_F(system, 2, 3, -self.value("Rd"))
        self.add_F(system, 2, 2, -1.0)


class ValveState(Enum):
    OPEN = "open"
    CLOSED = "closed"


class CardiacPhase(Enum):
    SYSTOLE = "systole"
    DIASTOLE = "diastole"


@dataclass
class Valve:
    """
    Heart valve between two local pressure unknowns.

    An open valve obeys L dQ/dt + R Q - P_up + P_down = 0, a closed valve
    Q = 0. The valve is open while the upstream pressure exceeds the
    downstream pressure or flow is still moving forward.
    """
    name: str
    equation: int
    upstream: int
    downstream: int
    flow: int
    inductance: str
    resistance: str
    state: ValveState = ValveState.CLOSED

    def entries(self) -> Dict[str, List]:
        eq = self.equation
        return {
            "E": [(eq, self.flow)],
            "F": [(eq, self.flow), (eq, self.upstream), (eq, self.downstream)],
        }


# local variable indices
P_RA, Q_IN, P_AO, Q_OUT = 0, 1, 2, 3
V_RA, Q_RA, P_RV, V_RV, Q_RV, P_PUL, P_LA, V_LA, Q_LA, P_LV, V_LV, Q_LV = range(4, 16)


class ClosedLoopHeartPulmonary(Block):
    """
    Four-chamber heart with pulmonary circulation.

    The inlet node is the right atrium (systemic venous return), the outlet
    node the aortic root. Atria follow an exponential passive law plus an
    active elastance driven by the atrial activation AA(t); ventricles
    follow a time-varying elastance driven by the ventricular activation
    AV(t). Four valves (tricuspid, pulmonary, mitral, aortic) connect the
    chambers; the pulmonary circulation is a capacitor Cp + Cpa at P_pul
    draining through Rpd into the left atrium.

    Equations:
        0  dV_RA/dt - Q_in + Q_RA = 0
        1  P_RA - AA Emax_ra (V_RA - Vaso_ra) - Kxp_ra (exp(Kxv_ra (V_RA - Vaso_ra)) - 1) = 0
        2  tricuspid valve
        3  dV_RV/dt - Q_RA + Q_RV = 0
        4  P_RV - Erv(t) (V_RV - Vrv_u) = 0
        5  pulmonary valve
        6  (Cp + Cpa) dP_pul/dt - Q_RV + (P_pul - P_LA) / Rpd = 0
        7  dV_LA/dt - (P_pul - P_LA) / Rpd + Q_LA = 0
        8  P_LA - AA Emax_la (V_LA - Vaso_la) - Kxp_la (exp(Kxv_la (V_LA - Vaso_la)) - 1) = 0
        9  mitral valve
        10 dV_LV/dt - Q_LA + Q_LV = 0
        11 P_LV - Elv(t) (V_LV - Vlv_u) = 0
        12 aortic valve
        13 Q_LV - Q_out = 0

    Timing: atrial systole lasts Tsa * T and ends at the P-wave time
    T / tpwave; ventricular systole lasts 0.3 * sqrt(T) and starts there.
    """

    block_type = "ClosedLoopHeartAndPulmonary"
    block_class = BlockClass.CLOSED_LOOP
    internal_variables = [
        "V_RA", "Q_RA", "P_RV", "V_RV", "Q_RV", "P_pul",
        "P_LA", "V_LA", "Q_LA", "P_LV", "V_LV", "Q_LV",
    ]
    input_params = [
        InputParameter(name) for name in (
            "Tsa", "tpwave", "Erv_s", "Elv_s", "iml", "imr",
            "Lra_v", "Rra_v", "Lrv_a", "Rrv_a", "Lla_v", "Rla_v", "Llv_a", "Rlv_ao",
            "Vrv_u", "Vlv_u", "Rpd", "Cp",
            "Kxp_ra", "Kxv_ra", "Kxp_la", "Kxv_la",
            "Emax_ra", "Emax_la", "Vaso_ra", "Vaso_la",
        )
    ] + [InputParameter("Cpa", is_optional=True)]

    def __init__(self, name, params=None):
        super().__init__(name, params)
        self.phase = CardiacPhase.DIASTOLE
        self.valves = [
            Valve("tricuspid", 2, P_RA, P_RV, Q_RA, "Lra_v", "Rra_v"),
            Valve("pulmonary", 5, P_RV, P_PUL, Q_RV, "Lrv_a", "Rrv_a"),
            Valve("mitral", 9, P_LA, P_LV, Q_LA, "Lla_v", "Rla_v"),
            Valve("aortic", 12, P_LV, P_AO, Q_LV, "Llv_a", "Rlv_ao"),
        ]
        self.atrial_activation = 0.0
        self.ventricular_activation = 0.0

    def ventricle_pressure_dof(self, side) -> int:
        """Global index of the left or right ventricular pressure."""
        local = P_LV if getattr(side, "value", side) == "left" else P_RV
        return self.global_var_ids[local]

    @property
    def valve_states(self) -> Dict[str, ValveState]:
        return {valve.name: valve.state for valve in self.valves}

    def sparsity(self) -> Sparsity:
        entries = {
            "E": [(0, V_RA), (3, V_RV), (6, P_PUL), (7, V_LA), (10, V_LV)],
            "F": [
                (0, Q_IN), (0, Q_RA),
                (1, P_RA), (1, V_RA),
                (3, Q_RA), (3, Q_RV),
                (4, P_RV), (4, V_RV),
                (6, Q_RV), (6, P_PUL), (6, P_LA),
                (7, P_PUL), (7, P_LA), (7, Q_LA),
                (8, P_LA), (8, V_LA),
                (10, Q_LA), (10, Q_LV),
                (11, P_LV), (11, V_LV),
                (13, Q_LV), (13, Q_OUT),
            ],
            "dC_dy": [(1, V_RA), (8, V_LA)],
        }
        for valve in self.valves:
            for matrix, valve_entries in valve.entries().items():
                entries[matrix] += valve_entries
        return entries

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def _activations(self, time: float):
        period = self.model.cardiac_cycle_period
        t_in_cycle = time % period
        t_atrial = self.value("Tsa") * period
        t_pwave = period / self.value("tpwave")
        t_ventricular = 0.3 * math.sqrt(period)

        since_atrial = (t_in_cycle - (t_pwave - t_atrial)) % period
        atrial = 0.0
        if since_atrial < t_atrial:
            atrial = 0.5 * (1.0 - math.cos(2.0 * math.pi * since_atrial / t_atrial))

        since_ventricular = (t_in_cycle - t_pwave) % period
        ventricular = 0.0
        if since_ventricular < t_ventricular:
            ventricular = 0.5 * (1.0 - math.cos(2.0 * math.pi * since_ventricular / t_ventricular))
        return atrial, ventricular, since_ventricular < t_ventricular

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def update_constant(self, system) -> None:
        compliance = self.value("Cp") + self.value("Cpa")
        distal = 1.0 / self.value("Rpd")

        self.add_E(system, 0, V_RA, 1.0)
        self.add_F(system, 0, Q_IN, -1.0)
        self.add_F(system, 0, Q_RA, 1.0)

        self.add_F(system, 1, P_RA, 1.0)

        self.add_E(system, 3, V_RV, 1.0)
        self.add_F(system, 3, Q_RA, -1.0)
        self.add_F(system, 3, Q_RV, 1.0)

        self.add_F(system, 4, P_RV, 1.0)

        self.add_E(system, 6, P_PUL, compliance)
        self.add_F(system, 6, Q_RV, -1.0)
        self.add_F(system, 6, P_PUL, distal)
        self.add_F(system, 6, P_LA, -distal)

        self.add_E(system, 7, V_LA, 1.0)
        self.add_F(system, 7, P_PUL, -distal)
        self.add_F(system, 7, P_LA, distal)
        self.add_F(system, 7, Q_LA, 1.0)

        self.add_F(system, 8, P_LA, 1.0)

        self.add_E(system, 10, V_LV, 1.0)
        self.add_F(system, 10, Q_LA, -1.0)
        self.add_F(system, 10, Q_LV, 1.0)

        self.add_F(system, 11, P_LV, 1.0)

        self.add_F(system, 13, Q_LV, 1.0)
        self.add_F(system, 13, Q_OUT, -1.0)

    def update_time(self, system, time) -> None:
        atrial, ventricular, systole = self._activations(time)
        self.atrial_activation = atrial
        self.ventricular_activation = ventricular
        self.phase = CardiacPhase.SYSTOLE if systole else CardiacPhase.DIASTOLE

        for eqn, volume, emax, vaso in ((1, V_RA, "Emax_ra", "Vaso_ra"), (8, V_LA, "Emax_la", "Vaso_la")):
            active = atrial * self.value(emax)
            self.add_F(system, eqn, volume, -active)
            self.add_C(system, eqn, active * self.value(vaso))

        for eqn, volume, emax, unstressed in ((4, V_RV, "Erv_s", "Vrv_u"), (11, V_LV, "Elv_s", "Vlv_u")):
            elastance = ventricular * self.value(emax)
            self.add_F(system, eqn, volume, -elastance)
            self.add_C(system, eqn, elastance * self.value(unstressed))

    def _passive_atrium(self, y, volume: int, kxp: str, kxv: str, vaso: str):
        stiffness = self.value(kxv)
        exponential = math.exp(stiffness * (y[self.global_var_ids[volume]] - self.value(vaso)))
        return self.value(kxp) * (exponential - 1.0), self.value(kxp) * stiffness * exponential

    def update_solution(self, system, y) -> None:
        for eqn, volume, kxp, kxv, vaso in ((1, V_RA, "Kxp_ra", "Kxv_ra", "Vaso_ra"),
                                            (8, V_LA, "Kxp_la", "Kxv_la", "Vaso_la")):
            pressure, _ = self._passive_atrium(y, volume, kxp, kxv, vaso)
            self.add_C(system, eqn, -pressure)

        for valve in self.valves:
            p_up = y[self.global_var_ids[valve.upstream]]
            p_down = y[self.global_var_ids[valve.downstream]]
            flow = y[self.global_var_ids[valve.flow]]
            valve.state = ValveState.OPEN if (p_up > p_down or flow > 0.0) else ValveState.CLOSED
            if valve.state is ValveState.OPEN:
                self.add_E(system, valve.equation, valve.flow, self.value(valve.inductance))
                self.add_F(system, valve.equation, valve.flow, self.value(valve.resistance))
                self.add_F(system, valve.equation, valve.upstream, -1.0)
                self.add_F(system, valve.equation, valve.downstream, 1.0)
            else:
                self.add_F(system, valve.equation, valve.flow, 1.0)

    def update_gradient(self, system, y, ydot) -> None:
        for eqn, volume, kxp, kxv, vaso in ((1, V_RA, "Kxp_ra", "Kxv_ra", "Vaso_ra"),
                                            (8, V_LA, "Kxp_la", "Kxv_la", "Vaso_la")):
            _, slope = self._passive_atrium(y, volume, kxp, kxv, vaso)
            self.add_dC_dy(system, eqn, volume, -slope)


__all__ = [
    "ClosedLoopRCRBC",
    "ClosedLoopHeartPulmonary",
    "Valve",
    "ValveState",
    "CardiacPhase",
]
