"""
Boundary condition blocks.

A boundary condition is attached to a single node (local pressure index 0,
local flow index 1) and prescribes a value or a pressure-flow relation
there. The node flow is positive from upstream to downstream, so an outlet
boundary condition sees the flow leaving the network and an inlet boundary
condition the flow entering it.
"""

from .base import Block, BlockClass, InputParameter, Sparsity

P, Q = 0, 1


class FlowReferenceBC(Block):
    """Prescribed flow: Q - Q(t) = 0."""

    block_type = "FLOW"
    block_class = BlockClass.BOUNDARY_CONDITION
    num_nodes = 1
    input_params = [InputParameter("Q", time_dependent=True)]

    def sparsity(self) -> Sparsity:
        return {"F": [(0, Q)]}

    def update_constant(self, system) -> None:
        self.add_F(system, 0, Q, 1.0)

    def update_time(self, system, time) -> None:
        self.add_C(system, 0, -self.value("Q", time))


class PressureReferenceBC(Block):
    """Prescribed pressure: P - P(t) = 0."""

    block_type = "PRESSURE"
    block_class = BlockClass.BOUNDARY_CONDITION
    num_nodes = 1
    input_params = [InputParameter("P", time_dependent=True)]

    def sparsity(self) -> Sparsity:
        return {"F": [(0, P)]}

    def update_constant(self, system) -> None:
        self.add_F(system, 0, P, 1.0)

    def update_time(self, system, time) -> None:
        self.add_C(system, 0, -self.value("P", time))


class ResistanceBC(Block):
    """Resistance to a distal pressure: P - R(t) Q - Pd(t) = 0."""

    block_type = "RESISTANCE"
    block_class = BlockClass.BOUNDARY_CONDITION
    num_nodes = 1
    input_params = [
        InputParameter("R", time_dependent=True),
        InputParameter("Pd", is_optional=True, time_dependent=True),
    ]

    def sparsity(self) -> Sparsity:
        return {"F": [(0, P), (0, Q)]}

    def update_constant(self, system) -> None:
        self.add_F(system, 0, P, 1.0)

    def update_time(self, system, time) -> None:
        self.add_F(system, 0, Q, -self.value("R", time))
        self.add_C(system, 0, -self.value("Pd", time))


class WindkesselBC(Block):
    """
    Three-element (RCR) Windkessel with distal pressure.

    Internal unknown P_c is the capacitor pressure:

        P - Rp Q - P_c = 0
        Rd Q - P_c - Rd C dP_c/dt + Pd(t) = 0
    """

    block_type = "RCR"
    block_class = BlockClass.BOUNDARY_CONDITION
    num_nodes = 1
    internal_variables = ["pressure_c"]
    input_params = [
        InputParameter("Rp"),
        InputParameter("C"),
        InputParameter("Rd"),
        InputParameter("Pd", is_optional=True, time_dependent=True),
    ]

    def sparsity(self) -> Sparsity:
        return {
            "E": [(1, 2)],
            "F": [(0, P), (0, Q), (0, 2), (1, Q), (1, 2)],
        }

    def update_constant(self, system) -> None:
        distal = self.value("Rd")
        self.add_F(system, 0, P, 1.0)
        self.add_F(system, 0, Q, -self.value("Rp"))
        self.add_F(system, 0, 2, -1.0)
        self.add_F(system, 1, Q, distal)
        self.add_F(system, 1, 2, -1.0)
        self.add_E(system, 1, 2, -distal * self.value("C"))

    def update_time(self, system, time) -> None:
        self.add_C(system, 1, self.value("Pd", time))


__all__ = ["FlowReferenceBC", "PressureReferenceBC", "ResistanceBC", "WindkesselBC"]
