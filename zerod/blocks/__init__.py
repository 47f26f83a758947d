"""
Network elements.

Every block derives from Block and contributes its equations through the
update_constant / update_time / update_solution / update_gradient
lifecycle.
"""

from .base import Block, BlockClass, InputParameter
from .vessels import ResistiveVessel, BloodVessel, BloodVesselCRL
from .junctions import Junction, ResistiveJunction, BloodVesselJunction
from .boundary import FlowReferenceBC, PressureReferenceBC, ResistanceBC, WindkesselBC
from .coronary import OpenLoopCoronaryBC, ClosedLoopCoronaryBC, CoronarySide
from .closed_loop import (
    ClosedLoopRCRBC,
    ClosedLoopHeartPulmonary,
    Valve,
    ValveState,
    CardiacPhase,
)
from .chambers import LinearElastanceChamber
from .activation import (
    ActivationFunction,
    HalfCosineActivation,
    PiecewiseCosineActivation,
    TwoHillActivation,
    create_activation_function,
)
from .registry import BLOCK_TYPES, get_block_class

__all__ = [
    "Block",
    "BlockClass",
    "InputParameter",
    "ResistiveVessel",
    "BloodVessel",
    "BloodVesselCRL",
    "Junction",
    "ResistiveJunction",
    "BloodVesselJunction",
    "FlowReferenceBC",
    "PressureReferenceBC",
    "ResistanceBC",
    "WindkesselBC",
    "OpenLoopCoronaryBC",
    "ClosedLoopCoronaryBC",
    "CoronarySide",
    "ClosedLoopRCRBC",
    "ClosedLoopHeartPulmonary",
    "Valve",
    "ValveState",
    "CardiacPhase",
    "LinearElastanceChamber",
    "ActivationFunction",
    "HalfCosineActivation",
    "PiecewiseCosineActivation",
    "TwoHillActivation",
    "create_activation_function",
    "BLOCK_TYPES",
    "get_block_class",
]
