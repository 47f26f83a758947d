"""Lookup of block classes by the type names used in model descriptions."""

from typing import Dict, Type

from ..core.errors import ConfigurationError
from .base import Block
from .boundary import FlowReferenceBC, PressureReferenceBC, ResistanceBC, WindkesselBC
from .chambers import LinearElastanceChamber
from .closed_loop import ClosedLoopHeartPulmonary, ClosedLoopRCRBC
from .coronary import ClosedLoopCoronaryBC, OpenLoopCoronaryBC
from .junctions import BloodVesselJunction, Junction, ResistiveJunction
from .vessels import BloodVessel, BloodVesselCRL, ResistiveVessel

BLOCK_TYPES: Dict[str, Type[Block]] = {
    cls.block_type: cls
    for cls in (
        ResistiveVessel,
        BloodVessel,
        BloodVesselCRL,
        Junction,
        ResistiveJunction,
        BloodVesselJunction,
        FlowReferenceBC,
        PressureReferenceBC,
        ResistanceBC,
        WindkesselBC,
        OpenLoopCoronaryBC,
        ClosedLoopCoronaryBC,
        ClosedLoopRCRBC,
        ClosedLoopHeartPulmonary,
        LinearElastanceChamber,
    )
}

# alternative names accepted in descriptions
BLOCK_TYPE_ALIASES = {
    "internal_junction": "NORMAL_JUNCTION",
    "ClosedLoopCoronaryLeft": "ClosedLoopCoronary",
    "ClosedLoopCoronaryRight": "ClosedLoopCoronary",
}


def get_block_class(type_name: str) -> Type[Block]:
    """
    Resolve a block type name.

    Raises
    ------
    ConfigurationError
        If the name is unknown
    """
    type_name = BLOCK_TYPE_ALIASES.get(type_name, type_name)
    try:
        return BLOCK_TYPES[type_name]
    except KeyError:
        raise ConfigurationError(f"Unknown block type '{type_name}'") from None


__all__ = ["BLOCK_TYPES", "BLOCK_TYPE_ALIASES", "get_block_class"]
