"""
Model construction from a parsed description.

The description is a plain dict (already parsed from JSON or built in
code) with the sections ``simulation_parameters``, ``vessels``,
``junctions``, ``boundary_conditions``, ``closed_loop_blocks``,
``chambers``, ``connections``, ``initial_condition``,
``initial_condition_d`` and ``parameter_tables``. Only ``vessels`` or
``chambers`` plus the boundary conditions they reference are required.

Blocks are inserted in the order vessels, junctions, boundary conditions,
closed-loop blocks, chambers; this order fixes the DOF numbering.
"""

from typing import Any, Dict, List, Optional, Tuple
import logging

import numpy as np

from zerod_policies import SimulationParameters

from .blocks.activation import create_activation_function
from .blocks.base import Block
from .blocks.chambers import LinearElastanceChamber
from .blocks.coronary import ClosedLoopCoronaryBC, CoronarySide
from .blocks.junctions import Junction
from .blocks.registry import get_block_class
from .core.errors import ConfigurationError
from .core.parameter import Parameter
from .model import Model

logger = logging.getLogger(__name__)

HEART_TYPE = "ClosedLoopHeartAndPulmonary"
CLOSED_LOOP_BC_TYPES = {"ClosedLoopRCR", "ClosedLoopCoronaryLeft", "ClosedLoopCoronaryRight"}


class _ParameterFactory:
    """Creates Parameters, aliasing shared read-only tables by name."""

    def __init__(self, tables: Dict[str, Any]):
        self.tables: Dict[str, Tuple[np.ndarray, np.ndarray]] = {}
        for name, table in tables.items():
            times = np.array(table["t"], dtype=float)
            values = np.array(table["values"], dtype=float)
            times.setflags(write=False)
            values.setflags(write=False)
            self.tables[name] = (times, values)

    def make(self, name: str, value: Any, times: Optional[List[float]] = None, periodic: bool = True) -> Parameter:
        if isinstance(value, str):
            if value not in self.tables:
                raise ConfigurationError(f"Unknown parameter table '{value}' for '{name}'")
            table_times, table_values = self.tables[value]
            return Parameter.from_table(name, table_times, table_values, periodic=periodic)
        if isinstance(value, (list, tuple, np.ndarray)) and times is not None and len(times) > 1:
            return Parameter(name, times=times, values=value, periodic=periodic)
        if isinstance(value, (list, tuple, np.ndarray)) and times is not None:
            # single-sample series
            return Parameter(name, value=value[0])
        return Parameter(name, value=value)

    def make_all(self, values: Dict[str, Any], periodic: bool = True) -> Dict[str, Parameter]:
        times = values.get("t")
        return {
            key: self.make(key, value, times=times, periodic=periodic)
            for key, value in values.items()
            if key != "t"
        }


def _vessel_name(vessel: Dict[str, Any]) -> str:
    return vessel.get("vessel_name", f"V{vessel['vessel_id']}")


def build_model(description: Dict[str, Any]) -> Tuple[Model, SimulationParameters]:
    """
    Build and finalize a model from a description.

    Parameters
    ----------
    description : dict
        Parsed model description

    Returns
    -------
    tuple
        (finalized Model, SimulationParameters)

    Raises
    ------
    ConfigurationError
        If the description is malformed
    """
    sim_params = SimulationParameters.from_dict(description.get("simulation_parameters", {}))
    errors = sim_params.validate()
    if errors:
        raise ConfigurationError(f"Invalid simulation parameters: {'; '.join(errors)}")

    model = Model(description.get("name", "model"), cardiac_period=sim_params.cardiac_period)
    factory = _ParameterFactory(description.get("parameter_tables", {}))

    vessel_names = _add_vessels(model, description.get("vessels", []), factory)
    _add_junctions(model, description.get("junctions", []), vessel_names, factory)
    closed_loop_bcs = _add_boundary_conditions(model, description, factory)
    _add_closed_loop_blocks(model, description.get("closed_loop_blocks", []), closed_loop_bcs, factory)
    _add_chambers(model, description.get("chambers", []), factory)

    for connection in description.get("connections", []):
        upstream, downstream = connection
        model.connect(model.get_block(upstream), model.get_block(downstream))

    model.finalize()
    return model, sim_params


def _add_vessels(model: Model, vessels: List[Dict[str, Any]], factory: _ParameterFactory) -> Dict[int, str]:
    names = {}
    for vessel in vessels:
        cls = get_block_class(vessel.get("zero_d_element_type", "BloodVessel"))
        name = _vessel_name(vessel)
        params = factory.make_all(vessel.get("zero_d_element_values", {}))
        model.add_block(cls(name, params))
        names[vessel["vessel_id"]] = name
    return names


def _add_junctions(
    model: Model,
    junctions: List[Dict[str, Any]],
    vessel_names: Dict[int, str],
    factory: _ParameterFactory,
) -> None:
    for junction in junctions:
        name = junction["junction_name"]
        inlets = junction.get("inlet_vessels", [])
        outlets = junction.get("outlet_vessels", [])
        if not inlets or not outlets:
            raise ConfigurationError(f"Junction '{name}' needs at least one inlet and one outlet vessel")
        cls = get_block_class(junction.get("junction_type", "NORMAL_JUNCTION"))
        params = factory.make_all(junction.get("junction_values", {}))
        block = model.add_block(cls(name, params))
        for vessel_id in inlets:
            model.connect(model.get_block(_lookup_vessel(vessel_names, vessel_id, name)), block)
        for vessel_id in outlets:
            model.connect(block, model.get_block(_lookup_vessel(vessel_names, vessel_id, name)))


def _lookup_vessel(vessel_names: Dict[int, str], vessel_id: int, junction_name: str) -> str:
    try:
        return vessel_names[vessel_id]
    except KeyError:
        raise ConfigurationError(f"Junction '{junction_name}' references unknown vessel {vessel_id}") from None


def _add_boundary_conditions(
    model: Model,
    description: Dict[str, Any],
    factory: _ParameterFactory,
) -> List[Block]:
    """Create boundary conditions and attach them to the vessels naming them."""
    closed_loop = []
    bc_blocks = {}
    for bc in description.get("boundary_conditions", []):
        bc_type = bc["bc_type"]
        cls = get_block_class(bc_type)
        params = factory.make_all(bc.get("bc_values", {}), periodic=bc.get("periodic", True))
        if cls is ClosedLoopCoronaryBC:
            side = CoronarySide.LEFT if bc_type.endswith("Left") else CoronarySide.RIGHT
            block = ClosedLoopCoronaryBC(bc["bc_name"], params, side=side)
        else:
            block = cls(bc["bc_name"], params)
        model.add_block(block)
        bc_blocks[block.name] = block
        if bc_type in CLOSED_LOOP_BC_TYPES:
            closed_loop.append(block)

    for vessel in description.get("vessels", []):
        vessel_block = model.get_block(_vessel_name(vessel))
        for location, bc_name in vessel.get("boundary_conditions", {}).items():
            if bc_name not in bc_blocks:
                raise ConfigurationError(f"Vessel '{vessel_block.name}' references unknown boundary condition '{bc_name}'")
            if location == "inlet":
                model.connect(bc_blocks[bc_name], vessel_block)
            elif location == "outlet":
                model.connect(vessel_block, bc_blocks[bc_name])
            else:
                raise ConfigurationError(f"Unknown boundary condition location '{location}'")
    return closed_loop


def _add_closed_loop_blocks(
    model: Model,
    blocks: List[Dict[str, Any]],
    closed_loop_bcs: List[Block],
    factory: _ParameterFactory,
) -> None:
    hearts = [spec for spec in blocks if spec.get("closed_loop_type") == HEART_TYPE]
    if len(hearts) > 1:
        raise ConfigurationError("Only one closed-loop heart block is supported")
    for spec in blocks:
        if spec.get("closed_loop_type") != HEART_TYPE:
            raise ConfigurationError(f"Unknown closed_loop_type '{spec.get('closed_loop_type')}'")
    if not hearts:
        if closed_loop_bcs:
            raise ConfigurationError("Closed-loop boundary conditions require a closed-loop heart block")
        return

    spec = hearts[0]
    heart_cls = get_block_class(HEART_TYPE)
    heart = model.add_block(heart_cls(spec.get("name", "CLH"), factory.make_all(spec.get("parameters", {}))))

    # venous return: all closed-loop outlets drain into the right atrium
    if len(closed_loop_bcs) == 1:
        model.connect(closed_loop_bcs[0], heart)
    elif closed_loop_bcs:
        junction = model.add_block(Junction("J_heart_inlet"))
        for bc in closed_loop_bcs:
            model.connect(bc, junction)
        model.connect(junction, heart)

    outlets = spec.get("outlet_blocks", [])
    if len(outlets) == 1:
        model.connect(heart, model.get_block(outlets[0]))
    elif outlets:
        junction = model.add_block(Junction("J_heart_outlet"))
        model.connect(heart, junction)
        for name in outlets:
            model.connect(junction, model.get_block(name))
    logger.info(f"Closed loop through heart '{heart.name}' with {len(closed_loop_bcs)} venous returns")


def _add_chambers(model: Model, chambers: List[Dict[str, Any]], factory: _ParameterFactory) -> None:
    for chamber in chambers:
        cls = get_block_class(chamber.get("type", "LinearElastanceChamber"))
        if cls is not LinearElastanceChamber:
            raise ConfigurationError(f"Unsupported chamber type '{chamber.get('type')}'")
        activation_spec = dict(chamber.get("activation_function", {}))
        if "type" not in activation_spec:
            raise ConfigurationError(f"Chamber '{chamber['name']}' needs an activation_function type")
        activation = create_activation_function(activation_spec.pop("type"), activation_spec)
        model.add_block(cls(chamber["name"], factory.make_all(chamber.get("values", {})), activation=activation))


def initial_state(model: Model, description: Dict[str, Any]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Initial (y, ydot) from ``initial_condition`` and ``initial_condition_d``.

    ``pressure_all`` / ``flow_all`` set every pressure/flow unknown; named
    variables override them.
    """
    y = np.zeros(model.dofhandler.size)
    ydot = np.zeros(model.dofhandler.size)
    for key, vector in (("initial_condition", y), ("initial_condition_d", ydot)):
        values = description.get(key, {})
        for i, name in enumerate(model.dofhandler.variables):
            if name.startswith("pressure:") and "pressure_all" in values:
                vector[i] = values["pressure_all"]
            elif name.startswith("flow:") and "flow_all" in values:
                vector[i] = values["flow_all"]
        for name, value in values.items():
            if name in ("pressure_all", "flow_all"):
                continue
            vector[model.dofhandler.variable_index(name)] = value
    return y, ydot


__all__ = ["build_model", "initial_state"]
