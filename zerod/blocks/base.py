"""
Block base class.

A block is a circuit-like element of the network. It is attached to inlet
and outlet Nodes, may own internal unknowns, and contributes one equation
per attached node endpoint plus one per internal unknown. Local variable
numbering is

    [P, Q of each inlet node, P, Q of each outlet node, internal variables]

Blocks write their contributions through the lifecycle callbacks
update_constant, update_time, update_solution and update_gradient; any
callback a block does not need is a no-op. Every entry a block writes must
be listed by ``sparsity``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, TYPE_CHECKING

import numpy as np

from ..core.dof import DOFHandler, Node
from ..core.errors import ConfigurationError
from ..core.parameter import Parameter

if TYPE_CHECKING:
    from ..algebra.sparse_system import SparseSystem
    from ..model import Model


class BlockClass(Enum):
    """Coarse classification of blocks."""
    VESSEL = "vessel"
    JUNCTION = "junction"
    BOUNDARY_CONDITION = "boundary_condition"
    CLOSED_LOOP = "closed_loop"
    CHAMBER = "chamber"


@dataclass
class InputParameter:
    """
    Declaration of a block input parameter.

    Attributes
    ----------
    name : str
        Parameter name as used in model descriptions
    is_optional : bool
        Whether the parameter may be omitted
    default : float
        Value used when an optional parameter is omitted
    is_array : bool
        Whether the parameter holds one value per connection
    time_dependent : bool
        Whether the parameter may be a time series
    """
    name: str
    is_optional: bool = False
    default: float = 0.0
    is_array: bool = False
    time_dependent: bool = False


Sparsity = Dict[str, List[Tuple[int, int]]]


class Block:
    """
    Base class of all network elements.

    Parameters
    ----------
    name : str
        Unique block name
    params : dict
        Mapping of parameter name to Parameter or plain value
    """

    block_type = "Block"
    block_class = BlockClass.VESSEL
    input_params: List[InputParameter] = []
    internal_variables: List[str] = []
    num_inlets: Optional[int] = 1
    num_outlets: Optional[int] = 1
    num_nodes: Optional[int] = None
    calibration_params: List[str] = []

    def __init__(self, name: str, params: Optional[Dict[str, Any]] = None):
        self.id: int = -1
        self.name = name
        self.model: Optional["Model"] = None
        self.inlet_nodes: List[Node] = []
        self.outlet_nodes: List[Node] = []
        self.global_var_ids: List[int] = []
        self.global_eqn_ids: List[int] = []
        self.steady = False
        self.params: Dict[str, Parameter] = {}
        self._init_params(params or {})

    def _init_params(self, params: Dict[str, Any]) -> None:
        known = {p.name for p in self.input_params}
        unknown = set(params) - known
        if unknown:
            raise ConfigurationError(
                f"{self.block_type} '{self.name}' got unknown parameters: {sorted(unknown)}"
            )
        for spec in self.input_params:
            if spec.name in params:
                value = params[spec.name]
                param = value if isinstance(value, Parameter) else Parameter(spec.name, value=value)
            elif spec.is_optional:
                param = Parameter(spec.name, value=spec.default)
            else:
                raise ConfigurationError(
                    f"{self.block_type} '{self.name}' is missing parameter '{spec.name}'"
                )
            self.params[spec.name] = param

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def value(self, name: str, time: float = 0.0) -> Any:
        """Value of parameter ``name`` at ``time``."""
        return self.params[name].value(time)

    def validate_params(self) -> None:
        """
        Check that only time-dependent parameters are time series and that
        array parameters match the number of connections.
        """
        for spec in self.input_params:
            param = self.params[spec.name]
            if param.num_samples == 0:
                raise ConfigurationError(f"Parameter '{spec.name}' of block '{self.name}' has no samples")
            if not param.is_constant and not spec.time_dependent:
                raise ConfigurationError(
                    f"Parameter '{spec.name}' of block '{self.name}' must be constant"
                )
            if spec.is_array:
                expected = self.array_length()
                actual = param.values.shape[-1] if param.is_array else 1
                if actual != expected:
                    raise ConfigurationError(
                        f"Parameter '{spec.name}' of block '{self.name}' needs {expected} values, got {actual}"
                    )

    def array_length(self) -> int:
        """Number of entries expected for array-valued parameters."""
        return len(self.outlet_nodes)

    def update_params(self, new_params: Dict[str, Any]) -> None:
        """
        Replace parameter samples.

        Values are either plain numbers/arrays or dicts with ``values`` and
        optional ``t`` keys. A rejected update leaves every parameter
        unchanged.
        """
        for name in new_params:
            if name not in self.params:
                raise ConfigurationError(f"Block '{self.name}' has no parameter '{name}'")
        saved = {name: dict(vars(self.params[name])) for name in new_params}
        try:
            for name, new_value in new_params.items():
                if isinstance(new_value, dict):
                    self.params[name].update(new_value["values"], times=new_value.get("t"))
                else:
                    self.params[name].update(new_value)
            self.validate_params()
        except ConfigurationError:
            for name, state in saved.items():
                vars(self.params[name]).update(state)
            raise

    def calibration_values(self) -> np.ndarray:
        """Current values of the calibration parameters as one flat vector."""
        return np.concatenate(
            [np.atleast_1d(self.value(name)).astype(float) for name in self.calibration_params]
        ) if self.calibration_params else np.zeros(0)

    def set_calibration_values(self, values: np.ndarray) -> None:
        """Write a flat calibration vector back into the block parameters."""
        offset = 0
        for name in self.calibration_params:
            size = np.atleast_1d(self.value(name)).size
            chunk = values[offset:offset + size]
            self.params[name].update(chunk if self.params[name].is_array else float(chunk[0]))
            offset += size

    def calibration_residual(
        self, y: np.ndarray, ydot: np.ndarray, values: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Residual of this block's equations over observed states and its
        gradient with respect to the calibration parameters.

        Parameters
        ----------
        y, ydot : np.ndarray
            Observed global states, shape (n_observations, n_dofs)
        values : np.ndarray
            Calibration parameter vector

        Returns
        -------
        tuple
            (residual, jacobian) with shapes (m,) and (m, len(values))
        """
        raise NotImplementedError(f"{self.block_type} does not support calibration")

    def to_steady(self) -> None:
        self.steady = True
        for param in self.params.values():
            param.to_steady()

    def to_unsteady(self) -> None:
        self.steady = False
        for param in self.params.values():
            param.to_unsteady()

    # ------------------------------------------------------------------
    # Topology and DOFs
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> List[Node]:
        return self.inlet_nodes + self.outlet_nodes

    @property
    def num_equations(self) -> int:
        return len(self.nodes) + len(self.internal_variables)

    def check_ports(self) -> None:
        """Check the number of attached inlet and outlet nodes."""
        n_in, n_out = len(self.inlet_nodes), len(self.outlet_nodes)
        if self.num_nodes is not None:
            if n_in + n_out != self.num_nodes:
                raise ConfigurationError(
                    f"{self.block_type} '{self.name}' needs {self.num_nodes} connection(s), has {n_in + n_out}"
                )
            return
        if self.num_inlets is not None and n_in != self.num_inlets:
            raise ConfigurationError(
                f"{self.block_type} '{self.name}' needs {self.num_inlets} inlet(s), has {n_in}"
            )
        if self.num_outlets is not None and n_out != self.num_outlets:
            raise ConfigurationError(
                f"{self.block_type} '{self.name}' needs {self.num_outlets} outlet(s), has {n_out}"
            )
        if n_in == 0 or n_out == 0:
            raise ConfigurationError(f"{self.block_type} '{self.name}' needs at least one inlet and one outlet")

    def setup_dofs(self, dofhandler: DOFHandler) -> None:
        """Register node unknowns, internal unknowns and equations."""
        self.global_var_ids = []
        for node in self.nodes:
            node.setup_dofs(dofhandler)
            self.global_var_ids += [node.pres_dof, node.flow_dof]
        for variable in self.internal_variables:
            self.global_var_ids.append(dofhandler.register_variable(f"{variable}:{self.name}"))
        self.global_eqn_ids = [
            dofhandler.register_equation(f"{self.name}:{i}") for i in range(self.num_equations)
        ]

    def setup_model_dependent_params(self) -> None:
        """Hook run after all DOFs are assigned."""
        pass

    def sparsity(self) -> Sparsity:
        """Local (equation, variable) entries written per matrix."""
        return {}

    def global_sparsity(self) -> Sparsity:
        """
        Declared entries mapped to global indices.

        Raises
        ------
        ConfigurationError
            If an entry lies outside the block's local range or an equation
            has no entry at all
        """
        n_eqn, n_var = len(self.global_eqn_ids), len(self.global_var_ids)
        if n_eqn != self.num_equations:
            raise ConfigurationError(
                f"Block '{self.name}' registered {n_eqn} equations but declares {self.num_equations}"
            )
        covered: Set[int] = set()
        result: Sparsity = {}
        for matrix, entries in self.sparsity().items():
            mapped = []
            for eqn, var in entries:
                if not (0 <= eqn < n_eqn and 0 <= var < n_var):
                    raise ConfigurationError(
                        f"Block '{self.name}' declares {matrix} entry ({eqn}, {var}) outside its "
                        f"{n_eqn} equations x {n_var} variables"
                    )
                covered.add(eqn)
                mapped.append((self.global_eqn_ids[eqn], self.global_var_ids[var]))
            result[matrix] = mapped
        missing = set(range(n_eqn)) - covered
        if missing:
            raise ConfigurationError(f"Block '{self.name}' declares no entries for equations {sorted(missing)}")
        return result

    # ------------------------------------------------------------------
    # Assembly helpers
    # ------------------------------------------------------------------

    def add_E(self, system: "SparseSystem", eqn: int, var: int, value: float) -> None:
        system.add("E", self.global_eqn_ids[eqn], self.global_var_ids[var], value)

    def add_F(self, system: "SparseSystem", eqn: int, var: int, value: float) -> None:
        system.add("F", self.global_eqn_ids[eqn], self.global_var_ids[var], value)

    def add_dC_dy(self, system: "SparseSystem", eqn: int, var: int, value: float) -> None:
        system.add("dC_dy", self.global_eqn_ids[eqn], self.global_var_ids[var], value)

    def add_dC_dydot(self, system: "SparseSystem", eqn: int, var: int, value: float) -> None:
        system.add("dC_dydot", self.global_eqn_ids[eqn], self.global_var_ids[var], value)

    def add_C(self, system: "SparseSystem", eqn: int, value: float) -> None:
        system.add_C(self.global_eqn_ids[eqn], value)

    def local(self, vector: np.ndarray) -> np.ndarray:
        """Restrict a global vector to this block's variables."""
        return vector[self.global_var_ids]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def update_constant(self, system: "SparseSystem") -> None:
        pass

    def update_time(self, system: "SparseSystem", time: float) -> None:
        pass

    def update_solution(self, system: "SparseSystem", y: np.ndarray) -> None:
        pass

    def update_gradient(self, system: "SparseSystem", y: np.ndarray, ydot: np.ndarray) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


__all__ = ["Block", "BlockClass", "InputParameter", "Sparsity"]
