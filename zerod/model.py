"""
Model: registry of blocks and nodes with global DOF numbering.

DOFs are assigned in block insertion order. For each block, the pressure
and flow unknowns of its not yet registered nodes come first, then its
internal unknowns; its equations follow the equations of all previously
inserted blocks. The numbering is stable for the lifetime of the model,
which makes restart states transferable between instances built from the
same description.
"""

from typing import Dict, List, Optional, TYPE_CHECKING
import logging

import numpy as np

from .blocks.base import Block, BlockClass
from .core.dof import DOFHandler, Node
from .core.errors import ConfigurationError

if TYPE_CHECKING:
    from .algebra.sparse_system import SparseSystem

logger = logging.getLogger(__name__)

PERIOD_RTOL = 1e-12
DEFAULT_CARDIAC_PERIOD = 1.0


class Model:
    """
    Lumped-parameter network model.

    Parameters
    ----------
    name : str
        Model name used in log messages
    cardiac_period : float, optional
        Explicit cardiac cycle period overriding the one derived from
        periodic parameters
    """

    def __init__(self, name: str = "model", cardiac_period: Optional[float] = None):
        self.name = name
        self.blocks: List[Block] = []
        self.nodes: List[Node] = []
        self.dofhandler = DOFHandler()
        self.time = 0.0
        self.cardiac_cycle_period = cardiac_period
        self.needs_constant_update = True
        self.finalized = False
        self._block_index: Dict[str, Block] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_block(self, block: Block) -> Block:
        """Register a block; its insertion position fixes its DOF range."""
        if self.finalized:
            raise ConfigurationError(f"Cannot add block '{block.name}' to a finalized model")
        if block.name in self._block_index:
            raise ConfigurationError(f"Duplicate block name '{block.name}'")
        block.id = len(self.blocks)
        block.model = self
        self.blocks.append(block)
        self._block_index[block.name] = block
        return block

    def connect(self, upstream: Block, downstream: Block, name: Optional[str] = None) -> Node:
        """Create a node carrying flow from ``upstream`` to ``downstream``."""
        if self.finalized:
            raise ConfigurationError("Cannot connect blocks of a finalized model")
        node = Node(len(self.nodes), name or f"{upstream.name}:{downstream.name}")
        node.inlet_eles.append(upstream)
        node.outlet_eles.append(downstream)
        upstream.outlet_nodes.append(node)
        downstream.inlet_nodes.append(node)
        self.nodes.append(node)
        return node

    def get_block(self, name: str) -> Block:
        try:
            return self._block_index[name]
        except KeyError:
            raise ConfigurationError(f"Unknown block '{name}'") from None

    def has_block(self, name: str) -> bool:
        return name in self._block_index

    @property
    def has_closed_loop(self) -> bool:
        return any(block.block_class is BlockClass.CLOSED_LOOP for block in self.blocks)

    def finalize(self) -> None:
        """
        Validate the topology and assign global DOFs.

        Raises
        ------
        ConfigurationError
            On wrong node counts, non-square systems, invalid parameters or
            inconsistent cardiac periods
        """
        if self.finalized:
            return
        if not self.blocks:
            raise ConfigurationError(f"Model '{self.name}' has no blocks")

        for block in self.blocks:
            block.check_ports()
        for block in self.blocks:
            block.setup_dofs(self.dofhandler)

        if self.dofhandler.num_equations != self.dofhandler.size:
            raise ConfigurationError(
                f"Model '{self.name}' has {self.dofhandler.num_equations} equations "
                f"for {self.dofhandler.size} unknowns"
            )

        for block in self.blocks:
            block.validate_params()

        self.cardiac_cycle_period = self._determine_cardiac_period()

        for block in self.blocks:
            block.setup_model_dependent_params()

        self.finalized = True
        logger.info(
            f"Finalized model '{self.name}': {len(self.blocks)} blocks, {len(self.nodes)} nodes, "
            f"{self.dofhandler.size} DOFs, cardiac period {self.cardiac_cycle_period}"
        )

    def _determine_cardiac_period(self) -> float:
        periods = [
            param.period
            for block in self.blocks
            for param in block.params.values()
            if param.is_periodic and param.period > 0.0
        ]
        if self.cardiac_cycle_period is not None:
            if self.cardiac_cycle_period <= 0.0:
                raise ConfigurationError("cardiac period must be positive")
            return float(self.cardiac_cycle_period)
        if not periods:
            return DEFAULT_CARDIAC_PERIOD
        reference = periods[0]
        for period in periods[1:]:
            if abs(period - reference) > PERIOD_RTOL * max(abs(reference), 1.0):
                raise ConfigurationError(
                    f"Inconsistent cardiac periods in model '{self.name}': {reference} and {period}"
                )
        return reference

    # ------------------------------------------------------------------
    # Lifecycle drivers
    # ------------------------------------------------------------------

    def update_constant(self, system: "SparseSystem") -> None:
        for block in self.blocks:
            block.update_constant(system)
        self.needs_constant_update = False

    def update_time(self, system: "SparseSystem", time: float) -> None:
        self.time = time
        for block in self.blocks:
            block.update_time(system, time)

    def update_solution(self, system: "SparseSystem", y: np.ndarray, ydot: np.ndarray) -> None:
        for block in self.blocks:
            block.update_solution(system, y)
        for block in self.blocks:
            block.update_gradient(system, y, ydot)

    def update_block_params(self, block_name: str, params: Dict) -> None:
        """Replace parameters of a block; effective at the next assembly."""
        self.get_block(block_name).update_params(params)
        self.needs_constant_update = True

    def to_steady(self) -> None:
        for block in self.blocks:
            block.to_steady()
        self.needs_constant_update = True

    def to_unsteady(self) -> None:
        for block in self.blocks:
            block.to_unsteady()
        self.needs_constant_update = True

    # ------------------------------------------------------------------
    # Solution mapping
    # ------------------------------------------------------------------

    @property
    def variable_names(self) -> List[str]:
        return list(self.dofhandler.variables)

    def solution_dict(self, y: np.ndarray) -> Dict[str, float]:
        """Map a solution vector to named quantities."""
        return {name: float(value) for name, value in zip(self.dofhandler.variables, y)}

    def junction_blocks(self) -> List[Block]:
        return [block for block in self.blocks if block.block_class is BlockClass.JUNCTION]

    def __repr__(self) -> str:
        return f"Model({self.name!r}, blocks={len(self.blocks)}, dofs={self.dofhandler.size})"


__all__ = ["Model"]
