"""
Degree-of-freedom bookkeeping.

The DOFHandler hands out global indices for named variables and equations.
A Node is a connection point between two blocks carrying one pressure and
one flow unknown.
"""

from typing import Dict, List, Optional, TYPE_CHECKING

from .errors import ConfigurationError

if TYPE_CHECKING:
    from ..blocks.base import Block


class DOFHandler:
    """Registry of global variables and equations."""

    def __init__(self):
        self.variables: List[str] = []
        self.equations: List[str] = []
        self._variable_index: Dict[str, int] = {}

    @property
    def size(self) -> int:
        return len(self.variables)

    @property
    def num_equations(self) -> int:
        return len(self.equations)

    def register_variable(self, name: str) -> int:
        """Register a new variable and return its global index."""
        if name in self._variable_index:
            raise ConfigurationError(f"Variable '{name}' registered twice")
        index = len(self.variables)
        self.variables.append(name)
        self._variable_index[name] = index
        return index

    def register_equation(self, name: str) -> int:
        """Register a new equation and return its global index."""
        self.equations.append(name)
        return len(self.equations) - 1

    def variable_index(self, name: str) -> int:
        try:
            return self._variable_index[name]
        except KeyError:
            raise ConfigurationError(f"Unknown variable '{name}'") from None

    def has_variable(self, name: str) -> bool:
        return name in self._variable_index


class Node:
    """
    Connection point between an upstream and a downstream block.

    Parameters
    ----------
    id : int
        Global node id
    name : str
        Node name, used in the variable names ``pressure:<name>`` and
        ``flow:<name>``
    """

    def __init__(self, id: int, name: str):
        self.id = id
        self.name = name
        self.inlet_eles: List["Block"] = []
        self.outlet_eles: List["Block"] = []
        self.pres_dof: Optional[int] = None
        self.flow_dof: Optional[int] = None

    @property
    def is_registered(self) -> bool:
        return self.pres_dof is not None

    def setup_dofs(self, dofhandler: DOFHandler) -> None:
        """Register the pressure and flow unknowns of this node."""
        if self.is_registered:
            return
        self.pres_dof = dofhandler.register_variable(f"pressure:{self.name}")
        self.flow_dof = dofhandler.register_variable(f"flow:{self.name}")

    def __repr__(self) -> str:
        return f"Node({self.id}, {self.name!r})"


__all__ = ["DOFHandler", "Node"]
