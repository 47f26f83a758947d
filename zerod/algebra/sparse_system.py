"""
Sparse storage and linear solve for the global DAE system.

The system is stored as

    E(y) * ydot + F(y) * y + C(y, t) = 0

with the Newton corrections dC/dy and dC/dydot for nonlinear terms. All four
matrices share one CSR sparsity pattern, the union of the entries every
block declares. The pattern is computed once by ``reserve`` and never grows;
assembly writes into a flat arena through precomputed offsets.

Contributions are kept in three layers, one per assembly phase (constant,
time, solution). Assembling a phase zeroes only its own layer, so
solution-independent entries are written once and reused across Newton
iterations and time steps.
"""

from enum import IntEnum
from typing import Dict, List, Optional, Set, Tuple, TYPE_CHECKING
import logging

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import splu

from ..core.errors import ConfigurationError, NumericalError

if TYPE_CHECKING:
    from ..model import Model

logger = logging.getLogger(__name__)


class AssemblyPhase(IntEnum):
    """Assembly phases, one storage layer each."""
    CONSTANT = 0
    TIME = 1
    SOLUTION = 2


MATRICES = ("E", "F", "dC_dy", "dC_dydot")
_MATRIX_INDEX = {name: i for i, name in enumerate(MATRICES)}


class SparseSystem:
    """
    Fixed-pattern sparse system of a model.

    Parameters
    ----------
    size : int
        Number of global unknowns (set by ``reserve`` when 0)
    """

    def __init__(self, size: int = 0):
        self.size = size
        self.steady = False
        self._offsets: Dict[Tuple[int, int], int] = {}
        self._declared: Dict[str, Set[Tuple[int, int]]] = {}
        self._strict = False
        self._indptr = np.zeros(size + 1, dtype=np.int32)
        self._indices = np.zeros(0, dtype=np.int32)
        self._data = np.zeros((len(AssemblyPhase), len(MATRICES), 0))
        self._c = np.zeros((len(AssemblyPhase), size))
        self._phase = AssemblyPhase.CONSTANT
        self._equation_names: List[str] = []
        self._variable_names: List[str] = []

    @property
    def is_reserved(self) -> bool:
        return bool(self._offsets)

    @property
    def nnz(self) -> int:
        return len(self._offsets)

    @property
    def pattern(self) -> Tuple[np.ndarray, np.ndarray]:
        """Copy of the fixed CSR structure as (indptr, indices)."""
        return self._indptr.copy(), self._indices.copy()

    def reserve(self, model: "Model") -> None:
        """
        Build the sparsity pattern from the entries declared by all blocks.

        Parameters
        ----------
        model : Model
            Finalized model whose blocks have global DOF ids
        """
        self.size = model.dofhandler.size
        self._equation_names = list(model.dofhandler.equations)
        self._variable_names = list(model.dofhandler.variables)

        declared: Dict[str, Set[Tuple[int, int]]] = {name: set() for name in MATRICES}
        for block in model.blocks:
            for matrix, entries in block.global_sparsity().items():
                if matrix not in _MATRIX_INDEX:
                    raise ConfigurationError(f"Block '{block.name}' declares unknown matrix '{matrix}'")
                declared[matrix].update(entries)

        keys = sorted(set().union(*declared.values()))
        rows = np.array([key[0] for key in keys], dtype=np.int64)
        cols = np.array([key[1] for key in keys], dtype=np.int64)

        self._indptr = np.zeros(self.size + 1, dtype=np.int32)
        self._indptr[1:] = np.cumsum(np.bincount(rows, minlength=self.size))
        self._indices = cols.astype(np.int32)
        self._offsets = {key: offset for offset, key in enumerate(keys)}
        self._declared = declared
        self._data = np.zeros((len(AssemblyPhase), len(MATRICES), len(keys)))
        self._c = np.zeros((len(AssemblyPhase), self.size))

        logger.debug(f"Reserved sparse system: {self.size} DOFs, {len(keys)} nonzeros")

    def first_assembly(self, model: "Model", time: float, y: np.ndarray, ydot: np.ndarray) -> None:
        """
        Assemble every phase once, checking each write against the entries
        its block declared.

        Raises
        ------
        ConfigurationError
            If a block writes an undeclared entry
        """
        self._strict = True
        try:
            self.assemble(model, AssemblyPhase.CONSTANT)
            self.assemble(model, AssemblyPhase.TIME, time=time)
            self.assemble(model, AssemblyPhase.SOLUTION, y=y, ydot=ydot)
        finally:
            self._strict = False

    def assemble(
        self,
        model: "Model",
        phase: AssemblyPhase,
        time: Optional[float] = None,
        y: Optional[np.ndarray] = None,
        ydot: Optional[np.ndarray] = None,
    ) -> None:
        """Zero the layer of ``phase`` and let every block contribute to it."""
        self._phase = phase
        self._data[phase].fill(0.0)
        self._c[phase].fill(0.0)
        if phase == AssemblyPhase.CONSTANT:
            model.update_constant(self)
        elif phase == AssemblyPhase.TIME:
            model.update_time(self, time)
        else:
            model.update_solution(self, y, ydot)

    def add(self, matrix: str, row: int, col: int, value: float) -> None:
        """Add ``value`` to entry (row, col) of ``matrix`` in the active layer."""
        key = (row, col)
        offset = self._offsets.get(key)
        if offset is None or (self._strict and key not in self._declared[matrix]):
            raise ConfigurationError(
                f"Undeclared {matrix} entry ({self._equation_names[row]}, {self._variable_names[col]})"
            )
        self._data[self._phase, _MATRIX_INDEX[matrix], offset] += value

    def add_C(self, row: int, value: float) -> None:
        """Add ``value`` to row ``row`` of the constant vector in the active layer."""
        self._c[self._phase, row] += value

    def _csr(self, data: np.ndarray) -> sp.csr_matrix:
        return sp.csr_matrix((data, self._indices, self._indptr), shape=(self.size, self.size))

    def matrix(self, name: str) -> sp.csr_matrix:
        """Assembled matrix ``name`` (sum over all phase layers)."""
        return self._csr(self._data[:, _MATRIX_INDEX[name], :].sum(axis=0))

    def constant_vector(self) -> np.ndarray:
        return self._c.sum(axis=0)

    def residual(self, y: np.ndarray, ydot: np.ndarray) -> np.ndarray:
        """Residual ``-(E ydot + F y + C)``; the E term is dropped in steady mode."""
        totals = self._data.sum(axis=0)
        residual = self._csr(totals[_MATRIX_INDEX["F"]]) @ y + self._c.sum(axis=0)
        if not self.steady:
            residual += self._csr(totals[_MATRIX_INDEX["E"]]) @ ydot
        return -residual

    def jacobian(self, e_coeff: float) -> sp.csr_matrix:
        """Jacobian ``F + dC/dy + (E + dC/dydot) * e_coeff`` on the fixed pattern."""
        totals = self._data.sum(axis=0)
        data = totals[_MATRIX_INDEX["F"]] + totals[_MATRIX_INDEX["dC_dy"]]
        if not self.steady:
            data = data + (totals[_MATRIX_INDEX["E"]] + totals[_MATRIX_INDEX["dC_dydot"]]) * e_coeff
        return self._csr(data)

    def factorize(self, e_coeff: float):
        """
        LU factorization of the Jacobian.

        Raises
        ------
        NumericalError
            If the Jacobian is singular or has non-finite entries
        """
        jacobian = self.jacobian(e_coeff)
        if not np.all(np.isfinite(jacobian.data)):
            raise NumericalError("Jacobian contains non-finite entries")
        try:
            return splu(jacobian.tocsc())
        except RuntimeError as exc:
            raise NumericalError(f"Singular Jacobian: {exc}") from exc

    def solve(self, residual: np.ndarray, e_coeff: float) -> np.ndarray:
        """
        Solve ``J dy = residual`` for one Newton update.

        Parameters
        ----------
        residual : np.ndarray
            Current residual
        e_coeff : float
            Weight of the ydot terms in the Jacobian

        Returns
        -------
        np.ndarray
            Newton update of the solution

        Raises
        ------
        NumericalError
            If the Jacobian is singular or the update is not finite
        """
        dy = self.factorize(e_coeff).solve(residual)
        if not np.all(np.isfinite(dy)):
            raise NumericalError("Linear solve produced a non-finite update")
        return dy


__all__ = ["SparseSystem", "AssemblyPhase", "MATRICES"]
