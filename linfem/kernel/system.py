# linfem/kernel/system.py
"""
LINEAR SYSTEM: Backend storage for K·u = F
==========================================

PURPOSE:
--------
The assemblers never touch a matrix directly. They talk to a LinearSystem,
which owns the global matrix, the right-hand-side vector and the solution
buffer, and knows how to solve them.

The interface is deliberately small:

    set_system_order(n)                 size everything to n
    initialize_matrix()                 K = 0
    add_matrix_value(i, j, v)           K[i, j] += v
    set_matrix_value(i, j, v)           K[i, j]  = v
    initialize_vector()                 F = 0
    add_vector_value(i, v)              F[i] += v
    set_vector_value(i, v)              F[i]  = v
    initialize_solution()               u = 0
    solve()                             u = K⁻¹ F
    get_solution_value(i)               u[i]

BACKENDS:
---------
    DenseLinearSystem   numpy arrays, condition-number check before solving
    SparseLinearSystem  scipy.sparse DOK storage, spsolve

Use make_system() to build the backend named in SolverConfig.backend.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from scipy.sparse import dok_matrix
from scipy.sparse.linalg import spsolve

from ..config import CONFIG
from ..errors import MechanismError

logger = logging.getLogger(__name__)


class LinearSystem(ABC):
    """Abstract sparse matrix/vector store with a solve step."""

    def __init__(self):
        self._order = 0

    @property
    def order(self) -> int:
        return self._order

    def set_system_order(self, n: int) -> None:
        self._order = int(n)

    @abstractmethod
    def initialize_matrix(self) -> None: ...

    @abstractmethod
    def add_matrix_value(self, i: int, j: int, value: float) -> None: ...

    @abstractmethod
    def set_matrix_value(self, i: int, j: int, value: float) -> None: ...

    @abstractmethod
    def get_matrix_value(self, i: int, j: int) -> float: ...

    @abstractmethod
    def initialize_vector(self) -> None: ...

    @abstractmethod
    def add_vector_value(self, i: int, value: float) -> None: ...

    @abstractmethod
    def set_vector_value(self, i: int, value: float) -> None: ...

    @abstractmethod
    def get_vector_value(self, i: int) -> float: ...

    @abstractmethod
    def initialize_solution(self) -> None: ...

    @abstractmethod
    def solve(self) -> None: ...

    @abstractmethod
    def get_solution_value(self, i: int) -> float: ...

    def matrix(self) -> np.ndarray:
        """Dense copy of the global matrix (for inspection and tests)."""
        n = self.order
        K = np.zeros((n, n), dtype=float)
        for i in range(n):
            for j in range(n):
                K[i, j] = self.get_matrix_value(i, j)
        return K

    def vector(self) -> np.ndarray:
        """Dense copy of the right-hand side."""
        return np.array([self.get_vector_value(i) for i in range(self.order)], dtype=float)

    def solution(self) -> np.ndarray:
        """Dense copy of the solution buffer."""
        return np.array([self.get_solution_value(i) for i in range(self.order)], dtype=float)


class DenseLinearSystem(LinearSystem):
    """
    Dense numpy backend.

    solve() refuses systems whose condition number exceeds `cond_limit`.
    Lagrange-augmented systems are indefinite but regular when every
    constraint is independent.
    """

    def __init__(self, cond_limit: Optional[float] = None):
        super().__init__()
        self.cond_limit = CONFIG.cond_limit if cond_limit is None else cond_limit
        self.K = np.zeros((0, 0), dtype=float)
        self.F = np.zeros(0, dtype=float)
        self.u = np.zeros(0, dtype=float)

    def initialize_matrix(self):
        self.K = np.zeros((self.order, self.order), dtype=float)

    def add_matrix_value(self, i, j, value):
        self.K[i, j] += value

    def set_matrix_value(self, i, j, value):
        self.K[i, j] = value

    def get_matrix_value(self, i, j):
        return float(self.K[i, j])

    def matrix(self):
        return self.K.copy()

    def initialize_vector(self):
        self.F = np.zeros(self.order, dtype=float)

    def add_vector_value(self, i, value):
        self.F[i] += value

    def set_vector_value(self, i, value):
        self.F[i] = value

    def get_vector_value(self, i):
        return float(self.F[i])

    def initialize_solution(self):
        self.u = np.zeros(self.order, dtype=float)

    def solve(self):
        cond = np.linalg.cond(self.K)
        if not np.isfinite(cond) or cond > self.cond_limit:
            raise MechanismError(
                f"Unstable system (cond={cond:.2e}). Check constraints. Need cond < {self.cond_limit:.0e}."
            )
        self.u = np.linalg.solve(self.K, self.F)
        logger.debug("Dense solve of order %d done (cond=%.2e)", self.order, cond)

    def get_solution_value(self, i):
        return float(self.u[i])


class SparseLinearSystem(LinearSystem):
    """
    Sparse backend on scipy.sparse.

    Entries are stored in a DOK matrix so only explicitly written positions
    are materialised; `nnz` reports how many.
    """

    def __init__(self):
        super().__init__()
        self.K = None
        self.F = np.zeros(0, dtype=float)
        self.u = np.zeros(0, dtype=float)

    @property
    def nnz(self) -> int:
        return 0 if self.K is None else self.K.nnz

    def initialize_matrix(self):
        self.K = dok_matrix((self.order, self.order), dtype=float)

    def add_matrix_value(self, i, j, value):
        self.K[i, j] = self.K.get((i, j), 0.0) + value

    def set_matrix_value(self, i, j, value):
        self.K[i, j] = value

    def get_matrix_value(self, i, j):
        return float(self.K.get((i, j), 0.0))

    def matrix(self):
        if self.K is None:
            return np.zeros((self.order, self.order), dtype=float)
        return self.K.toarray()

    def initialize_vector(self):
        self.F = np.zeros(self.order, dtype=float)

    def add_vector_value(self, i, value):
        self.F[i] += value

    def set_vector_value(self, i, value):
        self.F[i] = value

    def get_vector_value(self, i):
        return float(self.F[i])

    def initialize_solution(self):
        self.u = np.zeros(self.order, dtype=float)

    def solve(self):
        u = np.atleast_1d(spsolve(self.K.tocsc(), self.F))
        if not np.all(np.isfinite(u)):
            raise MechanismError("Singular system: spsolve returned non-finite values. Check constraints.")
        self.u = u
        logger.debug("Sparse solve of order %d done (nnz=%d)", self.order, self.nnz)

    def get_solution_value(self, i):
        return float(self.u[i])


def make_system(kind: Optional[str] = None, **kwargs) -> LinearSystem:
    """Build the backend named `kind` ('dense' or 'sparse'); defaults to CONFIG.backend."""
    kind = CONFIG.backend if kind is None else kind
    if kind == "dense":
        return DenseLinearSystem(**kwargs)
    if kind == "sparse":
        return SparseLinearSystem(**kwargs)
    raise ValueError(f"Unknown backend '{kind}', expected 'dense' or 'sparse'")
