# linfem/solver.py
"""
SOLVER: owns the model and runs one linear assemble/solve cycle
===============================================================

    solver = Solver()
    solver.read(open("model.fem"))
    u = solver.run(n_dims=1)       # shape (NGFN + NMFC, n_dims)

run() is a shortcut for the individual steps, which can also be called
one by one:

    generate_gfn()          number the DOFs
    assemble_k()            global stiffness + constraint rows/columns
    decompose_k()           extension point (decomposer hook)
    assemble_f(dim)         right-hand side for one dimension
    solve()                 backend solve
    update_displacements()  extension point (recovery hook)

The two extension points have no built-in algorithm. Pass callables to
the constructor to plug one in; without one the step does nothing.
"""

import logging
from typing import Callable, List, Optional

import numpy as np

from .config import CONFIG, SolverConfig
from .io import read_model, write_model
from .kernel.assemble import assemble_f, assemble_k
from .kernel.dof import generate_gfn
from .kernel.system import LinearSystem, make_system
from .loads import Load
from .model import Element, Material, Node

logger = logging.getLogger(__name__)


class Solver:
    """
    Finite-element solver owning Node, Material, Element and Load containers.

    Parameters:
    -----------
    system : LinearSystem, optional
        Backend to assemble into; built from `config.backend` if omitted
    config : SolverConfig, optional
        Defaults to the module-level CONFIG
    decomposer : Callable[[LinearSystem], None], optional
        Called by decompose_k() after the stiffness matrix is assembled
    recovery : Callable[[Solver], None], optional
        Called by update_displacements() after each solve
    """

    def __init__(
        self,
        system: Optional[LinearSystem] = None,
        config: Optional[SolverConfig] = None,
        decomposer: Optional[Callable[[LinearSystem], None]] = None,
        recovery: Optional[Callable[["Solver"], None]] = None,
    ):
        self.config = config if config is not None else CONFIG
        if system is None:
            kwargs = {"cond_limit": self.config.cond_limit} if self.config.backend == "dense" else {}
            system = make_system(self.config.backend, **kwargs)
        self.system = system
        self.decomposer = decomposer
        self.recovery = recovery

        self.nodes: List[Node] = []
        self.materials: List[Material] = []
        self.elements: List[Element] = []
        self.loads: List[Load] = []

        self.ngfn = 0
        self.nmfc = 0

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def read(self, stream) -> None:
        """Clear the containers and read a whole model from `stream`."""
        read_model(stream, self)

    def write(self, stream) -> None:
        write_model(stream, self)

    # ------------------------------------------------------------------
    # Assemble / solve steps
    # ------------------------------------------------------------------

    def generate_gfn(self) -> int:
        self.ngfn = generate_gfn(self.nodes, self.elements)
        self.nmfc = 0
        return self.ngfn

    def assemble_k(self) -> None:
        self.nmfc = assemble_k(self.elements, self.loads, self.ngfn, self.system)

    def assemble_f(self, dim: int = 0) -> None:
        assemble_f(self.elements, self.loads, self.ngfn, self.system, dim)

    def decompose_k(self) -> None:
        if self.decomposer is not None:
            self.decomposer(self.system)

    def solve(self) -> None:
        self.system.initialize_solution()
        self.system.solve()

    def update_displacements(self) -> None:
        if self.recovery is not None:
            self.recovery(self)

    def solution(self, i: int) -> float:
        """Component i of the last solution (DOFs first, then multipliers)."""
        return self.system.get_solution_value(i)

    def run(self, n_dims: int = 1) -> np.ndarray:
        """
        Number, assemble and solve the model once per dimension.

        Returns:
        --------
        np.ndarray
            Shape (NGFN + NMFC, n_dims); column d is the solution for the
            right-hand side of dimension d. Empty if the model has no DOFs.
        """
        if self.generate_gfn() <= 0:
            return np.zeros((0, n_dims), dtype=float)

        self.assemble_k()
        self.decompose_k()

        order = self.ngfn + self.nmfc
        U = np.zeros((order, n_dims), dtype=float)
        for dim in range(n_dims):
            self.assemble_f(dim)
            self.solve()
            U[:, dim] = [self.solution(i) for i in range(order)]
            self.update_displacements()

        logger.info("Solved system of order %d for %d dimension(s)", order, n_dims)
        return U
