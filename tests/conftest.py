# tests/conftest.py
"""Shared fixtures: a call-recording backend and the two-node bar model."""

import pytest

from linfem.kernel.system import DenseLinearSystem
from linfem.loads import MFCTerm, MultiFreedomConstraint, NodalLoad
from linfem.model import Bar1D, Material, Node
from linfem.solver import Solver


class RecordingSystem(DenseLinearSystem):
    """Dense backend that remembers every call made to it."""

    def __init__(self):
        super().__init__(cond_limit=1e15)
        self.calls = []

    def names(self):
        return [name for name, _ in self.calls]

    def set_system_order(self, n):
        self.calls.append(("set_system_order", (n,)))
        super().set_system_order(n)

    def initialize_matrix(self):
        self.calls.append(("initialize_matrix", ()))
        super().initialize_matrix()

    def add_matrix_value(self, i, j, value):
        self.calls.append(("add_matrix_value", (i, j, value)))
        super().add_matrix_value(i, j, value)

    def set_matrix_value(self, i, j, value):
        self.calls.append(("set_matrix_value", (i, j, value)))
        super().set_matrix_value(i, j, value)

    def initialize_vector(self):
        self.calls.append(("initialize_vector", ()))
        super().initialize_vector()

    def add_vector_value(self, i, value):
        self.calls.append(("add_vector_value", (i, value)))
        super().add_vector_value(i, value)

    def set_vector_value(self, i, value):
        self.calls.append(("set_vector_value", (i, value)))
        super().set_vector_value(i, value)

    def initialize_solution(self):
        self.calls.append(("initialize_solution", ()))
        super().initialize_solution()

    def solve(self):
        self.calls.append(("solve", ()))
        super().solve()


@pytest.fixture
def recording_system():
    return RecordingSystem()


@pytest.fixture
def bar_solver(recording_system):
    """
    One 2-node bar, 1 DOF per node, local stiffness [[1, -1], [-1, 1]].

    Node 0 at x=0, node 1 at x=1, E = A = 1 so EA/L = 1.
    """
    solver = Solver(system=recording_system)
    n0 = Node(0, (0.0,))
    n1 = Node(1, (1.0,))
    mat = Material(0, E=1.0, A=1.0)
    bar = Bar1D(0, [n0, n1], mat)
    solver.nodes.extend([n0, n1])
    solver.materials.append(mat)
    solver.elements.append(bar)
    return solver


@pytest.fixture
def fixed_bar_solver(bar_solver):
    """The bar with node 0 held at zero by an MFC and 5 N pulling node 1."""
    bar = bar_solver.elements[0]
    bar_solver.loads.append(NodalLoad(id=0, element=bar, point=1, force=[5.0]))
    bar_solver.loads.append(
        MultiFreedomConstraint(id=1, terms=[MFCTerm(bar, 0, 1.0)], rhs=[0.0])
    )
    return bar_solver
