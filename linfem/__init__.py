# linfem - Linear finite-element assembly and solve core
"""
LINFEM: Linear Finite-Element Assembly and Solve
================================================

This package provides:
- Global DOF numbering shared across elements
- Stiffness and force assembly with Lagrange-multiplier constraints
- Dense and sparse linear-system backends
- A tagged text format to read and write models

ARCHITECTURE:
-------------
    kernel/         Element-agnostic core (numbering, assembly, backends)
    model.py        Node, Material, Element and reference elements
    loads.py        Nodal loads, element loads, multi-freedom constraints
    io.py           Model stream reader/writer and class registry
    solver.py       Solver: owns the model, orchestrates a solve
    errors.py       ReadError, AssemblyError, MechanismError
    config.py       SolverConfig defaults
"""

from .errors import FEMError, ReadError, AssemblyError, MechanismError
from .model import Node, Material, Element, Bar1D, Truss3D, Frame2D
from .loads import LoadKind, Load, NodalLoad, ElementLoad, MFCTerm, MultiFreedomConstraint
from .kernel import DenseLinearSystem, SparseLinearSystem, LinearSystem
from .solver import Solver

__version__ = "0.1.0"
