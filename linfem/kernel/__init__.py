# linfem/kernel - numbering, assembly and linear-system backends
"""
KERNEL: THE ELEMENT-AGNOSTIC FOUNDATION
=======================================

Everything here works for ANY element type. The kernel only needs:
- each element's points, DOFs per point and local matrices
- the load list (nodal loads, element loads, constraints)
- a LinearSystem backend to write into

    dof.py          global freedom numbering shared across elements
    constraints.py  multi-freedom constraint collection
    assemble.py     stiffness and force assembly (Lagrange multipliers)
    system.py       LinearSystem interface, dense and sparse backends
"""

from .dof import NumberingState, generate_gfn, link_element
from .constraints import collect_mfcs
from .assemble import assemble_k, assemble_f
from .system import LinearSystem, DenseLinearSystem, SparseLinearSystem, make_system

__all__ = [
    'NumberingState', 'generate_gfn', 'link_element',
    'collect_mfcs',
    'assemble_k', 'assemble_f',
    'LinearSystem', 'DenseLinearSystem', 'SparseLinearSystem', 'make_system',
]
