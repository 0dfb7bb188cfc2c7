# linfem/kernel/assemble.py
"""
ASSEMBLY: Global stiffness matrix and force vector
==================================================

PURPOSE:
--------
This module handles the assembly of element contributions into the global
linear system. It is the scatter-add operation that builds K and F from
element-level data, plus the Lagrange-multiplier augmentation for
multi-freedom constraints (MFC).

The key insight: assembly doesn't care about element TYPE.
It just needs, for each element, its DOF table (filled by kernel/dof.py)
and its local matrices ke() / fe(load).

SYSTEM LAYOUT:
--------------
With NGFN global DOFs and NMFC constraints the system has order
NGFN + NMFC:

    [ K    Cᵀ ] [ u ]   [ F ]
    [ C    0  ] [ λ ] = [ g ]

Row/column NGFN + m belongs to the constraint with index m. Each term
(element, dof, c) of constraint m puts c at (gfn, NGFN+m) and at
(NGFN+m, gfn). The multiplier block on the diagonal stays empty. The
augmented matrix is symmetric but indefinite.

ALGORITHM (stiffness):
----------------------
    for each element:
        check every GFN of the element is in [0, NGFN)
        for each (j, k) in ke:
            if ke[j, k] != 0:
                K[dof_j, dof_k] += ke[j, k]
    for each MFC m, for each term:
        K[gfn, NGFN+m] = K[NGFN+m, gfn] = c

Exact zeros are never written so a sparse backend keeps its sparsity.
Any out-of-range GFN raises AssemblyError and the pass is abandoned; the
backend is left partially written and must be rebuilt from scratch.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from ..errors import AssemblyError
from ..loads import ElementLoad, Load, LoadKind, NodalLoad
from ..model import Element
from .constraints import collect_mfcs
from .dof import element_dof_map
from .system import LinearSystem

logger = logging.getLogger(__name__)


def _check_gfn(gfn: Optional[int], ngfn: int, where: str) -> int:
    if gfn is None or gfn < 0 or gfn >= ngfn:
        raise AssemblyError(f"Illegal GFN {gfn} in {where} (NGFN={ngfn})")
    return gfn


def _term_dof(term) -> Optional[int]:
    if 0 <= term.dof < term.element.n_dofs:
        return term.element.get_dof(term.dof)
    return None


def _element_gfns(element: Element, ngfn: int) -> List[int]:
    """Validated DOF map of an element, checked before anything is written."""
    where = f"{type(element).__name__} {element.id}"
    return [_check_gfn(gfn, ngfn, where) for gfn in element_dof_map(element)]


def assemble_k(
    elements: Sequence[Element],
    loads: Sequence[Load],
    ngfn: int,
    system: LinearSystem,
) -> int:
    """
    Assemble the global stiffness matrix into `system`.

    Parameters:
    -----------
    elements : Sequence[Element]
        Numbered elements (generate_gfn must have run)
    loads : Sequence[Load]
        All loads; only MultiFreedomConstraints affect the matrix
    ngfn : int
        Number of global freedom numbers. If <= 0 nothing happens and the
        backend is not touched.
    system : LinearSystem
        Backend receiving the matrix

    Returns:
    --------
    int
        NMFC, the number of constraints (0 when ngfn <= 0)

    Raises:
    -------
    AssemblyError
        If an element or constraint term maps to a GFN outside [0, NGFN),
        or an element that needs a material has none
    """
    if ngfn <= 0:
        return 0

    mfcs = collect_mfcs(loads)
    nmfc = len(mfcs)

    # Each constraint adds one Lagrange multiplier unknown
    system.set_system_order(ngfn + nmfc)
    system.initialize_matrix()

    for element in elements:
        dof_map = _element_gfns(element, ngfn)
        if element.needs_material and element.material is None:
            raise AssemblyError(f"{type(element).__name__} {element.id} has no material")
        ke = np.asarray(element.ke(), dtype=float)
        Ne = element.n_dofs

        assert ke.shape == (Ne, Ne), \
            f"Element ke shape {ke.shape} doesn't match DOF count {Ne}"

        for j in range(Ne):
            for k in range(Ne):
                if ke[j, k] != 0.0:
                    system.add_matrix_value(dof_map[j], dof_map[k], float(ke[j, k]))

    for mfc in mfcs:
        row = ngfn + mfc.index
        where = f"MultiFreedomConstraint {mfc.id}"
        gfns = [_check_gfn(_term_dof(t), ngfn, where) for t in mfc.terms]
        for gfn, term in zip(gfns, mfc.terms):
            system.set_matrix_value(gfn, row, float(term.value))
            system.set_matrix_value(row, gfn, float(term.value))

    logger.info("Assembled K: %d DOFs + %d constraints (order %d)", ngfn, nmfc, ngfn + nmfc)
    return nmfc


def _apply_nodal_load(load: NodalLoad, ngfn: int, system: LinearSystem, dim: int) -> None:
    element = load.element
    dpp = element.dofs_per_point
    where = f"NodalLoad {load.id}"

    # Size of the force vector must be a multiple of the DOFs per point
    if len(load.force) % dpp != 0:
        raise AssemblyError(
            f"Illegal size of force vector in {where}: {len(load.force)} is not a multiple of {dpp}"
        )
    if dpp * (dim + 1) > len(load.force):
        raise AssemblyError(f"{where} has no force data for dimension {dim}")
    if not 0 <= load.point < len(element.nodes):
        raise AssemblyError(f"{where} targets point {load.point} of a {len(element.nodes)}-point element")

    gfns = [_check_gfn(element.dof_at_point(load.point, dof), ngfn, where) for dof in range(dpp)]
    for dof, gfn in enumerate(gfns):
        system.add_vector_value(gfn, float(load.force[dof + dpp * dim]))


def _apply_element_load(
    load: ElementLoad,
    elements: Sequence[Element],
    ngfn: int,
    system: LinearSystem,
    dim: int,
) -> None:
    # Empty target list means the load acts on every element
    targets = load.elements if load.elements else elements

    for element in targets:
        dof_map = _element_gfns(element, ngfn)
        Fe = np.asarray(element.fe(load), dtype=float)
        Ne = element.n_dofs
        if Fe.shape[0] < Ne * (dim + 1):
            raise AssemblyError(
                f"ElementLoad {load.id} gives no force data for dimension {dim} "
                f"on {type(element).__name__} {element.id}"
            )
        for j in range(Ne):
            system.add_vector_value(dof_map[j], float(Fe[j + dim * Ne]))


def assemble_f(
    elements: Sequence[Element],
    loads: Sequence[Load],
    ngfn: int,
    system: LinearSystem,
    dim: int = 0,
) -> None:
    """
    Assemble the global force vector for dimension `dim` into `system`.

    Each load is first handed the backend (Load.set_solution) and then
    dispatched on its kind:

    - NodalLoad:   F[gfn(point, dof)] += force[dof + dofs_per_point*dim]
    - ElementLoad: F[gfn(j)] += fe[j + dim*Ne] for each target element
    - MFC:         F[NGFN + index] = rhs[dim]   (overwrite, not add)
    - anything else is skipped

    Parameters:
    -----------
    dim : int
        Which slice of each load's multi-dimensional data to apply. Call once
        per spatial axis to build one right-hand side per axis.

    Raises:
    -------
    AssemblyError
        Out-of-range GFN, negative `dim`, or load data with the wrong size
        for `dim`
    """
    if ngfn <= 0:
        return
    if dim < 0:
        raise AssemblyError(f"Illegal dimension {dim}, must be >= 0")

    # Same deterministic ordinals as assemble_k
    nmfc = len(collect_mfcs(loads))
    if system.order != ngfn + nmfc:
        system.set_system_order(ngfn + nmfc)
    system.initialize_vector()

    for load in loads:
        load.set_solution(system)

        if load.kind is LoadKind.NODAL:
            _apply_nodal_load(load, ngfn, system, dim)
        elif load.kind is LoadKind.ELEMENT:
            _apply_element_load(load, elements, ngfn, system, dim)
        elif load.kind is LoadKind.MFC:
            if dim >= len(load.rhs):
                raise AssemblyError(f"MultiFreedomConstraint {load.id} has no rhs for dimension {dim}")
            system.set_vector_value(ngfn + load.index, float(load.rhs[dim]))
        else:
            logger.debug("Skipping unsupported load %s", type(load).__name__)

    logger.debug("Assembled F for dimension %d", dim)
