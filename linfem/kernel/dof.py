# linfem/kernel/dof.py
"""
DOF NUMBERING: Global Freedom Numbers shared across elements
============================================================

PURPOSE:
--------
Every independent displacement unknown gets one global freedom number
(GFN) in the dense range [0, NGFN). Elements that meet at a node must use
the SAME number for the same displacement component, otherwise adjacent
elements would each carry their own copy of the unknown and never interact.

    Element A: (node 5, component 1) → GFN 11
    Element B: (node 5, component 1) → GFN 11   ← shared, not duplicated

ALGORITHM:
----------
1. clear each node's back-reference set
2. clear each element's DOF table and register the element's HANDLE
   (its position in the element list) in the node sets of its points
3. start a fresh NumberingState (next free GFN = 0)
4. for each element, for each empty local DOF slot:
       reuse the GFN of any incident element that already numbers the
       same node/component, otherwise take state.next();
       then write that GFN into every other incident element that has
       this component
5. NGFN = state.count

Back-references are integer handles, never element objects, and are
stale outside a numbering pass. Nothing here is incremental: every call
recomputes everything.

USAGE:
------
    ngfn = generate_gfn(nodes, elements)
    elements[0].get_dof(3)     # → GFN of local DOF 3 of element 0
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..model import Element, Node

logger = logging.getLogger(__name__)


@dataclass
class NumberingState:
    """
    Explicit numbering counter threaded through one numbering pass.

    Examples:
    ---------
    >>> state = NumberingState()
    >>> state.next(), state.next()
    (0, 1)
    >>> state.count
    2
    """
    count: int = 0

    def next(self) -> int:
        gfn = self.count
        self.count += 1
        return gfn


def register_back_references(nodes: Sequence[Node], elements: Sequence[Element]) -> None:
    """Steps 1-2: rebuild node → element-handle sets and clear DOF tables."""
    for node in nodes:
        node.elements.clear()
    # Nodes reached only through elements may hold handles from an older pass
    for element in elements:
        for node in element.nodes:
            node.elements.clear()

    for handle, element in enumerate(elements):
        element.clear_dofs()
        for pt in range(len(element.nodes)):
            element.get_point(pt).elements.add(handle)


def _shared_dof(node: Node, component: int, elements: Sequence[Element], skip: int) -> Optional[int]:
    """GFN already given to (node, component) by another incident element, if any."""
    for handle in sorted(node.elements):
        if handle == skip:
            continue
        other = elements[handle]
        if component >= other.dofs_per_point:
            continue
        pt = other.point_of(node)
        if pt is None:
            continue
        gfn = other.dof_at_point(pt, component)
        if gfn is not None:
            return gfn
    return None


def link_element(handle: int, elements: Sequence[Element], state: NumberingState) -> None:
    """
    Step 4 for one element: number its empty DOF slots and propagate the
    numbers to the other elements incident on the same nodes.

    Expects register_back_references() to have run on the same containers.
    """
    element = elements[handle]
    dpp = element.dofs_per_point

    for pt, node in enumerate(element.nodes):
        for component in range(dpp):
            local = pt * dpp + component
            if element.get_dof(local) is not None:
                continue

            gfn = _shared_dof(node, component, elements, skip=handle)
            if gfn is None:
                gfn = state.next()
            element.set_dof(local, gfn)

            # Propagate to every other element sharing this node/component
            for other_handle in node.elements:
                if other_handle == handle:
                    continue
                other = elements[other_handle]
                if component >= other.dofs_per_point:
                    continue
                other_pt = other.point_of(node)
                if other_pt is None:
                    continue
                other_local = other_pt * other.dofs_per_point + component
                if other.get_dof(other_local) is None:
                    other.set_dof(other_local, gfn)


def generate_gfn(nodes: Sequence[Node], elements: Sequence[Element]) -> int:
    """
    Assign global freedom numbers to all element DOFs.

    Parameters:
    -----------
    nodes : Sequence[Node]
        All nodes of the model
    elements : Sequence[Element]
        All elements of the model; handles are positions in this sequence

    Returns:
    --------
    int
        NGFN, the number of global freedom numbers. 0 means the system is
        empty and there is nothing to assemble.
    """
    register_back_references(nodes, elements)

    state = NumberingState()
    for handle in range(len(elements)):
        link_element(handle, elements, state)

    ngfn = state.count
    if ngfn <= 0:
        logger.warning("System is empty: no degrees of freedom were defined.")
        return 0

    logger.info("Numbered %d global DOFs over %d elements", ngfn, len(elements))
    return ngfn


def element_dof_map(element: Element) -> List[Optional[int]]:
    """
    Get the DOF map of an element: local index → GFN.

    This returns the indices needed to scatter/gather element
    matrices into/from the global matrices.
    """
    return list(element.dof_table)
