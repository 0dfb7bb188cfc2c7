# tests/test_dof.py
"""
Tests for global freedom numbering (kernel/dof.py).

The one rule that matters: two elements meeting at a node must see the
SAME global number for the same displacement component.
"""

import logging

from linfem.kernel.dof import NumberingState, generate_gfn, link_element, register_back_references
from linfem.model import Bar1D, Frame2D, Material, Node


def make_chain(n_elements: int):
    """Bars along x: node i at x=i, element i joins node i and node i+1."""
    mat = Material(0)
    nodes = [Node(i, (float(i),)) for i in range(n_elements + 1)]
    elements = [Bar1D(i, [nodes[i], nodes[i + 1]], mat) for i in range(n_elements)]
    return nodes, elements


def test_numbering_state_counts_up():
    state = NumberingState()
    assert [state.next() for _ in range(3)] == [0, 1, 2]
    assert state.count == 3


def test_single_bar_numbering():
    """Node 0 → DOF 0, node 1 → DOF 1."""
    nodes, elements = make_chain(1)
    ngfn = generate_gfn(nodes, elements)

    assert ngfn == 2
    assert elements[0].dof_table == [0, 1]


def test_chain_shares_interior_nodes():
    """
    Three bars in a row share nodes 1 and 2, so there are 4 unknowns, not 6.
    """
    nodes, elements = make_chain(3)
    ngfn = generate_gfn(nodes, elements)

    assert ngfn == 4
    assert elements[0].dof_table == [0, 1]
    assert elements[1].dof_table == [1, 2]
    assert elements[2].dof_table == [2, 3]


def test_shared_components_resolve_to_same_gfn():
    """
    Every pair of elements sharing a node agrees on every common component,
    including elements with different DOFs per point.
    """
    mat = Material(0, E=1.0, A=1.0, I=1.0)
    n0 = Node(0, (0.0, 0.0))
    n1 = Node(1, (1.0, 0.0))
    n2 = Node(2, (1.0, 1.0))
    n3 = Node(3, (2.0, 0.0))
    elements = [
        Frame2D(0, [n0, n1], mat),
        Frame2D(1, [n1, n2], mat),
        Bar1D(2, [n1, n3], mat),
    ]
    nodes = [n0, n1, n2, n3]

    ngfn = generate_gfn(nodes, elements)

    for a in elements:
        for b in elements:
            for node in nodes:
                pa, pb = a.point_of(node), b.point_of(node)
                if pa is None or pb is None:
                    continue
                for comp in range(min(a.dofs_per_point, b.dofs_per_point)):
                    assert a.dof_at_point(pa, comp) == b.dof_at_point(pb, comp)

    # 3 frame nodes × 3 DOFs + 1 extra bar node × 1 DOF
    assert ngfn == 10


def test_gfns_are_dense_range():
    nodes, elements = make_chain(5)
    ngfn = generate_gfn(nodes, elements)

    used = {gfn for e in elements for gfn in e.dof_table}
    assert used == set(range(ngfn))


def test_bar_shares_only_first_component_of_frame_node():
    """A 1-DOF bar attached to a frame node takes the frame's ux number."""
    mat = Material(0, E=1.0, A=1.0, I=1.0)
    n0, n1, n2 = Node(0, (0.0, 0.0)), Node(1, (1.0, 0.0)), Node(2, (2.0, 0.0))
    frame = Frame2D(0, [n0, n1], mat)
    bar = Bar1D(1, [n1, n2], mat)

    ngfn = generate_gfn([n0, n1, n2], [frame, bar])

    assert frame.dof_table == [0, 1, 2, 3, 4, 5]
    assert bar.dof_table == [3, 6]
    assert ngfn == 7


def test_back_references_are_handles():
    nodes, elements = make_chain(2)
    register_back_references(nodes, elements)

    assert nodes[0].elements == {0}
    assert nodes[1].elements == {0, 1}
    assert nodes[2].elements == {1}
    assert all(e.dof_table == [None, None] for e in elements)


def test_renumbering_is_recomputed_from_scratch():
    """Removing an element and renumbering gives a fresh dense range."""
    nodes, elements = make_chain(3)
    generate_gfn(nodes, elements)

    remaining = elements[1:]
    ngfn = generate_gfn(nodes, remaining)

    assert ngfn == 3
    assert remaining[0].dof_table == [0, 1]
    assert remaining[1].dof_table == [1, 2]
    # node 0 no longer references anything
    assert nodes[0].elements == set()


def test_link_element_with_explicit_state():
    """The engine runs from an explicit state, so passes do not interfere."""
    nodes, elements = make_chain(2)
    register_back_references(nodes, elements)

    state = NumberingState(count=10)
    link_element(1, elements, state)

    assert elements[1].dof_table == [10, 11]
    # propagated into element 0 through node 1
    assert elements[0].dof_table == [None, 10]
    assert state.count == 12


def test_empty_model_reports_empty_system(caplog):
    with caplog.at_level(logging.WARNING, logger="linfem"):
        ngfn = generate_gfn([Node(0, (0.0,))], [])

    assert ngfn == 0
    assert "empty" in caplog.text
