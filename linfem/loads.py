# linfem/loads.py
"""
LOADS: nodal forces, element loads and multi-freedom constraints
================================================================

The Load family is a CLOSED set of variants, each tagged by `kind`:

    LoadKind.NODAL    NodalLoad               force at one element point
    LoadKind.ELEMENT  ElementLoad             distributed load on elements
    LoadKind.MFC      MultiFreedomConstraint  linear equality among DOFs

The force assembler dispatches on `kind` (see kernel/assemble.py). Loads hold
non-owning references to elements in the solver's containers.

Multi-dimensional data:
    A load stores one slice per dimension so that a separate right-hand side
    can be assembled per spatial axis. For a NodalLoad the flat `force`
    vector has length dofs_per_point * n_dims and slice d starts at
    dofs_per_point * d. For an MFC `rhs[d]` is the prescribed value.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from .model import Element, _find_by_id


class LoadKind(Enum):
    NODAL = "nodal"
    ELEMENT = "element"
    MFC = "mfc"


@dataclass(eq=False)
class Load:
    """Base class for all loads."""
    id: int = 0
    solution: Any = field(default=None, init=False, repr=False)

    kind = None

    def set_solution(self, system) -> None:
        """Give the load access to the linear system being assembled."""
        self.solution = system

    def _write_header(self, f):
        f.write(f"<{type(self).__name__}>\n")
        f.write(f"\t{self.id}\t% id\n")


@dataclass(eq=False)
class NodalLoad(Load):
    """
    A force applied at one point of an element.

    Parameters:
    -----------
    element : Element
        Element whose DOF table resolves the point's global DOFs
    point : int
        Point index within the element
    force : List[float]
        Flat per-dimension force vector, length dofs_per_point * n_dims
    """
    element: Optional[Element] = None
    point: int = 0
    force: List[float] = field(default_factory=list)

    kind = LoadKind.NODAL

    def read_fields(self, reader, info):
        self.id = reader.read_int()
        self.element = _find_by_id(info.elements, reader.read_int(), "Element")
        self.point = reader.read_int()
        n = reader.read_int()
        self.force = [reader.read_float() for _ in range(n)]

    def write(self, f):
        self._write_header(f)
        f.write(f"\t{self.element.id} {self.point}\t% element point\n")
        values = " ".join(repr(float(v)) for v in self.force)
        f.write(f"\t{len(self.force)} {values}\t% force\n")


@dataclass(eq=False)
class ElementLoad(Load):
    """
    A uniform load applied to elements.

    An empty `elements` list means the load acts on EVERY element of the
    model. `force[d]` is the load intensity for dimension d; each element
    type decides how to turn it into a local force vector (Element.fe).
    """
    elements: List[Element] = field(default_factory=list)
    force: List[float] = field(default_factory=list)

    kind = LoadKind.ELEMENT

    def read_fields(self, reader, info):
        self.id = reader.read_int()
        n_el = reader.read_int()
        self.elements = [
            _find_by_id(info.elements, reader.read_int(), "Element")
            for _ in range(n_el)
        ]
        n = reader.read_int()
        self.force = [reader.read_float() for _ in range(n)]

    def write(self, f):
        self._write_header(f)
        ids = " ".join([str(len(self.elements))] + [str(e.id) for e in self.elements])
        f.write(f"\t{ids}\t% elements\n")
        values = " ".join(repr(float(v)) for v in self.force)
        f.write(f"\t{len(self.force)} {values}\t% force\n")


@dataclass
class MFCTerm:
    """One term of a constraint: coefficient `value` times local DOF `dof` of `element`."""
    element: Element
    dof: int
    value: float


@dataclass(eq=False)
class MultiFreedomConstraint(Load):
    """
    Linear equality constraint  Σ value_i · u[dof_i] = rhs[d]

    Enforced with one Lagrange multiplier per constraint. `index` is the
    constraint's ordinal among all MFCs in the load list; it is assigned by
    kernel.constraints.collect_mfcs() and only valid during one assembly pass.
    """
    terms: List[MFCTerm] = field(default_factory=list)
    rhs: List[float] = field(default_factory=list)
    index: Optional[int] = field(default=None, init=False)

    kind = LoadKind.MFC

    def read_fields(self, reader, info):
        self.id = reader.read_int()
        n_terms = reader.read_int()
        self.terms = []
        for _ in range(n_terms):
            element = _find_by_id(info.elements, reader.read_int(), "Element")
            dof = reader.read_int()
            value = reader.read_float()
            self.terms.append(MFCTerm(element, dof, value))
        n = reader.read_int()
        self.rhs = [reader.read_float() for _ in range(n)]

    def write(self, f):
        self._write_header(f)
        f.write(f"\t{len(self.terms)}\t% number of terms\n")
        for t in self.terms:
            f.write(f"\t{t.element.id} {t.dof} {float(t.value)!r}\t% element dof value\n")
        values = " ".join(repr(float(v)) for v in self.rhs)
        f.write(f"\t{len(self.rhs)} {values}\t% rhs\n")
