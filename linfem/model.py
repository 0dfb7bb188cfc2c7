# linfem/model.py
"""
MODEL DEFINITIONS: Node, Material and Element types
===================================================

PURPOSE:
--------
This module defines the entities a Solver owns in its containers:

- Node: a point in space (any number of coordinates)
- Material: physical parameters referenced by elements
- Element: an ordered list of nodes with a local stiffness relation

Every element carries a DOF TABLE that maps its local DOF indices to global
freedom numbers (GFN). The table is filled by the numbering engine in
kernel/dof.py and read by the assemblers in kernel/assemble.py.

Local DOF ordering is point-major:

    local index = point * dofs_per_point + component

so a 2-node element with 3 DOF/point has the layout
[ux_0, uy_0, rz_0, ux_1, uy_1, rz_1].

REFERENCE ELEMENTS:
-------------------
    Bar1D    2 points, 1 DOF/point  (axial spring, k = EA/L)
    Truss3D  2 points, 3 DOF/point  (axial bar in 3D)
    Frame2D  2 points, 3 DOF/point  (Euler-Bernoulli frame, ux, uy, rz)

Each element reads and writes its own fields for the persistence layer
(linfem/io.py) through read_fields() / write().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

import numpy as np

from .errors import ReadError


def _find_by_id(items, item_id: int, what: str):
    """Resolve a persisted id reference against a container."""
    for item in items:
        if item.id == item_id:
            return item
    raise ReadError(f"{what} with id {item_id} not found")


@dataclass(eq=True)
class Node:
    """
    A node (joint) in space.

    Parameters:
    -----------
    id : int
        Identifier used by elements and loads to reference this node

    coords : Tuple[float, ...]
        Coordinates in the global system; 1, 2 or 3 components

    Notes:
    ------
    `elements` is a transient set of element HANDLES (positions in the
    solver's element list) incident on this node. It is rebuilt on every
    numbering pass, never persisted and ignored by equality.
    """
    id: int = 0
    coords: Tuple[float, ...] = ()
    elements: Set[int] = field(default_factory=set, compare=False, repr=False)

    @property
    def x(self) -> float:
        return self.coords[0] if len(self.coords) > 0 else 0.0

    @property
    def y(self) -> float:
        return self.coords[1] if len(self.coords) > 1 else 0.0

    @property
    def z(self) -> float:
        return self.coords[2] if len(self.coords) > 2 else 0.0

    def read_fields(self, reader, info=None):
        self.id = reader.read_int()
        ndim = reader.read_int()
        self.coords = tuple(reader.read_float() for _ in range(ndim))

    def write(self, f):
        f.write(f"<{type(self).__name__}>\n")
        f.write(f"\t{self.id}\t% id\n")
        coords = " ".join(repr(float(c)) for c in self.coords)
        f.write(f"\t{len(self.coords)} {coords}\t% coordinates\n")


@dataclass
class Material:
    """
    Material and section properties for an element.

    E : float
        Young's modulus (Pa)
    A : float
        Cross-sectional area (m²)
    I : float
        Second moment of area (m⁴), frames only
    density : float
        Mass density (kg/m³)
    """
    id: int = 0
    E: float = 1.0
    A: float = 1.0
    I: float = 0.0
    density: float = 0.0

    def read_fields(self, reader, info=None):
        self.id = reader.read_int()
        self.E = reader.read_float()
        self.A = reader.read_float()
        self.I = reader.read_float()
        self.density = reader.read_float()

    def write(self, f):
        f.write(f"<{type(self).__name__}>\n")
        f.write(f"\t{self.id}\t% id\n")
        f.write(f"\t{self.E!r} {self.A!r} {self.I!r} {self.density!r}\t% E A I density\n")


@dataclass(eq=False)
class Element(ABC):
    """
    Base class for all elements.

    Subclasses set `dofs_per_point` and `n_points` and implement ke().
    Elements whose ke() reads section properties keep `needs_material`
    True; assembly rejects them when no Material is attached.
    The DOF table holds one entry per local DOF: the assigned GFN, or None
    while the element is not yet numbered.
    """
    id: int = 0
    nodes: List[Node] = field(default_factory=list)
    material: Optional[Material] = None
    dof_table: List[Optional[int]] = field(default_factory=list, init=False, repr=False)

    dofs_per_point = 1
    n_points = 2
    needs_material = True

    def __post_init__(self):
        self.clear_dofs()

    # ------------------------------------------------------------------
    # Points and DOF table
    # ------------------------------------------------------------------

    @property
    def n_dofs(self) -> int:
        return len(self.nodes) * self.dofs_per_point

    def get_point(self, pt: int) -> Node:
        return self.nodes[pt]

    def clear_dofs(self) -> None:
        self.dof_table = [None] * self.n_dofs

    def get_dof(self, local: int) -> Optional[int]:
        return self.dof_table[local]

    def set_dof(self, local: int, gfn: int) -> None:
        self.dof_table[local] = gfn

    def dof_at_point(self, pt: int, component: int) -> Optional[int]:
        return self.dof_table[pt * self.dofs_per_point + component]

    def point_of(self, node: Node) -> Optional[int]:
        """Index of `node` among this element's points, or None."""
        for pt, n in enumerate(self.nodes):
            if n is node:
                return pt
        return None

    # ------------------------------------------------------------------
    # Local matrices
    # ------------------------------------------------------------------

    def length(self) -> float:
        a = np.asarray(self.nodes[0].coords, dtype=float)
        b = np.asarray(self.nodes[-1].coords, dtype=float)
        L = float(np.linalg.norm(b - a))
        if L <= 0.0:
            raise ValueError(f"Element {self.id} has zero length.")
        return L

    @abstractmethod
    def ke(self) -> np.ndarray:
        """Local stiffness matrix, shape (n_dofs, n_dofs)."""

    def fe(self, load) -> np.ndarray:
        """
        Local force vector for an ElementLoad, one slice per load dimension.

        Returns an array of length n_dofs * len(load.force); slice d holds
        the uniform intensity load.force[d] lumped in equal parts onto every
        point: w * L / n_points on each local DOF.
        """
        force = np.asarray(load.force, dtype=float)
        Ne = self.n_dofs
        L = self.length()
        Fe = np.zeros(Ne * len(force), dtype=float)
        for d, w in enumerate(force):
            Fe[d*Ne:(d+1)*Ne] = w * L / len(self.nodes)
        return Fe

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def read_fields(self, reader, info):
        self.id = reader.read_int()
        self.nodes = [
            _find_by_id(info.nodes, reader.read_int(), "Node")
            for _ in range(self.n_points)
        ]
        mat_id = reader.read_int()
        self.material = None if mat_id < 0 else _find_by_id(info.materials, mat_id, "Material")
        self.clear_dofs()

    def write(self, f):
        f.write(f"<{type(self).__name__}>\n")
        f.write(f"\t{self.id}\t% id\n")
        f.write("\t" + " ".join(str(n.id) for n in self.nodes) + "\t% nodes\n")
        mat_id = -1 if self.material is None else self.material.id
        f.write(f"\t{mat_id}\t% material\n")


@dataclass(eq=False)
class Bar1D(Element):
    """
    Two-node axial spring on a line, 1 DOF per point.

    ke = (EA/L) * [[ 1, -1],
                   [-1,  1]]
    """
    dofs_per_point = 1

    def ke(self) -> np.ndarray:
        EA_L = self.material.E * self.material.A / self.length()
        return EA_L * np.array([[1.0, -1.0], [-1.0, 1.0]], dtype=float)


@dataclass(eq=False)
class Truss3D(Element):
    """
    A 3D truss element (axial-only bar) connecting two nodes.

    DOF order: [ux_i, uy_i, uz_i, ux_j, uy_j, uz_j]

    The matrix has the structure:

        ke = (EA/L) × [ B   -B ]
                      [-B    B ]

    where B is the 3×3 outer product of the direction cosines (l, m, n).
    """
    dofs_per_point = 3

    def direction_cosines(self) -> Tuple[float, float, float, float]:
        ni, nj = self.nodes
        dx = nj.x - ni.x
        dy = nj.y - ni.y
        dz = nj.z - ni.z
        L = float(np.sqrt(dx*dx + dy*dy + dz*dz))
        if L <= 0.0:
            raise ValueError(
                f"Element {self.id} has zero length (nodes {ni.id} and {nj.id} "
                f"at same location: ({ni.x}, {ni.y}, {ni.z}))"
            )
        return L, dx / L, dy / L, dz / L

    def ke(self) -> np.ndarray:
        L, l, m, n = self.direction_cosines()
        EA_L = self.material.E * self.material.A / L

        B = np.array([
            [l*l, l*m, l*n],
            [m*l, m*m, m*n],
            [n*l, n*m, n*n],
        ], dtype=float)

        ke = np.zeros((6, 6), dtype=float)
        ke[0:3, 0:3] = B
        ke[0:3, 3:6] = -B
        ke[3:6, 0:3] = -B
        ke[3:6, 3:6] = B
        return EA_L * ke

    def fe(self, load) -> np.ndarray:
        """
        Slice d carries a distributed load of intensity force[d] (N/m) along
        global axis d, half of the total w*L to each end.
        """
        force = np.asarray(load.force, dtype=float)
        L = self.length()
        Fe = np.zeros(6 * len(force), dtype=float)
        for d, w in enumerate(force):
            if d >= 3:
                continue
            Fe[d*6 + d] = w * L / 2.0
            Fe[d*6 + 3 + d] = w * L / 2.0
        return Fe


def frame2d_local_stiffness(E: float, A: float, I: float, L: float) -> np.ndarray:
    """
    Local stiffness matrix in element local coords (x along member).
    DOF order: [uix, uiy, rzi, ujx, ujy, rzj]
    """
    EA_L = E * A / L
    EI = E * I
    L2 = L * L
    L3 = L2 * L

    k = np.array([
        [ EA_L,      0.0,        0.0,    -EA_L,      0.0,        0.0],
        [  0.0,  12*EI/L3,   6*EI/L2,      0.0, -12*EI/L3,   6*EI/L2],
        [  0.0,   6*EI/L2,    4*EI/L,      0.0,  -6*EI/L2,    2*EI/L],
        [-EA_L,      0.0,        0.0,     EA_L,      0.0,        0.0],
        [  0.0, -12*EI/L3,  -6*EI/L2,      0.0,  12*EI/L3,  -6*EI/L2],
        [  0.0,   6*EI/L2,    2*EI/L,      0.0,  -6*EI/L2,    4*EI/L],
    ], dtype=float)
    return k


def frame2d_transform(c: float, s: float) -> np.ndarray:
    """
    6x6 transform from global DOFs to local DOFs.
    """
    T = np.array([
        [ c,  s, 0,  0, 0, 0],
        [-s,  c, 0,  0, 0, 0],
        [ 0,  0, 1,  0, 0, 0],
        [ 0,  0, 0,  c, s, 0],
        [ 0,  0, 0, -s, c, 0],
        [ 0,  0, 0,  0, 0, 1],
    ], dtype=float)
    return T


def frame2d_equiv_nodal_load_udl(L: float, w: float) -> np.ndarray:
    """
    Equivalent nodal loads of a uniform load w (N/m, local +y) in local coords.

    Each end takes wL/2 and the fixed-end moments are ±wL²/12.
    Format: [Fx_i, Fy_i, Mz_i, Fx_j, Fy_j, Mz_j]
    """
    force_per_node = w * L / 2.0
    moment_magnitude = w * L * L / 12.0
    return np.array([
        0.0,
        force_per_node,
        moment_magnitude,
        0.0,
        force_per_node,
        -moment_magnitude,
    ], dtype=float)


@dataclass(eq=False)
class Frame2D(Element):
    """
    2D frame element (Euler–Bernoulli): 2 nodes, 3 DOF per node: (ux, uy, rz)
    """
    dofs_per_point = 3

    def geometry(self):
        ni, nj = self.nodes
        dx = nj.x - ni.x
        dy = nj.y - ni.y
        L = float(np.hypot(dx, dy))
        if L <= 0.0:
            raise ValueError(f"Element {self.id} has zero length.")
        return L, dx / L, dy / L

    def ke(self) -> np.ndarray:
        L, c, s = self.geometry()
        mat = self.material
        k_local = frame2d_local_stiffness(mat.E, mat.A, mat.I, L)
        T = frame2d_transform(c, s)
        return T.T @ k_local @ T

    def fe(self, load) -> np.ndarray:
        """
        Slice d is a transverse uniform load of intensity force[d] in local +y,
        transformed to global coordinates.
        """
        force = np.asarray(load.force, dtype=float)
        L, c, s = self.geometry()
        T = frame2d_transform(c, s)
        Fe = np.zeros(6 * len(force), dtype=float)
        for d, w in enumerate(force):
            Fe[d*6:(d+1)*6] = T.T @ frame2d_equiv_nodal_load_udl(L, w)
        return Fe
