# linfem/io.py
"""
PERSISTENCE: tagged text stream for models
==========================================

A model file is a sequence of object records:

    <Node>
        0           % id
        1 0.0       % coordinates
    <Node>
        1
        1 1.0
    <END>           % End of nodes

    <Material>
        0
        1.0 1.0 0.0 0.0
    <END>

    <Bar1D>
        0
        0 1         % nodes
        0           % material
    <END>

    <NodalLoad>
        0
        0 1         % element point
        1 5.0       % force
    <END>

Whitespace and '%' comments (up to end of line) are skipped. A record starts
with '<', a class name and '>'. `END` is a section marker and carries no
object. Class names are looked up in REGISTRY; each class then decodes its
own fields (read_fields) from the same stream.

CONTEXT:
--------
Elements resolve node and material ids, loads resolve node and element ids,
so read_fields() receives a ReadInfo with the containers read so far:

    Element classes  ReadInfo(nodes=..., materials=...)
    Load classes     ReadInfo(nodes=..., elements=...)
    others           None

FAILURES:
---------
read_any_object() never raises. It returns a ReadResult holding either
the decoded object or a ReadError. On failure it has a side effect: the
stream is rewound to where it was before the attempt, so the offending
record can be inspected again. read_model() turns a failed result into a
raised ReadError and the partially read model must be discarded.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from .errors import ReadError
from .loads import ElementLoad, Load, MultiFreedomConstraint, NodalLoad
from .model import Bar1D, Element, Frame2D, Material, Node, Truss3D

logger = logging.getLogger(__name__)

COMMENT = "%"


# =============================================================================
# Class registry
# =============================================================================

REGISTRY: Dict[str, Callable[[], Any]] = {}


def register_class(name: str, factory: Callable[[], Any]) -> None:
    """Make `name` readable from a stream; `factory()` builds an empty object."""
    REGISTRY[name] = factory


def create_object(name: str) -> Optional[Any]:
    """Build an empty object for a class name, or None if it is unknown."""
    factory = REGISTRY.get(name)
    if factory is None:
        return None
    return factory()


for _cls in (Node, Material, Bar1D, Truss3D, Frame2D,
             NodalLoad, ElementLoad, MultiFreedomConstraint):
    register_class(_cls.__name__, _cls)


# =============================================================================
# Token reader
# =============================================================================

class TokenReader:
    """
    Whitespace-separated token reader over a seekable text stream.

    Reads character by character so that the stream position always sits
    right after the last consumed token.
    """

    def __init__(self, stream):
        self.stream = stream

    def tell(self):
        return self.stream.tell()

    def seek(self, pos) -> None:
        self.stream.seek(pos)

    def _peek(self) -> str:
        pos = self.stream.tell()
        ch = self.stream.read(1)
        self.stream.seek(pos)
        return ch

    def skip_whitespace(self) -> None:
        """Skip blanks and '%' comments."""
        while True:
            ch = self._peek()
            if ch == "":
                return
            if ch.isspace():
                self.stream.read(1)
            elif ch == COMMENT:
                self.stream.readline()
            else:
                return

    def at_end(self) -> bool:
        self.skip_whitespace()
        return self._peek() == ""

    def read_char(self) -> str:
        return self.stream.read(1)

    def read_until(self, delimiter: str, limit: int = 256) -> Optional[str]:
        """Read up to `delimiter` (consumed, not returned); None if not found."""
        chars = []
        while len(chars) < limit:
            ch = self.stream.read(1)
            if ch == "":
                return None
            if ch == delimiter:
                return "".join(chars)
            chars.append(ch)
        return None

    def read_token(self) -> str:
        self.skip_whitespace()
        chars = []
        while True:
            ch = self._peek()
            if ch == "" or ch.isspace() or ch == COMMENT:
                break
            chars.append(self.stream.read(1))
        if not chars:
            raise ReadError("Unexpected end of stream")
        return "".join(chars)

    def read_int(self) -> int:
        token = self.read_token()
        try:
            return int(token)
        except ValueError:
            raise ReadError(f"Expected an integer, got '{token}'") from None

    def read_float(self) -> float:
        token = self.read_token()
        try:
            return float(token)
        except ValueError:
            raise ReadError(f"Expected a number, got '{token}'") from None


# =============================================================================
# Reading
# =============================================================================

@dataclass
class ReadInfo:
    """Containers an object may resolve references against while reading."""
    nodes: Sequence[Node] = ()
    materials: Sequence[Material] = ()
    elements: Sequence[Element] = ()


@dataclass
class ReadResult:
    """
    Outcome of one read attempt.

    obj=None and error=None means a clean end of stream.
    """
    obj: Any = None
    error: Optional[ReadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def read_any_object(stream, model) -> ReadResult:
    """
    Read the next object record from `stream`.

    Parameters:
    -----------
    stream : text stream
        Seekable stream positioned at or before a record
    model :
        Anything with `nodes`, `materials` and `elements` containers
        (normally a Solver) used to resolve references

    Returns:
    --------
    ReadResult
        The decoded object, a clean end of stream, or a ReadError. On error
        the stream has been rewound to its position before the call.
    """
    reader = stream if isinstance(stream, TokenReader) else TokenReader(stream)

    while True:
        start = reader.tell()
        if reader.at_end():
            return ReadResult()

        try:
            if reader.read_char() != "<":
                raise ReadError("Expected '<' at start of object record")
            token = reader.read_until(">")
            if token is None:
                raise ReadError("Unterminated class name token")
            # only the first word of the tag names the class
            words = token.split()
            name = words[0] if words else ""
            if name == "END":
                continue

            obj = create_object(name)
            if obj is None:
                raise ReadError(f"Unknown class '{name}'")

            if isinstance(obj, Element):
                info = ReadInfo(nodes=model.nodes, materials=model.materials)
            elif isinstance(obj, Load):
                info = ReadInfo(nodes=model.nodes, elements=model.elements)
            else:
                info = None
            obj.read_fields(reader, info)

        except ReadError as e:
            reader.seek(start)
            return ReadResult(error=e)
        except (ValueError, IndexError, TypeError, AttributeError) as e:
            reader.seek(start)
            return ReadResult(error=ReadError(f"Error reading FEM problem stream: {e}"))

        return ReadResult(obj=obj)


def read_model(stream, model) -> None:
    """
    Replace the contents of `model` with the objects read from `stream`.

    All four containers are cleared first. Objects are routed by type into
    nodes, materials, elements or loads.

    Raises:
    -------
    ReadError
        On the first failed record, or an object that fits no container.
        The model is left partially filled and should be discarded.
    """
    model.nodes.clear()
    model.materials.clear()
    model.elements.clear()
    model.loads.clear()

    reader = TokenReader(stream)
    while True:
        result = read_any_object(reader, model)
        if not result.ok:
            raise result.error
        obj = result.obj
        if obj is None:
            break

        if isinstance(obj, Node):
            model.nodes.append(obj)
        elif isinstance(obj, Material):
            model.materials.append(obj)
        elif isinstance(obj, Element):
            model.elements.append(obj)
        elif isinstance(obj, Load):
            model.loads.append(obj)
        else:
            raise ReadError(f"Object of class {type(obj).__name__} does not belong to any container")

    logger.info(
        "Read %d nodes, %d materials, %d elements, %d loads",
        len(model.nodes), len(model.materials), len(model.elements), len(model.loads),
    )


def write_model(stream, model) -> None:
    """Write nodes, materials, elements and loads, each section closed by <END>."""
    sections = (
        (model.nodes, "nodes"),
        (model.materials, "materials"),
        (model.elements, "elements"),
        (model.loads, "loads"),
    )
    for items, label in sections:
        for item in items:
            item.write(stream)
        stream.write(f"\n<END>  % End of {label}\n\n")
