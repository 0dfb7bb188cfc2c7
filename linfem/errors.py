# linfem/errors.py
"""Exception types raised by the reader, the assemblers and the solve step."""


class FEMError(RuntimeError):
    """Base class for all linfem errors."""
    pass


class ReadError(FEMError):
    """Raised when a model stream holds a malformed or unknown record."""
    pass


class AssemblyError(FEMError):
    """Raised when a global DOF is out of range or load data has a bad size."""
    pass


class MechanismError(FEMError):
    """Raised when the assembled system is singular or ill-conditioned."""
    pass
