# linfem/config.py
"""
Solver configuration and defaults.
"""

import logging
from dataclasses import dataclass


@dataclass
class SolverConfig:
    """Global solver configuration."""

    # Linear-system backend: 'dense' (numpy) or 'sparse' (scipy.sparse)
    backend: str = "sparse"

    # Max condition number accepted by the dense backend before MechanismError
    cond_limit: float = 1e12

    # Level used by setup_logging() when no explicit level is given
    log_level: int = logging.INFO

    def __post_init__(self):
        if self.backend not in ("dense", "sparse"):
            raise ValueError(f"Unknown backend '{self.backend}', expected 'dense' or 'sparse'")


# Global config instance
CONFIG = SolverConfig()
