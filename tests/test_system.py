# tests/test_system.py
"""Tests for the dense and sparse LinearSystem backends, config and logging."""

import logging
import warnings

import numpy as np
import pytest

from linfem.config import SolverConfig
from linfem.errors import MechanismError
from linfem.kernel.system import DenseLinearSystem, SparseLinearSystem, make_system
from linfem.logging_config import setup_logging


@pytest.mark.parametrize("system_cls", [DenseLinearSystem, SparseLinearSystem])
def test_add_accumulates_and_set_overwrites(system_cls):
    system = system_cls()
    system.set_system_order(2)
    system.initialize_matrix()
    system.initialize_vector()

    system.add_matrix_value(0, 1, 2.0)
    system.add_matrix_value(0, 1, 3.0)
    system.set_matrix_value(1, 0, 7.0)
    system.set_matrix_value(1, 0, 4.0)
    system.add_vector_value(1, 1.5)
    system.add_vector_value(1, 1.5)
    system.set_vector_value(0, 9.0)

    assert system.get_matrix_value(0, 1) == 5.0
    assert system.get_matrix_value(1, 0) == 4.0
    assert system.get_matrix_value(0, 0) == 0.0
    np.testing.assert_allclose(system.vector(), [9.0, 3.0])


@pytest.mark.parametrize("system_cls", [DenseLinearSystem, SparseLinearSystem])
def test_solve_small_system(system_cls):
    system = system_cls()
    system.set_system_order(2)
    system.initialize_matrix()
    system.initialize_vector()
    for (i, j), v in {(0, 0): 4.0, (0, 1): 1.0, (1, 0): 1.0, (1, 1): 3.0}.items():
        system.add_matrix_value(i, j, v)
    system.set_vector_value(0, 1.0)
    system.set_vector_value(1, 2.0)

    system.initialize_solution()
    system.solve()

    np.testing.assert_allclose(system.solution(), np.linalg.solve([[4, 1], [1, 3]], [1, 2]))


def test_sparse_backend_stores_only_written_entries():
    system = SparseLinearSystem()
    system.set_system_order(100)
    system.initialize_matrix()
    system.add_matrix_value(3, 3, 1.0)
    system.add_matrix_value(3, 3, 1.0)
    system.set_matrix_value(3, 50, -1.0)

    assert system.nnz == 2
    assert system.get_matrix_value(50, 3) == 0.0


def test_dense_singular_system_raises():
    system = DenseLinearSystem()
    system.set_system_order(2)
    system.initialize_matrix()
    system.initialize_vector()
    for (i, j), v in {(0, 0): 1.0, (0, 1): -1.0, (1, 0): -1.0, (1, 1): 1.0}.items():
        system.add_matrix_value(i, j, v)

    with pytest.raises(MechanismError):
        system.solve()


def test_sparse_singular_system_raises():
    system = SparseLinearSystem()
    system.set_system_order(2)
    system.initialize_matrix()
    system.initialize_vector()
    system.add_matrix_value(0, 0, 1.0)
    system.set_vector_value(1, 1.0)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        with pytest.raises(MechanismError):
            system.solve()


def test_make_system():
    assert isinstance(make_system("dense"), DenseLinearSystem)
    assert isinstance(make_system("sparse"), SparseLinearSystem)
    assert make_system("dense", cond_limit=10.0).cond_limit == 10.0
    with pytest.raises(ValueError):
        make_system("banded")


def test_config_rejects_unknown_backend():
    with pytest.raises(ValueError):
        SolverConfig(backend="banded")


def test_setup_logging_does_not_duplicate_handlers(tmp_path):
    logger = setup_logging(logging.DEBUG)
    logger = setup_logging(logging.DEBUG)
    assert len(logger.handlers) == 1

    logger = setup_logging(logging.INFO, log_file=str(tmp_path / "linfem.log"))
    assert len(logger.handlers) == 2
    assert (tmp_path / "linfem.log").exists()

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


def test_sparse_matrix_before_initialize_is_empty():
    system = SparseLinearSystem()
    system.set_system_order(3)
    np.testing.assert_array_equal(system.matrix(), np.zeros((3, 3)))
