"""
Tests for basis vectors, locking and logging
"""

import json
import logging
import threading
import time

import numpy as np
import pytest

from symbolic_moments import (Context, MatrixSystem, Monomial, Polynomial, basis_to_polynomial,
                              polynomial_to_basis, setup_logging)
from symbolic_moments.errors import UnknownBasisElementError
from symbolic_moments.locking import ReadWriteLock
from symbolic_moments.logging_config import PACKAGE_LOGGER, JSONFormatter


def free_system():
    """Level 1 moment matrix: real basis 1, A, B, AA, AB, BB; imaginary basis AB."""
    system = MatrixSystem(Context(2, ["A", "B"]))
    system.create_moment_matrix(1)
    return system


class TestBasis:
    def test_hermitian_symbol(self):
        system = free_system()
        real, imaginary = polynomial_to_basis(system.symbols, Polynomial(Monomial(2, 3.0)))
        assert np.allclose(real, [0, 3, 0, 0, 0, 0])
        assert np.allclose(imaginary, [0])

    def test_complex_symbol(self):
        system = free_system()
        real, imaginary = polynomial_to_basis(system.symbols, Polynomial(Monomial(5, 1.0, True)))
        assert np.allclose(real, [0, 0, 0, 0, 1, 0])
        assert np.allclose(imaginary, [-1])

    def test_real_basis_to_polynomial(self):
        system = free_system()
        factory = system.polynomial_factory
        assert basis_to_polynomial(factory, real=[0, 2, 0, 0, 0, 0]) == factory(Monomial(2, 2.0))
        assert basis_to_polynomial(factory, real=[0, 0, 0, 0, 1, 0]) == \
            factory([Monomial(5, 0.5), Monomial(5, 0.5, True)])

    def test_imaginary_basis_to_polynomial(self):
        system = free_system()
        factory = system.polynomial_factory
        assert basis_to_polynomial(factory, imaginary=[1]) == \
            factory([Monomial(5, 0.5), Monomial(5, -0.5, True)])

    def test_round_trip_of_real_part(self):
        system = free_system()
        factory = system.polynomial_factory
        poly = factory([Monomial(1, 2.0), Monomial(5, 0.5), Monomial(5, 0.5, True)])
        real, imaginary = polynomial_to_basis(system.symbols, poly)
        assert basis_to_polynomial(factory, real.real, imaginary.real).approximately_equals(poly)

    def test_out_of_range(self):
        system = free_system()
        with pytest.raises(UnknownBasisElementError):
            basis_to_polynomial(system.polynomial_factory, real=[0] * 7 + [1])
        with pytest.raises(UnknownBasisElementError):
            basis_to_polynomial(system.polynomial_factory, imaginary=[0, 1])


class TestReadWriteLock:
    def test_write_lock_is_reentrant(self):
        lock = ReadWriteLock()
        assert not lock.is_write_locked()
        with lock.write_lock():
            with lock.write_lock():
                assert lock.is_write_locked()
            with lock.read_lock():
                assert lock.is_write_locked()
            assert lock.is_write_locked()
        assert not lock.is_write_locked()

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []
        started = threading.Event()

        def reader():
            started.set()
            with lock.read_lock():
                events.append("read")

        with lock.write_lock():
            thread = threading.Thread(target=reader)
            thread.start()
            started.wait()
            events.append("write")
        thread.join()
        assert events == ["write", "read"]

    def test_lock_is_per_thread(self):
        lock = ReadWriteLock()
        seen = []
        with lock.write_lock():
            thread = threading.Thread(target=lambda: seen.append(lock.is_write_locked()))
            thread.start()
            thread.join()
        assert seen == [False]

    def test_waiting_writer_blocks_new_readers(self):
        lock = ReadWriteLock()
        events = []
        reader_started = threading.Event()

        def writer():
            with lock.write_lock():
                events.append("write")

        def reader():
            reader_started.set()
            with lock.read_lock():
                events.append("read")

        with lock.read_lock():
            writer_thread = threading.Thread(target=writer)
            writer_thread.start()
            deadline = time.monotonic() + 5
            while not lock._writers_waiting and time.monotonic() < deadline:
                time.sleep(0.001)
            assert lock._writers_waiting == 1

            # Nested reads by a current reader still succeed
            with lock.read_lock():
                events.append("nested")

            reader_thread = threading.Thread(target=reader)
            reader_thread.start()
            reader_started.wait()
        writer_thread.join()
        reader_thread.join()
        assert events == ["nested", "write", "read"]
        assert lock.reader_count == 0


class TestLogging:
    def test_setup_logging(self):
        logger = setup_logging(logging.DEBUG)
        assert logger.name == PACKAGE_LOGGER
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        setup_logging(logging.WARNING)
        assert len(logger.handlers) == 1

    def test_json_formatter(self):
        record = logging.LogRecord(PACKAGE_LOGGER, logging.INFO, __file__, 1,
                                   "built %d matrices", (3,), None)
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "built 3 matrices"
        assert entry["level"] == "INFO"
        assert entry["logger"] == PACKAGE_LOGGER
