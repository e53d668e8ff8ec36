"""Tests for the Alea PRNG and the seeding helpers."""

import math

import pytest
from structlog.testing import capture_logs

from py_hexworld.core.alea_prng import AleaPRNG, normalize_seed
from py_hexworld.utils.random import get_prng, phase_prng, set_random_seed
from py_hexworld.utils.timing import run_phase


class TestAleaPRNG:
    """Test the PRNG stream."""

    def test_same_seed_same_stream(self):
        a = AleaPRNG("world")
        b = AleaPRNG("world")
        assert [a.random() for _ in range(20)] == [b.random() for _ in range(20)]

    def test_different_seeds_differ(self):
        assert AleaPRNG(1).random() != AleaPRNG(2).random()

    def test_range(self):
        prng = AleaPRNG(42)
        for _ in range(1000):
            value = prng.random()
            assert 0 <= value < 1

    def test_uint32(self):
        prng = AleaPRNG(42)
        for _ in range(100):
            value = prng.uint32()
            assert isinstance(value, int)
            assert 0 <= value < 2**32

    def test_call_count(self):
        prng = AleaPRNG("count")
        prng.random()
        prng.uint32()
        assert prng.call_count == 2

    def test_integral_float_seed(self):
        assert AleaPRNG(42.0).random() == AleaPRNG(42).random()

    def test_non_finite_seed(self):
        with pytest.raises(ValueError):
            AleaPRNG(math.nan)
        with pytest.raises(ValueError):
            normalize_seed(math.inf)

    def test_normalize_seed(self):
        assert normalize_seed(3.0) == 3
        assert normalize_seed(3.5) == 3.5
        assert normalize_seed("abc") == "abc"


class TestSeeding:
    """Test per-phase and process-wide PRNG access."""

    def test_phase_prng_restarts_stream(self):
        first = phase_prng(9)
        first.random()
        first.random()
        second = phase_prng(9)
        assert second.call_count == 0
        assert second.random() == AleaPRNG(9).random()

    def test_global_prng(self):
        set_random_seed("global")
        value = get_prng().random()
        set_random_seed("global")
        assert get_prng().random() == value
        assert get_prng() is get_prng()


class TestRunPhase:
    """Test phase timing."""

    def test_returns_result_and_logs(self):
        with capture_logs() as logs:
            result = run_phase("adding", lambda a, b=0: a + b, 2, b=3)
        assert result == 5
        completed = [log for log in logs if log["event"] == "Phase completed"]
        assert completed[0]["phase"] == "adding"
        assert completed[0]["elapsed_ms"] >= 0

    def test_errors_propagate(self):
        def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            run_phase("failing", fail)
