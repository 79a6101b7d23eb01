import pytest
import sympy as sp

from moment_closure import (
    define_central_moments,
    define_raw_moments,
    moment_indices,
    moment_symbol_name,
)
from moment_closure.symbols import index_binomial, sub_indices


def test_raw_moment_symbols():
    mu = define_raw_moments(3, 3)
    assert mu[(0, 0, 0)] == 1
    assert str(mu[(2, 1, 0)]) == "μ₂₁₀(t)"
    assert str(mu[(0, 0, 3)]) == "μ₀₀₃(t)"


def test_central_moment_symbols():
    M = define_central_moments(3, 3)
    assert M[(0, 0, 0)] == 1
    assert M[(1, 0, 0)] == 0
    assert str(M[(1, 0, 2)]) == "M₁₀₂(t)"


def test_names_are_generated_from_indices_without_shared_state():
    assert moment_symbol_name("μ", (2, 1, 0)) == "μ₂₁₀"
    s = sp.Symbol("s")
    assert str(define_raw_moments(1, 1, iv=s)[(1,)]) == "μ₁(s)"
    # Independent calls produce equal symbols.
    assert define_raw_moments(2, 2)[(1, 1)] == define_raw_moments(2, 2)[(1, 1)]
    with pytest.raises(ValueError):
        moment_symbol_name("μ", (1, -1))


def test_moment_indices_order():
    assert moment_indices(2, 2) == [(0, 0), (1, 0), (0, 1), (2, 0), (1, 1), (0, 2)]
    assert moment_indices(2, 2, min_order=2) == [(2, 0), (1, 1), (0, 2)]
    assert len(moment_indices(3, 3)) == 20


def test_index_helpers():
    assert sorted(sub_indices((1, 2))) == [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]
    assert index_binomial((3, 2), (1, 1)) == 6
