import pytest
import sympy as sp

from moment_closure import (
    NonPolynomialTermError,
    decompose_polynomial,
    polynomial_propensities,
)


t = sp.Symbol("t")
x = sp.Function("x")(t)
y = sp.Function("y")(t)
c = sp.Symbol("c")
smap = {x: 1, y: 2}


def test_products_of_species():
    fcs, pwrs, mpwr = polynomial_propensities([x * y + y**2], smap)
    assert fcs[0] == [1, 1]
    assert pwrs[0] == [(1, 1), (0, 2)]
    assert mpwr == 2


def test_parameter_in_denominator_goes_into_coefficient():
    expr = sp.expand(x * (x**2 + y) / (c + 2))
    fcs, pwrs, mpwr = polynomial_propensities([expr], smap)
    assert all(sp.simplify(f - 1 / (2 + c)) == 0 for f in fcs[0])
    assert len(fcs[0]) == 2
    assert pwrs[0] == [(3, 0), (1, 1)]
    assert mpwr == 3


def test_symbolic_coefficients():
    fcs, pwrs, mpwr = polynomial_propensities([c**2 * x + y / c], smap)
    assert fcs[0] == [c**2, 1 / c]
    assert pwrs[0] == [(1, 0), (0, 1)]
    assert mpwr == 1


def test_species_in_denominator_is_rejected():
    with pytest.raises(NonPolynomialTermError):
        polynomial_propensities([x / (y + 1)], smap)


@pytest.mark.parametrize("expr", [x / y, sp.sqrt(x) * c, sp.exp(x), x**c])
def test_non_integer_or_negative_powers_are_rejected(expr):
    with pytest.raises(NonPolynomialTermError) as info:
        decompose_polynomial(expr, smap)
    # Also a ValueError, so callers validating input can catch either.
    assert isinstance(info.value, ValueError)


def test_constant_and_parameter_only_terms():
    dec = decompose_polynomial(3 * c + x, smap)
    assert dec.powers == ((1, 0), (0, 0))
    assert dec.coefficients == (1, 3 * c)
    assert dec.degree == 1

    dec = decompose_polynomial(c**2, smap)
    assert dec.powers == ((0, 0),)
    assert dec.coefficients == (c**2,)
    assert dec.degree == 0


def test_zero_expression_has_no_terms():
    dec = decompose_polynomial(sp.Integer(0), smap)
    assert len(dec) == 0
    assert dec.degree == 0


def test_terms_with_same_monomial_are_merged():
    dec = decompose_polynomial(c * x * y + 2 * x * y, smap)
    assert dec.powers == ((1, 1),)
    assert sp.expand(dec.coefficients[0] - (c + 2)) == 0


def test_zero_based_and_named_species_maps():
    a, b = sp.symbols("a b")
    expr = 5 * a * b**3 + b
    by_symbol = decompose_polynomial(expr, {a: 0, b: 1})
    by_name = decompose_polynomial(expr, {"a": 1, "b": 2})
    assert by_symbol == by_name
    assert by_symbol.powers == ((1, 3), (0, 1))
    assert sp.expand(by_symbol.to_expr([a, b]) - expr) == 0


def test_duplicate_positions_are_rejected():
    with pytest.raises(ValueError):
        decompose_polynomial(x, {x: 1, y: 1})


def test_repeated_calls_give_identical_output():
    exprs = [x * y + y**2, c**2 * x + y / c]
    first = polynomial_propensities(exprs, smap)
    second = polynomial_propensities(exprs, smap)
    assert first == second
