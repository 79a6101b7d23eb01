import pytest
import sympy as sp

from moment_closure import (
    NonPolynomialTermError,
    birth_death_network,
    brusselator_network,
    dimerisation_network,
    generate_central_moment_eqs,
    generate_raw_moment_eqs,
    negative_feedback_gene_network,
)


def test_birth_death_raw_moments_are_exact():
    net = birth_death_network()
    k, g = net.parameters
    eqs = generate_raw_moment_eqs(net, 2)

    m1, m2 = eqs.mu[(1,)], eqs.mu[(2,)]
    assert eqs.q_order == 2
    assert sp.expand(eqs.equations[(1,)] - (k - g * m1)) == 0
    assert sp.expand(eqs.equations[(2,)] - (k + 2 * k * m1 + g * m1 - 2 * g * m2)) == 0
    assert eqs.is_closed
    assert eqs.state == [m1, m2]


def test_birth_death_central_moments():
    net = birth_death_network()
    k, g = net.parameters
    eqs = generate_central_moment_eqs(net, 2)

    m1, M2 = eqs.mu[(1,)], eqs.M[(2,)]
    assert sp.expand(eqs.equations[(1,)] - (k - g * m1)) == 0
    assert sp.expand(eqs.equations[(2,)] - (k + g * m1 - 2 * g * M2)) == 0
    assert eqs.state == [m1, M2]


def test_dimerisation_raw_moments_need_closure():
    net = dimerisation_network()
    k1, k2 = net.parameters
    eqs = generate_raw_moment_eqs(net, 2)

    m1, m2, m3 = eqs.mu[(1,)], eqs.mu[(2,)], eqs.mu[(3,)]
    assert eqs.q_order == 3
    assert sp.expand(eqs.equations[(1,)] - (k1 - k2 * m2 + k2 * m1)) == 0
    expected = k1 + 2 * k1 * m1 + 4 * k2 * m2 - 2 * k2 * m1 - 2 * k2 * m3
    assert sp.expand(eqs.equations[(2,)] - expected) == 0
    assert eqs.higher_order_moments() == [m3]
    assert not eqs.is_closed


def test_dimerisation_central_mean_equation():
    net = dimerisation_network()
    k1, k2 = net.parameters
    eqs = generate_central_moment_eqs(net, 2)

    m1, M2, M3 = eqs.mu[(1,)], eqs.M[(2,)], eqs.M[(3,)]
    assert sp.expand(eqs.equations[(1,)] - (k1 - k2 * M2 - k2 * m1**2 + k2 * m1)) == 0
    assert eqs.higher_order_moments() == [M3]


def test_brusselator_raw_moments():
    net = brusselator_network()
    c1, c2, c3, c4 = net.parameters
    eqs = generate_raw_moment_eqs(net, 2)

    assert eqs.q_order == 4
    assert eqs.tracked_indices == [(1, 0), (0, 1), (2, 0), (1, 1), (0, 2)]
    mu = eqs.mu
    mean_x = c1 + c2 / 2 * (mu[(2, 1)] - mu[(1, 1)]) - (c3 + c4) * mu[(1, 0)]
    assert sp.expand(eqs.equations[(1, 0)] - mean_x) == 0
    assert max(sum(i) for i in eqs.mu if eqs.mu[i] in eqs.higher_order_moments()) == 4


def test_odes_are_sympy_equations():
    eqs = generate_raw_moment_eqs(birth_death_network(), 1)
    (ode,) = eqs.odes()
    assert ode.lhs == sp.Derivative(eqs.mu[(1,)], eqs.iv)
    assert eqs.rhs_vector() == sp.Matrix([eqs.equations[(1,)]])


def test_non_polynomial_propensities():
    net = negative_feedback_gene_network()
    with pytest.raises(NonPolynomialTermError):
        generate_raw_moment_eqs(net, 2)
    with pytest.raises(ValueError):
        generate_central_moment_eqs(net, 2)

    eqs = generate_central_moment_eqs(net, 2, q_order=3)
    assert eqs.q_order == 3
    assert eqs.equations[(1,)].has(eqs.M[(2,)])
    assert eqs.higher_order_moments() == [eqs.M[(3,)]]


def test_invalid_orders():
    net = birth_death_network()
    with pytest.raises(ValueError):
        generate_raw_moment_eqs(net, 0)
    with pytest.raises(ValueError):
        generate_central_moment_eqs(net, 3, q_order=2)
