#!/usr/bin/env python3
"""
Basic Usage Examples for the moment_closure package

This script demonstrates the core features of the package with simple,
self-contained examples.
"""

import sys

import sympy as sp

sys.path.insert(0, "src")
from moment_closure import (
    birth_death_network,
    brusselator_network,
    deterministic_initial_conditions,
    format_moment_equations,
    generate_central_moment_eqs,
    generate_raw_moment_eqs,
    gillespie_ssa,
    moment_closure,
    negative_feedback_gene_network,
    polynomial_propensities,
    sample_moments,
    solve_moment_equations,
)


def example_1_polynomial_propensities():
    """Decompose propensities into monomial coefficients and powers."""
    print("\n" + "=" * 50)
    print("Example 1: Monomial decomposition")
    print("=" * 50)

    net = brusselator_network()
    coeffs, powers, max_degree = polynomial_propensities(
        [sp.expand(a) for a in net.propensities()], net.species_index()
    )
    for a, c, p in zip(net.propensities(), coeffs, powers):
        print(f"  a = {a}")
        print(f"    coefficients: {c}")
        print(f"    powers:       {p}")
    print(f"  max degree: {max_degree}")


def example_2_raw_moments():
    """Raw moment equations for the Brusselator, closed with a normal closure."""
    print("\n" + "=" * 50)
    print("Example 2: Raw moment equations")
    print("=" * 50)

    eqs = generate_raw_moment_eqs(brusselator_network(), 2)
    print(format_moment_equations(eqs))

    closed = moment_closure(eqs, "normal")
    print()
    print(format_moment_equations(closed))


def example_3_non_polynomial():
    """Central moments with a Taylor expansion of a Hill propensity."""
    print("\n" + "=" * 50)
    print("Example 3: Non-polynomial propensities")
    print("=" * 50)

    eqs = generate_central_moment_eqs(negative_feedback_gene_network(), 2, q_order=3)
    closed = moment_closure(eqs, "normal")
    print(format_moment_equations(closed))


def example_4_compare_with_ssa():
    """Closed moment equations versus stochastic simulation."""
    print("\n" + "=" * 50)
    print("Example 4: Comparison with SSA")
    print("=" * 50)

    net = birth_death_network()
    params = {"k": 10.0, "g": 1.0}
    eqs = generate_central_moment_eqs(net, 2)
    res = solve_moment_equations(eqs, params, deterministic_initial_conditions(eqs, [0]), (0.0, 10.0))

    sim = gillespie_ssa(net, params, [0], (0.0, 10.0), n_samples=500, seed=0)
    stats = sample_moments(sim["x"], [(1,), (2,)], central=True)

    print(f"  mean     ODE: {res['y'][0, -1]:.3f}   SSA: {stats[(1,)][-1]:.3f}")
    print(f"  variance ODE: {res['y'][1, -1]:.3f}   SSA: {stats[(2,)][-1]:.3f}")


if __name__ == "__main__":
    example_1_polynomial_propensities()
    example_2_raw_moments()
    example_3_non_polynomial()
    example_4_compare_with_ssa()
