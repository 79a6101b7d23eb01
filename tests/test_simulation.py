import numpy as np
import pytest

from moment_closure import (
    SolverOptions,
    birth_death_network,
    deterministic_initial_conditions,
    dimerisation_network,
    generate_central_moment_eqs,
    generate_raw_moment_eqs,
    gillespie_ssa,
    moment_closure,
    sample_moments,
    solve_moment_equations,
)


def test_birth_death_mean_matches_analytic_solution():
    eqs = generate_raw_moment_eqs(birth_death_network(), 1)
    ic = deterministic_initial_conditions(eqs, [0])
    res = solve_moment_equations(
        eqs, {"k": 10.0, "g": 1.0}, ic, t_span=(0.0, 5.0), options=SolverOptions(n_eval=51)
    )

    assert res["success"]
    assert res["moments"] == eqs.state
    expected = 10.0 * (1.0 - np.exp(-res["t"]))
    assert np.allclose(res["y"][0], expected, rtol=1e-5, atol=1e-6)


def test_birth_death_variance_equals_mean():
    # Started from zero molecules the distribution stays Poisson.
    eqs = generate_central_moment_eqs(birth_death_network(), 2)
    ic = deterministic_initial_conditions(eqs, [0])
    assert ic == {eqs.mu[(1,)]: 0.0, eqs.M[(2,)]: 0.0}

    net = eqs.system
    res = solve_moment_equations(eqs, dict(zip(net.parameters, [4.0, 0.5])), [0.0, 0.0], t_span=(0.0, 20.0))
    assert np.allclose(res["y"][1], res["y"][0], rtol=1e-5, atol=1e-6)


def test_closed_dimerisation_system_can_be_solved():
    eqs = moment_closure(generate_central_moment_eqs(dimerisation_network(), 2), "normal")
    res = solve_moment_equations(eqs, {"k1": 5.0, "k2": 0.1}, [0.0, 0.0], t_span=(0.0, 10.0))
    assert res["success"]
    assert res["y"].shape == (2, 200)
    assert np.all(res["y"][0] >= 0.0)


def test_solver_input_validation():
    unclosed = generate_raw_moment_eqs(dimerisation_network(), 2)
    with pytest.raises(ValueError):
        solve_moment_equations(unclosed, {"k1": 1.0, "k2": 1.0}, [0.0, 0.0])

    eqs = generate_raw_moment_eqs(birth_death_network(), 1)
    with pytest.raises(ValueError):
        solve_moment_equations(eqs, {"k": 1.0}, [0.0])
    with pytest.raises(ValueError, match="Unknown parameter"):
        solve_moment_equations(eqs, {"k": 1.0, "g": 1.0, "zz": 2.0}, [0.0])
    with pytest.raises(ValueError, match="Unknown parameter"):
        gillespie_ssa(birth_death_network(), {"k": 1.0, "g": 1.0, "zz": 2.0}, [0])
    with pytest.raises(ValueError):
        solve_moment_equations(eqs, {"k": 1.0, "g": 1.0}, [0.0, 1.0])


def test_ssa_birth_death_statistics():
    net = birth_death_network()
    sim = gillespie_ssa(net, {"k": 10.0, "g": 1.0}, [0], (0.0, 10.0), n_samples=400, seed=1)

    assert sim["x"].shape == (400, 1, 101)
    stats = sample_moments(sim["x"], [(1,), (2,)], central=True)
    assert abs(stats[(1,)][-1] - 10.0) < 1.0
    assert abs(stats[(2,)][-1] - 10.0) < 3.0


def test_ssa_is_reproducible_and_nonnegative():
    net = dimerisation_network()
    a = gillespie_ssa(net, {"k1": 5.0, "k2": 0.2}, [0], (0.0, 5.0), n_samples=20, seed=7)
    b = gillespie_ssa(net, {"k1": 5.0, "k2": 0.2}, [0], (0.0, 5.0), n_samples=20, seed=7)
    assert np.array_equal(a["x"], b["x"])
    assert a["x"].min() >= 0


def test_sample_moments_raw_and_central():
    x = np.array([[[1.0, 2.0]], [[3.0, 4.0]]])  # two samples, one species, two times
    raw = sample_moments(x, [(1,), (2,)])
    central = sample_moments(x, [(2,)], central=True)
    assert np.allclose(raw[(1,)], [2.0, 3.0])
    assert np.allclose(raw[(2,)], [5.0, 10.0])
    assert np.allclose(central[(2,)], [1.0, 1.0])
    with pytest.raises(ValueError):
        sample_moments(x, [(1, 0)])
