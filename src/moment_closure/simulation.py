from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import sympy as sp
from scipy.integrate import solve_ivp

from .expansion import MomentEquations
from .network import ReactionSystem
from .symbols import Index, moment_order

logger = logging.getLogger(__name__)


ParameterValues = Mapping[Union[sp.Symbol, str], float]


@dataclass
class SolverOptions:
    """Settings forwarded to `scipy.integrate.solve_ivp`."""

    method: str = "RK45"
    n_eval: int = 200
    rtol: float = 1e-8
    atol: float = 1e-10


def _resolve_parameters(system: ReactionSystem, values: ParameterValues) -> Dict[sp.Symbol, float]:
    """Map parameter names or symbols to the system's own parameter symbols.

    Keys that name no parameter of ``system`` raise ``ValueError``.
    """
    by_name = {str(p): p for p in system.parameters}
    out: Dict[sp.Symbol, float] = {}
    for key, val in values.items():
        name = str(key)
        if name not in by_name:
            raise ValueError(f"Unknown parameter '{name}'. Known: {list(by_name)}")
        out[by_name[name]] = float(val)
    return out


def deterministic_initial_conditions(
    eqs: MomentEquations,
    species_values: Sequence[float],
) -> Dict[sp.Expr, float]:
    """Moments of a point mass at ``species_values``.

    Raw moments are Π_j x_j^{i_j}; means equal the counts and every central
    moment of order >= 2 is zero.
    """
    n = eqs.system.n_species
    if len(species_values) != n:
        raise ValueError(f"species_values must have length n={n}")
    out: Dict[sp.Expr, float] = {}
    for idx in eqs.tracked_indices:
        sym = eqs.moment_symbol(idx)
        if eqs.kind == "central" and moment_order(idx) >= 2:
            out[sym] = 0.0
        else:
            val = 1.0
            for xj, ij in zip(species_values, idx):
                val *= float(xj) ** int(ij)
            out[sym] = val
    return out


def solve_moment_equations(
    eqs: MomentEquations,
    parameter_values: ParameterValues,
    initial_values: Union[Mapping[sp.Expr, float], Sequence[float]],
    t_span: Tuple[float, float] = (0.0, 10.0),
    options: Optional[SolverOptions] = None,
) -> Dict[str, Any]:
    """Integrate closed moment equations numerically.

    Parameters
    ----------
    eqs:
        Closed `MomentEquations`.
    parameter_values:
        Values for every parameter, keyed by symbol or name. Keys that are
        not parameters of ``eqs.system`` raise ``ValueError``.
    initial_values:
        Either a mapping moment symbol -> value (e.g. from
        `deterministic_initial_conditions`) or a sequence in ``eqs.state``
        order.

    Returns
    -------
    dict with keys 't', 'y' (len(state) × n_eval), 'moments' (state symbols),
    'success' and 'message'.
    """
    opt = options or SolverOptions()
    if not eqs.is_closed:
        missing = ", ".join(str(f) for f in eqs.higher_order_moments())
        raise ValueError(f"moment equations are not closed; higher-order moments remain: {missing}")

    state = eqs.state
    n = len(state)
    params = _resolve_parameters(eqs.system, parameter_values)

    if isinstance(initial_values, Mapping):
        try:
            u0 = np.array([float(initial_values[s]) for s in state], dtype=float)
        except KeyError as exc:
            raise ValueError(f"missing initial value for {exc.args[0]}") from exc
    else:
        u0 = np.array(initial_values, dtype=float).reshape(-1)
        if u0.size != n:
            raise ValueError(f"initial_values must have length {n}")

    u = sp.symbols(f"u0:{n}")
    to_u = dict(zip(state, u))
    rhs = list(eqs.rhs_vector().subs(params).xreplace(to_u))
    leftover = set().union(*(e.free_symbols for e in rhs)) - set(u) - {eqs.iv}
    if leftover:
        names = ", ".join(sorted(str(s) for s in leftover))
        raise ValueError(f"missing parameter values for: {names}")

    f_num = sp.lambdify((eqs.iv, u), rhs, modules="numpy")

    def rhs_fn(t: float, y: np.ndarray) -> np.ndarray:
        return np.array(f_num(t, y), dtype=float).reshape((n,))

    t_eval = np.linspace(float(t_span[0]), float(t_span[1]), int(opt.n_eval))
    sol = solve_ivp(
        rhs_fn,
        t_span,
        u0,
        method=opt.method,
        t_eval=t_eval,
        rtol=opt.rtol,
        atol=opt.atol,
    )
    logger.debug("solve_ivp finished: success=%s, %s", sol.success, sol.message)

    return {
        "t": sol.t,
        "y": sol.y,
        "moments": state,
        "success": bool(sol.success),
        "message": sol.message,
    }


# ---------------------------------------------------------------------------
# Stochastic simulation
# ---------------------------------------------------------------------------


def gillespie_ssa(
    system: ReactionSystem,
    parameter_values: ParameterValues,
    x0: Sequence[int],
    t_span: Tuple[float, float] = (0.0, 10.0),
    *,
    n_samples: int = 1,
    n_eval: int = 101,
    seed: Optional[int] = None,
) -> Dict[str, np.ndarray]:
    """Sample paths of the jump process with Gillespie's direct method.

    Paths are recorded on a uniform grid of ``n_eval`` time points.

    Returns
    -------
    dict with keys 't' (n_eval,) and 'x' (n_samples × n_species × n_eval).
    """
    n = system.n_species
    if len(x0) != n:
        raise ValueError(f"x0 must have length n={n}")
    if n_samples < 1:
        raise ValueError("n_samples must be positive")

    params = _resolve_parameters(system, parameter_values)
    props = [sp.sympify(a).subs(params) for a in system.propensities()]
    leftover = set().union(*(a.free_symbols for a in props)) - set(system.x_symbols)
    if leftover:
        names = ", ".join(sorted(str(s) for s in leftover))
        raise ValueError(f"missing parameter values for: {names}")

    a_num = sp.lambdify(system.x_symbols, props, modules="numpy")
    nus = np.array(system.stoichiometric_matrix().T, dtype=float)
    n_reactions = nus.shape[0]

    rng = np.random.default_rng(seed)
    t_eval = np.linspace(float(t_span[0]), float(t_span[1]), int(n_eval))
    paths = np.empty((int(n_samples), n, t_eval.size), dtype=float)

    for s in range(int(n_samples)):
        t = t_eval[0]
        x = np.array(x0, dtype=float)
        k = 0
        while k < t_eval.size:
            a = np.array(a_num(*x), dtype=float).reshape((n_reactions,))
            if np.any(a < 0):
                raise ValueError(f"negative propensity at state {x.tolist()}")
            a0 = a.sum()
            t_next = t + rng.exponential(1.0 / a0) if a0 > 0 else np.inf
            while k < t_eval.size and t_eval[k] < t_next:
                paths[s, :, k] = x
                k += 1
            if k >= t_eval.size:
                break
            r = rng.choice(n_reactions, p=a / a0)
            x = x + nus[r]
            t = t_next

    logger.debug("simulated %d SSA paths over %s", n_samples, t_span)
    return {"t": t_eval, "x": paths}


def sample_moments(
    x: np.ndarray,
    indices: Sequence[Index],
    *,
    central: bool = False,
) -> Dict[Index, np.ndarray]:
    """Ensemble moments of sampled paths.

    Parameters
    ----------
    x:
        Array of shape (n_samples, n_species, n_times), e.g. from `gillespie_ssa`.
    indices:
        Multi-indices to estimate.
    central:
        Centre each species on its ensemble mean (order-1 indices still give
        the means).
    """
    x = np.asarray(x, dtype=float)
    if x.ndim != 3:
        raise ValueError("x must have shape (n_samples, n_species, n_times)")
    means = x.mean(axis=0)
    out: Dict[Index, np.ndarray] = {}
    for idx in indices:
        if len(idx) != x.shape[1]:
            raise ValueError(f"index {idx} does not match {x.shape[1]} species")
        centre = central and moment_order(idx) >= 2
        prod = np.ones((x.shape[0], x.shape[2]), dtype=float)
        for j, ij in enumerate(idx):
            if ij:
                base = x[:, j, :] - means[j] if centre else x[:, j, :]
                prod *= base ** int(ij)
        out[tuple(idx)] = prod.mean(axis=0)
    return out
