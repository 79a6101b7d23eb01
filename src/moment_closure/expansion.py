"""Moment equations of the chemical master equation.

For a reaction system with propensities a_r(x) and net stoichiometries ν_r,
the expectation of any function f of the state satisfies

    d/dt E[f(x)] = Σ_r E[ a_r(x) (f(x + ν_r) - f(x)) ].

Taking f to be a monomial gives the raw moment equations; taking f to be a
centred monomial (and accounting for the moving means) gives the central
moment equations. Lower-order equations generally depend on higher-order
moments, so the hierarchy must later be truncated by a closure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import sympy as sp
from sympy.core.function import AppliedUndef

from .network import ReactionSystem
from .propensities import NonPolynomialTermError, polynomial_propensities
from .symbols import (
    TIME,
    Index,
    add_indices,
    define_central_moments,
    define_raw_moments,
    index_binomial,
    moment_indices,
    moment_order,
    sub_indices,
    unit_index,
)

logger = logging.getLogger(__name__)


@dataclass
class MomentEquations:
    """A (possibly unclosed) system of moment ODEs.

    Attributes
    ----------
    system:
        The reaction system the equations were derived from.
    kind:
        ``"raw"`` or ``"central"``.
    m_order:
        Highest order of the tracked moments.
    q_order:
        Highest order of any moment appearing on a right-hand side.
    equations:
        Tracked multi-index -> right-hand side of its ODE. Central systems
        track the means (order 1) alongside central moments of order >= 2.
    mu, M:
        Raw / central moment symbols up to ``q_order`` (``M`` is None for
        raw systems).
    closure:
        Name of the closure applied, or None for the unclosed hierarchy.
    closure_exprs:
        Higher-order moment -> the expression that replaced it.
    """

    system: ReactionSystem
    kind: str
    m_order: int
    q_order: int
    equations: Dict[Index, sp.Expr]
    mu: Dict[Index, sp.Expr]
    M: Optional[Dict[Index, sp.Expr]] = None
    iv: sp.Symbol = TIME
    closure: Optional[str] = None
    closure_exprs: Dict[sp.Expr, sp.Expr] = field(default_factory=dict)

    def moment_symbol(self, index: Index) -> sp.Expr:
        if self.kind == "central" and moment_order(index) >= 2:
            return self.M[index]
        return self.mu[index]

    @property
    def tracked_indices(self) -> List[Index]:
        return list(self.equations)

    @property
    def state(self) -> List[sp.Expr]:
        """Tracked moment symbols, in equation order."""
        return [self.moment_symbol(i) for i in self.equations]

    def higher_order_moments(self) -> List[sp.Expr]:
        """Untracked moment symbols still present on the right-hand sides."""
        tracked = set(self.state)
        found = set()
        for rhs in self.equations.values():
            found |= {f for f in rhs.atoms(AppliedUndef) if f not in tracked}
        return sorted(found, key=lambda f: str(f))

    @property
    def is_closed(self) -> bool:
        return not self.higher_order_moments()

    def odes(self) -> List[sp.Eq]:
        return [sp.Eq(sp.Derivative(self.moment_symbol(i), self.iv), rhs) for i, rhs in self.equations.items()]

    def rhs_vector(self) -> sp.Matrix:
        return sp.Matrix(list(self.equations.values()))


def _net_stoichiometries(system: ReactionSystem) -> List[tuple]:
    return [r.net_stoichiometry for r in system.reactions]


def _jump_weight(nu, i: Index, k: Index) -> int:
    """C(i, k) * Π_j ν_j^(i_j - k_j), the coefficient of x^k in (x+ν)^i."""
    w = index_binomial(i, k)
    for nj, ij, kj in zip(nu, i, k):
        w *= int(nj) ** (ij - kj)
    return w


def generate_raw_moment_eqs(system: ReactionSystem, m_order: int) -> MomentEquations:
    """Raw moment equations up to order ``m_order``.

    Requires polynomial propensities, since E[a(x) x^k] must be a linear
    combination of raw moments.

    Raises
    ------
    NonPolynomialTermError
        If some propensity is not a polynomial in the species.
    """
    if m_order < 1:
        raise ValueError("m_order must be at least 1")

    n = system.n_species
    props = [sp.expand(a) for a in system.propensities()]
    coeffs, powers, max_degree = polynomial_propensities(props, system.species_index())
    q_order = max(m_order, m_order + max_degree - 1)

    mu = define_raw_moments(n, q_order)
    nus = _net_stoichiometries(system)

    equations: Dict[Index, sp.Expr] = {}
    for i in moment_indices(n, m_order, min_order=1):
        rhs = sp.Integer(0)
        for r, nu in enumerate(nus):
            for k in sub_indices(i):
                if k == i:
                    continue
                w = _jump_weight(nu, i, k)
                if w == 0:
                    continue
                for c, p in zip(coeffs[r], powers[r]):
                    rhs += w * c * mu[add_indices(k, p)]
        equations[i] = sp.expand(rhs)

    logger.debug("generated %d raw moment equations (m=%d, q=%d)", len(equations), m_order, q_order)
    return MomentEquations(
        system=system,
        kind="raw",
        m_order=int(m_order),
        q_order=int(q_order),
        equations=equations,
        mu=mu,
    )


def _taylor_coefficients(
    a: sp.Expr,
    x: List[sp.Symbol],
    means: List[sp.Expr],
    q_order: int,
) -> Dict[Index, sp.Expr]:
    """Nonzero ∂^l a(μ) / l! for all |l| <= q_order."""
    n = len(x)
    at_mean = dict(zip(x, means))
    out: Dict[Index, sp.Expr] = {}
    for l in moment_indices(n, q_order):
        d = a
        for xj, lj in zip(x, l):
            if lj:
                d = sp.diff(d, xj, lj)
        if d == 0:
            continue
        denom = 1
        for lj in l:
            denom *= sp.factorial(lj)
        val = sp.simplify(d.xreplace(at_mean)) / denom
        if val != 0:
            out[l] = val
    return out


def generate_central_moment_eqs(
    system: ReactionSystem,
    m_order: int,
    q_order: Optional[int] = None,
) -> MomentEquations:
    """Equations for the means and central moments up to order ``m_order``.

    Propensities are Taylor-expanded about the means up to total order
    ``q_order``, so that E[a(x) (x-μ)^k] ≈ Σ_l ∂^l a(μ)/l! M_{k+l}. For
    polynomial propensities the expansion is exact and ``q_order`` defaults to
    ``m_order + max_degree - 1``; non-polynomial propensities require an
    explicit ``q_order``.
    """
    if m_order < 1:
        raise ValueError("m_order must be at least 1")

    n = system.n_species
    x = list(system.x_symbols)
    props = [sp.expand(a) for a in system.propensities()]

    if q_order is None:
        try:
            _c, _p, max_degree = polynomial_propensities(props, system.species_index())
        except NonPolynomialTermError as exc:
            raise ValueError(
                "q_order must be given for non-polynomial propensities"
            ) from exc
        q_order = max(m_order, m_order + max_degree - 1)
    if q_order < m_order:
        raise ValueError(f"q_order must be >= m_order={m_order}; got {q_order}")

    mu = define_raw_moments(n, q_order)
    M = define_central_moments(n, q_order)
    means = [mu[unit_index(n, j)] for j in range(n)]
    nus = _net_stoichiometries(system)
    taylor = [_taylor_coefficients(a, x, means, q_order) for a in props]

    def expected_product(r: int, k: Index) -> sp.Expr:
        # E[a_r(x) (x-μ)^k] truncated at total order q_order
        out = sp.Integer(0)
        for l, d in taylor[r].items():
            kl = add_indices(k, l)
            if moment_order(kl) <= q_order:
                out += d * M[kl]
        return out

    equations: Dict[Index, sp.Expr] = {}
    zero = (0,) * n
    mean_rhs: List[sp.Expr] = []
    for j in range(n):
        rhs = sp.Integer(0)
        for r, nu in enumerate(nus):
            if nu[j]:
                rhs += nu[j] * expected_product(r, zero)
        rhs = sp.expand(rhs)
        mean_rhs.append(rhs)
        equations[unit_index(n, j)] = rhs

    for i in moment_indices(n, m_order, min_order=2):
        rhs = sp.Integer(0)
        for r, nu in enumerate(nus):
            for k in sub_indices(i):
                if k == i:
                    continue
                w = _jump_weight(nu, i, k)
                if w == 0:
                    continue
                rhs += w * expected_product(r, k)
        # moving means: E[∂f/∂μ_j] dμ_j/dt with ∂f/∂μ_j = -i_j (x-μ)^(i-e_j)
        for j in range(n):
            if i[j]:
                lower = tuple(ik - (1 if kk == j else 0) for kk, ik in enumerate(i))
                rhs -= i[j] * M[lower] * mean_rhs[j]
        equations[i] = sp.expand(rhs)

    logger.debug("generated %d central moment equations (m=%d, q=%d)", len(equations), m_order, q_order)
    return MomentEquations(
        system=system,
        kind="central",
        m_order=int(m_order),
        q_order=int(q_order),
        equations=equations,
        mu=mu,
        M=M,
    )
