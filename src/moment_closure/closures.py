"""Moment closure approximations.

A closure expresses every moment of order ``m_order < |i| <= q_order`` in
terms of the tracked moments of order ``<= m_order``. Each closure is
formulated in its natural moment type:

- central: ``zero`` (all higher central moments vanish) and ``normal``
  (Isserlis' theorem, odd central moments vanish);
- raw: ``poisson`` (independent Poisson marginals), ``log-normal`` (moments
  of a multivariate log-normal), ``gamma`` (gamma marginals) and
  ``derivative matching`` (Singh & Hespanha, 2011).

When the equations use the other moment type, the closed moments are
converted through the binomial relations between raw and central moments.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Dict, List

import sympy as sp
from sympy.functions.combinatorial.numbers import stirling

from .expansion import MomentEquations
from .symbols import (
    Index,
    add_indices,
    define_central_moments,
    index_binomial,
    moment_indices,
    moment_order,
    sub_indices,
    unit_index,
)

logger = logging.getLogger(__name__)


def _means(mu: Dict[Index, sp.Expr], n: int) -> List[sp.Expr]:
    return [mu[unit_index(n, j)] for j in range(n)]


def raw_in_terms_of_central(index: Index, mu: Dict[Index, sp.Expr], M: Dict[Index, sp.Expr]) -> sp.Expr:
    """μ_i = Σ_{k<=i} C(i,k) μ^(i-k) M_k, with μ^(i-k) a product of means."""
    n = len(index)
    if moment_order(index) <= 1:
        return mu[index]
    means = _means(mu, n)
    out = sp.Integer(0)
    for k in sub_indices(index):
        term = index_binomial(index, k) * M[k]
        for mj, ij, kj in zip(means, index, k):
            term *= mj ** (ij - kj)
        out += term
    return out


def central_in_terms_of_raw(index: Index, mu: Dict[Index, sp.Expr]) -> sp.Expr:
    """M_i = Σ_{k<=i} C(i,k) (-μ)^(i-k) μ_k."""
    n = len(index)
    k_total = moment_order(index)
    if k_total == 0:
        return sp.Integer(1)
    if k_total == 1:
        return sp.Integer(0)
    means = _means(mu, n)
    out = sp.Integer(0)
    for k in sub_indices(index):
        term = index_binomial(index, k) * mu[k]
        for mj, ij, kj in zip(means, index, k):
            term *= (-mj) ** (ij - kj)
        out += term
    return out


# ---------------------------------------------------------------------------
# Closure functions (one higher-order index at a time)
# ---------------------------------------------------------------------------


def zero_closure(index: Index, M: Dict[Index, sp.Expr]) -> sp.Expr:
    return sp.Integer(0)


def _pairings(items: List[int]):
    """All perfect matchings of a list, as lists of pairs."""
    if not items:
        yield []
        return
    first, rest = items[0], items[1:]
    for p in range(len(rest)):
        pair = (first, rest[p])
        for tail in _pairings(rest[:p] + rest[p + 1:]):
            yield [pair] + tail


def normal_closure(index: Index, M: Dict[Index, sp.Expr]) -> sp.Expr:
    """Central moment of a multivariate normal from its covariances.

    By Isserlis' theorem, odd central moments vanish and even ones are the sum
    over all pairings of products of covariances.
    """
    n = len(index)
    items = [j for j in range(n) for _ in range(int(index[j]))]
    if len(items) % 2:
        return sp.Integer(0)
    out = sp.Integer(0)
    for pairing in _pairings(items):
        term = sp.Integer(1)
        for a, b in pairing:
            term *= M[add_indices(unit_index(n, a), unit_index(n, b))]
        out += term
    return out


def poisson_closure(index: Index, mu: Dict[Index, sp.Expr]) -> sp.Expr:
    """Raw moment of independent Poisson marginals with means μ_j.

    The n-th raw moment of a Poisson(λ) variable is the Touchard polynomial
    Σ_k S(n, k) λ^k with S the Stirling numbers of the second kind.
    """
    n = len(index)
    means = _means(mu, n)
    out = sp.Integer(1)
    for lam, ij in zip(means, index):
        ij = int(ij)
        if ij:
            out *= sum(stirling(ij, k) * lam ** k for k in range(1, ij + 1))
    return out


def log_normal_closure(index: Index, mu: Dict[Index, sp.Expr]) -> sp.Expr:
    """Raw moment of a multivariate log-normal distribution.

    With r_ab = μ_{e_a+e_b} / (μ_a μ_b):
        μ_i = Π_a μ_a^{i_a} Π_{a<b} r_ab^{i_a i_b} Π_a r_aa^{C(i_a, 2)}.
    """
    n = len(index)
    means = _means(mu, n)

    def ratio(a: int, b: int) -> sp.Expr:
        second = mu[add_indices(unit_index(n, a), unit_index(n, b))]
        return second / (means[a] * means[b])

    out = sp.Integer(1)
    for a in range(n):
        ia = int(index[a])
        if not ia:
            continue
        out *= means[a] ** ia
        if ia >= 2:
            out *= ratio(a, a) ** (ia * (ia - 1) // 2)
        for b in range(a + 1, n):
            ib = int(index[b])
            if ib:
                out *= ratio(a, b) ** (ia * ib)
    return out


def gamma_closure(index: Index, mu: Dict[Index, sp.Expr]) -> sp.Expr:
    """Raw moment of gamma-distributed marginals matched to μ_j and μ_{2e_j}.

    For a gamma variable with scale β = (μ_2 - μ_1^2) / μ_1,
        E[x^n] = Π_{k<n} (μ_1 + k β).
    Mixed indices take the product of the marginal moments.
    """
    n = len(index)
    means = _means(mu, n)
    out = sp.Integer(1)
    for j, (mean, ij) in enumerate(zip(means, index)):
        ij = int(ij)
        if not ij:
            continue
        second = mu[add_indices(unit_index(n, j), unit_index(n, j))]
        scale = (second - mean**2) / mean
        for k in range(ij):
            out *= mean + k * scale
    return out


def derivative_matching_closure(index: Index, mu: Dict[Index, sp.Expr], m_order: int) -> sp.Expr:
    """Derivative-matching approximation of a raw moment of order > m_order.

        μ_i ≈ Π_{p<=i, 1<=|p|<=m} μ_p^{γ_p},
        γ_p = (-1)^(m-|p|) C(i, p) C(|i|-|p|-1, m-|p|).
    """
    total = moment_order(index)
    if total <= m_order:
        raise ValueError(f"derivative matching closes moments of order > {m_order}; got {index}")
    out = sp.Integer(1)
    for p in sub_indices(index):
        order_p = moment_order(p)
        if order_p == 0 or order_p > m_order:
            continue
        gamma = (
            (-1) ** (m_order - order_p)
            * index_binomial(index, p)
            * int(sp.binomial(total - order_p - 1, m_order - order_p))
        )
        if gamma:
            out *= mu[p] ** gamma
    return out


# ---------------------------------------------------------------------------
# Applying a closure to a system of moment equations
# ---------------------------------------------------------------------------

_CENTRAL_CLOSURES = ("zero", "normal")
_RAW_CLOSURES = ("poisson", "log-normal", "gamma", "derivative matching")
_POLYNOMIAL_CLOSURES = ("zero", "normal", "poisson")
_NEEDS_SECOND_ORDER = ("normal", "log-normal", "gamma", "derivative matching")

CLOSURES = _CENTRAL_CLOSURES + _RAW_CLOSURES


def normalize_closure_name(name: str) -> str:
    """Map user spellings (``"log_normal"``, ``"Derivative-Matching"``) to canonical names."""
    key = " ".join(str(name).strip().lower().replace("_", " ").replace("-", " ").split())
    aliases = {
        "zero": "zero",
        "normal": "normal",
        "gaussian": "normal",
        "poisson": "poisson",
        "log normal": "log-normal",
        "lognormal": "log-normal",
        "gamma": "gamma",
        "derivative matching": "derivative matching",
    }
    if key not in aliases:
        raise ValueError(f"Unknown closure '{name}'. Known: {list(CLOSURES)}")
    return aliases[key]


def _closure_function(name: str, eqs: MomentEquations) -> Callable[[Index], sp.Expr]:
    if name == "zero":
        return lambda i: zero_closure(i, eqs.M)
    if name == "normal":
        return lambda i: normal_closure(i, eqs.M)
    if name == "poisson":
        return lambda i: poisson_closure(i, eqs.mu)
    if name == "log-normal":
        return lambda i: log_normal_closure(i, eqs.mu)
    if name == "gamma":
        return lambda i: gamma_closure(i, eqs.mu)
    return lambda i: derivative_matching_closure(i, eqs.mu, eqs.m_order)


def _central_table(eqs: MomentEquations) -> Dict[Index, sp.Expr]:
    if eqs.M is not None:
        return eqs.M
    # Raw systems only need the central symbols as placeholders.
    return define_central_moments(eqs.system.n_species, eqs.q_order, eqs.iv)


def moment_closure(eqs: MomentEquations, closure: str) -> MomentEquations:
    """Close a moment hierarchy.

    Every moment of order ``m_order < |i| <= q_order`` on the right-hand sides
    is replaced by its closure expression in the tracked moments.

    Parameters
    ----------
    eqs:
        Unclosed raw or central moment equations.
    closure:
        One of ``"zero"``, ``"normal"``, ``"poisson"``, ``"log-normal"``, ``"gamma"``,
        ``"derivative matching"`` (case and ``-``/``_`` insensitive).

    Returns
    -------
    MomentEquations
        A new, closed system; ``eqs`` is left untouched.
    """
    name = normalize_closure_name(closure)
    if eqs.closure is not None:
        raise ValueError(f"moment equations are already closed with '{eqs.closure}'")
    if name in _NEEDS_SECOND_ORDER and eqs.m_order < 2:
        raise ValueError(f"'{name}' closure requires m_order >= 2; got {eqs.m_order}")

    n = eqs.system.n_species
    m = eqs.m_order
    mu = eqs.mu
    M = _central_table(eqs)
    close = _closure_function(name, dataclasses.replace(eqs, M=M))
    higher = moment_indices(n, eqs.q_order, min_order=m + 1)

    # Tracked moments expressed in the equations' own moment type.
    if eqs.kind == "central":
        tracked = {mu[k]: raw_in_terms_of_central(k, mu, M) for k in moment_indices(n, m, min_order=2)}
    else:
        tracked = {M[k]: central_in_terms_of_raw(k, mu) for k in moment_indices(n, m, min_order=2)}

    replacements: Dict[sp.Expr, sp.Expr] = {}
    for i in higher:
        if eqs.kind == "central" and name in _CENTRAL_CLOSURES:
            target, expr = M[i], close(i)
        elif eqs.kind == "raw" and name in _RAW_CLOSURES:
            target, expr = mu[i], close(i)
        elif eqs.kind == "central":
            # M_i = Σ C(i,k) (-μ)^(i-k) μ_k with higher raw μ_k closed in raw form
            target = M[i]
            expr = sp.Integer(0)
            means = _means(mu, n)
            for k in sub_indices(i):
                raw_k = close(k) if moment_order(k) > m else mu[k]
                term = index_binomial(i, k) * raw_k.xreplace(tracked)
                for mj, ij, kj in zip(means, i, k):
                    term *= (-mj) ** (ij - kj)
                expr += term
        else:
            # μ_i = Σ C(i,k) μ^(i-k) M_k with higher central M_k closed in central form
            target = mu[i]
            expr = sp.Integer(0)
            means = _means(mu, n)
            for k in sub_indices(i):
                central_k = close(k) if moment_order(k) > m else M[k]
                term = index_binomial(i, k) * central_k.xreplace(tracked)
                for mj, ij, kj in zip(means, i, k):
                    term *= mj ** (ij - kj)
                expr += term
        if name in _POLYNOMIAL_CLOSURES:
            expr = sp.expand(expr)
        replacements[target] = expr

    closed: Dict[Index, sp.Expr] = {}
    for idx, rhs in eqs.equations.items():
        new_rhs = rhs.xreplace(replacements)
        if name in _POLYNOMIAL_CLOSURES:
            new_rhs = sp.expand(new_rhs)
        closed[idx] = new_rhs

    logger.debug("applied '%s' closure to %d %s moment equations", name, len(closed), eqs.kind)
    return dataclasses.replace(
        eqs,
        equations=closed,
        closure=name,
        closure_exprs=replacements,
    )
