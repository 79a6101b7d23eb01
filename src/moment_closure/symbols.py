"""Moment symbols and multi-index bookkeeping.

Moments are indexed by multi-indices ``i = (i_1, ..., i_n)`` with one entry
per species. A raw moment is ``μ_i = E[x_1^i_1 ... x_n^i_n]`` and a central
moment is ``M_i = E[(x_1-μ_1)^i_1 ... (x_n-μ_n)^i_n]``.

Names are generated on demand from the index (``μ₂₁₀``, ``M₁₀₂``) and every
moment is an undefined function of the time variable, so that the equations
can be differentiated and printed directly.
"""

from __future__ import annotations

from math import comb
from itertools import product
from typing import Dict, List, Optional, Sequence, Tuple

import sympy as sp


Index = Tuple[int, ...]

TIME = sp.Symbol("t")

_SUBSCRIPTS = str.maketrans("0123456789", "₀₁₂₃₄₅₆₇₈₉")


def subscript(index: Sequence[int]) -> str:
    """Render a multi-index as Unicode subscript digits."""
    return "".join(str(int(i)) for i in index).translate(_SUBSCRIPTS)


def moment_symbol_name(prefix: str, index: Sequence[int]) -> str:
    """Return the display name of a moment, e.g. ``moment_symbol_name("μ", (2, 1, 0)) == "μ₂₁₀"``."""
    if any(int(i) < 0 for i in index):
        raise ValueError(f"moment indices must be nonnegative; got {tuple(index)}")
    return f"{prefix}{subscript(index)}"


def moment_order(index: Sequence[int]) -> int:
    return sum(int(i) for i in index)


def unit_index(n_species: int, j: int) -> Index:
    return tuple(1 if k == j else 0 for k in range(n_species))


def add_indices(a: Sequence[int], b: Sequence[int]) -> Index:
    return tuple(int(x) + int(y) for x, y in zip(a, b))


def sub_indices(index: Sequence[int]) -> List[Index]:
    """All multi-indices k with 0 <= k <= index componentwise."""
    return [tuple(k) for k in product(*(range(int(i) + 1) for i in index))]


def index_binomial(i: Sequence[int], k: Sequence[int]) -> int:
    """Multivariate binomial coefficient Π_j C(i_j, k_j)."""
    out = 1
    for ij, kj in zip(i, k):
        out *= comb(int(ij), int(kj))
    return out


def _indices_of_order(n_species: int, total: int) -> List[Index]:
    if n_species == 1:
        return [(total,)]
    out: List[Index] = []
    for first in range(total, -1, -1):
        for rest in _indices_of_order(n_species - 1, total - first):
            out.append((first,) + rest)
    return out


def moment_indices(n_species: int, order: int, *, min_order: int = 0) -> List[Index]:
    """Return all multi-indices with ``min_order <= |i| <= order``.

    Indices are grouped by total order; within one order they are sorted in
    descending lexicographic order, e.g. for two species and order 2:
    ``(0,0), (1,0), (0,1), (2,0), (1,1), (0,2)``.
    """
    if n_species <= 0:
        raise ValueError("n_species must be positive")
    if order < 0 or min_order < 0:
        raise ValueError("moment orders must be nonnegative")
    out: List[Index] = []
    for total in range(int(min_order), int(order) + 1):
        out.extend(_indices_of_order(n_species, total))
    return out


def define_raw_moments(
    n_species: int,
    order: int,
    iv: Optional[sp.Symbol] = None,
    *,
    prefix: str = "μ",
) -> Dict[Index, sp.Expr]:
    """Raw moment symbols up to ``order``.

    The zeroth moment is the constant 1; all others are functions of ``iv``
    (default ``t``), e.g. ``μ₂₁₀(t)``.
    """
    t = iv if iv is not None else TIME
    mu: Dict[Index, sp.Expr] = {}
    for idx in moment_indices(n_species, order):
        if moment_order(idx) == 0:
            mu[idx] = sp.Integer(1)
        else:
            mu[idx] = sp.Function(moment_symbol_name(prefix, idx))(t)
    return mu


def define_central_moments(
    n_species: int,
    order: int,
    iv: Optional[sp.Symbol] = None,
    *,
    prefix: str = "M",
) -> Dict[Index, sp.Expr]:
    """Central moment symbols up to ``order``.

    ``M_0 = 1`` and every first-order central moment vanishes identically.
    """
    t = iv if iv is not None else TIME
    M: Dict[Index, sp.Expr] = {}
    for idx in moment_indices(n_species, order):
        k = moment_order(idx)
        if k == 0:
            M[idx] = sp.Integer(1)
        elif k == 1:
            M[idx] = sp.Integer(0)
        else:
            M[idx] = sp.Function(moment_symbol_name(prefix, idx))(t)
    return M
