"""Monomial decomposition of polynomial propensity functions.

Raw moment equations need every propensity written as

    a(x) = Σ_terms c * x_1^p_1 * ... * x_n^p_n

with coefficients ``c`` free of species and nonnegative integer powers ``p``.
The decomposition reads this structure off an already expanded SymPy
expression; it never expands or simplifies on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple, Union

import sympy as sp

logger = logging.getLogger(__name__)


Powers = Tuple[int, ...]
SpeciesKey = Union[sp.Expr, str]


class NonPolynomialTermError(ValueError):
    """A term is not a coefficient times nonnegative integer species powers."""

    def __init__(self, term: sp.Expr, reason: str) -> None:
        self.term = term
        self.reason = reason
        super().__init__(f"non-polynomial term '{term}': {reason}")


@dataclass(frozen=True)
class MonomialDecomposition:
    """Coefficients and exponent vectors of a polynomial in the species."""

    coefficients: Tuple[sp.Expr, ...]
    powers: Tuple[Powers, ...]

    def __len__(self) -> int:
        return len(self.coefficients)

    @property
    def degree(self) -> int:
        """Maximum total degree over all terms (0 if there are none)."""
        return max((sum(p) for p in self.powers), default=0)

    def to_expr(self, species: Sequence[sp.Expr]) -> sp.Expr:
        """Rebuild the polynomial from its terms."""
        out = sp.Integer(0)
        for c, p in zip(self.coefficients, self.powers):
            mon = sp.Integer(1)
            for s, k in zip(species, p):
                if k:
                    mon *= s ** k
            out += c * mon
        return out


def _ordered_species(species_index: Mapping[SpeciesKey, int]) -> List[sp.Expr]:
    """Species sorted by their position in the mapping."""
    if not species_index:
        raise ValueError("species_index must not be empty")
    positions = [int(v) for v in species_index.values()]
    if len(set(positions)) != len(positions):
        raise ValueError("species_index positions must be unique")

    out: List[sp.Expr] = []
    for key, _pos in sorted(species_index.items(), key=lambda kv: int(kv[1])):
        out.append(sp.Symbol(key) if isinstance(key, str) else sp.sympify(key))
    return out


def _decompose_term(
    term: sp.Expr,
    slots: Dict[sp.Expr, int],
    species: Sequence[sp.Expr],
) -> Tuple[sp.Expr, Powers]:
    coeff = sp.Integer(1)
    powers = [0] * len(species)
    for factor in sp.Mul.make_args(term):
        base, exp = factor.as_base_exp()
        slot = slots.get(base)
        if slot is not None:
            if not (exp.is_Integer and exp > 0):
                raise NonPolynomialTermError(term, f"species {base} has exponent {exp}")
            powers[slot] += int(exp)
        elif factor.has(*species):
            raise NonPolynomialTermError(term, f"factor {factor} is not a power of a single species")
        else:
            coeff *= factor
    return coeff, tuple(powers)


def decompose_polynomial(expr: sp.Expr, species_index: Mapping[SpeciesKey, int]) -> MonomialDecomposition:
    """Decompose an expanded polynomial into coefficients and exponent vectors.

    Parameters
    ----------
    expr:
        SymPy expression, already in sum-of-monomials form.
    species_index:
        Mapping species -> position. Keys are SymPy symbols, applied functions
        such as ``x(t)``, or names (converted to plain Symbols). Exponent
        vectors follow the order of the positions, so 0- and 1-based maps
        behave the same.

    Returns
    -------
    MonomialDecomposition
        Terms sharing an exponent vector are merged; terms are sorted by
        exponent vector in descending lexicographic order.

    Raises
    ------
    NonPolynomialTermError
        If a species occurs with a negative or non-integer exponent, or inside
        any other non-monomial factor (e.g. ``1/(y + 1)``).
    """
    species = _ordered_species(species_index)
    slots = {s: i for i, s in enumerate(species)}

    merged: Dict[Powers, sp.Expr] = {}
    for term in sp.Add.make_args(sp.sympify(expr)):
        if term == 0:
            continue
        coeff, powers = _decompose_term(term, slots, species)
        merged[powers] = merged.get(powers, sp.Integer(0)) + coeff

    items = sorted(
        ((p, c) for p, c in merged.items() if c != 0),
        key=lambda pc: pc[0],
        reverse=True,
    )
    return MonomialDecomposition(
        coefficients=tuple(c for _p, c in items),
        powers=tuple(p for p, _c in items),
    )


def polynomial_propensities(
    propensities: Sequence[sp.Expr],
    species_index: Mapping[SpeciesKey, int],
) -> Tuple[List[List[sp.Expr]], List[List[Powers]], int]:
    """Decompose a list of propensities.

    Returns
    -------
    (coefficients, powers, max_degree)
        ``coefficients[r]`` and ``powers[r]`` are the parallel term lists of
        the r-th propensity; ``max_degree`` is the largest total degree over
        all of them.
    """
    coefficients: List[List[sp.Expr]] = []
    powers: List[List[Powers]] = []
    max_degree = 0
    for a in propensities:
        dec = decompose_polynomial(a, species_index)
        coefficients.append(list(dec.coefficients))
        powers.append(list(dec.powers))
        max_degree = max(max_degree, dec.degree)

    logger.debug("decomposed %d propensities, max degree %d", len(coefficients), max_degree)
    return coefficients, powers, max_degree
