from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import sympy as sp


@dataclass(frozen=True)
class Reaction:
    """A single stochastic reaction.

    Parameters
    ----------
    reactants:
        Stoichiometric coefficients of the reactant complex (length n).
    products:
        Stoichiometric coefficients of the product complex (length n).
    rate:
        Symbol (or SymPy expression) for the rate constant.
    propensity:
        Optional explicit propensity in the species symbols. When given it
        replaces the mass-action law (e.g. for Hill-type regulation).

    Notes
    -----
    With combinatoric rate laws a reaction with reactant coefficients m_j fires
    with propensity

        rate * prod_j x_j (x_j - 1) ... (x_j - m_j + 1) / m_j!

    and changes the state by the net stoichiometry ν = products - reactants.
    """

    reactants: Tuple[int, ...]
    products: Tuple[int, ...]
    rate: sp.Expr
    propensity: Optional[sp.Expr] = None

    def __post_init__(self) -> None:
        if len(self.reactants) != len(self.products):
            raise ValueError("reactants and products must have the same length")
        if any(int(c) < 0 for c in self.reactants) or any(int(c) < 0 for c in self.products):
            raise ValueError("stoichiometric coefficients must be nonnegative integers")

    @property
    def n_species(self) -> int:
        return len(self.reactants)

    @property
    def net_stoichiometry(self) -> Tuple[int, ...]:
        return tuple(int(p) - int(r) for r, p in zip(self.reactants, self.products))

    def reaction_vector(self) -> sp.Matrix:
        """Return ν = products - reactants as an n×1 SymPy Matrix."""
        return sp.Matrix(self.net_stoichiometry)

    def mass_action_propensity(self, x: Sequence[sp.Expr], combinatoric: bool = True) -> sp.Expr:
        if len(x) != self.n_species:
            raise ValueError("x must have length n_species")
        mon = sp.Integer(1)
        for xi, mi in zip(x, self.reactants):
            mi_int = int(mi)
            if not mi_int:
                continue
            if combinatoric:
                for k in range(mi_int):
                    mon *= xi - k
                mon /= sp.factorial(mi_int)
            else:
                mon *= xi ** mi_int
        return sp.expand(self.rate * mon)

    def propensity_expr(self, x: Sequence[sp.Expr], combinatoric: bool = True) -> sp.Expr:
        """Return the propensity a(x) used by the moment expansion."""
        if self.propensity is not None:
            return sp.sympify(self.propensity)
        return self.mass_action_propensity(x, combinatoric=combinatoric)
