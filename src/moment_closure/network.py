from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import sympy as sp

from .propensities import NonPolynomialTermError, decompose_polynomial
from .reaction import Reaction


def _sanitize_symbol_name(name: str) -> str:
    # SymPy symbols may include many characters, but we keep a conservative subset
    allowed = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_")
    if not name:
        return "x"
    cleaned = "".join(ch if ch in allowed else "_" for ch in name)
    if cleaned[0].isdigit():
        cleaned = "x_" + cleaned
    return cleaned


@dataclass
class ReactionSystem:
    """A stochastic reaction system.

    Parameters
    ----------
    n_species:
        Number of species.
    reactions:
        List of `Reaction` objects.
    species_names:
        Optional list of length n with names (used for the species symbols).
    combinatoric_ratelaws:
        Use x(x-1)/2-style combinatoric factors in mass-action propensities.

    Notes
    -----
    The molecule numbers x evolve by jumps x -> x + ν_r at rate a_r(x). The
    chemical master equation of this jump process is the starting point of
    the moment expansion.
    """

    n_species: int
    reactions: List[Reaction]
    species_names: Optional[List[str]] = None
    combinatoric_ratelaws: bool = True

    def __post_init__(self) -> None:
        if self.n_species <= 0:
            raise ValueError("n_species must be positive")
        if not self.reactions:
            raise ValueError("a reaction system needs at least one reaction")
        if any(r.n_species != self.n_species for r in self.reactions):
            raise ValueError("all reactions must use the same n_species")
        if self.species_names is not None:
            if len(self.species_names) != self.n_species:
                raise ValueError("species_names must have length n_species")

        if self.species_names is None:
            names = [f"x{i+1}" for i in range(self.n_species)]
        else:
            names = [_sanitize_symbol_name(s) for s in self.species_names]
        self._x = sp.Matrix([sp.Symbol(nm) for nm in names])

        # Custom propensities may spell a species with other assumptions
        # (e.g. positive=True) or by its unsanitized name; bind those to the
        # species symbols so they are not mistaken for parameters.
        by_name: Dict[str, sp.Symbol] = {}
        for i, sym in enumerate(self._x):
            by_name[str(sym)] = sym
            if self.species_names is not None:
                by_name[str(self.species_names[i])] = sym
        rebound: List[Reaction] = []
        for r in self.reactions:
            if r.propensity is not None:
                expr = sp.sympify(r.propensity)
                subs = {
                    s: by_name[s.name]
                    for s in expr.free_symbols
                    if s.name in by_name and s != by_name[s.name]
                }
                if subs:
                    r = dataclasses.replace(r, propensity=expr.xreplace(subs))
            rebound.append(r)
        self.reactions = rebound

    @property
    def x_symbols(self) -> Tuple[sp.Symbol, ...]:
        return tuple(self._x)

    @property
    def parameters(self) -> List[sp.Symbol]:
        """Non-species symbols in rates and propensities (in order of appearance)."""
        species = set(self.x_symbols)
        seen = set()
        out: List[sp.Symbol] = []
        for r in self.reactions:
            exprs = [sp.sympify(r.rate)]
            if r.propensity is not None:
                exprs.append(sp.sympify(r.propensity))
            for e in exprs:
                for sym in sorted(e.free_symbols, key=lambda z: str(z)):
                    if sym not in species and sym not in seen:
                        seen.add(sym)
                        out.append(sym)
        return out

    def species_index(self) -> Dict[sp.Symbol, int]:
        """Mapping species symbol -> position, as consumed by the decomposer."""
        return {s: i for i, s in enumerate(self.x_symbols)}

    def propensities(self) -> List[sp.Expr]:
        x = list(self.x_symbols)
        return [r.propensity_expr(x, combinatoric=self.combinatoric_ratelaws) for r in self.reactions]

    def stoichiometric_matrix(self) -> sp.Matrix:
        """Return the net stoichiometry matrix S with columns ν_r."""
        cols = [r.reaction_vector() for r in self.reactions]
        return sp.Matrix.hstack(*cols)

    def reactant_matrix(self) -> sp.Matrix:
        cols = [sp.Matrix(r.reactants) for r in self.reactions]
        return sp.Matrix.hstack(*cols)

    def rate_equations(self) -> sp.Matrix:
        """Deterministic mean-field RHS Σ_r ν_r a_r(x) as an n×1 Matrix."""
        F = sp.Matrix.zeros(self.n_species, 1)
        for r, a in zip(self.reactions, self.propensities()):
            F += r.reaction_vector() * a
        return sp.expand(F)

    def is_polynomial(self) -> bool:
        """True iff every propensity decomposes into species monomials."""
        smap = self.species_index()
        try:
            for a in self.propensities():
                decompose_polynomial(sp.expand(a), smap)
        except NonPolynomialTermError:
            return False
        return True

    def summary(self) -> str:
        """Human-readable summary."""
        lines = []
        lines.append(f"ReactionSystem(n_species={self.n_species}, n_reactions={len(self.reactions)})")
        lines.append("Species: " + ", ".join(str(s) for s in self.x_symbols))
        lines.append("Parameters: " + ", ".join(str(k) for k in self.parameters))
        for r, a in zip(self.reactions, self.propensities()):
            lines.append(f"  ν = {r.net_stoichiometry}, a = {sp.sstr(a)}")
        return "\n".join(lines)

    def reactions_to_latex(self) -> str:
        """Export the reactions to LaTeX, one ``align`` row per reaction."""

        def complex_to_str(coeffs):
            terms = []
            names = self.species_names or [str(s) for s in self.x_symbols]
            for name, c in zip(names, coeffs):
                c = int(c)
                if c == 0:
                    continue
                if c == 1:
                    terms.append(f"{name}")
                else:
                    terms.append(f"{c}{name}")
            return " + ".join(terms) if terms else "\\varnothing"

        lines = []
        for r in self.reactions:
            lhs = complex_to_str(r.reactants)
            rhs = complex_to_str(r.products)
            k = sp.latex(r.rate)
            lines.append(f"{lhs} &\\xrightarrow{{{k}}} {rhs}")

        body = " \\\\\n".join(lines)
        return "\\begin{align}\n" + body + "\n\\end{align}"
