"""Top-level package API for moment_closure.

This package derives moment equations of stochastic chemical reaction
networks from the chemical master equation and truncates the resulting
hierarchy with moment closure approximations. All algebra is done with SymPy;
closed systems can be integrated with SciPy and compared against stochastic
simulations.

Public API:
- Reaction, ReactionSystem
- polynomial_propensities, decompose_polynomial, NonPolynomialTermError
- define_raw_moments, define_central_moments, moment_symbol_name
- generate_raw_moment_eqs, generate_central_moment_eqs, MomentEquations
- moment_closure and the individual closure functions
- solve_moment_equations, gillespie_ssa, sample_moments
- Built-in example networks
"""

from .reaction import Reaction
from .network import ReactionSystem
from .propensities import (
    MonomialDecomposition,
    NonPolynomialTermError,
    decompose_polynomial,
    polynomial_propensities,
)
from .symbols import (
    define_central_moments,
    define_raw_moments,
    moment_indices,
    moment_symbol_name,
)
from .expansion import (
    MomentEquations,
    generate_central_moment_eqs,
    generate_raw_moment_eqs,
)
from .closures import (
    CLOSURES,
    central_in_terms_of_raw,
    derivative_matching_closure,
    gamma_closure,
    log_normal_closure,
    moment_closure,
    normal_closure,
    poisson_closure,
    raw_in_terms_of_central,
    zero_closure,
)
from .simulation import (
    SolverOptions,
    deterministic_initial_conditions,
    gillespie_ssa,
    sample_moments,
    solve_moment_equations,
)
from .report import (
    ReportOptions,
    format_moment_equations,
    moment_equations_to_latex,
)
from .examples import (
    birth_death_network,
    brusselator_network,
    dimerisation_network,
    negative_feedback_gene_network,
)

__all__ = [
    "Reaction",
    "ReactionSystem",
    "MonomialDecomposition",
    "NonPolynomialTermError",
    "decompose_polynomial",
    "polynomial_propensities",
    "define_central_moments",
    "define_raw_moments",
    "moment_indices",
    "moment_symbol_name",
    "MomentEquations",
    "generate_central_moment_eqs",
    "generate_raw_moment_eqs",
    "CLOSURES",
    "central_in_terms_of_raw",
    "derivative_matching_closure",
    "gamma_closure",
    "log_normal_closure",
    "moment_closure",
    "normal_closure",
    "poisson_closure",
    "raw_in_terms_of_central",
    "zero_closure",
    "SolverOptions",
    "deterministic_initial_conditions",
    "gillespie_ssa",
    "sample_moments",
    "solve_moment_equations",
    "ReportOptions",
    "format_moment_equations",
    "moment_equations_to_latex",
    "birth_death_network",
    "brusselator_network",
    "dimerisation_network",
    "negative_feedback_gene_network",
]
