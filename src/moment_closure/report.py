"""Human-readable reporting utilities.

Plain-text and LaTeX renderings of moment equations and of the closure
functions that were substituted into them. Nothing here is required for the
algebra; it is strictly presentation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import sympy as sp

from .expansion import MomentEquations


def _expr_to_str(e: sp.Expr) -> str:
    """Stable string for SymPy expressions in reports."""
    return sp.sstr(e)


@dataclass
class ReportOptions:
    """Tunable knobs for report verbosity."""

    max_equations: int = 50
    include_closure: bool = True
    time_derivative: str = "d{}/dt"


def format_moment_equations(
    eqs: MomentEquations,
    *,
    options: Optional[ReportOptions] = None,
) -> str:
    """Format moment equations as ``dμ₁₀/dt = ...`` lines."""
    opt = options or ReportOptions()
    t_str = str(eqs.iv)

    def name(sym: sp.Expr) -> str:
        # μ₁₀(t) -> μ₁₀
        s = str(sym)
        suffix = f"({t_str})"
        return s[: -len(suffix)] if s.endswith(suffix) else s

    title = f"{eqs.kind} moment equations (m_order={eqs.m_order}, q_order={eqs.q_order})"
    if eqs.closure:
        title += f", {eqs.closure} closure"
    lines: List[str] = [title]

    items = list(eqs.equations.items())
    for idx, rhs in items[: int(opt.max_equations)]:
        lhs = opt.time_derivative.format(name(eqs.moment_symbol(idx)))
        lines.append(f"  {lhs} = {_expr_to_str(rhs)}")
    if len(items) > opt.max_equations:
        lines.append(f"  ... ({len(items) - opt.max_equations} more)")

    if opt.include_closure and eqs.closure_exprs:
        lines.append("Closure functions:")
        for sym, expr in eqs.closure_exprs.items():
            lines.append(f"  {name(sym)} = {_expr_to_str(expr)}")

    higher = eqs.higher_order_moments()
    if higher:
        lines.append("Unclosed moments: " + ", ".join(name(f) for f in higher))

    return "\n".join(lines)


def moment_equations_to_latex(eqs: MomentEquations) -> str:
    """Export the moment ODEs to LaTeX.

    Returns an ``align`` environment with equations of the form
        \\frac{d\\mu_{10}}{dt} &= ...
    """
    lines = []
    for ode in eqs.odes():
        lhs = sp.latex(ode.lhs)
        rhs = sp.latex(ode.rhs)
        lines.append(f"{lhs} &= {rhs}")
    body = " \\\\\n".join(lines)
    return "\\begin{align}\n" + body + "\n\\end{align}"
