from moment_closure import (
    ReportOptions,
    birth_death_network,
    dimerisation_network,
    format_moment_equations,
    generate_raw_moment_eqs,
    moment_closure,
    moment_equations_to_latex,
)


def test_text_report_of_unclosed_equations():
    eqs = generate_raw_moment_eqs(dimerisation_network(), 2)
    text = format_moment_equations(eqs)

    assert text.splitlines()[0] == "raw moment equations (m_order=2, q_order=3)"
    assert "dμ₁/dt = " in text
    assert "dμ₂/dt = " in text
    assert "Unclosed moments: μ₃" in text


def test_text_report_lists_closure_functions():
    eqs = moment_closure(generate_raw_moment_eqs(dimerisation_network(), 2), "zero")
    text = format_moment_equations(eqs)

    assert "zero closure" in text.splitlines()[0]
    assert "Closure functions:" in text
    assert "  μ₃ = " in text
    assert "Unclosed" not in text

    short = format_moment_equations(eqs, options=ReportOptions(max_equations=1, include_closure=False))
    assert "... (1 more)" in short
    assert "Closure functions:" not in short


def test_latex_export():
    eqs = generate_raw_moment_eqs(birth_death_network(), 2)
    tex = moment_equations_to_latex(eqs)
    assert tex.startswith("\\begin{align}")
    assert tex.endswith("\\end{align}")
    assert tex.count("&=") == 2
