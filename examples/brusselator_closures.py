"""Brusselator: compare closures on the second-order raw moment equations.

The Brusselator's trimolecular reaction makes the moment hierarchy
open-ended. This script closes the second-order raw moment equations with
several closures and integrates each of them.

Run:
    python examples/brusselator_closures.py
"""

from __future__ import annotations

from moment_closure import (
    brusselator_network,
    deterministic_initial_conditions,
    generate_raw_moment_eqs,
    moment_closure,
    solve_moment_equations,
)


def main() -> None:
    net = brusselator_network()
    print(net.summary())

    eqs = generate_raw_moment_eqs(net, 2)
    print(f"\nUnclosed moments: {eqs.higher_order_moments()}")

    params = {"c1": 0.9, "c2": 2.0, "c3": 1.0, "c4": 0.1}
    ic = deterministic_initial_conditions(eqs, [1, 1])

    for closure in ("normal", "log-normal", "derivative matching"):
        closed = moment_closure(eqs, closure)
        res = solve_moment_equations(closed, params, ic, t_span=(0.0, 20.0))
        status = "ok" if res["success"] else res["message"]
        print(f"\n{closure}: {status}")
        for sym, row in zip(res["moments"], res["y"]):
            print(f"  {sym} at t={res['t'][-1]:.1f}: {row[-1]:.4f}")


if __name__ == "__main__":
    main()
