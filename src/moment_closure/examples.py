from __future__ import annotations

import sympy as sp

from .reaction import Reaction
from .network import ReactionSystem


def birth_death_network() -> ReactionSystem:
    """Immigration-death process.

    Network:
        0 -> X   (k)
        X -> 0   (g)

    The stationary distribution is Poisson with mean k/g.
    """
    k, g = sp.symbols("k g", positive=True)

    return ReactionSystem(
        n_species=1,
        reactions=[
            Reaction((0,), (1,), k),
            Reaction((1,), (0,), g),
        ],
        species_names=["X"],
    )


def dimerisation_network() -> ReactionSystem:
    """Production and pairwise annihilation.

    Network:
        0  -> X   (k1)
        2X -> 0   (k2)

    With combinatoric rate laws the second propensity is k2*X*(X-1)/2.
    """
    k1, k2 = sp.symbols("k1 k2", positive=True)

    return ReactionSystem(
        n_species=1,
        reactions=[
            Reaction((0,), (1,), k1),
            Reaction((2,), (0,), k2),
        ],
        species_names=["X"],
    )


def brusselator_network() -> ReactionSystem:
    """Stochastic Brusselator.

    Network:
        0       -> X    (c1)
        2X + Y  -> 3X   (c2)
        X       -> Y    (c3)
        X       -> 0    (c4)

    Species order: [X, Y]
    """
    c1, c2, c3, c4 = sp.symbols("c1 c2 c3 c4", positive=True)

    # 0 -> X
    r1 = Reaction((0, 0), (1, 0), c1)
    # 2X + Y -> 3X
    r2 = Reaction((2, 1), (3, 0), c2)
    # X -> Y
    r3 = Reaction((1, 0), (0, 1), c3)
    # X -> 0
    r4 = Reaction((1, 0), (0, 0), c4)

    return ReactionSystem(
        n_species=2,
        reactions=[r1, r2, r3, r4],
        species_names=["X", "Y"],
    )


def negative_feedback_gene_network() -> ReactionSystem:
    """Self-repressing gene with Hill-type production.

    Network:
        0 -> P   propensity  kb + ka / (1 + (P/K)^2)
        P -> 0   (kd)

    The production propensity is not a polynomial in P, so only the central
    moment expansion (with an explicit Taylor order) applies.
    """
    kb, ka, K, kd = sp.symbols("kb ka K kd", positive=True)
    P = sp.Symbol("P")

    production = kb + ka / (1 + (P / K) ** 2)

    return ReactionSystem(
        n_species=1,
        reactions=[
            Reaction((0,), (1,), ka, propensity=production),
            Reaction((1,), (0,), kd),
        ],
        species_names=["P"],
    )
