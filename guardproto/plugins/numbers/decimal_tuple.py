"""
Decimals as plain tuples: ("MyDecimal", sign, coefficient, exponent).

sign is 1 or -1; the coefficient is a non-negative int or "qNaN".
`add` is spliced into the dispatch chain clause by clause.
"""
from __future__ import annotations

from guardproto import clause, implements
from guardproto.core.matcher import ANY

TAG = "MyDecimal"
DECIMAL = (TAG, ANY, ANY, ANY)
QNAN = (TAG, ANY, "qNaN", ANY)


def make(value: int, exp: int = 0):
    return (TAG, -1 if value < 0 else 1, abs(value), exp)


def _add(d0, d1):
    _, s0, c0, e0 = d0
    _, s1, c1, e1 = d1
    e = min(e0, e1)
    return make(s0 * c0 * 10 ** (e0 - e) + s1 * c1 * 10 ** (e1 - e), e)


@clause(QNAN, DECIMAL)
def _add_qnan_left(d0, d1):
    return d0


@clause(DECIMAL, QNAN)
def _add_qnan_right(d0, d1):
    return d1


@clause(DECIMAL, DECIMAL)
def _add_finite(d0, d1):
    return _add(d0, d1)


@implements("Numbers", matcher=DECIMAL, inline=[("add_id", 1)])
class MyDecimal:
    add = [_add_qnan_left, _add_qnan_right, _add_finite]

    def mult(d0, d1):
        _, s0, c0, e0 = d0
        _, s1, c1, e1 = d1
        if c0 == "qNaN" or c1 == "qNaN":
            return (TAG, 1, "qNaN", 0)
        return (TAG, s0 * s1, c0 * c1, e0 + e1)

    def add_id(value):
        return (TAG, 1, 0, 0)

    def sample():
        return make(5)

    def describe(value):
        _, s, c, e = value
        return f"{'-' if s < 0 else ''}{c}e{e}"


IMPLEMENTATIONS = [MyDecimal]
