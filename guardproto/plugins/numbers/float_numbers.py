from __future__ import annotations

import math

from guardproto import implements, self_test


@implements("Numbers", matcher=float)
class Float:
    def add(a, b):
        return a + b

    def mult(a, b):
        return a * b

    def add_id(value):
        return 0.0

    def sample():
        return 0.1

    def describe(value):
        return f"{value:g}"

    @self_test
    def add_identity(impl, options):
        x = impl.sample()
        if not math.isclose(impl.add(x, impl.add_id(x)), x):
            return ("error", x)
        return ("ok", x)


IMPLEMENTATIONS = [Float]
