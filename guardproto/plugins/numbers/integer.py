from __future__ import annotations

from guardproto import implements
from guardproto.core.matcher import Bind, InstanceOf, when


def not_bool(bindings):
    return not isinstance(bindings["n"], bool)


@implements("Numbers", matcher=when(Bind("n", InstanceOf(int)), guard=not_bool), priority=10)
class Integer:
    def add(a, b):
        return a + b

    def mult(a, b):
        return a * b

    def add_id(value):
        return 0

    def sample():
        return 1


IMPLEMENTATIONS = [Integer]
