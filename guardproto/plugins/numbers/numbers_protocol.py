from __future__ import annotations

from abc import abstractmethod

from guardproto import protocol, self_test


@protocol("Numbers")
class Numbers:
    """Arithmetic over numeric kinds that know nothing about each other."""

    @abstractmethod
    def add(a, b):
        """Sum of two values of the same kind."""

    @abstractmethod
    def mult(a, b):
        ...

    @abstractmethod
    def add_id(value):
        """Additive identity for the kind of `value`."""

    @abstractmethod
    def sample():
        """A representative value; dispatch as `sample(prototype)`."""

    def describe(value):
        return repr(value)

    @self_test
    def add_identity(impl, options):
        x = options.get("value", impl.sample())
        got = impl.add(x, impl.add_id(x))
        if got != x:
            return ("error", {"value": x, "got": got})
        return ("ok", got)


PROTOCOL = Numbers
