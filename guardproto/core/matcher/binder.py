from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

from guardproto.core.errors import InvalidSpecification, MissingSubjectArgument

from .patterns import Bindings, Guard, MatchSpec, Pattern


UNUSED_PARAM = "_unused"

Predicate = Callable[[Tuple[Any, ...]], Optional[Bindings]]


def always_true(bindings: Mapping[str, Any]) -> bool:
    return True


@dataclass(frozen=True)
class ArgBinding:
    """A callback parameter, optionally destructured by a matcher pattern."""

    param: str
    pattern: Optional[Pattern] = None

    def describe(self) -> str:
        if self.pattern is None:
            return self.param
        return f"{self.pattern.describe()} = {self.param}"


def bind(as_name: Optional[str], matchers: Sequence[MatchSpec], params: Sequence[str]) -> Tuple[ArgBinding, ...]:
    """
    Bind matcher patterns onto a callback's parameter list.

    Without a subject name the patterns zip positionally onto the params;
    params beyond the matcher pass through unbound and surplus patterns are
    dropped. With a subject name the matcher must hold exactly one entry, and
    it destructures only the param carrying that name.
    """
    if as_name is None:
        out = []
        for i, param in enumerate(params):
            pattern = matchers[i].pattern if i < len(matchers) else None
            out.append(ArgBinding(param=param, pattern=pattern))
        return tuple(out)

    if len(matchers) != 1:
        raise InvalidSpecification(tuple(m.describe() for m in matchers))
    if params and as_name not in params:
        raise MissingSubjectArgument(as_name, tuple(params))

    pattern = matchers[0].pattern
    return tuple(ArgBinding(param=p, pattern=pattern if p == as_name else None) for p in params)


def guard_from(matchers: Sequence[MatchSpec]) -> Guard:
    """AND together every guard the matcher carries; `always_true` when none do."""
    guards = [m.guard for m in matchers if m.guard is not None]
    if not guards:
        return always_true
    return all_of(guards)


def all_of(guards: Sequence[Guard]) -> Guard:
    guards = [g for g in guards if g is not always_true]
    if not guards:
        return always_true
    if len(guards) == 1:
        return guards[0]

    def combined(bindings: Mapping[str, Any]) -> bool:
        for g in guards:
            if not g(bindings):
                return False
        return True

    combined.__name__ = " and ".join(getattr(g, "__name__", "guard") for g in guards)
    return combined


def compile_predicate(bindings: Sequence[ArgBinding]) -> Predicate:
    """
    Turn bound params into `(args) -> bindings | None`.

    Every param name is bound to its argument (like `pattern = param`), then
    the pattern, if any, is matched against the same argument.
    """
    frozen = tuple(bindings)

    def predicate(args: Tuple[Any, ...]) -> Optional[Bindings]:
        if len(args) != len(frozen):
            return None
        env: Bindings = {}
        for b, arg in zip(frozen, args):
            if not b.param.startswith("_"):
                env[b.param] = arg
            if b.pattern is not None and not b.pattern.match(arg, env):
                return None
        return env

    return predicate


def zero_arity_params(as_name: Optional[str]) -> Tuple[str]:
    """Synthetic single parameter used when a 0-arity callback is matched at arity 1."""
    return (as_name or UNUSED_PARAM,)


def see_also_doc(name: str) -> str:
    return f"See `{name}/1`"
