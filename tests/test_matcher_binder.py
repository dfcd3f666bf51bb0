import pytest

from guardproto.core.errors import InvalidSpecification, MissingSubjectArgument
from guardproto.core.matcher import (
    ANY,
    Attrs,
    Bind,
    InstanceOf,
    MapOf,
    TupleOf,
    Value,
    all_of,
    always_true,
    as_matcher,
    as_pattern,
    bind,
    compile_predicate,
    guard_from,
    when,
    zero_arity_params,
)


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y


def test_as_pattern_coercion():
    assert isinstance(as_pattern(int), InstanceOf)
    assert isinstance(as_pattern((1, int)), TupleOf)
    assert isinstance(as_pattern({"k": 1}), MapOf)
    assert isinstance(as_pattern("x"), Value)
    assert as_pattern(ANY) is ANY


def test_value_pattern_matches_numbers_by_exact_type():
    assert Value(1).match(1, {})
    assert not Value(1).match(True, {})
    assert not Value(True).match(1, {})
    assert not Value(1).match(1.0, {})
    assert not Value(1.0).match(1, {})
    assert Value(2.5).match(2.5, {})
    assert not Value("1").match(1, {})


def test_repeated_bind_name_requires_equal_values():
    p = TupleOf(Bind("a"), Bind("a"))
    assert p.match((1, 1), {})
    assert not p.match((1, 2), {})


def test_map_pattern_is_a_subset_match():
    p = MapOf({"kind": "circle", "r": Bind("r")})
    env = {}
    assert p.match({"kind": "circle", "r": 2, "extra": True}, env)
    assert env == {"r": 2}
    assert not p.match({"kind": "square"}, {})


def test_attrs_pattern():
    p = Attrs(Point, x=0, y=Bind("y"))
    env = {}
    assert p.match(Point(0, 5), env)
    assert env == {"y": 5}
    assert not p.match(Point(1, 5), {})


def test_bind_without_subject_zips_positionally():
    bindings = bind(None, as_matcher(int), ("a", "b"))
    assert [b.param for b in bindings] == ["a", "b"]
    assert bindings[0].pattern is not None
    assert bindings[1].pattern is None


def test_bind_with_subject_only_touches_subject_param():
    bindings = bind("v", as_matcher(int), ("x", "v"))
    assert bindings[0].pattern is None
    assert bindings[1].pattern is not None


def test_subject_requires_exactly_one_matcher_entry():
    with pytest.raises(InvalidSpecification):
        bind("v", as_matcher([int, str]), ("v",))


def test_subject_missing_from_params():
    with pytest.raises(MissingSubjectArgument):
        bind("v", as_matcher(int), ("x",))


def test_compile_predicate_binds_params_and_patterns():
    predicate = compile_predicate(bind(None, as_matcher(Bind("n", int)), ("a", "_b")))
    assert predicate((3, 4)) == {"a": 3, "n": 3}
    assert predicate(("x", 4)) is None
    assert predicate((3,)) is None


def test_guards_combine():
    def positive(b):
        return b["n"] > 0

    def small(b):
        return b["n"] < 10

    assert guard_from(as_matcher(int)) is always_true
    assert all_of([always_true, positive]) is positive

    combined = guard_from([when(Bind("n", InstanceOf(int)), positive), when(ANY, small)])
    assert combined.__name__ == "positive and small"
    assert combined({"n": 3})
    assert not combined({"n": 30})


def test_zero_arity_params():
    assert zero_arity_params(None) == ("_unused",)
    assert zero_arity_params("value") == ("value",)
