import pytest

from guardproto.core.consolidation import consolidate
from guardproto.core.errors import UnimplementedProtocolEx
from guardproto.core.matcher import as_matcher
from guardproto.core.registry import Implementation
from guardproto.core.spec import define_protocol, optional, required


def _ints(protocol, handlers):
    return Implementation(protocol=protocol, name="Ints", matcher=as_matcher(int), handlers=handlers)


@pytest.mark.parametrize("as_name", [None, "value"])
def test_required_zero_arity_dispatches_on_a_prototype(as_name):
    spec = define_protocol("P", [required("sample")], as_name=as_name)
    unit = consolidate(spec, [_ints("P", {("sample", 0): lambda: 1})])

    assert unit.callbacks() == [("sample", 0), ("sample", 1)]
    assert unit.sample(42) == 1

    with pytest.raises(UnimplementedProtocolEx) as ei:
        unit.sample("x")
    assert (ei.value.arity, ei.value.value) == (1, "x")


def test_required_zero_arity_entry_always_raises():
    spec = define_protocol("P", [required("sample")])
    unit = consolidate(spec, [_ints("P", {("sample", 0): lambda: 1})])

    with pytest.raises(UnimplementedProtocolEx) as ei:
        unit.sample()
    assert ei.value.arity == 0
    assert ei.value.value == ()
    assert unit.chain("sample", 0).doc == "See `sample/1`"


def test_optional_zero_arity_bounces_to_default():
    def zero():
        return "default"

    spec = define_protocol("P", [optional(zero)])
    unit = consolidate(spec, [_ints("P", {("zero", 0): lambda: 0})])

    assert unit.zero() == "default"
    assert unit.zero(5) == 0
    assert unit.zero("x") == "default"
