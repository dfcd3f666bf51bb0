from guardproto.core.consolidation import consolidate, order_implementations, resolve
from guardproto.core.matcher import ANY, as_matcher
from guardproto.core.registry import Implementation, ImplementationInfo
from guardproto.core.spec import auxiliary, define_protocol, doc, required


def _impl(name, priority=0, protocol="P"):
    return Implementation(
        protocol=protocol,
        name=name,
        matcher=as_matcher(ANY),
        priority=priority,
        handlers={("f", 1): lambda x, _n=name: _n, ("g", 1): lambda x, _n=name: _n},
    )


def test_higher_priority_is_tried_first():
    spec = define_protocol("P", [required("f", "x")])
    unit = consolidate(spec, [_impl("A", 10), _impl("B", 5), _impl("C", 10)])
    assert unit.implementations == ["A", "C", "B"]
    assert unit.chain("f", 1).implementations == ["A", "C", "B"]
    assert unit.f(1) == "A"

    swapped = consolidate(spec, [_impl("C", 10), _impl("A", 10), _impl("B", 5)])
    assert swapped.implementations == ["A", "C", "B"]


def test_equal_priority_orders_by_name():
    ordered = order_implementations([_impl("Y"), _impl("X"), _impl("Z", 1)])
    assert [i.name for i in ordered] == ["Z", "X", "Y"]


def test_declaration_order_does_not_change_implementation_order():
    impls = [_impl("B"), _impl("A", 1)]
    one = consolidate(define_protocol("P", [required("f", "x"), required("g", "x")]), impls)
    two = consolidate(define_protocol("P", [required("g", "x"), required("f", "x")]), impls)
    assert one.chain("f", 1).implementations == two.chain("f", 1).implementations == ["A", "B"]
    assert one.callbacks() == two.callbacks()


def test_discovery_priority_wins_over_implementation_priority():
    spec = define_protocol("P", [required("f", "x")])
    unit = consolidate(spec, [
        ImplementationInfo(implementation=_impl("A", 10), priority=0),
        ImplementationInfo(implementation=_impl("B", 0), priority=3),
    ])
    assert unit.implementations == ["B", "A"]


def test_other_protocols_are_ignored():
    spec = define_protocol("P", [required("f", "x")])
    unit = consolidate(spec, [_impl("A"), _impl("Q", protocol="Other")])
    assert unit.implementations == ["A"]


def test_resolve_keeps_caller_order_unless_priority_sorted():
    spec = define_protocol("P", [required("f", "x")])
    impls = [_impl("B"), _impl("A", 5), _impl("C")]
    assert resolve(spec, impls).implementations == ["B", "A", "C"]
    assert resolve(spec, impls, priority_sorted=True).implementations == ["A", "B", "C"]


def test_unit_carries_auxiliary_and_a_clean_spec():
    spec = define_protocol("P", [auxiliary("type", "t", int), required("f", "x"), doc("trailing")])
    unit = consolidate(spec, [_impl("A")])
    assert unit.auxiliary["t"].value is int
    assert unit.spec().cache == {}
    assert unit.spec().protocol == "P"
