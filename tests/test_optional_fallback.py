from guardproto.core.consolidation import consolidate
from guardproto.core.consolidation.consolidator import UNDOCUMENTED
from guardproto.core.matcher import as_matcher
from guardproto.core.registry import Implementation
from guardproto.core.spec import define_protocol, doc, optional, required


def label(value):
    return "default"


SPEC = define_protocol("P", [required("f", "x"), doc("Label a value."), optional(label)])


def test_optional_falls_back_to_protocol_default():
    ints = Implementation(
        protocol="P",
        name="Ints",
        matcher=as_matcher(int),
        handlers={("f", 1): lambda x: x, ("label", 1): lambda x: "int"},
    )
    strs = Implementation(protocol="P", name="Strs", matcher=as_matcher(str), handlers={("f", 1): lambda x: x})
    unit = consolidate(SPEC, [ints, strs])

    assert unit.label(1) == "int"
    assert unit.label("s") == "default"
    assert unit.label(1.5) == "default"


def test_optional_omitted_by_every_implementation():
    strs = Implementation(protocol="P", name="Strs", matcher=as_matcher(str), handlers={("f", 1): lambda x: x})
    chain = consolidate(SPEC, [strs]).chain("label", 1)
    assert [c.terminal for c in chain.clauses] == [True]
    assert chain("anything") == "default"


def test_docs_land_on_chains():
    unit = consolidate(SPEC, [])
    assert unit.chain("label", 1).doc == "Label a value."
    assert unit.chain("f", 1).doc == UNDOCUMENTED
