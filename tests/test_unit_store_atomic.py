import threading

import pytest

from guardproto.core.build import ProtocolBuilder
from guardproto.core.errors import MissingRequiredProtocolDefinition
from guardproto.core.matcher import as_matcher
from guardproto.core.registry import DiscoveryLoader, Implementation, ImplementationInfo
from guardproto.core.spec import define_protocol, required

SPEC = define_protocol("P", [required("f", "x")])


class SwappableLoader(DiscoveryLoader):
    def __init__(self, impls):
        self.impls = list(impls)

    def list_protocols(self):
        return ["P"]

    def load_spec(self, protocol):
        return SPEC

    def list_implementations(self, protocol):
        return [ImplementationInfo(implementation=i, priority=i.priority) for i in self.impls]


def _impl(name, handlers):
    return Implementation(protocol="P", name=name, matcher=as_matcher(int), handlers=handlers)


def test_create_unit_bumps_generation(store):
    first = store.create_unit("P", "a")
    second = store.create_unit("P", "b", "plugins/")
    assert second.generation > first.generation
    assert store.get("P") == "b"
    assert store.get_unit("P").source_location == "plugins/"
    assert store.names() == ["P"]


def test_failed_rebuild_keeps_previous_unit(store):
    loader = SwappableLoader([_impl("Good", {("f", 1): lambda x: "good"})])
    builder = ProtocolBuilder(loader, store)

    published = builder.consolidate("P")
    generation = store.get_unit("P").generation
    assert store.get_unit("P").source_location == "registry"

    loader.impls.append(_impl("Broken", {}))
    with pytest.raises(MissingRequiredProtocolDefinition):
        builder.consolidate("P")

    assert builder.get("P") is published
    assert store.get_unit("P").generation == generation
    assert builder.get("P").f(1) == "good"


def test_rebuild_replaces_the_whole_unit(store):
    loader = SwappableLoader([_impl("A", {("f", 1): lambda x: "A"})])
    builder = ProtocolBuilder(loader, store)
    old = builder.consolidate("P")

    loader.impls = [_impl("B", {("f", 1): lambda x: "B"})]
    new = builder.consolidate("P")

    assert new is not old
    assert old.f(1) == "A"
    assert builder.get("P").f(1) == "B"


def test_same_name_publishers_share_a_lock(store):
    assert store.lock_for("P") is store.lock_for("P")
    assert store.lock_for("P") is not store.lock_for("Q")


def test_concurrent_consolidations_all_publish(store):
    loader = SwappableLoader([_impl("A", {("f", 1): lambda x: x})])
    builder = ProtocolBuilder(loader, store)

    threads = [threading.Thread(target=builder.consolidate, args=("P",)) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get_unit("P").generation == 8
    assert builder.get("P").f(3) == 3
