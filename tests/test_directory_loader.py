import textwrap
from pathlib import Path

import guardproto
from guardproto.core.consolidation import consolidate
from guardproto.core.registry import DirectoryLoader

BUILTIN = Path(guardproto.__file__).resolve().parent / "plugins" / "numbers"

PROTOCOL_SRC = """
from guardproto import define_protocol, required

PROTOCOL = define_protocol("Greeter", [required("greet", "who")])
"""

IMPL_SRC = """
from guardproto import implements


@implements("Greeter", matcher=str)
class Strings:
    def greet(who):
        return "hello " + who


IMPLEMENTATIONS = [Strings]
"""


def _write(dir_: Path, name: str, src: str) -> None:
    (dir_ / name).write_text(textwrap.dedent(src), encoding="utf-8")


def test_loads_specs_before_implementations(tmp_path):
    # "a_impl" sorts before "z_protocol"; the protocol must still be known at register time
    _write(tmp_path, "a_impl.py", IMPL_SRC)
    _write(tmp_path, "z_protocol.py", PROTOCOL_SRC)

    loader = DirectoryLoader(tmp_path)
    assert loader.load_all() == (1, 1)
    assert loader.list_protocols() == ["Greeter"]
    assert [i.implementation.name for i in loader.list_implementations("Greeter")] == ["Strings"]
    assert loader.warnings == []
    assert sorted(loader.plugin_files()) == ["a_impl", "z_protocol"]


def test_skips_private_modules_and_reports_failures(tmp_path):
    _write(tmp_path, "protocol.py", PROTOCOL_SRC)
    _write(tmp_path, "_helpers.py", "this is not python")
    _write(tmp_path, "broken.py", "raise RuntimeError('nope')\n")
    _write(tmp_path, "empty.py", "X = 1\n")

    loader = DirectoryLoader(tmp_path)
    assert loader.load_all() == (1, 0)

    codes = sorted(w["code"] for w in loader.warnings)
    assert codes == ["plugins.load_failed", "plugins.missing_symbol"]
    failed = next(w for w in loader.warnings if w["code"] == "plugins.load_failed")
    assert failed["data"]["module_path"].endswith("broken.py")


def test_missing_directory(tmp_path):
    loader = DirectoryLoader(tmp_path / "nope")
    assert loader.load_all() == (0, 0)
    assert loader.warnings[0]["code"] == "plugins.dir_missing"


def test_fingerprint_is_stable_across_loads():
    a = DirectoryLoader(BUILTIN)
    a.load_all()
    b = DirectoryLoader(BUILTIN)
    b.load_all()
    assert a.fingerprint == b.fingerprint


def test_fingerprint_changes_with_plugin_source(tmp_path):
    _write(tmp_path, "protocol.py", PROTOCOL_SRC)
    before = DirectoryLoader(tmp_path).fingerprint
    _write(tmp_path, "protocol.py", PROTOCOL_SRC + "\n# edited\n")
    assert DirectoryLoader(tmp_path).fingerprint != before


OTHER_SRC = """
from guardproto import define_protocol, required

PROTOCOL = define_protocol("Other", [required("f", "x"), required("g", "x")])
"""

PARTIAL_SRC = """
from guardproto import implements


@implements("Other", matcher=int)
class Partial:
    def f(x):
        return x
"""


def test_broken_implementation_does_not_block_other_protocols(tmp_path):
    _write(tmp_path, "greeter.py", PROTOCOL_SRC)
    _write(tmp_path, "greeter_strings.py", IMPL_SRC)
    _write(tmp_path, "other.py", OTHER_SRC)
    _write(tmp_path, "partial.py", PARTIAL_SRC + "\n\nIMPLEMENTATIONS = [Partial]\n")

    loader = DirectoryLoader(tmp_path)
    assert loader.load_all() == (2, 1)

    (warning,) = loader.warnings
    assert warning["code"] == "plugins.register_failed"
    assert warning["data"] == {"name": "Other.Partial", "kind": "missing_required_protocol_definition"}
    assert loader.list_implementations("Other") == []

    unit = consolidate(loader.load_spec("Greeter"), loader.list_implementations("Greeter"))
    assert unit.greet("bob") == "hello bob"


def test_duplicate_protocol_is_a_warning(tmp_path):
    _write(tmp_path, "a.py", PROTOCOL_SRC)
    _write(tmp_path, "b.py", PROTOCOL_SRC)

    loader = DirectoryLoader(tmp_path)
    assert loader.load_all() == (1, 0)
    assert [w["code"] for w in loader.warnings] == ["plugins.register_failed"]


def test_builtin_numbers_plugins():
    loader = DirectoryLoader(BUILTIN)
    assert loader.load_all() == (1, 3)
    assert [i.implementation.name for i in loader.list_implementations("Numbers")] == ["Float", "Integer", "MyDecimal"]
