import json
import posixpath
import re

import pytest

from flatcrunner.config import RunnerConfig
from flatcrunner.engine.base import Engine, EngineExit
from flatcrunner.engine.memory import MemoryFileSystem
from flatcrunner.runner import FlatcRunner
from flatcrunner.schema import SchemaInput


MONSTER_FBS = """\
include "vec3.fbs";

namespace MyGame.Sample;

table Monster {
  name:string;
  pos:Vec3;
  hp:short = 100;
}

root_type Monster;
file_extension "mon";
"""

VEC3_FBS = """\
namespace MyGame.Sample;

struct Vec3 {
  x:float;
  y:float;
  z:float;
}
"""

MONSTER_JSON = '{"name": "Orc", "pos": {"x": 1, "y": 2, "z": 3}}'

LANGUAGE_SUFFIXES = {
    "cpp": "_generated.h",
    "csharp": ".cs",
    "dart": "_generated.dart",
    "go": ".go",
    "java": ".java",
    "jsonschema": ".schema.json",
    "kotlin": ".kt",
    "kotlin-kmp": ".kt",
    "lobster": "_generated.lobster",
    "lua": ".lua",
    "nim": ".nim",
    "php": ".php",
    "python": ".py",
    "rust": "_generated.rs",
    "swift": "_generated.swift",
    "ts": ".ts",
}

FAKE_MAGIC = b"FAKEFB\x00"


class CountingMemoryFileSystem(MemoryFileSystem):
    """MemoryFileSystem that records every file write."""

    def __init__(self):
        super().__init__()
        self.writes = []

    def write_file(self, path, data):
        self.writes.append(path)
        super().write_file(path, data)


class FakeFlatc(Engine):
    """
    Deterministic stand-in for flatc over an in-memory filesystem.

    Binaries are FAKE_MAGIC + canonical JSON. Output file names follow
    flatc: <input stem>.<file_extension from the schema, default bin>.
    A schema containing "ABORT" makes the engine raise like a crashed
    runtime; a document containing "__no_output__" exits 0 without output.
    """

    live = 0

    def __init__(self, stdout_sink=None, stderr_sink=None):
        super().__init__(stdout_sink, stderr_sink)
        self._fs = CountingMemoryFileSystem()
        self.calls = []
        self.closed = False
        FakeFlatc.live += 1

    @property
    def fs(self):
        return self._fs

    def close(self):
        if not self.closed:
            self.closed = True
            FakeFlatc.live -= 1

    def _fail(self, message, code=1):
        self.print_err(f"error: {message}")
        raise EngineExit(code)

    def _read_schema(self, path):
        try:
            return self._fs.read_file(path, encoding="utf-8")
        except FileNotFoundError:
            self._fail(f"unable to load file: {path}")

    def call_main(self, argv):
        self.calls.append(list(argv))
        if "--help" in argv:
            self.print("Usage: flatc [OPTION]... FILE... [-- BINARY_FILE...]")
            return 0
        if "--version" in argv:
            self.print("flatc version 25.2.10")
            return 0

        flags, includes, positional, binaries = set(), [], [], []
        output_dir = "/"
        args = iter(argv)
        after_dashes = False
        for arg in args:
            if after_dashes:
                binaries.append(arg)
            elif arg == "--":
                after_dashes = True
            elif arg == "-o":
                output_dir = next(args)
            elif arg == "-I":
                includes.append(next(args))
            elif arg == "--python-version":
                flags.add(f"--python-version={next(args)}")
            elif arg.startswith("-"):
                flags.add(arg)
            else:
                positional.append(arg)

        for include_dir in includes:
            if not self._fs.exists(include_dir):
                self._fail(f"include directory not found: {include_dir}")
        if not positional:
            self._fail("no schema given")

        schema_text = self._read_schema(positional[0])
        if "ABORT" in schema_text:
            raise RuntimeError("engine aborted: invariant violated")
        match = re.search(r'file_extension\s+"(\w+)"', schema_text)
        extension = match.group(1) if match else "bin"

        if "--binary" in flags:
            return self._binary(positional[1:], output_dir, extension)
        if "--json" in flags:
            return self._json(binaries, output_dir, flags, schema_text)

        languages = [f for f in flags if f[2:] in LANGUAGE_SUFFIXES]
        if not languages:
            self._fail(f"unknown option(s): {sorted(flags)}")
        return self._code(languages[0][2:], output_dir, flags, schema_text)

    def _binary(self, documents, output_dir, extension):
        for path in documents:
            text = self._fs.read_file(path, encoding="utf-8")
            try:
                doc = json.loads(text)
            except ValueError as e:
                self._fail(f"{path}: malformed json: {e}")
            if "__no_output__" in doc:
                continue
            stem = posixpath.splitext(posixpath.basename(path))[0]
            payload = json.dumps(doc, sort_keys=True, separators=(",", ":"))
            self._fs.write_file(
                f"{output_dir.rstrip('/')}/{stem}.{extension}",
                FAKE_MAGIC + payload.encode("utf-8"),
            )
        return 0

    def _json(self, binaries, output_dir, flags, schema_text):
        if "--raw-binary" not in flags and "file_identifier" not in schema_text:
            self._fail("binary has no file_identifier; use --raw-binary")
        for path in binaries:
            data = self._fs.read_file(path)
            if not data.startswith(FAKE_MAGIC):
                self._fail(f"{path}: binary does not match schema")
            doc = json.loads(data[len(FAKE_MAGIC):].decode("utf-8"))
            if "--defaults-json" in flags:
                doc.setdefault("hp", 100)
            stem = posixpath.splitext(posixpath.basename(path))[0]
            self._fs.write_file(
                f"{output_dir.rstrip('/')}/{stem}.json",
                json.dumps(doc, indent=2).encode("utf-8"),
            )
        return 0

    def _code(self, language, output_dir, flags, schema_text):
        namespace = re.search(r"namespace\s+([\w.]+);", schema_text)
        parts = namespace.group(1).split(".") if namespace else []
        header = f"// generated by fake flatc for {language}\n"
        if "--gen-object-api" in flags:
            header += "// object api\n"
        base = output_dir.rstrip("/")
        directory = base
        for part in parts:
            directory = f"{directory}/{part}"
            try:
                self._fs.mkdir(directory)
            except FileExistsError:
                pass
        for name in re.findall(r"(?:table|struct)\s+(\w+)", schema_text):
            self._fs.write_file(
                f"{directory}/{name}{LANGUAGE_SUFFIXES[language]}",
                (header + f"// {name}\n").encode("utf-8"),
            )
        return None


@pytest.fixture(autouse=True)
def reset_fake_engine_count():
    FakeFlatc.live = 0
    yield


@pytest.fixture
def engines():
    """Every FakeFlatc created through fake_factory, in creation order."""
    return []


@pytest.fixture
def fake_factory(engines):
    def factory(stdout_sink, stderr_sink):
        engine = FakeFlatc(stdout_sink, stderr_sink)
        engines.append(engine)
        return engine

    return factory


@pytest.fixture
def config():
    return RunnerConfig()


@pytest.fixture
def runner(fake_factory, config):
    runner = FlatcRunner(config=config, engine_factory=fake_factory)
    yield runner
    runner.destroy()


@pytest.fixture
def monster_files():
    return {
        "/schemas/monster.fbs": MONSTER_FBS,
        "/schemas/include/vec3.fbs": VEC3_FBS,
    }


@pytest.fixture
def monster_schema(monster_files):
    return SchemaInput(entry="/schemas/monster.fbs", files=monster_files)
