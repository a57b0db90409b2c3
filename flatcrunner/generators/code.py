"""
Code generation: schema -> source bindings in a target language.

Always remounts the schema and never reuses the runner's schema cache;
code generation is a cold path. The cache is invalidated instead, since
the remount may overwrite the files it describes. On success the whole
output directory is read back as {relative path: text}.
"""

import uuid
from dataclasses import dataclass, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Union

from flatcrunner.errors import CodeGenerationError
from flatcrunner.schema import SchemaInput

if TYPE_CHECKING:
    from flatcrunner.runner import FlatcRunner


class Language(str, Enum):
    """Target languages flatc can emit."""

    CPP = "cpp"
    CSHARP = "csharp"
    DART = "dart"
    GO = "go"
    JAVA = "java"
    JSON = "json"
    JSONSCHEMA = "jsonschema"
    KOTLIN = "kotlin"
    KOTLIN_KMP = "kotlin-kmp"
    LOBSTER = "lobster"
    LUA = "lua"
    NIM = "nim"
    PHP = "php"
    PYTHON = "python"
    RUST = "rust"
    SWIFT = "swift"
    TS = "ts"

    @property
    def flag(self) -> str:
        return f"--{self.value}"


# Boolean option -> flatc flag, in the order flags are emitted
BOOLEAN_FLAGS = (
    ("gen_object_api", "--gen-object-api"),
    ("gen_onefile", "--gen-onefile"),
    ("python_typing", "--python-typing"),
    ("no_includes", "--no-includes"),
    ("gen_compare", "--gen-compare"),
    ("gen_name_strings", "--gen-name-strings"),
    ("reflect_names", "--reflect-names"),
    ("reflect_types", "--reflect-types"),
    ("gen_json_emit", "--gen-json-emit"),
    ("keep_prefix", "--keep-prefix"),
    ("preserve_case", "--preserve-case"),
)

# Alternative spellings accepted by CodeGenOptions.from_dict
OPTION_ALIASES = {
    "objectAPI": "gen_object_api",
    "genObjectApi": "gen_object_api",
    "genOneFile": "gen_onefile",
    "pythonTyping": "python_typing",
    "pythonVersion": "python_version",
    "noIncludes": "no_includes",
    "genCompare": "gen_compare",
    "genNameStrings": "gen_name_strings",
    "reflectNames": "reflect_names",
    "reflectTypes": "reflect_types",
    "genJsonEmit": "gen_json_emit",
    "keepPrefix": "keep_prefix",
    "preserveCase": "preserve_case",
}


@dataclass(frozen=True)
class CodeGenOptions:
    """
    Feature switches for code generation. All default to off.

    Attributes:
        gen_object_api: Generate the mutable object API (--gen-object-api)
        gen_onefile: Emit everything into one file per schema (--gen-onefile)
        python_typing: Emit Python type annotations (--python-typing)
        python_version: Target Python version, passed as --python-version <v>
        no_includes: Do not generate include statements (--no-includes)
        gen_compare: Generate equality operators (--gen-compare)
        gen_name_strings: Generate type name accessors (--gen-name-strings)
        reflect_names: Add field names to mini-reflection tables (--reflect-names)
        reflect_types: Add type info to mini-reflection tables (--reflect-types)
        gen_json_emit: Generate JSON emission helpers (--gen-json-emit)
        keep_prefix: Keep include path prefixes (--keep-prefix)
        preserve_case: Keep identifier case as written (--preserve-case)
    """

    gen_object_api: bool = False
    gen_onefile: bool = False
    python_typing: bool = False
    python_version: Optional[str] = None
    no_includes: bool = False
    gen_compare: bool = False
    gen_name_strings: bool = False
    reflect_names: bool = False
    reflect_types: bool = False
    gen_json_emit: bool = False
    keep_prefix: bool = False
    preserve_case: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CodeGenOptions":
        """Build options from snake_case or camelCase keys; unknown keys raise."""
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown code generation option: {key!r}")
            values[name] = value
        return cls(**values)

    def to_flags(self) -> List[str]:
        flags = [flag for name, flag in BOOLEAN_FLAGS if getattr(self, name)]
        if self.python_version:
            flags += ["--python-version", self.python_version]
        return flags


def build_code_args(
    language: Language,
    output_dir: str,
    include_dirs: Sequence[str],
    entry: str,
    options: CodeGenOptions,
) -> List[str]:
    """Argument vector for `flatc --<language>`."""
    args = [language.flag, "-o", output_dir]
    for include_dir in include_dirs:
        args += ["-I", include_dir]
    args += options.to_flags()
    args.append(entry)
    return args


def generate_code(
    runner: "FlatcRunner",
    schema: SchemaInput,
    language: Union[Language, str],
    output_dir: Optional[str] = None,
    options: Union[CodeGenOptions, Mapping[str, Any], None] = None,
) -> Dict[str, str]:
    """
    Generate source bindings for schema.

    Args:
        runner: Runner whose engine and filesystem are used
        schema: Schema tree to compile
        language: Target language
        output_dir: Directory to generate into; a fresh /out/<uuid> when
            omitted, which is removed again once read back
        options: CodeGenOptions or a mapping accepted by CodeGenOptions.from_dict

    Returns:
        Relative path (no leading '/') -> generated source text

    Raises:
        ValueError: If language or an option is unknown
        CodeGenerationError: If flatc exits non-zero; message is its stderr
    """
    language = Language(language)
    if options is None:
        options = CodeGenOptions()
    elif not isinstance(options, CodeGenOptions):
        options = CodeGenOptions.from_dict(options)

    transient = output_dir is None
    if output_dir is None:
        output_dir = f"/out/{uuid.uuid4()}"

    cleanup = runner.bridge.cleanup()
    try:
        runner.bridge.makedirs(output_dir)
        # Remounting may overwrite files the cache believes are current.
        runner.cache.invalidate()
        runner.bridge.mount_many(schema.files)

        args = build_code_args(
            language, output_dir, schema.include_dirs, schema.entry, options
        )
        result = runner.gateway.invoke(args)
        if not result.ok:
            raise CodeGenerationError(args, result.exit_code, result.stderr)

        return runner.bridge.read_tree(output_dir)
    finally:
        if transient:
            cleanup.unmount(output_dir).rmdir_if_empty("/out")
        cleanup.finish("generate_code")
