"""
Operation drivers.

Each driver mounts its inputs, builds the flatc argument vector, invokes
the engine, harvests the output and removes the transient paths it made:
- binary: JSON -> FlatBuffer binary
- json: FlatBuffer binary -> JSON
- code: schema -> source bindings
"""

from flatcrunner.generators.binary import build_binary_args, generate_binary
from flatcrunner.generators.code import (
    CodeGenOptions,
    Language,
    build_code_args,
    generate_code,
)
from flatcrunner.generators.json import (
    JsonOptions,
    build_json_args,
    generate_json,
    output_path_for,
)

__all__ = [
    "CodeGenOptions",
    "JsonOptions",
    "Language",
    "build_binary_args",
    "build_code_args",
    "build_json_args",
    "generate_binary",
    "generate_code",
    "generate_json",
    "output_path_for",
]
