"""
JSON generation: FlatBuffer binary -> JSON document.

The output path is the input path with the binary extension swapped for the
JSON extension. The output directory is removed afterwards only when
nothing else is left in it, since it may be shared with other output.
"""

import posixpath
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Union

from flatcrunner.errors import EngineInvocationError, MissingOutputError
from flatcrunner.schema import BinaryInput, SchemaInput, parent_dir

if TYPE_CHECKING:
    from flatcrunner.runner import FlatcRunner


@dataclass(frozen=True)
class JsonOptions:
    """
    Options for binary -> JSON conversion.

    Attributes:
        raw_binary: Decode without requiring a file identifier (--raw-binary)
        defaults_json: Emit fields that hold their default value (--defaults-json)
        encoding: Text encoding of the returned JSON; None returns raw bytes
    """

    raw_binary: bool = True
    defaults_json: bool = False
    encoding: Optional[str] = None


def output_path_for(input_path: str, binary_extension: str, json_extension: str) -> str:
    """Swap the binary extension of input_path for the JSON extension."""
    suffix = "." + binary_extension
    if not input_path.endswith(suffix):
        raise ValueError(
            f"Binary input path must end in {suffix}: {input_path!r}"
        )
    return input_path[: -len(suffix)] + "." + json_extension


def build_json_args(
    options: JsonOptions,
    output_dir: str,
    include_dirs: Sequence[str],
    entry: str,
    binary_path: str,
) -> List[str]:
    """Argument vector for `flatc --json`."""
    args = ["--json", "--strict-json"]
    if options.raw_binary:
        args.append("--raw-binary")
    if options.defaults_json:
        args.append("--defaults-json")
    args += ["-o", output_dir]
    for include_dir in include_dirs:
        args += ["-I", include_dir]
    args += [entry, "--", binary_path]
    return args


def generate_json(
    runner: "FlatcRunner",
    schema: SchemaInput,
    binary_input: BinaryInput,
    options: Optional[JsonOptions] = None,
) -> Union[str, bytes]:
    """
    Convert a binary artifact back to JSON with flatc.

    Returns:
        JSON as str when options.encoding is set, else bytes

    Raises:
        ValueError: If the input path lacks the binary extension
        EngineInvocationError: If flatc exits non-zero
        MissingOutputError: If flatc exits 0 without writing the JSON file
    """
    options = options or JsonOptions()
    output_path = output_path_for(
        binary_input.path,
        runner.config.binary_extension,
        runner.config.json_extension,
    )
    output_dir = parent_dir(output_path)

    cleanup = runner.bridge.cleanup()
    try:
        include_dirs = runner.cache.ensure_mounted(schema)
        runner.bridge.mount(binary_input.path, binary_input.data)

        args = build_json_args(
            options, output_dir, include_dirs, schema.entry, binary_input.path
        )
        result = runner.gateway.invoke(args)

        if not result.ok:
            raise EngineInvocationError(args, result.exit_code, result.stdout, result.stderr)

        try:
            return runner.fs.read_file(output_path, encoding=options.encoding)
        except (FileNotFoundError, IsADirectoryError):
            try:
                present = runner.fs.readdir(output_dir)
            except OSError:
                present = []
            raise MissingOutputError(
                args,
                expected=posixpath.basename(output_path),
                output_dir=output_dir,
                files_present=present,
                stdout=result.stdout,
                stderr=result.stderr,
            )
    finally:
        (
            cleanup.unlink(binary_input.path)
            .unlink(output_path)
            .rmdir_if_empty(output_dir)
            .finish("generate_json")
        )
