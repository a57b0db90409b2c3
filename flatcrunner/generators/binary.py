"""
Binary generation: JSON document -> FlatBuffer binary.

Reuses the runner's mounted schema when unchanged, mounts the document at a
fresh unique path, and removes every transient path it created whether or
not flatc succeeds.
"""

import uuid
from typing import TYPE_CHECKING, List, Sequence, Union

from flatcrunner.errors import EngineInvocationError, MissingOutputError
from flatcrunner.fs.bridge import join
from flatcrunner.schema import SchemaInput, normalize_data

if TYPE_CHECKING:
    from flatcrunner.runner import FlatcRunner


def build_binary_args(
    output_dir: str,
    include_dirs: Sequence[str],
    entry: str,
    json_path: str,
) -> List[str]:
    """Argument vector for `flatc --binary`."""
    args = ["--binary", "--unknown-json", "-o", output_dir]
    for include_dir in include_dirs:
        args += ["-I", include_dir]
    args += [entry, json_path]
    return args


def generate_binary(
    runner: "FlatcRunner",
    schema: SchemaInput,
    json_input: Union[str, bytes],
) -> bytes:
    """
    Serialize a JSON document with flatc.

    Args:
        runner: Runner whose engine, cache and filesystem are used
        schema: Schema tree the document conforms to
        json_input: JSON text or UTF-8 bytes

    Returns:
        The binary artifact

    Raises:
        EngineInvocationError: If flatc exits non-zero
        MissingOutputError: If flatc exits 0 without writing a binary
    """
    extension = "." + runner.config.binary_extension
    output_dir = f"/{uuid.uuid4()}"
    json_path = f"/input-{uuid.uuid4()}.{runner.config.json_extension}"

    cleanup = runner.bridge.cleanup()
    try:
        runner.bridge.makedirs(output_dir)
        include_dirs = runner.cache.ensure_mounted(schema)
        runner.bridge.mount(json_path, normalize_data(json_input))

        args = build_binary_args(output_dir, include_dirs, schema.entry, json_path)
        result = runner.gateway.invoke(args)

        if not result.ok:
            raise EngineInvocationError(args, result.exit_code, result.stdout, result.stderr)

        files = runner.fs.readdir(output_dir)
        produced = [name for name in files if name.endswith(extension)]
        if not produced:
            raise MissingOutputError(
                args,
                expected=extension,
                output_dir=output_dir,
                files_present=files,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return runner.fs.read_file(join(output_dir, produced[0]))
    finally:
        cleanup.unlink(json_path).clear_dir(output_dir).finish("generate_binary")
