"""
flatcrunner - orchestration around the FlatBuffers compiler

Runs flatc inside a sandboxed virtual filesystem to turn JSON into
FlatBuffer binaries, binaries back into JSON, and schemas into source code.
"""

__version__ = "0.1.0"


__all__ = [
    "BinaryInput",
    "CodeGenOptions",
    "FlatcRunner",
    "JsonOptions",
    "Language",
    "RunnerConfig",
    "SchemaInput",
    "StreamingTransformer",
    "create_runner",
    "create_streaming_transformer",
    "load_config",
    "load_schema_dir",
]

from .config import RunnerConfig, load_config
from .generators import CodeGenOptions, JsonOptions, Language
from .runner import FlatcRunner, create_runner
from .schema import BinaryInput, SchemaInput
from .schema_loader import load_schema_dir
from .streaming import StreamingTransformer, create_streaming_transformer
