"""
FlatcRunner - the object callers hold.

Owns one engine instance, the schema cache for that engine and an error
log. Exposes the operation drivers (encode, decode, generate) and
filesystem listing.

Lifecycle:
1. create_runner() / FlatcRunner.init() builds the engine
2. encode/decode reuse the mounted schema while it is unchanged
3. destroy() tears the engine's filesystem down and releases it

Calls on one runner must be serialized; use separate runners (or a
StreamingTransformer) for parallel work.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import IO, Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from flatcrunner.cache import SchemaCache
from flatcrunner.config import RunnerConfig
from flatcrunner.engine.base import Engine, EngineFactory
from flatcrunner.engine.subprocess_engine import subprocess_engine_factory
from flatcrunner.errors import RunnerDestroyedError
from flatcrunner.fs.bridge import CleanupResult, FileSystemBridge
from flatcrunner.gateway import InvocationGateway, InvocationResult, OutputCapture
from flatcrunner.generators.binary import generate_binary
from flatcrunner.generators.code import CodeGenOptions, Language, generate_code
from flatcrunner.generators.json import JsonOptions, generate_json
from flatcrunner.schema import BinaryInput, FileData, SchemaInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorLogEntry:
    """One failed runner operation, kept for diagnostics only."""

    timestamp: str
    method: str
    message: str
    trace: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "method": self.method,
            "message": self.message,
            "trace": self.trace,
        }


def _coerce_binary_input(value) -> BinaryInput:
    if isinstance(value, BinaryInput):
        return value
    if isinstance(value, Mapping):
        return BinaryInput(path=value["path"], data=value["data"])
    path, data = value
    return BinaryInput(path=path, data=data)


class FlatcRunner:
    """
    Runs flatc operations against one persistent engine instance.

    The error log is append-only and never cleared automatically; a caller
    that keeps a runner alive through many failures should read and discard
    get_errors() itself.
    """

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        engine_factory: Optional[EngineFactory] = None,
        stdout_stream: Optional[IO[str]] = None,
        stderr_stream: Optional[IO[str]] = None,
    ):
        self.config = config or RunnerConfig()
        self.capture = OutputCapture(stdout_stream, stderr_stream)
        self.gateway = InvocationGateway(self.capture)

        if engine_factory is None:
            engine_factory = subprocess_engine_factory(self.config)
        self.engine: Engine = engine_factory(
            self.capture.write_stdout, self.capture.write_stderr
        )
        self.gateway.bind(self.engine)

        self.bridge = FileSystemBridge(self.engine.fs)
        self.cache = SchemaCache(self.bridge)
        self.errors: List[ErrorLogEntry] = []
        self._destroyed = False

    @classmethod
    def init(
        cls,
        config: Optional[RunnerConfig] = None,
        engine_factory: Optional[EngineFactory] = None,
        stdout_stream: Optional[IO[str]] = None,
        stderr_stream: Optional[IO[str]] = None,
    ) -> "FlatcRunner":
        """Create a runner with a freshly started engine."""
        return cls(config, engine_factory, stdout_stream, stderr_stream)

    @property
    def fs(self):
        return self.engine.fs

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _require_live(self) -> None:
        if self._destroyed:
            raise RunnerDestroyedError("FlatcRunner has been destroyed")

    def _log_error(self, method: str, error: BaseException) -> None:
        """Append a failure to the error log."""
        self.errors.append(
            ErrorLogEntry(
                timestamp=datetime.now(timezone.utc).isoformat(),
                method=method,
                message=str(error),
                trace="".join(
                    traceback.format_exception(type(error), error, error.__traceback__)
                ),
            )
        )
        logger.warning(
            f"{method} failed: {type(error).__name__}",
            extra={"operation": method, "event": "operation_failed"},
        )

    def _run(self, method: str, func, *args):
        self._require_live()
        try:
            return func(self, *args)
        except Exception as e:
            self._log_error(method, e)
            raise

    def run_command(self, argv: Iterable[str]) -> InvocationResult:
        """Invoke flatc with a raw argument vector."""
        self._require_live()
        return self.gateway.invoke(list(argv))

    def mount_file(self, path: str, data: FileData) -> None:
        """Write one file into the engine's filesystem."""
        self._require_live()
        self.bridge.mount(path, data)

    def mount_files(
        self, files: Union[Mapping[str, FileData], Iterable[Tuple[str, FileData]]]
    ) -> None:
        """Write several files in order; later entries win."""
        self._require_live()
        self.bridge.mount_many(files)

    def list_files(self, path: str = "/") -> List[str]:
        """Every regular file under path in the engine's filesystem."""
        self._require_live()
        return self.bridge.list_all(path)

    def encode(self, schema, json_input: Union[str, bytes]) -> bytes:
        """
        Serialize a JSON document to a FlatBuffer binary.

        Args:
            schema: SchemaInput or {"entry": ..., "files": ...}
            json_input: JSON text or bytes

        Returns:
            Binary artifact bytes
        """
        return self._run(
            "encode", generate_binary, SchemaInput.coerce(schema), json_input
        )

    def decode(
        self,
        schema,
        binary_input,
        options: Optional[JsonOptions] = None,
    ) -> Union[str, bytes]:
        """
        Convert a FlatBuffer binary back to JSON.

        Args:
            schema: SchemaInput or {"entry": ..., "files": ...}
            binary_input: BinaryInput, {"path": ..., "data": ...} or (path, data);
                the path must end in the binary extension
            options: JsonOptions (raw binary on, defaults off, bytes out)

        Returns:
            JSON text when options.encoding is set, else bytes
        """
        return self._run(
            "decode",
            generate_json,
            SchemaInput.coerce(schema),
            _coerce_binary_input(binary_input),
            options,
        )

    def generate(
        self,
        schema,
        language: Union[Language, str],
        output_dir: Optional[str] = None,
        options: Union[CodeGenOptions, Mapping[str, Any], None] = None,
    ) -> Dict[str, str]:
        """
        Generate source bindings in a target language.

        Returns:
            Relative path -> generated source text
        """
        return self._run(
            "generate",
            generate_code,
            SchemaInput.coerce(schema),
            language,
            output_dir,
            options,
        )

    def help(self) -> str:
        """flatc --help output."""
        return self.run_command(["--help"]).stdout

    def version(self) -> str:
        """flatc --version output."""
        return self.run_command(["--version"]).stdout

    def get_errors(self) -> List[ErrorLogEntry]:
        return self.errors

    def destroy(self) -> CleanupResult:
        """
        Tear down the engine's filesystem and release the engine.

        Best-effort: teardown failures are logged, never raised. Safe to call
        more than once.
        """
        if self._destroyed:
            return CleanupResult()
        self._destroyed = True
        self.cache.invalidate()
        result = release_engine(self.engine, self.bridge)
        logger.debug("Runner destroyed", extra={"event": "runner_destroyed"})
        return result

    def __enter__(self) -> "FlatcRunner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.destroy()

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else "live"
        return f"FlatcRunner(engine={type(self.engine).__name__}, {state})"


def release_engine(engine: Engine, bridge: FileSystemBridge) -> CleanupResult:
    """
    Unmount everything, detach the output sinks and close the engine.

    Never raises; failures are recorded in the returned CleanupResult.
    """
    result = bridge.teardown()
    for name, step in (("close_streams", engine.close_streams), ("close", engine.close)):
        try:
            step()
        except Exception as e:
            result.failed.append((name, e))
            logger.debug(
                f"Engine {name} failed: {e}",
                extra={"event": "cleanup_failed"},
            )
    return result


def create_runner(
    config: Optional[RunnerConfig] = None,
    engine_factory: Optional[EngineFactory] = None,
    stdout_stream: Optional[IO[str]] = None,
    stderr_stream: Optional[IO[str]] = None,
) -> FlatcRunner:
    """Create a FlatcRunner; call destroy() (or use it as a context manager) when done."""
    return FlatcRunner.init(config, engine_factory, stdout_stream, stderr_stream)
