"""
Invocation gateway: one call into the engine.

Resets the captured output before each call, runs the engine with an
argument vector, and turns an exit-code termination into an
InvocationResult. Anything else the engine raises propagates as-is.

Not safe for concurrent use: each engine instance runs one invocation at a
time and the captured output belongs to that single in-flight call.
"""

import logging
from dataclasses import dataclass
from typing import IO, List, Optional, Sequence

from flatcrunner.engine.base import Engine, EngineExit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvocationResult:
    """Exit code and trimmed output of one engine invocation."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class OutputCapture:
    """
    Append-only line buffers for the engine's two output channels.

    Optional text streams receive a copy of every line as it arrives.
    """

    def __init__(
        self,
        stdout_stream: Optional[IO[str]] = None,
        stderr_stream: Optional[IO[str]] = None,
    ):
        self.stdout_stream = stdout_stream
        self.stderr_stream = stderr_stream
        self._stdout: List[str] = []
        self._stderr: List[str] = []

    def write_stdout(self, text: str) -> None:
        self._stdout.append(text + "\n")
        if self.stdout_stream is not None:
            self.stdout_stream.write(text + "\n")

    def write_stderr(self, text: str) -> None:
        self._stderr.append(text + "\n")
        if self.stderr_stream is not None:
            self.stderr_stream.write(text + "\n")

    def reset(self) -> None:
        self._stdout = []
        self._stderr = []

    @property
    def stdout(self) -> str:
        return "".join(self._stdout)

    @property
    def stderr(self) -> str:
        return "".join(self._stderr)


class InvocationGateway:
    """Runs argument vectors against one engine instance."""

    def __init__(self, capture: OutputCapture):
        self.capture = capture
        self.engine: Optional[Engine] = None

    def bind(self, engine: Engine) -> None:
        self.engine = engine

    def invoke(self, argv: Sequence[str]) -> InvocationResult:
        """
        Invoke the engine once.

        Raises:
            Exception: Whatever the engine raised, other than EngineExit
        """
        if self.engine is None:
            raise RuntimeError("No engine bound to this gateway")

        self.capture.reset()
        args = list(argv)
        logger.debug(f"flatc {' '.join(args)}", extra={"event": "invoke"})

        try:
            code = self.engine.call_main(args) or 0
        except EngineExit as e:
            code = e.code

        result = InvocationResult(
            exit_code=code,
            stdout=self.capture.stdout.strip(),
            stderr=self.capture.stderr.strip(),
        )
        logger.debug(
            f"flatc exited with code {code}",
            extra={"event": "invoke_finished", "metadata": {"exit_code": code}},
        )
        return result
