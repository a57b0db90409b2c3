"""
Engine capability contract.

The compiler is an opaque engine reachable only through argv in, exit code
out, plus a sandboxed virtual filesystem it reads and writes. Any embedding
(subprocess, in-process interpreter, foreign call) can satisfy it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union


OutputSink = Callable[[str], None]


class EngineExit(Exception):
    """
    Abnormal termination reported by an engine as a plain exit code.

    The invocation gateway turns this into an exit code. Every other
    exception raised by an engine is an internal fault and propagates.
    """

    def __init__(self, code: int):
        self.code = int(code)
        super().__init__(f"engine exited with code {self.code}")


class EngineCrash(Exception):
    """
    The engine died from a signal instead of exiting.

    An engine fault, not a tool failure: never converted to an exit code
    and never wrapped in a FlatcRunnerError.
    """

    def __init__(self, signal_number: int, stderr: str = ""):
        self.signal_number = signal_number
        self.stderr = stderr
        message = f"flatc was killed by signal {signal_number}"
        if stderr:
            message += f"\n{stderr}"
        super().__init__(message)


@dataclass(frozen=True)
class FileStat:
    """Subset of stat() the orchestration layer needs."""

    is_dir: bool
    size: int = 0


class VirtualFileSystem(ABC):
    """
    Abstract base class for an engine's sandboxed filesystem.

    Paths are absolute, POSIX-style and case-sensitive. Errors use Python's
    OSError subclasses (FileExistsError, FileNotFoundError,
    NotADirectoryError, IsADirectoryError).
    """

    @abstractmethod
    def mkdir(self, path: str) -> None:
        """
        Create a single directory.

        Raises:
            FileExistsError: If the path already exists
            FileNotFoundError: If the parent does not exist
        """
        pass

    @abstractmethod
    def write_file(self, path: str, data: bytes) -> None:
        """Create or overwrite a regular file. The parent must exist."""
        pass

    @abstractmethod
    def read_file(self, path: str, encoding: Optional[str] = None) -> Union[bytes, str]:
        """Read a regular file; decoded to str when encoding is given."""
        pass

    @abstractmethod
    def readdir(self, path: str) -> List[str]:
        """Names of the entries in a directory (never '.' or '..')."""
        pass

    @abstractmethod
    def stat(self, path: str) -> FileStat:
        pass

    @abstractmethod
    def unlink(self, path: str) -> None:
        pass

    @abstractmethod
    def rmdir(self, path: str) -> None:
        """Remove an empty directory."""
        pass

    @abstractmethod
    def unmount(self, path: str) -> None:
        """Detach a top-level entry and everything beneath it."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Drop all content below the root."""
        pass

    def exists(self, path: str) -> bool:
        try:
            self.stat(path)
        except FileNotFoundError:
            return False
        return True


class Engine(ABC):
    """
    Abstract base class for compiler engines.

    An engine writes output line by line to the two sinks it was built with.
    It is not reentrant: one invocation at a time per instance.
    """

    def __init__(
        self,
        stdout_sink: Optional[OutputSink] = None,
        stderr_sink: Optional[OutputSink] = None,
    ):
        self._stdout_sink = stdout_sink
        self._stderr_sink = stderr_sink

    @property
    @abstractmethod
    def fs(self) -> VirtualFileSystem:
        pass

    @abstractmethod
    def call_main(self, argv: Sequence[str]) -> Optional[int]:
        """
        Run the compiler once.

        Returns:
            None or 0 on success, or a non-zero exit code

        Raises:
            EngineExit: Alternative way to report a non-zero exit code
        """
        pass

    def print(self, text: str) -> None:
        if self._stdout_sink is not None:
            self._stdout_sink(text)

    def print_err(self, text: str) -> None:
        if self._stderr_sink is not None:
            self._stderr_sink(text)

    def close_streams(self) -> None:
        """Detach the output sinks."""
        self._stdout_sink = None
        self._stderr_sink = None

    def close(self) -> None:
        """Release host resources held by the engine."""
        pass


EngineFactory = Callable[[OutputSink, OutputSink], Engine]
