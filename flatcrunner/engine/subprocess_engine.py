"""
Subprocess embedding of a native flatc executable.

A private temporary directory plays the virtual filesystem root. Virtual
absolute paths in argv are rewritten to host paths before spawning flatc,
and host paths in captured output are rewritten back, so callers only ever
see virtual paths.
"""

import errno
import logging
import os
import posixpath
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Union

from flatcrunner.config import RunnerConfig
from flatcrunner.engine.base import (
    Engine,
    EngineCrash,
    EngineFactory,
    FileStat,
    OutputSink,
    VirtualFileSystem,
)

logger = logging.getLogger(__name__)


class SandboxFileSystem(VirtualFileSystem):
    """
    VirtualFileSystem backed by a host directory.

    Virtual "/a/b" maps to "<root>/a/b". Paths resolving outside the root
    are refused, including through symlinks.
    """

    def __init__(self, root: Union[Path, str]):
        self.root = Path(root).resolve()

    def host_path(self, path: str) -> Path:
        if not path.startswith("/"):
            raise ValueError(f"Virtual paths must be absolute: {path!r}")
        relative = posixpath.normpath(path).lstrip("/")
        if not relative:
            return self.root
        candidate = self.root / relative
        resolved = os.path.realpath(candidate)
        if resolved != str(self.root) and not resolved.startswith(str(self.root) + os.sep):
            raise PermissionError(errno.EPERM, "Path escapes sandbox", path)
        return candidate

    def mkdir(self, path: str) -> None:
        os.mkdir(self.host_path(path))

    def write_file(self, path: str, data: bytes) -> None:
        with open(self.host_path(path), "wb") as f:
            f.write(data)

    def read_file(self, path: str, encoding: Optional[str] = None) -> Union[bytes, str]:
        data = self.host_path(path).read_bytes()
        return data.decode(encoding) if encoding else data

    def readdir(self, path: str) -> List[str]:
        return os.listdir(self.host_path(path))

    def stat(self, path: str) -> FileStat:
        st = os.stat(self.host_path(path))
        return FileStat(is_dir=os.path.isdir(self.host_path(path)), size=st.st_size)

    def unlink(self, path: str) -> None:
        os.unlink(self.host_path(path))

    def rmdir(self, path: str) -> None:
        os.rmdir(self.host_path(path))

    def unmount(self, path: str) -> None:
        target = self.host_path(path)
        if target == self.root:
            raise PermissionError(errno.EPERM, "Cannot unmount the root", path)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()

    def reset(self) -> None:
        for name in os.listdir(self.root):
            self.unmount("/" + name)


class SubprocessEngine(Engine):
    """
    Runs the flatc executable once per call_main() against a sandbox.

    Raises FileNotFoundError when the executable is missing,
    subprocess.TimeoutExpired when a call overruns and EngineCrash when flatc
    is killed by a signal. All of these are engine faults.
    """

    def __init__(
        self,
        flatc_path: str = "flatc",
        stdout_sink: Optional[OutputSink] = None,
        stderr_sink: Optional[OutputSink] = None,
        sandbox_dir: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(stdout_sink, stderr_sink)
        self.flatc_path = flatc_path
        self.timeout = timeout
        self._tempdir = tempfile.mkdtemp(prefix="flatcrunner-", dir=sandbox_dir)
        self._fs = SandboxFileSystem(self._tempdir)

    @property
    def fs(self) -> SandboxFileSystem:
        return self._fs

    def _translate_arg(self, arg: str) -> str:
        if arg.startswith("/"):
            return str(self._fs.host_path(arg))
        return arg

    def _untranslate(self, text: str) -> str:
        root = str(self._fs.root)
        return text.replace(root + os.sep, "/").replace(root, "/")

    def call_main(self, argv: Sequence[str]) -> Optional[int]:
        command = [self.flatc_path] + [self._translate_arg(a) for a in argv]
        logger.debug("Spawning %s", " ".join(command))
        completed = subprocess.run(
            command,
            cwd=self._fs.root,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=self.timeout,
            check=False,
        )
        stderr = self._untranslate(completed.stderr)
        if completed.returncode < 0:
            raise EngineCrash(-completed.returncode, stderr.strip())
        for line in completed.stdout.splitlines():
            self.print(self._untranslate(line))
        for line in stderr.splitlines():
            self.print_err(line)
        return completed.returncode

    def close(self) -> None:
        shutil.rmtree(self._tempdir, ignore_errors=True)


def subprocess_engine_factory(config: RunnerConfig) -> EngineFactory:
    """Engine factory building SubprocessEngines from configuration."""

    def factory(stdout_sink: OutputSink, stderr_sink: OutputSink) -> Engine:
        return SubprocessEngine(
            flatc_path=config.flatc_path,
            stdout_sink=stdout_sink,
            stderr_sink=stderr_sink,
            sandbox_dir=config.sandbox_dir,
            timeout=config.command_timeout,
        )

    return factory
