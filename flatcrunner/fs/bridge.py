"""
Virtual filesystem bridge.

Translates logical (path, content) pairs into mkdir + write calls against an
engine's filesystem, and walks directories back into logical file maps.
No caching lives here.

Cleanup is best-effort: Cleanup collects the failures of every removal it
attempts into a CleanupResult, logs them, and never raises. A path that is
already gone is not a failure.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from flatcrunner.engine.base import VirtualFileSystem
from flatcrunner.schema import FileData, parent_dir, to_bytes

logger = logging.getLogger(__name__)


def join(base: str, name: str) -> str:
    return posixpath.join(base, name)


class FileSystemBridge:
    """Structural translation between file maps and a VirtualFileSystem."""

    def __init__(self, fs: VirtualFileSystem):
        self.fs = fs

    def makedirs(self, path: str) -> None:
        """Create every missing directory along path."""
        current = ""
        for part in [p for p in path.split("/") if p]:
            current += "/" + part
            try:
                self.fs.mkdir(current)
            except FileExistsError:
                pass

    def mount(self, path: str, data: FileData) -> None:
        """Write one file, creating intermediate directories as needed."""
        self.makedirs(parent_dir(path))
        self.fs.write_file(path, to_bytes(data))

    def mount_many(
        self, files: Union[Mapping[str, FileData], Iterable[Tuple[str, FileData]]]
    ) -> None:
        """Mount files in order; later entries overwrite earlier ones."""
        items = files.items() if isinstance(files, Mapping) else files
        for path, data in items:
            self.mount(path, data)

    def list_all(self, root: str = "/") -> List[str]:
        """
        Every regular file under root, depth first.

        Entries are visited in sorted order so the listing is reproducible
        for a given filesystem state. Directories are never returned.
        """
        result: List[str] = []

        def traverse(path: str) -> None:
            if self.fs.stat(path).is_dir:
                for name in sorted(self.fs.readdir(path)):
                    if name in (".", ".."):
                        continue
                    traverse(join(path, name))
            else:
                result.append(path)

        traverse(root)
        return result

    def read_tree(self, root: str, encoding: str = "utf-8") -> Dict[str, str]:
        """Map of root-relative path -> decoded content for every file under root."""
        tree: Dict[str, str] = {}
        for path in self.list_all(root):
            relative = posixpath.relpath(path, root)
            tree[relative] = self.fs.read_file(path, encoding=encoding)
        return tree

    def cleanup(self) -> "Cleanup":
        return Cleanup(self.fs)

    def teardown(self) -> "CleanupResult":
        """
        Detach every top-level entry and reset the root.

        Used when an engine instance is being discarded.
        """
        cleanup = self.cleanup()
        try:
            names = self.fs.readdir("/")
        except Exception as e:
            cleanup.result.failed.append(("/", e))
            names = []
        for name in names:
            if name in (".", ".."):
                continue
            cleanup.unmount("/" + name)
        cleanup.reset()
        return cleanup.finish("teardown")


@dataclass
class CleanupResult:
    """Outcome of a best-effort cleanup pass."""

    removed: List[str] = field(default_factory=list)
    failed: List[Tuple[str, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Cleanup:
    """Best-effort removal of transient paths."""

    def __init__(self, fs: VirtualFileSystem):
        self.fs = fs
        self.result = CleanupResult()

    def _attempt(self, path: str, action) -> None:
        try:
            action(path)
        except FileNotFoundError:
            return
        except Exception as e:
            self.result.failed.append((path, e))
        else:
            self.result.removed.append(path)

    def unlink(self, path: str) -> "Cleanup":
        self._attempt(path, self.fs.unlink)
        return self

    def rmdir(self, path: str) -> "Cleanup":
        self._attempt(path, self.fs.rmdir)
        return self

    def unmount(self, path: str) -> "Cleanup":
        self._attempt(path, self.fs.unmount)
        return self

    def reset(self) -> "Cleanup":
        self._attempt("/", lambda _: self.fs.reset())
        return self

    def clear_dir(self, path: str) -> "Cleanup":
        """Unlink the files directly inside path, then remove path."""
        try:
            names = self.fs.readdir(path)
        except FileNotFoundError:
            return self
        except Exception as e:
            self.result.failed.append((path, e))
            return self
        for name in names:
            if name not in (".", ".."):
                self.unlink(join(path, name))
        return self.rmdir(path)

    def rmdir_if_empty(self, path: str) -> "Cleanup":
        """Remove path only when nothing else lives in it."""
        if path == "/":
            return self
        try:
            names = [n for n in self.fs.readdir(path) if n not in (".", "..")]
        except FileNotFoundError:
            return self
        except Exception as e:
            self.result.failed.append((path, e))
            return self
        if not names:
            self.rmdir(path)
        return self

    def finish(self, operation: str) -> CleanupResult:
        for path, error in self.result.failed:
            logger.debug(
                f"Cleanup of {path} failed during {operation}: {error}",
                extra={"operation": operation, "event": "cleanup_failed"},
            )
        return self.result
