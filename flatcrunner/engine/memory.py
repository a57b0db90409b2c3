"""
In-memory virtual filesystem.

Backs in-process engines; every byte lives in a nested dict and is gone
once reset() runs or the instance is garbage collected.
"""

import errno
import posixpath
from typing import Dict, List, Optional, Tuple, Union

from flatcrunner.engine.base import FileStat, VirtualFileSystem


def _split(path: str) -> List[str]:
    if not path.startswith("/"):
        raise ValueError(f"Virtual paths must be absolute: {path!r}")
    return [part for part in posixpath.normpath(path).split("/") if part]


class MemoryFileSystem(VirtualFileSystem):
    """
    Nested-dict implementation of VirtualFileSystem.

    Directories are dicts, regular files are bytes.
    """

    def __init__(self):
        self._root: Dict[str, object] = {}

    def _lookup(self, path: str):
        node: object = self._root
        for part in _split(path):
            if not isinstance(node, dict):
                raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
            if part not in node:
                raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
            node = node[part]
        return node

    def _parent(self, path: str) -> Tuple[dict, str]:
        parts = _split(path)
        if not parts:
            raise PermissionError(errno.EPERM, "Operation not permitted on root", path)
        parent = self._lookup("/" + "/".join(parts[:-1]))
        if not isinstance(parent, dict):
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
        return parent, parts[-1]

    def mkdir(self, path: str) -> None:
        if not _split(path):
            raise FileExistsError(errno.EEXIST, "File exists", path)
        parent, name = self._parent(path)
        if name in parent:
            raise FileExistsError(errno.EEXIST, "File exists", path)
        parent[name] = {}

    def write_file(self, path: str, data: bytes) -> None:
        parent, name = self._parent(path)
        if isinstance(parent.get(name), dict):
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        parent[name] = bytes(data)

    def read_file(self, path: str, encoding: Optional[str] = None) -> Union[bytes, str]:
        node = self._lookup(path)
        if isinstance(node, dict):
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        return node.decode(encoding) if encoding else node

    def readdir(self, path: str) -> List[str]:
        node = self._lookup(path)
        if not isinstance(node, dict):
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
        return list(node)

    def stat(self, path: str) -> FileStat:
        node = self._lookup(path)
        if isinstance(node, dict):
            return FileStat(is_dir=True, size=len(node))
        return FileStat(is_dir=False, size=len(node))

    def unlink(self, path: str) -> None:
        parent, name = self._parent(path)
        if name not in parent:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        if isinstance(parent[name], dict):
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        del parent[name]

    def rmdir(self, path: str) -> None:
        parent, name = self._parent(path)
        if name not in parent:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        node = parent[name]
        if not isinstance(node, dict):
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
        if node:
            raise OSError(errno.ENOTEMPTY, "Directory not empty", path)
        del parent[name]

    def unmount(self, path: str) -> None:
        parent, name = self._parent(path)
        if name not in parent:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        del parent[name]

    def reset(self) -> None:
        self._root = {}
