"""
Schema and binary input types.

A SchemaInput is a tree of .fbs files keyed by absolute POSIX paths, rooted
at one entry file. Paths are forwarded to the engine verbatim.
"""

import posixpath
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple, Union


FileData = Union[str, bytes]


def normalize_data(data) -> FileData:
    """Return str or immutable bytes for any supported file content."""
    if isinstance(data, (str, bytes)):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise TypeError(
        f"File content must be str or bytes-like, got {type(data).__name__}"
    )


def to_bytes(data: FileData) -> bytes:
    """Encode file content for writing into a virtual filesystem."""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def parent_dir(path: str) -> str:
    """Parent directory of a virtual path ('/' for top-level entries)."""
    return posixpath.dirname(path) or "/"


def include_dirs_for(paths: Iterable[str]) -> Tuple[str, ...]:
    """
    Deduplicated parent directories of every path, in first-seen order.

    Used as flatc -I search paths so cross-file includes resolve.
    """
    dirs = {}
    for path in paths:
        dirs.setdefault(parent_dir(path), None)
    return tuple(dirs)


@dataclass(frozen=True, eq=False)
class SchemaInput:
    """
    A schema tree: entry file path plus every file it may include.

    The files mapping is snapshotted on construction, so mutating the dict
    that was passed in never changes an existing SchemaInput.
    """

    entry: str
    files: Mapping[str, FileData] = field(default_factory=dict)

    def __post_init__(self):
        snapshot = {}
        for path, data in dict(self.files).items():
            if not path.startswith("/"):
                raise ValueError(f"Schema file paths must be absolute: {path!r}")
            snapshot[path] = normalize_data(data)
        if self.entry not in snapshot:
            raise ValueError(f"Schema entry {self.entry!r} is not one of the schema files")
        object.__setattr__(self, "files", MappingProxyType(snapshot))

    @classmethod
    def coerce(cls, value) -> "SchemaInput":
        """Accept a SchemaInput or a {"entry": ..., "files": ...} mapping."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            try:
                return cls(entry=value["entry"], files=value["files"])
            except KeyError as e:
                raise ValueError(f"Schema mapping is missing {e.args[0]!r}")
        raise TypeError(f"Expected SchemaInput or mapping, got {type(value).__name__}")

    @property
    def include_dirs(self) -> Tuple[str, ...]:
        return include_dirs_for(self.files)

    def same_tree(self, other: "SchemaInput") -> bool:
        """Structural equality: same entry, same key set, same content per key."""
        if other is None or self.entry != other.entry:
            return False
        if self.files.keys() != other.files.keys():
            return False
        return all(other.files[path] == data for path, data in self.files.items())


@dataclass(frozen=True)
class BinaryInput:
    """A binary artifact to decode, mounted at `path`."""

    path: str
    data: bytes

    def __post_init__(self):
        if not self.path.startswith("/"):
            raise ValueError(f"Binary input path must be absolute: {self.path!r}")
        object.__setattr__(self, "data", to_bytes(normalize_data(self.data)))
