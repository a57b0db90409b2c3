"""Load schema trees from real storage into SchemaInput."""

from pathlib import Path
from typing import Iterator, Optional, Union

from flatcrunner.schema import SchemaInput


SCHEMA_SUFFIX = ".fbs"


def walk_schema_files(root: Path, suffix: str = SCHEMA_SUFFIX) -> Iterator[Path]:
    """Yield every schema file under root, in sorted order."""
    for path in sorted(root.rglob(f"*{suffix}")):
        if path.is_file():
            yield path


def load_schema_dir(
    root: Union[Path, str],
    entry: Union[Path, str],
    suffix: str = SCHEMA_SUFFIX,
    mount_prefix: Optional[str] = None,
) -> SchemaInput:
    """
    Read every schema file below root into a SchemaInput.

    Files are mounted at "/<path relative to root>", or below mount_prefix
    when one is given.

    Args:
        root: Directory to scan
        entry: Entry file, absolute or relative to root
        suffix: Schema file extension
        mount_prefix: Virtual directory to place the tree under

    Raises:
        FileNotFoundError: If root or the entry file does not exist
        ValueError: If the entry file is outside root
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Schema directory not found: {root}")

    entry_path = Path(entry)
    if not entry_path.is_absolute():
        entry_path = root / entry_path
    if not entry_path.is_file():
        raise FileNotFoundError(f"Schema entry not found: {entry_path}")

    prefix = "/" + (mount_prefix or "").strip("/")
    prefix = prefix.rstrip("/")

    def virtual(path: Path) -> str:
        return f"{prefix}/{path.resolve().relative_to(root.resolve()).as_posix()}"

    files = {
        virtual(path): path.read_text(encoding="utf-8")
        for path in walk_schema_files(root, suffix)
    }
    try:
        entry_virtual = virtual(entry_path)
    except ValueError:
        raise ValueError(f"Schema entry {entry_path} is not inside {root}")
    if entry_virtual not in files:
        files[entry_virtual] = entry_path.read_text(encoding="utf-8")

    return SchemaInput(entry=entry_virtual, files=files)
