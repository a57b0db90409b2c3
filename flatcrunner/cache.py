"""
Schema cache.

Remembers the schema tree last mounted into an engine so repeated
encode/decode calls against the same schema skip remounting. This is the
only performance optimization in the runner and it must be exact: a false
"unchanged" verdict silently serves stale schema files to flatc.

A hit requires the same entry, exactly the same set of file paths and equal
content for every path. Anything else is a miss, which remounts every file
and replaces the cached state wholesale. There is no eviction and no
incremental mounting.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from flatcrunner.fs.bridge import FileSystemBridge
from flatcrunner.schema import SchemaInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedSchemaState:
    """The mounted schema, its include dirs, and a counter bumped per mount."""

    schema: SchemaInput
    include_dirs: Tuple[str, ...]
    version: int

    def matches(self, schema: SchemaInput) -> bool:
        return self.schema is schema or self.schema.same_tree(schema)


class SchemaCache:
    """Owned by exactly one runner; never shared between engines."""

    def __init__(self, bridge: FileSystemBridge):
        self.bridge = bridge
        self.state: Optional[CachedSchemaState] = None
        self.mount_count = 0

    def ensure_mounted(self, schema: SchemaInput) -> Tuple[str, ...]:
        """
        Mount schema unless it is already the mounted tree.

        Returns:
            Include directories for the mounted schema
        """
        if self.state is not None and self.state.matches(schema):
            logger.debug(
                f"Schema {schema.entry} unchanged, skipping remount",
                extra={"event": "schema_cache_hit"},
            )
            return self.state.include_dirs

        # A failed mount leaves no cached state.
        self.state = None
        self.bridge.mount_many(schema.files)
        self.mount_count += 1
        self.state = CachedSchemaState(
            schema=schema,
            include_dirs=schema.include_dirs,
            version=self.mount_count,
        )
        logger.debug(
            f"Mounted schema {schema.entry} ({len(schema.files)} files)",
            extra={
                "event": "schema_cache_miss",
                "metadata": {"version": self.state.version},
            },
        )
        return self.state.include_dirs

    def invalidate(self) -> None:
        self.state = None
