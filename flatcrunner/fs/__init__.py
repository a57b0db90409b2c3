"""Virtual filesystem bridge and best-effort cleanup."""

from flatcrunner.fs.bridge import Cleanup, CleanupResult, FileSystemBridge

__all__ = ["Cleanup", "CleanupResult", "FileSystemBridge"]
