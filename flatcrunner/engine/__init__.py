"""Compiler engines and the virtual filesystems they run against."""

from flatcrunner.engine.base import (
    Engine,
    EngineCrash,
    EngineExit,
    EngineFactory,
    FileStat,
    OutputSink,
    VirtualFileSystem,
)
from flatcrunner.engine.memory import MemoryFileSystem
from flatcrunner.engine.subprocess_engine import (
    SandboxFileSystem,
    SubprocessEngine,
    subprocess_engine_factory,
)

__all__ = [
    "Engine",
    "EngineCrash",
    "EngineExit",
    "EngineFactory",
    "FileStat",
    "OutputSink",
    "VirtualFileSystem",
    "MemoryFileSystem",
    "SandboxFileSystem",
    "SubprocessEngine",
    "subprocess_engine_factory",
]
