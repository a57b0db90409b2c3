"""
StreamingTransformer - stateless encode/decode with hard isolation.

Every transform call starts a brand-new engine, performs exactly one
encode or decode through a throwaway FlatcRunner, and tears the engine
down again on every exit path. Nothing survives between calls, so memory
stays flat across any number of calls at the cost of engine startup
latency per call. The shared runner cache is never used.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from flatcrunner.config import RunnerConfig
from flatcrunner.engine.base import EngineFactory
from flatcrunner.engine.subprocess_engine import subprocess_engine_factory
from flatcrunner.generators.json import JsonOptions
from flatcrunner.runner import FlatcRunner
from flatcrunner.schema import BinaryInput, SchemaInput

logger = logging.getLogger(__name__)


class StreamingTransformer:
    """
    Encode/decode bound to one schema, one fresh engine per call.

    The schema is fixed at construction; build a new transformer to change
    it. Separate calls share no state and may run in parallel.
    """

    def __init__(
        self,
        schema,
        config: Optional[RunnerConfig] = None,
        engine_factory: Optional[EngineFactory] = None,
    ):
        self._schema = SchemaInput.coerce(schema)
        self.config = config or RunnerConfig()
        self._engine_factory = engine_factory or subprocess_engine_factory(self.config)

    @classmethod
    def create(
        cls,
        schema,
        config: Optional[RunnerConfig] = None,
        engine_factory: Optional[EngineFactory] = None,
    ) -> "StreamingTransformer":
        return cls(schema, config, engine_factory)

    @property
    def schema(self) -> SchemaInput:
        return self._schema

    @property
    def input_path(self) -> str:
        """Where binary input is mounted for decoding."""
        return f"/input.{self.config.binary_extension}"

    @contextmanager
    def _engine_scope(self) -> Iterator[FlatcRunner]:
        runner = FlatcRunner(self.config, self._engine_factory)
        try:
            yield runner
        finally:
            result = runner.destroy()
            if not result.ok:
                logger.debug(
                    f"Engine teardown left {len(result.failed)} failures",
                    extra={"event": "teardown_incomplete"},
                )

    def transform_json_to_binary(self, json_input: Union[str, bytes]) -> bytes:
        """Serialize one JSON document on a fresh engine."""
        with self._engine_scope() as runner:
            return runner.encode(self._schema, json_input)

    def transform_binary_to_json(
        self, data: bytes, encoding: Optional[str] = None
    ) -> Union[str, bytes]:
        """
        Convert one binary artifact to JSON on a fresh engine.

        Returns raw JSON bytes unless an encoding is given.
        """
        with self._engine_scope() as runner:
            return runner.decode(
                self._schema,
                BinaryInput(path=self.input_path, data=data),
                JsonOptions(encoding=encoding),
            )

    def __repr__(self) -> str:
        return f"StreamingTransformer(entry={self._schema.entry})"


def create_streaming_transformer(
    schema,
    config: Optional[RunnerConfig] = None,
    engine_factory: Optional[EngineFactory] = None,
) -> StreamingTransformer:
    return StreamingTransformer.create(schema, config, engine_factory)
