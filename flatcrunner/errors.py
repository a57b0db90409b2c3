"""
Error classes for flatcrunner.

These error types separate tool-level failures from everything else:
- EngineInvocationError: flatc ran and exited non-zero
- MissingOutputError: flatc exited 0 but the expected artifact is absent
- CodeGenerationError: code generation failed; message is flatc's stderr

Anything the engine raises that is not an exit code (an internal abort,
a missing executable, a timeout) is an engine fault and is never wrapped
in one of these classes. Callers should treat it as fatal to that engine
instance.
"""

from typing import Optional, Sequence


class FlatcRunnerError(Exception):
    """Base exception for flatcrunner."""
    pass


class ConfigError(FlatcRunnerError):
    """Configuration validation error."""
    pass


class RunnerDestroyedError(FlatcRunnerError):
    """Raised when a runner is used after destroy()."""
    pass


def _format_stream(text: Optional[str]) -> str:
    text = (text or "").strip()
    return text or "(empty)"


class EngineInvocationError(FlatcRunnerError):
    """
    flatc exited with a non-zero code.

    Carries the full argument vector and both captured streams so the
    failure can be diagnosed without re-running. Never retried.
    """

    def __init__(
        self,
        argv: Sequence[str],
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
        headline: Optional[str] = None,
    ):
        self.argv = list(argv)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        if headline is None:
            headline = f"flatc failed with exit code {exit_code}"
        super().__init__(self._render(headline))

    def _details(self) -> list[str]:
        return []

    def _render(self, headline: str) -> str:
        return "\n".join(
            [headline]
            + self._details()
            + [
                f"Arguments: {' '.join(self.argv)}",
                "--- stdout ---",
                _format_stream(self.stdout),
                "--- stderr ---",
                _format_stream(self.stderr),
            ]
        )


class MissingOutputError(EngineInvocationError):
    """
    flatc exited 0 but produced no artifact where one was expected.

    Raised instead of returning an empty result. Usually an engine bug or
    an option mismatch (e.g. a schema without the expected file extension).
    """

    def __init__(
        self,
        argv: Sequence[str],
        expected: str,
        output_dir: str,
        files_present: Sequence[str] = (),
        stdout: str = "",
        stderr: str = "",
    ):
        self.expected = expected
        self.output_dir = output_dir
        self.files_present = list(files_present)
        super().__init__(
            argv,
            0,
            stdout,
            stderr,
            headline=f"flatc succeeded but no {expected} output was found.",
        )

    def _details(self) -> list[str]:
        return [
            f"Expected output in directory: {self.output_dir}",
            f"Files present: {', '.join(self.files_present)}",
        ]


class CodeGenerationError(FlatcRunnerError):
    """
    Code generation failed.

    The message is flatc's raw stderr: generator failures are compiler
    diagnostics meant for direct display.
    """

    def __init__(self, argv: Sequence[str], exit_code: int, stderr: str):
        self.argv = list(argv)
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(stderr)
