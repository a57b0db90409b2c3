"""
Configuration management for flatcrunner.

Loads and validates config.yaml from the flatcrunner home directory.
The orchestration core never reads the environment; it is handed a
RunnerConfig by whoever builds the runner (the CLI, or the caller).
"""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from flatcrunner.errors import ConfigError


LOG_FORMATS = ("structured", "pretty")


def get_flatcrunner_home() -> Path:
    """Get flatcrunner home directory from FLATCRUNNER_HOME or the default."""
    return Path(
        os.environ.get("FLATCRUNNER_HOME", "~/.config/flatcrunner")
    ).expanduser()


@dataclass
class RunnerConfig:
    """
    Settings for runners and streaming transformers.

    Attributes:
        flatc_path: flatc executable used by the default subprocess engine
        binary_extension: extension of binary artifacts (without the dot)
        json_extension: extension of textual artifacts (without the dot)
        sandbox_dir: parent directory for engine sandboxes (None = system temp)
        command_timeout: seconds before a flatc process is killed (None = no limit)
        log_level: DEBUG, INFO, WARNING or ERROR
        log_format: "structured" (JSON lines) or "pretty" (rich)
    """

    flatc_path: str = "flatc"
    binary_extension: str = "mon"
    json_extension: str = "json"
    sandbox_dir: Optional[str] = None
    command_timeout: Optional[float] = None
    log_level: str = "INFO"
    log_format: str = "pretty"

    def __post_init__(self):
        self.binary_extension = self.binary_extension.lstrip(".")
        self.json_extension = self.json_extension.lstrip(".")
        self.validate()

    def validate(self) -> None:
        """Validate field values."""
        if not self.binary_extension:
            raise ConfigError("binary_extension must not be empty")
        if not self.json_extension:
            raise ConfigError("json_extension must not be empty")
        if self.binary_extension == self.json_extension:
            raise ConfigError(
                "binary_extension and json_extension must differ, "
                f"both are '{self.binary_extension}'"
            )
        if self.log_format not in LOG_FORMATS:
            raise ConfigError(
                f"log_format must be one of {LOG_FORMATS}, got '{self.log_format}'"
            )
        if self.command_timeout is not None and self.command_timeout <= 0:
            raise ConfigError("command_timeout must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunnerConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_path: Optional[Path] = None) -> RunnerConfig:
    """
    Load configuration from YAML.

    Args:
        config_path: Explicit config file. Defaults to
            $FLATCRUNNER_HOME/config.yaml, which may be absent.

    Returns:
        RunnerConfig instance

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = get_flatcrunner_home() / "config.yaml"
    config_path = Path(config_path)

    data: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}")
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(f"Configuration in {config_path} must be a mapping")
        data = loaded or {}
    elif explicit:
        raise ConfigError(f"Configuration file not found: {config_path}")

    flatc_override = os.environ.get("FLATCRUNNER_FLATC")
    if flatc_override:
        data["flatc_path"] = flatc_override

    return RunnerConfig.from_dict(data)
