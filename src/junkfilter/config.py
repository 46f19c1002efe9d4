# =============================================================================
# Junkfilter Settings
# =============================================================================
# Reads and writes the junkfilter settings file and resolves where the
# trained filter lives.
#
# Locations follow the XDG Base Directory layout
# (https://specifications.freedesktop.org/basedir-spec/):
#   - $XDG_CONFIG_HOME/junkfilter/config.toml   (default ~/.config/...)
#   - $XDG_DATA_HOME/junkfilter/words.json      word store
#   - $XDG_DATA_HOME/junkfilter/words.bloom     rarity filter
#
# The file has three tables:
#
#   [params]        classifier parameters (see junkfilter.junk.params)
#   [evaluation]    spam_threshold, train_ratio
#   [paths]         database, bloom
#
# Anything missing falls back to the defaults. Command line flags override
# what the file says.
# =============================================================================

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w  # tomllib can only read

from junkfilter.junk.params import Params


# =============================================================================
# XDG Directories
# =============================================================================

APP_NAME = "junkfilter"


def _xdg_dir(variable: str, fallback: Path) -> Path:
    value = os.environ.get(variable)
    base = Path(value) if value else fallback
    return base / APP_NAME


def get_xdg_config_home() -> Path:
    """Directory of the settings file: $XDG_CONFIG_HOME/junkfilter."""
    return _xdg_dir("XDG_CONFIG_HOME", Path.home() / ".config")


def get_xdg_data_home() -> Path:
    """Directory of the trained filter files: $XDG_DATA_HOME/junkfilter."""
    return _xdg_dir("XDG_DATA_HOME", Path.home() / ".local" / "share")


# =============================================================================
# Settings Sections
# =============================================================================

@dataclass
class EvaluationConfig:
    """
    Settings for the evaluation commands (test, analyze, play).

    Attributes:
        spam_threshold: Probability above which a message counts as spam.
                        Only used for reporting; the filter itself just
                        produces probabilities.
        train_ratio: Part of each corpus used for training by analyze.
    """
    spam_threshold: float = 0.95
    train_ratio: float = 0.5


@dataclass
class PathsConfig:
    """
    Locations of the persisted filter.

    Attributes:
        database: Word store file. Empty means the XDG default.
        bloom: Rarity filter file. Empty means the XDG default.
    """
    database: str = ""
    bloom: str = ""


@dataclass
class Config:
    """
    All junkfilter settings.

    Attributes:
        params: Classifier parameters.
        evaluation: Evaluation settings.
        paths: Filter file locations.

    Usage:
        >>> config = Config.load()
        >>> config.params.top_words
        10
        >>> config.database_path()
        PosixPath('/home/me/.local/share/junkfilter/words.json')
    """
    params: Params = field(default_factory=Params)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    # -------------------------------------------------------------------------
    # Locations
    # -------------------------------------------------------------------------

    @staticmethod
    def config_file_path() -> Path:
        return get_xdg_config_home() / "config.toml"

    def database_path(self) -> Path:
        """The word store file, from [paths] or the XDG default."""
        if self.paths.database:
            return Path(self.paths.database).expanduser()
        return get_xdg_data_home() / "words.json"

    def bloom_path(self) -> Path:
        """The rarity filter file, from [paths] or the XDG default."""
        if self.paths.bloom:
            return Path(self.paths.bloom).expanduser()
        return get_xdg_data_home() / "words.bloom"

    # -------------------------------------------------------------------------
    # Reading and Writing
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """
        Read the settings file.

        A missing file is not an error: all settings take their defaults.

        Args:
            path: File to read. Defaults to the XDG location.

        Raises:
            ConfigError: If the file can't be read, isn't TOML, or holds
                         invalid values.
        """
        config_path = path or cls.config_file_path()
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

        return cls._from_dict(data)

    def save(self, path: Path | None = None) -> Path:
        """
        Write the settings file, creating its directory when needed.

        Returns:
            The path written.
        """
        config_path = path or self.config_file_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "wb") as f:
            tomli_w.dump(self._to_dict(), f)
        return config_path

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        config = cls()

        # Params validates its own ranges
        try:
            config.params = Params.from_dict(data.get("params", {}))
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid [params] section: {e}") from e

        section = data.get("evaluation", {})
        try:
            config.evaluation = EvaluationConfig(
                spam_threshold=float(section.get("spam_threshold", 0.95)),
                train_ratio=float(section.get("train_ratio", 0.5)),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid [evaluation] section: {e}") from e
        if not 0.0 <= config.evaluation.train_ratio <= 1.0:
            raise ConfigError(f"train_ratio must be in [0, 1], got {config.evaluation.train_ratio}")

        section = data.get("paths", {})
        try:
            config.paths = PathsConfig(
                database=str(section.get("database", "")),
                bloom=str(section.get("bloom", "")),
            )
        except AttributeError as e:
            raise ConfigError(f"Invalid [paths] section: {e}") from e

        return config

    def _to_dict(self) -> dict[str, Any]:
        # Paths are written resolved, so the file shows where the filter lives
        return {
            "params": self.params.to_dict(),
            "evaluation": {
                "spam_threshold": self.evaluation.spam_threshold,
                "train_ratio": self.evaluation.train_ratio,
            },
            "paths": {
                "database": str(self.database_path()),
                "bloom": str(self.bloom_path()),
            },
        }


class ConfigError(Exception):
    """The settings file exists but can't be used."""


def print_paths(config: Config | None = None) -> None:
    """Show where settings and filter files are looked for."""
    config = config or Config()
    print(f"Config directory:  {get_xdg_config_home()}")
    print(f"Data directory:    {get_xdg_data_home()}")
    print()
    print(f"Config file:       {Config.config_file_path()}")
    print(f"Word store:        {config.database_path()}")
    print(f"Rarity filter:     {config.bloom_path()}")
