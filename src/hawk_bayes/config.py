# =============================================================================
# Configuration Management
# =============================================================================
# Handles loading, saving, and validating Hawk-Bayes configuration.
#
# XDG Base Directory Compliance (https://specifications.freedesktop.org/basedir-spec/):
#   - Config:  $XDG_CONFIG_HOME/hawk-bayes/  (default: ~/.config/hawk-bayes/)
#   - Data:    $XDG_DATA_HOME/hawk-bayes/    (default: ~/.local/share/hawk-bayes/)
#
# Files:
#   - config.toml: User configuration (classifier, lexer, degenerator, storage)
#   - hawk-bayes.db: SQLite token database (in data directory)
#
# Every section is a typed dataclass. Unknown sections or keys are rejected
# when the configuration is built, never silently ignored.
# =============================================================================

import math
import os
import tomllib  # Built into Python 3.11+
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import tomli_w  # For writing TOML (tomllib is read-only)

from hawk_bayes.core import HawkBayesError


# =============================================================================
# XDG Directory Management
# =============================================================================

# Application identifier used in all XDG paths
APP_NAME = "hawk-bayes"


def get_xdg_config_home() -> Path:
    """
    Returns the XDG config directory for Hawk-Bayes.

    Respects $XDG_CONFIG_HOME if set, otherwise uses ~/.config/hawk-bayes/
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        base = Path(xdg_config)
    else:
        base = Path.home() / ".config"
    return base / APP_NAME


def get_xdg_data_home() -> Path:
    """
    Returns the XDG data directory for Hawk-Bayes.

    Respects $XDG_DATA_HOME if set, otherwise uses ~/.local/share/hawk-bayes/
    This is where the token database lives.
    """
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        base = Path(xdg_data)
    else:
        base = Path.home() / ".local" / "share"
    return base / APP_NAME


# =============================================================================
# Configuration Data Structures
# =============================================================================

@dataclass
class ClassifierConfig:
    """
    Options consumed by scoring and combination.

    Attributes:
        min_dev: Minimum |0.5 - affinity| for a token to count as relevant.
        rob_s: Robinson smoothing strength. Validated and kept for
               compatibility; the affinity formula smooths with a fixed +1.
        rob_x: Affinity assigned to a token (and all its variants) that the
               store knows nothing about.
        use_relevant: How many of the most important distinct tokens are
                      considered for combination. An absolute count; float
                      values are truncated.

    Raises:
        ConfigError: If a value is out of range. Every section checks
        itself on construction.
    """
    min_dev: float = 0.01
    rob_s: float = 0.5
    rob_x: float = 0.5
    use_relevant: int = 15

    def __post_init__(self) -> None:
        # Truncate, never round: 15.9 means "at most 15 tokens"
        if isinstance(self.use_relevant, float) and math.isfinite(self.use_relevant):
            self.use_relevant = int(self.use_relevant)
        _check("classifier", self)


@dataclass
class LexerConfig:
    """
    Options for turning raw text into token counts.

    Attributes:
        min_size: Words shorter than this are dropped.
        max_size: Words longer than this are truncated.
        allow_numbers: Keep digit-only words.
        get_uris: Extract URLs (and their hosts) as tokens.
        get_html: Parse markup; tag names become tokens like "<b>".
        normalize_case: Lowercase all words. Off by default since the
                        degenerator already bridges case variants.
        stopwords: Words to drop, compared case-insensitively.
    """
    min_size: int = 3
    max_size: int = 30
    allow_numbers: bool = False
    get_uris: bool = True
    get_html: bool = True
    normalize_case: bool = False
    stopwords: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        _check("lexer", self)


@dataclass
class DegeneratorConfig:
    """
    Options for the degenerator.

    Attributes:
        multibyte: Reserved for locale-aware case folding. Has no effect;
                   str.lower()/str.upper() are already Unicode-aware.
    """
    multibyte: bool = False

    def __post_init__(self) -> None:
        _check("degenerator", self)


@dataclass
class StorageConfig:
    """
    Options for the token store.

    Attributes:
        db_path: SQLite database file, or ":memory:". Empty means the XDG
                 default location.
    """
    db_path: str = ""

    def __post_init__(self) -> None:
        _check("storage", self)


# Section name -> dataclass, in file order
SECTIONS: dict[str, type] = {
    "classifier": ClassifierConfig,
    "lexer": LexerConfig,
    "degenerator": DegeneratorConfig,
    "storage": StorageConfig,
}


def validate_section(name: str, data: dict[str, Any]) -> "ConfigError | None":
    """
    Check one configuration section.

    Args:
        name: Section name (e.g., "classifier").
        data: Raw key/value pairs for the section.

    Returns:
        A ConfigError describing the first problem found, or None if the
        section is valid.
    """
    section_cls = SECTIONS.get(name)
    if section_cls is None:
        return ConfigError(f"Unknown configuration section: [{name}]")
    if not isinstance(data, dict):
        return ConfigError(f"Section [{name}] must be a table")

    known = {f.name for f in fields(section_cls)}
    for key in data:
        if key not in known:
            return ConfigError(f"Unknown configuration key: {name}.{key}")

    if section_cls is ClassifierConfig:
        return _validate_classifier(data)
    if section_cls is LexerConfig:
        return _validate_lexer(data)
    if section_cls is DegeneratorConfig:
        if not isinstance(data.get("multibyte", False), bool):
            return ConfigError("degenerator.multibyte must be a boolean")
    if section_cls is StorageConfig:
        if not isinstance(data.get("db_path", ""), str):
            return ConfigError("storage.db_path must be a string")
    return None


def _check(name: str, section: Any) -> None:
    """Raise the validation error of a constructed section, if any."""
    error = validate_section(name, asdict(section))
    if error is not None:
        raise error


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_classifier(data: dict[str, Any]) -> "ConfigError | None":
    for key in ("min_dev", "rob_s", "rob_x", "use_relevant"):
        if key in data and not _is_number(data[key]):
            return ConfigError(f"classifier.{key} must be a number")

    min_dev = data.get("min_dev", 0.01)
    if not 0 <= min_dev < 0.5:
        return ConfigError(f"classifier.min_dev must be in [0, 0.5), got {min_dev}")

    rob_s = data.get("rob_s", 0.5)
    if not rob_s > 0:
        return ConfigError(f"classifier.rob_s must be positive, got {rob_s}")

    rob_x = data.get("rob_x", 0.5)
    if not 0 < rob_x < 1:
        return ConfigError(f"classifier.rob_x must be in (0, 1), got {rob_x}")

    use_relevant = data.get("use_relevant", 15)
    if not (math.isfinite(use_relevant) and use_relevant >= 1):
        return ConfigError(
            f"classifier.use_relevant must be a token count >= 1, got {use_relevant}"
        )
    return None


def _validate_lexer(data: dict[str, Any]) -> "ConfigError | None":
    for key in ("min_size", "max_size"):
        value = data.get(key, 1)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            return ConfigError(f"lexer.{key} must be a positive integer")
    if data.get("min_size", 3) > data.get("max_size", 30):
        return ConfigError("lexer.min_size must not exceed lexer.max_size")
    for key in ("allow_numbers", "get_uris", "get_html", "normalize_case"):
        if key in data and not isinstance(data[key], bool):
            return ConfigError(f"lexer.{key} must be a boolean")
    stopwords = data.get("stopwords", [])
    if not isinstance(stopwords, list) or not all(isinstance(w, str) for w in stopwords):
        return ConfigError("lexer.stopwords must be a list of strings")
    return None


@dataclass
class Config:
    """
    Main configuration container for Hawk-Bayes.

    Attributes:
        classifier: Scoring and combination options.
        lexer: Tokenization options.
        degenerator: Degenerator options.
        storage: Token store options.

    Usage:
        >>> config = Config.load()
        >>> config.classifier.min_dev
        0.01
    """
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    lexer: LexerConfig = field(default_factory=LexerConfig)
    degenerator: DegeneratorConfig = field(default_factory=DegeneratorConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # -------------------------------------------------------------------------
    # File Paths
    # -------------------------------------------------------------------------

    @staticmethod
    def config_file_path() -> Path:
        """Returns the path to the main config file."""
        return get_xdg_config_home() / "config.toml"

    @staticmethod
    def default_database_path() -> Path:
        """Returns the default path to the SQLite token database."""
        return get_xdg_data_home() / "hawk-bayes.db"

    def database_path(self) -> Path | str:
        """Returns the configured database path (":memory:" is kept as-is)."""
        if not self.storage.db_path:
            return self.default_database_path()
        if self.storage.db_path == ":memory:":
            return self.storage.db_path
        return Path(self.storage.db_path).expanduser()

    # -------------------------------------------------------------------------
    # Loading and Saving
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """
        Load configuration from a TOML file.

        If the file doesn't exist, returns the default configuration.

        Args:
            path: Config file to read. Defaults to the XDG location.

        Returns:
            Loaded Config object.

        Raises:
            ConfigError: If the file exists but is invalid.
        """
        config_path = path or cls.config_file_path()

        if not config_path.exists():
            # No config file yet - return defaults
            return cls()

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e

        return cls.from_dict(data)

    def save(self, path: Path | None = None) -> None:
        """
        Save configuration to a TOML file.

        Creates the parent directory if it doesn't exist.
        """
        config_path = path or self.config_file_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "wb") as f:
            tomli_w.dump(self.to_dict(), f)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """
        Create a Config object from a dictionary (parsed TOML).

        Raises:
            ConfigError: On an unknown section or key, or a bad value.
        """
        config = cls()

        for name, section in data.items():
            error = validate_section(name, section)
            if error is not None:
                raise error
            setattr(config, name, SECTIONS[name](**section))

        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert Config to a dictionary for TOML serialization."""
        return {name: asdict(getattr(self, name)) for name in SECTIONS}


# =============================================================================
# Exceptions
# =============================================================================

class ConfigError(HawkBayesError):
    """Raised when there's an error loading or validating configuration."""
    pass


# =============================================================================
# Utility Functions
# =============================================================================

def print_paths() -> None:
    """
    Print all XDG paths for debugging.
    Useful for users wondering where their config/data is stored.
    """
    print(f"Config:  {get_xdg_config_home()}")
    print(f"Data:    {get_xdg_data_home()}")
    print()
    print(f"Config file:  {Config.config_file_path()}")
    print(f"Database:     {Config.default_database_path()}")
