"""Configuration system for proctop."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit

from proctop.cursor import SortField

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class SamplingConfig:
    """Refresh cycle configuration."""

    refresh_ms: int = 2000  # Timer period, also the divisor for per-process CPU%
    double_count_irq: bool = True  # Count irq twice in the CPU sum, as gptop does


@dataclass
class DisplayConfig:
    """Process table configuration."""

    sort_field: str = "cpu"  # One of: pid, cpu, mem, state
    sort_descending: bool = True
    command_width: int = 50  # Truncate commands to this many characters (0 = no limit)

    @property
    def sort_key(self) -> SortField:
        """Return the sort field as a SortField."""
        return SortField(self.sort_field)


@dataclass
class LoggingConfig:
    """Log file configuration."""

    level: str = "INFO"
    max_bytes: int = 1024 * 1024  # Max log file size (1MB)
    backup_count: int = 3  # Number of rotated log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


def _load_section(cls: type, data: dict) -> object:
    """Build a section dataclass from TOML data, keeping defaults for missing keys.

    Raises:
        ValueError: If a value's type does not match the field's default.
    """
    defaults = cls()
    values = {}
    for f in fields(cls):
        default = getattr(defaults, f.name)
        value = data.get(f.name, default)
        # bool is an int subclass, so compare exact types
        if type(value) is not type(default):
            raise ValueError(
                f"{f.name} must be {type(default).__name__}, got {type(value).__name__} {value!r}"
            )
        values[f.name] = value
    return cls(**values)


@dataclass
class Config:
    """Main configuration container."""

    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "proctop"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "proctop"

    @property
    def log_path(self) -> Path:
        """Log file path."""
        return self.state_dir / "proctop.log"

    def validate(self) -> None:
        """
        Check values that the dataclasses cannot enforce.

        Raises:
            ValueError: If a value is out of range or unknown.
        """
        try:
            self.display.sort_key
        except ValueError:
            valid = [f.value for f in SortField]
            raise ValueError(
                f"Unknown sort field: {self.display.sort_field!r}. Valid fields: {valid}"
            ) from None
        if self.sampling.refresh_ms <= 0:
            raise ValueError(f"refresh_ms must be positive, got {self.sampling.refresh_ms}")
        if self.display.command_width < 0:
            raise ValueError(
                f"command_width must not be negative, got {self.display.command_width}"
            )
        if self.logging.level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Unknown log level: {self.logging.level!r}. Valid levels: {list(LOG_LEVELS)}"
            )

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("sampling", "display", "logging"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ValueError: If the file is not valid TOML or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f).unwrap()
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        config = cls(
            sampling=_load_section(SamplingConfig, data.get("sampling", {})),
            display=_load_section(DisplayConfig, data.get("display", {})),
            logging=_load_section(LoggingConfig, data.get("logging", {})),
        )
        config.validate()
        return config
