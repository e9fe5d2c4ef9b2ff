"""
Configuration management for bbr_tuner.

Supports:
- TOML config files
- Environment variables
- Command-line overrides
- Sensible defaults

Priority (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Config file
4. Defaults
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Mapping

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib

from .protocol.errors import ConfigError
from .tuning.executor import DEFAULT_CONF_FILE
from .tuning.renderer import DEFAULT_CONNTRACK_PROBE
from .tuning.tiers import CONGESTION_KEY, QDISC_KEY
from .snapshot.manager import DEFAULT_RETAIN
from .discovery.preflight import MIN_KERNEL, parse_kernel_version
from .lock import DEFAULT_LOCK_FILE


# Default config file locations (searched in order)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / "bbr-tuner.toml",
    Path.home() / ".config" / "bbr-tuner" / "config.toml",
    Path("/etc/bbr-tuner.toml"),
]

ENV_CONF_FILE = "BBR_TUNER_CONF_FILE"
ENV_RETAIN = "BBR_TUNER_RETAIN"


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """A top-level TOML table, empty if absent."""
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table, got {type(section).__name__}")
    return section


def _value(section: Dict[str, Any], name: str, default: Any, kind: type) -> Any:
    """A typed value from a section. bool is not accepted where int is expected."""
    value = section.get(name.rsplit(".", 1)[-1], default)
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigError(f"{name} must be {kind.__name__}, got {value!r}")
    return value


@dataclass
class PathsConfig:
    """Filesystem locations."""
    conf_file: str = str(DEFAULT_CONF_FILE)
    meminfo: str = "/proc/meminfo"
    conntrack_probe: str = str(DEFAULT_CONNTRACK_PROBE)
    lock_file: str = str(DEFAULT_LOCK_FILE)


@dataclass
class BackupConfig:
    """Snapshot retention."""
    retain: int = DEFAULT_RETAIN


@dataclass
class VerifyConfig:
    """Values that must be live after a reload."""
    congestion_control: str = "bbr"
    qdisc: str = "fq"

    def expected(self) -> Dict[str, str]:
        return {
            CONGESTION_KEY: self.congestion_control,
            QDISC_KEY: self.qdisc,
        }


@dataclass
class PreflightConfig:
    """Pre-write host checks."""
    enabled: bool = True
    min_kernel: str = ".".join(str(v) for v in MIN_KERNEL)


@dataclass
class OutputConfig:
    """Output configuration."""
    quiet: bool = False
    verbose: bool = False


@dataclass
class Config:
    """Main configuration container."""
    paths: PathsConfig = field(default_factory=PathsConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    verify: VerifyConfig = field(default_factory=VerifyConfig)
    preflight: PreflightConfig = field(default_factory=PreflightConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Source tracking
    _config_file: Optional[Path] = None

    @property
    def config_file(self) -> Optional[Path]:
        return self._config_file

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Config":
        """
        Load configuration from file, then apply environment overrides.

        Args:
            config_path: Explicit path to config file. If None, searches default locations.
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Config instance with loaded values
        """
        config = cls()

        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise ConfigError(f"Config file not found: {config_path}")
        else:
            path = cls._find_config_file()

        if path:
            config = cls._load_from_file(path)
            config._config_file = path

        return config.override_from_env(os.environ if environ is None else environ)

    @classmethod
    def _find_config_file(cls) -> Optional[Path]:
        """Find config file in default locations."""
        for path in CONFIG_SEARCH_PATHS:
            if path.exists():
                return path
        return None

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load config from TOML file."""
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Create Config from dictionary.

        Raises:
            ConfigError: If a section is not a table or a value has the wrong type
        """
        config = cls()

        paths = _section(data, "paths")
        config.paths = PathsConfig(
            conf_file=_value(paths, "paths.conf_file", config.paths.conf_file, str),
            meminfo=_value(paths, "paths.meminfo", config.paths.meminfo, str),
            conntrack_probe=_value(paths, "paths.conntrack_probe", config.paths.conntrack_probe, str),
            lock_file=_value(paths, "paths.lock_file", config.paths.lock_file, str),
        )

        backup = _section(data, "backup")
        config.backup = BackupConfig(
            retain=_value(backup, "backup.retain", config.backup.retain, int),
        )

        verify = _section(data, "verify")
        config.verify = VerifyConfig(
            congestion_control=_value(verify, "verify.congestion_control", config.verify.congestion_control, str),
            qdisc=_value(verify, "verify.qdisc", config.verify.qdisc, str),
        )

        pre = _section(data, "preflight")
        config.preflight = PreflightConfig(
            enabled=_value(pre, "preflight.enabled", config.preflight.enabled, bool),
            min_kernel=_value(pre, "preflight.min_kernel", config.preflight.min_kernel, str),
        )

        out = _section(data, "output")
        config.output = OutputConfig(
            quiet=_value(out, "output.quiet", config.output.quiet, bool),
            verbose=_value(out, "output.verbose", config.output.verbose, bool),
        )

        return config

    def override_from_env(self, environ: Mapping[str, str]) -> "Config":
        """Apply BBR_TUNER_* environment overrides."""
        if environ.get(ENV_CONF_FILE):
            self.paths.conf_file = environ[ENV_CONF_FILE]
        if environ.get(ENV_RETAIN):
            try:
                self.backup.retain = int(environ[ENV_RETAIN])
            except ValueError:
                raise ConfigError(f"{ENV_RETAIN} must be an integer, got {environ[ENV_RETAIN]!r}")
        return self

    def override_from_args(self, args) -> "Config":
        """
        Override config values from argparse namespace.

        Args with value None are ignored (keeping config file values).
        """
        if getattr(args, "conf_file", None):
            self.paths.conf_file = args.conf_file
        if getattr(args, "retain", None) is not None:
            self.backup.retain = args.retain
        if getattr(args, "skip_checks", False):
            self.preflight.enabled = False
        if getattr(args, "quiet", False):
            self.output.quiet = True
        if getattr(args, "verbose", False):
            self.output.verbose = True
        return self

    def min_kernel_version(self):
        if not isinstance(self.preflight.min_kernel, str):
            return None
        return parse_kernel_version(self.preflight.min_kernel)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        retain = self.backup.retain
        if not isinstance(retain, int) or isinstance(retain, bool) or retain < 1:
            errors.append(f"backup.retain must be an integer >= 1, got {self.backup.retain!r}")

        if not isinstance(self.paths.conf_file, str) or not self.paths.conf_file:
            errors.append(f"paths.conf_file must be a non-empty path, got {self.paths.conf_file!r}")
        elif not self.paths.conf_file.endswith(".conf"):
            errors.append(f"paths.conf_file must end in .conf to be loaded by sysctl: {self.paths.conf_file}")

        if self.min_kernel_version() is None:
            errors.append(f"preflight.min_kernel is not a version: {self.preflight.min_kernel!r}")

        if not self.verify.congestion_control:
            errors.append("verify.congestion_control is required")
        if not self.verify.qdisc:
            errors.append("verify.qdisc is required")

        if self.output.quiet and self.output.verbose:
            errors.append("output.quiet and output.verbose are mutually exclusive")

        return errors

    def summary(self, include_config_path: bool = True) -> str:
        """Generate human-readable config summary."""
        lines = []

        if include_config_path:
            if self._config_file:
                lines.append(f"Config: {self._config_file}")
            else:
                lines.append("Config: (defaults)")

        lines.append(f"Managed file: {self.paths.conf_file}")
        lines.append(f"Backups kept: {self.backup.retain}")
        lines.append(f"Verify: {self.verify.congestion_control} + {self.verify.qdisc}")
        lines.append(
            f"Preflight: kernel >= {self.preflight.min_kernel}"
            if self.preflight.enabled else "Preflight: (skipped)"
        )

        return "\n".join(lines)


def create_example_config(path: str = "bbr-tuner.toml") -> Path:
    """Create example config file."""
    target = Path(path)

    if target.exists():
        raise FileExistsError(f"Config file already exists: {path}")

    target.write_text(f"""# bbr-tuner Configuration

[paths]
conf_file = "{DEFAULT_CONF_FILE}"
lock_file = "{DEFAULT_LOCK_FILE}"

[backup]
retain = {DEFAULT_RETAIN}

[verify]
congestion_control = "bbr"
qdisc = "fq"

[preflight]
enabled = true
min_kernel = "{'.'.join(str(v) for v in MIN_KERNEL)}"
""")

    return target
