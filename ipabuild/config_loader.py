"""Layered configuration: built-in defaults, an optional file and CLI overrides."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping
import json
import tomllib

import yaml


ConfigLoader = Callable[[Any], Mapping[str, Any]]


FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables."""


CONFIG_LOCATIONS: tuple[str, ...] = ("config/build.yml", "build.yml")
"""Candidate config files, searched in order relative to the working directory."""


OPTION_DEFAULTS: Dict[str, Any] = {
    "workspace": None,
    "project": None,
    "scheme": None,
    "configuration": "Debug",
    "sdk": None,
    "output": None,
    "destination": None,
    "identity": None,
    "embed": None,
    "profiles": {},
    "hockeyapp_token": True,
    "clean": True,
    "archive": True,
}
"""Every recognized option with its built-in default (``None`` means unset)."""


class ConfigFileNotFoundError(FileNotFoundError):
    """Raised when an explicitly requested configuration file does not exist."""

    def __init__(self, path: Path):
        super().__init__(f"Cannot find file \"{path}\"")
        self.path = path


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS)) or "<none>"
        raise ValueError(
            f"Unsupported configuration file extension: {suffix}. Supported: {supported}"
        )

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    try:
        with path.open(mode, **kwargs) as handle:
            data = loader(handle)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid configuration file '{path}': {exc}") from exc
    except OSError as exc:
        raise ValueError(f"Cannot read configuration file '{path}': {exc}") from exc

    # An empty YAML document decodes to None.
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")

    return data


def find_config_file(
    explicit: Path | str | None,
    *,
    root: Path,
    locations: Iterable[str] = CONFIG_LOCATIONS,
) -> Path | None:
    """Return the configuration file to load, or ``None`` when there is none.

    An explicit path must exist. Otherwise the first existing entry of
    ``locations`` (relative to ``root``) wins.
    """

    if explicit is not None:
        path = Path(explicit).expanduser()
        if not path.is_absolute():
            path = root / path
        if not path.is_file():
            raise ConfigFileNotFoundError(Path(explicit))
        return path

    for candidate in locations:
        path = root / candidate
        if path.is_file():
            return path
    return None


class BuildConfig:
    """Read-only view over the merged configuration layers.

    Lookups of keys that no layer sets return ``None`` rather than raising, so
    callers can fall back to prompting or computed defaults.
    """

    def __init__(
        self,
        values: Mapping[str, Any],
        *,
        filename: Path | None = None,
        explicit_keys: Iterable[str] | None = None,
    ) -> None:
        self._values: Dict[str, Any] = dict(values)
        self._explicit = frozenset(explicit_keys if explicit_keys is not None else self._values)
        self.filename = filename

    @classmethod
    def resolve(
        cls,
        cli_options: Mapping[str, Any],
        *,
        config_path: Path | str | None = None,
        root: Path | None = None,
    ) -> "BuildConfig":
        """Merge defaults, the discovered config file and non-``None`` CLI options."""

        base = root or Path.cwd()
        filename = find_config_file(config_path, root=base)

        file_values = load_config_file(filename) if filename is not None else {}
        overrides = {key: value for key, value in cli_options.items() if value is not None}

        values: Dict[str, Any] = dict(OPTION_DEFAULTS)
        values.update(file_values)
        values.update(overrides)
        return cls(values, filename=filename, explicit_keys=[*file_values, *overrides])

    def get(self, key: str) -> Any:
        return self._values.get(key)

    def explicit(self, key: str) -> Any:
        """Return ``key`` only when the config file or the CLI set it."""

        if key not in self._explicit:
            return None
        return self._values.get(key)

    def text(self, key: str, *, explicit: bool = False) -> str | None:
        """Return ``key`` as a string; YAML turns names like ``2048`` into numbers."""

        value = self.explicit(key) if explicit else self.get(key)
        return None if value is None else str(value)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.as_dict(), default_flow_style=False, sort_keys=True)

    @property
    def workspace(self) -> str | None:
        return self.text("workspace")

    @property
    def scheme(self) -> str | None:
        return self.text("scheme")

    @property
    def configuration(self) -> str | None:
        return self.text("configuration")

    @property
    def sdk(self) -> str | None:
        return self.text("sdk")

    @property
    def output(self) -> str | None:
        return self.text("output")

    @property
    def identity(self) -> str | None:
        return self.text("identity")

    @property
    def profiles(self) -> Mapping[str, Any]:
        profiles = self.get("profiles")
        if profiles is None:
            return {}
        if not isinstance(profiles, Mapping):
            raise TypeError("profiles must be a mapping of configuration name to profile")
        return profiles

    def profile_for(self, configuration: str | None) -> str | None:
        if configuration is None:
            return None
        profiles = {str(key): value for key, value in self.profiles.items()}
        profile = profiles.get(configuration)
        return str(profile) if profile is not None else None


__all__ = [
    "BuildConfig",
    "CONFIG_LOCATIONS",
    "ConfigFileNotFoundError",
    "ConfigLoader",
    "FILE_LOADERS",
    "OPTION_DEFAULTS",
    "find_config_file",
    "load_config_file",
]
