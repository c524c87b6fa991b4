"""Settings for the command line, read from an optional YAML file.

The file lives at `~/.config/make-chain.yaml` by default and may hold any of:

    debug: false
    ca-path: ~/certs
    system-certs: true
    certifi: false

Values given on the command line (or through the matching environment variables) win over the file.

A `make-chain.toml` in the same folder is not read. When one exists and the YAML file does not, a warning says
so, so that a TOML config is never ignored silently.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from pyChainMaker.logs import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = Path.home() / ".config" / "make-chain.yaml"

# Keys as written in the file, mapped to Settings fields.
_FILE_KEYS = {
    "debug": "debug",
    "ca-path": "ca_path",
    "system-certs": "system_certs",
    "certifi": "certifi_certs",
}

# The types each key accepts. Paths may be written as bare numbers.
_FILE_TYPES = {
    "debug": (bool,),
    "ca-path": (str, int),
    "system-certs": (bool,),
    "certifi": (bool,),
}


@dataclass(frozen=True)
class Settings:
    """Where certificates are loaded from, and how chatty the tool is."""

    debug: bool = False
    ca_path: str = "."
    system_certs: bool = True
    certifi_certs: bool = False

    def merge(self, **overrides) -> "Settings":
        """Return a copy with every override that is not None applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @property
    def ca_dir(self) -> Path:
        """The CA path with environment variables and `~` expanded."""
        return Path(os.path.expandvars(self.ca_path)).expanduser()


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from a YAML file. A missing file gives the defaults.

    Args:
        path (Path | str, optional): The file to read. Defaults to `~/.config/make-chain.yaml`.

    Raises:
        ValueError: If the file is not valid YAML, is not a mapping, or holds unknown keys or values of the wrong
            type. Empty values are ignored.

    Returns:
        Settings: The loaded settings.

    """
    fp = Path(path) if path is not None else DEFAULT_CONFIG_FILE
    if not fp.exists():
        if fp.with_suffix(".toml").exists():
            logger.warning(f"Ignoring {fp.with_suffix('.toml')}, settings are now read from {fp} (YAML)")
        logger.debug(f"No config file at {fp}, using defaults")
        return Settings()

    logger.debug(f"Loading config file {fp}")
    try:
        data = yaml.safe_load(fp.read_text(encoding="utf-8"))
    except yaml.YAMLError as err:
        raise ValueError(f"Config file {fp} is not valid YAML") from err

    if data is None:
        return Settings()

    if not isinstance(data, dict):
        raise ValueError(f"Config file {fp} must hold a mapping of settings")

    unknown = set(data) - set(_FILE_KEYS)
    if unknown:
        raise ValueError(f"Config file {fp} has unknown keys: {', '.join(sorted(map(str, unknown)))}")

    values = {}
    for key, value in data.items():
        if value is None:
            continue
        # bool is an int, so `ca-path: true` has to be rejected explicitly.
        if (isinstance(value, bool) and bool not in _FILE_TYPES[key]) or not isinstance(value, _FILE_TYPES[key]):
            expected = " or ".join(t.__name__ for t in _FILE_TYPES[key])
            raise ValueError(f"Config file {fp}: {key} must be a {expected}, not {value!r}")
        values[_FILE_KEYS[key]] = value

    if "ca_path" in values:
        values["ca_path"] = str(values["ca_path"])

    return Settings().merge(**values)
