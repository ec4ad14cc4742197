from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml

from mergelens_core.git.mirror import DEFAULT_REMOTE_URL
from mergelens_core.models import RepoId
from mergelens_core.parse import DEFAULT_BOT_NAME

DEFAULT_CONFIG: dict = {
    "addr": "127.0.0.1:3000",
    "cache_timeout": "300s",
    "allow": [],  # [owner, repo] pairs or "owner/repo" strings
    "repos_dir": "./repos",
    "remote_url": DEFAULT_REMOTE_URL,
    "bot_name": DEFAULT_BOT_NAME,
    "queue_size": 42,
}


class ConfigError(ValueError):
    """The configuration file or an override is invalid."""


def load_config(config_path: str = ".mergelens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """Return the server settings as a plain dict.

    Later sources win: DEFAULT_CONFIG, then the YAML file at ``config_path``
    (skipped when it does not exist), then every non-None value in
    ``cli_overrides``. Keys in the file may use dashes or underscores
    (``cache-timeout`` is stored as ``cache_timeout``). Values are not
    validated here; see the parse_* helpers below.

    Raises ConfigError when the file is not valid YAML or its top level is
    not a mapping.
    """
    config = {**DEFAULT_CONFIG, "allow": list(DEFAULT_CONFIG["allow"])}

    path = Path(config_path)
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        # "cache-timeout" and "cache_timeout" are the same key.
        config.update({str(key).replace("-", "_"): value for key, value in file_config.items()})

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    return config


def parse_cache_timeout(value: str) -> float:
    """Parse a ``"<seconds>s"`` duration, e.g. ``"300s"``, into seconds."""
    text = str(value)
    if not text.endswith("s"):
        raise ConfigError(f"Missing `s` suffix in cache timeout {text!r}")
    digits = text[:-1]
    if not digits.isascii() or not digits.isdigit():
        raise ConfigError(f"Failed to parse cache timeout {text!r} as an integer number of seconds")
    return float(int(digits))


def parse_addr(value: str) -> tuple[str, int]:
    """Split ``host:port`` (``[::1]:3000`` for IPv6) into its parts."""
    host, sep, port = str(value).rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ConfigError(f"Listen address must look like host:port, got {value!r}")
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ConfigError(f"Port out of range in listen address {value!r}")
    return host.strip("[]"), port_number


def parse_allow_list(entries: list) -> frozenset[RepoId]:
    """Turn ``allow`` entries into RepoIds.

    Each entry is either a two-item list ``[owner, repo]`` or a string
    ``"owner/repo"``.
    """
    allowed = set()
    for entry in entries or []:
        if isinstance(entry, str):
            try:
                allowed.add(RepoId.parse(entry))
            except ValueError as e:
                raise ConfigError(str(e)) from e
        elif isinstance(entry, (list, tuple)) and len(entry) == 2 and all(isinstance(p, str) and p for p in entry):
            allowed.add(RepoId(owner=entry[0], name=entry[1]))
        else:
            raise ConfigError(f"Invalid allow-list entry {entry!r}; expected [owner, repo] or 'owner/repo'")
    return frozenset(allowed)
