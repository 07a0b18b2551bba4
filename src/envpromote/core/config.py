"""envpromote configuration file (~/.envpromote/config.toml).

Example config:
  poll_interval = "20s"
  timeout = "1h"
  auto_merge = true
  base_branch = "main"
  manifest_path = "env/requirements.yaml"

  [hosts]
  # git hosts that are not github.com / gitlab.com / bitbucket.org
  "git.example.com" = "gitea"

Read with tomllib; written with tomlkit so hand-written comments survive
`envpromote config set`.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import tomlkit

from envpromote.core.durations import DurationParseError, format_duration, parse_duration
from envpromote.gateway.git_hosting.errors import UnknownHostKindError
from envpromote.gateway.git_hosting.factory import validate_host_kind
from envpromote.promotion.types import DEFAULT_MANIFEST_PATH

CONFIG_ENV_VAR = "ENVPROMOTE_CONFIG"

DEFAULT_POLL_INTERVAL_SECONDS = 20.0
DEFAULT_TIMEOUT_SECONDS = 3600.0

# user-settable top-level keys and their descriptions, in display order
CONFIG_KEYS: dict[str, str] = {
    "poll_interval": "Time between pull request status checks (e.g. 20s)",
    "timeout": "How long to wait for a promotion to merge (e.g. 1h)",
    "auto_merge": "Merge promotion pull requests once CI is green",
    "base_branch": "Branch promotion pull requests target",
    "manifest_path": "Manifest path inside the environment repository",
}


class ConfigError(ValueError):
    """The configuration file or a value written to it is invalid."""


@dataclass(frozen=True)
class PromoteConfig:
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    auto_merge: bool = True
    base_branch: str = "main"
    manifest_path: str = DEFAULT_MANIFEST_PATH
    hosts: dict[str, str] = field(default_factory=dict)

    def display_value(self, key: str) -> str:
        if key == "poll_interval":
            return format_duration(self.poll_interval_seconds)
        if key == "timeout":
            return format_duration(self.timeout_seconds)
        if key == "auto_merge":
            return "true" if self.auto_merge else "false"
        if key == "base_branch":
            return self.base_branch
        if key == "manifest_path":
            return self.manifest_path
        if key.startswith("hosts."):
            host = key[len("hosts.") :]
            if host in self.hosts:
                return self.hosts[host]
        msg = f"Key not found: {key}"
        raise ConfigError(msg)


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return Path.home() / ".envpromote" / "config.toml"


def load_config(path: Path) -> PromoteConfig:
    """Load the config file if present; otherwise return defaults.

    Raises:
        ConfigError: If the file is not valid TOML or holds invalid values
    """
    if not path.exists():
        return PromoteConfig()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid config file {path}: {e}"
        raise ConfigError(msg) from e

    defaults = PromoteConfig()
    hosts = {str(k): str(v) for k, v in data.get("hosts", {}).items()}
    for host, kind in hosts.items():
        _check_host_kind(host, kind)

    return PromoteConfig(
        poll_interval_seconds=_duration(data, "poll_interval", defaults.poll_interval_seconds),
        timeout_seconds=_duration(data, "timeout", defaults.timeout_seconds),
        auto_merge=bool(data.get("auto_merge", defaults.auto_merge)),
        base_branch=str(data.get("base_branch", defaults.base_branch)),
        manifest_path=str(data.get("manifest_path", defaults.manifest_path)),
        hosts=hosts,
    )


def write_config_value(path: Path, key: str, raw_value: str) -> None:
    """Validate and store one value, preserving the rest of the file.

    Raises:
        ConfigError: If the key is unknown or the value invalid
    """
    if path.exists():
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    else:
        doc = tomlkit.document()

    if key.startswith("hosts."):
        host = key[len("hosts.") :]
        if not host:
            msg = f"Invalid key: {key}"
            raise ConfigError(msg)
        _check_host_kind(host, raw_value)
        if "hosts" not in doc:
            doc["hosts"] = tomlkit.table()
        doc["hosts"][host] = raw_value  # type: ignore[index]
    elif key in ("poll_interval", "timeout"):
        try:
            parse_duration(raw_value)
        except DurationParseError as e:
            raise ConfigError(str(e)) from e
        doc[key] = raw_value
    elif key == "auto_merge":
        lowered = raw_value.lower()
        if lowered not in ("true", "false"):
            msg = f"Invalid value for auto_merge: {raw_value} (expected true or false)"
            raise ConfigError(msg)
        doc[key] = lowered == "true"
    elif key in CONFIG_KEYS:
        doc[key] = raw_value
    else:
        msg = f"Invalid key: {key}"
        raise ConfigError(msg)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def _duration(data: dict, key: str, default: float) -> float:
    if key not in data:
        return default
    try:
        return parse_duration(str(data[key]))
    except DurationParseError as e:
        msg = f"Invalid {key} in config: {e}"
        raise ConfigError(msg) from e


def _check_host_kind(host: str, kind: str) -> None:
    try:
        validate_host_kind(kind)
    except UnknownHostKindError as e:
        msg = f"Invalid kind for host {host}: {e}"
        raise ConfigError(msg) from e
