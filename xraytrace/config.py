"""Recorder configuration: defaults, TOML file, environment and explicit overrides.

Configuration is resolved once, when a recorder is built, and passed to it
explicitly. Priority, highest first: explicit overrides, environment
variables, config file, defaults.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from xraytrace.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_DAEMON_HOST = "127.0.0.1"
DEFAULT_DAEMON_PORT = 2000
DEFAULT_DAEMON_ADDRESS = f"{DEFAULT_DAEMON_HOST}:{DEFAULT_DAEMON_PORT}"
DEFAULT_TRACE_HEADER_ENV = "_X_AMZN_TRACE_ID"

CONFIG_FILE_NAME = "xray.toml"
CONFIG_SECTION = "recorder"

ENV_VARS = {
    "daemon_address": "AWS_XRAY_DAEMON_ADDRESS",
    "trace_header_env": "XRAY_TRACE_HEADER_ENV",
    "service_version": "XRAY_SERVICE_VERSION",
    "origin": "XRAY_ORIGIN",
    "user": "XRAY_USER",
}


def _parse_endpoint(value: str) -> Tuple[str, int]:
    host, sep, port = value.strip().rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ConfigError("invalid daemon address", details={"value": value})
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ConfigError("daemon port out of range", details={"value": value})
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, port_number


def parse_daemon_address(value: str) -> Tuple[str, int]:
    """
    Parse a daemon address into (host, port).

    Accepts ``host:port`` or the two-endpoint form
    ``tcp:host:port udp:host:port``, in which case the UDP endpoint is used.

    Raises:
        ConfigError: if the address cannot be parsed
    """
    if not isinstance(value, str) or not value.strip():
        raise ConfigError("empty daemon address")

    parts = value.split()
    if len(parts) == 1 and not parts[0].startswith(("tcp:", "udp:")):
        return _parse_endpoint(parts[0])

    endpoints = {}
    for part in parts:
        scheme, sep, rest = part.partition(":")
        if not sep or scheme not in ("tcp", "udp"):
            raise ConfigError("invalid daemon address", details={"value": value})
        endpoints[scheme] = rest
    if "udp" not in endpoints:
        raise ConfigError("daemon address has no udp endpoint", details={"value": value})
    return _parse_endpoint(endpoints["udp"])


class RecorderConfig(BaseModel):
    """Validated recorder settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    daemon_address: str = DEFAULT_DAEMON_ADDRESS
    # environment variable holding the serverless host's trace header
    trace_header_env: str = DEFAULT_TRACE_HEADER_ENV
    service_version: Optional[str] = None
    origin: Optional[str] = None
    user: Optional[str] = None

    @field_validator("daemon_address")
    @classmethod
    def _check_daemon_address(cls, value: str) -> str:
        try:
            parse_daemon_address(value)
        except ConfigError as e:
            raise ValueError(str(e)) from e
        return value

    @property
    def daemon_endpoint(self) -> Tuple[str, int]:
        return parse_daemon_address(self.daemon_address)

    @property
    def daemon_host(self) -> str:
        return self.daemon_endpoint[0]

    @property
    def daemon_port(self) -> int:
        return self.daemon_endpoint[1]


def find_config_file() -> Optional[str]:
    """Look for xray.toml in the working directory, then in ~/.xray/."""
    candidates = [
        Path.cwd() / CONFIG_FILE_NAME,
        Path.home() / ".xray" / CONFIG_FILE_NAME,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return str(candidate)
    return None


def load_toml_config(path: str) -> Dict[str, Any]:
    """
    Load a TOML config file.

    Returns:
        The parsed document, or an empty dict if the file does not exist

    Raises:
        ConfigError: if the file is not valid TOML
    """
    config_path = Path(path)
    if not config_path.is_file():
        return {}
    try:
        with config_path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError("invalid TOML config file", details={"path": path, "error": e}) from e


def _from_environment(environ: Mapping[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key, env_var in ENV_VARS.items():
        value = environ.get(env_var)
        if value is None:
            continue
        if key == "daemon_address":
            try:
                parse_daemon_address(value)
            except ConfigError:
                logger.debug(
                    "No valid `%s` env variable detected falling back on default: %s",
                    env_var, DEFAULT_DAEMON_ADDRESS,
                )
                continue
        values[key] = value
    return values


def load_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RecorderConfig:
    """
    Resolve the recorder configuration.

    Args:
        config_file: Path to a TOML file; found with find_config_file() if omitted
        overrides: Explicit values, highest priority. ``None`` values are ignored.
        environ: Environment mapping, defaults to os.environ

    Raises:
        ConfigError: if the merged configuration is invalid
    """
    merged: Dict[str, Any] = {}

    path = config_file or find_config_file()
    if path:
        section = load_toml_config(path).get(CONFIG_SECTION, {})
        if not isinstance(section, dict):
            raise ConfigError(f"[{CONFIG_SECTION}] must be a table", details={"path": path})
        merged.update(section)

    merged.update(_from_environment(os.environ if environ is None else environ))
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return RecorderConfig(**merged)
    except PydanticValidationError as e:
        raise ConfigError("invalid recorder configuration", details={"errors": e.error_count()}) from e
