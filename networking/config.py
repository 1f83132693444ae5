"""
Proxy configuration loading.

Proxy endpoints can come from the environment (optionally seeded from a
``.env`` file) or from a YAML file with a top-level ``proxy`` mapping:

    proxy:
      host: proxy.example.com
      port: 1080
      type: socks5
      username: alice
      password: secret
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import dotenv
import yaml

from .exceptions import ProxyConfigurationError
from .models import ProxyConfig, ProxyCredentials, ProxyType


@dataclass(frozen=True, slots=True)
class ProxySettings:
    """Deadlines and probe target used by the session and client layers."""

    probe_target: Tuple[str, int] = ("8.8.8.8", 53)
    probe_timeout: float = 5.0
    connect_timeout: float = 10.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProxySettings":
        env = os.environ if environ is None else environ
        defaults = cls()
        probe_host = env.get("PROXY_PROBE_HOST") or defaults.probe_target[0]
        probe_port = _parse_int(env.get("PROXY_PROBE_PORT"), defaults.probe_target[1], "PROXY_PROBE_PORT")
        return cls(
            probe_target=(probe_host, probe_port),
            probe_timeout=_parse_float(env.get("PROXY_PROBE_TIMEOUT"), defaults.probe_timeout, "PROXY_PROBE_TIMEOUT"),
            connect_timeout=_parse_float(
                env.get("PROXY_CONNECT_TIMEOUT"), defaults.connect_timeout, "PROXY_CONNECT_TIMEOUT"
            ),
        )


def load_proxy_config_from_env(
    env_file: Optional[Union[str, Path]] = None,
    *,
    prefix: str = "PROXY_",
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[ProxyConfig]:
    """
    Build a ProxyConfig from environment variables.

    ``{prefix}URL`` takes precedence; otherwise ``{prefix}HOST``/``PORT``/
    ``TYPE``/``USERNAME``/``PASSWORD`` are combined. Returns None when no
    proxy is configured.
    """
    if env_file is not None and Path(env_file).exists():
        dotenv.load_dotenv(env_file, override=False)

    env = os.environ if environ is None else environ

    url = env.get(f"{prefix}URL")
    if url:
        return _config_from_url(url)

    host = env.get(f"{prefix}HOST")
    if not host:
        return None

    return build_proxy_config(
        {
            "host": host,
            "port": env.get(f"{prefix}PORT"),
            "type": env.get(f"{prefix}TYPE"),
            "username": env.get(f"{prefix}USERNAME"),
            "password": env.get(f"{prefix}PASSWORD"),
        }
    )


def load_proxy_config_from_yaml(file_path: Union[str, Path]) -> ProxyConfig:
    """Load the ``proxy`` section of a YAML file."""
    path = Path(file_path)
    if not path.exists():
        raise ProxyConfigurationError(f"Config file not found: {path}")

    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ProxyConfigurationError(f"{path} is not valid YAML: {exc}") from exc

    section = data.get("proxy") if isinstance(data, dict) else None
    if not isinstance(section, dict):
        raise ProxyConfigurationError(f"{path} has no 'proxy' mapping")

    if section.get("url"):
        return _config_from_url(str(section["url"]))
    return build_proxy_config(section)


def build_proxy_config(values: Mapping[str, Any]) -> ProxyConfig:
    """Create a ProxyConfig from a loosely typed mapping (env or YAML values)."""
    raw_type = values.get("type") or values.get("proxy_type") or ProxyType.SOCKS5.value
    try:
        proxy_type = ProxyType.parse(raw_type)
    except ValueError as exc:
        raise ProxyConfigurationError(str(exc)) from exc

    port = _parse_int(values.get("port"), _default_port(proxy_type), "port")

    username = values.get("username")
    credentials = None
    if username:
        credentials = ProxyCredentials(username=str(username), password=str(values.get("password") or ""))

    return ProxyConfig(
        host=str(values.get("host") or ""),
        port=port,
        proxy_type=proxy_type,
        credentials=credentials,
    )


def _config_from_url(url: str) -> ProxyConfig:
    try:
        return ProxyConfig.from_url(url)
    except ValueError as exc:
        raise ProxyConfigurationError(f"Invalid proxy URL {url!r}: {exc}") from exc


def _default_port(proxy_type: ProxyType) -> int:
    defaults: Dict[ProxyType, int] = {
        ProxyType.SOCKS5: 1080,
        ProxyType.HTTP: 80,
        ProxyType.HTTPS: 443,
    }
    return defaults[proxy_type]


def _parse_int(value: Any, default: int, name: str) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ProxyConfigurationError(f"{name} must be an integer, got {value!r}") from None


def _parse_float(value: Any, default: float, name: str) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ProxyConfigurationError(f"{name} must be a number, got {value!r}") from None
