import os
from dataclasses import dataclass, field
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class ClientConfig:
    default_headers: Dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"


def _read_yaml(path: str) -> Dict:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {path}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return data


def load_config(path: Optional[str] = None) -> ClientConfig:
    """Load client configuration from the environment and an optional YAML file.

    The YAML file is taken from ``path`` or the ``TYPED_HTTP_CONFIG``
    environment variable and may define ``default_headers`` and ``log_level``.
    ``TYPED_HTTP_USER_AGENT`` and ``LOG_LEVEL`` override the file.

    Returns:
        A validated ClientConfig instance.

    Raises:
        ConfigurationError: If the YAML file is missing or has the wrong shape.
        yaml.YAMLError: If the YAML file contains invalid syntax.
    """
    load_dotenv()

    path = path or os.getenv("TYPED_HTTP_CONFIG", "").strip() or None
    data = _read_yaml(path) if path else {}

    headers = data.get("default_headers") or {}
    if not isinstance(headers, dict):
        raise ConfigurationError("default_headers must be a mapping of header name to value")
    default_headers = {str(k): str(v) for k, v in headers.items()}

    user_agent = os.getenv("TYPED_HTTP_USER_AGENT", "").strip()
    if user_agent:
        default_headers["User-Agent"] = user_agent

    log_level = os.getenv("LOG_LEVEL", "").strip() or str(data.get("log_level", "INFO"))

    return ClientConfig(
        default_headers=default_headers,
        log_level=log_level.upper(),
    )
