"""Replicator configuration from YAML file.

Loads from config/config.yaml with all settings in one place:
- Search engine connection (host, port, scheme, credentials, target index)
- Dead-letter sink (Kafka bootstrap servers + topic)
- Outcome classification policy
- Logging

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
A placeholder the environment does not resolve is treated as a missing value.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from core.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-(([^}]*))?)?\}")
_UNRESOLVED_PATTERN = re.compile(r"\$\{[^}]+\}")

VALID_SCHEMES = ("http", "https")
VALID_SECURITY_PROTOCOLS = ("PLAINTEXT", "SSL", "SASL_PLAINTEXT", "SASL_SSL")
VALID_SASL_MECHANISMS = ("PLAIN", "SCRAM-SHA-256", "SCRAM-SHA-512")


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return _ENV_PATTERN.sub(replacer, data)
    else:
        return data


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip() or bool(_UNRESOLVED_PATTERN.search(value))
    return False


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# Default config file: config/config.yaml next to this module
DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"


@dataclass
class SearchConfig:
    """Search engine connection and target index."""

    host: str = ""
    port: Any = None
    scheme: str = "https"
    index: str = ""
    username: str = ""
    password: str = ""
    token: str = ""
    timeout_seconds: float = 30.0
    refresh: str = ""

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def uses_basic_auth(self) -> bool:
        return not _is_missing(self.username) and not _is_missing(self.password)

    @property
    def uses_bearer_token(self) -> bool:
        return not _is_missing(self.token)


@dataclass
class DeadLetterConfig:
    """Dead-letter sink address and Kafka producer settings."""

    bootstrap_servers: str = ""
    topic: str = ""
    security_protocol: str = "PLAINTEXT"
    sasl_mechanism: str = "PLAIN"
    sasl_plain_username: str = ""
    sasl_plain_password: str = ""
    request_timeout_ms: int = 30000


@dataclass
class ReplicatorConfig:
    """Replicator configuration.

    Configuration structure:
        search:
          host, port, scheme, index
          username + password  |  token
          timeout_seconds, refresh
        dead_letter:
          bootstrap_servers, topic
          security_protocol, sasl_mechanism, sasl_plain_username, sasl_plain_password
        classification:
          non_retryable_statuses: [400]
        logging:
          level: INFO
          json: true
    """

    search: SearchConfig = field(default_factory=SearchConfig)
    dead_letter: DeadLetterConfig = field(default_factory=DeadLetterConfig)
    non_retryable_statuses: List[int] = field(default_factory=lambda: [400])
    log_level: str = "INFO"
    json_logs: bool = True

    def missing_values(self) -> List[str]:
        """Names of every required value that is absent."""
        required = {
            "search.host": self.search.host,
            "search.port": self.search.port,
            "search.scheme": self.search.scheme,
            "search.index": self.search.index,
            "dead_letter.bootstrap_servers": self.dead_letter.bootstrap_servers,
            "dead_letter.topic": self.dead_letter.topic,
        }
        missing = [name for name, value in required.items() if _is_missing(value)]

        if not (self.search.uses_basic_auth or self.search.uses_bearer_token):
            missing.append("search.username/search.password or search.token")

        sasl = self.dead_letter.security_protocol.startswith("SASL")
        if sasl:
            if _is_missing(self.dead_letter.sasl_plain_username):
                missing.append("dead_letter.sasl_plain_username")
            if _is_missing(self.dead_letter.sasl_plain_password):
                missing.append("dead_letter.sasl_plain_password")
        return missing

    def validate(self) -> None:
        """Validate configuration for completeness and constraints.

        Raises:
            ConfigurationError: naming every missing value, or the first invalid one
        """
        missing = self.missing_values()
        if missing:
            raise ConfigurationError(
                f"Missing configuration values: {missing}", missing=missing
            )

        try:
            port = int(self.search.port)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"search.port must be an integer, got '{self.search.port}'"
            ) from None
        if not 0 < port < 65536:
            raise ConfigurationError(f"search.port must be between 1 and 65535, got {port}")
        self.search.port = port

        if self.search.scheme not in VALID_SCHEMES:
            raise ConfigurationError(
                f"search.scheme must be one of {list(VALID_SCHEMES)}, got '{self.search.scheme}'"
            )
        if self.search.timeout_seconds <= 0:
            raise ConfigurationError(
                f"search.timeout_seconds must be > 0, got {self.search.timeout_seconds}"
            )
        if self.dead_letter.security_protocol not in VALID_SECURITY_PROTOCOLS:
            raise ConfigurationError(
                f"dead_letter.security_protocol must be one of {list(VALID_SECURITY_PROTOCOLS)}, "
                f"got '{self.dead_letter.security_protocol}'"
            )
        if (
            self.dead_letter.security_protocol.startswith("SASL")
            and self.dead_letter.sasl_mechanism not in VALID_SASL_MECHANISMS
        ):
            raise ConfigurationError(
                f"dead_letter.sasl_mechanism must be one of {list(VALID_SASL_MECHANISMS)}, "
                f"got '{self.dead_letter.sasl_mechanism}'"
            )
        for status in self.non_retryable_statuses:
            if not isinstance(status, int) or not 400 <= status < 600:
                raise ConfigurationError(
                    f"classification.non_retryable_statuses must contain HTTP error codes, got {status!r}"
                )
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            raise ConfigurationError(f"logging.level is not a valid level: '{self.log_level}'")


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _build_config(data: Dict[str, Any]) -> ReplicatorConfig:
    search = data.get("search", {}) or {}
    dead_letter = data.get("dead_letter", {}) or {}
    classification = data.get("classification", {}) or {}
    logging_section = data.get("logging", {}) or {}

    return ReplicatorConfig(
        search=SearchConfig(
            host=search.get("host", ""),
            port=search.get("port"),
            scheme=search.get("scheme", "https"),
            index=search.get("index", ""),
            username=search.get("username", "") or "",
            password=search.get("password", "") or "",
            token=search.get("token", "") or "",
            timeout_seconds=float(search.get("timeout_seconds", 30)),
            refresh=str(search.get("refresh", "") or ""),
        ),
        dead_letter=DeadLetterConfig(
            bootstrap_servers=dead_letter.get("bootstrap_servers", ""),
            topic=dead_letter.get("topic", ""),
            security_protocol=dead_letter.get("security_protocol", "PLAINTEXT"),
            sasl_mechanism=dead_letter.get("sasl_mechanism", "PLAIN"),
            sasl_plain_username=dead_letter.get("sasl_plain_username", "") or "",
            sasl_plain_password=dead_letter.get("sasl_plain_password", "") or "",
            request_timeout_ms=int(dead_letter.get("request_timeout_ms", 30000)),
        ),
        non_retryable_statuses=[
            int(s) for s in classification.get("non_retryable_statuses", [400])
        ],
        log_level=str(logging_section.get("level", "INFO")),
        json_logs=_as_bool(logging_section.get("json"), True),
    )


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ReplicatorConfig:
    """Load replicator configuration from config.yaml and validate it.

    Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.

    Raises:
        FileNotFoundError: config file does not exist
        ConfigurationError: a required value is absent or invalid
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n" f"Expected file: config/config.yaml"
        )

    logger.info(f"Loading configuration from file: {config_path}")
    yaml_data = _expand_env_vars(load_yaml(config_path))

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        yaml_data = _deep_merge(yaml_data, overrides)

    config = _build_config(yaml_data)

    logger.debug("Validating configuration...")
    config.validate()
    logger.debug(
        "Configuration loaded successfully",
        extra={
            "index_name": config.search.index,
            "dlq_topic": config.dead_letter.topic,
        },
    )
    return config


_replicator_config: Optional[ReplicatorConfig] = None


def get_config() -> ReplicatorConfig:
    """Get or load the singleton config instance."""
    global _replicator_config
    if _replicator_config is None:
        _replicator_config = load_config()
    return _replicator_config


def set_config(config: ReplicatorConfig) -> None:
    """Set the singleton config instance (useful for testing)."""
    global _replicator_config
    _replicator_config = config


def reset_config() -> None:
    """Reset the singleton config instance (forces reload on next get_config() call)."""
    global _replicator_config
    _replicator_config = None
