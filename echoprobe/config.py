import os
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

LOG_LEVELS = {"TRACE": "DEBUG", "DEBUG": "DEBUG", "INFO": "INFO", "WARN": "WARNING",
              "WARNING": "WARNING", "ERROR": "ERROR"}


class ConfigError(ValueError):
    """Fatal configuration problem; nothing may be bound after this."""


def _split_specs(raw) -> List[str]:
    if isinstance(raw, str):
        raw = raw.split(',')
    return [str(item).strip() for item in raw if str(item).strip()]


class ProbeConfig(BaseModel):
    """
    Validation model for the honeypot settings.
    Frozen after construction so every task can share one instance.
    """
    model_config = ConfigDict(frozen=True)

    ports: List[str] = Field(..., min_length=1)
    active: bool = False
    scan_ports: List[str] = Field(default_factory=list)
    connection_timeout: int = Field(30, gt=0)
    scan_connect_timeout: float = Field(3.0, gt=0)
    banner_timeout: float = Field(5.0, gt=0)
    bind_host: str = "0.0.0.0"
    log_dir: Path = Path("logs")
    log_level: str = "INFO"
    shutdown_grace: float = Field(5.0, ge=0)

    @field_validator('ports', 'scan_ports', mode='before')
    @classmethod
    def split_specs(cls, v):
        # Syntax is checked per spec later; bad specs are not fatal
        return _split_specs(v)

    @field_validator('active', mode='before')
    @classmethod
    def parse_active(cls, v):
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        return LOG_LEVELS.get(str(v).strip().upper(), "INFO")


# Environment variable -> ProbeConfig field
ENV_FIELDS = {
    "PORTS": "ports",
    "ACTIVE": "active",
    "SCAN_PORTS": "scan_ports",
    "CONNECTION_TIMEOUT_SECS": "connection_timeout",
    "SCAN_CONNECT_TIMEOUT_SECS": "scan_connect_timeout",
    "BANNER_TIMEOUT_SECS": "banner_timeout",
    "BIND_HOST": "bind_host",
    "LOG_DIR": "log_dir",
    "LOG_LEVEL": "log_level",
    "SHUTDOWN_GRACE_SECS": "shutdown_grace",
}


def load_config(environ: Optional[Mapping[str, str]] = None,
                env_file: Optional[str] = ".env",
                **overrides) -> ProbeConfig:
    """
    Builds a ProbeConfig from the environment, with values from `env_file`
    filling in anything the environment leaves unset.
    Raises ConfigError for a missing PORTS or any invalid value.
    """
    values = {}
    if env_file and Path(env_file).is_file():
        values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    values.update(os.environ if environ is None else environ)

    if not values.get("PORTS", "").strip():
        raise ConfigError("PORTS must list at least one port or range")

    data = {field: values[name] for name, field in ENV_FIELDS.items() if name in values}
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ProbeConfig(**data)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
