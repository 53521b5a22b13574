"""
Configuration loader for the daemon MCP service.

Loads settings from config.yaml. The service holds no secrets, so nothing is
read from the environment.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_SOURCE_URL = "https://daemon.wallykroeker.com/daemon.md"

# Keys accepted inside the nested ``logging:`` block of config.yaml
_LOGGING_KEYS = {
    "level": "log_level",
    "save_to_file": "save_to_file",
    "log_file_path": "log_file_path",
    "max_log_file_size": "max_log_file_size",
    "backup_count": "backup_count",
}


class GatewayConfig(BaseModel):
    """Configuration for the HTTP gateway."""

    host: str = Field(default="127.0.0.1", description="Host to bind to")
    port: int = Field(default=8000, description="Port to bind to")
    endpoint_path: str = Field(default="/", description="Path of the JSON-RPC endpoint")


class DaemonSourceConfig(BaseModel):
    """Where the upstream daemon document lives."""

    source_url: str = Field(
        default=DEFAULT_SOURCE_URL, description="Plain-text daemon document, fetched every request"
    )


class Config(BaseModel):
    """Main configuration object."""

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    daemon: DaemonSourceConfig = Field(default_factory=DaemonSourceConfig)
    log_level: str = Field(default="INFO", description="Logging level")
    save_to_file: bool = Field(default=False, description="Save logs to file")
    log_file_path: str = Field(default="server.log", description="Log file path (relative to root)")
    max_log_file_size: int = Field(
        default=10485760, description="Max log file size in bytes (10MB)"
    )
    backup_count: int = Field(default=5, description="Number of backup log files to keep")


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config.yaml file. Defaults to ./config.yaml

    Returns:
        Loaded configuration object
    """
    if config_path is None:
        config_path = Path("config.yaml")

    config_data: Dict[str, Any] = {}

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

    # Flatten the nested logging block onto the root fields
    logging_config = config_data.pop("logging", None) or {}
    for yaml_key, field_name in _LOGGING_KEYS.items():
        if yaml_key in logging_config:
            config_data[field_name] = logging_config[yaml_key]

    return Config(**config_data)
