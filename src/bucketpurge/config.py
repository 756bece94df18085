"""YAML configuration loading."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import ConfigError


@dataclass
class StorageConfig:
    """Connection settings for the S3-compatible endpoint."""

    endpoint: str
    bucket: str
    access_key_id: str = ""
    secret_access_key: str = ""
    use_ssl: bool = True
    region: str = "us-east-1"

    @property
    def endpoint_url(self) -> str:
        """Endpoint as a URL; a bare host:port gets a scheme from use_ssl."""
        if "://" in self.endpoint:
            return self.endpoint
        scheme = "https" if self.use_ssl else "http"
        return f"{scheme}://{self.endpoint}"


@dataclass
class CleanupConfig:
    max_age_days: int = 30
    min_size_bytes: int = 0
    dry_run: bool = True
    workers: int = 10
    log_file: str | None = None
    progress_interval: float = 10.0
    single_pass: bool = False


@dataclass
class PurgeConfig:
    storage: StorageConfig
    cleanup: CleanupConfig = field(default_factory=CleanupConfig)


# YAML key -> (attribute, expected types)
_STORAGE_KEYS = {
    "endpoint": ("endpoint", (str,)),
    "bucket": ("bucket", (str,)),
    "accessKeyId": ("access_key_id", (str,)),
    "secretAccessKey": ("secret_access_key", (str,)),
    "useSSL": ("use_ssl", (bool,)),
    "region": ("region", (str,)),
}

_CLEANUP_KEYS = {
    "maxAge": ("max_age_days", (int,)),
    "minSize": ("min_size_bytes", (int,)),
    "dryRun": ("dry_run", (bool,)),
    "workers": ("workers", (int,)),
    "logFile": ("log_file", (str,)),
    "progressInterval": ("progress_interval", (int, float)),
    "singlePass": ("single_pass", (bool,)),
}


def _read_section(section: dict, keys: dict, section_name: str) -> dict:
    values = {}
    for yaml_key, (attr, types) in keys.items():
        if yaml_key not in section or section[yaml_key] is None:
            continue
        value = section[yaml_key]
        # bool is an int subclass; never accept it for numeric settings
        if not isinstance(value, types) or (isinstance(value, bool) and bool not in types):
            expected = " or ".join(t.__name__ for t in types)
            raise ConfigError(f"{section_name}.{yaml_key} must be {expected}, got {type(value).__name__}")
        values[attr] = value
    return values


def parse_config(data: dict) -> PurgeConfig:
    """
    Build a PurgeConfig from an already-parsed YAML mapping.

    Raises:
        ConfigError: If required settings are missing or have the wrong type
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    storage_section = data.get("minio", data.get("s3"))
    if not isinstance(storage_section, dict):
        raise ConfigError("Missing 'minio' (or 's3') section")
    cleanup_section = data.get("cleanup") or {}
    if not isinstance(cleanup_section, dict):
        raise ConfigError("'cleanup' section must be a mapping")

    storage_values = _read_section(storage_section, _STORAGE_KEYS, "minio")
    for required in ("endpoint", "bucket"):
        if not storage_values.get(required):
            raise ConfigError(f"minio.{required} is required")

    cleanup = CleanupConfig(**_read_section(cleanup_section, _CLEANUP_KEYS, "cleanup"))
    return PurgeConfig(storage=StorageConfig(**storage_values), cleanup=cleanup)


def load_config(path: str | Path) -> PurgeConfig:
    """
    Load the YAML configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed configuration

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse configuration file {path}: {e}") from e

    return parse_config(data)
