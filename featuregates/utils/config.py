"""Configuration management for featuregates using pydantic-settings."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# Ensure .env is loaded so ${VAR} expansion and os.environ lookups work
load_dotenv(dotenv_path=Path(".") / ".env", override=False)

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"

VALID_COMPONENTS = ("agent", "agent-windows", "controller")


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 10349


class DiscoveryConfig(BaseModel):
    """How an instance finds its own ConfigMap."""

    pod_name_env: str = "POD_NAME"
    config_map_name_env: str = "ANTREA_CONFIG_MAP_NAME"
    namespace_env: str = "POD_NAMESPACE"
    default_namespace: str = "kube-system"
    # Fixed component label; when unset the role is derived from the pod
    component: str | None = None
    agent_config_key: str = "antrea-agent.conf"
    controller_config_key: str = "antrea-controller.conf"
    timeout_seconds: float = 15.0


class KubernetesConfig(BaseModel):
    """Kubernetes API access. Empty api_url means in-cluster."""

    api_url: str = ""
    token_file: str = f"{SERVICE_ACCOUNT_DIR}/token"
    ca_file: str = f"{SERVICE_ACCOUNT_DIR}/ca.crt"
    namespace_file: str = f"{SERVICE_ACCOUNT_DIR}/namespace"
    verify_ssl: bool = True
    timeout_seconds: float = 10.0


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"
    file: str = ""
    max_size_mb: int = 100
    backup_count: int = 5


class Settings(BaseSettings):
    """Main settings class that loads from YAML and environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FEATUREGATES_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    kubernetes: KubernetesConfig = Field(default_factory=KubernetesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # FEATUREGATES_* variables override values read from the YAML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_yaml(cls, config_path: str | Path | None = None) -> "Settings":
        """Load settings from YAML file with environment variable overrides."""
        if config_path is None:
            possible_paths = [
                Path("config/settings.yaml"),
                Path("config/settings.local.yaml"),
                Path("/etc/featuregates/settings.yaml"),
            ]
            for path in possible_paths:
                if path.exists():
                    config_path = path
                    break

        config_data: dict[str, Any] = {}
        if config_path and Path(config_path).exists():
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}

        config_data = cls._expand_env_vars(config_data)

        try:
            instance = cls(**config_data)
        except Exception as e:
            raise ValueError(f"Invalid config: {e}") from e
        instance.validate()
        return instance

    def validate(self) -> None:
        """Validate critical config. Raises ValueError on failure."""
        errors: list[str] = []
        component = self.discovery.component
        if component is not None and component not in VALID_COMPONENTS:
            errors.append(
                f"discovery.component must be one of {', '.join(VALID_COMPONENTS)}"
            )
        if not self.discovery.pod_name_env.strip():
            errors.append("discovery.pod_name_env must be a non-empty string")
        if not self.discovery.config_map_name_env.strip():
            errors.append("discovery.config_map_name_env must be a non-empty string")
        if self.discovery.timeout_seconds <= 0:
            errors.append("discovery.timeout_seconds must be positive")
        if self.kubernetes.timeout_seconds <= 0:
            errors.append("kubernetes.timeout_seconds must be positive")
        if self.logging.format not in ("json", "text"):
            errors.append("logging.format must be 'json' or 'text'")
        if errors:
            raise ValueError("Config validation failed: " + "; ".join(errors))

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in config values."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            # Expand ${VAR} patterns
            if data.startswith("${") and data.endswith("}"):
                env_var = data[2:-1]
                return os.environ.get(env_var, "")
            return data
        return data


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_yaml()
