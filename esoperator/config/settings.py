"""
Operator configuration using Pydantic Settings.
Loads configuration from environment variables with validation.
"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main operator settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Elasticsearch Pod Removal Operator", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: str = Field(default="development", description="Environment (development/staging/production)")
    log_level: str = Field(default="INFO", description="Logging level")

    # Health server
    host: str = Field(default="0.0.0.0", description="Health server host")
    port: int = Field(default=8080, ge=1, le=65535, description="Health server port")

    # Kubernetes
    kubeconfig_path: Optional[str] = Field(
        default=None, description="Path to kubeconfig file (None for default location)"
    )
    k8s_in_cluster: bool = Field(default=False, description="Running inside Kubernetes cluster")
    k8s_namespace: Optional[str] = Field(
        default=None, description="Namespace to watch (None for all namespaces)"
    )
    cluster_name_label: str = Field(
        default="elasticsearch.k8s.elastic.co/cluster-name",
        description="Pod label holding the name of the owning Elasticsearch resource",
    )

    # Reconciliation
    default_requeue_seconds: int = Field(
        default=10, ge=1, le=600, description="Delay before re-running a deferred pod deletion"
    )
    watch_timeout_seconds: int = Field(
        default=300, ge=10, le=3600, description="Server-side timeout of a single pod watch stream"
    )
    watch_retry_seconds: int = Field(
        default=5, ge=1, le=300, description="Pause before restarting a failed pod watch"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v.lower()

    @field_validator("k8s_namespace")
    @classmethod
    def empty_namespace_means_all(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


# Global settings instance
settings = Settings()
