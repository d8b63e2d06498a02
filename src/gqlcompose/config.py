"""
Configuration management for gqlcompose
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    # Environment
    environment: str = "development"  # 'development', 'staging', 'production'
    debug: bool = False
    log_level: str = "INFO"

    # Composition
    is_federated: bool = False
    shadow_crud: bool = True
    amount_limit: int = 100

    # Custom schema definition (YAML)
    custom_schema_path: str | None = None

    # Printed schema artifact, relative to app_dir
    app_dir: str = "."
    artifact_path: str = "exports/graphql/schema.graphql"

    class Config:
        env_file = ".env"
        env_prefix = "GQLCOMPOSE_"
        case_sensitive = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


# Global settings instance
settings = Settings()
