"""Configuration management system"""

from typing import Optional
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Document store configuration"""
    url: str = Field(default="sqlite+aiosqlite:///./bookgraph.db", description="SQLAlchemy async database URL")
    echo: bool = Field(default=False, description="Echo SQL statements")

    model_config = SettingsConfigDict(env_prefix="DATABASE_", env_file=".env", extra="ignore")


class AuthConfig(BaseSettings):
    """Token signing configuration"""
    secret: Optional[str] = Field(default=None, description="Shared secret used to sign bearer tokens")
    algorithm: str = Field(default="HS256")
    token_ttl_seconds: Optional[int] = Field(default=None, description="Adds an exp claim when set")

    model_config = SettingsConfigDict(env_prefix="JWT_", env_file=".env", extra="ignore")


class ServiceConfig(BaseSettings):
    """Service-level configuration"""
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="structured", description="structured or json")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4000)

    model_config = SettingsConfigDict(env_prefix="SERVICE_", env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")


class GraphQLConfig(BaseSettings):
    """GraphQL endpoint configuration"""
    graphiql: bool = Field(default=True)
    loader_batch_size: Optional[int] = Field(default=None, description="Max keys per aggregate call, unbounded when unset")
    slow_batch_seconds: float = Field(default=0.1, description="Batches slower than this are logged")

    model_config = SettingsConfigDict(env_prefix="GRAPHQL_", env_file=".env", extra="ignore")


class AppConfig(BaseSettings):
    """Application configuration"""
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    graphql: GraphQLConfig = Field(default_factory=GraphQLConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_config() -> AppConfig:
    """Get cached configuration instance"""
    return AppConfig()
