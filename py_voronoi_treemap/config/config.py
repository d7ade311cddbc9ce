"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables (VORONOI_*)."""

    model_config = SettingsConfigDict(env_prefix="VORONOI_", env_file=".env", extra="ignore")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Layout Configuration
    default_clip_shape: str = Field(default="circle", description="Clip shape used by the API")
    default_clip_padding: float = Field(default=15, ge=0, description="Padding around the clip shape")
    max_iterations: int = Field(default=30, ge=1, description="Iteration bound used by the API")
    max_hierarchy_depth: int = Field(default=16, ge=1, description="Deepest hierarchy the API builds")
    max_cells: int = Field(default=100, ge=1, description="Most leaves the API lays out")


settings = Settings()
