"""
Application configuration using Pydantic Settings
"""

import shlex
from typing import List, Union
from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field, field_validator


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # API Settings
    api_title: str = "Remotion Render Server"
    api_description: str = "HTTP front-end for rendering short videos with Remotion"
    api_version: str = "1.0.0"
    service_name: str = "remotion-renderer"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 10000
    debug: bool = False
    # "production" hides stack traces from error responses and logs
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "node_env"),
    )

    # Request Settings
    max_request_body_size: int = 50 * 1024 * 1024  # 50MB

    # CORS Settings
    cors_origins: Union[List[str], str] = ["*"]
    cors_allow_methods: list = ["GET", "POST", "OPTIONS"]
    cors_allow_headers: list = ["*"]

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string to list.

        Example:
            >>> parse_cors_origins("http://localhost:3000,http://localhost:8080")
            ['http://localhost:3000', 'http://localhost:8080']
        """
        if isinstance(v, str):
            if v == "*":
                return ["*"]
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        return (v or "development").strip().lower()

    # Logging Settings
    log_level: str = "INFO"
    log_format: str = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    log_file: str = "data/app.log"

    # Remotion Settings
    remotion_command: str = "npx remotion"
    remotion_project_dir: str = "."
    remotion_entry_point: str = "src/index.js"
    remotion_composition_id: str = "VideoShort"
    remotion_codec: str = "h264"
    remotion_image_format: str = "jpeg"
    remotion_jpeg_quality: int = 80
    remotion_concurrency: int = 1  # low memory mode
    remotion_disable_web_security: bool = True
    remotion_bundle_timeout: int = 180

    # Render Settings
    render_timeout_seconds: float = 300.0  # 5 minutes
    max_concurrent_renders: int = 1
    progress_log_step: int = 10  # percentage points between progress logs

    # Job id synthesis
    job_id_prefix: str = "video_"

    # Output / Temp Directory Settings
    output_directory: str = "out"
    temp_base_dir: str = "data/tmp"
    bundle_dir_prefix: str = "remotion_bundle_"
    bundle_max_age_hours: float = 1.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def remotion_command_args(self) -> List[str]:
        """CLI launcher split into argv form, e.g. ['npx', 'remotion']."""
        return shlex.split(self.remotion_command)


# Global settings instance
settings = Settings()
