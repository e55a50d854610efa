"""
Configuration management.

Centralized environment variable management and validation. Settings are
immutable and built once per process by ``get_settings()``; components take
the instance they need instead of reading the environment ad hoc.
"""

from functools import lru_cache
from typing import Literal, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from shared.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Supabase configuration
    supabase_url: str
    supabase_service_key: str
    supabase_anon_key: str
    supabase_jwt_secret: str  # Supabase JWT secret for token validation
    storage_bucket: str = "roast-me-ai"

    # AI gateway (OpenAI-compatible) for vision analysis and roast copy
    ai_gateway_url: str = "https://api.openai.com/v1"
    ai_gateway_api_key: str
    vision_model: str = "gpt-4o"
    roast_model: str = "gpt-4o-mini"

    # Image generation
    replicate_api_token: str
    image_model: str = "black-forest-labs/flux-kontext-pro"
    generation_timeout_seconds: float = 120.0

    # Payment processor (hosted checkout); only product ids are consumed here
    payment_server: Literal["production", "sandbox"] = "production"
    polar_access_token: Optional[str] = None
    polar_sandbox_access_token: Optional[str] = None
    polar_production_product_id_20_credits: str = ""
    polar_production_product_id_50_credits: str = ""
    polar_production_product_id_100_credits: str = ""
    polar_sandbox_product_id_20_credits: str = ""
    polar_sandbox_product_id_50_credits: str = ""
    polar_sandbox_product_id_100_credits: str = ""

    # Redis is optional; when unset the JWT validation cache is skipped
    redis_url: Optional[str] = None

    # Frontend configuration (CORS, share links, fallback redirects)
    frontend_url: str

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: Optional[str] = "logs"

    # AI_MOCK_MODE: return canned analysis/roast/image instead of calling providers
    ai_mock_mode: bool = False

    # Credits
    free_starting_credits: int = 3

    # Share links; None means short URLs never expire
    short_url_ttl_days: Optional[int] = None

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: str) -> str:
        """Validate Supabase URL format."""
        if not v:
            raise ConfigError("SUPABASE_URL is required")
        if not v.startswith(("http://", "https://")):
            raise ConfigError("SUPABASE_URL must be a valid HTTP/HTTPS URL")
        return v.rstrip("/")

    @field_validator("supabase_service_key", "supabase_anon_key")
    @classmethod
    def validate_supabase_keys(cls, v: str, info) -> str:
        """Validate Supabase key format."""
        name = info.field_name.upper()
        if not v:
            raise ConfigError(f"{name} is required")
        if len(v) < 50:
            raise ConfigError(f"{name} appears to be invalid")
        return v

    @field_validator("supabase_jwt_secret")
    @classmethod
    def validate_supabase_jwt_secret(cls, v: str) -> str:
        """Validate Supabase JWT secret format."""
        if not v:
            raise ConfigError("SUPABASE_JWT_SECRET is required")
        if len(v) < 32:
            raise ConfigError("SUPABASE_JWT_SECRET must be at least 32 characters")
        return v

    @field_validator("ai_gateway_url", "frontend_url")
    @classmethod
    def validate_http_url(cls, v: str, info) -> str:
        """Validate gateway and frontend URL format."""
        name = info.field_name.upper()
        if not v:
            raise ConfigError(f"{name} is required")
        if not v.startswith(("http://", "https://")):
            raise ConfigError(f"{name} must be a valid HTTP/HTTPS URL")
        return v.rstrip("/")

    @field_validator("ai_gateway_api_key")
    @classmethod
    def validate_ai_gateway_api_key(cls, v: str) -> str:
        """Validate AI gateway key is present."""
        if not v or len(v) < 20:
            raise ConfigError("AI_GATEWAY_API_KEY appears to be invalid")
        return v

    @field_validator("replicate_api_token")
    @classmethod
    def validate_replicate_api_token(cls, v: str) -> str:
        """Validate Replicate API token format."""
        if not v:
            raise ConfigError("REPLICATE_API_TOKEN is required")
        if not v.startswith("r8_"):
            raise ConfigError("REPLICATE_API_TOKEN must start with 'r8_'")
        if len(v) < 20:
            raise ConfigError("REPLICATE_API_TOKEN appears to be invalid")
        return v

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate Redis URL format when provided."""
        if not v:
            return None
        if not v.startswith(("redis://", "rediss://")):
            raise ConfigError("REDIS_URL must start with redis:// or rediss://")
        return v

    @property
    def payment_access_token(self) -> Optional[str]:
        """Access token for the active payment server."""
        if self.payment_server == "sandbox":
            return self.polar_sandbox_access_token
        return self.polar_access_token

    @property
    def share_base_url(self) -> str:
        """Base URL short links and character pages are served from."""
        return self.frontend_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Build the process-wide settings once.

    Raises:
        ConfigError: If required variables are missing or invalid
    """
    try:
        return Settings()
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(f"Failed to load configuration: {str(e)}") from e
