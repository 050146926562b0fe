"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without an AWS account.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """
    
    # API Configuration
    api_title: str = "S3 Bucket Actions API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys. Using a list enables key rotation without downtime."
    )
    
    # AWS Configuration
    aws_access_key_id: str = Field(
        default="",
        description="AWS access key ID used to sign S3 requests"
    )
    aws_secret_access_key: str = Field(
        default="",
        description="AWS secret access key"
    )
    aws_session_token: Optional[str] = Field(
        default=None,
        description="Session token for temporary credentials (optional)"
    )
    aws_default_region: str = Field(
        default="us-east-1",
        description="Region used when a request doesn't name one"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for each S3 request. Requests are never retried."
    )
    
    # Mock Mode
    s3_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real S3. Enables local dev without AWS credentials."
    )
    mock_page_size: int = Field(
        default=1000,
        ge=1,
        description="Keys per listing page in mock mode. S3 itself returns up to 1000."
    )
    
    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    
    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )
    
    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]
    
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
    
    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.
        
        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []
        
        if not self.s3_mock_mode:
            if not self.aws_access_key_id:
                missing.append("AWS_ACCESS_KEY_ID")
            if not self.aws_secret_access_key:
                missing.append("AWS_SECRET_ACCESS_KEY")
        
        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    
    Settings are loaded once per process. For tests, call
    get_settings.cache_clear() to reset.
    """
    return Settings()
