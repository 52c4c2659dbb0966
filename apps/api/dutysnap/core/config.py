"""
Core configuration settings for DutySnap API
"""
from typing import List, Union
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings with validation"""

    # App settings
    APP_NAME: str = "DutySnap API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True
    API_V1_STR: str = "/api/v1"
    NODE_ENV: str = "development"
    CORS_ORIGINS: Union[str, List[str]] = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8081"]

    # Reasoning provider (OpenAI Agents SDK)
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4.1"
    OPENAI_TEMPERATURE: float = 0.1
    OPENAI_MAX_TOKENS: int = 1024

    # Structured provider and duty calculation (Zonos)
    ZONOS_API_KEY: str = ""
    ZONOS_API_BASE: str = "https://api.zonos.com"

    # Comparison defaults
    DEFAULT_SHIP_TO_COUNTRY: str = "FR"
    DEFAULT_ORIGIN_COUNTRY: str = "US"
    DEFAULT_CURRENCY: str = "EUR"
    REFERENCE_PROVIDER: str = "structured"

    # Timeouts (seconds) applied to each adapter call
    PROVIDER_TIMEOUT_SECONDS: float = 30.0
    DUTY_TIMEOUT_SECONDS: float = 30.0

    # Duty and analysis thresholds
    STANDARD_VAT_RATE: float = 0.20
    SIGNIFICANT_DUTY_DIFFERENCE: float = 50.0
    CONFIDENCE_GAP_THRESHOLD: float = 0.2

    # Result storage
    RESULT_STORE_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    COMPARE_RATE_LIMIT: str = "20/minute"
    DUTY_RATE_LIMIT: str = "60/minute"

    # Monitoring settings
    LOG_LEVEL: str = "INFO"

    @field_validator("NODE_ENV")
    def validate_node_env(cls, v):
        if v not in ["development", "staging", "production"]:
            raise ValueError("NODE_ENV must be one of: development, staging, production")
        return v

    @field_validator("LOG_LEVEL")
    def validate_log_level(cls, v):
        if v not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v

    @field_validator("REFERENCE_PROVIDER")
    def validate_reference_provider(cls, v):
        if v not in ["reasoning", "structured"]:
            raise ValueError("REFERENCE_PROVIDER must be one of: reasoning, structured")
        return v

    @field_validator("RESULT_STORE_BACKEND")
    def validate_result_store_backend(cls, v):
        if v not in ["memory", "redis"]:
            raise ValueError("RESULT_STORE_BACKEND must be one of: memory, redis")
        return v

    @field_validator("DEFAULT_SHIP_TO_COUNTRY", "DEFAULT_ORIGIN_COUNTRY")
    def validate_country_code(cls, v):
        if len(v) != 2 or not v.isalpha():
            raise ValueError("Country codes must be ISO 3166-1 alpha-2")
        return v.upper()

    @field_validator("STANDARD_VAT_RATE")
    def validate_vat_rate(cls, v):
        if not 0.0 <= v < 1.0:
            raise ValueError("STANDARD_VAT_RATE must be a fraction between 0 and 1")
        return v


    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.NODE_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.NODE_ENV == "development"

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS_ORIGINS as a list"""
        if isinstance(self.CORS_ORIGINS, str):
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]
        return self.CORS_ORIGINS


# Create settings instance with validation
settings = Settings()

# Getter function for dependency injection
def get_settings() -> Settings:
    """Get settings instance for dependency injection"""
    return settings
