"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class MatchingConfig(BaseModel):
    """Similarity matching settings."""

    similarity_threshold: float = Field(
        0.3, ge=0.0, le=1.0, description="Minimum rounded score a suggestion must reach"
    )
    context_bonus: bool = Field(
        False, description="Boost suggestions whose path or description mention the criterion"
    )
    deduplicate_names: bool = Field(
        False, description="Keep a single suggestion per name (largest audience wins)"
    )


class CriteriaConfig(BaseModel):
    """Language-model settings for criteria generation."""

    model: str = Field("gpt-4-turbo", min_length=1, description="Chat completion model")
    max_results: int = Field(50, ge=1, le=500, description="Criteria to request per category")
    temperature: float = Field(1.0, ge=0.0, le=2.0)
    max_tokens: int = Field(4000, ge=1)
    frequency_penalty: float = Field(0.3, ge=-2.0, le=2.0)
    presence_penalty: float = Field(0.1, ge=-2.0, le=2.0)


class MetaConfig(BaseModel):
    """Ads-platform interest search settings."""

    base_url: str = Field("https://graph.facebook.com", min_length=1)
    api_version: str = Field("v19.0", pattern=r"^v\d+\.\d+$")
    locale: str = Field("fr_FR", min_length=2)
    result_limit: int = Field(20, ge=1, le=1000, description="Suggestions requested per criterion")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so paths can be appended."""
        return v.strip().rstrip("/")


class SoprismConfig(BaseModel):
    """Universe-building service settings."""

    base_url: str = Field("https://api.soprism.com", min_length=1)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so paths can be appended."""
        return v.strip().rstrip("/")


class RetryConfig(BaseModel):
    """Background re-lookup of suggestions reported with a zero audience."""

    enabled: bool = Field(True)
    interval: str = Field("1h", description="Time between retry cycles")
    max_attempts: int = Field(3, ge=1, le=10)
    max_queue_size: int = Field(500, ge=1, le=100000)

    # Computed field
    interval_seconds: Optional[int] = None

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: str) -> str:
        """Validate interval format and range (1 minute to 24 hours)."""
        try:
            validate_duration_range(parse_duration(v), min_seconds=60, max_seconds=86400)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_interval_seconds(self):
        """Store the parsed interval for the scheduler."""
        self.interval_seconds = parse_duration(self.interval)
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="Log output format (json or key-value)")

    model_config = {"use_enum_values": True}


class AdvancedConfig(BaseModel):
    """Advanced runtime settings."""

    http_request_timeout: int = Field(
        30, ge=5, le=300, description="Request timeout for external API calls (seconds)"
    )
    user_agent: str = Field(
        "MetaTargetingAssistant/1.0",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        """Strip whitespace from user agent."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration object."""

    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    criteria: CriteriaConfig = Field(default_factory=CriteriaConfig)
    meta: MetaConfig = Field(default_factory=MetaConfig)
    soprism: SoprismConfig = Field(default_factory=SoprismConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)
