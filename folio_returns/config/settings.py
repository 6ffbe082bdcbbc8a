"""Typed runtime settings with dotenv support and startup validation."""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Application settings for API runtime, cache tiers, and solver knobs.

    Environment variable names map directly to field names in uppercase.
    Example: `cache_short_ttl_seconds` reads from `CACHE_SHORT_TTL_SECONDS`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        log_level: Root logging level name.
        default_currency: Currency valuation series are stored in.
        cache_short_ttl_seconds: TTL for market-price-like data.
        cache_default_ttl_seconds: TTL for derived portfolio and return aggregates.
        cache_long_ttl_seconds: TTL for slow-changing symbols and transactions.
        xirr_max_iterations: Iteration bound for the money-weighted solver.
        xirr_tolerance: Convergence tolerance for the money-weighted solver.
        twr_min_weighted_years: Floor for the capital-weighted holding time.
        currency_rates: Fixed conversion rates keyed `SOURCE/TARGET`, e.g.
            `{"EUR/USD": 1.08}` in `CURRENCY_RATES` as JSON.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="0.0.0.0")
    application_port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    default_currency: str = Field(default="USD", min_length=3, max_length=3)
    cache_short_ttl_seconds: float = Field(default=120.0, gt=0)
    cache_default_ttl_seconds: float = Field(default=300.0, gt=0)
    cache_long_ttl_seconds: float = Field(default=900.0, gt=0)
    xirr_max_iterations: int = Field(default=100, ge=1)
    xirr_tolerance: float = Field(default=1e-7, gt=0)
    twr_min_weighted_years: float = Field(default=1 / 365.25, gt=0)
    currency_rates: dict[str, float] = Field(default_factory=dict)

    @field_validator("environment_name", "application_host", "default_currency")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("default_currency")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        return value.upper()

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_level = value.strip().upper()
        if normalized_level not in SUPPORTED_LOG_LEVELS:
            raise ValueError(f"unknown log level: {value}")
        return normalized_level

    @field_validator("cache_default_ttl_seconds")
    @classmethod
    def _validate_default_ttl_bounds(cls, value: float, info) -> float:
        short_ttl_seconds = float(info.data.get("cache_short_ttl_seconds", 120.0))
        if value < short_ttl_seconds:
            raise ValueError("cache_default_ttl_seconds must be greater than or equal to cache_short_ttl_seconds")
        return value

    @field_validator("cache_long_ttl_seconds")
    @classmethod
    def _validate_long_ttl_bounds(cls, value: float, info) -> float:
        default_ttl_seconds = float(info.data.get("cache_default_ttl_seconds", 300.0))
        if value < default_ttl_seconds:
            raise ValueError("cache_long_ttl_seconds must be greater than or equal to cache_default_ttl_seconds")
        return value

    @field_validator("currency_rates")
    @classmethod
    def _validate_currency_rates(cls, value: dict[str, float]) -> dict[str, float]:
        normalized_rates: dict[str, float] = {}
        for pair, rate in value.items():
            source_currency, separator, target_currency = pair.partition("/")
            if not separator or not source_currency.strip() or not target_currency.strip():
                raise ValueError(f"currency rate key must look like SOURCE/TARGET: {pair}")
            if rate <= 0:
                raise ValueError(f"currency rate for {pair} must be positive")
            normalized_rates[f"{source_currency.strip().upper()}/{target_currency.strip().upper()}"] = rate
        return normalized_rates


def config_load_settings() -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when settings are invalid.
    """

    try:
        return AppSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
