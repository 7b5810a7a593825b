"""
Voice Analytics Insights Engine - Configuration

Typed configuration using Pydantic Settings.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalysisSettings(BaseSettings):
    """Profiling and statistics configuration."""

    model_config = SettingsConfigDict(env_prefix="ANALYSIS_")

    # Column type inference
    type_sample_size: int = Field(
        default=10,
        description="Non-null values sampled per column for type inference"
    )
    date_majority_ratio: float = Field(
        default=0.5,
        description="Share of samples that must parse as dates (strictly above)"
    )

    # Outlier Detection
    outlier_iqr_multiplier: float = Field(
        default=1.5,
        description="IQR multiplier for outlier detection"
    )
    outlier_min_values: int = Field(
        default=4,
        description="Minimum values required before outliers are reported"
    )

    # Correlation
    correlation_column_cap: int = Field(
        default=3,
        description="Only the first N numeric columns are compared pairwise"
    )

    # Data quality
    quality_completeness_threshold: float = Field(
        default=90.0,
        description="Completeness percentage below which a column has issues"
    )
    quality_completeness_weight: float = Field(default=0.7)
    quality_uniqueness_weight: float = Field(default=0.3)

    # Domain classification
    analytics_numeric_ratio: float = Field(
        default=0.6,
        description="Numeric column share above which a dataset is 'analytics'"
    )


class ChartSettings(BaseSettings):
    """Chart selection and chart-image service configuration."""

    model_config = SettingsConfigDict(env_prefix="CHART_")

    service_url: str = Field(
        default="https://quickchart.io/chart",
        description="Chart-image service base URL"
    )
    width: int = Field(default=600)
    height: int = Field(default=400)
    device_pixel_ratio: int = Field(default=2)

    top_n: int = Field(default=5, description="Bars in the top-N chart")
    max_categories: int = Field(
        default=10,
        description="Maximum distinct values for a doughnut column"
    )
    doughnut_slices: int = Field(default=6)
    trend_points: int = Field(default=20)


class StoreSettings(BaseSettings):
    """Dataset store configuration."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    ttl_hours: int = Field(
        default=24,
        description="Dataset time-to-live in hours"
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Application
    app_name: str = "Voice Analytics Insights Engine"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False, description="Debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # File Upload
    max_file_size_mb: int = Field(
        default=50,
        description="Maximum file size in MB"
    )

    # Logging
    log_dir: str = Field(default="./logs", description="Directory for log files")
    log_level: str = Field(default="DEBUG", description="Minimum log level")

    # Nested settings
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    charts: ChartSettings = Field(default_factory=ChartSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
