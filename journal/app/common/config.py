"""
Configuration management via environment variables.
All configuration with sensible defaults.
"""

import os
from dataclasses import dataclass, field
from typing import List


@dataclass
class Config:
    """Journal service configuration from environment variables."""

    # Supabase
    supabase_url: str = field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    supabase_anon_key: str = field(
        default_factory=lambda: os.getenv("SUPABASE_ANON_KEY", "")
    )
    request_timeout_sec: float = field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT_SEC", "10"))
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # CORS
    cors_origins: List[str] = field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
            if o.strip()
        ]
    )

    # Pagination
    default_page_size: int = field(
        default_factory=lambda: int(os.getenv("DEFAULT_PAGE_SIZE", "50"))
    )
    max_page_size: int = field(
        default_factory=lambda: int(os.getenv("MAX_PAGE_SIZE", "100"))
    )

    # Confluence statistics
    leaning_threshold: float = field(
        default_factory=lambda: float(os.getenv("LEANING_THRESHOLD", "15"))
    )
    max_metric_deviation: float = field(
        default_factory=lambda: float(os.getenv("MAX_METRIC_DEVIATION", "15"))
    )
    min_impact_trades: int = field(
        default_factory=lambda: int(os.getenv("MIN_IMPACT_TRADES", "20"))
    )

    # Scoring
    large_loss_threshold: float = field(
        default_factory=lambda: float(os.getenv("LARGE_LOSS_THRESHOLD", "-50"))
    )

    # Test data
    test_data_batch_size: int = field(
        default_factory=lambda: int(os.getenv("TEST_DATA_BATCH_SIZE", "10"))
    )

    def validate(self) -> None:
        """Validate configuration."""
        if self.default_page_size <= 0:
            raise ValueError("Default page size must be positive")
        if self.max_page_size < self.default_page_size:
            raise ValueError("Max page size cannot be below the default page size")
        if not 0 <= self.leaning_threshold <= 100:
            raise ValueError("Leaning threshold must be between 0 and 100")
        if self.large_loss_threshold > 0:
            raise ValueError("Large loss threshold must be zero or negative")
        if self.test_data_batch_size <= 0:
            raise ValueError("Test data batch size must be positive")
        if self.request_timeout_sec <= 0:
            raise ValueError("Request timeout must be positive")


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = Config()
        _config.validate()
    return _config


def reset_config() -> None:
    """Reset config for testing."""
    global _config
    _config = None
