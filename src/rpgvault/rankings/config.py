"""Configuration management for rpgvault rankings.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Rating smoothing
    prior_weight: float  # virtual reviews at the prior mean
    trusted_review_count: int  # reviews before the raw average is shown as trusted
    fallback_prior_mean: float
    prior_mean_ttl: float  # seconds

    # Pagination
    max_page_size: int
    default_page_size: int

    # Rank maintenance
    reassign_threshold: int  # aggregation events
    reassign_interval: float  # seconds

    # Recompute retry
    recompute_retry_max: int
    recompute_retry_delay: float  # seconds

    # Taxonomy override
    taxonomy_path: Optional[Path]

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "RPGVAULT_DB_PATH",
            str(Path.home() / ".rpgvault" / "rpgvault.db"),
        )
        taxonomy_str = os.environ.get("RPGVAULT_TAXONOMY_PATH")

        return cls(
            db_path=Path(db_path_str).expanduser(),
            prior_weight=float(os.environ.get("RPGVAULT_PRIOR_WEIGHT", "10")),
            trusted_review_count=int(
                os.environ.get("RPGVAULT_TRUSTED_REVIEW_COUNT", "10")
            ),
            fallback_prior_mean=float(
                os.environ.get("RPGVAULT_FALLBACK_PRIOR_MEAN", "5.5")
            ),
            prior_mean_ttl=float(os.environ.get("RPGVAULT_PRIOR_MEAN_TTL", "300")),
            max_page_size=int(os.environ.get("RPGVAULT_MAX_PAGE_SIZE", "100")),
            default_page_size=int(os.environ.get("RPGVAULT_DEFAULT_PAGE_SIZE", "50")),
            reassign_threshold=int(os.environ.get("RPGVAULT_REASSIGN_THRESHOLD", "25")),
            reassign_interval=float(
                os.environ.get("RPGVAULT_REASSIGN_INTERVAL", "86400")
            ),
            recompute_retry_max=int(
                os.environ.get("RPGVAULT_RECOMPUTE_RETRY_MAX", "3")
            ),
            recompute_retry_delay=float(
                os.environ.get("RPGVAULT_RECOMPUTE_RETRY_DELAY", "0.5")
            ),
            taxonomy_path=Path(taxonomy_str).expanduser() if taxonomy_str else None,
            log_level=os.environ.get("RPGVAULT_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.prior_weight <= 0:
            errors.append("RPGVAULT_PRIOR_WEIGHT must be greater than 0")

        if not 1.0 <= self.fallback_prior_mean <= 10.0:
            errors.append("RPGVAULT_FALLBACK_PRIOR_MEAN must be between 1 and 10")

        if self.max_page_size < 1:
            errors.append("RPGVAULT_MAX_PAGE_SIZE must be at least 1")
        elif not 1 <= self.default_page_size <= self.max_page_size:
            errors.append(
                "RPGVAULT_DEFAULT_PAGE_SIZE must be between 1 and RPGVAULT_MAX_PAGE_SIZE"
            )

        if self.reassign_threshold < 1:
            errors.append("RPGVAULT_REASSIGN_THRESHOLD must be at least 1")

        if self.recompute_retry_max < 1:
            errors.append("RPGVAULT_RECOMPUTE_RETRY_MAX must be at least 1")

        if self.taxonomy_path is not None and not self.taxonomy_path.exists():
            errors.append(f"Taxonomy file not found: {self.taxonomy_path}")

        # Check database directory is writable
        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
