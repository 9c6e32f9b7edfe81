"""Configuration management for the inventory API."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum

from dotenv import load_dotenv

load_dotenv()


class ClassifyPolicy(Enum):
    """When the sellability classifier runs relative to catalog enrichment."""

    ENRICH_FIRST = "enrich_first"  # DEFAULT - catalog for every item, classify once
    CLASSIFY_FIRST = "classify_first"  # Coarse raw filter, enrich candidates only


DEFAULT_ASSET_TYPE_GROUPS = "Hat,Hair,Face;Gear,Package;Shirt,Pants,TShirt"


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def parse_asset_type_groups(raw: str) -> list[str]:
    """Split ``"Hat,Hair;Gear"`` into ``["Hat,Hair", "Gear"]``."""
    groups = []
    for group in raw.split(";"):
        types = [t.strip() for t in group.split(",") if t.strip()]
        if types:
            groups.append(",".join(types))
    return groups


@dataclass
class Config:
    """Application configuration."""

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 3000))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: str = field(
        default_factory=lambda: os.getenv("LOG_FILE", "inventory_api.log")
    )

    # Upstream HTTP
    request_timeout_seconds: float = field(
        default_factory=lambda: _env_float("REQUEST_TIMEOUT_SECONDS", 30.0)
    )
    user_agent: str = field(
        default_factory=lambda: os.getenv(
            "USER_AGENT",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        )
    )

    # Retry / throttling
    max_attempts: int = field(default_factory=lambda: _env_int("MAX_ATTEMPTS", 5))
    base_delay_seconds: float = field(
        default_factory=lambda: _env_float("BASE_DELAY_SECONDS", 0.5)
    )
    max_delay_seconds: float = field(
        default_factory=lambda: _env_float("MAX_DELAY_SECONDS", 30.0)
    )
    page_delay_seconds: float = field(
        default_factory=lambda: _env_float("PAGE_DELAY_SECONDS", 0.5)
    )
    max_pages: int = field(default_factory=lambda: _env_int("MAX_PAGES", 0))
    page_size: int = field(default_factory=lambda: _env_int("PAGE_SIZE", 100))

    # Enrichment
    catalog_batch_size: int = field(
        default_factory=lambda: _env_int("CATALOG_BATCH_SIZE", 100)
    )
    catalog_batch_delay_seconds: float = field(
        default_factory=lambda: _env_float("CATALOG_BATCH_DELAY_SECONDS", 0.3)
    )
    thumbnail_batch_size: int = field(
        default_factory=lambda: _env_int("THUMBNAIL_BATCH_SIZE", 100)
    )
    thumbnail_batch_delay_seconds: float = field(
        default_factory=lambda: _env_float("THUMBNAIL_BATCH_DELAY_SECONDS", 0.2)
    )
    thumbnail_size: str = field(
        default_factory=lambda: os.getenv("THUMBNAIL_SIZE", "150x150")
    )

    # Pipeline
    asset_type_groups: list[str] = field(default_factory=list)
    classify_policy: ClassifyPolicy = ClassifyPolicy.ENRICH_FIRST

    # Response paging
    default_page_limit: int = field(
        default_factory=lambda: _env_int("DEFAULT_PAGE_LIMIT", 50)
    )
    max_page_limit: int = field(
        default_factory=lambda: _env_int("MAX_PAGE_LIMIT", 500)
    )

    # API URLs
    roblox_inventory_url: str = "https://inventory.roblox.com"
    roblox_catalog_url: str = "https://catalog.roblox.com"
    roblox_thumbnails_url: str = "https://thumbnails.roblox.com"

    def __post_init__(self) -> None:
        """Parse list and enum settings from environment."""
        self.asset_type_groups = parse_asset_type_groups(
            os.getenv("ASSET_TYPE_GROUPS", DEFAULT_ASSET_TYPE_GROUPS)
        )
        try:
            self.classify_policy = ClassifyPolicy(
                os.getenv("CLASSIFY_POLICY", "enrich_first").strip().lower()
            )
        except ValueError:
            self.classify_policy = ClassifyPolicy.ENRICH_FIRST

    def validate(self) -> list[str]:
        """Validate configuration. Returns list of errors."""
        errors = []
        if not 0 < self.port < 65536:
            errors.append("PORT must be between 1 and 65535")
        if self.max_attempts < 1:
            errors.append("MAX_ATTEMPTS must be at least 1")
        if self.base_delay_seconds < 0 or self.page_delay_seconds < 0:
            errors.append("Delays cannot be negative")
        if self.max_pages < 0:
            errors.append("MAX_PAGES cannot be negative (0 = unbounded)")
        if not 1 <= self.page_size <= 100:
            errors.append("PAGE_SIZE must be between 1 and 100")
        if not 1 <= self.catalog_batch_size <= 120:
            errors.append("CATALOG_BATCH_SIZE must be between 1 and 120")
        if not 1 <= self.thumbnail_batch_size <= 100:
            errors.append("THUMBNAIL_BATCH_SIZE must be between 1 and 100")
        if self.default_page_limit < 1:
            errors.append("DEFAULT_PAGE_LIMIT must be at least 1")
        if self.max_page_limit < self.default_page_limit:
            errors.append("MAX_PAGE_LIMIT should be >= DEFAULT_PAGE_LIMIT")
        return errors


# Global config instance
config = Config()
