"""
Config cache module.

Loads the YAML rating tables once and serves them from memory so the
rating engine never touches disk while pricing a request.
"""

import os
from typing import Dict, Any, Optional
from threading import Lock

import yaml

DEFAULT_RATING_CONFIG = os.path.join(os.path.dirname(__file__), "config", "rating.yaml")


class ConfigCache:
    """Thread-safe configuration cache."""

    def __init__(self, rating_config_path: Optional[str] = None):
        self._rating_config_path = rating_config_path
        self._rating_tables: Optional[Dict[str, Any]] = None
        self._lock = Lock()

    @property
    def rating_config_path(self) -> str:
        return (
            self._rating_config_path
            or os.getenv("AUTOQUOTE_RATING_CONFIG")
            or DEFAULT_RATING_CONFIG
        )

    def get_rating_tables(self) -> Dict[str, Any]:
        """Get cached rating tables, loading from disk if not cached."""
        if self._rating_tables is None:
            with self._lock:
                if self._rating_tables is None:  # Double-check locking
                    with open(self.rating_config_path, "r") as f:
                        self._rating_tables = yaml.safe_load(f)
        return self._rating_tables

    def get_coverage_surcharges(self) -> Dict[str, Any]:
        return self.get_rating_tables().get("coverage_surcharges", {})

    def get_quote_expiration_days(self) -> int:
        return int(self.get_rating_tables().get("quote_expiration_days", 30))

    def get_policy_term_months(self) -> int:
        return int(self.get_rating_tables().get("policy_term_months", 12))

    def clear_cache(self):
        """Clear all cached data (useful for testing)."""
        with self._lock:
            self._rating_tables = None


# Global cache instance
config_cache = ConfigCache()
