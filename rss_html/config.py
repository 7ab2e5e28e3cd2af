"""Configuration management for RSS HTML Reader."""

import json
import os
from dataclasses import dataclass
from pathlib import Path

_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in _FALSE_VALUES


@dataclass
class ProjectionConfig:
    """Configuration for rendering a channel into HTML."""

    # Only children after position 0 count as present in the index checks
    legacy_index_quirks: bool = True


@dataclass
class FetchConfig:
    """Configuration for downloading feeds."""

    timeout: int = 30
    user_agent: str = "RSS-HTML-Reader/1.0 (RSS 2.0 to HTML table)"


class Config:
    """Main configuration manager."""

    # Default presets file path
    PRESETS_FILE = "presets.json"

    # Username placeholder for presets that need one
    USER_PLACEHOLDER = "{user}"

    DEFAULT_PRESETS = {
        "cnn": "http://rss.cnn.com/rss/cnn_topstories.rss",
        "abc": "http://feeds.abcnews.com/abcnews/topstories",
        "cbs": "https://www.cbsnews.com/latest/rss/main",
        "fox": "http://feeds.foxnews.com/foxnews/latest",
        "espn": "http://www.espn.com/espn/rss/news",
        "nytimes": "http://rss.nytimes.com/services/xml/rss/nyt/HomePage.xml",
        "washington post": "http://feeds.washingtonpost.com/rss/rss_election-2012",
        "twitter": "https://twitrss.me/twitter_user_to_rss/?user={user}",
    }

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.output_dir = Path(
            os.getenv("RSS_HTML_OUTPUT_DIR", str(Path.home() / "Desktop"))
        ).expanduser()
        self.legacy_index_quirks = _env_flag("RSS_HTML_LEGACY_QUIRKS", True)
        self.fetch_timeout = int(os.getenv("RSS_HTML_TIMEOUT", "30"))
        self.presets_file = os.getenv("RSS_HTML_PRESETS_FILE", self.PRESETS_FILE)
        self.log_level = os.getenv("LOG_LEVEL", "WARNING")

    def get_presets(self) -> dict[str, str]:
        """Get feed presets, keyed by lower-cased name.

        Reads the presets file when it exists, otherwise falls back to
        DEFAULT_PRESETS.

        Raises:
            ValueError: If the presets file is unreadable or has no enabled presets
        """
        presets_file = Path(self.presets_file)
        if not presets_file.exists():
            return dict(self.DEFAULT_PRESETS)

        try:
            with open(presets_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in presets file: {e}") from e
        except OSError as e:
            raise ValueError(f"Error reading presets file: {e}") from e

        presets = {
            entry["name"].strip().lower(): entry["url"]
            for entry in data.get("presets", [])
            if entry.get("enabled", True) and "name" in entry and "url" in entry
        }

        if not presets:
            raise ValueError("No enabled presets found in presets file")

        return presets

    def resolve_feed_url(self, choice: str) -> str:
        """Turn a preset name or a raw URL into a feed URL.

        Preset names are matched case-insensitively; anything else is
        returned unchanged (stripped).
        """
        choice = choice.strip()
        return self.get_presets().get(choice.lower(), choice)

    def output_path(self, name: str) -> Path:
        """Get the report path for an output file name."""
        name = name.strip()
        if not name:
            raise ValueError("Output file name cannot be empty")
        if not name.lower().endswith(".html"):
            name = f"{name}.html"
        return self.output_dir / name

    def get_projection_config(self) -> ProjectionConfig:
        """Get projection configuration."""
        return ProjectionConfig(legacy_index_quirks=self.legacy_index_quirks)

    def get_fetch_config(self) -> FetchConfig:
        """Get fetch configuration."""
        return FetchConfig(timeout=self.fetch_timeout)
