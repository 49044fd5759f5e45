# src/monolith/models.py
"""Type definitions for Monolith."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import bleach

# =============================================================================
# Errors
# =============================================================================


class MonolithError(Exception):
    """Base class for all errors raised by Monolith."""


class SvgNotFoundError(MonolithError, FileNotFoundError):
    """The SVG file passed to load() does not exist."""


class SvgParseError(MonolithError, ValueError):
    """The SVG source is not well-formed markup or has no <svg> element."""


class SvgNotLoadedError(MonolithError, RuntimeError):
    """An SVG method was called before a document was successfully loaded."""


class TimeSpanError(MonolithError, ValueError):
    """Invalid time input, range format or tolerance."""


# =============================================================================
# Video Models
# =============================================================================


class VideoService(Enum):
    """Third-party video hosts we know how to normalize."""

    YOUTUBE = "youtube"
    VIMEO = "vimeo"

    @classmethod
    def from_url(cls, url: str) -> "VideoService | None":
        """Identify the video host from a URL, or None if unsupported."""
        lowered = url.lower()
        if "vimeo.com" in lowered:
            return cls.VIMEO
        if "youtube.com" in lowered or "youtu.be" in lowered:
            return cls.YOUTUBE
        return None


@dataclass(frozen=True, slots=True)
class EmbedCode:
    """Attributes extracted from a URL or <iframe> embed code."""

    url: str
    width: int = 0
    height: int = 0

    @property
    def ratio(self) -> float | None:
        """Height/width aspect ratio, if both dimensions are known."""
        if self.width and self.height:
            return self.height / self.width
        return None


# =============================================================================
# Protocol for Testability
# =============================================================================


class ContentSanitizer(Protocol):
    """Protocol for HTML sanitization - enables testing with mocks."""

    def clean(self, html: str) -> str:
        """Sanitize HTML content and return safe HTML."""
        ...


class TagStripper:
    """Remove every HTML tag, keeping text content, using bleach."""

    def clean(self, html: str) -> str:
        """Strip tags and return escaped text."""
        # Script and style content should never survive as text
        html = re.sub(r"<script[^>]*>.*?</script>", "", html, flags=re.DOTALL | re.IGNORECASE)
        html = re.sub(r"<style[^>]*>.*?</style>", "", html, flags=re.DOTALL | re.IGNORECASE)

        return bleach.clean(html, tags=set(), attributes={}, strip=True)
