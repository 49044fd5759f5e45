# src/monolith/video.py
"""Video URL and embed code normalizer.

Takes uncertain input, which can be any YouTube or Vimeo URL or <iframe>
embed code, and provides predictable access to page URLs, embed URLs,
thumbnail images, links and embed markup.

Vimeo thumbnails come from the Vimeo v2 JSON API. Responses are cached on
disk when a cache directory is configured, either with Video.cache() or the
MONOLITH_VIDEO_CACHE_DIR setting.

Usage:
    video = Video('<iframe src="https://player.vimeo.com/video/76979871" '
                  'width="640" height="360"></iframe>')
    video.url()               # "//player.vimeo.com/video/76979871"
    video.responsive_embed()  # Markup for a 16:9 responsive iframe
"""

import json
import re
import time
from os import PathLike
from pathlib import Path
from typing import ClassVar
from urllib.parse import parse_qs, urlparse

import httpx
from markupsafe import Markup

from monolith.config import (
    USER_AGENT,
    get_event_sample_rate,
    get_http_timeout,
    get_video_cache_dir,
    get_video_cache_ttl,
)
from monolith.models import EmbedCode, VideoService
from monolith.observability import Timer, VideoImportEvent, emit_event
from monolith.templates import (
    TEMPLATE_VIDEO_EMBED,
    TEMPLATE_VIDEO_LINK,
    TEMPLATE_VIDEO_RESPONSIVE,
    render_template,
)
from monolith.utils import log_error, truncate_error

# Default aspect ratio (16:9) as height / width
DEFAULT_RATIO = 0.5625

VIMEO_DATA_URL = "https://vimeo.com/api/v2/video/{video_id}.json"

_YOUTUBE_PATH_PREFIXES = ("embed", "v", "shorts")


def _iframe_attribute(code: str, name: str) -> str | None:
    """Return an attribute value from the first <iframe> in the code."""
    pattern = r"<iframe\s[^>]*?(?<![\w-])" + re.escape(name) + r"=(['\"])(.*?)\1"
    match = re.search(pattern, code, re.IGNORECASE | re.DOTALL)
    return match.group(2) if match else None


def _to_int(value: str | None) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def _absolute(url: str) -> str:
    """Give protocol-relative URLs a scheme so they can be parsed."""
    return "https:" + url if url.startswith("//") else url


def _is_valid_url(url: str) -> bool:
    try:
        parts = urlparse(_absolute(url))
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def parse_embed_code(code: str) -> EmbedCode | None:
    """Extract the URL and dimensions from a URL or <iframe> embed code.

    Returns:
        EmbedCode, or None if no valid URL was found
    """
    code = code.strip()
    src = _iframe_attribute(code, "src")
    url = src if src is not None else code

    if not _is_valid_url(url):
        return None

    if src is None:
        return EmbedCode(url=url)

    return EmbedCode(
        url=url,
        width=_to_int(_iframe_attribute(code, "width")),
        height=_to_int(_iframe_attribute(code, "height")),
    )


class Video:
    """Video URL and embed code sanitizer.

    Attributes:
        id: Video ID on the hosting service, or None if not recognized
        service: The hosting service, or None if not recognized
        ratio: Height / width aspect ratio
    """

    #: Directory for cached API responses; shared by all instances
    cache_directory: ClassVar[Path | None] = None

    def __init__(self, code: str, *, client: httpx.Client | None = None) -> None:
        """Import the service and ID from a URL or embed code.

        Args:
            code: Video page URL, embed URL or <iframe> embed code
            client: Optional httpx client used for metadata requests
        """
        self.id: str | None = None
        self.service: VideoService | None = None
        self.ratio = DEFAULT_RATIO

        self._url: str | None = None
        self._embed: str | None = None
        self._image: str | None = None
        self._client = client

        self._import(code)

    @classmethod
    def cache(cls, directory: str | PathLike[str] | None) -> None:
        """Set (or clear, with None) the cache directory for API responses."""
        cls.cache_directory = Path(directory) if directory else None

    # =========================================================================
    # Import
    # =========================================================================

    def _import(self, code: str) -> None:
        event = VideoImportEvent(input_kind="iframe" if "<iframe" in code.lower() else "url")

        with Timer() as timer:
            embed_code = parse_embed_code(code)

            if embed_code is not None:
                if embed_code.ratio:
                    self.ratio = embed_code.ratio

                self.service = VideoService.from_url(embed_code.url)

                if self.service is VideoService.VIMEO:
                    self._import_vimeo(embed_code.url, event)
                elif self.service is VideoService.YOUTUBE:
                    self._import_youtube(embed_code.url)

        if not self.is_valid:
            self.service = None
            event.outcome = "unrecognized"

        event.service = self.service.value if self.service else None
        event.video_id = self.id
        event.wall_time_ms = timer.elapsed_ms
        emit_event(event, sample_rate=get_event_sample_rate())

    def _import_vimeo(self, url: str, event: VideoImportEvent) -> None:
        """Import the ID from a Vimeo URL and fetch the thumbnail."""
        segments = [s for s in urlparse(_absolute(url)).path.split("/") if s]
        if not segments or not re.fullmatch(r"\w+", segments[-1]):
            return

        self.id = segments[-1]
        self._url = f"//player.vimeo.com/video/{self.id}"
        self._embed = self._url
        self._image = self._fetch_vimeo_image(event)

    def _import_youtube(self, url: str) -> None:
        """Import the ID from a YouTube URL."""
        parts = urlparse(_absolute(url))
        path = parts.path.strip("/")
        segments = path.split("/")
        host = parts.netloc.lower()

        if host.endswith("youtu.be"):
            video_id = path
        elif path == "watch":
            video_id = parse_qs(parts.query).get("v", [""])[0]
        elif segments[0] in _YOUTUBE_PATH_PREFIXES and len(segments) > 1:
            video_id = segments[1]
        else:
            video_id = ""

        if not video_id:
            return

        self.id = video_id
        self._url = f"//www.youtube.com/watch?v={video_id}"
        self._embed = f"//www.youtube.com/embed/{video_id}"
        self._image = f"//i.ytimg.com/vi/{video_id}/hqdefault.jpg"

    def _fetch_vimeo_image(self, event: VideoImportEvent) -> str | None:
        """Return the large thumbnail URL from the Vimeo API, or None on failure."""
        data_url = VIMEO_DATA_URL.format(video_id=self.id)

        try:
            content, cached = self._download(data_url)
            image = json.loads(content)[0]["thumbnail_large"]
        except (httpx.HTTPError, OSError, ValueError, LookupError, TypeError) as e:
            log_error("video_metadata_error", e, url=data_url, video_id=self.id)
            event.outcome = "error"
            event.error_type = type(e).__name__
            event.error_message = truncate_error(e)
            return None

        event.metadata_fetched = True
        event.metadata_cached = cached
        return image

    def _download(self, url: str) -> tuple[str, bool]:
        """Download a URL, using the disk cache if configured.

        Returns:
            Tuple of (content, served_from_cache)
        """
        directory = self.cache_directory or get_video_cache_dir()

        if directory is None or not Path(directory).is_dir():
            return self._fetch(url), False

        cache_file = Path(directory) / re.sub(r"[^0-9a-z]+", "_", url, flags=re.IGNORECASE)
        expires = time.time() - get_video_cache_ttl()

        if cache_file.is_file() and cache_file.stat().st_mtime > expires:
            return cache_file.read_text(encoding="utf-8"), True

        content = self._fetch(url)
        cache_file.write_text(content, encoding="utf-8")

        return content, False

    def _fetch(self, url: str) -> str:
        headers = {"User-Agent": USER_AGENT}

        if self._client is not None:
            response = self._client.get(url, headers=headers)
        else:
            response = httpx.get(
                url, headers=headers, timeout=get_http_timeout(), follow_redirects=True
            )

        response.raise_for_status()
        return response.text

    # =========================================================================
    # Output
    # =========================================================================

    @property
    def is_valid(self) -> bool:
        """Was a supported video recognized?"""
        return self._embed is not None

    def url(self, embed: bool = False) -> str | None:
        """Return the URL of the video page, or of the embeddable player."""
        if embed:
            return self._embed
        return self._url

    def image(self) -> str | None:
        """Return the video thumbnail URL."""
        return self._image

    def embed(self) -> Markup:
        """Return <iframe> embed markup."""
        if not self.is_valid:
            return Markup("")
        return render_template(TEMPLATE_VIDEO_EMBED, src=self._embed)

    def link(self, title: str = "", alt: str = "") -> Markup:
        """Return a thumbnail image linked to the video page."""
        if not self.is_valid:
            return Markup("")
        return render_template(
            TEMPLATE_VIDEO_LINK,
            href=self._url,
            title=title,
            image=self._image or "",
            alt=alt,
        )

    def responsive_embed(self) -> Markup:
        """Return embed markup that keeps its aspect ratio at any width."""
        if not self.is_valid:
            return Markup("")
        padding = f"{self.ratio * 100:.4f}".rstrip("0").rstrip(".")
        return render_template(TEMPLATE_VIDEO_RESPONSIVE, src=self._embed, padding=padding)
