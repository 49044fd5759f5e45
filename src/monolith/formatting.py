# src/monolith/formatting.py
"""Formatting helpers for templates.

Predicates, URL and telephone formatting, links, obfuscation, truncation and
attribute serialization. Functions that produce HTML return Markup, so the
result can be placed in a Jinja2 template without being escaped again, while
plain strings passed in as content are escaped.
"""

import base64
import html
import mimetypes
import random
import re
from collections.abc import Mapping, Sequence
from os import PathLike
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from markupsafe import Markup, escape

from monolith.config import get_default_country_code
from monolith.models import ContentSanitizer, TagStripper
from monolith.templates import TEMPLATE_LINK, render_template

# =============================================================================
# Constants
# =============================================================================

DEFAULT_ELLIPSIS = " &hellip;"

FILE_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")

# Words as counted by truncate_words(): letters plus apostrophes and hyphens
_WORD_RE = re.compile(r"[A-Za-z'-]+")

_TWITTER_RE = re.compile(
    r"^(?:https?:)?//(?:www\.)?(?:twitter|x)\.com/(?:#!/)?(.+?)/?$",
    re.IGNORECASE,
)

_LINE_SPLIT_RE = re.compile(r" *[,\n\r]+ *")

_tag_stripper = TagStripper()


# =============================================================================
# Predicates
# =============================================================================


def _type_error(haystack: Any, needle: Any) -> TypeError:
    return TypeError(f"{type(haystack).__name__} cannot contain {type(needle).__name__}")


def contains(haystack: str | Sequence[Any], needle: Any) -> bool:
    """Does a string contain a substring, or a sequence contain an item?"""
    if isinstance(haystack, (str, Sequence)):
        return needle in haystack
    raise _type_error(haystack, needle)


def starts_with(haystack: str | Sequence[Any], needle: Any) -> bool:
    """Does a string start with a substring, or a sequence with an item?"""
    if isinstance(haystack, str):
        return haystack.startswith(needle)
    if isinstance(haystack, Sequence):
        return len(haystack) > 0 and haystack[0] == needle
    raise _type_error(haystack, needle)


def ends_with(haystack: str | Sequence[Any], needle: Any) -> bool:
    """Does a string end with a substring, or a sequence with an item?"""
    if isinstance(haystack, str):
        return haystack.endswith(needle)
    if isinstance(haystack, Sequence):
        return len(haystack) > 0 and haystack[-1] == needle
    raise _type_error(haystack, needle)


# =============================================================================
# Attributes
# =============================================================================


def format_attributes(attributes: Mapping[str, Any]) -> Markup:
    """Format a mapping as HTML attributes.

    Sequence values become space-separated lists and None values are skipped.
    Values are escaped unless they are already Markup.

    Example:
        >>> format_attributes({"class": ["a", "b"], "href": "/x?a=1&b=2"})
        Markup('class="a b" href="/x?a=1&amp;b=2"')
    """
    parts = []

    for key, value in attributes.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = Markup(" ").join(value)
        parts.append(Markup('{}="{}"').format(key, value))

    return Markup(" ").join(parts)


# =============================================================================
# URLs and Links
# =============================================================================


def format_url(url: str, human: bool = False) -> str | None:
    """Convert a string to a consistently formatted URL.

    Without a scheme separator the URL is made protocol-relative. The human
    version has no scheme or separator and no lone trailing slash.

    Returns:
        The formatted URL, or None if it cannot be parsed
    """
    # No separator? Assume it needs one.
    if "//" not in url:
        url = "//" + url

    try:
        urlparse(url)
    except ValueError:
        return None

    if not human:
        return url

    url = re.sub(r"^[^/]*//", "", url)

    if url.count("/") == 1 and url.endswith("/"):
        url = url[:-1]

    return url


def _render_link(attributes: Mapping[str, Any], content: Any) -> Markup:
    return render_template(
        TEMPLATE_LINK,
        attributes=format_attributes(attributes),
        content=content,
    )


def format_link(
    url: str,
    content: str | None = None,
    attributes: Mapping[str, Any] | None = None,
) -> Markup:
    """Return an HTML link for something that looks like a URL.

    The human-readable URL is the default content. An unparseable URL
    produces empty markup.
    """
    href = format_url(url)
    if href is None:
        return Markup("")

    if content is None:
        content = format_url(href, human=True)

    return _render_link({**(attributes or {}), "href": href}, content)


# =============================================================================
# Telephone Numbers
# =============================================================================


def format_tel(tel: str, human: bool = False, code: str | None = None) -> str:
    """Convert a telephone number to a machine- or human-readable format.

    The human version keeps the number as written but with non-breaking
    spaces. The machine version keeps digits only and replaces a leading zero
    with the country code.
    """
    if human:
        return escape(tel).replace(" ", Markup("&nbsp;"))

    tel = re.sub(r"\D", "", html.unescape(tel))

    if tel.startswith("0"):
        if code is None:
            code = get_default_country_code()
        tel = code + tel[1:]

    return tel


def format_tel_link(
    tel: str,
    content: str | None = None,
    attributes: Mapping[str, Any] | None = None,
    code: str | None = None,
) -> Markup:
    """Return an HTML telephone link; the human-readable number is the default content."""
    if content is None:
        content = format_tel(tel, human=True)

    href = "tel:" + format_tel(tel, code=code)

    return _render_link({**(attributes or {}), "href": href}, content)


# =============================================================================
# Obfuscation
# =============================================================================


def obfuscate(text: str, rng: random.Random | None = None) -> Markup:
    """Randomly encode each character of a string.

    Each character becomes, with equal probability, the character itself, a
    hexadecimal HTML entity or a decimal HTML entity.
    """
    rng = rng or random.Random()
    encoded = []

    for character in text:
        choice = rng.randrange(3)
        if choice == 0:
            encoded.append(str(escape(character)))
        elif choice == 1:
            encoded.append(f"&#x{ord(character):04x};")
        else:
            encoded.append(f"&#{ord(character)};")

    return Markup("".join(encoded))


def obfuscate_link(
    email: str,
    content: str | None = None,
    attributes: Mapping[str, Any] | None = None,
    rng: random.Random | None = None,
) -> Markup:
    """Return an obfuscated mailto link."""
    if content is None:
        content = obfuscate(html.unescape(email), rng)

    href = obfuscate("mailto:" + email, rng)

    return _render_link({**(attributes or {}), "href": href}, content)


# =============================================================================
# Text
# =============================================================================


def ordinal(number: int) -> str:
    """Return a number with its English ordinal suffix, e.g. 1st, 22nd, 13th."""
    if number % 100 not in (11, 12, 13):
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10)
        if suffix:
            return f"{number}{suffix}"

    return f"{number}th"


def _plain_text(text: str, sanitizer: ContentSanitizer | None) -> str:
    """Strip tags and decode entities."""
    return html.unescape((sanitizer or _tag_stripper).clean(text))


def truncate(
    text: str,
    max_length: int,
    ellipsis: str = DEFAULT_ELLIPSIS,
    sanitizer: ContentSanitizer | None = None,
) -> Markup:
    """Remove HTML tags and shorten text to max_length characters.

    Words are not split: if the cut falls inside a word, the text is cut back
    to the previous space. The ellipsis is treated as markup.
    """
    text = _plain_text(text, sanitizer)

    if len(text) <= max_length:
        return escape(text)

    truncated = text[:max_length]
    following = text[max_length]

    if following != " " and " " in truncated:
        truncated = truncated[: truncated.rindex(" ")]

    return escape(truncated.rstrip()) + Markup(ellipsis)


def truncate_words(
    text: str,
    max_words: int,
    ellipsis: str = DEFAULT_ELLIPSIS,
    sanitizer: ContentSanitizer | None = None,
) -> Markup:
    """Remove HTML tags and shorten text to max_words words."""
    text = _plain_text(text, sanitizer)
    words = list(_WORD_RE.finditer(text))

    if len(words) <= max_words:
        return escape(text)

    return escape(text[: words[max_words].start()].rstrip()) + Markup(ellipsis)


def twitter_name(url: str) -> str:
    """Extract the account name from a Twitter URL."""
    return _TWITTER_RE.sub(r"\1", url)


def split_lines(text: str) -> list[str]:
    """Split text on commas and line breaks, trimming surrounding spaces.

    Useful for address data entered as a single field.
    """
    text = text.strip()
    if not text:
        return []
    return _LINE_SPLIT_RE.split(text)


def rejoin_lines(lines: str | Sequence[str], sep: str = ", ") -> str:
    """Join lines with a new separator, splitting a string first."""
    if isinstance(lines, str):
        lines = split_lines(lines)
    return sep.join(lines)


# =============================================================================
# Files
# =============================================================================


def file_size(path: str | PathLike[str], decimals: int = 2) -> Markup:
    """Return a human-readable file size, e.g. ``1.50&nbsp;KB``.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found {path}")

    size_bytes = path.stat().st_size
    factor = min((len(str(size_bytes)) - 1) // 3, len(FILE_SIZE_UNITS) - 1)
    size = size_bytes / 1024**factor

    return Markup(f"{size:,.{decimals}f}&nbsp;{FILE_SIZE_UNITS[factor]}")


def data_url(path: str | PathLike[str], mime_type: str | None = None) -> str:
    """Return a base64 data URL for a file.

    The MIME type is guessed from the file name if not given.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found {path}")

    if mime_type is None:
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"
