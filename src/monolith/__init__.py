"""Formatting and sanitization helpers for content-publishing sites."""

from monolith.formatting import (
    contains,
    data_url,
    ends_with,
    file_size,
    format_attributes,
    format_link,
    format_tel,
    format_tel_link,
    format_url,
    obfuscate,
    obfuscate_link,
    ordinal,
    rejoin_lines,
    split_lines,
    starts_with,
    truncate,
    truncate_words,
    twitter_name,
)
from monolith.models import (
    MonolithError,
    SvgNotFoundError,
    SvgNotLoadedError,
    SvgParseError,
    TimeSpanError,
)
from monolith.registry import INSTANCE_COUNTER, InstanceCounter
from monolith.svg import ScalableVectorGraphic, embed_svg, load_svg
from monolith.timespan import TimeSpanner
from monolith.video import Video

__version__ = "1.0.0"

__all__ = [
    "INSTANCE_COUNTER",
    "InstanceCounter",
    "MonolithError",
    "ScalableVectorGraphic",
    "SvgNotFoundError",
    "SvgNotLoadedError",
    "SvgParseError",
    "TimeSpanError",
    "TimeSpanner",
    "Video",
    "contains",
    "data_url",
    "embed_svg",
    "ends_with",
    "file_size",
    "format_attributes",
    "format_link",
    "format_tel",
    "format_tel_link",
    "format_url",
    "load_svg",
    "obfuscate",
    "obfuscate_link",
    "ordinal",
    "rejoin_lines",
    "split_lines",
    "starts_with",
    "truncate",
    "truncate_words",
    "twitter_name",
]
