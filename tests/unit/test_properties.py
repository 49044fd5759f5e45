# tests/unit/test_properties.py
"""Property-based tests using Hypothesis."""

import html
import random

from hypothesis import given, settings
from hypothesis import strategies as st
from lxml import etree

from monolith.formatting import obfuscate, ordinal, split_lines
from monolith.registry import InstanceCounter
from monolith.svg import ScalableVectorGraphic
from monolith.timespan import TimeSpanner
from tests.fixtures.samples import SVG_NS, wrap

# XML names: a letter followed by letters, digits, hyphens or underscores
names = st.from_regex(r"[A-Za-z][A-Za-z0-9_-]{0,11}", fullmatch=True)


class TestSvgProperties:
    """Property-based tests for SVG namespacing."""

    @given(ids=st.lists(names, min_size=1, max_size=5, unique=True))
    @settings(max_examples=50)
    def test_every_id_gets_exactly_one_suffix(self, ids):
        """Each ID is the original name plus the suffix, after any number of resets."""
        body = "".join(f'<rect id="{name}"/>' for name in ids)
        svg = ScalableVectorGraphic(InstanceCounter()).parse(wrap(body))
        svg.reset().reset()

        root = etree.fromstring(svg.embed().encode())
        rendered = [el.get("id") for el in root.iter(f"{{{SVG_NS}}}rect")]

        assert rendered == [name + svg.suffix for name in ids]

    @given(ids=st.lists(names, min_size=1, max_size=5, unique=True))
    @settings(max_examples=50)
    def test_references_follow_ids(self, ids):
        """Every href and url() reference resolves to a renamed ID."""
        body = "".join(
            f'<rect id="{name}"/><use href="#{name}"/><g fill="url(#{name})"/>' for name in ids
        )
        svg = ScalableVectorGraphic(InstanceCounter()).parse(wrap(body))

        root = etree.fromstring(svg.embed().encode())
        rendered_ids = {el.get("id") for el in root.iter() if el.get("id")}

        for use in root.iter(f"{{{SVG_NS}}}use"):
            assert use.get("href")[1:] in rendered_ids
        for group in root.iter(f"{{{SVG_NS}}}g"):
            assert group.get("fill")[len("url(#") : -1] in rendered_ids

    @given(
        classes=st.lists(names, min_size=1, max_size=5),
        separator=st.sampled_from([" ", "  ", "\t", "\n"]),
    )
    @settings(max_examples=50)
    def test_class_tokens_suffixed(self, classes, separator):
        svg = ScalableVectorGraphic(InstanceCounter()).parse(
            wrap(f'<g class="{separator.join(classes)}"/>')
        )

        group = etree.fromstring(svg.embed().encode())[0]
        assert group.get("class").split(" ") == [name + svg.suffix for name in classes]

    @given(title=st.text(alphabet=st.characters(blacklist_categories=("Cs", "Cc", "Cn")), max_size=40))
    @settings(max_examples=50)
    def test_source_never_changes(self, title):
        source = wrap('<rect id="a" class="b" fill="red" style="fill:red"/>', width="4", height="4")
        svg = ScalableVectorGraphic(InstanceCounter()).parse(source)
        source_dom = svg.embed_source_dom()

        svg.title(title).remove_styles("fill").remove_attributes("width").fill("blue")

        assert svg.embed_source_code() == source
        assert svg.embed_source_dom() == source_dom


class TestFormattingProperties:
    """Property-based tests for formatting helpers."""

    @given(
        text=st.text(
            alphabet=st.characters(max_codepoint=0xFFFD, blacklist_categories=("Cs", "Cc", "Cn")),
            max_size=50,
        ),
        seed=st.integers(),
    )
    @settings(max_examples=100)
    def test_obfuscate_decodes_to_input(self, text, seed):
        assert html.unescape(obfuscate(text, random.Random(seed))) == text

    @given(number=st.integers(min_value=0, max_value=10**6))
    def test_ordinal_starts_with_number(self, number):
        result = ordinal(number)

        assert result[:-2] == str(number)
        assert result[-2:] in ("st", "nd", "rd", "th")

    @given(parts=st.lists(st.from_regex(r"[a-z][a-z ]{0,10}[a-z]", fullmatch=True), min_size=1))
    def test_split_lines_round_trip(self, parts):
        assert split_lines(", ".join(parts)) == parts


class TestTimeSpannerProperties:
    """Property-based tests for TimeSpanner."""

    @given(
        start=st.integers(min_value=0, max_value=2**32),
        length=st.integers(min_value=0, max_value=10**8),
    )
    def test_interval_matches_difference(self, start, length):
        span = TimeSpanner(start, start + length)

        assert span.get_interval(seconds=True) == length
        assert span.is_range() == (length > 0)
