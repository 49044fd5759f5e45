# src/monolith/svg.py
"""SVG sanitizer for inline embedding in HTML.

This module parses SVG code and produces markup that is (mostly) safe to
embed in an HTML document: no XML declaration or DOCTYPE, ID and class names
made unique per instance, internal references rewritten to match, and a
viewBox synthesized from width and height when one is missing.

Two trees are kept per instance. The source tree is the parse result and is
never mutated; the working tree is a deep copy that sanitization and the
public mutators operate on. reset() rebuilds the working tree from the
source tree and sanitizes it again.

This is not a security sanitizer. It does not defend against entity
expansion and does not validate the document against any schema.

Usage:
    svg = ScalableVectorGraphic().load("icons/logo.svg")
    svg.remove_styles("fill").title("Company logo").fill("currentColor")
    html = svg.embed()
"""

import copy
import hashlib
import re
from collections.abc import Iterator, Mapping, Sequence, Set
from os import PathLike
from pathlib import Path
from typing import Self

from lxml import etree

from monolith.config import get_event_sample_rate
from monolith.models import SvgNotFoundError, SvgNotLoadedError, SvgParseError
from monolith.observability import SvgSanitizeEvent, Timer, emit_event
from monolith.registry import INSTANCE_COUNTER, InstanceCounter
from monolith.utils import log_error, log_op, truncate_error

# =============================================================================
# Constants
# =============================================================================

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
XML_NS = "http://www.w3.org/XML/1998/namespace"

XLINK_HREF = f"{{{XLINK_NS}}}href"

# Prefixes resolved even when the document does not declare them
KNOWN_PREFIXES = {
    "xml": XML_NS,
    "xlink": XLINK_NS,
}

# Illegal XML 1.0 control characters: 0x00-0x08, 0x0B, 0x0C, 0x0E-0x1F.
# Tab, newline and carriage return are legal and kept.
_ILLEGAL_XML_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

# url(#id), url('#id') and url("#id"); group 2 is the quote so the closing
# quote must match the opening one
_URL_REFERENCE_RE = re.compile(r"(url\(([\"']?)#.*?)(\2\))", re.IGNORECASE)

# Embedded CSS selectors. Regex cannot parse CSS; these are heuristics.
_STYLE_SELECTOR_PATTERNS = (
    re.compile(r"([.#][^\s]+?)(\s*?[{,])"),  # id (#) and class (.) selectors
    re.compile(r"(\[[^\s]+?)([\]=~|^$*])"),  # square bracket selectors
)


# Prolog constructs to skip, or the `<` opening the document element
_DOCUMENT_ELEMENT_RE = re.compile(
    r"<!--.*?-->|<\?.*?\?>|<!DOCTYPE(?:[^\[>]|\[.*?\])*>|<(?=[A-Za-z_])",
    re.DOTALL | re.IGNORECASE,
)
_TAG_NAME_RE = re.compile(r"[^\s/>]+")


def _make_parser() -> etree.XMLParser:
    """Create a parser that never touches the network or expands entities."""
    return etree.XMLParser(resolve_entities=False, no_network=True)


def _only_namespace_errors(error: etree.XMLSyntaxError) -> bool:
    """Is the text well-formed apart from namespace errors, e.g. an undeclared prefix?"""
    errors = [entry for entry in error.error_log if entry.level >= etree.ErrorLevels.ERROR]
    return bool(errors) and all(entry.domain == etree.ErrorDomains.NAMESPACE for entry in errors)


def _declare_known_prefixes(text: str) -> tuple[str, list[str]]:
    """Declare KNOWN_PREFIXES on the document element where it does not already.

    Returns:
        Tuple of (patched text, prefixes added)
    """
    start = next(
        (m for m in _DOCUMENT_ELEMENT_RE.finditer(text) if m.group() == "<"),
        None,
    )
    if start is None:
        return text, []

    name = _TAG_NAME_RE.match(text, start.end())
    if name is None:
        return text, []

    start_tag = text[start.start() : text.find(">", start.start())]
    added = [
        prefix
        for prefix in KNOWN_PREFIXES
        if prefix != "xml" and f"xmlns:{prefix}=" not in start_tag
    ]
    declarations = "".join(f' xmlns:{prefix}="{KNOWN_PREFIXES[prefix]}"' for prefix in added)

    return text[: name.end()] + declarations + text[name.end() :], added


def _parse_document(text: str) -> etree._Element:
    """Parse XML text, declaring well-known prefixes the document uses but omits.

    Raises:
        etree.XMLSyntaxError: If the text is not well-formed
    """
    try:
        return etree.fromstring(text.encode("utf-8"), parser=_make_parser())
    except etree.XMLSyntaxError as e:
        if not _only_namespace_errors(e):
            raise
        patched, added = _declare_known_prefixes(text)
        if not added:
            raise

    log_op("svg_namespace_declared", prefixes=added)
    return etree.fromstring(patched.encode("utf-8"), parser=_make_parser())


def make_suffix(source: str, instance_number: int) -> str:
    """Derive the namespacing suffix from source text and instance number."""
    digest = hashlib.sha256(f"{source}{instance_number}".encode()).hexdigest()
    return f"_{digest[:16]}"


def _localname(element: etree._Element) -> str:
    return etree.QName(element).localname


def _find_svg_root(document: etree._Element) -> etree._Element | None:
    """Return the top-level <svg> element, searching below a wrapper if needed."""
    if _localname(document) == "svg":
        return document
    for element in document.iter(etree.Element):
        if _localname(element) == "svg":
            return element
    return None


def _flatten_names(names: tuple[str | Sequence[str], ...]) -> list[str]:
    """Accept names as separate arguments, as sequences of names, or a mix."""
    flat = []

    for item in names:
        group = [item] if isinstance(item, str) else item
        if not isinstance(group, (Sequence, Set)) or isinstance(group, bytes):
            raise TypeError(f"names must be strings, not {type(item).__name__}")

        for name in group:
            if not isinstance(name, str):
                raise TypeError(f"names must be strings, not {type(name).__name__}")
            flat.append(name)

    return flat


def _style_pattern(name: str) -> re.Pattern[str]:
    """Match a `name: value;` declaration, case-insensitively."""
    return re.compile(r"(?<![\w-])" + re.escape(name) + r"\s*:[^;}]*;?", re.IGNORECASE)


class ScalableVectorGraphic:
    """SVG image sanitizer.

    Parses SVG code and generates code that is (mostly) safe to embed in an
    HTML document. Mutators operate on the working tree and return the
    instance so calls can be chained.

    Attributes:
        instance_number: Counter value taken at construction
    """

    def __init__(self, counter: InstanceCounter | None = None) -> None:
        """Initialize an empty sanitizer.

        Args:
            counter: Instance counter to draw from (defaults to the shared one)
        """
        self.instance_number = (counter or INSTANCE_COUNTER).next()
        self._source: str | None = None
        self._source_root: etree._Element | None = None
        self._root: etree._Element | None = None
        self._suffix = ""

    # =========================================================================
    # Loading
    # =========================================================================

    def parse(self, svg: str) -> Self:
        """Load SVG code from a string and sanitize it.

        The instance is left unchanged if the code cannot be parsed. Prefixes
        such as xlink that are used without being declared are declared on
        the document element rather than rejected.

        Raises:
            SvgParseError: If the code is not well-formed or has no <svg> element
        """
        try:
            document = _parse_document(_ILLEGAL_XML_CHARS_RE.sub("", svg))
        except (etree.XMLSyntaxError, ValueError) as e:
            log_error("svg_parse_error", e, source_size_bytes=len(svg))
            raise SvgParseError(f"Malformed SVG: {truncate_error(e)}") from e

        svg_root = _find_svg_root(document)
        if svg_root is None:
            error = SvgParseError("Document has no <svg> element")
            log_error("svg_parse_error", error, source_size_bytes=len(svg))
            raise error

        # Copying the element detaches it from the parsed document, so any
        # DOCTYPE and sibling comments or processing instructions are dropped
        source_root = copy.deepcopy(svg_root)
        source_root.tail = None

        self._source = svg
        self._source_root = source_root
        self._suffix = make_suffix(svg, self.instance_number)

        return self.reset()

    def load(self, path: str | PathLike[str]) -> Self:
        """Load SVG code from a file and sanitize it.

        The file is read as bytes and decoded as UTF-8, so embed_source_code()
        returns its content exactly.

        Raises:
            SvgNotFoundError: If the file does not exist
            SvgParseError: If the file is not valid UTF-8 or not well-formed
        """
        path = Path(path)

        if not path.is_file():
            error = SvgNotFoundError(f"{path} not found")
            log_error("svg_load_error", error, path=str(path))
            raise error

        raw = path.read_bytes()

        try:
            svg = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            log_error("svg_parse_error", e, path=str(path), source_size_bytes=len(raw))
            raise SvgParseError(f"{path} is not UTF-8: {truncate_error(e)}") from e

        log_op("svg_load", path=str(path), source_size_bytes=len(raw))

        return self.parse(svg)

    # =========================================================================
    # Reset / Sanitize
    # =========================================================================

    def reset(self) -> Self:
        """Rebuild the working tree from the source tree and sanitize it."""
        if self._source_root is None or self._source is None:
            raise SvgNotLoadedError("No SVG loaded; call parse() or load() first")

        event = SvgSanitizeEvent(
            source_hash=hashlib.sha256(self._source.encode()).hexdigest()[:16],
            instance_number=self.instance_number,
            suffix=self._suffix,
            source_size_bytes=len(self._source),
        )

        with Timer() as timer:
            self._root = copy.deepcopy(self._source_root)
            self._sanitize(event)

        event.wall_time_ms = timer.elapsed_ms
        emit_event(event, sample_rate=get_event_sample_rate())

        return self

    def _sanitize(self, event: SvgSanitizeEvent) -> None:
        """Run the fixed sequence of rewrites on the working tree."""
        event.viewbox_synthesized = self._sanitize_view_box()
        self._sanitize_names(event)

    def _sanitize_view_box(self) -> bool:
        """Add a viewBox based on width and height, if missing and possible."""
        root = self._root

        if root.get("viewBox"):
            return False

        width = root.get("width")
        height = root.get("height")

        # No width? No height? Cannot create viewBox.
        if not width or not height:
            return False

        root.set("viewBox", f"0 0 {width} {height}")
        return True

    def _sanitize_names(self, event: SvgSanitizeEvent) -> None:
        """Make IDs and classes unique and keep references pointing at them."""
        suffix = self._suffix

        for element in self._elements():
            event.elements_total += 1
            event.ids_renamed += self._modify_id(element, suffix)
            event.classes_renamed += self._modify_classes(element, suffix)
            event.references_rewritten += self._modify_hrefs(element, suffix)
            event.references_rewritten += self._modify_url_references(element, suffix)
            event.style_elements_rewritten += self._modify_style_element(element, suffix)

    @staticmethod
    def _modify_id(element: etree._Element, suffix: str) -> int:
        element_id = element.get("id")
        if not element_id:
            return 0
        element.set("id", element_id + suffix)
        return 1

    @staticmethod
    def _modify_classes(element: etree._Element, suffix: str) -> int:
        names = (element.get("class") or "").split()
        if not names:
            return 0
        element.set("class", " ".join(name + suffix for name in names))
        return len(names)

    @staticmethod
    def _modify_hrefs(element: etree._Element, suffix: str) -> int:
        """Suffix fragment references in xlink:href and SVG 2 href."""
        count = 0

        xlink_href = element.get(XLINK_HREF)
        if xlink_href and "#" in xlink_href:
            element.set(XLINK_HREF, xlink_href + suffix)
            count += 1

        # Plain href is also used for external links, so only same-document
        # fragments are rewritten
        href = element.get("href")
        if href and href.startswith("#"):
            element.set("href", href + suffix)
            count += 1

        return count

    @staticmethod
    def _modify_url_references(element: etree._Element, suffix: str) -> int:
        """Suffix url(#id) references in every attribute value except id."""
        count = 0

        for name, value in element.items():
            if name == "id" or "url(" not in value.lower():
                continue

            rewritten, replaced = _URL_REFERENCE_RE.subn(
                lambda m: m.group(1) + suffix + m.group(3), value
            )
            if replaced:
                element.set(name, rewritten)
                count += replaced

        return count

    @staticmethod
    def _modify_style_element(element: etree._Element, suffix: str) -> int:
        """Suffix id, class and attribute selectors inside a <style> element."""
        if _localname(element) != "style" or not element.text:
            return 0

        value = element.text
        for pattern in _STYLE_SELECTOR_PATTERNS:
            value = pattern.sub(lambda m: m.group(1) + suffix + m.group(2), value)

        element.text = value
        return 1

    # =========================================================================
    # Mutators
    # =========================================================================

    def remove_attributes(self, *names: str | Sequence[str]) -> Self:
        """Remove attributes from the root <svg> element.

        Names may be passed separately or as a list. Removing an attribute
        that is not present, or whose prefix is unknown, does nothing.

        Raises:
            TypeError: If a name is not a string
        """
        root = self._require_root()

        for name in _flatten_names(names):
            qualified = self._qualify(name)
            if qualified is not None:
                root.attrib.pop(qualified, None)

        return self

    def remove_styles(self, *names: str | Sequence[str]) -> Self:
        """Remove style properties from every element.

        For each property this removes the presentation attribute of the same
        name, matching declarations in style attributes, and matching
        declarations in <style> elements. Use at your own risk: it is useful
        for taking over, say, fill from the CSS of the parent document.

        Raises:
            TypeError: If a name is not a string
        """
        root = self._require_root()

        for name in _flatten_names(names):
            pattern = _style_pattern(name)

            for element in root.iter(etree.Element):
                element.attrib.pop(name, None)

                style = element.get("style")
                if style is not None:
                    element.set("style", pattern.sub("", style).strip())

                if _localname(element) == "style" and element.text:
                    element.text = pattern.sub("", element.text)

        return self

    def set_attributes(self, attributes: Mapping[str, str]) -> Self:
        """Set attributes on the root <svg> element, overwriting existing values.

        Names with an unknown prefix are skipped, as in remove_attributes().

        Raises:
            TypeError: If attributes is not a mapping
            ValueError: If a name is not a valid XML attribute name
        """
        if not isinstance(attributes, Mapping):
            raise TypeError(f"attributes must be a mapping, not {type(attributes).__name__}")

        root = self._require_root()

        for name, value in attributes.items():
            qualified = self._qualify(name)
            if qualified is None:
                log_op("svg_attribute_skipped", name=name, reason="unknown_prefix")
                continue
            root.set(qualified, str(value))

        return self

    def title(self, text: str) -> Self:
        """Set the text of the top-level <title>, creating it as the first child."""
        root = self._require_root()

        title = next(
            (child for child in root.iterchildren(etree.Element) if _localname(child) == "title"),
            None,
        )

        if title is None:
            # SubElement picks up the root namespace; then move it to the front
            title = etree.SubElement(root, self._tag("title"))
            root.insert(0, title)

        for child in list(title):
            title.remove(child)
        title.text = text

        return self

    def fill(self, color: str) -> Self:
        """Set the primary fill colour on the root element."""
        return self.set_attributes({"fill": color})

    # =========================================================================
    # Output
    # =========================================================================

    def embed(self) -> str:
        """Return the sanitized document as markup for an HTML page."""
        return self._serialize(self._require_root())

    def embed_source_code(self) -> str:
        """Return the original source code, unmodified."""
        self._require_root()
        return self._source

    def embed_source_dom(self) -> str:
        """Return the unmodified document as parsed.

        This may differ slightly from the source code because parsing
        normalizes the document structure.
        """
        self._require_root()
        return self._serialize(self._source_root)

    # =========================================================================
    # Helpers
    # =========================================================================

    @property
    def suffix(self) -> str:
        """The namespacing suffix appended to IDs and classes."""
        return self._suffix

    @property
    def is_loaded(self) -> bool:
        return self._root is not None

    @staticmethod
    def _serialize(element: etree._Element) -> str:
        return etree.tostring(element, encoding="unicode", with_tail=False)

    def _require_root(self) -> etree._Element:
        if self._root is None:
            raise SvgNotLoadedError("No SVG loaded; call parse() or load() first")
        return self._root

    def _elements(self) -> Iterator[etree._Element]:
        """All elements of the working tree in document order, root first."""
        return self._root.iter(etree.Element)

    def _tag(self, localname: str) -> str:
        namespace = etree.QName(self._root).namespace
        return f"{{{namespace}}}{localname}" if namespace else localname

    def _qualify(self, name: str) -> str | None:
        """Resolve a prefixed attribute name such as xlink:href.

        Returns None when the prefix is unknown.
        """
        if name.startswith("{") or ":" not in name:
            return name

        prefix, localname = name.split(":", 1)
        namespace = self._root.nsmap.get(prefix) or KNOWN_PREFIXES.get(prefix)
        if namespace is None:
            return None
        return f"{{{namespace}}}{localname}"


# =============================================================================
# Convenience Functions
# =============================================================================


def load_svg(
    path: str | PathLike[str],
    *,
    attributes: Mapping[str, str] | None = None,
    title: str | None = None,
    fill: str | None = None,
    remove_attributes: tuple[str, ...] | list[str] = (),
    remove_styles: tuple[str, ...] | list[str] = (),
    counter: InstanceCounter | None = None,
) -> ScalableVectorGraphic:
    """Load an SVG file and apply the common embedding options.

    Options are applied in this order: remove attributes, remove styles,
    title, fill, extra attributes.

    Returns:
        The loaded ScalableVectorGraphic instance
    """
    svg = ScalableVectorGraphic(counter).load(path)
    svg.remove_attributes(*remove_attributes)
    svg.remove_styles(*remove_styles)

    if title is not None:
        svg.title(title)

    if fill is not None:
        svg.fill(fill)

    svg.set_attributes(attributes or {})

    return svg


def embed_svg(
    path: str | PathLike[str],
    *,
    attributes: Mapping[str, str] | None = None,
    title: str | None = None,
    fill: str | None = None,
    remove_attributes: tuple[str, ...] | list[str] = (),
    remove_styles: tuple[str, ...] | list[str] = (),
    counter: InstanceCounter | None = None,
) -> str:
    """Return SVG file content as a sanitized element for an HTML document."""
    return load_svg(
        path,
        attributes=attributes,
        title=title,
        fill=fill,
        remove_attributes=remove_attributes,
        remove_styles=remove_styles,
        counter=counter,
    ).embed()
