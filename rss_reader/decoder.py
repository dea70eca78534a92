"""
XML decoding of RSS 2.0 and Atom 1.0 documents.

Bytes are handed to lxml, which honours the BOM and the encoding declared in
the XML prolog. Undeclared non-UTF-8 documents have their encoding inferred
from content and are transcoded to UTF-8 first. Elements are bound to fields
by local name; anything unknown is ignored.
"""
import codecs
import logging
import re
from typing import Callable, Dict, List, Union

from charset_normalizer import from_bytes
from lxml import etree

from rss_reader.dates import RawDate
from rss_reader.errors import MalformedFeedError
from rss_reader.models import Channel, Enclosure, Entry, Feed, Item
from rss_reader.utils.logging_utils import log_parse_results

logger = logging.getLogger(__name__)

RSS = "rss"
ATOM = "atom"

_BOMS = (codecs.BOM_UTF8, codecs.BOM_UTF32_LE, codecs.BOM_UTF32_BE, codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)

_XML_DECL_ENCODING = re.compile(
    rb'^\s*(<\?xml[^>]*?encoding\s*=\s*["\'])([^"\']+)(["\'])', re.IGNORECASE
)
_XML_DECL_ENCODING_TEXT = re.compile(
    r'^\s*(<\?xml[^>]*?encoding\s*=\s*["\'])([^"\']+)(["\'])', re.IGNORECASE
)


def _new_parser() -> etree.XMLParser:
    # Parsers are not shareable between threads
    return etree.XMLParser(
        recover=False,
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )


def declared_encoding(data: bytes) -> str:
    """Return the encoding named in the XML prolog, or an empty string."""
    match = _XML_DECL_ENCODING.search(data[:1024])
    if not match:
        return ""
    return match.group(2).decode("ascii", errors="replace").strip()


def _declare_utf8(text: str) -> str:
    return _XML_DECL_ENCODING_TEXT.sub(r'\1utf-8\3', text, count=1)


def transcode(data: bytes, encoding: str) -> bytes:
    """
    Re-encode a document as UTF-8 and update its XML declaration to match.

    Raises:
        MalformedFeedError: If the encoding is unknown or the bytes do not decode
    """
    try:
        text = data.decode(encoding)
    except (LookupError, UnicodeDecodeError) as e:
        raise MalformedFeedError(f"cannot decode feed as {encoding}: {e}") from e
    return _declare_utf8(text).encode("utf-8")


def _infer_encoding(data: bytes) -> bytes:
    """Transcode an undeclared document that is not valid UTF-8."""
    best = from_bytes(data).best()
    if best is None:
        raise MalformedFeedError("cannot determine feed character encoding")
    logger.warning(f"Feed declares no encoding and is not UTF-8; decoding as {best.encoding}")
    return str(best).encode("utf-8")


def _prepare(data: bytes) -> bytes:
    if data.startswith(_BOMS):
        return data
    encoding = declared_encoding(data)
    if encoding:
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise MalformedFeedError(f"unknown feed encoding {encoding!r}") from e
        return data
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return _infer_encoding(data)
    return data


def _parse_xml(data: bytes) -> etree._Element:
    prepared = _prepare(data)
    try:
        return etree.fromstring(prepared, parser=_new_parser())
    except etree.XMLSyntaxError as e:
        encoding = declared_encoding(prepared)
        if not encoding or "encoding" not in str(e).lower():
            raise MalformedFeedError(f"malformed feed XML: {e}") from e
        # libxml2 does not know this encoding; let Python's codecs try
        logger.debug(f"libxml2 rejected encoding {encoding!r}, transcoding: {e}")
    try:
        return etree.fromstring(transcode(prepared, encoding), parser=_new_parser())
    except etree.XMLSyntaxError as e:
        raise MalformedFeedError(f"malformed feed XML: {e}") from e


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


def _children(element: etree._Element, name: str) -> List[etree._Element]:
    return [
        child for child in element
        if isinstance(child.tag, str) and _local_name(child.tag) == name
    ]


def _text(element: etree._Element) -> str:
    """
    Character data directly inside the element, CDATA included.

    Leading and trailing whitespace is stripped, so indentation around a
    value never reaches the record.
    """
    parts = [element.text or ""]
    parts.extend(child.tail or "" for child in element)
    return "".join(parts).strip()


def _child_text(element: etree._Element, name: str) -> str:
    # First non-empty match wins, so <atom:link href=".."/> cannot blank <link>
    for child in _children(element, name):
        text = _text(child)
        if text:
            return text
    return ""


def _build_item(element: etree._Element) -> Item:
    return Item(
        title=_child_text(element, "title"),
        link=_child_text(element, "link"),
        comments=_child_text(element, "comments"),
        pub_date=RawDate(_child_text(element, "pubDate")),
        guid=_child_text(element, "guid"),
        categories=tuple(_text(child) for child in _children(element, "category")),
        enclosures=tuple(
            Enclosure(url=child.get("url", ""), type=child.get("type", ""))
            for child in _children(element, "enclosure")
        ),
        description=_child_text(element, "description"),
        author=_child_text(element, "author"),
        content=_child_text(element, "content"),
        full_text=_child_text(element, "full-text"),
    )


def _build_channel(root: etree._Element) -> Channel:
    channels = _children(root, "channel")
    if not channels:
        return Channel()
    element = channels[0]
    return Channel(
        title=_child_text(element, "title"),
        link=_child_text(element, "link"),
        description=_child_text(element, "description"),
        language=_child_text(element, "language"),
        last_build_date=RawDate(_child_text(element, "lastBuildDate")),
        items=tuple(_build_item(child) for child in _children(element, "item")),
    )


def _build_feed(root: etree._Element) -> Feed:
    return Feed(entries=tuple(
        Entry(
            id=_child_text(child, "id"),
            title=_child_text(child, "title"),
            updated=RawDate(_child_text(child, "updated")),
        )
        for child in _children(root, "entry")
    ))


_BUILDERS: Dict[str, Callable[[etree._Element], Union[Channel, Feed]]] = {
    RSS: _build_channel,
    ATOM: _build_feed,
}


def decode(data: Union[bytes, str], schema: str) -> Union[Channel, Feed]:
    """
    Decode a complete XML document into the record tree of `schema`.

    Args:
        data: The raw document; text is treated as already decoded
        schema: RSS (unwraps <rss><channel>) or ATOM (root <feed>)

    Returns:
        A Channel for RSS, a Feed for ATOM

    Raises:
        MalformedFeedError: If the document is not well-formed XML or cannot be transcoded
        ValueError: If the schema is unknown
    """
    builder = _BUILDERS.get(schema)
    if builder is None:
        raise ValueError(f"Unknown feed schema: {schema!r}")
    if isinstance(data, str):
        data = _declare_utf8(data).encode("utf-8")

    root = _parse_xml(data)
    result = builder(root)
    if schema == RSS:
        log_parse_results(logger, "RSS channel", len(result.items), len(data))
    else:
        log_parse_results(logger, "Atom feed", len(result.entries), len(data))
    return result


def decode_channel(data: Union[bytes, str]) -> Channel:
    """Decode an RSS 2.0 document."""
    return decode(data, RSS)


def decode_feed(data: Union[bytes, str]) -> Feed:
    """Decode an Atom 1.0 document."""
    return decode(data, ATOM)
