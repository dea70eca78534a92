"""
Record types produced by decoding RSS 2.0 and Atom 1.0 documents.

Every field is optional in the source document; a missing value is an empty
string or an empty tuple.
"""
from dataclasses import dataclass
from typing import Tuple

from rss_reader.dates import RawDate


@dataclass(frozen=True)
class Enclosure:
    """Media attachment of an RSS item."""
    url: str = ""
    type: str = ""


@dataclass(frozen=True)
class Item:
    """One <item> of an RSS channel."""
    title: str = ""
    link: str = ""
    comments: str = ""
    pub_date: RawDate = RawDate("")
    guid: str = ""
    categories: Tuple[str, ...] = ()
    enclosures: Tuple[Enclosure, ...] = ()
    description: str = ""
    author: str = ""
    content: str = ""
    full_text: str = ""


@dataclass(frozen=True)
class Channel:
    """The <channel> of an RSS 2.0 document."""
    title: str = ""
    link: str = ""
    description: str = ""
    language: str = ""
    last_build_date: RawDate = RawDate("")
    items: Tuple[Item, ...] = ()


@dataclass(frozen=True)
class Entry:
    """One <entry> of an Atom feed."""
    id: str = ""
    title: str = ""
    updated: RawDate = RawDate("")


@dataclass(frozen=True)
class Feed:
    """An Atom 1.0 <feed>."""
    entries: Tuple[Entry, ...] = ()
