"""
Extractor Base Module
=====================

lxml helpers shared by the listing and detail extractors, and FieldSpec,
an ordered list of XPath selectors for one field.

Guide pages have gone through several layouts since ~2016 and Wayback
snapshots cover all of them, so every field is looked up through a list of
selectors from newest layout to oldest.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lxml import etree, html

if TYPE_CHECKING:
    from michelin_maps.ingestion.crawler import Response

logger = logging.getLogger(__name__)

Document = html.HtmlElement


def parse_document(body: bytes, encoding: str = "utf-8") -> Document | None:
    """
    Parse an HTML page.

    Returns:
        The root element, or None if the body holds no markup
    """
    if not body or not body.strip():
        return None
    try:
        parser = html.HTMLParser(encoding=encoding)
    except LookupError:
        parser = html.HTMLParser(encoding="utf-8")
    try:
        return html.document_fromstring(body, parser=parser)
    except (etree.ParserError, ValueError) as e:
        logger.debug(f"Could not parse document: {e}")
        return None


def parse_response(response: Response) -> Document | None:
    return parse_document(response.body, response.encoding)


def _node_text(node: Any) -> str:
    if isinstance(node, str):
        return str(node).strip()
    if isinstance(node, html.HtmlElement):
        return node.text_content().strip()
    return ""


def select(node: Any, selector: str) -> list[Any]:
    """Evaluate an XPath, treating a broken expression as no match."""
    try:
        result = node.xpath(selector)
    except etree.XPathError as e:
        logger.warning(f"Invalid XPath {selector!r}: {e}")
        return []
    return result if isinstance(result, list) else [result]


def first_text(node: Any, selector: str) -> str:
    """Stripped text of the first match."""
    matches = select(node, selector)
    return _node_text(matches[0]) if matches else ""


def all_texts(node: Any, selector: str) -> list[str]:
    """Stripped text of every match."""
    return [_node_text(match) for match in select(node, selector)]


def first_attr(node: Any, selector: str, attr: str) -> str:
    """Stripped attribute value of the first matching element."""
    for match in select(node, selector):
        if isinstance(match, html.HtmlElement):
            return (match.get(attr) or "").strip()
    return ""


def find_script(document: Document, *keywords: str) -> str:
    """Body of the first <script> containing every keyword."""
    for script in all_texts(document, "//script"):
        if all(keyword in script for keyword in keywords):
            return script
    return ""


def _identity(text: str) -> str:
    return text


@dataclass(frozen=True)
class FieldSpec:
    """
    Ordered XPath selectors for one field plus the normalizer applied to
    each candidate. The first selector whose normalized text is non-empty wins.
    """

    name: str
    selectors: tuple[str, ...]
    normalizer: Callable[[str], str] = _identity

    def extract(self, node: Any) -> str:
        for selector in self.selectors:
            text = first_text(node, selector)
            if not text:
                continue
            parsed = self.normalizer(text)
            if parsed:
                return parsed
        return ""

    def extract_attr(self, node: Any, attr: str) -> str:
        for selector in self.selectors:
            value = first_attr(node, selector, attr)
            if value:
                return value
        return ""

    def extract_all(self, node: Any) -> list[str]:
        """Texts of every match of the first selector that matches anything."""
        for selector in self.selectors:
            texts = all_texts(node, selector)
            if texts:
                return texts
        return []


class BaseExtractor(ABC):
    """
    Abstract base class for page extractors.

    Extractors are stateless: they map one parsed document (plus the
    request context it was fetched with) to structured data.
    """

    @abstractmethod
    def extract(self, document: Document, url: str, ctx: dict[str, Any] | None = None) -> Any:
        """
        Extract structured data from a page.

        Args:
            document: Parsed HTML root
            url: URL the page was fetched from
            ctx: Request context

        Returns:
            Extractor-specific result
        """
        pass
