"""Static extraction of structured fields from served HTML.

Works on the markup exactly as the server returned it, without running any
page script. Every field degrades to an empty collection or a default
string when absent; extraction never raises for missing content.
"""

import json
import logging
import re
from typing import Any, Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag

from pagescope.constants import (
    DEFAULT_DESCRIPTION,
    DEFAULT_TITLE,
    HEAD_ELEMENTS,
    HEADING_LEVELS,
    INLINE_SNIPPET_LENGTH,
)
from pagescope.links import is_external_link
from pagescope.models import (
    ButtonInfo,
    ExtractedContent,
    FormField,
    FormInfo,
    IframeInfo,
    ImageInfo,
    LinkInfo,
    ScriptInfo,
    StylesheetInfo,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run to one space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


class HtmlDocument:
    """Parsed HTML document queried with CSS selectors.

    A thin wrapper so the extractor only depends on selector matching,
    text content and attribute access.
    """

    def __init__(self, html: str, parser: str = "html.parser"):
        self._soup = BeautifulSoup(html or "", parser)

    def select(self, selector: str, within: Optional[Tag] = None) -> List[Tag]:
        """All elements matching ``selector`` in document order."""
        return (self._soup if within is None else within).select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        """First element matching ``selector``, or None."""
        return self._soup.select_one(selector)

    def body_text(self, separator: str = " ") -> str:
        """Text of the document body.

        HTML5 lets a page omit the <body> tag and html.parser does not
        build the implied element. In that case every top-level node
        outside the head content model is treated as body content.
        """
        body = self._soup.select_one("body")
        if body is not None:
            return body.get_text(separator=separator)

        container = self._soup.find("html") or self._soup
        parts = []
        for child in container.children:
            if isinstance(child, Tag):
                if child.name not in HEAD_ELEMENTS:
                    parts.append(child.get_text(separator=separator))
            elif type(child) is NavigableString:
                # Comments, doctypes and CDATA are NavigableString subclasses
                parts.append(str(child))
        return separator.join(parts)

    @staticmethod
    def text_of(element: Tag, separator: str = "") -> str:
        """Concatenated text content of ``element``."""
        return element.get_text(separator=separator)

    @staticmethod
    def attr(element: Tag, name: str) -> Optional[str]:
        """Attribute value, joined if the parser returned a list."""
        value = element.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    @staticmethod
    def has_attr(element: Tag, name: str) -> bool:
        return element.has_attr(name)


class StaticExtractor:
    """Extracts page content and structure from served HTML.

    Content: title, description, headings, links, images, meta tags and
    body text. Structure: forms, scripts, stylesheets, iframes, inputs,
    buttons and JSON-LD blocks.
    """

    def __init__(
        self,
        default_title: str = DEFAULT_TITLE,
        default_description: str = DEFAULT_DESCRIPTION,
    ):
        self.default_title = default_title
        self.default_description = default_description

    def extract(self, html: str, page_url: str) -> ExtractedContent:
        """Extract structured content from HTML.

        Args:
            html: Raw HTML body
            page_url: URL the HTML was fetched from, used to classify links

        Returns:
            ExtractedContent for the document
        """
        doc = HtmlDocument(html)

        content = ExtractedContent(
            title=self._extract_title(doc),
            description=self._extract_description(doc),
            headings=list(self._iter_headings(doc)),
            links=self._extract_links(doc, page_url),
            images=self._extract_images(doc),
            meta_tags=self._extract_meta_tags(doc),
            text_content=collapse_whitespace(doc.body_text(separator=" ")),
            forms=self._extract_forms(doc),
            scripts=self._extract_scripts(doc),
            stylesheets=self._extract_stylesheets(doc),
            iframes=self._extract_iframes(doc),
            inputs=[self._form_field(doc, element) for element in doc.select("input")],
            buttons=self._extract_buttons(doc),
            structured_data=self._extract_json_ld(doc, page_url),
        )

        logger.debug(
            f"Extracted {len(content.headings)} headings, {len(content.links)} links, "
            f"{len(content.images)} images, {len(content.meta_tags)} meta tags, "
            f"{len(content.forms)} forms, {len(content.scripts)} scripts from {page_url}"
        )
        return content

    def _extract_title(self, doc: HtmlDocument) -> str:
        title = doc.select_one("title")
        if title is None:
            return self.default_title
        text = doc.text_of(title).strip()
        return text or self.default_title

    def _extract_description(self, doc: HtmlDocument) -> str:
        meta = doc.select_one('meta[name="description"]')
        if meta is None:
            return self.default_description
        content = doc.attr(meta, "content")
        return content if content is not None else self.default_description

    def _iter_headings(self, doc: HtmlDocument) -> Iterator[str]:
        # Level-major: all H1s in document order, then all H2s, ...
        for level in HEADING_LEVELS:
            for element in doc.select(f"h{level}"):
                text = doc.text_of(element).strip()
                if text:
                    yield f"H{level}: {text}"

    def _extract_links(self, doc: HtmlDocument, page_url: str) -> List[LinkInfo]:
        links = []
        for element in doc.select("a[href]"):
            href = doc.attr(element, "href")
            text = doc.text_of(element).strip()
            links.append(LinkInfo(
                text=text or href,
                href=href,
                is_external=is_external_link(href, page_url),
            ))
        return links

    def _extract_images(self, doc: HtmlDocument) -> List[ImageInfo]:
        return [
            ImageInfo(
                src=doc.attr(element, "src"),
                alt=doc.attr(element, "alt") or "",
                width=doc.attr(element, "width"),
                height=doc.attr(element, "height"),
            )
            for element in doc.select("img[src]")
        ]

    def _extract_meta_tags(self, doc: HtmlDocument) -> dict:
        meta_tags = {}
        # Single map in document order; a later tag overwrites an earlier
        # one with the same key, whether keyed by name or property.
        for element in doc.select("meta"):
            content = doc.attr(element, "content")
            if content is None:
                continue
            name = doc.attr(element, "name")
            if name:
                meta_tags[name] = content
            prop = doc.attr(element, "property")
            if prop:
                meta_tags[prop] = content
        return meta_tags

    def _form_field(self, doc: HtmlDocument, element: Tag) -> FormField:
        field_type = doc.attr(element, "type")
        if not field_type:
            # Browser defaults for controls without an explicit type
            field_type = {"input": "text", "button": "submit"}.get(element.name, element.name)
        return FormField(
            type=field_type.lower(),
            name=doc.attr(element, "name") or "",
            id=doc.attr(element, "id") or "",
            placeholder=doc.attr(element, "placeholder") or "",
            required=doc.has_attr(element, "required"),
            autocomplete=doc.attr(element, "autocomplete") or "",
        )

    def _extract_forms(self, doc: HtmlDocument) -> List[FormInfo]:
        forms = []
        for form in doc.select("form"):
            forms.append(FormInfo(
                action=doc.attr(form, "action") or "",
                method=(doc.attr(form, "method") or "get").lower(),
                id=doc.attr(form, "id") or "",
                enctype=doc.attr(form, "enctype") or "",
                fields=[
                    self._form_field(doc, element)
                    for element in doc.select("input, select, textarea, button", within=form)
                ],
            ))
        return forms

    def _extract_scripts(self, doc: HtmlDocument) -> List[ScriptInfo]:
        scripts = []
        for element in doc.select("script"):
            src = doc.attr(element, "src")
            if src:
                scripts.append(ScriptInfo(
                    type="external",
                    src=src,
                    is_async=doc.has_attr(element, "async"),
                    defer=doc.has_attr(element, "defer"),
                ))
                continue
            code = doc.text_of(element)
            if code.strip():
                scripts.append(ScriptInfo(
                    type="inline",
                    content=code[:INLINE_SNIPPET_LENGTH],
                    length=len(code),
                ))
        return scripts

    def _extract_stylesheets(self, doc: HtmlDocument) -> List[StylesheetInfo]:
        stylesheets = [
            StylesheetInfo(
                type="external",
                href=doc.attr(element, "href"),
                media=doc.attr(element, "media") or "all",
            )
            for element in doc.select("link[rel~=stylesheet]")
        ]
        for element in doc.select("style"):
            css = doc.text_of(element)
            if css.strip():
                stylesheets.append(StylesheetInfo(
                    type="inline",
                    content=css[:INLINE_SNIPPET_LENGTH],
                    length=len(css),
                ))
        return stylesheets

    def _extract_iframes(self, doc: HtmlDocument) -> List[IframeInfo]:
        return [
            IframeInfo(
                src=doc.attr(element, "src") or "",
                width=doc.attr(element, "width"),
                height=doc.attr(element, "height"),
                sandbox=doc.attr(element, "sandbox"),
                loading=doc.attr(element, "loading"),
            )
            for element in doc.select("iframe")
        ]

    def _extract_buttons(self, doc: HtmlDocument) -> List[ButtonInfo]:
        buttons = []
        for element in doc.select('button, input[type="button"], input[type="submit"]'):
            buttons.append(ButtonInfo(
                text=doc.text_of(element).strip() or doc.attr(element, "value") or "",
                type=(doc.attr(element, "type") or ("submit" if element.name == "button" else "")).lower(),
                id=doc.attr(element, "id") or "",
            ))
        return buttons

    def _extract_json_ld(self, doc: HtmlDocument, page_url: str) -> List[Any]:
        """Parse JSON-LD blocks, skipping ones with invalid syntax."""
        blocks = []
        for element in doc.select('script[type="application/ld+json"]'):
            raw = doc.text_of(element)
            if not raw.strip():
                continue
            try:
                blocks.append(json.loads(raw))
            except json.JSONDecodeError as e:
                logger.debug(f"Invalid JSON-LD on {page_url}: {str(e)[:100]}")
        return blocks
