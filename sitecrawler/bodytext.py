"""Collect the text that appears inside an HTML document's body."""

from __future__ import annotations

from html.parser import HTMLParser
from typing import List, Union


class _BodyTextParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.in_body = False
        self.parts: List[str] = []

    def handle_starttag(self, tag, attrs):
        if tag == "body":
            self.in_body = True

    def handle_startendtag(self, tag, attrs):
        self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag):
        if tag == "body":
            self.in_body = False

    def handle_data(self, data):
        if self.in_body:
            self.parts.append(data + " ")


def extract_body_text(html_content: Union[bytes, str]) -> str:
    """Return every text run inside <body>, each followed by a space."""
    if isinstance(html_content, bytes):
        html_content = html_content.decode("utf-8", errors="replace")
    parser = _BodyTextParser()
    parser.feed(html_content)
    parser.close()
    return "".join(parser.parts)