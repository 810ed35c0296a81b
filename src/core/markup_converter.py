"""
Markup Conversion Module

This module turns a parsed puzzle page into the lightweight markdown dialect
used for the archived README files. Only a small, closed set of tags is
understood; anything else stops the conversion so that a change in the page
markup is noticed instead of silently producing damaged text.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Union

from bs4 import BeautifulSoup, NavigableString, Tag

from .errors import MissingAttribute, StructuralMismatch, UnsupportedMarkup


MarkupNode = Union[Tag, NavigableString]

TEXT_NODE = '#text'

# A rule receives the node and the fragments of each of its children
Rule = Callable[[MarkupNode, List[List[str]]], List[str]]

# "--- Day 5: A Maze of Twisty Trampolines, All Alike ---"
TITLE_PATTERN = re.compile(r'.*: (.*) ---')


@dataclass(frozen=True)
class ConversionResult:
    title: str
    body: str


def node_name(node: MarkupNode) -> str:
    """
    Return the rule name for a node.

    Elements use their tag name, plain text uses ``#text`` and the other
    string types (comments, doctypes, CDATA...) get ``#`` plus their type name.
    """
    if isinstance(node, Tag):
        return node.name
    if type(node) is NavigableString:
        return TEXT_NODE
    return '#' + type(node).__name__.lower()


class MarkupConverter:
    """
    Converts puzzle page markup into markdown text.

    Each node is mapped to a list of text fragments by the rule registered
    for its tag, given the fragments already rendered for its children in
    document order.

    The converter keeps no state between calls, so one instance can be shared
    by several worker threads.
    """

    def __init__(self, parser: str = 'lxml'):
        """
        Initialize the converter.

        Args:
            parser: BeautifulSoup parser used by convert_html
        """
        self.logger = logging.getLogger(__name__)
        self.parser = parser

        self.rules: Dict[str, Rule] = {
            'h2': self._render_heading,
            'p': self._render_paragraph,
            'em': self._render_emphasis,
            'code': self._render_code,
            'span': self._render_span,
            's': self._render_strikethrough,
            'ul': self._render_list,
            'li': self._render_list_item,
            'pre': self._render_preformatted,
            'a': self._render_link,
            TEXT_NODE: self._render_text,
        }

    def convert_html(self, html_content: str, source_url: str) -> ConversionResult:
        """
        Parse raw page HTML and convert it.

        Args:
            html_content: Page HTML as text
            source_url: URL the page was fetched from

        Returns:
            ConversionResult with the page title and markdown body
        """
        soup = BeautifulSoup(html_content, self.parser)
        return self.convert(soup, source_url)

    def convert(self, document: Tag, source_url: str) -> ConversionResult:
        """
        Convert a parsed page into a title and markdown body.

        Args:
            document: Parsed document, rooted above the article containers
            source_url: URL the page was fetched from, used for attribution

        Returns:
            ConversionResult with the page title and markdown body

        Raises:
            ValueError: If source_url is empty
            StructuralMismatch: If the page has no article or no h2 element
            MissingAttribute: If a link has no href
            UnsupportedMarkup: If a tag outside the rule table is found
        """
        if not source_url or not isinstance(source_url, str):
            raise ValueError("source_url must be a non-empty string")

        articles = document.find_all('article')
        heading = document.find('h2')

        missing = []
        if not articles:
            missing.append('article')
        if heading is None:
            missing.append('h2')
        if missing:
            raise StructuralMismatch(missing)

        self.logger.info(f"Converting page: {source_url}")

        parts = [f"original source: [{source_url}]({source_url})\n\n"]
        for article in articles:
            parts.append(self.render_children(article) + "\n")
        body = ''.join(parts)

        title = self.extract_title(heading)

        self.logger.debug(f"Converted {len(articles)} article(s), {len(body)} chars, title: {title!r}")
        return ConversionResult(title=title, body=body)

    def extract_title(self, heading: Tag) -> str:
        """Return the puzzle name from a day heading, or the heading text as-is."""
        text = heading.get_text()
        match = TITLE_PATTERN.search(text)
        if match:
            return match.group(1)
        return text

    def render_children(self, node: Tag, separator: str = '') -> str:
        """Render every child of a node and join the fragments with separator."""
        return separator.join(
            fragment
            for child in node.children
            for fragment in self.render_node(child)
        )

    def render_node(self, node: MarkupNode) -> List[str]:
        """
        Render a single node to its text fragments.

        The subtree is walked with an explicit stack of open elements rather
        than Python recursion, so nesting depth is not limited by the
        interpreter's recursion limit. A rule runs once all of its node's
        children have been rendered.

        Args:
            node: Element or text node

        Returns:
            List of fragments, in output order

        Raises:
            UnsupportedMarkup: If no rule exists for a tag in the subtree
            MissingAttribute: If a link in the subtree has no href
        """
        rule = self._rule_for(node)
        if not isinstance(node, Tag):
            return rule(node, [])

        # (element, its rule, remaining children, rendered children)
        stack = [(node, rule, iter(node.children), [])]
        while True:
            current, current_rule, children, rendered = stack[-1]
            child = next(children, None)
            if child is not None:
                child_rule = self._rule_for(child)
                if isinstance(child, Tag):
                    stack.append((child, child_rule, iter(child.children), []))
                else:
                    rendered.append(child_rule(child, []))
                continue

            stack.pop()
            fragments = current_rule(current, rendered)
            if not stack:
                return fragments
            stack[-1][3].append(fragments)

    def _rule_for(self, node: MarkupNode) -> Rule:
        name = node_name(node)
        rule = self.rules.get(name)
        if rule is None:
            snapshot = node.decode_contents() if isinstance(node, Tag) else str(node)
            raise UnsupportedMarkup(name, snapshot)
        return rule

    @staticmethod
    def _join(children: List[List[str]]) -> str:
        return ''.join(fragment for fragments in children for fragment in fragments)

    def _render_heading(self, node: Tag, children: List[List[str]]) -> List[str]:
        return ["## " + self._join(children) + "\n"]

    def _render_paragraph(self, node: Tag, children: List[List[str]]) -> List[str]:
        return [self._join(children) + "\n"]

    def _render_emphasis(self, node: Tag, children: List[List[str]]) -> List[str]:
        return ["*" + self._join(children) + "*"]

    def _render_code(self, node: Tag, children: List[List[str]]) -> List[str]:
        # Inside a fence the text is already monospace
        if node.parent is not None and node.parent.name == 'pre':
            return [self._join(children)]
        return ["`" + self._join(children) + "`"]

    def _render_span(self, node: Tag, children: List[List[str]]) -> List[str]:
        return [self._join(children)]

    def _render_strikethrough(self, node: Tag, children: List[List[str]]) -> List[str]:
        return ["~~" + self._join(children) + "~~"]

    def _render_list(self, node: Tag, children: List[List[str]]) -> List[str]:
        return [fragment for fragments in children for fragment in fragments]

    def _render_list_item(self, node: Tag, children: List[List[str]]) -> List[str]:
        return [" - " + self._join(children)]

    def _render_preformatted(self, node: Tag, children: List[List[str]]) -> List[str]:
        """
        Render a pre block as a fenced code block.

        The closing fence must start on its own line, so the last non-empty
        fragment emitted inside the block decides whether a newline is
        inserted before it.
        """
        fragments = ["```\n"]
        fresh_line = True

        for child_fragments in children:
            for fragment in child_fragments:
                if fragment:
                    fresh_line = fragment.endswith("\n")
                fragments.append(fragment)

        if fresh_line:
            fragments.append("```\n")
        else:
            fragments.append("\n```\n")
        return fragments

    def _render_link(self, node: Tag, children: List[List[str]]) -> List[str]:
        href = node.get('href')
        if href is None:
            raise MissingAttribute(node.name, 'href')
        return ["[" + self._join(children) + "](" + href + ")"]

    def _render_text(self, node: NavigableString, children: List[List[str]]) -> List[str]:
        # The parser has already decoded entities
        return [str(node)]
