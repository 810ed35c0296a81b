#!/usr/bin/env python3
"""
Tests for the markup converter, using small hand-written pages.
"""

import sys
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

# Add the src directory to the path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from core.errors import ConversionError, MissingAttribute, StructuralMismatch, UnsupportedMarkup
from core.markup_converter import ConversionResult, MarkupConverter, node_name


URL = "https://adventofcode.com/2017/day/5"

DAY_PAGE = (
    '<!DOCTYPE html><html><head><title>Day 5 - Advent of Code 2017</title></head><body>'
    '<header><h1><a href="/">Advent of Code</a></h1></header>'
    '<main>'
    '<article class="day-desc"><h2>--- Day 5: A Maze of Twisty Trampolines, All Alike ---</h2>'
    '<p>An <em>urgent</em> interrupt arrives from the CPU.</p>'
    '<pre><code>0\n3\n0\n1\n-3\n</code></pre>'
    '</article>'
    '<p>Your puzzle answer was <code>358131</code>.</p>'
    '<article class="day-desc"><h2 id="part2">--- Part Two ---</h2>'
    '<p>Now, the jumps are even stranger.</p>'
    '</article>'
    '</main></body></html>'
)


def render(fragment: str) -> str:
    soup = BeautifulSoup(f"<article>{fragment}</article>", 'lxml')
    return MarkupConverter().render_children(soup.find('article'))


def page(fragment: str, heading: str = "--- Day 1: Inverse Captcha ---") -> str:
    return f"<html><body><article><h2>{heading}</h2>{fragment}</article></body></html>"


def test_full_day_page():
    result = MarkupConverter().convert_html(DAY_PAGE, URL)

    assert isinstance(result, ConversionResult)
    assert result.title == "A Maze of Twisty Trampolines, All Alike"
    assert result.body == (
        f"original source: [{URL}]({URL})\n\n"
        "## --- Day 5: A Maze of Twisty Trampolines, All Alike ---\n"
        "An *urgent* interrupt arrives from the CPU.\n"
        "```\n0\n3\n0\n1\n-3\n```\n"
        "\n"
        "## --- Part Two ---\n"
        "Now, the jumps are even stranger.\n"
        "\n"
    )


def test_text_outside_articles_is_ignored():
    result = MarkupConverter().convert_html(DAY_PAGE, URL)
    assert "358131" not in result.body
    assert "Advent of Code" not in result.body


def test_conversion_is_idempotent():
    soup = BeautifulSoup(DAY_PAGE, 'lxml')
    converter = MarkupConverter()

    first = converter.convert(soup, URL)
    second = converter.convert(soup, URL)

    assert first == second
    assert first.body.encode('utf-8') == second.body.encode('utf-8')


def test_heading_rule():
    assert render("<h2>--- Day 1: Inverse Captcha ---</h2>") == "## --- Day 1: Inverse Captcha ---\n"


def test_inline_rules():
    fragment = (
        '<p>Go <em>now</em> to <a href="/2017/day/4">the last day</a>, '
        'add <code>x+1</code> <s>twice</s><span class="quiet"> (maybe)</span>.</p>'
    )
    assert render(fragment) == "Go *now* to [the last day](/2017/day/4), add `x+1` ~~twice~~ (maybe).\n"


def test_entities_are_decoded():
    assert render("<p>a &amp; b &lt;c&gt; &#8212; &quot;d&quot;</p>") == 'a & b <c> — "d"\n'


def test_entities_are_decoded_only_once():
    assert render("<p>&amp;lt;</p>") == "&lt;\n"


def test_emphasis_nesting_is_plain_concatenation():
    assert render("<p><em>a<em>b</em></em></p>") == "*a*b**\n"


def test_list_items_are_flattened():
    assert render("<ul><li>x</li><li>y</li></ul>") == " - x - y"


def test_list_item_content_is_rendered():
    assert render("<ul><li><code>a</code> or <em>b</em></li></ul>") == " - `a` or *b*"


def test_code_inside_pre_has_no_backticks():
    assert render("<pre><code>x <em>y</em>\n</code></pre>") == "```\nx *y*\n```\n"


def test_code_nested_deeper_in_pre_keeps_backticks():
    assert render("<pre><span><code>x</code></span></pre>") == "```\n`x`\n```\n"


def test_pre_ending_with_newline_closes_directly():
    output = render("<pre><code>abc\ndef\n</code></pre>")
    assert output == "```\nabc\ndef\n```\n"
    assert "\n\n```" not in output


def test_pre_without_trailing_newline_gets_one():
    assert render("<pre><code>abc\ndef</code></pre>") == "```\nabc\ndef\n```\n"


def test_pre_tracks_last_child_only():
    assert render("<pre>top\n<code>bottom</code></pre>") == "```\ntop\nbottom\n```\n"
    assert render("<pre>top<code>bottom\n</code></pre>") == "```\ntopbottom\n```\n"


def test_empty_pre():
    assert render("<pre></pre>") == "```\n```\n"


def test_empty_fragment_does_not_reset_fence_state():
    assert render("<pre>abc\n<code></code></pre>") == "```\nabc\n```\n"


def test_link_without_href_raises():
    with pytest.raises(MissingAttribute) as exc_info:
        render('<p><a name="anchor">here</a></p>')

    assert exc_info.value.tag == 'a'
    assert exc_info.value.attribute == 'href'


def test_link_without_href_aborts_conversion():
    with pytest.raises(MissingAttribute):
        MarkupConverter().convert_html(page('<p>see <a>here</a></p>'), URL)


def test_unknown_tag_raises_with_snapshot():
    with pytest.raises(UnsupportedMarkup) as exc_info:
        MarkupConverter().convert_html(page("<p>ok</p><table><tr><td>1</td></tr></table>"), URL)

    assert exc_info.value.tag == 'table'
    assert '<td>1</td>' in exc_info.value.snapshot
    assert isinstance(exc_info.value, ConversionError)


def test_unknown_tag_deep_inside_list_raises():
    with pytest.raises(UnsupportedMarkup) as exc_info:
        render("<ul><li>x <b>bold</b></li></ul>")
    assert exc_info.value.tag == 'b'


def test_comment_is_unsupported():
    with pytest.raises(UnsupportedMarkup) as exc_info:
        render("<p>a<!-- note -->b</p>")
    assert exc_info.value.tag == '#comment'


def test_missing_article_raises():
    with pytest.raises(StructuralMismatch) as exc_info:
        MarkupConverter().convert_html("<html><body><h2>--- Day 1: X ---</h2></body></html>", URL)
    assert exc_info.value.missing == ('article',)


def test_missing_heading_raises():
    with pytest.raises(StructuralMismatch) as exc_info:
        MarkupConverter().convert_html("<html><body><article><p>x</p></article></body></html>", URL)
    assert exc_info.value.missing == ('h2',)


def test_missing_both_raises():
    with pytest.raises(StructuralMismatch) as exc_info:
        MarkupConverter().convert_html("<html><body><p>maintenance</p></body></html>", URL)
    assert exc_info.value.missing == ('article', 'h2')


def test_empty_source_url_rejected():
    with pytest.raises(ValueError):
        MarkupConverter().convert_html(page("<p>x</p>"), "")


def test_title_extraction():
    converter = MarkupConverter()
    result = converter.convert_html(page("<p>x</p>", "--- Day 5: A Maze of Twisty Trampolines, All Alike ---"), URL)
    assert result.title == "A Maze of Twisty Trampolines, All Alike"


def test_title_without_pattern_is_verbatim():
    result = MarkupConverter().convert_html(page("<p>x</p>", "Puzzle of the week"), URL)
    assert result.title == "Puzzle of the week"


def test_title_is_entity_decoded():
    result = MarkupConverter().convert_html(page("<p>x</p>", "--- Day 9: Rock &amp; Roll ---"), URL)
    assert result.title == "Rock & Roll"


def test_title_uses_first_heading_anywhere():
    html = (
        "<html><body><h2>--- Day 2: Corruption Checksum ---</h2>"
        "<article><h2>--- Day 3: Spiral Memory ---</h2></article></body></html>"
    )
    result = MarkupConverter().convert_html(html, URL)
    assert result.title == "Corruption Checksum"


def nest(soup: BeautifulSoup, parent, tag: str, depth: int):
    for _ in range(depth):
        child = soup.new_tag(tag)
        parent.append(child)
        parent = child
    return parent


def test_nesting_deeper_than_recursion_limit():
    depth = sys.getrecursionlimit() * 3
    soup = BeautifulSoup("<article><p></p></article>", 'lxml')
    innermost = nest(soup, soup.find('p'), 'em', depth)
    innermost.append(soup.new_string("deep"))

    rendered = MarkupConverter().render_children(soup.find('article'))

    assert rendered == "*" * depth + "deep" + "*" * depth + "\n"


def test_unknown_tag_at_the_bottom_of_deep_nesting_raises():
    soup = BeautifulSoup("<article><p></p></article>", 'lxml')
    innermost = nest(soup, soup.find('p'), 'span', sys.getrecursionlimit() * 2)
    innermost.append(soup.new_tag('table'))

    with pytest.raises(UnsupportedMarkup) as excinfo:
        MarkupConverter().render_children(soup.find('article'))
    assert excinfo.value.tag == 'table'


def test_deeply_nested_page_converts():
    html = page("<p>" + "<span>" * 220 + "buried" + "</span>" * 220 + "</p>")

    result = MarkupConverter().convert_html(html, URL)

    assert result.title == "Inverse Captcha"
    assert result.body.endswith("## --- Day 1: Inverse Captcha ---\nburied\n\n")


def test_node_names():
    soup = BeautifulSoup("<p>text<!-- c --></p>", 'lxml')
    p = soup.find('p')
    text, comment = p.contents

    assert node_name(p) == 'p'
    assert node_name(text) == '#text'
    assert node_name(comment) == '#comment'


def test_converter_can_be_shared_between_threads():
    from concurrent.futures import ThreadPoolExecutor

    converter = MarkupConverter()
    with ThreadPoolExecutor(max_workers=4) as ex:
        results = list(ex.map(lambda _: converter.convert_html(DAY_PAGE, URL), range(8)))

    assert len({r.body for r in results}) == 1


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
