"""Tests for the gemtext and robots.txt parsers."""

import types

from gemparse import (
    parse_gemtext,
    parse_robots,
    Text,
    Link,
    ListItem,
    Quote,
    Header1,
    Header2,
    Header3,
    CodeBlock,
)


class TestGemtext:
    def test_simple_document(self):
        doc = "# Title\n=> gemini://x.org/ Home\n* item one\n> a quote\n"
        assert list(parse_gemtext(doc)) == [
            Header1("Title"),
            Link("gemini://x.org/", "Home"),
            ListItem("item one"),
            Quote("a quote"),
        ]

    def test_is_a_generator(self):
        symbols = parse_gemtext("hello\n")
        assert isinstance(symbols, types.GeneratorType)
        assert list(symbols) == [Text("hello")]
        assert list(symbols) == []

    def test_headers_longest_prefix_wins(self):
        doc = "### three\n## two\n# one\n"
        assert list(parse_gemtext(doc)) == [Header3("three"), Header2("two"), Header1("one")]

    def test_link_without_label(self):
        assert list(parse_gemtext("=>  gemini://x.org/  ")) == [Link("gemini://x.org/", "")]

    def test_link_label_keeps_inner_spaces(self):
        assert list(parse_gemtext("=> /about  About this  capsule ")) == [
            Link("/about", "About this  capsule")
        ]

    def test_plain_text_is_verbatim(self):
        assert list(parse_gemtext("  indented text  \n\n")) == [
            Text("  indented text  "),
            Text(""),
        ]

    def test_crlf_line_endings(self):
        assert list(parse_gemtext("# A\r\nbody\r\n")) == [Header1("A"), Text("body")]

    def test_code_block(self):
        doc = "before\n``` python\nx = 1\n# not a header\n```\nafter\n"
        assert list(parse_gemtext(doc)) == [
            Text("before"),
            CodeBlock("python", "x = 1\n# not a header\n"),
            Text("after"),
        ]

    def test_unterminated_code_block(self):
        assert list(parse_gemtext("```\n=> not a link")) == [CodeBlock("", "=> not a link\n")]

    def test_symbols_of_different_kind_differ(self):
        assert Header1("x") != Header2("x")
        assert ListItem("x") != Quote("x")

    def test_empty_document(self):
        assert list(parse_gemtext("")) == []


class TestRobots:
    def test_grouped_user_agents(self):
        txt = "User-agent: indexer\nUser-agent: *\nDisallow: /private\nDisallow: /tmp\n"
        assert parse_robots(txt) == {
            "indexer": ["/private", "/tmp"],
            "*": ["/private", "/tmp"],
        }

    def test_disallow_closes_group(self):
        txt = (
            "User-agent: archiver\n"
            "Disallow: /a\n"
            "User-agent: researcher\n"
            "Disallow: /b\n"
        )
        assert parse_robots(txt) == {"archiver": ["/a"], "researcher": ["/b"]}

    def test_comments_are_removed(self):
        txt = (
            "# robots for my capsule\n"
            "   # indented comment\n"
            "User-agent: * # everyone\n"
            "Disallow: /cgi-bin # no scripts\n"
        )
        assert parse_robots(txt) == {"*": ["/cgi-bin"]}

    def test_blank_lines_do_not_close_group(self):
        txt = "User-agent: webproxy\n\nUser-agent: indexer\nDisallow: /\n"
        assert parse_robots(txt) == {"webproxy": ["/"], "indexer": ["/"]}

    def test_field_names_are_case_insensitive(self):
        assert parse_robots("user-agent: *\ndisallow: /x\n") == {"*": ["/x"]}

    def test_disallow_before_any_agent_is_ignored(self):
        assert parse_robots("Disallow: /x\n") == {}

    def test_insertion_order(self):
        txt = "User-agent: b\nUser-agent: a\nDisallow: /\n"
        assert list(parse_robots(txt)) == ["b", "a"]
