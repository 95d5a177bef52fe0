#!/bin/python
"""
Line oriented parsers: gemtext documents and robots.txt policies.
"""

from dataclasses import dataclass


def _lines(text):
    # Like str.splitlines() but only on "\n" (and "\r\n"), so that
    # form feeds and other exotic separators stay inside a line.
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    for line in lines:
        if line.endswith("\r"):
            line = line[:-1]
        yield line


@dataclass(frozen=True)
class Symbol:
    """A single element of a gemtext document."""


@dataclass(frozen=True)
class Text(Symbol):
    text: str


@dataclass(frozen=True)
class Link(Symbol):
    url: str
    label: str = ""


@dataclass(frozen=True)
class ListItem(Symbol):
    text: str


@dataclass(frozen=True)
class Quote(Symbol):
    text: str


@dataclass(frozen=True)
class Header1(Symbol):
    text: str


@dataclass(frozen=True)
class Header2(Symbol):
    text: str


@dataclass(frozen=True)
class Header3(Symbol):
    text: str


@dataclass(frozen=True)
class CodeBlock(Symbol):
    alt: str
    content: str


def parse_gemtext(gemtext):
    """
    Parse a gemtext string, yielding one Symbol per construct in source
    order.

    Preformatted blocks swallow every line up to the closing fence (or the
    end of the document) and keep them verbatim, each followed by "\\n".
    """
    lines = _lines(gemtext)
    for line in lines:
        if line.startswith("=>"):
            strippedline = line[2:].strip()
            if " " in strippedline:
                url, label = strippedline.split(" ",maxsplit=1)
                yield Link(url, label.strip())
            else:
                yield Link(strippedline, "")
        elif line.startswith("*"):
            yield ListItem(line[1:].strip())
        elif line.startswith(">"):
            yield Quote(line[1:].strip())
        elif line.startswith("###"):
            yield Header3(line[3:].strip())
        elif line.startswith("##"):
            yield Header2(line[2:].strip())
        elif line.startswith("#"):
            yield Header1(line[1:].strip())
        elif line.startswith("```"):
            alt = line[3:].strip()
            block = ""
            for blockline in lines:
                if blockline.startswith("```"):
                    break
                block += blockline + "\n"
            yield CodeBlock(alt, block)
        else:
            yield Text(line)


def _strip_comment(line):
    if line.lstrip().startswith("#"):
        return None
    return line.split("#",maxsplit=1)[0]


def _directive(line, name):
    # Return the value of "Name: value" (name is case insensitive) or None
    key, sep, value = line.partition(":")
    if sep and key.strip().lower() == name:
        return value.strip()
    return None


def parse_robots(txt):
    """
    Parse a robots.txt body into a dict mapping each user-agent token to
    the list of path prefixes it is disallowed from, e.g.

        {"indexer": ["/private", "/tmp"], "*": ["/private", "/tmp"]}

    Consecutive User-agent lines share the Disallow lines that follow
    them. A User-agent line coming after a Disallow line starts a new
    group.
    """
    rules = {}
    active_agents = []
    # True if the last directive was a User-agent line
    was_user = False
    for line in _lines(txt):
        line = _strip_comment(line)
        if line is None:
            continue
        agent = _directive(line, "user-agent")
        if agent is not None:
            if not was_user:
                active_agents = []
            active_agents.append(agent)
            was_user = True
            continue
        disallow = _directive(line, "disallow")
        if disallow is not None:
            for a in active_agents:
                rules.setdefault(a, []).append(disallow)
            was_user = False
    return rules
