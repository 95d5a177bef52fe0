#!/usr/bin/env python3
"""
Trot: a command-line gemini client. Non-success statuses are included in
the exit code.
"""

__version__ = "0.5"

import argparse
import logging
import os
import sys

import netgem
from gemerrors import GeminiError, UnexpectedStatus
from gemparse import parse_gemtext, Text, Link, ListItem, Quote, Header1, Header2,\
                     Header3, CodeBlock
from gemutils import config_dir, set_logging_level

try:
    import setproctitle
    setproctitle.setproctitle("trot")
    _HAS_SETPROCTITLE = True
except ModuleNotFoundError:
    _HAS_SETPROCTITLE = False

LOGGER = logging.getLogger(__name__)

# options which can be set from the rc file and their type
_OPTIONS = {
        "cert": str,
        "key": str,
        "user_agent": str,
        "timeout": float,
        "gemtext_only": bool,
        "pretty_print": bool,
}

RESET = "\x1b[0m"


def _ansi(*codes):
    return "\x1b[%sm" % ";".join(codes)


def pretty(symbol):
    """Render a single gemtext Symbol with ANSI colors."""
    if isinstance(symbol, Link):
        return "%s%s%s %s%s" % (_ansi("0","4"), symbol.label, RESET, _ansi("2"), symbol.url)
    elif isinstance(symbol, ListItem):
        return "• %s" % symbol.text
    elif isinstance(symbol, Quote):
        return "%s« %s »" % (_ansi("33","3","1"), symbol.text)
    elif isinstance(symbol, Header1):
        return "%s▍ %s" % (_ansi("32","1"), symbol.text)
    elif isinstance(symbol, Header2):
        return "%s▋ %s" % (_ansi("36","1"), symbol.text)
    elif isinstance(symbol, Header3):
        return "%s█ %s" % (_ansi("34","1"), symbol.text)
    elif isinstance(symbol, CodeBlock):
        return "%s%s%s\n%s%s" % (_ansi("35","2"), symbol.alt, RESET, _ansi("35"), symbol.content)
    elif isinstance(symbol, Text):
        return symbol.text
    raise TypeError("Not a gemtext symbol: %r" % symbol)


def pretty_print(gemtext, out=None):
    for symbol in parse_gemtext(gemtext):
        print(pretty(symbol) + RESET, file=out)


def read_config(rcfile=None):
    """
    Read default options from the rc file. Each line looks like
    "set timeout 10". Unknown options are reported and skipped.
    """
    config = {}
    if not rcfile:
        rcfile = os.path.join(config_dir(), "trotrc")
    if not os.path.exists(rcfile):
        return config
    LOGGER.debug("Using config %s", rcfile)
    with open(rcfile, "r") as fp:
        for line in fp:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            words = line.split(maxsplit=2)
            if len(words) != 3 or words[0] != "set":
                print("Skipping rc line \"%s\"" % line, file=sys.stderr)
                continue
            option, value = words[1], words[2]
            if option not in _OPTIONS:
                print("Unrecognised option %s" % option, file=sys.stderr)
                continue
            if _OPTIONS[option] is bool:
                value = value.lower() == "true"
            elif _OPTIONS[option] is float:
                try:
                    value = float(value)
                except ValueError:
                    print("%s is not a valid %s" % (value, option), file=sys.stderr)
                    continue
            config[option] = value
    return config


def build_parser():
    parser = argparse.ArgumentParser(prog="trot", description=__doc__)
    parser.add_argument("url", metavar="URL", nargs="?",
                        help="gemini url to request (gemini:// can be omitted)")
    parser.add_argument("-i", "--input", metavar="TEXT",
                        help="send TEXT as input (query) to the url")
    parser.add_argument("-c", "--cert", metavar="FILE",
                        help="TLS client certificate file")
    parser.add_argument("-k", "--key", metavar="FILE",
                        help="TLS client certificate private key file")
    parser.add_argument("-u", "--user-agent",
                        choices=[a.value for a in netgem.UserAgent],
                        help="declare a robots.txt user-agent and obey its rules")
    parser.add_argument("-t", "--timeout", type=float,
                        help="connection timeout in seconds (default %s)" % netgem.DEFAULT_TIMEOUT)
    parser.add_argument("-o", "--output", metavar="FILE",
                        help="write the response body to FILE")
    parser.add_argument("-g", "--gemtext-only", action="store_true", default=None,
                        help="only accept gemtext responses (no effect with --output)")
    parser.add_argument("-p", "--pretty-print", action="store_true", default=None,
                        help="print gemtext responses with colors")
    parser.add_argument("--config", metavar="FILE",
                        help="rc file to read instead of the default trotrc")
    parser.add_argument("--debug", action="store_true",
                        help="print debug messages on stderr")
    parser.add_argument("--version", action="store_true",
                        help="display version information and quit")
    return parser


def run(args):
    config = read_config(args.config)
    # command line arguments win over the rc file
    for option in _OPTIONS:
        value = getattr(args, option)
        if value is not None:
            config[option] = value

    actor = netgem.Actor(cert=config.get("cert"), key=config.get("key"))
    if config.get("user_agent"):
        actor = actor.user_agent(netgem.UserAgent.from_token(config["user_agent"]))
    if config.get("timeout"):
        actor = actor.timeout(config["timeout"])

    if args.input is not None:
        response = actor.input(args.url, args.input)
    else:
        response = actor.get(args.url)

    if args.output:
        response.save_to_path(args.output)
        return
    if config.get("gemtext_only"):
        text = response.gemtext()
    else:
        text = response.text()
    if config.get("pretty_print") and response.is_gemtext():
        pretty_print(text)
    else:
        print(text)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print("Trot " + __version__)
        return 0
    if not args.url:
        parser.error("the following arguments are required: URL")
    set_logging_level(logging.DEBUG if args.debug else logging.ERROR)
    try:
        run(args)
    except UnexpectedStatus as err:
        print(err.meta)
        return int(err.actual)
    except (GeminiError, ValueError) as err:
        print("🎠 Trot error :: %s" % err, file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
