#!/bin/python
"""
Gemini request engine.

An Actor holds the (immutable) configuration of a request: client
certificate, user-agent and timeout. Each call to Actor.get() or
Actor.input() opens its own TLS connection, sends the request line,
reads the header and the body, checks the server certificate against
the requested host and returns a gemresponse.Response.

When a user-agent is declared, the robots.txt of the capsule is fetched
first and the request is refused if the path is disallowed for that
agent.
"""

import re
import socket
import ssl
import logging
import urllib.parse
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from cryptography import x509

from gemerrors import GeminiError, MalformedUrl, MissingDomain, KeyCertFileError,\
                      TcpError, ConnectTimeout, TlsError, StreamError,\
                      HeaderEncodingError, MalformedHeaderError, MalformedStatusError,\
                      NoCertificatePresented, NoSubjectNames, DomainNotCertified,\
                      RobotDenied
from gemparse import parse_robots
from gemresponse import Response

LOGGER = logging.getLogger(__name__)

SCHEME = "gemini"
SCHEME_PREFIX = SCHEME + "://"
DEFAULT_PORT = 1965
DEFAULT_TIMEOUT = 5
CRLF = b'\r\n'
# The gemini protocol limits <META> to 1024 bytes,
# so maximum valid header length is 1027 bytes.
MAX_HEADER_SIZE = 1027
_CIPHERS = "AESGCM+ECDHE:AESGCM+DHE:CHACHA20+ECDHE:CHACHA20+DHE:!aNULL:!DSS:!SHA1:!MD5:@STRENGTH"

# monkey-patch Gemini support in urllib.parse
# see https://github.com/python/cpython/blob/master/Lib/urllib/parse.py
if SCHEME not in urllib.parse.uses_relative:
    urllib.parse.uses_relative.append(SCHEME)
if SCHEME not in urllib.parse.uses_netloc:
    urllib.parse.uses_netloc.append(SCHEME)


class UserAgent(Enum):
    """
    User-agents defined by the gemini version of the robots.txt
    convention. Bots should declare the one matching what they do with
    the content they fetch.
    """
    # public long-term archives of Geminispace
    ARCHIVER = "archiver"
    # searchable indexes of Geminispace
    INDEXER = "indexer"
    # statistical studies, without rehosting the content
    RESEARCHER = "researcher"
    # translation of gemini content to HTML served over HTTP(S)
    WEBPROXY = "webproxy"

    def __str__(self):
        return self.value

    @classmethod
    def from_token(cls, token):
        try:
            return cls(token.strip().lower())
        except ValueError:
            raise ValueError("Expected one of these: %s"
                             % ", ".join(a.value for a in cls)) from None


def normalize_url(url, query=None):
    """
    Return a urllib.parse.SplitResult for a gemini url.

    The gemini:// prefix is added when the url doesn't start with it, an
    empty path becomes "/" and, if query is given, it is percent-encoded
    and replaces the query of the url.
    """
    if not url.startswith(SCHEME_PREFIX):
        url = SCHEME_PREFIX + url
    try:
        parsed = urllib.parse.urlsplit(url)
        #sometimes, urllib crashed only when requesting the port
        parsed.port
    except ValueError as err:
        raise MalformedUrl(url, str(err)) from err
    if not parsed.hostname:
        raise MissingDomain(url)
    try:
        parsed.hostname.encode("idna")
    except UnicodeError as err:
        raise MalformedUrl(url, str(err)) from err
    if not parsed.path:
        parsed = parsed._replace(path="/")
    if query is not None:
        parsed = parsed._replace(query=urllib.parse.quote(query))
    return parsed


def hostname_matches(name, host):
    """
    Match a certificate dNSName against a hostname.

    A "*" is only accepted in the leftmost label and stands for exactly
    one label, e.g. *.example.org matches mail.example.org but neither
    example.org nor a.b.example.org.
    """
    if not name or not host:
        return False
    name = name.lower().rstrip(".")
    host = host.lower().rstrip(".")
    leftmost, *remainder = name.split(".")
    if "*" in ".".join(remainder) or leftmost.count("*") > 1:
        return False
    if "*" not in leftmost:
        return name == host
    if leftmost == "*":
        pats = ["[^.]+"]
    else:
        # partial wildcard, e.g. www*.example.org
        pats = [re.escape(leftmost).replace(r"\*", "[^.]*")]
    pats.extend(re.escape(frag) for frag in remainder)
    pat = re.compile(r"\A" + r"\.".join(pats) + r"\Z")
    return bool(pat.match(host))


def validate_certificate(cert, host):
    """
    Check that the DER certificate presented by the server is valid for
    host and return it as a cryptography x509.Certificate.

    Only the subjectAltName dNSName entries are considered. No chain of
    trust is checked: gemini capsules commonly use self-signed
    certificates.
    """
    if not cert:
        raise NoCertificatePresented()
    try:
        c = x509.load_der_x509_certificate(cert)
    except ValueError as err:
        raise TlsError("Unable to load server certificate: %s" % err) from err
    try:
        san = c.extensions.get_extension_for_oid(
                x509.oid.ExtensionOID.SUBJECT_ALTERNATIVE_NAME).value
    except x509.ExtensionNotFound:
        raise NoSubjectNames() from None
    names = san.get_values_for_type(x509.DNSName)
    if not names:
        raise NoSubjectNames()
    host = _idna(host)
    LOGGER.debug("Certificate names for %s: %s", host, names)
    for name in names:
        if hostname_matches(name, host):
            return c
    raise DomainNotCertified(names, host)


def _idna(host):
    try:
        return host.encode("idna").decode()
    except UnicodeError:
        return host


def _read_header(f):
    """
    Read a response header from the binary file f, byte per byte, until
    CRLF. Never read more than MAX_HEADER_SIZE bytes: a server which
    never terminates its header gets it cut there.
    """
    header = b""
    while len(header) < MAX_HEADER_SIZE:
        c = f.read(1)
        if not c:
            raise StreamError("Connection closed before the end of the header")
        header += c
        if header.endswith(CRLF):
            return header[:-2]
    return header


def _parse_header(header):
    """Split raw header bytes into an (int status, str meta) pair."""
    try:
        header = header.decode("UTF-8")
    except UnicodeDecodeError as err:
        raise HeaderEncodingError("Header isn't utf8: %s" % err) from err
    status, sep, meta = header.partition(" ")
    if not sep:
        raise MalformedHeaderError(header)
    if not (status.isascii() and status.isdigit()) or int(status) > 255:
        raise MalformedStatusError(status)
    return int(status), meta


@dataclass(frozen=True)
class Actor:
    """
    Make gemini requests.

    An Actor is never modified by a request: the same Actor can be used
    for any number of requests, from several threads. The builder
    methods return a modified copy:

        Actor().cert_file("me.crt").key_file("me.key").get("example.org")
    """
    cert: Optional[str] = None
    key: Optional[str] = None
    agent: Optional[UserAgent] = None
    connect_timeout: float = DEFAULT_TIMEOUT

    def cert_file(self, cert):
        """Set your client certificate file path (PEM)"""
        return replace(self, cert=cert)

    def key_file(self, key):
        """Set your client key file path (PEM)"""
        return replace(self, key=key)

    def user_agent(self, agent):
        """
        *Please* declare a user-agent if you're making any kind of
        service that indiscriminately uses other peoples' content on
        gemini. It lets them block the kind of services they don't want
        around their content, through robots.txt.
        """
        return replace(self, agent=agent)

    def timeout(self, seconds):
        return replace(self, connect_timeout=seconds)

    def get(self, url):
        """
        Send a gemini request to url. The gemini:// prefix can be
        omitted.
        """
        url = normalize_url(url)
        self._obey_robots(url)
        return self._send_request(url)

    def input(self, url, text):
        """Send text as the query of url (answer to a 1x status)."""
        url = normalize_url(url, query=text)
        self._obey_robots(url)
        return self._send_request(url)

    def _tls_context(self):
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        # Try to enforce sensible ciphers
        try:
            context.set_ciphers(_CIPHERS)
        except ssl.SSLError:
            # Rely on the server to only support sensible things, I guess...
            pass
        if self.cert:
            try:
                context.load_cert_chain(self.cert, self.key)
            except (ssl.SSLError, OSError) as err:
                raise KeyCertFileError(
                    "Key and/or cert files are either missing or malformed: %s" % err) from err
        elif self.key:
            raise KeyCertFileError("A key file was given without a certificate file")
        return context

    def _connect(self, host, port):
        """Return a TCP socket connected to host:port."""
        # DNS lookup - will get IPv4 and IPv6 records if IPv6 is enabled
        if ":" in host:
            # This is likely a literal IPv6 address, so we can *only* ask for
            # IPv6 addresses or getaddrinfo will complain
            family_mask = socket.AF_INET6
        elif socket.has_ipv6:
            # Accept either IPv4 or IPv6 addresses
            family_mask = 0
        else:
            # IPv4 only
            family_mask = socket.AF_INET
        try:
            addresses = socket.getaddrinfo(host, port, family=family_mask,
                    type=socket.SOCK_STREAM)
        except OSError as err:
            raise TcpError("Failed to establish tcp connection: %s" % err) from err
        # Sort addresses so IPv6 ones come first
        addresses.sort(key=lambda add: add[0] == socket.AF_INET6, reverse=True)
        # Connect to remote host by any address possible
        err = None
        for address in addresses:
            LOGGER.debug("Connecting to: %s", address[4])
            s = socket.socket(address[0], address[1])
            s.settimeout(self.connect_timeout)
            try:
                s.connect(address[4])
                return s
            except OSError as e:
                s.close()
                err = e
        # If we couldn't connect to *any* of the addresses, just
        # bubble up the exception from the last attempt.
        if isinstance(err, socket.timeout):
            raise ConnectTimeout("Tcp connection timeout: %s:%s" % (host, port)) from err
        raise TcpError("Failed to establish tcp connection: %s" % err) from err

    def _send_request(self, url):
        """
        Send the request line for the normalized url and return the
        Response. robots.txt is not looked at.
        """
        host = url.hostname
        port = url.port or DEFAULT_PORT
        context = self._tls_context()
        sock = self._connect(_idna(host), port)
        with sock:
            try:
                s = context.wrap_socket(sock, server_hostname=_idna(host))
            except (ssl.SSLError, OSError) as err:
                raise TlsError("TLS error: %s" % err) from err
            with s:
                cert = s.getpeercert(binary_form=True)
                # Nothing is sent to a server without a certificate
                if not cert:
                    raise NoCertificatePresented()
                request = urllib.parse.urlunsplit(url)
                LOGGER.debug("Sending request: %s", request)
                try:
                    s.sendall(request.encode("UTF-8") + CRLF)
                    f = s.makefile(mode="rb")
                    with f:
                        header = _read_header(f)
                        status, meta = _parse_header(header)
                        LOGGER.debug("Received header: %s %s", status, meta)
                        # Read the response body over the network
                        content = f.read()
                except (ssl.SSLError, OSError) as err:
                    raise StreamError("Failed reading/writing to stream: %s" % err) from err
        # The certificate names are only checked once the whole response is read
        certificate = validate_certificate(cert, host)
        return Response(status, meta, content, certificate=certificate, url=request)

    def _obey_robots(self, url):
        if self.agent is None:
            return
        netloc = url.netloc.rsplit("@", maxsplit=1)[-1]
        robots_url = normalize_url(SCHEME_PREFIX + netloc + "/robots.txt")
        try:
            txt = self._send_request(robots_url).text()
        except GeminiError as err:
            # No readable robots.txt means no restriction
            LOGGER.debug("Ignoring robots.txt of %s: %s", netloc, err)
            return
        robots = parse_robots(txt)
        # Track the disallows that affect us, ours before the wildcard ones
        disallow_list = robots.get(self.agent.value, []) + robots.get("*", [])
        for path in disallow_list:
            if not path:
                continue
            if path == "/" or url.path.startswith(path):
                LOGGER.debug("%s denied to %s by rule %s", url.path, self.agent, path)
                raise RobotDenied(path, self.agent)


def trot(url):
    """Shortcut for Actor().get(url)."""
    return Actor().get(url)


def trot_in(url, text):
    """Shortcut for Actor().input(url, text)."""
    return Actor().input(url, text)
