#!/bin/python
"""
Gemini status codes and the Response returned by netgem.
"""

import hashlib
from enum import IntEnum

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from gemerrors import UnexpectedStatus, UnexpectedFiletype, ContentEncodingError,\
                      FileCreateError, FileWriteError, CertificateSerializationError
from gemutils import parse_mime

GEMTEXT_MIME = "text/gemini"

# First digit of a status code -> category
_CATEGORIES = {
        1 : "input",
        2 : "success",
        3 : "redirect",
        4 : "temporary failure",
        5 : "permanent failure",
        6 : "client certificate required",
}


class Status(IntEnum):
    """
    Gemini status codes.

    Any value between 0 and 255 can be looked up: codes which are not
    defined by the protocol give an UNRECOGNIZED member which still
    carries the original number, so int(Status(code)) == code always.
    """
    INPUT = 10
    SENSITIVE_INPUT = 11
    SUCCESS = 20
    REDIRECT_TEMPORARY = 30
    REDIRECT_PERMANENT = 31
    TEMPORARY_FAILURE = 40
    SERVER_UNAVAILABLE = 41
    CGI_ERROR = 42
    PROXY_ERROR = 43
    SLOW_DOWN = 44
    PERMANENT_FAILURE = 50
    NOT_FOUND = 51
    GONE = 52
    PROXY_REQUEST_REFUSED = 53
    BAD_REQUEST = 59
    CLIENT_CERTIFICATE_REQUIRED = 60
    CERTIFICATE_NOT_AUTHORISED = 61
    CERTIFICATE_NOT_VALID = 62

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, int) and 0 <= value <= 255:
            member = int.__new__(cls, value)
            member._name_ = "UNRECOGNIZED"
            member._value_ = value
            return member
        return None

    @property
    def is_recognized(self):
        return self._name_ != "UNRECOGNIZED"

    @property
    def category(self):
        return _CATEGORIES.get(self.value // 10, "unrecognized")

    def __str__(self):
        return "%d %s" % (self.value, self._name_)


class Response():
    """
    A completed gemini response: status, meta, raw body and the
    certificate the server presented.
    """

    def __init__(self, status, meta, content, certificate=None, url=None):
        self.status = status
        self.meta = meta
        self.content = content
        self.certificate = certificate
        self.url = url

    def __repr__(self):
        return "<Response %s %r (%d bytes)>" % (self.status, self.meta, len(self.content))

    @property
    def status_code(self):
        return Status(self.status)

    def mime(self):
        return parse_mime(self.meta)

    def _require_status(self, expected):
        if self.status != expected:
            raise UnexpectedStatus(Status(expected), Status(self.status), self.meta)

    def text(self):
        """Return the body as utf-8 text, whatever its mime type."""
        self._require_status(Status.SUCCESS)
        try:
            return self.content.decode("UTF-8")
        except UnicodeDecodeError as err:
            raise ContentEncodingError("Content isn't utf8: %s" % err) from err

    def is_gemtext(self):
        return self.meta.startswith(GEMTEXT_MIME)

    def gemtext(self):
        """Return the body as text, but only if it is gemtext."""
        self._require_status(Status.SUCCESS)
        if not self.is_gemtext():
            raise UnexpectedFiletype(GEMTEXT_MIME, self.meta)
        return self.text()

    def save(self, f):
        """Write the raw body to an already opened binary file."""
        self._require_status(Status.SUCCESS)
        try:
            f.write(self.content)
        except (OSError, ValueError, TypeError) as err:
            raise FileWriteError("Failed to write file: %s" % err) from err

    def save_to_path(self, path):
        self._require_status(Status.SUCCESS)
        try:
            f = open(path, "wb")
        except OSError as err:
            raise FileCreateError("Failed to create file: %s" % err) from err
        with f:
            self.save(f)

    def certificate_pem(self):
        if self.certificate is None:
            raise CertificateSerializationError("No server certificate to serialize")
        try:
            pem = self.certificate.public_bytes(serialization.Encoding.PEM)
        except ValueError as err:
            raise CertificateSerializationError(
                    "Failed to serialize server's certificate to pem.") from err
        try:
            return pem.decode("ascii")
        except UnicodeDecodeError as err:
            raise CertificateSerializationError(
                    "Server's certificate pem is invalid: %s" % err) from err

    def certificate_text(self):
        """Human readable summary of the server certificate."""
        c = self.certificate
        if c is None:
            raise CertificateSerializationError("No server certificate to display")
        try:
            der = c.public_bytes(serialization.Encoding.DER)
            lines = [
                "Subject: %s" % c.subject.rfc4514_string(),
                "Issuer: %s" % c.issuer.rfc4514_string(),
                "Serial: %x" % c.serial_number,
                "Not valid before: %s" % c.not_valid_before_utc.isoformat(),
                "Not valid after: %s" % c.not_valid_after_utc.isoformat(),
            ]
            try:
                san = c.extensions.get_extension_for_oid(
                        x509.oid.ExtensionOID.SUBJECT_ALTERNATIVE_NAME).value
                names = san.get_values_for_type(x509.DNSName)
            except x509.ExtensionNotFound:
                names = []
            lines.append("Subject alternative names: %s" % ", ".join(names))
            lines.append("SHA-256 fingerprint: %s" % hashlib.sha256(der).hexdigest())
        except (ValueError, UnicodeError) as err:
            raise CertificateSerializationError(
                    "Failed to describe server's certificate: %s" % err) from err
        return "\n".join(lines)
