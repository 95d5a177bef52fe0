"""
Exceptions raised while making a Gemini request or reading its response.

Everything derives from GeminiError. ActorError covers the request side
(url, transport, header, certificate and robots.txt policy) and
ResponseError covers the interpretation of a completed response.
"""


class GeminiError(Exception):
    pass


class ActorError(GeminiError):
    pass


class ResponseError(GeminiError):
    pass


# Input and configuration errors

class MalformedUrl(ActorError):
    def __init__(self, url, reason=""):
        self.url = url
        message = "Url parse error: %s" % url
        if reason:
            message += " (%s)" % reason
        super().__init__(message)


class MissingDomain(ActorError):
    def __init__(self, url):
        self.url = url
        super().__init__("The domain in the url is malformed: %s" % url)


class KeyCertFileError(ActorError):
    pass


# Transport errors

class TcpError(ActorError):
    pass


class ConnectTimeout(ActorError):
    pass


class TlsError(ActorError):
    pass


class StreamError(ActorError):
    pass


# Protocol errors

class HeaderEncodingError(ActorError):
    pass


class MalformedHeaderError(ActorError):
    def __init__(self, header):
        self.header = header
        super().__init__("The gemini header received was malformed: %r" % header)


class MalformedStatusError(ActorError):
    def __init__(self, status):
        self.status = status
        super().__init__("Couldn't parse status code: %r" % status)


# Trust errors

class NoCertificatePresented(ActorError):
    def __init__(self):
        super().__init__("Server has no certificate")


class NoSubjectNames(ActorError):
    def __init__(self):
        super().__init__("Server certificate is malformed, because it indicates no domains")


class DomainNotCertified(ActorError):
    def __init__(self, names, domain):
        self.names = list(names)
        self.domain = domain
        super().__init__("Certificate is valid for %s, not %s"
                         % (", ".join(self.names), domain))


# Policy errors

class RobotDenied(ActorError):
    def __init__(self, path, agent):
        self.path = path
        self.agent = agent
        super().__init__("Visiting %s isn't allowed from your user-agent (%s)."
                         % (path, agent))


# Interpretation errors

class UnexpectedStatus(ResponseError):
    def __init__(self, expected, actual, meta):
        self.expected = expected
        self.actual = actual
        self.meta = meta
        super().__init__("Expected status %s, received %s" % (expected, actual))


class UnexpectedFiletype(ResponseError):
    def __init__(self, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__("Expected filetype %s, received %s" % (expected, actual))


class ContentEncodingError(ResponseError):
    pass


class FileCreateError(ResponseError):
    pass


class FileWriteError(ResponseError):
    pass


class CertificateSerializationError(ResponseError):
    pass
