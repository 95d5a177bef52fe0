"""Shared fixtures: self-signed certificates and a local gemini server."""

import datetime
import socket
import ssl
import threading

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def make_certificate(names=("localhost",), common_name="localhost"):
    """Return a (certificate, private key) pair, self-signed.

    names=None builds a certificate without subjectAltName extension.
    """
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
    )
    if names is not None:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(n) for n in names]),
            critical=False,
        )
    return builder.sign(key, hashes.SHA256()), key


def write_pem(tmp_path, name, cert, key):
    certfile = tmp_path / (name + ".crt")
    keyfile = tmp_path / (name + ".key")
    certfile.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    keyfile.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return str(certfile), str(keyfile)


class GeminiServer:
    """Tiny threaded gemini server answering canned responses by path."""

    def __init__(self, certfile, keyfile, routes):
        self.routes = routes
        self.requests = []
        self.context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        self.context.load_cert_chain(certfile, keyfile)
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(5)
        self.sock.settimeout(0.2)
        self.port = self.sock.getsockname()[1]
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def url(self, path="/"):
        return "localhost:%d%s" % (self.port, path)

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self.sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            conn.settimeout(5)
            try:
                with self.context.wrap_socket(conn, server_side=True) as tls:
                    f = tls.makefile("rb")
                    line = f.readline(2048).decode("UTF-8").rstrip("\r\n")
                    f.close()
                    self.requests.append(line)
                    path = line.split("://", 1)[-1]
                    path = "/" + path.split("/", 1)[1] if "/" in path else "/"
                    path = path.split("?", 1)[0]
                    tls.sendall(self.routes.get(path, b"51 Not found\r\n"))
                    tls.unwrap()
            except (ssl.SSLError, OSError, ValueError):
                pass
            finally:
                conn.close()

    def stop(self):
        self._stop.set()
        self._thread.join(timeout=5)
        self.sock.close()


@pytest.fixture
def gemini_server(tmp_path):
    """Factory fixture: gemini_server(routes, names=("localhost",))."""
    servers = []

    def start(routes, names=("localhost",)):
        cert, key = make_certificate(names)
        certfile, keyfile = write_pem(tmp_path, "server%d" % len(servers), cert, key)
        server = GeminiServer(certfile, keyfile, routes)
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.stop()


@pytest.fixture
def client_cert(tmp_path):
    cert, key = make_certificate(names=None, common_name="trot-client")
    return write_pem(tmp_path, "client", cert, key)
