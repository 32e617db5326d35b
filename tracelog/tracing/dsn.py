"""Uptrace DSN."""

from dataclasses import dataclass
from urllib.parse import parse_qs, urlsplit

from tracelog.tracing.errors import InvalidDSNError

CLOUD_API_HOST = "api.uptrace.dev"
CLOUD_SITE_URL = "https://app.uptrace.dev"
CLOUD_OTLP_URL = "https://otlp.uptrace.dev"


@dataclass(frozen=True)
class DSN:
    """Parsed Uptrace DSN.

    Format: `scheme://token@host[:port][/project][?grpc=port]`, for example
    `https://secret@api.uptrace.dev?grpc=4317` or
    `http://project1_secret_token@localhost:14318?grpc=14317`.
    """

    original: str
    scheme: str
    host: str
    port: int | None
    token: str
    grpc_port: int | None = None

    def __repr__(self) -> str:
        # Keep the token out of logs and tracebacks
        return f"DSN(scheme={self.scheme!r}, host={self.host!r}, port={self.port!r})"

    @property
    def is_cloud(self) -> bool:
        """Whether the DSN targets Uptrace Cloud."""
        return self.host == CLOUD_API_HOST

    @property
    def base_url(self) -> str:
        """Return the `scheme://host[:port]` part of the DSN."""
        if self.port is None:
            return f"{self.scheme}://{self.host}"
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def site_url(self) -> str:
        """Return the URL of the Uptrace UI."""
        if self.is_cloud:
            return CLOUD_SITE_URL
        return self.base_url

    @property
    def otlp_http_endpoint(self) -> str:
        """Return the OTLP/HTTP base endpoint."""
        if self.is_cloud:
            return CLOUD_OTLP_URL
        return self.base_url

    @property
    def traces_endpoint(self) -> str:
        """Return the OTLP/HTTP traces endpoint."""
        return f"{self.otlp_http_endpoint}/v1/traces"


def parse_dsn(dsn: str) -> DSN:
    """Parse an Uptrace DSN.

    Raises:
        InvalidDSNError: If the DSN is malformed or misses the host or the token.
    """
    if not dsn or not dsn.strip():
        raise InvalidDSNError(dsn, "DSN is empty")

    url = urlsplit(dsn.strip())

    if url.scheme not in ("http", "https"):
        raise InvalidDSNError(dsn, f"unsupported scheme {url.scheme!r}")
    if not url.hostname:
        raise InvalidDSNError(dsn, "DSN does not have a host")
    if not url.username:
        raise InvalidDSNError(dsn, "DSN does not have a token")

    try:
        port = url.port
    except ValueError:
        raise InvalidDSNError(dsn, "DSN has an invalid port") from None

    grpc_port: int | None = None
    grpc = parse_qs(url.query).get("grpc")
    if grpc:
        if not grpc[0].isdigit():
            raise InvalidDSNError(dsn, "DSN has an invalid grpc port")
        grpc_port = int(grpc[0])

    return DSN(
        original=dsn.strip(),
        scheme=url.scheme,
        host=url.hostname,
        port=port,
        token=url.username,
        grpc_port=grpc_port,
    )
