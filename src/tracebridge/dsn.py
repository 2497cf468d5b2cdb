"""DSN (destination descriptor) parsing."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from tracebridge.errors import DsnError

_SUPPORTED_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class Dsn:
    """Where events are sent and the credentials used to send them.

    Format: ``{scheme}://{public_key}[:{secret_key}]@{host}[:{port}]/[{path}/]{project_id}``
    """

    scheme: str
    public_key: str
    host: str
    project_id: str
    secret_key: str | None = None
    port: int | None = None
    path: str = ""

    @staticmethod
    def parse(value: str) -> Dsn:
        """Parse a DSN string, raising ``DsnError`` if any component is missing."""
        try:
            parts = urlsplit(value.strip())
            port = parts.port
        except ValueError as e:
            raise DsnError(f"Invalid DSN: {value!r}") from e

        if parts.scheme not in _SUPPORTED_SCHEMES:
            raise DsnError(f"Unsupported DSN scheme: {parts.scheme!r}")
        if not parts.username:
            raise DsnError("DSN is missing the public key")
        if not parts.hostname:
            raise DsnError("DSN is missing the host")

        path, _, project_id = parts.path.rstrip("/").rpartition("/")
        if not project_id:
            raise DsnError("DSN is missing the project id")

        return Dsn(
            scheme=parts.scheme,
            public_key=parts.username,
            secret_key=parts.password or None,
            host=parts.hostname,
            port=port,
            path=path,
            project_id=project_id,
        )

    @property
    def netloc(self) -> str:
        return f"{self.host}:{self.port}" if self.port else self.host

    def store_url(self) -> str:
        """Endpoint events are POSTed to."""
        return f"{self.scheme}://{self.netloc}{self.path}/api/{self.project_id}/store/"

    def __str__(self) -> str:
        auth = self.public_key
        if self.secret_key:
            auth = f"{auth}:{self.secret_key}"
        return f"{self.scheme}://{auth}@{self.netloc}{self.path}/{self.project_id}"
