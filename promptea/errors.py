"""Error taxonomy shared by gateways, services and the HTTP layer."""

from __future__ import annotations

from typing import Any


class PrompteaError(Exception):
    """Base class for errors rendered as ``{"error": message}`` responses."""

    status_code = 500


class ConfigurationError(PrompteaError):
    """A required credential or setting is missing."""

    def __init__(self, missing: list[str] | str) -> None:
        self.missing = [missing] if isinstance(missing, str) else list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class UpstreamError(PrompteaError):
    """The vector store, embedding API or chat API did not answer successfully."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = status_code
        self.body = body


class NotFoundError(PrompteaError):
    """A document referenced by a mutation does not exist."""

    status_code = 404


class ValidationError(PrompteaError):
    """An upstream call succeeded but its payload could not be used."""

    status_code = 502

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw
