"""HAR loading.

Only the fields needed for timing and size metrics are modelled; every other
HAR key is ignored during validation.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================


class HarLoadError(Exception):
    """Base class for HAR loading failures."""


class HarReadError(HarLoadError):
    """The HAR file could not be read."""


class HarParseError(HarLoadError):
    """The HAR payload is not valid JSON or does not match the schema."""


# =============================================================================
# HAR Models (HTTP Archive 1.2 subset)
# =============================================================================


class HarRequest(BaseModel):
    """HTTP request."""

    model_config = ConfigDict(frozen=True)

    url: str


class HarResponseContent(BaseModel):
    """Response content details."""

    model_config = ConfigDict(frozen=True)

    size: int | None = None


class HarResponse(BaseModel):
    """HTTP response sizes. Negative or missing values mean unknown."""

    model_config = ConfigDict(frozen=True)

    body_size: int | None = Field(None, alias="bodySize")
    headers_size: int | None = Field(None, alias="headersSize")
    content: HarResponseContent | None = None


class HarEntry(BaseModel):
    """Single HTTP transaction."""

    model_config = ConfigDict(frozen=True)

    time: float = Field(ge=0)
    request: HarRequest
    response: HarResponse

    @property
    def url(self) -> str:
        return self.request.url

    @property
    def body_size(self) -> int | None:
        return self.response.body_size

    @property
    def headers_size(self) -> int | None:
        return self.response.headers_size

    @property
    def content_size(self) -> int | None:
        if self.response.content is None:
            return None
        return self.response.content.size


class HarLog(BaseModel):
    """HAR log container."""

    entries: list[HarEntry]


class Har(BaseModel):
    """Root HAR object."""

    log: HarLog


# =============================================================================
# Loading
# =============================================================================


def parse_har(raw: str | bytes) -> Har:
    """Validate a HAR JSON document."""
    try:
        har = Har.model_validate_json(raw)
    except ValidationError as exc:
        raise HarParseError(f"failed to parse HAR JSON: {exc}") from exc
    logger.debug(f"Validated HAR with {len(har.log.entries)} entries")
    return har


def load_har(path: Path) -> Har:
    """Read and validate a HAR file from disk."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise HarReadError(f"failed to read file: {path}") from exc
    logger.info(f"Read {len(raw):,} bytes from {path}")
    return parse_har(raw)
