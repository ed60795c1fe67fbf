"""
Models for the Prowl client.

- ClientConfig: the persistable client configuration (pydantic)
- ProwlResponse: the decoded XML envelope returned by every Prowl call
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prowl_notify.constants import KEY_LENGTH, MAX_APPLICATION_LENGTH
from prowl_notify.exceptions import ProwlDecodeError


class Priority(IntEnum):
    """Message priorities accepted by Prowl."""

    VERY_LOW = -2
    MODERATE = -1
    NORMAL = 0
    HIGH = 1
    EMERGENCY = 2


class ClientConfig(BaseModel):
    """Configuration for ProwlClient.

    Can be persisted (model_dump_json) and fed back into a new client to
    resume where a previous process left off, e.g. between retrieving a
    token and retrieving the api key. The logger is never serialized.

    Attributes:
        api_keys: Device api keys messages are sent to (40 chars each)
        provider_key: Provider key, required for the retrieve calls (40 chars or empty)
        token: Token from retrieve_token, consumed by retrieve_api_key (40 chars or empty)
        application: Application name shown in the Prowl app
        to_prowl_label: Label appended to log lines that also go to Prowl
        logger: Logger used by log() and log_sync()
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    api_keys: List[str] = Field(default_factory=list, description="Device api keys")
    provider_key: str = Field(default="", description="Provider key")
    token: str = Field(default="", description="Token from retrieve_token")
    application: str = Field(
        default="",
        max_length=MAX_APPLICATION_LENGTH,
        description="Application name",
    )
    to_prowl_label: Optional[str] = Field(None, description="Label for log lines sent to Prowl")
    logger: Optional[logging.Logger] = Field(None, exclude=True, description="Log sink")

    @field_validator("api_keys")
    @classmethod
    def validate_api_keys(cls, v: List[str]) -> List[str]:
        """Validate that every api key is exactly 40 characters long."""
        for key in v:
            if len(key) != KEY_LENGTH:
                raise ValueError(f"api key must be exactly {KEY_LENGTH} chars long")
        return v

    @field_validator("provider_key", "token")
    @classmethod
    def validate_optional_key(cls, v: str) -> str:
        """Validate that provider key and token are either empty or 40 characters."""
        if len(v) not in (0, KEY_LENGTH):
            raise ValueError(f"must either be {KEY_LENGTH} chars long or undefined")
        return v


@dataclass
class ErrorElement:
    """<error code="...">message</error>"""

    code: int
    message: str


@dataclass
class SuccessElement:
    """<success code="..." remaining="..." resetdate="..."/>"""

    code: int
    remaining: int
    resetdate: int

    @property
    def reset_at(self) -> datetime:
        """Reset date as an aware UTC datetime."""
        return datetime.fromtimestamp(self.resetdate, tz=timezone.utc)


@dataclass
class RetrieveElement:
    """<retrieve apikey="..." token="..." url="..."/>"""

    api_key: str = ""
    token: str = ""
    url: str = ""


@dataclass
class ProwlResponse:
    """Decoded Prowl XML envelope. Any combination of elements may be present."""

    error: Optional[ErrorElement] = None
    success: Optional[SuccessElement] = None
    retrieve: Optional[RetrieveElement] = None


def _int_attr(element: ET.Element, name: str) -> int:
    value = element.get(name)
    if value is None or not value.strip():
        return 0
    try:
        return int(value)
    except ValueError as e:
        raise ProwlDecodeError(
            f"invalid {name} attribute on <{element.tag}>: {value!r}"
        ) from e


def parse_response(content: bytes) -> ProwlResponse:
    """Decode a Prowl XML response body.

    Args:
        content: Raw response body

    Returns:
        ProwlResponse with the elements found in the envelope

    Raises:
        ProwlDecodeError: Body is empty, malformed, truncated or not a <prowl> document
    """
    if not content or not content.strip():
        raise ProwlDecodeError("empty response from prowl server")

    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ProwlDecodeError(f"can't unmarshal xml response from prowl server: {e}") from e

    if root.tag != "prowl":
        raise ProwlDecodeError(f"unexpected root element <{root.tag}> in prowl response")

    response = ProwlResponse()

    error = root.find("error")
    if error is not None:
        response.error = ErrorElement(
            code=_int_attr(error, "code"),
            message=(error.text or "").strip(),
        )

    success = root.find("success")
    if success is not None:
        response.success = SuccessElement(
            code=_int_attr(success, "code"),
            remaining=_int_attr(success, "remaining"),
            resetdate=_int_attr(success, "resetdate"),
        )

    retrieve = root.find("retrieve")
    if retrieve is not None:
        response.retrieve = RetrieveElement(
            api_key=retrieve.get("apikey", ""),
            token=retrieve.get("token", ""),
            url=retrieve.get("url", ""),
        )

    return response
