"""
Module: event.py
Description: Event data models for eventrelay.

Defines the transient Event submitted by callers and the durable
CacheRecord written to the retry cache when delivery fails.

Key Components:
- Event: url, payload and ordered curl-style headers
- CacheRecord: encoded key plus payload, decodable back to headers and url
- Validation: Pydantic v2 with custom field validators

Dependencies: pydantic, typing
"""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from eventrelay.delivery.keys import decode_key, encode_key


class Event(BaseModel):
    """
    Event model representing one submission.

    Events exist only for the duration of a delivery attempt. A failed
    attempt turns the event into a CacheRecord via to_record().

    Attributes:
        url: Collector endpoint receiving the POST
        payload: Request body, sent verbatim
        headers: Ordered "Name: value" header lines
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(
        ...,
        min_length=1,
        description="Collector endpoint"
    )
    payload: str = Field(
        ...,
        description="Request body"
    )
    headers: List[str] = Field(
        default_factory=list,
        description="Ordered header lines"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate url is not blank."""
        if not v.strip():
            raise ValueError("url must be a non-empty string")
        return v

    def to_record(self) -> "CacheRecord":
        """Build the cache record stored when this event fails."""
        return CacheRecord(key=encode_key(self.headers, self.url), payload=self.payload)


class CacheRecord(BaseModel):
    """
    A failed event as persisted in the retry cache.

    Records are not unique: the cache is an append log of failures, so
    identical (key, payload) pairs may coexist.

    Attributes:
        key: headers and url packed by encode_key()
        payload: Request body of the failed event
    """

    model_config = ConfigDict(frozen=True)

    key: str
    payload: str

    def decode(self) -> Tuple[List[str], str]:
        """Return (headers, url) packed in the key."""
        return decode_key(self.key)
