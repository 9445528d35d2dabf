"""
Module: delivery/keys.py
Description: Cache key encoding for failed events.

A cache row has a single text column for everything except the payload,
so an event's headers and url are packed into one key. Each field of
headers + [url] is written as "<length>:<field>", which keeps any
character (newlines included) intact on decode.

Rows written by the older newline-joined scheme are still decoded: a key
that is not a well-formed sequence of length-prefixed fields is split on
newlines with the last element taken as the url.

Known limit: a legacy key that happens to read as well-formed
length-prefixed fields (a url-only key such as "5:abcde") is decoded as
the new form. Only legacy keys whose first field starts with digits and a
colon can collide; header lines ("Name: value") and urls with a scheme
never do.
"""

import re
from typing import List, Optional, Sequence, Tuple

LEGACY_DELIMITER = "\n"

_LENGTH_PREFIX = re.compile(r"(\d+):", re.ASCII)


def encode_key(headers: Sequence[str], url: str, legacy: bool = False) -> str:
    """
    Pack headers and url into a cache key.

    Args:
        headers: Ordered header lines
        url: Collector endpoint
        legacy: Produce the newline-joined form instead

    Returns:
        Key accepted by decode_key()
    """
    fields = [*headers, url]
    if legacy:
        return LEGACY_DELIMITER.join(fields)
    return "".join(f"{len(field)}:{field}" for field in fields)


def _split_prefixed(key: str) -> Optional[List[str]]:
    fields = []
    pos = 0
    while pos < len(key):
        match = _LENGTH_PREFIX.match(key, pos)
        if match is None:
            return None
        start = match.end()
        end = start + int(match.group(1))
        if end > len(key):
            return None
        fields.append(key[start:end])
        pos = end
    return fields or None


def decode_key(key: str) -> Tuple[List[str], str]:
    """
    Unpack a cache key into (headers, url).

    Args:
        key: Key produced by encode_key(), in either form

    Returns:
        Tuple of the ordered header lines and the url
    """
    fields = _split_prefixed(key)
    if fields is None:
        fields = key.split(LEGACY_DELIMITER)
    return fields[:-1], fields[-1]
