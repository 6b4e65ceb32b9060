"""
Upload-Metadata codec.

The header is a comma separated list of pairs. A pair is either a bare key
or a key, one space and a base64 encoded value. The raw header string is
what gets stored and echoed back; decoding only happens for diagnostics.
"""

import base64
import binascii
from typing import Dict, Iterator, Optional, Tuple

from .errors import InvalidMetadataError


def _iter_pairs(raw: str) -> Iterator[Tuple[str, str]]:
    for pair in raw.split(","):
        pair = pair.strip()
        if " " in pair:
            key, value = pair.split(" ", 1)
            yield key.strip(), value.strip()
        else:
            yield pair, ""


def _check_key(key: str) -> None:
    for char in key:
        if not char.isascii():
            raise InvalidMetadataError(f"Metadata key {key!r} contains non-ASCII character {char!r}")


def _decode_value(key: str, value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidMetadataError(f"Metadata value for key {key!r} is not valid base64: {e}") from e


def validate_metadata(raw: Optional[str]) -> None:
    """
    Validate a raw Upload-Metadata value.

    An empty or missing value is valid and means no metadata.

    Raises:
        InvalidMetadataError: On the first non-ASCII key character or the
            first value that is not padded standard base64.
    """
    if not raw:
        return

    for key, value in _iter_pairs(raw):
        if value:
            _decode_value(key, value)
        _check_key(key)


def parse_metadata(raw: Optional[str]) -> Dict[str, Optional[bytes]]:
    """
    Decode a raw Upload-Metadata value into a dict.

    Bare keys map to None. Empty pairs are skipped.

    Raises:
        InvalidMetadataError: Under the same rules as validate_metadata.
    """
    result: Dict[str, Optional[bytes]] = {}
    if not raw:
        return result

    for key, value in _iter_pairs(raw):
        _check_key(key)
        if not key:
            continue
        result[key] = _decode_value(key, value) if value else None

    return result
