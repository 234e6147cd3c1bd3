"""
Decoder for Gmail's base64url body data.

Gmail uses the URL-safe alphabet ('-' and '_' in place of '+' and '/') and
usually drops the trailing '=' padding.
"""

import base64
import binascii

from archiver.errors import DecodeError

_TO_STANDARD = str.maketrans("-_", "+/")


def decode_base64url(data: str) -> str:
    """
    Decode base64url text (padding optional) into a UTF-8 string.

    Examples:
        "aGVsbG8"   -> "hello"
        "aGVsbG8="  -> "hello"
        "w6k"       -> "é"

    Raises:
        DecodeError: If the input has characters outside the alphabet, an
            impossible length, or decodes to bytes that are not UTF-8.
    """
    padded = data.translate(_TO_STANDARD) + "=" * ((4 - len(data) % 4) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64url data: {e}")

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Body is not valid UTF-8: {e}")
