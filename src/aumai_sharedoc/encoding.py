"""Canonical byte encodings used for hashing, signing and addresses."""

from __future__ import annotations

import base64
import hashlib
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Protocol

# Hash strings are "b" + 52 base32 characters; Ed25519 signatures are
# "b" + 103 base32 characters.
HASH_LENGTH = 53
ES5_SIGNATURE_LENGTH = 104

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MICROSECOND = timedelta(microseconds=1)


class _AddressLike(Protocol):
    @property
    def address(self) -> str: ...


class CanonicalFields(Protocol):
    """Fields that make up the signed payload of a document."""

    author: _AddressLike
    share: _AddressLike
    format: str
    path: str
    share_signature: str
    text_hash: str
    timestamp: datetime | int
    delete_after: datetime | int | None
    attachment_size: int | None
    attachment_hash: str | None


# ---------------------------------------------------------------------------
# Base32
# ---------------------------------------------------------------------------


def encode_base32(data: bytes) -> str:
    """RFC 4648 base32 of *data* without ``=`` padding."""
    return base64.b32encode(data).decode("ascii").rstrip("=")


def decode_base32(text: str) -> bytes:
    """Decode unpadded RFC 4648 base32.

    Raises:
        ValueError: if *text* is not canonical unpadded base32.
    """
    if "=" in text:
        raise ValueError("base32 input must not be padded")
    padded = text + "=" * (-len(text) % 8)
    # binascii.Error is a ValueError subclass; non-ASCII input raises
    # ValueError directly.
    data = base64.b32decode(padded)
    # b32decode ignores the unused low bits of the last character, so
    # several strings decode to the same bytes. Only one is canonical.
    if encode_base32(data) != text:
        raise ValueError("base32 input has non-zero trailing bits")
    return data


def is_base32(text: str) -> bool:
    try:
        decode_base32(text)
    except ValueError:
        return False
    return True


def encode_bytes(data: bytes) -> str:
    """``b``-prefixed base32 form used for keys and signatures."""
    return "b" + encode_base32(data)


def is_encoded(value: str, length: int | None = None) -> bool:
    """Return True if *value* is a ``b``-prefixed base32 string.

    When *length* is given the whole string, prefix included, must have
    exactly that many characters.
    """
    if not value.startswith("b"):
        return False
    if length is not None and len(value) != length:
        return False
    return is_base32(value[1:])


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------


def encode_hash(data: bytes | str) -> str:
    """Return ``"b" + base32(sha256(data))``; always 53 characters.

    ``str`` input is hashed as UTF-8.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return encode_bytes(hashlib.sha256(data).digest())


def hash_file(file_path: Path | str) -> tuple[str, int]:
    """Return ``(encoded_sha256, size_in_bytes)`` of the file at *file_path*."""
    hasher = hashlib.sha256()
    size = 0
    with Path(file_path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(65536), b""):
            hasher.update(chunk)
            size += len(chunk)
    return encode_bytes(hasher.digest()), size


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def timestamp_to_micros(value: datetime) -> int:
    """Microseconds since the Unix epoch for an aware *value*."""
    if value.tzinfo is None:
        raise ValueError("timestamps must be timezone-aware")
    return (value - _EPOCH) // _ONE_MICROSECOND


def micros_to_timestamp(micros: int) -> datetime:
    """Inverse of :func:`timestamp_to_micros`; returns a UTC datetime."""
    return _EPOCH + timedelta(microseconds=micros)


def instant_micros(value: datetime | int) -> int:
    """Microseconds for *value*; integers are taken as microseconds already.

    Integers cover instants outside the range ``datetime`` can represent.
    """
    if isinstance(value, datetime):
        return timestamp_to_micros(value)
    return value


# ---------------------------------------------------------------------------
# Canonical document serialisation
# ---------------------------------------------------------------------------


def canonical_document_bytes(doc: CanonicalFields) -> bytes:
    """Deterministic ``name\\tvalue\\n`` serialisation of *doc* for signing.

    Field order is fixed: the attachment fields (when set) come first, then
    author, delete_after, format, path, share, share_signature, text_hash and
    timestamp.  ``text`` is covered through ``text_hash``; ``signature`` is
    never part of its own payload.
    """
    lines: list[tuple[str, str]] = []
    if doc.attachment_hash is not None:
        lines.append(("attachment_hash", doc.attachment_hash))
    if doc.attachment_size is not None:
        lines.append(("attachment_size", str(doc.attachment_size)))

    delete_after = (
        instant_micros(doc.delete_after) if doc.delete_after is not None else 0
    )
    lines.extend(
        [
            ("author", doc.author.address),
            ("delete_after", str(delete_after)),
            ("format", doc.format),
            ("path", doc.path),
            ("share", doc.share.address),
            ("share_signature", doc.share_signature),
            ("text_hash", doc.text_hash),
            ("timestamp", str(instant_micros(doc.timestamp))),
        ]
    )
    return "".join(f"{name}\t{value}\n" for name, value in lines).encode("utf-8")


def document_hash(doc: CanonicalFields) -> str:
    """``encode_hash`` of :func:`canonical_document_bytes`."""
    return encode_hash(canonical_document_bytes(doc))


__all__ = [
    "ES5_SIGNATURE_LENGTH",
    "HASH_LENGTH",
    "CanonicalFields",
    "canonical_document_bytes",
    "decode_base32",
    "document_hash",
    "encode_base32",
    "encode_bytes",
    "encode_hash",
    "hash_file",
    "instant_micros",
    "is_base32",
    "is_encoded",
    "micros_to_timestamp",
    "timestamp_to_micros",
]
