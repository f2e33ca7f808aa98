"""Ordered validation checks for names and documents.

Each check pairs a pure predicate with the error raised when it fails.
Checks run in declaration order and stop at the first failure, so the order
of :data:`DOCUMENT_CHECKS` decides which error is reported when a candidate
breaks several rules at once.
"""

from __future__ import annotations

import logging
import string
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, NamedTuple

from aumai_sharedoc.encoding import (
    ES5_SIGNATURE_LENGTH,
    HASH_LENGTH,
    decode_base32,
    document_hash,
    encode_hash,
    instant_micros,
    is_encoded,
)
from aumai_sharedoc.errors import (
    InvalidAttachmentHashError,
    InvalidAttachmentSizeError,
    InvalidCharactersError,
    InvalidDeleteAfterError,
    InvalidFormatError,
    InvalidLengthError,
    InvalidPathError,
    InvalidShareSignatureError,
    InvalidSignatureError,
    InvalidTextError,
    InvalidTextHashError,
    InvalidTimestampError,
    SharedocError,
    StartsWithDigitError,
)

if TYPE_CHECKING:
    from aumai_sharedoc.models import Document

logger = logging.getLogger(__name__)

ES5 = "es.5"

MAX_TEXT_BYTES = 8000
MIN_TIMESTAMP = 10**13
MAX_TIMESTAMP = 2**53 - 2
MAX_ATTACHMENT_SIZE = 2**53 - 2
MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 15
MIN_PATH_LENGTH = 2
MAX_PATH_LENGTH = 512

_NAME_CHARACTERS = frozenset(string.ascii_lowercase + string.digits)
_PATH_FORBIDDEN = frozenset('?#;<>"[\\]^{|}')


class Check(NamedTuple):
    """A predicate and the error class raised when it returns False."""

    predicate: Callable[[Any], bool]
    error: type[SharedocError]


# ---------------------------------------------------------------------------
# Pipeline runner
# ---------------------------------------------------------------------------


def first_failure(
    candidate: Any, checks: Sequence[Check]
) -> type[SharedocError] | None:
    """Return the error class of the first failing check, or None."""
    for check in checks:
        if not check.predicate(candidate):
            return check.error
    return None


def run_checks(candidate: Any, checks: Sequence[Check], *error_args: Any) -> None:
    """Raise the first failing check's error, built with *error_args*."""
    error = first_failure(candidate, checks)
    if error is None:
        return
    exc = error(*error_args)
    logger.debug("Validation failed: %s", exc.code)
    raise exc


# ---------------------------------------------------------------------------
# Name checks (Identity shortname / ShareAddress name)
# ---------------------------------------------------------------------------


def valid_name_length(name: str) -> bool:
    return MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH


def valid_name_characters(name: str) -> bool:
    return all(c in _NAME_CHARACTERS for c in name)


def name_starts_with_letter(name: str) -> bool:
    return bool(name) and not name[0].isdigit()


NAME_CHECKS: tuple[Check, ...] = (
    Check(valid_name_length, InvalidLengthError),
    Check(valid_name_characters, InvalidCharactersError),
    Check(name_starts_with_letter, StartsWithDigitError),
)


# ---------------------------------------------------------------------------
# Document checks
# ---------------------------------------------------------------------------


def _is_printable_ascii(value: str) -> bool:
    # "!" (0x21) through "~" (0x7e): no space, no control characters.
    return all("!" <= c <= "~" for c in value)


def _attachment_fields_present(doc: Document) -> bool:
    return doc.attachment_hash is not None and doc.attachment_size is not None


def _attachment_fields_absent(doc: Document) -> bool:
    return doc.attachment_hash is None and doc.attachment_size is None


def has_file_extension(path: str) -> bool:
    """True if the last path segment looks like ``<stem>.<ext>``."""
    segment = path.rsplit("/", 1)[-1]
    stem, dot, extension = segment.rpartition(".")
    return bool(dot and stem and extension)


def valid_text(doc: Document) -> bool:
    if len(doc.text.encode("utf-8")) > MAX_TEXT_BYTES:
        return False
    if _attachment_fields_present(doc):
        return doc.text != ""
    return _attachment_fields_absent(doc) and doc.text == ""


def valid_text_hash(doc: Document) -> bool:
    return (
        is_encoded(doc.text_hash, HASH_LENGTH)
        and doc.text_hash == encode_hash(doc.text)
    )


def valid_format(doc: Document) -> bool:
    return doc.format != "" and _is_printable_ascii(doc.format)


def valid_path(doc: Document) -> bool:
    path = doc.path
    if not _is_printable_ascii(path):
        return False
    if not MIN_PATH_LENGTH <= len(path) <= MAX_PATH_LENGTH:
        return False
    if not path.startswith("/") or path.startswith("/@"):
        return False
    if "//" in path or any(c in _PATH_FORBIDDEN for c in path):
        return False
    # "!" marks an ephemeral document.
    if ("!" in path) != (doc.delete_after is not None):
        return False
    if has_file_extension(path) != _attachment_fields_present(doc):
        return False
    # "~" marks a subtree only the named author may write to.
    if "~" in path and f"~@{doc.author.shortname}" not in path:
        return False
    return True


def _valid_signature_syntax(value: str, fmt: str) -> bool:
    if fmt == ES5:
        return is_encoded(value, ES5_SIGNATURE_LENGTH)
    return is_encoded(value)


def valid_signature(doc: Document) -> bool:
    if not _valid_signature_syntax(doc.signature, doc.format):
        return False
    raw_signature = decode_base32(doc.signature[1:])
    payload = document_hash(doc).encode("utf-8")
    return doc.author.keypair.verify(raw_signature, payload)


def _within_timestamp_bounds(micros: int) -> bool:
    return MIN_TIMESTAMP <= micros <= MAX_TIMESTAMP


def valid_timestamp(doc: Document) -> bool:
    return _within_timestamp_bounds(instant_micros(doc.timestamp))


def valid_share_signature(doc: Document) -> bool:
    # Syntax only; the share key is not checked here.
    return _valid_signature_syntax(doc.share_signature, doc.format)


def valid_delete_after(doc: Document) -> bool:
    if doc.delete_after is None:
        return True
    delete_after = instant_micros(doc.delete_after)
    return _within_timestamp_bounds(delete_after) and delete_after > (
        instant_micros(doc.timestamp)
    )


def valid_attachment_size(doc: Document) -> bool:
    if doc.attachment_size is None:
        return True
    return 0 <= doc.attachment_size <= MAX_ATTACHMENT_SIZE


def valid_attachment_hash(doc: Document) -> bool:
    if doc.attachment_hash is None:
        return True
    return is_encoded(doc.attachment_hash, HASH_LENGTH)


DOCUMENT_CHECKS: tuple[Check, ...] = (
    Check(valid_text, InvalidTextError),
    Check(valid_text_hash, InvalidTextHashError),
    Check(valid_format, InvalidFormatError),
    Check(valid_path, InvalidPathError),
    Check(valid_signature, InvalidSignatureError),
    Check(valid_timestamp, InvalidTimestampError),
    Check(valid_share_signature, InvalidShareSignatureError),
    Check(valid_delete_after, InvalidDeleteAfterError),
    Check(valid_attachment_size, InvalidAttachmentSizeError),
    Check(valid_attachment_hash, InvalidAttachmentHashError),
)


__all__ = [
    "DOCUMENT_CHECKS",
    "ES5",
    "MAX_ATTACHMENT_SIZE",
    "MAX_NAME_LENGTH",
    "MAX_PATH_LENGTH",
    "MAX_TEXT_BYTES",
    "MAX_TIMESTAMP",
    "MIN_NAME_LENGTH",
    "MIN_PATH_LENGTH",
    "MIN_TIMESTAMP",
    "NAME_CHECKS",
    "Check",
    "first_failure",
    "has_file_extension",
    "name_starts_with_letter",
    "run_checks",
    "valid_attachment_hash",
    "valid_attachment_size",
    "valid_delete_after",
    "valid_format",
    "valid_name_characters",
    "valid_name_length",
    "valid_path",
    "valid_share_signature",
    "valid_signature",
    "valid_text",
    "valid_text_hash",
    "valid_timestamp",
]
