"""Error taxonomy for aumai-sharedoc.

Every validation rule maps to exactly one error class.  Errors are terminal:
validation is deterministic, so retrying with the same input yields the same
error.

The classes deliberately do not derive from :class:`ValueError` so that
pydantic re-raises them unchanged instead of folding them into a
``ValidationError``.
"""

from __future__ import annotations


class SharedocError(Exception):
    """Base exception for all aumai-sharedoc errors."""

    code: str = "sharedoc::error"
    default_message: str = "aumai-sharedoc error."

    def __init__(
        self, message: str | None = None, recovery_hint: str | None = None
    ) -> None:
        self.message = message or self.default_message
        self.recovery_hint = recovery_hint
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.recovery_hint:
            return f"{self.message}\nHint: {self.recovery_hint}"
        return self.message


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class MissingPrivateKeyError(SharedocError):
    """A signing operation was attempted with a public-key-only keypair."""

    code = "keypair::private_key::missing"
    default_message = "Keypair has no private key; it can verify but not sign."


class KeyLoadError(SharedocError):
    """A key file could not be read or is not an Ed25519 key."""

    code = "keypair::load::failed"
    default_message = "Could not load an Ed25519 key."


# ---------------------------------------------------------------------------
# Identity / ShareAddress names
# ---------------------------------------------------------------------------


class AddressError(SharedocError):
    """Base for errors raised while building an Identity or ShareAddress."""

    code = "address::error"
    default_message = "Invalid address."


class _NameError(AddressError):
    # Subclasses fill in ``rule`` and ``template``; ``subject`` decides whether
    # the message talks about an identity or a share.
    rule: str = ""
    template: str = "{subject} is invalid."

    _SUBJECT_CODES = {
        "Identity shortname": "identity",
        "Share name": "share_address",
    }

    def __init__(
        self,
        subject: str = "Identity shortname",
        recovery_hint: str | None = None,
    ) -> None:
        self.subject = subject
        prefix = self._SUBJECT_CODES.get(subject, "address")
        self.code = f"{prefix}::name::{self.rule}"
        super().__init__(self.template.format(subject=subject), recovery_hint)


class InvalidLengthError(_NameError):
    rule = "invalid_length"
    template = (
        "{subject} is of invalid length. Must be between 1 (inclusive) "
        "and 16 (exclusive) characters long."
    )


class InvalidCharactersError(_NameError):
    rule = "invalid_characters"
    template = (
        "{subject} uses invalid characters. Only lowercase, alphanumeric "
        "ASCII characters are allowed."
    )


class StartsWithDigitError(_NameError):
    rule = "starts_with_digit"
    template = "{subject} cannot start with a digit."


class MalformedAddressError(AddressError):
    """A display-form address could not be parsed."""

    code = "address::malformed"
    default_message = (
        "Address must look like '@name.b<base32 key>' or '+name.b<base32 key>'."
    )


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class DocumentError(SharedocError):
    """Base for the ten document validation failures."""

    code = "document::error"
    default_message = "Invalid document."


class InvalidTextError(DocumentError):
    code = "document::text::invalid"
    default_message = (
        "Document text is longer than 8000 bytes or does not agree with the "
        "attachment fields."
    )


class InvalidTextHashError(DocumentError):
    code = "document::text_hash::invalid"
    default_message = "Document text_hash is malformed or does not match the text."


class InvalidFormatError(DocumentError):
    code = "document::format::invalid"
    default_message = (
        "Document format must be printable ASCII without whitespace or "
        "control characters."
    )


class InvalidPathError(DocumentError):
    code = "document::path::invalid"
    default_message = "Document path violates the path rules."


class InvalidSignatureError(DocumentError):
    code = "document::signature::invalid"
    default_message = (
        "Document signature is malformed or was not made by the author's key."
    )


class InvalidTimestampError(DocumentError):
    code = "document::timestamp::invalid"
    default_message = (
        "Document timestamp must be between 10^13 and 2^53 - 2 microseconds "
        "(inclusive)."
    )


class InvalidShareSignatureError(DocumentError):
    code = "document::share_signature::invalid"
    default_message = "Document share_signature is malformed."


class InvalidDeleteAfterError(DocumentError):
    code = "document::delete_after::invalid"
    default_message = (
        "Document delete_after is out of range or not later than the timestamp."
    )


class InvalidAttachmentSizeError(DocumentError):
    code = "document::attachment_size::invalid"
    default_message = "Document attachment_size must be between 0 and 2^53 - 2."


class InvalidAttachmentHashError(DocumentError):
    code = "document::attachment_hash::invalid"
    default_message = "Document attachment_hash is malformed."


__all__ = [
    "AddressError",
    "DocumentError",
    "InvalidAttachmentHashError",
    "InvalidAttachmentSizeError",
    "InvalidCharactersError",
    "InvalidDeleteAfterError",
    "InvalidFormatError",
    "InvalidLengthError",
    "InvalidPathError",
    "InvalidShareSignatureError",
    "InvalidSignatureError",
    "InvalidTextError",
    "InvalidTextHashError",
    "InvalidTimestampError",
    "KeyLoadError",
    "MalformedAddressError",
    "MissingPrivateKeyError",
    "SharedocError",
    "StartsWithDigitError",
]
