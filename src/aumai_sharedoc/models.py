"""Pydantic models for aumai-sharedoc."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, ClassVar, Self

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    field_serializer,
    field_validator,
    model_validator,
)

from aumai_sharedoc.encoding import (
    decode_base32,
    document_hash,
    encode_bytes,
    encode_hash,
    micros_to_timestamp,
    timestamp_to_micros,
)
from aumai_sharedoc.errors import (
    InvalidDeleteAfterError,
    InvalidTimestampError,
    MalformedAddressError,
    MissingPrivateKeyError,
)
from aumai_sharedoc.validation import DOCUMENT_CHECKS, ES5, NAME_CHECKS, run_checks

_PUBLIC_KEY_BYTES = 32


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class Keypair(BaseModel):
    """An Ed25519 public key with its private key, when the holder has it."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    public_key: Ed25519PublicKey
    private_key: Ed25519PrivateKey | None = None

    @classmethod
    def generate(cls) -> Keypair:
        """Draw a fresh key pair from the operating system's secure RNG."""
        return cls.from_private_key(Ed25519PrivateKey.generate())

    @classmethod
    def from_private_key(cls, private_key: Ed25519PrivateKey) -> Keypair:
        return cls(public_key=private_key.public_key(), private_key=private_key)

    @classmethod
    def from_seed(cls, seed: bytes) -> Keypair:
        """Deterministic key pair from a 32-byte Ed25519 seed."""
        return cls.from_private_key(Ed25519PrivateKey.from_private_bytes(seed))

    @classmethod
    def from_public_bytes(cls, public_bytes: bytes) -> Keypair:
        """Verify-only key pair from a raw 32-byte public key."""
        return cls(public_key=Ed25519PublicKey.from_public_bytes(public_bytes))

    @property
    def public_bytes(self) -> bytes:
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @property
    def has_private_key(self) -> bool:
        return self.private_key is not None

    def sign(self, data: bytes) -> bytes:
        """Return the raw 64-byte Ed25519 signature of *data*.

        Raises:
            MissingPrivateKeyError: if this key pair is verify-only.
        """
        if self.private_key is None:
            raise MissingPrivateKeyError()
        return self.private_key.sign(data)

    def verify(self, signature: bytes, data: bytes) -> bool:
        try:
            self.public_key.verify(signature, data)
        except InvalidSignature:
            return False
        return True


def generate_random_keypair() -> Keypair:
    """Default key generation capability used by ``build``."""
    return Keypair.generate()


KeyGenerator = Callable[[], Keypair]


# ---------------------------------------------------------------------------
# Self-certifying addresses
# ---------------------------------------------------------------------------


class _SelfCertifyingAddress(BaseModel):
    """A validated short name bound to an Ed25519 key pair."""

    model_config = ConfigDict(frozen=True)

    sigil: ClassVar[str]
    subject: ClassVar[str]
    name_field: ClassVar[str]

    keypair: Keypair

    @property
    def label(self) -> str:
        return getattr(self, self.name_field)

    @property
    def address(self) -> str:
        """Display form: ``<sigil><name>.b<base32 public key>``."""
        return f"{self.sigil}{self.label}.{encode_bytes(self.keypair.public_bytes)}"

    def __str__(self) -> str:
        return self.address

    @model_validator(mode="after")
    def _check_name(self) -> Self:
        run_checks(self.label, NAME_CHECKS, self.subject)
        return self

    @classmethod
    def build(
        cls,
        name: str,
        keypair: Keypair | None = None,
        keygen: KeyGenerator = generate_random_keypair,
    ) -> Self:
        """Validate *name* and bind it to *keypair*.

        The name is checked before any key is generated, so an invalid name
        never consumes randomness.  A supplied *keypair* is used as-is.
        """
        run_checks(name, NAME_CHECKS, cls.subject)
        if keypair is None:
            keypair = keygen()
        return cls(**{cls.name_field: name, "keypair": keypair})

    @classmethod
    def from_address(cls, address: str) -> Self:
        """Parse a display-form address into a verify-only value.

        Raises:
            MalformedAddressError: if the sigil, separator or key is wrong.
            AddressError: subclasses for an invalid name.
        """
        if not address.startswith(cls.sigil):
            raise MalformedAddressError(
                f"Address {address!r} must start with {cls.sigil!r}."
            )
        name, sep, encoded_key = address[len(cls.sigil):].partition(".")
        if not sep or not encoded_key.startswith("b"):
            raise MalformedAddressError(
                f"Address {address!r} is missing the '.b<key>' part."
            )
        try:
            public_bytes = decode_base32(encoded_key[1:])
        except ValueError as exc:
            raise MalformedAddressError(
                f"Address {address!r} has an invalid base32 key."
            ) from exc
        if len(public_bytes) != _PUBLIC_KEY_BYTES:
            raise MalformedAddressError(
                f"Address {address!r} does not encode a 32-byte public key."
            )
        return cls.build(name, keypair=Keypair.from_public_bytes(public_bytes))

    def sign(self, data: bytes) -> str:
        """``b``-prefixed base32 Ed25519 signature of *data*."""
        return encode_bytes(self.keypair.sign(data))


class Identity(_SelfCertifyingAddress):
    """An author: ``@<shortname>.b<public key>``."""

    sigil = "@"
    subject = "Identity shortname"
    name_field = "shortname"

    shortname: str


class ShareAddress(_SelfCertifyingAddress):
    """A content namespace: ``+<name>.b<public key>``."""

    sigil = "+"
    subject = "Share name"
    name_field = "name"

    name: str


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


def _instant_from_micros(value: Any, error: type[Exception]) -> Any:
    if _is_micros(value):
        try:
            return micros_to_timestamp(value)
        except OverflowError as exc:
            raise error() from exc
    return value


_STRING_FIELDS = ("text", "text_hash", "format", "path", "signature", "share_signature")


def _is_micros(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_instant(value: Any) -> bool:
    if isinstance(value, datetime):
        return value.tzinfo is not None
    return _is_micros(value)


def _unrepresentable(value: Any) -> bool:
    if not _is_micros(value):
        return False
    try:
        micros_to_timestamp(value)
    except OverflowError:
        return True
    return False


def _raw_candidate_fields(data: dict[str, Any]) -> dict[str, Any] | None:
    """Fields for an unvalidated candidate, or None if *data* is malformed."""
    if not all(isinstance(data.get(name), str) for name in _STRING_FIELDS):
        return None
    if not _is_instant(data.get("timestamp")):
        return None
    if data.get("delete_after") is not None and not _is_instant(data["delete_after"]):
        return None
    if data.get("attachment_size") is not None and not _is_micros(
        data["attachment_size"]
    ):
        return None
    if data.get("attachment_hash") is not None and not isinstance(
        data["attachment_hash"], str
    ):
        return None

    fields = dict(data)
    for name, address_cls in (("author", Identity), ("share", ShareAddress)):
        value = fields.get(name)
        if isinstance(value, str):
            fields[name] = address_cls.from_address(value)
        elif not isinstance(value, address_cls):
            return None
    return fields


class Document(BaseModel):
    """A signed, content-hashed record.

    Validating construction (:meth:`new`, the constructor, ``model_validate``
    and ``model_validate_json``) runs
    :data:`~aumai_sharedoc.validation.DOCUMENT_CHECKS`.  Pydantic's
    ``model_construct`` and ``model_copy(update=...)`` skip validation, so
    their results may break the rules.  Instances are frozen; changing a field
    means building a new document with a fresh signature.

    In JSON form ``author`` and ``share`` are display-form addresses and the
    instants are integer microseconds since the Unix epoch.
    """

    model_config = ConfigDict(frozen=True)

    author: Identity
    text: str
    text_hash: str
    format: str
    path: str
    signature: str
    timestamp: AwareDatetime
    share: ShareAddress
    share_signature: str
    delete_after: AwareDatetime | None = None
    attachment_size: int | None = None
    attachment_hash: str | None = None

    @classmethod
    def new(
        cls,
        *,
        author: Identity,
        share: ShareAddress,
        path: str,
        text: str = "",
        format: str = ES5,
        timestamp: datetime | None = None,
        share_signature: str | None = None,
        delete_after: datetime | None = None,
        attachment_size: int | None = None,
        attachment_hash: str | None = None,
        text_hash: str | None = None,
        signature: str | None = None,
    ) -> Document:
        """Build, sign and validate a document.

        Args:
            author: The signing identity.  Must hold its private key unless
                *signature* is supplied.
            share: The namespace.  Must hold its private key unless
                *share_signature* is supplied.
            text_hash: Defaults to the hash of *text*.
            timestamp: Defaults to the current UTC time.
            share_signature: Defaults to the share key's signature over the
                author's address.
            signature: Defaults to the author key's signature over the
                document hash.

        Raises:
            MissingPrivateKeyError: if a default signature cannot be made.
            DocumentError: the first validation check that fails.
        """
        fields: dict[str, Any] = {
            "author": author,
            "text": text,
            "text_hash": encode_hash(text) if text_hash is None else text_hash,
            "format": format,
            "path": path,
            "timestamp": timestamp or datetime.now(tz=UTC),
            "share": share,
            "share_signature": (
                share.sign(author.address.encode("utf-8"))
                if share_signature is None
                else share_signature
            ),
            "delete_after": delete_after,
            "attachment_size": attachment_size,
            "attachment_hash": attachment_hash,
        }
        if signature is None:
            unsigned = cls.model_construct(signature="", **fields)
            signature = author.sign(document_hash(unsigned).encode("utf-8"))
        return cls(signature=signature, **fields)

    @model_validator(mode="before")
    @classmethod
    def _check_unrepresentable_instants(cls, data: Any) -> Any:
        """Run the checks on instants too large or small for ``datetime``.

        Such a record never validates, but the error reported is still the
        first failing check rather than the instant field's own.
        """
        if not isinstance(data, dict) or not (
            _unrepresentable(data.get("timestamp"))
            or _unrepresentable(data.get("delete_after"))
        ):
            return data
        fields = _raw_candidate_fields(data)
        if fields is not None:
            run_checks(cls.model_construct(**fields), DOCUMENT_CHECKS)
        return data

    @model_validator(mode="after")
    def _run_document_checks(self) -> Self:
        run_checks(self, DOCUMENT_CHECKS)
        return self

    # -- JSON form ---------------------------------------------------------

    @field_validator("author", mode="before")
    @classmethod
    def _parse_author(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Identity.from_address(value)
        return value

    @field_validator("share", mode="before")
    @classmethod
    def _parse_share(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ShareAddress.from_address(value)
        return value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        return _instant_from_micros(value, InvalidTimestampError)

    @field_validator("delete_after", mode="before")
    @classmethod
    def _parse_delete_after(cls, value: Any) -> Any:
        return _instant_from_micros(value, InvalidDeleteAfterError)

    @field_serializer("author", "share")
    def _serialize_address(self, value: _SelfCertifyingAddress) -> str:
        return value.address

    @field_serializer("timestamp", "delete_after")
    def _serialize_instant(self, value: datetime | None) -> int | None:
        return None if value is None else timestamp_to_micros(value)

    # -- Derived values ----------------------------------------------------

    @property
    def hash(self) -> str:
        """The canonical document hash the author signed."""
        return document_hash(self)

    @property
    def timestamp_micros(self) -> int:
        return timestamp_to_micros(self.timestamp)

    @property
    def delete_after_micros(self) -> int | None:
        if self.delete_after is None:
            return None
        return timestamp_to_micros(self.delete_after)

    @property
    def has_attachment(self) -> bool:
        return self.attachment_hash is not None and self.attachment_size is not None


# ---------------------------------------------------------------------------
# Verification result
# ---------------------------------------------------------------------------


class VerificationResult(BaseModel):
    """Outcome of validating a document received from elsewhere."""

    valid: bool
    document: Document | None = None
    error: str | None = None
    code: str | None = None


__all__ = [
    "Document",
    "Identity",
    "KeyGenerator",
    "Keypair",
    "ShareAddress",
    "VerificationResult",
    "generate_random_keypair",
]
