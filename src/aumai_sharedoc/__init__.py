"""aumai-sharedoc: Self-certifying addresses and signed documents for peer-to-peer sharing."""

from aumai_sharedoc.core import DocumentVerifier, KeyManager
from aumai_sharedoc.encoding import (
    canonical_document_bytes,
    document_hash,
    encode_hash,
)
from aumai_sharedoc.errors import (
    AddressError,
    DocumentError,
    SharedocError,
)
from aumai_sharedoc.models import (
    Document,
    Identity,
    Keypair,
    ShareAddress,
    VerificationResult,
    generate_random_keypair,
)

__version__ = "0.1.0"

__all__ = [
    "AddressError",
    "Document",
    "DocumentError",
    "DocumentVerifier",
    "Identity",
    "KeyManager",
    "Keypair",
    "ShareAddress",
    "SharedocError",
    "VerificationResult",
    "canonical_document_bytes",
    "document_hash",
    "encode_hash",
    "generate_random_keypair",
]
