"""Key files and verification of documents received from elsewhere."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from pydantic import ValidationError

from aumai_sharedoc.errors import KeyLoadError, SharedocError
from aumai_sharedoc.models import Document, Keypair, VerificationResult

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# KeyManager
# ---------------------------------------------------------------------------


class KeyManager:
    """Generate, persist, and load Ed25519 key pairs."""

    def generate_keypair(self) -> Keypair:
        """Generate a fresh key pair from the OS secure random source."""
        return Keypair.generate()

    def save_keypair(
        self,
        keypair: Keypair,
        path: str,
        passphrase: bytes | None = None,
    ) -> tuple[Path, Path]:
        """Write *keypair* to *path*/private.pem and *path*/public.pem.

        The output directory is created if it does not exist.  The private key
        file is written with mode 0o600 on POSIX systems.  A verify-only key
        pair writes ``public.pem`` alone.

        Returns:
            The ``(private_file, public_file)`` paths.
        """
        out_dir = Path(path)
        out_dir.mkdir(parents=True, exist_ok=True)

        private_file = out_dir / "private.pem"
        public_file = out_dir / "public.pem"

        public_file.write_bytes(
            keypair.public_key.public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
        )
        if keypair.private_key is not None:
            encryption: serialization.KeySerializationEncryption = (
                serialization.BestAvailableEncryption(passphrase)
                if passphrase is not None
                else serialization.NoEncryption()
            )
            private_file.write_bytes(
                keypair.private_key.private_bytes(
                    encoding=serialization.Encoding.PEM,
                    format=serialization.PrivateFormat.PKCS8,
                    encryption_algorithm=encryption,
                )
            )
            # Restrict private key permissions on POSIX
            try:
                os.chmod(private_file, 0o600)
            except NotImplementedError:
                pass  # Windows

        logger.debug("Key pair written to %s", out_dir)
        return private_file, public_file

    def load_keypair(self, path: str, password: bytes | None = None) -> Keypair:
        """Load a private or public Ed25519 PEM file into a :class:`Keypair`.

        A public PEM yields a verify-only key pair.

        Raises:
            KeyLoadError: if the file is unreadable, encrypted with a different
                password, or does not hold an Ed25519 key.
        """
        try:
            pem_bytes = Path(path).read_bytes()
        except OSError as exc:
            raise KeyLoadError(f"Cannot read key file {path}: {exc}") from exc

        try:
            if b"PUBLIC KEY" in pem_bytes:
                key: Any = serialization.load_pem_public_key(pem_bytes)
            else:
                key = serialization.load_pem_private_key(pem_bytes, password=password)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyLoadError(f"Cannot parse key file {path}: {exc}") from exc

        if isinstance(key, Ed25519PrivateKey):
            return Keypair.from_private_key(key)
        if isinstance(key, Ed25519PublicKey):
            return Keypair(public_key=key)
        raise KeyLoadError(
            f"Unsupported key type: {type(key).__name__}. Only Ed25519 is supported."
        )


# ---------------------------------------------------------------------------
# DocumentVerifier
# ---------------------------------------------------------------------------


class DocumentVerifier:
    """Validate serialised documents without raising."""

    def verify_record(self, record: dict[str, Any]) -> VerificationResult:
        """Run the full validation pipeline over a JSON-form *record*.

        Returns:
            A :class:`VerificationResult` holding the document on success, or
            the first failing rule's message and code.
        """
        try:
            document = Document.model_validate(record)
        except SharedocError as exc:
            return VerificationResult(valid=False, error=exc.message, code=exc.code)
        except ValidationError as exc:
            return VerificationResult(
                valid=False,
                error=f"Malformed document record: {exc}",
                code="document::record::malformed",
            )

        logger.debug("Document %s verified", document.hash)
        return VerificationResult(valid=True, document=document)

    def verify_json(self, raw: str | bytes) -> VerificationResult:
        """Parse *raw* JSON and delegate to :meth:`verify_record`."""
        try:
            record = json.loads(raw)
        except ValueError as exc:
            return VerificationResult(
                valid=False,
                error=f"Document is not valid JSON: {exc}",
                code="document::record::malformed",
            )
        if not isinstance(record, dict):
            return VerificationResult(
                valid=False,
                error="Document JSON must be an object.",
                code="document::record::malformed",
            )
        return self.verify_record(record)


__all__ = [
    "DocumentVerifier",
    "KeyManager",
]
