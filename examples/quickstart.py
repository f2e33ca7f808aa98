"""aumai-sharedoc quickstart: working demonstrations of the main features.

Run this file directly to verify your installation:

    python examples/quickstart.py

Demos that touch the filesystem use a temporary directory and clean up after
themselves.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

from aumai_sharedoc import (
    Document,
    DocumentVerifier,
    Identity,
    KeyManager,
    ShareAddress,
    SharedocError,
    encode_hash,
)

# ---------------------------------------------------------------------------
# Demo 1: addresses
# ---------------------------------------------------------------------------


def demo_addresses() -> None:
    """Create an identity and a share, then parse one back from its address."""

    print("\n=== Demo 1: Self-certifying addresses ===")

    bob = Identity.build("bob")
    chat = ShareAddress.build("chat")
    print(f"  Identity: {bob}")
    print(f"  Share   : {chat}")

    parsed = Identity.from_address(bob.address)
    assert parsed.keypair.public_bytes == bob.keypair.public_bytes
    assert not parsed.keypair.has_private_key
    print("  Parsed identity is verify-only and carries the same key.")

    try:
        Identity.build("9lives")
    except SharedocError as exc:
        print(f"  Rejected '9lives': {exc.code}")

    print("  Demo 1 passed.")


# ---------------------------------------------------------------------------
# Demo 2: sign and verify a document
# ---------------------------------------------------------------------------


def demo_sign_and_verify() -> None:
    print("\n=== Demo 2: Sign & verify a document ===")

    bob = Identity.build("bob")
    chat = ShareAddress.build("chat")
    photo = b"\x89PNG fake image bytes"

    doc = Document.new(
        author=bob,
        share=chat,
        path="/photos/cat.png",
        text="my cat",
        attachment_hash=encode_hash(photo),
        attachment_size=len(photo),
    )
    print(f"  Document hash: {doc.hash}")

    record = doc.model_dump_json()
    result = DocumentVerifier().verify_json(record)
    print(f"  Signature valid: {result.valid}")
    assert result.valid

    tampered = json.loads(record)
    tampered["text"] = "my dog"
    result = DocumentVerifier().verify_record(tampered)
    print(f"  Tampered copy rejected: {not result.valid}  ({result.code})")
    assert not result.valid

    print("  Demo 2 passed.")


# ---------------------------------------------------------------------------
# Demo 3: key persistence
# ---------------------------------------------------------------------------


def demo_key_persistence() -> None:
    """Save a passphrase-protected key pair and sign with the reloaded key."""

    print("\n=== Demo 3: Key persistence ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        km = KeyManager()
        bob = Identity.build("bob", keygen=km.generate_keypair)
        private_file, _ = km.save_keypair(
            bob.keypair, str(Path(tmpdir) / "bob"), passphrase=b"hunter2"
        )
        print(f"  Key pair written to: {private_file.parent}/")

        reloaded = Identity.build(
            "bob", keypair=km.load_keypair(str(private_file), password=b"hunter2")
        )
        assert reloaded.address == bob.address

        doc = Document.new(
            author=reloaded, share=ShareAddress.build("notes"), path="/todo"
        )
        print(f"  Signed {doc.path} as {doc.author.label}")

    print("  Demo 3 passed.")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    """Run all demos."""
    print("aumai-sharedoc quickstart demos")
    print("=" * 45)

    demo_addresses()
    demo_sign_and_verify()
    demo_key_persistence()

    print("\n" + "=" * 45)
    print("All demos completed successfully.")


if __name__ == "__main__":
    main()
