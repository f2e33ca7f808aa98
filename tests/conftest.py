"""Shared test fixtures for aumai-sharedoc."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from aumai_sharedoc.core import KeyManager
from aumai_sharedoc.encoding import encode_hash, micros_to_timestamp
from aumai_sharedoc.logging_config import LOGGER_NAME
from aumai_sharedoc.models import Document, Identity, Keypair, ShareAddress

# 2023-11-14T22:13:20Z
FIXED_MICROS = 1_700_000_000_000_000
FIXED_TIMESTAMP: datetime = micros_to_timestamp(FIXED_MICROS)

ATTACHMENT_BYTES = b"attachment bytes"


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Drop handlers the CLI attaches so they do not leak between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Deterministic key pairs
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def author_keypair() -> Keypair:
    """Ed25519 key pair from a fixed seed, so signatures are reproducible."""
    return Keypair.from_seed(bytes(range(32)))


@pytest.fixture(scope="session")
def share_keypair() -> Keypair:
    return Keypair.from_seed(bytes(range(32, 64)))


@pytest.fixture(scope="session")
def other_keypair() -> Keypair:
    return Keypair.from_seed(bytes(range(64, 96)))


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


@pytest.fixture()
def bob(author_keypair: Keypair) -> Identity:
    return Identity.build("bob", keypair=author_keypair)


@pytest.fixture()
def chat(share_keypair: Keypair) -> ShareAddress:
    return ShareAddress.build("chat", keypair=share_keypair)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@pytest.fixture()
def attachment_fields() -> dict[str, Any]:
    return {
        "attachment_hash": encode_hash(ATTACHMENT_BYTES),
        "attachment_size": len(ATTACHMENT_BYTES),
    }


@pytest.fixture()
def make_document(
    bob: Identity, chat: ShareAddress
) -> Callable[..., Document]:
    """Factory for signed documents; keyword arguments override the defaults.

    The defaults describe an empty, attachment-less document at ``/chat``.
    """

    def _make(**overrides: Any) -> Document:
        fields: dict[str, Any] = {
            "author": bob,
            "share": chat,
            "path": "/chat",
            "timestamp": FIXED_TIMESTAMP,
        }
        fields.update(overrides)
        return Document.new(**fields)

    return _make


@pytest.fixture()
def plain_document(make_document: Callable[..., Document]) -> Document:
    """A valid document without text or attachment."""
    return make_document()


@pytest.fixture()
def attachment_document(
    make_document: Callable[..., Document], attachment_fields: dict[str, Any]
) -> Document:
    """A valid document describing an attachment."""
    return make_document(
        path="/posts/hello.txt", text="hello", **attachment_fields
    )


# ---------------------------------------------------------------------------
# On-disk key fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def saved_author_keys(tmp_path: Path, author_keypair: Keypair) -> tuple[Path, Path]:
    """Write the author key pair to tmp_path; return (private, public) Paths."""
    return KeyManager().save_keypair(author_keypair, str(tmp_path / "bob"))


@pytest.fixture()
def saved_share_keys(tmp_path: Path, share_keypair: Keypair) -> tuple[Path, Path]:
    return KeyManager().save_keypair(share_keypair, str(tmp_path / "chat"))
