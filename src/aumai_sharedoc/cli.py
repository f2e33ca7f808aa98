"""CLI entry point for aumai-sharedoc."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click

from aumai_sharedoc.config import SharedocConfig
from aumai_sharedoc.core import DocumentVerifier, KeyManager
from aumai_sharedoc.encoding import hash_file, micros_to_timestamp
from aumai_sharedoc.errors import SharedocError
from aumai_sharedoc.logging_config import setup_logging
from aumai_sharedoc.models import Document, Identity, ShareAddress, VerificationResult

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_document(path: str) -> VerificationResult:
    raw = Path(path).read_text(encoding="utf-8")
    return DocumentVerifier().verify_json(raw)


def _fail(message: str, exit_code: int = 1) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumai-sharedoc")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    help="Logging level (default: $SHAREDOC_LOG_LEVEL or INFO).",
)
@click.option(
    "--log-file",
    default=None,
    metavar="PATH",
    help="Also write logs to a rotating file (default: $SHAREDOC_LOG_FILE).",
)
@click.pass_context
def main(ctx: click.Context, log_level: str | None, log_file: str | None) -> None:
    """AumAI ShareDoc: self-certifying addresses and signed documents."""
    config = SharedocConfig.from_env()
    try:
        setup_logging(log_level or config.log_level, log_file or config.log_file)
    except (OSError, ValueError) as exc:
        _fail(str(exc))
    ctx.obj = config


@main.command("keygen")
@click.option("--name", required=True, help="Identity shortname or share name.")
@click.option(
    "--share",
    "is_share",
    is_flag=True,
    help="Create a share address (+name) instead of an identity (@name).",
)
@click.option(
    "--output",
    default=None,
    metavar="DIR",
    help="Directory to write private.pem and public.pem (default: <keys-dir>/<name>).",
)
@click.pass_obj
def keygen_command(
    config: SharedocConfig, name: str, is_share: bool, output: str | None
) -> None:
    """Generate a key pair and bind it to NAME."""
    km = KeyManager()
    address_cls = ShareAddress if is_share else Identity
    try:
        address = address_cls.build(name, keygen=km.generate_keypair)
    except SharedocError as exc:
        _fail(str(exc))

    out_dir = Path(output) if output else config.resolve_keys_dir(name)
    private_file, public_file = km.save_keypair(address.keypair, str(out_dir))
    click.echo(f"Address: {address}")
    click.echo(f"  Private: {private_file}")
    click.echo(f"  Public : {public_file}")


@main.command("sign")
@click.option("--author", required=True, metavar="NAME", help="Author shortname.")
@click.option(
    "--author-key", required=True, metavar="PATH", help="Author private PEM key."
)
@click.option("--share", required=True, metavar="NAME", help="Share name.")
@click.option(
    "--share-key",
    required=True,
    metavar="PATH",
    help="Share PEM key; a public key is enough with --share-signature.",
)
@click.option(
    "--share-signature",
    default=None,
    help="Precomputed share signature (b-prefixed base32).",
)
@click.option("--path", "doc_path", required=True, help="Document path, e.g. /chat.")
@click.option("--text", default=None, help="Inline document text.")
@click.option(
    "--text-file",
    default=None,
    metavar="PATH",
    help="Read the document text from a UTF-8 file.",
)
@click.option(
    "--attachment",
    default=None,
    metavar="PATH",
    help="File whose hash and size are recorded as the attachment.",
)
@click.option("--format", "doc_format", default=None, help="Document format.")
@click.option(
    "--timestamp", default=None, type=int, help="Microseconds since the epoch."
)
@click.option(
    "--delete-after", default=None, type=int, help="Microseconds since the epoch."
)
@click.option(
    "--output", default=None, metavar="PATH", help="Write JSON here (default: stdout)."
)
@click.pass_obj
def sign_command(
    config: SharedocConfig,
    author: str,
    author_key: str,
    share: str,
    share_key: str,
    share_signature: str | None,
    doc_path: str,
    text: str | None,
    text_file: str | None,
    attachment: str | None,
    doc_format: str | None,
    timestamp: int | None,
    delete_after: int | None,
    output: str | None,
) -> None:
    """Build, sign and validate a document; emit its JSON form."""
    if text is not None and text_file is not None:
        _fail("--text and --text-file are mutually exclusive.")

    km = KeyManager()
    try:
        author_id = Identity.build(author, keypair=km.load_keypair(author_key))
        share_addr = ShareAddress.build(share, keypair=km.load_keypair(share_key))
        if text_file is not None:
            text = Path(text_file).read_text(encoding="utf-8")
        attachment_hash, attachment_size = (
            hash_file(attachment) if attachment is not None else (None, None)
        )
        document = Document.new(
            author=author_id,
            share=share_addr,
            path=doc_path,
            text=text or "",
            format=doc_format or config.default_format,
            timestamp=micros_to_timestamp(timestamp) if timestamp is not None else None,
            delete_after=(
                micros_to_timestamp(delete_after) if delete_after is not None else None
            ),
            share_signature=share_signature,
            attachment_hash=attachment_hash,
            attachment_size=attachment_size,
        )
    except SharedocError as exc:
        _fail(f"{exc} [{exc.code}]")
    except (OSError, ValueError, OverflowError) as exc:
        _fail(str(exc))

    payload = document.model_dump_json(indent=2)
    if output is None:
        click.echo(payload)
        return
    Path(output).write_text(payload, encoding="utf-8")
    click.echo(f"Signed document written to: {output}")
    click.echo(f"  Author : {document.author}")
    click.echo(f"  Share  : {document.share}")
    click.echo(f"  Hash   : {document.hash}")


@main.command("verify")
@click.option(
    "--document",
    "document_path",
    required=True,
    metavar="PATH",
    help="Path to a document JSON file.",
)
def verify_command(document_path: str) -> None:
    """Check every validation rule of a document, including its signature."""
    try:
        result = _load_document(document_path)
    except (OSError, ValueError) as exc:
        _fail(str(exc))

    if result.valid and result.document is not None:
        click.echo("Document: VALID")
        click.echo(f"  Author : {result.document.author}")
        click.echo(f"  Path   : {result.document.path}")
        click.echo(f"  Hash   : {result.document.hash}")
    else:
        click.echo(f"Document: INVALID ({result.code}) {result.error}")
        sys.exit(2)


@main.command("inspect")
@click.option(
    "--document",
    "document_path",
    required=True,
    metavar="PATH",
    help="Path to a document JSON file.",
)
@click.option("--json-output", is_flag=True, help="Emit raw JSON.")
def inspect_command(document_path: str, json_output: bool) -> None:
    """Display the contents of a valid document."""
    try:
        result = _load_document(document_path)
    except (OSError, ValueError) as exc:
        _fail(f"loading document: {exc}")

    doc = result.document
    if doc is None:
        _fail(f"{result.error} [{result.code}]", exit_code=2)

    if json_output:
        click.echo(doc.model_dump_json(indent=2))
        return

    click.echo(f"Author          : {doc.author}")
    click.echo(f"Share           : {doc.share}")
    click.echo(f"Path            : {doc.path}")
    click.echo(f"Format          : {doc.format}")
    click.echo(f"Timestamp       : {doc.timestamp.isoformat()} ({doc.timestamp_micros})")
    if doc.delete_after is not None:
        click.echo(
            f"Delete after    : {doc.delete_after.isoformat()} "
            f"({doc.delete_after_micros})"
        )
    click.echo(f"Text hash       : {doc.text_hash}")
    if doc.has_attachment:
        click.echo(f"Attachment      : {doc.attachment_size:,} bytes  {doc.attachment_hash}")
    click.echo(f"Document hash   : {doc.hash}")
    click.echo(f"Text            : {doc.text!r}")


if __name__ == "__main__":
    main()
