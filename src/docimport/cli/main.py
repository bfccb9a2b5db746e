"""
Main CLI entry point for docimport.
"""

import asyncio
import base64
import json
import logging
import mimetypes
from pathlib import Path

import click

from docimport.core import Actor, Config, DocumentImportError, ImportRequest
from docimport.importer import ImportNormalizer
from docimport.ingestion.attachments import AttachmentRehoster, LocalAttachmentStore
from docimport.ingestion.converters import EXTENSION_MIME_TYPES
from docimport.state.codec import StateCodec
from docimport.tracing import traced_import


def load_config(config_path, **overrides) -> Config:
    """
    Build a Config from an optional JSON file plus command line overrides.

    Overrides set to None are ignored.
    """
    config_dict = {}
    if config_path:
        with open(config_path, "r") as f:
            config_dict = json.load(f)
    config_dict.update({k: v for k, v in overrides.items() if v is not None})
    return Config(**config_dict)


def guess_mime_type(file_name: str) -> str:
    suffix = Path(file_name).suffix.lower()
    if suffix in EXTENSION_MIME_TYPES:
        return EXTENSION_MIME_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(file_name)
    return mime_type or "application/octet-stream"


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """docimport - Normalize documents for import."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("import")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--mime-type", help="Mime type (guessed from the file name if omitted)")
@click.option("--config", "config_path", type=click.Path(exists=True), help="JSON config file")
@click.option("--max-title-length", type=int, help="Maximum title length")
@click.option("--max-state-length", type=int, help="Maximum encoded state size in bytes")
@click.option("--fetch-remote-images/--no-fetch-remote-images", default=None, help="Download http(s) images")
@click.option("--attachments-dir", default="attachments", type=click.Path(file_okay=False))
@click.option("--user-id", default="local", help="Importing user id")
@click.option("--team-id", default="local", help="Importing team id")
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
@click.option("--state-out", type=click.Path(dir_okay=False), help="Write the state blob to a file")
def import_file(
    file_path, mime_type, config_path, max_title_length, max_state_length,
    fetch_remote_images, attachments_dir, user_id, team_id, output_format, state_out,
):
    """Import a file and print the normalized result."""
    try:
        config = load_config(
            config_path,
            max_title_length=max_title_length,
            max_state_length=max_state_length,
            fetch_remote_images=fetch_remote_images,
        )
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    path = Path(file_path)
    request = ImportRequest(
        actor=Actor(id=user_id, team_id=team_id),
        mime_type=mime_type or guess_mime_type(path.name),
        file_name=path.name,
        content=path.read_bytes(),
    )
    rehoster = AttachmentRehoster(LocalAttachmentStore(Path(attachments_dir)), config)
    normalizer = ImportNormalizer(rehoster, config=config)

    try:
        result = asyncio.run(traced_import(normalizer, request))
    except DocumentImportError as e:
        raise click.ClickException(str(e))

    if state_out:
        Path(state_out).write_bytes(result.state)

    if output_format == "json":
        output = {
            "title": result.title,
            "emoji": result.emoji,
            "text": result.text,
            "state": base64.b64encode(result.state).decode("ascii"),
        }
        click.echo(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        click.echo(f"Title: {result.title}")
        if result.emoji:
            click.echo(f"Emoji: {result.emoji}")
        click.echo(f"State: {len(result.state)} bytes")
        click.echo("")
        click.echo(result.text)


@cli.command()
@click.argument("state_file", type=click.Path(exists=True, dir_okay=False))
def inspect(state_file):
    """Decode a state blob and print its document tree."""
    try:
        tree = StateCodec().decode(Path(state_file).read_bytes())
    except DocumentImportError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(tree, indent=2, ensure_ascii=False))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
