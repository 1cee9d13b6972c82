#!/usr/bin/env python3
"""Deployments CLI for software image operations."""

import argparse
import sys

import questionary
from psycopg.errors import UniqueViolation
from rich.console import Console
from rich.table import Table

from deployments.images import (
    ImageValidationError,
    SoftwareImage,
    SoftwareImageConstructor,
    SoftwareImagesStorage,
    new_software_image,
)

console = Console()


def index_storage(storage: SoftwareImagesStorage) -> int:
    """Provision the images collection and its unique name/model index."""
    storage.index_storage()
    console.print("[green]Image storage indexed.[/]")
    return 0


def list_images(storage: SoftwareImagesStorage) -> int:
    """Render every stored image as a table."""
    images = storage.find_all()
    if not images:
        console.print("[dim]No images found.[/]")
        return 0

    table = Table(title="Software images")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Model")
    table.add_column("Verified")
    table.add_column("Modified")
    for image in sorted(images, key=lambda i: (i.name, i.model)):
        table.add_row(
            image.id,
            image.name,
            image.model,
            "yes" if image.verified else "no",
            image.modified.isoformat() if image.modified else "-",
        )
    console.print(table)
    return 0


def add_image(storage: SoftwareImagesStorage, args: argparse.Namespace) -> int:
    """Insert a new image from command line arguments."""
    image = new_software_image(
        SoftwareImageConstructor(
            name=args.name,
            model=args.model,
            description=args.description,
            checksum=args.checksum,
        )
    )
    try:
        storage.insert(image)
    except ImageValidationError as e:
        console.print(f"[red]Invalid image: {e}[/]")
        return 1
    except UniqueViolation:
        console.print(f"[red]Image {args.name} for {args.model} already exists.[/]")
        return 1

    console.print(f"[green]Created image {image.id}.[/]")
    return 0


def select_image(storage: SoftwareImagesStorage) -> SoftwareImage | None:
    """Prompt the user to select an image from the stored list."""
    images = storage.find_all()
    if not images:
        console.print("[red]No images found.[/]")
        return None
    return questionary.select(
        "Select an image:",
        choices=[
            questionary.Choice(title=f"{i.name} ({i.model})", value=i) for i in images
        ],
    ).ask()


def delete_image(storage: SoftwareImagesStorage) -> int:
    """Delete a selected image after confirmation."""
    image = select_image(storage)
    if not image:
        return 0

    console.print(f"[yellow]Will delete [bold]{image.name}[/] for {image.model} ({image.id}).[/]")
    if not questionary.confirm("Proceed with these changes?").ask():
        console.print("[dim]Cancelled.[/]")
        return 0

    storage.delete(image.id)
    console.print(f"[green]Deleted image {image.id}.[/]")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deployments CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("index-storage", help="Create image storage and indexes")
    subparsers.add_parser("list-images", help="List all software images")
    subparsers.add_parser("delete-image", help="Delete a software image")

    add = subparsers.add_parser("add-image", help="Add a software image")
    add.add_argument("--name", required=True, help="Application name and version")
    add.add_argument("--model", required=True, help="Target device model")
    add.add_argument("--description")
    add.add_argument("--checksum")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    storage = SoftwareImagesStorage()

    if args.command == "index-storage":
        return index_storage(storage)
    elif args.command == "list-images":
        return list_images(storage)
    elif args.command == "add-image":
        return add_image(storage, args)
    elif args.command == "delete-image":
        return delete_image(storage)
    return 2


if __name__ == "__main__":
    sys.exit(main())
