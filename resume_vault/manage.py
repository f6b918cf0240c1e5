import asyncio
import logging
from typing import Iterable, List

import typer

from resume_vault.core.db import AsyncSessionLocal, create_all, engine
from resume_vault.core.errors import StorageFailure
from resume_vault.core.services.resumes import find_orphaned_files
from resume_vault.core.storage import ResumeFileManager, file_manager

logger = logging.getLogger(__name__)

cli = typer.Typer(help="Resume Vault management commands")


async def _init_db() -> None:
    try:
        await create_all()
    finally:
        await engine.dispose()


async def _orphans():
    try:
        async with AsyncSessionLocal() as session:
            return await find_orphaned_files(session, file_manager)
    finally:
        await engine.dispose()


def delete_orphans(files: ResumeFileManager, names: Iterable[str]) -> List[str]:
    """Delete each file in turn and return the names that could not be removed."""
    failed = []
    for name in names:
        try:
            files.delete(name)
        except StorageFailure:
            logger.warning("Could not delete orphaned file %s", name)
            typer.echo(f"could not delete {name}", err=True)
            failed.append(name)
            continue
        typer.echo(f"deleted {name}")
    return failed


@cli.command()
def init_db():
    """Create any missing tables."""
    asyncio.run(_init_db())
    typer.echo("Database tables are in place")


@cli.command()
def orphans(delete: bool = typer.Option(False, help="Remove the orphaned files instead of only listing them")):
    """
    List uploaded files that no resume record points at.
    python -m resume_vault.manage orphans --delete
    """
    names = asyncio.run(_orphans())
    if not names:
        typer.echo("No orphaned files")
        return
    if not delete:
        for name in names:
            typer.echo(name)
        typer.echo(f"{len(names)} orphaned file(s)")
        return
    failed = delete_orphans(file_manager, names)
    typer.echo(f"{len(names) - len(failed)} of {len(names)} orphaned file(s) deleted")
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    cli()
