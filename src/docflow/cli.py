"""CLI for DocFlow.

Commands:
    init-db                      - Create tables and seed document states
    search <text>                - Search active contragents by name
    person-addresses <id>        - List a person's active addresses
    employees <organization_id>  - List an organization's active employees
    delete-contragent <id>       - Soft-delete one contragent link
    docs-in                      - List incoming documents
    docs-out                     - List outgoing documents
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from docflow.config import settings
from docflow.db import async_session_factory, init_db
from docflow.errors import DocflowError
from docflow.services.contragent import ContragentService
from docflow.services.documents import DocInService, DocOutService
from docflow.services.organization import OrganizationService
from docflow.services.person import PersonService

app = typer.Typer(
    name="docflow",
    help="DocFlow — counterparty registry and document registration",
    no_args_is_help=True,
)
console = Console()


def run_async(coro):
    """Run an async coroutine in sync context."""
    return asyncio.run(coro)


def parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid UUID: {value}")
        raise typer.Exit(1) from None


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log at DEBUG level")
    ] = False,
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("init-db")
def init_db_command():
    """Create tables and seed the document state lookup table."""
    run_async(init_db())
    console.print("[green]Database initialized[/green]")


@app.command()
def search(
    text: Annotated[str, typer.Argument(help="Part of a person FIO or organization name")],
):
    """Search active contragents by their search name."""
    async def _search():
        async with async_session_factory() as session:
            found = await ContragentService(session).search_contragents(text)

        if not found:
            console.print(f"[yellow]No contragents match[/yellow] {text!r}")
            return

        table = Table(title=f"Contragents matching {text!r}")
        table.add_column("ID")
        table.add_column("Search name")
        table.add_column("Organization")
        table.add_column("Position")
        table.add_column("Address")
        for c in found:
            address = c.address
            table.add_row(
                str(c.contragent_id),
                c.search_name,
                c.organization.name if c.organization else "-",
                c.person_position or "-",
                f"{address.city}, {address.street} {address.house_number or ''}".strip()
                if address
                else "-",
            )
        console.print(table)

    run_async(_search())


@app.command("person-addresses")
def person_addresses(
    person_id: Annotated[str, typer.Argument(help="Person ID (UUID)")],
):
    """List the active addresses of a person (IDs are contragent link IDs)."""
    pid = parse_uuid(person_id)

    async def _show():
        async with async_session_factory() as session:
            try:
                addresses = await PersonService(session).get_addresses(pid)
            except DocflowError as e:
                console.print(f"[red]Error:[/red] {e}")
                raise typer.Exit(1) from None

        table = Table(title="Addresses")
        table.add_column("Link ID")
        table.add_column("Index")
        table.add_column("Country")
        table.add_column("City")
        table.add_column("Street")
        table.add_column("House")
        table.add_column("Apt")
        for a in addresses:
            table.add_row(
                str(a.id),
                a.postal_index or "-",
                a.country or "-",
                a.city or "-",
                a.street or "-",
                a.house_number or "-",
                a.apartment_number or "-",
            )
        console.print(table)

    run_async(_show())


@app.command()
def employees(
    organization_id: Annotated[str, typer.Argument(help="Organization ID (UUID)")],
):
    """List the active employees of an organization."""
    oid = parse_uuid(organization_id)

    async def _show():
        async with async_session_factory() as session:
            try:
                found = await OrganizationService(session).get_employees(oid)
            except DocflowError as e:
                console.print(f"[red]Error:[/red] {e}")
                raise typer.Exit(1) from None

        table = Table(title="Employees")
        table.add_column("Link ID")
        table.add_column("Name")
        table.add_column("Position")
        for e in found:
            name = " ".join(p for p in (e.last_name, e.first_name, e.middle_name) if p)
            table.add_row(str(e.id), name, e.person_position or "-")
        console.print(table)

    run_async(_show())


@app.command("delete-contragent")
def delete_contragent(
    contragent_id: Annotated[str, typer.Argument(help="Contragent link ID (UUID)")],
):
    """Soft-delete one contragent link."""
    cid = parse_uuid(contragent_id)

    async def _delete():
        async with async_session_factory() as session:
            async with session.begin():
                try:
                    await ContragentService(session).delete(cid)
                except DocflowError as e:
                    console.print(f"[red]Error:[/red] {e}")
                    raise typer.Exit(1) from None
        console.print(f"[green]Deleted[/green] {cid}")

    run_async(_delete())


@app.command("docs-in")
def docs_in(
    page: Annotated[int, typer.Option("--page", "-p", help="Page number (1-based)")] = 1,
):
    """List incoming documents, oldest registration first."""
    async def _list():
        async with async_session_factory() as session:
            docs, total = await DocInService(session).list_page(page)

        table = Table(title=f"Incoming documents (page {page}, {total} total)")
        table.add_column("Reg. number")
        table.add_column("Reg. date")
        table.add_column("Type")
        table.add_column("State")
        table.add_column("Summary")
        for d in docs:
            table.add_row(
                d.reg_number,
                str(d.reg_date),
                d.doc_type.name if d.doc_type else "-",
                d.state.title,
                (d.summary or "")[:60],
            )
        console.print(table)

    run_async(_list())


@app.command("docs-out")
def docs_out(
    page: Annotated[int, typer.Option("--page", "-p", help="Page number (1-based)")] = 1,
):
    """List outgoing documents, newest first."""
    async def _list():
        async with async_session_factory() as session:
            docs, total = await DocOutService(session).list_page(page)

        table = Table(title=f"Outgoing documents (page {page}, {total} total)")
        table.add_column("Reg. number")
        table.add_column("Created")
        table.add_column("Type")
        table.add_column("State")
        table.add_column("Summary")
        for d in docs:
            table.add_row(
                d.reg_number or "-",
                d.create_date.strftime("%Y-%m-%d %H:%M"),
                d.doc_type.name if d.doc_type else "-",
                d.state.title,
                (d.summary or "")[:60],
            )
        console.print(table)

    run_async(_list())


if __name__ == "__main__":
    app()
