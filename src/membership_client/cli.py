import asyncio
import typer
import logging
import sys
if sys.platform == "win32":
    # asyncpg не работает с ProactorEventLoop по умолчанию в Windows.
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
from typing import Awaitable, Callable, Optional, TypeVar

from membership_client import create_membership_client, MembershipClient
from membership_client.exceptions import MembershipClientError
from membership_client.logging import configure as configure_logging
from membership_client.models import MembershipResult
from membership_client.utils.cli_utils import describe_result, get_rich_console, groups_table


app = typer.Typer(help="CLI for membership-client management.")
logger = logging.getLogger(__name__)
console = get_rich_console()

T = TypeVar("T")


def _run(action: Callable[[MembershipClient], Awaitable[T]]) -> T:
    """Создает клиента из настроек, выполняет action и закрывает engine."""
    async def _inner():
        client = create_membership_client()
        try:
            return await action(client)
        finally:
            await client.aclose()
    try:
        return asyncio.run(_inner())
    except MembershipClientError as e:
        console.print(f"[bold red]✖[/bold red] {e}")
        raise typer.Exit(code=1)


def _report(result: MembershipResult) -> None:
    console.print(describe_result(result))
    if not result.ok:
        raise typer.Exit(code=1)


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, "--log-level", help="Overrides LOG_LEVEL.")):
    configure_logging(log_level)


@app.command()
def init():
    """Creates database tables."""
    console.rule("[bold cyan]Service Initialization[/bold cyan]")
    _run(lambda client: client.init_db())
    console.print("[bold green]✔[/bold green] Database tables created successfully.")


@app.command()
def check():
    """Checks connectivity to the database."""
    console.rule("[bold cyan]Connection Check[/bold cyan]")
    statuses = _run(lambda client: client.check_connections())
    status = statuses.get("database", "unknown error")
    if status == "ok":
        console.print("[bold green]✔[/bold green] Database connection: OK")
    else:
        console.print(f"[bold red]✖[/bold red] Database connection: FAILED ({status})")
        raise typer.Exit(code=1)


@app.command()
def join(user_id: int, group_id: int):
    """Adds a user to a group."""
    _report(_run(lambda client: client.memberships.join(user_id, group_id)))


@app.command()
def leave(user_id: int, group_id: int):
    """Removes a user from a group."""
    _report(_run(lambda client: client.memberships.leave(user_id, group_id)))


@app.command()
def reassign(user_id: int, from_group_id: int, to_group_id: int):
    """Moves a user from one group to another in a single transaction."""
    _report(_run(lambda client: client.memberships.reassign(user_id, from_group_id, to_group_id)))


@app.command()
def groups(user_id: int):
    """Lists the groups a user belongs to."""
    async def _list(client: MembershipClient):
        return await client.memberships.list_group_ids(user_id), client.memberships.max_groups_per_user

    group_ids, limit = _run(_list)
    console.print(groups_table(user_id, group_ids, limit))


if __name__ == "__main__":
    app()
