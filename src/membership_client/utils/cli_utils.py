from rich.console import Console
from rich.table import Table

from membership_client.models import MembershipResult

def get_rich_console() -> Console: return Console(stderr=False)


def describe_result(result: MembershipResult) -> str:
    """Однострочное описание результата для консоли (rich-разметка)."""
    if result.ok:
        return f"[bold green]✔[/bold green] {result.outcome.value}: user {result.user_id} → group {result.group_id}"
    return f"[bold red]✖[/bold red] {result.outcome.value}: {result.detail}"


def groups_table(user_id: int, group_ids: list[int], limit: int) -> Table:
    table = Table(title=f"User {user_id}: {len(group_ids)}/{limit} groups")
    table.add_column("group_id", justify="right")
    for gid in group_ids:
        table.add_row(str(gid))
    return table
