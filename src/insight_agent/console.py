from typing import Any, Dict, List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
})

console = Console(theme=custom_theme)
err_console = Console(theme=custom_theme, stderr=True)


def print_success(message: str) -> None:
    console.print(f"[success]✔ {escape(message)}[/success]")


def print_error(message: str) -> None:
    err_console.print(f"[error]✘ {escape(message)}[/error]")


def print_sql(sql: str) -> None:
    console.print(Panel(escape(sql), title="Wrapped query", border_style="info"))


def print_json(data: Dict[str, Any]) -> None:
    console.print_json(data=data, default=str)


def print_rows(rows: List[Dict[str, Any]], columns: List[str], title: str = "") -> None:
    """Renders result rows as a table; empty results print a notice instead."""
    if not rows:
        console.print("[warning]No rows returned.[/warning]")
        return
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*[escape(str(row.get(column))) for column in columns])
    console.print(table)


def print_answer(answer: str) -> None:
    console.print(Panel(escape(answer or "(no answer)"), title="Answer", border_style="success"))
