from collections import Counter
from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from perkdown.diagnostics import BlockDiagnostic


class ConsoleDisplay:
    console = Console(stderr=True)

    @classmethod
    def display_meta(cls, meta: Dict[str, str]):
        if not meta:
            cls.console.print("[dim]No metadata[/]")
            return

        table = Table(title="Metadata", border_style="cyan")
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in meta.items():
            # Text() so values containing [brackets] are not read as markup
            table.add_row(Text(key), Text(value))
        cls.console.print(table)

    @classmethod
    def display_check(
        cls,
        source: str,
        opted_in: bool,
        version: Optional[str],
        tag_counts: Counter,
        diagnostics: List[BlockDiagnostic],
    ):
        content_parts = [
            f"[white]Source:[/] {escape(source)}",
            f"[white]Opted in:[/] {'yes' if opted_in else 'no'}",
        ]
        if opted_in:
            shown = escape(version) if version else "unspecified"
            content_parts.append(f"[white]Dialect version:[/] {shown}")

        if tag_counts:
            counts = ", ".join(f"{ns}={n}" for ns, n in sorted(tag_counts.items()))
            content_parts.append(f"[white]Tags:[/] {counts}")

        if diagnostics:
            content_parts.append("[bold red]Problems:[/]")
            for diagnostic in diagnostics:
                content_parts.append(f"  - {escape(diagnostic.message)}")
            border_style = "red"
        else:
            border_style = "green"

        cls.console.print(
            Panel(
                "\n".join(content_parts),
                title="[bold blue]Perkdown Check",
                border_style=border_style,
            )
        )
