"""
Rich progress displays for CLI operations.

This module provides progress indicators and result panels for CLI operations
using the rich library. All output goes to stderr to preserve stdout for
machine-readable output.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

# Console for stderr output (preserves stdout for machine output)
console = Console(stderr=True)


def _spinner(style: str) -> Progress:
    return Progress(
        SpinnerColumn(spinner_name="dots"),
        TextColumn(f"[{style}]{{task.description}}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,  # Disappears when done
    )


@contextmanager
def enhancement_progress(model: str | None = None, with_context: bool = False) -> Iterator[None]:
    """
    Display a spinner while the instruction is being enhanced.

    Args:
        model: The enhancement model being used
        with_context: Whether an image is used as context
    """
    desc_parts = ["Enhancing prompt"]
    if model:
        desc_parts.append(f"[dim]({model})[/dim]")
    if with_context:
        desc_parts.append("[dim cyan]with image context[/dim cyan]")

    progress = _spinner("cyan")
    with progress:
        task = progress.add_task(" ".join(desc_parts), total=None)
        yield
        progress.update(task, completed=True)


@contextmanager
def request_progress(operation: str, model: str | None = None) -> Iterator[None]:
    """
    Display a spinner during an edit or generation request.

    Args:
        operation: "edit" or "generate"
        model: The image model being used
    """
    desc_parts = ["Editing image" if operation == "edit" else "Generating image"]
    if model:
        # Truncate long model names
        model_display = model if len(model) <= 40 else f"{model[:37]}..."
        desc_parts.append(f"[dim]({model_display})[/dim]")

    progress = _spinner("green")
    with progress:
        task = progress.add_task(" ".join(desc_parts), total=None)
        yield
        progress.update(task, completed=True)


@contextmanager
def analysis_progress(model: str | None = None) -> Iterator[None]:
    """Display a spinner while an image is being described."""
    desc = "Describing image"
    if model:
        desc += f" [dim]({model})[/dim]"
    progress = _spinner("magenta")
    with progress:
        task = progress.add_task(desc, total=None)
        yield
        progress.update(task, completed=True)


def print_success_result(
    output_path: Path,
    operation: str,
    model_used: str,
    instruction_used: str,
    note: str = "",
    enhanced: bool = False,
    original_instruction: str | None = None,
    total_count: int | None = None,
) -> None:
    """
    Print a rich formatted success message with request details.

    Args:
        output_path: Path where the image was saved
        operation: "edit" or "generate"
        model_used: The image model
        instruction_used: The instruction that was sent (enhanced or original)
        note: Text the model returned alongside the image
        enhanced: Whether the instruction was enhanced
        original_instruction: The user's input (shown when it differs from instruction_used)
        total_count: Usage counter value after this request
    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right", vertical="top")
    table.add_column(style="white")

    table.add_row("Saved to", f"[bold green]{output_path}[/bold green]")
    table.add_row("Model", model_used)

    if enhanced and original_instruction and original_instruction != instruction_used:
        table.add_row("Input", f"[dim]{original_instruction}[/dim]")
        table.add_row("Enhanced", f"[dim]{instruction_used}[/dim]")
    else:
        table.add_row("Instruction", f"[dim]{instruction_used}[/dim]")

    if note:
        table.add_row("Note", f"[dim]{note}[/dim]")
    if total_count is not None:
        label = "Total edits" if operation == "edit" else "Total generations"
        table.add_row(label, str(total_count))

    title = "✓ Image Edited" if operation == "edit" else "✓ Image Generated"
    panel = Panel(
        table,
        title=f"[bold green]{title}[/bold green]",
        border_style="green",
        padding=(1, 2),
    )

    console.print()
    console.print(panel)


def print_failure(kind: str, message: str, detail: str = "") -> None:
    """Print a failed request: user message plus the error kind and provider detail."""
    console.print(f"[red]✗[/red] {message}")
    extra = f"kind: {kind}"
    if detail and detail != message:
        extra += f"; {detail}"
    console.print(f"  [dim]{extra}[/dim]")


def print_stats(edit_count: int, generation_count: int, path: Path) -> None:
    """Print the persistent usage counters."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right")
    table.add_column(style="white")
    table.add_row("Edits", str(edit_count))
    table.add_row("Generations", str(generation_count))
    table.add_row("Store", f"[dim]{path}[/dim]")
    console.print(Panel(table, title="[bold]Usage[/bold]", border_style="cyan", padding=(1, 2)))


def print_info(message: str) -> None:
    """Print an info message in cyan."""
    console.print(f"[cyan]ℹ[/cyan] {message}")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]✗[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]✓[/green] {message}")
