"""Main CLI application using Typer."""
import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from ..chat import ConversationOrchestrator, StateEvent, StateEventKind, TurnState, write_export
from ..chat.export import format_conversation
from ..config import Settings, get_settings
from ..downloads import DownloadStatus, failure_message, format_bytes
from ..errors import LocalChatError
from ..llm import list_models
from ..log import setup_logging
from ..memory import Conversation
from .providers import (
    get_download_manager,
    get_engine,
    get_model_descriptor,
    get_search_provider,
    get_store,
)

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="localchat",
    help="Local LLM chat with web search augmentation and model downloads",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

EXIT_WORDS = ("exit", "quit", "q")

STATUS_TEXT = {
    TurnState.SEARCHING: "[cyan]Searching the web...[/cyan]",
    TurnState.GENERATING: "[cyan]Thinking...[/cyan]",
}


def _settings() -> Settings:
    settings = get_settings()
    setup_logging(settings.log_level)
    return settings


def _find_conversation(conversations: list[Conversation], key: str) -> Conversation | None:
    """Match a conversation by id or unique id prefix."""
    matches = [c for c in conversations if c.id == key or c.id.startswith(key)]
    return matches[0] if len(matches) == 1 else None


@app.command()
def chat(
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model filename (default: LOCALCHAT_DEFAULT_MODEL)"
    ),
    no_search: bool = typer.Option(
        False,
        "--no-search",
        help="Disable web search augmentation"
    ),
    new: bool = typer.Option(
        False,
        "--new",
        "-n",
        help="Start a new conversation instead of resuming the latest"
    )
):
    """Interactive chat with a local model."""
    async def _chat():
        settings = _settings()
        descriptor = get_model_descriptor(model, settings, console)
        engine = get_engine(descriptor, settings, console)
        search = None if no_search else get_search_provider(settings)
        manager = get_download_manager(settings)
        store = get_store(settings)

        try:
            await store.connect()

            orchestrator = ConversationOrchestrator(
                engine=engine,
                store=store,
                model_resolver=manager.resolve_model_path,
                search_provider=search,
                model=descriptor,
            )
            await orchestrator.load()
            if new:
                await orchestrator.new_conversation()

            if not manager.is_model_available(descriptor):
                console.print(
                    f"[yellow]Warning: {descriptor.display_name} is not downloaded. "
                    f"Run: localchat download {descriptor.filename}[/yellow]"
                )

            console.print(f"[bold cyan]localchat[/bold cyan] [dim]({descriptor.display_name})[/dim]")
            console.print("[dim]Type 'exit', 'quit', or 'q' to leave, '/new' for a new conversation[/dim]\n")

            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")

                    if not user_input.strip():
                        continue

                    if user_input.strip().lower() in EXIT_WORDS:
                        console.print("[dim]Goodbye![/dim]")
                        break

                    if user_input.strip() == "/new":
                        await orchestrator.new_conversation()
                        console.print("[dim]Started a new conversation.[/dim]\n")
                        continue

                    with console.status(STATUS_TEXT[TurnState.GENERATING]) as status:
                        def on_event(event: StateEvent) -> None:
                            if event.kind == StateEventKind.STATE_CHANGED and event.state in STATUS_TEXT:
                                status.update(STATUS_TEXT[event.state])

                        unsubscribe = orchestrator.subscribe(on_event)
                        try:
                            reply = await orchestrator.send_message(user_input)
                        finally:
                            unsubscribe()

                    if reply is not None:
                        console.print(f"[bold green]Assistant:[/bold green] {reply.content}\n")

                    if orchestrator.context_warning:
                        console.print(f"[yellow]{orchestrator.context_warning}[/yellow]\n")

                except (LocalChatError, OSError) as e:
                    console.print(f"[red]Error: {e}[/red]\n")
                except KeyboardInterrupt:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
                except EOFError:
                    console.print("\n[dim]Goodbye![/dim]")
                    break

        except (LocalChatError, OSError) as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()
            if search is not None:
                await search.close()
            await manager.close()
            engine.close()

    asyncio.run(_chat())


@app.command()
def models():
    """List the model catalog and which models are available locally."""
    settings = _settings()
    manager = get_download_manager(settings)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Filename", style="cyan")
    table.add_column("Name")
    table.add_column("Context", justify="right")
    table.add_column("Format", style="yellow")
    table.add_column("Size", justify="right")
    table.add_column("Available", justify="center")

    for descriptor in list_models():
        available = manager.is_model_available(descriptor)
        table.add_row(
            descriptor.filename,
            descriptor.display_name,
            str(descriptor.context_size),
            descriptor.prompt_format.value,
            f"{descriptor.size_gb:.1f} GB",
            "[green]+[/green]" if available else "[dim]-[/dim]",
        )

    console.print(table)


@app.command()
def download(
    filename: str = typer.Argument(..., help="Model filename from 'localchat models'")
):
    """Download a model into the models directory."""
    async def _download():
        settings = _settings()
        descriptor = get_model_descriptor(filename, settings, console)

        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(complete_style="green", finished_style="bold green"),
            DownloadColumn(),
            TimeElapsedColumn(),
            console=console
        )

        async with get_download_manager(settings) as manager:
            last_status = None
            with progress:
                task = progress.add_task(f"[cyan]{descriptor.display_name}", total=None)
                async for event in manager.start(descriptor):
                    progress.update(
                        task,
                        completed=event.bytes_written,
                        total=event.bytes_expected,
                    )
                    if event.state.status != last_status:
                        last_status = event.state.status
                        progress.update(task, description=f"[cyan]{last_status.value}")

            state = manager.state(descriptor.filename)

        if state is None:
            console.print(f"[dim]{descriptor.filename} is already being downloaded.[/dim]")
        elif state.status == DownloadStatus.COMPLETED:
            console.print(
                f"[green]{descriptor.display_name} is ready at "
                f"{manager.destination(descriptor)}[/green]"
            )
        elif state.reason is not None:
            console.print(f"[red]{failure_message(state.reason)}[/red]")
            if state.detail:
                console.print(f"[dim]{state.detail}[/dim]")
            raise typer.Exit(code=1)

    asyncio.run(_download())


@app.command()
def storage():
    """Show disk usage of the models directory."""
    settings = _settings()
    snapshot = get_download_manager(settings).refresh_storage()

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="bold cyan", width=16)
    table.add_column("Value")

    table.add_row("Total Space", format_bytes(snapshot.total_space))
    table.add_row("Used Space", f"{format_bytes(snapshot.used_space)} ({snapshot.used_percentage:.1f}%)")
    table.add_row("Available Space", format_bytes(snapshot.available_space))
    table.add_row("App Usage", f"{format_bytes(snapshot.app_usage)} ({snapshot.app_usage_percentage:.1f}%)")
    table.add_row("Model Usage", format_bytes(snapshot.model_usage))

    console.print(table)


@app.command()
def conversations():
    """List saved conversations."""
    async def _conversations():
        settings = _settings()
        store = get_store(settings)

        try:
            await store.connect()
            saved = await store.load()
        except (LocalChatError, OSError) as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

        if not saved:
            console.print("[dim]No conversations yet.[/dim]")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim", width=8)
        table.add_column("Title", style="cyan")
        table.add_column("Messages", justify="right")
        table.add_column("Last Updated")

        for conversation in saved:
            table.add_row(
                conversation.id[:8],
                conversation.title,
                str(len(conversation.messages)),
                conversation.last_updated.astimezone().strftime("%Y-%m-%d %H:%M"),
            )

        console.print(table)

    asyncio.run(_conversations())


@app.command()
def export(
    conversation_id: str = typer.Argument(..., help="Conversation id or unique id prefix"),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="File or directory to write to (default: print to stdout)"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model name recorded in the export header"
    )
):
    """Export a conversation as plain text."""
    async def _export():
        settings = _settings()
        descriptor = get_model_descriptor(model, settings, console)
        store = get_store(settings)

        try:
            await store.connect()
            saved = await store.load()
        except (LocalChatError, OSError) as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

        conversation = _find_conversation(saved, conversation_id)
        if conversation is None:
            console.print(f"[red]Error: No unique conversation matches '{conversation_id}'[/red]")
            raise typer.Exit(code=1)

        if output is None:
            console.print(format_conversation(conversation, descriptor.display_name), markup=False)
            return

        target = write_export(conversation, descriptor.display_name, output)
        console.print(f"[green]Exported to {target}[/green]")

    asyncio.run(_export())


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
