"""Command-line interface for skillcontrols."""

import asyncio
import uuid

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from .core import ControlTree
from .demo import DemoManager, parse_utterance
from .infrastructure import configure_structlog
from .models import get_settings
from .runtime import ControlHandler, ControlRequest, ControlResponse, InMemorySessionStore

app = typer.Typer(
    name="skillcontrols",
    help="Dialog controls demo runner",
    add_completion=False,
)
console = Console()


def print_welcome():
    """Print welcome message."""
    console.print(
        Panel.fit(
            "[bold blue]Game Night Setup[/bold blue]\n"
            "[dim]skillcontrols demo[/dim]\n\n"
            "Try:\n"
            "  [green]start[/green], [green]set count 3[/green], [green]change date[/green],\n"
            "  [green]2026-10-31[/green], [green]easy[/green],\n"
            "  [green]yes[/green], [green]no[/green]\n\n"
            "Commands:\n"
            "  [green]exit[/green] or [green]quit[/green] - Exit the demo\n"
            "  [green]state[/green] - Show the control tree and its state\n"
            "  [green]debug[/green] - Toggle debug mode",
            title="Welcome",
            border_style="blue",
        )
    )


def print_response(response: ControlResponse, debug: bool = False):
    """Print the rendered response of a turn."""
    console.print()
    console.print(
        Panel(
            response.prompt or "[dim](no prompt)[/dim]",
            title="[bold green]Skill[/bold green]",
            border_style="green",
        )
    )
    if debug:
        table = Table(title="Debug Info", show_header=True)
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Reprompt", response.reprompt)
        table.add_row("Should end session", str(response.should_end_session))
        table.add_row("Directives", str(response.directives))
        console.print(table)


def print_error(message: str):
    """Print an error message."""
    console.print(
        Panel(
            f"[red]{message}[/red]",
            title="[bold red]Error[/bold red]",
            border_style="red",
        )
    )


async def run_chat_loop(debug: bool = False):
    """Run the interactive loop against the demo manager."""
    settings = get_settings()
    manager = DemoManager(settings)
    handler = ControlHandler(manager, settings)
    store = InMemorySessionStore()

    session_id = str(uuid.uuid4())
    print_welcome()
    console.print(f"\n[dim]Session ID: {session_id}[/dim]\n")

    while True:
        try:
            user_input = Prompt.ask("[bold blue]You[/bold blue]")

            if user_input.lower() in ("exit", "quit"):
                console.print("[dim]Goodbye![/dim]")
                break

            if user_input.lower() == "debug":
                debug = not debug
                console.print(f"[dim]Debug mode: {'enabled' if debug else 'disabled'}[/dim]")
                continue

            attributes = await store.load(session_id) or {}

            if user_input.lower() == "state":
                tree = ControlTree(manager.create_control_tree({}, parse_utterance("start")))
                tree.hydrate(attributes.get(settings.state_attribute_key))
                console.print(tree.diagram())
                continue

            input = parse_utterance(user_input)
            if input is None:
                print_error("Sorry, I don't understand that phrasing.")
                continue
            input = input.model_copy(update={"session_id": session_id})

            response = await handler.invoke(
                ControlRequest(input=input, session_attributes=attributes)
            )
            print_response(response, debug)

            if response.should_end_session:
                await store.delete(session_id)
                session_id = str(uuid.uuid4())
                console.print(f"[dim]Session ended. New session: {session_id}[/dim]")
            else:
                await store.save(
                    session_id, response.session_attributes, ttl=settings.session_ttl_seconds
                )

        except KeyboardInterrupt:
            console.print("\n[dim]Interrupted. Type 'exit' to quit.[/dim]")
            continue


@app.command()
def chat(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug mode"),
):
    """Start an interactive demo session."""
    if debug:
        configure_structlog(level="DEBUG")
    asyncio.run(run_chat_loop(debug=debug))


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"skillcontrols v{__version__}")


@app.command()
def config():
    """Show current configuration."""
    settings = get_settings()

    table = Table(title="Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Environment", settings.env)
    table.add_row("Log level", settings.log_level)
    table.add_row("Can-handle throw behavior", settings.can_handle_throw_behavior.value)
    table.add_row("Fallback message", settings.fallback_message)
    table.add_row("Unhandled message", settings.unhandled_message)
    table.add_row("Prompts file", settings.prompts_file or "(built-in)")
    table.add_row("State attribute key", settings.state_attribute_key)
    table.add_row("Session TTL (s)", str(settings.session_ttl_seconds))

    console.print(table)


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
