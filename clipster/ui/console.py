"""Terminal status output for the push-to-talk assistant."""

from typing import Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..providers.registry import ProviderBinding


class ClipsterConsole:
    """Rich console front for startup banner and per-run status lines."""

    def __init__(self, console: Optional[Console] = None, quiet: bool = False):
        self.console = console or Console(quiet=quiet)

    def banner(self, bindings: Iterable[ProviderBinding], model_name: str) -> None:
        """Show the ready banner with one row per bound provider."""
        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Hotkey", style="bold")
        table.add_column("Provider")
        table.add_column("Model", style="dim")
        for binding in bindings:
            table.add_row(binding.hotkey_display, binding.name, binding.backend.model)

        self.console.print(Panel(
            table,
            title="🎤 Clipster AI Assistant Ready!",
            subtitle=f"speech model: {model_name}",
            border_style="green",
        ))
        self.console.print("Hold a hotkey, speak, release. The answer lands on your clipboard.", style="blue")
        self.console.print("Press Ctrl+C to exit.", style="dim")

    def recording(self, binding: ProviderBinding) -> None:
        self.console.print(f"🔴 Recording for {binding.name}...", style="red")

    def processing(self, binding: ProviderBinding) -> None:
        self.console.print(f"⏳ Processing with {binding.name}...", style="yellow")

    def transcript(self, text: str) -> None:
        self.console.print(f"🗣  You said: {text}")

    def copied(self, binding: ProviderBinding, response_preview: str) -> None:
        self.console.print(f"✅ Copied to clipboard via {binding.name}!", style="green")
        self.console.print(f"Preview: {response_preview}", style="dim")

    def notice(self, message: str) -> None:
        self.console.print(f"ℹ️  {message}", style="blue")

    def error(self, stage: str, message: str) -> None:
        self.console.print(f"❌ {stage} failed: {message}", style="bold red")

    def goodbye(self) -> None:
        self.console.print("\n👋 Goodbye!")
