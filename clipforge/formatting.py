"""Rich-based console formatting utilities"""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .transcoder import MediaInfo
from .utils import format_timestamp

console = Console()

def print_check(message: str) -> None:
    """Print a checkmark message in bold green."""
    text = Text("✓ ", style="bold green") + Text(message, style="bold")
    console.print(text)

def print_warning(message: str) -> None:
    """Print a warning message in bold yellow."""
    text = Text("⚠ ", style="bold yellow") + Text(message, style="bold")
    console.print(text)

def print_error(message: str) -> None:
    """Print an error message in bold red."""
    text = Text("✗ ", style="bold red") + Text(message, style="bold")
    console.print(text)

def print_success(message: str) -> None:
    """Print a success message in plain green."""
    text = Text("✓ ", style="green") + Text(message, style="green")
    console.print(text)

def print_header(title: str, width: int = 80) -> None:
    """Print a decorative header."""
    separator = Text("=" * width, style="bold blue")
    padding = (width - len(title)) // 2
    console.print(separator)
    console.print(" " * padding + title, style="bold blue")
    console.print(separator)

def print_info(message: str) -> None:
    """Print an informational message in a subtle style."""
    text = Text("ℹ ", style="bold blue") + Text(message, style="blue")
    console.print(text)

def print_media_info(name: str, info: MediaInfo) -> None:
    """Print probed media properties as a two-column table."""
    table = Table(title=name, show_header=False, title_style="bold blue")
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Duration", format_timestamp(info.duration))
    table.add_row("Resolution", f"{info.width}x{info.height}")
    table.add_row("Frame rate", f"{info.fps:.3f} fps")
    table.add_row("Video codec", info.codec or "unknown")
    table.add_row("Bit rate", info.bit_rate or "unknown")
    if info.has_audio:
        table.add_row("Audio", f"{info.audio_codec or 'unknown'}, {info.audio_sample_rate} Hz, {info.audio_channels} ch")
    else:
        table.add_row("Audio", "none")
    console.print(table)
