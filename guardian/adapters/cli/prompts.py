"""
Rich-based user prompts
"""
import sys
from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Prompt, Confirm

from ...core.interfaces import PromptProvider
from ...core.logging import get_stdout_console


class RichPromptProvider(PromptProvider):
    """Rich-based prompt provider"""
    
    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stdout_console()
    
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        if password:
            return Prompt.ask(message, password=True, console=self.console)
        return Prompt.ask(message, default=default, console=self.console)
    
    def choose(self, message: str, choices: Sequence[str], default: Optional[str] = None) -> str:
        """Prompt user to pick one of a fixed set of answers"""
        return Prompt.ask(message, choices=list(choices), default=default, console=self.console)
    
    def confirm(self, message: str, default: bool = False) -> bool:
        """Prompt user for confirmation"""
        return Confirm.ask(message, default=default, console=self.console)
    
    def is_interactive(self) -> bool:
        return sys.stdin is not None and sys.stdin.isatty()
    
    def info(self, message: str) -> None:
        """Display info message"""
        self.console.print(f"[cyan]ℹ[/cyan] {message}")
    
    def success(self, message: str) -> None:
        """Display success message"""
        self.console.print(f"[green]✓[/green] {message}")
    
    def warning(self, message: str) -> None:
        """Display warning message"""
        self.console.print(f"[yellow]⚠[/yellow] {message}")
