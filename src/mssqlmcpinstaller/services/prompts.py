"""Interactive input providers for MssqlMcpInstaller."""

from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Confirm, Prompt


class ConsolePromptProvider:
    """Asks questions on the terminal using rich prompts."""

    def __init__(self, console: Console):
        self.console = console

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def ask(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        if default is None:
            return Prompt.ask(message, password=password, console=self.console)
        return Prompt.ask(message, default=default, password=password, console=self.console)

    def choose(self, message: str, choices: Sequence[str], default: str) -> str:
        return Prompt.ask(message, choices=list(choices), default=default, console=self.console)


class NonInteractivePromptProvider:
    """Answers every question with its default, for unattended runs."""

    def __init__(self, logger):
        self.logger = logger

    def confirm(self, message: str, default: bool = False) -> bool:
        self.logger.info("Non-interactive mode: answering '%s' with %s.", message, "yes" if default else "no")
        return default

    def ask(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        return default or ""

    def choose(self, message: str, choices: Sequence[str], default: str) -> str:
        return default
