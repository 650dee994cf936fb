"""Formatting of command-line usage examples."""

from __future__ import annotations

from dataclasses import dataclass, field

_INDENTATION = "  "


@dataclass
class Example:
    """A command example with its description lines."""

    descriptions: list[str] = field(default_factory=list)
    root_command: str = ""
    command_string: str = ""

    def __str__(self) -> str:
        description = "".join(f"# {line}\n" for line in self.descriptions)
        return f"{description} {self.root_command} {self.command_string}"


def format_examples(*examples: Example) -> str:
    """Render examples as an indented block separated by blank lines."""
    text = "".join(f"{example}\n\n" for example in examples)
    if not text:
        return text
    return "\n".join(_INDENTATION + line.strip() for line in text.strip().split("\n"))