"""Configuration exceptions."""

from typing import List, Optional, Sequence


class ConfigurationError(Exception):
    """A configuration file, environment variable or import file is unusable.

    ``errors`` holds one line per problem found and ``suggestions`` one line
    per fix to try. ``str()`` renders both as numbered and bulleted sections
    under the headline message, ready to print to a terminal.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[Sequence[str]] = None,
        suggestions: Optional[Sequence[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.errors: List[str] = list(errors or [])
        self.suggestions: List[str] = list(suggestions or [])

    def __str__(self) -> str:
        lines = [self.message]
        lines += _section("Validation Errors:", [f"{i}. {e}" for i, e in enumerate(self.errors, 1)])
        lines += _section("Suggestions:", [f"- {s}" for s in self.suggestions])
        return "\n".join(lines)


def _section(title: str, items: List[str]) -> List[str]:
    if not items:
        return []
    return ["", title] + [f"  {item}" for item in items]
