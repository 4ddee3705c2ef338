from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__: list[str] = ["StringUtils"]

PLURAL_SEPARATOR: Final[str] = "|"
COUNT_PLACEHOLDER: Final[str] = "{count}"
CODE_FENCE: Final[str] = "```"


class StringUtils:
    """Utility class for the string handling done around translation.

    Provides static methods for placeholder substitution, two-form pluralization
    and cleanup of model output.
    """

    @staticmethod
    def ensure_str(value: Any) -> str:
        """Return ``value`` as a string; None becomes an empty string."""
        if isinstance(value, str):
            return value
        return str(value) if value is not None else ""

    @staticmethod
    def substitute_params(text: str, params: Mapping[str, Any]) -> str:
        """Replace every literal ``{name}`` token with the matching parameter.

        Tokens without a parameter are left untouched. Replacement is plain text substitution;
        no format specifiers or escaping are interpreted.

        Args:
            text (str): Template text.
            params (Mapping[str, Any]): Token name to value.

        Returns:
            str: Text with the tokens replaced.
        """
        for name, value in params.items():
            text = text.replace(f"{{{name}}}", StringUtils.ensure_str(value))
        return text

    @staticmethod
    def select_plural(text: str, count: int) -> str:
        """Pick the singular or plural alternative of ``singular|plural`` text and fill ``{count}``.

        ``count == 1`` selects the first alternative, anything else the second; text without a
        separator is used for both.

        Args:
            text (str): Pipe-delimited text.
            count (int): Quantity.

        Returns:
            str: Selected form with ``{count}`` replaced.
        """
        forms: list[str] = text.split(PLURAL_SEPARATOR)
        if count == 1:
            chosen: str = forms[0]
        else:
            chosen = forms[1] if len(forms) > 1 else forms[0]
        return chosen.replace(COUNT_PLACEHOLDER, str(count))

    @staticmethod
    def strip_code_fence(text: str) -> str:
        """Remove a surrounding Markdown code fence, as language models often add one.

        A leading "```json" or "```" and a trailing "```" are removed independently of each other,
        then whitespace is stripped.

        Args:
            text (str): Raw model output.

        Returns:
            str: Unfenced text.
        """
        text = text.strip()
        if text.startswith(f"{CODE_FENCE}json"):
            text = text.removeprefix(f"{CODE_FENCE}json")
        elif text.startswith(CODE_FENCE):
            text = text.removeprefix(CODE_FENCE)
        return text.strip().removesuffix(CODE_FENCE).strip()
