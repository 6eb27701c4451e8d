"""Input validation for tool arguments."""

import re
from typing import Any, Dict, List

from core.exceptions import ToolValidationError

_IDENTIFIER_STRIP = re.compile(r"[^A-Za-z0-9_]")


class InputValidator:
    """Argument presence checks and identifier sanitization."""

    @staticmethod
    def require_arguments(tool_name: str, arguments: Dict[str, Any], required: List[str]) -> None:
        """
        Check that every required argument is present.

        Raises:
            ToolValidationError: listing the missing argument names
        """
        missing = [name for name in required if arguments.get(name) is None]
        if missing:
            raise ToolValidationError(
                f"Missing required argument(s) for {tool_name}: {', '.join(missing)}",
                details={"tool": tool_name, "missing": missing}
            )

    @staticmethod
    def sanitize_identifier(name: Any, argument: str = "name") -> str:
        """
        Strip every character that is not an ASCII letter, digit or underscore.

        Only protects the object-name slot of DDL text. Anything else
        spliced into the statement is trusted as given.

        Raises:
            ToolValidationError: if nothing is left after stripping
        """
        cleaned = _IDENTIFIER_STRIP.sub("", str(name))
        if not cleaned:
            raise ToolValidationError(
                f"Invalid {argument}: no letters, digits or underscores in {name!r}",
                details={"argument": argument}
            )
        return cleaned

    @staticmethod
    def optional_list(arguments: Dict[str, Any], key: str) -> List[Any]:
        """Return a list-valued optional argument, defaulting to empty."""
        value = arguments.get(key)
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise ToolValidationError(
                f"Argument '{key}' must be an array",
                details={"argument": key}
            )
        return list(value)

    @staticmethod
    def optional_bool(arguments: Dict[str, Any], key: str, default: bool = False) -> bool:
        """Return a boolean flag; accepts JSON booleans and 'true'/'false' strings."""
        value = arguments.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)
