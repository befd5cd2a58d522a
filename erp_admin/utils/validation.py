from typing import List

from pydantic import ValidationError


def format_validation_errors(exc: ValidationError) -> List[str]:
    """Flatten a pydantic error into "skus.0.skuCode: message" lines for toasts and CLI output."""
    lines = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid")
        # custom validators come through as "Value error, <message>"
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        lines.append(f"{loc}: {msg}" if loc else msg)
    return lines
