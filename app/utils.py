import json
from typing import Any


def extract_text(content: Any) -> str:
    """Extract plain text from a content field that may be a string or a list of blocks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


def describe_error(error: Any) -> str:
    """Turn anything raised or returned as an error into a short readable message."""
    if error is None:
        return "unknown error"
    if isinstance(error, str):
        return error
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    try:
        return json.dumps(error, default=str)
    except (TypeError, ValueError):
        return repr(error)
