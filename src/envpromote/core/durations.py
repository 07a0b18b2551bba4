"""Go-style duration strings ("20s", "1h30m", "500ms") used by flags and config."""

import re

_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")


class DurationParseError(ValueError):
    """A duration string could not be parsed."""


def parse_duration(text: str) -> float:
    """Parse a duration into seconds.

    A bare number is taken as seconds.

    Raises:
        DurationParseError: If the text is not a valid duration
    """
    value = text.strip()
    if not value:
        msg = "Empty duration"
        raise DurationParseError(msg)
    if re.fullmatch(r"\d+(?:\.\d+)?", value):
        return float(value)

    total = 0.0
    position = 0
    for match in _COMPONENT.finditer(value):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()
    if position != len(value):
        msg = f"Invalid duration format '{text}' (expected e.g. 20s, 5m, 1h30m)"
        raise DurationParseError(msg)
    return total


def format_duration(seconds: float) -> str:
    """Render seconds the way parse_duration reads them, e.g. 3700 -> '1h1m40s'."""
    remaining = int(round(seconds))
    hours, remaining = divmod(remaining, 3600)
    minutes, secs = divmod(remaining, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return "".join(parts)
