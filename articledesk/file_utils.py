"""
File and timestamp utility functions for Article Desk.
Common helpers shared by the storage backends and the sync client.
"""
import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def load_json_file(filepath: str, default: Dict[str, Any]) -> Dict[str, Any]:
    """
    Load a JSON file with a default fallback.

    Args:
        filepath: Path to the JSON file
        default: Default value if file doesn't exist

    Returns:
        Loaded JSON data or default value
    """
    if os.path.exists(filepath):
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    return default


def save_json_file(filepath: str, data: Dict[str, Any], ensure_dir: bool = True) -> None:
    """
    Save data to a JSON file.

    The data is written to a temporary sibling file first and then moved
    into place, so readers never observe a half-written document.

    Args:
        filepath: Path to save the JSON file
        data: Data to save
        ensure_dir: Whether to create parent directory if it doesn't exist
    """
    if ensure_dir:
        os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    tmp_path = f"{filepath}.tmp"
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)
    os.replace(tmp_path, filepath)


def get_utc_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        ISO formatted timestamp string with a trailing Z instead of +00:00
    """
    return format_timestamp(datetime.now(timezone.utc))


def format_timestamp(value: datetime) -> str:
    """Render a datetime as an ISO string; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO timestamp string into an aware datetime.

    Args:
        value: ISO 8601 string (a trailing Z is accepted) or datetime

    Returns:
        Timezone-aware datetime, or None if the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
