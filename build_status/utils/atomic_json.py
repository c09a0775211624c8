#!/usr/bin/env python3
"""
Atomic JSON file output.

Report files are never left half-written: data goes to a temp file in the
target directory, is read back as JSON, then moved over the target.
"""

import json
import os
import shutil
import tempfile
from typing import Any


def atomic_json_save(data: dict[str, Any], output_file: str) -> bool:
    """
    Save JSON data to file using atomic write operations.

    Args:
        data: Dictionary to save as JSON (non-JSON values are written with str())
        output_file: Target file path

    Returns:
        True if save succeeded

    Raises:
        OSError: If the file cannot be written
    """
    directory = os.path.dirname(output_file) or "."
    os.makedirs(directory, exist_ok=True)

    # Temp file in same directory so the move is a rename
    temp_fd, temp_path = tempfile.mkstemp(suffix=".json", dir=directory, text=True)

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

        with open(temp_path, encoding="utf-8") as f:
            json.load(f)

        shutil.move(temp_path, output_file)
        return True

    except Exception:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise
