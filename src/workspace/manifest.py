"""
Workspace Manifest Module.

The workspace manifest is a JSON object mapping each local checkout directory
to the URL of its upstream repository, in the order the checkouts should be
processed.
"""

import json
from pathlib import Path
from typing import Dict

from config import logger
from errors import ManifestError


def load_workspace(path: str) -> Dict[str, str]:
    """
    Read the workspace manifest.

    Args:
        path (str): Path to the manifest file

    Returns:
        Dict[str, str]: Directory name to repository URL, in file order

    Raises:
        ManifestError: If the file is missing, is not valid JSON, or is not an
            object of strings.
    """
    manifest_path = Path(path)
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ManifestError(f"Workspace manifest not found: {manifest_path}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid workspace manifest {manifest_path}: {e}") from e

    if not isinstance(data, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in data.items()
    ):
        raise ManifestError(
            f"Workspace manifest {manifest_path} must map directory names to URLs"
        )

    logger.debug(
        {
            "message": "Loaded workspace manifest",
            "file_path": str(manifest_path),
            "entries": len(data),
        }
    )
    return data
