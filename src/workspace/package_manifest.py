"""
Package Manifest Rewrite Module.

Points the git dependencies of a ``package.json`` at a release branch. A
dependency value such as ``git+https://github.com/<owner>/<repo>.git`` gets a
``#<branch>`` suffix. Values that already pin a branch are never changed, so a
manually chosen pin survives re-running the rewrite.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from config import logger
from errors import ManifestError

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies")


@dataclass
class ManifestRewrite:
    """
    Outcome of rewriting one package manifest.

    Attributes:
        changed (Dict[str, str]): Dependency name to its new value
        pinned (Dict[str, str]): Dependency name to the branch it already pins
    """

    changed: Dict[str, str] = field(default_factory=dict)
    pinned: Dict[str, str] = field(default_factory=dict)


def dependency_pattern(owner: str) -> re.Pattern:
    """Pattern of git dependency values hosted under ``owner``."""
    return re.compile(
        r"^(git\+https.*/" + re.escape(owner) + r"/)([\w\-.]+)(?:#([\w\-./]*))?$"
    )


def pin_dependency(
    value: str, branch: str, owner: str
) -> Tuple[Optional[str], Optional[str]]:
    """
    Compute the pinned value of one dependency.

    Args:
        value (str): Current dependency value
        branch (str): Branch to pin
        owner (str): Owner whose repositories are rewritten

    Returns:
        Tuple[Optional[str], Optional[str]]: ``(new_value, None)`` when the value
            should change, ``(None, existing_branch)`` when a branch is already
            pinned, and ``(None, None)`` when the value is not a git dependency
            of ``owner``.
    """
    match = dependency_pattern(owner).match(value)
    if not match:
        return None, None
    prefix, repo, existing = match.groups()
    if existing:
        return None, existing
    return f"{prefix}{repo}#{branch}", None


def rewrite_dependency_branches(path: str, branch: str, owner: str) -> ManifestRewrite:
    """
    Pin the git dependencies of a package manifest to ``branch`` in place.

    The file is only written back when a dependency changed, with two-space
    indentation and its trailing newline kept, if it had one.

    Args:
        path (str): Path to ``package.json``
        branch (str): Release branch name
        owner (str): Owner whose repositories are rewritten

    Returns:
        ManifestRewrite: Changed and already pinned dependencies

    Raises:
        ManifestError: If the file cannot be parsed
    """
    manifest_path = Path(path)
    text = manifest_path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid package manifest {manifest_path}: {e}") from e

    result = ManifestRewrite()
    for section in DEPENDENCY_SECTIONS:
        dependencies = data.get(section) or {}
        for name, value in dependencies.items():
            if not isinstance(value, str):
                continue
            new_value, existing = pin_dependency(value, branch, owner)
            if existing:
                logger.warning(
                    {
                        "message": "Branch already set, not changing",
                        "file_path": str(manifest_path),
                        "section": section,
                        "dependency": name,
                        "branch": existing,
                    }
                )
                result.pinned[name] = existing
            elif new_value:
                dependencies[name] = new_value
                result.changed[name] = new_value
                logger.debug(
                    {
                        "message": "Setting dependency value",
                        "file_path": str(manifest_path),
                        "section": section,
                        "dependency": name,
                        "value": new_value,
                    }
                )

    # Untouched manifests keep their original formatting
    if not result.changed:
        return result

    output = json.dumps(data, indent=2, ensure_ascii=False)
    if text.endswith("\n"):
        output += "\n"
    manifest_path.write_text(output, encoding="utf-8")
    return result
