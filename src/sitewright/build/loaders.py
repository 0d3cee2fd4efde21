"""
File loaders.

A loader reads one file. Page loaders return a dictionary with the page body
under ``content``; data loaders return the parsed data itself.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict

import yaml

Loader = Callable[[Path], Any]

FRONT_MATTER_DELIMITER = "---"


class LoaderError(Exception):
    """Raised when a file cannot be parsed by its loader."""

    pass


def text_loader(path: Path) -> Dict[str, Any]:
    return {"content": path.read_text(encoding="utf-8")}


def binary_loader(path: Path) -> Dict[str, Any]:
    return {"content": path.read_bytes()}


def json_loader(path: Path) -> Any:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise LoaderError(f"Failed to parse {path}: {e}") from e
    return data


def yaml_loader(path: Path) -> Any:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise LoaderError(f"Failed to parse {path}: {e}") from e
    return data


def front_matter_loader(path: Path) -> Dict[str, Any]:
    """
    Load a text file with optional YAML front matter.

    Example:
        ---
        title: Hello
        layout: post.html
        ---
        Body text

    Returns:
        Front matter keys plus ``content`` holding the body
    """
    raw = path.read_text(encoding="utf-8")
    if not raw.startswith(FRONT_MATTER_DELIMITER):
        return {"content": raw}

    parts = raw.split(FRONT_MATTER_DELIMITER, 2)
    if len(parts) != 3:
        return {"content": raw}

    try:
        metadata = yaml.safe_load(parts[1]) or {}
    except yaml.YAMLError as e:
        raise LoaderError(f"Invalid front matter in {path}: {e}") from e

    if not isinstance(metadata, dict):
        raise LoaderError(f"Front matter of {path} must be a mapping")

    return {**metadata, "content": parts[2].lstrip("\n")}

