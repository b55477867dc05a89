"""Per-extension content parsers applied to fetched files."""

from __future__ import annotations

import json
import tomllib
from collections.abc import Callable, Mapping
from typing import Any

import frontmatter
import yaml

from repoloader.services.datetime_service import normalize_temporal

Parser = Callable[[str], Any]


def parse_json(content: str) -> Any:
    return json.loads(content)


def parse_toml(content: str) -> Any:
    return tomllib.loads(content)


def parse_yaml(content: str) -> Any:
    return yaml.safe_load(content)


def parse_markdown(content: str) -> dict[str, Any]:
    """Split YAML front matter from the markdown body."""
    post = frontmatter.loads(content)
    return {"metadata": dict(post.metadata), "body": post.content}


DEFAULT_PARSERS: dict[str, Parser] = {
    ".json": parse_json,
    ".toml": parse_toml,
    ".yaml": parse_yaml,
    ".yml": parse_yaml,
    ".md": parse_markdown,
    ".markdown": parse_markdown,
}


def file_extension(path: str) -> str:
    """Return the lowercased extension of the final path segment, or ``""``."""
    name = path.rpartition("/")[2]
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return ""
    return f".{ext.lower()}"


class ParserRegistry:
    """Maps file extensions to parsers producing a record's structured data."""

    def __init__(
        self,
        parsers: Mapping[str, Parser] | None = None,
        *,
        include_defaults: bool = True,
    ) -> None:
        self._parsers: dict[str, Parser] = dict(DEFAULT_PARSERS) if include_defaults else {}
        for ext, parser in (parsers or {}).items():
            self.register(ext, parser)

    def register(self, ext: str, parser: Parser) -> None:
        key = ext.lower() if ext.startswith(".") else f".{ext.lower()}"
        self._parsers[key] = parser

    def for_path(self, path: str) -> Parser | None:
        return self._parsers.get(file_extension(path))

    def parse(self, path: str, content: str) -> Any:
        """Parse content by the extension of path; None when no parser applies.

        Raises whatever the parser raises.
        """
        parser = self.for_path(path)
        if parser is None:
            return None
        return normalize_temporal(parser(content))
