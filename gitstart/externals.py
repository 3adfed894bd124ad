"""
Parsing of ``svn propget svn:externals -R`` output.

The recursive listing groups declarations by directory, one block per
directory, blocks separated by a blank line::

    http://svn.example.com/repo/vendor/lib - libfoo http://example.com/libfoo
    other https://example.com/other

    http://svn.example.com/repo/tools - helper http://example.com/helper

Everything here is pure text transformation: no network or filesystem
access.
"""

import logging
import posixpath
import re
from typing import List, Tuple

from .domain import ExternalDefinition, RepositoryReference
from .exit_codes import ParseError

logger = logging.getLogger(__name__)

HEADER_SEPARATOR = " - "

_BLOCK_SPLIT = re.compile(r"\n[ \t]*\n")
_OPERATIVE_REVISION = re.compile(r"^-r\s*\S+\s+")


def _looks_like_url(token: str) -> bool:
    return "://" in token or token.startswith("^/")


def relative_dir(path: str, source_url: str) -> str:
    """
    Turn a listing header path into a path relative to the repository root.

    The source URL is stripped when it prefixes ``path``; the root itself
    becomes the empty string.
    """
    path = path.strip()
    base = source_url.rstrip("/")
    if base and (path == base or path.startswith(base + "/")):
        path = path[len(base):]

    if _looks_like_url(path):
        raise ParseError(f"Externals directory {path!r} is outside {source_url}")

    path = posixpath.normpath(path.strip("/") or ".")
    if path == ".":
        return ""
    if path == ".." or path.startswith("../"):
        raise ParseError(f"Externals directory {path!r} escapes the repository root")
    return path


def _drop_operative_revision(text: str, line: str) -> str:
    match = _OPERATIVE_REVISION.match(text)
    if not match:
        raise ParseError(f"Externals declaration without a URL: {line.strip()!r}", line)
    logger.warning(f"Ignoring pinned revision in external {line.strip()!r}; cloning latest")
    return text[match.end():].strip()


def parse_external_line(line: str) -> Tuple[str, str]:
    """
    Split one ``<localName> <externalUrl>`` declaration.

    Returns (local_name, url) with the local name reduced to its basename.
    Lines in the newer ``<url> <localName>`` order are accepted too, and
    an operative revision (``-r N``) in either order is dropped.
    """
    text = line.strip()

    # New-style operative revision: "-r 1234 url name"
    if text.startswith("-r"):
        text = _drop_operative_revision(text, line)

    parts = text.split(None, 1)
    if len(parts) < 2 or not parts[1].strip():
        raise ParseError(f"Externals declaration without a URL: {line.strip()!r}", line)

    name, url = parts[0], parts[1].strip()

    # Old-style operative revision: "name -r 1234 url"
    if url.startswith("-r"):
        url = _drop_operative_revision(url, line)

    if _looks_like_url(name) and not _looks_like_url(url):
        name, url = url, name

    if len(url.split()) != 1 or len(name.split()) != 1:
        raise ParseError(f"Externals declaration is not '<name> <url>': {line.strip()!r}", line)

    local_name = posixpath.basename(name.rstrip("/"))
    if local_name in ("", ".", ".."):
        raise ParseError(f"Externals declaration without a local name: {line.strip()!r}", line)

    return local_name, url


def parse_externals(raw_text: str, source_url: str) -> List[Tuple[str, List[Tuple[str, str]]]]:
    """
    Parse a recursive externals listing.

    Args:
        raw_text: Output of ``svn propget svn:externals -R <source_url>``
        source_url: URL the listing was produced for

    Returns:
        List of (parent_dir, [(local_name, url), ...]) in listing order

    Raises:
        ParseError: If a block has no ``<dir> - `` header or a declaration
            has no URL
    """
    text = raw_text.replace("\r\n", "\n").strip()
    if not text:
        return []

    externals = []
    for block in _BLOCK_SPLIT.split(text):
        if not block.strip():
            continue

        header, _, rest = block.strip().partition("\n")
        if HEADER_SEPARATOR not in header:
            raise ParseError(f"Externals block has no '<dir> - ' header: {header!r}", block)

        directory, first_line = header.split(HEADER_SEPARATOR, 1)
        parent_dir = relative_dir(directory, source_url)

        lines = [first_line] + rest.split("\n")
        repos = [parse_external_line(line) for line in lines if line.strip()]
        if not repos:
            raise ParseError(f"Externals block for {directory.strip()!r} declares nothing", block)

        externals.append((parent_dir, repos))

    return externals


def parse_external_definitions(raw_text: str, source_url: str) -> List[ExternalDefinition]:
    """Same as parse_externals, flattened into ExternalDefinition objects."""
    return [
        ExternalDefinition(
            parent_dir=parent_dir,
            local_name=local_name,
            source=RepositoryReference(url),
        )
        for parent_dir, repos in parse_externals(raw_text, source_url)
        for local_name, url in repos
    ]
