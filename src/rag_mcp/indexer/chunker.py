"""Chunking logic for code (fixed line windows) and markdown (by headings)."""

import math
import re
from pathlib import PurePosixPath
from typing import Any

from rag_mcp.indexer.models import Chunk
from rag_mcp.indexer.parser import infer_doc_type, parse_frontmatter

# Fixed window for code, in lines
WINDOW_LINES = 100
OVERLAP_LINES = 20

# Files larger than this (in characters) are not indexed at all
MAX_FILE_CHARS = 100_000

# Level 1-3 markdown headings; the capture group keeps them in re.split output
HEADING_PATTERN = re.compile(r"^(#{1,3}[ \t]+.+)$", re.MULTILINE)

ID_PREFIXES = {"code": "code", "docs": "doc", "skills": "skill"}


def chunk_id(domain: str, path: str, chunk_index: int) -> str:
    """Deterministic chunk id, stable across reindexing of an unchanged file."""
    return f"{ID_PREFIXES[domain]}_{path}_chunk_{chunk_index}"


def chunk_code(
    content: str,
    path: str,
    window: int = WINDOW_LINES,
    overlap: int = OVERLAP_LINES,
) -> list[Chunk]:
    """
    Chunk source code into overlapping windows of lines.

    Windows start every ``window - overlap`` lines. Windows that are blank
    after trimming are skipped, and files over MAX_FILE_CHARS produce nothing.
    """
    if overlap >= window:
        raise ValueError(f"Overlap ({overlap}) must be smaller than window ({window})")
    if len(content) > MAX_FILE_CHARS:
        return []

    stride = window - overlap
    lines = content.splitlines()
    total_chunks = math.ceil(len(lines) / stride)
    extension = PurePosixPath(path).suffix

    chunks: list[Chunk] = []
    for start in range(0, len(lines), stride):
        text = "\n".join(lines[start : start + window])
        if not text.strip():
            continue

        index = start // stride
        chunks.append(
            Chunk(
                id=chunk_id("code", path, index),
                content=text,
                metadata={
                    "source": "codebase",
                    "type": "code",
                    "domain": "code",
                    "path": path,
                    "extension": extension,
                    "start_line": start + 1,
                    "end_line": min(start + window, len(lines)),
                    "chunk_index": index,
                    "total_chunks": total_chunks,
                },
            )
        )

    return chunks


def split_sections(content: str) -> list[tuple[str, str]]:
    """
    Split markdown into (heading, text) pairs on level 1-3 headings.

    Text before the first heading belongs to an empty heading. Sections whose
    text is blank are dropped.
    """
    pieces = HEADING_PATTERN.split(content)

    sections: list[tuple[str, str]] = []
    current_heading = ""
    current_text = ""

    # re.split with one capture group alternates text, heading, text, ...
    for position, piece in enumerate(pieces):
        if position % 2 == 1:
            if current_text.strip():
                sections.append((current_heading, current_text))
            current_heading = piece
            current_text = ""
        else:
            current_text += piece

    if current_text.strip():
        sections.append((current_heading, current_text))

    return sections


def heading_title(heading: str) -> str:
    """Strip the leading # markers from a heading line."""
    return re.sub(r"^#+\s*", "", heading).strip()


def chunk_markdown(
    content: str,
    path: str,
    domain: str = "docs",
    doc_type: str | None = None,
    extra_metadata: dict[str, Any] | None = None,
) -> list[Chunk]:
    """
    Chunk a markdown document by headings.

    Runs in two passes: chunks are collected first, then total_chunks is
    stamped onto every chunk once the final count is known.
    """
    if domain == "docs":
        source = "documentation"
        doc_type = doc_type or infer_doc_type(path)
    else:
        source = domain
        doc_type = doc_type or "skill"

    chunks: list[Chunk] = []
    for heading, text in split_sections(content):
        index = len(chunks)
        metadata: dict[str, Any] = {
            "source": source,
            "type": doc_type,
            "domain": domain,
            "path": path,
            "section": heading_title(heading),
            "chunk_index": index,
            "total_chunks": 0,
        }
        if extra_metadata:
            metadata.update(extra_metadata)
        chunks.append(
            Chunk(
                id=chunk_id(domain, path, index),
                content=f"{heading}\n{text}".strip(),
                metadata=metadata,
            )
        )

    total = len(chunks)
    for chunk in chunks:
        chunk.metadata["total_chunks"] = total

    return chunks


def chunk_skill(content: str, path: str) -> list[Chunk]:
    """
    Chunk a skill file.

    The frontmatter name and description are copied onto every chunk of
    the body.
    """
    frontmatter, body = parse_frontmatter(content, path)
    extra = {
        "skill_name": frontmatter.name or PurePosixPath(path).stem,
        "skill_description": frontmatter.description or "",
    }
    return chunk_markdown(body, path, domain="skills", extra_metadata=extra)


def chunk_file(content: str, path: str, domain: str) -> list[Chunk]:
    """Pick the chunking algorithm for a file's domain."""
    if domain == "code":
        return chunk_code(content, path)
    if domain == "docs":
        return chunk_markdown(content, path, domain="docs")
    if domain == "skills":
        return chunk_skill(content, path)
    raise ValueError(f"Unknown domain: {domain}")
