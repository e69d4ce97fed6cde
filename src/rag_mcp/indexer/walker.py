"""File walker for discovering indexable files in a project."""

import os
from collections.abc import Iterator
from pathlib import Path

from rag_mcp.indexer.filters import (
    DOCS_ROOT,
    INSTRUCTIONS_FILE,
    SKILLS_ROOT,
    CodeFilter,
    is_doc_path,
    is_skill_path,
)
from rag_mcp.indexer.models import SourceFile


def _source_file(project_root: Path, file_path: Path, domain: str) -> SourceFile:
    return SourceFile(
        path=file_path,
        relative_path=file_path.relative_to(project_root).as_posix(),
        domain=domain,
        extension=file_path.suffix,
    )


def walk_code(project_root: Path, code_filter: CodeFilter) -> Iterator[SourceFile]:
    """
    Walk the project tree and yield every source file the filter accepts.

    Hidden files and directories are never visited, and ignored directories
    are pruned before descending into them.
    """
    if not project_root.is_dir():
        return

    for dirpath, dirnames, filenames in os.walk(project_root):
        current = Path(dirpath)
        relative_dir = current.relative_to(project_root).as_posix()

        kept = []
        for name in sorted(dirnames):
            if name.startswith("."):
                continue
            child = name if relative_dir == "." else f"{relative_dir}/{name}"
            if code_filter.rules.ignores_dir(child):
                continue
            kept.append(name)
        dirnames[:] = kept

        for name in sorted(filenames):
            if name.startswith("."):
                continue
            file_path = current / name
            if not file_path.is_file():
                continue
            source = _source_file(project_root, file_path, "code")
            if code_filter.accept(source.relative_path):
                yield source


def walk_docs(project_root: Path) -> Iterator[SourceFile]:
    """
    Yield documentation files.

    Layout expected:
    <project>/
    ├── CLAUDE.md
    └── docs/
        ├── planning/PRP-001-foo.md
        └── architecture/ADR-001-bar.md
    """
    instructions = project_root / INSTRUCTIONS_FILE
    if instructions.is_file():
        yield _source_file(project_root, instructions, "docs")

    docs_root = project_root / DOCS_ROOT
    if not docs_root.is_dir():
        return

    for file_path in sorted(docs_root.rglob("*.md")):
        if not file_path.is_file():
            continue
        relative_parts = file_path.relative_to(docs_root).parts
        if any(part.startswith(".") for part in relative_parts):
            continue
        source = _source_file(project_root, file_path, "docs")
        if is_doc_path(source.relative_path):
            yield source


def walk_skills(project_root: Path) -> Iterator[SourceFile]:
    """Yield skill files (markdown directly under .claude/skills/)."""
    skills_root = project_root / SKILLS_ROOT
    if not skills_root.is_dir():
        return

    for file_path in sorted(skills_root.glob("*.md")):
        if file_path.name.startswith(".") or not file_path.is_file():
            continue
        source = _source_file(project_root, file_path, "skills")
        if is_skill_path(source.relative_path):
            yield source
