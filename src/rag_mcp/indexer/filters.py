"""Eligibility rules deciding which project files get indexed."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

# Source code extensions indexed into the "code" collection
CODE_EXTENSIONS = frozenset(
    {
        ".ts",
        ".tsx",
        ".js",
        ".jsx",
        ".py",
        ".pyi",
        ".go",
        ".rs",
        ".java",
        ".kt",
        ".rb",
        ".php",
        ".cs",
        ".swift",
        ".vue",
        ".svelte",
    }
)

# Always ignored, on top of the project's own .gitignore
DEFAULT_IGNORES = (
    "node_modules",
    ".git",
    "dist",
    "build",
    ".claude/rag-db",
    "*.lock",
    "package-lock.json",
    "*.min.js",
    "*.map",
)

IGNORE_FILE = ".gitignore"

# Documentation sources
DOCS_ROOT = "docs"
INSTRUCTIONS_FILE = "CLAUDE.md"

# Skill sources
SKILLS_ROOT = ".claude/skills"

MARKDOWN_EXTENSIONS = frozenset({".md"})


def _glob_to_regex(pattern: str) -> str:
    """Translate a gitignore glob into a regex body (no anchors)."""
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern[i : i + 2] == "**":
                if pattern[i + 2 : i + 3] == "/":
                    out.append("(?:.*/)?")
                    i += 3
                else:
                    out.append(".*")
                    i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append("[" + body.replace("\\", "\\\\") + "]")
                i = end + 1
                continue
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


@dataclass(frozen=True)
class IgnoreRule:
    """One compiled line of a gitignore file."""

    pattern: str
    regex: re.Pattern
    negated: bool
    dir_only: bool
    anchored: bool

    @classmethod
    def parse(cls, line: str) -> "IgnoreRule | None":
        """Compile a gitignore line, or return None for blanks and comments."""
        text = line.rstrip("\n").rstrip()
        if not text or text.startswith("#"):
            return None

        negated = text.startswith("!")
        if negated:
            text = text[1:]
        elif text.startswith("\\"):
            text = text[1:]

        dir_only = text.endswith("/")
        text = text.rstrip("/")
        if not text:
            return None

        # A slash anywhere but the end anchors the pattern to the root
        anchored = "/" in text
        text = text.lstrip("/")

        return cls(
            pattern=line.strip(),
            regex=re.compile(_glob_to_regex(text) + r"\Z"),
            negated=negated,
            dir_only=dir_only,
            anchored=anchored,
        )

    def matches(self, path: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        if self.anchored:
            return self.regex.match(path) is not None
        return self.regex.match(PurePosixPath(path).name) is not None


class IgnoreRules:
    """An ordered set of gitignore rules where the last matching rule wins."""

    def __init__(self, rules: list[IgnoreRule] | None = None):
        self.rules: list[IgnoreRule] = list(rules or [])

    @classmethod
    def from_lines(cls, lines) -> "IgnoreRules":
        rules = cls()
        rules.add(lines)
        return rules

    def add(self, lines) -> None:
        self.rules.extend(
            rule for rule in (IgnoreRule.parse(line) for line in lines) if rule
        )

    def _evaluate(self, path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(path, is_dir):
                ignored = not rule.negated
        return ignored

    def ignores(self, relative_path: str) -> bool:
        """
        Check whether a project-relative file path is ignored.

        A path is ignored when any of its parent directories is ignored
        (files inside an excluded directory cannot be re-included) or
        when the file itself is.
        """
        parts = PurePosixPath(relative_path).parts
        for depth in range(1, len(parts)):
            if self._evaluate("/".join(parts[:depth]), is_dir=True):
                return True
        return self._evaluate("/".join(parts), is_dir=False)

    def ignores_dir(self, relative_path: str) -> bool:
        """Check whether a directory (or any of its parents) is ignored."""
        parts = PurePosixPath(relative_path).parts
        return any(
            self._evaluate("/".join(parts[:depth]), is_dir=True)
            for depth in range(1, len(parts) + 1)
        )


def load_ignore_rules(project_root: Path) -> IgnoreRules:
    """
    Build the ignore set for a project.

    The union of the project's .gitignore (if present) and DEFAULT_IGNORES.
    """
    rules = IgnoreRules()
    ignore_path = project_root / IGNORE_FILE
    if ignore_path.is_file():
        try:
            rules.add(ignore_path.read_text(encoding="utf-8").splitlines())
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read %s: %s", ignore_path, e)
    rules.add(DEFAULT_IGNORES)
    return rules


def to_posix(relative_path: str) -> str:
    return Path(relative_path).as_posix()


class CodeFilter:
    """Accepts source files with a known extension that are not ignored."""

    def __init__(self, rules: IgnoreRules, extensions=CODE_EXTENSIONS):
        self.rules = rules
        self.extensions = frozenset(extensions)

    @classmethod
    def for_project(cls, project_root: Path) -> "CodeFilter":
        return cls(load_ignore_rules(project_root))

    def accept(self, relative_path: str) -> bool:
        path = to_posix(relative_path)
        if PurePosixPath(path).suffix.lower() not in self.extensions:
            return False
        return not self.rules.ignores(path)


def is_doc_path(relative_path: str) -> bool:
    """Documentation lives in the instructions file and under docs/."""
    path = PurePosixPath(to_posix(relative_path))
    if str(path) == INSTRUCTIONS_FILE:
        return True
    return (
        len(path.parts) > 1
        and path.parts[0] == DOCS_ROOT
        and path.suffix.lower() in MARKDOWN_EXTENSIONS
    )


def is_skill_path(relative_path: str) -> bool:
    """Skills are markdown files directly inside the skills root."""
    path = PurePosixPath(to_posix(relative_path))
    return (
        str(path.parent) == SKILLS_ROOT
        and path.suffix.lower() in MARKDOWN_EXTENSIONS
    )
