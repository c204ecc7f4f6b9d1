"""
models.py

Responsibility: In-memory model of the site: repositories from the GitHub API and the
Go packages `go list` reports for them.

Records are created from decoded JSON and enriched in place by later build stages.
A package refers to its repository by name only; lookups go through `Site`.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Any, Iterator

from markupsafe import Markup

INTERNAL_SEGMENT = "internal"


@dataclass
class Package:
    """The bits of `go list -json` output the site needs."""

    name: str
    import_path: str
    doc: str = ""
    go_files: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    repo_name: str = ""
    full_doc: Markup | None = None
    base_path: str = ""
    src_path: str = ""

    @classmethod
    def from_go_list(cls, data: dict[str, Any], *, repo_name: str) -> Package:
        if not isinstance(data, dict) or not data.get("ImportPath"):
            raise ValueError("go list record has no ImportPath")
        return cls(
            name=str(data.get("Name") or ""),
            import_path=str(data["ImportPath"]),
            doc=str(data.get("Doc") or ""),
            go_files=[str(f) for f in data.get("GoFiles") or []],
            imports=[str(i) for i in data.get("Imports") or []],
            repo_name=repo_name,
        )

    def resolve_paths(self, module_prefix: str) -> None:
        """Derive `base_path` and `src_path` from the import path."""
        self.base_path = self.import_path.removeprefix(module_prefix.rstrip("/") + "/")
        self.src_path = self.base_path.removeprefix(self.repo_name + "/")
        # A single source file is linked to directly.
        if len(self.go_files) == 1:
            self.src_path = posixpath.join(self.src_path, self.go_files[0])

    def has_own_page(self) -> bool:
        """Whether the package is published as a standalone page."""
        return self.base_path != self.repo_name and INTERNAL_SEGMENT not in self.base_path


@dataclass
class Repository:
    """A repository as returned by `GET /users/{user}/repos`, enriched by the build."""

    name: str
    url: str
    clone_url: str
    private: bool = False
    description: str = ""
    archived: bool = False
    fork: bool = False
    dir: str = ""
    commit: str = ""
    packages: list[Package] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Repository:
        try:
            return cls(
                name=str(data["name"]),
                url=str(data["url"]),
                clone_url=str(data["clone_url"]),
                private=bool(data.get("private", False)),
                description=str(data.get("description") or ""),
                archived=bool(data.get("archived", False)),
                fork=bool(data.get("fork", False)),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"repository record is missing a field: {e}") from e

    def normalize_description(self) -> None:
        if not self.description.endswith("."):
            self.description += "."

    def add_package(self, pkg: Package) -> None:
        pkg.repo_name = self.name
        self.packages.append(pkg)


@dataclass(frozen=True)
class File:
    """An entry of `GET /repos/{owner}/{repo}/contents`."""

    path: str


class Site:
    """Repositories kept for the site, in API order, addressable by name."""

    def __init__(self, repos: list[Repository] | None = None) -> None:
        self.repos: list[Repository] = list(repos or [])

    def __iter__(self) -> Iterator[Repository]:
        return iter(self.repos)

    def __len__(self) -> int:
        return len(self.repos)

    def repo(self, name: str) -> Repository:
        for r in self.repos:
            if r.name == name:
                return r
        raise KeyError(name)

    def repo_of(self, pkg: Package) -> Repository:
        return self.repo(pkg.repo_name)
