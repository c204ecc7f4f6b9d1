"""
renderer.py

Responsibility: Deterministically render the site pages into an output directory.

Rules:
- Templates come from the bundled `vanity/templates` directory unless a templates
  directory is supplied.
- HTML is autoescaped; only doc2go output (already `Markup`) is embedded verbatim.
- Pages are written as UTF-8 with LF newlines so identical input gives identical bytes.

This module intentionally does NOT know about GitHub, git, or CLI parsing.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from jinja2 import (
    BaseLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)

from vanity.config import Config
from vanity.logging import get_logger
from vanity.models import Package, Repository, Site

logger = get_logger("renderer")

INDEX_TEMPLATE = "index.html"
IMPORT_TEMPLATE = "import.html"
PKG_TEMPLATE = "pkg.html"
CSS_ASSET = "doc2go.css"


class RenderError(RuntimeError):
    pass


def contains(s: str, substr: str) -> bool:
    return substr in s


def has_one_pkg(repo: Repository, module_prefix: str) -> bool:
    """
    True when the repository holds exactly one package and it sits at the module root.
    """
    if len(repo.packages) != 1:
        return False
    return repo.packages[0].import_path == f"{module_prefix}/{repo.name}"


def commit(repo: Repository) -> str:
    return repo.commit or "HEAD"


def prepare_output_dir(out_dir: str | Path) -> Path:
    """Remove any previous build and recreate an empty output directory."""
    out = Path(out_dir)
    if out.is_dir() and not out.is_symlink():
        shutil.rmtree(out)
    elif out.exists() or out.is_symlink():
        out.unlink()
    out.mkdir(parents=True)
    return out


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8", newline="\n")
    return path


class SiteRenderer:
    def __init__(self, config: Config, *, templates_dir: str | Path | None = None) -> None:
        loader: BaseLoader
        if templates_dir is not None:
            tpl_dir = Path(templates_dir).resolve()
            if not tpl_dir.is_dir():
                raise RenderError(f"Template directory not found: {tpl_dir}")
            loader = FileSystemLoader(str(tpl_dir))
        else:
            loader = PackageLoader("vanity", "templates")

        self._config = config
        self._env = Environment(
            loader=loader,
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.globals.update(
            contains=contains,
            has_one_pkg=lambda repo: has_one_pkg(repo, config.module_prefix),
            commit=commit,
            module_prefix=config.module_prefix,
            user=config.user,
            docs=config.generate_docs,
            package_pages=config.package_pages,
        )

    def render(self, template_name: str, **context: Any) -> str:
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except TemplateError as e:
            raise RenderError(f"Failed rendering template: {template_name}: {e}") from e

    def write_index(self, out_dir: Path, site: Site) -> Path:
        return _write(out_dir / "index.html", self.render(INDEX_TEMPLATE, repos=site.repos))

    def write_repo(self, out_dir: Path, repo: Repository) -> Path:
        return _write(out_dir / f"{repo.name}.html", self.render(IMPORT_TEMPLATE, repo=repo))

    def write_package(
        self, out_dir: Path, pkg: Package, repo: Repository, *, published: frozenset[str] = frozenset()
    ) -> Path:
        """`published` holds the paths, relative to the site root, of every page this build writes."""
        path = out_dir / f"{pkg.base_path}.html"
        return _write(path, self.render(PKG_TEMPLATE, pkg=pkg, repo=repo, published=published))

    def published_paths(self, site: Site) -> frozenset[str]:
        paths = {repo.name for repo in site}
        if self._config.package_pages:
            paths.update(pkg.base_path for repo in site for pkg in repo.packages if pkg.has_own_page())
        return frozenset(paths)

    def write_asset(self, out_dir: Path, name: str, text: str) -> Path:
        return _write(out_dir / name, text)

    def render_site(self, out_dir: str | Path, site: Site) -> list[Path]:
        """
        Render the index, every repository page and, when enabled, the package pages.

        The output directory must already exist (see `prepare_output_dir`).
        """
        out = Path(out_dir)
        for repo in site:
            for pkg in repo.packages:
                pkg.resolve_paths(self._config.module_prefix)
        published = self.published_paths(site)

        written = [self.write_index(out, site)]
        for repo in site:
            for pkg in repo.packages:
                if not self._config.package_pages or not pkg.has_own_page():
                    continue
                logger.debug("rendering package page %s", pkg.base_path)
                written.append(self.write_package(out, pkg, site.repo_of(pkg), published=published))
            written.append(self.write_repo(out, repo))
        return written
