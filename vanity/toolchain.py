"""
toolchain.py

Responsibility: Run the external tools the build depends on.

- git: clone a repository, resolve its short HEAD commit
- go: list the packages of a cloned module (`go list -json ./...`)
- doc2go: render embeddable package documentation and the highlight stylesheet

Every invocation is synchronous; a non-zero exit raises ToolchainError.
"""

from __future__ import annotations

import json
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Iterator, Sequence

from markupsafe import Markup

from vanity.logging import get_logger
from vanity.models import Package, Repository

logger = get_logger("toolchain")


class ToolchainError(RuntimeError):
    pass


def _run(cmd: Sequence[str], *, cwd: str | Path | None = None) -> str:
    """
    Run a subprocess command and return its stdout, raising a ToolchainError on failure.
    """
    logger.debug("running %s (cwd=%s)", " ".join(cmd), cwd or ".")
    try:
        proc = subprocess.run(
            list(cmd),
            cwd=str(cwd) if cwd is not None else None,
            check=True,
            capture_output=True,
            encoding="utf-8",
        )
    except FileNotFoundError as e:
        raise ToolchainError(f"Command not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        raise ToolchainError(f"Command failed: {' '.join(cmd)}: exit status {e.returncode}\n\n{e.stderr}") from e
    except UnicodeDecodeError as e:
        raise ToolchainError(f"Command printed non-UTF-8 output: {' '.join(cmd)}: {e}") from e
    return proc.stdout


def _iter_json_values(text: str) -> Iterator[Any]:
    """
    Decode a stream of concatenated JSON values, as `go list -json` prints them.
    """
    decoder = json.JSONDecoder()
    idx = 0
    end = len(text)
    while True:
        while idx < end and text[idx].isspace():
            idx += 1
        if idx >= end:
            return
        value, idx = decoder.raw_decode(text, idx)
        yield value


def clone(repo: Repository, scratch_root: str | Path, *, shallow: bool = True) -> None:
    """Clone `repo` into `<scratch_root>/<repo.name>` and record the directory on it."""
    dest = Path(scratch_root) / repo.name
    cmd = ["git", "clone"]
    if shallow:
        cmd.append("--depth=1")
    cmd += [repo.clone_url, str(dest)]
    _run(cmd)
    repo.dir = str(dest)


def resolve_commit(repo: Repository) -> str:
    """Record and return the short hash of the clone's HEAD."""
    repo.commit = _run(["git", "rev-parse", "--short", "HEAD"], cwd=repo.dir).strip()
    return repo.commit


def list_packages(repo: Repository) -> list[Package]:
    """
    Append every package of the cloned module to `repo.packages`.
    """
    try:
        out = _run(["go", "list", "-json", "./..."], cwd=repo.dir)
    except ToolchainError as e:
        stderr = ""
        if isinstance(e.__cause__, subprocess.CalledProcessError):
            stderr = e.__cause__.stderr or ""
        raise ToolchainError(f"go list failed for repo {repo.name}: {e.__cause__} (it returned {stderr!r})") from e

    found: list[Package] = []
    try:
        for record in _iter_json_values(out):
            found.append(Package.from_go_list(record, repo_name=repo.name))
    except ValueError as e:
        raise ToolchainError(f"go list returned malformed output for repo {repo.name}: {e}") from e

    for pkg in found:
        repo.add_package(pkg)
    logger.debug("%s: %d packages", repo.name, len(found))
    return found


def generate_docs(repo: Repository, *, command: Sequence[str], theme: str) -> None:
    """
    Render embeddable documentation with doc2go and attach it to each package.

    Packages doc2go produced no page for keep `full_doc` unset.
    """
    with tempfile.TemporaryDirectory(prefix="vanity-doc2go") as tmpdir:
        _run(
            [*command, "-highlight", f"classes:{theme}", "-embed", "-out", tmpdir, "./..."],
            cwd=repo.dir,
        )
        for pkg in repo.packages:
            docfile = Path(tmpdir) / pkg.import_path / "index.html"
            if not docfile.is_file():
                logger.debug("%s: no documentation generated", pkg.import_path)
                continue
            try:
                pkg.full_doc = Markup(docfile.read_text(encoding="utf-8"))
            except UnicodeDecodeError as e:
                raise ToolchainError(f"doc2go output for {pkg.import_path} is not UTF-8: {e}") from e


def highlight_css(*, command: Sequence[str], theme: str) -> str:
    """Return the stylesheet doc2go emits for the highlight theme."""
    return _run([*command, "-highlight", theme, "-highlight-print-css"])
