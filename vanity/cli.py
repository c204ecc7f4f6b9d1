"""
cli.py

Responsibility: CLI entrypoint for vanity.

High-level flow (single invocation):
1) List the user's repositories via the GitHub REST API
2) Keep public, non-fork Go modules (root `go.mod`), skipping vanity itself
3) Clone each into a scratch directory, list its packages, resolve HEAD, render docs
4) Render index, repository and package pages into the output directory

This module should orchestrate behavior but keep concerns isolated:
- GitHub API: `github_client.py`
- git / go / doc2go: `toolchain.py`
- Rendering: `renderer.py`
"""

from __future__ import annotations

import argparse
import tempfile
from pathlib import Path

import requests

from vanity import toolchain
from vanity.config import Config, ConfigError, load_config, require_token
from vanity.github_client import GitHubClient, GitHubError
from vanity.logging import configure_logging, get_logger
from vanity.models import Repository, Site
from vanity.renderer import CSS_ASSET, RenderError, SiteRenderer, prepare_output_dir
from vanity.toolchain import ToolchainError

logger = get_logger("cli")

DEFAULT_OUTPUT_DIR = "build"


class CLIError(RuntimeError):
    pass


def _is_candidate(repo: Repository, config: Config) -> bool:
    if repo.private or repo.name == config.self_repo:
        return False
    if repo.fork and config.skip_forks:
        return False
    return True


def select_module_repos(client: GitHubClient, repos: list[Repository], config: Config) -> list[Repository]:
    """
    Filter repositories down to public Go modules, preserving API order.

    The contents probe is only issued for repositories that pass the cheap checks.
    """
    selected: list[Repository] = []
    for repo in repos:
        if not _is_candidate(repo, config):
            logger.debug("skipping %s", repo.name)
            continue
        if client.has_file(repo, config.manifest):
            selected.append(repo)
        else:
            logger.debug("skipping %s: no %s", repo.name, config.manifest)
    return selected


def fetch_repo(repo: Repository, scratch_root: str | Path, config: Config) -> None:
    """Clone a repository and fill in everything the templates need from it."""
    repo.normalize_description()
    logger.info("cloning %s", repo.name)
    toolchain.clone(repo, scratch_root, shallow=config.shallow_clone)
    toolchain.list_packages(repo)
    toolchain.resolve_commit(repo)
    if config.generate_docs:
        toolchain.generate_docs(repo, command=config.doc2go, theme=config.highlight_theme)


def build_site(
    out_dir: str | Path,
    *,
    client: GitHubClient,
    config: Config,
    renderer: SiteRenderer,
) -> Site:
    """
    Run the whole pipeline. Any failure aborts the build; pages already written stay on disk.
    """
    out = prepare_output_dir(out_dir)

    logger.info("listing repositories of %s", config.user)
    all_repos = client.list_user_repos(config.user)
    site = Site(select_module_repos(client, all_repos, config))
    logger.info("found %d Go modules out of %d repositories", len(site), len(all_repos))

    with tempfile.TemporaryDirectory(prefix="vanity") as scratch:
        for repo in site:
            fetch_repo(repo, scratch, config)

    logger.info("rendering site into %s", out)
    written = renderer.render_site(out, site)

    if config.generate_docs:
        css = toolchain.highlight_css(command=config.doc2go, theme=config.highlight_theme)
        written.append(renderer.write_asset(out, CSS_ASSET, css))

    logger.info("wrote %d files", len(written))
    return site


def _check_output_dir(out_dir: str | Path) -> None:
    # The output directory is deleted before every build.
    out = Path(out_dir).resolve()
    cwd = Path.cwd().resolve()
    if out == cwd or out in cwd.parents:
        raise CLIError(f"Refusing to build into {out}: it contains the working directory")


def build_cmd(args: argparse.Namespace) -> int:
    _check_output_dir(args.dir)
    token = require_token()
    config = load_config(args.config).with_overrides(
        generate_docs=False if args.no_docs else None,
        package_pages=False if args.no_pkg_pages else None,
        skip_forks=False if args.include_forks else None,
        shallow_clone=False if args.full_history else None,
    )
    renderer = SiteRenderer(config, templates_dir=args.templates_dir)
    client = GitHubClient(token, api_base=config.api_base)

    build_site(args.dir, client=client, config=config, renderer=renderer)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vanity",
        usage="%(prog)s [flags] [dir]",
        description="Build a vanity import site for a GitHub user's Go modules",
    )
    p.add_argument("dir", nargs="?", default=DEFAULT_OUTPUT_DIR, help="Output directory (default: build)")
    p.add_argument("--config", default=None, help="YAML config file (default: vanity.yml if present)")
    p.add_argument("--templates-dir", default=None, help="Directory with index/import/pkg templates")
    p.add_argument("--no-docs", action="store_true", help="Do not render package documentation with doc2go")
    p.add_argument("--no-pkg-pages", action="store_true", help="Do not render standalone package pages")
    p.add_argument("--include-forks", action="store_true", help="Also publish forked repositories")
    p.add_argument("--full-history", action="store_true", help="Clone full history instead of --depth=1")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.set_defaults(func=build_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=bool(args.verbose))
    try:
        return int(args.func(args))
    except (
        CLIError,
        ConfigError,
        GitHubError,
        ToolchainError,
        RenderError,
        requests.RequestException,
        OSError,
    ) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
