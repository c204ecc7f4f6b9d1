"""
vanity package

This package builds a static "vanity import" site for a GitHub user's Go modules.

Key responsibilities are split across modules:
- `config.py`: load the optional YAML configuration into a typed model
- `github_client.py`: isolated GitHub REST API interactions (repo listing / contents)
- `toolchain.py`: git, `go list` and doc2go subprocess invocations
- `renderer.py`: Jinja2 rendering of the index, import and package pages
- `cli.py`: CLI entrypoint and orchestration (list -> clone -> introspect -> render)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
