"""Site rendering tests."""

from __future__ import annotations

import re
from pathlib import Path

import pytest
from markupsafe import Markup

from tests._fixtures.fakes import make_package, repo_json
from vanity.config import Config
from vanity.models import Repository, Site
from vanity.renderer import RenderError, SiteRenderer, contains, has_one_pkg, prepare_output_dir

PREFIX = "go.astrophena.name"


def _repo(name: str, *import_paths: str) -> Repository:
    repo = Repository.from_api(repo_json(name))
    repo.commit = "abc1234"
    for path in import_paths:
        repo.add_package(make_package(path, "x.go"))
    return repo


def test_prepare_output_dir_clears_previous_build(tmp_path: Path) -> None:
    out = tmp_path / "build"
    (out / "stale").mkdir(parents=True)
    (out / "stale" / "old.html").write_text("old", encoding="utf-8")

    assert prepare_output_dir(out) == out
    assert out.is_dir()
    assert list(out.iterdir()) == []


def test_contains() -> None:
    assert contains("go.astrophena.name/foo", "astrophena")
    assert not contains("example.com/foo", "astrophena")


def test_has_one_pkg() -> None:
    assert has_one_pkg(_repo("foo", f"{PREFIX}/foo"), PREFIX)
    assert not has_one_pkg(_repo("foo", f"{PREFIX}/foo/cmd"), PREFIX)
    assert not has_one_pkg(_repo("foo", f"{PREFIX}/foo", f"{PREFIX}/foo/cli"), PREFIX)
    assert not has_one_pkg(_repo("foo"), PREFIX)


def test_render_site_writes_expected_tree(tmp_path: Path, config: Config) -> None:
    site = Site(
        [
            _repo("foo", f"{PREFIX}/foo", f"{PREFIX}/foo/cli", f"{PREFIX}/foo/internal/x"),
            _repo("bar", f"{PREFIX}/bar/web/static"),
        ]
    )

    written = SiteRenderer(config).render_site(tmp_path, site)

    names = sorted(p.relative_to(tmp_path).as_posix() for p in written)
    assert names == ["bar.html", "bar/web/static.html", "foo.html", "foo/cli.html", "index.html"]
    assert not (tmp_path / "foo" / "internal").exists()


def test_package_pages_can_be_disabled(tmp_path: Path) -> None:
    site = Site([_repo("foo", f"{PREFIX}/foo", f"{PREFIX}/foo/cli")])

    SiteRenderer(Config(package_pages=False, generate_docs=False)).render_site(tmp_path, site)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["foo.html", "index.html"]


def test_import_page_has_go_import_meta(tmp_path: Path, config: Config) -> None:
    repo = _repo("foo", f"{PREFIX}/foo")
    SiteRenderer(config).render_site(tmp_path, Site([repo]))

    html = (tmp_path / "foo.html").read_text(encoding="utf-8")
    assert (
        '<meta name="go-import" content="go.astrophena.name/foo git https://github.com/astrophena/foo.git">'
        in html
    )
    assert "tree/abc1234" in html


def test_index_escapes_descriptions(tmp_path: Path, config: Config) -> None:
    repo = _repo("foo")
    repo.description = "Parses <html> & more."

    SiteRenderer(config).render_site(tmp_path, Site([repo]))

    html = (tmp_path / "index.html").read_text(encoding="utf-8")
    assert "Parses &lt;html&gt; &amp; more." in html
    assert 'href="/foo"' in html


def test_package_page_embeds_trusted_docs_verbatim(tmp_path: Path, config: Config) -> None:
    repo = _repo("foo", f"{PREFIX}/foo", f"{PREFIX}/foo/cli")
    cli = repo.packages[1]
    cli.full_doc = Markup('<div class="doc">Usage &amp; flags</div>')
    cli.imports = ["fmt", f"{PREFIX}/foo/internal/x"]

    SiteRenderer(config).render_site(tmp_path, Site([repo]))

    html = (tmp_path / "foo" / "cli.html").read_text(encoding="utf-8")
    assert '<div class="doc">Usage &amp; flags</div>' in html
    assert "blob/abc1234/cli/x.go" in html
    assert "<li>go.astrophena.name/foo/internal/x</li>" in html
    assert 'href="/foo/internal/x"' not in html
    assert "<li>fmt</li>" in html


def test_missing_templates_dir_is_an_error(tmp_path: Path, config: Config) -> None:
    with pytest.raises(RenderError, match="Template directory not found"):
        SiteRenderer(config, templates_dir=tmp_path / "nope")


def test_custom_templates_dir(tmp_path: Path, config: Config) -> None:
    tpl = tmp_path / "tpl"
    tpl.mkdir()
    (tpl / "index.html").write_text("{{ repos|map(attribute='name')|join(';') }}\n", encoding="utf-8")
    (tpl / "import.html").write_text("{{ repo.name }}@{{ commit(repo) }}\n", encoding="utf-8")
    (tpl / "pkg.html").write_text("{{ pkg.import_path }}\n", encoding="utf-8")
    out = tmp_path / "out"
    out.mkdir()

    SiteRenderer(config, templates_dir=tpl).render_site(out, Site([_repo("foo", f"{PREFIX}/foo")]))

    assert (out / "index.html").read_text(encoding="utf-8") == "foo\n"
    assert (out / "foo.html").read_text(encoding="utf-8") == "foo@abc1234\n"


def test_template_errors_become_render_errors(tmp_path: Path, config: Config) -> None:
    tpl = tmp_path / "tpl"
    tpl.mkdir()
    (tpl / "index.html").write_text("{{ no_such_variable }}", encoding="utf-8")

    with pytest.raises(RenderError, match="index.html"):
        SiteRenderer(config, templates_dir=tpl).render_site(tmp_path, Site([]))


def test_package_imports_link_only_to_written_pages(tmp_path: Path, config: Config) -> None:
    foo = _repo("foo", f"{PREFIX}/foo", f"{PREFIX}/foo/cli", f"{PREFIX}/foo/web")
    bar = _repo("bar", f"{PREFIX}/bar")
    foo.packages[1].imports = [
        f"{PREFIX}/foo/web",
        f"{PREFIX}/bar",
        f"{PREFIX}/private/thing",
        f"{PREFIX}/foo/internal/x",
    ]

    written = SiteRenderer(config).render_site(tmp_path, Site([foo, bar]))

    html = (tmp_path / "foo" / "cli.html").read_text(encoding="utf-8")
    local = {h for h in re.findall(r'href="([^"]+)"', html) if h.startswith("/")}
    pages = {"/" + p.relative_to(tmp_path).as_posix().removesuffix(".html") for p in written}
    assert '<a href="/foo/web">go.astrophena.name/foo/web</a>' in html
    assert '<a href="/bar">go.astrophena.name/bar</a>' in html
    assert "<li>go.astrophena.name/private/thing</li>" in html
    assert "<li>go.astrophena.name/foo/internal/x</li>" in html
    assert local <= pages | {"/"}


def test_package_imports_without_package_pages_link_module_roots_only(tmp_path: Path) -> None:
    foo = _repo("foo", f"{PREFIX}/foo", f"{PREFIX}/foo/cli")
    foo.packages[1].imports = [f"{PREFIX}/foo", f"{PREFIX}/foo/cli"]
    renderer = SiteRenderer(Config(package_pages=False, generate_docs=False))
    for pkg in foo.packages:
        pkg.resolve_paths(PREFIX)

    assert renderer.published_paths(Site([foo])) == frozenset({"foo"})

    renderer.write_package(tmp_path, foo.packages[1], foo, published=renderer.published_paths(Site([foo])))
    html = (tmp_path / "foo" / "cli.html").read_text(encoding="utf-8")
    assert '<a href="/foo">go.astrophena.name/foo</a>' in html
    assert "<li>go.astrophena.name/foo/cli</li>" in html


def test_prepare_output_dir_replaces_a_regular_file(tmp_path: Path) -> None:
    out = tmp_path / "build"
    out.write_text("not a directory", encoding="utf-8")

    assert prepare_output_dir(out) == out
    assert out.is_dir()
    assert list(out.iterdir()) == []
