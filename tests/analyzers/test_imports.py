"""Tests for snippet import resolution."""

from __future__ import annotations

from techdocs.analyzers.imports import ImportResolver
from techdocs.analyzers.utils import declared_dependencies
from tests._fixtures.repo_builder import RepoBuilder


def _resolver(repo_builder: RepoBuilder):
    catalog = repo_builder.scan()
    return catalog, ImportResolver(catalog, declared_dependencies(catalog))


def test_javascript_specifiers(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "package.json": '{"dependencies": {"@tanstack/react-query": "5", "react": "18"}}',
            "src/lib/api.ts": "export const api = {};\n",
            "src/hooks/index.ts": "export {};\n",
            "src/app/page.tsx": "export default function Page() { return null; }\n",
        }
    )
    catalog, resolver = _resolver(repo_builder)
    page = catalog.get("src/app/page.tsx")

    assert resolver.unresolved(
        page,
        [
            "react",
            "react/jsx-runtime",
            "@tanstack/react-query",
            "../lib/api",
            "../hooks",
            "@/lib/api",
            "node:fs",
            "path",
        ],
    ) == []
    assert resolver.unresolved(page, ["lodash", "../lib/missing", "@scope/unknown"]) == [
        "lodash",
        "../lib/missing",
        "@scope/unknown",
    ]


def test_python_specifiers(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "pyproject.toml": '[project]\nname = "svc"\ndependencies = ["requests>=2", "python-dateutil"]\n',
            "svc/__init__.py": "",
            "svc/models.py": "VALUE = 1\n",
            "svc/api/routes.py": "from ..models import VALUE\n",
        }
    )
    catalog, resolver = _resolver(repo_builder)
    routes = catalog.get("svc/api/routes.py")

    for specifier in ("os.path", "__future__", "requests", "svc.models", "..models", "python_dateutil"):
        assert resolver.resolves(routes, specifier), specifier
    assert not resolver.resolves(routes, "numpy")
    assert not resolver.resolves(routes, "..missing")


def test_go_specifiers(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "go.mod": "module github.com/acme/shop\n\nrequire github.com/gin-gonic/gin v1.9.1\n",
            "cmd/main.go": "package main\n",
        }
    )
    catalog, resolver = _resolver(repo_builder)
    main = catalog.get("cmd/main.go")

    assert resolver.resolves(main, "net/http")
    assert resolver.resolves(main, "github.com/acme/shop/internal/orders")
    assert resolver.resolves(main, "github.com/gin-gonic/gin/binding")
    assert not resolver.resolves(main, "github.com/other/lib")


def test_languages_without_mapping_always_resolve(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"app/models/user.rb": "class User; end\n"})
    catalog, resolver = _resolver(repo_builder)

    assert resolver.resolves(catalog.get("app/models/user.rb"), "anything")
