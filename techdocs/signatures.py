"""Static marker tables mapping ecosystem markers to named capabilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

# Configuration section name -> capability category prefix.
CATEGORY_PREFIXES: Dict[str, str] = {
    "frameworks": "framework",
    "authProviders": "auth",
    "databases": "database",
    "stateManagement": "state",
    "styling": "styling",
}

CATEGORY_DOMAINS: Dict[str, str] = {
    "framework": "components",
    "styling": "components",
    "auth": "authentication",
    "database": "database",
    "state": "state",
}

CONFIGURATION_CATEGORY = "configuration"

DEFAULT_SIGNATURES: Dict[str, Dict[str, List[str]]] = {
    "frameworks": {
        "react": ["react", "react-dom"],
        "next": ["next"],
        "vue": ["vue"],
        "nuxt": ["nuxt"],
        "angular": ["@angular/core"],
        "svelte": ["svelte", "@sveltejs/kit"],
        "express": ["express"],
        "nestjs": ["@nestjs/core"],
        "fastapi": ["fastapi"],
        "django": ["django"],
        "flask": ["flask"],
        "gin": ["github.com/gin-gonic/gin"],
        "echo": ["github.com/labstack/echo"],
        "spring": ["org.springframework.boot:spring-boot-starter-web", "spring-boot-starter"],
        "rails": ["rails"],
        "laravel": ["laravel/framework"],
        "actix": ["actix-web"],
    },
    "authProviders": {
        "supabase": ["@supabase/supabase-js", "@supabase/auth-helpers-nextjs", "@supabase/ssr", "supabase"],
        "nextauth": ["next-auth", "@auth/core"],
        "clerk": ["@clerk/nextjs", "@clerk/clerk-react", "@clerk/clerk-sdk-node"],
        "auth0": ["@auth0/auth0-react", "@auth0/nextjs-auth0", "auth0-python"],
        "firebase": ["firebase", "firebase-admin"],
        "passport": ["passport"],
        "jwt": ["jsonwebtoken", "jose", "pyjwt", "python-jose"],
        "django-allauth": ["django-allauth"],
        "flask-login": ["flask-login"],
    },
    "databases": {
        "postgres": ["pg", "postgres", "psycopg2", "psycopg2-binary", "psycopg", "asyncpg", "github.com/lib/pq"],
        "mysql": ["mysql", "mysql2", "pymysql", "mysqlclient"],
        "sqlite": ["sqlite3", "better-sqlite3", "aiosqlite"],
        "mongodb": ["mongodb", "mongoose", "pymongo", "motor"],
        "redis": ["redis", "ioredis"],
        "prisma": ["prisma", "@prisma/client"],
        "drizzle": ["drizzle-orm"],
        "typeorm": ["typeorm"],
        "sequelize": ["sequelize"],
        "sqlalchemy": ["sqlalchemy"],
        "gorm": ["gorm.io/gorm"],
        "diesel": ["diesel"],
    },
    "stateManagement": {
        "redux": ["redux", "@reduxjs/toolkit", "react-redux"],
        "zustand": ["zustand"],
        "mobx": ["mobx", "mobx-react"],
        "recoil": ["recoil"],
        "jotai": ["jotai"],
        "pinia": ["pinia"],
        "vuex": ["vuex"],
        "react-query": ["@tanstack/react-query", "react-query"],
        "swr": ["swr"],
        "xstate": ["xstate"],
    },
    "styling": {
        "tailwind": ["tailwindcss"],
        "styled-components": ["styled-components"],
        "emotion": ["@emotion/react", "@emotion/styled"],
        "sass": ["sass", "node-sass"],
        "mui": ["@mui/material"],
        "chakra": ["@chakra-ui/react"],
        "bootstrap": ["bootstrap", "react-bootstrap"],
    },
}

# Config filename globs that evidence deliberate setup for a domain.
DEFAULT_CONFIGURATION_FILES: Dict[str, Dict[str, object]] = {
    "jest": {"domain": "testing", "files": ["jest.config.*"]},
    "vitest": {"domain": "testing", "files": ["vitest.config.*"]},
    "playwright": {"domain": "testing", "files": ["playwright.config.*"]},
    "cypress": {"domain": "testing", "files": ["cypress.config.*", "cypress.json"]},
    "pytest": {"domain": "testing", "files": ["pytest.ini", "conftest.py", "tox.ini"]},
    "docker": {"domain": "deployment", "files": ["Dockerfile", "docker-compose.yml", "docker-compose.yaml", "compose.yaml"]},
    "vercel": {"domain": "deployment", "files": ["vercel.json"]},
    "netlify": {"domain": "deployment", "files": ["netlify.toml"]},
    "fly": {"domain": "deployment", "files": ["fly.toml"]},
    "github-actions": {"domain": "deployment", "files": [".github/workflows/*.yml", ".github/workflows/*.yaml"]},
    "kubernetes": {"domain": "deployment", "files": ["k8s/**/*.yaml", "k8s/**/*.yml", "helm/**/Chart.yaml"]},
    "prisma-schema": {"domain": "database", "files": ["schema.prisma"]},
    "drizzle-config": {"domain": "database", "files": ["drizzle.config.*"]},
    "alembic": {"domain": "database", "files": ["alembic.ini"]},
    "supabase-config": {"domain": "authentication", "files": ["supabase/config.toml"]},
    "middleware": {"domain": "authentication", "files": ["middleware.ts", "middleware.js"]},
    "storybook": {"domain": "components", "files": [".storybook/main.*"]},
    "shadcn": {"domain": "components", "files": ["components.json"]},
    "celery": {"domain": "backgroundJobs", "files": ["celeryconfig.py", "celery.py"]},
    "bullmq": {"domain": "backgroundJobs", "files": ["**/queues/*.config.*"]},
    "sentry": {"domain": "errorHandling", "files": ["sentry.*.config.*", ".sentryclirc"]},
    "storage-cors": {"domain": "fileStorage", "files": ["cors.json", "storage.rules"]},
    "openapi": {"domain": "integration", "files": ["openapi.yaml", "openapi.yml", "openapi.json", "swagger.json"]},
}

# Capability keys that are also everyday English; lowercase prose uses of
# these are read as ordinary words, not as the capability.
COMMON_WORD_KEYS = frozenset(
    {
        "echo",
        "emotion",
        "express",
        "fly",
        "gin",
        "middleware",
        "next",
        "passport",
        "rails",
        "recoil",
        "spring",
    }
)


@dataclass(frozen=True)
class ConfigFileSignature:
    """Filename globs whose presence signals configuration for a domain."""

    name: str
    domain: str
    files: Tuple[str, ...]


@dataclass(frozen=True)
class SignatureIndex:
    """Lookup table from markers to capability names; pure data."""

    markers: Mapping[str, Tuple[str, ...]]
    config_files: Tuple[ConfigFileSignature, ...] = ()
    _by_marker: Mapping[str, Tuple[str, ...]] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def build(
        cls,
        tables: Mapping[str, Mapping[str, Sequence[str]]],
        config_files: Iterable[ConfigFileSignature] = (),
    ) -> "SignatureIndex":
        markers: Dict[str, Tuple[str, ...]] = {}
        by_marker: Dict[str, List[str]] = {}
        for section, table in tables.items():
            prefix = CATEGORY_PREFIXES[section]
            for key, values in table.items():
                name = f"{prefix}:{key}"
                normalized = tuple(dict.fromkeys(value.strip().lower() for value in values if value.strip()))
                markers[name] = normalized
                for marker in normalized:
                    by_marker.setdefault(marker, []).append(name)
        return cls(
            markers=markers,
            config_files=tuple(config_files),
            _by_marker={marker: tuple(sorted(names)) for marker, names in by_marker.items()},
        )

    @classmethod
    def default(cls) -> "SignatureIndex":
        return cls.build(DEFAULT_SIGNATURES, default_config_files())

    def lookup(self, package: str) -> List[Tuple[str, str]]:
        """Return ``(capability, marker)`` pairs for a package or import specifier.

        A marker matches the whole specifier or any ``/``-separated prefix of it,
        so ``react-dom/client`` resolves through ``react-dom``.
        """
        lowered = package.strip().lower()
        if not lowered:
            return []
        hits: List[Tuple[str, str]] = []
        candidates = [lowered]
        segments = lowered.split("/")
        for size in range(len(segments) - 1, 0, -1):
            candidates.append("/".join(segments[:size]))
        for candidate in candidates:
            for name in self._by_marker.get(candidate, ()):
                if all(existing != name for existing, _ in hits):
                    hits.append((name, candidate))
        return hits

    @staticmethod
    def category_of(name: str) -> str:
        return name.split(":", 1)[0]

    @staticmethod
    def domain_of(name: str) -> Optional[str]:
        return CATEGORY_DOMAINS.get(name.split(":", 1)[0])


def default_config_files() -> List[ConfigFileSignature]:
    return [
        ConfigFileSignature(name=name, domain=str(declared["domain"]), files=tuple(declared["files"]))  # type: ignore[arg-type]
        for name, declared in DEFAULT_CONFIGURATION_FILES.items()
    ]


__all__ = [
    "CATEGORY_DOMAINS",
    "CATEGORY_PREFIXES",
    "CONFIGURATION_CATEGORY",
    "COMMON_WORD_KEYS",
    "ConfigFileSignature",
    "DEFAULT_CONFIGURATION_FILES",
    "DEFAULT_SIGNATURES",
    "SignatureIndex",
    "default_config_files",
]
