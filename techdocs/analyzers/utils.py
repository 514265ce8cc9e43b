"""Shared helpers for reading manifests and import statements."""

from __future__ import annotations

import json
import re
import tomllib
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..models import FileEntry

_REQUIREMENTS_NAME = re.compile(r"^requirements([-_.][\w.-]+)?\.(txt|in)$")
_VERSION_SPLIT = re.compile(r"[<>=!~;\[\s@]")

MANIFEST_NAMES = {
    "package.json",
    "pyproject.toml",
    "Pipfile",
    "setup.cfg",
    "go.mod",
    "Cargo.toml",
    "composer.json",
    "Gemfile",
    "pom.xml",
    "build.gradle",
    "build.gradle.kts",
}

_JS_IMPORT_PATTERNS = (
    re.compile(r"^\s*import\s+(?:type\s+)?(?:[\w*{}\s,$]+?\s+from\s+)?['\"]([^'\"]+)['\"]", re.MULTILINE),
    re.compile(r"^\s*export\s+(?:type\s+)?(?:\*|\{[^}]*\})(?:\s+as\s+\w+)?\s+from\s+['\"]([^'\"]+)['\"]", re.MULTILINE),
    re.compile(r"\brequire\s*\(\s*['\"]([^'\"]+)['\"]\s*\)"),
    re.compile(r"\bimport\s*\(\s*['\"]([^'\"]+)['\"]\s*\)"),
)
_PY_IMPORT = re.compile(r"^[ \t]*import[ \t]+([\w.]+(?:[ \t]+as[ \t]+\w+)?(?:[ \t]*,[ \t]*[\w.]+(?:[ \t]+as[ \t]+\w+)?)*)", re.MULTILINE)
_PY_FROM_IMPORT = re.compile(r"^[ \t]*from[ \t]+(\.*[\w.]*)[ \t]+import\b", re.MULTILINE)
_GO_SINGLE_IMPORT = re.compile(r"^\s*import\s+(?:[\w.]+\s+)?\"([^\"]+)\"", re.MULTILINE)
_GO_IMPORT_BLOCK = re.compile(r"^\s*import\s*\(([^)]*)\)", re.MULTILINE)
_GO_BLOCK_ITEM = re.compile(r"\"([^\"]+)\"")
_RUST_USE = re.compile(r"^\s*(?:pub\s+)?(?:use|extern\s+crate)\s+(\w+)", re.MULTILINE)
_JVM_IMPORT = re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+)", re.MULTILINE)
_RUBY_REQUIRE = re.compile(r"^\s*require(?:_relative)?\s+['\"]([^'\"]+)['\"]", re.MULTILINE)
_PHP_USE = re.compile(r"^\s*use\s+([\w\\]+)", re.MULTILINE)


# Manifest helpers


def is_manifest(entry: FileEntry) -> bool:
    return entry.name in MANIFEST_NAMES or bool(_REQUIREMENTS_NAME.match(entry.name))


def manifest_dependencies(entry: FileEntry) -> List[str]:
    """Return the package names a manifest declares, lower-cased and de-duplicated."""
    text = entry.text
    if text is None:
        return []
    name = entry.name
    if name == "package.json" or name == "composer.json":
        deps = _parse_json_manifest(text)
    elif _REQUIREMENTS_NAME.match(name):
        deps = _parse_requirements(text)
    elif name == "pyproject.toml":
        deps = _parse_pyproject(text)
    elif name == "Pipfile":
        deps = _parse_pipfile(text)
    elif name == "setup.cfg":
        deps = _parse_setup_cfg(text)
    elif name == "go.mod":
        deps = _parse_go_mod(text)
    elif name == "Cargo.toml":
        deps = _parse_cargo(text)
    elif name == "Gemfile":
        deps = re.findall(r"^\s*gem\s+['\"]([^'\"]+)['\"]", text, re.MULTILINE)
    elif name == "pom.xml":
        deps = _parse_pom_dependencies(text)
    elif name in {"build.gradle", "build.gradle.kts"}:
        deps = _parse_gradle_dependencies(text)
    else:
        deps = []
    return sorted({dep.strip().lower() for dep in deps if dep and dep.strip()})


def _parse_json_manifest(text: str) -> List[str]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return []
    if not isinstance(data, dict):
        return []
    deps: List[str] = []
    for key in ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies", "require", "require-dev"):
        section = data.get(key)
        if isinstance(section, dict):
            deps.extend(str(name) for name in section.keys())
    return deps


def _parse_requirements(text: str) -> List[str]:
    packages: List[str] = []
    for line in text.splitlines():
        stripped = line.split("#", 1)[0].strip()
        if not stripped or stripped.startswith("-"):
            continue
        name = _VERSION_SPLIT.split(stripped, 1)[0].strip()
        if name:
            packages.append(name)
    return packages


def _requirement_names(values: Iterable[object]) -> List[str]:
    names: List[str] = []
    for dep in values:
        if isinstance(dep, str):
            name = _VERSION_SPLIT.split(dep.strip(), 1)[0].strip()
            if name and name.lower() != "python":
                names.append(name)
    return names


def _parse_pyproject(text: str) -> List[str]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        return []

    dependencies: List[object] = []
    project = data.get("project")
    if isinstance(project, dict):
        dependencies.extend(project.get("dependencies", []) or [])
        optional = project.get("optional-dependencies", {}) or {}
        if isinstance(optional, dict):
            for values in optional.values():
                dependencies.extend(values or [])

    names = _requirement_names(dependencies)
    tool = data.get("tool")
    poetry = tool.get("poetry", {}) if isinstance(tool, dict) else {}
    if isinstance(poetry, dict):
        for key in ("dependencies", "dev-dependencies"):
            section = poetry.get(key)
            if isinstance(section, dict):
                names.extend(name for name in section.keys() if name.lower() != "python")
        groups = poetry.get("group")
        if isinstance(groups, dict):
            for group in groups.values():
                section = group.get("dependencies") if isinstance(group, dict) else None
                if isinstance(section, dict):
                    names.extend(section.keys())
    return names


def _parse_pipfile(text: str) -> List[str]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        return []
    names: List[str] = []
    for key in ("packages", "dev-packages"):
        section = data.get(key)
        if isinstance(section, dict):
            names.extend(section.keys())
    return names


def _parse_setup_cfg(text: str) -> List[str]:
    match = re.search(r"^install_requires\s*=\s*\n((?:[ \t]+.+\n?)+)", text, re.MULTILINE)
    if not match:
        return []
    return _requirement_names(line.strip() for line in match.group(1).splitlines())


def _parse_go_mod(text: str) -> List[str]:
    deps: List[str] = []
    in_block = False
    for raw in text.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if line.startswith("require ("):
            in_block = True
            continue
        if in_block:
            if line == ")":
                in_block = False
                continue
            deps.append(line.split()[0])
        elif line.startswith("require "):
            parts = line.split()
            if len(parts) >= 2:
                deps.append(parts[1])
    return deps


def _parse_cargo(text: str) -> List[str]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        return []
    names: List[str] = []
    for key in ("dependencies", "dev-dependencies", "build-dependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            names.extend(section.keys())
    return names


def _parse_pom_dependencies(text: str) -> List[str]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        return []

    namespace = _detect_xml_namespace(root)
    tag = f"{{{namespace}}}dependency" if namespace else "dependency"
    group_tag = f"{{{namespace}}}groupId" if namespace else "groupId"
    artifact_tag = f"{{{namespace}}}artifactId" if namespace else "artifactId"

    deps: List[str] = []
    for dep in root.iter(tag):
        group = dep.findtext(group_tag, default="")
        artifact = dep.findtext(artifact_tag, default="")
        if group and artifact:
            deps.append(f"{group}:{artifact}")
            deps.append(artifact)
    return deps


def _detect_xml_namespace(element: ET.Element) -> Optional[str]:
    match = re.match(r"\{(.+)}", element.tag)
    return match.group(1) if match else None


def _parse_gradle_dependencies(content: str) -> List[str]:
    deps: List[str] = []
    pattern = re.compile(r"['\"]([\w\-.]+):([\w\-.]+)(?::[\w\-.]+)?['\"]")
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("//"):
            continue
        if any(token in line for token in ("implementation", "api", "compile", "runtimeOnly", "testImplementation")):
            match = pattern.search(line)
            if match:
                deps.append(f"{match.group(1)}:{match.group(2)}")
                deps.append(match.group(2))
    return deps


# Import statement helpers


def import_statements(entry: FileEntry) -> List[Tuple[str, str]]:
    """Return ``(statement, specifier)`` pairs found in a source file."""
    text = entry.text
    if text is None:
        return []
    language = entry.language
    found: List[Tuple[str, str]] = []
    if language in {"JavaScript", "TypeScript", "Vue", "Svelte"}:
        for pattern in _JS_IMPORT_PATTERNS:
            found.extend((match.group(0).strip(), match.group(1)) for match in pattern.finditer(text))
    elif language == "Python":
        for match in _PY_IMPORT.finditer(text):
            for part in match.group(1).split(","):
                module = part.strip().split()[0]
                found.append((match.group(0).strip(), module))
        found.extend((match.group(0).strip(), match.group(1)) for match in _PY_FROM_IMPORT.finditer(text))
    elif language == "Go":
        found.extend((match.group(0).strip(), match.group(1)) for match in _GO_SINGLE_IMPORT.finditer(text))
        for block in _GO_IMPORT_BLOCK.finditer(text):
            found.extend((block.group(0).strip(), item) for item in _GO_BLOCK_ITEM.findall(block.group(1)))
    elif language == "Rust":
        found.extend((match.group(0).strip(), match.group(1)) for match in _RUST_USE.finditer(text))
    elif language in {"Java", "Kotlin", "Scala"}:
        found.extend((match.group(0).strip(), match.group(1)) for match in _JVM_IMPORT.finditer(text))
    elif language == "Ruby":
        found.extend((match.group(0).strip(), match.group(1)) for match in _RUBY_REQUIRE.finditer(text))
    elif language == "PHP":
        found.extend((match.group(0).strip(), match.group(1)) for match in _PHP_USE.finditer(text))
    return found


def package_candidates(specifier: str, language: Optional[str]) -> List[str]:
    """Return names under which an import specifier may be declared in a manifest."""
    cleaned = specifier.strip()
    if not cleaned or cleaned.startswith("."):
        return []
    if language == "Python":
        top = cleaned.split(".", 1)[0]
        return list(dict.fromkeys([top, top.replace("_", "-")]))
    if language in {"Java", "Kotlin", "Scala"}:
        parts = cleaned.split(".")
        # Package-qualified imports map to manifest groups by prefix.
        return [".".join(parts[:size]) for size in range(len(parts), 1, -1)]
    if language == "PHP":
        return [cleaned.replace("\\", "/").lower()]
    return [cleaned]


def declared_dependencies(entries: Iterable[FileEntry]) -> Set[str]:
    """Union of every dependency declared by manifests in ``entries``."""
    declared: Set[str] = set()
    for entry in entries:
        if is_manifest(entry):
            declared.update(manifest_dependencies(entry))
    return declared


def project_identity(entries: Iterable[FileEntry], fallback_name: str) -> Dict[str, str]:
    """Read the project's name and description from its root manifest."""
    by_path = {entry.path: entry for entry in entries}
    package_json = by_path.get("package.json")
    if package_json is not None and package_json.text:
        try:
            data = json.loads(package_json.text)
        except json.JSONDecodeError:
            data = {}
        if isinstance(data, dict):
            return {
                "name": str(data.get("name") or fallback_name),
                "description": str(data.get("description") or "No description available"),
            }
    pyproject = by_path.get("pyproject.toml")
    if pyproject is not None and pyproject.text:
        try:
            data = tomllib.loads(pyproject.text)
        except tomllib.TOMLDecodeError:
            data = {}
        project = data.get("project") if isinstance(data, dict) else None
        if isinstance(project, dict):
            return {
                "name": str(project.get("name") or fallback_name),
                "description": str(project.get("description") or "No description available"),
            }
    return {"name": fallback_name, "description": "No description available"}
