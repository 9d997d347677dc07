"""package.json loading for consumer projects and local libraries.

Only the fields relative-deps cares about are modelled; everything else in
the manifest is preserved as extra data and ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

MANIFEST_FILE_NAME = "package.json"
NODE_MODULES_DIR = "node_modules"


class ConfigurationError(Exception):
    """Raised when project or library configuration is invalid."""


class MissingDependencyError(ConfigurationError):
    """Raised when a local dependency directory is missing and has no fallback."""


class PackageNameMismatchError(ConfigurationError):
    """Raised when a library's package.json name differs from its declaration."""

    def __init__(self, expected: str, found: str | None) -> None:
        self.expected = expected
        self.found = found
        super().__init__(f"Mismatch in package name: found '{found}', expected '{expected}'")


def validate_package_name(name: str) -> str:
    """Validate a dependency name usable as a path under node_modules.

    Accepts plain (``foo``) and scoped (``@scope/foo``) names.

    Raises:
        ValueError: If the name is empty or would escape node_modules.
    """
    if not name or not name.strip():
        raise ValueError("dependency name must be non-empty")
    if "\\" in name:
        raise ValueError(f"dependency name contains a backslash: {name!r}")
    path = PurePosixPath(name)
    if path.is_absolute():
        raise ValueError(f"dependency name is an absolute path: {name!r}")
    parts = name.split("/")
    if any(part in ("", ".", "..") for part in parts):
        raise ValueError(f"dependency name has an invalid path segment: {name!r}")
    if len(parts) > 2 or (len(parts) == 2 and not parts[0].startswith("@")):
        raise ValueError(f"dependency name is not a valid package name: {name!r}")
    return name


class PackageManifest(BaseModel):
    """Subset of a package.json document."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    name: str | None = None
    version: str | None = None
    scripts: dict[str, str] = Field(default_factory=dict)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    relative_dependencies: dict[str, str] | None = Field(
        default=None,
        alias="relativeDependencies",
        description="Map of dependency name to path relative to the project root",
    )

    @field_validator("relative_dependencies")
    @classmethod
    def _check_relative_dependencies(cls, v: dict[str, str] | None) -> dict[str, str] | None:
        if v is None:
            return v
        for name, rel_path in v.items():
            validate_package_name(name)
            if not rel_path:
                raise ValueError(f"relative dependency '{name}' has an empty path")
        return v

    def regular_version(self, name: str) -> str | None:
        """Return the normally declared version of ``name``, if any."""
        return self.dependencies.get(name) or self.dev_dependencies.get(name)


def load_package_manifest(path: Path) -> PackageManifest:
    """Load and validate a package.json file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid.
    """
    try:
        data = orjson.loads(path.read_bytes())
    except FileNotFoundError as e:
        raise ConfigurationError(f"No {MANIFEST_FILE_NAME} found at '{path}'") from e
    except orjson.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in '{path}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"'{path}' does not contain a JSON object")

    try:
        return PackageManifest.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid manifest '{path}': {e}") from e


@dataclass(frozen=True)
class DependencyDeclaration:
    """A ``relativeDependencies`` entry as declared by the consumer."""

    name: str
    relative_path: str


@dataclass(frozen=True)
class ResolvedDependency:
    """A declaration resolved against the consumer project root.

    Attributes:
        name: Package name.
        source_dir: Absolute path of the library's source tree.
        installed_dir: Location of the installed copy under node_modules.
    """

    name: str
    source_dir: Path
    installed_dir: Path


@dataclass(frozen=True)
class Project:
    """Consumer project: its root directory and parsed manifest."""

    root: Path
    manifest: PackageManifest

    @property
    def manifest_path(self) -> Path:
        return self.root / MANIFEST_FILE_NAME

    @property
    def node_modules(self) -> Path:
        return self.root / NODE_MODULES_DIR

    def declarations(self) -> list[DependencyDeclaration]:
        """Relative dependencies in declaration order."""
        deps = self.manifest.relative_dependencies or {}
        return [DependencyDeclaration(name, rel) for name, rel in deps.items()]

    def resolve(self, declaration: DependencyDeclaration) -> ResolvedDependency:
        return ResolvedDependency(
            name=declaration.name,
            source_dir=(self.root / declaration.relative_path).resolve(),
            installed_dir=self.node_modules / declaration.name,
        )


def find_project(start: Path) -> Project:
    """Locate the nearest package.json at or above ``start``.

    Raises:
        ConfigurationError: If no package.json exists up to the filesystem root.
    """
    start = start.resolve()
    for directory in (start, *start.parents):
        candidate = directory / MANIFEST_FILE_NAME
        if candidate.is_file():
            return Project(root=directory, manifest=load_package_manifest(candidate))
    raise ConfigurationError(f"No {MANIFEST_FILE_NAME} found in '{start}' or any parent directory")
