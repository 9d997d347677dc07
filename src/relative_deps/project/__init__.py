"""Consumer project discovery and package.json models."""

from relative_deps.project.manifest import (
    ConfigurationError,
    DependencyDeclaration,
    MissingDependencyError,
    PackageManifest,
    PackageNameMismatchError,
    Project,
    ResolvedDependency,
    find_project,
    load_package_manifest,
    validate_package_name,
)

__all__ = [
    "ConfigurationError",
    "DependencyDeclaration",
    "MissingDependencyError",
    "PackageManifest",
    "PackageNameMismatchError",
    "Project",
    "ResolvedDependency",
    "find_project",
    "load_package_manifest",
    "validate_package_name",
]
