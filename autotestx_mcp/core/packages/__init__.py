"""Package resolver module - installs missing dependencies."""

from .resolver import PackageResolver, find_project_python, normalize_package_names

__all__ = [
    "PackageResolver",
    "find_project_python",
    "normalize_package_names",
]
