"""Shared type definitions."""

from collections.abc import Callable

# Progress hook for bundle construction (package name, current count, total count)
BundleProgressHook = Callable[[str, int, int], None]

# Resolves a package name to its latest published version
VersionResolver = Callable[[str], str]
