# vuln_report/paths.py
"""
Go module and package path helpers.

Standard library packages ("net/http", "crypto/tls") are reported under the
pseudo-module "std"; toolchain packages ("cmd/go") under "cmd". Both are
recognized by their first path element having no dot, unlike module paths
which always start with a domain ("golang.org/x/net").
"""

import logging
from typing import NamedTuple

logger = logging.getLogger(__name__)

STDLIB_MODULE_PATH = "std"
TOOLCHAIN_MODULE_PATH = "cmd"

STDLIB_VENDOR = "Go standard library"
TOOLCHAIN_VENDOR = "Go toolchain"

NOT_APPLICABLE = "n/a"


def is_stdlib(path: str) -> bool:
    """Reports whether path is in the standard library or toolchain namespace."""
    if not path:
        return False
    if path in (STDLIB_MODULE_PATH, TOOLCHAIN_MODULE_PATH):
        return True
    first = path.split('/', 1)[0]
    return '.' not in first


def is_toolchain(path: str) -> bool:
    return path == TOOLCHAIN_MODULE_PATH or path.startswith(TOOLCHAIN_MODULE_PATH + '/')


def vendor_name(module_path: str) -> str:
    if module_path == STDLIB_MODULE_PATH:
        return STDLIB_VENDOR
    if module_path == TOOLCHAIN_MODULE_PATH:
        return TOOLCHAIN_VENDOR
    return module_path


class ResolvedPath(NamedTuple):
    package: str
    module: str


def _is_set(s: str) -> bool:
    return bool(s) and s != NOT_APPLICABLE


def resolve_paths(package_name: str, product: str, vendor: str, module_path: str) -> ResolvedPath:
    """
    Works out the package and module paths described by one CVE "affected"
    entry. module_path is the caller's best guess at the module and is
    returned unchanged unless the package turns out to be in the standard
    library.
    """
    for candidate in (package_name, product, vendor):
        if _is_set(candidate):
            pkg_path = candidate
            break
    else:
        pkg_path = module_path

    # A package path that is just a suffix of the module path adds nothing.
    if module_path.endswith(pkg_path):
        pkg_path = module_path

    if is_stdlib(pkg_path):
        new_module = TOOLCHAIN_MODULE_PATH if is_toolchain(pkg_path) else STDLIB_MODULE_PATH
        if new_module != module_path:
            logger.debug(f"Package {pkg_path} is in the standard library, using module {new_module} instead of {module_path!r}")
        module_path = new_module

    return ResolvedPath(package=pkg_path, module=module_path)
