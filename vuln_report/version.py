# vuln_report/version.py
"""
Version primitives for report version ranges.

Report versions are semantic versions stored without the leading "v"
(e.g. "1.2.3", "0.4.0-rc.1"). An empty string is the "unbounded" sentinel:
it means "from the beginning" as an introduced bound and "no fix" as a
fixed bound.
"""

import re
from typing import Optional

# Lower bound used by CVE records for ranges that start at the first version.
VERSION_ZERO = "0"

# MAJOR[.MINOR[.PATCH[-PRERELEASE][+BUILD]]], no leading zeros in numbers.
_NUM = r'(?:0|[1-9][0-9]*)'
_IDENT = r'(?:0|[1-9][0-9]*|[0-9]*[a-zA-Z-][0-9a-zA-Z-]*)'
SEMVER_PATTERN = re.compile(
    rf'^(?P<major>{_NUM})'
    rf'(?:\.(?P<minor>{_NUM})'
    rf'(?:\.(?P<patch>{_NUM})'
    rf'(?:-(?P<prerelease>{_IDENT}(?:\.{_IDENT})*))?'
    rf'(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?'
    r')?)?$'
)


def is_valid(v: Optional[str]) -> bool:
    """Reports whether v is a valid unprefixed semantic version."""
    if not v:
        return False
    return SEMVER_PATTERN.fullmatch(v) is not None
