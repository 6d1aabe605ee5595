# vuln_report/ranges.py
"""
Translation of affected version ranges between reports and CVE records.

A report lists the versions of a module that are affected as a sequence of
(introduced, fixed) ranges. A CVE record lists explicit ranges, each with a
status, plus a default status that applies to every version not covered by
a listed range. The two are not isomorphic:

  * Reports always mean "affected inside the ranges, unaffected outside".
  * CVE records cannot say "affected from X onward", so a report whose last
    range has no fix is encoded inverted: default status "affected" and the
    gaps between report ranges listed as "unaffected".

encode_ranges picks the encoding and decode_ranges maps records back,
degrading anything it cannot convert into an UnsupportedVersion note.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Union

from . import version
from .cve5_models import Status, VersionRange as CVEVersionRange, VersionStatus
from .models import UnsupportedVersion, VersionRange

logger = logging.getLogger(__name__)

TYPE_SEMVER = "semver"
NOT_APPLICABLE = "n/a"
UNSUPPORTED_TYPE = "cve_version_range"


# --- Report -> CVE ---

@dataclass(frozen=True)
class AffectedDefault:
    """All versions are affected except those in the listed unaffected ranges."""
    unaffected: tuple[CVEVersionRange, ...] = ()

    default_status = VersionStatus.AFFECTED

    @property
    def versions(self) -> tuple[CVEVersionRange, ...]:
        return self.unaffected


@dataclass(frozen=True)
class UnaffectedDefault:
    """Only the versions in the listed affected ranges are affected."""
    affected: tuple[CVEVersionRange, ...]

    default_status = VersionStatus.UNAFFECTED

    @property
    def versions(self) -> tuple[CVEVersionRange, ...]:
        return self.affected


RangeEncoding = Union[AffectedDefault, UnaffectedDefault]


def encode_ranges(ranges: "list[VersionRange] | tuple[VersionRange, ...]") -> RangeEncoding:
    """
    Converts a report's affected ranges to CVE version ranges.

    The only branch point is whether the last range has a fix: an open
    tail forces the inverted (default affected) encoding.
    """
    if not ranges:
        # No recorded versions means every version is affected.
        return AffectedDefault()
    if not ranges[-1].fixed:
        return AffectedDefault(unaffected=tuple(_unaffected_gaps(ranges)))
    return UnaffectedDefault(affected=tuple(_affected_ranges(ranges)))


def _unaffected_gaps(ranges) -> list[CVEVersionRange]:
    gaps = []
    # Start of the next unaffected window: the most recent fix, or empty
    # (the beginning of history) when no fix precedes it.
    start = ""
    for vr in ranges:
        if vr.introduced:
            gaps.append(CVEVersionRange(
                introduced=start or version.VERSION_ZERO,
                fixed=vr.introduced,
                status=VersionStatus.UNAFFECTED,
                version_type=TYPE_SEMVER,
            ))
            start = ""
        if vr.fixed:
            start = vr.fixed
    return gaps


def _affected_ranges(ranges) -> list[CVEVersionRange]:
    return [
        CVEVersionRange(
            introduced=vr.introduced or version.VERSION_ZERO,
            fixed=vr.fixed,
            status=VersionStatus.AFFECTED,
            version_type=TYPE_SEMVER,
        )
        for vr in ranges
    ]


# --- CVE -> Report ---

@dataclass(frozen=True)
class RepairRule:
    """Recognizes a known malformed "version" field and rebuilds the range it meant."""
    name: str
    pattern: re.Pattern
    build: Callable[[re.Match], VersionRange]

    def apply(self, cvr: CVEVersionRange) -> Optional[VersionRange]:
        m = self.pattern.match(cvr.introduced)
        if m is None:
            return None
        return self.build(m)


# Tried in order; the first match wins.
REPAIR_RULES: list[RepairRule] = [
    RepairRule(
        name="introduced-and-fixed",
        pattern=re.compile(r'^>= (.+), < (.+)$'),
        build=lambda m: VersionRange(introduced=m.group(1), fixed=m.group(2)),
    ),
    RepairRule(
        name="fixed-only",
        pattern=re.compile(r'^< (.+)$'),
        build=lambda m: VersionRange(fixed=m.group(1)),
    ),
]


def decode_ranges(cvrs, default_status: Status) -> tuple[list[VersionRange], list[UnsupportedVersion]]:
    """
    Converts CVE version ranges back into report ranges.

    Never fails on a single range: entries that cannot be converted are
    returned as UnsupportedVersion notes. Entries whose version is "n/a"
    carry no data and are dropped.
    """
    ranges: list[VersionRange] = []
    unsupported: list[UnsupportedVersion] = []
    for cvr in cvrs:
        if cvr.introduced == NOT_APPLICABLE:
            continue
        vr = to_version_range(cvr, default_status)
        if vr is not None:
            ranges.append(vr)
            continue
        note = to_unsupported(cvr, default_status)
        logger.debug(f"Could not convert CVE version range, keeping note: {note.version}")
        unsupported.append(note)
    return ranges, unsupported


def to_version_range(cvr: CVEVersionRange, default_status: Status) -> Optional[VersionRange]:
    for rule in REPAIR_RULES:
        vr = rule.apply(cvr)
        if vr is not None:
            logger.debug(f"Repaired malformed CVE version {cvr.introduced!r} ({rule.name})")
            return vr

    if (cvr.version_type != TYPE_SEMVER
            or cvr.less_than_or_equal
            or not version.is_valid(cvr.introduced)
            or not version.is_valid(cvr.fixed)
            or cvr.status != VersionStatus.AFFECTED
            or default_status != VersionStatus.UNAFFECTED):
        return None

    introduced = cvr.introduced
    if introduced == version.VERSION_ZERO:
        introduced = ""
    return VersionRange(introduced=introduced, fixed=cvr.fixed)


def to_unsupported(cvr: CVEVersionRange, default_status: Status) -> UnsupportedVersion:
    if cvr.fixed:
        text = f"{cvr.status} from {cvr.introduced} before {cvr.fixed}"
    elif cvr.less_than_or_equal:
        text = f"{cvr.status} from {cvr.introduced} to {cvr.less_than_or_equal}"
    else:
        text = f"{cvr.status} at {cvr.introduced}"
    if default_status:
        text = f"{text} (default: {default_status})"
    return UnsupportedVersion(version=text, type=UNSUPPORTED_TYPE)
