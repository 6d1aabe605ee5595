# vuln_report/models.py
import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import MissingFieldError

ADVISORY_URL_PREFIX = "https://pkg.go.dev/vuln/"
REPORTS_DIR = "data/reports"
EXCLUDED_DIR = "data/excluded"


class ReferenceType(str, Enum):
    ADVISORY = "ADVISORY"
    ARTICLE = "ARTICLE"
    REPORT = "REPORT"
    FIX = "FIX"
    PACKAGE = "PACKAGE"
    EVIDENCE = "EVIDENCE"
    WEB = "WEB"


class ExcludedReason(str, Enum):
    NOT_IMPORTABLE = "NOT_IMPORTABLE"
    NOT_GO_CODE = "NOT_GO_CODE"
    NOT_A_VULNERABILITY = "NOT_A_VULNERABILITY"
    EFFECTIVELY_PRIVATE = "EFFECTIVELY_PRIVATE"
    DEPENDENT_VULNERABILITY = "DEPENDENT_VULNERABILITY"
    LEGACY_FALSE_POSITIVE = "LEGACY_FALSE_POSITIVE"
    WITHDRAWN = "WITHDRAWN"

    def to_label(self) -> str:
        return f"excluded: {self.value}"


# (pattern, type) pairs, first match wins.
_REFERENCE_PATTERNS = [
    (re.compile(r'/(commit|commits|pull|merge_requests|-/commit)/'), ReferenceType.FIX),
    (re.compile(r'go-review\.googlesource\.com|go\.dev/cl/'), ReferenceType.FIX),
    (re.compile(r'/issues?/\d+|go\.dev/issue/'), ReferenceType.REPORT),
    (re.compile(r'/security/advisories/|/advisories/GHSA-|nvd\.nist\.gov/vuln/detail/|cve\.org/CVERecord'),
     ReferenceType.ADVISORY),
]


@dataclass(frozen=True)
class VersionRange:
    # Affected from introduced (or the first version, if empty) until fixed
    # (or indefinitely, if empty).
    introduced: str = ""
    fixed: str = ""


@dataclass(frozen=True)
class UnsupportedVersion:
    version: str
    type: str


@dataclass(frozen=True)
class Package:
    package: str
    goos: tuple[str, ...] = ()
    goarch: tuple[str, ...] = ()
    symbols: tuple[str, ...] = ()
    derived_symbols: tuple[str, ...] = ()

    def all_symbols(self) -> list[str]:
        return list(self.symbols) + list(self.derived_symbols)


@dataclass(frozen=True)
class Module:
    module: str
    versions: tuple[VersionRange, ...] = ()
    unsupported_versions: tuple[UnsupportedVersion, ...] = ()
    vulnerable_at: str = ""
    packages: tuple[Package, ...] = ()


@dataclass(frozen=True)
class Reference:
    type: ReferenceType
    url: str

    @classmethod
    def from_url(cls, url: str) -> "Reference":
        """Builds a reference, guessing its type from the shape of the URL."""
        for pattern, ref_type in _REFERENCE_PATTERNS:
            if pattern.search(url):
                return cls(type=ref_type, url=url)
        return cls(type=ReferenceType.WEB, url=url)


@dataclass(frozen=True)
class CVEMetadata:
    id: str
    cwe: str = ""
    description: str = ""
    references: tuple[str, ...] = ()


@dataclass(frozen=True)
class Report:
    id: str = ""
    modules: tuple[Module, ...] = ()
    summary: str = ""
    description: str = ""
    cves: tuple[str, ...] = ()
    ghsas: tuple[str, ...] = ()
    cve_metadata: Optional[CVEMetadata] = None
    credits: tuple[str, ...] = ()
    references: tuple[Reference, ...] = ()
    excluded: Optional[ExcludedReason] = None
    related: tuple[str, ...] = ()

    def add_cve(self, cve_id: str, cwe: str, is_cna: bool) -> "Report":
        """
        Returns a copy of the report that records cve_id.
        CVEs issued by our own CNA carry their metadata (ID and CWE) in the
        report; all others are only listed as aliases.
        """
        if is_cna:
            return replace(self, cve_metadata=CVEMetadata(id=cve_id, cwe=cwe))
        return replace(self, cves=self.cves + (cve_id,))

    def all_cves(self) -> list[str]:
        cves = []
        if self.cve_metadata is not None:
            cves.append(self.cve_metadata.id)
        cves.extend(self.cves)
        return cves

    def aliases(self) -> list[str]:
        return self.all_cves() + list(self.ghsas)

    def is_excluded(self) -> bool:
        return self.excluded is not None

    def yaml_filename(self, reports_dir: str = REPORTS_DIR, excluded_dir: str = EXCLUDED_DIR) -> str:
        """Where the report is stored: under excluded_dir when excluded, else reports_dir."""
        if not self.id:
            raise MissingFieldError("report has no ID")
        directory = excluded_dir if self.is_excluded() else reports_dir
        return f"{Path(directory).as_posix()}/{self.id}.yaml"


def advisory_url(report_id: str) -> str:
    return ADVISORY_URL_PREFIX + report_id


_NEWLINES = re.compile(r'\n+')


def remove_newlines(text: str) -> str:
    """Replaces each run of newlines with a single space; other whitespace is kept."""
    return _NEWLINES.sub(' ', text)
