# vuln_report/cve5_models.py
"""
The subset of the CVE JSON 5.0 record format that reports are translated
to and from. See https://github.com/CVEProject/cve-schema.

Records are immutable value objects. to_dict/from_dict map them to and from
the schema's JSON shape; keys that are unset are omitted on output.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from .errors import MissingFieldError

DATA_TYPE = "CVE_RECORD"
DATA_VERSION = "5.0"


class VersionStatus(str, Enum):
    AFFECTED = "affected"
    UNAFFECTED = "unaffected"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


# Statuses found in the wild are not always valid schema values, so
# anything unrecognized is kept as the raw string.
Status = Union[VersionStatus, str]


def parse_status(value: Optional[str]) -> Status:
    if not value:
        return ""
    try:
        return VersionStatus(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class VersionRange:
    # In the JSON form "introduced" is "version" and "fixed" is "lessThan".
    introduced: str = ""
    fixed: str = ""
    less_than_or_equal: str = ""
    status: Status = ""
    version_type: str = ""

    def to_dict(self) -> dict:
        d = {"version": self.introduced}
        if self.fixed:
            d["lessThan"] = self.fixed
        if self.less_than_or_equal:
            d["lessThanOrEqual"] = self.less_than_or_equal
        d["status"] = str(self.status)
        if self.version_type:
            d["versionType"] = self.version_type
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "VersionRange":
        return cls(
            introduced=str(d.get("version", "")),
            fixed=str(d.get("lessThan", "")),
            less_than_or_equal=str(d.get("lessThanOrEqual", "")),
            status=parse_status(d.get("status")),
            version_type=d.get("versionType", ""),
        )


@dataclass(frozen=True)
class Affected:
    vendor: str = ""
    product: str = ""
    collection_url: str = ""
    package_name: str = ""
    versions: tuple[VersionRange, ...] = ()
    default_status: Status = ""
    platforms: tuple[str, ...] = ()
    program_routines: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"vendor": self.vendor, "product": self.product}
        if self.collection_url:
            d["collectionURL"] = self.collection_url
        if self.package_name:
            d["packageName"] = self.package_name
        if self.versions:
            d["versions"] = [v.to_dict() for v in self.versions]
        if self.default_status:
            d["defaultStatus"] = str(self.default_status)
        if self.platforms:
            d["platforms"] = list(self.platforms)
        if self.program_routines:
            d["programRoutines"] = [{"name": name} for name in self.program_routines]
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Affected":
        return cls(
            vendor=d.get("vendor", ""),
            product=d.get("product", ""),
            collection_url=d.get("collectionURL", ""),
            package_name=d.get("packageName", ""),
            versions=tuple(VersionRange.from_dict(v) for v in d.get("versions") or []),
            default_status=parse_status(d.get("defaultStatus")),
            platforms=tuple(d.get("platforms") or []),
            program_routines=tuple(r.get("name", "") for r in d.get("programRoutines") or []),
        )


@dataclass(frozen=True)
class Description:
    lang: str
    value: str


@dataclass(frozen=True)
class ProblemTypeDescription:
    lang: str
    description: str
    cwe_id: str = ""


@dataclass(frozen=True)
class CNAPublishedContainer:
    org_id: str = ""
    title: str = ""
    descriptions: tuple[Description, ...] = ()
    # One inner tuple per problem type.
    problem_types: tuple[tuple[ProblemTypeDescription, ...], ...] = ()
    affected: tuple[Affected, ...] = ()
    references: tuple[str, ...] = ()
    credits: tuple[Description, ...] = ()

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"providerMetadata": {"orgId": self.org_id}}
        if self.title:
            d["title"] = self.title
        d["descriptions"] = [{"lang": x.lang, "value": x.value} for x in self.descriptions]
        if self.problem_types:
            d["problemTypes"] = [
                {"descriptions": [_problem_type_description_dict(x) for x in pt]}
                for pt in self.problem_types
            ]
        d["affected"] = [a.to_dict() for a in self.affected]
        d["references"] = [{"url": url} for url in self.references]
        if self.credits:
            d["credits"] = [{"lang": c.lang, "value": c.value} for c in self.credits]
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "CNAPublishedContainer":
        return cls(
            org_id=(d.get("providerMetadata") or {}).get("orgId", ""),
            title=d.get("title", ""),
            descriptions=tuple(
                Description(lang=x.get("lang", ""), value=x.get("value", ""))
                for x in d.get("descriptions") or []
            ),
            problem_types=tuple(
                tuple(
                    ProblemTypeDescription(
                        lang=x.get("lang", ""),
                        description=x.get("description", ""),
                        cwe_id=x.get("cweId", ""),
                    )
                    for x in pt.get("descriptions") or []
                )
                for pt in d.get("problemTypes") or []
            ),
            affected=tuple(Affected.from_dict(a) for a in d.get("affected") or []),
            references=tuple(r.get("url", "") for r in d.get("references") or []),
            credits=tuple(
                Description(lang=c.get("lang", ""), value=c.get("value", ""))
                for c in d.get("credits") or []
            ),
        )


def _problem_type_description_dict(x: ProblemTypeDescription) -> dict:
    d = {"lang": x.lang, "description": x.description}
    if x.cwe_id:
        d["cweId"] = x.cwe_id
        d["type"] = "CWE"
    return d


@dataclass(frozen=True)
class CVERecord:
    id: str
    cna: CNAPublishedContainer
    data_type: str = DATA_TYPE
    data_version: str = DATA_VERSION

    def to_dict(self) -> dict:
        return {
            "dataType": self.data_type,
            "dataVersion": self.data_version,
            "cveMetadata": {"cveId": self.id},
            "containers": {"cna": self.cna.to_dict()},
        }

    @classmethod
    def from_dict(cls, d: dict) -> "CVERecord":
        metadata = d.get("cveMetadata")
        if not metadata or not metadata.get("cveId"):
            raise MissingFieldError("CVE record missing cveMetadata.cveId")
        return cls(
            id=metadata["cveId"],
            cna=CNAPublishedContainer.from_dict((d.get("containers") or {}).get("cna") or {}),
            data_type=d.get("dataType", DATA_TYPE),
            data_version=d.get("dataVersion", DATA_VERSION),
        )
