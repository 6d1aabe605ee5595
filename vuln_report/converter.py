# vuln_report/converter.py
"""Conversion between reports and CVE JSON 5.0 records."""

import logging

from . import paths
from .cve5_models import (
    Affected, CNAPublishedContainer, CVERecord, Description, ProblemTypeDescription,
)
from .errors import MissingFieldError
from .models import Module, Package, Reference, Report, advisory_url, remove_newlines
from .ranges import decode_ranges, encode_ranges

logger = logging.getLogger(__name__)

# UUID of the Go Project CNA, required in every record it publishes.
GO_ORG_UUID = "1bb62c36-49e3-4200-9d77-64a1400537cc"
COLLECTION_URL = "https://pkg.go.dev"
LANG_EN = "en"


def from_report(r: Report) -> CVERecord:
    """Builds a CVE record from a report. Raises MissingFieldError if the report lacks CVE metadata."""
    try:
        return _from_report(r)
    except MissingFieldError as e:
        raise MissingFieldError(f"from_report({r.id!r}): {e}") from e


def _from_report(r: Report) -> CVERecord:
    if r.cve_metadata is None:
        raise MissingFieldError("report missing cve_metadata section")
    if not r.cve_metadata.id:
        raise MissingFieldError("report missing CVE ID")
    description = r.cve_metadata.description or r.description
    if not r.cve_metadata.cwe:
        raise MissingFieldError("report missing CWE")

    affected = []
    for m in r.modules:
        encoding = encode_ranges(m.versions)
        for p in m.packages:
            affected.append(Affected(
                vendor=paths.vendor_name(m.module),
                product=p.package,
                collection_url=COLLECTION_URL,
                package_name=p.package,
                versions=encoding.versions,
                default_status=encoding.default_status,
                platforms=p.goos,
                program_routines=tuple(p.all_symbols()),
            ))

    references = [ref.url for ref in r.references]
    references.append(advisory_url(r.id))
    references.extend(r.cve_metadata.references)

    cna = CNAPublishedContainer(
        org_id=GO_ORG_UUID,
        title=remove_newlines(r.summary),
        descriptions=(Description(lang=LANG_EN, value=remove_newlines(description)),),
        problem_types=((ProblemTypeDescription(lang=LANG_EN, description=r.cve_metadata.cwe),),),
        affected=tuple(affected),
        references=tuple(references),
        credits=tuple(Description(lang=LANG_EN, value=c) for c in r.credits),
    )
    logger.info(f"Built CVE record {r.cve_metadata.id} for {r.id} ({len(affected)} affected entries)")
    return CVERecord(id=r.cve_metadata.id, cna=cna)


def to_report(c: CVERecord, module_path: str) -> Report:
    """
    Builds a draft report from a CVE record. module_path is the module the
    caller believes is affected; it is used where the record says nothing
    more specific.
    """
    cna = c.cna
    description = "".join(d.value + "\n" for d in cna.descriptions if d.lang == LANG_EN)

    r = Report(
        modules=tuple(affected_to_modules(cna.affected, module_path)),
        summary=cna.title,
        description=description,
        credits=tuple(credit.value for credit in cna.credits),
        references=tuple(Reference.from_url(url) for url in cna.references),
    )
    return r.add_cve(c.id, cwe(cna), is_go_cna(cna))


def cwe(cna: CNAPublishedContainer) -> str:
    if not cna.problem_types or not cna.problem_types[0]:
        return ""
    return cna.problem_types[0][0].description


def is_go_cna(cna: CNAPublishedContainer) -> bool:
    return cna.org_id == GO_ORG_UUID


def affected_to_modules(affected, module_path: str) -> list[Module]:
    # With no module or package information, fall back to a placeholder.
    if not affected:
        return [Module(module=module_path)]
    return [affected_to_module(a, module_path) for a in affected]


def affected_to_module(a: Affected, module_path: str) -> Module:
    resolved = paths.resolve_paths(a.package_name, a.product, a.vendor, module_path)
    versions, unsupported = decode_ranges(a.versions, a.default_status)
    if unsupported:
        logger.warning(f"{len(unsupported)} version range(s) for {resolved.package} need manual review")
    return Module(
        module=resolved.module,
        versions=tuple(versions),
        unsupported_versions=tuple(unsupported),
        packages=(Package(
            package=resolved.package,
            goos=a.platforms,
            symbols=a.program_routines,
        ),),
    )
