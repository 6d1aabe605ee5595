# vuln_report/report_io.py
"""Reading and writing reports (YAML) and CVE records (JSON)."""

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from .cve5_models import CVERecord
from .errors import MissingFieldError, ReportFileError
from .models import (
    CVEMetadata, ExcludedReason, Module, Package, Reference, ReferenceType, Report,
    UnsupportedVersion, VersionRange,
)

logger = logging.getLogger(__name__)


# --- Report <-> plain data ---

def _drop_empty(d: dict) -> dict:
    return {k: v for k, v in d.items() if v not in (None, "", [], {})}


def report_to_dict(r: Report) -> dict:
    """Returns the YAML form of a report, with empty fields left out."""
    modules = []
    for m in r.modules:
        modules.append(_drop_empty({
            "module": m.module,
            "versions": [_drop_empty({"introduced": v.introduced, "fixed": v.fixed}) for v in m.versions],
            "unsupported_versions": [{"version": u.version, "type": u.type} for u in m.unsupported_versions],
            "vulnerable_at": m.vulnerable_at,
            "packages": [_drop_empty({
                "package": p.package,
                "goos": list(p.goos),
                "goarch": list(p.goarch),
                "symbols": list(p.symbols),
                "derived_symbols": list(p.derived_symbols),
            }) for p in m.packages],
        }))
    cve_metadata = None
    if r.cve_metadata is not None:
        cve_metadata = _drop_empty({
            "id": r.cve_metadata.id,
            "cwe": r.cve_metadata.cwe,
            "description": r.cve_metadata.description,
            "references": list(r.cve_metadata.references),
        })
    return _drop_empty({
        "id": r.id,
        "modules": modules,
        "summary": r.summary,
        "description": r.description,
        "cves": list(r.cves),
        "ghsas": list(r.ghsas),
        "cve_metadata": cve_metadata,
        "credits": list(r.credits),
        "references": [{ref.type.value.lower(): ref.url} for ref in r.references],
        "excluded": r.excluded.value if r.excluded else None,
        "related": list(r.related),
    })


def _str(value: Any) -> str:
    # A key left blank in YAML ("summary:") loads as None.
    return "" if value is None else str(value)


def _tuple(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)


def _reference_from_dict(d: dict) -> Reference:
    if len(d) != 1:
        raise ReportFileError(f"reference must have exactly one type: {d}")
    (ref_type, url), = d.items()
    try:
        return Reference(type=ReferenceType(str(ref_type).upper()), url=_str(url))
    except ValueError:
        raise ReportFileError(f"unknown reference type {ref_type!r}")


def report_from_dict(d: dict) -> Report:
    modules = []
    for m in d.get("modules") or []:
        modules.append(Module(
            module=_str(m.get("module")),
            versions=tuple(
                VersionRange(introduced=_str(v.get("introduced")), fixed=_str(v.get("fixed")))
                for v in m.get("versions") or []
            ),
            unsupported_versions=tuple(
                UnsupportedVersion(version=_str(u.get("version")), type=_str(u.get("type")))
                for u in m.get("unsupported_versions") or []
            ),
            vulnerable_at=_str(m.get("vulnerable_at")),
            packages=tuple(
                Package(
                    package=_str(p.get("package")),
                    goos=_tuple(p.get("goos")),
                    goarch=_tuple(p.get("goarch")),
                    symbols=_tuple(p.get("symbols")),
                    derived_symbols=_tuple(p.get("derived_symbols")),
                )
                for p in m.get("packages") or []
            ),
        ))
    cve_metadata = None
    if d.get("cve_metadata"):
        cm = d["cve_metadata"]
        cve_metadata = CVEMetadata(
            id=_str(cm.get("id")),
            cwe=_str(cm.get("cwe")),
            description=_str(cm.get("description")),
            references=_tuple(cm.get("references")),
        )
    excluded = None
    if d.get("excluded"):
        try:
            excluded = ExcludedReason(d["excluded"])
        except ValueError:
            raise ReportFileError(f"unknown excluded reason {d['excluded']!r}")
    return Report(
        id=_str(d.get("id")),
        modules=tuple(modules),
        summary=_str(d.get("summary")),
        description=_str(d.get("description")),
        cves=_tuple(d.get("cves")),
        ghsas=_tuple(d.get("ghsas")),
        cve_metadata=cve_metadata,
        credits=_tuple(d.get("credits")),
        references=tuple(_reference_from_dict(ref) for ref in d.get("references") or []),
        excluded=excluded,
        related=_tuple(d.get("related")),
    )


# --- Files ---

def read_report(filename: "str | Path") -> Report:
    path = Path(filename)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ReportFileError(f"could not read report {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ReportFileError(f"could not parse report {path}: {e}") from e
    if not isinstance(data, dict):
        raise ReportFileError(f"report {path} does not contain a YAML mapping")
    return report_from_dict(data)


def write_report(r: Report, filename: "str | Path") -> Path:
    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(report_to_dict(r), f, sort_keys=False, allow_unicode=True)
    except OSError as e:
        raise ReportFileError(f"could not write report {path}: {e}") from e
    logger.info(f"Wrote report to {path}")
    return path


def read_cve_record(filename: "str | Path") -> CVERecord:
    path = Path(filename)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ReportFileError(f"could not read CVE record {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ReportFileError(f"could not decode CVE record {path}: {e}") from e
    try:
        return CVERecord.from_dict(data)
    except MissingFieldError as e:
        raise MissingFieldError(f"{path}: {e}") from e


def cve_record_to_json(c: CVERecord) -> str:
    return json.dumps(c.to_dict(), indent=2)


def write_cve_record(c: CVERecord, filename: "str | Path") -> Path:
    content = cve_record_to_json(c)
    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_text(content + "\n", encoding='utf-8')
    except OSError as e:
        raise ReportFileError(f"could not write CVE record {path}: {e}") from e
    logger.info(f"Wrote CVE record {c.id} to {path}")
    return path


REPORT_ID_PATTERN = re.compile(r'^GO-(\d{4})-(\d{4,})$')


def next_report_id(dirs, year: int) -> str:
    """
    Returns the next free report ID for the given year. Report numbers
    increase across years, so the highest number in any directory is used.
    """
    highest = 0
    for d in dirs:
        d = Path(d)
        if not d.is_dir():
            continue
        for path in d.glob("GO-*.yaml"):
            m = REPORT_ID_PATTERN.match(path.stem)
            if m:
                highest = max(highest, int(m.group(2)))
    return f"GO-{year}-{highest + 1:04d}"
