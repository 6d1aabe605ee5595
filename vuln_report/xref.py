# vuln_report/xref.py
"""Cross-references between stored reports: shared aliases and modules."""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Iterable

from . import paths
from .errors import ReportFileError
from .models import Report
from .report_io import read_report

logger = logging.getLogger(__name__)


class XRefIndex:
    """Index of reports by alias (CVE/GHSA ID) and by module path."""

    def __init__(self):
        self.reports: dict[str, Report] = {}
        self.by_alias: dict[str, set[str]] = defaultdict(set)
        self.by_module: dict[str, set[str]] = defaultdict(set)

    def add(self, filename: str, r: Report):
        self.reports[filename] = r
        for alias in r.aliases():
            self.by_alias[alias].add(filename)
        for m in r.modules:
            # Nearly every standard library report would match every other.
            if m.module and not paths.is_stdlib(m.module):
                self.by_module[m.module].add(filename)

    @classmethod
    def from_dirs(cls, dirs: Iterable["str | Path"]) -> "XRefIndex":
        index = cls()
        for d in dirs:
            d = Path(d)
            if not d.is_dir():
                logger.debug(f"Skipping missing report directory {d}")
                continue
            for path in sorted(d.glob("*.yaml")):
                try:
                    index.add(path.as_posix(), read_report(path))
                except ReportFileError as e:
                    logger.warning(f"Skipping unreadable report: {e}")
        logger.info(f"Indexed {len(index.reports)} reports.")
        return index

    def xref(self, r: Report) -> dict[str, set[str]]:
        """Returns, for each indexed report sharing an alias or module with r, the shared IDs/modules."""
        matches: dict[str, set[str]] = defaultdict(set)
        for alias in r.aliases():
            for filename in self.by_alias.get(alias, ()):
                matches[filename].add(alias)
        for m in r.modules:
            for filename in self.by_module.get(m.module, ()):
                matches[filename].add(m.module)
        return dict(matches)

    def report(self, filename: str):
        return self.reports.get(filename)


def format_xrefs(index: XRefIndex, r: Report, own_filename: str) -> str:
    """
    Renders the cross-references for r, one line per shared ID, sorted by
    filename then ID (so CVEs, then GHSAs, then modules). The file at
    own_filename is left out, however its path is spelled.
    """
    matches = index.xref(r)
    own = Path(own_filename).resolve()
    for filename in [f for f in matches if Path(f).resolve() == own]:
        del matches[filename]
    lines = []
    for filename in sorted(matches):
        for shared in sorted(matches[filename]):
            line = f"{shared} appears in {filename}"
            other = index.report(filename)
            if other is not None and other.is_excluded():
                line += f"  {other.excluded.value}"
            lines.append(line)
    return "\n".join(lines)
