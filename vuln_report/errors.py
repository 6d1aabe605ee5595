# vuln_report/errors.py


class VulnReportError(Exception):
    """Base class for errors raised by vuln_report."""


class MissingFieldError(VulnReportError):
    """A report or CVE record lacks data required for conversion."""


class ReportFileError(VulnReportError):
    """A report or record file could not be read or written."""


class FetchError(VulnReportError):
    """A CVE record could not be fetched."""
