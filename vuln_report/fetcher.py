# vuln_report/fetcher.py
import json
import logging
import re

import requests

from .cve5_models import CVERecord
from .errors import FetchError, MissingFieldError

logger = logging.getLogger(__name__)

# CVE Services API. Published records are readable without credentials.
CVE_API_BASE_URL = "https://cveawg.mitre.org/api/cve"
# Timeout for API requests in seconds
CVE_API_TIMEOUT = 30

CVE_ID_PATTERN = re.compile(r'^CVE-\d{4}-\d{4,}$')


def is_cve_id(s: str) -> bool:
    return bool(s) and CVE_ID_PATTERN.match(s) is not None


def fetch_cve_record(cve_id: str, api_url: str = CVE_API_BASE_URL, session=None) -> CVERecord:
    """
    Fetches a published CVE record in JSON 5.0 format.
    Raises ValueError for a malformed ID and FetchError if the record
    cannot be retrieved or decoded.
    """
    cve_id = (cve_id or "").strip().upper()
    if not is_cve_id(cve_id):
        raise ValueError(f"invalid CVE ID: {cve_id!r}")

    url = f"{api_url.rstrip('/')}/{cve_id}"
    http = session or requests
    logger.info(f"Fetching {cve_id} from {url}")
    try:
        response = http.get(url, timeout=CVE_API_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.Timeout as e:
        raise FetchError(f"request timed out while fetching {cve_id}") from e
    except requests.exceptions.RequestException as e:
        raise FetchError(f"error fetching {cve_id}: {e}") from e
    except json.JSONDecodeError as e:
        raise FetchError(f"error decoding JSON response for {cve_id}: {e}") from e

    try:
        record = CVERecord.from_dict(data)
    except MissingFieldError as e:
        raise FetchError(f"response for {cve_id} is not a CVE record: {e}") from e
    logger.info(f"Successfully fetched {record.id}.")
    return record
