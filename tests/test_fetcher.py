import sys
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

import requests

# Add parent directory to path so we can import our modules
sys.path.append(str(Path(__file__).parent.parent))

from vuln_report import ai_drafter, fetcher
from vuln_report.errors import FetchError
from vuln_report.models import Module, Report

RECORD = {
    "dataType": "CVE_RECORD",
    "dataVersion": "5.0",
    "cveMetadata": {"cveId": "CVE-2023-1111"},
    "containers": {"cna": {"providerMetadata": {"orgId": "x"}, "title": "A title"}},
}


def fake_session(payload=None, side_effect=None):
    response = mock.Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session = mock.Mock()
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value = response
    return session


class TestFetchCVERecord(unittest.TestCase):
    def test_fetch(self):
        session = fake_session(RECORD)
        record = fetcher.fetch_cve_record("cve-2023-1111", api_url="https://cve.example/api/cve/", session=session)
        self.assertEqual(record.id, "CVE-2023-1111")
        session.get.assert_called_once_with("https://cve.example/api/cve/CVE-2023-1111",
                                            timeout=fetcher.CVE_API_TIMEOUT)

    def test_invalid_id(self):
        with self.assertRaises(ValueError):
            fetcher.fetch_cve_record("GHSA-xxxx-yyyy-zzzz", session=fake_session(RECORD))

    def test_timeout(self):
        session = fake_session(side_effect=requests.exceptions.Timeout("slow"))
        with self.assertRaisesRegex(FetchError, "timed out"):
            fetcher.fetch_cve_record("CVE-2023-1111", session=session)

    def test_http_error(self):
        session = fake_session(side_effect=requests.exceptions.ConnectionError("refused"))
        with self.assertRaises(FetchError):
            fetcher.fetch_cve_record("CVE-2023-1111", session=session)

    def test_not_a_record(self):
        with self.assertRaisesRegex(FetchError, "not a CVE record"):
            fetcher.fetch_cve_record("CVE-2023-1111", session=fake_session({"message": "not found"}))


def fake_client(content):
    message = SimpleNamespace(content=content)
    completion = SimpleNamespace(choices=[SimpleNamespace(message=message)])
    client = mock.Mock()
    client.chat.completions.create.return_value = completion
    return client


class TestAIDrafter(unittest.TestCase):
    def setUp(self):
        self.report = Report(id="GO-2024-0001", modules=(Module(module="github.com/a/b"),),
                             summary="Original title", description="Original text.\n")

    def test_draft_applied(self):
        client = fake_client('Here you go: {"summary": "Panic in github.com/a/b.", "description": "A crafted input panics."}')
        drafted = ai_drafter.draft_summary_and_description(self.report, "key", client=client)
        self.assertEqual(drafted.summary, "Panic in github.com/a/b")
        self.assertEqual(drafted.description, "A crafted input panics.")
        self.assertEqual(drafted.id, "GO-2024-0001")
        self.assertEqual(self.report.summary, "Original title")

    def test_unparseable_reply(self):
        client = fake_client("I cannot help with that.")
        self.assertIsNone(ai_drafter.draft_summary_and_description(self.report, "key", client=client))

    def test_no_key(self):
        self.assertIsNone(ai_drafter.draft_summary_and_description(self.report, None))

    def test_parse_draft_requires_both_fields(self):
        self.assertIsNone(ai_drafter.parse_draft('{"summary": "only a summary"}'))
        self.assertEqual(ai_drafter.parse_draft('{"summary": "s", "description": "d"}'), ("s", "d"))

    def test_get_api_key(self):
        with mock.patch.dict("os.environ", {"OPENAI_API_KEY": "env-key"}):
            self.assertEqual(ai_drafter.get_api_key({}), "env-key")
        with mock.patch.dict("os.environ", {}, clear=True):
            self.assertEqual(ai_drafter.get_api_key({"api_keys": {"openai": "file-key"}}), "file-key")
            self.assertIsNone(ai_drafter.get_api_key({"api_keys": {"openai": ai_drafter.API_KEY_PLACEHOLDER}}))
            self.assertIsNone(ai_drafter.get_api_key({}))


if __name__ == '__main__':
    unittest.main()
