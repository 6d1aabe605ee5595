import json
import sys
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

# Add parent directory to path so we can import our modules
sys.path.append(str(Path(__file__).parent.parent))

from vulnreport import cli
from vuln_report import report_io
from vuln_report.converter import GO_ORG_UUID

RECORD = {
    "dataType": "CVE_RECORD",
    "dataVersion": "5.0",
    "cveMetadata": {"cveId": "CVE-2023-2222"},
    "containers": {"cna": {
        "providerMetadata": {"orgId": GO_ORG_UUID},
        "title": "Denial of service in github.com/example/parser",
        "descriptions": [{"lang": "en", "value": "Deeply nested input exhausts the stack."}],
        "problemTypes": [{"descriptions": [{"lang": "en", "description": "CWE-674: Uncontrolled Recursion"}]}],
        "affected": [{
            "vendor": "github.com/example/parser",
            "product": "github.com/example/parser",
            "versions": [
                {"version": "0", "lessThan": "1.2.0", "status": "affected", "versionType": "semver"},
                {"version": "1.3.0", "lessThanOrEqual": "1.3.4", "status": "affected", "versionType": "semver"},
            ],
            "defaultStatus": "unaffected",
        }],
        "references": [{"url": "https://github.com/example/parser/pull/9"}],
    }},
}


class TestCLI(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.config = self.root / "config.yaml"
        self.config.write_text(
            f"reports_dir: {(self.root / 'reports').as_posix()}\n"
            f"excluded_dir: {(self.root / 'excluded').as_posix()}\n",
            encoding="utf-8",
        )
        self.record_file = self.root / "CVE-2023-2222.json"
        self.record_file.write_text(json.dumps(RECORD), encoding="utf-8")

    def tearDown(self):
        self.tmp.cleanup()

    def invoke(self, *args):
        return self.runner.invoke(cli, ["--config", str(self.config), *args])

    def test_create_from_file(self):
        result = self.invoke("create", "CVE-2023-2222", "--module", "github.com/example/parser",
                             "--from-file", str(self.record_file), "--id", "GO-2023-0100")
        self.assertEqual(result.exit_code, 0, result.output)
        path = self.root / "reports" / "GO-2023-0100.yaml"
        self.assertTrue(path.is_file())
        r = report_io.read_report(path)
        self.assertEqual(r.id, "GO-2023-0100")
        self.assertEqual(r.cve_metadata.id, "CVE-2023-2222")
        self.assertEqual(r.cve_metadata.cwe, "CWE-674: Uncontrolled Recursion")
        self.assertEqual(r.modules[0].versions[0].fixed, "1.2.0")
        self.assertEqual(len(r.modules[0].unsupported_versions), 1)
        self.assertIn("could not be converted", result.output)

    def test_create_assigns_next_id(self):
        reports = self.root / "reports"
        reports.mkdir()
        (reports / "GO-2023-0041.yaml").write_text("id: GO-2023-0041\n", encoding="utf-8")
        result = self.invoke("create", "CVE-2023-2222", "--module", "github.com/example/parser",
                             "--from-file", str(self.record_file))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(list(reports.glob("GO-*-0042.yaml"))), 1)

    def test_create_then_cve(self):
        out_report = self.root / "draft.yaml"
        result = self.invoke("create", "CVE-2023-2222", "--module", "github.com/example/parser",
                             "--from-file", str(self.record_file), "--id", "GO-2023-0100",
                             "-o", str(out_report))
        self.assertEqual(result.exit_code, 0, result.output)

        out_json = self.root / "out" / "CVE-2023-2222.json"
        result = self.invoke("cve", str(out_report), "-o", str(out_json))
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(out_json.read_text(encoding="utf-8"))
        self.assertEqual(data["cveMetadata"]["cveId"], "CVE-2023-2222")
        affected = data["containers"]["cna"]["affected"][0]
        self.assertEqual(affected["defaultStatus"], "unaffected")
        self.assertEqual(affected["versions"], [
            {"version": "0", "lessThan": "1.2.0", "status": "affected", "versionType": "semver"},
        ])
        self.assertIn("https://pkg.go.dev/vuln/GO-2023-0100", [ref["url"] for ref in data["containers"]["cna"]["references"]])

    def test_cve_missing_cwe_fails(self):
        report = self.root / "GO-2023-0001.yaml"
        report.write_text("id: GO-2023-0001\ncve_metadata:\n  id: CVE-2023-0001\n", encoding="utf-8")
        result = self.invoke("cve", str(report))
        self.assertEqual(result.exit_code, 1)
        self.assertIn("missing CWE", result.output)

    def test_xref(self):
        reports = self.root / "reports"
        report_a = reports / "GO-2023-0001.yaml"
        reports.mkdir()
        report_a.write_text("id: GO-2023-0001\nmodules:\n  - module: github.com/a/b\ncves:\n  - CVE-2023-0001\n",
                            encoding="utf-8")
        (reports / "GO-2023-0002.yaml").write_text(
            "id: GO-2023-0002\nmodules:\n  - module: github.com/a/b\n", encoding="utf-8")
        result = self.invoke("xref", str(report_a))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(f"github.com/a/b appears in {(reports / 'GO-2023-0002.yaml').as_posix()}", result.output)
        self.assertNotIn(f"appears in {report_a.as_posix()}", result.output)

    def test_xref_absolute_path_with_relative_report_dirs(self):
        with self.runner.isolated_filesystem(temp_dir=self.root):
            reports = Path("data/reports")
            reports.mkdir(parents=True)
            (reports / "GO-2023-0001.yaml").write_text(
                "id: GO-2023-0001\nmodules:\n  - module: github.com/a/b\ncves:\n  - CVE-2023-0001\n",
                encoding="utf-8")
            (reports / "GO-2023-0002.yaml").write_text(
                "id: GO-2023-0002\nmodules:\n  - module: github.com/a/b\n", encoding="utf-8")
            Path("config.yaml").write_text("reports_dir: data/reports\nexcluded_dir: data/excluded\n",
                                           encoding="utf-8")
            own = (reports / "GO-2023-0001.yaml").resolve()
            result = self.runner.invoke(cli, ["--config", "config.yaml", "xref", str(own)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("github.com/a/b appears in data/reports/GO-2023-0002.yaml", result.output)
        self.assertNotIn("appears in data/reports/GO-2023-0001.yaml", result.output)

    def test_cve_to_stdout(self):
        report = self.root / "GO-2023-0003.yaml"
        report.write_text(
            "id: GO-2023-0003\nsummary: Crash in parser\ncve_metadata:\n  id: CVE-2023-0003\n  cwe: CWE-400\n",
            encoding="utf-8")
        result = self.invoke("cve", str(report))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"cveId": "CVE-2023-0003"', result.output)
        self.assertIn('"title": "Crash in parser"', result.output)

    def test_cve_with_blank_text_fields(self):
        report = self.root / "GO-2023-0004.yaml"
        report.write_text(
            "id: GO-2023-0004\nsummary:\ndescription:\n"
            "cve_metadata:\n  id: CVE-2023-0004\n  cwe: CWE-400\n  description:\n",
            encoding="utf-8")
        out_json = self.root / "GO-2023-0004.json"
        result = self.invoke("cve", str(report), "-o", str(out_json))
        self.assertEqual(result.exit_code, 0, result.output)
        cna = json.loads(out_json.read_text(encoding="utf-8"))["containers"]["cna"]
        self.assertNotIn("title", cna)
        self.assertEqual(cna["descriptions"], [{"lang": "en", "value": ""}])


if __name__ == '__main__':
    unittest.main()
