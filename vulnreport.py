#!/usr/bin/env python3
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import click

from vuln_report import ai_drafter, config as vr_config, converter, fetcher, report_io
from vuln_report.errors import VulnReportError
from vuln_report.xref import XRefIndex, format_xrefs


def _fail(message: str):
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


# --- CLI Definition ---
@click.group(context_settings=dict(help_option_names=['-h', '--help']))
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=vr_config.CONFIG_FILENAME,
              show_default=True, help="Path to the YAML configuration file.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx, config_path, verbose):
    """
    vulnreport: tools for Go vulnerability reports and their CVE JSON 5.0 records.
    """
    vr_config.setup_logging(verbose)
    ctx.obj = vr_config.load_config(config_path)


@cli.command("create")
@click.argument("cve_id")
@click.option("--module", "module_path", required=True, help="Module path believed to be affected.")
@click.option("--from-file", "record_file", type=click.Path(exists=True, dir_okay=False),
              help="Read the CVE record from a local JSON file instead of the CVE Services API.")
@click.option("--id", "report_id", help="Report ID to assign (default: next free GO-YYYY-NNNN).")
@click.option("--ai", "use_ai", is_flag=True, help="Use AI to draft the summary and description.")
@click.option("-o", "--output", "output_path", type=click.Path(dir_okay=False),
              help="Where to write the report (default: <reports_dir>/<id>.yaml).")
@click.pass_obj
def create(config, cve_id, module_path, record_file, report_id, use_ai, output_path):
    """Creates a draft YAML report from a published CVE record."""
    try:
        if record_file:
            record = report_io.read_cve_record(record_file)
        else:
            record = fetcher.fetch_cve_record(cve_id, api_url=config["cve_api_url"])
        r = converter.to_report(record, module_path)

        if not report_id:
            year = datetime.now(timezone.utc).year
            report_id = report_io.next_report_id([config["reports_dir"], config["excluded_dir"]], year)
        r = replace(r, id=report_id)

        if use_ai:
            ai_config = config.get("ai") or {}
            drafted = ai_drafter.draft_summary_and_description(
                r,
                ai_drafter.get_api_key(config),
                model=ai_config.get("model", ai_drafter.DEFAULT_MODEL),
                base_url=ai_config.get("base_url"),
            )
            if drafted is not None:
                r = drafted
            else:
                click.secho("AI drafting failed, keeping the text from the CVE record.", fg="yellow")

        path = Path(output_path or r.yaml_filename(config["reports_dir"], config["excluded_dir"]))
        report_io.write_report(r, path)
    except (VulnReportError, ValueError) as e:
        _fail(str(e))

    unsupported = sum(len(m.unsupported_versions) for m in r.modules)
    click.secho(f"Created {path} from {record.id}.", fg="green")
    if unsupported:
        click.secho(f"{unsupported} version range(s) could not be converted; see unsupported_versions.", fg="yellow")


@cli.command("cve")
@click.argument("report_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", "output_path", type=click.Path(dir_okay=False),
              help="Write the CVE JSON here instead of standard output.")
def cve(report_file, output_path):
    """Generates a CVE JSON 5.0 record from a YAML report."""
    try:
        r = report_io.read_report(report_file)
        record = converter.from_report(r)
        if output_path:
            report_io.write_cve_record(record, output_path)
        else:
            click.echo(report_io.cve_record_to_json(record))
    except VulnReportError as e:
        _fail(str(e))


@cli.command("xref")
@click.argument("report_files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def xref(config, report_files):
    """Prints cross references (shared CVEs, GHSAs, modules) for YAML reports."""
    index = XRefIndex.from_dirs([config["reports_dir"], config["excluded_dir"]])
    for filename in report_files:
        try:
            r = report_io.read_report(filename)
            own_filename = r.yaml_filename(config["reports_dir"], config["excluded_dir"])
        except VulnReportError as e:
            _fail(str(e))
        click.echo(filename)
        out = format_xrefs(index, r, own_filename)
        if out:
            click.echo(out)


if __name__ == "__main__":
    cli()
