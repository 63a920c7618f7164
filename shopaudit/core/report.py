"""Render a RunReport: rich console tables, a JSON file and an HTML file."""

from __future__ import annotations

import json
from dataclasses import dataclass
from html import escape
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from shopaudit.models.types import RunReport, iso_timestamp


REPORT_PREFIX = "test-report"
MAX_LISTED = 5


@dataclass
class ReportPaths:
    json_path: Path
    html_path: Path


def report_basename(report: RunReport) -> str:
    stamp = iso_timestamp(report.timestamp).replace(":", "-").replace(".", "-")
    return f"{REPORT_PREFIX}-{stamp}"


def generate_report(report: RunReport, output_dir: str | Path) -> ReportPaths:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    base = report_basename(report)
    return ReportPaths(
        json_path=write_json_report(report, output_dir / f"{base}.json"),
        html_path=write_html_report(report, output_dir / f"{base}.html"),
    )


def write_json_report(report: RunReport, path: Path) -> Path:
    path.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def write_html_report(report: RunReport, path: Path) -> Path:
    path.write_text(render_html(report), encoding="utf-8")
    return path


def _short_url(url: str, max_len: int = 60) -> str:
    if len(url) <= max_len:
        return url
    return url[:max_len - 3] + "..."


def _status(success: bool) -> Text:
    return Text("✓ PASS", style="green bold") if success else Text("✗ FAIL", style="red bold")


def print_report(report: RunReport, console: Console | None = None):
    """Print the run report as rich panels and tables."""
    console = console or Console()
    rate = report.success_rate * 100
    rate_color = "green" if report.passed_threshold else "red"

    header = Text()
    header.append("\n ShopAudit Test Report\n", style="bold")
    header.append(f" {report.base_url}\n", style="dim")
    header.append(f" Generated {iso_timestamp(report.timestamp)}", style="dim")
    header.append(f" in {report.total_duration / 1000:.2f}s\n", style="dim")
    console.print(Panel(header, border_style="blue"))

    console.print()
    console.print(f"  Total Tests: {report.total_tests}")
    console.print(f"  Passed: [green]{report.passed_tests}[/green]")
    console.print(f"  Failed: [red]{report.failed_tests}[/red]")
    console.print(f"  Success Rate: [bold {rate_color}]{rate:.1f}%[/bold {rate_color}]")
    console.print()

    if report.summary.critical_issues or report.summary.warnings:
        console.print("  [yellow bold]Issues[/yellow bold]")
        console.print(f"  Critical Issues: [red]{report.summary.critical_issues}[/red]")
        console.print(f"  Warnings: [yellow]{report.summary.warnings}[/yellow]\n")

    if report.product_page_results:
        table = Table(title="Product Page Tests", show_header=True, header_style="bold", padding=(0, 1))
        table.add_column("URL", max_width=40)
        table.add_column("Status", width=8)
        table.add_column("Load Time", width=10, justify="right")
        table.add_column("Missing Elements", min_width=20)
        for r in report.product_page_results:
            table.add_row(
                _short_url(r.url, 40),
                _status(r.success),
                f"{r.load_time}ms",
                ", ".join(r.missing_elements) or "None",
            )
        console.print(table)
        console.print()

    if report.image_results:
        table = Table(title="Image Loading Tests", show_header=True, header_style="bold", padding=(0, 1))
        table.add_column("URL", max_width=40)
        table.add_column("Status", width=8)
        for name in ("Total", "Loaded", "Failed", "Broken"):
            table.add_column(name, width=7, justify="right")
        for r in report.image_results:
            c = r.images
            table.add_row(
                _short_url(r.url, 40),
                _status(r.success),
                str(c.total),
                f"[green]{c.loaded}[/green]",
                f"[yellow]{c.failed}[/yellow]",
                f"[red]{c.broken}[/red]",
            )
        console.print(table)

        for r in report.image_results:
            bad = [d for d in r.image_details if d.status.value in ("broken", "failed")]
            if not bad:
                continue
            console.print(f"  [dim]↳ {_short_url(r.url)}: showing up to {MAX_LISTED} problematic images[/dim]")
            for d in bad[:MAX_LISTED]:
                label = "[red]\\[broken][/red]" if d.status.value == "broken" else "[yellow]\\[failed][/yellow]"
                suffix = f" - {d.error}" if d.error else ""
                console.print(f"    {label} {_short_url(d.src)}{suffix}")
        console.print()

    if report.error_results:
        table = Table(title="Error Detection Tests", show_header=True, header_style="bold", padding=(0, 1))
        table.add_column("URL", max_width=40)
        table.add_column("Status", width=8)
        table.add_column("Console", width=8, justify="right")
        table.add_column("Network", width=8, justify="right")
        table.add_column("Resource", width=8, justify="right")
        for r in report.error_results:
            table.add_row(
                _short_url(r.url, 40),
                _status(r.success),
                str(len(r.console_errors)),
                str(len(r.network_errors)),
                str(len(r.resource_errors)),
            )
        console.print(table)

        for r in report.error_results:
            if r.network_errors:
                console.print(f"  [dim]↳ {_short_url(r.url)}: top network errors[/dim]")
                for ne in r.network_errors[:MAX_LISTED]:
                    console.print(f"    \\[{ne.status}] {ne.method} {_short_url(ne.url)} ({ne.resource_type})")
            if r.resource_errors:
                console.print(f"  [dim]↳ {_short_url(r.url)}: top resource errors[/dim]")
                for re_ in r.resource_errors[:MAX_LISTED]:
                    console.print(f"    \\[{re_.type.value}] {_short_url(re_.url)} - {re_.error}")
        console.print()

    if report.summary.recommendations:
        console.print("  [yellow bold]Recommendations[/yellow bold]")
        for i, rec in enumerate(report.summary.recommendations, 1):
            console.print(f"  {i}. {rec}")
        console.print()


_HTML_STYLE = """
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
               line-height: 1.6; margin: 0; padding: 20px; background-color: #f5f5f5; }
        .container { max-width: 1200px; margin: 0 auto; background: white; border-radius: 8px;
                     box-shadow: 0 2px 10px rgba(0,0,0,0.1); overflow: hidden; }
        .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white;
                  padding: 30px; text-align: center; }
        .header h1 { margin: 0; font-size: 2.5em; font-weight: 300; }
        .summary, .section { padding: 30px; border-bottom: 1px solid #eee; }
        .stats { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
                 gap: 20px; margin-top: 20px; }
        .stat-card { background: #f8f9fa; padding: 20px; border-radius: 8px; text-align: center; }
        .stat-number { font-size: 2em; font-weight: bold; color: #667eea; }
        .stat-label { color: #666; margin-top: 5px; }
        .table { width: 100%; border-collapse: collapse; margin-top: 20px; }
        .table th, .table td { padding: 12px; text-align: left; border-bottom: 1px solid #eee; }
        .table th { background: #f8f9fa; font-weight: 600; }
        .status-pass { color: #28a745; font-weight: bold; }
        .status-fail { color: #dc3545; font-weight: bold; }
        .recommendations { background: #fff3cd; border: 1px solid #ffeaa7; border-radius: 8px;
                           padding: 20px; margin-top: 20px; }
        .recommendations h3 { margin-top: 0; color: #856404; }
        .recommendations li { margin-bottom: 8px; }
"""


def _cell_status(success: bool) -> str:
    cls = "status-pass" if success else "status-fail"
    label = "✓ PASS" if success else "✗ FAIL"
    return f'<td class="{cls}">{label}</td>'


def _link(url: str) -> str:
    return (
        f'<a href="{escape(url)}" target="_blank" rel="noopener noreferrer">'
        f"{escape(_short_url(url))}</a>"
    )


def _table(headers: list[str], rows: list[str]) -> str:
    head = "".join(f"<th>{escape(h)}</th>" for h in headers)
    return f'<table class="table"><thead><tr>{head}</tr></thead><tbody>{"".join(rows)}</tbody></table>'


def render_html(report: RunReport) -> str:
    rate = report.success_rate * 100

    product_rows = [
        f"<tr><td>{escape(r.url)}</td>{_cell_status(r.success)}<td>{r.load_time}ms</td>"
        f"<td>{escape(', '.join(r.missing_elements) or 'None')}</td></tr>"
        for r in report.product_page_results
    ]
    image_rows = [
        f"<tr><td>{escape(r.url)}</td>{_cell_status(r.success)}<td>{r.images.total}</td>"
        f"<td>{r.images.loaded}</td><td>{r.images.failed}</td><td>{r.images.broken}</td></tr>"
        for r in report.image_results
    ]
    error_rows = [
        f"<tr><td>{escape(r.url)}</td>{_cell_status(r.success)}<td>{len(r.console_errors)}</td>"
        f"<td>{len(r.network_errors)}</td><td>{len(r.resource_errors)}</td></tr>"
        for r in report.error_results
    ]

    image_details = []
    for r in report.image_results:
        bad = [d for d in r.image_details if d.status.value in ("broken", "failed")]
        if not bad:
            continue
        rows = [
            f"<tr><td>{escape(d.status.value)}</td><td>{_link(d.src)}</td><td>{escape(d.alt)}</td>"
            f"<td>{d.width}×{d.height}</td><td>{escape(d.error or '')}</td></tr>"
            for d in bad
        ]
        image_details.append(
            f"<h3>{escape(r.url)}</h3>"
            + _table(["Status", "Image URL", "Alt", "Dimensions", "Error"], rows)
        )

    error_details = []
    for r in report.error_results:
        parts = []
        if r.network_errors:
            rows = [
                f"<tr><td>{ne.status}</td><td>{escape(ne.method)}</td><td>{escape(ne.resource_type)}</td>"
                f"<td>{_link(ne.url)}</td><td>{escape(ne.status_text)}</td></tr>"
                for ne in r.network_errors
            ]
            parts.append("<h4>Network Errors</h4>" + _table(["Status", "Method", "Type", "URL", "Status Text"], rows))
        if r.resource_errors:
            rows = [
                f"<tr><td>{escape(re_.type.value)}</td><td>{_link(re_.url)}</td><td>{escape(re_.error)}</td></tr>"
                for re_ in r.resource_errors
            ]
            parts.append("<h4>Resource Errors</h4>" + _table(["Type", "URL", "Error"], rows))
        if parts:
            error_details.append(f"<h3>{escape(r.url)}</h3>" + "".join(parts))

    product_table = _table(["URL", "Status", "Load Time", "Missing Elements"], product_rows)
    image_table = _table(["URL", "Status", "Total", "Loaded", "Failed", "Broken"], image_rows) + "".join(image_details)
    error_table = _table(["URL", "Status", "Console Errors", "Network Errors", "Resource Errors"], error_rows) + "".join(error_details)

    recommendations = ""
    if report.summary.recommendations:
        items = "".join(f"<li>{escape(rec)}</li>" for rec in report.summary.recommendations)
        recommendations = f'<div class="recommendations"><h3>Recommendations</h3><ul>{items}</ul></div>'

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>ShopAudit Test Report</title>
    <style>{_HTML_STYLE}</style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>ShopAudit Test Report</h1>
            <p>Ecommerce Website Validation Results</p>
        </div>
        <div class="summary">
            <h2>Test Summary</h2>
            <div class="stats">
                <div class="stat-card"><div class="stat-number">{report.total_tests}</div><div class="stat-label">Total Tests</div></div>
                <div class="stat-card"><div class="stat-number" style="color: #28a745;">{report.passed_tests}</div><div class="stat-label">Passed</div></div>
                <div class="stat-card"><div class="stat-number" style="color: #dc3545;">{report.failed_tests}</div><div class="stat-label">Failed</div></div>
                <div class="stat-card"><div class="stat-number">{rate:.1f}%</div><div class="stat-label">Success Rate</div></div>
            </div>
            <p><strong>Base URL:</strong> {escape(report.base_url)}</p>
            <p><strong>Generated:</strong> {iso_timestamp(report.timestamp)}</p>
            <p><strong>Duration:</strong> {report.total_duration / 1000:.2f} seconds</p>
            <p><strong>Critical Issues:</strong> {report.summary.critical_issues} &nbsp; <strong>Warnings:</strong> {report.summary.warnings}</p>
            {recommendations}
        </div>
        <div class="section">
            <h2>Product Page Tests</h2>
            {product_table}
        </div>
        <div class="section">
            <h2>Image Loading Tests</h2>
            {image_table}
        </div>
        <div class="section">
            <h2>Error Detection Tests</h2>
            {error_table}
        </div>
    </div>
</body>
</html>
"""
