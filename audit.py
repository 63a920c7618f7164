#!/usr/bin/env python3
"""
ShopAudit CLI
Usage: python audit.py test -u https://shop.example -p https://shop.example/p/1,https://shop.example/p/2
       python audit.py test -c shopaudit.config.yaml
       python audit.py init
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from shopaudit.core.report import print_report
from shopaudit.core.runner import AuditOutcome, run_audit
from shopaudit.models.config import (
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_MS,
    config_from_options,
    load_config_file,
    write_sample_config,
)
from shopaudit.models.errors import ShopAuditError, SetupError
from shopaudit.models.types import AuditConfig


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shopaudit",
        description="ShopAudit: browser checks for ecommerce product pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  python audit.py test -u https://shop.example -p https://shop.example/products/a\n"
               "  python audit.py test -c shopaudit.config.yaml --verbose\n"
               "  python audit.py init -o my-shop.yaml",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    test = sub.add_parser("test", help="Run ecommerce website tests")
    test.add_argument("-u", "--url", help="Base URL of the ecommerce website")
    test.add_argument("-p", "--products", help="Comma-separated list of product page URLs")
    test.add_argument("-c", "--config", help="Configuration file (JSON or YAML)")
    test.add_argument("-o", "--output", default="./reports", help="Output directory for reports (default: ./reports)")
    test.add_argument("-t", "--timeout", default=str(DEFAULT_TIMEOUT_MS), help="Page load timeout in milliseconds (default: 30000)")
    test.add_argument("-r", "--retries", default=str(DEFAULT_RETRIES), help="Number of retry attempts (default: 3)")
    test.add_argument("--headless", dest="headless", action="store_true", default=True, help="Run browser headless (default)")
    test.add_argument("--no-headless", dest="headless", action="store_false", help="Run browser with GUI")
    test.add_argument("--verbose", action="store_true", help="Print per-URL results while running")
    test.add_argument("--no-report", dest="report", action="store_false", help="Skip report file generation")

    init = sub.add_parser("init", help="Create a sample configuration file")
    init.add_argument("-o", "--output", default="shopaudit.config.yaml", help="Output file name")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "init":
        return run_init(args.output)
    return run_test(args)


def run_init(output: str) -> int:
    try:
        path = write_sample_config(output)
    except OSError as e:
        console.print(f"[red]Error creating config file:[/red] {e}")
        return 1
    console.print(f"[green]✓ Sample configuration created: {path}[/green]")
    console.print("[yellow]Edit the file with your actual website URLs and run:[/yellow]")
    console.print(f"[cyan]  python audit.py test -c {path}[/cyan]")
    return 0


def run_test(args: argparse.Namespace) -> int:
    _setup_logging(args.verbose)

    try:
        if args.config:
            config = load_config_file(args.config)
        else:
            config = config_from_options(args.url, args.products, args.timeout, args.retries, args.headless)
    except ShopAuditError as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print("[yellow]Use --url and --products options or provide a config file[/yellow]")
        return 1

    _print_banner(config)

    try:
        outcome = asyncio.run(_run_with_status(config, args))
    except SetupError as e:
        console.print(f"[red]Browser setup failed:[/red] {e}")
        return 1
    except ShopAuditError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    report = outcome.report
    print_report(report, console)
    if outcome.report_paths:
        console.print(f"[green]✓ JSON report saved to: {outcome.report_paths.json_path}[/green]")
        console.print(f"[green]✓ HTML report saved to: {outcome.report_paths.html_path}[/green]")

    if report.passed_threshold:
        console.print("\n[green bold]✅ Tests completed successfully![/green bold]")
        return 0
    console.print("\n[red bold]❌ Tests completed with issues![/red bold]")
    return 1


async def _run_with_status(config: AuditConfig, args: argparse.Namespace) -> AuditOutcome:
    with console.status("Initializing browser...") as status:
        def on_progress(event_type: str, data: dict):
            _cli_progress(event_type, data, status, args.verbose)

        return await run_audit(
            config,
            output_dir=args.output,
            generate_report=args.report,
            on_progress=on_progress,
        )


def _cli_progress(event_type: str, data: dict, status, verbose: bool):
    if event_type == "browser_ready":
        console.print("[green]✓ Browser initialized successfully[/green]")
        status.update("Running ecommerce tests...")
    elif event_type == "test_started":
        status.update(f"Testing product page {data['index']}/{data['total']}: {data['url']}")
    elif event_type == "url_complete" and verbose:
        _print_url_result(data)
    elif event_type == "run_complete":
        console.print(f"[green]✓ Tests completed in {data['duration_ms'] / 1000:.2f}s[/green]")
        status.update("Cleaning up...")
    elif event_type == "teardown_failed":
        console.print(f"[yellow]Cleanup of {data['resource']} failed: {data['error']}[/yellow]")


def _print_url_result(data: dict):
    product, images, errors = data["product"], data["images"], data["errors"]
    console.print(f"\n[blue]=== Test Results for {data['url']} ===[/blue]")

    console.print(f"[yellow]Product Page:[/yellow] {_pass_fail(product.success)}")
    if product.missing_elements:
        console.print(f"[red]  Missing elements:[/red] {', '.join(product.missing_elements)}")

    console.print(f"[yellow]Image Loading:[/yellow] {_pass_fail(images.success)}")
    counts = images.images
    if counts.failed or counts.broken:
        console.print(f"[red]  Failed images: {counts.failed + counts.broken}/{counts.total}[/red]")

    console.print(f"[yellow]Error Detection:[/yellow] {_pass_fail(errors.success)}")
    if errors.total_errors:
        console.print(f"[red]  Total errors: {errors.total_errors}[/red]")


def _pass_fail(success: bool) -> str:
    return "[green]✓ PASS[/green]" if success else "[red]✗ FAIL[/red]"


def _print_banner(config: AuditConfig):
    console.print("[blue bold]ShopAudit - Ecommerce Website Testing Tool[/blue bold]")
    console.print("[dim]===============================================[/dim]")
    console.print(f"[dim]Base URL: {config.base_url}[/dim]")
    console.print(f"[dim]Product URLs: {len(config.product_urls)}[/dim]")
    console.print(f"[dim]Timeout: {config.timeout}ms[/dim]")
    console.print(f"[dim]Retry Attempts: {config.retry_attempts}[/dim]")
    console.print(f"[dim]Headless: {config.headless}[/dim]\n")


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
