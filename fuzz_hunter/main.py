#!/usr/bin/env python3
"""
Fuzz Hunter - Concurrent HTTP content discovery

Main CLI entry point for the application.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fuzz_hunter import __version__
from fuzz_hunter.core.config import FuzzConfig, get_settings
from fuzz_hunter.core.exceptions import ConfigurationError, WordlistError
from fuzz_hunter.core.http_client import create_http_client
from fuzz_hunter.core.logger import configure_logging, get_logger
from fuzz_hunter.fuzzing.fuzzer_engine import FuzzerEngine, FuzzingStats
from fuzz_hunter.reporting import SUPPORTED_FORMATS, ConsoleWriter, OutputManager

console = Console()
logger = get_logger()

EPILOG = """\b
If the keyword 'FUZZ' appears anywhere in the request, it is replaced
with a payload from the wordlist. Otherwise the payload is appended to the path.

\b
Examples:
  Find hidden files or directories:
    fuzz-hunter -u example.com -w wl.txt
  Brute force a header field:
    fuzz-hunter -u example.com -w wl.txt -H 'User-Agent: FUZZ'
  Brute force a file extension:
    fuzz-hunter -u example.com/file.FUZZ -w ext.txt
  Brute force a password sent via a form:
    fuzz-hunter -u example.com/login.php -w wl.txt -m POST \\
      -d 'user=admin&passwd=FUZZ&submit=s' \\
      -H 'Content-Type: application/x-www-form-urlencoded'
"""


def display_banner():
    """Display the Fuzz Hunter banner."""
    banner = f"""
[bold cyan]Fuzz Hunter[/bold cyan] v{__version__}
[dim]Concurrent HTTP content discovery[/dim]

[yellow]⚠️  Use responsibly and only on systems you own or have permission to test[/yellow]
"""
    console.print(Panel(banner, title="Welcome", border_style="blue"))


def display_summary(config: FuzzConfig, stats: FuzzingStats):
    """Display the run summary."""
    table = Table(title="Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Target", config.target_url)
    table.add_row("Duration", f"{stats.duration:.2f}s")
    table.add_row("Requests", str(stats.attempts))
    table.add_row("Shown", f"[green]{stats.results_emitted}[/green]")
    table.add_row("Hidden", str(stats.results_hidden))
    if stats.dropped:
        table.add_row("Dropped", f"[red]{stats.dropped}[/red]")

    console.print(table)


async def run_fuzzer(
        config: FuzzConfig,
        output: OutputManager,
        transport: Optional[httpx.AsyncBaseTransport] = None
) -> FuzzingStats:
    """
    Run one fuzzing campaign, streaming results into ``output``.

    Args:
        config: Validated run configuration
        output: Output manager receiving results and progress
        transport: Optional transport override for the HTTP client

    Returns:
        Statistics of the finished run
    """
    async with create_http_client(config, transport=transport) as http_client:
        engine = FuzzerEngine(config, http_client)
        with output:
            consumer = asyncio.create_task(output.consume(engine.channels))
            try:
                stats = await engine.run()
            finally:
                # The result stream is closed on success and on failure alike
                await consumer
    return stats


@click.command(epilog=EPILOG)
@click.version_option(version=__version__)
@click.option('-u', '--url', 'url', required=True, help='URL/Hostname.')
@click.option('-w', '--wordlist', 'wordlist', required=True, help='Wordlist file.')
@click.option('-m', '--method', 'method', default='GET', show_default=True,
              help='HTTP method. GET, POST, <CUSTOM>, ...')
@click.option('-hc', 'hide_codes', default='', help='Hide HTTP codes, separated by comma. Example: -hc 404,500')
@click.option('-hl', 'hide_lines', default='', help='Hide number of lines, separated by comma. Example: -hl 48,1024')
@click.option('-hh', 'hide_chars', default='', help='Hide number of chars, separated by comma. Example: -hh 48,1024')
@click.option('-hw', 'hide_words', default='', help='Hide number of words, separated by comma. Example: -hw 48,1024')
@click.option('-hr', 'hide_header', default='', help='Hide header length, separated by comma. Example: -hr 48,1024')
@click.option('-x', '--extensions', 'extensions', default='',
              help='Extensions to append to the path, separated by comma. Example: -x .php,.html')
@click.option('-H', '--header', 'headers', default='',
              help="Custom header fields, separated by comma. Example: -H 'User-Agent:Chrome,Cookie:Session=abcd'")
@click.option('-d', '--data', 'body', default='', help='Request body.')
@click.option('-a', '--user-agent', 'user_agent', default=None, help='User-Agent.')
@click.option('-c', '--cookie', 'cookie', default='', help='Cookie.')
@click.option('-o', '--output', 'output_file', type=click.Path(dir_okay=False), help='Output file for the results.')
@click.option('-of', '--output-format', 'output_format',
              type=click.Choice(sorted(SUPPORTED_FORMATS), case_sensitive=False),
              help='Format of the output file.')
@click.option('-t', '--threads', 'concurrency', type=int, default=None, help='Concurrency level (1-100). [default: 8]')
@click.option('-to', '--timeout', 'timeout_ms', type=int, default=None,
              help='HTTP timeout in milliseconds. [default: 10000]')
@click.option('-s', '--sleep', 'sleep_ms', type=int, default=None,
              help='Sleep in milliseconds after every request, per worker. [default: 0]')
@click.option('-f', '--follow-redirects', is_flag=True, help='Follow 30x redirects.')
@click.option('--progress/--no-progress', 'progress', default=True, show_default=True, help='Progress output.')
@click.option('--404', 'show_404', is_flag=True, help='Show 404 status code responses.')
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.option('--log-level',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
              default=None, help='Set logging level')
@click.option('--log-file', type=click.Path(), help='Path to log file')
def cli(url, wordlist, method, hide_codes, hide_lines, hide_chars, hide_words, hide_header,
        extensions, headers, body, user_agent, cookie, output_file, output_format,
        concurrency, timeout_ms, sleep_ms, follow_redirects, progress, show_404,
        debug, log_level, log_file):
    """Fuzz Hunter - brute force content on web servers."""

    settings = get_settings()
    level = 'DEBUG' if debug else (log_level or settings.log_level)
    configure_logging(
        level=level,
        log_file=Path(log_file) if log_file else None,
        rich_console=True,
        show_time=debug,
        show_path=debug
    )

    if output_file and not output_format:
        raise click.UsageError(
            f"Provide an output format with -of. Currently supported: {', '.join(sorted(SUPPORTED_FORMATS))}"
        )
    if output_format and not output_file:
        raise click.UsageError("Provide an output filename with -o")

    try:
        config = FuzzConfig.from_options(
            settings,
            target_url=url,
            wordlist=wordlist,
            method=method,
            extensions=extensions,
            headers=headers,
            body=body,
            user_agent=user_agent,
            cookie=cookie,
            concurrency=concurrency,
            timeout_ms=timeout_ms,
            sleep_ms=sleep_ms,
            follow_redirects=follow_redirects,
            progress=progress,
            show_404=show_404,
            hide_status_codes=hide_codes,
            hide_line_counts=hide_lines,
            hide_content_lengths=hide_chars,
            hide_word_counts=hide_words,
            hide_header_sizes=hide_header,
        )
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    display_banner()

    output = OutputManager(
        ConsoleWriter(console, show_progress=config.progress),
        output_file=Path(output_file) if output_file else None,
        output_format=output_format.lower() if output_format else None
    )

    try:
        stats = asyncio.run(run_fuzzer(config, output))
    except WordlistError as e:
        raise click.UsageError(str(e))
    except KeyboardInterrupt:
        console.print("\n[yellow]Fuzzing interrupted by user[/yellow]")
        sys.exit(130)

    display_summary(config, stats)


if __name__ == '__main__':
    cli()
