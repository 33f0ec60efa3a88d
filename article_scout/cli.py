#!/usr/bin/env python3
"""
Command-line entry point of the ArticleScout crawler.

Commands:
  crawl URL   Crawl from URL and print results or save reports
  config      Show the effective crawl options

Common options:
  --config PATH       YAML/JSON file with crawl options (defaults when omitted)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string

crawl options:
  --max-depth INT     Override max_depth
  --max-pages INT     Override max_pages
  --delay MS          Override crawl_delay_ms
  --no-robots         Ignore robots.txt
  --no-sitemap        Do not read /sitemap.xml
  --selector CSS      Content selector
  --cache/--no-cache  Reuse a recent result for the same seed
  --json PATH         Save the JSON report
  --html PATH         Save the HTML report
  --template DIR      Directory with Jinja2 templates
  --pretty            Indent JSON output
  --crawl-timeout SEC Timeout of the whole crawl

Example:
  article-scout crawl https://example.com --max-pages 20 --json report.json
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict

import click
from pydantic import ValidationError

from article_scout import __version__
from article_scout.aggregator import aggregate_results
from article_scout.config import CrawlOptions, load_config
from article_scout.logger import init_logging
from article_scout.report.html_report import render_html
from article_scout.report.json_report import render_json
from article_scout.scanner import crawl_url, crawl_url_with_cache

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='ArticleScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='YAML/JSON file with crawl options.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stderr only when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """ArticleScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, TypeError, ValidationError) as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


def _apply_overrides(cfg: CrawlOptions, overrides: Dict[str, Any]) -> CrawlOptions:
    changes = {k: v for k, v in overrides.items() if v is not None}
    if not changes:
        return cfg
    return CrawlOptions(**{**cfg.model_dump(), **changes})


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-depth', 'max_depth', type=int, default=None, help='Override max_depth')
@click.option('--max-pages', '--limit', '-l', 'max_pages', type=int, default=None, help='Override max_pages')
@click.option('--delay', 'crawl_delay_ms', type=int, default=None, help='Override crawl_delay_ms')
@click.option('--no-robots', is_flag=True, help='Ignore robots.txt')
@click.option('--no-sitemap', is_flag=True, help='Do not read /sitemap.xml')
@click.option('--selector', '-s', default=None, help='CSS selector for the main content')
@click.option('--cache/--no-cache', 'use_cache', default=False, help='Reuse a recent result for this seed')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the HTML report to a file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with Jinja2 templates'
)
@click.option('--pretty', is_flag=True, help='Indent JSON output (2 spaces)')
@click.option('--crawl-timeout', 'crawl_timeout', type=float, default=None, help='Timeout of the whole crawl (seconds)')
@click.pass_context
def crawl(ctx, url, max_depth, max_pages, crawl_delay_ms, no_robots, no_sitemap, selector,
          use_cache, json_output, html_output, template_dir, pretty, crawl_timeout):
    """Crawl from URL and print results or generate reports."""
    try:
        cfg = _apply_overrides(ctx.obj['config'], {
            'max_depth': max_depth,
            'max_pages': max_pages,
            'crawl_delay_ms': crawl_delay_ms,
            'respect_robots': False if no_robots else None,
            'follow_sitemap': False if no_sitemap else None,
            'selector': selector,
        })
    except ValidationError as e:
        print_error(f'Invalid options: {e}')

    click.echo(f'Crawling {url}', err=True)
    runner = crawl_url_with_cache(url, cfg, cfg.cache_max_age_ms) if use_cache else crawl_url(url, cfg)
    try:
        if crawl_timeout:
            results = asyncio.run(asyncio.wait_for(runner, timeout=crawl_timeout))
        else:
            results = asyncio.run(runner)
    except asyncio.TimeoutError:
        print_error(f'Crawl did not finish within {crawl_timeout} seconds')
    except Exception as e:
        print_error(f'Crawl failed: {e}')

    if not json_output and not html_output:
        indent = 2 if pretty else None
        try:
            click.echo(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=indent))
        except TypeError as e:
            print_error(f'JSON serialisation failed: {e}')
        return

    report = aggregate_results(results, seed_url=url, stats={'results': len(results)})

    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Failed to save JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Failed to save HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective crawl options as JSON."""
    cfg = ctx.obj['config']
    data = cfg.model_dump(mode='json')
    for key in ('allowed_domains', 'disallowed_extensions'):
        data[key] = sorted(data[key])
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
