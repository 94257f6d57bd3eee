"""Operator CLI commands for database performance audits."""

import json
import logging
import sys
from typing import Optional

import click

from advisor.engine import PerformanceAdvisor
from advisor.errors import StoreConnectionError
from advisor.report_writer import render_text_summary, save_report
from config import AdvisorConfig, ConfigStorage, ConfigValidator

logger = logging.getLogger(__name__)


def _load_config(project_root: str, store_url: Optional[str]) -> AdvisorConfig:
    config = ConfigStorage(project_root).load_effective()
    if store_url:
        config.store_url = store_url
    is_valid, errors = ConfigValidator().validate_config(config)
    if not is_valid:
        for error in errors:
            click.echo(f"✗ {error}", err=True)
        sys.exit(1)
    return config


def _build_advisor(config: AdvisorConfig) -> PerformanceAdvisor:
    try:
        return PerformanceAdvisor.from_config(config)
    except ValueError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


@click.group()
@click.option('--project-root', default='.', help='Directory holding .db_advisor/')
@click.option('--store-url', default=None, help='Override the configured store URL')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, project_root: str, store_url: Optional[str], verbose: bool):
    """Database performance advisor."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')
    ctx.ensure_object(dict)
    ctx.obj['project_root'] = project_root
    ctx.obj['store_url'] = store_url


@cli.command()
@click.option('--auto-fix', is_flag=True, help='Create missing high-priority indexes')
@click.option('--output-dir', default=None, help='Directory for the JSON report')
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON')
@click.pass_context
def audit(ctx, auto_fix: bool, output_dir: Optional[str], as_json: bool):
    """Run a full performance audit and save the report."""
    config = _load_config(ctx.obj['project_root'], ctx.obj['store_url'])
    advisor = _build_advisor(config)

    try:
        with advisor:
            report = advisor.generate_report()
            auto_result = advisor.auto_optimize() if auto_fix else None
    except StoreConnectionError as e:
        click.echo(f"✗ Cannot reach the store: {e}", err=True)
        sys.exit(1)

    path = save_report(report, output_dir or config.report_dir, auto_optimize_result=auto_result)

    if as_json:
        data = report.to_dict()
        if auto_result is not None:
            data['auto_optimization'] = auto_result.to_dict()
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(render_text_summary(report, auto_result))
        click.echo(f"\nReport saved to {path}")


@cli.command()
@click.pass_context
def indexes(ctx):
    """Show current indexes and missing recommendations only."""
    config = _load_config(ctx.obj['project_root'], ctx.obj['store_url'])
    advisor = _build_advisor(config)

    try:
        with advisor:
            advisor.store.ping()
            metadata = advisor.compiler.read_metadata()
            missing = advisor.compiler.gap_analyzer.analyze(metadata)
    except StoreConnectionError as e:
        click.echo(f"✗ Cannot reach the store: {e}", err=True)
        sys.exit(1)

    for name, info in metadata.items():
        if not info.ok:
            click.echo(f"{name}: ERROR {info.error}")
            continue
        click.echo(f"{name}: {len(info.indexes)} indexes, {info.document_count} documents")
        for index in info.indexes:
            click.echo(f"  - {index.name or index.default_name()}: {index.describe()}")

    if missing:
        click.echo(f"\n{len(missing)} missing indexes:")
        for rec in missing:
            click.echo(f"  [{rec.priority}] {rec.collection} ({rec.index_spec.describe()}): {rec.reason}")
    else:
        click.echo("\n✓ All expected indexes present")


@cli.group()
def config():
    """Manage the advisor configuration file."""
    pass


@config.command()
@click.pass_context
def show(ctx):
    """Print the effective configuration."""
    storage = ConfigStorage(ctx.obj['project_root'])
    effective = storage.load_effective()
    source = storage.get_config_path() if storage.exists() else 'defaults'
    click.echo(f"# source: {source}")
    click.echo(json.dumps(effective.to_dict(), indent=2))


@config.command()
@click.option('--store-url', 'init_store_url', default=None, help='Store URL to write')
@click.option('--database', default=None, help='Database name (MongoDB)')
@click.option('--force', is_flag=True, help='Overwrite an existing configuration')
@click.pass_context
def init(ctx, init_store_url: Optional[str], database: Optional[str], force: bool):
    """Write a configuration file with default settings."""
    storage = ConfigStorage(ctx.obj['project_root'])
    if storage.exists() and not force:
        click.echo(f"✗ Configuration already exists at {storage.get_config_path()} (use --force)", err=True)
        sys.exit(1)

    new_config = AdvisorConfig()
    if init_store_url or ctx.obj['store_url']:
        new_config.store_url = init_store_url or ctx.obj['store_url']
    if database:
        new_config.database_name = database

    is_valid, errors = ConfigValidator().validate_config(new_config)
    if not is_valid:
        for error in errors:
            click.echo(f"✗ {error}", err=True)
        sys.exit(1)

    path = storage.save_config(new_config)
    click.echo(f"✓ Configuration written to {path}")


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
