#!/usr/bin/env python3
"""
Photo Reconciliation CLI

Deduplicate and reconcile photo backups: copy with collision-avoiding
rename, fix canonical dates, remove renamed duplicates and copy the files
one backup is missing.
"""

import sys
import logging
import click
from datetime import datetime
from pathlib import Path
from colorama import init, Fore, Style

from photo_reconciler import (
    BulkCopier,
    CanonicalDateSetter,
    Config,
    DuplicateDetector,
    FileCopier,
    MetadataReader,
    ReconcileError,
    ReconcileReporter,
    TimestampResolver,
    UniqueCopier,
)
from photo_reconciler.timestamps import resolve_many

# Initialize colorama for cross-platform colored output
init()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

_console_handler = None
_file_handler = None


def setup_logging(level: str = 'INFO', log_dir: Path = None, log_name: str = 'reconcile'):
    """Set up logging configuration."""
    global _console_handler, _file_handler
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Console handler on the current stdout, replacing one from an earlier call
    if _console_handler is not None:
        root_logger.removeHandler(_console_handler)
    _console_handler = logging.StreamHandler(sys.stdout)
    _console_handler.setFormatter(formatter)
    root_logger.addHandler(_console_handler)

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        if _file_handler is not None:
            root_logger.removeHandler(_file_handler)
        _file_handler = logging.FileHandler(log_dir / f'{log_name}.log')
        _file_handler.setFormatter(formatter)
        root_logger.addHandler(_file_handler)

    # Reduce noise from libraries
    logging.getLogger('exifread').setLevel(logging.ERROR)


def print_header(title: str):
    """Print a formatted header."""
    click.echo(f"\n{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}")
    click.echo(f"{Fore.CYAN}{title.center(60)}{Style.RESET_ALL}")
    click.echo(f"{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}\n")


def print_success(message: str):
    click.echo(f"{Fore.GREEN}OK: {message}{Style.RESET_ALL}")


def print_warning(message: str):
    click.echo(f"{Fore.YELLOW}WARN: {message}{Style.RESET_ALL}")


def print_error(message: str):
    click.echo(f"{Fore.RED}ERROR: {message}{Style.RESET_ALL}")


def print_info(message: str):
    click.echo(f"{Fore.BLUE}INFO: {message}{Style.RESET_ALL}")


def report_results(ctx, results, passthru: bool, report: str = None):
    """Print errors and affected files of an operation, and save a report if asked."""
    if results['dry_run']:
        print_info("DRY RUN completed - no files were actually modified")

    errors = results['errors']
    if errors:
        print_warning(f"Completed with {len(errors)} errors:")
        for error in errors[:5]:
            click.echo(f"  - {error}")
        if len(errors) > 5:
            click.echo(f"  - ... and {len(errors) - 5} more errors")

    if passthru:
        for path in results['affected']:
            click.echo(path)

    print_success(f"{len(results['affected']):,} files affected")

    if report is not None:
        reporter = ReconcileReporter(ctx.obj['config'])
        report_file = reporter.save_report(results, report or None)
        print_success(f"Report saved: {report_file}")


def dry_run_option(func):
    return click.option('--dry-run/--no-dry-run', default=None,
                        help='Only report what would change (override config)')(func)


def passthru_option(func):
    return click.option('--passthru', '-p', is_flag=True,
                        help='Print every affected file')(func)


def report_option(func):
    return click.option('--report', '-r', default=None,
                        help='Save a report (file name, or "" for an automatic name)')(func)


@click.group()
@click.option('--config', '-c', help='Path to configuration file')
@click.option('--log-level', '-l', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level')
@click.pass_context
def cli(ctx, config, log_level):
    """Photo Reconciliation Tool - dedupe and reconcile photo backups."""

    setup_logging(log_level or 'INFO')

    try:
        config_obj = Config(config)
    except Exception as e:
        print_error(f"Failed to load configuration: {e}")
        sys.exit(1)

    errors = config_obj.validate_config()
    if errors:
        print_error("Configuration validation failed:")
        for error in errors:
            click.echo(f"  - {error}")
        sys.exit(1)

    log_dir = config_obj.get_log_dir()
    setup_logging(log_level or config_obj.get_log_level(),
                  Path(log_dir) if log_dir else None,
                  ctx.invoked_subcommand or 'reconcile')

    ctx.ensure_object(dict)
    ctx.obj['config'] = config_obj


@cli.command()
@click.argument('paths', nargs=-1, required=True)
@click.argument('destination', type=click.Path(file_okay=False))
@click.option('--keep-numbering', is_flag=True, help='Keep existing _N suffixes on source names')
@click.option('--new-timestamps', is_flag=True, help='Give copies fresh timestamps')
@click.option('--move', is_flag=True, help='Move instead of copy')
@passthru_option
@dry_run_option
@report_option
@click.pass_context
def copy(ctx, paths, destination, keep_numbering, new_timestamps, move, passthru, dry_run, report):
    """Copy (or move) PATHS into DESTINATION, renaming on collision."""

    print_header("MOVE WITH RENAME" if move else "COPY WITH RENAME")
    copier = FileCopier(ctx.obj['config'])

    try:
        results = copier.copy_with_rename(
            paths, destination, keep_numbering=keep_numbering,
            new_timestamps=new_timestamps, move=move, dry_run=dry_run,
        )
    except ReconcileError as e:
        print_error(f"Copy failed: {e}")
        sys.exit(1)

    report_results(ctx, results, passthru, report)


@cli.command('set-date')
@click.argument('paths', nargs=-1, required=True)
@click.option('--use-latest', is_flag=True, help='Pick the latest date instead of the earliest')
@click.option('--ignore-created', is_flag=True, help='Leave date created out of the candidates')
@passthru_option
@dry_run_option
@report_option
@click.pass_context
def set_date(ctx, paths, use_latest, ignore_created, passthru, dry_run, report):
    """Set date created (and date taken) of PATHS to their canonical date.

    Date modified is never changed.
    """

    print_header("CANONICAL DATES")
    setter = CanonicalDateSetter(ctx.obj['config'])

    results = setter.set_canonical_dates(
        paths, use_latest=use_latest, ignore_created=ignore_created, dry_run=dry_run,
    )
    report_results(ctx, results, passthru, report)


@cli.command()
@click.argument('directory', type=click.Path(exists=True, file_okay=False))
@click.option('--recurse/--no-recurse', '-R', default=None, help='Include subdirectories (override config)')
@click.option('--keep', is_flag=True, help='Move duplicates into the Duplicates folder instead of deleting')
@passthru_option
@dry_run_option
@report_option
@click.pass_context
def dedupe(ctx, directory, recurse, keep, passthru, dry_run, report):
    """Remove renamed copies (name_N.ext) whose dates match name.ext."""

    print_header("DUPLICATE REMOVAL")
    config = ctx.obj['config']
    detector = DuplicateDetector(config)

    if recurse is None:
        recurse = config.should_recurse()

    try:
        results = detector.find_and_resolve(directory, recurse=recurse, keep=keep, dry_run=dry_run)
    except ReconcileError as e:
        print_error(f"Duplicate scan failed: {e}")
        sys.exit(1)

    report_results(ctx, results, passthru, report)


@cli.command()
@click.argument('source', type=click.Path(exists=True, file_okay=False))
@click.argument('target', type=click.Path(exists=True, file_okay=False))
@click.argument('destination', type=click.Path(file_okay=False))
@click.option('--recurse/--no-recurse', '-R', default=None, help='Include subdirectories (override config)')
@passthru_option
@dry_run_option
@report_option
@click.pass_context
def unique(ctx, source, target, destination, recurse, passthru, dry_run, report):
    """Copy files of SOURCE that are missing from TARGET into DESTINATION."""

    print_header("COPY UNIQUE")
    config = ctx.obj['config']
    copier = UniqueCopier(config)

    if recurse is None:
        recurse = config.should_recurse()

    try:
        results = copier.compute_and_copy(source, target, destination, recurse=recurse, dry_run=dry_run)
    except ReconcileError as e:
        print_error(f"Copy unique failed: {e}")
        sys.exit(1)

    report_results(ctx, results, passthru, report)


@cli.command()
@click.argument('paths', nargs=-1, required=True)
@click.option('--filesystem', is_flag=True, help='Ignore embedded metadata')
@click.option('--modified', is_flag=True, help='Fall back to date modified instead of date created')
@click.pass_context
def timestamp(ctx, paths, filesystem, modified):
    """Show the best-available timestamp of PATHS."""

    resolver = TimestampResolver(MetadataReader(ctx.obj['config']))
    rows = resolve_many(resolver, paths, prefer_exif=not filesystem, default_to_modified=modified)

    failed = 0
    for row in rows:
        if row['error']:
            failed += 1
            print_warning(f"{row['path']}: {row['error']}")
        else:
            click.echo(f"{row['timestamp'].isoformat(sep=' ')}  {row['path']}")

    if failed and failed == len(rows):
        sys.exit(1)


@cli.command('copy-since')
@click.argument('source', type=click.Path(exists=True, file_okay=False))
@click.argument('destination', type=click.Path(file_okay=False))
@click.option('--cutoff', type=click.DateTime(), default=None, help='Copy files taken at or after this date')
@click.option('--first-file', type=click.Path(dir_okay=False), default=None,
              help='Use the date of this file as the cutoff')
@click.option('--recurse/--no-recurse', '-R', default=None, help='Include subdirectories (override config)')
@passthru_option
@dry_run_option
@report_option
@click.pass_context
def copy_since(ctx, source, destination, cutoff, first_file, recurse, passthru, dry_run, report):
    """Copy files of SOURCE taken since a cutoff into DESTINATION."""

    print_header("COPY SINCE CUTOFF")
    config = ctx.obj['config']
    copier = FileCopier(config)

    if recurse is None:
        recurse = config.should_recurse()

    try:
        results = copier.copy_since(source, destination, cutoff=cutoff, first_file=first_file,
                                    recurse=recurse, dry_run=dry_run)
    except ReconcileError as e:
        print_error(f"Copy failed: {e}")
        sys.exit(1)

    report_results(ctx, results, passthru, report)


@cli.command('bulk-copy')
@click.argument('source', type=click.Path(exists=True, file_okay=False))
@click.argument('destination', type=click.Path(file_okay=False))
@click.option('--pattern', default='*', help='File name pattern to copy')
@click.option('--recurse/--no-recurse', default=True, help='Include subdirectories')
@click.option('--retries', type=int, default=None, help='Retries per failing file (override config)')
@click.option('--wait', 'wait_seconds', type=float, default=None, help='Seconds between retries (override config)')
@dry_run_option
@click.pass_context
def bulk_copy(ctx, source, destination, pattern, recurse, retries, wait_seconds, dry_run):
    """Archive SOURCE into DESTINATION, keeping folder structure."""

    print_header("BULK COPY")
    copier = BulkCopier(ctx.obj['config'])
    started = datetime.now()

    try:
        result = copier.copy_tree(source, destination, pattern=pattern, recurse=recurse,
                                  retries=retries, wait_seconds=wait_seconds, dry_run=dry_run)
    except ReconcileError as e:
        print_error(f"Bulk copy failed: {e}")
        sys.exit(1)

    for line in result.log:
        click.echo(line)

    elapsed = (datetime.now() - started).total_seconds()
    if result.ok:
        print_success(f"Bulk copy complete in {elapsed:.1f}s")
    else:
        print_error(f"Bulk copy failed: {len(result.failed)} files not copied" if result.failed
                    else "Bulk copy failed: see log above")
        sys.exit(result.status_code)


if __name__ == '__main__':
    cli()
