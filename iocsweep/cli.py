import sys

import click
import yaml
from pydantic import ValidationError

from . import __version__
from .config import ConfigManager, SweepConfig
from .inventory import log_environment
from .log import setup_logging
from .scanning.engine import PatternEngine
from .scanning.errors import IndicatorLoadError, RuleCompilationError
from .scanning.indicators import load_indicators
from .scanning.models import HashType, ScanModule
from .scanning.reporting import JsonLinesSink, LogSink, MultiSink
from .scanning.rules import RuleCompiler
from .scanning.sweep import SweepPipeline

BANNER = r"""------------------------------------------------------------------------
      _
     (_)___  ___ ______      _____  ___ ___
    / / _ \/ __/ __/ | /| / / -_) -_) _ \
   /_/\___/\__/\__/|__/|__/\__/\__/ .__/
                                  /_/
  Simple IOC and YARA Scanner

  Version {version}
------------------------------------------------------------------------"""


def create_engine() -> PatternEngine:
    """The pattern engine used by the CLI"""
    from .scanning.engines.yara_engine import YaraEngine
    return YaraEngine()


def _load_config(ctx) -> ConfigManager:
    try:
        return ConfigManager(ctx.obj.get('config'))
    except FileNotFoundError as e:
        raise click.ClickException(str(e))
    except (ValidationError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")


def _resolve_config(manager: ConfigManager, updates, scan_updates=None) -> SweepConfig:
    try:
        return manager.apply_overrides(updates=updates, scan_updates=scan_updates)
    except ValidationError as e:
        raise click.ClickException(f"Invalid option: {e}")


def _setup_logging(*args, **kwargs):
    try:
        return setup_logging(*args, **kwargs)
    except ValueError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option('--config', '-c', default=None, help='Configuration file path (YAML)')
@click.version_option(__version__, prog_name='iocsweep')
@click.pass_context
def cli(ctx, config):
    """iocsweep - IOC and YARA scanner"""
    ctx.ensure_object(dict)
    ctx.obj['config'] = config


@cli.command()
@click.argument('folder', required=False)
@click.option('--max-file-size', type=int, default=None, help='Maximum file size to scan (bytes)')
@click.option('--show-access-errors', is_flag=True, help='Show all file and process access errors')
@click.option('--scan-all-files', is_flag=True,
              help='Scan all files regardless of their file type / extension')
@click.option('--debug', is_flag=True, help='Show debugging information')
@click.option('--trace', is_flag=True, help='Show very verbose trace output')
@click.option('--noprocs', is_flag=True, help="Don't scan processes")
@click.option('--nofs', is_flag=True, help="Don't scan the file system")
@click.option('--signatures', '-s', default=None, help='Signature directory (iocs/ and yara/)')
@click.option('--workers', '-w', type=int, default=None, help='Number of parallel scan workers')
@click.option('--json-output', '-o', default=None, help='Also write findings as JSON lines to this file')
@click.option('--no-log-file', is_flag=True, help="Don't write a log file")
@click.pass_context
def scan(ctx, folder, max_file_size, show_access_errors, scan_all_files, debug, trace,
         noprocs, nofs, signatures, workers, json_output, no_log_file):
    """Scan running processes and the file system (FOLDER, default: filesystem root)"""
    manager = _load_config(ctx)

    log_level = 'trace' if trace else 'debug' if debug else None
    config = _resolve_config(
        manager,
        updates={
            'target': folder,
            'signature_dir': signatures,
            'json_output': json_output,
            'log_level': log_level,
            'log_file': False if no_log_file else None,
        },
        scan_updates={
            'max_file_size': max_file_size,
            'show_access_errors': show_access_errors or None,
            'scan_all_types': scan_all_files or None,
            'workers': workers,
        },
    )

    modules = [m for m in config.modules
               if not (noprocs and m == ScanModule.PROCESS_CHECK)
               and not (nofs and m == ScanModule.FILE_SCAN)]

    logger = _setup_logging(config.log_level, config.log_dir, config.log_file)
    click.echo(BANNER.format(version=__version__))
    logger.info(f"iocsweep scan started VERSION: {__version__}")
    log_environment(logger)

    sinks = [LogSink(logger.getChild('findings'))]
    if config.json_output:
        sinks.append(JsonLinesSink(config.json_output))
    sink = MultiSink(sinks)

    pipeline = SweepPipeline(create_engine(), config.scan, sink, logger)
    try:
        pipeline.initialize(config.indicator_path(), config.rules_path())
        result = pipeline.run(config.target, modules)
    except (IndicatorLoadError, RuleCompilationError) as e:
        logger.critical(f"{e} (use --debug for more information)")
        sys.exit(1)
    finally:
        sink.close()

    logger.info(f"iocsweep scan finished FINDINGS: {result.total_findings}")


@cli.command()
@click.option('--signatures', '-s', default=None, help='Signature directory (iocs/ and yara/)')
@click.option('--debug', is_flag=True, help='Show debugging information')
@click.pass_context
def signatures(ctx, signatures, debug):
    """Load hash IOCs and compile rules without scanning"""
    manager = _load_config(ctx)
    config = _resolve_config(
        manager,
        updates={'signature_dir': signatures, 'log_level': 'debug' if debug else None}
    )
    logger = _setup_logging(config.log_level, log_file=False)

    try:
        store = load_indicators(config.indicator_path(), logger)
        rules = RuleCompiler(create_engine(), logger).compile_all(config.rules_path())
    except (IndicatorLoadError, RuleCompilationError) as e:
        logger.critical(str(e))
        sys.exit(1)

    counts = store.counts()
    click.echo(f"Hash IOCs: {len(store)} "
               f"(MD5 {counts[HashType.MD5]}, SHA1 {counts[HashType.SHA1]}, "
               f"SHA256 {counts[HashType.SHA256]}, unknown {counts[HashType.UNKNOWN]})")
    click.echo(f"Rule files: {rules.file_count} compiled, {len(rules.rejected_files)} rejected")
    for path in rules.rejected_files:
        click.echo(f"  rejected: {path}")


if __name__ == '__main__':
    cli()
