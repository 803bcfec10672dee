"""Command surface: init, validate and start."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from openx_config.config.loader import dump_document
from openx_config.config.pipeline import run_pipeline
from openx_config.config.reporter import render_json, render_text
from openx_config.config.substitution import EnvSnapshot, snapshot_environment
from openx_config.config.template import STARTER_VARIABLES, generate_default_document
from openx_config.errors import LoadError
from openx_config.logging import get_logger, setup_logging, setup_logging_from_env

log = get_logger("cli")

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_LOAD_FAILURE = 2

DEFAULT_CONFIG_PATH = "master_config.yaml"


def _cmd_init(args: argparse.Namespace, env: EnvSnapshot) -> int:
    document = generate_default_document()
    if args.output == "-":
        dump_document(document, sys.stdout)
        return EXIT_OK

    output = Path(args.output)
    if output.exists() and not args.force:
        print(f"Refusing to overwrite {output}; pass --force to replace it", file=sys.stderr)
        return EXIT_LOAD_FAILURE
    try:
        dump_document(document, output)
    except OSError as exc:
        print(f"Failed to write {output}: {exc.strerror or exc}", file=sys.stderr)
        return EXIT_LOAD_FAILURE
    print(f"Wrote default configuration to {output}")
    print(f"Set {', '.join(STARTER_VARIABLES)} before running validate or start")
    return EXIT_OK


def _cmd_validate(args: argparse.Namespace, env: EnvSnapshot) -> int:
    try:
        result = run_pipeline(args.config, env)
    except LoadError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_LOAD_FAILURE

    render = render_json if args.format == "json" else render_text
    print(render(result.report, result.config).rstrip("\n"))
    return EXIT_OK if result.ok else EXIT_INVALID


def _cmd_start(args: argparse.Namespace, env: EnvSnapshot) -> int:
    try:
        result = run_pipeline(args.config, env)
    except LoadError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_LOAD_FAILURE

    print(render_text(result.report).rstrip("\n"))
    config = result.config
    if config is None:
        return EXIT_INVALID

    setup_logging(level=config.logging.level, log_format=config.logging.format)
    log.info(
        "config_accepted",
        exchange=config.exchange.name,
        mode=config.exchange.mode,
        assets=[a.symbol for a in config.enabled_assets],
        primary_currency=config.primary_currency.symbol,
    )
    for service, storage in config.storage_domains.items():
        if storage.postgres is not None:
            url = storage.postgres.sqlalchemy_url()
            log.info("storage_target", service=service, url=url.render_as_string(hide_password=True))
    # TODO: hand the resolved config to the service runtimes once they exist.
    log.warning("runtime_not_implemented", mode=args.mode)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openx",
        description="OpenExchange configuration tool",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Write a new configuration file with every default filled in")
    init.add_argument("--output", "-o", default=DEFAULT_CONFIG_PATH, help="Output path, or - for stdout")
    init.add_argument("--force", action="store_true", help="Overwrite an existing file")
    init.set_defaults(handler=_cmd_init)

    validate = sub.add_parser("validate", help="Validate a configuration file")
    validate.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Path to the configuration file")
    validate.add_argument("--format", choices=("text", "json"), default="text", help="Report format")
    validate.set_defaults(handler=_cmd_validate)

    start = sub.add_parser("start", help="Validate, then start the exchange")
    start.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Path to the configuration file")
    start.add_argument("--mode", default="monolith", help="Deployment mode (monolith or a single service)")
    start.set_defaults(handler=_cmd_start)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: parse arguments, take the environment snapshot, dispatch."""
    args = build_parser().parse_args(argv)
    env = snapshot_environment()
    setup_logging_from_env(env)
    return args.handler(args, env)
