"""CLI argument parsing and main entry point.

Subcommands:

* ``rpc-sentinel server``   — probe endpoints on an interval and serve ``/metrics``.
* ``rpc-sentinel check``    — run one probe cycle now and print the results.
* ``rpc-sentinel validate`` — load and validate the configuration file.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import socket
import sys
from typing import List, Optional

import uvicorn

from rpc_sentinel.config.loader import load_config, resolve_config_path
from rpc_sentinel.config.schema import SentinelConfig, parse_bind_address
from rpc_sentinel.constants import CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE, SERVER_NAME, SERVER_VERSION
from rpc_sentinel.display.console import format_config_summary, format_outcomes
from rpc_sentinel.display.logging_config import setup_logging
from rpc_sentinel.errors import ConfigurationError
from rpc_sentinel.probe.models import ProbeOutcome
from rpc_sentinel.runtime.service import SentinelService
from rpc_sentinel.server.app import create_app

module_logger = logging.getLogger(__name__)

_CONFIG_FORMAT_HELP = """\
Configuration file format (YAML):
  endpoints:
    - name: endpoint1
      url: http://example1.com
    - name: endpoint2
      url: https://example2.com/${API_KEY}
  interval: 5              # check interval in minutes
  method: eth_blockNumber  # RPC method to call
  prometheus:
    address: ":8080"       # address to expose Prometheus metrics
  probe:                   # optional
    timeout: 30            # seconds per probe (connect + call)
    connect_timeout: 10
    max_idle_connections: 100
    idle_timeout: 90
    concurrent: true
"""


def _load_or_exit(config_path: Optional[str]) -> tuple[SentinelConfig, str]:
    """Load the config or print the error and exit with status 1."""
    cfg_abs_path = resolve_config_path(config_path)
    module_logger.info("Configuration file path resolved to: %s", cfg_abs_path)
    try:
        return load_config(cfg_abs_path), cfg_abs_path
    except ConfigurationError as exc:
        module_logger.error("Configuration error: %s", exc)
        print(f"❌ {exc}", file=sys.stderr)
        sys.exit(1)


# ── ``rpc-sentinel server`` ──────────────────────────────────────────────


async def _run_server(service: SentinelService, host: str, port: int, log_lvl: str) -> None:
    """Async main for the server subcommand."""
    uvicorn_cfg = uvicorn.Config(
        app=create_app(service),
        host=host,
        port=port,
        log_config=None,
        log_level=log_lvl.lower() if log_lvl == "DEBUG" else "warning",
    )
    uvicorn_svr_inst = uvicorn.Server(uvicorn_cfg)

    module_logger.info("Starting Prometheus HTTP server on http://%s:%s/metrics", host, port)
    try:
        await uvicorn_svr_inst.serve()
    except (KeyboardInterrupt, SystemExit) as e_exit:
        module_logger.info("Server stopped due to '%s'.", type(e_exit).__name__)
    finally:
        # Lifespan normally stops the service; this covers a failed startup.
        await service.stop()
        module_logger.info("%s has shut down.", SERVER_NAME)


def _port_available(host: str, port: int) -> bool:
    """Pre-flight check that the metrics port can be bound."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    probe = socket.socket(family, socket.SOCK_STREAM)
    try:
        probe.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        probe.bind((host, port))
    except OSError as e_bind:
        module_logger.error("Port %s on %s is unavailable: %s", port, host, e_bind)
        return False
    finally:
        probe.close()
    return True


def _cmd_server(args: argparse.Namespace) -> None:
    """Entry-point for ``rpc-sentinel server``."""
    log_fpath, cfg_log_lvl = setup_logging(args.log_level, log_dir=args.log_dir)
    module_logger.info(
        "---- %s v%s starting (log level: %s, log file: %s) ----",
        SERVER_NAME,
        SERVER_VERSION,
        cfg_log_lvl,
        log_fpath or "-",
    )

    config, _ = _load_or_exit(args.config)
    address = args.address or config.prometheus.address
    try:
        host, port = parse_bind_address(address)
    except ValueError as exc:
        print(f"❌ Invalid metrics address: {exc}", file=sys.stderr)
        sys.exit(1)

    if not _port_available(host, port):
        print(
            f"\n❌ Error: Port {port} on {host} is already in use.\n"
            f"   Release the port or choose a different one with --address.\n",
            file=sys.stderr,
        )
        sys.exit(1)

    service = SentinelService(config)
    try:
        asyncio.run(_run_server(service, host, port, cfg_log_lvl))
    except KeyboardInterrupt:
        module_logger.info("%s interrupted by KeyboardInterrupt.", SERVER_NAME)
    except Exception as e_fatal:
        module_logger.exception("%s encountered an uncaught fatal error: %s", SERVER_NAME, e_fatal)
        sys.exit(1)
    finally:
        module_logger.info("%s application finished.", SERVER_NAME)


# ── ``rpc-sentinel check`` ───────────────────────────────────────────────


async def _run_check(service: SentinelService) -> List[ProbeOutcome]:
    try:
        return await service.run_once()
    finally:
        await service.stop()


def _cmd_check(args: argparse.Namespace) -> None:
    """Entry-point for ``rpc-sentinel check``: one cycle, exit 1 if any endpoint is down."""
    setup_logging(args.log_level)
    config, _ = _load_or_exit(args.config)

    outcomes = asyncio.run(_run_check(SentinelService(config)))
    print(format_outcomes(outcomes))
    if not all(o.is_healthy for o in outcomes):
        sys.exit(1)


# ── ``rpc-sentinel validate`` ────────────────────────────────────────────


def _cmd_validate(args: argparse.Namespace) -> None:
    """Entry-point for ``rpc-sentinel validate``."""
    setup_logging(args.log_level)
    config, cfg_abs_path = _load_or_exit(args.config)
    print(format_config_summary(config, cfg_abs_path))


# ── CLI parser construction ──────────────────────────────────────────────


def _add_common_arguments(sp: argparse.ArgumentParser, default_log_level: str) -> None:
    sp.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help=(
            f"Path to configuration file (YAML). Default: ${CONFIG_ENV_VAR}, "
            f"then auto-detect {DEFAULT_CONFIG_FILE}/config.yml"
        ),
    )
    sp.add_argument(
        "--log-level",
        type=str,
        default=default_log_level,
        choices=["debug", "info", "warning", "error", "critical"],
        help=f"Set logging level (default: {default_log_level})",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with server/check/validate subcommands."""
    parser = argparse.ArgumentParser(
        prog="rpc-sentinel",
        description=(
            f"{SERVER_NAME} v{SERVER_VERSION} — checks the health of blockchain RPC "
            "endpoints and exposes metrics for Prometheus."
        ),
        epilog=_CONFIG_FORMAT_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {SERVER_VERSION}")

    subparsers = parser.add_subparsers(dest="command")

    # ── server ──────────────────────────────────────────────────
    sp_server = subparsers.add_parser(
        "server",
        help="Probe endpoints on the configured interval and serve /metrics",
        epilog=_CONFIG_FORMAT_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_common_arguments(sp_server, "info")
    sp_server.add_argument(
        "--address",
        type=str,
        default=None,
        metavar="HOST:PORT",
        help="Metrics bind address, overrides prometheus.address (e.g. :8080)",
    )
    sp_server.add_argument(
        "--log-dir",
        type=str,
        default=None,
        metavar="DIR",
        help="Also write a timestamped log file into DIR",
    )
    sp_server.set_defaults(func=_cmd_server)

    # ── check ───────────────────────────────────────────────────
    sp_check = subparsers.add_parser(
        "check",
        help="Probe every endpoint once and print the results",
    )
    _add_common_arguments(sp_check, "warning")
    sp_check.set_defaults(func=_cmd_check)

    # ── validate ────────────────────────────────────────────────
    sp_validate = subparsers.add_parser(
        "validate",
        help="Validate the configuration file and print a summary",
    )
    _add_common_arguments(sp_validate, "warning")
    sp_validate.set_defaults(func=_cmd_validate)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Program entry point: parse arguments and dispatch to subcommand."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    else:
        args.func(args)
