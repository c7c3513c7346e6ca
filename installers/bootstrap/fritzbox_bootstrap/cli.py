"""CLI bootstrap installer that downloads, verifies and installs the server binary."""

from __future__ import annotations

import argparse
import json
import os
import signal
from pathlib import Path
from typing import IO, Mapping

from .config import DEFAULT_REPO, InstallContext
from .errors import InstallerError
from .installer import AlwaysProceed, InstallOutcome, policy_for_stdin
from .logging_setup import configure_logging, get_logger, reset_logging
from .pipeline import InstallResult, run_install


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fritzbox-mcp-install", description="fritzbox-mcp-server installer")
    parser.add_argument("--repo", default=DEFAULT_REPO, help="GitHub owner/repo")
    parser.add_argument("--version", default=None, help="Release tag or 'latest' (env FRITZBOX_MCP_VERSION)")
    parser.add_argument(
        "--install-dir",
        type=Path,
        default=None,
        help="Installation directory (env FRITZBOX_MCP_INSTALL_DIR, default ~/.local/bin)",
    )
    parser.add_argument("--yes", action="store_true", help="Overwrite an existing installation without asking")
    parser.add_argument("--json", action="store_true", help="Print a JSON summary to stdout")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write JSON-lines logs to this file")
    parser.add_argument("--no-color", action="store_true", help="Disable coloured output")
    return parser


def _terminate(signum, _frame) -> None:
    # Unwind normally so the scratch directory context manager runs.
    raise SystemExit(128 + signum)


def _print_banner(context: InstallContext, result: InstallResult) -> None:
    logger = get_logger()
    logger.info("==============================", extra={"success": True})
    logger.info("✓ fritzbox-mcp-server installed successfully!", extra={"success": True, "event": "installed"})
    logger.info("==============================", extra={"success": True})
    logger.info(f"Installation location: {result.target_path}")
    logger.info(f"Version: {result.version}")
    logger.info("Next steps:")
    logger.info("1. Configure your AI agent (Claude Desktop, Cline, etc.) to use this MCP server")
    logger.info("2. Create a .env file with your Fritz!Box credentials (see README for details)")
    logger.info("3. Add the server to your MCP configuration file")
    logger.info(f"Documentation: {context.project_url}")


def _summary(result: InstallResult, ok: bool, error: InstallerError | None = None) -> dict:
    return {
        "ok": ok,
        "state": result.state.value,
        "platform": result.target.tag if result.target else None,
        "version": result.version,
        "path": str(result.target_path) if result.target_path else None,
        "outcome": result.outcome.value if result.outcome else None,
        "error": str(error) if error else None,
        "category": error.category if error else None,
    }


def _run(args: argparse.Namespace, environ: Mapping[str, str], stdin: IO[str] | None, pipeline_kwargs: dict) -> int:
    logger = get_logger()
    context = InstallContext.from_env(
        environ,
        repo=args.repo,
        version=args.version,
        install_dir=args.install_dir.expanduser() if args.install_dir else None,
    )
    policy = AlwaysProceed() if args.yes else policy_for_stdin(stdin)
    result = InstallResult()

    logger.info("fritzbox-mcp-server installer")
    logger.info("==============================")

    try:
        run_install(context, policy, result=result, **pipeline_kwargs)
    except InstallerError as exc:
        logger.error(str(exc), extra={"event": "failed", "category": exc.category})
        if exc.hint:
            logger.error(exc.hint)
        if args.json:
            print(json.dumps(_summary(result, ok=False, error=exc), indent=2))
        return 1

    if result.outcome is InstallOutcome.DECLINED:
        logger.info("Installation cancelled by user", extra={"event": "declined"})
    else:
        _print_banner(context, result)

    if args.json:
        print(json.dumps(_summary(result, ok=True), indent=2))
    return 0


def main(
    argv: list[str] | None = None,
    environ: Mapping[str, str] | None = None,
    stdin: IO[str] | None = None,
    **pipeline_kwargs,
) -> int:
    args = build_parser().parse_args(argv)
    environ = os.environ if environ is None else environ

    owns_logging = not get_logger().handlers
    configure_logging(log_file=args.log_file, color=False if args.no_color else None)
    previous_handler = signal.signal(signal.SIGTERM, _terminate)
    try:
        return _run(args, environ, stdin, pipeline_kwargs)
    except KeyboardInterrupt:
        get_logger().error("Installation interrupted", extra={"event": "interrupted"})
        return 130
    finally:
        signal.signal(signal.SIGTERM, previous_handler)
        if owns_logging:
            reset_logging()


if __name__ == "__main__":
    raise SystemExit(main())
