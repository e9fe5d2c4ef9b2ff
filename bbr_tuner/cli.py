"""
CLI - Command-line interface for bbr_tuner.

Actions:
- apply (default): profile, generate, back up, write, reload, verify
- uninstall / revert: restore the newest backup or remove the managed file
- status: show what would be applied and how the live kernel differs
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Config, create_example_config
from .discovery import SystemScanner, SystemScannerConfig, PreflightChecker
from .lock import InstanceLock
from .protocol.errors import TunerError, ConfigError
from .snapshot import BackupManager
from .tuning import (
    TuningExecutor,
    ExecutorConfig,
    ConfigRenderer,
    SysctlService,
    TuningVerifier,
)
from .ui import ConsoleUI

logger = logging.getLogger(__name__)


ACTIONS = ("apply", "uninstall", "revert", "status")
REVERT_ACTIONS = ("uninstall", "revert")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="bbr-tuner",
        description="Hardware-tiered TCP/IP and BBR tuning for Linux hosts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    bbr-tuner                  # apply tuning for this host
    bbr-tuner --dry-run        # show the file that would be written
    bbr-tuner status           # compare intended and live values
    bbr-tuner revert           # restore the previous configuration

Environment Variables:
    BBR_TUNER_CONF_FILE    Managed sysctl file (default /etc/sysctl.d/99-bbr.conf)
    BBR_TUNER_RETAIN       Number of backups to keep
        """,
    )

    parser.add_argument(
        "action",
        nargs="?",
        default="apply",
        choices=ACTIONS,
        help="What to do (default: apply)"
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to TOML config file"
    )
    parser.add_argument(
        "--conf-file",
        help="Managed sysctl file to write"
    )
    parser.add_argument(
        "--retain",
        type=int,
        help="Number of backups to keep"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the rendered file without writing or applying it"
    )
    parser.add_argument(
        "--skip-checks",
        action="store_true",
        help="Skip privilege, kernel version and BBR module checks"
    )
    parser.add_argument(
        "--init-config",
        metavar="PATH",
        help="Write an example config file to PATH and exit"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only print errors"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress (-v) or debug details (-vv)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def setup_logging(verbosity: int) -> None:
    """Operator output goes through the console; logs are for -v/-vv."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def build_executor(config: Config) -> TuningExecutor:
    """Wire real collaborators from configuration."""
    service = SysctlService()
    return TuningExecutor(
        config=ExecutorConfig(
            conf_path=Path(config.paths.conf_file),
            retain=config.backup.retain,
        ),
        scanner=SystemScanner(SystemScannerConfig(meminfo_path=config.paths.meminfo)),
        renderer=ConfigRenderer(conntrack_probe=Path(config.paths.conntrack_probe)),
        backups=BackupManager(),
        service=service,
        verifier=TuningVerifier(service=service, expected=config.verify.expected()),
    )


def run_apply(executor: TuningExecutor, config: Config, ui: ConsoleUI, dry_run: bool = False) -> int:
    if dry_run:
        profile, tier, document = executor.plan()
        ui.print_profile(profile, tier)
        ui.print_document(document, executor.conf_path)
        return 0

    if config.preflight.enabled:
        ui.print_header("Preflight")
        checker = PreflightChecker(
            service=executor.service,
            min_kernel=config.min_kernel_version(),
        )
        release = checker.run()
        ui.print_success(f"Kernel {release} supports BBR")

    with InstanceLock(Path(config.paths.lock_file)):
        summary = executor.run()

    ui.print_summary(summary)
    ui.print_tips(executor.conf_path)
    return 0


def run_revert(executor: TuningExecutor, config: Config, ui: ConsoleUI) -> int:
    if config.preflight.enabled:
        PreflightChecker(service=executor.service).check_privilege()

    with InstanceLock(Path(config.paths.lock_file)):
        result = executor.rollback()

    ui.print_rollback(result)
    return 0


def run_status(executor: TuningExecutor, ui: ConsoleUI) -> int:
    profile, tier, document = executor.plan()
    ui.print_profile(profile, tier)

    ui.print_header("Managed File")
    if executor.conf_path.exists():
        ui.print(f"{executor.conf_path} [green]present[/]")
    else:
        ui.print(f"{executor.conf_path} [yellow]not present[/]")

    values = document.values()
    ui.print_live_diff(executor.verifier.diff_live(values), total=len(values))
    ui.print_snapshots(executor.backups.list_snapshots(executor.conf_path))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = parse_args(argv)
    setup_logging(args.verbose)
    ui = ConsoleUI(quiet=args.quiet)

    try:
        if args.init_config:
            path = create_example_config(args.init_config)
            ui.print_success(f"Wrote example config to {path}")
            return 0

        config = Config.load(args.config).override_from_args(args)
        errors = config.validate()
        if errors:
            raise ConfigError("; ".join(errors))

        ui.quiet = config.output.quiet
        if config.output.verbose and not args.verbose:
            logging.getLogger().setLevel(logging.INFO)
        ui.print_banner()
        executor = build_executor(config)

        if args.action in REVERT_ACTIONS:
            return run_revert(executor, config, ui)
        if args.action == "status":
            return run_status(executor, ui)
        return run_apply(executor, config, ui, dry_run=args.dry_run)

    except KeyboardInterrupt:
        ui.print_error("Interrupted by user")
        return 130

    except (TunerError, FileExistsError) as e:
        ui.print_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
