"""Command line entry point."""

import argparse
import asyncio
import signal
import sys
import threading
from typing import List, Optional

from .config import (
    ConfigLoader,
    ConfigurationError,
    SyncConfig,
    get_settings,
    load_config_from_env
)
from .core import SyncEngine, SyncEvent, SyncResult
from .stores import GoogleDriveStore, StoreError
from .utils.log_tail import LogTailer
from .utils.logging import setup_logging, get_logger

EXIT_OK = 0
EXIT_SYNC_FAILED = 1
EXIT_CONFIG_ERROR = 2


class DriveSyncApp:
    """Wires configuration, stores and the sync engine for one CLI run."""

    def __init__(self, config: SyncConfig, remote_store: Optional[GoogleDriveStore] = None):
        self.config = config
        self.logger = get_logger("DriveSync")
        self.remote_store = remote_store or GoogleDriveStore(
            parent_folder=config.parent_folder,
            credentials_path=config.credentials_path,
            application_name=config.application_name
        )
        self.engine = SyncEngine(config=config, remote_store=self.remote_store)

    def report_event(self, event: SyncEvent) -> None:
        """Progress sink: log each event as it arrives."""
        if event.success:
            self.logger.info("Sync event", **event.to_dict())
        else:
            self.logger.error("Sync event failed", **event.to_dict())

    async def upload(self) -> SyncResult:
        return await self.engine.sync_to_remote(on_progress=self.report_event)

    async def download(self) -> SyncResult:
        return await self.engine.sync_from_remote(on_progress=self.report_event)

    async def plan(self, direction: str) -> int:
        """Print the plan for a direction without applying it."""
        try:
            if direction == "upload":
                plan = await self.engine.plan_upload()
                sections = [
                    ("upload", [f.name for f in plan.to_upload]),
                    ("delete", [f.name for f in plan.to_delete]),
                    ("keep", [f.name for f in plan.to_keep]),
                ]
            else:
                plan = await self.engine.plan_download()
                sections = [
                    ("download", [f.name for f in plan.to_download]),
                    ("keep", [f.name for f in plan.to_keep]),
                ]
        except StoreError as e:
            self.logger.error("Could not compute plan", direction=direction, error=str(e))
            return EXIT_SYNC_FAILED

        for action, names in sections:
            print(f"{action} ({len(names)}):")
            for name in names:
                print(f"  {name}")
        return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drive-sync",
        description="Sync a local directory with a Google Drive app folder using modification times."
    )
    parser.add_argument("--config", help="YAML or JSON configuration file")
    parser.add_argument("--sync-root", help="Local directory to sync")
    parser.add_argument("--download-dir", help="Directory downloaded files are written to")
    parser.add_argument("--parent-folder", help="Drive folder id (default: appDataFolder)")
    parser.add_argument("--credentials", help="Service account key file")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("upload", help="Mirror the local directory to Drive (prunes remote-only files)")
    subparsers.add_parser("download", help="Download new and newer files from Drive")

    plan_parser = subparsers.add_parser("plan", help="Show what a sync would do without doing it")
    plan_parser.add_argument("direction", choices=["upload", "download"])

    tail_parser = subparsers.add_parser("tail-log", help="Follow the configured log file")
    tail_parser.add_argument("--file", help="Log file to follow (default: configured log file)")
    tail_parser.add_argument("--from-start", action="store_true", help="Print existing lines first")

    return parser


def load_config(args: argparse.Namespace) -> SyncConfig:
    overrides = {
        "sync_root": args.sync_root,
        "download_dir": args.download_dir,
        "parent_folder": args.parent_folder,
        "credentials_path": args.credentials,
        "log_level": args.log_level,
    }

    if args.config:
        loader = ConfigLoader()
        return loader.apply_overrides(loader.load_from_file(args.config), **overrides)

    return load_config_from_env(**overrides)


def tail_log(path: str, from_start: bool) -> int:
    """Print lines appended to a log file until interrupted."""
    stop = threading.Event()
    tailer = LogTailer(path, from_start=from_start)
    tailer.subscribe(print)

    signal.signal(signal.SIGINT, lambda signum, frame: stop.set())
    signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())

    tailer.start()
    try:
        stop.wait()
    finally:
        tailer.stop()
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.command == "tail-log":
        path = args.file or get_settings().logging.file_path
        if not path:
            print("No log file given and none configured", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        return tail_log(path, args.from_start)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(log_level=config.log_level, log_format=config.log_format, log_file=config.log_file)
    app = DriveSyncApp(config)

    if args.command == "plan":
        return asyncio.run(app.plan(args.direction))

    if args.command == "upload":
        result = asyncio.run(app.upload())
    else:
        result = asyncio.run(app.download())

    return EXIT_OK if result.success else EXIT_SYNC_FAILED


def run() -> None:
    """Console script wrapper."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    run()
