import argparse
import json
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from achievement_sync.core.app_context import AppContext
from achievement_sync.core.cache import format_size

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="achievement-sync",
        description="Watch loader save folders and report achievement state",
    )
    parser.add_argument("--data-dir", help="Override the settings/cache directory")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan enabled directories once")
    scan.add_argument("--json", action="store_true", help="Print raw JSON")

    sub.add_parser("watch", help="Watch enabled directories until interrupted")

    cache = sub.add_parser("cache", help="Inspect or clear the metadata cache")
    cache_sub = cache.add_subparsers(dest="cache_command", required=True)
    cache_sub.add_parser("size")
    cache_sub.add_parser("clear")
    cache_get = cache_sub.add_parser("get")
    cache_get.add_argument("game_id")

    dirs = sub.add_parser("dirs", help="Manage monitored directories")
    dirs_sub = dirs.add_subparsers(dest="dirs_command", required=True)
    dirs_sub.add_parser("list")
    for name in ("add", "remove", "toggle", "wine-prefix"):
        dirs_sub.add_parser(name).add_argument("path")

    return parser


def handle_cli_args(argv: list[str] | None = None) -> int:
    """
    Parse and run a command.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    ctx = AppContext.create(args.data_dir)

    if args.command == "scan":
        return _scan(ctx, args.json)
    if args.command == "watch":
        return _watch(ctx)
    if args.command == "cache":
        return _cache(ctx, args)
    return _dirs(ctx, args)


def _scan(ctx: AppContext, as_json: bool) -> int:
    games = ctx.monitor.get_current_snapshot()
    if as_json:
        print(json.dumps([g.to_dict() for g in games], indent=2))
        return 0

    for game in games:
        unlocked = sum(1 for a in game.achievements if a.achieved)
        cached = ctx.cache.get(game.game_id)
        title = cached.name if cached and cached.name else game.game_id
        print(f"{title}: {unlocked}/{len(game.achievements)} ({game.directory})")
    log.info("Found %d games", len(games))
    return 0


def _watch(ctx: AppContext) -> int:
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)

    def on_update(games):
        log.info("Achievements updated: %d games", len(games))
        for game in games:
            unlocked = sum(1 for a in game.achievements if a.achieved)
            log.info("  %s: %d/%d", game.game_id, unlocked, len(game.achievements))

    ctx.monitor.achievements_updated.connect(on_update)
    app.aboutToQuit.connect(ctx.monitor.stop)
    signal.signal(signal.SIGINT, lambda *_: app.quit())

    # Let the interpreter run periodically so SIGINT is noticed
    timer = QTimer()
    timer.timeout.connect(lambda: None)
    timer.start(250)

    ctx.monitor.start()
    return app.exec()


def _cache(ctx: AppContext, args) -> int:
    if args.cache_command == "size":
        print(format_size(ctx.cache.size()))
    elif args.cache_command == "clear":
        ctx.cache.clear()
    else:
        game = ctx.cache.get(args.game_id)
        if game is None:
            log.error("No cached metadata for %s", args.game_id)
            return 1
        print(json.dumps(game.to_dict(), indent=2))
    return 0


def _dirs(ctx: AppContext, args) -> int:
    monitor = ctx.monitor
    try:
        if args.dirs_command == "add":
            monitor.add_directory(args.path)
        elif args.dirs_command == "remove":
            monitor.remove_directory(args.path)
        elif args.dirs_command == "toggle":
            monitor.toggle_directory(args.path)
        elif args.dirs_command == "wine-prefix":
            monitor.set_wine_prefix(args.path)
    except (RuntimeError, ValueError) as e:
        log.error("%s", e)
        return 1
    finally:
        monitor.stop()

    for config in monitor.get_directories():
        state = "on " if config.enabled else "off"
        marker = "*" if config.is_default else " "
        print(f"[{state}]{marker} {config.name}: {config.path}")
    return 0
