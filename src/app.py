"""Application entry point for the eskertu reminder bot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from datetime import date
from logging.handlers import RotatingFileHandler
from typing import Awaitable, Callable, Optional, TypeVar

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_commands import SubscribeCommandHandler, register_handlers
from adapters.telegram_notifier import TelegramClientNotifier
from client import bot_token_from_env, build_client
from core.config import ScheduleConfig, build_dispatch_config, build_schedule_config
from core.dispatcher import NotificationDispatcher
from core.errors import RegistryWriteError
from core.messages import render_new_tenant
from core.models import RunSummary
from core.ports import NotifierPort
from core.processor import ReminderProcessor
from core.scheduler import ReminderScheduler

NAME = "ESKERTU"
FONT = "tarty-1"

T = TypeVar("T")


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


# Environment variables whose values are masked even when redaction is off.
ALWAYS_REDACTED = ("BOT_TOKEN",)


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    names = list(ALWAYS_REDACTED)
    if redact_cfg.get("enabled", False):
        names.extend(redact_cfg.get("patterns", []))
    values = []
    for name in names:
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/eskertu.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _schedule_config() -> ScheduleConfig:
    # Raises ScheduleConfigError; a scheduler that would never fire must not start.
    return build_schedule_config(
        settings.SCHEDULE_TIME,
        settings.SCHEDULE_TIMEZONE,
        settings.MISFIRE_GRACE_SECONDS,
    )


def _open_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    return storage


def _build_notifier(client=None) -> NotifierPort:
    # Select the notification adapter based on configuration to keep the core
    # dispatcher independent from delivery details.
    if settings.NOTIFICATION_METHOD == "bot_api":
        return TelegramBotNotifier(
            bot_token=bot_token_from_env(),
            request_timeout=settings.DELIVERY_TIMEOUT_SECONDS,
        )
    if settings.NOTIFICATION_METHOD == "client":
        if client is None:
            raise RuntimeError("notification_method=client requires a connected Telegram client")
        return TelegramClientNotifier(client)
    raise RuntimeError("notification_method must be 'bot_api' or 'client'")


def _build_dispatcher(storage: SQLiteStorage, notifier: NotifierPort) -> NotificationDispatcher:
    return NotificationDispatcher(
        registry=storage,
        notifier=notifier,
        config=build_dispatch_config(
            settings.DELIVERY_TIMEOUT_SECONDS,
            settings.MAX_PARALLEL_DELIVERIES,
        ),
    )


async def _with_dispatcher(
    storage: SQLiteStorage,
    action: Callable[[NotificationDispatcher], Awaitable[T]],
) -> T:
    """Run ``action`` with a dispatcher, connecting the bot only when needed."""

    client = None
    if settings.NOTIFICATION_METHOD == "client":
        client = build_client()
        await client.start(bot_token=bot_token_from_env())
    try:
        return await action(_build_dispatcher(storage, _build_notifier(client)))
    finally:
        if client is not None:
            await client.disconnect()


def _print_summary(summary: Optional[RunSummary]) -> None:
    if summary is None:
        print("A reminder pass is already running.")
        return
    print(f"Day: {summary.day.isoformat()}")
    print(f"Tenants checked: {summary.tenants_checked}")
    for error in summary.read_errors:
        print(f"Read error: tenant {error.tenant_id} {error.raw_value!r} ({error.detail})")
    for event in summary.events:
        print(f"Notice: {event.kind.value} | {event.tenant.name} | {event.tenant.unit} | {event.due_date}")
    for report in summary.reports:
        for outcome in report.failures:
            print(f"Failed: {outcome.address} ({outcome.detail})")
    print(f"Delivered: {summary.delivered}, failed: {summary.failed}")


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting eskertu")

    schedule_config = _schedule_config()
    storage = _open_storage()

    client = build_client()
    client.start(bot_token=bot_token_from_env())

    notifier = _build_notifier(client)
    logger.info("Selected notification method - %s", settings.NOTIFICATION_METHOD)

    processor = ReminderProcessor(tenants=storage, dispatcher=_build_dispatcher(storage, notifier))
    scheduler = ReminderScheduler(processor.run, schedule_config)

    register_handlers(client, SubscribeCommandHandler(storage))

    scheduler.start(event_loop=client.loop)
    logger.info("Next reminder pass at %s", scheduler.next_run_time())

    logger.info("Bot connected. Listening for /start...")
    try:
        client.run_until_disconnected()
    finally:
        scheduler.shutdown()


def _check(day: Optional[date]) -> None:
    _configure_logging()
    schedule_config = _schedule_config()
    storage = _open_storage()

    async def _pass(dispatcher: NotificationDispatcher) -> Optional[RunSummary]:
        processor = ReminderProcessor(tenants=storage, dispatcher=dispatcher)
        scheduler = ReminderScheduler(processor.run, schedule_config)
        return await scheduler.trigger(day)

    _print_summary(asyncio.run(_with_dispatcher(storage, _pass)))


def _tenants(args: argparse.Namespace) -> None:
    storage = _open_storage()

    if args.tenants_command == "add":
        try:
            tenant = storage.add_tenant(args.name, args.unit, args.date)
        except ValueError as exc:
            raise SystemExit(f"Invalid tenant: {exc}") from exc
        print(f"Added tenant {tenant.tenant_id}: {tenant.name} | {tenant.unit} | {tenant.due_date}")
        if settings.ANNOUNCE_NEW_TENANTS and not args.quiet:
            _configure_logging()

            async def _announce(dispatcher: NotificationDispatcher):
                return await dispatcher.broadcast(
                    render_new_tenant(tenant),
                    label=f"new tenant {tenant.tenant_id}",
                )

            report = asyncio.run(_with_dispatcher(storage, _announce))
            print(f"Announcement delivered: {report.succeeded}, failed: {report.failed}")
        return

    if args.tenants_command == "update":
        try:
            tenant = storage.update_tenant(args.tenant_id, name=args.name, unit=args.unit, due_date=args.date)
        except ValueError as exc:
            raise SystemExit(f"Invalid tenant: {exc}") from exc
        if tenant is None:
            raise SystemExit(f"Tenant {args.tenant_id} not found")
        print(f"Updated tenant {tenant.tenant_id}: {tenant.name} | {tenant.unit} | {tenant.due_date}")
        return

    if args.tenants_command == "delete":
        if not storage.delete_tenant(args.tenant_id):
            raise SystemExit(f"Tenant {args.tenant_id} not found")
        print(f"Deleted tenant {args.tenant_id}")
        return

    snapshot = storage.list_tenants()
    for tenant in snapshot.tenants:
        print(f"{tenant.tenant_id}. {tenant.name} | {tenant.unit} | {tenant.due_date}")
    for error in snapshot.errors:
        print(f"{error.tenant_id}. <unreadable payment date {error.raw_value!r}>")
    if not snapshot.tenants and not snapshot.errors:
        print("No tenants yet.")


def _subscribers(args: argparse.Namespace) -> None:
    storage = _open_storage()

    if args.subscribers_command == "add":
        try:
            added = storage.register(args.address)
        except RegistryWriteError as exc:
            raise SystemExit(f"Could not subscribe {args.address}: {exc}") from exc
        print(f"Subscribed {args.address}" if added else f"{args.address} is already subscribed")
        return

    addresses = storage.list_all()
    for address in addresses:
        print(address)
    if not addresses:
        print("No subscribers yet.")


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eskertu")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot and the daily reminder scheduler")

    check = subparsers.add_parser("check", help="Run one reminder pass now")
    check.add_argument("--date", type=_parse_date, default=None, help="Pretend today is YYYY-MM-DD")

    tenants = subparsers.add_parser("tenants", help="Manage tenants")
    tenant_commands = tenants.add_subparsers(dest="tenants_command")
    tenant_commands.add_parser("list", help="List tenants")
    add = tenant_commands.add_parser("add", help="Add a tenant")
    add.add_argument("name")
    add.add_argument("unit")
    add.add_argument("date", type=_parse_date)
    add.add_argument("--quiet", action="store_true", help="Do not announce the new tenant")
    update = tenant_commands.add_parser("update", help="Update a tenant")
    update.add_argument("tenant_id", type=int)
    update.add_argument("--name")
    update.add_argument("--unit")
    update.add_argument("--date", type=_parse_date)
    delete = tenant_commands.add_parser("delete", help="Delete a tenant")
    delete.add_argument("tenant_id", type=int)

    subscribers = subparsers.add_parser("subscribers", help="Manage reminder subscribers")
    subscriber_commands = subscribers.add_subparsers(dest="subscribers_command")
    subscriber_commands.add_parser("list", help="List subscriber addresses")
    subscribe = subscriber_commands.add_parser("add", help="Register an address")
    subscribe.add_argument("address")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    if args.command == "check":
        _check(args.date)
        return
    if args.command == "tenants":
        _tenants(args)
        return
    if args.command == "subscribers":
        _subscribers(args)
        return
    _run()


if __name__ == "__main__":
    main()
