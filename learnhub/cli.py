"""`learnhub-admin`: one-off maintenance commands (legacy import, password reset)."""
import argparse
import getpass
import logging
import sys

from learnhub.core.config import get_settings
from learnhub.core.context import build_context
from learnhub.core.errors import LearnHubError, MigrationError
from learnhub.core.logging import setup_logging
from learnhub.db.base import Base
from learnhub.services import auth as auth_service
from learnhub.services.migration import migrate_legacy_data

logger = logging.getLogger(__name__)


def _cmd_migrate(ctx, args) -> int:
    source = args.source or ctx.settings.legacy_data_file
    try:
        report = migrate_legacy_data(ctx, source)
    except MigrationError as e:
        logger.error("Migration failed: %s", e)
        return 1
    print("Migration completed!")
    for line in report.summary_lines():
        print(line)
    if report.backup:
        print(f"Original {report.source} backed up to {report.backup}")
    return 0


def _cmd_set_password(ctx, args) -> int:
    password = args.password or getpass.getpass("New password: ")
    with ctx.session_factory() as db:
        try:
            auth_service.set_password(ctx, db, args.username, password)
        except LearnHubError as e:
            logger.error("Password not changed: %s", e)
            return 1
    print(f"Password updated for {args.username}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="learnhub-admin", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    migrate = sub.add_parser("migrate", help="import the legacy JSON data file")
    migrate.add_argument("--source", help="path to the legacy file (default: settings.legacy_data_file)")
    migrate.set_defaults(func=_cmd_migrate)

    set_password = sub.add_parser("set-password", help="re-hash a user's password")
    set_password.add_argument("username")
    set_password.add_argument("--password", help="new password (prompted when omitted)")
    set_password.set_defaults(func=_cmd_set_password)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    ctx = build_context(settings)
    try:
        Base.metadata.create_all(bind=ctx.engine)
        return args.func(ctx, args)
    finally:
        ctx.dispose()


if __name__ == "__main__":
    sys.exit(main())
