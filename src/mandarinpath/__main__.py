"""Command line entry point."""
import argparse
import asyncio
import getpass
import logging
import sys
from typing import List, Optional

from mandarinpath.app import MandarinPath
from mandarinpath.logging_config import setup_logging
from mandarinpath.models.vocabulary_models import TaskType
from mandarinpath.services.api_client import ApiError
from mandarinpath.services.auth_service import NotAuthenticatedError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mandarinpath", description="MandarinPath client")
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("health", help="check the backend")

    register = sub.add_parser("register", help="create an account")
    register.add_argument("email")
    register.add_argument("--name", dest="display_name")
    register.add_argument("--password")

    login = sub.add_parser("login", help="sign in")
    login.add_argument("email")
    login.add_argument("--password")

    sub.add_parser("me", help="show the signed-in user")

    logout = sub.add_parser("logout", help="sign out")
    logout.add_argument("--all", action="store_true", help="end every session of this user")

    sub.add_parser("words", help="list vocabulary with strength")
    sub.add_parser("review", help="list words due for review")

    task = sub.add_parser("task", help="list words picked for a task")
    task.add_argument("type", choices=[t.value for t in TaskType])
    task.add_argument("--limit", type=int, default=None)
    return parser


def _password(args: argparse.Namespace) -> str:
    return args.password or getpass.getpass("Password: ")


async def run(args: argparse.Namespace) -> int:
    """Run a single command, returning the process exit code."""
    async with MandarinPath() as app:
        auth = app.auth
        try:
            if args.command == "health":
                print(await app.api_client.health())
            elif args.command in ("register", "login"):
                if not auth.validate_email(args.email):
                    print("Invalid email address", file=sys.stderr)
                    return 2
                password = _password(args)
                if args.command == "register":
                    valid, message = auth.validate_password(password)
                    if not valid:
                        print(message, file=sys.stderr)
                        return 2
                    response = await auth.register(args.email, password, args.display_name)
                else:
                    response = await auth.login(args.email, password)
                print(f"Signed in as {response.user.email}")
            elif args.command == "me":
                user = await auth.get_current_user_from_server()
                print(f"{user.email} ({user.display_name or 'no display name'})")
            elif args.command == "logout":
                await (auth.logout_all() if args.all else auth.logout())
                print("Signed out")
            elif args.command == "words":
                for word in app.vocabulary.words:
                    print(f"{word.chinese}\t{word.pinyin or ''}\t{word.definition}\t{word.strength}")
            elif args.command == "review":
                for word in app.vocabulary.words_ready_for_review():
                    print(f"{word.chinese}\t{word.definition}")
            elif args.command == "task":
                for word in app.vocabulary.get_words_for_task(args.type, args.limit):
                    print(f"{word.chinese}\t{word.strength}")
        except NotAuthenticatedError:
            print("Not signed in", file=sys.stderr)
            return 1
        except ApiError as e:
            print(f"Error: {e.message} (status {e.status})", file=sys.stderr)
            return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging("Starting MandarinPath client", level=args.log_level)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
        return 130


if __name__ == "__main__":
    sys.exit(main())
