# cli/cli.py
"""
Admin command line for LeadFlow: database setup, landing management and a
quick status check.
"""
from __future__ import annotations

import argparse
import asyncio
import inspect
import os
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

import leadflow.models  # noqa: F401  registers every table
from leadflow.core.config import settings
from leadflow.core.exceptions import BaseAPIException
from leadflow.db import session as db_session
from leadflow.db.base import Base
from leadflow.models.landing import Landing
from leadflow.schemas.landing import LandingCreate
from leadflow.services import landings, lead_repository
from leadflow.services.redis import close_redis_pool
from leadflow.services.redis import health_check as redis_health_check


# Output formatting utilities
def _supports_color() -> bool:
    """Check if terminal supports ANSI color codes."""
    if sys.platform == "win32":
        return os.getenv("TERM") == "xterm" or os.getenv("ANSICON") is not None
    return sys.stdout.isatty()


SUPPORTS_COLOR = _supports_color()

GREEN = '\033[92m' if SUPPORTS_COLOR else ''
RED = '\033[91m' if SUPPORTS_COLOR else ''
YELLOW = '\033[93m' if SUPPORTS_COLOR else ''
BLUE = '\033[94m' if SUPPORTS_COLOR else ''
RESET = '\033[0m' if SUPPORTS_COLOR else ''


def print_success(message: str):
    print(f"{GREEN}[✓]{RESET} {message}")


def print_error(message: str):
    print(f"{RED}[✗]{RESET} {message}")


def print_warning(message: str):
    print(f"{YELLOW}[!]{RESET} {message}")


def print_info(message: str):
    print(f"{BLUE}[i]{RESET} {message}")


@asynccontextmanager
async def open_session() -> AsyncIterator[AsyncSession]:
    """Session on the application engine, disposed when the command ends."""
    db_session.create_database_engine()
    session = db_session.AsyncSessionLocal()
    try:
        yield session
    finally:
        await session.close()
        await db_session.dispose_engine()


# Command functions
async def cmd_init_db(args: argparse.Namespace) -> int:
    """Command: Create every table that does not exist yet."""
    engine = db_session.create_database_engine()
    print_info(f"Creating tables on {engine.dialect.name}...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await db_session.dispose_engine()

    print_success(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    return 0


async def cmd_create_landing(args: argparse.Namespace) -> int:
    """Command: Register a landing page and print its API key."""
    data = LandingCreate(
        name=args.name,
        slug=args.slug,
        url=args.url,
        description=args.description,
    )
    async with open_session() as session:
        landing = await landings.create_landing(session, data)

    print_success(f"Landing '{landing.slug}' created (id={landing.id})")
    print_info(f"  API key: {landing.api_key}")
    return 0


async def cmd_list_landings(args: argparse.Namespace) -> int:
    """Command: List landings with their lead counts."""
    async with open_session() as session:
        rows = await landings.list_landings(session)

    if not rows:
        print_warning("No landings configured")
        return 0

    for landing, lead_count in rows:
        state = "active" if landing.active else "inactive"
        line = f"#{landing.id} {landing.slug} ({landing.name}) - {state}, {lead_count} leads"
        if landing.active:
            print_success(line)
        else:
            print_warning(line)
        if args.show_keys:
            print_info(f"  API key: {landing.api_key}")
    return 0


async def cmd_regenerate_key(args: argparse.Namespace) -> int:
    """Command: Replace a landing's API key."""
    async with open_session() as session:
        landing = await landings.regenerate_api_key(session, args.id)

    print_success(f"New API key for '{landing.slug}': {landing.api_key}")
    print_warning("  The previous key no longer works")
    return 0


async def cmd_system_status(args: argparse.Namespace) -> int:
    """Command: Quick system health check."""
    print_info("Checking system status...")

    database = await db_session.health_check()
    if database.get("status") == "healthy":
        print_success(f"Database: healthy ({database.get('dialect')})")
        async with open_session() as session:
            lead_total = await lead_repository.count_leads(session)
            landing_total = await session.scalar(select(func.count()).select_from(Landing))
        print_info(f"  {lead_total} leads, {landing_total} landings")
    else:
        print_error(f"Database: {database.get('status')}")
        if database.get("error"):
            print_error(f"  Error: {database['error']}")
        await db_session.dispose_engine()

    if settings.rate_limiting_active:
        redis_status = await redis_health_check()
        if redis_status.get("status") == "healthy":
            print_success(f"Redis: healthy (version {redis_status.get('version')})")
        else:
            print_warning(f"Redis: {redis_status.get('status')} (rate limiting fails open)")
        await close_redis_pool()
    else:
        print_info(f"Redis: not used in {settings.environment}")

    # Information only
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Command: Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "leadflow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


# Command registry
COMMANDS: Dict[str, Callable] = {
    'init-db': cmd_init_db,
    'create-landing': cmd_create_landing,
    'list-landings': cmd_list_landings,
    'regenerate-key': cmd_regenerate_key,
    'system-status': cmd_system_status,
    'serve': cmd_serve,
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        prog='leadflow',
        description='LeadFlow admin CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('init-db', help='Create database tables')

    create_parser_ = subparsers.add_parser('create-landing', help='Register a landing page')
    create_parser_.add_argument('--name', required=True, help='Display name')
    create_parser_.add_argument('--slug', required=True, help='Lowercase identifier (a-z, 0-9, -)')
    create_parser_.add_argument('--url', default=None, help='Public URL of the landing')
    create_parser_.add_argument('--description', default=None, help='Free text description')

    list_parser = subparsers.add_parser('list-landings', help='List landings')
    list_parser.add_argument('--show-keys', action='store_true', help='Print API keys')

    regen_parser = subparsers.add_parser('regenerate-key', help='Regenerate a landing API key')
    regen_parser.add_argument('--id', type=int, required=True, help='Landing id')

    subparsers.add_parser('system-status', help='Quick system health check')

    serve_parser = subparsers.add_parser('serve', help='Run the API server')
    serve_parser.add_argument('--host', default=settings.api_host, help='Bind address')
    serve_parser.add_argument('--port', type=int, default=settings.api_port, help='Bind port')
    serve_parser.add_argument('--reload', action='store_true', help='Reload on code changes')

    return parser


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    command_func = COMMANDS.get(parsed_args.command)
    if not command_func:
        print_error(f"Unknown command: {parsed_args.command}")
        parser.print_help()
        return 1

    try:
        if inspect.iscoroutinefunction(command_func):
            return asyncio.run(command_func(parsed_args))
        return command_func(parsed_args)
    except KeyboardInterrupt:
        print_error("Interrupted by user")
        return 130
    except BaseAPIException as e:
        print_error(f"{e.code}: {e.message}")
        return 1
    except Exception as e:
        print_error(f"Error executing command: {str(e)}")
        if os.getenv('DEBUG'):
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
