#!/usr/bin/env python3
"""Create or promote an Admin login account.

Sign-up only ever creates Staff accounts, so the first Admin has to be
bootstrapped from the command line.

Usage:
    python scripts/create_admin.py --email admin@acme.io
    python scripts/create_admin.py --email admin@acme.io --first-name Ada --last-name Admin
    python scripts/create_admin.py --email hr@acme.io --no-employee
    python scripts/create_admin.py --email staff@acme.io --password 'n3w-secret'

An existing account with the same email is promoted to Admin; leaving the
password prompt empty keeps its current password.

Exit codes:
    0 = account created or promoted
    1 = invalid input or database failure
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import os
import sys
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

env_file = PROJECT_ROOT / ".env"
if env_file.exists():
    load_dotenv(env_file)

from hrms.logging_config import configure_logging

configure_logging(os.getenv("LOG_LEVEL", "info"))
logger = logging.getLogger("create_admin")

from hrms.auth import service as auth_service
from hrms.auth.models import User
from hrms.common import store
from hrms.common.constants import UserRole
from hrms.common.exceptions import AppException
from hrms.database import async_session_factory, engine
from hrms.employees.models import Employee

MIN_PASSWORD_LENGTH = 8


async def create_or_promote(
    email: str,
    password: str | None,
    *,
    first_name: str,
    last_name: str,
    department: str,
    with_employee: bool,
) -> User:
    email = email.lower()
    async with async_session_factory() as db:
        try:
            user = await store.find_one(db, User, User.email == email)
            if user is not None:
                user.role = UserRole.admin
                if password:
                    user.password_hash = auth_service.hash_password(password)
                logger.info("Promoted existing account %s to Admin", email)
            else:
                if not password:
                    raise ValueError("A password is required to create a new account.")
                employee_id = None
                if with_employee:
                    employee = await store.find_one(db, Employee, Employee.email == email)
                    if employee is None:
                        employee = await store.create(
                            db,
                            Employee(
                                first_name=first_name,
                                last_name=last_name,
                                email=email,
                                department=department,
                                job_role="Administrator",
                            ),
                        )
                        logger.info("Created employee profile %s", employee.employee_code)
                    employee_id = employee.id
                user = await auth_service.create_user(
                    db,
                    email=email,
                    password=password,
                    role=UserRole.admin,
                    employee_id=employee_id,
                )
                logger.info("Created Admin account %s", email)
            await db.commit()
            return user
        except Exception:
            await db.rollback()
            raise


def _read_password(args: argparse.Namespace) -> str | None:
    if args.password:
        return args.password
    first = getpass.getpass("Password: ")
    if not first:
        return None
    second = getpass.getpass("Repeat password: ")
    if first != second:
        raise ValueError("Passwords do not match.")
    return first


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Create or promote an Admin login account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument("--password", help="Password (prompted when omitted)")
    parser.add_argument("--first-name", default="System", help="Employee first name")
    parser.add_argument("--last-name", default="Administrator", help="Employee last name")
    parser.add_argument("--department", default="Administration", help="Employee department")
    parser.add_argument(
        "--no-employee", action="store_true", help="Do not create or link an employee profile",
    )
    args = parser.parse_args()

    async def _run() -> User:
        try:
            return await create_or_promote(
                args.email,
                password,
                first_name=args.first_name,
                last_name=args.last_name,
                department=args.department,
                with_employee=not args.no_employee,
            )
        finally:
            await engine.dispose()

    try:
        password = _read_password(args)
        if password is not None and len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        user = asyncio.run(_run())
    except (ValueError, AppException) as exc:
        logger.error("%s", getattr(exc, "detail", exc))
        return 1
    except Exception:
        logger.exception("Failed to create the Admin account")
        return 1

    print(f"Admin account ready: {user.email} (id={user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
