# scripts/manage_users.py

import asyncio
import argparse
import sys
import uuid

from fastapi_users.password import PasswordHelper
from sqlalchemy import func
from sqlalchemy.future import select

from app.db import async_session
from app.models.user import User, SuperAdmin, UserRole
from app.models.venue import Venue
from app.utils.security import generate_password

if sys.platform.startswith('win') and sys.version_info < (3, 10):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

password_helper = PasswordHelper()


async def _get_or_create_user(session, email: str, password: str, venue_id=None):
    result = await session.execute(select(User).where(func.lower(User.email) == email.lower()))
    user = result.scalar_one_or_none()
    if user:
        print(f"⚠️  User '{email}' already exists. Reusing.")
        return user, None

    generated = None
    if not password:
        password = generated = generate_password()
    user = User(
        id=uuid.uuid4(),
        email=email.lower(),
        hashed_password=password_helper.hash(password),
        is_active=True,
        is_superuser=False,
        is_verified=True,
        venue_id=venue_id,
        must_change_password=generated is not None,
    )
    session.add(user)
    return user, generated


async def create_super_admin(email: str, password: str = None):
    async with async_session() as session:
        user, generated = await _get_or_create_user(session, email, password)
        result = await session.execute(select(SuperAdmin).where(SuperAdmin.user_id == user.id))
        if result.scalar_one_or_none():
            print(f"⚠️  '{email}' is already a super admin.")
            return
        session.add(SuperAdmin(user_id=user.id))
        await session.commit()
        print(f"✅ Super admin ready: {email}")
        if generated:
            print(f"🔐 Temporary password: {generated}")


async def create_venue(name: str, slug: str, admin_email: str, admin_password: str = None):
    async with async_session() as session:
        result = await session.execute(select(Venue).where(Venue.venue_slug == slug))
        venue = result.scalar_one_or_none()
        if not venue:
            venue = Venue(id=str(uuid.uuid4()), name=name, venue_slug=slug)
            session.add(venue)
            print(f"🏢 Created venue: {name} ({slug})")

        user, generated = await _get_or_create_user(session, admin_email, admin_password, venue.id)
        result = await session.execute(
            select(UserRole).where(UserRole.user_id == user.id, UserRole.tenant_id == venue.id)
        )
        role = result.scalar_one_or_none()
        if role:
            role.tenant_role, role.role = "tenant_admin", "admin"
        else:
            session.add(UserRole(user_id=user.id, tenant_id=venue.id, tenant_role="tenant_admin", role="admin"))
        await session.commit()
        print(f"✅ {admin_email} is tenant admin of {venue.name}")
        if generated:
            print(f"🔐 Temporary password: {generated}")


async def list_users():
    async with async_session() as session:
        result = await session.execute(
            select(User, UserRole).outerjoin(UserRole, UserRole.user_id == User.id).order_by(User.email)
        )
        for user, role in result.all():
            state = "archived" if user.is_archived else ("active" if user.is_active else "inactive")
            tenant = f"{role.tenant_id} ({role.tenant_role})" if role else "-"
            print(f"{user.email:40} {state:9} {tenant}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Manage Tableside users and venues")
    sub = parser.add_subparsers(dest="command")

    p_super = sub.add_parser("super-admin", help="Create or promote a super admin")
    p_super.add_argument("--email", required=True)
    p_super.add_argument("--password", help="Omit to generate a temporary one")

    p_venue = sub.add_parser("venue", help="Create a venue with its first tenant admin")
    p_venue.add_argument("--name", required=True)
    p_venue.add_argument("--slug", required=True)
    p_venue.add_argument("--admin-email", required=True)
    p_venue.add_argument("--admin-password")

    sub.add_parser("list", help="List users with their tenant roles")

    args = parser.parse_args()

    if args.command == "super-admin":
        asyncio.run(create_super_admin(args.email, args.password))
    elif args.command == "venue":
        asyncio.run(create_venue(args.name, args.slug, args.admin_email, args.admin_password))
    elif args.command == "list":
        asyncio.run(list_users())
    else:
        parser.print_help()


### Action	Command
#Create super admin	python -m scripts.manage_users super-admin --email ops@example.com
#Create venue	python -m scripts.manage_users venue --name "Mama Put" --slug mama-put --admin-email owner@example.com
#List users	python -m scripts.manage_users list
