# app/api/admin/admin_user_routes.py
import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.auth.dependencies import StaffContext, require_permission
from app.schemas.invitation import InvitationCreate, InvitationRead, InvitationSent
from app.schemas.user import (
    PasswordResetResult,
    PasswordSet,
    StaffUserCreate,
    StaffUserCreated,
    StaffUserRead,
    StaffUserUpdate,
)
from app.services import user_management as users
from app.services.invitations import list_pending_invitations, send_invitation

router = APIRouter(prefix="/admin", tags=["admin-users"])

can_manage_users = require_permission("can_manage_users")
can_reset_passwords = require_permission("can_reset_passwords")


@router.get("/users", response_model=List[StaffUserRead])
async def list_users(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    return await users.list_users(db, ctx, archived=False)


@router.get("/users/archived", response_model=List[StaffUserRead])
async def list_archived_users(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    return await users.list_users(db, ctx, archived=True)


@router.post("/users", response_model=StaffUserCreated, status_code=201)
async def create_user(
    data: StaffUserCreate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    user, role, generated = await users.create_user(db, ctx, data)
    # The generated password is shown to the admin once
    return {"user": users.serialize_user(user, role), "temporary_password": generated}


@router.patch("/users/{user_id}", response_model=StaffUserRead)
async def update_user(
    user_id: uuid.UUID,
    data: StaffUserUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    return await users.update_user(db, ctx, user_id, data)


@router.post("/users/{user_id}/reset-password", response_model=PasswordResetResult)
async def reset_password(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_reset_passwords),
):
    temporary = await users.reset_password(db, ctx, user_id)
    return {"user_id": user_id, "temporary_password": temporary}


@router.post("/users/{user_id}/set-password", status_code=204)
async def set_password(
    user_id: uuid.UUID,
    data: PasswordSet,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_reset_passwords),
):
    await users.set_password(db, ctx, user_id, data.password)
    return Response(status_code=204)


@router.post("/users/{user_id}/deactivate", response_model=StaffUserRead)
async def deactivate_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    return await users.deactivate_user(db, ctx, user_id)


@router.post("/users/{user_id}/archive", response_model=StaffUserRead)
async def archive_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    return await users.archive_user(db, ctx, user_id)


@router.post("/users/{user_id}/restore", response_model=StaffUserRead)
async def restore_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    return await users.restore_user(db, ctx, user_id)


@router.delete("/users/{user_id}", status_code=204)
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    await users.delete_user(db, ctx, user_id)
    return Response(status_code=204)


# -----------------------
# Invitations
# -----------------------

@router.get("/invitations", response_model=List[InvitationRead])
async def list_invitations(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    return await list_pending_invitations(db, ctx.tenant.tenant_filter())


@router.post("/invitations", response_model=InvitationSent, status_code=201)
async def invite_staff(
    data: InvitationCreate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_users),
):
    invitation, url, sent = await send_invitation(db, ctx, data)
    return {"invitation": invitation, "invite_url": url, "email_sent": sent}
