from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import admin_required
from db.session import get_db_session
from schemas.auth_schema import AdminUser, ChangePasswordRequest, Token
from services.auth_service import login_admin, change_admin_password
from utils.responses import no_store_json

router = APIRouter()

@router.post("/login", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await login_admin(form_data.username, form_data.password, db))

@router.get("/admin/me", response_model=AdminUser)
async def me(current_admin: AdminUser = Depends(admin_required)):
    return no_store_json(current_admin.model_dump())

@router.post("/admin/change-password")
async def change_password(request: ChangePasswordRequest, current_admin: AdminUser = Depends(admin_required), db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await change_admin_password(current_admin, request.current_password, request.new_password, db))

@router.get("/health")
async def health_check():
    return {"status": "ok"}
