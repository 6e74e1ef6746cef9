from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import admin_required
from db.session import get_db_session
from schemas.auth_schema import AdminUser
from services.site_settings_service import get_site_settings, update_site_settings
from utils.responses import no_store_json

router = APIRouter()

@router.get("/site-settings")
async def read_site_settings(db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await get_site_settings(db))

@router.put("/admin/site-settings")
async def write_site_settings(updates: dict, current_admin: AdminUser = Depends(admin_required), db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await update_site_settings(updates, current_admin, db))
