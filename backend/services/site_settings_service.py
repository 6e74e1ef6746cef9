"""Editable site-wide copy and media URLs.

Settings form a closed set of keys. Every key has a fallback default that is
served whenever the key is missing from storage or stored empty.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Dict
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import AppError, ValidationError, DownstreamError
from db.models.site_setting import SiteSetting
from db.mongodb import get_mongo_db
from db.session import get_or_use_session
from schemas.auth_schema import AdminUser
from utils.db import safe_commit
from utils.timing import timeit

logger = logging.getLogger(__name__)


class SiteSettingKey(str, Enum):
    HERO_HEADLINE = "hero_headline"
    HERO_TAGLINE = "hero_tagline"
    HERO_SUBHEADLINE = "hero_subheadline"
    HERO_VIDEO_URL = "hero_video_url"
    WHY_WORK_VIDEO_URL = "why_work_video_url"
    APPROACH_VIDEO_URL = "approach_video_url"
    VALUE_PROP_1_TITLE = "value_prop_1_title"
    VALUE_PROP_1_DESCRIPTION = "value_prop_1_description"
    VALUE_PROP_2_TITLE = "value_prop_2_title"
    VALUE_PROP_2_DESCRIPTION = "value_prop_2_description"
    VALUE_PROP_3_TITLE = "value_prop_3_title"
    VALUE_PROP_3_DESCRIPTION = "value_prop_3_description"


DEFAULT_SITE_SETTINGS: Dict[SiteSettingKey, str] = {
    SiteSettingKey.HERO_HEADLINE: "Transforming Dreams Into Reality",
    SiteSettingKey.HERO_TAGLINE: "Invest in property like a pro",
    SiteSettingKey.HERO_SUBHEADLINE: (
        "Gold Collar Partners delivers the complete process of investing in exclusive "
        "boutique-designed luxury properties across premium locations of Australia."
    ),
    SiteSettingKey.HERO_VIDEO_URL: "https://res.cloudinary.com/dd5fxatik/video/upload/v1760269429/herovideo_wj9uvn.mp4",
    SiteSettingKey.WHY_WORK_VIDEO_URL: (
        "https://res.cloudinary.com/dfdkkqn7j/video/upload/v1761793318/"
        "WhatsApp_Video_2025-10-28_at_23.05.43_f6943186_x55atf.mp4"
    ),
    SiteSettingKey.APPROACH_VIDEO_URL: "",
    SiteSettingKey.VALUE_PROP_1_TITLE: "Buyers Advocacy",
    SiteSettingKey.VALUE_PROP_1_DESCRIPTION: (
        "Our commitment to your success starts with right strategy & Property purchase. "
        "We conduct data-driven market analysis to identify undervalued assets with hidden potential, "
        "provide comprehensive due diligence, and offer ongoing support throughout the settlement process."
    ),
    SiteSettingKey.VALUE_PROP_2_TITLE: "Property Development Consulting",
    SiteSettingKey.VALUE_PROP_2_DESCRIPTION: (
        "Our expertise is rooted in over a decade of hands-on experience. We provide end-to-end consulting "
        "that transforms raw land or existing assets into cash flow-positive micro-developments."
    ),
    SiteSettingKey.VALUE_PROP_3_TITLE: "Gold Collar Club",
    SiteSettingKey.VALUE_PROP_3_DESCRIPTION: (
        "The Gold Collar Club is an exclusive network designed for high-income professionals ready to "
        "ascend to the top investment tier, with access to off-market, development-ready opportunities."
    ),
}


def _merge(stored: Dict[str, str]) -> Dict[str, str]:
    merged = {}
    for key, default in DEFAULT_SITE_SETTINGS.items():
        value = stored.get(key.value)
        merged[key.value] = value if value else default
    return merged


def parse_updates(updates: Dict[str, object]) -> Dict[SiteSettingKey, str]:
    parsed = {}
    for raw_key, value in (updates or {}).items():
        try:
            key = SiteSettingKey(raw_key)
        except ValueError:
            raise ValidationError(f"Unknown setting key: {raw_key}") from None
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValidationError(f"Setting {raw_key} must be a string")
        parsed[key] = value.strip()
    return parsed


@timeit("get_site_settings")
async def get_site_settings(db: AsyncSession = None) -> Dict[str, str]:
    try:
        mongo = get_mongo_db()
        if settings.USE_MONGO and mongo is not None:
            docs = await mongo.site_settings.find({}, {"key": 1, "value": 1}).to_list(length=None)
            return _merge({d["key"]: d.get("value", "") for d in docs})

        async with get_or_use_session(db) as _db:
            rows = (await _db.execute(select(SiteSetting))).scalars().all()
            return _merge({r.key: r.value for r in rows})
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error loading site settings: {e}")
        raise DownstreamError() from e


@timeit("update_site_settings")
async def update_site_settings(updates: Dict[str, object], current_admin: AdminUser, db: AsyncSession = None) -> Dict[str, str]:
    """Upsert the given keys and return the full merged map."""
    parsed = parse_updates(updates)
    if not parsed:
        raise ValidationError("No settings to update")
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    try:
        mongo = get_mongo_db()
        if settings.USE_MONGO and mongo is not None:
            for key, value in parsed.items():
                await mongo.site_settings.update_one(
                    {"key": key.value},
                    {"$set": {"value": value, "updated_at": now, "updated_by": current_admin.admin_id}},
                    upsert=True,
                )
        else:
            async with get_or_use_session(db) as _db:
                rows = (await _db.execute(
                    select(SiteSetting).where(SiteSetting.key.in_([k.value for k in parsed]))
                )).scalars().all()
                existing = {r.key: r for r in rows}
                for key, value in parsed.items():
                    row = existing.get(key.value)
                    if row is None:
                        row = SiteSetting(key=key.value)
                        _db.add(row)
                    row.value = value
                    row.updated_at = now
                    row.updated_by = int(current_admin.admin_id)
                await safe_commit(_db, server_error_message="Failed to save settings")
        logger.info(f"Admin {current_admin.admin_id} updated settings: {', '.join(k.value for k in parsed)}")
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error saving site settings: {e}")
        raise DownstreamError("Failed to save settings") from e
    return await get_site_settings(db)
