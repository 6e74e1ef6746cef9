from typing import List, Literal, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from services.lead_capture import PromptFlags, VisitorSession
from utils.responses import no_store_json

router = APIRouter()


class PromptFlagsIn(BaseModel):
    multi_page: bool = False
    scroll_bottom: bool = False


class VisitorEvent(BaseModel):
    """A page view or scroll event, with the session state the browser holds."""
    event: Literal["page_view", "scroll"]
    route: Optional[str] = None
    scroll_y: float = 0
    viewport_height: float = 0
    page_height: float = 0
    visited_pages: List[str] = []
    has_shown_prompt: PromptFlagsIn = PromptFlagsIn()


@router.post("/visitor/prompt-check")
async def prompt_check(event: VisitorEvent):
    session = VisitorSession(
        visited_pages=set(event.visited_pages),
        has_shown_prompt=PromptFlags(**event.has_shown_prompt.model_dump()),
    )
    if event.event == "page_view":
        show = bool(event.route) and session.record_page_view(event.route)
    else:
        show = session.record_scroll(event.scroll_y, event.viewport_height, event.page_height)
    return no_store_json({
        "show_prompt": show,
        "visited_pages": sorted(session.visited_pages),
        "has_shown_prompt": {
            "multi_page": session.has_shown_prompt.multi_page,
            "scroll_bottom": session.has_shown_prompt.scroll_bottom,
        },
    })
