"""When to pop the lead-capture contact prompt for a visitor.

State is scoped to one browsing session and held explicitly: the set of
distinct routes seen so far and which prompts have already been shown. Each
prompt fires at most once per session.
"""
from dataclasses import dataclass, field
from typing import Set

MULTI_PAGE_THRESHOLD = 3
SCROLL_BOTTOM_OFFSET_PX = 100


@dataclass
class PromptFlags:
    multi_page: bool = False
    scroll_bottom: bool = False


@dataclass
class VisitorSession:
    visited_pages: Set[str] = field(default_factory=set)
    has_shown_prompt: PromptFlags = field(default_factory=PromptFlags)

    def record_page_view(self, route: str) -> bool:
        """Return True if this view should open the prompt."""
        if route in self.visited_pages:
            return False
        self.visited_pages.add(route)
        if len(self.visited_pages) >= MULTI_PAGE_THRESHOLD and not self.has_shown_prompt.multi_page:
            self.has_shown_prompt.multi_page = True
            return True
        return False

    def record_scroll(self, scroll_y: float, viewport_height: float, page_height: float) -> bool:
        """Return True the first time the viewport reaches the bottom band of the page."""
        if self.has_shown_prompt.scroll_bottom:
            return False
        if scroll_y + viewport_height >= page_height - SCROLL_BOTTOM_OFFSET_PX:
            self.has_shown_prompt.scroll_bottom = True
            return True
        return False
