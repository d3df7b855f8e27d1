"""Page section trees"""

from .sections import (
    ContactSection,
    PageLayout,
    build_contact_section,
    build_competitive_section,
    build_page,
)

__all__ = [
    "ContactSection",
    "PageLayout",
    "build_contact_section",
    "build_competitive_section",
    "build_page",
]
