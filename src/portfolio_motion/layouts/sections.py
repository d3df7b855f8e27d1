"""
Page sections as stagger trees

Each builder mirrors the nesting of one page region:
section → (grid | list | form) → item. Only structure and variants live
here; markup and content belong to the render layer.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from portfolio_motion.engine.scope import AnimationScope, Leaf
from portfolio_motion.models.config import MotionConfig
from portfolio_motion.models.submission import DEFAULT_CONTACT_FIELDS, FormField


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") or "item"


@dataclass
class ContactSection:
    """Contact section tree plus the scopes its controller needs"""
    root: AnimationScope
    form: AnimationScope
    status: Leaf


def build_contact_section(
    motion: MotionConfig,
    fields: Iterable[FormField] = DEFAULT_CONTACT_FIELDS,
) -> ContactSection:
    """
    contact (section, 150ms)
    ├─ header
    ├─ email-link
    └─ form (form, 100ms)
       ├─ status          independent, mounted by the form controller
       ├─ field-<name>    one per declared field
       └─ submit-button
    """
    item = motion.variant("item")

    root = AnimationScope("contact", motion.variant("section"))
    root.add(Leaf("header", item))
    root.add(Leaf("email-link", item))

    form = root.add(AnimationScope("form", motion.variant("form")))
    status = form.add(Leaf("status", motion.variant("status"), independent=True))
    for field in fields:
        form.add(Leaf(f"field-{field.name}", item))
    form.add(Leaf("submit-button", item))

    return ContactSection(root=root, form=form, status=status)


def build_competitive_section(
    motion: MotionConfig,
    platforms: Iterable[str] = (),
    highlights: Iterable[str] = (),
) -> AnimationScope:
    """
    competitive-programming (section, 150ms)
    ├─ header
    ├─ platforms (item)
    │  └─ platform-grid (list, 100ms) → one card per platform
    └─ highlights (item)
       └─ highlight-list (list, 100ms) → one item per highlight
    """
    item = motion.variant("item")
    card = motion.variant("card") if "card" in motion.variants else item
    list_variant = motion.variant("list")

    root = AnimationScope("competitive-programming", motion.variant("section"))
    root.add(Leaf("header", item))

    grid = root.add(AnimationScope("platforms", item)).add(AnimationScope("platform-grid", list_variant))
    for name in platforms:
        grid.add(Leaf(slugify(name), card))

    highlight_list = root.add(AnimationScope("highlights", item)).add(
        AnimationScope("highlight-list", list_variant)
    )
    for name in highlights:
        highlight_list.add(Leaf(slugify(name), item))

    return root


@dataclass
class PageLayout:
    root: AnimationScope
    contact: ContactSection
    competitive: AnimationScope


def build_page(
    motion: MotionConfig,
    page_content: Optional[Mapping] = None,
    fields: Iterable[FormField] = DEFAULT_CONTACT_FIELDS,
) -> PageLayout:
    """Page root revealing every section at once; sections stagger their own content"""
    page_content = page_content or {}
    cp = page_content.get("competitive_programming", {}) or {}

    root = AnimationScope("page", motion.variant("page"))
    competitive = root.add(build_competitive_section(
        motion,
        platforms=cp.get("platforms") or (),
        highlights=cp.get("highlights") or (),
    ))
    contact = build_contact_section(motion, fields)
    root.add(contact.root)

    return PageLayout(root=root, contact=contact, competitive=competitive)
