"""
Domain model for the site: settings, topics, stories with comments, bookings.

Every entity is a frozen dataclass and every sequence is a tuple, so an
`AppState` is an immutable snapshot. Operations build new snapshots with
`dataclasses.replace` and share the branches they do not touch.

The persisted document keeps the camelCase keys the remote store has always
used (`heroTitle`, `isVisible`, `topicId`, ...); `state_to_dict` and
`state_from_dict` are the only places that know about them.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping

BOOKING_STATUSES: tuple[str, ...] = ("pending", "confirmed", "rejected")
DEFAULT_BOOKING_STATUS = "pending"

_id_lock = threading.Lock()
_last_id = 0


def new_id() -> str:
    """
    Return a fresh timestamp-derived id (milliseconds since the epoch).

    Ids are strictly increasing within the process: two calls in the same
    millisecond get consecutive values instead of colliding.
    """
    global _last_id
    with _id_lock:
        candidate = time.time_ns() // 1_000_000
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
    return str(candidate)


def today() -> str:
    """Creation date for new comments, ISO formatted."""
    return date.today().isoformat()


@dataclass(frozen=True)
class SiteSettings:
    hero_title: str = ""
    hero_subtitle: str = ""
    hero_image: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    contact_address: str = ""


@dataclass(frozen=True)
class Topic:
    id: str
    title: str
    description: str
    image_url: str = ""


@dataclass(frozen=True)
class Comment:
    id: str
    name: str
    email: str
    text: str
    date: str
    is_visible: bool = True


@dataclass(frozen=True)
class Story:
    id: str
    author: str
    role: str
    content: str
    is_visible: bool = True
    comments: tuple[Comment, ...] = ()


@dataclass(frozen=True)
class Booking:
    id: str
    name: str
    email: str
    phone: str
    date: str
    topic_id: str
    status: str = DEFAULT_BOOKING_STATUS


@dataclass(frozen=True)
class AppState:
    """One complete snapshot of everything the site persists."""

    settings: SiteSettings = field(default_factory=SiteSettings)
    topics: tuple[Topic, ...] = ()
    stories: tuple[Story, ...] = ()
    bookings: tuple[Booking, ...] = ()


# --- Factories ---

def new_comment(name: str, email: str, text: str) -> Comment:
    return Comment(id=new_id(), name=name, email=email, text=text, date=today(), is_visible=True)


def new_booking(name: str, email: str, phone: str, date: str, topic_id: str) -> Booking:
    return Booking(
        id=new_id(),
        name=name,
        email=email,
        phone=phone,
        date=date,
        topic_id=topic_id,
        status=DEFAULT_BOOKING_STATUS,
    )


def new_topic(title: str, description: str, image_url: str = "") -> Topic:
    return Topic(id=new_id(), title=title, description=description, image_url=image_url)


def new_story(author: str, role: str, content: str) -> Story:
    return Story(id=new_id(), author=author, role=role, content=content, is_visible=True, comments=())


# --- Wire format ---

def _str(d: Mapping[str, Any], key: str) -> str:
    v = d.get(key)
    return "" if v is None else str(v)


_FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})


def _bool(d: Mapping[str, Any], key: str, default: bool = True) -> bool:
    # PHP/MySQL stores tend to send flags back as "0"/"1" or "false"/"true".
    v = d.get(key)
    if v is None:
        return default
    if isinstance(v, str):
        return v.strip().lower() not in _FALSE_STRINGS
    return bool(v)


def _list(d: Mapping[str, Any], key: str) -> list[Any]:
    v = d.get(key)
    if v is None:
        return []
    if not isinstance(v, list):
        raise ValueError(f"Expected '{key}' to be a list, got {type(v).__name__}")
    return v


def _mapping(v: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(v, Mapping):
        raise ValueError(f"Expected {what} to be an object, got {type(v).__name__}")
    return v


def settings_from_dict(d: Mapping[str, Any]) -> SiteSettings:
    return SiteSettings(
        hero_title=_str(d, "heroTitle"),
        hero_subtitle=_str(d, "heroSubtitle"),
        hero_image=_str(d, "heroImage"),
        contact_email=_str(d, "contactEmail"),
        contact_phone=_str(d, "contactPhone"),
        contact_address=_str(d, "contactAddress"),
    )


def settings_to_dict(s: SiteSettings) -> dict[str, Any]:
    return {
        "heroTitle": s.hero_title,
        "heroSubtitle": s.hero_subtitle,
        "heroImage": s.hero_image,
        "contactEmail": s.contact_email,
        "contactPhone": s.contact_phone,
        "contactAddress": s.contact_address,
    }


def topic_from_dict(d: Mapping[str, Any]) -> Topic:
    return Topic(
        id=_str(d, "id"),
        title=_str(d, "title"),
        description=_str(d, "description"),
        image_url=_str(d, "imageUrl"),
    )


def comment_from_dict(d: Mapping[str, Any]) -> Comment:
    return Comment(
        id=_str(d, "id"),
        name=_str(d, "name"),
        email=_str(d, "email"),
        text=_str(d, "text"),
        date=_str(d, "date"),
        is_visible=_bool(d, "isVisible"),
    )


def story_from_dict(d: Mapping[str, Any]) -> Story:
    return Story(
        id=_str(d, "id"),
        author=_str(d, "author"),
        role=_str(d, "role"),
        content=_str(d, "content"),
        is_visible=_bool(d, "isVisible"),
        comments=tuple(comment_from_dict(_mapping(c, "comment")) for c in _list(d, "comments")),
    )


def booking_from_dict(d: Mapping[str, Any]) -> Booking:
    status = _str(d, "status")
    return Booking(
        id=_str(d, "id"),
        name=_str(d, "name"),
        email=_str(d, "email"),
        phone=_str(d, "phone"),
        date=_str(d, "date"),
        topic_id=_str(d, "topicId"),
        status=status if status in BOOKING_STATUSES else DEFAULT_BOOKING_STATUS,
    )


def state_from_dict(data: Any) -> AppState:
    """
    Decode a persisted document into an AppState.

    Raises:
        ValueError: If the document (or one of its sequences) has the wrong shape.
    """
    d = _mapping(data, "state document")
    return AppState(
        settings=settings_from_dict(_mapping(d.get("settings") or {}, "settings")),
        topics=tuple(topic_from_dict(_mapping(t, "topic")) for t in _list(d, "topics")),
        stories=tuple(story_from_dict(_mapping(s, "story")) for s in _list(d, "stories")),
        bookings=tuple(booking_from_dict(_mapping(b, "booking")) for b in _list(d, "bookings")),
    )


def state_to_dict(state: AppState) -> dict[str, Any]:
    """Encode an AppState as the JSON-ready document the stores hold."""
    return {
        "settings": settings_to_dict(state.settings),
        "topics": [
            {"id": t.id, "title": t.title, "description": t.description, "imageUrl": t.image_url}
            for t in state.topics
        ],
        "stories": [
            {
                "id": s.id,
                "author": s.author,
                "role": s.role,
                "content": s.content,
                "isVisible": s.is_visible,
                "comments": [
                    {
                        "id": c.id,
                        "name": c.name,
                        "email": c.email,
                        "text": c.text,
                        "date": c.date,
                        "isVisible": c.is_visible,
                    }
                    for c in s.comments
                ],
            }
            for s in state.stories
        ],
        "bookings": [
            {
                "id": b.id,
                "name": b.name,
                "email": b.email,
                "phone": b.phone,
                "date": b.date,
                "topicId": b.topic_id,
                "status": b.status,
            }
            for b in state.bookings
        ],
    }
