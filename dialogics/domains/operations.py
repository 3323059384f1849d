"""
Moderation and booking operations: pure transforms from one AppState to the next.

Each function returns a new snapshot and rebuilds only the branch it touches;
untouched tuples (and the settings object) are shared with the input.

A missing target (unknown story, comment or booking id) is a silent no-op:
the input snapshot itself is returned, and `result is state` is how callers
detect it.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

from dialogics.domains.models import (
    BOOKING_STATUSES,
    AppState,
    Comment,
    SiteSettings,
    Story,
    new_booking,
    new_comment,
    new_story,
    new_topic,
)

UNKNOWN_TOPIC = "Unknown Topic"


def _map_story(state: AppState, story_id: str, fn: Callable[[Story], Story]) -> AppState:
    """Apply fn to the story with story_id; no-op when it does not exist."""
    for i, story in enumerate(state.stories):
        if story.id == story_id:
            updated = fn(story)
            if updated is story:
                return state
            stories = state.stories[:i] + (updated,) + state.stories[i + 1:]
            return replace(state, stories=stories)
    return state


# --- Public (visitor) operations ---

def add_comment(state: AppState, story_id: str, name: str, email: str, text: str) -> AppState:
    """Append a new visible comment to a story."""
    comment = new_comment(name, email, text)
    return _map_story(state, story_id, lambda s: replace(s, comments=s.comments + (comment,)))


def submit_booking(
    state: AppState,
    name: str,
    email: str,
    phone: str,
    date: str,
    topic_id: str,
) -> AppState:
    """Append a pending booking. topic_id is not checked against the catalogue."""
    booking = new_booking(name, email, phone, date, topic_id)
    return replace(state, bookings=state.bookings + (booking,))


# --- Moderation ---

def toggle_story_visibility(state: AppState, story_id: str) -> AppState:
    return _map_story(state, story_id, lambda s: replace(s, is_visible=not s.is_visible))


def toggle_comment_visibility(state: AppState, story_id: str, comment_id: str) -> AppState:
    def flip(story: Story) -> Story:
        for i, c in enumerate(story.comments):
            if c.id == comment_id:
                comments = story.comments[:i] + (replace(c, is_visible=not c.is_visible),) + story.comments[i + 1:]
                return replace(story, comments=comments)
        return story

    return _map_story(state, story_id, flip)


def delete_story(state: AppState, story_id: str) -> AppState:
    """Remove a story and its comments. There is no soft delete."""
    stories = tuple(s for s in state.stories if s.id != story_id)
    if len(stories) == len(state.stories):
        return state
    return replace(state, stories=stories)


def create_story(state: AppState, author: str, role: str, content: str) -> AppState:
    return replace(state, stories=state.stories + (new_story(author, role, content),))


# --- Catalogue and settings ---

def create_topic(state: AppState, title: str, description: str, image_url: str = "") -> AppState:
    return replace(state, topics=state.topics + (new_topic(title, description, image_url),))


def delete_topic(state: AppState, topic_id: str) -> AppState:
    """
    Remove a topic. Bookings that reference it are left alone; renderers
    show UNKNOWN_TOPIC for them (see topic_title).
    """
    topics = tuple(t for t in state.topics if t.id != topic_id)
    if len(topics) == len(state.topics):
        return state
    return replace(state, topics=topics)


def update_settings(state: AppState, settings: SiteSettings) -> AppState:
    """Replace the settings wholesale; there is no per-field merge."""
    return replace(state, settings=settings)


# --- Bookings ---

def set_booking_status(state: AppState, booking_id: str, status: str) -> AppState:
    """
    Overwrite a booking's status. Every status is reachable from every other.

    Raises:
        ValueError: If status is not one of BOOKING_STATUSES.
    """
    if status not in BOOKING_STATUSES:
        raise ValueError(f"Unknown booking status: {status!r}. Expected one of {BOOKING_STATUSES}.")
    for i, b in enumerate(state.bookings):
        if b.id == booking_id:
            bookings = state.bookings[:i] + (replace(b, status=status),) + state.bookings[i + 1:]
            return replace(state, bookings=bookings)
    return state


# --- Read helpers for renderers ---

def visible_stories(state: AppState) -> tuple[Story, ...]:
    return tuple(s for s in state.stories if s.is_visible)


def visible_comments(story: Story) -> tuple[Comment, ...]:
    return tuple(c for c in story.comments if c.is_visible)


def topic_title(state: AppState, topic_id: str) -> str:
    """Title of the referenced topic, or UNKNOWN_TOPIC when it was deleted."""
    for t in state.topics:
        if t.id == topic_id:
            return t.title
    return UNKNOWN_TOPIC


def grounding_context(state: AppState) -> tuple[dict[str, Any], ...]:
    """Topic catalogue as plain {title, description} records for the assistant."""
    return tuple({"title": t.title, "description": t.description} for t in state.topics)
