"""
Seed document used when neither the remote store nor the local cache has data.

Keep it in the domain layer so tests and the app share the same baseline.
"""

from __future__ import annotations

from dialogics.domains.models import AppState, Comment, SiteSettings, Story, Topic

INITIAL_STATE = AppState(
    settings=SiteSettings(
        hero_title="Unlocking Potential Through Dialogue",
        hero_subtitle="Transformative Corporate Training with Mr. Roel Venus",
        hero_image="https://picsum.photos/1920/1080",
        contact_email="info@venusdialogics.com",
        contact_phone="+1 (555) 123-4567",
        contact_address="123 Leadership Way, Metro City",
    ),
    topics=(
        Topic(
            id="t1",
            title="Strategic Leadership in the AI Era",
            description="Navigating the complexities of modern management with emotional intelligence and foresight.",
            image_url="https://picsum.photos/800/600?random=1",
        ),
        Topic(
            id="t2",
            title="Effective Communication Mastery",
            description="Breaking down barriers and building bridges in corporate environments.",
            image_url="https://picsum.photos/800/600?random=2",
        ),
        Topic(
            id="t3",
            title="Sales Dynamics & Negotiation",
            description="Advanced techniques for closing deals and building long-term client relationships.",
            image_url="https://picsum.photos/800/600?random=3",
        ),
        Topic(
            id="t4",
            title="Team Synergy Workshop",
            description="Interactive sessions designed to improve collaboration and morale.",
            image_url="https://picsum.photos/800/600?random=4",
        ),
    ),
    stories=(
        Story(
            id="s1",
            author="Sarah Jenkins",
            role="HR Director, TechCorp",
            content=(
                "Mr. Venus transformed our management team. His approach to conflict resolution is "
                "unparalleled. We saw a 30% increase in employee retention within 6 months."
            ),
            is_visible=True,
            comments=(
                Comment(
                    id="c1",
                    name="John Doe",
                    email="john@example.com",
                    text="This is inspiring! We need this at our firm.",
                    date="2023-10-15",
                    is_visible=True,
                ),
            ),
        ),
        Story(
            id="s2",
            author="Michael Chang",
            role="CEO, Future Ventures",
            content="The 'Strategic Leadership' seminar was a game changer for our board. Highly recommended.",
            is_visible=True,
            comments=(),
        ),
    ),
    bookings=(),
)


def initial_state() -> AppState:
    """Return the seed snapshot (immutable, so sharing it is safe)."""
    return INITIAL_STATE
