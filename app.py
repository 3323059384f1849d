"""
Venus Dialogics site — Streamlit UI entry point.

The UI only reads snapshots from the StateController and dispatches operations
to it; persistence and moderation rules live in the dialogics package.
"""

import streamlit as st

# Load .env first so the store URL, cache location and keys are picked up.
from dialogics.utils.config import load_config
load_config()

from dialogics.domains import operations as ops
from dialogics.domains.models import BOOKING_STATUSES, AppState, SiteSettings
from dialogics.orchestration.assistant_client import AssistantClient
from dialogics.services.auth import check_admin_password
from dialogics.services.state_controller import StateController
from dialogics.utils.logger import get_logger, setup_logger_from_env

setup_logger_from_env()
log = get_logger()

st.set_page_config(page_title="VENUS Dialogics & Training Unlimited", layout="wide")


# One controller per server process; it is injected into every render function below.
@st.cache_resource
def get_controller() -> StateController:
    controller = StateController()
    controller.initialize()
    controller.register_shutdown()
    return controller


@st.cache_resource
def get_assistant(_controller: StateController) -> AssistantClient:
    return AssistantClient(grounding=_controller.grounding_context)


controller = get_controller()
assistant = get_assistant(controller)

if "view" not in st.session_state:
    st.session_state.view = "public"
if "chat" not in st.session_state:
    st.session_state.chat = []
if "booking_topic" not in st.session_state:
    st.session_state.booking_topic = None


# --- Public view ---

def render_hero(state: AppState) -> None:
    s = state.settings
    if s.hero_image:
        st.image(s.hero_image, width="stretch")
    st.title(s.hero_title)
    st.subheader(s.hero_subtitle)


def render_topics(state: AppState) -> None:
    st.header("Training Topics")
    cols = st.columns(2)
    for i, topic in enumerate(state.topics):
        with cols[i % 2]:
            if topic.image_url:
                st.image(topic.image_url, width="stretch")
            st.markdown(f"### {topic.title}")
            st.write(topic.description)
            if st.button("Book Topic", key=f"book_{topic.id}"):
                st.session_state.booking_topic = topic.id


def render_stories(ctrl: StateController, state: AppState) -> None:
    st.header("Success Stories")
    stories = ops.visible_stories(state)
    if not stories:
        st.caption("No stories to show yet.")
    for story in stories:
        with st.container(border=True):
            st.markdown(f"> {story.content}")
            st.markdown(f"**{story.author}** · {story.role}")
            comments = ops.visible_comments(story)
            label = f"{len(comments)} Comments" if comments else "Leave a comment"
            with st.expander(label):
                for c in comments:
                    st.markdown(f"**{c.name}** · _{c.date}_")
                    st.write(c.text)
                if not comments:
                    st.caption("Be the first to share your thoughts.")
                with st.form(key=f"comment_{story.id}", clear_on_submit=True):
                    name = st.text_input("Name")
                    email = st.text_input("Email")
                    text = st.text_area("Comment")
                    if st.form_submit_button("Post Comment"):
                        if name and email and text:
                            ctrl.dispatch(ops.add_comment, story.id, name, email, text)
                            st.toast("Comment added successfully!")
                            st.rerun()
                        else:
                            st.warning("Please fill in every field.")


def render_booking(ctrl: StateController, state: AppState) -> None:
    st.header("Schedule Mr. Venus")
    topic_ids = [t.id for t in state.topics]
    preselected = st.session_state.booking_topic
    index = topic_ids.index(preselected) if preselected in topic_ids else 0
    with st.form(key="booking", clear_on_submit=True):
        name = st.text_input("Full name")
        email = st.text_input("Email")
        phone = st.text_input("Phone")
        date = st.date_input("Preferred date")
        topic_id = st.selectbox(
            "Topic",
            options=topic_ids,
            index=index if topic_ids else None,
            format_func=lambda tid: ops.topic_title(state, tid),
        )
        if st.form_submit_button("Request Booking"):
            if name and email and topic_id:
                ctrl.dispatch(ops.submit_booking, name, email, phone, date.isoformat(), topic_id)
                st.session_state.booking_topic = None
                st.success("Booking request sent! We will contact you shortly.")
            else:
                st.warning("Name, email and topic are required.")


def render_footer(state: AppState) -> None:
    s = state.settings
    st.divider()
    st.markdown(f"✉️ {s.contact_email} · ☎️ {s.contact_phone} · 📍 {s.contact_address}")
    if st.button("Admin Login"):
        st.session_state.view = "login"
        st.rerun()


def render_assistant(client: AssistantClient) -> None:
    with st.sidebar:
        st.header("Ask about our training")
        for msg in st.session_state.chat:
            with st.chat_message(msg["role"]):
                st.markdown(msg["content"])
        question = st.chat_input("Ask a question…")
        if question:
            st.session_state.chat.append({"role": "user", "content": question})
            with st.spinner("Thinking…"):
                answer = client.ask(question)
            st.session_state.chat.append({"role": "assistant", "content": answer})
            st.rerun()


def render_public(ctrl: StateController, client: AssistantClient) -> None:
    state = ctrl.current_snapshot()
    render_hero(state)
    render_topics(state)
    render_stories(ctrl, state)
    render_booking(ctrl, state)
    render_footer(state)
    render_assistant(client)


# --- Login ---

def render_login() -> None:
    st.header("Admin Access")
    with st.form(key="login", clear_on_submit=True):
        password = st.text_input("Enter Password", type="password")
        submitted = st.form_submit_button("Login")
    if submitted:
        if check_admin_password(password):
            st.session_state.view = "admin"
            st.rerun()
        else:
            st.error("Invalid Password")
    if st.button("Back to Site"):
        st.session_state.view = "public"
        st.rerun()


# --- Admin view ---

def render_admin_topics(ctrl: StateController, state: AppState) -> None:
    for topic in state.topics:
        c1, c2 = st.columns([5, 1])
        c1.markdown(f"**{topic.title}**  \n{topic.description}")
        if c2.button("Delete", key=f"del_topic_{topic.id}"):
            ctrl.dispatch(ops.delete_topic, topic.id)
            st.rerun()
    with st.form(key="new_topic", clear_on_submit=True):
        st.markdown("#### Add Topic")
        title = st.text_input("Title")
        description = st.text_area("Description")
        image_url = st.text_input("Image URL", value="https://picsum.photos/800/600")
        if st.form_submit_button("Add Topic"):
            if title and description:
                ctrl.dispatch(ops.create_topic, title, description, image_url)
                st.rerun()
            else:
                st.warning("Title and description are required.")


def render_admin_stories(ctrl: StateController, state: AppState) -> None:
    for story in state.stories:
        with st.container(border=True):
            c1, c2, c3 = st.columns([5, 1, 1])
            c1.markdown(f"**{story.author}** ({story.role})  \n{story.content}")
            if c2.button("Hide" if story.is_visible else "Show", key=f"vis_{story.id}"):
                ctrl.dispatch(ops.toggle_story_visibility, story.id)
                st.rerun()
            if c3.button("Delete", key=f"del_story_{story.id}"):
                ctrl.dispatch(ops.delete_story, story.id)
                st.rerun()
            for comment in story.comments:
                d1, d2 = st.columns([5, 1])
                d1.markdown(f"_{comment.name}_ ({comment.email}): {comment.text}")
                if d2.button("Visible" if comment.is_visible else "Hidden", key=f"vis_{story.id}_{comment.id}"):
                    ctrl.dispatch(ops.toggle_comment_visibility, story.id, comment.id)
                    st.rerun()
    with st.form(key="new_story", clear_on_submit=True):
        st.markdown("#### Add Story")
        author = st.text_input("Author")
        role = st.text_input("Role")
        content = st.text_area("Testimonial")
        if st.form_submit_button("Add Story"):
            if author and content:
                ctrl.dispatch(ops.create_story, author, role, content)
                st.rerun()
            else:
                st.warning("Author and testimonial are required.")


def render_admin_bookings(ctrl: StateController, state: AppState) -> None:
    if not state.bookings:
        st.caption("No booking requests yet.")
    for booking in state.bookings:
        c1, c2 = st.columns([4, 2])
        c1.markdown(
            f"**{booking.name}** · {booking.email} · {booking.phone}  \n"
            f"{ops.topic_title(state, booking.topic_id)} on {booking.date} · _{booking.status}_"
        )
        status = c2.selectbox(
            "Status",
            BOOKING_STATUSES,
            index=BOOKING_STATUSES.index(booking.status),
            key=f"status_{booking.id}",
        )
        if status != booking.status:
            ctrl.dispatch(ops.set_booking_status, booking.id, status)
            st.rerun()


def render_admin_settings(ctrl: StateController, state: AppState) -> None:
    s = state.settings
    with st.form(key="settings"):
        new = SiteSettings(
            hero_title=st.text_input("Hero Title", value=s.hero_title),
            hero_subtitle=st.text_input("Hero Subtitle", value=s.hero_subtitle),
            hero_image=st.text_input("Hero Image URL", value=s.hero_image),
            contact_email=st.text_input("Contact Email", value=s.contact_email),
            contact_phone=st.text_input("Contact Phone", value=s.contact_phone),
            contact_address=st.text_input("Contact Address", value=s.contact_address),
        )
        if st.form_submit_button("Save Changes"):
            ctrl.dispatch(ops.update_settings, new)
            st.success("Settings saved!")


def render_admin(ctrl: StateController) -> None:
    state = ctrl.current_snapshot()
    st.title("Admin Panel")
    if st.button("Logout"):
        st.session_state.view = "public"
        st.rerun()
    topics_tab, stories_tab, bookings_tab, settings_tab = st.tabs(
        ["Topics", "Stories & Comments", "Bookings", "Settings"]
    )
    with topics_tab:
        render_admin_topics(ctrl, state)
    with stories_tab:
        render_admin_stories(ctrl, state)
    with bookings_tab:
        render_admin_bookings(ctrl, state)
    with settings_tab:
        render_admin_settings(ctrl, state)


view = st.session_state.view
if view == "admin":
    render_admin(controller)
elif view == "login":
    render_login()
else:
    render_public(controller, assistant)
