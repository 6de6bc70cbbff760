"""
portfolio assistant page
answers visitor questions about the candidate from the latest resume and profile
built with streamlit and openai
"""

import streamlit as st

from config import get_settings
from conversation import USER, PortfolioChat
from dictation import DictationController, UnavailableSpeechCapability
from errors import PortfolioAssistantError, normalize_error
from logging_config import configure_logging
from markdown_renderer import message_html
from resume_manager import ResumeManager
from resume_processor import ALLOWED_MIME_TYPES
from resume_store import DEFAULT_PROFILE_ID, ResumeStore

settings = get_settings()
configure_logging("portfolio-assistant", settings.log_level)

st.set_page_config(
    page_title="portfolio assistant",
    page_icon="💬",
    layout="wide",
)

# check if the openai api key exists before proceeding
if not settings.openai_api_key:
    st.error("openai api key not found")
    st.markdown("""
    **to set up your api key:**

    1. create a `.env` file in the project root
    2. add the line: `OPENAI_API_KEY=your_api_key_here`
    3. restart the application
    """)
    st.stop()


@st.cache_resource
def load_resume_manager():
    """
    builds the store and manager once per server process
    the store opens a fresh sqlite connection per call so sharing it is fine
    """
    store = ResumeStore(settings.database_path, settings.storage_dir)
    return ResumeManager(store, max_upload_bytes=settings.max_upload_bytes)


def get_chat() -> PortfolioChat:
    """
    gets or creates the chat from session state
    the first call also loads the context
    """
    if "portfolio_chat" not in st.session_state:
        chat = PortfolioChat(load_resume_manager())
        st.session_state.portfolio_chat = chat
        chat.load_context()
    return st.session_state.portfolio_chat


def get_dictation() -> DictationController:
    # the browser speech api isnt reachable from streamlit, so voice input
    # stays disabled behind the capability check
    if "dictation" not in st.session_state:
        st.session_state.dictation = DictationController(
            UnavailableSpeechCapability(), lang=settings.speech_lang
        )
    return st.session_state.dictation


def render_message(container, role: str, content: str, pending: bool = False):
    label = "You" if role == USER else "Assistant"
    css_class = "chat-user" if role == USER else "chat-assistant"
    body = message_html(content, pending)
    container.markdown(f"""
    <div class="{css_class}">
        <div class="chat-label">{label}</div>
        {body}
    </div>
    """, unsafe_allow_html=True)


chat = get_chat()
dictation = get_dictation()

# admin sidebar: resume upload and profile fields
with st.sidebar:
    st.markdown("### Portfolio Assistant")
    st.caption("Provide context for the AI")

    uploaded = st.file_uploader(
        "Upload Resume",
        type=["pdf", "docx", "txt"],
        key=f"resume_uploader_{st.session_state.get('upload_key', 0)}",
    )
    if uploaded is not None and st.button("Process File", type="primary"):
        try:
            chat.manager.upload_resume(
                uploaded.name,
                uploaded.getvalue(),
                uploaded.type or "",
            )
            st.success("New resume uploaded successfully!")
            chat.load_context()
        except PortfolioAssistantError as e:
            st.error(e.message)
        except Exception as e:
            st.error(normalize_error(e, fallback="An unknown error occurred during upload."))
        # reset the pending upload either way
        st.session_state.upload_key = st.session_state.get("upload_key", 0) + 1
        st.rerun()
    st.caption("Accepted: " + ", ".join(ALLOWED_MIME_TYPES))

    st.markdown("---")
    profile = chat.manager.store.get_profile(DEFAULT_PROFILE_ID) or {}
    linkedin_about = st.text_area(
        "LinkedIn Profile",
        value=profile.get("linkedin_about", ""),
        placeholder="Paste your LinkedIn 'About' section...",
    )
    github_url = st.text_input(
        "GitHub URL",
        value=profile.get("github_url", ""),
        placeholder="e.g., https://github.com/username",
    )
    if st.button("Save Profile"):
        try:
            chat.manager.save_profile(DEFAULT_PROFILE_ID, linkedin_about, github_url)
            st.success("Profile saved successfully!")
        except PortfolioAssistantError as e:
            st.error(f"Cannot save: {e.message}")
        except Exception as e:
            st.error(f"Error: {normalize_error(e)}")

    if st.button("Reload Context", use_container_width=True):
        chat.load_context()
        st.rerun()

st.markdown("## Portfolio Assistant")
st.markdown("---")

# transcript, the last message gets its own slot so streaming can redraw it
transcript = chat.history.snapshot()
for index, message in enumerate(transcript):
    still_streaming = chat.history.turn_open and index == len(transcript) - 1
    render_message(st, message.role, message.content, still_streaming)
pending_user = st.empty()
pending_reply = st.empty()

if chat.error:
    st.error(chat.error)

with st.form(key="chat_form", clear_on_submit=True):
    col_input, col_mic = st.columns([12, 1])
    with col_input:
        question = st.text_area(
            "Your Question",
            value=dictation.text,
            placeholder="Ask a question about the portfolio...",
            label_visibility="collapsed",
            disabled=chat.busy,
        )
    with col_mic:
        mic_pressed = st.form_submit_button(
            "🎤",
            disabled=not dictation.available or chat.busy,
            help="Start voice input" if dictation.available else "Voice input not supported",
        )
    submitted = st.form_submit_button("Send", disabled=chat.busy, use_container_width=True)

if mic_pressed:
    dictation.set_text(question)
    dictation.toggle()
    st.rerun()

if submitted and question.strip():
    dictation.set_text(question)
    text = dictation.submit()
    start = len(chat.history)

    def show_progress(snapshot):
        # begin_turn adds the user message and the placeholder after `start`
        if len(snapshot) >= start + 2:
            render_message(pending_user, snapshot[start].role, snapshot[start].content)
            render_message(pending_reply, snapshot[-1].role, snapshot[-1].content,
                           chat.history.turn_open)

    unsubscribe = chat.subscribe(show_progress)
    try:
        chat.send_message(text)
    finally:
        unsubscribe()
    st.rerun()
