"""
Streamlit Frontend for finchat

A chat page for asking money questions about the household's records,
plus a settings page showing which data source is connected.

DESIGN PRINCIPLES:
1. Every answer shows the numbers it was computed from
2. Compound questions show one panel per detected intent
3. Failures are shown per intent, in plain language
4. The detected intents and confidences are always visible

Rendering numbers into friendly prose is left to a templating layer;
this page shows the raw result bundles.
"""

import asyncio

import streamlit as st

from finchat.config import SUPPORTED_LOCALES, get_settings, validate_all_settings
from finchat.models.conversation import ConversationTurn, Role
from finchat.models.response import ChatResponse, ResponseType
from finchat.orchestrator import ChatFlow, create_app_components


# Page configuration
st.set_page_config(
    page_title="finchat",
    page_icon="💬",
    layout="wide",
    initial_sidebar_state="expanded",
)

BOX_STYLES = {
    ResponseType.TEXT: "info-box",
    ResponseType.INSIGHT: "success-box",
    ResponseType.SUGGESTION: "info-box",
    ResponseType.WARNING: "warning-box",
    ResponseType.ERROR: "error-box",
}

st.markdown("""
<style>
    .success-box {
        padding: 16px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 8px 0;
    }
    .warning-box {
        padding: 16px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 8px 0;
    }
    .error-box {
        padding: 16px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 8px 0;
    }
    .info-box {
        padding: 16px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 8px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def main():
    """Main application entry point."""
    chat_flow, _, _ = get_components()

    st.sidebar.title("💬 finchat")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["💬 Chat", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    user_id = st.sidebar.text_input("User", value="demo")
    locale = st.sidebar.selectbox("Language", options=list(SUPPORTED_LOCALES), index=0)

    if page == "💬 Chat":
        render_chat_page(chat_flow, user_id, locale)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_chat_page(chat_flow: ChatFlow, user_id: str, locale: str):
    """Render the chat page."""
    st.title("💬 Ask about your money")

    if "history" not in st.session_state:
        st.session_state.history = []

    with st.expander("📝 Suggested Questions"):
        for suggestion in run_async(chat_flow.suggested_questions(user_id, locale)):
            st.markdown(f"- {suggestion}")

    for turn, response in st.session_state.get("transcript", []):
        with st.chat_message("user"):
            st.markdown(turn)
        with st.chat_message("assistant"):
            render_response(response)

    question = st.chat_input("e.g., How much did I spend this month?")
    if not question:
        return

    with st.spinner("Looking up your records..."):
        response = run_async(
            chat_flow.process(
                user_id=user_id,
                query=question,
                locale=locale,
                history=st.session_state.history,
            )
        )

    st.session_state.history.append(ConversationTurn(role=Role.USER, text=question))
    st.session_state.history.append(
        ConversationTurn(role=Role.ASSISTANT, text=response.primary_intent.value)
    )
    st.session_state.setdefault("transcript", []).append((question, response))
    st.rerun()


def render_response(response: ChatResponse):
    """Show each result bundle of a response."""
    for bundle in response.bundles:
        title = bundle.intent.value.replace("_", " ").title()
        body = bundle.error_message if not bundle.success else ""
        st.markdown(f"""
        <div class="{BOX_STYLES[bundle.response_type]}">
            <h4>{title}</h4>
            <p>{body}</p>
        </div>
        """, unsafe_allow_html=True)
        if bundle.data:
            st.json(bundle.data, expanded=False)
        if bundle.action_link:
            st.caption(f"More detail: {bundle.action_link}")

    with st.expander("🔍 Detected Intents"):
        for candidate in response.candidates:
            st.markdown(f"**{candidate.intent.value}**: {candidate.confidence:.2f}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")
    status = validate_all_settings()

    sections = [
        ("Chat engine", "chat"),
        ("Google Sheets (Data Source)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown(f"**Data source:** {get_settings().app.data_source}")
    st.markdown(
        "To configure the application, create a `.env` file with `DATA_SOURCE=sheets`, "
        "`GOOGLE_SHEETS_CREDENTIALS_PATH` and `GOOGLE_SHEETS_SPREADSHEET_ID`. "
        "Chat tuning uses the `FINCHAT_` prefix."
    )


if __name__ == "__main__":
    main()
