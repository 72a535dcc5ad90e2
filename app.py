"""
Session Ratings Assistant: Streamlit entry point.
"""
import logging

import streamlit as st

logging.basicConfig(level=logging.INFO, format="%(name)s | %(levelname)s | %(message)s")
logger = logging.getLogger(__name__)

from agents.orchestrator import run as orchestrator_run
from config import Settings

st.set_page_config(page_title="Session Ratings Assistant", page_icon="📊", layout="wide")
st.title("Session Ratings Assistant")
st.caption("Ask about instructors, domains or topics. Answers use the ratings sheet only.")

settings = Settings.from_env()

with st.sidebar:
    st.header("Data source")
    if settings.workbook_path:
        st.caption(f"Workbook: {settings.workbook_path}")
    elif settings.sheet_id:
        st.caption(f"Google Sheet: {settings.sheet_id}")
    else:
        st.warning("Set **GOOGLE_SHEET_ID** (or **RATINGS_WORKBOOK**) in `.env`.")
    if not settings.groq_api_key:
        st.info("GROQ_API_KEY not set. Answers use the local analysis only.")
    with st.expander("How to use", expanded=False):
        st.markdown("""
1. Ask in natural language, e.g.:
   - *Average rating for John*
   - *How did the Backend domain do?*
   - *Who is the top instructor?*
2. Mention an instructor or domain by name for the most precise answer.
        """)

if "messages" not in st.session_state:
    st.session_state.messages = []

for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        # Reports are preformatted text; keep their line breaks and indentation
        if msg.get("plain"):
            st.text(msg["content"])
        else:
            st.write(msg["content"])

prompt = st.chat_input("Ask a question (e.g. average rating for John)...")
if prompt:
    st.session_state.messages.append({"role": "user", "content": prompt})
    with st.spinner("Analyzing..."):
        result = orchestrator_run(prompt, settings=settings)
    if result.get("success"):
        st.session_state.messages.append({"role": "assistant", "content": result["data"], "plain": True})
    else:
        st.session_state.messages.append({"role": "assistant", "content": f"Error: {result.get('error')}"})
    st.rerun()
