import os

import requests
import streamlit as st

API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:8000")

GREETING = "Hi! I'm **Ithaka's** specialized AI travel assistant. How can I help you today?"

PROMPT_STARTERS = [
    "Tell me about popular destinations in Egypt",
    "What are the must-visit places in Alexandria?",
    "Suggest a cultural tour in Cairo",
    "How can I plan a trip to multiple Egyptian cities?",
    "What's the best time to visit Egypt?",
]

st.title("Ithaka AI Travel Assistant")

# Initialise session state
if "messages" not in st.session_state:
    st.session_state.messages = [{"role": "assistant", "content": GREETING, "greeting": True}]

# Sidebar controls
if st.sidebar.button("New chat"):
    st.session_state.messages = [{"role": "assistant", "content": GREETING, "greeting": True}]
    st.rerun()


def _stream_reply(history):
    """Post the conversation and yield the reply text as the server produces it."""
    try:
        with requests.post(
            f"{API_BASE_URL}/api/chat",
            json={"messages": history},
            stream=True,
            timeout=60,
        ) as resp:
            if resp.status_code != 200:
                try:
                    body = resp.json()
                    yield f"{body.get('error', 'Server error')}: {body.get('details', '')}".rstrip(": ")
                except ValueError:
                    yield f"Server error ({resp.status_code}). Please try again later."
                return
            resp.encoding = "utf-8"
            for chunk in resp.iter_content(chunk_size=None, decode_unicode=True):
                if chunk:
                    yield chunk
    except requests.exceptions.ConnectionError:
        yield "Could not reach the server. Is the API running?"
    except requests.exceptions.Timeout:
        yield "The request timed out. Please try again."
    except requests.exceptions.RequestException as e:
        yield f"Something went wrong: {e}"


# ── Chat history ─────────────────────────────────────────────────────────────

for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])

# ── Prompt starters ──────────────────────────────────────────────────────────

starter = None
if len(st.session_state.messages) == 1:
    columns = st.columns(len(PROMPT_STARTERS))
    for column, text in zip(columns, PROMPT_STARTERS):
        if column.button(text, use_container_width=True):
            starter = text

# ── Chat input ───────────────────────────────────────────────────────────────

prompt = st.chat_input("Ask me anything about your trip…") or starter
if prompt:
    st.session_state.messages.append({"role": "user", "content": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)

    with st.chat_message("assistant"):
        history = [
            {"role": m["role"], "content": m["content"]}
            for m in st.session_state.messages
            if not m.get("greeting")
        ]
        reply = st.write_stream(_stream_reply(history))

    st.session_state.messages.append({"role": "assistant", "content": reply if isinstance(reply, str) else str(reply)})
