"""Streamlit UI for VTU MITRA - chat, upload and admin moderation.

Run with: streamlit run ui/app.py
"""

# Add project root to sys.path for imports to work when run via streamlit
import sys
from pathlib import Path

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import os  # noqa: E402

import httpx  # noqa: E402
import streamlit as st  # noqa: E402

from backend.app.models.chat import ChatMessage  # noqa: E402
from ui.helpers import (  # noqa: E402
    call_chat,
    dev_token,
    download_document,
    format_document_label,
    get_me,
    list_pending,
    moderate,
    send_document_email,
    upload_document,
)
from ui.session import SessionContext  # noqa: E402

# Configuration
BACKEND_URL = os.environ.get("BACKEND_URL", "http://localhost:8000")
HISTORY_DIR = Path(os.environ.get("VTU_MITRA_STATE_DIR", Path.home() / ".vtu_mitra"))
DOCUMENT_TYPES = ["Notes", "PYQ", "Lab", "Question Bank"]

st.set_page_config(page_title="VTU MITRA", page_icon="📚", layout="wide")

# Initialize session state
if "session" not in st.session_state:
    st.session_state.session = SessionContext(history_dir=HISTORY_DIR)
if "me" not in st.session_state:
    st.session_state.me = None

session: SessionContext = st.session_state.session
session.refresh_if_due()

st.title("📚 VTU MITRA")
st.markdown("*Your AI study assistant*")

# =============================================================================
# SIGN IN
# =============================================================================
if not session.is_authenticated:
    with st.form("sign_in"):
        user_id = st.text_input("User ID *")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted and user_id.strip():
        email = f"{user_id.strip()}@vtumitra.local"
        session.sign_in(dev_token(user_id.strip(), email), {"user_id": user_id.strip(), "email": email})
        try:
            st.session_state.me = get_me(BACKEND_URL, session.auth_header())
        except httpx.HTTPError as e:
            session.abandon()
            st.error(f"❌ Sign-in failed: {e}")
        else:
            st.rerun()
    st.stop()

me = st.session_state.me or {}
headers = session.auth_header()

with st.sidebar:
    st.markdown(f"Signed in as **{me.get('display_name', '')}**")
    pages = ["Chat", "Upload"] + (["Admin"] if me.get("is_admin") else [])
    page = st.radio("Page", pages)
    if st.button("Sign out"):
        session.sign_out()
        st.session_state.me = None
        st.rerun()

# =============================================================================
# CHAT
# =============================================================================
if page == "Chat":
    history = session.history
    messages = history.load()

    for i, msg in enumerate(messages):
        with st.chat_message(msg.role):
            st.markdown(msg.content)
            for doc in msg.documents or []:
                cols = st.columns([3, 1, 1])
                cols[0].markdown(format_document_label(doc.model_dump(mode="json")))
                if cols[1].button("Download", key=f"dl-{i}-{doc.id}"):
                    data = download_document(BACKEND_URL, headers, doc.id)
                    st.download_button("Save file", data, file_name=doc.filename, key=f"save-{i}-{doc.id}")
                if cols[2].button("Email me", key=f"mail-{i}-{doc.id}"):
                    result = send_document_email(BACKEND_URL, headers, doc.id, me.get("email") or "")
                    if result.get("success"):
                        st.success("📧 Document sent to your email")
                    else:
                        st.error(f"❌ {result.get('error', 'Failed to send email')}")

    prompt = st.chat_input("Ask for notes, PYQs or lab programs...")
    if prompt:
        user_message = ChatMessage(role="user", content=prompt)
        try:
            reply = call_chat(BACKEND_URL, headers, prompt)
            assistant = ChatMessage(
                role="assistant",
                content=reply.get("message", ""),
                documents=reply.get("documents") or None,
            )
        except httpx.HTTPError:
            assistant = ChatMessage(
                role="assistant", content="Sorry, I encountered an error. Please try again."
            )
        history.save(messages + [user_message, assistant])
        st.rerun()

# =============================================================================
# UPLOAD
# =============================================================================
elif page == "Upload":
    st.subheader("📤 Upload study material")

    with st.form("upload_form", clear_on_submit=True):
        subject = st.text_input("Subject *")
        col_sem, col_branch = st.columns(2)
        with col_sem:
            semester = st.selectbox("Semester *", [str(s) for s in range(1, 9)])
        with col_branch:
            branch = st.text_input("Branch *", help="e.g. CSE, ISE, ECE")
        document_type = st.selectbox("Type *", DOCUMENT_TYPES)
        file = st.file_uploader("File * (PDF, DOC, DOCX, max 20MB)", type=["pdf", "doc", "docx"])
        submitted = st.form_submit_button("Submit for review", type="primary")

    if submitted:
        if file is None:
            st.error("❌ Please select a file")
        else:
            try:
                upload_document(
                    BACKEND_URL,
                    headers,
                    file.name,
                    file.getvalue(),
                    subject,
                    semester,
                    branch,
                    document_type,
                )
                st.success("✅ Uploaded. An admin will review it shortly.")
            except httpx.HTTPStatusError as e:
                body = e.response.json() if e.response.content else {}
                for field, message in (body.get("errors") or {}).items():
                    st.error(f"❌ {field}: {message}")
                if not body.get("errors"):
                    st.error(f"❌ {body.get('detail', 'Upload failed')}")

# =============================================================================
# ADMIN
# =============================================================================
elif page == "Admin":
    st.subheader("🛡️ Pending documents")

    try:
        pending = list_pending(BACKEND_URL, headers)
    except httpx.HTTPError as e:
        st.error(f"❌ {e}")
        pending = []

    if not pending:
        st.info("No documents waiting for review.")

    for doc in pending:
        profile = doc.get("profile", {})
        with st.container(border=True):
            st.markdown(f"**{doc['filename']}**")
            st.caption(format_document_label(doc))
            st.caption(f"Uploaded by {profile.get('full_name', 'Unknown')} ({profile.get('email', 'Unknown')})")
            col_approve, col_reject = st.columns(2)
            if col_approve.button("Approve", key=f"approve-{doc['id']}", type="primary"):
                moderate(BACKEND_URL, headers, doc["id"], "approve")
                st.rerun()
            if col_reject.button("Reject", key=f"reject-{doc['id']}"):
                moderate(BACKEND_URL, headers, doc["id"], "reject")
                st.rerun()
