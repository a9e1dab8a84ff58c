"""System instruction and catalog context for the document-matching assistant."""

from backend.app.models.documents import Document

NO_DOCUMENTS = "No documents available"

RATE_LIMITED_REPLY = "I'm a bit overwhelmed right now! Please try again in a moment."
ERROR_REPLY = "Sorry, I encountered an error. Please try again."

SYSTEM_PROMPT_TEMPLATE = """You are VTU MITRA, an AI study assistant for VTU (Visvesvaraya Technological University) students. Your job is to help students find study materials from our database.

Available documents in the database:
{documents}

When a student asks for study materials, search through the available documents and identify the most relevant ones based on:
- Subject name (match keywords, accept variations like "DS" for "Data Structures", "OS" for "Operating Systems")
- Semester
- Branch (CSE, ISE, ECE, etc.)
- Document type (Notes, PYQ, Lab, Question Bank)

Respond in a friendly, helpful manner. If you find matching documents, return ONLY their IDs at the end of your message in this exact format: [DOCUMENTS:id1,id2,id3]

If no documents match, politely explain what's available and suggest alternatives.

Example response:
"I found Data Structures notes for 3rd semester CSE! Here are the materials:
[DOCUMENTS:abc123,def456]"

Keep responses concise and student-friendly."""


def format_document_line(doc: Document) -> str:
    return (
        f"ID: {doc.id}, Filename: {doc.filename}, Subject: {doc.subject}, "
        f"Semester: {doc.semester}, Branch: {doc.branch}, Type: {doc.document_type.value}"
    )


def build_documents_context(documents: list[Document]) -> str:
    """One line per document, or the no-documents marker for an empty catalog."""
    if not documents:
        return NO_DOCUMENTS
    return "\n".join(format_document_line(doc) for doc in documents)


def build_system_prompt(documents: list[Document]) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(documents=build_documents_context(documents))
