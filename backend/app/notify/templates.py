"""HTML body for the document-delivery e-mail."""

from html import escape

from backend.app.models.documents import Document

DOCUMENT_EMAIL_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background: linear-gradient(135deg, #3b82f6 0%, #6366f1 100%); padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
    <h1 style="color: white; margin: 0;">VTU MITRA</h1>
    <p style="color: rgba(255,255,255,0.9); margin: 10px 0 0 0;">Your AI Study Assistant</p>
  </div>

  <div style="background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px;">
    <h2 style="color: #1f2937; margin-top: 0;">Your Study Material is Ready!</h2>

    <p style="color: #4b5563; line-height: 1.6;">
      Here's the document you requested:
    </p>

    <div style="background: white; padding: 20px; border-radius: 8px; margin: 20px 0; border-left: 4px solid #3b82f6;">
      <p style="margin: 5px 0; color: #1f2937;"><strong>Subject:</strong> {subject}</p>
      <p style="margin: 5px 0; color: #1f2937;"><strong>Type:</strong> {document_type}</p>
      <p style="margin: 5px 0; color: #1f2937;"><strong>Semester:</strong> {semester}</p>
      <p style="margin: 5px 0; color: #1f2937;"><strong>Branch:</strong> {branch}</p>
    </div>

    <p style="color: #4b5563; line-height: 1.6;">
      The document is attached to this email. Good luck with your studies!
    </p>

    <div style="text-align: center; margin-top: 30px;">
      <p style="color: #6b7280; font-size: 14px;">
        Need more materials? Visit VTU MITRA and chat with our AI assistant!
      </p>
    </div>
  </div>
</div>
"""


def document_email_subject(doc: Document) -> str:
    return f"Your requested study material: {doc.subject}"


def render_document_email(doc: Document) -> str:
    """Render the delivery e-mail; catalog fields are HTML-escaped."""
    return DOCUMENT_EMAIL_TEMPLATE.format(
        subject=escape(doc.subject),
        document_type=escape(doc.document_type.value),
        semester=escape(doc.semester),
        branch=escape(doc.branch),
    )
