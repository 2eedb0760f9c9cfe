"""Prompt templates for the legal assistant."""

from __future__ import annotations

import re
from typing import Mapping, Sequence

ASSISTANT_INTRO = (
    "You are Stealth AI, a professional legal document assistant designed specifically for law firms. "
    "You provide accurate, well-reasoned legal analysis while maintaining the highest standards of "
    "professionalism."
)

DISCLAIMERS = """IMPORTANT DISCLAIMERS:
- This analysis is for informational purposes only and does not constitute legal advice
- Always consult with qualified legal counsel for specific legal matters
- Verify all information against original source documents
- Consider jurisdiction-specific laws and regulations"""

ATTACHMENT_KEYWORDS: tuple[str, ...] = (
    "attached",
    "attachment",
    "uploaded",
    "document",
    "file",
    "pdf",
    "docx",
)

# Shorter context is treated as no context at all.
MIN_CONTEXT_CHARS = 50
TITLE_MAX_CHARS = 50
FALLBACK_CONTEXT_CHARS = 1200

_TITLE_PREFIX_RE = re.compile(r"^(Title:|Generated Title:|Conversation Title:)", re.IGNORECASE)
_QUOTES_RE = re.compile(r"['\"]")


def mentions_attachment(query: str) -> bool:
    lowered = query.lower()
    return any(keyword in lowered for keyword in ATTACHMENT_KEYWORDS)


def build_system_prompt(context: str, has_context: bool, attachment_mentioned: bool = False) -> str:
    """Pick the document-grounded prompt or the explicit no-context prompt."""
    if has_context and len(context) > MIN_CONTEXT_CHARS:
        return _document_context_prompt(context, attachment_mentioned)
    return _no_context_prompt()


def _document_context_prompt(context: str, attachment_mentioned: bool) -> str:
    instructions = []
    if attachment_mentioned:
        instructions.append(
            "- The user has mentioned attachments/documents - the content above has been parsed and "
            "extracted from their uploaded files"
        )
    instructions.extend(
        [
            "- You MUST base your responses on the document context provided above",
            "- Reference specific sections, clauses, or information from the documents",
            "- Quote relevant passages when appropriate and cite the document name",
            "- If the context contains relevant information, use it to provide detailed analysis",
            "- If the context doesn't fully answer the question, clearly state what additional "
            "information might be needed",
            "- Maintain professional legal language and terminology",
            "- Flag any potential legal issues, risks, or areas requiring further review",
            "- If you identify conflicting information in the documents, highlight these discrepancies",
            "- Always acknowledge that you have reviewed the provided documents",
        ]
    )
    if attachment_mentioned:
        instructions.append(
            '- When the user mentions "attached" or similar terms, acknowledge that you have access to '
            "and have analyzed their uploaded document content"
        )
    body = "\n".join(instructions)
    return (
        f"{ASSISTANT_INTRO}\n\n"
        f"DOCUMENT CONTEXT PROVIDED:\n{context}\n\n"
        f"INSTRUCTIONS:\n{body}\n\n"
        "IMPORTANT: The user has provided specific documents for analysis. You MUST reference and "
        "analyze the content provided above.\n\n"
        f"{DISCLAIMERS}"
    )


def _no_context_prompt() -> str:
    return (
        f"{ASSISTANT_INTRO}\n\n"
        "NO DOCUMENT CONTEXT PROVIDED:\n"
        "The user has not selected any documents for context, or the selected documents contain no "
        "readable content.\n\n"
        "INSTRUCTIONS:\n"
        "- Provide general legal guidance while emphasizing the need for document review\n"
        "- Recommend that the user upload and select relevant documents for more specific analysis\n"
        "- Maintain professional legal language and terminology\n"
        "- Always recommend consulting with qualified legal counsel for specific legal matters\n"
        "- Explain that you need document content to provide specific analysis\n\n"
        f"{DISCLAIMERS}"
    )


def build_title_prompt(messages: Sequence[Mapping[str, str]]) -> str:
    conversation = "\n".join(f"{message['role']}: {message['content']}" for message in messages)
    return (
        f"Based on this conversation, generate a concise, descriptive title (maximum {TITLE_MAX_CHARS} "
        "characters) that captures the main topic or question being discussed. Only return the title, "
        "nothing else.\n\n"
        f"Conversation:\n{conversation}\n\n"
        "Title:"
    )


def clean_title(raw: str) -> str:
    title = _TITLE_PREFIX_RE.sub("", raw.strip())
    title = _QUOTES_RE.sub("", title).strip()
    return title[:TITLE_MAX_CHARS]


def fallback_response(query: str, context: str) -> str:
    """Canned answer used when the chat model cannot be reached."""
    if context and len(context.strip()) > MIN_CONTEXT_CHARS:
        return _document_fallback(query, context)
    return _no_context_fallback(query)


def _document_fallback(query: str, context: str) -> str:
    excerpt = context[:FALLBACK_CONTEXT_CHARS]
    if len(context) > FALLBACK_CONTEXT_CHARS:
        excerpt += "\n\n[Content continues...]"
    return f"""**Document Analysis Complete**

I have reviewed the documents you provided and can help you with "{query}".

**Document Content Analysis:**
I've analyzed the document content you selected. Here's my analysis based on the provided documents:

{excerpt}

**Key Findings:**
- I have successfully analyzed the document content provided
- The documents contain information relevant to your query
- I recommend reviewing the specific clauses and terms mentioned above
- Consider the legal implications of the provisions discussed

**Legal Guidance:**
This appears to be a legal inquiry that would benefit from careful document review. Based on the available information, I recommend:

1. **Review the relevant clauses** mentioned in the documents
2. **Consider the legal implications** of the terms discussed
3. **Verify compliance** with applicable regulations
4. **Consult with qualified legal counsel** for specific legal advice

**Important Disclaimer:**
This analysis is for informational purposes only and does not constitute legal advice. Always consult with qualified legal counsel for specific legal matters.

Would you like me to elaborate on any specific aspect of this analysis?"""


def _no_context_fallback(query: str) -> str:
    return f"""**No Document Context Available**

I understand you're asking about "{query}".

**General Legal Guidance:**
I don't have specific document context for this query. To provide accurate analysis, I need you to:

1. **Upload Documents:** Upload relevant legal documents to the platform
2. **Select Documents:** Choose which documents I should analyze
3. **Provide Context:** Ensure the documents contain readable text content
4. **Legal Research:** Consider reviewing applicable statutes and case law
5. **Professional Consultation:** Always consult with qualified legal counsel for specific matters

**Important Disclaimer:**
This response is for informational purposes only and does not constitute legal advice. Verify all information against original source documents and consult with qualified legal counsel.

How can I help you further with your legal research?"""


__all__ = [
    "ATTACHMENT_KEYWORDS",
    "build_system_prompt",
    "build_title_prompt",
    "clean_title",
    "fallback_response",
    "mentions_attachment",
]
