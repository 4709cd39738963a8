"""Prompt assembly — turns a RAG context and chat history into completion messages."""

import logging
import re

from docrag.domain.entities import (
    ChatMessage,
    PromptDomain,
    PromptPayload,
    RAGContext,
    RetrievalStats,
)

logger = logging.getLogger(__name__)

_DEFAULT_HISTORY_LIMIT = 6
_SUPPORTED_LANGUAGES = ("en", "de")

# ── Grounding instructions ──────────────────────────────────────────

_NO_CONTEXT_PROMPT = {
    "en": """\
You are a helpful assistant. The user asked a question, but nothing relevant
was found in their uploaded documents.

Tell them that their documents do not contain information on this topic.
Do not guess and do not answer from general knowledge. Suggest that they:
1. Upload documents that cover this topic
2. Rephrase the question
3. Ask about something their documents do cover

Be polite and brief.""",
    "de": """\
Du bist ein hilfsbereiter Assistent. Der Nutzer hat eine Frage gestellt, aber
in seinen hochgeladenen Dokumenten wurde nichts Relevantes gefunden.

Teile ihm mit, dass seine Dokumente keine Informationen zu diesem Thema
enthalten. Rate nicht und antworte nicht aus allgemeinem Wissen. Schlage vor:
1. Dokumente zu diesem Thema hochzuladen
2. Die Frage umzuformulieren
3. Nach etwas zu fragen, das in den Dokumenten behandelt wird

Sei höflich und kurz.""",
}

_GROUNDED_PROMPT = {
    "en": """\
You answer questions using the user's uploaded documents.

IMPORTANT INSTRUCTIONS:
1. Base your answer ONLY on the context below
2. If the context is not enough to answer, say so clearly
3. Name the document(s) your answer relies on
4. Be concise but complete
5. Express uncertainty instead of inventing information

RELEVANT CONTEXT FROM THE USER'S DOCUMENTS:

{context}

---

Answer the user's question from this context. If it holds nothing relevant, say so.""",
    "de": """\
Du beantwortest Fragen anhand der hochgeladenen Dokumente des Nutzers.

WICHTIGE ANWEISUNGEN:
1. Stütze deine Antwort AUSSCHLIESSLICH auf den folgenden Kontext
2. Reicht der Kontext nicht aus, sage das klar
3. Nenne die Dokumente, auf die sich deine Antwort stützt
4. Antworte knapp, aber vollständig
5. Äußere Unsicherheit, statt Informationen zu erfinden

RELEVANTER KONTEXT AUS DEN DOKUMENTEN DES NUTZERS:

{context}

---

Beantworte die Frage des Nutzers anhand dieses Kontexts. Enthält er nichts Relevantes, sage das.""",
}

# ── Domain personas ─────────────────────────────────────────────────

_PERSONAS: dict[str, dict[PromptDomain, str]] = {
    "en": {
        PromptDomain.LEGAL: """\
You are a legal assistant experienced with contracts and regulations.
Use precise legal terminology, cite clauses or sections when the documents
show them, and point out deadlines and formal requirements.
This is information drawn from the uploaded documents, not legal advice.""",
        PromptDomain.BUSINESS: """\
You are a business analyst and strategic advisor.
Identify KPIs, opportunities and risks, structure answers as prioritised
bullet points, and always state where a figure comes from.""",
        PromptDomain.TECHNICAL: """\
You are a technical expert for system architecture, APIs and documentation.
Keep requirements, specification and implementation apart, put code and
configuration in Markdown code blocks, and mention security or performance
implications where they matter.""",
        PromptDomain.GENERAL: """\
You are a careful assistant who analyses documents precisely.
Structure longer answers clearly and keep the documents' overall context in mind.""",
    },
    "de": {
        PromptDomain.LEGAL: """\
Du bist ein juristischer Assistent mit Erfahrung in Verträgen und Vorschriften.
Verwende präzise Fachbegriffe, nenne Ziffern oder Paragraphen, wenn sie aus den
Dokumenten hervorgehen, und weise auf Fristen und Formvorschriften hin.
Es handelt sich um Informationen aus den Dokumenten, nicht um Rechtsberatung.""",
        PromptDomain.BUSINESS: """\
Du bist ein Business-Analyst und strategischer Berater.
Erkenne KPIs, Chancen und Risiken, gliedere Antworten in priorisierte
Aufzählungen und nenne bei Zahlen immer die Quelle.""",
        PromptDomain.TECHNICAL: """\
Du bist ein technischer Experte für Systemarchitektur, APIs und Dokumentation.
Trenne Anforderungen, Spezifikation und Implementierung, setze Code und
Konfiguration in Markdown-Codeblöcke und weise auf Sicherheits- oder
Performance-Aspekte hin.""",
        PromptDomain.GENERAL: """\
Du bist ein sorgfältiger Assistent, der Dokumente präzise analysiert.
Strukturiere längere Antworten übersichtlich und beachte den Gesamtzusammenhang.""",
    },
}

# ── Domain detection ────────────────────────────────────────────────

_DOMAIN_KEYWORDS: tuple[tuple[PromptDomain, tuple[str, ...]], ...] = (
    (
        PromptDomain.LEGAL,
        ("vertrag", "contract", "vereinbarung", "klausel", "paragraph", "gesetz",
         "recht", "anwalt", "gericht", "urteil", "agb", "compliance"),
    ),
    (
        PromptDomain.BUSINESS,
        ("geschäft", "business", "strategie", "strategy", "quartal", "quarter",
         "umsatz", "revenue", "bilanz", "balance", "kpi", "roi", "ebitda"),
    ),
    (
        PromptDomain.TECHNICAL,
        ("api", "code", "software", "system", "architektur", "architecture",
         "endpoint", "database", "server", "technisch", "technical", "specification"),
    ),
)
# German heads also match as the tail of a compound, e.g. "Arbeitsvertrag"
_COMPOUND_HEADS = frozenset(
    {"vertrag", "vereinbarung", "klausel", "gesetz", "recht", "gericht",
     "geschäft", "strategie", "umsatz", "bilanz", "architektur"}
)
_DETECTION_SAMPLE_CHARS = 1000


def _keyword_pattern(keyword: str) -> str:
    escaped = re.escape(keyword)
    if keyword in _COMPOUND_HEADS:
        return rf"\b{escaped}|{escaped}\b"
    return rf"\b{escaped}"


_DOMAIN_PATTERNS = tuple(
    (domain, re.compile("|".join(_keyword_pattern(keyword) for keyword in keywords)))
    for domain, keywords in _DOMAIN_KEYWORDS
)


def detect_domain(document_name: str | None = None, content: str | None = None) -> PromptDomain:
    """Guess the domain from a document name and the start of its content.

    Keyword groups are checked in order legal, business, technical; the
    first group with a hit wins. A keyword has to start a word, so "api"
    does not fire on "capital" while "contracts" still counts.
    """
    text = f"{(document_name or '').lower()} {(content or '')[:_DETECTION_SAMPLE_CHARS].lower()}"
    for domain, pattern in _DOMAIN_PATTERNS:
        if pattern.search(text):
            return domain
    return PromptDomain.GENERAL


class PromptAssembler:
    """Builds the message list for a grounded completion.

    The message order is fixed: system prompt, the last ``history_limit``
    history messages, then the new user query.
    """

    def __init__(self, *, history_limit: int = _DEFAULT_HISTORY_LIMIT, language: str = "en"):
        if history_limit < 0:
            raise ValueError("history_limit must not be negative")
        if language not in _SUPPORTED_LANGUAGES:
            raise ValueError(
                f"Unsupported prompt language '{language}', expected one of {_SUPPORTED_LANGUAGES}"
            )
        self._history_limit = history_limit
        self._language = language

    def build_system_prompt(
        self, rag_context: RAGContext, domain_hint: PromptDomain | str | None = None
    ) -> str:
        if not rag_context.relevant_chunks:
            return _NO_CONTEXT_PROMPT[self._language]

        grounded = _GROUNDED_PROMPT[self._language].format(context=rag_context.context_text)
        domain = self._resolve_domain(domain_hint)
        if domain is None:
            return grounded
        return f"{_PERSONAS[self._language][domain]}\n\n{grounded}"

    def build_prompt(
        self,
        rag_context: RAGContext,
        history: list[ChatMessage] | None = None,
        domain_hint: PromptDomain | str | None = None,
    ) -> PromptPayload:
        system_prompt = self.build_system_prompt(rag_context, domain_hint)

        recent = list(history or [])
        recent = recent[-self._history_limit :] if self._history_limit else []

        messages = [
            ChatMessage(role="system", content=system_prompt),
            *recent,
            ChatMessage(role="user", content=rag_context.query),
        ]

        logger.debug(
            "Prompt assembled: %d messages, %d context chars, %d chunks",
            len(messages),
            len(rag_context.context_text),
            len(rag_context.relevant_chunks),
        )
        return PromptPayload(
            system_prompt=system_prompt,
            messages=messages,
            retrieval=RetrievalStats(
                chunk_count=len(rag_context.relevant_chunks),
                avg_score=rag_context.avg_score,
            ),
        )

    @staticmethod
    def _resolve_domain(domain_hint: PromptDomain | str | None) -> PromptDomain | None:
        if domain_hint is None:
            return None
        try:
            return PromptDomain(domain_hint)
        except ValueError:
            logger.warning("Unknown prompt domain '%s', using no persona", domain_hint)
            return None
