"""
StudyForge Backend — Prompt Builder
=====================================

What:  Builds the instruction text sent to the models.
How:   Pure functions over the request options: no I/O, no randomness, so the
       same inputs always produce the same prompt.
Who:   StudyGenerationService (summaries, flashcards, quizzes) and
       ContentExtractor (image text extraction).

Summary prompts are assembled from blocks separated by blank lines:

    base sentence
    type block          (key_points | structured | simplified | exam_focus | generic)
    length requirement  (brief | standard | detailed; unknown → standard)
    [examples clause] [diagrams clause] [focus areas] [custom instructions]
    closing sentence

Unknown summary types and lengths are defaulted, never rejected.
"""

from typing import List, Optional

from studyforge.schemas.generation import AdvancedOptions, FlashcardOptions, QuizOptions

# ── Generation parameters ─────────────────────────────────────────────────
# Lower temperature for extraction and structured output, higher for prose
SUMMARY_TEMPERATURE = 0.7
EXTRACTION_TEMPERATURE = 0.4
FLASHCARD_TEMPERATURE = 0.4
QUIZ_TEMPERATURE = 0.7

EXTRACTION_MAX_TOKENS = 4000
FLASHCARD_MAX_TOKENS = 1200
QUIZ_MAX_TOKENS = 4000

SUMMARY_TOKEN_BUDGETS = {
    "brief": 200,
    "standard": 500,
    "detailed": 1000,
}

MAX_PROMPT_TAGS = 6

# ── Summary prompt text ───────────────────────────────────────────────────
SUMMARY_BASE = (
    "You are an expert educational content summarizer. Your task is to create clear, "
    "accurate, and well-structured summaries of educational notes."
)

SUMMARY_TYPE_BLOCKS = {
    "key_points": (
        "Create a bullet-point summary highlighting the key concepts, main ideas, and "
        "important facts. Use clear, concise bullet points. Format:\n"
        "- Key point 1\n- Key point 2\n- Key point 3"
    ),
    "structured": (
        "Organize the content by topics with clear headings and subheadings. Use a "
        "hierarchical structure for better readability. Include:\n"
        "- Main topics as headings\n- Subtopics as subheadings\n"
        "- Key information under each section"
    ),
    "simplified": (
        "Simplify the content for easy understanding. Use simple language, avoid jargon "
        "when possible, and use analogies if helpful. Make it accessible for quick "
        "comprehension."
    ),
    "exam_focus": (
        "Focus on exam-relevant concepts, formulas, definitions, and important facts. "
        "Highlight what is most likely to be tested. Include:\n"
        "- Key definitions\n- Important formulas\n- Critical concepts\n- Common exam topics"
    ),
}
GENERIC_TYPE_BLOCK = "Create a comprehensive summary covering all important aspects."

LENGTH_GUIDE = {
    "brief": "Keep it very concise, 50-100 words only. Focus on the most essential points.",
    "standard": "Provide a balanced summary of 200-300 words with good coverage of main topics.",
    "detailed": (
        "Create a comprehensive summary of 400-500 words with thorough coverage and depth."
    ),
}

EXAMPLES_CLAUSE = "Include practical examples for each concept to enhance understanding."
DIAGRAMS_CLAUSE = (
    "Note: Include descriptions of diagrams or visual aids that would help explain the concepts."
)
SUMMARY_CLOSING = (
    "Ensure the summary is accurate, well-organized, and maintains the educational value "
    "of the original content."
)

# ── Image text extraction ─────────────────────────────────────────────────
EXTRACTION_PROMPT = (
    "Extract all text from this image. If this is a document, note, or educational "
    "material, extract all the text content accurately. Preserve the structure and "
    "formatting as much as possible. If there are diagrams or images, describe them briefly."
)

OCR_SOURCE_NOTE = (
    "The text was extracted from an image via OCR, so clean up spacing and assume minor "
    "typos. Focus on capturing what the text actually says."
)
TYPED_SOURCE_NOTE = "The text came from a typed document; retain important terminology verbatim."


def summary_token_budget(summary_length: str) -> int:
    """Max output tokens for a summary length; unknown lengths get the standard budget."""
    return SUMMARY_TOKEN_BUDGETS.get(summary_length, SUMMARY_TOKEN_BUDGETS["standard"])


def build_system_prompt(
    summary_type: str,
    summary_length: str,
    options: Optional[AdvancedOptions] = None,
) -> str:
    """
    Build the summary system prompt.

    Args:
        summary_type:   key_points, structured, simplified, exam_focus (else generic).
        summary_length: brief, standard, detailed (else standard).
        options:        Optional clauses; None behaves like all defaults.

    Returns:
        The prompt blocks joined by blank lines.
    """
    options = options or AdvancedOptions()

    blocks: List[str] = [
        SUMMARY_BASE,
        SUMMARY_TYPE_BLOCKS.get(summary_type, GENERIC_TYPE_BLOCK),
        f"Length requirement: {LENGTH_GUIDE.get(summary_length, LENGTH_GUIDE['standard'])}",
    ]

    if options.include_examples:
        blocks.append(EXAMPLES_CLAUSE)
    if options.include_diagrams:
        blocks.append(DIAGRAMS_CLAUSE)

    focus_areas = [area.strip() for area in options.focus_areas if area and area.strip()]
    if focus_areas:
        blocks.append(f"Focus especially on these areas: {', '.join(focus_areas)}.")

    custom = (options.custom_instructions or "").strip()
    if custom:
        blocks.append(f"Additional instructions: {custom}")

    blocks.append(SUMMARY_CLOSING)
    return "\n\n".join(blocks)


def build_summary_user_prompt(content: str) -> str:
    return f"Summarize this educational note:\n\n{content}"


def _tag_line(tags: List[str]) -> str:
    cleaned = [tag.strip().lstrip("#") for tag in tags if tag and tag.strip()]
    if not cleaned:
        return "Document tags: (not provided)"
    return "Document tags: " + " ".join(f"#{tag}" for tag in cleaned[:MAX_PROMPT_TAGS])


def build_flashcard_prompt(options: FlashcardOptions) -> str:
    """System prompt asking for a bare JSON array of flashcards."""
    lines = [
        "You are an expert study coach who transforms study material into high-quality flashcards.",
        f"Generate up to {options.max_cards} flashcards covering the most important facts, "
        "definitions, or concepts.",
        "Output a pure JSON array. Do NOT include any explanations outside the JSON.",
        "Flashcard JSON schema:",
        "[{",
        '  "question": "Clear question text",',
        '  "answer": "Concise but complete answer",',
        '  "hint": "Optional hint or mnemonic (string)",',
        '  "difficulty": "easy|medium|advanced",',
        '  "subject": "Subject/category",',
        '  "tags": ["tag1","tag2"],',
        '  "examples": ["optional example sentences"]',
        "}]",
        f"Document title: {options.document_title}",
        _tag_line(options.document_tags),
        f"Default subject if uncertain: {options.subject}.",
        "Questions must be unique, factual, and suitable for spaced repetition.",
        "Every flashcard MUST be grounded strictly in the provided content. "
        "Quote or paraphrase the relevant portion.",
        "Do NOT invent facts or use outside knowledge. If the content does not cover a topic, "
        "do not create a card about it.",
        "Prefer cloze-deletion style questions for formulas or key facts when appropriate.",
        "If the content is short, derive multiple perspectives "
        "(definition, example, consequence, comparison).",
        OCR_SOURCE_NOTE if options.is_image_source else TYPED_SOURCE_NOTE,
        "Before finalizing, double-check that each card's answer can be directly supported "
        "by a sentence in the provided content.",
    ]
    return "\n".join(lines)


def build_flashcard_user_prompt(content: str) -> str:
    return "\n".join([
        "CONTENT START",
        content,
        "CONTENT END",
        "",
        "For each flashcard, cite or reference the exact phrase used as the source "
        "(e.g., include a short quote in the explanation or answer).",
    ])


def build_quiz_prompt(options: QuizOptions) -> str:
    """System prompt asking for a bare JSON array of multiple-choice questions."""
    lines = [
        "You are an expert quiz creator who transforms study material into high-quality "
        "multiple-choice quiz questions.",
        f"Generate up to {options.max_questions} quiz questions covering the most important "
        "facts, definitions, or concepts from the content.",
        "Output a pure JSON array. Do NOT include any explanations outside the JSON.",
        "Question JSON schema:",
        "[{",
        '  "question": "Clear, specific question text",',
        '  "options": ["Option A", "Option B", "Option C", "Option D"],',
        '  "correctAnswer": 0,',
        '  "explanation": "Brief explanation of why the correct answer is right",',
        '  "category": "Topic/category name",',
        '  "difficulty": "easy|medium|hard",',
        '  "timeLimit": 60',
        "}]",
        f"Document title: {options.document_title}",
        _tag_line(options.document_tags),
        f"Default subject if uncertain: {options.subject}.",
        "IMPORTANT RULES:",
        "1. Every question MUST be grounded strictly in the provided content. Do NOT invent facts.",
        "2. Each question must have exactly 4 options (A, B, C, D).",
        "3. correctAnswer must be 0, 1, 2, or 3 (index of the correct option).",
        "4. Make incorrect options plausible but clearly wrong.",
        "5. Questions should test understanding, not just memorization.",
        "6. Vary difficulty levels (easy, medium, hard) based on complexity.",
        "7. Include clear explanations for each answer.",
        OCR_SOURCE_NOTE if options.is_image_source else TYPED_SOURCE_NOTE,
        "Before finalizing, verify that each question's correct answer can be directly "
        "supported by the content.",
    ]
    return "\n".join(lines)


def build_quiz_user_prompt(content: str) -> str:
    return "\n".join([
        "CONTENT START",
        content,
        "CONTENT END",
        "",
        "For each question, ensure the correct answer is clearly supported by the content above.",
    ])
