"""Fixed instruction and reply texts."""

from __future__ import annotations

ANALYSIS_INSTRUCTION = (
    "Analyze this skin image. Provide disease name, confidence score, "
    "description, and medical disclaimer."
)

GREETING = "Hello! I am your AI skin health assistant. Ask me about skin conditions!"

FALLBACK_UNPROCESSED = "Sorry, I could not process your question."
FALLBACK_TECHNICAL = "I am experiencing technical difficulties."

SUGGESTED_QUESTIONS = (
    "What causes acne?",
    "How to care for dry skin?",
)

MEDICAL_DISCLAIMER = (
    "This analysis is for educational purposes only. "
    "Always consult a healthcare professional."
)

CAPTURE_TIPS = (
    "Use good lighting",
    "Keep image clear and focused",
    "Show affected area clearly",
)


def wrap_question(question: str) -> str:
    return (
        f'Answer this skin health question: "{question}". '
        "Provide helpful information but remind users to consult healthcare professionals."
    )
