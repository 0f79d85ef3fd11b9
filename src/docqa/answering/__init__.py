"""
Answering: question classification and templated answer synthesis.

This package turns retrieved chunks into an answer with source
attribution, without any language model in the loop.
"""

from docqa.answering.classifier import QuestionCategory, classify_question, compose_answer
from docqa.answering.synthesizer import AnswerSynthesizer, ChatAnswer

__all__ = [
    "AnswerSynthesizer",
    "ChatAnswer",
    "QuestionCategory",
    "classify_question",
    "compose_answer",
]
