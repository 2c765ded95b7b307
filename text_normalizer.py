"""
text_normalizer.py
------------------
Text helpers shared by the intent matcher and the response handlers.

  normalize(text)      lower-case + whole-word typo correction
  clean_text(text)     punctuation stripped, whitespace collapsed
  tokenize(text)       word tokens
  similarity(a, b)     1 - normalised Levenshtein distance  (0.0 .. 1.0)
  question_type(text)  who / what / where / when / how / why, or None

Everything here is pure and deterministic.
"""

import re
from typing import Optional

from rapidfuzz.distance import Levenshtein

# Known misspellings → correction.  Keys are whole words only, so "skil" never
# rewrites the inside of "skill".
TYPO_CORRECTIONS = {
    # Topics
    "skil": "skill", "skils": "skills", "skilz": "skills",
    "experiance": "experience", "experence": "experience",
    "expirience": "experience", "experince": "experience",
    "educaton": "education", "eductaion": "education", "educatoin": "education",
    "projets": "projects", "projet": "project", "projct": "project",
    "portfoilo": "portfolio", "portfolo": "portfolio",
    "contct": "contact", "cantact": "contact", "contat": "contact",
    "univrsity": "university", "universty": "university", "univesity": "university",
    "colege": "college", "collge": "college",
    "certifcate": "certificate", "certifcation": "certification",
    "recomendation": "recommendation", "recommandation": "recommendation",
    "hobbys": "hobbies",
    # Tech vocabulary
    "tecnology": "technology", "technolgy": "technology", "techology": "technology",
    "programing": "programming", "progaming": "programming",
    "languag": "language", "langauge": "language",
    "framewrk": "framework", "framwork": "framework", "frameowrk": "framework",
    "databse": "database", "databas": "database",
    "pyhton": "python", "pythn": "python", "javascrpit": "javascript",
    "djnago": "django", "djano": "django",
    # Contact channels
    "emial": "email", "emal": "email",
    "phon": "phone", "fone": "phone",
    "linkdin": "linkedin", "linkedn": "linkedin",
    "githb": "github", "gthub": "github",
    # Question words
    "wher": "where", "whre": "where",
    "wht": "what", "wat": "what", "whta": "what",
    "hw": "how", "hwo": "how",
    "wich": "which", "whch": "which",
}

QUESTION_WORDS = ("who", "what", "where", "when", "how", "why")

_TYPO_RE = re.compile(
    r"\b(" + "|".join(sorted(map(re.escape, TYPO_CORRECTIONS), key=len, reverse=True)) + r")\b"
)
_NON_WORD_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"\w+")


def normalize(text: str) -> str:
    """Lower-case *text* and fix known misspellings.  Accepts any string."""
    if not text:
        return ""
    lowered = text.lower()
    return _TYPO_RE.sub(lambda m: TYPO_CORRECTIONS[m.group(1)], lowered)


def clean_text(text: str) -> str:
    """'What are your main skills?' -> 'what are your main skills'"""
    if not text:
        return ""
    return _SPACE_RE.sub(" ", _NON_WORD_RE.sub(" ", text.lower())).strip()


def tokenize(text: str) -> list:
    return _WORD_RE.findall(text.lower()) if text else []


def similarity(a: str, b: str) -> float:
    """
    Edit-distance similarity: 1 - levenshtein(a, b) / max(len(a), len(b)).
    Two empty strings are treated as unrelated (0.0), not identical.
    """
    if not a or not b:
        return 0.0
    return Levenshtein.normalized_similarity(a, b)


def question_type(text: str) -> Optional[str]:
    """Return the first question word used in *text*, if any."""
    for token in tokenize(text):
        if token in QUESTION_WORDS:
            return token
    return None
