"""
knowledge_base.py
-----------------
Loads and validates the static portfolio knowledge base (data/knowledge.json).

The record is read once at startup and is immutable afterwards: every model is
frozen and every list is stored as a tuple.  A missing file, broken JSON or a
schema violation raises KnowledgeBaseError so the service refuses to start
instead of answering with half-empty replies.

Public API
----------
load_knowledge_base(path=None)  -> KnowledgeRecord
first_name(kb)                  -> str
skill_categories(kb)            -> list[(label, items)]
project_short_name(project)     -> str
"""

from __future__ import annotations

import json
import logging
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

_KNOWLEDGE_JSON = os.path.join(os.path.dirname(__file__), "data", "knowledge.json")

# Display labels for skill categories, in the order replies list them
SKILL_CATEGORY_LABELS = {
    "languages":   "Programming Languages",
    "frameworks":  "Frameworks & Libraries",
    "databases":   "Databases",
    "tools":       "Tools & Technologies",
    "networking":  "Networking",
    "os":          "Operating Systems",
    "markup":      "Markup",
    "soft_skills": "Soft Skills",
}


class KnowledgeBaseError(RuntimeError):
    """Raised when the knowledge base cannot be loaded or fails validation."""


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class PersonalInfo(_Record):
    name:             str = Field(min_length=1)
    title:            str
    location:         str
    email:            str
    phone:            str
    birthday:         str
    degree:           str
    field_of_study:   str
    university:       str
    cgpa:             str
    graduation_years: str
    linkedin:         str
    github:           str
    twitter:          str
    facebook:         str
    instagram:        str
    freelance:        str


class Skills(_Record):
    languages:   tuple[str, ...] = Field(min_length=1)
    frameworks:  tuple[str, ...] = Field(min_length=1)
    databases:   tuple[str, ...] = Field(min_length=1)
    tools:       tuple[str, ...] = Field(min_length=1)
    networking:  tuple[str, ...] = ()
    os:          tuple[str, ...] = ()
    markup:      tuple[str, ...] = ()
    soft_skills: tuple[str, ...] = ()


class Experience(_Record):
    title:            str
    company:          str
    location:         Optional[str] = None
    duration:         str
    responsibilities: tuple[str, ...] = Field(min_length=1)


class Project(_Record):
    name:         str
    technologies: tuple[str, ...] = Field(min_length=1)
    description:  str
    details:      tuple[str, ...] = ()
    live_demo:    Optional[str] = None
    github:       Optional[str] = None


class Certification(_Record):
    name:   str
    issuer: str
    date:   str


class Achievement(_Record):
    name:    str
    issuer:  str
    date:    str
    details: Optional[str] = None


class Stats(_Record):
    happy_clients:    int = Field(ge=0)
    projects:         int = Field(ge=0)
    hours_of_support: int = Field(ge=0)
    awards:           int = Field(ge=0)


class Testimonial(_Record):
    author:   str
    position: str
    text:     str


class KnowledgeRecord(_Record):
    personal:           PersonalInfo
    skills:             Skills
    experience:         tuple[Experience, ...] = Field(min_length=1)
    projects:           tuple[Project, ...] = Field(min_length=1)
    certifications:     tuple[Certification, ...] = ()
    achievements:       tuple[Achievement, ...] = ()
    stats:              Stats
    personal_interests: tuple[str, ...] = ()
    work_philosophy:    tuple[str, ...] = ()
    testimonials:       tuple[Testimonial, ...] = ()


def load_knowledge_base(path: Optional[str] = None) -> KnowledgeRecord:
    """
    Read and validate the knowledge base.

    Parameters
    ----------
    path : str | None – JSON file to load; defaults to data/knowledge.json

    Raises
    ------
    KnowledgeBaseError – file missing or unreadable, invalid JSON, or a record
    that does not match the schema.
    """
    path = path or _KNOWLEDGE_JSON
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except OSError as exc:
        logger.error("Could not read knowledge base %s: %s", path, exc)
        raise KnowledgeBaseError(f"Cannot read knowledge base {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        logger.error("Knowledge base %s is not valid JSON: %s", path, exc)
        raise KnowledgeBaseError(f"Knowledge base {path} is not valid JSON: {exc}") from exc

    try:
        kb = KnowledgeRecord.model_validate(raw)
    except ValidationError as exc:
        logger.error("Knowledge base %s failed validation: %s", path, exc)
        raise KnowledgeBaseError(f"Knowledge base {path} failed validation:\n{exc}") from exc

    logger.info(
        "Knowledge base loaded: %d experiences, %d projects, %d certifications",
        len(kb.experience), len(kb.projects), len(kb.certifications),
    )
    return kb


def first_name(kb: KnowledgeRecord) -> str:
    return kb.personal.name.split()[0]


def skill_categories(kb: KnowledgeRecord) -> list:
    """Non-empty skill categories as (label, items) pairs in display order."""
    result = []
    for key, label in SKILL_CATEGORY_LABELS.items():
        items = getattr(kb.skills, key)
        if items:
            result.append((label, items))
    return result


def project_short_name(project: Project) -> str:
    """'Quizlet – Interactive University Quiz Platform' -> 'Quizlet'"""
    for sep in (" – ", " - "):
        if sep in project.name:
            return project.name.split(sep, 1)[0].strip()
    return project.name
