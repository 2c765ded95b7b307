"""
response_engine.py
==================
Reply handlers for every intent, plus entity extraction over the knowledge base.

Each handler takes the normalised user message and returns reply text in the
chat's markdown-like dialect (**bold**, *italic*, `code`, [links](url), •
bullets, blank-line paragraphs).  Handlers may move memory.current_topic so
the matcher and the follow-up handlers know what the visitor was looking at.

Public API
----------
ResponseGenerator(kb, memory, rng=None, clock=None)
    .handlers()                -> {intent name: handler}
    .dispatch(name, message)   -> str
    .extract_technology(text)  -> str | None
    .extract_company(text)     -> str | None
    .extract_role(text)        -> str | None
    .extract_project(text)     -> Project | None
    .extract_entities(text)    -> list[Entity]
    .fallback(text)            -> str
"""

import logging
import random
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from conversation_memory import ConversationMemory
from knowledge_base import (
    KnowledgeRecord,
    Project,
    first_name,
    project_short_name,
    skill_categories,
)
from text_normalizer import normalize, similarity, tokenize

logger = logging.getLogger(__name__)


def _word_pattern(terms) -> re.Pattern:
    """Alternation of *terms* that only matches whole words ('ai' never hits 'main')."""
    alternation = "|".join(re.escape(t) for t in sorted(terms, key=len, reverse=True))
    return re.compile(r"(?<![a-z0-9])(?:" + alternation + r")(?![a-z0-9])")


# ── Technology vocabulary ─────────────────────────────────────────────────────
# Ordered: specific frameworks are checked before the language they belong to.
TECH_SYNONYMS = [
    ("django",     ["django"]),
    ("react",      ["react native", "reactjs", "react"]),
    ("angular",    ["angularjs", "angular"]),
    ("vue",        ["vuejs", "vue"]),
    ("neural",     ["neural networks", "neural network", "deep learning", "tensorflow"]),
    ("ai",         ["artificial intelligence", "machine learning", "ai", "ml"]),
    ("python",     ["python", "flask", "fastapi"]),
    ("javascript", ["javascript", "js", "node", "nodejs", "node.js", "express"]),
    ("java",       ["java", "spring boot", "spring", "maven", "gradle"]),
    ("csharp",     ["c#", "csharp", ".net", "asp.net"]),
    ("cpp",        ["c++", "cpp", "qt"]),
    ("php",        ["php", "laravel", "symfony"]),
    ("mysql",      ["mysql", "sql"]),
    ("mongodb",    ["mongodb", "mongo"]),
    ("docker",     ["docker", "container"]),
    ("git",        ["git", "github"]),
]

TECH_LABELS = {
    "django": "Django", "react": "React", "angular": "Angular", "vue": "Vue",
    "neural": "Neural Networks", "ai": "AI / Machine Learning", "python": "Python",
    "javascript": "JavaScript", "java": "Java", "csharp": "C#", "cpp": "C++",
    "php": "PHP", "mysql": "MySQL", "mongodb": "MongoDB", "docker": "Docker",
    "git": "Git",
}

_TECH_PATTERNS = [(key, _word_pattern(synonyms)) for key, synonyms in TECH_SYNONYMS]


@dataclass(frozen=True)
class Entity:
    type:  str      # "technology" | "company" | "project"
    value: str


class ResponseGenerator:
    """
    Owns one handler per intent.  Bound to a single chat session: the memory
    it reads and writes belongs to that session only.
    """

    def __init__(self, kb: KnowledgeRecord, memory: ConversationMemory,
                 rng: Optional[random.Random] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.kb = kb
        self.memory = memory
        self.rng = rng or random.Random()
        self.clock = clock or datetime.now
        self.name = kb.personal.name
        self.first = first_name(kb)

        # Companies: full name or its first two words ("caretta software")
        self._companies = []
        for company in dict.fromkeys(e.company for e in kb.experience):
            aliases = {company.lower(), " ".join(company.lower().split()[:2])}
            self._companies.append((company, _word_pattern(aliases)))

        # Roles: titles without parentheticals, longest first
        roles = {}
        for exp in kb.experience:
            plain = re.sub(r"\s*\([^)]*\)", "", exp.title).strip().lower()
            roles.setdefault(plain, exp.title)
        self._roles = [
            (title, _word_pattern([plain]))
            for plain, title in sorted(roles.items(), key=lambda kv: len(kv[0]), reverse=True)
        ]

        # Projects: full name or short name before the dash
        self._projects = [
            (project, _word_pattern({project.name.lower(), project_short_name(project).lower()}))
            for project in kb.projects
        ]

    # ─────────────────────────────────────────────────────────────────────────
    #  Registry
    # ─────────────────────────────────────────────────────────────────────────

    def handlers(self) -> dict:
        return {
            "greeting":             self.greeting,
            "skills":               self.skills,
            "experience":           self.experience,
            "projects":             self.projects,
            "education":            self.education,
            "contact":              self.contact,
            "about":                self.about,
            "availability":         self.availability,
            "philosophy":           self.philosophy,
            "project_details":      self.project_details,
            "who_questions":        self.who_question,
            "what_questions":       self.what_question,
            "where_questions":      self.where_question,
            "when_questions":       self.when_question,
            "how_questions":        self.how_question,
            "why_questions":        self.why_question,
            "follow_up":            self.follow_up,
            "comparison":           self.comparison,
            "testimonials":         self.testimonials,
            "certifications":       self.certifications,
            "social_media":         self.social_media,
            "age_personal":         self.age_personal,
            "interests":            self.interests,
            "future_plans":         self.future_plans,
            "intelligent_fallback": self.fallback,
        }

    def dispatch(self, name: str, message: str) -> str:
        return self.handlers()[name](message)

    # ─────────────────────────────────────────────────────────────────────────
    #  Entity extraction
    # ─────────────────────────────────────────────────────────────────────────

    def extract_technology(self, message: str) -> Optional[str]:
        text = (message or "").lower()
        for key, pattern in _TECH_PATTERNS:
            if pattern.search(text):
                return key
        return None

    def extract_company(self, message: str) -> Optional[str]:
        text = (message or "").lower()
        for company, pattern in self._companies:
            if pattern.search(text):
                return company
        return None

    def extract_role(self, message: str) -> Optional[str]:
        text = (message or "").lower()
        for title, pattern in self._roles:
            if pattern.search(text):
                return title
        return None

    def extract_project(self, message: str) -> Optional[Project]:
        text = (message or "").lower()
        for project, pattern in self._projects:
            if pattern.search(text):
                return project
        return None

    def extract_entities(self, message: str) -> list:
        entities = []
        tech = self.extract_technology(message)
        if tech:
            entities.append(Entity("technology", tech))
        company = self.extract_company(message)
        if company:
            entities.append(Entity("company", company))
        project = self.extract_project(message)
        if project:
            entities.append(Entity("project", project.name))
        return entities

    # ─────────────────────────────────────────────────────────────────────────
    #  Small helpers
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _mentions(message: str, *stems: str) -> bool:
        """True when any word of *message* starts with one of *stems*."""
        return any(word.startswith(stems) for word in tokenize(message))

    def _time_of_day(self) -> str:
        hour = self.clock().hour
        if hour < 12:
            return "morning"
        if hour < 17:
            return "afternoon"
        return "evening"

    def _age(self) -> Optional[int]:
        born = _parse_date(self.kb.personal.birthday, ("%d %B %Y", "%d %b %Y"))
        if born is None:
            return None
        today = self.clock().date()
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))

    def _career_start(self) -> Optional[datetime]:
        starts = []
        for exp in self.kb.experience:
            parsed = _parse_date(exp.duration.split(" - ")[0], ("%B %Y", "%b %Y"))
            if parsed is not None:
                starts.append(parsed)
        return min(starts) if starts else None

    def _experience_months(self) -> Optional[int]:
        start = self._career_start()
        if start is None:
            return None
        now = self.clock()
        return max((now.year - start.year) * 12 + now.month - start.month, 0)

    def _graduation_year(self) -> str:
        return self.kb.personal.graduation_years.split("-")[-1].strip()

    def _current_role(self):
        return self.kb.experience[0]

    def _skill_listed(self, label: str) -> bool:
        needle = label.lower()
        return any(
            needle in item.lower()
            for _, items in skill_categories(self.kb)
            for item in items
        )

    # ─────────────────────────────────────────────────────────────────────────
    #  Greeting / profile
    # ─────────────────────────────────────────────────────────────────────────

    def greeting(self, message: str) -> str:
        self.memory.set_topic("introduction")
        p = self.kb.personal
        responses = [
            f"Good {self._time_of_day()}! I'm {self.first}'s professional assistant. "
            f"I can tell you about their technical expertise, professional experience and "
            f"career achievements. How may I help you today?",
            f"Hello! Welcome to {self.name}'s portfolio. I can share insights about "
            f"{self.first}'s software development skills, research experience and notable "
            f"projects. What would you like to explore?",
            f"Greetings! I'm happy to help you learn more about {self.name}, a "
            f"{p.title} based in {p.location}. Which part of their background interests you?",
            f"Hi there! Ask me anything about {self.first}'s professional background, "
            f"technical skills or career journey.",
        ]
        return self.rng.choice(responses)

    def about(self, message: str) -> str:
        # "tell me about X" lands here: hand over to the topic or entity named
        topics = [
            (("project", "portfolio"),                       "projects"),
            (("skill", "tech", "stack", "language"),         "skills"),
            (("experience", "career", "job", "intern"),      "experience"),
            (("education", "universit", "degree", "study",
              "studies", "school", "college"),               "education"),
            (("certif", "achievement", "award"),             "certifications"),
            (("interest", "hobb"),                           "interests"),
            (("testimonial", "recommend", "review"),         "testimonials"),
            (("philosophy", "approach"),                     "philosophy"),
            (("future", "goal", "plans"),                    "future_plans"),
            (("contact", "email", "phone"),                  "contact"),
        ]
        for stems, intent in topics:
            if self._mentions(message, *stems):
                return self.dispatch(intent, message)

        entities = self.extract_entities(message)
        if entities:
            return self._entity_reply(entities[0])

        self.memory.set_topic("about")
        p, s = self.kb.personal, self.kb.stats
        current = self._current_role()
        interests = ", ".join(self.kb.personal_interests)
        return (
            f"Let me tell you about {self.name}:\n\n"
            f"👨‍💻 **{p.title}** from {p.location}\n"
            f"🎓 Graduate of {p.university}\n"
            f"🏢 Currently **{current.title}** at {current.company}\n\n"
            f"**Professional Focus:**\n"
            f"• Full-stack development (Python, Java, JavaScript)\n"
            f"• Research in Industry 4.0 technologies\n"
            f"• System design and database management\n"
            f"• Machine Learning and AI applications\n\n"
            f"**Personal Interests:** {interests}\n\n"
            f"**Key Stats:**\n"
            f"• {s.happy_clients}+ Happy Clients\n"
            f"• {s.projects} Projects Completed\n"
            f"• {s.hours_of_support}+ Hours of Support\n"
            f"• {s.awards} Awards\n\n"
            f"{self.first} is passionate about technology and always eager to take on new challenges!"
        )

    # ─────────────────────────────────────────────────────────────────────────
    #  Skills
    # ─────────────────────────────────────────────────────────────────────────

    def skills(self, message: str) -> str:
        self.memory.set_topic("skills")
        tech = self.extract_technology(message)
        if tech:
            return self.technology(tech)

        parts = [f"{self.first} has technical expertise across several areas:"]
        for label, items in skill_categories(self.kb):
            parts.append(f"**{label}:** {', '.join(items)}")
        parts.append(
            "They are particularly strong in full-stack development with Python/Django and "
            "Java/Spring Boot. Feel free to ask about a specific technology!"
        )
        return "\n\n".join(parts)

    def technology(self, tech: str) -> str:
        f = self.first
        texts = {
            "python": (
                f"{f} has extensive Python experience, particularly with the Django framework. "
                f"They have built full-stack applications with a Python/Django backend on "
                f"databases like PostgreSQL and MongoDB, and use Python for data analysis and "
                f"machine learning as well."
            ),
            "java": (
                f"{f} is proficient in Java, especially with Spring Boot. Their Java work includes "
                f"a hospital management system with RESTful APIs and a desktop banking system, "
                f"covering object-oriented design and layered backend architecture."
            ),
            "javascript": (
                f"{f} has strong JavaScript skills across the stack: React on the frontend, "
                f"Node.js for backend services, and plenty of interactive web apps such as "
                f"quiz platforms and presentation sites."
            ),
            "react": (
                f"{f} has hands-on experience with React, including React Native for mobile "
                f"development. They built a cross-platform expense tracker with Firebase sync "
                f"and hold a Meta React Native certification."
            ),
            "angular": (
                f"{f} worked with Angular as a Frontend Developer Intern at Caretta Software "
                f"Company, building user interfaces, responsive layouts and API integrations."
            ),
            "django": (
                f"{f} specializes in Django for robust web applications, including "
                f"authentication, role-specific functions, database management and REST APIs. "
                f"The Airport Management System is a good example of that work."
            ),
            "mysql": (
                f"{f} has extensive experience with MySQL database design: schemas, query "
                f"optimization and data modeling for hotel, hospital and note-taking systems."
            ),
            "mongodb": (
                f"{f} uses MongoDB for NoSQL solutions where flexible data structures and "
                f"real-time synchronization matter."
            ),
            "docker": (
                f"{f} uses Docker for containerized development environments and deployment "
                f"pipelines."
            ),
            "git": (
                f"{f} is proficient with Git and keeps public repositories for their projects "
                f"on [GitHub]({self.kb.personal.github})."
            ),
            "ai": (
                f"{f} has experience with AI and machine learning: neural network projects, "
                f"classification algorithms, and Stanford machine learning certifications."
            ),
            "neural": (
                f"{f} built a hand-written digit classifier with neural networks and "
                f"TensorFlow, covering image recognition and deep learning techniques."
            ),
            "csharp": (
                f"{f} built a C# / .NET hotel management system in Visual Studio with CRUD "
                f"operations backed by MySQL."
            ),
            "php": (
                f"{f} built a note-taking web application in PHP and MySQL with secure user "
                f"authentication and a responsive interface."
            ),
        }
        if tech in texts:
            return texts[tech]

        label = TECH_LABELS.get(tech, tech)
        if self._skill_listed(label):
            return (
                f"{f} has experience with {label} and has applied it in various projects. "
                f"Would you like to see specific examples?"
            )
        return (
            f"{label} isn't part of {f}'s core stack yet, but they pick up new technologies "
            f"quickly. Would you like to hear about related work instead?"
        )

    # ─────────────────────────────────────────────────────────────────────────
    #  Experience
    # ─────────────────────────────────────────────────────────────────────────

    def experience(self, message: str) -> str:
        self.memory.set_topic("experience")
        company = self.extract_company(message)
        role = self.extract_role(message)
        if company or role:
            return self.specific_experience(company, role)

        lines = [f"Here's a summary of {self.first}'s professional experience:", ""]
        for exp in self.kb.experience:
            lines.append(f"**{exp.title}** at {exp.company}")
            lines.append(exp.duration)
            if exp.location:
                lines.append(f"📍 {exp.location}")
            lines.extend(f"• {r}" for r in exp.responsibilities[:3])
            lines.append("")
        lines.append(
            "Their background spans research, software development and technical analysis. "
            "Would you like to know more about a specific role or company?"
        )
        return "\n".join(lines)

    def specific_experience(self, company: Optional[str], role: Optional[str]) -> str:
        exp = None
        if company:
            exp = next((e for e in self.kb.experience if e.company == company), None)
        if exp is None and role:
            exp = next((e for e in self.kb.experience if e.title == role), None)
        if exp is None:
            return (
                "I'd be happy to tell you more about specific roles or companies. "
                "Which experience would you like to know about?"
            )

        lines = [f"**{exp.title}** at {exp.company}", f"📅 {exp.duration}"]
        if exp.location:
            lines.append(f"📍 {exp.location}")
        lines += ["", "**Key Responsibilities:**"]
        lines.extend(f"• {r}" for r in exp.responsibilities)
        focus = " and ".join(exp.responsibilities[:2]).lower()
        lines += ["", f"This role helped {self.first} build expertise in {focus}."]
        return "\n".join(lines)

    # ─────────────────────────────────────────────────────────────────────────
    #  Projects
    # ─────────────────────────────────────────────────────────────────────────

    def projects(self, message: str) -> str:
        self.memory.set_topic("projects")
        project = self.extract_project(message)
        if project:
            return self.specific_project(project)

        tech = self.extract_technology(message)
        if tech:
            return self.projects_by_technology(tech)

        lines = [f"{self.first} has worked on several impressive projects:", ""]
        for project in self.kb.projects[:3]:
            lines.append(f"**{project.name}**")
            lines.append(f"*Technologies: {', '.join(project.technologies)}*")
            lines.append(project.description)
            lines.append("")
        lines.append(
            f"That's {self.kb.stats.projects} projects in total. "
            f"Ask for more details about any one of them!"
        )
        return "\n".join(lines)

    def specific_project(self, project: Project) -> str:
        parts = [
            f"**{project.name}**",
            f"*Technologies Used:* {', '.join(project.technologies)}",
            project.description,
        ]
        if project.details:
            parts.append("**Key Features & Outcomes:**\n" + "\n".join(f"• {d}" for d in project.details))
        links = []
        if project.live_demo:
            links.append(f"🌐 [View Live Demo]({project.live_demo})")
        if project.github:
            links.append(f"📚 [View Source Code]({project.github})")
        if links:
            parts.append("\n".join(links))
        return "\n\n".join(parts)

    def projects_by_technology(self, tech: str) -> str:
        label = TECH_LABELS.get(tech, tech)
        pattern = dict(_TECH_PATTERNS)[tech]
        relevant = [
            p for p in self.kb.projects
            if any(pattern.search(t.lower()) for t in p.technologies)
        ]
        if not relevant:
            return (
                f"{self.first} hasn't built a project specifically with {label} yet, but is "
                f"familiar with it and eager to apply it. Would you like to see work in related "
                f"technologies?"
            )

        lines = [f"Here are projects where {self.first} used {label}:", ""]
        for project in relevant:
            lines.append(f"**{project.name}**")
            lines.append(f"*Technologies: {', '.join(project.technologies)}*")
            lines.append(project.description)
            lines.append("")
        return "\n".join(lines).rstrip()

    def project_details(self, message: str) -> str:
        if self.memory.current_topic != "projects":
            return "I can provide more details once you've asked me about the projects."

        project = self.extract_project(message)
        if project is None:
            return "Of course. Which project are you interested in?"

        lines = [f"Here are more details on **{project.name}**:", ""]
        lines.extend(f"• {d}" for d in project.details or (project.description,))
        if project.live_demo:
            lines += ["", f"🌐 [Live Demo]({project.live_demo})"]
        if project.github:
            lines += ["", f"📚 [GitHub]({project.github})"]
        return "\n".join(lines)

    # ─────────────────────────────────────────────────────────────────────────
    #  Direct lookups
    # ─────────────────────────────────────────────────────────────────────────

    def education(self, message: str) -> str:
        self.memory.set_topic("education")
        p = self.kb.personal
        lines = [
            "**Education Background:**",
            "",
            f"🎓 **{p.degree}** in {p.field_of_study}",
            f"📚 {p.university}",
            f"📅 {p.graduation_years}",
            f"🏆 CGPA: {p.cgpa}",
        ]
        if self.kb.certifications:
            lines += ["", "**Recent Certifications:**"]
            lines.extend(f"• {c.name} - {c.issuer} ({c.date})" for c in self.kb.certifications[:4])
        if self.kb.achievements:
            lines += ["", "**Achievements:**"]
            lines.extend(f"• {a.name} - {a.issuer} ({a.date})" for a in self.kb.achievements)
        return "\n".join(lines)

    def contact(self, message: str) -> str:
        self.memory.set_topic("contact")
        p = self.kb.personal
        return (
            f"You can contact {self.first} through:\n\n"
            f"📧 **Email:** [{p.email}](mailto:{p.email})\n"
            f"📱 **Phone:** {p.phone}\n"
            f"📍 **Location:** {p.location}\n"
            f"💼 **LinkedIn:** [Connect with {self.first}]({p.linkedin})\n"
            f"💻 **GitHub:** [View Code]({p.github})\n\n"
            f"**Freelance Status:** {p.freelance} ✅\n\n"
            f"{self.first} is open to new opportunities and happy to discuss projects!"
        )

    def availability(self, message: str) -> str:
        self.memory.set_topic("availability")
        p = self.kb.personal
        return (
            f"Great news! {self.first} is currently open to new opportunities:\n\n"
            f"✅ **Freelance Status:** {p.freelance}\n"
            f"🎯 **Looking for:** Full-time positions, freelance projects and collaborations\n\n"
            f"**Specialties:**\n"
            f"• Full-stack web development\n"
            f"• Mobile app development\n"
            f"• AI/ML applications\n"
            f"• System design and architecture\n\n"
            f"**Best ways to reach {self.first}:**\n"
            f"📧 {p.email}\n"
            f"💼 [LinkedIn]({p.linkedin})\n"
            f"📱 {p.phone}"
        )

    def philosophy(self, message: str) -> str:
        self.memory.set_topic("philosophy")
        lines = [f"Here are a few principles that guide {self.first}'s work:", ""]
        lines.extend(f"• {item}" for item in self.kb.work_philosophy)
        lines += ["", "The common thread is high-quality, user-focused solutions."]
        return "\n".join(lines)

    def testimonials(self, message: str) -> str:
        self.memory.set_topic("testimonials")
        parts = [f"Here's what people have said about working with {self.first}:"]
        for t in self.kb.testimonials:
            parts.append(f"**{t.author}** - {t.position}\n*\"{t.text}\"*")
        parts.append("These testimonials reflect a dedication to quality work and collaboration.")
        return "\n\n".join(parts)

    def certifications(self, message: str) -> str:
        self.memory.set_topic("certifications")
        parts = [f"{self.first} has earned several professional certifications:"]
        for c in self.kb.certifications:
            parts.append(f"🏆 **{c.name}**\n📚 {c.issuer}\n📅 {c.date}")
        if self.kb.achievements:
            parts.append(
                "**Achievements:**\n"
                + "\n".join(f"• {a.name} - {a.issuer} ({a.date})" for a in self.kb.achievements)
            )
        parts.append("They show a steady commitment to continuous learning.")
        return "\n\n".join(parts)

    def social_media(self, message: str) -> str:
        self.memory.set_topic("social_media")
        p = self.kb.personal
        return (
            f"{self.first} maintains an active online presence:\n\n"
            f"🔗 **LinkedIn:** [Professional Network]({p.linkedin})\n"
            f"💻 **GitHub:** [Code Portfolio]({p.github})\n"
            f"🐦 **Twitter:** [Tech Updates]({p.twitter})\n"
            f"📘 **Facebook:** [Personal Profile]({p.facebook})\n"
            f"📷 **Instagram:** [Tech & Lifestyle]({p.instagram})"
        )

    def age_personal(self, message: str) -> str:
        age = self._age()
        born = f"{self.first} was born on {self.kb.personal.birthday}"
        if age is None:
            return born + "."
        return (
            f"{born}, which makes them {age} years old. A young {self.kb.personal.title} "
            f"with a fresh perspective on modern development practices and emerging technologies."
        )

    def interests(self, message: str) -> str:
        self.memory.set_topic("interests")
        listed = ", ".join(self.kb.personal_interests)
        return (
            f"Beyond professional work, {self.first} enjoys:\n\n"
            f"🎮 **{listed}**\n\n"
            f"These interests keep life balanced and bring creativity to technical work."
        )

    def future_plans(self, message: str) -> str:
        self.memory.set_topic("future_plans")
        return (
            f"{self.first} has ambitious plans for the future:\n\n"
            f"🚀 **Short-term Goals:**\n"
            f"• Deepen expertise in AI/ML applications\n"
            f"• Lead complex software projects\n"
            f"• Build innovative solutions for industrial challenges\n\n"
            f"🎯 **Long-term Vision:**\n"
            f"• Become a technology leader in Industry 4.0\n"
            f"• Contribute to open-source projects\n"
            f"• Mentor aspiring developers\n"
            f"• Start a tech venture"
        )

    # ─────────────────────────────────────────────────────────────────────────
    #  Question types
    # ─────────────────────────────────────────────────────────────────────────

    def who_question(self, message: str) -> str:
        p = self.kb.personal
        if self._mentions(message, "recommend", "supervisor", "professor", "testimon"):
            names = ", ".join(f"{t.author} ({t.position})" for t in self.kb.testimonials)
            return f"Testimonials for {self.first} come from {names}."
        if self._mentions(message, "work", "company", "employ"):
            companies = list(dict.fromkeys(e.company for e in self.kb.experience))
            return f"{self.first} has worked with: " + ", ".join(companies) + "."
        if self.first.lower() in tokenize(message) or self._mentions(message, "you"):
            current = self._current_role()
            return (
                f"{self.name} is a {p.title} based in {p.location} and a graduate of "
                f"{p.university}, currently working as **{current.title}** at {current.company}. "
                f"{self.first} is known for Python/Django, Java/Spring Boot and modern web work."
            )
        return (
            f"{self.name} is a {p.title} and full-stack developer specializing in Python, Java "
            f"and JavaScript, with experience in research, software development and system design."
        )

    def what_question(self, message: str) -> str:
        words = tokenize(message)
        if words.count("do") >= 2 or "for a living" in message:
            return (
                f"{self.first} builds full-stack web applications with Python/Django, "
                f"Java/Spring Boot and React, does research on Industry 4.0 technologies, and "
                f"works on mobile apps, database design and system architecture."
            )
        if self._mentions(message, "educat", "degree", "universit", "college"):
            return self.education(message)
        if self._mentions(message, "study", "studied", "major"):
            p = self.kb.personal
            return (
                f"{self.first} studied {p.field_of_study} at {p.university} ({p.graduation_years}) "
                f"with a CGPA of {p.cgpa}."
            )
        if self._mentions(message, "skill", "expertise", "tech", "language"):
            return self.skills(message)
        if self._mentions(message, "project", "build", "built"):
            return self.projects(message)
        if self._mentions(message, "certif", "course"):
            return self.certifications(message)
        if self._mentions(message, "experience", "job", "work"):
            return self.experience(message)
        return (
            f"{self.first} is a {self.kb.personal.title} specializing in full-stack development "
            f"with Python, Java, JavaScript and database technologies."
        )

    def where_question(self, message: str) -> str:
        p = self.kb.personal
        if self._mentions(message, "live", "from", "location", "based"):
            return f"{self.first} lives in {p.location}."
        if self._mentions(message, "work", "company", "employ"):
            current = self._current_role()
            return (
                f"{self.first} currently works at {current.company}"
                + (f" in {current.location}" if current.location else "")
                + ". Previous employers: "
                + ", ".join(dict.fromkeys(e.company for e in self.kb.experience[1:]))
                + "."
            )
        if self._mentions(message, "study", "studied", "universit", "school", "college"):
            return f"{self.first} studied {p.field_of_study} at {p.university}."
        return f"{self.first} is based in {p.location}."

    def when_question(self, message: str) -> str:
        p = self.kb.personal
        if self._mentions(message, "graduat", "finish", "complete"):
            return (
                f"{self.first} graduated from {p.university} in {self._graduation_year()} "
                f"with a CGPA of {p.cgpa}."
            )
        if self._mentions(message, "born", "birthday"):
            return self.age_personal(message)
        if self._mentions(message, "available", "free"):
            return self.availability(message)
        if self._mentions(message, "start", "began", "begin", "career", "long"):
            return self._career_summary()
        return (
            f"{self.first} graduated in {self._graduation_year()} and has been building a "
            f"career since {self._career_start_label()}."
        )

    def how_question(self, message: str) -> str:
        if any(p in message for p in ("how are you", "how's it going", "how is it going")):
            return self._wellbeing()
        if self._mentions(message, "many") and self._mentions(message, "project", "experience"):
            return (
                f"{self.first} has completed {self.kb.stats.projects} projects and held "
                f"{len(self.kb.experience)} professional roles."
            )
        if self._mentions(message, "long"):
            return self._career_summary()
        if self._mentions(message, "contact", "reach", "email", "hire"):
            return self.contact(message)
        if self._mentions(message, "old", "age"):
            return self.age_personal(message)
        if self._mentions(message, "work", "approach"):
            return self.philosophy(message)
        return (
            f"{self.first} combines academic knowledge with practical experience, focusing on "
            f"quality solutions and user-centric design."
        )

    def why_question(self, message: str) -> str:
        f = self.first
        if self._mentions(message, "choose", "chose") and self._mentions(message, "computer", "engineer"):
            return (
                f"{f} chose Computer Engineering out of a passion for technology and "
                f"problem-solving, and for the chance to build useful applications in a field "
                f"that never stops evolving."
            )
        if self._mentions(message, "research"):
            return (
                f"{f} enjoys research because it means exploring Industry 4.0 concepts and "
                f"turning cutting-edge ideas into solutions for real industrial problems."
            )
        if self._mentions(message, "freelance", "available"):
            return (
                f"Freelancing lets {f} take on diverse projects, collaborate with different "
                f"teams and keep learning new technologies."
            )
        if self._mentions(message, "recommend", "hire"):
            return (
                f"People recommend {f} for technical expertise, reliability and a collaborative "
                f"approach. Ask me for the testimonials to read them in full."
            )
        return (
            f"{f}'s career choices are driven by a passion for technology, continuous learning "
            f"and building meaningful solutions."
        )

    def _career_summary(self) -> str:
        months = self._experience_months()
        earliest = self.kb.experience[-1]
        text = (
            f"{self.first} started their professional career in {self._career_start_label()} "
            f"as **{earliest.title}** at {earliest.company}"
        )
        if months is not None:
            text += f", about {months} months of experience so far"
        return text + "."

    def _career_start_label(self) -> str:
        start = self._career_start()
        return start.strftime("%B %Y") if start else self.kb.experience[-1].duration

    def _wellbeing(self) -> str:
        return (
            f"I'm doing great, thanks for asking! I'm here to help you get to know {self.first}. "
            f"What would you like to know?"
        )

    # ─────────────────────────────────────────────────────────────────────────
    #  Context-aware
    # ─────────────────────────────────────────────────────────────────────────

    def follow_up(self, message: str) -> str:
        topic = self.memory.current_topic
        f = self.first
        if topic == "skills":
            text = (
                f"To expand on {f}'s technical skills:\n\n"
                f"**Advanced Skills:**\n"
                f"• System Design & Architecture\n"
                f"• API Development (RESTful)\n"
                f"• Database Design & Optimization\n"
                f"• Version Control & CI/CD"
            )
            if self.kb.skills.soft_skills:
                text += "\n\n**Soft Skills:**\n" + "\n".join(f"• {s}" for s in self.kb.skills.soft_skills)
            return text
        if topic == "experience":
            return (
                f"A bit more context on {f}'s career progression:\n\n"
                f"**Career Journey:**\n"
                f"• Started with network infrastructure fundamentals\n"
                f"• Moved to frontend development with modern frameworks\n"
                f"• Advanced to research and engineering roles\n"
                f"• Currently focused on Industry 4.0 technologies\n\n"
                f"Each role built on the previous one, creating a strong technical and research foundation."
            )
        if topic == "projects":
            return (
                f"{f}'s project portfolio shows real versatility:\n\n"
                f"**Project Highlights:**\n"
                f"• Full-stack web applications with Django/Python\n"
                f"• Mobile apps with React Native\n"
                f"• Database-driven systems with multiple technologies\n"
                f"• Research implementations and prototypes\n\n"
                f"**Development Approach:**\n"
                f"• User-centered design principles\n"
                f"• Clean, maintainable code architecture\n"
                f"• Performance optimization and security\n\n"
                f"Name any project and I'll share its details."
            )
        if topic == "education":
            return self.certifications(message)
        return (
            "I'd be happy to provide more details! Which aspect should I expand on? "
            "I can tell you more about skills, experience, projects, or any other area."
        )

    def comparison(self, message: str) -> str:
        words = set(tokenize(message))
        f = self.first
        if {"python", "java"} <= words:
            return (
                f"{f} is proficient in both Python and Java:\n\n"
                f"**Python Strengths:**\n"
                f"• Rapid development and prototyping\n"
                f"• Excellent for web development (Django)\n"
                f"• Great for data science and AI\n\n"
                f"**Java Strengths:**\n"
                f"• Enterprise-grade applications\n"
                f"• Strong typing and performance\n"
                f"• Spring Boot for robust backends\n\n"
                f"**Preference:** Python for web development, Java for enterprise systems, "
                f"depending on project requirements."
            )
        if {"react", "angular"} <= words:
            return (
                f"{f} has experience with both React and Angular:\n\n"
                f"**React:**\n"
                f"• Flexible and component-based\n"
                f"• Used for the BudgetWise mobile app (React Native)\n\n"
                f"**Angular:**\n"
                f"• Structured and opinionated, strong TypeScript integration\n"
                f"• Used during the Caretta Software internship\n\n"
                f"Comfortable working with either framework."
            )
        if {"sql", "nosql"} <= words:
            return (
                f"{f} works with both SQL and NoSQL databases:\n\n"
                f"**SQL (MySQL, PostgreSQL):**\n"
                f"• Structured data and complex relationships\n"
                f"• ACID guarantees for transactional systems\n\n"
                f"**NoSQL (MongoDB):**\n"
                f"• Flexible schema and horizontal scaling\n"
                f"• Good fit for unstructured data\n\n"
                f"The choice follows the project's data and requirements."
            )
        if self._mentions(message, "strength", "weakness"):
            return (
                f"**Strengths:** problem-solving, collaboration and fast learning, "
                f"backed by testimonials from professors and senior developers.\n\n"
                f"**Growing areas:** {f} keeps deepening AI/ML expertise and large-scale "
                f"system design."
            )
        return (
            f"{f} believes different technologies excel in different scenarios and picks the best "
            f"tool for each project rather than holding rigid preferences."
        )

    # ─────────────────────────────────────────────────────────────────────────
    #  Fallback
    # ─────────────────────────────────────────────────────────────────────────

    _FALLBACK_GROUPS = [
        ("availability", ("hire", "hiring", "job", "jobs", "opportunity", "available",
                          "freelance", "recruit")),
        ("pricing",      ("price", "pricing", "cost", "rate", "rates", "budget", "fee", "charge")),
        ("help",         ("help", "assist", "assistance", "guide")),
        ("gratitude",    ("thank", "thanks", "thx", "appreciate", "grateful")),
        ("wellbeing",    ("how are you", "how's it going", "how is it going", "how do you do",
                          "what's up")),
        ("personal",     ("married", "family", "relationship", "religion", "girlfriend",
                          "boyfriend", "personal life")),
    ]

    _SUGGESTIONS = [
        (("skill", "tech", "language", "code", "coding"), "What technologies do you work with?"),
        (("project", "build", "app", "portfolio"),         "Can you show me your projects?"),
        (("work", "experience", "career", "intern"),       "What's your professional background?"),
        (("study", "school", "universit", "degree"),       "What is your educational background?"),
        (("contact", "email", "call", "message"),          "How can I contact you?"),
        (("certif", "course", "award"),                    "Which certifications do you have?"),
    ]

    _GENERIC_PROMPTS = [
        "I'd be delighted to help you learn more about {name}! I can share details about "
        "skills, experience, projects and background. What interests you?",
        "I'm here to share insights about {first}'s professional journey: technical expertise, "
        "project portfolio or career achievements. What would you like to explore?",
        "{first} is a {title} with expertise in full-stack development and research. I can "
        "tell you about skills, experience, notable projects, or how to get in touch.",
        "I'm {first}'s portfolio assistant, ready to answer questions about background, "
        "skills and achievements. Ask me anything from tech stack to career goals!",
    ]

    def _fallback_group(self, message: str) -> Optional[str]:
        words = tokenize(message)
        for group, keywords in self._FALLBACK_GROUPS:
            for keyword in keywords:
                if " " in keyword or "'" in keyword:
                    if keyword in message:
                        return group
                elif any(similarity(w, keyword) > 0.8 for w in words):
                    return group
        return None

    def fallback(self, message: str) -> str:
        message = normalize(message)
        f = self.first
        group = self._fallback_group(message)
        logger.info("Fallback reply (group=%s)", group)

        if group == "availability":
            return self.availability(message)
        if group == "pricing":
            return (
                f"{f} is open to discussing project-based compensation. Rates depend on "
                f"complexity, timeline and requirements, so the best next step is to "
                f"[get in touch](mailto:{self.kb.personal.email}) with your project details."
            )
        if group == "help":
            return (
                f"I'm here to help! I can tell you about {f}'s skills, experience, projects, "
                f"education, certifications and contact information. Try asking:\n\n"
                f"• What technologies do you work with?\n"
                f"• Can you show me your projects?\n"
                f"• What's your professional background?\n"
                f"• How can I contact you?"
            )
        if group == "gratitude":
            return (
                f"You're very welcome! I'm glad I could help you learn more about {self.name}. "
                f"Feel free to ask anything else."
            )
        if group == "wellbeing":
            return self._wellbeing()
        if group == "personal":
            return (
                f"I keep to {f}'s professional side. I'm happy to talk about skills, projects, "
                f"experience or interests instead!"
            )

        entities = self.extract_entities(message)
        if entities:
            return self._entity_reply(entities[0])

        prompt = self.rng.choice(self._GENERIC_PROMPTS).format(
            name=self.name, first=f, title=self.kb.personal.title,
        )
        suggestions = [q for stems, q in self._SUGGESTIONS if self._mentions(message, *stems)]
        if not suggestions:
            suggestions = [q for _, q in self._SUGGESTIONS[:3]]
        return prompt + "\n\n" + "\n".join(f"• {q}" for q in suggestions[:3])

    def _entity_reply(self, entity: Entity) -> str:
        if entity.type == "technology":
            self.memory.set_topic("skills")
            return self.technology(entity.value)
        if entity.type == "company":
            self.memory.set_topic("experience")
            return self.specific_experience(entity.value, None)
        self.memory.set_topic("projects")
        project = next(p for p in self.kb.projects if p.name == entity.value)
        return self.specific_project(project)


def _parse_date(text: str, formats) -> Optional[datetime]:
    for fmt in formats:
        try:
            return datetime.strptime(text.strip(), fmt)
        except ValueError:
            continue
    return None
