"""
app.py
------
Flask entry point for the portfolio site and its chat assistant.

Routes
------
GET  /                  → Portfolio page with the chat widget
POST /api/chat          → One chat turn, JSON reply
GET  /api/chat/stream   → One chat turn, reply revealed word by word (text/event-stream)
GET  /api/chat/history  → Transcript of the current chat session
POST /api/chat/restart  → Clear the current chat session
POST /api/contact       → Validate and deliver the contact form
GET  /health            → Simple health-check endpoint
"""

import os
import json
import logging
import uuid

from flask import (
    Flask, request, render_template, jsonify,
    session, Response, stream_with_context
)

from knowledge_base      import load_knowledge_base, first_name, skill_categories, project_short_name
from conversation_memory import ConversationMemory
from intent_engine       import IntentCatalog
from response_engine     import ResponseGenerator
from chatbot_engine      import ChatSession, SessionRegistry, QUICK_ACTIONS
from markdown_renderer   import render_markdown
from contact_engine      import EmailSettings, validate_contact_form, send_contact_message

# Longest chat message accepted
MAX_MESSAGE_CHARS = 500

# --------------------------------------------------------------------------- #
#  App configuration                                                           #
# --------------------------------------------------------------------------- #

logging.basicConfig(
    level  = logging.INFO,
    format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET", "dev-secret-change-in-prod")
app.config["MAX_CONTENT_LENGTH"] = 64 * 1024   # chat and contact payloads only

SIMULATE_LATENCY = os.environ.get("CHAT_SIMULATE_LATENCY", "1") != "0"
MAX_SESSIONS     = int(os.environ.get("CHAT_MAX_SESSIONS", 500))

# Knowledge base and intent catalog are checked once here; a broken data file
# or catalog stops the service from starting.
KB = load_knowledge_base(os.environ.get("KNOWLEDGE_BASE_PATH"))
IntentCatalog.build(ResponseGenerator(KB, ConversationMemory()).handlers())

EMAIL_SETTINGS = EmailSettings.from_env(recipient=KB.personal.email)

registry = SessionRegistry(
    lambda sid: ChatSession(KB, session_id=sid, simulate_latency=SIMULATE_LATENCY),
    max_sessions=MAX_SESSIONS,
)


# --------------------------------------------------------------------------- #
#  Helpers                                                                     #
# --------------------------------------------------------------------------- #

def _chat_session() -> ChatSession:
    """The visitor's chat session; the id lives in the Flask session cookie."""
    sid = session.get("chat_id")
    if not sid:
        sid = uuid.uuid4().hex
        session["chat_id"] = sid
        logger.info("New chat session %s", sid)
    return registry.get(sid)


def _read_message(raw) -> tuple:
    """
    Validate a chat message.
    Returns (message_or_None, error_str_or_None).
    """
    if not isinstance(raw, str) or not raw.strip():
        return None, "Message is required."
    if len(raw) > MAX_MESSAGE_CHARS:
        return None, f"Message is too long (max {MAX_MESSAGE_CHARS} characters)."
    return raw.strip(), None


def _chat_state(chat: ChatSession) -> dict:
    transcript = chat.transcript()
    return {
        "messages":      transcript,
        "welcome":       render_markdown(chat.welcome_message),
        "quick_actions": [] if transcript else [
            {"label": label, "message": message} for label, message in QUICK_ACTIONS
        ],
    }


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


# --------------------------------------------------------------------------- #
#  Routes – pages                                                              #
# --------------------------------------------------------------------------- #

@app.route("/", methods=["GET"])
def index():
    chat = _chat_session()
    return render_template(
        "index.html",
        kb            = KB,
        first         = first_name(KB),
        skills        = skill_categories(KB),
        short_name    = project_short_name,
        welcome       = render_markdown(chat.welcome_message),
        quick_actions = QUICK_ACTIONS,
    )


# --------------------------------------------------------------------------- #
#  Routes – chat API                                                           #
# --------------------------------------------------------------------------- #

@app.route("/api/chat", methods=["POST"])
def api_chat():
    data = request.get_json(silent=True)
    if data is not None and not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object."}), 400

    message, error = _read_message((data or {}).get("message"))
    if error:
        return jsonify({"error": error}), 400

    reply = _chat_session().respond(message)
    payload = reply.to_dict()
    return jsonify({
        "reply":   payload["content"],
        "html":    payload["html"],
        "time":    payload["time"],
        "message": payload,
    })


@app.route("/api/chat/stream", methods=["GET"])
def api_chat_stream():
    message, error = _read_message(request.args.get("message"))
    if error:
        return jsonify({"error": error}), 400

    chat = _chat_session()

    def events():
        shown = ""
        for shown in chat.stream(message):
            yield _sse({"html": render_markdown(shown), "done": False})
        yield _sse({"html": render_markdown(shown), "done": True})

    return Response(
        stream_with_context(events()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@app.route("/api/chat/history", methods=["GET"])
def api_chat_history():
    return jsonify(_chat_state(_chat_session()))


@app.route("/api/chat/restart", methods=["POST"])
def api_chat_restart():
    chat = _chat_session()
    chat.reset()
    return jsonify({"status": "ok", **_chat_state(chat)})


# --------------------------------------------------------------------------- #
#  Routes – contact form                                                       #
# --------------------------------------------------------------------------- #

@app.route("/api/contact", methods=["POST"])
def api_contact():
    data = request.get_json(silent=True)
    if data is not None and not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object."}), 400

    form = data or request.form
    clean, errors = validate_contact_form(form)
    if errors:
        return jsonify({"error": "Please correct the highlighted fields.", "fields": errors}), 400

    if not EMAIL_SETTINGS.configured:
        logger.warning("Contact form submitted but EmailJS is not configured")
        return jsonify({"error": "The contact form is temporarily unavailable."}), 503

    result = send_contact_message(clean, EMAIL_SETTINGS)
    if not result["sent"]:
        return jsonify({"error": result["error"]}), 502
    return jsonify({"status": "sent"})


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "service": "portfolio-assistant"})


# --------------------------------------------------------------------------- #
#  Error handlers                                                              #
# --------------------------------------------------------------------------- #

@app.errorhandler(413)
def too_large(e):
    return jsonify({"error": "Request body is too large."}), 413


@app.errorhandler(404)
def not_found(e):
    return jsonify({"error": "Endpoint not found."}), 404


@app.errorhandler(500)
def server_error(e):
    return jsonify({"error": "Internal server error."}), 500


# --------------------------------------------------------------------------- #
#  Entry point                                                                 #
# --------------------------------------------------------------------------- #

if __name__ == "__main__":
    port  = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "false").lower() == "true"
    app.run(host="0.0.0.0", port=port, debug=debug, threaded=True)
