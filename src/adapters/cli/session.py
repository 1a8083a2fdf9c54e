"""
adapters.cli.session - Local conversation session storage.

The resource and the last thread are stored in ~/.agenthub/session.json
so that consecutive `ask` / `chat` invocations continue the same
conversation without passing --resource / --thread every time.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

SESSION_FILE = Path.home() / ".agenthub" / "session.json"


@dataclass
class Session:
    resource_id: str
    thread_id: str


def new_thread_id() -> str:
    return uuid4().hex


def load_session(path: Optional[Path] = None) -> Session | None:
    """Return the stored session, or None if there is none (or it is unreadable)."""
    path = path or SESSION_FILE
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Session(resource_id=data["resource_id"], thread_id=data["thread_id"])
    except (OSError, ValueError, KeyError, TypeError):
        logger.warning("Ignoring unreadable session file %s", path)
        return None


def save_session(session: Session, path: Optional[Path] = None) -> None:
    """Persist the session to disk."""
    path = path or SESSION_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(session), indent=2), encoding="utf-8")


def resolve_session(
    *,
    resource_id: Optional[str] = None,
    thread_id: Optional[str] = None,
    new_thread: bool = False,
    path: Optional[Path] = None,
) -> Session:
    """Combine explicit options with the stored session.

    A different resource than the stored one starts a new thread unless
    a thread is given explicitly.
    """
    stored = load_session(path)
    resource = resource_id or (stored.resource_id if stored else "") or "default"

    if thread_id:
        thread = thread_id
    elif new_thread or stored is None or stored.resource_id != resource:
        thread = new_thread_id()
    else:
        thread = stored.thread_id
    return Session(resource_id=resource, thread_id=thread)
