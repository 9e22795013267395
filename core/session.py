# core/session.py
import uuid
from dataclasses import dataclass, field
from typing import Optional


def _new_session_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Session:
    """
    Authentication context handed to the synchronizer.

    The credential is an opaque bearer token; only its presence matters here.
    Login and logout build a new Session instead of mutating this one.
    """
    credential: Optional[str] = None
    session_id: str = field(default_factory=_new_session_id)

    @classmethod
    def anonymous(cls) -> "Session":
        return cls(credential=None)

    @property
    def authenticated(self) -> bool:
        return bool(self.credential)

    def __repr__(self) -> str:
        state = "authenticated" if self.authenticated else "anonymous"
        return f"Session({self.session_id}, {state})"
