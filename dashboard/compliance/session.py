# dashboard/compliance/session.py
from dataclasses import dataclass

AUTH_FLAG = "isAuthenticated"
USER_FLAG = "userEmail"


@dataclass
class Session:
    """
    Who is looking at the dashboard: anonymous -> authenticated -> anonymous.

    Persisted as two plain flags (see `to_flags`); missing flags mean anonymous.
    """
    identifier: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.identifier)

    def sign_in(self, identifier: str):
        identifier = (identifier or "").strip()
        if not identifier:
            raise ValueError("identifier required")
        self.identifier = identifier

    def sign_out(self):
        self.identifier = None

    def to_flags(self) -> dict:
        if not self.is_authenticated:
            return {}
        return {AUTH_FLAG: "true", USER_FLAG: self.identifier}

    @classmethod
    def from_flags(cls, flags) -> "Session":
        flags = flags or {}
        if str(flags.get(AUTH_FLAG, "")).lower() != "true":
            return cls()
        return cls(identifier=flags.get(USER_FLAG) or None)
