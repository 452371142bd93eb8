from __future__ import annotations

from pydantic import BaseModel, field_validator


class Identity(BaseModel):
    """Authenticated caller, as vouched for by the request-handling layer.

    ``subject`` is the stable login name the user store resolves (the user's
    email). The core trusts it completely and performs no credential checks.
    """

    subject: str

    @field_validator("subject")
    @classmethod
    def _normalize_subject(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("identity subject must not be empty")
        return value.lower()
