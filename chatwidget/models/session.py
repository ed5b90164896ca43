"""Model representing a browsing session."""

import random
import string
import time
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

_ALPHABET = string.digits + string.ascii_lowercase


def generate_session_id() -> str:
    """Return a new session identifier.

    The id combines the current time in milliseconds with nine random
    base-36 characters.  Uniqueness is best-effort and the value is not
    suitable as a secret.
    """
    suffix = "".join(random.choices(_ALPHABET, k=9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


class Session(BaseModel):
    """A client-local identity that namespaces one conversation's history."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_session_id)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )
