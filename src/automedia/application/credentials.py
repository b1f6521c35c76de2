"""
Credential lifecycle: unvalidated -> validating -> active -> exhausted | replaced.
Only one session is held, in memory. Each accepted key gets a fresh counter
and the next batch number.
"""

from typing import Optional, Union

from automedia.domain.errors import CredentialError
from automedia.domain.models import CredentialSession, SessionState
from automedia.ports.interfaces import IKeyValidator


class CredentialManager:
    UNVALIDATED = "unvalidated"
    VALIDATING = "validating"
    ACTIVE = "active"

    def __init__(self, validator: IKeyValidator):
        self._validator = validator
        self._session: Optional[CredentialSession] = None
        self._batch_counter = 0
        self.state = self.UNVALIDATED

    @property
    def session(self) -> Optional[CredentialSession]:
        return self._session

    @property
    def batch_counter(self) -> int:
        return self._batch_counter

    @staticmethod
    def parse_limit(limit: Union[int, str, None]) -> int:
        """Accept a positive int, or a string of digits as typed by the operator."""
        if isinstance(limit, bool):
            raise CredentialError("Please enter a valid number of images (> 0).")
        if isinstance(limit, int):
            value = limit
        else:
            text = str(limit or "").strip()
            if not text.isdigit():
                raise CredentialError("Please enter a valid number of images (> 0).")
            value = int(text)
        if value < 1:
            raise CredentialError("Please enter a valid number of images (> 0).")
        return value

    def submit(self, key: str, limit: Union[int, str]) -> CredentialSession:
        """
        Validate key and budget and start a new session.
        The budget is checked before any network call; a bad budget never reaches the validator.
        """
        key = (key or "").strip()
        if not key:
            raise CredentialError("Please enter an API key.")
        budget = self.parse_limit(limit)

        self.state = self.VALIDATING
        try:
            is_valid = self._validator.validate_key(key)
        except Exception as e:
            self.state = self.UNVALIDATED
            raise CredentialError(f"Key validation failed: {e}") from e

        if not is_valid:
            self.state = self.UNVALIDATED
            raise CredentialError("Key validation failed. Quota might be exhausted or key invalid.")

        if self._session is not None and self._session.state == SessionState.ACTIVE:
            self._session.state = SessionState.REPLACED

        self._batch_counter += 1
        self._session = CredentialSession(key=key, limit=budget, batch_id=self._batch_counter)
        self.state = self.ACTIVE
        return self._session

    def release(self) -> None:
        """Forget the stored key after exhaustion; counters stay on the old session object."""
        if self._session is not None:
            if self._session.state == SessionState.ACTIVE:
                self._session.state = SessionState.EXHAUSTED
            self._session.key = ""
        self.state = self.UNVALIDATED
