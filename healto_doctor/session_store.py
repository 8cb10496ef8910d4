"""Persisted doctor login session."""
import json
from typing import Optional, Protocol, Union

from pydantic import ValidationError

from healto_doctor import config
from healto_doctor.logging_config import get_logger
from healto_doctor.models import Session
from healto_doctor.storage import KeyValueStorage

logger = get_logger(__name__)


class SessionProvider(Protocol):
    """What the gateway needs from session state."""

    def get_token(self) -> Optional[str]:
        ...

    def invalidate(self) -> bool:
        ...


class SessionStore:
    """
    Stores exactly one login session in a key-value storage.

    Responsibilities:
    - Persist the session as one JSON value under a fixed key
    - Re-read storage on every call (no in-process copy to go stale)
    - Clear the session and the legacy doctor-id key on logout

    Storage failures are logged and reported through return values; nothing
    raises past this class.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        session_key: str = config.SESSION_KEY,
        doctor_id_key: str = config.LEGACY_DOCTOR_ID_KEY
    ):
        self.storage = storage
        self.session_key = session_key
        self.doctor_id_key = doctor_id_key

    def save(self, session: Union[Session, dict]) -> bool:
        """
        Replace the stored session.

        Args:
            session: Session model or a dict in storage layout

        Returns:
            True if written, False on storage or serialization error
        """
        try:
            if isinstance(session, dict):
                session = Session.model_validate(session)
            self.storage.set_item(self.session_key, json.dumps(session.to_storage()))
        except (OSError, TypeError, ValueError) as e:
            logger.error("session_save_failed", error=str(e))
            return False

        logger.info(
            "session_saved",
            doctor_id=session.doctor_id,
            token_present=bool(session.token),
        )
        return True

    def load(self) -> Optional[Session]:
        """
        Read the stored session.

        Returns:
            Session, or None when absent or unreadable
        """
        try:
            raw = self.storage.get_item(self.session_key)
        except (OSError, ValueError) as e:
            # ValueError covers bytes that are not valid UTF-8
            logger.error("session_read_failed", error=str(e))
            return None

        if not raw:
            logger.debug("session_not_found")
            return None

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("session_corrupt", error=str(e))
            return None

        if not isinstance(data, dict):
            logger.warning("session_corrupt", error="stored value is not an object")
            return None

        try:
            return Session.model_validate(data)
        except ValidationError as e:
            logger.warning("session_corrupt", error=str(e))
            return None

    def is_valid(self) -> bool:
        """Check the structural validity of the stored session."""
        session = self.load()
        valid = session is not None and session.is_valid
        logger.debug("session_validity", valid=valid)
        return valid

    def clear(self) -> bool:
        """
        Remove the session and the legacy doctor-id key.

        Clearing an empty store succeeds.
        """
        try:
            self.storage.remove_item(self.session_key)
            self.storage.remove_item(self.doctor_id_key)
        except OSError as e:
            logger.error("session_clear_failed", error=str(e))
            return False

        logger.info("session_cleared")
        return True

    def get_token(self) -> Optional[str]:
        session = self.load()
        if session is None or not session.token:
            return None
        return session.token

    def invalidate(self) -> bool:
        """Drop the session after the server rejected its token."""
        logger.warning("session_invalidated")
        return self.clear()

    # Legacy standalone doctor id

    def save_doctor_id(self, doctor_id: Union[str, int]) -> bool:
        try:
            self.storage.set_item(self.doctor_id_key, str(doctor_id))
        except OSError as e:
            logger.error("doctor_id_save_failed", error=str(e))
            return False
        return True

    def get_doctor_id(self) -> Optional[str]:
        try:
            return self.storage.get_item(self.doctor_id_key)
        except (OSError, ValueError) as e:
            logger.error("doctor_id_read_failed", error=str(e))
            return None
