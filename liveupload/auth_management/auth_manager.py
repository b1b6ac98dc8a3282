"""Bearer-token authentication for the upload API."""

import logging

from liveupload.config_manager.upload_config import UploadConfig
from liveupload.const import BYPASS_HEADER
from liveupload.event_emitter import Emitter, get_emitter
from liveupload.exceptions import AuthenticationExpiredError

logger = logging.getLogger(__name__)


class Auth:
    """Supplies request headers for authenticated API calls.

    Token storage lives outside this package; the token arrives through
    ``UploadConfig.auth_token``.
    """

    def __init__(self, config: UploadConfig, emitter: Emitter | None = None):
        """Initialize Auth.

        Args:
            config: Upload configuration holding the token.
            emitter: Emitter notified when authentication becomes invalid.
        """
        self._token = config.auth_token
        self._bypass_secret = config.bypass_secret
        self._emitter = emitter or get_emitter()

    @property
    def is_logged_in(self) -> bool:
        """Whether a token is available."""
        return bool(self._token)

    def get_headers(self) -> dict[str, str]:
        """Return headers for an authenticated request.

        Raises:
            AuthenticationExpiredError: If no token is configured.
        """
        if not self._token:
            logger.warning("Not logged in")
            self.invalidate()
            raise AuthenticationExpiredError("Not logged in; please log in again")

        headers = {"Authorization": f"Bearer {self._token}"}
        if self._bypass_secret:
            headers[BYPASS_HEADER] = self._bypass_secret
        return headers

    def invalidate(self) -> None:
        """Forget the token and notify listeners that they must log in again."""
        self._token = None
        self._emitter.emit(Emitter.AUTHENTICATION_INVALID)
