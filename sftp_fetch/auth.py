"""Authorization methods"""
import logging
from abc import ABC, abstractmethod

import ssh2.exceptions
from ssh2.session import Session

from . import exceptions as excs

logger = logging.getLogger(__name__)


class AbstractAuthorization(ABC):
    """Abstract authorization"""

    def auth(self, session: Session):
        """Process authorization for SSH session

        :param session: SSH session"""
        self.process_authorization(session)
        self.validate_authorization(session)

    @abstractmethod
    def process_authorization(self, session: Session):
        """Authorize SSH session

        :param session: SSH session"""
        pass

    def validate_authorization(self, session: Session):
        """Validate that session is authenticated

        :param session: SSH session
        :raise AuthorizationError: If session isn't authorized"""
        logger.debug("Trying to validate that SSH session is authorized.")
        if not session.userauth_authenticated():
            raise excs.AuthorizationError(
                "Authorization passed without errors, "
                "but the session remained unauthorized"
            )
        logger.debug("SSH session authorization validated.")


class PasswordAuthorization(AbstractAuthorization):
    """Login and password authorization handler

    :param login: Login that will be used for authorization.
    :param password: Password that will be used for authorization."""

    def __init__(self, login: str, password: str):
        logger.debug("Creating password authorization handler.")
        self.login: str = login
        self.password: str = password

    def __repr__(self) -> str:
        return f"PasswordAuthorization(login={self.login!r}, password='***')"

    def process_authorization(self, session: Session):
        logger.debug("Trying to authorize SSH session with password as %s...", self.login)
        try:
            session.userauth_password(self.login, self.password)
        except ssh2.exceptions.PasswordExpiredError as exc:
            raise excs.PasswordAuthorizationError("Password expired") from exc
        except ssh2.exceptions.AuthenticationError as exc:
            raise excs.PasswordAuthorizationError(
                "Authorization failed, invalid login and/or password"
            ) from exc
        except ssh2.exceptions.Timeout as exc:
            raise excs.SockTimeoutError(
                "Connection timeout reached while waiting for authorization"
            ) from exc
        except ssh2.exceptions.SSH2Error as exc:
            raise excs.AuthorizationError(
                f"Authorization failed with {type(exc).__name__}"
            ) from exc
        logger.debug("SSH session successfully authorized with password.")
