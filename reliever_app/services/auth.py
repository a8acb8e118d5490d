"""
Auth collaborator interface and an in-process token holder.

The identity provider itself is external; the session core only needs the
current bearer token and a way to hear about sign-in/sign-out.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)

AuthListener = Callable[[Optional[str]], None]


class AuthProvider(Protocol):
    def get_current_token(self) -> Optional[str]:
        ...

    def on_auth_change(self, callback: AuthListener) -> Callable[[], None]:
        ...


class TokenAuth:
    """Holds the bearer token issued by the identity provider."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token or None
        self._listeners: List[AuthListener] = []

    @property
    def signed_in(self) -> bool:
        return self._token is not None

    def get_current_token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        token = token or None
        if token == self._token:
            return
        self._token = token
        logger.info("Auth state changed: %s", "signed in" if token else "signed out")
        for listener in list(self._listeners):
            listener(token)

    def sign_out(self) -> None:
        self.set_token(None)

    def on_auth_change(self, callback: AuthListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe
