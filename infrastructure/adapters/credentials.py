"""Credential providers implementing the application CredentialProvider port."""
from __future__ import annotations

from typing import Optional

from application.ports.payment_gateway import CredentialProvider


class StaticCredentialProvider(CredentialProvider):
    """Holds the bearer credential presented with the current request, if any."""

    def __init__(self, credential: Optional[str] = None):
        self._credential = credential or None

    def current_credential(self) -> Optional[str]:
        return self._credential
