from __future__ import annotations

from typing import Optional, Protocol

from ..common.repository import Repository
from .model import User


class UserRepository(Repository[User], Protocol):
    """User storage.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_mobile(self, mobile: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError
