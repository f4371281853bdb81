from __future__ import annotations

from typing import Protocol

from ..common.repository import Repository
from .model import TransportRoute


class TransportRouteRepository(Repository[TransportRoute], Protocol):
    pass
