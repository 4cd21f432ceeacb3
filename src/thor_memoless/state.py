"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import MemolessSettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed through the flow to avoid global state and enable testing.
    """

    settings: MemolessSettings
    logger: logging.Logger
