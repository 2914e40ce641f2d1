"""Session configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Config:
    """Tunables for a single interactive session."""

    queue_capacity: int = 16
    refresh_interval: float = 0.1
    title: str = "Greeting"
    greeting: str = "Hello, World!"
