"""
Notification and flight-data recorders.

``RecordingNotifier`` stands in for the on-screen message / highlight / alarm
service and ``FlightDataLog`` for the persistent flight log.  Both keep what
they receive in memory so runs can be inspected or exported afterwards, and
both mirror every entry to the module logger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .interfaces import Clock
from .parts import Part

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScreenMessage:
    time: float
    text: str
    duration: float


@dataclass(frozen=True)
class FlightEvent:
    time: float
    vessel: str
    text: str


@dataclass
class RecordingNotifier:
    """Collects operator notifications emitted by the engine."""

    clock: Clock
    messages: list[ScreenMessage] = field(default_factory=list)
    highlighted: set[int] = field(default_factory=set)
    highlight_count: int = 0
    alarm_playing: bool = False

    def post_message(self, text: str, duration: float) -> None:
        self.messages.append(ScreenMessage(self.clock.now(), text, duration))
        logger.info("[screen] %s", text)

    def highlight(self, part: Part) -> None:
        self.highlighted.add(part.part_id)
        self.highlight_count += 1

    def unhighlight(self, part: Part) -> None:
        self.highlighted.discard(part.part_id)

    def play_alarm(self) -> None:
        self.alarm_playing = True

    def stop_alarm(self) -> None:
        self.alarm_playing = False

    def texts(self) -> list[str]:
        return [m.text for m in self.messages]


@dataclass
class FlightDataLog:
    """Timestamped free-text flight events for one vessel."""

    clock: Clock
    vessel_name: str = "Vessel"
    events: list[FlightEvent] = field(default_factory=list)

    def record(self, text: str) -> None:
        event = FlightEvent(self.clock.now(), self.vessel_name, text)
        self.events.append(event)
        logger.info("[flight %.2fs] %s", event.time, text)

    def texts(self) -> list[str]:
        return [e.text for e in self.events]

