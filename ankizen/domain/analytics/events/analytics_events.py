"""Analytics Context Domain Events."""

from __future__ import annotations

from dataclasses import dataclass

from ankizen.infrastructure.messaging.event_bus import DomainEvent


@dataclass
class LeechDetectedEvent(DomainEvent):
    """Event published when a card is promoted to leech.

    Carries the card's front text so a notification can name the card
    without another lookup.
    """

    card_id: str
    deck_id: str
    front: str
    again_count: int
    consecutive_again_count: int

    def __post_init__(self) -> None:
        DomainEvent.__init__(self)
