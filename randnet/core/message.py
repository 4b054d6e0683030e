"""Message class for network simulation.

This module defines the Message class, the simulator's record of one payload
sent from a source node to a destination node. The bytes on the wire carry
only the message id; everything else is bookkeeping for the metrics.
"""

from dataclasses import dataclass, field
from itertools import count
from typing import ClassVar, Iterator, Optional

MESSAGE_ID_SIZE = 4


@dataclass
class Message:
    """Represents an application message travelling through the network.

    Attributes:
        source: Source node address.
        destination: Destination node address.
        size: Payload size in bytes, including the message id.
        creation_time: Time when the message was sent.
        id: Unique identifier for the message, carried in the payload.
        arrival_time: Time when the message reached its destination.
        dropped: Whether the message was dropped.
        drop_reason: Why the message was dropped, if it was.
        flow_id: Identifier for the flow (source-destination pair).
    """

    source: int
    destination: int
    size: int
    creation_time: float = 0
    id: int = field(init=False)
    arrival_time: Optional[float] = None
    dropped: bool = False
    drop_reason: Optional[str] = None
    flow_id: str = field(init=False)

    _ids: ClassVar[Iterator[int]] = count(1)

    def __post_init__(self):
        """Initialize derived attributes after initialization."""
        self.id = next(type(self)._ids) % (1 << (8 * MESSAGE_ID_SIZE))
        self.flow_id = f"{self.source}-{self.destination}"

    def id_bytes(self) -> bytes:
        """The message id as it is written at the front of the payload."""
        return self.id.to_bytes(MESSAGE_ID_SIZE, "big")

    @staticmethod
    def id_from_payload(payload: bytes) -> Optional[int]:
        """Read the message id from the front of a payload, if it is long enough."""
        if len(payload) < MESSAGE_ID_SIZE:
            return None
        return int.from_bytes(payload[:MESSAGE_ID_SIZE], "big")

    @property
    def delivered(self) -> bool:
        return self.arrival_time is not None

    def get_total_delay(self) -> Optional[float]:
        """Calculate total delay if the message has arrived.

        Returns:
            Total delay in seconds or None if the message hasn't arrived.
        """
        if self.arrival_time is None:
            return None
        return self.arrival_time - self.creation_time
