"""Client collaborators that consume payloads delivered by a node."""

from typing import Callable, List, Optional, Protocol


class Client(Protocol):
    def receive(self, data: bytes) -> None: ...


class RecordingClient:
    """Client that keeps every delivered payload, in delivery order.

    Attributes:
        received: Payloads received so far.
        callback: Optional function called with each payload as it arrives.
    """

    def __init__(self, callback: Optional[Callable[[bytes], None]] = None) -> None:
        self.received: List[bytes] = []
        self.callback = callback

    def receive(self, data: bytes) -> None:
        self.received.append(data)
        if self.callback is not None:
            self.callback(data)

    def __repr__(self) -> str:
        return f"RecordingClient({len(self.received)} payloads)"
