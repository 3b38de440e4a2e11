from __future__ import annotations

from typing import Protocol


class Notifier(Protocol):
    """Out-of-band delivery of confirmation and reset links.

    Every method returns ``False`` on delivery failure instead of raising.
    """

    def send(self, to: str, subject: str, html: str) -> bool:
        ...

    def send_confirmation_email(self, to_email: str, token: str) -> bool:
        ...

    def send_password_reset_email(self, to_email: str, token: str) -> bool:
        ...
