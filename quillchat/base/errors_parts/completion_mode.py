"""Call mode tag attached to every completion error."""
from __future__ import annotations

from enum import Enum


class CompletionMode(str, Enum):
    """Which failure domain a completion call ran in.

    ``DIRECT`` calls the provider with a locally held credential; ``PROXY``
    goes through the same-origin relay which forwards the credential.
    """

    DIRECT = "direct"
    PROXY = "proxy"


__all__ = ["CompletionMode"]
