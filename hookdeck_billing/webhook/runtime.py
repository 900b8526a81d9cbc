from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass
class WebhookRuntime:
    # Hookdeck signing secret; when set, every delivery must carry a valid x-hookdeck-signature.
    signing_secret: str = ""

    # Basic Auth expected when Chargebee posts directly (no gateway in between).
    basic_auth_username: str = ""
    basic_auth_password: str = ""

    # Verbose payload logger injected from main (no-op unless LOG_VERBOSE=1).
    vlog: Callable[[str], None] = lambda _msg: None

    def auth_mode(self) -> str:
        if self.signing_secret:
            return "hookdeck_signature"
        if self.basic_auth_username and self.basic_auth_password:
            return "basic_auth"
        return "none"

