import hmac
import hashlib
from base64 import b64decode, b64encode


def _b64_variants(digest: bytes) -> list[str]:
    """Return the header variants we accept (with/without base64 padding)."""
    b64 = b64encode(digest).decode("utf-8")
    no_pad = b64.rstrip("=")
    return [b64] if no_pad == b64 else [b64, no_pad]


def compute_hookdeck_signature(secret: str, body: bytes) -> str:
    """Hookdeck signs deliveries with base64(HMAC_SHA256(signing_secret, raw_body))."""
    digest = hmac.new((secret or "").encode("utf-8"), body or b"", hashlib.sha256).digest()
    return b64encode(digest).decode("utf-8")


def verify_hookdeck_signature(secret: str, body: bytes, *header_values: str | None) -> tuple[bool, dict]:
    """Verify `x-hookdeck-signature` (or `x-hookdeck-signature-2`); returns (ok, safe_debug_info)."""
    digest = hmac.new((secret or "").encode("utf-8"), body or b"", hashlib.sha256).digest()
    candidates = _b64_variants(digest)
    presented = [(h or "").strip() for h in header_values if (h or "").strip()]

    ok = any(hmac.compare_digest(exp, hdr) for hdr in presented for exp in candidates)

    # Safe debug info (no secrets, only prefixes/lengths) for logging on failure.
    debug = {
        "body_len": len(body or b""),
        "headers_present": len(presented),
        "header_prefixes": [(h[:8] + "…") for h in presented[:2]],
    }
    return ok, debug


def verify_basic_auth(header_value: str | None, username: str, password: str) -> bool:
    """Check an `Authorization: Basic ...` header against the configured credentials."""
    hdr = (header_value or "").strip()
    scheme, _, token = hdr.partition(" ")
    if scheme.lower() != "basic" or not token:
        return False
    try:
        decoded = b64decode(token.strip(), validate=True).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return False
    user, sep, pwd = decoded.partition(":")
    if not sep:
        return False
    user_ok = hmac.compare_digest(user.encode("utf-8"), (username or "").encode("utf-8"))
    pwd_ok = hmac.compare_digest(pwd.encode("utf-8"), (password or "").encode("utf-8"))
    return user_ok and pwd_ok
