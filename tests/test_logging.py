from __future__ import annotations

from storefront.observability.logging import _mask_credentials


def test_credentials_are_masked() -> None:
    event = {
        "event": "session_refreshed",
        "access_token": "eyJhbGciOi...",
        "cookie": "sb-abcd1234-auth-token=base64-...",
        "user_id": "u1",
    }
    out = _mask_credentials(None, "info", event)
    assert out["access_token"] == "***"
    assert out["cookie"] == "***"
    assert out["user_id"] == "u1"
    assert out["event"] == "session_refreshed"
