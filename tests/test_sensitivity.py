from __future__ import annotations


def test_mask_secret() -> None:
    from mac_chrome.engine.sensitivity import mask_secret

    assert mask_secret("hunter2") == "hu*****"
    assert mask_secret("abcd") == "ab**"
    assert mask_secret("abc") == "abc"
    assert mask_secret("") == ""


def test_sensitive_keys() -> None:
    from mac_chrome.engine.sensitivity import is_sensitive_key

    assert is_sensitive_key("password")
    assert is_sensitive_key("X-Api-Key")
    assert is_sensitive_key("auth")
    assert is_sensitive_key("PIN")
    assert not is_sensitive_key("author")
    assert not is_sensitive_key("spinner")
    assert not is_sensitive_key("")


def test_sensitive_selectors() -> None:
    from mac_chrome.engine.sensitivity import looks_sensitive_selector

    assert looks_sensitive_selector('input[type="password"]')
    assert looks_sensitive_selector("input[type = 'password']")
    assert looks_sensitive_selector("#api_key")
    assert not looks_sensitive_selector("#name")


def test_redact_args() -> None:
    from mac_chrome.engine.sensitivity import redact_args

    out = redact_args({"selector": "#pw", "token": "abcdef", "value": "secret-value", "nested": {"cookie": "c"}})
    assert out["token"] == "<redacted str len=6>"
    assert out["value"] == "secret-value"
    assert out["nested"] == {"cookie": "<redacted str len=1>"}

    masked = redact_args({"value": "secret-value", "selector": "#pw"}, secret=True)
    assert masked["value"] == "se**********"
    assert masked["selector"] == "#pw"
