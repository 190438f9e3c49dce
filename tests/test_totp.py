from datetime import datetime
from urllib.parse import parse_qs, urlparse

import pyotp

from core.totp import TwoFactorManager

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _manager():
    return TwoFactorManager("AaghaazTech", window_steps=6)


def test_generated_secret_is_base32_and_uri_names_issuer_and_account():
    enrollment = _manager().generate_secret("ayesha@example.com")

    assert len(enrollment.secret) >= 16
    uri = urlparse(enrollment.provisioning_uri)
    assert uri.scheme == "otpauth"
    assert "ayesha%40example.com" in uri.path or "ayesha@example.com" in uri.path
    assert parse_qs(uri.query)["issuer"] == ["AaghaazTech"]
    assert parse_qs(uri.query)["secret"] == [enrollment.secret]


def test_two_enrollments_never_share_a_secret():
    manager = _manager()
    assert manager.generate_secret("a").secret != manager.generate_secret("a").secret


def test_current_code_verifies():
    secret = pyotp.random_base32()
    assert _manager().verify_code(secret, pyotp.TOTP(secret).now())


def test_codes_within_six_steps_either_side_verify():
    secret = pyotp.random_base32()
    totp = pyotp.TOTP(secret)
    now = datetime.now()
    manager = _manager()

    assert manager.verify_code(secret, totp.at(now, 6), for_time=now)
    assert manager.verify_code(secret, totp.at(now, -6), for_time=now)


def test_code_from_outside_the_window_fails():
    secret = pyotp.random_base32()
    totp = pyotp.TOTP(secret)
    now = datetime.now()

    assert not _manager().verify_code(secret, totp.at(now, 10), for_time=now)


def test_code_for_another_secret_fails():
    secret, other = pyotp.random_base32(), pyotp.random_base32()
    assert not _manager().verify_code(secret, pyotp.TOTP(other).now())


def test_malformed_codes_fail_without_raising():
    secret = pyotp.random_base32()
    manager = _manager()
    for code in ("", "abcdef", None, "12 34 56"):
        assert not manager.verify_code(secret, code)
    assert not manager.verify_code(None, "123456")


def test_enrollment_image_is_png_and_data_url_wraps_it():
    uri = _manager().generate_secret("a@x.com").provisioning_uri

    assert TwoFactorManager.render_enrollment_image(uri).startswith(PNG_MAGIC)
    assert TwoFactorManager.render_enrollment_data_url(uri).startswith("data:image/png;base64,")
