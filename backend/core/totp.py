# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Two-factor (TOTP) primitives: secret generation, the enrollment QR image,
and time-window code verification.

Nothing here persists anything.  The caller stores the secret (encrypted,
see ``core.security.encrypt_secret``) on the principal and owns the
disabled → pending → enabled state machine.

Verification tolerance
----------------------
The window is six 30-second steps on either side of "now", about three
minutes of drift.  That is wider than RFC 6238 suggests; it is kept because
users enrolling from phones with unsynchronised clocks were otherwise locked
out.  The cost is a larger set of simultaneously valid codes.
"""

import base64
import io
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pyotp
import qrcode

DEFAULT_WINDOW_STEPS = 6


@dataclass(frozen=True)
class EnrollmentSecret:
    secret: str             # base32
    provisioning_uri: str   # otpauth://totp/...


class TwoFactorManager:
    def __init__(self, issuer: str, window_steps: int = DEFAULT_WINDOW_STEPS):
        self.issuer = issuer
        self.window_steps = window_steps

    def generate_secret(self, account: str) -> EnrollmentSecret:
        """
        Fresh random base32 secret bound to the label ``<issuer>:<account>``.
        """
        secret = pyotp.random_base32()
        uri = pyotp.TOTP(secret).provisioning_uri(name=account, issuer_name=self.issuer)
        return EnrollmentSecret(secret=secret, provisioning_uri=uri)

    @staticmethod
    def render_enrollment_image(provisioning_uri: str) -> bytes:
        """PNG bytes of a QR code encoding *provisioning_uri*."""
        img = qrcode.make(provisioning_uri)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    @classmethod
    def render_enrollment_data_url(cls, provisioning_uri: str) -> str:
        png = cls.render_enrollment_image(provisioning_uri)
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")

    def verify_code(
        self,
        secret: Optional[str],
        code: object,
        window_steps: Optional[int] = None,
        for_time: Optional[datetime] = None,
    ) -> bool:
        """
        True when *code* matches *secret* at *for_time* (default: now) or at
        any step within ``window_steps`` either side.
        """
        if not secret or code is None:
            return False
        code = str(code).strip()
        if not code.isdigit():
            return False
        window = self.window_steps if window_steps is None else window_steps
        return pyotp.TOTP(secret).verify(
            code,
            for_time=for_time if for_time is not None else datetime.now(),
            valid_window=window,
        )
