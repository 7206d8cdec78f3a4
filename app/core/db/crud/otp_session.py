from app.core.db.crud.base import BaseDB
from app.core.db.models.otp_session import OTPSession


class OTPSessionDB(BaseDB[OTPSession]):
    """Store adapter for OTP sessions, keyed by session id.

    The adapter never interprets session contents; expiry and code checks
    belong to the OTP service.
    """

    def __init__(self):
        super().__init__(model=OTPSession)
