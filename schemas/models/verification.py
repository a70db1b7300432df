"""
Verification session state and the OTP email job payload.

A verification session has no document of its own: it exists only as
TTL-bound keys in the keyed store, and absence of those keys is expiry.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

OTP_EMAIL_JOB_TYPE = "OTP_VERIFICATION"


class VerificationState(str, Enum):
    """Observable state of a session, derived from the keys still present.

    Consumption deletes every key, so a consumed session reads as EXPIRED.
    """

    PENDING_OTP = "PENDING_OTP"
    VERIFIED = "VERIFIED"
    EXPIRED = "EXPIRED"


class OtpEmailJob(BaseModel):
    """Payload pushed onto the email queue for the external mail dispatcher."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    otp: str
    type: str = OTP_EMAIL_JOB_TYPE
    timestamp: int = Field(description="Epoch milliseconds at enqueue time")
    otp_ttl_minutes: int = Field(alias="otpTtlMinutes")

    def to_payload(self) -> str:
        return self.model_dump_json(by_alias=True)
