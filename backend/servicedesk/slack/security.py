from __future__ import annotations

import logging
from collections.abc import Mapping

from fastapi import HTTPException, status
from slack_sdk.signature import SignatureVerifier

logger = logging.getLogger(__name__)

SLACK_SIGNATURE_HEADER = "X-Slack-Signature"
SLACK_TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"


def verify_slack_request(
    signing_secret: str | None, body: bytes, headers: Mapping[str, str]
) -> None:
    """Validate the Slack request signature.

    Verification is skipped when no signing secret is configured (local
    development). Raises HTTPException 403 on an invalid signature.
    """
    if not signing_secret:
        return

    timestamp = headers.get(SLACK_TIMESTAMP_HEADER)
    signature = headers.get(SLACK_SIGNATURE_HEADER)
    if not timestamp or not signature:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Missing signature")

    verifier = SignatureVerifier(signing_secret)
    if not verifier.is_valid(body=body, timestamp=timestamp, signature=signature):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid signature")
