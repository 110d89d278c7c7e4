import logging
from dataclasses import dataclass, field
from typing import Optional
import httpx
from portal.config import Settings
from portal.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)


@dataclass
class RecaptchaResult:
    success: bool
    score: Optional[float] = None
    reason: Optional[str] = None
    token_properties: dict = field(default_factory=dict)


class RecaptchaVerifier:
    """Client for reCAPTCHA Enterprise assessments. Disabled when no API key is configured."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.settings.recaptcha_api_key)

    async def verify(self, token: Optional[str], action: str) -> RecaptchaResult:
        if not self.enabled:
            return RecaptchaResult(success=True, reason="disabled")
        if not token:
            return RecaptchaResult(success=False, reason="Missing token")

        s = self.settings
        url = f"{s.recaptcha_api_url}/v1/projects/{s.recaptcha_project_id}/assessments"
        body = {"event": {"token": token, "siteKey": s.recaptcha_site_key, "expectedAction": action}}
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self.transport) as client:
                response = await client.post(url, params={"key": s.recaptcha_api_key}, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error("reCAPTCHA assessment failed: %s", e)
            raise StorageUnavailable("recaptcha assessment failed") from e

        token_props = data.get("tokenProperties") or {}
        if token_props.get("valid") is not True:
            return RecaptchaResult(success=False, reason="Invalid token", token_properties=token_props)
        if token_props.get("action") != action:
            return RecaptchaResult(success=False, reason="Action mismatch", token_properties=token_props)

        score = (data.get("riskAnalysis") or {}).get("score")
        passed = score >= s.recaptcha_score_threshold if isinstance(score, (int, float)) else True
        return RecaptchaResult(
            success=passed,
            score=score,
            reason=None if passed else "Score below threshold",
            token_properties=token_props,
        )
