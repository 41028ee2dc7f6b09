import logging

import aiohttp

import config

logger = logging.getLogger(__name__)


class EmailService:
    """Thin wrapper over the transactional e-mail HTTP API."""

    @staticmethod
    async def send(to: str, subject: str, text: str, html: str | None = None) -> bool:
        """
        Send one e-mail.

        Without EMAIL_API_KEY (local development) the mail is only logged.

        Returns:
            True if the API accepted the mail

        Raises:
            aiohttp.ClientError: network failure (callers decide whether it is fatal)
        """
        if not config.EMAIL_API_KEY:
            logger.warning(f"EMAIL_API_KEY not configured, not sending '{subject}' to {to}")
            return False

        payload = {"from": config.EMAIL_FROM, "to": [to], "subject": subject, "text": text}
        if html:
            payload["html"] = html

        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=15)) as http:
            async with http.post(
                config.EMAIL_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {config.EMAIL_API_KEY}"}
            ) as response:
                if response.status >= 400:
                    logger.error(f"E-mail API returned {response.status} for '{subject}': {await response.text()}")
                    return False
        logger.info(f"E-mail '{subject}' sent to {to}")
        return True
