"""Slack delivery for reporter output.

``SlackClient`` posts through the Slack Web API (``chat.postMessage``) and
resolves personal recipients by e-mail (``users.lookupByEmail``). Bugzilla
logins are e-mail addresses; ``email_mapping`` covers people whose Slack
address differs. In debug mode personal messages go to the admin channel
instead, prefixed with the intended recipient.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

from .errors import DeliveryError
from .retry import run_with_retries

SLACK_API_URL = "https://slack.com/api"
HTTP_ERROR_STATUS = 400


class ChannelClient(Protocol):
    def message_channel(self, text: str) -> None: ...

    def message_admin_channel(self, text: str) -> None: ...

    def message_email(self, email: str, text: str) -> None: ...


@dataclass
class SlackClient:
    token: str
    channel: str
    admin_channel: str
    email_mapping: dict[str, str] = field(default_factory=dict)
    debug: bool = False
    api_url: str = SLACK_API_URL
    timeout: float = 30.0
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)
    _user_ids: dict[str, str] = field(init=False, repr=False, default_factory=dict)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", f"Bearer {self.token}")

    def _call(self, method: str, *, recipient: str, **payload: Any) -> dict[str, Any]:
        url = f"{self.api_url.rstrip('/')}/{method}"

        def _run() -> requests.Response:
            return self._session.request(
                "POST",
                url,
                data=payload,
                headers=self._session.headers,
                timeout=self.timeout,
            )

        try:
            response = run_with_retries(_run)
        except requests.RequestException as exc:
            raise DeliveryError(f"Slack {method} failed: {exc}", recipient=recipient) from exc
        if response.status_code >= HTTP_ERROR_STATUS:
            raise DeliveryError(
                f"Slack {method} failed with {response.status_code}", recipient=recipient
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise DeliveryError(f"Slack {method} returned invalid JSON", recipient=recipient) from exc
        if not isinstance(data, dict) or not data.get("ok"):
            error = data.get("error") if isinstance(data, dict) else data
            raise DeliveryError(f"Slack {method} error: {error}", recipient=recipient)
        return data

    def _post(self, channel: str, text: str, *, recipient: str) -> None:
        self._call("chat.postMessage", recipient=recipient, channel=channel, text=text)

    def message_channel(self, text: str) -> None:
        self._post(self.channel, text, recipient=self.channel)

    def message_admin_channel(self, text: str) -> None:
        self._post(self.admin_channel, text, recipient=self.admin_channel)

    def slack_email(self, bugzilla_email: str) -> str:
        return self.email_mapping.get(bugzilla_email, bugzilla_email)

    def _lookup_user(self, email: str) -> str:
        if email not in self._user_ids:
            data = self._call("users.lookupByEmail", recipient=email, email=email)
            user = data.get("user")
            user_id = user.get("id") if isinstance(user, dict) else None
            if not isinstance(user_id, str):
                raise DeliveryError(f"no Slack user for {email}", recipient=email)
            self._user_ids[email] = user_id
        return self._user_ids[email]

    def message_email(self, email: str, text: str) -> None:
        if not email:
            raise DeliveryError("empty recipient", recipient=email)
        if self.debug:
            self._post(self.admin_channel, f"DEBUG for {email}:\n\n{text}", recipient=email)
            return
        user_id = self._lookup_user(self.slack_email(email))
        self._post(user_id, text, recipient=email)


__all__ = ["ChannelClient", "SlackClient"]
