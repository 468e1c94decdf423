from __future__ import annotations

import json
import logging
import re

import requests

from ..errors import DispatchError
from ..models.config_models import validate_api_url
from ..models.record import Record

"""Downstream API dispatch.

One multipart POST per valid row, parts in this exact set:
    id_nombre  = record.nombres
    id_celular = record.telefono, digits only
    linkPath   = artifact URL
    file       = PNG bytes (qr.png, image/png)

Non-2xx responses are not raised by requests; the status is inspected
explicitly. Exactly one attempt, no retry.
"""

__all__ = [
    "ApiDispatcher",
    "DEFAULT_TIMEOUT_SECONDS",
]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
_NON_DIGITS = re.compile(r"\D")


def _serialize_body(response: requests.Response) -> str:
    try:
        return json.dumps(response.json(), ensure_ascii=False, separators=(",", ":"))
    except ValueError:
        return response.text


class ApiDispatcher:
    def __init__(
        self,
        api_url: str,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.api_url = validate_api_url(api_url)
        self.timeout = timeout
        self._session = session or requests.Session()

    def dispatch(self, record: Record, artifact_url: str, image: bytes) -> None:
        """POST the record and its QR image.

        Raises:
            DispatchError: On a status outside [200, 300) or a network failure.
        """
        form = {
            "id_nombre": record.nombres,
            "id_celular": _NON_DIGITS.sub("", record.telefono),
            "linkPath": artifact_url,
        }
        files = {"file": ("qr.png", image, "image/png")}
        try:
            resp = self._session.post(
                self.api_url,
                data=form,
                files=files,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise DispatchError(f"API request failed: {e}") from e

        body = _serialize_body(resp)
        logger.info("API status=%s", resp.status_code)
        logger.debug("API body=%s", body)

        if resp.status_code < 200 or resp.status_code >= 300:
            raise DispatchError(
                f"API responded {resp.status_code}: {body}",
                status=resp.status_code,
                body=body,
            )
