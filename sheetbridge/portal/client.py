from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import requests

from sheetbridge.config.loader import PortalConfig
from sheetbridge.errors import DownstreamPublishError
from sheetbridge.models.processing_result import Destination

"""Portal "replace file" client.

One PUT per publish:

    PUT https://<account>.myvtex.com/api/portal/pvt/sites/<site>/files/<file>
    {"path": "<file>", "text": "<artifact json>"}

Authentication uses the X-VTEX-API-AppKey / X-VTEX-API-AppToken headers. Any
transport error or non-2xx response is raised as DownstreamPublishError so the
publisher can record it without failing the whole cycle.
"""

__all__ = [
    "PortalClient",
    "build_session",
    "USER_AGENT",
]

logger = logging.getLogger(__name__)

USER_AGENT = "sheetbridge/1.0"
CHECK_TIMEOUT_SECONDS = 10.0


def build_session(cfg: PortalConfig) -> requests.Session:
    s = requests.Session()
    s.headers.update(
        {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
    )
    if cfg.app_key:
        s.headers["X-VTEX-API-AppKey"] = cfg.app_key
    if cfg.app_token:
        s.headers["X-VTEX-API-AppToken"] = cfg.app_token
    return s


def _response_body(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


class PortalClient:
    """Thin requests-based adapter for the portal files endpoint."""

    def __init__(self, cfg: PortalConfig, session: requests.Session | None = None) -> None:
        self._cfg = cfg
        self._session = session or build_session(cfg)
        self.stats: dict[str, Any] = {
            "totalRequests": 0,
            "successfulRequests": 0,
            "failedRequests": 0,
            "lastRequestTime": None,
        }

    def file_url(self, destination: Destination) -> str:
        base = self._cfg.base_url.format(account=destination.account, site=destination.site)
        return f"{base.rstrip('/')}/{destination.file_name}"

    def replace_file(self, destination: Destination, text: str) -> dict[str, Any]:
        """Replace ``destination.file_name`` on the portal with ``text``.

        Returns:
            ``{"status", "statusText", "data"}`` of the portal response

        Raises:
            DownstreamPublishError: network failure, timeout or non-2xx status
        """
        url = self.file_url(destination)
        if not self._cfg.app_key or not self._cfg.app_token:
            logger.warning("portal credentials missing (VTEX_APP_KEY / VTEX_APP_TOKEN)")

        self.stats["totalRequests"] += 1
        self.stats["lastRequestTime"] = datetime.now(UTC).isoformat()
        logger.info("PUT %s (%d bytes)", url, len(text.encode("utf-8")))
        try:
            resp = self._session.put(
                url,
                json={"path": destination.file_name, "text": text},
                timeout=self._cfg.timeout_seconds,
            )
        except requests.Timeout as e:
            self.stats["failedRequests"] += 1
            raise DownstreamPublishError(
                f"portal timeout after {self._cfg.timeout_seconds}s", None, {"url": url}
            ) from e
        except requests.RequestException as e:
            self.stats["failedRequests"] += 1
            raise DownstreamPublishError(f"portal unreachable: {e}", None, {"url": url}) from e

        body = _response_body(resp)
        if not resp.ok:
            self.stats["failedRequests"] += 1
            raise DownstreamPublishError(
                f"portal responded {resp.status_code} {resp.reason}",
                resp.status_code,
                {"url": url, "response": body},
            )

        self.stats["successfulRequests"] += 1
        logger.info("portal responded %d %s", resp.status_code, resp.reason)
        return {"status": resp.status_code, "statusText": resp.reason, "data": body}

    def check_connection(self, destination: Destination, timeout: float = CHECK_TIMEOUT_SECONDS) -> dict[str, Any]:
        """Read ``destination`` back from the portal to verify reachability and credentials.

        Never raises; a 404 still counts as connected since the file may not be
        published yet.
        """
        url = self.file_url(destination)
        started = datetime.now(UTC)
        try:
            resp = self._session.get(url, timeout=min(timeout, self._cfg.timeout_seconds))
        except requests.RequestException as e:
            logger.error("portal check failed: %s", e)
            return {"status": "error", "statusCode": None, "error": str(e), "account": destination.account}
        elapsed_ms = int((datetime.now(UTC) - started).total_seconds() * 1000)
        if resp.ok or resp.status_code == 404:
            logger.info("portal check ok: %d %s in %dms", resp.status_code, resp.reason, elapsed_ms)
            return {
                "status": "connected",
                "statusCode": resp.status_code,
                "responseTimeMs": elapsed_ms,
                "account": destination.account,
            }
        logger.error("portal check failed: %d %s", resp.status_code, resp.reason)
        return {
            "status": "error",
            "statusCode": resp.status_code,
            "error": f"portal responded {resp.status_code} {resp.reason}",
            "account": destination.account,
        }
