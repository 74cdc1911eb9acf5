"""Best-effort reachability probe for service API URLs.

Sends one HEAD request per service. A failure is reported as an
API_URL_UNREACHABLE warning and never turns a compilation into a failure.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import httpx
import structlog

from bui_core.config import DEFAULT_URL_TIMEOUT_SECONDS, ENTRY_FILE_NAME
from bui_core.diagnostics import Diagnostic, WarningCode, create_parse_context, create_warning
from bui_core.schemas import Service

logger = structlog.get_logger(__name__)


def probe_url(url: str, timeout: float = DEFAULT_URL_TIMEOUT_SECONDS) -> str | None:
    """HEAD ``url`` and return a failure reason, or None when it answered.

    Any status below 400 counts as reachable; redirects are followed.
    """
    try:
        response = httpx.head(url, timeout=timeout, follow_redirects=True)
    except httpx.TimeoutException:
        return f"timed out after {timeout}s"
    except httpx.HTTPError as e:
        return f"{e.__class__.__name__}: {e}"

    if response.status_code >= 400:
        return f"HTTP {response.status_code}"
    return None


def probe_service_urls(
    services: Sequence[Service],
    service_files: Mapping[str, str] | None = None,
    timeout: float = DEFAULT_URL_TIMEOUT_SECONDS,
) -> list[Diagnostic]:
    """Probe every service API URL.

    Args:
        services: Services of a compiled document.
        service_files: Service name to originating file, for attribution.
        timeout: Per-request timeout in seconds.

    Returns:
        One warning per unreachable URL.
    """
    service_files = service_files or {}
    warnings: list[Diagnostic] = []

    for service in services:
        url = service.api.url
        reason = probe_url(url, timeout)
        if reason is None:
            logger.debug("url_probe_succeeded", service=service.name, url=url)
            continue

        logger.warning("url_probe_failed", service=service.name, url=url, reason=reason)
        context = create_parse_context(service_files.get(service.name, ENTRY_FILE_NAME))
        warnings.append(
            create_warning(
                WarningCode.API_URL_UNREACHABLE,
                f"API URL for b-pod '{service.name}' is unreachable: {url} ({reason})",
                context,
            )
        )

    return warnings
