# agromarket/services/auth_api_client.py
"""
Client for the remote identity provider (USE_REMOTE_AUTH_API=1).

The auth service may be asleep on a free-tier host, so every call first
pings /health and retries gateway errors with exponential backoff.
"""
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import requests
from flask import current_app

# Retry these (typical transient / cold start / gateway)
RETRY_STATUS = {502, 503, 504}


class AuthApiError(Exception):
    pass


def _base() -> str:
    base = (current_app.config.get("AUTH_API_BASE_URL") or "").rstrip("/")
    if not base:
        raise AuthApiError("AUTH_API_BASE_URL is not set")
    return base


def _safe_json(resp: requests.Response) -> Optional[Dict[str, Any]]:
    """
    Return JSON dict if response body is JSON, else None.
    Handles HTML gateway pages safely.
    """
    try:
        data = resp.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else {"data": data}


def _candidate_bases() -> List[str]:
    """
    Support both mount styles:
      - https://auth.example.com
      - https://auth.example.com/api
    If the base already ends with /api, don't double it.
    """
    base = _base()
    if base.endswith("/api"):
        return [base]
    return [base, base + "/api"]


def _warmup() -> None:
    """
    Ping health endpoints to wake the service.
    Failures are ignored here; the main request handles retry.
    """
    timeout = current_app.config.get("AUTH_API_WARMUP_TIMEOUT", 8)
    for b in _candidate_bases():
        try:
            requests.get(f"{b}/health", timeout=timeout, allow_redirects=True)
            return  # one successful warmup is enough
        except requests.RequestException as e:
            current_app.logger.debug("Auth API warmup failed on %s: %s", b, e)


def _backoff(attempt: int) -> None:
    time.sleep(0.6 * (2 ** (attempt - 1)))


def _post_any(path: str, payload: dict) -> Dict[str, Any]:
    """
    POST with:
      - warmup for cold starts
      - retry on 502/503/504 and network timeouts
      - path fallback: {base}{path} then {base}/api{path}
      - safe JSON parsing
    """
    _warmup()

    timeout = current_app.config.get("AUTH_API_TIMEOUT", 20)
    max_retries = current_app.config.get("AUTH_API_MAX_RETRIES", 3)
    urls = [f"{b}{path}" for b in _candidate_bases()]
    last_err: Optional[str] = None

    for url in urls:
        for attempt in range(1, max_retries + 1):
            try:
                resp = requests.post(url, json=payload, timeout=timeout, allow_redirects=True)
            except (requests.Timeout, requests.ConnectionError) as e:
                last_err = f"Network error on {url}: {e}"
                if attempt < max_retries:
                    _backoff(attempt)
                    continue
                # network error on this url -> try next url
                break

            if resp.status_code in RETRY_STATUS:
                last_err = f"Upstream error {resp.status_code} on {url}"
                if attempt < max_retries:
                    _backoff(attempt)
                continue

            data = _safe_json(resp)

            if data is None:
                snippet = (resp.text or "").strip().replace("\n", " ")[:240]
                if resp.status_code == 404:
                    last_err = f"404 Not Found on {url}: {snippet}"
                    break
                raise AuthApiError(f"Auth API returned non-JSON response ({resp.status_code}) on {url}: {snippet}")

            if resp.status_code >= 400:
                msg = data.get("message") or data.get("detail") or data.get("error") or "Request failed"
                if resp.status_code == 404:
                    last_err = f"{msg} (HTTP 404) on {url}"
                    break
                raise AuthApiError(f"{msg} (HTTP {resp.status_code})")

            return data

    raise AuthApiError(
        f"Auth API endpoint not found / not responding. Tried: {', '.join(urls)}. Last: {last_err}"
    )


def login(email: str, password: str) -> Dict[str, Any]:
    return _post_any("/auth/login", {"email": email, "password": password})


def register(payload: dict) -> Dict[str, Any]:
    return _post_any("/auth/register", payload)
