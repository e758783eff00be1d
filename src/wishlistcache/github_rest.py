from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import requests

from . import __version__
from .retry import TransientHTTPError, is_transient_response, run_with_retries

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = f"wishlist-cache/{__version__}"
HTTP_ERROR_STATUS = 400
PER_PAGE = 100


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub REST API returns an error."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


@dataclass
class GitHubRestClient:
    """Read-only REST client for the issues of one repository.

    Comment listing runs on worker threads, so each thread gets its own
    ``requests.Session``. An injected ``session`` is used as-is by every
    thread and must tolerate that.
    """

    token: str | None
    repo: str
    base_url: str = DEFAULT_API_URL
    session: requests.Session | None = None
    _headers: dict[str, str] = field(init=False, repr=False)
    _local: threading.local = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        if self.token:
            self._headers["Authorization"] = f"Bearer {self.token}"
        self._local = threading.local()

    def _thread_session(self) -> requests.Session:
        if self.session is not None:
            return self.session
        session: requests.Session | None = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    # ---- REST helpers -------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        url = (
            path
            if path.startswith("http")
            else f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        )

        def _run() -> requests.Response:
            response = self._thread_session().request(
                method,
                url,
                params=params,
                headers=dict(self._headers),
                timeout=30,
            )
            if is_transient_response(response):
                raise TransientHTTPError(response)
            return response

        try:
            response = run_with_retries(_run)
        except TransientHTTPError as exc:
            response = exc.response
        if response.status_code >= HTTP_ERROR_STATUS:
            raise GitHubAPIError(
                f"GitHub API {method} {url} failed with {response.status_code}",
                status=response.status_code,
                response_text=response.text,
            )
        if response.text:
            return response.json()
        return None

    def _paginate(
        self, path: str, *, params: dict[str, Any] | None = None
    ) -> list[Any]:
        params = dict(params or {})
        per_page = params.setdefault("per_page", PER_PAGE)
        params.setdefault("page", 1)
        results: list[Any] = []
        while True:
            data = self._request("GET", path, params=dict(params))
            if not isinstance(data, list):
                break
            results.extend(data)
            if len(data) < per_page:
                break
            params["page"] = params.get("page", 1) + 1
        return results

    # ---- Issue operations --------------------------------------------
    def list_issues(
        self, *, state: str = "open", labels: Iterable[str] | None = None
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"state": state, "per_page": PER_PAGE, "page": 1}
        label_list = [label for label in (labels or []) if label]
        if label_list:
            params["labels"] = ",".join(label_list)
        data = self._paginate(f"/repos/{self.repo}/issues", params=params)
        return [entry for entry in data if isinstance(entry, dict)]

    def list_comments(self, number: int) -> list[dict[str, Any]]:
        data = self._paginate(
            f"/repos/{self.repo}/issues/{number}/comments",
            params={"per_page": PER_PAGE, "page": 1},
        )
        return [entry for entry in data if isinstance(entry, dict)]


__all__ = ["GitHubAPIError", "GitHubRestClient", "DEFAULT_API_URL"]
