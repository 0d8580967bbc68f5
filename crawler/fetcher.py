"""
HTTP fetching module for the crawler.
Resolves one address into page metadata (HEAD probe) or a full body (GET),
under fixed timeout, retry and redirect budgets.
"""

import threading
from datetime import timezone
from email.utils import parsedate_to_datetime

import requests
import urllib3

from crawler.config import USER_AGENT
from crawler.models import PageMetadata

HTML_MEDIA_TYPE = "text/html"

# Malformed requests fail before any network I/O; retrying them cannot help.
_INVALID_REQUEST_ERRORS = (
    requests.exceptions.InvalidURL,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.URLRequired,
)


class FetchError(Exception):
    """Base fetch exception. Always fatal to one address only."""
    pass


class RequestTimeoutError(FetchError):
    """Raised when a request exceeds the per-request timeout. Never retried."""
    pass


class TooManyRedirectsError(FetchError):
    """Raised when a redirect chain exceeds max_redirects hops. Never retried."""
    pass


class HTTPStatusError(FetchError):
    """Raised by fetch() when the status code falls outside [200, 400)."""

    def __init__(self, url, status_code, reason=""):
        super().__init__(f"HTTP error [{status_code}] {reason} for {url}".replace("  ", " "))
        self.url = url
        self.status_code = status_code


class RetriesExhaustedError(FetchError):
    """Raised after max_retries attempts all failed with connection-level errors."""

    def __init__(self, url, attempts, last_error):
        super().__init__(f"Maximum retries exceeded with error: {last_error} (url={url}, attempts={attempts})")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


def _is_body_read_timeout(err) -> bool:
    # requests re-raises a read timeout hit while loading the body as ConnectionError
    return (
        isinstance(err, requests.exceptions.ConnectionError)
        and bool(err.args)
        and isinstance(err.args[0], urllib3.exceptions.ReadTimeoutError)
    )


def is_timeout(err) -> bool:
    return isinstance(err, RequestTimeoutError)


def is_too_many_redirects(err) -> bool:
    return isinstance(err, TooManyRedirectsError)


def parse_last_modified(value):
    """RFC 1123 HTTP date -> aware UTC datetime, or None when absent/unparseable."""
    if not value:
        return None
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def media_type(content_type_header) -> str:
    return (content_type_header or "").split(";")[0].strip().lower()


class Fetcher:
    """
    FLOW: Picks the calling thread's session -> Executes the request with the configured
    timeout -> Retries connection errors flat (no backoff) up to max_retries attempts ->
    Surfaces timeouts and redirect overflow immediately -> Returns metadata or body.

    Timeout and redirect budget are fixed at construction and apply to every call.
    """

    def __init__(self, logger, timeout=5.0, max_retries=3, max_redirects=10,
                 user_agent=USER_AGENT, session_factory=None, metrics=None):
        if max_retries <= 0:
            raise ValueError("max_retries should be number greater than zero")
        self.logger = logger
        self.timeout = timeout
        self.max_retries = max_retries
        self.max_redirects = max_redirects
        self.user_agent = user_agent
        self.metrics = metrics
        self._session_factory = session_factory or requests.Session
        self._local = threading.local()
        self._sessions = []
        self._sessions_lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def _session(self):
        # requests.Session is not guaranteed thread-safe; one per worker thread
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            session.max_redirects = self.max_redirects
            session.headers["User-Agent"] = self.user_agent
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def _count(self, name):
        if self.metrics is not None:
            self.metrics.increment(name)

    def probe(self, url) -> PageMetadata:
        """
        Lightweight existence/type check (HEAD).
        is_page is True only for a text/html media type.
        """
        resp = self._do_or_retry("HEAD", url)
        try:
            is_page = media_type(resp.headers.get("Content-Type")) == HTML_MEDIA_TYPE
            last_modified = parse_last_modified(resp.headers.get("Last-Modified"))
        finally:
            resp.close()
        self.logger.debug(f"probe {url}: status={resp.status_code} is_page={is_page} last_modified={last_modified}")
        return PageMetadata(is_page=is_page, last_modified=last_modified)

    def fetch(self, url) -> bytes:
        """Full-body retrieval (GET). Raises HTTPStatusError outside [200, 400)."""
        resp = self._do_or_retry("GET", url)
        try:
            if resp.status_code < 200 or resp.status_code >= 400:
                self._count("http_errors")
                raise HTTPStatusError(url, resp.status_code, resp.reason or "")
            body = resp.content
        finally:
            resp.close()
        self.logger.debug(f"fetch {url}: status={resp.status_code} ({len(body)} bytes)")
        return body

    def _do_or_retry(self, method, url):
        attempt = 1
        while True:
            self._count("requests")
            try:
                return self._session().request(method, url, timeout=self.timeout, allow_redirects=True)
            except requests.exceptions.Timeout as e:
                self._count("timeouts")
                raise RequestTimeoutError(f"Request timeout after {self.timeout}s for {url}: {e}") from e
            except requests.exceptions.TooManyRedirects as e:
                self._count("redirect_limit")
                raise TooManyRedirectsError(f"Too many redirects (max {self.max_redirects}) for {url}") from e
            except _INVALID_REQUEST_ERRORS as e:
                raise FetchError(f"Invalid request for {url}: {e}") from e
            except requests.exceptions.RequestException as e:
                if _is_body_read_timeout(e):
                    self._count("timeouts")
                    raise RequestTimeoutError(f"Request timeout after {self.timeout}s for {url}: {e}") from e
                if attempt < self.max_retries:
                    self.logger.warning(f"[RETRY {attempt}/{self.max_retries}] {type(e).__name__} for {url}: {e}")
                    self._count("retries")
                    attempt += 1
                    continue
                self._count("retries_exhausted")
                raise RetriesExhaustedError(url, attempt, e) from e
