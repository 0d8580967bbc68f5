import re
from urllib.parse import urlparse, urlunparse, urldefrag

from requests.utils import requote_uri

NETWORK_SCHEMES = ("http", "https")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def strip_fragment(url: str) -> str:
    return urldefrag(url)[0]


def normalize_address(url: str) -> str:
    """
    Canonical form used as the visited-set key:
    - fragment removed
    - scheme + host lower-cased
    - empty path becomes "/"
    Query strings and path case are preserved.
    """
    if not url:
        return ""
    p = urlparse(strip_fragment(url.strip()))
    path = p.path or "/"
    return urlunparse((
        p.scheme.lower(),
        p.netloc.lower(),
        path,
        p.params,
        p.query,
        "",
    ))


def is_network_address(url: str) -> bool:
    """True for absolute http/https addresses with a host."""
    p = urlparse(url)
    return p.scheme.lower() in NETWORK_SCHEMES and bool(p.netloc)


def percent_encode(url: str) -> str:
    """
    Encodes non-ASCII characters only (ü -> %C3%BC).
    Reserved URL characters (/, :, ?, & etc) and existing escapes are left untouched.
    """
    return requote_uri(url)


def parse_duration(value) -> float:
    """
    Parse a duration into seconds.
    Accepts bare numbers (seconds) and Go-style strings: "200ms", "5s", "1m", "1m30s".
    """
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().lower()
    if not text:
        raise ValueError("empty duration")
    try:
        return float(text)
    except ValueError:
        pass

    pos, total = 0, 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"invalid duration: {value!r} (valid units are 'ms', 's', 'm', 'h')")
    return total
