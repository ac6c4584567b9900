"""
Where keyring documents are read from and written to.

Location names understood here:

  -              stdin for reading, stdout for writing
  http...        a URL: GET to load; POST ``data=<json>`` to save, the
                 server answers ``OK`` or ``ERROR: ...`` on the first line
  anything else  a local file path

Local files are replaced atomically: the document is written to a temporary
file next to the target, flushed to disk and renamed over it, so a failed
save never leaves a half-written keyring behind.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path

from keyringdesk.core.exceptions import TransportError
from keyringdesk.core.ring import Ring

logger = logging.getLogger(__name__)

STDIO_NAME = "-"
HTTP_TIMEOUT = 30.0


def is_stdio(name: str) -> bool:
    return name == STDIO_NAME


def is_url(name: str) -> bool:
    return name.startswith("http")


def read_text(name: str) -> str:
    """Return the UTF-8 text stored at ``name``."""
    logger.debug("read_text(%s)", name)
    if is_stdio(name):
        return sys.stdin.read()
    if is_url(name):
        with urllib.request.urlopen(name, timeout=HTTP_TIMEOUT) as resp:
            return resp.read().decode("utf-8")
    return Path(name).expanduser().read_text(encoding="utf-8")


def _post(url: str, text: str) -> None:
    body = urllib.parse.urlencode({"data": text}).encode("ascii")
    req = urllib.request.Request(url, data=body, method="POST")
    req.add_header("Content-Type", "application/x-www-form-urlencoded")
    try:
        with urllib.request.urlopen(req, timeout=HTTP_TIMEOUT) as resp:
            reply = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        try:
            detail = e.read().decode("utf-8", errors="replace")
        except Exception:
            detail = ""
        raise TransportError(f"Failed to save to URL '{url}': HTTP {e.code} {detail}".rstrip()) from e

    lines = reply.splitlines()
    if not lines or lines[0].strip() != "OK":
        raise TransportError(f"Failed to save to URL '{url}': {''.join(lines)}")


def _replace_file(path: Path, text: str) -> None:
    path = path.expanduser()
    directory = path.parent
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=directory, prefix=f".{path.name}.", suffix=".tmp", delete=False
    ) as tmpf:
        tmp_path = Path(tmpf.name)
        try:
            tmpf.write(text)
            tmpf.flush()
            os.fsync(tmpf.fileno())
        except BaseException:
            tmpf.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def write_text(name: str, text: str) -> None:
    """Store ``text`` at ``name``."""
    logger.debug("write_text(%s)", name)
    if is_stdio(name):
        sys.stdout.write(text + "\n")
        sys.stdout.flush()
    elif is_url(name):
        _post(name, text)
    else:
        _replace_file(Path(name), text)


def load_ring(name: str) -> Ring:
    """Read the envelope at ``name``. Call ``validate_password`` on the result."""
    ring = Ring()
    ring.loads(read_text(name))
    return ring


def save_ring(ring: Ring, name: str) -> None:
    write_text(name, ring.dumps())
