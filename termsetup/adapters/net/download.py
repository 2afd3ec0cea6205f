"""
Download adapter — fetch a file over HTTPS.

Theme files and similar assets. The body is written to a temp file
next to the target and renamed into place, and an empty body counts
as a failure so an idempotency check on "non-empty file" never sees
a half-finished download as done.
"""

from __future__ import annotations

import logging
import os
import tempfile
import urllib.error
import urllib.request
from pathlib import Path

from termsetup import __version__
from termsetup.adapters.base import Adapter, ExecutionContext
from termsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)

_USER_AGENT = f"termsetup/{__version__}"


class DownloadAdapter(Adapter):
    """Download a URL to a file.

    Action params:
        url (str): Source URL (http or https).
        dest (str): Target file path.
    """

    @property
    def name(self) -> str:
        return "download"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        url = params.get("url", "")
        if not url:
            return False, "Missing required param: 'url'"
        if not url.startswith(("https://", "http://")):
            return False, f"Unsupported URL scheme: {url}"
        if not params.get("dest"):
            return False, "Missing required param: 'dest'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        url: str = context.action.params["url"]
        dest = Path(os.path.expanduser(context.action.params["dest"]))

        req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        try:
            with urllib.request.urlopen(req, timeout=context.effective_timeout) as resp:
                body = resp.read()
        except (urllib.error.URLError, OSError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Download failed: {url}: {e}",
                metadata={"url": url},
            )

        if not body:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Empty response from {url}",
                metadata={"url": url},
            )

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".part")
            tmp = Path(tmp_path)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(body)
                os.chmod(tmp, 0o644)
                tmp.replace(dest)
            except OSError:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot write {dest}: {e}",
                metadata={"url": url, "dest": str(dest)},
            )

        logger.debug("Downloaded %s → %s (%d bytes)", url, dest, len(body))
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Downloaded {len(body)} bytes to {dest}",
            metadata={"url": url, "dest": str(dest), "size_bytes": len(body)},
        )
