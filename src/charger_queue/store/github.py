"""State store backed by a JSON file in a GitHub repository."""

import asyncio
import base64
import json
import logging
from typing import Any, Optional

import aiohttp

from ..exceptions import Conflict, StoreUnavailable

logger = logging.getLogger(__name__)

# Status codes GitHub uses on PUT when the supplied blob sha is stale or missing
_CONFLICT_STATUSES = {409, 422}


class GitHubContentsStore:
    """
    Reads and writes the state document through the GitHub Contents API.

    The version token is the blob sha of the file. GitHub refuses a PUT whose
    sha does not match the file's current sha, which gives compare-and-set
    semantics without any locking on our side.
    """

    name = "github"

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        path: str = "state.json",
        branch: Optional[str] = None,
        api_url: str = "https://api.github.com",
        commit_message: str = "EV state update",
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the store.

        Args:
            owner: Repository owner (user or organisation)
            repo: Repository name
            token: Token with contents read/write permission
            path: File path inside the repository
            branch: Branch to read and commit to (repository default if None)
            api_url: GitHub API base URL
            commit_message: Message used for every state commit
            timeout_seconds: Total timeout per HTTP request
            session: Existing aiohttp session to use instead of creating one
        """
        self.owner = owner
        self.repo = repo
        self.path = path
        self.branch = branch
        self.api_url = api_url.rstrip("/")
        self.commit_message = commit_message
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    @property
    def url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{self.path}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def read(self) -> tuple[Optional[dict[str, Any]], Optional[str]]:
        """
        Fetch the document and its blob sha.

        Returns:
            (document, sha), or (None, None) if the file does not exist

        Raises:
            StoreUnavailable: On network errors, unexpected status codes or
                a file that does not hold JSON
        """
        params = {"ref": self.branch} if self.branch else None
        logger.debug(f"GET {self.url}")

        try:
            async with self._get_session().get(self.url, headers=self._headers(), params=params) as resp:
                if resp.status == 404:
                    return None, None
                if resp.status != 200:
                    text = await resp.text()
                    raise StoreUnavailable(
                        f"Repo read failed: {resp.status} {text[:200]}",
                        status_code=resp.status,
                    )
                body = await resp.json(content_type=None)
        except StoreUnavailable:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StoreUnavailable(f"Repo read failed: {e}") from e

        try:
            content = base64.b64decode(body["content"]).decode("utf-8")
            document = json.loads(content)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreUnavailable(f"Stored state at {self.path} is not valid JSON: {e}") from e

        return document, body.get("sha")

    async def write(self, document: dict[str, Any], version: Optional[str]) -> Optional[str]:
        """
        Commit the document, conditioned on the blob sha that was read.

        Returns:
            The sha of the newly written blob

        Raises:
            Conflict: If GitHub reports the sha as stale
            StoreUnavailable: On network errors or other failures
        """
        encoded = base64.b64encode(json.dumps(document, indent=2).encode("utf-8")).decode("ascii")
        body: dict[str, Any] = {"message": self.commit_message, "content": encoded}
        if version:
            body["sha"] = version
        if self.branch:
            body["branch"] = self.branch

        logger.debug(f"PUT {self.url} (sha={version})")

        try:
            async with self._get_session().put(self.url, headers=self._headers(), json=body) as resp:
                if resp.status in _CONFLICT_STATUSES:
                    text = await resp.text()
                    raise Conflict(
                        f"State changed since it was read ({resp.status}): {text[:200]}",
                        expected=version,
                    )
                if resp.status not in (200, 201):
                    text = await resp.text()
                    raise StoreUnavailable(
                        f"Repo write failed: {resp.status} {text[:200]}",
                        status_code=resp.status,
                    )
                result = await resp.json(content_type=None)
        except (Conflict, StoreUnavailable):
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StoreUnavailable(f"Repo write failed: {e}") from e

        return (result.get("content") or {}).get("sha")

    async def close(self) -> None:
        """Close the HTTP session if this store created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
