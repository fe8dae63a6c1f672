"""Rule sources: list candidate documents and fetch their raw text."""

import asyncio
import hashlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx
import structlog

from cli.retry import http_retry
from rules.models import DocumentDescriptor
from rules.paths import DEFAULT_CONTAINER, DEFAULT_ROOT_MARKER

from .errors import SourceError

logger = structlog.get_logger().bind(source="rule_source")

DEFAULT_EXTENSION = ".mdc"
GITHUB_API_URL = "https://api.github.com"


class RuleSource(ABC):
    """Remote content repository holding rule documents."""

    def __init__(
        self,
        root_marker: str = DEFAULT_ROOT_MARKER,
        container: str = DEFAULT_CONTAINER,
        extension: str = DEFAULT_EXTENSION,
    ):
        self.root_marker = root_marker
        self.container = container
        self.extension = extension

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Identifier used in logs."""

    @abstractmethod
    async def list_documents(self, path_prefix: str = "") -> list[DocumentDescriptor]:
        """List rule documents, optionally scoped to *path_prefix*.

        Raises:
            SourceError: The listing itself failed.
        """

    @abstractmethod
    async def fetch_content(self, path: str) -> Optional[str]:
        """Raw document text, or None when it cannot be retrieved."""

    def is_rule_path(self, path: str, path_prefix: str = "") -> bool:
        """Rule extension, inside ``<root_marker>/<container>/``, under the prefix."""
        return (
            path.endswith(self.extension)
            and f"{self.root_marker}/{self.container}/" in path
            and (not path_prefix or path.startswith(path_prefix))
        )

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class GitHubRuleSource(RuleSource):
    """Rule documents in a GitHub repository branch, via the REST API."""

    def __init__(
        self,
        owner: str,
        repo: str,
        branch: str = "main",
        token: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        max_attempts: int = 3,
        min_wait: float = 2.0,
        max_wait: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        **layout,
    ):
        super().__init__(**layout)
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.client = client or httpx.AsyncClient(base_url=api_url, timeout=timeout)
        self.client.headers["Accept"] = "application/vnd.github+json"
        self.client.headers["User-Agent"] = "rulesync/0.1"
        if token:
            self.client.headers["Authorization"] = f"Bearer {token}"

        retrying = http_retry(max_attempts=max_attempts, min_wait=min_wait, max_wait=max_wait)
        self._get = retrying(self._get_once)

    @property
    def source_name(self) -> str:
        return f"github:{self.owner}/{self.repo}@{self.branch}"

    async def _get_once(self, url: str, **kwargs) -> httpx.Response:
        response = await self.client.get(url, **kwargs)
        response.raise_for_status()
        return response

    async def list_documents(self, path_prefix: str = "") -> list[DocumentDescriptor]:
        """Walk the branch tree recursively and keep rule blobs."""
        url = f"/repos/{self.owner}/{self.repo}/git/trees/{quote(self.branch, safe='')}"
        try:
            response = await self._get(url, params={"recursive": "1"})
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise SourceError(
                f"Listing {self.source_name} failed: HTTP {e.response.status_code}"
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise SourceError(f"Listing {self.source_name} failed: {e}") from e

        if data.get("truncated"):
            logger.warning("github_tree_truncated", source=self.source_name)

        documents = [
            DocumentDescriptor(path=item["path"], content_hash=item.get("sha"))
            for item in data.get("tree", [])
            if item.get("type") == "blob"
            and item.get("path")
            and self.is_rule_path(item["path"], path_prefix)
        ]
        logger.debug("github_documents_listed", source=self.source_name, count=len(documents))
        return documents

    async def fetch_content(self, path: str) -> Optional[str]:
        url = f"/repos/{self.owner}/{self.repo}/contents/{quote(path)}"
        try:
            response = await self._get(
                url,
                params={"ref": self.branch},
                headers={"Accept": "application/vnd.github.raw+json"},
            )
        except httpx.HTTPStatusError as e:
            logger.warning("github_fetch_failed", path=path, status=e.response.status_code)
            return None
        except httpx.RequestError as e:
            logger.warning("github_fetch_failed", path=path, error=str(e))
            return None
        return response.text

    async def close(self):
        await self.client.aclose()


def git_blob_sha(data: bytes) -> str:
    """SHA-1 in git blob form, so local hashes line up with GitHub tree shas."""
    header = f"blob {len(data)}\0".encode()
    return hashlib.sha1(header + data).hexdigest()


class LocalRuleSource(RuleSource):
    """Rule documents in a local checkout of the rules repository."""

    def __init__(self, root_dir: str | Path, **layout):
        super().__init__(**layout)
        self.root_dir = Path(root_dir).expanduser().resolve()

    @property
    def source_name(self) -> str:
        return f"local:{self.root_dir}"

    def _resolve(self, path: str) -> Path:
        """Resolve *path* under root_dir, rejecting escapes."""
        resolved = (self.root_dir / path).resolve()
        if not resolved.is_relative_to(self.root_dir):
            raise ValueError(f"Path escapes rules directory: {path}")
        return resolved

    def _scan(self, path_prefix: str) -> list[DocumentDescriptor]:
        if not self.root_dir.is_dir():
            raise SourceError(f"Rules directory not found: {self.root_dir}")
        documents = []
        for file in sorted(self.root_dir.rglob(f"*{self.extension}")):
            if not file.is_file():
                continue
            rel = file.relative_to(self.root_dir).as_posix()
            if self.is_rule_path(rel, path_prefix):
                documents.append(
                    DocumentDescriptor(path=rel, content_hash=git_blob_sha(file.read_bytes()))
                )
        return documents

    async def list_documents(self, path_prefix: str = "") -> list[DocumentDescriptor]:
        try:
            return await asyncio.to_thread(self._scan, path_prefix)
        except OSError as e:
            raise SourceError(f"Listing {self.source_name} failed: {e}") from e

    async def fetch_content(self, path: str) -> Optional[str]:
        try:
            file = self._resolve(path)
            return await asyncio.to_thread(file.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning("local_fetch_failed", path=path, error=str(e))
            return None
