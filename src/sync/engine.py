"""Rule sync engine: reconcile documents from a rule source into the rule store."""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

import structlog
import structlog.contextvars

from observability import metrics
from rules.models import DEFAULT_VERSION, DocumentDescriptor, ParsedDocument, Rule, RuleVersion
from rules.parser import ParseOptions, parse_rule_document
from rules.paths import (
    DEFAULT_CONTAINER,
    DEFAULT_ROOT_MARKER,
    category_prefix,
    clean_path,
    extract_category_slug,
    rule_id_from_path,
    slugify_path,
)
from rules.storage import RuleStorage, utc_now
from shared_types import SyncOutcome, SyncType

from .categories import CategoryResolver
from .errors import FetchError
from .models import ReconcileOutcome, SyncResult
from .sources import RuleSource
from .sync_log import SyncLogger

logger = structlog.get_logger().bind(source="sync_engine")

DEFAULT_CONCURRENCY = 5


@dataclass
class SyncOptions:
    concurrency: int = DEFAULT_CONCURRENCY
    sync_type: str = SyncType.GITHUB
    # Units not started by then are skipped; in-flight units still finish
    deadline_seconds: Optional[float] = None
    root_marker: str = DEFAULT_ROOT_MARKER
    container: str = DEFAULT_CONTAINER
    parse_options: ParseOptions = field(default_factory=ParseOptions)


def build_rule(
    parsed: ParsedDocument,
    path: str,
    category_id: str,
    synced_at: str,
    raw_text: str,
) -> Rule:
    """Candidate rule record for *path* from its parsed document."""
    return Rule(
        id=rule_id_from_path(path),
        slug=slugify_path(path),
        path=path,
        title=parsed.title,
        description=parsed.description or "",
        content=parsed.content or raw_text,
        version=parsed.version or DEFAULT_VERSION,
        category_id=category_id,
        tags=parsed.tags or None,
        globs=parsed.globs or None,
        compatibility=parsed.compatibility,
        examples=parsed.examples or None,
        always_apply=parsed.always_apply or None,
        last_updated=synced_at,
    )


class RuleSyncEngine:
    """Runs sync over a rule source with bounded parallelism.

    Store calls are blocking and run in worker threads, so up to
    ``options.concurrency`` documents are truly in flight at once. A failing
    document never affects its siblings.
    """

    def __init__(
        self,
        source: RuleSource,
        storage: RuleStorage,
        options: Optional[SyncOptions] = None,
        resolver: Optional[CategoryResolver] = None,
        sync_logger: Optional[SyncLogger] = None,
    ):
        self.source = source
        self.storage = storage
        self.options = options or SyncOptions()
        if self.options.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.options.concurrency}")
        self.resolver = resolver or CategoryResolver(storage)
        self.sync_logger = sync_logger or SyncLogger(storage)

    # --- Reconciliation unit ---

    async def reconcile(
        self, descriptor: DocumentDescriptor, synced_at: Optional[str] = None
    ) -> ReconcileOutcome:
        """Fetch, parse, and upsert one document. Never raises."""
        synced_at = synced_at or utc_now()
        path = clean_path(descriptor.path)

        try:
            existing = await asyncio.to_thread(self.storage.get_rule_by_path, path)

            raw_text = await self.source.fetch_content(descriptor.path)
            if not raw_text:
                raise FetchError("Failed to get content")

            parsed, _ = parse_rule_document(raw_text, path, self.options.parse_options)

            slug = extract_category_slug(path, self.options.root_marker, self.options.container)
            category_id = await asyncio.to_thread(self.resolver.resolve, slug)

            rule = build_rule(parsed, path, category_id, synced_at, raw_text)
            if existing:
                await asyncio.to_thread(self.storage.update_rule, existing.id, rule)
                rule_id, status = existing.id, SyncOutcome.UPDATED
            else:
                rule_id = await asyncio.to_thread(self.storage.insert_rule, rule)
                status = SyncOutcome.ADDED
        except Exception as e:
            logger.warning(
                "rule_reconcile_failed",
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            metrics.counter("sync.errors")
            return ReconcileOutcome(path=path, status=SyncOutcome.ERROR, error=f"{path}: {e}")

        logger.debug("rule_reconciled", path=path, rule_id=rule_id, status=str(status))
        metrics.counter(f"sync.{status}")
        await self._append_version(rule_id, parsed, status)
        return ReconcileOutcome(path=path, status=status, rule_id=rule_id)

    async def _append_version(self, rule_id: str, parsed: ParsedDocument, status: SyncOutcome):
        """Record history for a reconciled rule. Failures are logged only."""
        action = "Created" if status == SyncOutcome.ADDED else "Updated"
        version = RuleVersion(
            rule_id=rule_id,
            version=parsed.version or DEFAULT_VERSION,
            content=parsed.content or "",
            changes=f"{action} via {self.options.sync_type} sync",
        )
        try:
            await asyncio.to_thread(self.storage.add_rule_version, version)
        except Exception as e:
            logger.error("rule_version_append_failed", rule_id=rule_id, error=str(e))

    # --- Concurrency controller ---

    async def _run(self, path_prefix: str, sync_type: str) -> SyncResult:
        run_id = uuid.uuid4().hex[:8]
        structlog.contextvars.bind_contextvars(run_id=run_id)
        # Summaries report this run only
        metrics.reset()
        start = time.monotonic()
        result = SyncResult(sync_type=sync_type)

        try:
            documents = await self.source.list_documents(path_prefix)
            logger.info(
                "sync_started",
                source=self.source.source_name,
                documents=len(documents),
                prefix=path_prefix or None,
                concurrency=self.options.concurrency,
            )

            synced_at = utc_now()
            semaphore = asyncio.Semaphore(self.options.concurrency)
            deadline = (
                start + self.options.deadline_seconds
                if self.options.deadline_seconds is not None
                else None
            )

            async def run_unit(descriptor: DocumentDescriptor) -> ReconcileOutcome:
                async with semaphore:
                    if deadline is not None and time.monotonic() > deadline:
                        return ReconcileOutcome(
                            path=descriptor.path,
                            status=SyncOutcome.SKIPPED,
                            error=f"{descriptor.path}: skipped, sync deadline exceeded",
                        )
                    return await self.reconcile(descriptor, synced_at)

            with metrics.timer("sync.duration"):
                outcomes = await asyncio.gather(
                    *(run_unit(d) for d in documents), return_exceptions=True
                )

            for descriptor, outcome in zip(documents, outcomes):
                if isinstance(outcome, BaseException):
                    result.errors.append(f"{descriptor.path}: {outcome}")
                else:
                    result.record(outcome)
        except Exception as e:
            logger.error("sync_failed", error=str(e), error_type=type(e).__name__)
            result.errors.append(f"Sync failed: {e}")
        finally:
            result.duration_ms = int((time.monotonic() - start) * 1000)
            await asyncio.to_thread(self.sync_logger.log, result)
            logger.info(
                "sync_completed",
                added=result.added,
                updated=result.updated,
                errors=len(result.errors),
                duration_ms=result.duration_ms,
            )
            structlog.contextvars.unbind_contextvars("run_id")

        return result

    async def sync_all(self) -> SyncResult:
        """Sync every rule document the source lists. Never raises."""
        return await self._run("", self.options.sync_type)

    async def sync_category(self, slug: str) -> SyncResult:
        """Sync only the documents under one category's subtree."""
        prefix = category_prefix(slug, self.options.root_marker, self.options.container)
        return await self._run(prefix, SyncType.CATEGORY)

    async def find_orphans(self) -> list[tuple[str, str]]:
        """Stored rules whose path the source no longer lists, as (path, rule_id).

        Read-only: orphaned rules are reported, never deleted.

        Raises:
            SourceError: The listing failed.
        """
        documents = await self.source.list_documents()
        listed = {clean_path(d.path) for d in documents}
        stored = await asyncio.to_thread(self.storage.list_rule_paths)
        return sorted((path, rule_id) for path, rule_id in stored.items() if path not in listed)


def run_sync(engine: RuleSyncEngine, category: Optional[str] = None) -> SyncResult:
    """Run a sync from synchronous code and close the engine's source afterwards."""

    async def _run() -> SyncResult:
        async with engine.source:
            if category:
                return await engine.sync_category(category)
            return await engine.sync_all()

    return asyncio.run(_run())
