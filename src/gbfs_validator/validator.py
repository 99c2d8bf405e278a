"""Feed validator: drive one validation run from manifest URL to report.

ARCHITECTURE
────────────
::

    FeedValidator.validate(url)
      ├── manifest      ─ fetch (+ gbfs.json fallback), coerce, structure
      ├── version       ─ override > manifest "version" > "1.0"
      ├── documents     ─ one task per expected document, Semaphore-bounded
      │                   fetch → (lenient) coerce → structure
      ├── cross_validate ─ pure pass over the joined results
      └── ValidationReport

The run deadline (``run_timeout``) covers the manifest fetch and the
document phase. When it expires, unfinished document tasks are cancelled
and reported as "run deadline exceeded"; finished ones are kept.

Nothing in a run raises for feed problems. Transport failures, parse
failures and rule violations all end up as issues in the report.

Example::

    validator = FeedValidator(ValidationOptions(docked=True, lenient_mode=True))
    report = await validator.validate("https://example.com/gbfs/gbfs.json")
    print(report.summary.errors_count)
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from gbfs_validator.core.errors import DeadlineExceededError, ParseError
from gbfs_validator.core.settings import ValidatorSettings, get_settings
from gbfs_validator.feeds.coerce import Coercer
from gbfs_validator.feeds.crossref import cross_validate
from gbfs_validator.feeds.models import ManifestDocument, decode
from gbfs_validator.feeds.options import ValidationOptions
from gbfs_validator.feeds.report import (
    CoercionRecord,
    CoercionSummary,
    FileValidationResult,
    ValidationIssue,
    ValidationReport,
    ValidationSummary,
    VersionInfo,
)
from gbfs_validator.feeds.rules import error, load_document
from gbfs_validator.feeds.structure import validate_structure
from gbfs_validator.feeds.versions import DEFAULT_VERSION, DocumentDescriptor, is_manifest_required, requirements
from gbfs_validator.framework.logging import bind_context, get_logger, log_step, new_run_id, scoped_context
from gbfs_validator.framework.sources import Failed, FeedSource, FetchOutcome, Found, HttpSource, NotFound
from gbfs_validator.framework.sources.http import build_feed_url

logger = get_logger(__name__)

MANIFEST = "gbfs"


class FeedValidator:
    """Validate a GBFS feed starting from its manifest URL.

    Parameters
    ----------
    options : ValidationOptions
        Version override, deployment flags, lenient mode, auth.
    settings : ValidatorSettings
        Timeouts, concurrency, user agent (default: :func:`get_settings`).
    transport : httpx.AsyncBaseTransport
        Optional transport for the internal client (tests use
        ``httpx.MockTransport``).
    """

    def __init__(
        self,
        options: ValidationOptions | None = None,
        *,
        settings: ValidatorSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.options = options or ValidationOptions()
        self.settings = settings or get_settings()
        self._transport = transport
        coerce_options = self.options.effective_coerce_options()
        self._coercer = Coercer(coerce_options) if coerce_options is not None else None

    # ── Entry points ─────────────────────────────────────────────────

    async def validate(self, url: str) -> ValidationReport:
        """Run a full validation of the feed published at ``url``."""
        with scoped_context(run_id=new_run_id(), manifest_url=url):
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self.settings.request_timeout,
                follow_redirects=True,
            ) as client:
                source = HttpSource(client, auth=self.options.auth, user_agent=self.settings.user_agent)
                try:
                    with log_step("validate.run", lenient=self.options.lenient_mode) as timer:
                        report = await self._run(source, url)
                        timer.add_metric("errors_count", report.summary.errors_count)
                        timer.add_metric("files", len(report.files))
                    return report
                finally:
                    await source.aclose()

    def validate_sync(self, url: str) -> ValidationReport:
        """Blocking wrapper around :meth:`validate` for scripts and the CLI."""
        return asyncio.run(self.validate(url))

    # ── Run ──────────────────────────────────────────────────────────

    async def _run(self, source: FeedSource, url: str) -> ValidationReport:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.run_timeout

        with log_step("validate.manifest"):
            manifest, document = await self._validate_manifest(source, url, deadline)

        if document is None:
            logger.warning("validate.manifest_unusable", exists=manifest.exists, issues=manifest.errors_count)
            return self._report(
                VersionInfo(validated=self.options.version),
                [manifest],
                version_unimplemented=True,
            )

        parsed = decode(ManifestDocument, manifest.body)
        feed_urls = parsed.feed_urls() if parsed is not None else {}
        detected = (parsed.version if parsed is not None else None) or DEFAULT_VERSION
        validated = self.options.version or detected
        descriptors = requirements(validated, self.options.flags)

        with scoped_context(version=validated):
            with log_step("validate.documents", documents=len(descriptors), listed=len(feed_urls)):
                results = await self._validate_documents(source, descriptors, feed_urls, deadline)

            with log_step("validate.crossref", level="debug"):
                results = cross_validate(results, validated)

        # Policy order first, then documents only cross-reference added
        expected = [d.name for d in descriptors]
        ordered = [results[name] for name in expected]
        ordered.extend(r for name, r in results.items() if name not in expected)
        return self._report(VersionInfo(detected=detected, validated=validated), [manifest, *ordered])

    def _report(
        self,
        version: VersionInfo,
        files: list[FileValidationResult],
        *,
        version_unimplemented: bool = False,
    ) -> ValidationReport:
        errors_count = sum(f.errors_count for f in files)
        coercions: list[CoercionRecord] = [c for f in files for c in f.coercions]
        summary = ValidationSummary(
            version=version,
            has_errors=errors_count > 0,
            errors_count=errors_count,
            version_unimplemented=version_unimplemented,
            lenient_mode=self.options.lenient_mode,
            coercion_summary=(
                CoercionSummary.from_records(coercions) if self.options.lenient_mode and coercions else None
            ),
        )
        return ValidationReport(summary=summary, files=tuple(files))

    # ── Manifest ─────────────────────────────────────────────────────

    async def _fetch_manifest(self, source: FeedSource, url: str) -> tuple[str, FetchOutcome]:
        outcome = await source.fetch(url)
        if not isinstance(outcome, Found) and not url.endswith("gbfs.json"):
            fallback = build_feed_url(url, MANIFEST)
            logger.info("validate.manifest_fallback", fallback_url=fallback)
            retry = await source.fetch(fallback)
            if isinstance(retry, Found):
                return fallback, retry
        return url, outcome

    async def _validate_manifest(
        self,
        source: FeedSource,
        url: str,
        deadline: float,
    ) -> tuple[FileValidationResult, dict[str, Any] | None]:
        remaining = max(deadline - asyncio.get_running_loop().time(), 0)
        try:
            url, outcome = await asyncio.wait_for(self._fetch_manifest(source, url), timeout=remaining)
        except TimeoutError:
            outcome = Failed(DeadlineExceededError().with_context(document=MANIFEST, url=url))

        result = FileValidationResult(name=MANIFEST, url=url, required=True)
        if isinstance(outcome, NotFound):
            if is_manifest_required(self.options.version):
                return result.with_issues(error("gbfs.json is required but not found")), None
            return result, None
        if isinstance(outcome, Failed):
            return result.with_issues(error(f"gbfs.json could not be fetched: {outcome.message}")), None

        body, coercions = self._coerce(outcome.body, MANIFEST)
        try:
            document = load_document(body)
        except ParseError as e:
            issue = error(f"Failed to parse gbfs.json: {e.message}")
            return result.with_issues(issue, exists=True, body=body), None

        issues = validate_structure(body, MANIFEST)
        return result.with_issues(*issues, exists=True, body=body, coercions=coercions), document

    # ── Documents ────────────────────────────────────────────────────

    async def _validate_documents(
        self,
        source: FeedSource,
        descriptors: tuple[DocumentDescriptor, ...],
        feed_urls: dict[str, str],
        deadline: float,
    ) -> dict[str, FileValidationResult]:
        sem = asyncio.Semaphore(self.settings.max_concurrency)
        results: dict[str, FileValidationResult] = {}
        tasks: dict[asyncio.Task[FileValidationResult], DocumentDescriptor] = {}

        async def _run_one(descriptor: DocumentDescriptor, url: str) -> FileValidationResult:
            bind_context(document=descriptor.name)
            async with sem:
                outcome = await source.fetch(url)
            return self._assess(descriptor, url, outcome)

        for descriptor in descriptors:
            url = feed_urls.get(descriptor.name)
            if url is None:
                results[descriptor.name] = self._unlisted(descriptor)
                continue
            task = asyncio.create_task(_run_one(descriptor, url), name=f"validate:{descriptor.name}")
            tasks[task] = descriptor

        if tasks:
            remaining = max(deadline - asyncio.get_running_loop().time(), 0)
            _, pending = await asyncio.wait(tasks, timeout=remaining)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

            expired = []
            for task, descriptor in tasks.items():
                url = feed_urls[descriptor.name]
                # a task can finish between the wait returning and cancel()
                if task.done() and not task.cancelled():
                    results[descriptor.name] = task.result()
                else:
                    expired.append(descriptor.name)
                    failure = DeadlineExceededError().with_context(document=descriptor.name, url=url)
                    results[descriptor.name] = self._assess(descriptor, url, Failed(failure))
            if expired:
                logger.warning("validate.deadline_exceeded", pending=sorted(expired))

        return results

    def _unlisted(self, descriptor: DocumentDescriptor) -> FileValidationResult:
        result = FileValidationResult(name=descriptor.name, required=descriptor.required)
        if descriptor.required:
            return result.with_issues(error(f"Required file {descriptor.file} not found in autodiscovery"))
        return result

    def _assess(self, descriptor: DocumentDescriptor, url: str, outcome: FetchOutcome) -> FileValidationResult:
        result = FileValidationResult(name=descriptor.name, url=url, required=descriptor.required)
        issues: list[ValidationIssue] = []

        match outcome:
            case Found(body=body):
                body, coercions = self._coerce(body, descriptor.name)
                issues = validate_structure(body, descriptor.name)
                result = result.with_issues(*issues, exists=True, body=body, coercions=coercions)
            case NotFound():
                if descriptor.required:
                    issues.append(error(f"Required file {descriptor.file} not found (HTTP 404)"))
                result = result.with_issues(*issues)
            case Failed(error=failure):
                prefix = "Required file" if descriptor.required else "File"
                issues.append(error(f"{prefix} {descriptor.file} could not be fetched: {failure.message}"))
                result = result.with_issues(*issues)

        logger.debug(
            "validate.document",
            document=descriptor.name,
            exists=result.exists,
            issues=result.errors_count,
            coercions=result.coercion_count,
        )
        return result

    def _coerce(self, body: bytes, document_type: str) -> tuple[bytes, tuple[CoercionRecord, ...]]:
        """Lenient-mode normalization; bodies that cannot be normalized pass through untouched."""
        if self._coercer is None:
            return body, ()
        try:
            coerced = self._coercer.coerce(body, document_type)
        except ParseError:
            return body, ()
        except (ValueError, OverflowError) as e:
            logger.warning("coerce.skipped", document=document_type, error_type=type(e).__name__, error_message=str(e))
            return body, ()
        return coerced.data, tuple(coerced.log)
