from __future__ import annotations

import io
import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, Optional, Protocol, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from pypdf import PdfReader

from staffmatch import config
from staffmatch.errors import UpstreamDependencyError
from staffmatch.matching.types import RankedCandidate

logger = logging.getLogger(__name__)

_PDF_MAGIC = b"%PDF"


class DocumentTextExtractor(Protocol):
    def extract(self, url: str, *, timeout: float) -> str:
        """Return the document's text or raise UpstreamDependencyError."""
        ...


def pdf_bytes_to_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    parts = []
    for page in reader.pages:
        t = page.extract_text() or ""
        if t.strip():
            parts.append(t)
    return "\n".join(parts).strip()


class HttpDocumentExtractor:
    """
    Downloads a candidate's profile document and returns its text.
    PDFs go through pypdf; anything else is decoded as UTF-8 text.
    """

    def __init__(self, *, user_agent: str = config.USER_AGENT) -> None:
        self._user_agent = user_agent

    def _download(self, url: str, timeout: float) -> bytes:
        req = Request(url, headers={"User-Agent": self._user_agent})
        try:
            with urlopen(req, timeout=timeout) as resp:
                return resp.read()
        except (HTTPError, URLError, TimeoutError, OSError) as e:
            raise UpstreamDependencyError(
                f"Document download failed: {type(e).__name__}",
                stage="document",
                context={"url": url},
            ) from e

    def extract(self, url: str, *, timeout: float) -> str:
        data = self._download(url, timeout)
        if data[:4] == _PDF_MAGIC:
            try:
                text = pdf_bytes_to_text(data)
            except Exception as e:  # noqa: BLE001
                raise UpstreamDependencyError(
                    f"PDF text extraction failed: {type(e).__name__}",
                    stage="document",
                    context={"url": url},
                ) from e
        else:
            text = data.decode("utf-8", errors="replace").strip()
        if not text:
            raise UpstreamDependencyError("Document contains no text.", stage="document", context={"url": url})
        return text


def truncate_text(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def enrich_shortlist(
        shortlist: Sequence[RankedCandidate],
        extractor: DocumentTextExtractor,
        *,
        timeout_seconds: float,
        max_chars: int = config.DOCUMENT_MAX_CHARS,
        max_workers: int = config.MAX_DOCUMENT_WORKERS,
        deadline: Optional[float] = None,
) -> Dict[str, str]:
    """
    Fetch document text for every shortlisted candidate that has a document.

    Best-effort: a failed or slow fetch is logged and that candidate is left
    out of the returned mapping (candidate id -> truncated text). Siblings
    are unaffected. `deadline` is a time.monotonic() value capping the
    whole stage.
    """
    jobs = [(r.id, r.candidate.profile_document_url) for r in shortlist if r.candidate.profile_document_url]
    if not jobs:
        return {}

    budget = timeout_seconds
    if deadline is not None:
        budget = min(budget, max(0.0, deadline - time.monotonic()))
    if budget <= 0:
        logger.warning("Skipping document enrichment: request deadline already reached")
        return {}

    workers = max(1, min(len(jobs), max_workers))
    texts: Dict[str, str] = {}
    started = time.monotonic()

    pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="staffmatch-doc")
    try:
        futures = {pool.submit(extractor.extract, url, timeout=budget): cid for cid, url in jobs}
        done, not_done = wait(futures, timeout=budget)

        for fut in not_done:
            fut.cancel()
            logger.warning("Document fetch timed out after %.1fs (candidate=%s)", budget, futures[fut])

        for fut in done:
            cid = futures[fut]
            try:
                text = fut.result()
            except UpstreamDependencyError as exc:
                logger.warning("Document fetch failed (candidate=%s): %s", cid, exc)
                continue
            except Exception as exc:  # noqa: BLE001
                logger.warning("Document fetch failed (candidate=%s): %s", cid, type(exc).__name__)
                continue
            if text and text.strip():
                texts[cid] = truncate_text(text.strip(), max_chars)
    finally:
        # Do not block on stragglers; their results are discarded.
        pool.shutdown(wait=False, cancel_futures=True)

    logger.debug(
        "Document enrichment: %d/%d succeeded in %dms",
        len(texts), len(jobs), int((time.monotonic() - started) * 1000),
    )
    return texts
