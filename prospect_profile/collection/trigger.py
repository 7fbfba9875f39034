"""
Collection trigger and orchestrator.

State machine per assessment:

    IDLE --on_domain_known--> COLLECTING --all sources settled--> RECONCILED

The first time a domain becomes known, the website URL and a placeholder
name are suggested immediately and the three lookups (domain signals,
enrichment, website scrape) start concurrently. Each completion is applied
to the reconciler from a done-callback. A source settles when it succeeds,
fails, or outlives its time bound; a timed-out source's late result is
discarded.

A different domain starts a new pass. Completions belonging to a superseded
pass are discarded. Re-entering the company step with the same domain does
nothing.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from functools import partial

from prospect_profile.config import get_source_timeouts
from prospect_profile.domain.signals import (
    DomainSignal,
    collect_domain_signal,
    domain_candidates,
    domain_suggestions,
)
from prospect_profile.domain.validation import strip_domain
from prospect_profile.errors import EnrichmentFailure, SourceError
from prospect_profile.parsing.website_extraction import (
    ScrapeResult,
    scrape_candidates,
    scrape_website,
)
from prospect_profile.profile.models import Candidate
from prospect_profile.profile.reconciler import Decision, ProfileReconciler
from prospect_profile.sources.enrichment import (
    EnrichmentResult,
    enrich_by_domain,
    enrich_by_name,
    enrichment_candidates,
)

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No automatic data could be found for this domain"

SOURCES = ("domain", "enrichment", "scrape")


class TriggerState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    RECONCILED = "reconciled"


class SourceStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class SourceOutcome:
    status: SourceStatus = SourceStatus.PENDING
    detail: str = ""
    decisions: list[Decision] = field(default_factory=list)


@dataclass
class CollectionPass:
    """Bookkeeping for one run of the three lookups against one domain."""

    pass_id: int
    domain: str
    started_at: float
    deadlines: dict[str, float]
    outcomes: dict[str, SourceOutcome] = field(
        default_factory=lambda: {name: SourceOutcome() for name in SOURCES}
    )
    settled: threading.Event = field(default_factory=threading.Event)
    timers: list[threading.Timer] = field(default_factory=list)

    @property
    def pending(self) -> list[str]:
        return [n for n, o in self.outcomes.items() if o.status is SourceStatus.PENDING]

    @property
    def found_nothing(self) -> bool:
        return all(
            o.status in (SourceStatus.FAILED, SourceStatus.TIMED_OUT) for o in self.outcomes.values()
        )


def _domain_worker(lookup: Callable[[str], DomainSignal], domain: str, pass_id: int) -> list[Candidate]:
    return domain_candidates(lookup(domain), pass_id)


def _enrichment_worker(
    lookup: Callable[[str], EnrichmentResult], domain: str, pass_id: int
) -> list[Candidate]:
    result = lookup(domain)
    if not result.ok:
        raise EnrichmentFailure(result.failure, result.reason)
    return enrichment_candidates(result, pass_id)


def _scrape_worker(scrape: Callable[[str], ScrapeResult], domain: str, pass_id: int) -> list[Candidate]:
    result = scrape(domain)
    if not result.ok:
        raise result.error
    return scrape_candidates(result, pass_id)


class CollectionOrchestrator:
    """
    Runs collection passes for one assessment and feeds the reconciler.

    Args:
        reconciler: Engine owning the company profile
        domain_lookup: ``domain -> DomainSignal`` (raises DomainLookupError)
        enrichment_lookup: ``domain -> EnrichmentResult``
        scraper: ``domain -> ScrapeResult``
        timeouts: Per-source bounds in seconds keyed by source name
                  (defaults to configuration)
        clock: Monotonic clock used for deadlines
    """

    def __init__(
        self,
        reconciler: ProfileReconciler,
        domain_lookup: Callable[[str], DomainSignal] = collect_domain_signal,
        enrichment_lookup: Callable[[str], EnrichmentResult] = enrich_by_domain,
        scraper: Callable[[str], ScrapeResult] = scrape_website,
        timeouts: dict[str, float] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.reconciler = reconciler
        self._workers = {
            "domain": partial(_domain_worker, domain_lookup),
            "enrichment": partial(_enrichment_worker, enrichment_lookup),
            "scrape": partial(_scrape_worker, scraper),
        }
        self.timeouts = {**get_source_timeouts(), **(timeouts or {})}
        self._clock = clock
        self._lock = threading.RLock()
        self._state = TriggerState.IDLE
        self._domain: str | None = None
        self._pass: CollectionPass | None = None
        self._pass_counter = 0

    # ------------------------------------------------------------------
    # State

    @property
    def state(self) -> TriggerState:
        with self._lock:
            return self._state

    @property
    def domain(self) -> str | None:
        with self._lock:
            return self._domain

    @property
    def current_pass(self) -> CollectionPass | None:
        with self._lock:
            return self._pass

    @property
    def message(self) -> str | None:
        """NO_DATA_MESSAGE once every source of the current pass failed or timed out."""
        with self._lock:
            if self._state is TriggerState.RECONCILED and self._pass and self._pass.found_nothing:
                return NO_DATA_MESSAGE
            return None

    def source_statuses(self) -> dict[str, SourceStatus]:
        with self._lock:
            if self._pass is None:
                return {}
            return {name: o.status for name, o in self._pass.outcomes.items()}

    # ------------------------------------------------------------------
    # Triggers

    def on_domain_known(self, domain: str) -> bool:
        """
        The assessment's domain is known (or changed).

        Returns:
            True if a collection pass was started, False if the domain is the
            one already collected for

        Raises:
            ValueError: the input contains no domain at all
        """
        cleaned = strip_domain(domain)
        if not cleaned:
            raise ValueError(f"No domain in {domain!r}")

        with self._lock:
            if cleaned == self._domain and self._state is not TriggerState.IDLE:
                logger.debug(f"Domain {cleaned} already collected; not re-triggering")
                return False
            if self._pass is not None:
                self._cancel_timers(self._pass)
                logger.info(f"Domain changed to {cleaned}; superseding pass {self._pass.pass_id}")

            self._pass_counter += 1
            now = self._clock()
            collection = CollectionPass(
                pass_id=self._pass_counter,
                domain=cleaned,
                started_at=now,
                deadlines={name: now + self.timeouts[name] for name in SOURCES},
            )
            self._pass = collection
            self._domain = cleaned
            self._state = TriggerState.COLLECTING
            self.reconciler.apply_candidates(domain_suggestions(cleaned, collection.pass_id))

        logger.info(f"Collecting data for {cleaned} (pass {collection.pass_id})")
        self._start(collection)
        return True

    def on_step_entered(self, domain: str | None = None) -> bool:
        """
        The operator (re-)entered the company-information step.

        Starts a pass only if a domain is given and it differs from the one
        already collected for (or nothing has been collected yet).
        """
        if not domain:
            return False
        cleaned = strip_domain(domain)
        with self._lock:
            if cleaned == self._domain and self._state is not TriggerState.IDLE:
                return False
        return self.on_domain_known(cleaned)

    def lookup_by_name(self, name: str, location: str | None = None, client=None) -> EnrichmentResult:
        """
        Operator-requested enrichment by company name.

        Runs synchronously and applies any result as its own pass.
        """
        result = enrich_by_name(name, location, client=client)
        if result.ok:
            with self._lock:
                self._pass_counter += 1
                pass_id = self._pass_counter
            self.reconciler.apply_candidates(enrichment_candidates(result, pass_id))
        else:
            logger.info(f"Name lookup for {name!r} failed: {result.reason}")
        return result

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until the current pass settles.

        Never blocks past the largest per-source bound of the pass. Returns
        True if the pass settled.
        """
        with self._lock:
            collection = self._pass
        if collection is None:
            return True

        remaining = max(collection.deadlines.values()) - self._clock()
        limit = remaining if timeout is None else min(timeout, remaining)
        if collection.settled.wait(max(limit, 0)):
            return True
        self._expire_overdue(collection)
        return collection.settled.is_set()

    def close(self) -> None:
        """
        Cancel outstanding timers.

        Lookups already running keep going. A result that arrives within its
        bound is still applied; one that arrives later is marked timed out
        and discarded.
        """
        with self._lock:
            if self._pass is not None:
                self._cancel_timers(self._pass)

    # ------------------------------------------------------------------
    # Internals

    def _start(self, collection: CollectionPass) -> None:
        executor = ThreadPoolExecutor(
            max_workers=len(SOURCES), thread_name_prefix=f"collect-{collection.pass_id}"
        )
        try:
            for name in SOURCES:
                timer = threading.Timer(
                    self.timeouts[name], self._on_timeout, args=(collection, name)
                )
                timer.daemon = True
                collection.timers.append(timer)
                future = executor.submit(self._workers[name], collection.domain, collection.pass_id)
                future.add_done_callback(partial(self._on_done, collection, name))
                timer.start()
        finally:
            # Submitted lookups keep running; threads exit when they finish
            executor.shutdown(wait=False)

    def _on_done(self, collection: CollectionPass, name: str, future: Future) -> None:
        with self._lock:
            if collection is not self._pass:
                logger.debug(f"Discarding {name} result from superseded pass {collection.pass_id}")
                return
            outcome = collection.outcomes[name]
            if outcome.status is not SourceStatus.PENDING:
                logger.debug(f"Discarding late {name} result for {collection.domain}")
                return
            if self._clock() > collection.deadlines[name]:
                self._settle(collection, name, SourceStatus.TIMED_OUT, "result arrived after bound")
                return

            try:
                candidates = future.result()
            except SourceError as e:
                logger.info(f"{name} lookup failed for {collection.domain}: {e.kind.value} ({e.message})")
                self._settle(collection, name, SourceStatus.FAILED, e.kind.value)
                return
            except Exception as e:
                logger.warning(f"{name} lookup raised unexpectedly for {collection.domain}: {e}")
                self._settle(collection, name, SourceStatus.FAILED, str(e))
                return

            outcome.decisions = self.reconciler.apply_candidates(candidates)
            accepted = sum(1 for d in outcome.decisions if d.applied)
            self._settle(
                collection,
                name,
                SourceStatus.SUCCEEDED,
                f"{accepted}/{len(candidates)} candidates accepted",
            )

    def _on_timeout(self, collection: CollectionPass, name: str) -> None:
        with self._lock:
            if collection is not self._pass:
                return
            if collection.outcomes[name].status is SourceStatus.PENDING:
                logger.info(
                    f"{name} lookup for {collection.domain} timed out after {self.timeouts[name]}s"
                )
                self._settle(collection, name, SourceStatus.TIMED_OUT, "timed out")

    def _expire_overdue(self, collection: CollectionPass) -> None:
        now = self._clock()
        with self._lock:
            if collection is not self._pass:
                return
            for name in collection.pending:
                if now >= collection.deadlines[name]:
                    self._settle(collection, name, SourceStatus.TIMED_OUT, "timed out")

    def _settle(self, collection: CollectionPass, name: str, status: SourceStatus, detail: str) -> None:
        # Caller holds self._lock
        outcome = collection.outcomes[name]
        outcome.status = status
        outcome.detail = detail
        logger.debug(f"Pass {collection.pass_id} {name}: {status.value} ({detail})")

        if collection.pending:
            return
        self._cancel_timers(collection)
        self._state = TriggerState.RECONCILED
        collection.settled.set()
        if collection.found_nothing:
            logger.warning(f"{NO_DATA_MESSAGE}: {collection.domain}")
        else:
            logger.info(f"Collection for {collection.domain} reconciled (pass {collection.pass_id})")

    @staticmethod
    def _cancel_timers(collection: CollectionPass) -> None:
        for timer in collection.timers:
            timer.cancel()


def collect_profile(
    domain: str,
    store=None,
    company_id: str | None = None,
    wait_timeout: float | None = None,
    **sources,
) -> tuple[ProfileReconciler, CollectionOrchestrator]:
    """
    Run one collection pass for a domain and wait for it to settle.

    Args:
        domain: Prospect domain or URL
        store: Optional ProfileStore; the profile is loaded from and saved to it
        company_id: Store key (defaults to the normalized domain)
        wait_timeout: Stop waiting after this many seconds (results that
                      arrive later within their bound are still applied)
        **sources: Overrides for domain_lookup / enrichment_lookup / scraper / timeouts

    Returns:
        (reconciler, orchestrator) after the wait
    """
    cleaned = strip_domain(domain)
    reconciler = ProfileReconciler(company_id or cleaned, store=store)
    orchestrator = CollectionOrchestrator(reconciler, **sources)
    orchestrator.on_domain_known(cleaned)
    orchestrator.wait(wait_timeout)
    return reconciler, orchestrator
