"""Concurrent matrix execution of permutation test cases.

MatrixCoordinator owns the state shared by every case in one run: the
catalog/offering handle (created once, under its own lock) and the report
accumulator (under a separate lock). Cases are released in staggered
batches and then run concurrently. A case that raises fails alone.

Completion is tracked on the case tasks themselves. Once the last case has
been released the coordinator waits at most completion_timeout for the
stragglers, then finalizes the report with whatever has been recorded.
Running cases are never cancelled; drain() waits for them to finish.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from addonval.core import config as cfg
from addonval.core.logging import log_extra
from addonval.dependency.models import AddonTestCase
from addonval.exceptions import AddonValidationError
from addonval.naming.abbreviator import create_initial_abbreviation
from addonval.permutations.generator import generate_random_tag

from .report import PermutationReport, PermutationTestResult, collect_result

logger = logging.getLogger("addonval.orchestration.matrix")


@dataclass(frozen=True)
class CatalogHandle:
    """Catalog and offering created for a run, shared by all its cases."""
    catalog_id: str
    offering_id: str
    version_locator: str = ""


CatalogCreator = Callable[[], Awaitable[CatalogHandle]]
CaseRunner = Callable[[AddonTestCase, CatalogHandle], Awaitable[PermutationTestResult]]


def stagger_delay(
    index: int,
    stagger: float = cfg.STAGGER_DELAY_SECONDS,
    batch_size: int = cfg.STAGGER_BATCH_SIZE,
    within_batch: float = cfg.WITHIN_BATCH_DELAY_SECONDS,
) -> float:
    """Seconds to wait before releasing case `index`.

    Batched: batch * stagger + index_in_batch * within_batch.
    With batch_size 0 every case is staggered linearly: index * stagger.
    """
    if index <= 0:
        return 0.0
    if batch_size <= 0:
        return index * stagger
    batch, in_batch = divmod(index, batch_size)
    return batch * stagger + in_batch * within_batch


def project_name(random_tag: str, offering_name: str, case: AddonTestCase) -> str:
    """Project name for a case: {tag}-{offering}-{case}-{prefix}, abbreviated."""
    parts = [random_tag]
    if offering_name:
        parts.append(create_initial_abbreviation(offering_name))
    if case.name:
        parts.append(create_initial_abbreviation(case.name.lower()))
    parts.append(case.prefix)
    return "-".join(parts)


class MatrixCoordinator:
    """Runs every test case of one offering's permutation matrix.

    Args:
        offering_name: Root offering under test.
        cases: Test cases to run, in release order.
        runner: Coroutine executing one case against the shared catalog.
        catalog_creator: Coroutine creating the shared catalog/offering.
            Called at most once per coordinator.
        completion_timeout: Seconds to wait after the last case is released.
            None waits indefinitely.
    """

    def __init__(
        self,
        offering_name: str,
        cases: Sequence[AddonTestCase],
        runner: CaseRunner,
        catalog_creator: CatalogCreator,
        stagger: float = cfg.STAGGER_DELAY_SECONDS,
        batch_size: int = cfg.STAGGER_BATCH_SIZE,
        within_batch: float = cfg.WITHIN_BATCH_DELAY_SECONDS,
        completion_timeout: Optional[float] = cfg.MATRIX_COMPLETION_TIMEOUT_SECONDS,
        random_tag: Optional[str] = None,
    ):
        self.offering_name = offering_name
        self.cases = list(cases)
        self.runner = runner
        self.catalog_creator = catalog_creator
        self.stagger = stagger
        self.batch_size = batch_size
        self.within_batch = within_batch
        self.completion_timeout = completion_timeout
        self.random_tag = random_tag or generate_random_tag()

        self._catalog: Optional[CatalogHandle] = None
        self._catalog_lock = asyncio.Lock()
        self._results: List[PermutationTestResult] = []
        self._result_lock = asyncio.Lock()
        self._released_count = 0
        self._all_released = asyncio.Event()
        self._tasks: List["asyncio.Future[None]"] = []

    def delay_for(self, index: int) -> float:
        return stagger_delay(index, self.stagger, self.batch_size, self.within_batch)

    def project_name_for(self, case: AddonTestCase) -> str:
        return project_name(self.random_tag, self.offering_name, case)

    async def get_catalog(self) -> CatalogHandle:
        """Return the shared catalog handle, creating it on first use.

        The lock is held for the whole creation so later callers never see a
        half-built handle. A failed creation leaves the handle unset and the
        next caller tries again.
        """
        async with self._catalog_lock:
            if self._catalog is None:
                extra = log_extra(offering=self.offering_name)
                logger.info(f"Creating shared catalog for {self.offering_name}", extra=extra)
                self._catalog = await self.catalog_creator()
                logger.info(
                    f"Shared catalog ready: catalog={self._catalog.catalog_id} "
                    f"offering={self._catalog.offering_id}",
                    extra=extra,
                )
            return self._catalog

    async def _record(self, result: PermutationTestResult) -> None:
        async with self._result_lock:
            self._results.append(result)

    def _released(self) -> None:
        self._released_count += 1
        if self._released_count == len(self.cases):
            self._all_released.set()

    async def _run_case(self, index: int, case: AddonTestCase) -> None:
        extra = log_extra(test_case=case.name, prefix=case.prefix, offering=self.offering_name)
        delay = self.delay_for(index)
        if delay > 0:
            logger.debug(f"Releasing {case.name} in {delay:.1f}s", extra=extra)
            await asyncio.sleep(delay)
        self._released()

        try:
            catalog = await self.get_catalog()
            result = await self.runner(case, catalog)
        except AddonValidationError as e:
            logger.error(f"Test case {case.name} failed: {e}", extra=extra)
            result = collect_result(case.name, case.prefix, error=e)
        except Exception as e:
            logger.exception(f"Test case {case.name} raised {type(e).__name__}", extra=extra)
            result = collect_result(
                case.name,
                case.prefix,
                error=f"runtime error: {type(e).__name__}: {e}",
            )
        await self._record(result)
        logger.info(
            f"Test case {case.name} {'passed' if result.passed else 'failed'}", extra=extra
        )

    async def run(self) -> PermutationReport:
        """Run all cases and return the aggregate report.

        The completion timeout starts once every case has been released. When
        it elapses the report carries whatever results were recorded and is
        marked timed out; unfinished cases keep running (see drain()).
        """
        report = PermutationReport(offering_name=self.offering_name, expected_total=len(self.cases))
        if not self.cases:
            return report

        logger.info(
            f"Running {len(self.cases)} permutation cases for {self.offering_name}",
            extra=log_extra(offering=self.offering_name),
        )
        self._tasks = [
            asyncio.ensure_future(self._run_case(i, case))
            for i, case in enumerate(self.cases)
        ]

        await self._all_released.wait()
        _, pending = await asyncio.wait(self._tasks, timeout=self.completion_timeout)
        if pending:
            report.timed_out = True
            logger.warning(
                f"Matrix completion timed out after {self.completion_timeout:.1f}s; "
                f"{len(pending)} cases still running, reporting available results",
                extra=log_extra(offering=self.offering_name),
            )

        async with self._result_lock:
            for result in self._results:
                report.add(result)

        logger.info(
            f"Matrix complete: {report.passed_tests}/{report.total_tests} passed "
            f"({report.expected_total} cases)",
            extra=log_extra(offering=self.offering_name),
        )
        return report

    async def drain(self) -> None:
        """Wait for cases still running after a timed-out run()."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
