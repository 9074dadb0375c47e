# Batch conversion - run the per-file pipeline over many files at once
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Sequence

from services.errors import BatchConversionError, EmptyInputError
from services.image_service import convert_one
from services.models import (
    BatchFailure, BatchPolicy, BatchResult, ConversionRequest, ProgressMode, SourceFile,
)
from services.progress import RunProgress

logger = logging.getLogger(__name__)


def convert_batch(
    files: Sequence[SourceFile],
    request: ConversionRequest,
    policy=BatchPolicy.FAIL_FAST,
    progress: Optional[RunProgress] = None,
    max_workers: Optional[int] = None,
) -> BatchResult:
    """
    Convert every file concurrently with the same request.

    Outputs keep the input order. With FAIL_FAST the first failure (in
    completion order) raises BatchConversionError and no outputs are returned.
    With PARTIAL the failures are collected next to the successful outputs.
    Without max_workers every file gets its own worker.
    """
    files = list(files)
    if not files:
        raise EmptyInputError("No files selected for conversion")
    policy = BatchPolicy(policy)
    if progress is None:
        progress = RunProgress(ProgressMode.COMPLETION)

    logger.info("Converting %d file(s) to %s (policy=%s)", len(files), request.format.value, policy.value)
    progress.start(len(files))

    results = [None] * len(files)
    failures = []
    executor = ThreadPoolExecutor(max_workers=max_workers or len(files))
    try:
        future_map = {executor.submit(convert_one, source, request): i for i, source in enumerate(files)}
        for future in as_completed(future_map):
            index = future_map[future]
            source = files[index]
            try:
                results[index] = future.result()
            except Exception as e:
                logger.warning("Conversion of %s failed: %s", source.filename, e)
                if policy is BatchPolicy.FAIL_FAST:
                    progress.fail()
                    raise BatchConversionError(str(e), filename=source.filename) from e
                failures.append(BatchFailure(index=index, filename=source.filename, message=str(e)))
            progress.file_done()
    finally:
        # Work already running is not interrupted; queued work is dropped
        executor.shutdown(wait=False, cancel_futures=True)

    progress.finish()
    failures.sort(key=lambda failure: failure.index)
    converted = [result for result in results if result is not None]
    logger.info("Converted %d of %d file(s)", len(converted), len(files))
    return BatchResult(files=converted, failures=failures)
