"""
Call-site instrumentation for imports.
"""

import logging
import time

from docimport.core.contracts import ImportRequest, ImportResult
from docimport.core.errors import DocumentImportError

logger = logging.getLogger(__name__)


async def traced_import(
    normalizer, request: ImportRequest, span_name: str = "documentImporter"
) -> ImportResult:
    """
    Run `normalizer.normalize(request)` and log its duration and outcome.

    Errors are logged and re-raised unchanged.
    """
    start = time.perf_counter()
    logger.info(
        "%s started: file=%s mime_type=%s actor=%s",
        span_name, request.file_name, request.mime_type, request.actor.id,
    )
    try:
        result = await normalizer.normalize(request)
    except DocumentImportError as e:
        elapsed = (time.perf_counter() - start) * 1000
        logger.warning("%s failed after %.2f ms: %s", span_name, elapsed, e)
        raise
    except Exception:
        elapsed = (time.perf_counter() - start) * 1000
        logger.exception("%s errored after %.2f ms", span_name, elapsed)
        raise

    elapsed = (time.perf_counter() - start) * 1000
    logger.info(
        "%s completed in %.2f ms: title=%r state=%d bytes",
        span_name, elapsed, result.title, len(result.state),
    )
    return result
