"""JSON output of reconciliation results."""

from pathlib import Path
from typing import Any
import json
import logging

from ..config import ReconConfig
from ..models.transaction import ReconciliationResult
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)


def result_to_dict(result: ReconciliationResult) -> dict[str, Any]:
    """
    Serialize a result for the persistence layer.

    ``transactions`` is the update set in order (new, then updated); the
    other lists break it down for review.
    """
    return {
        "summary": result.summary(),
        "transactions": [t.to_record() for t in result.transactions],
        "new": [t.to_record() for t in result.new],
        "recovered": [t.to_record() for t in result.recovered],
        "updated": [t.to_record() for t in result.updated],
        "dropped": [t.to_record() for t in result.dropped],
        "gap_events": [
            {
                "identifier": e.identifier,
                "kind": e.kind.value,
                "upstream_count": e.upstream_count,
                "local_count": e.local_count,
            }
            for e in result.gap_events
        ],
    }


def write_json_report(
    result: ReconciliationResult, output_path: Path, config: ReconConfig
) -> Path:
    """
    Write the result as JSON.

    Raises:
        ReportGenerationError: If the file cannot be written
    """
    logger.info(f"Writing JSON result: {output_path}")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(
                result_to_dict(result),
                f,
                indent=config.output.json_output.indent,
                default=str,
            )
    except OSError as e:
        raise ReportGenerationError(f"Failed to write {output_path}: {e}") from e

    return output_path
