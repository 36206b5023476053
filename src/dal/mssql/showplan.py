"""Extract headline figures from SQL Server XML showplans."""

import re
from typing import Any, Dict, Optional

from common.sanitization.bounding import truncate_text

MAX_RAW_PLAN_CHARS = 5000

_EST_ROWS_RE = re.compile(r'StatementEstRows="([^"]+)"')
_SUBTREE_COST_RE = re.compile(r'EstimatedTotalSubtreeCost="([^"]+)"')
_MISSING_INDEX_RE = re.compile(r'<MissingIndexGroup[^>]*Impact="([^"]+)"[^>]*>')
_WARNINGS_RE = re.compile(r"<Warnings>(.*?)</Warnings>", re.DOTALL)
_SCAN_RE = re.compile(r'PhysicalOp="(?:Table Scan|Clustered Index Scan|Index Scan)"')
_SORT_RE = re.compile(r'PhysicalOp="Sort"')


def _to_float(raw: str) -> Optional[float]:
    try:
        return float(raw)
    except ValueError:
        return None


def parse_plan_xml(xml: str) -> Dict[str, Any]:
    """Summarize an estimated plan.

    The raw XML is kept, truncated, alongside the extracted estimates,
    missing-index impact, plan warnings, scan/sort counts and parallelism.
    """
    xml = xml or ""
    result: Dict[str, Any] = {"raw": truncate_text(xml, MAX_RAW_PLAN_CHARS)}

    match = _EST_ROWS_RE.search(xml)
    if match:
        result["estimated_rows"] = _to_float(match.group(1))

    match = _SUBTREE_COST_RE.search(xml)
    if match:
        result["estimated_cost"] = _to_float(match.group(1))

    match = _MISSING_INDEX_RE.search(xml)
    if match:
        result["missing_index_impact"] = _to_float(match.group(1))
        result["has_missing_index"] = True

    match = _WARNINGS_RE.search(xml)
    if match:
        result["plan_warnings"] = match.group(1)

    scan_count = len(_SCAN_RE.findall(xml))
    if scan_count:
        result["scan_operations"] = scan_count
        result["potential_issue"] = "Query uses table/index scans instead of seeks"

    if "Parallelism" in xml:
        result["uses_parallelism"] = True

    sort_count = len(_SORT_RE.findall(xml))
    if sort_count:
        result["sort_operations"] = sort_count

    return result
