"""Persisting reports and rendering them for operators."""

import json
import logging
from pathlib import Path
from typing import List, Optional

from .models import AutoOptimizeResult, PerformanceReport, PRIORITY_HIGH, PRIORITY_MEDIUM
from .report import score_rating

logger = logging.getLogger(__name__)

PRIORITY_GLYPHS = {PRIORITY_HIGH: '🔴', PRIORITY_MEDIUM: '🟡'}
DEFAULT_GLYPH = '🟢'

RULE = '=' * 60


def report_filename(report: PerformanceReport, sequence: int = 0) -> str:
    stamp = report.timestamp.strftime('%Y%m%d-%H%M%S')
    if sequence:
        return f"performance-audit-{stamp}-{sequence}.json"
    return f"performance-audit-{stamp}.json"


def _unused_target(out_dir: Path, report: PerformanceReport) -> Path:
    """First artifact path not already taken by an audit from the same second."""
    sequence = 0
    target = out_dir / report_filename(report)
    while target.exists() or target.with_suffix('.tmp').exists():
        sequence += 1
        target = out_dir / report_filename(report, sequence)
    return target


def save_report(report: PerformanceReport, directory: str,
                auto_optimize_result: Optional[AutoOptimizeResult] = None) -> Path:
    """Write the report (and any auto-optimization outcome) as JSON.

    Returns:
        Path of the written artifact
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    target = _unused_target(out_dir, report)

    data = report.to_dict()
    if auto_optimize_result is not None:
        data['auto_optimization'] = auto_optimize_result.to_dict()

    temp_file = target.with_suffix('.tmp')
    try:
        with open(temp_file, 'w') as f:
            json.dump(data, f, indent=2, default=str)
        temp_file.replace(target)
    except Exception:
        if temp_file.exists():
            temp_file.unlink()
        raise

    logger.info(f"Performance report saved to {target}")
    return target


def _mb(num_bytes: int) -> str:
    return f"{num_bytes / 1024 / 1024:.2f} MB"


def render_text_summary(report: PerformanceReport,
                        auto_optimize_result: Optional[AutoOptimizeResult] = None) -> str:
    """Human-readable multi-section summary of a report."""
    lines: List[str] = []
    summary = report.summary
    rating, description = score_rating(summary.performance_score)

    lines.append(RULE)
    lines.append("DATABASE PERFORMANCE AUDIT")
    lines.append(RULE)
    lines.append(f"Generated: {report.timestamp.isoformat()}")
    lines.append(f"Performance score: {summary.performance_score}/100 ({rating})")
    lines.append(f"Critical issues: {summary.critical_issues}")
    lines.append(f"Recommendations: {summary.recommendation_count}")

    lines.append("")
    lines.append("INDEXES")
    lines.append("-" * 60)
    if not report.index_metadata:
        lines.append("  No collections inspected")
    for name, info in report.index_metadata.items():
        if not info.ok:
            lines.append(f"  {name}: ERROR {info.error}")
            continue
        lines.append(f"  {name}: {len(info.indexes)} indexes, {info.document_count} documents, "
                     f"data {_mb(info.storage_bytes)}, indexes {_mb(info.index_bytes)}")
        for index in info.indexes:
            lines.append(f"    - {index.name or index.default_name()}: {index.describe()}")

    lines.append("")
    lines.append("MISSING INDEXES")
    lines.append("-" * 60)
    if not report.missing_indexes:
        lines.append("  None")
    for rec in report.missing_indexes:
        glyph = PRIORITY_GLYPHS.get(rec.priority, DEFAULT_GLYPH)
        lines.append(f"  {glyph} [{rec.priority}] {rec.collection} ({rec.index_spec.describe()})")
        lines.append(f"     {rec.reason}")

    lines.append("")
    lines.append("QUERY PERFORMANCE")
    lines.append("-" * 60)
    perf = report.query_performance
    lines.append(f"  Total queries: {perf.total_queries}")
    lines.append(f"  Slow queries: {perf.slow_query_count}")
    lines.append(f"  Average execution time: {perf.avg_execution_time_ms}ms")
    for stats in perf.sorted_breakdown():
        lines.append(f"    {stats['collection']}.{stats['operation']}: {stats['count']} calls, "
                     f"avg {stats['avg_time_ms']}ms, max {stats['max_time_ms']}ms, "
                     f"{stats['slow_query_percentage']}% slow")

    if report.duplicate_issues:
        lines.append("")
        lines.append("DUPLICATE REQUESTS")
        lines.append("-" * 60)
        for issue in report.duplicate_issues:
            lines.append(f"  {issue.query_key}: {issue.instance_count} identical queries, "
                         f"{issue.time_difference_ms:.0f}ms apart")
            lines.append(f"    query: {issue.serialized_query}")
        for suggestion in report.duplicate_suggestions:
            lines.append(f"  * {suggestion}")

    if report.image_recommendations:
        lines.append("")
        lines.append("IMAGES")
        lines.append("-" * 60)
        for rec in report.image_recommendations:
            lines.append(f"  [{rec.type}] {rec.issue}")
            for suggestion in rec.suggestions:
                lines.append(f"    * {suggestion}")

    if auto_optimize_result is not None:
        lines.append("")
        lines.append("AUTO-OPTIMIZATION")
        lines.append("-" * 60)
        lines.append(f"  Created: {auto_optimize_result.created_count}")
        lines.append(f"  Already present: {auto_optimize_result.skipped_count}")
        lines.append(f"  Failed: {auto_optimize_result.error_count}")
        for result in auto_optimize_result.created:
            lines.append(f"    + {result.collection}.{result.index_name}")
        for error in auto_optimize_result.errors:
            lines.append(f"    ! {error}")

    if report.errors:
        lines.append("")
        lines.append("ERRORS")
        lines.append("-" * 60)
        for error in report.errors:
            lines.append(f"  ! {error}")

    lines.append("")
    lines.append(RULE)
    lines.append(f"{description}")
    lines.append(RULE)
    return "\n".join(lines)
