"""MCP tool definitions for the database performance advisor."""

import logging
from typing import Any, Dict, List

from mcp.types import Tool

from advisor.errors import StoreConnectionError
from advisor.report import score_rating

logger = logging.getLogger(__name__)


def get_tools() -> List[Tool]:
    """Return all available MCP tools."""
    return [
        Tool(
            name="performance_report",
            description="""Generate a full database performance report: current indexes and storage sizes per monitored collection, missing indexes with priorities, query latency breakdown per collection and operation, duplicate request issues, image serving hints and an overall performance score (0-100).

Read-only. Use auto_optimize to act on the missing high-priority indexes.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "include_metadata": {
                        "type": "boolean",
                        "description": "Include the per-collection index listing",
                        "default": True
                    }
                },
                "required": []
            }
        ),
        Tool(
            name="missing_indexes",
            description="List expected indexes that monitored collections do not have, with the reason and priority of each.",
            inputSchema={
                "type": "object",
                "properties": {
                    "priority": {
                        "type": "string",
                        "description": "Only return recommendations of this priority",
                        "enum": ["high", "medium", "low"]
                    }
                },
                "required": []
            }
        ),
        Tool(
            name="query_stats",
            description="Return execution-time statistics per collection and operation recorded since the last reset, plus the recent slow query log.",
            inputSchema={
                "type": "object",
                "properties": {
                    "include_samples": {
                        "type": "boolean",
                        "description": "Include the recent samples kept for each key",
                        "default": False
                    }
                },
                "required": []
            }
        ),
        Tool(
            name="reset_query_stats",
            description="Clear all recorded query statistics and the slow query log.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="auto_optimize",
            description="Create the missing high-priority indexes. Indexes that already exist with the same fields and directions are skipped. Set log_only to preview without changing the database.",
            inputSchema={
                "type": "object",
                "properties": {
                    "log_only": {
                        "type": "boolean",
                        "description": "Only report what would be created",
                        "default": False
                    }
                },
                "required": []
            }
        )
    ]


def handle_tool_call(advisor, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Run one tool against *advisor* and return a JSON-serializable result.

    Connection failures come back as ``{"error": ...}`` payloads.
    """
    arguments = arguments or {}
    try:
        if name == "performance_report":
            report = advisor.generate_report()
            data = report.to_dict()
            if not arguments.get("include_metadata", True):
                data.pop('index_metadata', None)
            rating, description = score_rating(report.summary.performance_score)
            data['summary']['rating'] = rating
            data['summary']['description'] = description
            return data

        elif name == "missing_indexes":
            advisor.store.ping()
            compiler = advisor.compiler
            recommendations = compiler.gap_analyzer.analyze(compiler.read_metadata())
            priority = arguments.get("priority")
            if priority:
                recommendations = [r for r in recommendations if r.priority == priority]
            return {
                'missing_indexes': [r.to_dict() for r in recommendations],
                'count': len(recommendations)
            }

        elif name == "query_stats":
            include_samples = arguments.get("include_samples", False)
            stats = advisor.get_stats()
            return {
                'stats': [{**key.to_dict(), **s.to_dict(include_samples=include_samples)}
                          for key, s in stats.items()],
                'slow_queries': [r.to_dict() for r in advisor.recorder.get_slow_queries()]
            }

        elif name == "reset_query_stats":
            advisor.clear()
            return {'success': True, 'message': 'Query statistics reset'}

        elif name == "auto_optimize":
            result = advisor.auto_optimize(log_only=arguments.get("log_only", False))
            return result.to_dict()

        else:
            return {'error': f"Unknown tool: {name}"}

    except StoreConnectionError as e:
        logger.error(f"Tool {name} failed: {e}")
        return {'error': str(e)}
