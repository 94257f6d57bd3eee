"""Scheduled performance audits run by the huey consumer.

Start with ``huey_consumer.py tasks.huey``.
"""

import logging
import os
from functools import lru_cache
from typing import Any, Dict

from huey import SqliteHuey, crontab

from advisor.engine import PerformanceAdvisor
from advisor.errors import StoreConnectionError
from advisor.report_writer import save_report
from config import ConfigStorage, ConfigValidator

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

PROJECT_ROOT = os.environ.get('DB_ADVISOR_PROJECT_ROOT', os.getcwd())

os.makedirs(os.path.join(PROJECT_ROOT, '.db_advisor'), exist_ok=True)

huey = SqliteHuey(
    name='db-advisor-worker',
    filename=os.path.join(PROJECT_ROOT, '.db_advisor', 'huey_jobs.db'),
    immediate=False
)

logger = logging.getLogger('db-advisor.tasks')


@lru_cache(maxsize=8)
def get_advisor(project_root: str) -> PerformanceAdvisor:
    """Creates and caches one advisor per project."""
    config = ConfigStorage(project_root).load_effective()
    is_valid, errors = ConfigValidator().validate_config(config)
    if not is_valid:
        raise ValueError(f"Invalid advisor configuration: {'; '.join(errors)}")
    logger.info(f"Creating performance advisor for project: {project_root}")
    return PerformanceAdvisor.from_config(config)


def run_audit(project_root: str) -> Dict[str, Any]:
    """Generate and persist one report."""
    advisor = get_advisor(project_root)
    config = ConfigStorage(project_root).load_effective()
    report = advisor.generate_report()
    path = save_report(report, os.path.join(project_root, config.report_dir))
    logger.info(f"Scheduled audit finished: score {report.summary.performance_score}/100, saved to {path}")
    return {
        'success': True,
        'report_path': str(path),
        'performance_score': report.summary.performance_score,
        'critical_issues': report.summary.critical_issues
    }


@huey.periodic_task(crontab(minute='0', hour='3'))
def scheduled_audit() -> Dict[str, Any]:
    """Nightly audit of the configured store."""
    try:
        return run_audit(PROJECT_ROOT)
    except StoreConnectionError as e:
        logger.error(f"Scheduled audit skipped, store unreachable: {e}")
        return {'success': False, 'error': str(e)}


@huey.task(retries=2, retry_delay=60)
def auto_optimize_task(project_root: str, log_only: bool = False) -> Dict[str, Any]:
    """Create missing high-priority indexes.

    Connection failures are re-raised so huey retries the task.
    """
    logger.info(f"Running auto-optimize for {project_root} (log_only={log_only})")
    advisor = get_advisor(project_root)
    result = advisor.auto_optimize(log_only=log_only)
    logger.info(f"Auto-optimize finished: {result.created_count} created, "
                f"{result.skipped_count} skipped, {result.error_count} failed")
    return result.to_dict()
