"""
Celery tasks for gradebook app.
Handles background grade recomputation after scores or thresholds change.
"""
import logging

from celery import shared_task

from .services import recompute_section


logger = logging.getLogger(__name__)


@shared_task(max_retries=0)
def recompute_section_grades(section_id, student_ids=None):
    """
    Recompute and store all results for a section.

    Recomputation is deterministic, so failures are never retried; an
    invalid threshold configuration is reported in the returned summary.

    Args:
        section_id: Section to recompute
        student_ids: Optional roster; defaults to students with stored scores

    Returns:
        dict: JSON-serializable summary of the run
    """
    result = recompute_section(section_id, student_ids=student_ids)
    if not result.ok:
        logger.error(
            f"Grade recompute for section {section_id} blocked: "
            f"{result.threshold_validation.message}"
        )
    return result.as_dict()
