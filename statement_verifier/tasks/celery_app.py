"""Celery application and task definitions for background verification."""

import uuid
from typing import Any, Dict, Optional

from celery import Celery

from statement_verifier.analyzer.service import create_openai_client
from statement_verifier.config.settings import (
    CELERY_ACCEPT_CONTENT,
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_RESULT_SERIALIZER,
    CELERY_TASK_SERIALIZER,
    CELERY_TIMEZONE,
    Settings,
)
from statement_verifier.excel_generator.converter import ExcelReportConverter
from statement_verifier.pipeline.runner import PipelineStatus, StatementPipeline
from statement_verifier.utils.logger import ProcessingLogger

celery_app = Celery(
    "statement_verifier",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    task_serializer=CELERY_TASK_SERIALIZER,
    result_serializer=CELERY_RESULT_SERIALIZER,
    accept_content=CELERY_ACCEPT_CONTENT,
    timezone=CELERY_TIMEZONE,
)

celery_app.conf.update(
    task_routes={
        "analyze_statement": {"queue": "statement_verification"},
    },
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_max_tasks_per_child=1000,
)


@celery_app.task(bind=True, name="analyze_statement")
def analyze_statement(
    self,
    pdf_path: str,
    password: Optional[str] = None,
    report_dir: Optional[str] = None
) -> Dict[str, Any]:
    """Verify a statement PDF in the background.

    Failures are not retried; the exception is logged and re-raised so the
    task ends in the FAILURE state.

    Args:
        self: Celery task instance.
        pdf_path: Path to PDF file.
        password: Optional PDF password.
        report_dir: Directory for an Excel report; no report when None.

    Returns:
        Serialized PipelineResult, plus ``report_path`` when one was written.
    """
    task_id = self.request.id or uuid.uuid4().hex
    settings = Settings.from_env()
    settings.create_directories()
    processing_logger = ProcessingLogger(task_id, logs_dir=settings.logs_dir)

    try:
        processing_logger.log_start(pdf_path)
        pipeline = StatementPipeline.from_settings(settings, create_openai_client(settings))
        result = pipeline.run(pdf_path, password)

        output = result.to_dict()
        output["task_id"] = task_id
        output["report_path"] = None
        if report_dir and result.status is PipelineStatus.COMPLETED:
            output["report_path"] = ExcelReportConverter().create_report(result, report_dir)

        processing_logger.log_completion(result.status.value)
        return output

    except Exception as e:
        processing_logger.log_error(e, "statement verification")
        raise
