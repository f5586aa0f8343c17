"""Client for workflow apps."""

from collections.abc import Mapping
from typing import Any

from ..client import RequestDescriptor  # noqa: TID252
from ..constants import (  # noqa: TID252
    RESPONSE_MODE_STREAMING,
    WORKFLOW_LOG_STATUSES,
    WORKFLOW_LOGS_ENDPOINT,
    WORKFLOW_RUN_DETAIL_ENDPOINT,
    WORKFLOW_RUN_ENDPOINT,
    WORKFLOW_STOP_ENDPOINT,
)
from ..exceptions import ValidationError  # noqa: TID252
from ..streaming import AppType, WorkflowResult  # noqa: TID252
from .base import DifyClient, path_segment, require_text, validate_page_limit


class Workflow(DifyClient):
    """Client for workflow applications.

    A streamed run ends with ``workflow_finished``; the result carries the
    run's final ``outputs`` plus each finished node's outputs in order.
    """

    app_type = AppType.WORKFLOW
    stop_endpoint = WORKFLOW_STOP_ENDPOINT

    def run_workflow(
        self,
        inputs: Mapping[str, Any],
        user: str | None = None,
        *,
        response_mode: str = RESPONSE_MODE_STREAMING,
        files: list[dict[str, Any]] | None = None,
    ) -> WorkflowResult | dict[str, Any]:
        """Execute the workflow with ``inputs``."""
        if not isinstance(inputs, Mapping):
            raise ValidationError("inputs must be a mapping", field="inputs")

        payload: dict[str, Any] = {
            "inputs": dict(inputs),
            "response_mode": self._validate_response_mode(response_mode),
            "user": self._resolve_user(user),
        }
        file_list = self._validate_files(files)
        if file_list:
            payload["files"] = file_list
        return self._submit(WORKFLOW_RUN_ENDPOINT, payload, response_mode)

    def get_workflow_logs(
        self,
        *,
        keyword: str | None = None,
        status: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Execution logs, optionally filtered by keyword and status."""
        if status is not None and status not in WORKFLOW_LOG_STATUSES:
            raise ValidationError(
                f"status must be one of {sorted(WORKFLOW_LOG_STATUSES)}", field="status"
            )
        if page is not None and (isinstance(page, bool) or not isinstance(page, int) or page < 1):
            raise ValidationError("page must be a positive integer", field="page")
        params = {
            "keyword": keyword or None,
            "status": status,
            "page": page,
            "limit": validate_page_limit(limit),
        }
        return self.gateway.execute(
            RequestDescriptor("GET", WORKFLOW_LOGS_ENDPOINT, params=params)
        )

    def get_workflow_run_detail(self, workflow_run_id: str) -> dict[str, Any]:
        require_text(workflow_run_id, "workflow_run_id")
        return self.gateway.execute(
            RequestDescriptor(
                "GET",
                WORKFLOW_RUN_DETAIL_ENDPOINT.format(
                    workflow_run_id=path_segment(workflow_run_id)
                ),
            )
        )
