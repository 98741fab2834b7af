from __future__ import annotations

import enum
import logging
from typing import Any

from formbuilder.documents import is_accepting_submissions
from formbuilder.errors import FormNotPublishedError
from formbuilder.ordering import reorder_for_display
from formbuilder.protocols import SubmissionRepository
from formbuilder.schema import default_values, validate_answers

logger = logging.getLogger(__name__)


class CollectorState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    SUBMITTED = "submitted"


class SubmissionCollector:
    """Validates one respondent's answers against a published form.

    ``submit`` walks ``IDLE -> VALIDATING`` and then either
    ``VALID -> SUBMITTED`` (a submission is stored) or ``INVALID -> IDLE``
    (``errors`` holds one message per failing field and ``values`` keeps what
    the respondent entered).
    """

    def __init__(self, form: dict[str, Any], submissions: SubmissionRepository) -> None:
        if not is_accepting_submissions(form):
            raise FormNotPublishedError(f"Form {form.get('id')} is not accepting responses")
        self.form = form
        self.fields = reorder_for_display(form.get("content") or [])
        self._submissions = submissions
        self.state = CollectorState.IDLE
        self.values = default_values(self.fields)
        self.errors: dict[str, str] = {}
        self.submission: dict[str, Any] | None = None

    def submit(self, raw: dict[str, Any] | None) -> dict[str, Any] | None:
        self.state = CollectorState.VALIDATING
        data, errors = validate_answers(self.fields, raw)
        self.values = data
        self.errors = errors
        if errors:
            self.state = CollectorState.INVALID
            logger.debug("Rejected answers for form %s: %s", self.form["id"], sorted(errors))
            self.state = CollectorState.IDLE
            return None

        self.state = CollectorState.VALID
        try:
            submission = self._submissions.create_submission(self.form["id"], data)
        except Exception:
            self.state = CollectorState.IDLE
            raise
        self.submission = submission
        self.state = CollectorState.SUBMITTED
        return submission

    def reset(self) -> None:
        self.state = CollectorState.IDLE
        self.values = default_values(self.fields)
        self.errors = {}
        self.submission = None
