from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from querytrail.exceptions import RecordValidationError

# Stored query text never exceeds this many characters
MAX_QUERY_LENGTH = 255

CompletenessStatus = Literal["empty", "in_progress", "incomplete", "complete"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_query_text(text: Optional[str], max_length: int = MAX_QUERY_LENGTH) -> str:
    """Strip surrounding whitespace and truncate to `max_length` characters."""
    if text is None:
        return ""
    text = str(text).strip()
    if len(text) > max_length:
        text = text[:max_length]
    return text


class QueryRecord(BaseModel):
    """
    A tracked search query.

    In-progress records have completed=False and no final_text. Finalization
    sets completed=True together with the canonical final_text.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = None
    text: str = Field(max_length=MAX_QUERY_LENGTH)
    final_text: Optional[str] = None
    user_key: str
    completed: bool = False
    created_at: Optional[datetime] = None

    @field_validator("text", "user_key")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value

    @model_validator(mode="after")
    def _completed_has_final_text(self):
        if self.completed and not self.final_text:
            raise ValueError("completed records require final_text")
        return self

    @classmethod
    def create(cls, text: str, user_key: str, **fields: Any) -> "QueryRecord":
        """
        Build a record, converting pydantic failures into RecordValidationError.

        Raises:
            RecordValidationError: If any field is invalid
        """
        try:
            return cls(text=text, user_key=user_key, **fields)
        except ValidationError as e:
            raise RecordValidationError(_format_validation_error(e))


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "record"
        messages.append(f"{location}: {item.get('msg')}")
    return "; ".join(messages)


class QueryStat(BaseModel):
    """Aggregated count for one canonical query."""
    query: str
    count: int


class RecordOutcome(BaseModel):
    """
    Structured result of recording a partial query.

    status is "ok" on success, "empty" for blank input and "error" when the
    record could not be saved. error_type distinguishes "validation" from
    "store" failures.
    """
    status: Literal["ok", "empty", "error"]
    query: Optional[str] = None
    completed: bool = False
    id: Optional[int] = None
    completeness: CompletenessStatus = "empty"
    analysis: Dict[str, Any] = Field(default_factory=dict)
    message: Optional[str] = None
    error_type: Optional[Literal["validation", "store"]] = None
