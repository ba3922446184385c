"""
Result contracts returned by the guarded executor.

``ExecutionResult`` is a tagged union: a success carries the data, a failure
carries only the error. Both render to the flat payload the tool-calling model
reads (``{columns, rows, rowCount, truncated, error?}``).
"""
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from insight_agent.common.errors import ErrorCode


class ExecutionSuccess(BaseModel):
    """Rows returned by a read-only query."""

    status: Literal["success"] = "success"
    columns: List[str] = Field(default_factory=list, description="Column names, from the first row.")
    rows: List[Dict[str, Any]] = Field(default_factory=list, description="Result rows.")
    row_count: int = Field(0, description="Number of rows returned.")
    truncated: bool = Field(
        False, description="True when the row cap was reached; more rows may exist."
    )

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return True

    def to_payload(self) -> Dict[str, Any]:
        return {
            "columns": list(self.columns),
            "rows": list(self.rows),
            "rowCount": self.row_count,
            "truncated": self.truncated,
        }


class ExecutionFailure(BaseModel):
    """A rejected or failed query."""

    status: Literal["failure"] = "failure"
    error: str = Field(..., description="Error text shown to the model.")
    error_code: ErrorCode = Field(ErrorCode.UNKNOWN_ERROR)

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "columns": [],
            "rows": [],
            "rowCount": 0,
            "truncated": False,
        }


ExecutionResult = Annotated[
    Union[ExecutionSuccess, ExecutionFailure],
    Field(discriminator="status"),
]

execution_result_adapter = TypeAdapter(ExecutionResult)
