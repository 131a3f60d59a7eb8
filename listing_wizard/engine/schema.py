"""Pydantic models for questionnaire schema validation."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuestionKind(str, Enum):
    """What a question collects."""

    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    FREE_TEXT = "free_text"
    FILE = "file"
    GROUP = "group"


CHOICE_KINDS = (QuestionKind.SINGLE_CHOICE, QuestionKind.MULTI_CHOICE)


class Option(BaseModel):
    """A selectable answer for a choice question."""

    value: str = Field(..., description="Stored answer value")
    label: str = Field(..., description="Text shown to the user")


class GroupField(BaseModel):
    """
    One input inside a group question.

    Group questions collect several related values on a single card (a
    mailing address, a legal name). The answer is a dict keyed by field key.
    """

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., description="Field key inside the group answer")
    label: str = Field(..., description="Prompt text for this field")
    kind: QuestionKind = Field(QuestionKind.FREE_TEXT, description="free_text or single_choice")
    options: Optional[List[Option]] = Field(None, description="Options for single_choice fields")
    required: bool = Field(True, description="Field must be filled for the group to count as answered")
    validator: Optional[str] = Field(None, description="Validator function name (e.g., 'account.validate_phone')")

    @model_validator(mode="after")
    def check_kind(self) -> "GroupField":
        if self.kind not in (QuestionKind.FREE_TEXT, QuestionKind.SINGLE_CHOICE):
            raise ValueError(f"Group field '{self.key}' must be free_text or single_choice")
        if self.kind == QuestionKind.SINGLE_CHOICE and not self.options:
            raise ValueError(f"Group field '{self.key}' needs options")
        return self

    def option_values(self) -> List[str]:
        return [option.value for option in self.options or []]


class Question(BaseModel):
    """
    Represents a single question in a section.

    A question can be:
    - A single or multi choice (radio buttons / checkboxes)
    - Free text
    - A file reference (document upload)
    - A group of related inputs answered together
    """

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., min_length=1, description="Unique question key; also the answer's key")
    kind: QuestionKind = Field(..., description="single_choice, multi_choice, free_text, file or group")
    prompt: Optional[str] = Field(None, description="Prompt text to display to user")
    help: Optional[str] = Field(None, description="Explanatory text shown under the prompt")
    options: Optional[List[Option]] = Field(None, description="Options for choice questions")
    fields: Optional[List[GroupField]] = Field(None, description="Inputs for group questions")
    required: bool = Field(True, description="Question must be answered before moving on")
    when: Optional[str] = Field(None, description="Reachability condition (e.g., \"is_in_pid == 'yes'\")")
    next: Optional[Union[str, Dict[str, Any]]] = Field(None, description="Next question key or conditional dict")
    validator: Optional[str] = Field(None, description="Validator function name (e.g., 'financial_info.validate_currency')")
    default_value: Optional[Any] = Field(None, description="Default value if no input")
    default_from: Optional[str] = Field(None, description="Key to read default from (store, 'section.key' or context)")

    @model_validator(mode="after")
    def check_kind_payload(self) -> "Question":
        if self.kind in CHOICE_KINDS and not self.options:
            raise ValueError(f"Question '{self.key}' is {self.kind.value} but has no options")
        if self.kind == QuestionKind.GROUP and not self.fields:
            raise ValueError(f"Question '{self.key}' is a group but has no fields")
        if self.kind == QuestionKind.GROUP:
            field_keys = [field.key for field in self.fields]
            if len(field_keys) != len(set(field_keys)):
                raise ValueError(f"Question '{self.key}' has duplicate field keys")
        return self

    def option_values(self) -> List[str]:
        return [option.value for option in self.options or []]


class SectionSpec(BaseModel):
    """
    Specification for a single questionnaire section.

    Each section is one wizard card deck (title holder, disclosures, ...)
    and owns its questions and validators.
    """

    model_config = ConfigDict(extra="allow")

    section: str = Field(..., description="Section identifier (e.g., 'financial_info')")
    version: Union[str, float] = Field(..., description="Section spec version; drafts from other versions are discarded")
    title: str = Field(..., description="Heading shown above the questions")
    description: str = Field(..., description="Human-readable description")
    questions: List[Question] = Field(default_factory=list, description="Questions in graph order")


class FlowTarget(BaseModel):
    """A section included in a flow."""

    model_config = ConfigDict(extra="allow")

    section: str = Field(..., description="Section identifier")
    depends_on: List[str] = Field(default_factory=list, description="Sections that must complete first")


class Flow(BaseModel):
    """
    Orchestration flow that composes multiple sections.

    Flows define section order based on dependencies and where to send the
    user when the flow completes or is abandoned.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Flow identifier (e.g., 'listing_creation')")
    version: Union[str, float] = Field(..., description="Flow spec version")
    description: str = Field(..., description="Human-readable description")
    targets: List[FlowTarget] = Field(default_factory=list, description="Sections to include in flow")
    policy: Optional[Dict[str, str]] = Field(None, description="Execution policy (ordering)")
    on_complete: str = Field("listings", description="View to show once every section is done")
    on_exit: str = Field("listings", description="View to show when the user exits early")


class DraftSnapshot(BaseModel):
    """
    Persisted, resumable state of an in-progress questionnaire.

    A resume replaces the whole field store and position; snapshots are
    never merged.
    """

    model_config = ConfigDict(extra="forbid")

    flow_id: str = Field(..., min_length=1)
    version: str = Field(..., description="Version of the spec the snapshot was taken from")
    current_key: str = Field(..., min_length=1)
    answers: Dict[str, Any] = Field(default_factory=dict)
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
