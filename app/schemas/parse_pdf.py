"""Request/response models for the parse-pdf invocation."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ParsePdfRequest(BaseModel):
    """Body of a parse-pdf invocation."""

    model_config = ConfigDict(populate_by_name=True)

    section_id: UUID = Field(..., alias="sectionId", description="Section the PDF belongs to")
    pdf_url: str = Field(
        default="",
        alias="pdfUrl",
        description="Public storage URL of the uploaded PDF",
    )


class ParsePdfResponse(BaseModel):
    """Successful parse-pdf result."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    total_questions: int = Field(..., alias="totalQuestions")
    questions_requiring_review: int = Field(..., alias="questionsRequiringReview")


class ParsePdfError(BaseModel):
    """Failed parse-pdf result."""

    error: str
