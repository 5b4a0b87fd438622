from fastapi import APIRouter

from app.api.v1.endpoints import parse_pdf, sections

api_router = APIRouter()

api_router.include_router(parse_pdf.router, prefix="/parse-pdf", tags=["Parse PDF"])
api_router.include_router(sections.router, prefix="/sections", tags=["Sections"])

__all__ = ["api_router"]
