"""Prospects router for the prospect list generator.

Provides the "generate AI list" endpoint: preview mode runs the pipeline and
returns the candidates, import mode writes a previewed list to storage.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.deps import get_db
from app.models import (
    GenerationImportResponse,
    GenerationPreviewResponse,
    GenerationRequest,
)
from app.repositories.prospect_list_repository_sqlalchemy import (
    ProspectListRepositorySQLAlchemy,
)
from app.services.industry_strategies import (
    IndustryStrategyTable,
    load_industry_strategies,
)
from app.services.prospect_pipeline import (
    ProspectPipeline,
    build_prospect_pipeline,
    sanitize_for_log,
)
from app.services.strategy_selector import StrategyError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_strategy_table(request: Request) -> IndustryStrategyTable:
    """Strategy table loaded at startup, or loaded now if startup did not run."""
    table = getattr(request.app.state, "strategy_table", None)
    if table is None:
        table = load_industry_strategies()
        request.app.state.strategy_table = table
    return table


def get_prospect_pipeline(
    table: IndustryStrategyTable = Depends(get_strategy_table),
) -> ProspectPipeline:
    return build_prospect_pipeline(table)


def get_prospect_list_repository(
    db: Session = Depends(get_db),
) -> ProspectListRepositorySQLAlchemy:
    return ProspectListRepositorySQLAlchemy(db)


@router.post(
    "/prospects/generate-ai-list",
    response_model=GenerationPreviewResponse | GenerationImportResponse,
    summary="Generate a prospect list",
    description=(
        "Preview mode scrapes the sources for the industry and location and "
        "returns candidates. Import mode saves a previewed list."
    ),
    responses={
        400: {"description": "Invalid industry, location or missing preview data"},
        500: {"description": "Failed to save the prospect list"},
    },
)
async def generate_ai_list(
    request: GenerationRequest,
    pipeline: ProspectPipeline = Depends(get_prospect_pipeline),
    repo: ProspectListRepositorySQLAlchemy = Depends(get_prospect_list_repository),
    user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> GenerationPreviewResponse | GenerationImportResponse:
    """Generate a prospect list preview, or import a previewed one.

    Args:
        request: Generation parameters.

    Returns:
        The preview in preview mode, the created list summary in import mode.

    Raises:
        HTTPException: 400 if the strategy cannot be built or preview data
            is missing on import, 500 if the list cannot be saved.
    """
    if request.preview:
        logger.info(
            f"Preview for industry='{sanitize_for_log(request.industry)}', "
            f"location='{sanitize_for_log(request.location)}', target={request.target_count}"
        )
        try:
            preview = await pipeline.generate(
                request.industry, request.location, request.target_count
            )
        except StrategyError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            ) from e

        if preview.errors:
            logger.warning(f"Generation finished with {len(preview.errors)} source error(s)")
        return GenerationPreviewResponse(preview_data=preview)

    if request.preview_data is None or request.selected_columns is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request: preview data required for import mode",
        )

    try:
        list_id, generated_count = repo.create_from_preview(
            list_name=request.list_name,
            industry=request.industry,
            location=request.location,
            selected_columns=request.selected_columns,
            prospects=request.preview_data.prospects,
            created_by=user_id,
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to save prospect list '{sanitize_for_log(request.list_name)}': {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create prospect list",
        ) from e

    logger.info(f"Imported {generated_count} prospects into list {list_id}")
    return GenerationImportResponse(
        list_id=list_id,
        generated_count=generated_count,
        sources_used=request.preview_data.sources_used,
        errors=request.preview_data.errors,
        message=f'Liste "{request.list_name}" créée avec {generated_count} prospects',
    )
