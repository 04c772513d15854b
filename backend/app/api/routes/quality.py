import logging
from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, Field

from app import crud
from app.agent.quality_agent import QualityAgent, QualityCheckInput
from app.api.deps import CurrentUser, ServicesDep, SessionDep, enforce_rate_limit
from app.api.uploads import decode_image_payload, upload_file_name
from app.core.config import settings
from app.core.errors import GenerationUnavailable, ValidationError
from app.models import ProductType, QualityReportCreate, QualityReportPublic

router = APIRouter()
logger = logging.getLogger(__name__)


class QualityCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_type: ProductType | None = Field(default=None, alias="productType")
    product_name: str | None = Field(default=None, alias="productName")
    image_file: str | None = Field(default=None, alias="imageFile")


@router.post("/quality-check")
async def quality_check(
    payload: QualityCheckRequest,
    session: SessionDep,
    services: ServicesDep,
    current_user: CurrentUser,
) -> Any:
    """
    Upload a product photo, grade it with the model and store the report.
    """
    if not (payload.product_type and payload.product_name and payload.image_file):
        raise ValidationError("productType, productName, and imageFile are required")
    image = decode_image_payload(payload.image_file)

    enforce_rate_limit(session, current_user, "quality_check")

    image_url = await services.storage.upload(
        settings.QUALITY_CHECK_BUCKET,
        upload_file_name(current_user.id, "quality_check"),
        image.content,
        content_type=image.content_type,
    )

    try:
        result = await QualityAgent(services.structured_llm).run(
            QualityCheckInput(
                product_type=payload.product_type,
                product_name=payload.product_name,
                image_url=image.data_url,
            )
        )
    except GenerationUnavailable as exc:
        raise GenerationUnavailable("Failed to analyze image") from exc

    if result.parsed is None:
        logger.error(
            "Quality analysis parsing failed after %s attempts; raw text: %.500s",
            result.attempts,
            result.raw_text,
        )
        raise GenerationUnavailable("Failed to analyze image")

    assessment = result.parsed
    report = crud.create_quality_report(
        session=session,
        report_in=QualityReportCreate(
            user_id=current_user.id,
            product_type=payload.product_type,
            product_name=payload.product_name,
            image_url=image_url,
            **assessment.model_dump(),
        ),
    )

    return {
        **assessment.model_dump(mode="json"),
        "report": QualityReportPublic.model_validate(report).model_dump(mode="json"),
        "imageUrl": image_url,
    }


@router.get("/quality-reports", response_model=list[QualityReportPublic])
def read_quality_reports(
    session: SessionDep,
    current_user: CurrentUser,
    limit: int = Query(default=10, ge=1, le=50),
) -> Any:
    return crud.get_quality_reports(session=session, user_id=current_user.id, limit=limit)
