# app/api/routes/classification_routes.py
from fastapi import APIRouter, HTTPException

from app.models.classification_models import PipelineResult
from app.services.classification_services import run_classification_pipeline

router = APIRouter()

@router.post("/run", response_model=PipelineResult)
async def run_classification():
    """
    Run one classification pass. Meant to be hit by the scheduler.
    """
    result = await run_classification_pipeline()
    if not result.succeeded:
        raise HTTPException(status_code=500, detail=result.model_dump(mode="json"))
    return result
