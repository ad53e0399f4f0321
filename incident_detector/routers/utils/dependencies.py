from fastapi import HTTPException, Request

from incident_detector.core.pipeline import IncidentPipeline


def get_pipeline(request: Request) -> IncidentPipeline:
    """FastAPI dependency returning the pipeline built at startup."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Detection pipeline is not ready")
    return pipeline
