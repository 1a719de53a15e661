import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from candidate_matching.api.router import router
from candidate_matching.errors import MatchingError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Candidate Matching API",
    description="Two-phase job/candidate skill matching",
    version="0.1.0",
)


@app.exception_handler(MatchingError)
async def matching_error_handler(request: Request, exc: MatchingError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(router)
