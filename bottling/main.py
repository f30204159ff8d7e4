import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bottling.api.routes.perfume import router as perfume_router
from bottling.api.routes.products import router as products_router
from bottling.api.routes.shops import router as shops_router
from bottling.core.config import settings
from bottling.services.exceptions import BottlingError, TransactionFailure

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(perfume_router)
app.include_router(products_router)
app.include_router(shops_router)


@app.exception_handler(BottlingError)
async def bottling_error_handler(request: Request, exc: BottlingError):
    if isinstance(exc, TransactionFailure):
        # Details are already logged where the rollback happened.
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.__cause__ or exc)
        detail = TransactionFailure.default_detail
    else:
        detail = exc.detail
    return JSONResponse(status_code=exc.status_code, content={"detail": detail, "code": exc.code})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "code": "validation_error", "errors": jsonable_encoder(exc.errors())},
    )


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}
