"""
DutySnap FastAPI Application Entry Point
"""
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from dutysnap.api.v1 import compare, duty
from dutysnap.core.config import settings
from dutysnap.middleware.rate_limit import setup_rate_limiting
from dutysnap.middleware.security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(level=logging.DEBUG if settings.is_development else settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="HS classification comparison and landed cost API",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[
        "Content-Type",
        "Cache-Control",
        "X-Content-Type-Options",
        "X-Frame-Options",
        "X-XSS-Protection"
    ],
)

# Add security headers middleware
app.add_middleware(SecurityHeadersMiddleware)

setup_rate_limiting(app)

logger.info("CORS, security headers and rate limiting applied")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Invalid request bodies are client errors (400) and never reach a provider"""
    logger.warning(f"Rejected {request.method} {request.url.path}: {len(exc.errors())} validation error(s)")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


# API routes
app.include_router(compare.router, prefix=f"{settings.API_V1_STR}/compare", tags=["comparison"])
app.include_router(duty.router, prefix=f"{settings.API_V1_STR}/duty", tags=["duty"])


@app.get("/")
async def root():
    """Root endpoint for health check"""
    return {"message": f"{settings.APP_NAME} is running", "version": settings.APP_VERSION}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "dutysnap-api"}


@app.get(f"{settings.API_V1_STR}/info")
async def api_info():
    """Endpoint catalogue and provider credential status"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "endpoints": {
            "compare": f"POST {settings.API_V1_STR}/compare",
            "list": f"GET {settings.API_V1_STR}/compare",
            "statistics": f"GET {settings.API_V1_STR}/compare/stats/summary",
            "comparison": f"GET {settings.API_V1_STR}/compare/{{id}}",
            "duty": f"POST {settings.API_V1_STR}/duty",
        },
        "providers": {
            "reasoning": {"model": settings.OPENAI_MODEL, "configured": bool(settings.OPENAI_API_KEY)},
            "structured": {"configured": bool(settings.ZONOS_API_KEY)},
        },
        "reference_provider": settings.REFERENCE_PROVIDER,
        "result_store": settings.RESULT_STORE_BACKEND,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "dutysnap.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
