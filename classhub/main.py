from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from classhub.routes import auth, core, enrollment, attendance, assessments, notifications, timetables, teachers
from classhub.core.app_logger import setup_logging
from classhub.core.config import settings
from classhub.db.session import create_tables

logger = setup_logging()

app = FastAPI(title=settings.PROJECT_NAME)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api = settings.API_PREFIX
app.include_router(auth.router, prefix=f"{api}/auth", tags=["Auth"])
app.include_router(core.router, prefix=f"{api}/core", tags=["Core"])
app.include_router(enrollment.router, prefix=f"{api}/enrollment", tags=["Enrollment"])
app.include_router(attendance.router, prefix=f"{api}/attendance", tags=["Attendance"])
app.include_router(assessments.router, prefix=f"{api}/assessments", tags=["Assessments"])
app.include_router(notifications.router, prefix=f"{api}/communications", tags=["Notifications"])
app.include_router(notifications.public_router, prefix=f"{api}/communications", tags=["Notifications"])
app.include_router(timetables.router, prefix=f"{api}/timetables", tags=["Timetables"])
app.include_router(teachers.router, prefix=f"{api}/teachers", tags=["Teacher"])


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header")]
    return ".".join(parts) or (str(loc[0]) if loc else "")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": _field_name(error.get("loc", ())), "message": error.get("msg", "Invalid value")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = {"message": exc.detail.get("message", ""), **exc.detail}
    else:
        content = {"message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"message": "Conflict"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


@app.on_event("startup")
def on_startup():
    """Called when FastAPI starts - creates any missing tables"""
    create_tables()
    logger.info("%s started", settings.PROJECT_NAME)


@app.get("/")
def root():
    return {"message": "API Connect Successfully"}


@app.get("/health")
def health():
    return {"status": "ok"}
