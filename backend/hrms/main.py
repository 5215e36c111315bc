from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hrms.api.routes import health
from hrms.core.config import settings
from hrms.core.errors import register_error_handlers
from hrms.core.logging import configure_logging, get_logger
from hrms.core.monitoring import configure_error_monitoring
from hrms.core.observability import configure_observability
from hrms.domains.attendance.router import router as attendance_router
from hrms.domains.comp_off.router import router as comp_off_router
from hrms.domains.expenses.router import router as expenses_router
from hrms.domains.leaves.router import router as leaves_router
from hrms.domains.overtime.router import router as overtime_router
from hrms.domains.salaries.router import router as salaries_router

configure_logging(settings.log_level)
configure_observability()
configure_error_monitoring()
logger = get_logger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.cors_origins] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)

app.include_router(health.router)
app.include_router(attendance_router)
app.include_router(leaves_router)
app.include_router(salaries_router)
app.include_router(overtime_router)
app.include_router(expenses_router)
app.include_router(comp_off_router)


@app.on_event("startup")
def startup_event() -> None:
    logger.info("startup_complete", env=settings.env, display_timezone=settings.display_timezone)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "HRMS API running", "environment": settings.env}
