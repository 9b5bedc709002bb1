from fastapi import FastAPI, Request, Depends
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.orm import Session
from ledgerbook_app import __version__
from ledgerbook_app.api.deps import get_db
from ledgerbook_app.api.routes_accounts import router as accounts_router
from ledgerbook_app.api.routes_entries import router as entries_router
from ledgerbook_app.api.routes_reports import router as reports_router
from ledgerbook_app.errors import IntegrityFault, LedgerError

app = FastAPI(title="Ledgerbook API", version=__version__)

@app.get("/health", tags=["system"])
def health(db: Session = Depends(get_db)) -> JSONResponse:
    """
    Health endpoint that checks database connectivity.
    """
    db_status = "ok"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_status = f"error: {str(e)}"
    return JSONResponse({"status": "ok", "database": db_status})

@app.exception_handler(LedgerError)
def ledger_error_handler(request: Request, exc: LedgerError):
    if isinstance(exc, IntegrityFault):
        logger.critical(f"{exc.message} ({request.method} {request.url.path})")
    return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})

@app.exception_handler(IntegrityError)
def integrity_error_exception_handler(request: Request, exc: IntegrityError):
    return JSONResponse(
        status_code=409,
        content={"detail": "Database integrity error: " + str(exc.orig)}
    )

# Mount routers
app.include_router(accounts_router)
app.include_router(entries_router)
app.include_router(reports_router)
