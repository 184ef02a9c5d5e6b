from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ledgerbook.common.error_handlers import register_error_handlers
from ledgerbook.core.config import settings
from ledgerbook.api.v1 import institute, ledger, transaction, report, petty_cash

app = FastAPI(title=settings.APP_NAME, version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Register API routers
app.include_router(
    institute.router, prefix="/api/v1/institutes", tags=["institutes"])
app.include_router(ledger.router, prefix="/api/v1/ledgers", tags=["ledgers"])
app.include_router(
    transaction.router, prefix="/api/v1/transactions", tags=["transactions"])
app.include_router(report.router, prefix="/api/v1/reports", tags=["reports"])
app.include_router(
    petty_cash.router, prefix="/api/v1/petty-cash", tags=["petty cash"])


@app.get("/")
def read_root():
    return {"message": f"Welcome to the {settings.APP_NAME} APIs!"}
