from fastapi import FastAPI, Request
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from database import Base, engine
from datetime import datetime
from exceptions import AppError
import models  # noqa: F401  registers every table on Base.metadata
import routers.accounts as accounts
import routers.audit_log as audit_log
import routers.chart_of_accounts as chart_of_accounts
import routers.currencies as currencies
import routers.discount_codes as discount_codes
import routers.employees as employees
import routers.expenses as expenses
import routers.journal_entry as journal_entry
import routers.parties as parties
import routers.products as products
import routers.purchase_payments as purchase_payments
import routers.purchases as purchases
import routers.reports as reports
import routers.sale_payments as sale_payments
import routers.sales as sales
import routers.units as units
import os
import logging
from fastapi.openapi.utils import get_openapi


LOG_DIR = os.getenv("LOG_DIR", "logs")
os.makedirs(LOG_DIR, exist_ok=True)

# One log file per process start
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE,
    filemode='a'
)

# Mirror the file log on the console
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler)

logger = logging.getLogger(__name__)
logger.info("Application starting up...")


# Create database tables
Base.metadata.create_all(bind=engine)


app = FastAPI()


allowed_origins_str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173"
)

allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',')]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Shop Ledger API",
        version="1.0.0",
        description="API for inventory, sales, purchases and multi-currency accounts",
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(currencies.router)
app.include_router(units.router)
app.include_router(parties.suppliers_router)
app.include_router(parties.customers_router)
app.include_router(products.products_router)
app.include_router(products.services_router)
app.include_router(products.inventory_router)
app.include_router(purchases.router)
app.include_router(purchase_payments.router)
app.include_router(discount_codes.router)
app.include_router(sales.router)
app.include_router(sale_payments.router)
app.include_router(chart_of_accounts.router)
app.include_router(accounts.router)
app.include_router(journal_entry.router)
app.include_router(expenses.router)
app.include_router(employees.router)
app.include_router(audit_log.router)
app.include_router(reports.router)

@app.get("/")
async def test_route():
    return {"message": "Welcome to the Shop Ledger API!"}
