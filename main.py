# main.py
import logging
import sys
from pathlib import Path
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent
sys.path.append(str(ROOT_DIR))

import models  # noqa: F401  registers tables on Base
from database import engine, Base
from routes import orders, products, dashboard, sync_status

load_dotenv()

logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Ops Dashboard")

Base.metadata.create_all(bind=engine)

@app.get("/", response_class=RedirectResponse, include_in_schema=False)
async def read_root():
    return RedirectResponse(url="/api/orders/")

@app.get("/health", include_in_schema=False)
async def health():
    return {"status": "ok"}

# Routers
app.include_router(orders.router)
app.include_router(products.router)
app.include_router(dashboard.router)
app.include_router(sync_status.router)
