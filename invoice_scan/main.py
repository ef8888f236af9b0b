import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from invoice_scan.api.routes.health import router as health_router
from invoice_scan.api.routes.invoice import router as invoice_router
from invoice_scan.services.pdf.pymupdf_reader import PyMuPdfReader
from invoice_scan.state import global_state

# 1. 导入 setup_logging
from invoice_scan.core.logging import setup_logging

# 2. 立即初始化日志 (在 app 创建之前)
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Invoice Scan Service...")

    logger.info("📄 Initializing PDF reader...")
    global_state.pdf_reader = PyMuPdfReader()

    logger.info("✅ System ready!")
    yield
    logger.info("🛑 Shutting down service...")
    global_state.pdf_reader = None


app = FastAPI(title="Invoice Scan Service", lifespan=lifespan)

app.include_router(health_router, prefix="/api")
app.include_router(invoice_router, prefix="/api")
