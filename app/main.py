from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import config
from app.auth.deps import get_contract
from app.blockchain_client import ContractClient
from app.storage.spreadsheet import SpreadsheetStorage
from app.wallets import WalletRegistry
from utils.logger import get_logger
# ROUTERS
from routes.ai import router as ai_router
from routes.auth import router as auth_router
from routes.batches import router as batch_router
from routes.submissions import router as submission_router
from routes.wallet import router as wallet_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ready = await app.state.contract.load()
    logger.info(
        "server_started",
        port=config.PORT,
        ollama_url=config.OLLAMA_URL,
        blockchain_ready=ready,
        contract_address=app.state.contract.contract_address,
    )
    if not ready:
        logger.warning("blockchain_disabled", hint="start the node and deploy the SupplyChain contract, then restart")
    yield


app = FastAPI(title="Aware Blockchain Platform API", version=config.API_VERSION, lifespan=lifespan)

app.state.contract = ContractClient()
app.state.wallets = WalletRegistry()
app.state.storage = SpreadsheetStorage(config.SPREADSHEET_PATH)

# ================= CORS =================
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ================= ERRORS =================
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    logger.info("request_invalid", path=request.url.path, errors=errors)
    return JSONResponse(status_code=400, content={"error": "Invalid request", "errors": errors})

# ================= ROUTERS =================
app.include_router(auth_router)
app.include_router(batch_router)
app.include_router(submission_router)
app.include_router(wallet_router)
app.include_router(ai_router)


# =====================================================
# INFO
# =====================================================

@app.get("/api")
async def api_info(contract: ContractClient = Depends(get_contract)):
    return {
        "message": "Aware™ Blockchain Platform API",
        "version": config.API_VERSION,
        "status": "running",
        "features": {
            "blockchain": contract.ready,
            "ollamaAI": True,
            "authentication": True,
            "spreadsheet": True,
        },
        "blockchain": {
            "ready": contract.ready,
            "contractAddress": contract.contract_address,
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=config.PORT)
