from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.auth.deps import get_wallets, require_blockchain
from app.auth.models import LoginRequest, LoginResponse, RegisterRequest, SessionResponse, SessionUser
from app.blockchain_client import ContractClient
from app.wallets import WalletRegistry
from utils.jwt import create_token, optional_token, revoke_token, security
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# =========================
# REGISTER
# =========================

@router.post("/register")
async def register_user(
    data: RegisterRequest,
    contract: ContractClient = Depends(require_blockchain),
    wallets: WalletRegistry = Depends(get_wallets),
):
    if not data.username or not data.password or data.role is None:
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        account = contract.create_wallet()
        await contract.fund_wallet(account.address)
        await contract.register_user(account, data.username, data.password, data.role)
    except Exception as e:
        logger.error("registration_failed", username=data.username, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    wallets.put(data.username, account)

    return {
        "success": True,
        "message": "User registered successfully",
        "address": account.address,
    }

# =========================
# LOGIN
# =========================

@router.post("/login", response_model=LoginResponse)
async def login_user(
    data: LoginRequest,
    contract: ContractClient = Depends(require_blockchain),
    wallets: WalletRegistry = Depends(get_wallets),
):
    if not data.username or not data.password:
        raise HTTPException(status_code=400, detail="Missing credentials")

    try:
        success, address, username, role = await contract.verify_login(data.username, data.password)
    except Exception as e:
        logger.error("login_failed", username=data.username, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    if not success:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    # Users created by the deploy script exist on chain but have no server wallet yet.
    try:
        await wallets.ensure(data.username, contract)
    except Exception as e:
        logger.error("wallet_setup_failed", username=data.username, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    user = SessionUser(username=username, address=address, role=role)
    token = create_token(user.model_dump())
    logger.info("user_logged_in", username=username, role=role)

    return LoginResponse(user=user, access_token=token)

# =========================
# LOGOUT / SESSION
# =========================

@router.post("/logout")
async def logout_user(credentials: HTTPAuthorizationCredentials | None = Depends(security)):
    if credentials is not None:
        revoke_token(credentials.credentials)
    return {"success": True}


@router.get("/session", response_model=SessionResponse, response_model_exclude_none=True)
async def current_session(session: dict | None = Depends(optional_token)):
    if session is None:
        return SessionResponse(loggedIn=False)
    return SessionResponse(
        loggedIn=True,
        user=SessionUser(username=session["username"], address=session["address"], role=session["role"]),
    )
