# backend/app/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent
load_dotenv(ROOT_DIR / ".env")

# ================= SERVER =================
PORT = int(os.getenv("PORT", "3000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
API_VERSION = "2.0.0"

# ================= BLOCKCHAIN =================
# Local Hardhat node by default; deployment.json and the compiled artifact
# are written by the contract deploy script.
RPC_URL = os.getenv("RPC_URL", "http://127.0.0.1:8545")
DEPLOYMENT_PATH = Path(os.getenv("DEPLOYMENT_PATH", str(ROOT_DIR / "deployment.json")))
CONTRACT_ABI_PATH = Path(os.getenv(
    "CONTRACT_ABI_PATH",
    str(ROOT_DIR / "artifacts" / "contracts" / "SupplyChain.sol" / "SupplyChain.json"),
))
FUND_AMOUNT_ETH = float(os.getenv("FUND_AMOUNT_ETH", "1.0"))
TX_TIMEOUT_SECONDS = int(os.getenv("TX_TIMEOUT_SECONDS", "120"))

# ================= SPREADSHEET =================
SPREADSHEET_PATH = Path(os.getenv("SPREADSHEET_PATH", str(ROOT_DIR / "data" / "submissions.xlsx")))

# ================= AI =================
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2:3b")
OLLAMA_TIMEOUT_SECONDS = float(os.getenv("OLLAMA_TIMEOUT_SECONDS", "120"))
