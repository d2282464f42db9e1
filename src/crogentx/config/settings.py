from decimal import Decimal
import os
from dotenv import load_dotenv
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() not in ("0", "false", "no", "off")


# ---- CLI / SDK ----
CROGENTX_API_URL = os.environ.get("CROGENTX_API_URL", "http://localhost:3000")
SDK_TIMEOUT_SEC = float(os.environ.get("SDK_TIMEOUT_SEC", "15"))

# ---- API server ----
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "3000"))

# ---- Record source ----
USE_MOCK_DATA = _env_flag("CROGENTX_USE_MOCK_DATA", "true")
X402_FACILITATOR_URL = os.environ.get("X402_FACILITATOR_URL", "https://x402-api.monad.xyz")
FACILITATOR_TIMEOUT_SEC = float(os.environ.get("FACILITATOR_TIMEOUT_SEC", "10"))

MOCK_TRANSACTION_COUNT = int(os.environ.get("MOCK_TRANSACTION_COUNT", "800"))
MOCK_SEED = int(os.environ["MOCK_SEED"]) if os.environ.get("MOCK_SEED") else None

# ---- Query defaults ----
DEFAULT_TRANSACTION_LIMIT = 100
DEFAULT_AGENT_LIMIT = 50
DEFAULT_GRAPH_LIMIT = 200
MAX_RECORDS = 1000              # in-memory cap for a single query
GENEALOGY_WIRE_DEPTH = 100      # nesting levels in a genealogy response

# ----- Chain ------
NATIVE_SYMBOL = "CRO"
NATIVE_USD_PRICE = Decimal("0.15")
SIMULATION_GAS_PRICE_GWEI = 5000

# ---- Logging ----
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").strip().lower()
