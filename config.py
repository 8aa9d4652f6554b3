import os
import sys

from dotenv import load_dotenv

from enums.currency import Currency
from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)


def _config_error(name: str, reason: Exception, expected: str) -> None:
    print(f"\n ERROR: Invalid {name} configuration\n", file=sys.stderr)
    print(f"Reason: {reason}", file=sys.stderr)
    print(f"Expected: {expected}", file=sys.stderr)
    print(f"Current value: {os.environ.get(name, '(not set)')}\n", file=sys.stderr)
    sys.exit(1)


# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(os.environ.get("RUNTIME_ENVIRONMENT", RuntimeEnvironment.DEV.value))
except ValueError as e:
    _config_error("RUNTIME_ENVIRONMENT", e, ", ".join(env.value for env in RuntimeEnvironment))

# Database
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/order_ledger.db")
SQL_ECHO = os.environ.get("SQL_ECHO", "false") == "true"

try:
    DB_LOCK_TIMEOUT_SECONDS = float(os.environ.get("DB_LOCK_TIMEOUT_SECONDS", "5"))
    if DB_LOCK_TIMEOUT_SECONDS <= 0:
        raise ValueError(f"DB_LOCK_TIMEOUT_SECONDS must be positive (got: {DB_LOCK_TIMEOUT_SECONDS})")
except ValueError as e:
    _config_error("DB_LOCK_TIMEOUT_SECONDS", e, "Positive number of seconds (e.g., 5)")

# Orders
try:
    CURRENCY = Currency(os.environ.get("CURRENCY", Currency.USD.value))
except ValueError as e:
    _config_error("CURRENCY", e, ", ".join(c.value for c in Currency))

ORDER_NUMBER_PREFIX = os.environ.get("ORDER_NUMBER_PREFIX", "ORD")

# Transactions
TRANSACTION_TIMEOUT = int(os.environ.get("TRANSACTION_TIMEOUT", "30"))  # Seconds before a slow-transaction warning
TRANSACTION_MAX_RETRIES = int(os.environ.get("TRANSACTION_MAX_RETRIES", "3"))  # Retries on lock errors
TRANSACTION_RETRY_DELAY_BASE = float(os.environ.get("TRANSACTION_RETRY_DELAY_BASE", "0.1"))

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs
LOG_DIR = os.environ.get("LOG_DIR", "logs")

# Log Retention: Environment-specific defaults
# Dev: keep a month of logs for debugging
# Prod: Use 5 days default to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))
