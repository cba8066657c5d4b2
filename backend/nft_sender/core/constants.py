# Headers attached to every edge function response (mirrors the serverless runtime)
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, x-api-key, accept",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}

# Records that never reached the database carry ids with this prefix
TEMP_ID_PREFIX = "temp-"

# Recipient shape heuristics
WALLET_MIN_LENGTH = 30

# User-facing messages
MISSING_CONFIG_MESSAGE = "Missing API key or collection ID"
NETWORK_ERROR_MESSAGE = "Network error"
NO_VALID_RECIPIENTS_MESSAGE = "No valid recipients found"
NO_PENDING_RECORDS_MESSAGE = "No pending records selected"
NO_FAILED_RECORDS_MESSAGE = "No failed mints to retry"
