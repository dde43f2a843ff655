"""Constants for the OfferHub SDK.

This module defines the constant values used across the SDK,
including integer bounds of the wire format, transaction defaults,
polling defaults and validation limits.
"""

# Integer bounds
U32_MAX = 2**32 - 1
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1
U64_MAX = 2**64 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
U128_MAX = 2**128 - 1
I128_MIN = -(2**127)
I128_MAX = 2**127 - 1

# Symbols are limited to 32 characters of [a-zA-Z0-9_]
MAX_SYMBOL_LENGTH = 32
SYMBOL_PATTERN = r"^[a-zA-Z0-9_]*$"

# StrKey addresses
ADDRESS_LENGTH = 56
ACCOUNT_ADDRESS_PREFIX = "G"
CONTRACT_ADDRESS_PREFIX = "C"

# Account with an all-zero key, used as the source of read-only simulations
NULL_ACCOUNT = "GAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAWHF"

# Transaction defaults
BASE_FEE = 100  # stroops
TIMEOUT_LEDGERS = 30  # expiration window, in ledgers past the latest one

# Polling defaults
DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_MAX_POLL_ATTEMPTS = 60

# Network Constants
REQUEST_TIMEOUT_MS = 30000

# Validation limits
PROOF_HASH_LENGTH = 32
MAX_METADATA_URI_LENGTH = 256
COUNTRY_CODE_LENGTH = 2
MIN_IDENTIFIER_LENGTH = 10

# Reputation scoring (mirrors the contract)
JOB_COMPLETED_CLAIM_TYPE = "job_completed"
JOB_COMPLETED_POINTS = 10
OTHER_CLAIM_POINTS = 5
SECONDS_PER_WEEK = 604800

__all__ = [
    "U32_MAX",
    "I32_MIN",
    "I32_MAX",
    "U64_MAX",
    "I64_MIN",
    "I64_MAX",
    "U128_MAX",
    "I128_MIN",
    "I128_MAX",
    "MAX_SYMBOL_LENGTH",
    "SYMBOL_PATTERN",
    "ADDRESS_LENGTH",
    "ACCOUNT_ADDRESS_PREFIX",
    "CONTRACT_ADDRESS_PREFIX",
    "NULL_ACCOUNT",
    "BASE_FEE",
    "TIMEOUT_LEDGERS",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_MAX_POLL_ATTEMPTS",
    "REQUEST_TIMEOUT_MS",
    "PROOF_HASH_LENGTH",
    "MAX_METADATA_URI_LENGTH",
    "COUNTRY_CODE_LENGTH",
    "MIN_IDENTIFIER_LENGTH",
    "JOB_COMPLETED_CLAIM_TYPE",
    "JOB_COMPLETED_POINTS",
    "OTHER_CLAIM_POINTS",
    "SECONDS_PER_WEEK",
]
