"""Treasury escrow spec configuration constants.

Keep this file aligned with the constants of the deployed program and with the
hosting ledger's runtime parameters (rent, PDA derivation).
"""

# Program identity
PROGRAM_ID_BASE58 = "6GabEnTZtPMyUDkrbzEMDktDupZ3gxVWb6oEHBsoRZ61"
SYSTEM_PROGRAM_ID = bytes(32)
DEFAULT_PUBKEY = bytes(32)

# PDA seeds
ESCROW_SEED = b"escrow"
VAULT_SEED = b"vault"
ESCROW_SEEDS = (ESCROW_SEED,)
VAULT_SEEDS = (ESCROW_SEED, VAULT_SEED)
PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEED_LEN = 32
MAX_SEEDS = 16

# Timer rules
START_AFTER = 10
EXTEND_SECONDS = 3600

# Fee rules
BPS_DENOMINATOR = 10_000
FEE_STEP_NUMERATOR = 10_078  # ~0.78% per accepted message
MAX_MARKETING_BPS = 2500

# Integer widths
U8_MAX = (1 << 8) - 1
U16_MAX = (1 << 16) - 1
U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1
I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1

# Rent (rent-exempt minimum = (overhead + data_len) * per-byte-year * threshold)
ACCOUNT_STORAGE_OVERHEAD = 128
LAMPORTS_PER_BYTE_YEAR = 3480
EXEMPTION_THRESHOLD_YEARS = 2

# Units
LAMPORTS_PER_SOL = 1_000_000_000

# Escrow account layout
DISCRIMINATOR_LEN = 8
PUBKEY_LEN = 32
MSG_HASH_LEN = 32
ESCROW_LEN = 32 + 8 + 8 + 8 + 32 + 2 + 8 + 32 + 1 + 8 + 1 + 1
ESCROW_ACCOUNT_SPACE = DISCRIMINATOR_LEN + ESCROW_LEN
