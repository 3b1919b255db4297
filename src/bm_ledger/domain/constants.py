"""Reserved ledger holders."""

# Holds every stake until it is paid out, taken as fee or withdrawn by the owner.
POOL_HOLDER_ID = "SETTLEMENT_POOL"
