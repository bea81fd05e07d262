"""
Cluster genesis tooling.

Generates the identities a new cluster starts with and builds the genesis
ledger every node must agree on: initial balances, the bootstrap validator,
the epoch schedule, the tick rate and the economic parameters.
"""
