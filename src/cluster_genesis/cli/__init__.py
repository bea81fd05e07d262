"""Command line tools: `cluster-keygen`, `cluster-genesis` and `cluster-genesis-verify`."""
