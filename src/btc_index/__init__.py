"""Bitcoin header-chain reconciliation against a single peer."""
