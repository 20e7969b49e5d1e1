"""On-chain instruction building and transaction submission."""
