"""Kitchen Ledger - recipe cost resolution."""
