"""Infrastructure - store backends, ledger client and execution backend."""
