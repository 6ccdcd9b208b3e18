"""Session lifecycle: portfolio ledger, trade orchestrator, session store, report output."""
