"""Feature modules: progression service, reward rules, snapshot persistence."""
