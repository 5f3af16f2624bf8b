"""Financial Modeling Prep provider (quotes, history, search, profiles)."""
