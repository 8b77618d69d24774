"""Product search and matching engine for the portal catalog."""
