"""Shared plumbing for the market data and news providers: error categories,
outbound rate limiting and component-prefixed logging."""
