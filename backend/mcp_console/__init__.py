"""MCP Console backend: AI provider chat over websockets plus a token-authenticated tool endpoint."""
