"""
Single source of truth for database tables created by Base.metadata.create_all.

Use these names when writing raw SQL (e.g. TRUNCATE in scripts).
"""
ALL_TABLE_NAMES = (
    "users",
    "access_tokens",
    "ai_providers",
    "tools",
    "chat_sessions",
    "chat_messages",
)

# Tables cleared when resetting chat history. Messages first (they reference sessions).
CHAT_TABLE_NAMES = (
    "chat_messages",
    "chat_sessions",
)
