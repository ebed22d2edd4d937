"""Business logic services package.

Contains acquisition orchestration with retries, the persisted dedup store,
Telegram delivery, and the shared timing and fallback primitives.
"""
