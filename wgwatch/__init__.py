"""WG room watcher package.

Watches the wgzimmer.ch room search for a configured query and posts every
listing that has not been seen before to a Telegram chat. Intended to be run
once per invocation by an external scheduler.

The application follows a modular architecture with separate concerns for:
- Configuration loading from environment variables and YAML defaults
- Listing acquisition (direct HTTP first, Playwright browser as fallback)
- Deduplication against persisted state
- Telegram notification delivery
"""
