"""Message templates and constants.

Contains the Telegram notification template and the console summary line.
Notification text is sent with HTML parse mode, so interpolated values must be
escaped by the caller.
"""

# Telegram notification
NEW_LISTING_MESSAGE = "Neue WG-Zimmer-Anzeige gefunden:\n{summary}\n{href}"

# Console output
RUN_SUMMARY = "Done. {count} new listing(s) notified."
RUN_FAILED = "Run failed: {error}"
