"""Discord-specific wiring: the bot class, slash command building, rendering and the notification sink."""
