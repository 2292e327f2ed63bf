"""CLI sub-commands for Taskhub."""
