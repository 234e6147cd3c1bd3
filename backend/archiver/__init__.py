"""
Gmail EML archiver.

Turns Airbyte Gmail "messages_details" JSONL exports into one .eml file per
message in Supabase Storage, skipping messages that were already archived.
"""

__version__ = "0.1.0"
