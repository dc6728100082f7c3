"""clipreel — compilation pipeline for a repost bot.

Fetch recently published clips, normalize each one to a common encoding,
merge them in small re-encoded chunks and stream-copy the chunks into a
single compilation that is handed to publishers. Every intermediate file
lives in a per-run workspace that is removed when the run ends.
"""
