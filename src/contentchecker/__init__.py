"""contentchecker -- Single-page content change watcher.

Each invocation visits one web page, extracts the text of a content
region and a screenshot of a visual region, compares the text with the
previous run stored in a named key-value store, and sends a change
notification (chat message + mail) when the content differs.
"""

__version__ = "0.1.0"
