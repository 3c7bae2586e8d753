"""
headmark: outline numbering for Markdown headers, with backlink sync.
"""
