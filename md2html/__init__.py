"""
Markdown → HTML publisher

Converts a folder of Markdown documents to HTML and publishes the output
to a git remote, reconverting only documents changed since the last
successful publish.
"""

__version__ = "1.0.0"
