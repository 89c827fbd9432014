"""
JobFinder - semantic job search over a static job corpus.

A small web application and command-line tool that:
- Embeds job postings through a hosted inference API
- Stores them in an external vector store
- Ranks postings against a free-text query or an uploaded resume PDF
"""

__version__ = "0.1.0"
