"""
Nina SDK: Python client for the Nina music publishing protocol.

- REST indexer reads (hubs, releases, exchanges, posts)
- Solana transactions against the Nina program (Hub, Release, Exchange, Post)
"""

__version__ = "0.1.0"
