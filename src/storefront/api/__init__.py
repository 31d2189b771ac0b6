"""Storefront API package.

Routers live in ``catalogue``, ``cart`` and ``orders``; ``app.create_app``
assembles them.
"""
