"""
asgi.py -- Application assembly for the film library.

This is the ONLY module that reads configuration from the environment. It
builds Settings once and hands them to the app factory; every collaborator
(stores, token codec, services) is constructed from that object.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
