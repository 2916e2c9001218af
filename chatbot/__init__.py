"""Chatbot - asynchronous chat automation robot."""

__version__ = "0.1.0"
