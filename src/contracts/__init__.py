"""Websocket UI protocol constants."""
