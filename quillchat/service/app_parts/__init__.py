"""Relay endpoint building blocks used by :mod:`quillchat.service.app`."""
